from __future__ import annotations

import uuid

import pytest
from sqlalchemy import String, Uuid, select
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from outbound.platform.security.errors import OrgScopeError
from outbound.platform.security.scope import (
    apply_org_scope,
    auto_assign_org_id,
    build_org_filter,
    has_org_scope,
    resolve_create_org_id,
)


class Base(DeclarativeBase):
    pass


class DemoScopedModel(Base):
    __tablename__ = "demo_scoped_model"

    id: Mapped[int] = mapped_column(primary_key=True)
    organization_id: Mapped[uuid.UUID | None] = mapped_column(Uuid(as_uuid=True), nullable=True)


class DemoUnscopedModel(Base):
    __tablename__ = "demo_unscoped_model"

    id: Mapped[int] = mapped_column(primary_key=True)
    label: Mapped[str] = mapped_column(String(32))


def test_empty_scope_adds_no_filter() -> None:
    assert build_org_filter(DemoScopedModel, ()) == ()
    stmt = apply_org_scope(select(DemoScopedModel), ())
    assert "WHERE" not in str(stmt)


def test_scope_filters_on_organization_id() -> None:
    stmt = apply_org_scope(select(DemoScopedModel), [uuid.uuid4()])
    sql = str(stmt)

    assert "organization_id IN" in sql


def test_models_without_organization_column_are_left_alone() -> None:
    stmt = apply_org_scope(select(DemoUnscopedModel), [uuid.uuid4()])
    assert "WHERE" not in str(stmt)


def test_auto_assign_uses_first_org_in_scope() -> None:
    first, second = uuid.uuid4(), uuid.uuid4()

    assert auto_assign_org_id([first, second]) == first
    assert auto_assign_org_id([]) is None
    assert has_org_scope([first])
    assert not has_org_scope(())


def test_resolve_create_org_id() -> None:
    first, second = uuid.uuid4(), uuid.uuid4()

    assert resolve_create_org_id(None, [first, second]) == first
    assert resolve_create_org_id(second, [first, second]) == second
    assert resolve_create_org_id(None, ()) is None

    outside = uuid.uuid4()
    assert resolve_create_org_id(outside, ()) == outside


def test_explicit_org_outside_scope_is_rejected() -> None:
    outside = uuid.uuid4()
    with pytest.raises(OrgScopeError) as excinfo:
        resolve_create_org_id(outside, [uuid.uuid4()])

    assert excinfo.value.code == "ORG_SCOPE_VIOLATION"
    assert excinfo.value.details == {"organizationId": str(outside)}
