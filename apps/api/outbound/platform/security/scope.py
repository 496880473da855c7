from __future__ import annotations

import uuid
from collections.abc import Sequence
from typing import Any

from sqlalchemy import ColumnElement
from sqlalchemy.sql import Select

from outbound.metrics import observe_org_scope_violation
from outbound.platform.security.errors import OrgScopeError


OrgScope = Sequence[uuid.UUID]


def has_org_scope(scope: OrgScope) -> bool:
    return len(scope) > 0


def build_org_filter(model: Any, scope: OrgScope) -> tuple[ColumnElement[bool], ...]:
    """Criteria restricting ``model`` rows to the caller's organizations.

    Empty for an unscoped caller, so the result can always be splatted into ``.where()``.
    """

    if not scope:
        return ()
    return (model.organization_id.in_(list(scope)),)


def apply_org_scope(query: Select[Any], scope: OrgScope) -> Select[Any]:
    if not scope:
        return query

    for description in query.column_descriptions:
        model = description.get("entity")
        if model is None or not hasattr(model, "organization_id"):
            continue
        query = query.where(*build_org_filter(model, scope))
    return query


def auto_assign_org_id(scope: OrgScope) -> uuid.UUID | None:
    if not scope:
        return None
    return scope[0]


def resolve_create_org_id(explicit: uuid.UUID | None, scope: OrgScope) -> uuid.UUID | None:
    """Organization a new record is filed under: the requested one, else the first in scope."""

    if explicit is None:
        return auto_assign_org_id(scope)
    if scope and explicit not in scope:
        observe_org_scope_violation()
        raise OrgScopeError(
            "Organization is outside your assigned scope",
            details={"organizationId": str(explicit)},
        )
    return explicit
