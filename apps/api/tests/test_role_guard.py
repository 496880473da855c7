from __future__ import annotations

import pytest

from outbound.platform.security.context import TeamRole
from outbound.platform.security.errors import CapabilityDeniedError
from outbound.platform.security.guard import CAPABILITY_RULES, Capability, CapabilityRule, RoleGuard, role_guard


def test_every_capability_has_a_rule() -> None:
    assert set(CAPABILITY_RULES) == set(Capability)


def test_guard_rejects_incomplete_rule_table() -> None:
    with pytest.raises(ValueError):
        RoleGuard({Capability.CREATE_ITEM: CapabilityRule(TeamRole.EDITOR, "create items")})


def test_owner_is_always_allowed() -> None:
    for capability in Capability:
        assert role_guard.check(None, capability).allowed


def test_admin_is_allowed_everything() -> None:
    for capability in Capability:
        assert role_guard.check(TeamRole.ADMIN, capability).allowed


def test_editor_can_create_but_not_delete() -> None:
    assert role_guard.check(TeamRole.EDITOR, Capability.CREATE_COHORT).allowed
    assert role_guard.check(TeamRole.EDITOR, Capability.IMPORT_COHORT_MEMBERS).allowed
    assert not role_guard.check(TeamRole.EDITOR, Capability.DELETE_COHORT).allowed
    assert not role_guard.check(TeamRole.EDITOR, Capability.INVITE_TEAM_USER).allowed


def test_viewer_cannot_mutate() -> None:
    for capability in Capability:
        assert not role_guard.check(TeamRole.VIEWER, capability).allowed


def test_denial_message_names_role_and_action() -> None:
    decision = role_guard.check(TeamRole.VIEWER, Capability.CREATE_COHORT)

    assert decision.required_role == TeamRole.EDITOR
    assert decision.message == "VIEWER role does not have permission to create cohorts (requires EDITOR role)"


def test_enforce_raises_capability_denied() -> None:
    with pytest.raises(CapabilityDeniedError) as excinfo:
        role_guard.enforce(TeamRole.EDITOR, Capability.REMOVE_TEAM_USER)

    error = excinfo.value
    assert error.status_code == 403
    assert error.code == "CAPABILITY_DENIED"
    assert error.details == {"capability": "remove_team_user", "teamRole": "EDITOR", "requiredRole": "ADMIN"}


def test_team_role_parse() -> None:
    assert TeamRole.parse("editor") == TeamRole.EDITOR
    assert TeamRole.parse(" ADMIN ") == TeamRole.ADMIN
    assert TeamRole.parse("OWNER") is None
    assert TeamRole.parse(None) is None
