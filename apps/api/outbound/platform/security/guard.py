from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from enum import StrEnum

from outbound.metrics import observe_role_guard_denial
from outbound.platform.security.context import TeamRole
from outbound.platform.security.errors import CapabilityDeniedError


logger = logging.getLogger("outbound.security")


class Capability(StrEnum):
    CREATE_ITEM = "create_item"
    UPDATE_ITEM = "update_item"
    DELETE_ITEM = "delete_item"
    CREATE_CAMPAIGN = "create_campaign"
    UPDATE_CAMPAIGN = "update_campaign"
    DELETE_CAMPAIGN = "delete_campaign"
    ASSIGN_CAMPAIGN_ITEM = "assign_campaign_item"
    CREATE_COHORT = "create_cohort"
    UPDATE_COHORT = "update_cohort"
    DELETE_COHORT = "delete_cohort"
    ADD_COHORT_MEMBER = "add_cohort_member"
    IMPORT_COHORT_MEMBERS = "import_cohort_members"
    REMOVE_COHORT_MEMBER = "remove_cohort_member"
    ASSIGN_COHORT_STREAMS = "assign_cohort_streams"
    REMOVE_COHORT_STREAM = "remove_cohort_stream"
    CREATE_ORGANIZATION = "create_organization"
    UPDATE_ORGANIZATION = "update_organization"
    DELETE_ORGANIZATION = "delete_organization"
    ASSIGN_ORGANIZATION_CONTENT = "assign_organization_content"
    REMOVE_ORGANIZATION_CONTENT = "remove_organization_content"
    ASSIGN_ORGANIZATION_MEMBERS = "assign_organization_members"
    REMOVE_ORGANIZATION_MEMBERS = "remove_organization_members"
    INVITE_TEAM_USER = "invite_team_user"
    CHANGE_TEAM_ROLE = "change_team_role"
    REMOVE_TEAM_USER = "remove_team_user"


@dataclass(frozen=True, slots=True)
class CapabilityRule:
    minimum_role: TeamRole
    phrase: str


CAPABILITY_RULES: dict[Capability, CapabilityRule] = {
    Capability.CREATE_ITEM: CapabilityRule(TeamRole.EDITOR, "create items"),
    Capability.UPDATE_ITEM: CapabilityRule(TeamRole.EDITOR, "edit items"),
    Capability.DELETE_ITEM: CapabilityRule(TeamRole.ADMIN, "delete items"),
    Capability.CREATE_CAMPAIGN: CapabilityRule(TeamRole.EDITOR, "create campaigns"),
    Capability.UPDATE_CAMPAIGN: CapabilityRule(TeamRole.EDITOR, "edit campaigns"),
    Capability.DELETE_CAMPAIGN: CapabilityRule(TeamRole.ADMIN, "delete campaigns"),
    Capability.ASSIGN_CAMPAIGN_ITEM: CapabilityRule(TeamRole.EDITOR, "assign items to campaigns"),
    Capability.CREATE_COHORT: CapabilityRule(TeamRole.EDITOR, "create cohorts"),
    Capability.UPDATE_COHORT: CapabilityRule(TeamRole.EDITOR, "edit cohorts"),
    Capability.DELETE_COHORT: CapabilityRule(TeamRole.ADMIN, "delete cohorts"),
    Capability.ADD_COHORT_MEMBER: CapabilityRule(TeamRole.EDITOR, "add cohort members"),
    Capability.IMPORT_COHORT_MEMBERS: CapabilityRule(TeamRole.EDITOR, "import cohort members"),
    Capability.REMOVE_COHORT_MEMBER: CapabilityRule(TeamRole.ADMIN, "remove cohort members"),
    Capability.ASSIGN_COHORT_STREAMS: CapabilityRule(TeamRole.EDITOR, "assign streams to cohorts"),
    Capability.REMOVE_COHORT_STREAM: CapabilityRule(TeamRole.ADMIN, "remove streams from cohorts"),
    Capability.CREATE_ORGANIZATION: CapabilityRule(TeamRole.ADMIN, "create organizations"),
    Capability.UPDATE_ORGANIZATION: CapabilityRule(TeamRole.ADMIN, "edit organizations"),
    Capability.DELETE_ORGANIZATION: CapabilityRule(TeamRole.ADMIN, "delete organizations"),
    Capability.ASSIGN_ORGANIZATION_CONTENT: CapabilityRule(TeamRole.EDITOR, "assign content to organizations"),
    Capability.REMOVE_ORGANIZATION_CONTENT: CapabilityRule(TeamRole.ADMIN, "remove content from organizations"),
    Capability.ASSIGN_ORGANIZATION_MEMBERS: CapabilityRule(TeamRole.ADMIN, "assign organization members"),
    Capability.REMOVE_ORGANIZATION_MEMBERS: CapabilityRule(TeamRole.ADMIN, "remove organization members"),
    Capability.INVITE_TEAM_USER: CapabilityRule(TeamRole.ADMIN, "invite team members"),
    Capability.CHANGE_TEAM_ROLE: CapabilityRule(TeamRole.ADMIN, "change team roles"),
    Capability.REMOVE_TEAM_USER: CapabilityRule(TeamRole.ADMIN, "remove team members"),
}


@dataclass(frozen=True, slots=True)
class GuardDecision:
    allowed: bool
    capability: Capability
    team_role: TeamRole | None
    required_role: TeamRole
    message: str | None = None


class RoleGuard:
    """Maps each mutating capability to the minimum team role allowed to use it.

    Account owners (no team role) are always allowed.
    """

    def __init__(self, rules: Mapping[Capability, CapabilityRule] = CAPABILITY_RULES) -> None:
        missing = [capability.value for capability in Capability if capability not in rules]
        if missing:
            raise ValueError(f"Capabilities without a rule: {', '.join(missing)}")
        self._rules = dict(rules)

    def required_role(self, capability: Capability) -> TeamRole:
        return self._rules[capability].minimum_role

    def check(self, team_role: TeamRole | None, capability: Capability) -> GuardDecision:
        rule = self._rules[capability]
        if team_role is None or team_role >= rule.minimum_role:
            return GuardDecision(
                allowed=True,
                capability=capability,
                team_role=team_role,
                required_role=rule.minimum_role,
            )
        return GuardDecision(
            allowed=False,
            capability=capability,
            team_role=team_role,
            required_role=rule.minimum_role,
            message=f"{team_role.name} role does not have permission to {rule.phrase} (requires {rule.minimum_role.name} role)",
        )

    def enforce(self, team_role: TeamRole | None, capability: Capability) -> None:
        decision = self.check(team_role, capability)
        if decision.allowed:
            return

        role_name = team_role.name if team_role is not None else "OWNER"
        observe_role_guard_denial(capability=capability.value, team_role=role_name)
        logger.info(
            "guard.denied",
            extra={"capability": capability.value, "team_role": role_name},
        )
        raise CapabilityDeniedError(
            decision.message or "Permission denied",
            capability=capability.value,
            team_role=role_name,
            required_role=decision.required_role.name,
        )


role_guard = RoleGuard()
