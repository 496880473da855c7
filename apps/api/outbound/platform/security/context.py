from __future__ import annotations

import uuid
from dataclasses import dataclass
from enum import IntEnum, StrEnum


class PlatformRole(StrEnum):
    ADMIN = "ADMIN"
    CUSTOMER_SUPPORT = "CUSTOMER_SUPPORT"
    INDIVIDUAL = "INDIVIDUAL"
    ORG_SMALL = "ORG_SMALL"
    ORG_MEDIUM = "ORG_MEDIUM"
    ORG_ENTERPRISE = "ORG_ENTERPRISE"


ORGANIZATION_PLAN_ROLES = frozenset({PlatformRole.ORG_SMALL, PlatformRole.ORG_MEDIUM, PlatformRole.ORG_ENTERPRISE})


class TeamRole(IntEnum):
    """Role a team member holds on the owner's account. Higher values include lower ones."""

    VIEWER = 1
    EDITOR = 2
    ADMIN = 3

    @classmethod
    def parse(cls, value: str | None) -> TeamRole | None:
        if not value:
            return None
        try:
            return cls[value.strip().upper()]
        except KeyError:
            return None


@dataclass(frozen=True, slots=True)
class Principal:
    """Authenticated caller as asserted by the access token."""

    user_id: uuid.UUID
    role: str
    issued_at: int | None = None
    email: str | None = None

    @property
    def is_platform_admin(self) -> bool:
        return self.role == PlatformRole.ADMIN


@dataclass(frozen=True, slots=True)
class EffectiveIdentity:
    """Account whose resources the caller acts on, plus the caller's team role and organization scope."""

    effective_user_id: uuid.UUID
    team_role: TeamRole | None = None
    team_member_id: uuid.UUID | None = None
    org_scope: tuple[uuid.UUID, ...] = ()
    org_names: tuple[str, ...] = ()

    @property
    def is_team_member(self) -> bool:
        return self.team_role is not None

    @property
    def has_org_scope(self) -> bool:
        return len(self.org_scope) > 0


@dataclass(frozen=True, slots=True)
class RequestContext:
    principal: Principal
    identity: EffectiveIdentity
    correlation_id: str | None = None

    @property
    def user_id(self) -> uuid.UUID:
        return self.principal.user_id

    @property
    def effective_user_id(self) -> uuid.UUID:
        return self.identity.effective_user_id

    @property
    def team_role(self) -> TeamRole | None:
        return self.identity.team_role

    @property
    def org_scope(self) -> tuple[uuid.UUID, ...]:
        return self.identity.org_scope

    @property
    def is_team_member(self) -> bool:
        return self.identity.is_team_member
