from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from outbound.core.schemas import ApiModel


TeamRoleName = Literal["VIEWER", "EDITOR", "ADMIN"]
ContentKind = Literal["items", "campaigns", "cohorts"]


class TeamInvite(ApiModel):
    email: str = Field(min_length=3, max_length=255)
    role: TeamRoleName = "VIEWER"


class TeamRoleUpdate(ApiModel):
    role: TeamRoleName


class TeamMemberRead(ApiModel):
    id: UUID
    user_id: UUID
    member_user_id: UUID | None
    email: str
    role: str
    status: str
    created_at: datetime


class OrganizationCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None


class OrganizationUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: Literal["active", "inactive"] | None = None


class OrganizationRead(ApiModel):
    id: UUID
    user_id: UUID
    name: str
    description: str | None
    status: str
    member_count: int = 0
    created_at: datetime
    updated_at: datetime


class OrganizationMembersAssign(ApiModel):
    team_member_ids: list[UUID] = Field(min_length=1)


class OrganizationMembersResult(ApiModel):
    assigned: int
    skipped: int


class OrganizationContentRequest(ApiModel):
    kind: ContentKind
    ids: list[UUID] = Field(min_length=1)


class OrganizationContentResult(ApiModel):
    updated: int
