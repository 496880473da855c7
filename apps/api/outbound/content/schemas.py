from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from pydantic import Field

from outbound.core.schemas import ApiModel


ItemType = Literal["IMAGE", "VIDEO", "AUDIO", "TEXT", "EMBED", "DOCUMENT"]
CohortStatus = Literal["active", "archived"]


class ItemCreate(ApiModel):
    title: str = Field(min_length=1, max_length=255)
    type: ItemType
    content: str | None = None
    media_url: str | None = None
    organization_id: UUID | None = None
    campaign_id: UUID | None = None


class ItemUpdate(ApiModel):
    title: str | None = Field(default=None, min_length=1, max_length=255)
    type: ItemType | None = None
    content: str | None = None
    media_url: str | None = None


class ItemRead(ApiModel):
    id: UUID
    user_id: UUID
    organization_id: UUID | None
    campaign_id: UUID | None
    title: str
    type: str
    content: str | None
    media_url: str | None
    slug: str
    created_at: datetime
    updated_at: datetime


class CampaignCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=64)
    logo_url: str | None = None
    organization_id: UUID | None = None


class CampaignUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    category: str | None = Field(default=None, max_length=64)
    logo_url: str | None = None


class CampaignRead(ApiModel):
    id: UUID
    user_id: UUID
    organization_id: UUID | None
    name: str
    slug: str
    description: str | None
    category: str | None
    logo_url: str | None
    created_at: datetime
    updated_at: datetime


class CampaignAssignRequest(ApiModel):
    item_id: UUID
    campaign_id: UUID | None = None


class PublicItemRead(ApiModel):
    id: UUID
    title: str
    type: str
    content: str | None
    media_url: str | None
    slug: str


class PublicCampaignRead(ApiModel):
    name: str
    slug: str
    description: str | None
    category: str | None
    logo_url: str | None
    items: list[PublicItemRead]


class CohortCreate(ApiModel):
    name: str = Field(min_length=1, max_length=255)
    description: str | None = None
    organization_id: UUID | None = None


class CohortUpdate(ApiModel):
    name: str | None = Field(default=None, min_length=1, max_length=255)
    description: str | None = None
    status: CohortStatus | None = None


class CohortRead(ApiModel):
    id: UUID
    user_id: UUID
    organization_id: UUID | None
    name: str
    slug: str
    description: str | None
    status: str
    member_count: int = 0
    created_at: datetime
    updated_at: datetime


class CohortMemberInput(ApiModel):
    name: str | None = Field(default=None, max_length=255)
    email: str | None = Field(default=None, max_length=255)


class CohortMembersAdd(ApiModel):
    members: list[CohortMemberInput] = Field(min_length=1)


class CohortMembersImport(ApiModel):
    csv_data: str = Field(min_length=1)


class CohortMemberRead(ApiModel):
    id: UUID
    cohort_id: UUID
    name: str | None
    email: str | None
    created_at: datetime


class CohortMembersResult(ApiModel):
    added: int
    skipped: int


class CohortStreamsAssign(ApiModel):
    campaign_ids: list[UUID]


class CohortStreamRead(ApiModel):
    id: UUID
    cohort_id: UUID
    campaign_id: UUID
    campaign_name: str
    campaign_slug: str
    created_at: datetime


class PublicCohortRead(ApiModel):
    name: str
    slug: str
    description: str | None
    streams: list[PublicCampaignRead]
