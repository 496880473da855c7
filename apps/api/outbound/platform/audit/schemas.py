from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import Field

from outbound.core.schemas import ApiModel


class AuditLogRead(ApiModel):
    id: UUID
    user_id: UUID
    user_email: str | None = None
    action: str
    ip_address: str | None
    device: str | None
    metadata: dict[str, Any] = Field(default_factory=dict, validation_alias="event_metadata")
    created_at: datetime


class AuditLogPage(ApiModel):
    logs: list[AuditLogRead]
    total: int
    page: int
    limit: int
