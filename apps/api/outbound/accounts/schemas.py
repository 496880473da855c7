from __future__ import annotations

from datetime import datetime
from typing import Literal
from uuid import UUID

from outbound.core.schemas import ApiModel


class AccountStatusUpdate(ApiModel):
    status: Literal["active", "suspended"]


class UserRead(ApiModel):
    id: UUID
    email: str
    name: str | None
    role: str
    status: str
    created_at: datetime
