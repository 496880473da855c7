from __future__ import annotations

import uuid

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from outbound.accounts.schemas import AccountStatusUpdate, UserRead
from outbound.accounts.service import account_service
from outbound.core.database import get_db
from outbound.core.rbac import require_platform_permission
from outbound.platform.security.context import Principal


admin_users_router = APIRouter(prefix="/api/admin/users", tags=["admin.users"])


@admin_users_router.patch("/{user_id}/status", response_model=UserRead)
def update_account_status(
    user_id: uuid.UUID,
    dto: AccountStatusUpdate,
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_platform_permission("manage_users")),
) -> UserRead:
    return account_service.set_status(db, actor_user_id=principal.user_id, user_id=user_id, dto=dto)
