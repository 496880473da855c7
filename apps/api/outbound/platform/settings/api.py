from __future__ import annotations

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from outbound.core.database import get_db
from outbound.core.rbac import require_platform_permission
from outbound.platform.security.context import Principal
from outbound.platform.settings.cache import SettingsCache, SettingsSnapshot, get_settings_cache
from outbound.platform.settings.schemas import PublicSettingsRead, SettingsUpdate
from outbound.platform.settings.service import settings_service


admin_router = APIRouter(prefix="/api/admin/settings", tags=["admin.settings"])
public_router = APIRouter(prefix="/api/settings", tags=["settings"])


@admin_router.get("", response_model=SettingsSnapshot)
def get_platform_settings(
    db: Session = Depends(get_db),
    principal: Principal = Depends(require_platform_permission("manage_settings")),
) -> SettingsSnapshot:
    return settings_service.get_settings(db)


@admin_router.put("", response_model=SettingsSnapshot)
def update_platform_settings(
    dto: SettingsUpdate,
    db: Session = Depends(get_db),
    cache: SettingsCache = Depends(get_settings_cache),
    principal: Principal = Depends(require_platform_permission("manage_settings")),
) -> SettingsSnapshot:
    return settings_service.update_settings(db, cache, actor_user_id=principal.user_id, dto=dto)


@public_router.get("/public", response_model=PublicSettingsRead)
def get_public_settings(cache: SettingsCache = Depends(get_settings_cache)) -> PublicSettingsRead:
    return settings_service.public_settings(cache)
