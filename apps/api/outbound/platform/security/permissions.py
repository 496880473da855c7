from __future__ import annotations

from outbound.platform.security.context import PlatformRole


ALL_PLATFORM_PERMISSIONS = (
    "view_dashboard",
    "manage_users",
    "manage_items",
    "manage_feedback",
    "manage_live_chat",
    "manage_team",
    "view_analytics",
    "manage_settings",
)

PLATFORM_ROLE_PERMISSIONS: dict[str, frozenset[str]] = {
    PlatformRole.ADMIN: frozenset(ALL_PLATFORM_PERMISSIONS),
    PlatformRole.CUSTOMER_SUPPORT: frozenset({"manage_live_chat"}),
}


def has_platform_permission(role: str, permission: str) -> bool:
    return permission in PLATFORM_ROLE_PERMISSIONS.get(role, frozenset())


def platform_permission_flags(role: str) -> dict[str, bool]:
    granted = PLATFORM_ROLE_PERMISSIONS.get(role, frozenset())
    return {permission: permission in granted for permission in ALL_PLATFORM_PERMISSIONS}
