from collections.abc import Callable

from fastapi import Depends

from outbound.core.auth import get_principal
from outbound.core.context import get_request_context
from outbound.platform.security.context import Principal, RequestContext
from outbound.platform.security.errors import PlatformPermissionError
from outbound.platform.security.guard import Capability, role_guard
from outbound.platform.security.permissions import has_platform_permission


def require_platform_permission(*permissions: str) -> Callable[..., Principal]:
    def checker(principal: Principal = Depends(get_principal)) -> Principal:
        missing_permissions = [
            permission for permission in permissions if not has_platform_permission(principal.role, permission)
        ]
        if missing_permissions:
            raise PlatformPermissionError(f"Missing permissions: {', '.join(missing_permissions)}")
        return principal

    return checker


def require_capability(capability: Capability) -> Callable[..., RequestContext]:
    def checker(ctx: RequestContext = Depends(get_request_context)) -> RequestContext:
        role_guard.enforce(ctx.team_role, capability)
        return ctx

    return checker
