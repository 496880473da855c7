from fastapi import APIRouter, Depends, HTTPException, status
from fastapi.responses import Response

from outbound.accounts.api import admin_users_router
from outbound.content.api import campaigns_router, cohorts_router, items_router
from outbound.core.config import get_settings
from outbound.core.context import get_request_context
from outbound.core.rbac import require_platform_permission
from outbound.metrics import generate_metrics_payload, metrics_content_type
from outbound.platform.audit.api import router as audit_router
from outbound.platform.security.context import Principal, RequestContext
from outbound.platform.security.permissions import platform_permission_flags
from outbound.platform.settings.api import admin_router as admin_settings_router
from outbound.platform.settings.api import public_router as public_settings_router
from outbound.team.api import organizations_router, team_router

router = APIRouter()
router.include_router(public_settings_router)
router.include_router(admin_settings_router)
router.include_router(admin_users_router)
router.include_router(items_router)
router.include_router(campaigns_router)
router.include_router(cohorts_router)
router.include_router(team_router)
router.include_router(organizations_router)
router.include_router(audit_router)


@router.get("/health", tags=["system"])
def health() -> dict[str, str]:
    settings = get_settings()
    return {
        "status": "ok",
        "service": settings.app_name,
        "environment": settings.app_env,
    }


@router.get("/api/me", tags=["auth"])
def me(ctx: RequestContext = Depends(get_request_context)) -> dict[str, object]:
    identity = ctx.identity
    return {
        "userId": str(ctx.user_id),
        "role": ctx.principal.role,
        "effectiveUserId": str(identity.effective_user_id),
        "isTeamMember": identity.is_team_member,
        "teamRole": identity.team_role.name if identity.team_role is not None else None,
        "teamMemberId": str(identity.team_member_id) if identity.team_member_id is not None else None,
        "orgScope": [str(org_id) for org_id in identity.org_scope],
        "orgNames": list(identity.org_names),
        "permissions": platform_permission_flags(ctx.principal.role),
    }


@router.get("/metrics", tags=["system"])
def metrics(principal: Principal = Depends(require_platform_permission("view_analytics"))) -> Response:
    settings = get_settings()
    if not settings.metrics_enabled:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="not found")
    return Response(content=generate_metrics_payload(), media_type=metrics_content_type())
