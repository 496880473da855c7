from outbound.platform.security.context import (
    EffectiveIdentity,
    PlatformRole,
    Principal,
    RequestContext,
    TeamRole,
)
from outbound.platform.security.errors import (
    AccessDeniedError,
    AccountSuspendedError,
    CapabilityDeniedError,
    MaintenanceModeError,
    OrgScopeError,
    PlatformPermissionError,
    SessionExpiredError,
    UnauthenticatedError,
)
from outbound.platform.security.scope import (
    apply_org_scope,
    auto_assign_org_id,
    build_org_filter,
    has_org_scope,
    resolve_create_org_id,
)
from outbound.platform.security.tokens import TokenClaims, TokenVerifier, create_access_token

__all__ = [
    "AccessDeniedError",
    "AccountSuspendedError",
    "CapabilityDeniedError",
    "EffectiveIdentity",
    "MaintenanceModeError",
    "OrgScopeError",
    "PlatformPermissionError",
    "PlatformRole",
    "Principal",
    "RequestContext",
    "SessionExpiredError",
    "TeamRole",
    "TokenClaims",
    "TokenVerifier",
    "UnauthenticatedError",
    "apply_org_scope",
    "auto_assign_org_id",
    "build_org_filter",
    "create_access_token",
    "has_org_scope",
    "resolve_create_org_id",
]
