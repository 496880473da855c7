from __future__ import annotations

from typing import Any


class AccessDeniedError(Exception):
    """Base error for requests rejected by authentication or authorization checks."""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str, *, details: Any = None) -> None:
        self.message = message
        self.details = details
        super().__init__(message)


class UnauthenticatedError(AccessDeniedError):
    status_code = 401
    code = "UNAUTHENTICATED"


class SessionExpiredError(AccessDeniedError):
    status_code = 401
    code = "SESSION_EXPIRED"


class AccountSuspendedError(AccessDeniedError):
    status_code = 403
    code = "ACCOUNT_SUSPENDED"


class MaintenanceModeError(AccessDeniedError):
    status_code = 503
    code = "MAINTENANCE_MODE"


class PlatformPermissionError(AccessDeniedError):
    status_code = 403
    code = "FORBIDDEN"


class CapabilityDeniedError(AccessDeniedError):
    """Raised when a team member's role is below the minimum required for a capability."""

    status_code = 403
    code = "CAPABILITY_DENIED"

    def __init__(self, message: str, *, capability: str, team_role: str, required_role: str) -> None:
        self.capability = capability
        self.team_role = team_role
        self.required_role = required_role
        super().__init__(
            message,
            details={"capability": capability, "teamRole": team_role, "requiredRole": required_role},
        )


class OrgScopeError(AccessDeniedError):
    status_code = 403
    code = "ORG_SCOPE_VIOLATION"
