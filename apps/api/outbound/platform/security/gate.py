from __future__ import annotations

import logging
import time
import uuid
from collections.abc import Callable

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from outbound.accounts.models import ACCOUNT_STATUS_SUSPENDED, User
from outbound.metrics import observe_auth_gate_degraded, observe_auth_gate_rejection
from outbound.platform.security.context import Principal
from outbound.platform.security.errors import (
    AccessDeniedError,
    AccountSuspendedError,
    MaintenanceModeError,
    SessionExpiredError,
    UnauthenticatedError,
)
from outbound.platform.security.tokens import TokenVerifier
from outbound.platform.settings.cache import SettingsCache, SettingsSnapshot


logger = logging.getLogger("outbound.security")

AccountStatusLookup = Callable[[uuid.UUID], str | None]


def make_account_status_lookup(session: Session) -> AccountStatusLookup:
    def lookup(user_id: uuid.UUID) -> str | None:
        try:
            return session.scalar(select(User.status).where(User.id == user_id))
        except SQLAlchemyError:
            session.rollback()
            raise

    return lookup


def extract_bearer_token(authorization: str | None) -> str | None:
    if not authorization or not authorization.startswith("Bearer "):
        return None
    token = authorization[len("Bearer "):].strip()
    return token or None


class AuthGate:
    """Authenticates a request and applies the platform-wide access checks.

    Checks run in order and stop at the first failure: bearer credential, token
    verification, platform admin bypass, session freshness, account suspension,
    maintenance mode. Lookup failures in the later checks are logged and the
    check is skipped.
    """

    def __init__(
        self,
        verifier: TokenVerifier,
        settings_cache: SettingsCache,
        status_lookup: AccountStatusLookup,
        *,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._verifier = verifier
        self._settings_cache = settings_cache
        self._status_lookup = status_lookup
        self._clock = clock

    def authenticate(self, authorization: str | None) -> Principal:
        try:
            return self._authenticate(authorization)
        except AccessDeniedError as exc:
            observe_auth_gate_rejection(exc.code)
            raise

    def _authenticate(self, authorization: str | None) -> Principal:
        token = extract_bearer_token(authorization)
        if token is None:
            raise UnauthenticatedError("Access token required")

        claims = self._verifier.verify(token)
        if claims is None:
            raise UnauthenticatedError("Invalid or expired token")

        principal = Principal(
            user_id=claims.user_id,
            role=claims.role,
            issued_at=claims.issued_at,
            email=claims.email,
        )
        if principal.is_platform_admin:
            return principal

        snapshot = self._load_settings(principal)
        if snapshot is not None:
            self._check_session(principal, snapshot)
        self._check_suspension(principal)
        if snapshot is not None and snapshot.maintenance_mode:
            logger.info("auth.maintenance_blocked", extra={"user_id": str(principal.user_id), "role": principal.role})
            raise MaintenanceModeError("Platform is under maintenance. Please try again later.")
        return principal

    def _load_settings(self, principal: Principal) -> SettingsSnapshot | None:
        try:
            return self._settings_cache.get()
        except Exception as exc:
            observe_auth_gate_degraded("settings")
            logger.warning(
                "auth.settings_unavailable",
                exc_info=True,
                extra={"user_id": str(principal.user_id), "error": str(exc)},
            )
            return None

    def _check_session(self, principal: Principal, snapshot: SettingsSnapshot) -> None:
        timeout_minutes = snapshot.session_timeout_minutes
        if not timeout_minutes or principal.issued_at is None:
            return
        age_seconds = self._clock() - principal.issued_at
        if age_seconds > timeout_minutes * 60:
            raise SessionExpiredError("Session expired. Please log in again.")

    def _check_suspension(self, principal: Principal) -> None:
        try:
            status = self._status_lookup(principal.user_id)
        except Exception as exc:
            observe_auth_gate_degraded("suspension")
            logger.warning(
                "auth.status_lookup_failed",
                exc_info=True,
                extra={"user_id": str(principal.user_id), "error": str(exc)},
            )
            return
        if status == ACCOUNT_STATUS_SUSPENDED:
            raise AccountSuspendedError("Your account has been suspended. Please contact support.")
