from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Any

from pydantic import ConfigDict
from sqlalchemy import select
from sqlalchemy.orm import Session

from outbound.core.config import get_settings
from outbound.core.database import SessionLocal
from outbound.core.schemas import ApiModel
from outbound.metrics import (
    observe_settings_cache_fallback,
    observe_settings_cache_hit,
    observe_settings_cache_miss,
)
from outbound.platform.settings.models import DEFAULT_SETTINGS_ID, PlatformSetting


logger = logging.getLogger("outbound.settings")

CURRENCY_SYMBOLS: dict[str, str] = {
    "AUD": "A$",
    "USD": "$",
    "EUR": "€",
    "GBP": "£",
    "PKR": "₨",
    "CAD": "C$",
    "NZD": "NZ$",
}
DEFAULT_CURRENCY_SYMBOL = "$"


def currency_symbol(code: str | None) -> str:
    if not code:
        return DEFAULT_CURRENCY_SYMBOL
    return CURRENCY_SYMBOLS.get(code.upper(), DEFAULT_CURRENCY_SYMBOL)


class SettingsSnapshot(ApiModel):
    """Immutable view of the platform settings row merged over the defaults."""

    model_config = ConfigDict(frozen=True)

    platform_name: str = "Outbound Impact"
    support_email: str = "support@outboundimpact.org"
    currency: str = "AUD"
    maintenance_mode: bool = False
    allow_registrations: bool = True
    require_email_verification: bool = False
    default_user_role: str = "INDIVIDUAL"
    notify_new_customer: bool = True
    notify_revenue_milestone: bool = True
    notify_system_alerts: bool = True
    notify_weekly_reports: bool = False
    webhook_url: str = ""
    two_factor_required: bool = False
    login_attempt_limit: bool = True
    session_timeout_minutes: int = 30
    auto_backups: bool = True


SETTINGS_FIELDS = tuple(SettingsSnapshot.model_fields)

SettingsLoader = Callable[[], dict[str, Any] | None]


def snapshot_from_row(row: dict[str, Any] | None) -> SettingsSnapshot:
    if not row:
        return SettingsSnapshot()
    values = {key: value for key, value in row.items() if key in SETTINGS_FIELDS and value is not None}
    return SettingsSnapshot.model_validate(values)


def read_settings_row(session: Session) -> dict[str, Any] | None:
    record = session.scalar(select(PlatformSetting).where(PlatformSetting.id == DEFAULT_SETTINGS_ID))
    if record is None:
        return None
    return {key: getattr(record, key) for key in SETTINGS_FIELDS}


def make_settings_loader(session_factory: Callable[[], Session]) -> SettingsLoader:
    def load() -> dict[str, Any] | None:
        session = session_factory()
        try:
            return read_settings_row(session)
        finally:
            session.close()

    return load


class SettingsCache:
    """Process-wide cache of the platform settings row.

    Reads within ``ttl_seconds`` of the last fetch are served from memory. A failed
    fetch caches and returns the defaults for a full TTL so a broken store is not
    hammered on every request. ``invalidate`` forces the next ``get`` to re-fetch.
    """

    def __init__(
        self,
        loader: SettingsLoader,
        *,
        ttl_seconds: float = 30.0,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self._loader = loader
        self._ttl_seconds = ttl_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._snapshot: SettingsSnapshot | None = None
        self._fetched_at = 0.0
        self._generation = 0

    def get(self) -> SettingsSnapshot:
        with self._lock:
            snapshot = self._snapshot
            if snapshot is not None and self._clock() - self._fetched_at < self._ttl_seconds:
                observe_settings_cache_hit()
                return snapshot
            generation = self._generation

        observe_settings_cache_miss()
        snapshot = self._fetch()
        with self._lock:
            # not stored when invalidate() ran during the fetch
            if self._generation == generation:
                self._snapshot = snapshot
                self._fetched_at = self._clock()
        return snapshot

    def invalidate(self) -> None:
        with self._lock:
            self._generation += 1
            self._snapshot = None
            self._fetched_at = 0.0

    def _fetch(self) -> SettingsSnapshot:
        try:
            return snapshot_from_row(self._loader())
        except Exception as exc:
            observe_settings_cache_fallback()
            logger.warning("settings.load_failed", exc_info=True, extra={"error": str(exc)})
            return SettingsSnapshot()


settings_cache = SettingsCache(
    make_settings_loader(SessionLocal),
    ttl_seconds=get_settings().settings_cache_ttl_seconds,
)


def get_settings_cache() -> SettingsCache:
    return settings_cache
