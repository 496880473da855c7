from __future__ import annotations

from pydantic import Field, field_validator

from outbound.core.schemas import ApiModel
from outbound.platform.settings.cache import CURRENCY_SYMBOLS


class SettingsUpdate(ApiModel):
    platform_name: str | None = Field(default=None, min_length=1, max_length=255)
    support_email: str | None = Field(default=None, min_length=3, max_length=255)
    currency: str | None = None
    maintenance_mode: bool | None = None
    allow_registrations: bool | None = None
    require_email_verification: bool | None = None
    default_user_role: str | None = None
    notify_new_customer: bool | None = None
    notify_revenue_milestone: bool | None = None
    notify_system_alerts: bool | None = None
    notify_weekly_reports: bool | None = None
    webhook_url: str | None = None
    two_factor_required: bool | None = None
    login_attempt_limit: bool | None = None
    session_timeout_minutes: int | None = Field(default=None, ge=0, le=1440)
    auto_backups: bool | None = None

    @field_validator("currency")
    @classmethod
    def _supported_currency(cls, value: str | None) -> str | None:
        if value is None:
            return value
        normalized = value.strip().upper()
        if normalized not in CURRENCY_SYMBOLS:
            raise ValueError(f"unsupported currency: {value}")
        return normalized


class CurrencyRead(ApiModel):
    code: str
    symbol: str


class PublicSettingsRead(ApiModel):
    platform_name: str
    currency: str
    currency_symbol: str
    support_email: str
    currencies: list[CurrencyRead]
