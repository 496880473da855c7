from __future__ import annotations

from datetime import datetime, timezone

from sqlalchemy import Boolean, DateTime, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from outbound.core.database import Base


DEFAULT_SETTINGS_ID = "default"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class PlatformSetting(Base):
    __tablename__ = "platform_settings"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=DEFAULT_SETTINGS_ID)
    platform_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    support_email: Mapped[str | None] = mapped_column(String(255), nullable=True)
    currency: Mapped[str | None] = mapped_column(String(8), nullable=True)
    maintenance_mode: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    allow_registrations: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    require_email_verification: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    default_user_role: Mapped[str | None] = mapped_column(String(32), nullable=True)
    notify_new_customer: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    notify_revenue_milestone: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    notify_system_alerts: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    notify_weekly_reports: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    webhook_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    two_factor_required: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    login_attempt_limit: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    session_timeout_minutes: Mapped[int | None] = mapped_column(Integer, nullable=True)
    auto_backups: Mapped[bool | None] = mapped_column(Boolean, nullable=True)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow)
