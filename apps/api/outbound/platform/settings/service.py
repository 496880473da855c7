from __future__ import annotations

import logging
import uuid

from sqlalchemy.orm import Session

from outbound.platform.settings.cache import (
    CURRENCY_SYMBOLS,
    SettingsCache,
    SettingsSnapshot,
    currency_symbol,
    read_settings_row,
    snapshot_from_row,
)
from outbound.platform.settings.models import DEFAULT_SETTINGS_ID, PlatformSetting
from outbound.platform.settings.schemas import CurrencyRead, PublicSettingsRead, SettingsUpdate


logger = logging.getLogger("outbound.settings")


class PlatformSettingsService:
    def get_settings(self, session: Session) -> SettingsSnapshot:
        return snapshot_from_row(read_settings_row(session))

    def update_settings(
        self,
        session: Session,
        cache: SettingsCache,
        *,
        actor_user_id: uuid.UUID,
        dto: SettingsUpdate,
    ) -> SettingsSnapshot:
        values = dto.model_dump(exclude_unset=True, exclude_none=True)
        record = session.get(PlatformSetting, DEFAULT_SETTINGS_ID)
        if record is None:
            record = PlatformSetting(id=DEFAULT_SETTINGS_ID)
            session.add(record)
        for key, value in values.items():
            setattr(record, key, value)
        session.commit()
        cache.invalidate()

        logger.info(
            "settings.updated",
            extra={"user_id": str(actor_user_id), "updated_fields": sorted(values)},
        )
        return self.get_settings(session)

    def public_settings(self, cache: SettingsCache) -> PublicSettingsRead:
        snapshot = cache.get()
        return PublicSettingsRead(
            platform_name=snapshot.platform_name,
            currency=snapshot.currency,
            currency_symbol=currency_symbol(snapshot.currency),
            support_email=snapshot.support_email,
            currencies=[CurrencyRead(code=code, symbol=symbol) for code, symbol in CURRENCY_SYMBOLS.items()],
        )


settings_service = PlatformSettingsService()
