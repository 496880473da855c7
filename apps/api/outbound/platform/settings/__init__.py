from outbound.platform.settings.cache import (
    CURRENCY_SYMBOLS,
    SettingsCache,
    SettingsSnapshot,
    currency_symbol,
    get_settings_cache,
    make_settings_loader,
    settings_cache,
)

__all__ = [
    "CURRENCY_SYMBOLS",
    "SettingsCache",
    "SettingsSnapshot",
    "currency_symbol",
    "get_settings_cache",
    "make_settings_loader",
    "settings_cache",
]
