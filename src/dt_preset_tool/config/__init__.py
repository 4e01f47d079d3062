"""Tool settings and default locations."""
from .settings import (
    StoreSettings,
    SettingsError,
    load_settings,
    DEFAULT_DB_PATH,
)

__all__ = ["StoreSettings", "SettingsError", "load_settings", "DEFAULT_DB_PATH"]
