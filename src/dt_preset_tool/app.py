"""Application startup for front ends built on the preset store.

A front end calls ``create_store()`` once, then drives the returned store
and a ConfigSync from its own event loop:

    store = create_store()
    store.connect(on_complete=refresh_list)
    sync = ConfigSync(store)
"""
import logging
import os
from pathlib import Path
from typing import Optional

from .config.settings import load_settings
from .config_store import ConfigStore
from .utils.audit_log import setup_audit_logging
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)


def create_store(settings_path: Optional[Path] = None) -> ConfigStore:
    """
    Load settings, configure logging and auditing, and build a closed store.

    Args:
        settings_path: Explicit settings file (default: standard locations)

    Raises:
        SettingsError: If the settings file is invalid
    """
    settings = load_settings(settings_path)

    # DT_PRESETS_LOG_FILE wins over the settings directory
    log_file = None if os.environ.get("DT_PRESETS_LOG_FILE") else settings.log_dir / "dt-presets.log"
    setup_logging(log_file)
    audit_file = setup_audit_logging(settings.log_dir)

    logger.info(f"Preset store: {settings.db_path} (audit log: {audit_file})")
    return ConfigStore(settings.db_path)
