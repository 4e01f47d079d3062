"""Tool settings loaded from an optional YAML file.

Example ``dt-presets.yaml``:

```yaml
db_path: ~/Backups/draw-things/config.sqlite3
log_dir: ~/.dt-presets
```

The ``DT_PRESETS_DB_PATH`` environment variable overrides ``db_path``.
"""
import logging
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, ValidationError, field_validator

logger = logging.getLogger(__name__)

DB_PATH_ENV = "DT_PRESETS_DB_PATH"

# Location used by the Draw Things sandboxed app on macOS
DEFAULT_DB_PATH = (
    Path.home()
    / "Library"
    / "Containers"
    / "com.liuliu.draw-things"
    / "Data"
    / "Library"
    / "Application Support"
    / "config.sqlite3"
)
DEFAULT_LOG_DIR = Path.home() / ".dt-presets"


class SettingsError(Exception):
    """Settings file exists but cannot be used."""


class StoreSettings(BaseModel):
    """Resolved settings for the preset store."""
    db_path: Path = DEFAULT_DB_PATH
    log_dir: Path = DEFAULT_LOG_DIR

    @field_validator("db_path", "log_dir")
    @classmethod
    def _expand_user(cls, value: Path) -> Path:
        return value.expanduser()


def find_settings_file() -> Optional[Path]:
    """Find the settings file, if any."""
    search_paths = [
        Path.cwd() / "dt-presets.yaml",
        Path.home() / ".config" / "dt-presets" / "settings.yaml",
    ]

    for path in search_paths:
        if path.exists():
            return path
    return None


def load_settings(path: Optional[Path] = None) -> StoreSettings:
    """
    Load settings from YAML, falling back to defaults.

    Args:
        path: Explicit settings file (default: search standard locations)

    Raises:
        SettingsError: If the file is not valid YAML or has invalid values
    """
    path = Path(path) if path else find_settings_file()
    data: dict = {}

    if path is not None:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise SettingsError(f"Failed to read settings {path}: {e}") from e

        if not isinstance(data, dict):
            raise SettingsError(f"Settings file {path} must contain a mapping")
        logger.debug(f"Loaded settings from {path}")

    env_db_path = os.environ.get(DB_PATH_ENV)
    if env_db_path:
        data["db_path"] = env_db_path

    try:
        return StoreSettings.model_validate(data)
    except ValidationError as e:
        raise SettingsError(f"Invalid settings: {e}") from e
