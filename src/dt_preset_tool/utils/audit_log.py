"""Audit logging for preset store changes.

Every configuration inserted, deleted or exported produces one JSON line
in a dedicated audit log, separate from the diagnostic log. Users are told
to back up their database before using the tool; the audit log records
what the tool actually changed.
"""
import json
import logging
import os
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:
    from ..config_store.models import Configuration

# Create dedicated audit logger
audit_logger = logging.getLogger("dt_preset_tool.audit")

DEFAULT_AUDIT_DIR = Path.home() / ".dt-presets"


def setup_audit_logging(log_dir: Optional[Path] = None) -> Path:
    """Configure audit logging to file.

    Args:
        log_dir: Directory for audit logs. Defaults to ~/.dt-presets/

    Returns:
        Path of the audit log file
    """
    log_dir = Path(log_dir) if log_dir else DEFAULT_AUDIT_DIR
    log_dir.mkdir(parents=True, exist_ok=True)
    audit_file = log_dir / "audit.log"

    audit_logger.setLevel(logging.INFO)

    for handler in list(audit_logger.handlers):
        audit_logger.removeHandler(handler)
        handler.close()

    handler = RotatingFileHandler(
        audit_file,
        maxBytes=10 * 1024 * 1024,  # 10MB
        backupCount=10,
        encoding="utf-8",
    )

    # Use JSON format for machine-readability
    handler.setFormatter(logging.Formatter("%(message)s"))
    audit_logger.addHandler(handler)

    # Don't propagate to root logger
    audit_logger.propagate = False
    return audit_file


@dataclass
class ChangeRecord:
    """Record of a change made to one configuration."""
    timestamp: str
    operation: str  # insert, delete, export
    config_id: str  # decimal string, same as the file pair metadata
    name: str
    db_path: str
    success: bool
    target: Optional[str] = None  # export directory
    error: Optional[str] = None

    def to_json(self) -> str:
        """Convert to JSON string."""
        return json.dumps(asdict(self), indent=None, ensure_ascii=False)

    @classmethod
    def from_json(cls, json_str: str) -> "ChangeRecord":
        """Parse from JSON string."""
        data = json.loads(json_str)
        return cls(**data)


def log_change(
    operation: str,
    config: "Configuration",
    db_path: Path,
    success: bool,
    error: Optional[str] = None,
    target: Optional[Path] = None,
) -> ChangeRecord:
    """Write a change record to the audit log and return it."""
    record = ChangeRecord(
        timestamp=datetime.now(timezone.utc).isoformat(),
        operation=operation,
        config_id=str(config.id),
        name=config.name,
        db_path=str(db_path),
        success=success,
        target=str(target) if target else None,
        error=error,
    )

    audit_logger.info(record.to_json())

    return record


def get_recent_changes(
    log_file: Optional[Path] = None,
    config_id: Optional[int] = None,
    operation: Optional[str] = None,
    limit: int = 100,
) -> list[ChangeRecord]:
    """Read recent changes from audit log.

    Args:
        log_file: Path to audit log. Defaults to ~/.dt-presets/audit.log
        config_id: Filter by configuration id
        operation: Filter by operation type
        limit: Maximum number of records to return

    Returns:
        List of ChangeRecords, most recent first
    """
    log_file = Path(log_file) if log_file else DEFAULT_AUDIT_DIR / "audit.log"

    if not os.path.exists(log_file):
        return []

    records = []
    with open(log_file, "r", encoding="utf-8") as f:
        for line in f:
            line = line.strip()
            if not line:
                continue
            try:
                record = ChangeRecord.from_json(line)
            except (json.JSONDecodeError, TypeError):
                continue  # Skip malformed lines

            if config_id is not None and record.config_id != str(config_id):
                continue
            if operation and record.operation != operation:
                continue

            records.append(record)

    # Return most recent first, limited
    return list(reversed(records[-limit:]))
