"""Logging configuration for the DT preset tool.

Provides configurable logging with:
- File-based logging with rotation
- Console output
- Performance timing for store queries and batches

Environment Variables:
    DT_PRESETS_LOG_LEVEL: DEBUG, INFO, WARNING, ERROR (default: INFO)
    DT_PRESETS_LOG_FILE: Path to log file (default: ~/.dt-presets/dt-presets.log)
    DT_PRESETS_LOG_MAX_SIZE: Max log file size in MB (default: 10)
    DT_PRESETS_LOG_BACKUPS: Number of backup files to keep (default: 5)

Usage:
    from dt_preset_tool.utils.logging_config import setup_logging, timed

    setup_logging()  # Call once at startup

    @timed("list_all")
    def _fetch(self):
        ...

    with timed_section("export", count=3):
        ...
"""
import functools
import logging
import os
import time
from contextlib import contextmanager
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Callable, Any, Optional

# Performance logger - separate from main logger for easy filtering
perf_logger = logging.getLogger("dt_preset_tool.perf")
main_logger = logging.getLogger("dt_preset_tool")


def get_log_level() -> int:
    """Get log level from environment."""
    level_str = os.environ.get("DT_PRESETS_LOG_LEVEL", "INFO").upper()
    return getattr(logging, level_str, logging.INFO)


def get_log_file() -> Path:
    """Get log file path from environment."""
    default_path = Path.home() / ".dt-presets" / "dt-presets.log"
    path_str = os.environ.get("DT_PRESETS_LOG_FILE", str(default_path))
    return Path(path_str)


def setup_logging(log_file: Optional[Path] = None) -> None:
    """Configure logging for the application.

    Sets up:
    - Console handler (INFO+ by default, respects DT_PRESETS_LOG_LEVEL)
    - File handler with rotation (DEBUG level - captures everything)
    """
    log_level = get_log_level()
    log_file = Path(log_file) if log_file else get_log_file()
    max_size_mb = int(os.environ.get("DT_PRESETS_LOG_MAX_SIZE", "10"))
    backup_count = int(os.environ.get("DT_PRESETS_LOG_BACKUPS", "5"))

    log_file.parent.mkdir(parents=True, exist_ok=True)

    main_format = logging.Formatter(
        "%(asctime)s.%(msecs)03d | %(name)-35s | %(levelname)-7s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S"
    )

    console_handler = logging.StreamHandler()
    console_handler.setLevel(log_level)
    console_handler.setFormatter(main_format)

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=max_size_mb * 1024 * 1024,
        backupCount=backup_count,
        encoding="utf-8"
    )
    file_handler.setLevel(logging.DEBUG)
    file_handler.setFormatter(main_format)

    # Repeated setup must not stack handlers
    for handler in list(main_logger.handlers):
        if isinstance(handler, (logging.StreamHandler, RotatingFileHandler)):
            main_logger.removeHandler(handler)
            handler.close()

    main_logger.setLevel(logging.DEBUG)  # Capture all, handlers filter
    main_logger.addHandler(console_handler)
    main_logger.addHandler(file_handler)

    main_logger.info(f"Logging initialized: level={logging.getLevelName(log_level)}, file={log_file}")


def _format_timing(operation: str, target: str, elapsed: float, outcome: str, extra: dict) -> str:
    msg = f"{operation:15s} | {target:30s} | {elapsed:8.2f}ms | {outcome}"
    if extra:
        msg += " | " + " | ".join(f"{k}={v}" for k, v in extra.items())
    return msg


def timed(operation: str):
    """Decorator to log execution time of a store method.

    The target column is taken from ``self.db_path`` when the wrapped
    function is a method of an object that has one.

    Usage:
        @timed("insert")
        def _insert_all(self, configs):
            ...
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            target = getattr(args[0], "db_path", None) if args else None
            target = Path(target).name if target else "N/A"

            start = time.perf_counter()
            try:
                result = func(*args, **kwargs)
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.debug(_format_timing(operation, target, elapsed, "OK", {}))
                return result
            except Exception as e:
                elapsed = (time.perf_counter() - start) * 1000
                perf_logger.warning(_format_timing(operation, target, elapsed, f"FAIL: {e}", {}))
                raise

        return wrapper

    return decorator


@contextmanager
def timed_section(operation: str, target: Optional[str] = None, **extra):
    """Context manager for timing code sections.

    Usage:
        with timed_section("scan", target=str(directory)):
            ...
    """
    start = time.perf_counter()
    try:
        yield
        elapsed = (time.perf_counter() - start) * 1000
        perf_logger.debug(_format_timing(operation, target or "N/A", elapsed, "OK", extra))
    except Exception as e:
        elapsed = (time.perf_counter() - start) * 1000
        perf_logger.warning(_format_timing(operation, target or "N/A", elapsed, f"FAIL: {e}", extra))
        raise
