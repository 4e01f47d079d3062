"""Tests for logging setup and timing helpers."""
import logging
from logging.handlers import RotatingFileHandler

import pytest

from dt_preset_tool.utils.logging_config import (
    get_log_file,
    get_log_level,
    main_logger,
    setup_logging,
    timed,
    timed_section,
)


@pytest.fixture
def clean_main_logger():
    yield
    for handler in list(main_logger.handlers):
        main_logger.removeHandler(handler)
        handler.close()


class TestEnvironment:
    """Tests for environment-driven settings."""

    def test_default_level(self, monkeypatch):
        """Test the default log level."""
        monkeypatch.delenv("DT_PRESETS_LOG_LEVEL", raising=False)
        assert get_log_level() == logging.INFO

    def test_level_from_env(self, monkeypatch):
        """Test log level from DT_PRESETS_LOG_LEVEL."""
        monkeypatch.setenv("DT_PRESETS_LOG_LEVEL", "debug")
        assert get_log_level() == logging.DEBUG

    def test_unknown_level_falls_back(self, monkeypatch):
        """Test that an unknown level falls back to INFO."""
        monkeypatch.setenv("DT_PRESETS_LOG_LEVEL", "CHATTY")
        assert get_log_level() == logging.INFO

    def test_log_file_from_env(self, monkeypatch, tmp_path):
        """Test log file path from DT_PRESETS_LOG_FILE."""
        monkeypatch.setenv("DT_PRESETS_LOG_FILE", str(tmp_path / "x.log"))
        assert get_log_file() == tmp_path / "x.log"


class TestSetupLogging:
    """Tests for setup_logging()."""

    def test_creates_log_file(self, tmp_path, clean_main_logger):
        """Test that setup creates the log file."""
        log_file = tmp_path / "logs" / "dt.log"

        setup_logging(log_file)
        logging.getLogger("dt_preset_tool.config_store.store").info("hello")
        for handler in main_logger.handlers:
            handler.flush()

        assert "hello" in log_file.read_text(encoding="utf-8")

    def test_repeated_setup_does_not_stack_handlers(self, tmp_path, clean_main_logger):
        """Test that calling setup twice keeps one handler of each kind."""
        setup_logging(tmp_path / "a.log")
        setup_logging(tmp_path / "a.log")

        file_handlers = [h for h in main_logger.handlers if isinstance(h, RotatingFileHandler)]
        assert len(file_handlers) == 1


class TestTiming:
    """Tests for timed and timed_section."""

    def test_timed_logs_success(self, caplog):
        """Test timing a successful call."""
        class Store:
            db_path = "/tmp/config.sqlite3"

            @timed("list_all")
            def read(self):
                return 42

        with caplog.at_level(logging.DEBUG, logger="dt_preset_tool.perf"):
            assert Store().read() == 42

        assert any("list_all" in r.message and "config.sqlite3" in r.message and "OK" in r.message
                   for r in caplog.records)

    def test_timed_reraises(self, caplog):
        """Test that a failing call is logged and re-raised."""
        @timed("insert")
        def boom():
            raise RuntimeError("disk full")

        with caplog.at_level(logging.DEBUG, logger="dt_preset_tool.perf"):
            with pytest.raises(RuntimeError):
                boom()

        assert any("FAIL: disk full" in r.message for r in caplog.records)

    def test_timed_section_extra_fields(self, caplog):
        """Test extra fields in a timed section."""
        with caplog.at_level(logging.DEBUG, logger="dt_preset_tool.perf"):
            with timed_section("export", target="/exports", count=3):
                pass

        assert any("count=3" in r.message and "/exports" in r.message for r in caplog.records)
