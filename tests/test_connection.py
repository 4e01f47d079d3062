"""Tests for retry helpers."""
import sqlite3

import pytest

from dt_preset_tool.utils.connection import with_retry, RETRYABLE_EXCEPTIONS


class TestWithRetry:
    """Tests for retry decorator."""

    def test_success_no_retry(self):
        """Successful function doesn't retry."""
        call_count = 0

        @with_retry(max_attempts=3)
        def succeeding_func():
            nonlocal call_count
            call_count += 1
            return "success"

        assert succeeding_func() == "success"
        assert call_count == 1

    def test_retry_then_success(self):
        """Function retries on a locked database then succeeds."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.05)
        def locked_then_free():
            nonlocal call_count
            call_count += 1
            if call_count < 2:
                raise sqlite3.OperationalError("database is locked")
            return "opened"

        assert locked_then_free() == "opened"
        assert call_count == 2

    def test_max_retries_exceeded(self):
        """Function gives up after max attempts and re-raises."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01, max_wait=0.05)
        def always_locked():
            nonlocal call_count
            call_count += 1
            raise sqlite3.OperationalError("database is locked")

        with pytest.raises(sqlite3.OperationalError):
            always_locked()
        assert call_count == 3

    def test_non_retryable_exception(self):
        """Corrupt files are not retried."""
        call_count = 0

        @with_retry(max_attempts=3, min_wait=0.01)
        def corrupt():
            nonlocal call_count
            call_count += 1
            raise sqlite3.DatabaseError("file is not a database")

        with pytest.raises(sqlite3.DatabaseError):
            corrupt()
        assert call_count == 1

    def test_retryable_exceptions(self):
        """Test which exceptions trigger a retry."""
        assert sqlite3.OperationalError in RETRYABLE_EXCEPTIONS
        assert sqlite3.DatabaseError not in RETRYABLE_EXCEPTIONS


class TestOpenRetry:
    """The store retries a locked database before giving up."""

    def test_locked_database_eventually_opens(self, db_path, monkeypatch):
        """Test that a locked database is retried until it opens."""
        from dt_preset_tool.config_store import ConfigStore

        real_connect = sqlite3.connect
        attempts = []

        def flaky_connect(*args, **kwargs):
            attempts.append(args)
            if len(attempts) == 1:
                raise sqlite3.OperationalError("database is locked")
            return real_connect(*args, **kwargs)

        monkeypatch.setattr(sqlite3, "connect", flaky_connect)

        with ConfigStore(db_path) as store:
            store.open()
            assert store.is_open
        assert len(attempts) == 2
