"""Shared fixtures for preset store tests."""
import sqlite3

import pytest

from dt_preset_tool.config_store import ConfigStore, Configuration, init_store, to_signed
from dt_preset_tool.config_store.store import NAME_TABLE, RECORD_TABLE


def seed(db_path, rows):
    """Write (id, name, payload) rows directly; name None skips the name row."""
    conn = sqlite3.connect(str(db_path))
    try:
        with conn:
            for config_id, name, payload in rows:
                cursor = conn.execute(
                    f"INSERT INTO {RECORD_TABLE} (__pk0, p) VALUES (?, ?)",
                    (to_signed(config_id), payload),
                )
                if name is not None:
                    conn.execute(
                        f"INSERT INTO {NAME_TABLE} (rowid, f86) VALUES (?, ?)",
                        (cursor.lastrowid, name),
                    )
    finally:
        conn.close()


def count_rows(db_path, table):
    conn = sqlite3.connect(str(db_path))
    try:
        return conn.execute(f"SELECT COUNT(*) FROM {table}").fetchone()[0]
    finally:
        conn.close()


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep settings lookups and default log/audit paths out of the real home."""
    monkeypatch.setenv("HOME", str(tmp_path / "home"))
    monkeypatch.delenv("DT_PRESETS_DB_PATH", raising=False)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def db_path(tmp_path):
    """Empty preset database."""
    return init_store(tmp_path / "config.sqlite3")


@pytest.fixture
def store(db_path):
    """Open ConfigStore on the empty database."""
    with ConfigStore(db_path) as store:
        store.open()
        yield store


@pytest.fixture
def foo():
    return Configuration(id=5, name="Foo", payload=b"AB")


@pytest.fixture
def bar():
    return Configuration(id=9, name="Bar", payload=b"\x00\x01\x02")
