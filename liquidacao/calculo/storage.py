"""SQLite key/value storage for persisted calculation history."""

from __future__ import annotations

import logging
import os
import sqlite3
from pathlib import Path

import config

logger = logging.getLogger(__name__)

_connection: sqlite3.Connection | None = None
_db_path: Path | None = None

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
);
"""


def default_db_path() -> Path:
    return Path(os.path.join(config.DATA_DIR, "liquidacao.db"))


def get_connection() -> sqlite3.Connection:
    global _connection
    if _connection is None:
        db_path = _db_path or default_db_path()
        db_path.parent.mkdir(parents=True, exist_ok=True)
        _connection = sqlite3.connect(str(db_path), check_same_thread=False)
        _connection.row_factory = sqlite3.Row
        _connection.execute("PRAGMA journal_mode=WAL")
        _connection.executescript(SCHEMA)
        _connection.commit()
    return _connection


def use_database(db_path: str | Path | None):
    """Point storage at another database file (None = default). Closes any open connection."""
    global _connection, _db_path
    if _connection is not None:
        _connection.close()
        _connection = None
    _db_path = Path(db_path) if db_path is not None else None


def initialize():
    get_connection()
    logger.info(f"History database ready at {_db_path or default_db_path()}")


def get_value(key: str) -> str | None:
    row = get_connection().execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    return row["value"] if row else None


def set_value(key: str, value: str):
    conn = get_connection()
    conn.execute(
        "INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP) "
        "ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = CURRENT_TIMESTAMP",
        (key, value),
    )
    conn.commit()
