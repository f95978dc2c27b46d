"""Key-value persistence on top of SQLite."""
import json
import logging
import sqlite3
from pathlib import Path

from hana_vocab.config import DEFAULT_DB_PATH

logger = logging.getLogger(__name__)

PROGRESS_KEY = "hana_progress"
STREAK_KEY = "hana_streak"
SETTINGS_KEY = "hana_settings"
CUSTOM_VOCAB_KEY = "hana_custom_vocab"
MASTER_VOCAB_KEY = "hana_master_vocab"

SCHEMA = """
CREATE TABLE IF NOT EXISTS kv_store (
    key TEXT PRIMARY KEY,
    value TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating the store table if it doesn't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()


def load(db_path: str, key: str):
    """Return the JSON value stored under key, or None if absent or unreadable."""
    conn = get_connection(db_path)
    row = conn.execute("SELECT value FROM kv_store WHERE key = ?", (key,)).fetchone()
    conn.close()
    if row is None:
        return None
    try:
        return json.loads(row["value"])
    except json.JSONDecodeError:
        logger.warning("Discarding corrupt value stored under %r", key)
        return None


def save(db_path: str, key: str, value) -> None:
    conn = get_connection(db_path)
    conn.execute(
        """INSERT INTO kv_store (key, value, updated_at) VALUES (?, ?, CURRENT_TIMESTAMP)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value, updated_at=CURRENT_TIMESTAMP""",
        (key, json.dumps(value, ensure_ascii=False)),
    )
    conn.commit()
    conn.close()
