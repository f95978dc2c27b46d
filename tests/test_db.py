"""Tests for the SQLite key-value store."""
from hana_vocab.db import get_connection, init_db, load, save


def test_init_db_creates_store(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    tables = {row[0] for row in conn.execute("SELECT name FROM sqlite_master WHERE type='table'")}
    conn.close()
    assert "kv_store" in tables


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    save(tmp_db, "k", 1)
    assert load(tmp_db, "k") == 1


def test_load_missing_key_returns_none(tmp_db):
    init_db(tmp_db)
    assert load(tmp_db, "nothing") is None


def test_save_and_load_json_values(tmp_db):
    init_db(tmp_db)
    save(tmp_db, "progress", {"w001": {"mastery": 2}})
    save(tmp_db, "streak", [{"date": "2024-01-01", "count": 3}])
    assert load(tmp_db, "progress") == {"w001": {"mastery": 2}}
    assert load(tmp_db, "streak") == [{"date": "2024-01-01", "count": 3}]


def test_save_overwrites_existing_key(tmp_db):
    init_db(tmp_db)
    save(tmp_db, "k", "first")
    save(tmp_db, "k", "second")
    assert load(tmp_db, "k") == "second"


def test_save_keeps_korean_text(tmp_db):
    init_db(tmp_db)
    save(tmp_db, "word", {"korean": "사랑"})
    conn = get_connection(tmp_db)
    raw = conn.execute("SELECT value FROM kv_store WHERE key = 'word'").fetchone()["value"]
    conn.close()
    assert "사랑" in raw


# --- Edge case tests ---


def test_load_corrupt_value_returns_none(tmp_db):
    """Unparseable JSON is treated as absent, never raised."""
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO kv_store (key, value) VALUES ('bad', '{not json')")
    conn.commit()
    conn.close()
    assert load(tmp_db, "bad") is None
