"""Tests for db module."""

import sqlite3

import pytest

import db
from db import MemoryInputStore, SQLiteInputStore, StoreError, open_store


@pytest.fixture
def store(tmp_path):
    return open_store("sqlite", path=tmp_path / "inputs.db", session_id="default")


class TestSQLiteInputStore:
    """Tests for the SQLite-backed store."""

    def test_load_empty(self, store):
        assert store.load() is None

    def test_save_creates_record(self, store):
        store.save({"gender": "female", "height_cm": 165.0})

        row = store.load()
        assert row["gender"] == "female"
        assert row["height_cm"] == 165.0
        assert row["neck_cm"] is None
        assert row["updated_at"] > 0

    def test_merge_preserves_other_fields(self, store):
        store.save({"neck_cm": 38.0})
        store.save({"abdomen_cm": 90.0})

        row = store.load()
        assert row["neck_cm"] == 38.0
        assert row["abdomen_cm"] == 90.0

    def test_none_clears_field(self, store):
        store.save({"weight_kg": 70.0})
        store.save({"weight_kg": None})

        assert store.load()["weight_kg"] is None

    def test_save_is_idempotent(self, store):
        store.save({"gender": "male", "age": 25})
        first = store.load()
        store.save({"gender": "male", "age": 25})
        second = store.load()

        first.pop("updated_at")
        second.pop("updated_at")
        assert first == second

    def test_updated_at_increases(self, store):
        first = store.save({"age": 30})["updated_at"]
        second = store.save({"age": 31})["updated_at"]
        assert second > first

    def test_single_record(self, store, tmp_path):
        store.save({"age": 30})
        store.save({"age": 31})

        conn = sqlite3.connect(tmp_path / "inputs.db")
        try:
            count = conn.execute(f"SELECT COUNT(*) FROM {db.TABLE}").fetchone()[0]
        finally:
            conn.close()
        assert count == 1

    def test_unknown_field(self, store):
        with pytest.raises(ValueError):
            store.save({"shoe_size": 44})
        assert store.load() is None

    def test_missing_table_is_store_error(self, tmp_path):
        store = SQLiteInputStore(path=tmp_path / "empty.db")
        with pytest.raises(StoreError):
            store.load()

    def test_unwritable_path_is_store_error(self, tmp_path):
        store = SQLiteInputStore(path=tmp_path / "missing" / "inputs.db")
        with pytest.raises(StoreError):
            store.save({"age": 30})


class TestMigrations:
    """Tests for additive schema migrations."""

    def test_adds_missing_columns(self, tmp_path):
        path = tmp_path / "old.db"
        conn = sqlite3.connect(path)
        conn.execute(f"CREATE TABLE {db.TABLE} (id TEXT PRIMARY KEY, gender TEXT, height_cm REAL)")
        conn.execute(f"INSERT INTO {db.TABLE} (id, gender, height_cm) VALUES ('default', 'male', 180)")
        conn.commit()
        conn.close()

        store = open_store("sqlite", path=path)
        row = store.load()
        assert row["gender"] == "male"
        assert row["height_cm"] == 180
        assert row["hip_cm"] is None
        assert "unit_preference" in row


class TestMemoryInputStore:
    """Tests for the in-memory store."""

    def test_merge_law(self):
        store = MemoryInputStore()
        store.save({"neck_cm": 38.0})
        store.save({"hip_cm": 95.0})

        row = store.load()
        assert row["neck_cm"] == 38.0
        assert row["hip_cm"] == 95.0

    def test_load_returns_copy(self):
        store = MemoryInputStore()
        store.save({"age": 40})
        store.load()["age"] = 1
        assert store.load()["age"] == 40


class TestOpenStore:
    """Tests for picking a store implementation."""

    def test_memory(self):
        assert isinstance(open_store("memory"), MemoryInputStore)

    def test_unknown_kind(self):
        with pytest.raises(ValueError):
            open_store("cloud")
