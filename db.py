"""Persisted store for the last-entered calculator inputs.

A single record keyed by a fixed session id. Saves merge over the stored
record, so a partial save never loses fields it does not mention.
"""

import logging
import sqlite3
import time
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator

from config import DATABASE_PATH, SESSION_ID, STORE_KIND

log = logging.getLogger(__name__)

TABLE = "body_fat_inputs"

# Column name -> SQLite type
COLUMNS = {
    "gender": "TEXT",
    "age": "REAL",
    "unit_preference": "TEXT",
    "height_cm": "REAL",
    "weight_kg": "REAL",
    "neck_cm": "REAL",
    "abdomen_cm": "REAL",
    "waist_cm": "REAL",
    "hip_cm": "REAL",
}
INPUT_FIELDS = tuple(COLUMNS)


class StoreError(Exception):
    """The persisted store could not be read or written."""


def now_ms() -> int:
    return int(time.time() * 1000)


def merge_row(existing: dict | None, partial: dict) -> dict:
    """Overlay `partial` on `existing` and stamp a fresh updated_at.

    Keys present in `partial` win, including None (which clears a field).
    updated_at always increases, even when the clock does not.
    """
    unknown = set(partial) - set(INPUT_FIELDS)
    if unknown:
        raise ValueError(f"Unknown input fields: {sorted(unknown)}")

    row = {field: None for field in INPUT_FIELDS}
    previous = 0
    if existing:
        row.update({k: existing.get(k) for k in INPUT_FIELDS})
        previous = existing.get("updated_at") or 0
    row.update(partial)
    row["updated_at"] = max(now_ms(), previous + 1)
    return row


@contextmanager
def get_connection(path: Path | str = DATABASE_PATH) -> Iterator[sqlite3.Connection]:
    """Context manager for database connections."""
    conn = sqlite3.connect(path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA journal_mode=WAL")  # Non-blocking reads
    try:
        yield conn
    finally:
        conn.close()


def init_db(path: Path | str = DATABASE_PATH) -> None:
    """Initialize database with schema."""
    columns = ",\n".join(f"                {name} {kind}" for name, kind in COLUMNS.items())
    with get_connection(path) as conn:
        conn.executescript(f"""
            CREATE TABLE IF NOT EXISTS {TABLE} (
                id TEXT PRIMARY KEY,
{columns},
                updated_at INTEGER
            );
        """)
        conn.commit()


def migrate_db(path: Path | str = DATABASE_PATH) -> None:
    """Add any columns missing from an older database (additive only)."""
    with get_connection(path) as conn:
        cursor = conn.execute(f"PRAGMA table_info({TABLE})")
        existing = {row[1] for row in cursor.fetchall()}
        for name, kind in {**COLUMNS, "updated_at": "INTEGER"}.items():
            if name not in existing:
                log.info("Adding column %s to %s", name, TABLE)
                conn.execute(f"ALTER TABLE {TABLE} ADD COLUMN {name} {kind}")
        conn.commit()


class SQLiteInputStore:
    """Input record stored as one row of a SQLite table."""

    def __init__(self, path: Path | str = DATABASE_PATH, session_id: str = SESSION_ID):
        self.path = path
        self.session_id = session_id

    def init(self) -> None:
        try:
            init_db(self.path)
            migrate_db(self.path)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot initialize {self.path}: {e}") from e

    def _read(self, conn: sqlite3.Connection) -> dict | None:
        row = conn.execute(
            f"SELECT * FROM {TABLE} WHERE id = ?", (self.session_id,)
        ).fetchone()
        if not row:
            return None
        data = dict(row)
        data.pop("id", None)
        return data

    def load(self) -> dict | None:
        """Get the stored record, or None if nothing was saved yet."""
        try:
            with get_connection(self.path) as conn:
                return self._read(conn)
        except sqlite3.Error as e:
            raise StoreError(f"Cannot read inputs: {e}") from e

    def save(self, partial: dict) -> dict:
        """Merge `partial` into the stored record in one transaction."""
        try:
            with get_connection(self.path) as conn:
                try:
                    conn.execute("BEGIN IMMEDIATE")
                    row = merge_row(self._read(conn), partial)
                    names = ["id", *row]
                    conn.execute(
                        f"INSERT OR REPLACE INTO {TABLE} ({', '.join(names)}) "
                        f"VALUES ({', '.join('?' for _ in names)})",
                        (self.session_id, *row.values()),
                    )
                    conn.commit()
                except BaseException:
                    conn.rollback()
                    raise
        except sqlite3.Error as e:
            raise StoreError(f"Cannot save inputs: {e}") from e
        log.debug("Saved inputs: %s", row)
        return row


class MemoryInputStore:
    """Input record kept in process memory; nothing survives a restart."""

    def __init__(self, row: dict | None = None):
        self._row = dict(row) if row else None

    def init(self) -> None:
        pass

    def load(self) -> dict | None:
        return dict(self._row) if self._row else None

    def save(self, partial: dict) -> dict:
        self._row = merge_row(self._row, partial)
        return dict(self._row)


STORES = {
    "sqlite": SQLiteInputStore,
    "memory": MemoryInputStore,
}


def open_store(kind: str = STORE_KIND, **kwargs):
    """Create and initialize the store configured for `kind`."""
    try:
        store_class = STORES[kind]
    except KeyError:
        raise ValueError(f"Unknown store kind: {kind!r}") from None
    store = store_class(**kwargs)
    store.init()
    return store
