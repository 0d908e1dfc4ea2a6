"""Key/value storage media: a SQLite file for durable state, a dict for the session."""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Protocol

logger = logging.getLogger(__name__)


class StorageError(Exception):
    """Base class for failures raised by a storage medium."""


class StorageUnavailableError(StorageError):
    """The medium cannot be opened, read or written at all."""


class QuotaExceededError(StorageError):
    """A write would push the medium past its quota."""


class StoragePort(Protocol):
    """String-to-string key space shared by every store on one medium."""

    def get_item(self, key: str) -> str | None: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...

    def keys(self) -> list[str]: ...


def _check_quota(used: int, key: str, value: str, previous: str | None, quota: int | None):
    if quota is None:
        return
    if previous is not None:
        used -= len(key) + len(previous)
    needed = used + len(key) + len(value)
    if needed > quota:
        raise QuotaExceededError(
            f"Writing '{key}' needs {needed:,} chars, quota is {quota:,}"
        )


class MemoryStorage:
    """Dict-backed medium. Lives as long as the process, like a browser tab session."""

    def __init__(self, quota: int | None = None, available: bool = True):
        self.quota = quota
        self.available = available
        self._data: dict[str, str] = {}

    def _ensure_available(self):
        if not self.available:
            raise StorageUnavailableError("Memory storage is disabled")

    def get_item(self, key: str) -> str | None:
        self._ensure_available()
        return self._data.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._ensure_available()
        used = sum(len(k) + len(v) for k, v in self._data.items())
        _check_quota(used, key, value, self._data.get(key), self.quota)
        self._data[key] = value

    def remove_item(self, key: str) -> None:
        self._ensure_available()
        self._data.pop(key, None)

    def keys(self) -> list[str]:
        self._ensure_available()
        return list(self._data)


class SQLiteStorage:
    """Durable medium backed by a single key/value table."""

    def __init__(self, db_path: Path, quota: int | None = None):
        self.db_path = db_path
        self.quota = quota
        self._conn: sqlite3.Connection | None = None

    def _connect(self) -> sqlite3.Connection:
        if self._conn is not None:
            return self._conn
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            conn = sqlite3.connect(str(self.db_path))
            conn.execute("PRAGMA journal_mode=WAL")
            conn.execute(
                "CREATE TABLE IF NOT EXISTS kv (key TEXT PRIMARY KEY, value TEXT NOT NULL)"
            )
            conn.commit()
        except (sqlite3.Error, OSError) as e:
            raise StorageUnavailableError(f"Cannot open {self.db_path}: {e}") from e
        self._conn = conn
        return conn

    def get_item(self, key: str) -> str | None:
        conn = self._connect()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
        except sqlite3.Error as e:
            raise StorageUnavailableError(str(e)) from e
        return row[0] if row else None

    def set_item(self, key: str, value: str) -> None:
        conn = self._connect()
        try:
            used = conn.execute(
                "SELECT COALESCE(SUM(LENGTH(key) + LENGTH(value)), 0) FROM kv"
            ).fetchone()[0]
            _check_quota(used, key, value, self.get_item(key), self.quota)
            conn.execute(
                "INSERT OR REPLACE INTO kv (key, value) VALUES (?, ?)", (key, value)
            )
            conn.commit()
        except sqlite3.Error as e:
            raise StorageUnavailableError(str(e)) from e

    def remove_item(self, key: str) -> None:
        conn = self._connect()
        try:
            conn.execute("DELETE FROM kv WHERE key = ?", (key,))
            conn.commit()
        except sqlite3.Error as e:
            raise StorageUnavailableError(str(e)) from e

    def keys(self) -> list[str]:
        conn = self._connect()
        try:
            rows = conn.execute("SELECT key FROM kv ORDER BY key").fetchall()
        except sqlite3.Error as e:
            raise StorageUnavailableError(str(e)) from e
        return [r[0] for r in rows]

    def close(self):
        if self._conn is not None:
            self._conn.close()
            self._conn = None
