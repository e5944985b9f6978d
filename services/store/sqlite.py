"""
Durable key-value store on top of aiosqlite.

Expiry is stored as an absolute unix timestamp. Expired rows are invisible to
every read and are physically removed by a periodic purge task.
"""

import asyncio
import sqlite3
import time
from contextlib import asynccontextmanager
from pathlib import Path

import aiosqlite

from utils.errors import StoreError

from .base import KeyValueStore

_LIVE = "(expires_at IS NULL OR expires_at > ?)"


class SqliteStore(KeyValueStore):
    """Key-value store persisted in a single SQLite table."""

    backend = "sqlite"

    def __init__(self, db_path: str, purge_interval: float = 60.0) -> None:
        super().__init__()
        self.db_path = db_path
        self.purge_interval = purge_interval
        self._purge_task: asyncio.Task | None = None

    @asynccontextmanager
    async def _connection(self):
        """
        Open a connection with the same pragmas the bot has always used.

        Usage:
            async with self._connection() as db:
                await db.execute("SELECT ...")
        """
        async with aiosqlite.connect(self.db_path) as db:
            await db.execute("PRAGMA busy_timeout=5000")
            try:
                await db.execute("PRAGMA journal_mode=WAL")
            except sqlite3.OperationalError as exc:
                # WAL transition can fail briefly if another writer holds a lock; retry once
                if "database is locked" in str(exc).lower():
                    await asyncio.sleep(0.05)
                    await db.execute("PRAGMA journal_mode=WAL")
                else:
                    raise
            await db.execute("PRAGMA synchronous=NORMAL")
            yield db

    async def _connect_impl(self) -> None:
        parent = Path(self.db_path).parent
        parent.mkdir(parents=True, exist_ok=True)
        try:
            async with self._connection() as db:
                await db.execute(
                    """
                    CREATE TABLE IF NOT EXISTS kv_store (
                        key TEXT PRIMARY KEY,
                        value TEXT NOT NULL,
                        expires_at REAL DEFAULT NULL
                    )
                    """
                )
                await db.execute(
                    "CREATE INDEX IF NOT EXISTS idx_kv_store_expires ON kv_store(expires_at)"
                )
                await db.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to open store at {self.db_path}") from e
        self._purge_task = asyncio.create_task(
            self._purge_loop(), name="store.sqlite.purge"
        )
        self.logger.info("SQLite store ready at %s", self.db_path)

    async def _close_impl(self) -> None:
        if self._purge_task is not None:
            self._purge_task.cancel()
            try:
                await self._purge_task
            except asyncio.CancelledError:
                pass
            self._purge_task = None

    async def _purge_loop(self) -> None:
        while True:
            await asyncio.sleep(self.purge_interval)
            try:
                removed = await self.purge_expired()
                if removed:
                    self.logger.debug("Purged %d expired keys", removed)
            except StoreError as e:
                self.logger.warning("Expired key purge failed: %s", e)

    async def purge_expired(self) -> int:
        """Physically delete expired rows and return how many were removed."""
        self._ensure_connected()
        try:
            async with self._connection() as db:
                cursor = await db.execute(
                    "DELETE FROM kv_store WHERE expires_at IS NOT NULL AND expires_at <= ?",
                    (time.time(),),
                )
                await db.commit()
                return cursor.rowcount or 0
        except sqlite3.Error as e:
            raise StoreError("Failed to purge expired keys") from e

    async def get(self, key: str) -> str | None:
        self._ensure_connected()
        try:
            async with self._connection() as db:
                cursor = await db.execute(
                    f"SELECT value FROM kv_store WHERE key = ? AND {_LIVE}",
                    (key, time.time()),
                )
                row = await cursor.fetchone()
                return row[0] if row else None
        except sqlite3.Error as e:
            raise StoreError(f"Failed to read {key!r}") from e

    async def _write(self, key: str, value: str, expires_at: float | None) -> None:
        self._ensure_connected()
        try:
            async with self._connection() as db:
                await db.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)",
                    (key, str(value), expires_at),
                )
                await db.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to write {key!r}") from e

    async def set(self, key: str, value: str) -> None:
        await self._write(key, value, None)

    async def set_with_expiry(self, key: str, value: str, seconds: float) -> None:
        await self._write(key, value, time.time() + max(seconds, 0))

    async def delete(self, key: str) -> None:
        self._ensure_connected()
        try:
            async with self._connection() as db:
                await db.execute("DELETE FROM kv_store WHERE key = ?", (key,))
                await db.commit()
        except sqlite3.Error as e:
            raise StoreError(f"Failed to delete {key!r}") from e

    async def exists(self, key: str) -> bool:
        return await self.get(key) is not None

    async def increment(self, key: str) -> int:
        self._ensure_connected()
        try:
            async with self._connection() as db:
                await db.execute("BEGIN IMMEDIATE")
                cursor = await db.execute(
                    f"SELECT value, expires_at FROM kv_store WHERE key = ? AND {_LIVE}",
                    (key, time.time()),
                )
                row = await cursor.fetchone()
                expires_at = row[1] if row else None
                try:
                    value = int(row[0]) + 1 if row else 1
                except ValueError as e:
                    await db.rollback()
                    raise StoreError(f"Value at {key!r} is not an integer") from e
                await db.execute(
                    "INSERT OR REPLACE INTO kv_store (key, value, expires_at) VALUES (?, ?, ?)",
                    (key, str(value), expires_at),
                )
                await db.commit()
                return value
        except sqlite3.Error as e:
            raise StoreError(f"Failed to increment {key!r}") from e

    async def keys(self, pattern: str) -> list[str]:
        self._ensure_connected()
        try:
            async with self._connection() as db:
                cursor = await db.execute(
                    f"SELECT key FROM kv_store WHERE key GLOB ? AND {_LIVE} ORDER BY key",
                    (pattern, time.time()),
                )
                rows = await cursor.fetchall()
                return [row[0] for row in rows]
        except sqlite3.Error as e:
            raise StoreError(f"Failed to list keys for {pattern!r}") from e
