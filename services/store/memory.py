"""
In-process key-value store used when no durable store is configured.
"""

import asyncio
import fnmatch

from utils.errors import StoreError

from .base import KeyValueStore


class MemoryStore(KeyValueStore):
    """Dictionary-backed store with asyncio timer expiry."""

    backend = "memory"

    def __init__(self) -> None:
        super().__init__()
        self._data: dict[str, str] = {}
        self._timers: dict[str, asyncio.TimerHandle] = {}

    async def _connect_impl(self) -> None:
        self._data = {}
        self._timers = {}

    async def _close_impl(self) -> None:
        for handle in self._timers.values():
            handle.cancel()
        self._timers = {}
        self._data = {}

    def _cancel_expiry(self, key: str) -> None:
        handle = self._timers.pop(key, None)
        if handle is not None:
            handle.cancel()

    def _expire(self, key: str) -> None:
        self._timers.pop(key, None)
        self._data.pop(key, None)

    async def get(self, key: str) -> str | None:
        self._ensure_connected()
        return self._data.get(key)

    async def set(self, key: str, value: str) -> None:
        self._ensure_connected()
        self._cancel_expiry(key)
        self._data[key] = str(value)

    async def set_with_expiry(self, key: str, value: str, seconds: float) -> None:
        self._ensure_connected()
        self._cancel_expiry(key)
        self._data[key] = str(value)
        loop = asyncio.get_running_loop()
        self._timers[key] = loop.call_later(max(seconds, 0), self._expire, key)

    async def delete(self, key: str) -> None:
        self._ensure_connected()
        self._cancel_expiry(key)
        self._data.pop(key, None)

    async def exists(self, key: str) -> bool:
        self._ensure_connected()
        return key in self._data

    async def increment(self, key: str) -> int:
        self._ensure_connected()
        current = self._data.get(key, "0")
        try:
            value = int(current) + 1
        except ValueError as e:
            raise StoreError(f"Value at {key!r} is not an integer") from e
        self._data[key] = str(value)
        return value

    async def keys(self, pattern: str) -> list[str]:
        self._ensure_connected()
        return [key for key in self._data if fnmatch.fnmatchcase(key, pattern)]
