"""
Key-value store contract shared by the in-memory and SQLite backends.
"""

from abc import ABC, abstractmethod
from collections import defaultdict
from collections.abc import Callable

from utils.errors import StoreConnectionError
from utils.logging import get_logger

CONNECT = "connect"
DISCONNECT = "disconnect"

StoreListener = Callable[[], None]


class KeyValueStore(ABC):
    """
    Asynchronous string-to-string map with optional per-key expiry.

    Every operation is a coroutine. Reading a missing key returns ``None``
    (or ``False`` for :meth:`exists`) rather than raising.
    """

    backend = "abstract"

    def __init__(self) -> None:
        self.logger = get_logger(f"services.store.{self.backend}")
        self._connected = False
        self._listeners: dict[str, list[StoreListener]] = defaultdict(list)

    @property
    def connected(self) -> bool:
        return self._connected

    def add_listener(self, event: str, callback: StoreListener) -> None:
        """Register a callback for ``connect`` or ``disconnect`` notifications."""
        if event not in (CONNECT, DISCONNECT):
            raise ValueError(f"Unknown store event: {event}")
        self._listeners[event].append(callback)

    def _emit(self, event: str) -> None:
        self.logger.debug("Store %s event: %s", self.backend, event)
        for callback in list(self._listeners[event]):
            try:
                callback()
            except Exception as e:
                self.logger.exception(
                    "Store listener for %s failed", event, exc_info=e
                )

    def _ensure_connected(self) -> None:
        if not self._connected:
            raise StoreConnectionError(f"{self.backend} store is not connected")

    async def connect(self) -> None:
        """Open the store. Connecting twice is an error."""
        if self._connected:
            raise StoreConnectionError("Instance cannot connect twice")
        await self._connect_impl()
        self._connected = True
        self._emit(CONNECT)

    async def close(self) -> None:
        """Close the store. Safe to call repeatedly."""
        if not self._connected:
            return
        try:
            await self._close_impl()
        finally:
            self._connected = False
            self._emit(DISCONNECT)

    async def quit(self) -> None:
        await self.close()

    @abstractmethod
    async def _connect_impl(self) -> None:
        pass

    @abstractmethod
    async def _close_impl(self) -> None:
        pass

    @abstractmethod
    async def get(self, key: str) -> str | None:
        pass

    @abstractmethod
    async def set(self, key: str, value: str) -> None:
        pass

    @abstractmethod
    async def set_with_expiry(self, key: str, value: str, seconds: float) -> None:
        """Store ``value`` and delete it after ``seconds``, replacing any pending expiry."""

    @abstractmethod
    async def delete(self, key: str) -> None:
        pass

    @abstractmethod
    async def exists(self, key: str) -> bool:
        pass

    @abstractmethod
    async def increment(self, key: str) -> int:
        """Add one to an integer value; a missing key counts as zero."""

    @abstractmethod
    async def keys(self, pattern: str) -> list[str]:
        """Return keys matching a glob where ``*`` is any run and ``?`` one character."""
