"""
Key-value store backends.

``create_store`` picks the durable SQLite backend when a store path is
configured and falls back to the in-process memory store otherwise.
"""

from typing import TYPE_CHECKING

from utils.logging import get_logger

from .base import CONNECT, DISCONNECT, KeyValueStore
from .memory import MemoryStore
from .sqlite import SqliteStore

if TYPE_CHECKING:
    from config.config_loader import BotSettings

logger = get_logger(__name__)


def create_store(settings: "BotSettings") -> KeyValueStore:
    """Build (but do not connect) the store selected by ``settings.store_path``."""
    if settings.store_path:
        logger.info("Using SQLite store at %s", settings.store_path)
        return SqliteStore(settings.store_path)
    logger.info("No STORE_PATH configured; using in-memory store")
    return MemoryStore()


__all__ = [
    "CONNECT",
    "DISCONNECT",
    "KeyValueStore",
    "MemoryStore",
    "SqliteStore",
    "create_store",
]
