"""
Per-guild container/lobby configuration backed by the key-value store.
"""

from services.store import KeyValueStore
from utils.errors import StoreError
from utils.logging import get_logger
from utils.types import GuildVoiceConfig

logger = get_logger(__name__)


def container_key(guild_id: int) -> str:
    return f"containerCached.{guild_id}"


def lobby_key(guild_id: int) -> str:
    return f"lobbyCached.{guild_id}"


def _as_id(value: str | None) -> int | None:
    if not value:
        return None
    try:
        return int(value)
    except ValueError:
        return None


class GuildConfigStore:
    """Stores which category holds temp channels and which voice channel is the lobby."""

    def __init__(self, store: KeyValueStore) -> None:
        self.store = store

    async def get(self, guild_id: int) -> GuildVoiceConfig | None:
        """Return the guild configuration, or None if either id is missing or unreadable."""
        try:
            container = _as_id(await self.store.get(container_key(guild_id)))
            if container is None:
                return None
            lobby = _as_id(await self.store.get(lobby_key(guild_id)))
        except StoreError as e:
            logger.warning("Guild config lookup failed: %s", e, extra={"guild_id": guild_id})
            return None
        if lobby is None:
            return None
        return GuildVoiceConfig(guild_id=guild_id, container_id=container, lobby_id=lobby)

    async def set(self, guild_id: int, container_id: int, lobby_id: int) -> GuildVoiceConfig:
        """
        Write the configuration, touching only values that changed.

        Raises StoreError so the setup command can tell the admin it failed.
        """
        current_container = await self.store.get(container_key(guild_id))
        if current_container != str(container_id):
            await self.store.set(container_key(guild_id), str(container_id))

        current_lobby = await self.store.get(lobby_key(guild_id))
        if current_lobby != str(lobby_id):
            await self.store.set(lobby_key(guild_id), str(lobby_id))

        logger.info(
            "Temp voice configured: container=%s lobby=%s",
            container_id,
            lobby_id,
            extra={"guild_id": guild_id},
        )
        return GuildVoiceConfig(guild_id=guild_id, container_id=container_id, lobby_id=lobby_id)

    async def clear(self, guild_id: int) -> None:
        await self.store.delete(container_key(guild_id))
        await self.store.delete(lobby_key(guild_id))
