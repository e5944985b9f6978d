"""
Ownership records for temporary voice channels.

Each temp channel has exactly one record ``tvc.<guild_id>.<channel_id>`` whose
value is the owner's user id. A missing record, or an empty value, means the
channel is not a temp channel.
"""

from config.config_loader import DEFAULT_OWNER_RECORD_TTL
from services.store import KeyValueStore
from utils.errors import StoreError
from utils.logging import get_logger

logger = get_logger(__name__)

RELEASE_GRACE_SECONDS = 1


def ownership_key(guild_id: int, channel_id: int) -> str:
    return f"tvc.{guild_id}.{channel_id}"


class OwnershipStore:
    """
    Reads and writes channel ownership records.

    Store failures never propagate out of this class: reads degrade to
    "no record" and writes report ``False``, both with a log line.
    """

    def __init__(
        self, store: KeyValueStore, record_ttl: int = DEFAULT_OWNER_RECORD_TTL
    ) -> None:
        self.store = store
        self.record_ttl = record_ttl

    async def get_owner(self, guild_id: int, channel_id: int) -> str | None:
        """Return the stored owner id, or None when the channel is not a temp channel."""
        try:
            value = await self.store.get(ownership_key(guild_id, channel_id))
        except StoreError as e:
            logger.warning(
                "Ownership lookup failed: %s",
                e,
                extra={"guild_id": guild_id, "channel_id": channel_id},
            )
            return None
        return value or None

    async def is_temp_channel(self, guild_id: int, channel_id: int) -> bool:
        return await self.get_owner(guild_id, channel_id) is not None

    async def is_owner(self, guild_id: int, channel_id: int, user_id: int) -> bool:
        owner = await self.get_owner(guild_id, channel_id)
        return owner is not None and owner == str(user_id)

    async def record_owner(
        self,
        guild_id: int,
        channel_id: int,
        owner_id: int,
        ttl: int | None = None,
    ) -> bool:
        """Map a freshly created channel to its owner, with a long safety expiry."""
        try:
            await self.store.set_with_expiry(
                ownership_key(guild_id, channel_id),
                str(owner_id),
                ttl if ttl is not None else self.record_ttl,
            )
            return True
        except StoreError as e:
            logger.warning(
                "Failed to record channel owner: %s",
                e,
                extra={"guild_id": guild_id, "channel_id": channel_id, "user_id": owner_id},
            )
            return False

    async def release(self, guild_id: int, channel_id: int) -> bool:
        """Remove the record. Removing a missing record is a no-op."""
        try:
            await self.store.delete(ownership_key(guild_id, channel_id))
            return True
        except StoreError as e:
            logger.warning(
                "Failed to release ownership record: %s",
                e,
                extra={"guild_id": guild_id, "channel_id": channel_id},
            )
            return False

    async def release_later(
        self, guild_id: int, channel_id: int, seconds: float = RELEASE_GRACE_SECONDS
    ) -> bool:
        """Blank the record now and let the store drop it after ``seconds``."""
        try:
            await self.store.set_with_expiry(
                ownership_key(guild_id, channel_id), "", seconds
            )
            return True
        except StoreError as e:
            logger.warning(
                "Failed to schedule ownership release: %s",
                e,
                extra={"guild_id": guild_id, "channel_id": channel_id},
            )
            return False

    async def release_if_vacant(
        self, guild_id: int, channel_id: int, occupancy: int
    ) -> bool:
        """
        Release the record when the channel is a temp channel with nobody left.

        Returns True when the caller should delete the channel. This is the
        only check-then-delete sequence on ownership records.
        """
        if occupancy > 0:
            return False
        if not await self.is_temp_channel(guild_id, channel_id):
            return False
        await self.release(guild_id, channel_id)
        return True

    async def list_channels(self, guild_id: int) -> list[int]:
        """Channel ids with a live ownership record in the guild."""
        prefix = f"tvc.{guild_id}."
        try:
            keys = await self.store.keys(f"{prefix}*")
        except StoreError as e:
            logger.warning("Failed to list temp channels: %s", e, extra={"guild_id": guild_id})
            return []
        channel_ids = []
        for key in keys:
            suffix = key[len(prefix):]
            if suffix.isdigit():
                channel_ids.append(int(suffix))
        return channel_ids
