"""
Temporary voice channel lifecycle.

Joining the configured lobby provisions a voice channel under the configured
container and records the joining member as its owner. When the last member
leaves a temp channel, the ownership record is released and the channel is
deleted.
"""

import asyncio
from collections.abc import Callable, Coroutine
from typing import Any

import discord

from config.config_loader import BotSettings
from helpers.translations import Translator
from services.base import BaseService
from services.guild_config import GuildConfigStore
from services.ownership import OwnershipStore
from utils.tasks import spawn
from utils.types import GuildVoiceConfig

MAX_CHANNEL_NAME_LENGTH = 100

ControlsFactory = Callable[[str], tuple[discord.Embed, discord.ui.View]]

_ACTIVITY_PREFIXES = (
    (discord.ActivityType.playing, "🎮"),
    (discord.ActivityType.listening, "🎵"),
    (discord.ActivityType.watching, "📺"),
)


def derive_channel_name(member: discord.Member) -> str:
    """
    Name for a freshly provisioned channel.

    The first Playing activity wins, then Listening, then Watching; without any
    of those the member's display name is used.
    """
    activities = [a for a in (member.activities or ()) if getattr(a, "name", None)]
    name = member.display_name
    for activity_type, prefix in _ACTIVITY_PREFIXES:
        match = next((a for a in activities if a.type == activity_type), None)
        if match is not None:
            name = f"{prefix} {match.name}"
            break
    return name[:MAX_CHANNEL_NAME_LENGTH]


def _bot_can_manage_channels(guild: discord.Guild) -> bool:
    me = guild.me
    return me is not None and me.guild_permissions.manage_channels


class TempVoiceService(BaseService):
    """
    Reacts to voice state changes for guilds with a configured lobby.

    Concurrent events are not serialized: every store read is treated as
    possibly stale, deletion is idempotent and a record is only written once
    the platform has created the channel.
    """

    def __init__(
        self,
        settings: BotSettings,
        ownership: OwnershipStore,
        guild_config: GuildConfigStore,
        translator: Translator,
    ) -> None:
        super().__init__("tempvoice")
        self.settings = settings
        self.ownership = ownership
        self.guild_config = guild_config
        self.translator = translator
        self.controls_factory: ControlsFactory | None = None
        self._background_tasks: set[asyncio.Task] = set()

    async def _initialize_impl(self) -> None:
        self.logger.debug(
            "Temp voice records expire after %s seconds", self.settings.owner_record_ttl
        )

    async def _shutdown_impl(self) -> None:
        for task in list(self._background_tasks):
            task.cancel()
        for task in list(self._background_tasks):
            try:
                await task
            except asyncio.CancelledError:
                continue
            except Exception as exc:  # pragma: no cover - logged by spawn
                self.logger.warning(
                    "Background task %s raised during shutdown: %s",
                    task.get_name(),
                    exc,
                )
        self._background_tasks.clear()

    def set_controls_factory(self, factory: ControlsFactory) -> None:
        self.controls_factory = factory

    def _spawn_background_task(
        self, coro: Coroutine[Any, Any, Any], *, name: str
    ) -> asyncio.Task:
        task = spawn(coro, name=name)
        self._background_tasks.add(task)
        task.add_done_callback(self._background_tasks.discard)
        return task

    async def handle_voice_state_change(
        self,
        member: discord.Member | None,
        before_channel: discord.VoiceChannel | None,
        after_channel: discord.VoiceChannel | None,
    ) -> None:
        """
        Entry point for ``on_voice_state_update``.

        ``before_channel.members`` already reflects the departure when the
        gateway event is dispatched, so occupancy is read from it directly.
        """
        self._ensure_initialized()
        if member is None:
            return
        guild = member.guild
        if not _bot_can_manage_channels(guild):
            self.logger.debug(
                "Missing Manage Channels; ignoring voice update",
                extra={"guild_id": guild.id},
            )
            return

        config = await self.guild_config.get(guild.id)
        if config is None:
            return

        if before_channel is not None and before_channel.category_id == config.container_id:
            await self._cleanup_if_vacant(before_channel, member)

        if after_channel is not None and after_channel.id == config.lobby_id:
            await self._provision(member, config)

    async def _cleanup_if_vacant(
        self, channel: discord.VoiceChannel, last_member: discord.Member
    ) -> bool:
        guild_id = channel.guild.id
        released = await self.ownership.release_if_vacant(
            guild_id, channel.id, len(channel.members)
        )
        if not released:
            return False

        reason = f"TempVoice | not needed anymore <emptyChannel> [{last_member.name}]"
        try:
            await channel.delete(reason=reason)
            self.logger.info(
                "Deleted empty temp channel",
                extra={"guild_id": guild_id, "channel_id": channel.id},
            )
        except discord.NotFound:
            self.logger.info(
                "Temp channel already deleted",
                extra={"guild_id": guild_id, "channel_id": channel.id},
            )
        except discord.HTTPException as e:
            self.logger.warning(
                "Failed to delete empty temp channel: %s",
                e,
                extra={"guild_id": guild_id, "channel_id": channel.id},
            )
        return True

    async def _provision(
        self, member: discord.Member, config: GuildVoiceConfig
    ) -> discord.VoiceChannel | None:
        guild = member.guild
        container = guild.get_channel(config.container_id)
        if container is None:
            self.logger.warning(
                "Configured container %s not found; skipping provisioning",
                config.container_id,
                extra={"guild_id": guild.id, "user_id": member.id},
            )
            return None

        name = derive_channel_name(member)
        try:
            channel = await guild.create_voice_channel(
                name=name,
                category=container,
                reason=f"TempVoice | requested by [user {member.name}]",
            )
        except discord.HTTPException as e:
            self.logger.warning(
                "Failed to create temp channel: %s",
                e,
                extra={"guild_id": guild.id, "user_id": member.id},
            )
            return None

        await self.ownership.record_owner(guild.id, channel.id, member.id)
        self.logger.info(
            "Created temp channel %r",
            name,
            extra={"guild_id": guild.id, "channel_id": channel.id, "user_id": member.id},
        )

        try:
            await member.move_to(channel)
        except discord.HTTPException as e:
            self.logger.warning(
                "Failed to move member into temp channel: %s",
                e,
                extra={"guild_id": guild.id, "channel_id": channel.id, "user_id": member.id},
            )
            await self.ownership.release(guild.id, channel.id)
            try:
                await channel.delete(reason="TempVoice | owner could not be moved")
            except discord.HTTPException as delete_error:
                self.logger.warning(
                    "Failed to remove unused temp channel: %s",
                    delete_error,
                    extra={"guild_id": guild.id, "channel_id": channel.id},
                )
            return None

        locale = self.translator.guild_locale(guild.preferred_locale)
        self._spawn_background_task(
            self.post_controls(channel, locale), name=f"tempvoice.controls.{channel.id}"
        )
        return channel

    async def post_controls(self, channel: discord.abc.Messageable, locale: str) -> bool:
        """
        Send the control panel into ``channel``. Failures are logged only.

        The sent view is stopped right away so the view store does not keep one
        per panel; clicks are routed by the persistent view registered at startup.
        """
        if self.controls_factory is None:
            self.logger.debug("No control panel registered; skipping")
            return False
        embed, view = self.controls_factory(locale)
        try:
            await channel.send(embed=embed, view=view)
            return True
        except discord.HTTPException as e:
            self.logger.warning(
                "Failed to post control panel: %s",
                e,
                extra={"channel_id": getattr(channel, "id", None)},
            )
            return False
        finally:
            view.stop()

    async def reconcile_guild(self, guild: discord.Guild) -> int:
        """
        Drop records left behind while the bot was offline.

        Records whose channel no longer exists are released; temp channels that
        emptied in the meantime are released and deleted. Returns how many
        records were released.
        """
        self._ensure_initialized()
        if not _bot_can_manage_channels(guild):
            return 0
        released = 0
        for channel_id in await self.ownership.list_channels(guild.id):
            channel = guild.get_channel(channel_id)
            if channel is None:
                if await self.ownership.release(guild.id, channel_id):
                    released += 1
                continue
            if await self._cleanup_if_vacant(channel, guild.me):
                released += 1
        if released:
            self.logger.info(
                "Released %d stale temp channel record(s)", released, extra={"guild_id": guild.id}
            )
        return released

    async def handle_channel_deleted(self, guild_id: int, channel_id: int) -> bool:
        """
        Drop the record of a temp channel deleted outside the bot.

        A deleted lobby or container leaves the guild configuration untouched.
        """
        self._ensure_initialized()
        if not await self.ownership.is_temp_channel(guild_id, channel_id):
            return False
        await self.ownership.release(guild_id, channel_id)
        self.logger.info(
            "Released record of externally deleted temp channel",
            extra={"guild_id": guild_id, "channel_id": channel_id},
        )
        return True

    async def health_check(self) -> dict[str, Any]:
        health = await super().health_check()
        health["background_tasks"] = len(self._background_tasks)
        return health
