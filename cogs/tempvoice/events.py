"""
Temp Voice Events Cog

Forwards gateway voice and channel events to the TempVoiceService.
"""

import discord
from discord.ext import commands

from utils.logging import get_logger

logger = get_logger(__name__)


class TempVoiceEvents(commands.Cog):
    """Handles voice state changes and channel deletions."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot

    @property
    def tempvoice_service(self):
        if not hasattr(self.bot, "services") or self.bot.services is None:
            raise RuntimeError("Bot services not initialized")
        return self.bot.services.tempvoice

    @commands.Cog.listener()
    async def on_voice_state_update(
        self,
        member: discord.Member,
        before: discord.VoiceState,
        after: discord.VoiceState,
    ) -> None:
        """Provision on lobby join, tear down temp channels once they empty."""
        try:
            await self.tempvoice_service.handle_voice_state_change(
                member=member,
                before_channel=before.channel,
                after_channel=after.channel,
            )
        except Exception as e:
            logger.exception(
                "Error handling voice state update for %s (before: %s, after: %s)",
                member,
                before.channel,
                after.channel,
                exc_info=e,
            )

    @commands.Cog.listener()
    async def on_guild_channel_delete(self, channel: discord.abc.GuildChannel) -> None:
        if not isinstance(channel, (discord.VoiceChannel, discord.StageChannel)):
            return

        try:
            await self.tempvoice_service.handle_channel_deleted(
                guild_id=channel.guild.id, channel_id=channel.id
            )
        except Exception as e:
            logger.exception("Error handling channel deletion for %s", channel, exc_info=e)


async def setup(bot: commands.Bot) -> None:
    """Set up the Temp Voice Events cog."""
    await bot.add_cog(TempVoiceEvents(bot))
