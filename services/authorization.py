"""
Authorization gate for temp voice actions.

``evaluate`` decides, ``authorize`` additionally tells the user why not.
Checks run in a fixed order and stop at the first failure:

1. the acting member must be resolvable (``failed-fetch``)
2. a temp voice channel must be resolved (``no-vc`` / ``no-tvc``)
3. the bot must hold Administrator and the requested permissions (``no-perm-bot``)
4. the actor must own or manage the channel (``not-your-tvc`` / ``no-perm``)
5. the target member must be a valid target (``target-*`` / ``bots-ignored``)
"""

from dataclasses import dataclass

import discord

from config.config_loader import BotSettings
from helpers.discord_reply import respond
from helpers.embeds import ERROR, create_feedback_embed
from helpers.translations import Translator
from services.ownership import OwnershipStore
from utils.logging import get_logger
from utils.types import TempVoiceArgs

logger = get_logger(__name__)

FAILED_FETCH = "failed-fetch"
NO_VC = "no-vc"
NO_TVC = "no-tvc"
NO_PERM_BOT = "no-perm-bot"
NOT_YOUR_TVC = "not-your-tvc"
NO_PERM = "no-perm"
TARGET_YOURSELF = "target-yourself"
BOTS_IGNORED = "bots-ignored"
TARGET_POWER = "target-power"
TARGET_OUTSIDE = "target-outside"


@dataclass
class AuthorizationOptions:
    check_management: bool = True
    check_channel: bool = True
    bot_permissions: discord.Permissions | None = None
    target: discord.Member | None = None
    owner_only: bool = False


async def resolve_temp_voice_args(interaction: discord.Interaction) -> TempVoiceArgs | None:
    """Resolve the invoking guild member and the voice channel they are in."""
    guild = interaction.guild
    if guild is None:
        return None

    user_id = interaction.user.id
    member = guild.get_member(user_id)
    if member is None:
        try:
            member = await guild.fetch_member(user_id)
        except discord.HTTPException as e:
            logger.warning(
                "Could not fetch invoking member: %s",
                e,
                extra={"guild_id": guild.id, "user_id": user_id},
            )
            return None

    voice = member.voice
    return TempVoiceArgs(member=member, channel=voice.channel if voice else None)


def _bot_has_permissions(
    channel: discord.VoiceChannel, required: discord.Permissions
) -> bool:
    me = channel.guild.me
    if me is None:
        return False
    if not me.guild_permissions.administrator:
        return False
    return channel.permissions_for(me).is_superset(required)


class AuthorizationGate:
    """Decides whether a member may run a temp voice action on their channel."""

    def __init__(
        self, ownership: OwnershipStore, translator: Translator, settings: BotSettings
    ) -> None:
        self.ownership = ownership
        self.translator = translator
        self.settings = settings

    async def evaluate(
        self, args: TempVoiceArgs | None, options: AuthorizationOptions
    ) -> str | None:
        """Return the first failing reason, or None when the action is allowed."""
        if args is None or args.member is None:
            return FAILED_FETCH

        member, channel = args.member, args.channel
        owner_id: str | None = None

        if options.check_channel:
            if channel is None:
                return NO_VC
            owner_id = await self.ownership.get_owner(channel.guild.id, channel.id)
            if owner_id is None:
                return NO_TVC

        if options.bot_permissions is not None and channel is not None:
            if not _bot_has_permissions(channel, options.bot_permissions):
                return NO_PERM_BOT

        if options.check_management and channel is not None:
            if owner_id is None:
                owner_id = await self.ownership.get_owner(channel.guild.id, channel.id)
            is_owner = owner_id is not None and owner_id == str(member.id)
            is_admin = member.guild_permissions.administrator
            channel_permissions = channel.permissions_for(member)
            is_manager = (
                channel_permissions.manage_channels or channel_permissions.manage_guild
            )

            if options.owner_only and not is_owner:
                return NOT_YOUR_TVC
            if not (is_owner or is_admin or is_manager):
                return NO_PERM

        target = options.target
        if target is not None and channel is not None:
            if self.settings.is_production:
                if target.id == member.id:
                    return TARGET_YOURSELF
                if target.bot:
                    return BOTS_IGNORED
                target_permissions = target.guild_permissions
                if target_permissions.administrator or target_permissions.manage_guild:
                    return TARGET_POWER
            target_channel = target.voice.channel if target.voice else None
            if target_channel is None or target_channel.id != channel.id:
                return TARGET_OUTSIDE

        return None

    async def authorize(
        self,
        interaction: discord.Interaction,
        args: TempVoiceArgs | None,
        action: str,
        options: AuthorizationOptions,
        locale: str,
    ) -> bool:
        """
        Evaluate and, on failure, reply with an ephemeral error.

        ``action`` is the localized action name shown in the error title.
        """
        reason = await self.evaluate(args, options)
        if reason is None:
            return True

        logger.info(
            "Denied %s: %s",
            action,
            reason,
            extra={
                "guild_id": interaction.guild.id if interaction.guild else None,
                "user_id": interaction.user.id,
                "action": reason,
            },
        )
        content = self.translator.translate(
            locale,
            "errors.tvc",
            error=self.translator.translate(locale, f"errors.{reason}"),
        )
        embed = create_feedback_embed(
            self.translator, locale, ERROR, action, content, guild=interaction.guild
        )
        await respond(interaction, embed=embed)
        return False
