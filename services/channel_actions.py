"""
Channel mutations behind the temp voice controls.

Each method validates its input, short-circuits when the channel already has
the requested value and otherwise issues exactly one platform call. Results
are reported as ``ActionOutcome`` so the UI layer decides how to phrase them.
"""

import discord

from utils.logging import get_logger
from utils.types import ActionOutcome, OutcomeKind

logger = get_logger(__name__)

NAME_MIN_LENGTH = 3
NAME_MAX_LENGTH = 32
LIMIT_MIN = 0
LIMIT_MAX = 99
BITRATE_MIN_KBPS = 8
BITRATE_MAX_KBPS = 96
DEFAULT_BITRATE_KBPS = 64
STATUS_MAX_LENGTH = 64
CLEAR_LIMIT = 100
MAX_SELECTED_MEMBERS = 3

# Actions shown on the control panel, in button order
CONTROL_ACTIONS = (
    "rename",
    "limit",
    "bitrate",
    "nsfw",
    "status",
    "kick",
    "invite",
    "clear",
    "lock",
)


def parse_int(raw: str | int | None) -> int | None:
    if isinstance(raw, int):
        return raw
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def current_bitrate_kbps(channel: discord.VoiceChannel) -> int:
    return channel.bitrate // 1000 if channel.bitrate else DEFAULT_BITRATE_KBPS


def is_privileged(member: discord.Member, channel: discord.VoiceChannel) -> bool:
    """Members that kick and ban never touch."""
    permissions = member.guild_permissions
    return (
        permissions.administrator
        or permissions.manage_guild
        or channel.permissions_for(member).manage_channels
    )


def _failed(action: str, channel: discord.abc.GuildChannel, error: Exception) -> ActionOutcome:
    logger.warning(
        "Channel %s failed: %s",
        action,
        error,
        extra={"guild_id": channel.guild.id, "channel_id": channel.id, "action": action},
    )
    return ActionOutcome(OutcomeKind.FAILED, metadata={"error": str(error)})


class ChannelActions:
    """Stateless helpers; one instance is shared by every control handler."""

    async def rename(
        self, channel: discord.VoiceChannel, name: str, *, reason: str | None = None
    ) -> ActionOutcome:
        name = (name or "").strip()
        if not NAME_MIN_LENGTH <= len(name) <= NAME_MAX_LENGTH:
            return ActionOutcome(OutcomeKind.WRONG_INPUT, name)
        if channel.name == name:
            return ActionOutcome(OutcomeKind.ALREADY, name)
        try:
            await channel.edit(name=name, reason=reason)
        except discord.HTTPException as e:
            return _failed("rename", channel, e)
        return ActionOutcome(OutcomeKind.SUCCESS, name)

    async def set_user_limit(
        self,
        channel: discord.VoiceChannel,
        raw: str | int | None,
        *,
        reason: str | None = None,
    ) -> ActionOutcome:
        limit = parse_int(raw)
        if limit is None or not LIMIT_MIN <= limit <= LIMIT_MAX:
            return ActionOutcome(OutcomeKind.WRONG_INPUT, raw)
        if channel.user_limit == limit:
            return ActionOutcome(OutcomeKind.ALREADY, limit)
        try:
            await channel.edit(user_limit=limit, reason=reason)
        except discord.HTTPException as e:
            return _failed("limit", channel, e)
        return ActionOutcome(OutcomeKind.SUCCESS, limit)

    async def set_bitrate(
        self,
        channel: discord.VoiceChannel,
        raw: str | int | None,
        *,
        reason: str | None = None,
    ) -> ActionOutcome:
        """Bitrate is entered in kbps and sent to the platform in bps."""
        kbps = parse_int(raw)
        if kbps is None or not BITRATE_MIN_KBPS <= kbps <= BITRATE_MAX_KBPS:
            return ActionOutcome(OutcomeKind.WRONG_INPUT, raw)
        if channel.bitrate == kbps * 1000:
            return ActionOutcome(OutcomeKind.ALREADY, kbps)
        try:
            await channel.edit(bitrate=kbps * 1000, reason=reason)
        except discord.HTTPException as e:
            return _failed("bitrate", channel, e)
        return ActionOutcome(OutcomeKind.SUCCESS, kbps)

    async def toggle_nsfw(
        self, channel: discord.VoiceChannel, *, reason: str | None = None
    ) -> ActionOutcome:
        activate = not channel.nsfw
        try:
            await channel.edit(nsfw=activate, reason=reason)
        except discord.HTTPException as e:
            return _failed("nsfw", channel, e)
        return ActionOutcome(OutcomeKind.SUCCESS, activate)

    async def lock(
        self, channel: discord.VoiceChannel, *, reason: str | None = None
    ) -> ActionOutcome:
        """Deny Connect for @everyone. Members already inside stay."""
        everyone = channel.guild.default_role
        if channel.overwrites_for(everyone).connect is False:
            return ActionOutcome(OutcomeKind.ALREADY)
        try:
            await channel.set_permissions(everyone, connect=False, reason=reason)
        except discord.HTTPException as e:
            return _failed("lock", channel, e)
        return ActionOutcome(OutcomeKind.SUCCESS)

    async def disconnect_members(
        self,
        channel: discord.VoiceChannel,
        members: list[discord.Member],
        *,
        reason: str | None = None,
    ) -> tuple[list[str], list[str]]:
        """
        Disconnect the selected members who are in ``channel``.

        Privileged members are skipped. Returns display names of the kicked
        and the skipped members.
        """
        kicked: list[str] = []
        skipped: list[str] = []
        present = {m.id for m in channel.members}
        for member in members[:MAX_SELECTED_MEMBERS]:
            if is_privileged(member, channel):
                skipped.append(member.display_name)
                continue
            if member.id in present:
                try:
                    await member.move_to(None, reason=reason)
                except discord.HTTPException as e:
                    _failed("kick", channel, e)
                    skipped.append(member.display_name)
                    continue
            kicked.append(member.display_name)
        return kicked, skipped

    async def ban(
        self,
        channel: discord.VoiceChannel,
        target: discord.Member,
        *,
        reason: str | None = None,
    ) -> ActionOutcome:
        """Deny Connect for ``target`` on the channel and disconnect them."""
        try:
            await channel.set_permissions(target, connect=False, reason=reason)
            await target.move_to(None, reason=reason)
        except discord.HTTPException as e:
            return _failed("ban", channel, e)
        return ActionOutcome(OutcomeKind.SUCCESS, target.display_name)

    async def get_or_create_invite(
        self,
        channel: discord.VoiceChannel,
        bot_user: discord.abc.Snowflake | None,
        *,
        reason: str | None = None,
    ) -> discord.Invite | None:
        """Reuse an invite the bot already created for the channel, or create one."""
        try:
            invites = await channel.invites()
        except discord.HTTPException as e:
            _failed("invite", channel, e)
            invites = []
        if bot_user is not None:
            for invite in invites:
                if invite.inviter is not None and invite.inviter.id == bot_user.id:
                    return invite
        try:
            return await channel.create_invite(temporary=False, reason=reason)
        except discord.HTTPException as e:
            _failed("invite", channel, e)
            return None

    async def clear_messages(self, channel: discord.VoiceChannel) -> ActionOutcome:
        """Delete up to the latest 100 messages of the channel chat."""
        try:
            deleted = await channel.purge(limit=CLEAR_LIMIT)
        except discord.HTTPException as e:
            return _failed("clear", channel, e)
        count = len(deleted)
        if count == 0:
            return ActionOutcome(OutcomeKind.ALREADY, 0)
        return ActionOutcome(OutcomeKind.SUCCESS, count)
