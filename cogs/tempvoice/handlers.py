"""
Interaction handlers for the temp voice controls.

Every handler follows the same path: resolve the acting member and channel,
run the authorization gate, collect input when the action needs it, apply one
channel mutation and reply with an ephemeral embed.
"""

from collections.abc import Awaitable, Callable

import discord
from discord import Interaction

from config.config_loader import BotSettings
from helpers.discord_reply import dm_user, respond, send_modal
from helpers.embeds import (
    ERROR,
    INFO,
    SUCCESS,
    WARNING,
    create_feedback_embed,
    format_member_results,
)
from helpers.modals import ValueModal
from helpers.translations import Translator
from helpers.views import MemberSelectView
from services.authorization import (
    AuthorizationGate,
    AuthorizationOptions,
    resolve_temp_voice_args,
)
from services.channel_actions import (
    BITRATE_MAX_KBPS,
    CONTROL_ACTIONS,
    MAX_SELECTED_MEMBERS,
    NAME_MAX_LENGTH,
    NAME_MIN_LENGTH,
    STATUS_MAX_LENGTH,
    ChannelActions,
    current_bitrate_kbps,
)
from utils.logging import get_logger
from utils.types import ActionOutcome, OutcomeKind, TempVoiceArgs

logger = get_logger(__name__)

Handler = Callable[[Interaction], Awaitable[None]]

MANAGE_CHANNELS = discord.Permissions(manage_channels=True)
LOCK_PERMISSIONS = discord.Permissions(manage_channels=True, manage_roles=True)
MOVE_MEMBERS = discord.Permissions(move_members=True)
BAN_PERMISSIONS = discord.Permissions(manage_channels=True, move_members=True)
CREATE_INVITE = discord.Permissions(create_instant_invite=True)
MANAGE_MESSAGES = discord.Permissions(manage_messages=True)

_OUTCOME_KEYS = {
    OutcomeKind.SUCCESS: (SUCCESS, "success"),
    OutcomeKind.ALREADY: (WARNING, "already"),
    OutcomeKind.WRONG_INPUT: (WARNING, "wrong-input"),
}


def _reason(action: str, member: discord.Member) -> str:
    return f"TempVoice | {action} requested by [user {member.name}]"


class TempVoiceHandlers:
    """Handlers for the control panel buttons and the user context menus."""

    def __init__(
        self,
        bot: discord.Client,
        settings: BotSettings,
        gate: AuthorizationGate,
        actions: ChannelActions,
        translator: Translator,
    ) -> None:
        self.bot = bot
        self.settings = settings
        self.gate = gate
        self.actions = actions
        self.translator = translator

    # ------------------------------------------------------------------
    # Shared steps
    # ------------------------------------------------------------------

    def t(self, locale: str, key: str, **params) -> str:
        return self.translator.translate(locale, key, **params)

    async def _authorize(
        self,
        interaction: Interaction,
        action_name: str,
        locale: str,
        *,
        bot_permissions: discord.Permissions | None = None,
        target: discord.Member | None = None,
        owner_only: bool = False,
    ) -> TempVoiceArgs | None:
        args = await resolve_temp_voice_args(interaction)
        options = AuthorizationOptions(
            bot_permissions=bot_permissions, target=target, owner_only=owner_only
        )
        if not await self.gate.authorize(interaction, args, action_name, options, locale):
            return None
        return args

    async def _reply(
        self,
        interaction: Interaction,
        locale: str,
        kind: str,
        action_name: str,
        content: str,
        view: discord.ui.View | None = None,
    ) -> None:
        embed = create_feedback_embed(
            self.translator, locale, kind, action_name, content, guild=interaction.guild
        )
        await respond(interaction, embed=embed, view=view)

    async def _reply_outcome(
        self,
        interaction: Interaction,
        locale: str,
        action: str,
        outcome: ActionOutcome,
        **params,
    ) -> None:
        action_name = self.t(locale, f"buttons.{action}.name")
        if outcome.kind is OutcomeKind.FAILED:
            await self._reply(
                interaction, locale, ERROR, action_name, self.t(locale, "errors.action-failed")
            )
            return
        kind, suffix = _OUTCOME_KEYS[outcome.kind]
        content = self.t(locale, f"buttons.{action}.{suffix}", **params)
        await self._reply(interaction, locale, kind, action_name, content)

    async def _prompt(
        self, interaction: Interaction, modal: ValueModal
    ) -> Interaction | None:
        """Open ``modal`` and wait for it; None when it was never submitted."""
        if not await send_modal(interaction, modal):
            return None
        timed_out = await modal.wait()
        if timed_out or modal.submission is None:
            logger.debug(
                "Modal %s abandoned", modal.custom_id, extra={"user_id": interaction.user.id}
            )
            return None
        return modal.submission

    async def _pick_members(
        self,
        interaction: Interaction,
        locale: str,
        action: str,
        member: discord.Member,
    ) -> tuple[Interaction, list[discord.Member | discord.User]] | None:
        view = MemberSelectView(
            owner_id=member.id,
            custom_id=f"select-{action}-{member.id}",
            max_values=MAX_SELECTED_MEMBERS,
            timeout=self.settings.interaction_timeout,
        )
        await self._reply(
            interaction,
            locale,
            INFO,
            self.t(locale, f"buttons.{action}.name"),
            self.t(locale, f"buttons.{action}.select"),
            view=view,
        )
        timed_out = await view.wait()
        if timed_out or view.submission is None:
            logger.debug(
                "Member picker for %s abandoned", action, extra={"user_id": member.id}
            )
            return None
        return view.submission, view.selected

    async def _resolve_members(
        self,
        guild: discord.Guild,
        users: list[discord.Member | discord.User],
    ) -> tuple[list[discord.Member], list[str]]:
        """Guild members for the picked users, plus display names of those not found."""
        members: list[discord.Member] = []
        unresolved: list[str] = []
        for user in users[:MAX_SELECTED_MEMBERS]:
            member = guild.get_member(user.id)
            if member is None:
                try:
                    member = await guild.fetch_member(user.id)
                except discord.HTTPException as e:
                    logger.info(
                        "Picked user %s is not a guild member: %s",
                        user.id,
                        e,
                        extra={"guild_id": guild.id},
                    )
                    unresolved.append(user.display_name)
                    continue
            members.append(member)
        return members, unresolved

    def _value_modal(
        self,
        locale: str,
        action: str,
        member: discord.Member,
        *,
        min_length: int,
        max_length: int,
        default: str | None,
        required: bool = True,
    ) -> ValueModal:
        return ValueModal(
            title=self.t(locale, f"buttons.{action}.modal.title"),
            custom_id=f"modal-{action}-{member.id}",
            field_id=f"new-{action}",
            label=self.t(locale, f"buttons.{action}.modal.label"),
            min_length=min_length,
            max_length=max_length,
            default=default,
            required=required,
            timeout=self.settings.interaction_timeout,
        )

    # ------------------------------------------------------------------
    # Control panel buttons
    # ------------------------------------------------------------------

    async def rename(self, interaction: Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        args = await self._authorize(
            interaction,
            self.t(locale, "buttons.rename.name"),
            locale,
            bot_permissions=MANAGE_CHANNELS,
        )
        if args is None:
            return
        modal = self._value_modal(
            locale,
            "rename",
            args.member,
            min_length=NAME_MIN_LENGTH,
            max_length=NAME_MAX_LENGTH,
            default=args.channel.name,
        )
        submission = await self._prompt(interaction, modal)
        if submission is None:
            return
        outcome = await self.actions.rename(
            args.channel, modal.value, reason=_reason("rename", args.member)
        )
        await self._reply_outcome(submission, locale, "rename", outcome, name=outcome.value)

    async def limit(self, interaction: Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        args = await self._authorize(
            interaction,
            self.t(locale, "buttons.limit.name"),
            locale,
            bot_permissions=MANAGE_CHANNELS,
        )
        if args is None:
            return
        modal = self._value_modal(
            locale,
            "limit",
            args.member,
            min_length=1,
            max_length=2,
            default=str(args.channel.user_limit),
        )
        submission = await self._prompt(interaction, modal)
        if submission is None:
            return
        outcome = await self.actions.set_user_limit(
            args.channel, modal.value, reason=_reason("limit", args.member)
        )
        await self._reply_outcome(submission, locale, "limit", outcome, limit=outcome.value)

    async def bitrate(self, interaction: Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        args = await self._authorize(
            interaction,
            self.t(locale, "buttons.bitrate.name"),
            locale,
            bot_permissions=MANAGE_CHANNELS,
        )
        if args is None:
            return
        modal = self._value_modal(
            locale,
            "bitrate",
            args.member,
            min_length=1,
            max_length=len(str(BITRATE_MAX_KBPS)),
            default=str(current_bitrate_kbps(args.channel)),
        )
        submission = await self._prompt(interaction, modal)
        if submission is None:
            return
        outcome = await self.actions.set_bitrate(
            args.channel, modal.value, reason=_reason("bitrate", args.member)
        )
        await self._reply_outcome(
            submission, locale, "bitrate", outcome, bitrate=outcome.value
        )

    async def nsfw(self, interaction: Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        action_name = self.t(locale, "buttons.nsfw.name")
        args = await self._authorize(
            interaction, action_name, locale, bot_permissions=MANAGE_CHANNELS
        )
        if args is None:
            return
        outcome = await self.actions.toggle_nsfw(
            args.channel, reason=_reason("nsfw", args.member)
        )
        if not outcome.success:
            await self._reply_outcome(interaction, locale, "nsfw", outcome)
            return
        key = "buttons.nsfw.activated" if outcome.value else "buttons.nsfw.deactivated"
        await self._reply(interaction, locale, SUCCESS, action_name, self.t(locale, key))

    async def status(self, interaction: Interaction) -> None:
        """Collects a status but does not apply it; the feature is not available yet."""
        locale = self.translator.locale_for(interaction)
        action_name = self.t(locale, "buttons.status.name")
        args = await self._authorize(
            interaction, action_name, locale, bot_permissions=MANAGE_CHANNELS
        )
        if args is None:
            return
        modal = self._value_modal(
            locale,
            "status",
            args.member,
            min_length=0,
            max_length=STATUS_MAX_LENGTH,
            default=None,
            required=False,
        )
        submission = await self._prompt(interaction, modal)
        if submission is None:
            return
        await self._reply(
            submission, locale, WARNING, action_name, self.t(locale, "buttons.status.success")
        )

    async def kick(self, interaction: Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        action_name = self.t(locale, "buttons.kick.name")
        args = await self._authorize(
            interaction, action_name, locale, bot_permissions=MOVE_MEMBERS
        )
        if args is None:
            return
        picked = await self._pick_members(interaction, locale, "kick", args.member)
        if picked is None:
            return
        submission, users = picked
        members, unresolved = await self._resolve_members(args.member.guild, users)
        kicked, skipped = await self.actions.disconnect_members(
            args.channel, members, reason=_reason("kick", args.member)
        )
        skipped.extend(unresolved)
        logger.info(
            "Kicked %d member(s), skipped %d",
            len(kicked),
            len(skipped),
            extra={"channel_id": args.channel.id, "user_id": args.member.id},
        )
        await self._reply(
            submission,
            locale,
            SUCCESS,
            self.t(locale, "buttons.kick.result"),
            format_member_results(kicked, skipped),
        )

    async def invite(self, interaction: Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        action_name = self.t(locale, "buttons.invite.name")
        args = await self._authorize(
            interaction, action_name, locale, bot_permissions=CREATE_INVITE
        )
        if args is None:
            return
        invite = await self.actions.get_or_create_invite(
            args.channel, self.bot.user, reason=_reason("invite", args.member)
        )
        if invite is None:
            await self._reply(
                interaction, locale, ERROR, action_name, self.t(locale, "buttons.invite.no-invite")
            )
            return
        picked = await self._pick_members(interaction, locale, "invite", args.member)
        if picked is None:
            return
        submission, users = picked
        members, unresolved = await self._resolve_members(args.member.guild, users)
        message = self.t(
            locale,
            "buttons.invite.message",
            inviter=args.member.display_name,
            channel=args.channel.name,
            url=invite.url,
        )
        sent: list[str] = []
        failed: list[str] = []
        for member in members[:MAX_SELECTED_MEMBERS]:
            if await dm_user(member, message):
                sent.append(member.display_name)
            else:
                failed.append(member.display_name)
        failed.extend(unresolved)
        await self._reply(
            submission,
            locale,
            SUCCESS,
            self.t(locale, "buttons.invite.result"),
            format_member_results(sent, failed),
        )

    async def clear(self, interaction: Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        action_name = self.t(locale, "buttons.clear.name")
        args = await self._authorize(
            interaction, action_name, locale, bot_permissions=MANAGE_MESSAGES
        )
        if args is None:
            return
        outcome = await self.actions.clear_messages(args.channel)
        if outcome.kind is OutcomeKind.ALREADY:
            await self._reply(
                interaction, locale, WARNING, action_name, self.t(locale, "buttons.clear.nothing")
            )
            return
        await self._reply_outcome(interaction, locale, "clear", outcome, count=outcome.value)

    async def lock(self, interaction: Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        args = await self._authorize(
            interaction,
            self.t(locale, "buttons.lock.name"),
            locale,
            bot_permissions=LOCK_PERMISSIONS,
        )
        if args is None:
            return
        outcome = await self.actions.lock(args.channel, reason=_reason("lock", args.member))
        await self._reply_outcome(interaction, locale, "lock", outcome)

    # ------------------------------------------------------------------
    # User context menus
    # ------------------------------------------------------------------

    async def ban_user(self, interaction: Interaction, target: discord.Member) -> None:
        locale = self.translator.locale_for(interaction)
        action_name = self.t(locale, "context.user.ban-user.name")
        args = await self._authorize(
            interaction,
            action_name,
            locale,
            bot_permissions=BAN_PERMISSIONS,
            target=target,
        )
        if args is None:
            return
        outcome = await self.actions.ban(
            args.channel, target, reason=_reason("ban", args.member)
        )
        if outcome.kind is OutcomeKind.FAILED:
            await self._reply(
                interaction, locale, ERROR, action_name, self.t(locale, "errors.action-failed")
            )
            return
        await self._reply(
            interaction,
            locale,
            SUCCESS,
            action_name,
            self.t(locale, "context.user.ban-user.success", member=target.mention),
        )

    async def invite_user(self, interaction: Interaction, target: discord.Member) -> None:
        locale = self.translator.locale_for(interaction)
        action_name = self.t(locale, "context.user.invite-user.name")
        args = await self._authorize(
            interaction, action_name, locale, bot_permissions=MOVE_MEMBERS
        )
        if args is None:
            return
        invite = await self.actions.get_or_create_invite(
            args.channel, self.bot.user, reason=_reason("invite", args.member)
        )
        if invite is None:
            await self._reply(
                interaction, locale, ERROR, action_name, self.t(locale, "buttons.invite.no-invite")
            )
            return
        message = self.t(
            locale,
            "buttons.invite.message",
            inviter=args.member.display_name,
            channel=args.channel.name,
            url=invite.url,
        )
        if await dm_user(target, message):
            await self._reply(
                interaction,
                locale,
                SUCCESS,
                action_name,
                self.t(locale, "context.user.invite-user.success", member=target.mention),
            )
            return
        await self._reply(
            interaction,
            locale,
            WARNING,
            action_name,
            self.t(
                locale,
                "context.user.invite-user.dm-failed",
                member=target.mention,
                url=invite.url,
            ),
        )


def build_dispatch_table(handlers: TempVoiceHandlers) -> dict[str, Handler]:
    """Map each control panel action to its handler, in button order."""
    return {action: getattr(handlers, action) for action in CONTROL_ACTIONS}
