"""
Temp Voice Commands Cog

Slash commands (/setup, /controls, /ping, /languages, /bug-report) and the
"Ban from voice" / "Invite to voice" user context menus.
"""

import discord
from discord import app_commands
from discord.ext import commands

from helpers.discord_reply import respond, send_modal
from helpers.embeds import ERROR, INFO, SUCCESS, WARNING, create_embed, create_feedback_embed
from helpers.modals import BugReportModal
from services.authorization import AuthorizationOptions, resolve_temp_voice_args
from utils.errors import StoreError
from utils.logging import get_logger

logger = get_logger(__name__)

SEND_MESSAGES = discord.Permissions(send_messages=True)


class TempVoiceCommands(commands.Cog):
    """Setup and utility commands for temporary voice channels."""

    def __init__(self, bot: commands.Bot) -> None:
        self.bot = bot
        translator = bot.services.translator
        default_locale = translator.default_locale

        self.ban_menu = app_commands.ContextMenu(
            name=translator.translate(default_locale, "context.user.ban-user.name"),
            callback=self.ban_user_menu,
        )
        self.invite_menu = app_commands.ContextMenu(
            name=translator.translate(default_locale, "context.user.invite-user.name"),
            callback=self.invite_user_menu,
        )
        for menu in (self.ban_menu, self.invite_menu):
            menu.guild_only = True
            self.bot.tree.add_command(menu)

    async def cog_unload(self) -> None:
        self.bot.tree.remove_command(self.ban_menu.name, type=self.ban_menu.type)
        self.bot.tree.remove_command(self.invite_menu.name, type=self.invite_menu.type)

    @property
    def services(self):
        if not hasattr(self.bot, "services") or self.bot.services is None:
            raise RuntimeError("Bot services not initialized")
        return self.bot.services

    @property
    def translator(self):
        return self.services.translator

    def t(self, locale: str, key: str, **params) -> str:
        return self.translator.translate(locale, key, **params)

    async def _reply(
        self,
        interaction: discord.Interaction,
        locale: str,
        kind: str,
        command_key: str,
        content: str,
    ) -> None:
        name = f"/{self.t(locale, f'commands.{command_key}.name')}"
        embed = create_feedback_embed(
            self.translator, locale, kind, name, content, guild=interaction.guild
        )
        await respond(interaction, embed=embed)

    async def _report_unexpected(
        self, interaction: discord.Interaction, what: str, error: Exception
    ) -> None:
        logger.exception(
            "Error in %s", what, exc_info=error, extra={"user_id": interaction.user.id}
        )
        locale = self.translator.locale_for(interaction)
        embed = create_feedback_embed(
            self.translator, locale, ERROR, what, self.t(locale, "errors.action-failed")
        )
        await respond(interaction, embed=embed)

    # ------------------------------------------------------------------
    # /setup
    # ------------------------------------------------------------------

    @app_commands.command(
        name="setup", description="Configure the temporary voice system"
    )
    @app_commands.describe(
        container="Category that will hold temporary channels",
        lobby="Voice channel members join to get their own channel",
    )
    @app_commands.guild_only()
    @app_commands.default_permissions(manage_channels=True)
    async def setup_command(
        self,
        interaction: discord.Interaction,
        container: discord.CategoryChannel,
        lobby: discord.VoiceChannel,
    ) -> None:
        locale = self.translator.locale_for(interaction)
        guild = interaction.guild
        if guild is None:
            return

        me = guild.me
        if me is None or not me.guild_permissions.manage_channels:
            await self._reply(
                interaction,
                locale,
                WARNING,
                "setup",
                self.t(
                    locale,
                    "commands.setup.result.error",
                    error=self.t(locale, "commands.setup.errors.no-perm"),
                ),
            )
            return

        try:
            await self.services.guild_config.set(guild.id, container.id, lobby.id)
        except StoreError as e:
            logger.exception("Failed to store guild config", exc_info=e, extra={"guild_id": guild.id})
            await self._reply(
                interaction,
                locale,
                ERROR,
                "setup",
                self.t(locale, "commands.setup.result.error", error=f"```\n{e}\n```"),
            )
            return

        await self._reply(
            interaction,
            locale,
            SUCCESS,
            "setup",
            self.t(
                locale,
                "commands.setup.result.success",
                container=container.mention,
                lobby=lobby.mention,
            ),
        )

    # ------------------------------------------------------------------
    # /controls
    # ------------------------------------------------------------------

    @app_commands.command(
        name="controls",
        description="Show the controls for your temporary voice channel",
    )
    @app_commands.describe(show="Post the controls in the channel instead of only to you")
    @app_commands.guild_only()
    async def controls_command(
        self, interaction: discord.Interaction, show: bool = False
    ) -> None:
        try:
            await self._controls(interaction, show)
        except Exception as e:
            await self._report_unexpected(interaction, "/controls", e)

    async def _controls(self, interaction: discord.Interaction, show: bool) -> None:
        locale = self.translator.locale_for(interaction)
        command_name = f"/{self.t(locale, 'commands.controls.name')}"
        args = await resolve_temp_voice_args(interaction)
        options = AuthorizationOptions(
            check_management=False,
            check_channel=show,
            bot_permissions=SEND_MESSAGES if show else None,
        )
        if not await self.services.gate.authorize(
            interaction, args, command_name, options, locale
        ):
            return

        if not show:
            embed, view = self.bot.build_controls(locale)
            try:
                await respond(interaction, embed=embed, view=view)
            finally:
                view.stop()
            return

        target = args.channel
        if args.member.guild_permissions.manage_channels and interaction.channel is not None:
            target = interaction.channel
        guild_locale = self.translator.guild_locale(interaction.guild_locale)
        posted = await self.services.tempvoice.post_controls(target, guild_locale)
        if posted:
            await self._reply(
                interaction, locale, SUCCESS, "controls", self.t(locale, "controls.success-message")
            )
        else:
            await self._reply(
                interaction, locale, ERROR, "controls", self.t(locale, "controls.error-message")
            )

    # ------------------------------------------------------------------
    # /ping and /languages
    # ------------------------------------------------------------------

    @app_commands.command(name="ping", description="Check the bot latency")
    async def ping_command(self, interaction: discord.Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        latency_ms = round(self.bot.latency * 1000)
        await self._reply(
            interaction,
            locale,
            SUCCESS,
            "ping",
            self.t(locale, "commands.ping.success", ping=latency_ms),
        )

    @app_commands.command(name="languages", description="List the available languages")
    async def languages_command(self, interaction: discord.Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        languages = "\n".join(
            f"`{name}` {self.t(name, 'lang.named')}" for name in self.translator.locales
        )
        await self._reply(
            interaction,
            locale,
            INFO,
            "languages",
            self.t(locale, "commands.languages.success", languages=languages),
        )

    # ------------------------------------------------------------------
    # /bug-report
    # ------------------------------------------------------------------

    def _bug_report_channel(self) -> discord.abc.Messageable | None:
        channel_id = self.services.settings.bug_report_channel_id
        if channel_id is None:
            return None
        channel = self.bot.get_channel(channel_id)
        if channel is None or not isinstance(channel, discord.abc.Messageable):
            return None
        return channel

    @app_commands.command(name="bug-report", description="Report a bug to the developers")
    @app_commands.guild_only()
    async def bug_report_command(self, interaction: discord.Interaction) -> None:
        locale = self.translator.locale_for(interaction)
        report_channel = self._bug_report_channel()
        if report_channel is None:
            await self._reply(
                interaction, locale, ERROR, "bug-report", self.t(locale, "commands.bug-report.error")
            )
            return

        modal = BugReportModal(
            title=self.t(locale, "commands.bug-report.modal-title"),
            custom_id=f"bug-report-{interaction.user.id}",
            topic_label=self.t(locale, "commands.bug-report.topic"),
            description_label=self.t(locale, "commands.bug-report.description-2"),
            timeout=self.services.settings.bug_report_timeout,
        )
        if not await send_modal(interaction, modal):
            return
        if await modal.wait() or modal.submission is None:
            return

        submission = modal.submission
        report = create_embed(
            WARNING,
            modal.description.value,
            f"🐞 {modal.topic.value}",
            guild=interaction.guild,
        )
        report.add_field(name="User", value=f"{interaction.user} ({interaction.user.id})")
        if interaction.guild is not None:
            report.add_field(
                name="Guild", value=f"{interaction.guild.name} ({interaction.guild.id})"
            )
        try:
            await report_channel.send(embed=report)
        except discord.HTTPException as e:
            logger.warning("Failed to deliver bug report: %s", e)
            await self._reply(
                submission, locale, ERROR, "bug-report", self.t(locale, "commands.bug-report.error")
            )
            return

        logger.info("Bug report submitted", extra={"user_id": interaction.user.id})
        await self._reply(
            submission, locale, SUCCESS, "bug-report", self.t(locale, "commands.bug-report.success")
        )

    # ------------------------------------------------------------------
    # Context menus
    # ------------------------------------------------------------------

    async def ban_user_menu(
        self, interaction: discord.Interaction, member: discord.Member
    ) -> None:
        try:
            await self.bot.tempvoice_handlers.ban_user(interaction, member)
        except Exception as e:
            await self._report_unexpected(interaction, "ban-user", e)

    async def invite_user_menu(
        self, interaction: discord.Interaction, member: discord.Member
    ) -> None:
        try:
            await self.bot.tempvoice_handlers.invite_user(interaction, member)
        except Exception as e:
            await self._report_unexpected(interaction, "invite-user", e)


async def setup(bot: commands.Bot) -> None:
    """Set up the Temp Voice Commands cog."""
    await bot.add_cog(TempVoiceCommands(bot))
