import asyncio
import sys

import discord
from discord.ext import commands
from dotenv import load_dotenv

from config.config_loader import BotSettings, ConfigLoader
from helpers.embeds import create_controls_embed
from helpers.views import ControlPanelView
from utils.logging import get_logger, setup_logging

# Initialize logger
logger = get_logger(__name__)

# List of initial extensions to load
initial_extensions = [
    "cogs.tempvoice.events",
    "cogs.tempvoice.commands",
]


def build_intents() -> discord.Intents:
    """Start from none and enable only what the temp voice system needs."""
    intents = discord.Intents.none()
    intents.guilds = True  # Guild events, channels, roles
    intents.members = True  # Resolve invoking members and select targets
    intents.voice_states = True  # Lobby joins and channel departures
    intents.presences = True  # Activities used for channel names
    return intents


class TempVoiceBot(commands.Bot):
    """Bot wiring settings, services, cogs and the persistent control panel."""

    def __init__(self, settings: BotSettings, *args, **kwargs) -> None:
        kwargs.setdefault("command_prefix", commands.when_mentioned)
        kwargs.setdefault("intents", build_intents())
        super().__init__(*args, **kwargs)
        self.settings = settings
        self.services = None
        self.tempvoice_handlers = None
        self.dispatch_table: dict = {}

    def build_controls(self, locale: str) -> tuple[discord.Embed, ControlPanelView]:
        """Control panel embed and view for ``locale``."""
        translator = self.services.translator
        embed = create_controls_embed(translator, locale, self.dispatch_table)
        view = ControlPanelView(self.dispatch_table, translator, locale)
        return embed, view

    async def setup_hook(self) -> None:
        """Initialize services, load cogs, register the control panel and sync commands."""
        from cogs.tempvoice.handlers import TempVoiceHandlers, build_dispatch_table
        from services.service_container import ServiceContainer

        self.services = ServiceContainer(self.settings)
        await self.services.initialize()
        logger.info("ServiceContainer initialized")

        self.tempvoice_handlers = TempVoiceHandlers(
            self,
            self.settings,
            self.services.gate,
            self.services.actions,
            self.services.translator,
        )
        self.dispatch_table = build_dispatch_table(self.tempvoice_handlers)
        self.services.tempvoice.set_controls_factory(self.build_controls)

        for ext in initial_extensions:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except commands.ExtensionError as e:
                logger.exception("Failed to load extension %s", ext, exc_info=e)
                raise

        # Persistent views must be registered on every startup
        self.add_view(
            ControlPanelView(
                self.dispatch_table, self.services.translator, self.settings.default_locale
            )
        )

        try:
            await self.tree.sync()
            logger.info("All commands synced globally.")
        except discord.HTTPException as e:
            logger.exception("Failed to sync commands", exc_info=e)

        for command in self.tree.walk_commands():
            logger.info("- Command: %s", command.name)

    async def on_ready(self) -> None:
        if not self.user:
            logger.warning("Bot user is not initialized")
            return
        logger.info("Logged in as %s (ID: %s)", self.user, self.user.id)
        for guild in self.guilds:
            self.check_bot_permissions(guild)
            try:
                await self.services.tempvoice.reconcile_guild(guild)
            except Exception as e:
                logger.exception(
                    "Failed to reconcile temp channels", exc_info=e, extra={"guild_id": guild.id}
                )
        logger.info("Service health: %s", await self.services.health_check())

    def check_bot_permissions(self, guild: discord.Guild) -> None:
        """Log guild-level permissions the temp voice system relies on."""
        required_permissions = [
            "manage_channels",
            "manage_roles",
            "move_members",
            "create_instant_invite",
            "manage_messages",
            "send_messages",
            "embed_links",
        ]
        if not guild.me:
            return
        if missing := [
            perm
            for perm in required_permissions
            if not getattr(guild.me.guild_permissions, perm, False)
        ]:
            logger.warning(
                "Missing permissions in guild '%s': %s",
                guild.name,
                ", ".join(missing),
                extra={"guild_id": guild.id},
            )

    async def close(self) -> None:
        """Tear down services, then the gateway connection."""
        logger.info("Shutting down the bot.")
        if self.services is not None:
            try:
                await self.services.cleanup()
            except Exception as e:
                logger.exception("Error cleaning up services", exc_info=e)
        await super().close()


def main() -> int:
    load_dotenv()
    config = ConfigLoader.load_config()
    settings = BotSettings.from_env(config)
    setup_logging(level=settings.log_level)

    if not settings.token:
        logger.critical("DISCORD_TOKEN not found in environment variables.")
        return 1

    async def runner() -> None:
        async with TempVoiceBot(settings) as bot:
            await bot.start(settings.token)

    try:
        asyncio.run(runner())
    except KeyboardInterrupt:
        logger.info("Interrupted; shutting down")
    return 0


if __name__ == "__main__":
    sys.exit(main())
