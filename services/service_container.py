"""
Service Container

Central registry for the bot's services. Built once in ``setup_hook`` from
explicit settings and torn down in ``close``.
"""

from typing import Any

from config.config_loader import BotSettings
from helpers.translations import Translator
from utils.logging import get_logger

from .authorization import AuthorizationGate
from .channel_actions import ChannelActions
from .guild_config import GuildConfigStore
from .ownership import OwnershipStore
from .store import KeyValueStore, create_store
from .tempvoice_service import TempVoiceService


class ServiceContainer:
    """
    Owns the store and every service built on top of it.

    Properties raise RuntimeError until ``initialize`` has run.
    """

    def __init__(
        self,
        settings: BotSettings,
        store: KeyValueStore | None = None,
        translator: Translator | None = None,
    ) -> None:
        self.logger = get_logger("services.container")
        self.settings = settings
        self.translator = translator or Translator(default_locale=settings.default_locale)
        self._store = store
        self._ownership: OwnershipStore | None = None
        self._guild_config: GuildConfigStore | None = None
        self._tempvoice: TempVoiceService | None = None
        self._gate: AuthorizationGate | None = None
        self._actions: ChannelActions | None = None
        self._initialized = False

    @property
    def store(self) -> KeyValueStore:
        if self._store is None:
            raise RuntimeError("Store not initialized")
        return self._store

    @property
    def ownership(self) -> OwnershipStore:
        if self._ownership is None:
            raise RuntimeError("OwnershipStore not initialized")
        return self._ownership

    @property
    def guild_config(self) -> GuildConfigStore:
        if self._guild_config is None:
            raise RuntimeError("GuildConfigStore not initialized")
        return self._guild_config

    @property
    def tempvoice(self) -> TempVoiceService:
        if self._tempvoice is None:
            raise RuntimeError("TempVoiceService not initialized")
        return self._tempvoice

    @property
    def gate(self) -> AuthorizationGate:
        if self._gate is None:
            raise RuntimeError("AuthorizationGate not initialized")
        return self._gate

    @property
    def actions(self) -> ChannelActions:
        if self._actions is None:
            raise RuntimeError("ChannelActions not initialized")
        return self._actions

    async def initialize(self) -> None:
        """Connect the store and build services in dependency order."""
        if self._initialized:
            self.logger.warning("ServiceContainer already initialized")
            return

        self.logger.info("Initializing services")
        if self._store is None:
            self._store = create_store(self.settings)
        if not self._store.connected:
            await self._store.connect()

        self._ownership = OwnershipStore(self._store, self.settings.owner_record_ttl)
        self._guild_config = GuildConfigStore(self._store)
        self._gate = AuthorizationGate(self._ownership, self.translator, self.settings)
        self._actions = ChannelActions()

        self._tempvoice = TempVoiceService(
            self.settings, self._ownership, self._guild_config, self.translator
        )
        try:
            await self._tempvoice.initialize()
        except Exception as e:
            self.logger.exception("Failed to initialize services", exc_info=e)
            await self._store.close()
            raise

        self._initialized = True
        self.logger.info("All services initialized successfully")

    async def cleanup(self) -> None:
        """Shut services down in reverse order and close the store."""
        if not self._initialized:
            return

        self.logger.info("Cleaning up services")
        if self._tempvoice:
            await self._tempvoice.shutdown()
            self._tempvoice = None
        self._gate = None
        self._actions = None
        self._ownership = None
        self._guild_config = None
        if self._store is not None:
            await self._store.close()

        self._initialized = False
        self.logger.info("Services cleaned up")

    async def health_check(self) -> dict[str, Any]:
        services = []
        if self._tempvoice:
            services.append(await self._tempvoice.health_check())
        return {
            "initialized": self._initialized,
            "store": {
                "backend": self._store.backend if self._store else None,
                "connected": bool(self._store and self._store.connected),
            },
            "services": services,
        }
