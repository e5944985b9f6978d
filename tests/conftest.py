import sys
from pathlib import Path

import pytest
import pytest_asyncio

# Ensure project root is on sys.path for CI environments where
# Python might not automatically include it.
PROJECT_ROOT = Path(__file__).parent.parent.resolve()
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from config.config_loader import PRODUCTION, BotSettings, ConfigLoader
from helpers.translations import Translator
from services.authorization import AuthorizationGate
from services.channel_actions import ChannelActions
from services.guild_config import GuildConfigStore
from services.ownership import OwnershipStore
from services.store import MemoryStore
from services.tempvoice_service import TempVoiceService
from tests.factories import (
    CONTAINER_ID,
    GUILD_ID,
    LOBBY_ID,
    FakeCategory,
    make_guild,
    make_voice_channel,
)


@pytest.fixture(autouse=True)
def reset_config_loader():
    """ConfigLoader caches at class level; isolate every test."""
    ConfigLoader.reset()
    yield
    ConfigLoader.reset()


@pytest.fixture
def settings() -> BotSettings:
    return BotSettings(token="test-token")


@pytest.fixture
def production_settings() -> BotSettings:
    return BotSettings(token="test-token", environment=PRODUCTION)


@pytest.fixture
def translator() -> Translator:
    return Translator()


@pytest_asyncio.fixture
async def store():
    store = MemoryStore()
    await store.connect()
    yield store
    await store.close()


@pytest.fixture
def ownership(store, settings) -> OwnershipStore:
    return OwnershipStore(store, settings.owner_record_ttl)


@pytest.fixture
def guild_config(store) -> GuildConfigStore:
    return GuildConfigStore(store)


@pytest.fixture
def gate(ownership, translator, settings) -> AuthorizationGate:
    return AuthorizationGate(ownership, translator, settings)


@pytest.fixture
def actions() -> ChannelActions:
    return ChannelActions()


@pytest_asyncio.fixture
async def tempvoice(settings, ownership, guild_config, translator):
    service = TempVoiceService(settings, ownership, guild_config, translator)
    await service.initialize()
    yield service
    await service.shutdown()


@pytest.fixture
def guild():
    """Guild with a container category and a lobby voice channel."""
    guild = make_guild(guild_id=GUILD_ID)
    guild.channels.append(FakeCategory(CONTAINER_ID, guild=guild))
    make_voice_channel(LOBBY_ID, name="➕ Join to create", guild=guild)
    return guild


@pytest_asyncio.fixture
async def configured_guild(guild, guild_config):
    await guild_config.set(guild.id, CONTAINER_ID, LOBBY_ID)
    return guild
