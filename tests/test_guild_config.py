"""
Tests for the per-guild container/lobby configuration.
"""

from unittest.mock import AsyncMock

import pytest

from services.guild_config import GuildConfigStore, container_key, lobby_key
from utils.errors import StoreError
from utils.types import GuildVoiceConfig


class TestGuildConfigStore:
    @pytest.mark.asyncio
    async def test_unconfigured_guild_returns_none(self, guild_config):
        assert await guild_config.get(1) is None

    @pytest.mark.asyncio
    async def test_set_then_get(self, guild_config, store):
        config = await guild_config.set(1, 100, 200)

        assert config == GuildVoiceConfig(guild_id=1, container_id=100, lobby_id=200)
        assert await guild_config.get(1) == config
        assert await store.get(container_key(1)) == "100"
        assert await store.get(lobby_key(1)) == "200"

    @pytest.mark.asyncio
    async def test_partial_config_is_treated_as_missing(self, guild_config, store):
        await store.set(container_key(1), "100")
        assert await guild_config.get(1) is None

    @pytest.mark.asyncio
    async def test_set_only_writes_changed_values(self):
        backend = AsyncMock()
        backend.get.side_effect = lambda key: {
            container_key(1): "100",
            lobby_key(1): "200",
        }.get(key)
        config_store = GuildConfigStore(backend)

        await config_store.set(1, 100, 300)

        backend.set.assert_awaited_once_with(lobby_key(1), "300")

    @pytest.mark.asyncio
    async def test_clear(self, guild_config):
        await guild_config.set(1, 100, 200)
        await guild_config.clear(1)
        assert await guild_config.get(1) is None

    @pytest.mark.asyncio
    async def test_read_failure_means_not_configured(self):
        backend = AsyncMock()
        backend.get.side_effect = StoreError("down")
        assert await GuildConfigStore(backend).get(1) is None

    @pytest.mark.asyncio
    async def test_write_failure_propagates(self):
        backend = AsyncMock()
        backend.get.return_value = None
        backend.set.side_effect = StoreError("down")
        with pytest.raises(StoreError):
            await GuildConfigStore(backend).set(1, 100, 200)
