"""
Tests for the temp voice lifecycle: provisioning on lobby join and teardown
once a temp channel empties.
"""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from helpers.views import ControlPanelView
from services.tempvoice_service import TempVoiceService, derive_channel_name
from tests.factories import (
    CONTAINER_ID,
    LOBBY_ID,
    FakeGuild,
    http_error,
    make_activity,
    make_member,
    make_voice_channel,
)
from utils.errors import ServiceError


def join_lobby(guild, member):
    lobby = guild.get_channel(LOBBY_ID)
    lobby.add_member(member)
    return lobby


async def provision(tempvoice, guild, member):
    lobby = join_lobby(guild, member)
    await tempvoice.handle_voice_state_change(member, None, lobby)
    return guild.created_channels[-1] if guild.created_channels else None


async def leave(tempvoice, member):
    channel = member.voice.channel
    await member.move_to(None)
    await tempvoice.handle_voice_state_change(member, channel, None)
    return channel


class TestDeriveChannelName:
    def test_display_name_without_activity(self):
        member = make_member(name="alice", display_name="Alice")
        assert derive_channel_name(member) == "Alice"

    def test_playing_wins_over_listening_and_watching(self):
        member = make_member(
            activities=[
                make_activity(discord.ActivityType.watching, "A Show"),
                make_activity(discord.ActivityType.listening, "Spotify"),
                make_activity(discord.ActivityType.playing, "Minecraft"),
            ]
        )
        assert derive_channel_name(member) == "🎮 Minecraft"

    def test_listening_then_watching(self):
        member = make_member(
            activities=[
                make_activity(discord.ActivityType.watching, "A Show"),
                make_activity(discord.ActivityType.listening, "Spotify"),
            ]
        )
        assert derive_channel_name(member) == "🎵 Spotify"

        member = make_member(activities=[make_activity(discord.ActivityType.watching, "A Show")])
        assert derive_channel_name(member) == "📺 A Show"

    def test_other_activities_ignored(self):
        member = make_member(
            display_name="Alice",
            activities=[make_activity(discord.ActivityType.custom, "Busy")],
        )
        assert derive_channel_name(member) == "Alice"

    def test_truncated_to_channel_name_limit(self):
        member = make_member(display_name="x" * 150)
        assert len(derive_channel_name(member)) == 100


class TestProvisioning:
    @pytest.mark.asyncio
    async def test_lobby_join_creates_owned_channel(self, tempvoice, configured_guild, ownership):
        member = make_member(user_id=42, display_name="Alice", guild=configured_guild)

        channel = await provision(tempvoice, configured_guild, member)

        assert channel is not None
        assert channel.name == "Alice"
        assert channel.category_id == CONTAINER_ID
        assert await ownership.get_owner(configured_guild.id, channel.id) == "42"
        assert member.voice.channel is channel
        assert member not in configured_guild.get_channel(LOBBY_ID).members

    @pytest.mark.asyncio
    async def test_exactly_one_owner_record_per_channel(self, tempvoice, configured_guild, store):
        first = make_member(user_id=42, guild=configured_guild)
        second = make_member(user_id=43, guild=configured_guild)

        one = await provision(tempvoice, configured_guild, first)
        two = await provision(tempvoice, configured_guild, second)

        assert one.id != two.id
        assert await store.get(f"tvc.{configured_guild.id}.{one.id}") == "42"
        assert await store.get(f"tvc.{configured_guild.id}.{two.id}") == "43"

    @pytest.mark.asyncio
    async def test_unconfigured_guild_is_ignored(self, tempvoice, guild, ownership):
        member = make_member(guild=guild)
        await provision(tempvoice, guild, member)
        assert guild.created_channels == []

    @pytest.mark.asyncio
    async def test_missing_manage_channels_is_ignored(self, tempvoice, guild_config):
        guild = FakeGuild(guild_id=77, bot_permissions=discord.Permissions.none())
        make_voice_channel(LOBBY_ID, guild=guild)
        await guild_config.set(guild.id, CONTAINER_ID, LOBBY_ID)
        member = make_member(guild=guild)

        await provision(tempvoice, guild, member)

        assert guild.created_channels == []

    @pytest.mark.asyncio
    async def test_missing_container_aborts(self, tempvoice, guild_config, guild):
        await guild_config.set(guild.id, 999, LOBBY_ID)
        member = make_member(guild=guild)

        await provision(tempvoice, guild, member)

        assert guild.created_channels == []

    @pytest.mark.asyncio
    async def test_non_lobby_join_does_nothing(self, tempvoice, configured_guild):
        other = make_voice_channel(7777, guild=configured_guild)
        member = make_member(guild=configured_guild)
        other.add_member(member)

        await tempvoice.handle_voice_state_change(member, None, other)

        assert configured_guild.created_channels == []

    @pytest.mark.asyncio
    async def test_create_failure_leaves_no_record(self, tempvoice, configured_guild, store):
        configured_guild.create_error = http_error(discord.Forbidden, "Missing Access")
        member = make_member(guild=configured_guild)

        await provision(tempvoice, configured_guild, member)

        assert await store.keys("tvc.*") == []

    @pytest.mark.asyncio
    async def test_move_failure_removes_channel_and_record(self, tempvoice, configured_guild, store):
        member = make_member(guild=configured_guild)
        member.move_error = http_error(message="Target user is not connected to voice.")

        channel = await provision(tempvoice, configured_guild, member)

        assert channel.deleted is True
        assert await store.keys("tvc.*") == []

    @pytest.mark.asyncio
    async def test_none_member_is_ignored(self, tempvoice):
        await tempvoice.handle_voice_state_change(None, None, None)

    @pytest.mark.asyncio
    async def test_control_panel_posted_in_new_channel(self, tempvoice, configured_guild):
        embed = discord.Embed(title="controls")
        view = MagicMock(spec=discord.ui.View)
        factory = MagicMock(return_value=(embed, view))
        tempvoice.set_controls_factory(factory)
        member = make_member(guild=configured_guild)

        channel = await provision(tempvoice, configured_guild, member)
        await asyncio.sleep(0)
        await asyncio.sleep(0)

        factory.assert_called_once_with("en-us")
        assert channel._sent_messages == [{"content": None, "embed": embed, "view": view}]


class TestTeardown:
    @pytest.mark.asyncio
    async def test_last_member_leaving_deletes_channel(self, tempvoice, configured_guild, ownership):
        member = make_member(guild=configured_guild)
        channel = await provision(tempvoice, configured_guild, member)

        await leave(tempvoice, member)

        assert channel.deleted is True
        assert await ownership.get_owner(configured_guild.id, channel.id) is None

    @pytest.mark.asyncio
    async def test_channel_with_members_left_is_kept(self, tempvoice, configured_guild, ownership):
        owner = make_member(user_id=1001, guild=configured_guild)
        guest = make_member(user_id=1002, guild=configured_guild)
        channel = await provision(tempvoice, configured_guild, owner)
        await guest.move_to(channel)

        await leave(tempvoice, owner)

        assert channel.deleted is False
        assert await ownership.get_owner(configured_guild.id, channel.id) == "1001"

        await leave(tempvoice, guest)
        assert channel.deleted is True

    @pytest.mark.asyncio
    async def test_empty_non_temp_channel_in_container_is_kept(self, tempvoice, configured_guild):
        plain = make_voice_channel(8888, guild=configured_guild, category_id=CONTAINER_ID)
        member = make_member(guild=configured_guild)
        plain.add_member(member)

        await leave(tempvoice, member)

        assert plain.deleted is False

    @pytest.mark.asyncio
    async def test_delete_failure_still_releases_record(self, tempvoice, configured_guild, ownership):
        member = make_member(guild=configured_guild)
        channel = await provision(tempvoice, configured_guild, member)
        channel.delete_error = http_error(discord.Forbidden, "Missing Permissions")

        await leave(tempvoice, member)

        assert await ownership.get_owner(configured_guild.id, channel.id) is None

    @pytest.mark.asyncio
    async def test_repeated_departure_events_do_not_error(self, tempvoice, configured_guild, store):
        member = make_member(guild=configured_guild)
        channel = await provision(tempvoice, configured_guild, member)
        await leave(tempvoice, member)

        await tempvoice.handle_voice_state_change(member, channel, None)

        assert await store.keys("tvc.*") == []

    @pytest.mark.asyncio
    async def test_switching_from_temp_channel_to_lobby(self, tempvoice, configured_guild, ownership):
        member = make_member(guild=configured_guild)
        first = await provision(tempvoice, configured_guild, member)

        lobby = configured_guild.get_channel(LOBBY_ID)
        await member.move_to(lobby)
        await tempvoice.handle_voice_state_change(member, first, lobby)

        assert first.deleted is True
        second = configured_guild.created_channels[-1]
        assert second is not first
        assert await ownership.get_owner(configured_guild.id, second.id) == str(member.id)

    @pytest.mark.asyncio
    async def test_externally_deleted_channel_releases_record(self, tempvoice, configured_guild, ownership):
        member = make_member(guild=configured_guild)
        channel = await provision(tempvoice, configured_guild, member)

        assert await tempvoice.handle_channel_deleted(configured_guild.id, channel.id) is True
        assert await ownership.get_owner(configured_guild.id, channel.id) is None
        assert await tempvoice.handle_channel_deleted(configured_guild.id, channel.id) is False

    @pytest.mark.asyncio
    async def test_deleted_lobby_keeps_configuration(self, tempvoice, configured_guild, guild_config):
        await tempvoice.handle_channel_deleted(configured_guild.id, LOBBY_ID)
        assert await guild_config.get(configured_guild.id) is not None


class TestServiceLifecycle:
    @pytest.mark.asyncio
    async def test_health_check(self, tempvoice):
        health = await tempvoice.health_check()
        assert health["service"] == "tempvoice"
        assert health["status"] == "healthy"

    @pytest.mark.asyncio
    async def test_post_controls_failure_is_logged_only(self, tempvoice):
        tempvoice.set_controls_factory(lambda locale: (discord.Embed(), MagicMock()))
        channel = MagicMock()
        channel.send = AsyncMock(side_effect=http_error(discord.Forbidden, "Missing Access"))

        assert await tempvoice.post_controls(channel, "en-us") is False

    @pytest.mark.asyncio
    async def test_events_rejected_before_initialize(self, settings, ownership, guild_config, translator):
        service = TempVoiceService(settings, ownership, guild_config, translator)
        with pytest.raises(ServiceError):
            await service.handle_channel_deleted(1, 10)


class TestControlPanelPosting:
    @pytest.fixture
    def panel_factory(self, translator):
        views = []

        def factory(locale):
            view = ControlPanelView({"rename": AsyncMock(), "lock": AsyncMock()}, translator, locale)
            views.append(view)
            return discord.Embed(title="controls"), view

        factory.views = views
        return factory

    @pytest.mark.asyncio
    async def test_sent_panel_view_is_finished(self, tempvoice, panel_factory, configured_guild):
        tempvoice.set_controls_factory(panel_factory)
        channel = make_voice_channel(6100, guild=configured_guild)

        assert await tempvoice.post_controls(channel, "en-us") is True

        assert channel._sent_messages[0]["view"] is panel_factory.views[0]
        assert panel_factory.views[0].is_finished()

    @pytest.mark.asyncio
    async def test_no_panel_view_left_running_per_channel(self, tempvoice, panel_factory, configured_guild):
        tempvoice.set_controls_factory(panel_factory)

        for user_id in range(2001, 2006):
            member = make_member(user_id=user_id, guild=configured_guild)
            await provision(tempvoice, configured_guild, member)
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            await leave(tempvoice, member)

        assert len(panel_factory.views) == 5
        assert all(view.is_finished() for view in panel_factory.views)

    @pytest.mark.asyncio
    async def test_failed_post_still_stops_view(self, tempvoice, panel_factory, configured_guild):
        tempvoice.set_controls_factory(panel_factory)
        channel = make_voice_channel(6100, guild=configured_guild)
        channel.send_error = http_error(discord.Forbidden, "Missing Access")

        assert await tempvoice.post_controls(channel, "en-us") is False
        assert panel_factory.views[0].is_finished()


class TestReconcile:
    @pytest.mark.asyncio
    async def test_stale_records_released_on_startup(self, tempvoice, configured_guild, ownership):
        occupied = make_voice_channel(6101, guild=configured_guild, category_id=CONTAINER_ID)
        occupied.add_member(make_member(user_id=42, guild=configured_guild))
        emptied = make_voice_channel(6102, guild=configured_guild, category_id=CONTAINER_ID)
        for channel_id in (6100, 6101, 6102):
            await ownership.record_owner(configured_guild.id, channel_id, 42)

        released = await tempvoice.reconcile_guild(configured_guild)

        assert released == 2
        assert await ownership.list_channels(configured_guild.id) == [6101]
        assert emptied.deleted is True
        assert occupied.deleted is False

    @pytest.mark.asyncio
    async def test_nothing_to_reconcile(self, tempvoice, configured_guild):
        assert await tempvoice.reconcile_guild(configured_guild) == 0

    @pytest.mark.asyncio
    async def test_skipped_without_manage_channels(self, tempvoice, ownership):
        guild = FakeGuild(guild_id=77, bot_permissions=discord.Permissions.none())
        await ownership.record_owner(guild.id, 6100, 42)

        assert await tempvoice.reconcile_guild(guild) == 0
        assert await ownership.list_channels(guild.id) == [6100]
