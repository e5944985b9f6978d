"""
Tests for the channel mutations behind the control panel.
"""

import discord
import pytest

from services.channel_actions import CLEAR_LIMIT, parse_int
from tests.factories import FakeInvite, http_error, make_guild, make_member, make_voice_channel
from utils.types import OutcomeKind


@pytest.fixture
def channel():
    guild = make_guild(guild_id=5000)
    return make_voice_channel(6100, name="Alice", guild=guild)


def test_parse_int():
    assert parse_int(" 42 ") == 42
    assert parse_int(7) == 7
    assert parse_int("abc") is None
    assert parse_int(None) is None


class TestRename:
    @pytest.mark.asyncio
    async def test_new_name_issues_one_edit(self, actions, channel):
        outcome = await actions.rename(channel, "Chill Zone")
        assert outcome.kind is OutcomeKind.SUCCESS
        assert channel.edits == [{"name": "Chill Zone"}]

    @pytest.mark.asyncio
    async def test_same_name_is_a_no_op(self, actions, channel):
        outcome = await actions.rename(channel, "Alice")
        assert outcome.kind is OutcomeKind.ALREADY
        assert channel.edits == []

    @pytest.mark.asyncio
    @pytest.mark.parametrize("name", ["ab", "x" * 33, "   "])
    async def test_length_bounds(self, actions, channel, name):
        outcome = await actions.rename(channel, name)
        assert outcome.kind is OutcomeKind.WRONG_INPUT
        assert channel.edits == []

    @pytest.mark.asyncio
    async def test_platform_failure(self, actions, channel):
        async def refuse(**kwargs):
            raise http_error(discord.Forbidden, "Missing Permissions")

        channel.edit = refuse
        outcome = await actions.rename(channel, "Chill Zone")
        assert outcome.kind is OutcomeKind.FAILED
        assert outcome.success is False


class TestLimit:
    @pytest.mark.asyncio
    async def test_bounds(self, actions, channel):
        assert (await actions.set_user_limit(channel, "0")).kind is OutcomeKind.ALREADY
        assert (await actions.set_user_limit(channel, "99")).kind is OutcomeKind.SUCCESS
        assert (await actions.set_user_limit(channel, "100")).kind is OutcomeKind.WRONG_INPUT
        assert (await actions.set_user_limit(channel, "-1")).kind is OutcomeKind.WRONG_INPUT
        assert channel.edits == [{"user_limit": 99}]

    @pytest.mark.asyncio
    async def test_non_numeric(self, actions, channel):
        outcome = await actions.set_user_limit(channel, "five")
        assert outcome.kind is OutcomeKind.WRONG_INPUT
        assert channel.edits == []


class TestBitrate:
    @pytest.mark.asyncio
    @pytest.mark.parametrize("raw", ["7", "97", "fast"])
    async def test_out_of_range(self, actions, channel, raw):
        outcome = await actions.set_bitrate(channel, raw)
        assert outcome.kind is OutcomeKind.WRONG_INPUT
        assert channel.edits == []

    @pytest.mark.asyncio
    async def test_range_edges_sent_in_bps(self, actions, channel):
        assert (await actions.set_bitrate(channel, "8")).kind is OutcomeKind.SUCCESS
        assert (await actions.set_bitrate(channel, "96")).kind is OutcomeKind.SUCCESS
        assert channel.edits == [{"bitrate": 8000}, {"bitrate": 96000}]

    @pytest.mark.asyncio
    async def test_current_value_is_a_no_op(self, actions, channel):
        outcome = await actions.set_bitrate(channel, "64")
        assert outcome.kind is OutcomeKind.ALREADY
        assert channel.edits == []


class TestToggles:
    @pytest.mark.asyncio
    async def test_nsfw_flips(self, actions, channel):
        first = await actions.toggle_nsfw(channel)
        second = await actions.toggle_nsfw(channel)
        assert first.value is True
        assert second.value is False
        assert channel.edits == [{"nsfw": True}, {"nsfw": False}]

    @pytest.mark.asyncio
    async def test_lock_denies_connect_for_everyone(self, actions, channel):
        outcome = await actions.lock(channel)
        assert outcome.kind is OutcomeKind.SUCCESS
        assert channel.overwrites_for(channel.guild.default_role).connect is False

        again = await actions.lock(channel)
        assert again.kind is OutcomeKind.ALREADY


class TestMembers:
    @pytest.mark.asyncio
    async def test_kick_skips_privileged(self, actions, channel):
        guild = channel.guild
        regular = channel.add_member(make_member(user_id=2, display_name="Bob", guild=guild))
        admin = channel.add_member(
            make_member(
                user_id=3,
                display_name="Carol",
                guild=guild,
                permissions=discord.Permissions(administrator=True),
            )
        )

        kicked, skipped = await actions.disconnect_members(channel, [regular, admin])

        assert kicked == ["Bob"]
        assert skipped == ["Carol"]
        assert regular.voice is None
        assert admin in channel.members

    @pytest.mark.asyncio
    async def test_kick_member_not_present(self, actions, channel):
        absent = make_member(user_id=4, display_name="Dan", guild=channel.guild)
        kicked, skipped = await actions.disconnect_members(channel, [absent])
        assert kicked == ["Dan"]
        assert absent.moves == []

    @pytest.mark.asyncio
    async def test_ban_denies_connect_and_disconnects(self, actions, channel):
        target = channel.add_member(make_member(user_id=2, display_name="Bob", guild=channel.guild))

        outcome = await actions.ban(channel, target)

        assert outcome.kind is OutcomeKind.SUCCESS
        assert channel.overwrites_for(target).connect is False
        assert target not in channel.members


class TestInvite:
    @pytest.mark.asyncio
    async def test_reuses_existing_bot_invite(self, actions, channel):
        first = await actions.get_or_create_invite(channel, channel.guild.me)
        second = await actions.get_or_create_invite(channel, channel.guild.me)
        assert first is second
        assert len(channel.created_invites) == 1

    @pytest.mark.asyncio
    async def test_ignores_invites_from_others(self, actions, channel):
        channel.invite_list.append(FakeInvite("human", make_member(user_id=2)))
        invite = await actions.get_or_create_invite(channel, channel.guild.me)
        assert invite.code == "new1"

    @pytest.mark.asyncio
    async def test_creation_failure(self, actions, channel):
        async def refuse(**kwargs):
            raise http_error(discord.Forbidden, "Missing Permissions")

        channel.create_invite = refuse
        assert await actions.get_or_create_invite(channel, channel.guild.me) is None


class TestClear:
    @pytest.mark.asyncio
    async def test_purges_latest_messages(self, actions, channel):
        channel.messages = list(range(CLEAR_LIMIT + 5))
        outcome = await actions.clear_messages(channel)
        assert outcome.kind is OutcomeKind.SUCCESS
        assert outcome.value == CLEAR_LIMIT
        assert len(channel.messages) == 5

    @pytest.mark.asyncio
    async def test_nothing_to_clear(self, actions, channel):
        outcome = await actions.clear_messages(channel)
        assert outcome.kind is OutcomeKind.ALREADY
