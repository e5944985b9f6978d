"""
Test Factories Module

Centralized factory functions and fake Discord objects for the temp voice tests.
"""

from .discord_factories import (
    CONTAINER_ID,
    GUILD_ID,
    LOBBY_ID,
    FakeBot,
    FakeCategory,
    FakeGuild,
    FakeInteraction,
    FakeInvite,
    FakeMember,
    FakeRole,
    FakeUser,
    FakeVoiceChannel,
    FakeVoiceState,
    http_error,
    make_activity,
    make_bot,
    make_guild,
    make_interaction,
    make_member,
    make_voice_channel,
)

__all__ = [
    "CONTAINER_ID",
    "GUILD_ID",
    "LOBBY_ID",
    "FakeBot",
    "FakeCategory",
    "FakeGuild",
    "FakeInteraction",
    "FakeInvite",
    "FakeMember",
    "FakeRole",
    "FakeUser",
    "FakeVoiceChannel",
    "FakeVoiceState",
    "http_error",
    "make_activity",
    "make_bot",
    "make_guild",
    "make_interaction",
    "make_member",
    "make_voice_channel",
]
