"""
Type definitions and common data structures for the Discord bot.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Any, NamedTuple

if TYPE_CHECKING:
    import discord


@dataclass(frozen=True)
class GuildVoiceConfig:
    """Container category and lobby channel configured for a guild."""

    guild_id: int
    container_id: int
    lobby_id: int


@dataclass
class TempVoiceArgs:
    """Acting member and the voice channel they are currently connected to."""

    member: discord.Member
    channel: discord.VoiceChannel | discord.StageChannel | None


class OutcomeKind(str, Enum):
    """How a channel mutation ended."""

    SUCCESS = "success"
    ALREADY = "already"
    WRONG_INPUT = "wrong-input"
    FAILED = "failed"


class ActionOutcome(NamedTuple):
    """Result of a single channel mutation."""

    kind: OutcomeKind
    value: Any = None
    metadata: dict[str, Any] | None = None

    @property
    def success(self) -> bool:
        return self.kind is OutcomeKind.SUCCESS
