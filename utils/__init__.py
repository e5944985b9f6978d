"""
Utilities Package

Common utilities and helper functions for the Discord bot.
"""

from .errors import BotError, ConfigError, ServiceError, StoreConnectionError, StoreError
from .logging import get_logger, setup_logging
from .tasks import spawn
from .types import ActionOutcome, GuildVoiceConfig, OutcomeKind, TempVoiceArgs

__all__ = [
    "ActionOutcome",
    "BotError",
    "ConfigError",
    "GuildVoiceConfig",
    "OutcomeKind",
    "ServiceError",
    "StoreConnectionError",
    "StoreError",
    "TempVoiceArgs",
    "get_logger",
    "setup_logging",
    "spawn",
]
