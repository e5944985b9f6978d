"""
Services package for the temp voice bot.

Stores, the lifecycle engine, the authorization gate and channel actions,
wired together by ``ServiceContainer``.
"""

from .base import BaseService
from .guild_config import GuildConfigStore
from .ownership import OwnershipStore
from .service_container import ServiceContainer
from .tempvoice_service import TempVoiceService

__all__ = [
    "BaseService",
    "GuildConfigStore",
    "OwnershipStore",
    "ServiceContainer",
    "TempVoiceService",
]
