"""
Temp Voice Package

Lobby-triggered temporary voice channels: voice events, the control panel
handlers and the slash/context-menu commands.
"""

from .commands import TempVoiceCommands
from .events import TempVoiceEvents

__all__ = ["TempVoiceCommands", "TempVoiceEvents"]
