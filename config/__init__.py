from .config_loader import PRODUCTION, BotSettings, ConfigLoader

__all__ = ["PRODUCTION", "BotSettings", "ConfigLoader"]
