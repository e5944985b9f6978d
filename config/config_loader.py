# Config/config_loader.py

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, ClassVar

import yaml

from utils.errors import ConfigError

PRODUCTION = "production"
DEVELOPMENT = "development"

DEFAULT_LOCALE = "en-us"
DEFAULT_INTERACTION_TIMEOUT = 60.0
DEFAULT_BUG_REPORT_TIMEOUT = 600.0
DEFAULT_OWNER_RECORD_TTL = 60 * 60 * 24 * 7


def _get_project_root() -> Path:
    """Derive project root from this file's location: config/config_loader.py -> project root."""
    return Path(__file__).resolve().parent.parent


class ConfigLoader:
    """
    Singleton class to load and provide access to configuration data.

    Observability:
        - Logs INFO on successful config load with path
        - Logs WARNING on missing config file (degraded mode)
        - Logs ERROR on YAML parse errors
        - Tracks config_status for health reporting
    """

    _config: ClassVar[dict[str, Any]] = {}
    _config_status: ClassVar[str] = "not_loaded"  # "ok", "degraded", "error"
    _config_path: ClassVar[str | None] = None

    @classmethod
    def load_config(cls, config_path: str | None = None) -> dict[str, Any]:
        """Load the configuration from a YAML file if not already loaded.

        Args:
            config_path: Path to the configuration file. If not provided,
                uses CONFIG_PATH env var or defaults to project_root/config/config.yaml.

        Returns:
            Dict[str, Any]: Loaded configuration dictionary.
        """
        if cls._config_status != "not_loaded":
            return cls._config

        if config_path is None:
            config_path = os.environ.get("CONFIG_PATH")
            if config_path:
                logging.info("Config path overridden via CONFIG_PATH env: %s", config_path)

        if config_path is None:
            config_path = str(_get_project_root() / "config" / "config.yaml")

        cls._config_path = config_path

        try:
            with Path(config_path).open(encoding="utf-8") as file:
                loaded = yaml.safe_load(file) or {}

            if not isinstance(loaded, dict):
                logging.warning(
                    "Configuration file didn't contain a mapping; using empty config."
                )
                cls._config = {}
                cls._config_status = "degraded"
            else:
                cls._config = loaded
                cls._config_status = "ok"
                logging.info("Configuration loaded successfully from %s", config_path)

            cls._validate_logging_level()

        except FileNotFoundError:
            logging.warning(
                "Configuration file not found at path: %s; "
                "using empty/default config (degraded mode).",
                config_path,
            )
            cls._config = {}
            cls._config_status = "degraded"
        except yaml.YAMLError as e:
            logging.exception(
                "Error parsing configuration YAML at %s: %s; using empty/default config.",
                config_path,
                e,
            )
            cls._config = {}
            cls._config_status = "error"
        return cls._config

    @classmethod
    def get_config_status(cls) -> dict[str, Any]:
        """Return config health status for observability endpoints."""
        return {
            "config_status": cls._config_status,
            "config_path": cls._config_path,
            "config_loaded": bool(cls._config),
        }

    @classmethod
    def _validate_logging_level(cls) -> None:
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        logging_config = cls._config.get("logging") or {}
        level = str(logging_config.get("level", "INFO")).upper()
        if level not in valid_levels:
            logging.warning(
                f"Invalid logging level '{level}' in config. Defaulting to 'INFO'."
            )
            logging_cfg = cls._config.setdefault("logging", {})
            logging_cfg["level"] = "INFO"

    @classmethod
    def get(cls, key: str, default: Any = None) -> Any:
        """
        Retrieves a value from the configuration.

        Dotted keys walk nested mappings, e.g. ``tempvoice.interaction_timeout``.
        """
        node: Any = cls._config
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    @classmethod
    def reset(cls) -> None:
        """Reset the config loader state (useful for testing)."""
        cls._config = {}
        cls._config_status = "not_loaded"
        cls._config_path = None


def _optional_int(name: str, raw: str | None) -> int | None:
    if raw is None or not raw.strip():
        return None
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a numeric id, got {raw!r}") from e


def _section(config: dict[str, Any], name: str) -> dict[str, Any]:
    value = config.get(name)
    return value if isinstance(value, dict) else {}


@dataclass(frozen=True)
class BotSettings:
    """
    Explicit runtime settings handed to the service container.

    Built once at startup from the environment (``.env``) and config.yaml;
    nothing downstream reads environment variables on its own.
    """

    token: str | None = None
    environment: str = DEVELOPMENT
    store_path: str | None = None
    bug_report_channel_id: int | None = None
    default_locale: str = DEFAULT_LOCALE
    interaction_timeout: float = DEFAULT_INTERACTION_TIMEOUT
    bug_report_timeout: float = DEFAULT_BUG_REPORT_TIMEOUT
    owner_record_ttl: int = DEFAULT_OWNER_RECORD_TTL
    log_level: str = "INFO"

    @property
    def is_production(self) -> bool:
        return self.environment == PRODUCTION

    @classmethod
    def from_env(
        cls,
        config: dict[str, Any] | None = None,
        environ: dict[str, str] | None = None,
    ) -> "BotSettings":
        """
        Build settings from environment variables and the loaded YAML config.

        Environment:
            DISCORD_TOKEN, BOT_ENV (production/development), STORE_PATH
            (SQLite file for the durable store; absent means in-memory),
            BUG_REPORT_CHANNEL_ID.
        """
        config = config if config is not None else ConfigLoader.load_config()
        env = environ if environ is not None else os.environ

        bot_cfg = _section(config, "bot")
        tempvoice_cfg = _section(config, "tempvoice")
        logging_cfg = _section(config, "logging")

        store_path = (env.get("STORE_PATH") or "").strip() or None

        return cls(
            token=env.get("DISCORD_TOKEN"),
            environment=(env.get("BOT_ENV") or DEVELOPMENT).strip().lower(),
            store_path=store_path,
            bug_report_channel_id=_optional_int(
                "BUG_REPORT_CHANNEL_ID", env.get("BUG_REPORT_CHANNEL_ID")
            ),
            default_locale=str(bot_cfg.get("default_locale", DEFAULT_LOCALE)).lower(),
            interaction_timeout=float(
                tempvoice_cfg.get("interaction_timeout", DEFAULT_INTERACTION_TIMEOUT)
            ),
            bug_report_timeout=float(
                tempvoice_cfg.get("bug_report_timeout", DEFAULT_BUG_REPORT_TIMEOUT)
            ),
            owner_record_ttl=int(
                tempvoice_cfg.get("owner_record_ttl", DEFAULT_OWNER_RECORD_TTL)
            ),
            log_level=str(logging_cfg.get("level", "INFO")).upper(),
        )
