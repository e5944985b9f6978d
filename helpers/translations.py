"""
Localized user-facing strings.

The bot ships one catalog (``en-us``). Lookups for unknown locales fall back to
the default locale and unknown keys come back unchanged, so a missing string
is visible in the UI instead of raising.
"""

import re
from typing import Any

import discord

from config.config_loader import DEFAULT_LOCALE

_PLACEHOLDER = re.compile(r"\{([a-zA-Z0-9_-]+)\}")

EN_US: dict[str, Any] = {
    "lang": {"named": "English (US)"},
    "feedback": {
        "success": "✅ Success",
        "warning": "⚠️ Warning",
        "error": "❌ Error",
    },
    "errors": {
        "tvc": "Your request could not be completed.\n```\n{error}\n```",
        "failed-fetch": "Your member profile could not be loaded. Please try again.",
        "no-vc": "You are not connected to a voice channel.",
        "no-tvc": "The voice channel you are in is not a temporary voice channel.",
        "no-perm-bot": "I am missing the permissions required for this action in your channel.",
        "not-your-tvc": "Only the owner of this temporary voice channel can do that.",
        "no-perm": "You are not allowed to manage this temporary voice channel.",
        "target-yourself": "You cannot target yourself.",
        "bots-ignored": "Bots cannot be targeted.",
        "target-power": "This member has moderation permissions and cannot be targeted.",
        "target-outside": "This member is not in your voice channel.",
        "action-failed": "Discord rejected the change. Please try again later.",
    },
    "controls": {
        "name": "Temporary voice controls",
        "description": "Use the buttons below to manage your temporary voice channel.",
        "error-message": "The controls could not be posted in your channel.",
        "success-message": "The controls were posted in your channel.",
    },
    "buttons": {
        "rename": {
            "name": "Rename",
            "emoji": "✏️",
            "description": "Change the name of your channel",
            "success": "Your channel was renamed to **{name}**.",
            "already": "Your channel is already named **{name}**.",
            "wrong-input": "The name must be between 3 and 32 characters.",
            "modal": {"title": "Rename channel", "label": "New channel name"},
        },
        "limit": {
            "name": "Limit",
            "emoji": "👥",
            "description": "Set how many members may join",
            "success": "The user limit is now **{limit}**.",
            "already": "The user limit is already **{limit}**.",
            "wrong-input": "The user limit must be a number between 0 and 99.",
            "modal": {"title": "Set user limit", "label": "User limit (0 = unlimited)"},
        },
        "bitrate": {
            "name": "Bitrate",
            "emoji": "📶",
            "description": "Change the audio bitrate",
            "success": "The bitrate is now **{bitrate} kbps**.",
            "already": "The bitrate is already **{bitrate} kbps**.",
            "wrong-input": "The bitrate must be a number between 8 and 96 kbps.",
            "modal": {"title": "Set bitrate", "label": "Bitrate in kbps (8-96)"},
        },
        "nsfw": {
            "name": "NSFW",
            "emoji": "🔞",
            "description": "Toggle the age restriction",
            "activated": "Your channel is now age restricted.",
            "deactivated": "Your channel is no longer age restricted.",
        },
        "status": {
            "name": "Status",
            "emoji": "💬",
            "description": "Set a status for your channel",
            "success": "Channel statuses are not available yet.",
            "modal": {"title": "Set channel status", "label": "Status"},
        },
        "kick": {
            "name": "Kick",
            "emoji": "👢",
            "description": "Disconnect members from your channel",
            "select": "Select up to 3 members to disconnect.",
            "result": "Disconnected members",
        },
        "invite": {
            "name": "Invite",
            "emoji": "📨",
            "description": "Send an invite to other members",
            "select": "Select up to 3 members to invite.",
            "result": "Invited members",
            "no-invite": "An invite for your channel could not be created.",
            "message": "**{inviter}** invited you to join **{channel}**: {url}",
        },
        "clear": {
            "name": "Clear",
            "emoji": "🧹",
            "description": "Delete the latest messages in the channel chat",
            "success": "Deleted **{count}** messages.",
            "nothing": "There were no messages to delete.",
        },
        "lock": {
            "name": "Lock",
            "emoji": "🔒",
            "description": "Prevent new members from joining",
            "success": "Your channel is now locked.",
            "already": "Your channel is already locked.",
        },
    },
    "context": {
        "user": {
            "ban-user": {
                "name": "Ban from voice",
                "success": "{member} was banned from your channel.",
            },
            "invite-user": {
                "name": "Invite to voice",
                "success": "{member} was invited to your channel.",
                "dm-failed": "{member} could not be messaged. Share this invite instead: {url}",
            },
        }
    },
    "commands": {
        "setup": {
            "name": "setup",
            "description": "Configure the temporary voice system",
            "options": {
                "container": {
                    "name": "container",
                    "description": "Category that will hold temporary channels",
                },
                "lobby": {
                    "name": "lobby",
                    "description": "Voice channel members join to get their own channel",
                },
            },
            "errors": {
                "no-perm": "I need the Manage Channels permission to set up temporary voice channels.",
                "no-access-container": "I cannot access the selected category.",
                "no-access-lobby": "I cannot access the selected lobby channel.",
            },
            "result": {
                "success": "Temporary voice is ready. Join {lobby} to get your own channel in {container}.",
                "error": "Setup failed.\n{error}",
            },
        },
        "controls": {
            "name": "controls",
            "description": "Show the controls for your temporary voice channel",
        },
        "ping": {
            "name": "ping",
            "description": "Check the bot latency",
            "success": "Pong! Websocket latency is **{ping} ms**.",
        },
        "languages": {
            "name": "languages",
            "description": "List the available languages",
            "success": "Available languages:\n{languages}",
        },
        "bug-report": {
            "name": "bug-report",
            "description": "Report a bug to the developers",
            "modal-title": "Report a bug",
            "topic": "Topic",
            "description-2": "Describe what happened",
            "success": "Thank you! Your report was sent to the developers.",
            "error": "Bug reports are not available right now.",
        },
    },
}


def _lookup(catalog: dict[str, Any], key: str) -> str | None:
    node: Any = catalog
    for part in key.split("."):
        if not isinstance(node, dict) or part not in node:
            return None
        node = node[part]
    return node if isinstance(node, str) else None


class Translator:
    """Resolves dotted keys against per-locale catalogs."""

    def __init__(
        self,
        catalogs: dict[str, dict[str, Any]] | None = None,
        default_locale: str = DEFAULT_LOCALE,
    ) -> None:
        self.catalogs = {
            name.lower(): catalog
            for name, catalog in (catalogs or {DEFAULT_LOCALE: EN_US}).items()
        }
        self.default_locale = default_locale.lower()

    @property
    def locales(self) -> list[str]:
        return sorted(self.catalogs)

    def knows(self, locale: str | None) -> bool:
        return bool(locale) and locale.lower() in self.catalogs

    def translate(self, locale: str | None, key: str, **params: Any) -> str:
        """
        Return the string for ``key`` in ``locale``.

        ``{name}`` placeholders are replaced from ``params``; placeholders
        without a matching parameter are left as they are.
        """
        catalog = self.catalogs.get((locale or "").lower())
        text = _lookup(catalog, key) if catalog else None
        if text is None:
            fallback = self.catalogs.get(self.default_locale, {})
            text = _lookup(fallback, key)
        if text is None:
            return key
        if not params:
            return text

        def _fill(match: re.Match) -> str:
            name = match.group(1)
            return str(params[name]) if name in params else match.group(0)

        return _PLACEHOLDER.sub(_fill, text)

    def locale_for(self, interaction: discord.Interaction) -> str:
        """User locale if we have it, else the guild's preferred locale, else the default."""
        user_locale = str(interaction.locale).lower() if interaction.locale else None
        if self.knows(user_locale):
            return user_locale
        return self.guild_locale(interaction.guild_locale)

    def guild_locale(self, locale: discord.Locale | str | None) -> str:
        name = str(locale).lower() if locale else None
        if self.knows(name):
            return name
        return self.default_locale
