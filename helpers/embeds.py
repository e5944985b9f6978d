"""
Embed Helper Module

Builds the embeds the bot replies with. Every embed is one of a handful of
kinds, each with a fixed color.
"""

from collections.abc import Iterable

import discord

from helpers.translations import Translator
from utils.logging import get_logger

logger = get_logger(__name__)

SUCCESS = "success"
WARNING = "warning"
ERROR = "error"
INFO = "info"

EMBED_COLORS = {
    SUCCESS: 0x008000,
    WARNING: 0xFFA500,
    ERROR: 0xFF0000,
    INFO: 0x0000FF,
}
DEFAULT_COLOR = 0x808080

FOOTER_TEXT = "TempVoice"


def create_embed(
    kind: str,
    description: str,
    title: str | None = None,
    *,
    guild: discord.Guild | None = None,
    thumbnail_url: str | None = None,
    timestamp: bool = True,
) -> discord.Embed:
    """
    Creates a Discord embed with the color for ``kind``.

    Args:
        kind (str): One of success, warning, error or info. Anything else gets grey.
        description (str): Body of the embed.
        title (str, optional): Embed title.
        guild (discord.Guild, optional): Used for the footer icon.
        thumbnail_url (str, optional): URL of the thumbnail image.
        timestamp (bool): Stamp the embed with the current time.

    Returns:
        discord.Embed: The created embed object.
    """
    embed = discord.Embed(
        title=title,
        description=description,
        color=EMBED_COLORS.get(kind, DEFAULT_COLOR),
        timestamp=discord.utils.utcnow() if timestamp else None,
    )
    icon = guild.icon.url if guild is not None and guild.icon else None
    embed.set_footer(text=FOOTER_TEXT, icon_url=icon)
    if thumbnail_url:
        embed.set_thumbnail(url=thumbnail_url)
    return embed


def create_feedback_embed(
    translator: Translator,
    locale: str,
    kind: str,
    action: str,
    content: str,
    *,
    guild: discord.Guild | None = None,
) -> discord.Embed:
    """Reply embed titled ``<feedback> | <action>``."""
    feedback = translator.translate(locale, f"feedback.{kind}")
    return create_embed(kind, content, f"{feedback} | {action}", guild=guild)


def create_controls_embed(
    translator: Translator, locale: str, actions: Iterable[str]
) -> discord.Embed:
    """Control panel embed: one field per button with its emoji, name and description."""
    embed = create_embed(
        SUCCESS,
        translator.translate(locale, "controls.description"),
        translator.translate(locale, "controls.name"),
    )
    for action in actions:
        emoji = translator.translate(locale, f"buttons.{action}.emoji")
        name = translator.translate(locale, f"buttons.{action}.name")
        embed.add_field(
            name=f"[ {emoji} ] «{name}»",
            value=translator.translate(locale, f"buttons.{action}.description"),
            inline=True,
        )
    return embed


def format_member_results(succeeded: list[str], failed: list[str]) -> str:
    """Two-block ✔️/❌ listing used by kick and invite replies."""
    lines = [f"✔️ {name}" for name in succeeded]
    lines.extend(f"❌ {name}" for name in failed)
    return "\n".join(lines) or "-"
