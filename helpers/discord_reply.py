"""
Centralized Discord reply helpers for consistent message delivery.

Interaction replies are ephemeral by default and pick ``response`` or
``followup`` depending on whether the interaction was already answered.
Failures are logged and reported through the return value, never raised.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

import discord

from utils.logging import get_logger

if TYPE_CHECKING:
    from discord import Embed, Interaction, Member, Message

logger = get_logger(__name__)


async def respond(
    interaction: Interaction,
    content: str | None = None,
    *,
    embed: Embed | None = None,
    ephemeral: bool = True,
    view: discord.ui.View | None = None,
) -> Message | None:
    """
    Unified response helper for every interaction reply.

    Returns the followup message when one was sent, otherwise None.

    Example:
        await respond(interaction, embed=my_embed)
        await respond(interaction, embed=my_embed, view=select_view)
    """
    kwargs: dict = {"ephemeral": ephemeral}
    if content:
        kwargs["content"] = content
    if embed:
        kwargs["embed"] = embed
    if view:
        kwargs["view"] = view

    try:
        if interaction.response.is_done():
            return await interaction.followup.send(**kwargs)
        await interaction.response.send_message(**kwargs)
        return None
    except discord.NotFound:
        logger.warning("Interaction expired before response could be sent")
        return None
    except discord.HTTPException as e:
        logger.exception("Failed to send response", exc_info=e)
        return None


async def send_modal(interaction: Interaction, modal: discord.ui.Modal) -> bool:
    """Open ``modal`` as the interaction's response. Only valid before any reply."""
    try:
        await interaction.response.send_modal(modal)
        return True
    except discord.NotFound:
        logger.warning("Interaction expired before modal could be sent")
        return False
    except discord.HTTPException as e:
        logger.exception("Failed to send modal", exc_info=e)
        return False


async def dm_user(member: Member, text: str) -> bool:
    """
    Send a direct message to a member.

    Returns True on success. Closed DMs are expected and only logged at debug.
    """
    try:
        await member.send(text)
        logger.debug("Sent DM to %s", member.display_name)
        return True
    except discord.Forbidden:
        logger.debug(
            "Cannot send DM to %s (DMs disabled or bot blocked)", member.display_name
        )
        return False
    except discord.HTTPException as e:
        logger.warning("Failed to send DM to %s: %s", member.display_name, e)
        return False

