"""
Single-field modals whose result is awaited by the caller.
"""

import discord
from discord.ui import Modal, TextInput

from utils.logging import get_logger

logger = get_logger(__name__)


class ValueModal(Modal):
    """
    Modal collecting one text value.

    ``on_submit`` defers the submission and stops the modal, so callers do
    ``timed_out = await modal.wait()`` and then reply through
    ``modal.submission``.
    """

    def __init__(
        self,
        *,
        title: str,
        custom_id: str,
        field_id: str,
        label: str,
        min_length: int | None = None,
        max_length: int | None = None,
        default: str | None = None,
        required: bool = True,
        style: discord.TextStyle = discord.TextStyle.short,
        timeout: float | None = 60.0,
    ) -> None:
        super().__init__(title=title[:45], custom_id=custom_id, timeout=timeout)
        self.field = TextInput(
            label=label[:45],
            custom_id=field_id,
            min_length=min_length,
            max_length=max_length,
            default=default,
            required=required,
            style=style,
        )
        self.add_item(self.field)
        self.submission: discord.Interaction | None = None

    @property
    def value(self) -> str:
        return self.field.value or ""

    async def on_submit(self, interaction: discord.Interaction) -> None:
        self.submission = interaction
        await interaction.response.defer(ephemeral=True, thinking=False)
        self.stop()

    async def on_error(self, interaction: discord.Interaction, error: Exception) -> None:
        logger.exception(
            "Modal %s failed", self.custom_id, exc_info=error,
            extra={"user_id": interaction.user.id},
        )
        self.stop()


class BugReportModal(Modal):
    """Topic plus free-form description, forwarded to the bug report channel."""

    def __init__(
        self,
        *,
        title: str,
        custom_id: str,
        topic_label: str,
        description_label: str,
        timeout: float | None = 600.0,
    ) -> None:
        super().__init__(title=title[:45], custom_id=custom_id, timeout=timeout)
        self.topic = TextInput(
            label=topic_label[:45],
            custom_id="bug-report-topic",
            min_length=3,
            max_length=100,
        )
        self.description = TextInput(
            label=description_label[:45],
            custom_id="bug-report-description",
            style=discord.TextStyle.paragraph,
            min_length=10,
            max_length=2000,
        )
        self.add_item(self.topic)
        self.add_item(self.description)
        self.submission: discord.Interaction | None = None

    async def on_submit(self, interaction: discord.Interaction) -> None:
        self.submission = interaction
        await interaction.response.defer(ephemeral=True, thinking=False)
        self.stop()
