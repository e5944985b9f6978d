"""
Views for the temp voice control panel and member pickers.
"""

from collections.abc import Awaitable, Callable, Mapping

import discord
from discord import Interaction
from discord.ui import Button, UserSelect, View

from helpers.translations import Translator
from utils.logging import get_logger

logger = get_logger(__name__)

CONTROL_PREFIX = "control-"

ControlHandler = Callable[[Interaction], Awaitable[None]]


def control_custom_id(action: str) -> str:
    return f"{CONTROL_PREFIX}{action}"


class ControlPanelView(View):
    """
    Persistent control panel: one emoji button per action.

    Custom ids are stable (``control-<action>``) so the view registered at
    startup keeps serving panels posted before a restart. Labels only affect
    rendering; routing goes through ``handlers``.
    """

    def __init__(
        self,
        handlers: Mapping[str, ControlHandler],
        translator: Translator,
        locale: str,
    ) -> None:
        super().__init__(timeout=None)
        self.handlers = handlers
        for action in handlers:
            button = Button(
                emoji=translator.translate(locale, f"buttons.{action}.emoji"),
                style=discord.ButtonStyle.secondary,
                custom_id=control_custom_id(action),
            )
            button.callback = self._make_callback(action)
            self.add_item(button)

    def _make_callback(self, action: str) -> ControlHandler:
        async def callback(interaction: Interaction) -> None:
            await self.dispatch(action, interaction)

        return callback

    async def dispatch(self, action: str, interaction: Interaction) -> None:
        handler = self.handlers.get(action)
        if handler is None:
            logger.warning("No handler registered for %s", action)
            return
        await handler(interaction)

    async def on_error(
        self, interaction: Interaction, error: Exception, item: discord.ui.Item
    ) -> None:
        logger.exception(
            "Control %s failed",
            getattr(item, "custom_id", None),
            exc_info=error,
            extra={"user_id": interaction.user.id},
        )


class MemberSelectView(View):
    """
    Ephemeral user picker. The caller awaits ``wait()`` and reads ``selected``.

    Only the member who opened the picker may use it. ``selected`` holds the
    raw select values, which may be users that are not cached guild members.
    """

    def __init__(
        self,
        *,
        owner_id: int,
        custom_id: str,
        placeholder: str | None = None,
        max_values: int = 3,
        timeout: float | None = 60.0,
    ) -> None:
        super().__init__(timeout=timeout)
        self.owner_id = owner_id
        self.selected: list[discord.Member | discord.User] = []
        self.submission: Interaction | None = None

        self.user_select = UserSelect(
            custom_id=custom_id,
            placeholder=placeholder,
            min_values=1,
            max_values=max_values,
        )
        self.user_select.callback = self.user_select_callback
        self.add_item(self.user_select)

    async def interaction_check(self, interaction: Interaction) -> bool:
        return interaction.user.id == self.owner_id

    async def user_select_callback(self, interaction: Interaction) -> None:
        self.selected = list(self.user_select.values)
        self.submission = interaction
        await interaction.response.defer(ephemeral=True, thinking=False)
        self.stop()
