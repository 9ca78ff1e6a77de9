from __future__ import annotations

import logging
from typing import List, Optional

import discord
from discord import ui

from kbot.config import HELP_TIMEOUT_SECONDS
from kbot.help_menu import Control, HelpMenu, MenuRender, RenderDispatchFailed, RequesterContext
from kbot.ui.theme import Theme, base_embed

log = logging.getLogger(__name__)

_BUTTON_STYLES = {
    "primary": discord.ButtonStyle.primary,
    "secondary": discord.ButtonStyle.secondary,
    "danger": discord.ButtonStyle.danger,
    "success": discord.ButtonStyle.success,
}


def render_embed(render: MenuRender) -> discord.Embed:
    color = Theme.ERR if render.is_error else Theme.INFO
    return base_embed(render.title, render.body, color=color, footer=render.footer)


class HelpMenuView(ui.View):
    """One interactive help session. Rebuilds its items from every render."""

    def __init__(self, menu: HelpMenu, author_id: int, render: MenuRender, timeout: float = HELP_TIMEOUT_SECONDS):
        super().__init__(timeout=timeout)
        self.menu = menu
        self.author_id = author_id
        self.message: Optional[discord.Message] = None
        self.render: MenuRender = render
        self._sync_items(render)

    def _sync_items(self, render: MenuRender):
        self.render = render
        self.clear_items()
        for control in render.controls:
            self.add_item(self._build_item(control))

    def _build_item(self, control: Control) -> ui.Item:
        item: ui.Item
        if control.kind == "select":
            item = ui.Select(
                custom_id=control.custom_id,
                placeholder=control.placeholder or None,
                min_values=1,
                max_values=1,
                options=[
                    discord.SelectOption(
                        label=o.label,
                        value=o.value,
                        description=o.description or None,
                        emoji=o.emoji,
                    )
                    for o in control.options
                ],
                row=control.row,
            )
        else:
            item = ui.Button(
                custom_id=control.custom_id,
                label=control.label,
                style=_BUTTON_STYLES.get(control.style, discord.ButtonStyle.primary),
                disabled=control.disabled,
                row=control.row,
            )
        item.callback = self._callback_for(item, control.custom_id)
        return item

    def _callback_for(self, item: ui.Item, custom_id: str):
        async def callback(interaction: discord.Interaction):
            values: List[str] = list(item.values) if isinstance(item, ui.Select) else []
            await self.handle(interaction, custom_id, values)

        return callback

    async def interaction_check(self, interaction: discord.Interaction) -> bool:
        if interaction.user and interaction.user.id == self.author_id:
            return True
        await interaction.response.send_message("Only the command invoker can use this menu.", ephemeral=True)
        return False

    async def handle(self, interaction: discord.Interaction, custom_id: str, values: List[str]):
        ctx = RequesterContext.from_interaction(interaction)
        render = await self.menu.navigate(ctx, custom_id, values)
        if render is None:
            # Guild settings vanished mid-session; acknowledge and leave the message as is.
            await interaction.response.defer()
            return

        # The edit serializes this view, so the new items go in first and come back out on failure.
        shown = self.render
        self._sync_items(render)
        try:
            await self._dispatch(interaction, render)
        except RenderDispatchFailed:
            log.debug("Help menu edit rejected for user %s", ctx.user_id, exc_info=True)
            self._sync_items(shown)
            return
        if not render.controls:
            self.stop()

    async def _dispatch(self, interaction: discord.Interaction, render: MenuRender):
        try:
            await interaction.response.edit_message(
                embed=render_embed(render),
                view=self if render.controls else None,
            )
        except discord.HTTPException as err:
            raise RenderDispatchFailed(str(err)) from err

    async def on_timeout(self):
        self.clear_items()
        if self.message is None:
            return
        try:
            await self.message.edit(view=None)
        except discord.HTTPException:
            log.debug("Help menu message gone before timeout cleanup")
