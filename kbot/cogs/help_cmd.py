from __future__ import annotations

from typing import Optional

from discord import app_commands
from discord.ext import commands

from kbot.help_menu import HelpMenu, RequesterContext
from kbot.modules import MODULES
from kbot.registry import BotCommandRegistry
from kbot.ui.help_view import HelpMenuView, render_embed
from kbot.utils import safe_allowed_mentions


class HelpCog(commands.Cog):
    category = "General"

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    def build_menu(self) -> HelpMenu:
        # Rebuilt per invocation so it always sees the current commands and synced ids.
        return HelpMenu(
            BotCommandRegistry(self.bot),
            MODULES,
            settings=getattr(self.bot, "dbx", None),
            command_ids=getattr(self.bot, "app_command_ids", None),
        )

    @commands.hybrid_command(name="help", description="Shows all available commands")
    @app_commands.describe(module="Specific module to show commands for")
    @commands.guild_only()
    async def help(self, ctx: commands.Context, module: Optional[str] = None):
        menu = self.build_menu()
        requester = RequesterContext.from_context(ctx)
        render = await menu.open(requester, module)
        if render is None:
            return

        if not render.controls:
            await ctx.send(embed=render_embed(render), ephemeral=True, allowed_mentions=safe_allowed_mentions())
            return

        view = HelpMenuView(menu, author_id=requester.user_id, render=render)
        view.message = await ctx.send(
            embed=render_embed(render),
            view=view,
            ephemeral=True,
            allowed_mentions=safe_allowed_mentions(),
        )


async def setup(bot: commands.Bot):
    await bot.add_cog(HelpCog(bot))
