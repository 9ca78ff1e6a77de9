from __future__ import annotations

import math

import discord
from discord.ext import commands

from kbot.modules import MODULES
from kbot.ui.theme import base_embed


class GeneralCog(commands.Cog):
    category = "General"

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    @commands.hybrid_command(name="ping", description="Check the bot's latency")
    async def ping(self, ctx: commands.Context):
        latency_ms = round(self.bot.latency * 1000) if math.isfinite(self.bot.latency) else 0
        await ctx.send(f"Pong! `{latency_ms}ms`", ephemeral=True)

    @commands.hybrid_command(name="about", description="What this bot can do")
    async def about(self, ctx: commands.Context):
        names = ", ".join(f"`{m.name}`" for m in MODULES)
        emb = base_embed(
            "About",
            "Commands are grouped into modules that server admins can switch on and off.\n\n"
            f"**Modules:** {names}\n"
            "Use `/help` to browse the commands you can run here.",
        )
        await ctx.send(embed=emb, ephemeral=True, allowed_mentions=discord.AllowedMentions.none())


async def setup(bot: commands.Bot):
    await bot.add_cog(GeneralCog(bot))
