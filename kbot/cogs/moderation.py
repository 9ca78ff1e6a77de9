from __future__ import annotations

from datetime import timedelta
from typing import Optional

import discord
from discord import app_commands
from discord.ext import commands

from kbot.config import PURGE_MAX_MESSAGES
from kbot.utils import safe_allowed_mentions


class ModerationCog(commands.Cog):
    """Member moderation. Each command needs the matching Discord permission."""

    category = "Moderation"

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    async def cog_command_error(self, ctx: commands.Context, error: commands.CommandError):
        if isinstance(error, (commands.MissingPermissions, commands.BotMissingPermissions)):
            await ctx.send(str(error), ephemeral=True)
            return
        if isinstance(error, (commands.BadArgument, commands.MissingRequiredArgument)):
            await ctx.send(f"Bad argument: {error}", ephemeral=True)
            return
        if isinstance(error, commands.NoPrivateMessage):
            await ctx.send("This command only works in a server.", ephemeral=True)
            return
        self.bot.logger.exception("Moderation command %s failed", ctx.command, exc_info=error)

    @commands.hybrid_command(
        name="kick",
        description="Kick a member from the server",
        extras={"required_permissions": discord.Permissions(kick_members=True)},
    )
    @app_commands.describe(member="Member to kick", reason="Shown in the audit log")
    @app_commands.default_permissions(kick_members=True)
    @commands.has_permissions(kick_members=True)
    @commands.bot_has_permissions(kick_members=True)
    @commands.guild_only()
    async def kick(self, ctx: commands.Context, member: discord.Member, *, reason: Optional[str] = None):
        await member.kick(reason=reason)
        await ctx.send(f"Kicked {member.mention}.", ephemeral=True, allowed_mentions=safe_allowed_mentions())

    @commands.hybrid_command(
        name="ban",
        description="Ban a member from the server",
        extras={"required_permissions": discord.Permissions(ban_members=True)},
    )
    @app_commands.describe(member="Member to ban", reason="Shown in the audit log")
    @app_commands.default_permissions(ban_members=True)
    @commands.has_permissions(ban_members=True)
    @commands.bot_has_permissions(ban_members=True)
    @commands.guild_only()
    async def ban(self, ctx: commands.Context, member: discord.Member, *, reason: Optional[str] = None):
        await member.ban(reason=reason, delete_message_seconds=0)
        await ctx.send(f"Banned {member.mention}.", ephemeral=True, allowed_mentions=safe_allowed_mentions())

    @commands.hybrid_command(
        name="timeout",
        description="Time out a member for a number of minutes",
        extras={"required_permissions": discord.Permissions(moderate_members=True)},
    )
    @app_commands.describe(member="Member to time out", minutes="1 to 40320 (28 days)", reason="Shown in the audit log")
    @app_commands.default_permissions(moderate_members=True)
    @commands.has_permissions(moderate_members=True)
    @commands.bot_has_permissions(moderate_members=True)
    @commands.guild_only()
    async def timeout(
        self,
        ctx: commands.Context,
        member: discord.Member,
        minutes: commands.Range[int, 1, 40320],
        *,
        reason: Optional[str] = None,
    ):
        await member.timeout(timedelta(minutes=minutes), reason=reason)
        await ctx.send(
            f"Timed out {member.mention} for {minutes} minute(s).",
            ephemeral=True,
            allowed_mentions=safe_allowed_mentions(),
        )

    @commands.hybrid_command(
        name="purge",
        description="Delete recent messages in this channel",
        extras={"required_permissions": discord.Permissions(manage_messages=True)},
    )
    @app_commands.describe(amount=f"How many messages to delete (max {PURGE_MAX_MESSAGES})")
    @app_commands.default_permissions(manage_messages=True)
    @commands.has_permissions(manage_messages=True)
    @commands.bot_has_permissions(manage_messages=True, read_message_history=True)
    @commands.guild_only()
    async def purge(self, ctx: commands.Context, amount: int):
        n = max(1, min(int(amount), PURGE_MAX_MESSAGES))
        await ctx.defer(ephemeral=True)
        # Prefix invocations also delete the command message itself.
        limit = n if ctx.interaction else n + 1
        deleted = await ctx.channel.purge(limit=limit)
        await ctx.send(f"Deleted {len(deleted)} message(s).", ephemeral=True, delete_after=None if ctx.interaction else 5)


async def setup(bot: commands.Bot):
    await bot.add_cog(ModerationCog(bot))
