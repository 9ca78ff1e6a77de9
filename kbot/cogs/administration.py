from __future__ import annotations

import discord
from discord import app_commands
from discord.ext import commands

from kbot.modules import MODULES, ModuleId
from kbot.ui.theme import Theme, base_embed

MANAGE_GUILD = discord.Permissions(manage_guild=True)

MODULE_CHOICES = [app_commands.Choice(name=m.name, value=m.name) for m in MODULES]

# The help menu lives in General, so it stays on.
LOCKED_MODULES = {ModuleId.GENERAL.value}


@app_commands.guild_only()
@app_commands.default_permissions(manage_guild=True)
class AdministrationCog(
    commands.GroupCog,
    group_name="module",
    group_description="Enable or disable bot modules for this server",
):
    """Slash-command group: /module ..."""

    category = "Administration"

    def __init__(self, bot: commands.Bot):
        self.bot = bot
        super().__init__()

    async def _ensure_all(self, guilds):
        assert self.bot.dbx is not None
        for guild in guilds:
            await self.bot.dbx.ensure_guild_settings(int(guild.id))

    @commands.Cog.listener()
    async def on_ready(self):
        if not self.bot.dbx:
            return
        try:
            await self._ensure_all(self.bot.guilds)
        except Exception:
            self.bot.logger.exception("Guild settings bootstrap failed")

    @commands.Cog.listener()
    async def on_guild_join(self, guild: discord.Guild):
        if not self.bot.dbx:
            return
        try:
            await self.bot.dbx.ensure_guild_settings(int(guild.id))
            self.bot.logger.info("Created settings for guild %s", guild.id)
        except Exception:
            self.bot.logger.exception("Could not create settings for guild %s", guild.id)

    async def cog_app_command_error(self, interaction: discord.Interaction, error: app_commands.AppCommandError):
        if isinstance(error, (app_commands.MissingPermissions, app_commands.NoPrivateMessage)):
            msg = str(error)
        else:
            self.bot.logger.exception("Module command failed", exc_info=error)
            msg = "Something went wrong while updating module settings."
        if interaction.response.is_done():
            await interaction.followup.send(msg, ephemeral=True)
        else:
            await interaction.response.send_message(msg, ephemeral=True)

    # ---------------------------
    # /module list
    # ---------------------------
    @app_commands.command(
        name="list",
        description="Show which modules are on in this server.",
        extras={"required_permissions": MANAGE_GUILD},
    )
    @app_commands.checks.has_permissions(manage_guild=True)
    async def list_modules(self, interaction: discord.Interaction):
        assert self.bot.dbx is not None
        settings = await self.bot.dbx.ensure_guild_settings(int(interaction.guild_id or 0))
        lines = []
        for m in MODULES:
            on = not settings.is_module_disabled(m.name)
            lines.append(f"{'✅' if on else '❌'} **{m.name}**")
        emb = base_embed("Modules", "\n".join(lines))
        await interaction.response.send_message(embed=emb, ephemeral=True)

    # ---------------------------
    # /module enable | disable
    # ---------------------------
    @app_commands.command(
        name="enable",
        description="Turn a module on for this server.",
        extras={"required_permissions": MANAGE_GUILD},
    )
    @app_commands.describe(module="Module to enable")
    @app_commands.choices(module=MODULE_CHOICES)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def enable(self, interaction: discord.Interaction, module: app_commands.Choice[str]):
        await self._set(interaction, module.value, True)

    @app_commands.command(
        name="disable",
        description="Turn a module off for this server.",
        extras={"required_permissions": MANAGE_GUILD},
    )
    @app_commands.describe(module="Module to disable")
    @app_commands.choices(module=MODULE_CHOICES)
    @app_commands.checks.has_permissions(manage_guild=True)
    async def disable(self, interaction: discord.Interaction, module: app_commands.Choice[str]):
        if module.value.lower() in LOCKED_MODULES:
            await interaction.response.send_message(f"The {module.value} module can't be disabled.", ephemeral=True)
            return
        await self._set(interaction, module.value, False)

    async def _set(self, interaction: discord.Interaction, name: str, enabled: bool):
        assert self.bot.dbx is not None
        gid = int(interaction.guild_id or 0)
        await self.bot.dbx.set_module_flag(gid, name, enabled)
        state = "enabled" if enabled else "disabled"
        self.bot.logger.info("Guild %s: %s module %s by %s", gid, name, state, interaction.user.id)
        emb = base_embed("Modules", f"**{name}** is now {state}.", color=Theme.OK if enabled else Theme.WARN)
        await interaction.response.send_message(embed=emb, ephemeral=True)


async def setup(bot: commands.Bot):
    await bot.add_cog(AdministrationCog(bot))
