import asyncio

import discord

from kbot.main import EXTENSIONS, KBot
from kbot.registry import BotCommandRegistry


def test_extensions_load_and_register_commands():
    async def _run():
        bot = KBot()
        await bot.load_extensions()
        assert set(bot.extensions) == set(EXTENSIONS)

        cmds = {c.name: c for c in BotCommandRegistry(bot).list_commands()}
        for name in ("help", "ping", "about", "kick", "ban", "timeout", "purge", "module list", "module enable"):
            assert name in cmds, f"missing {name}: {sorted(cmds)}"

        assert cmds["help"].category == "General"
        assert cmds["help"].parameters == ("module",)
        assert cmds["kick"].category == "Moderation"
        assert cmds["kick"].required_permissions == discord.Permissions(kick_members=True)
        assert cmds["kick"].parameters == ("member", "reason")
        assert cmds["module disable"].category == "Administration"
        assert cmds["module disable"].required_permissions == discord.Permissions(manage_guild=True)
        assert cmds["module disable"].root_name == "module"

        # Hybrid commands are listed once
        assert len([c for c in BotCommandRegistry(bot).list_commands() if c.name == "help"]) == 1

        await bot.close()

    asyncio.run(_run())
