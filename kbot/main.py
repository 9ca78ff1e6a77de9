from __future__ import annotations

import asyncio
import logging
import os
import sys
from typing import Dict, List, Optional

import discord
from discord.ext import commands

from kbot.config import REQUIRE_MESSAGE_CONTENT_INTENT, get_bot_token
from kbot.database import DBX, init_db
from kbot.utils import matched_prefixes

EXTENSIONS = [
    "kbot.cogs.help_cmd",
    "kbot.cogs.general",
    "kbot.cogs.moderation",
    "kbot.cogs.administration",
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
logging.basicConfig(
    level=LOG_LEVEL,
    format="%(asctime)s %(levelname)-8s %(name)s: %(message)s",
)
logger = logging.getLogger("kbot")


def get_prefix(bot: commands.Bot, message: discord.Message) -> List[str]:
    return commands.when_mentioned_or(*matched_prefixes(message.content))(bot, message)


class KBot(commands.Bot):
    def __init__(self):
        intents = discord.Intents.default()
        intents.guilds = True
        intents.members = True
        intents.messages = True
        intents.message_content = bool(REQUIRE_MESSAGE_CONTENT_INTENT)

        super().__init__(command_prefix=get_prefix, intents=intents, help_command=None)

        self.logger = logger
        self.dbx: Optional[DBX] = None  # set in setup_hook
        # slash command name -> application command id, filled after sync
        self.app_command_ids: Dict[str, int] = {}

    async def load_extensions(self):
        for ext in EXTENSIONS:
            try:
                await self.load_extension(ext)
                logger.info("Loaded extension: %s", ext)
            except Exception:
                logger.exception("Failed loading extension %s", ext)

    async def setup_hook(self):
        self.dbx = await init_db()
        logger.info("DB initialized: %s", type(self.dbx).__name__)

        await self.load_extensions()

        try:
            synced = await self.tree.sync()
            self.app_command_ids = {c.name: c.id for c in synced}
            logger.info("Synced %d slash commands.", len(synced))
        except Exception:
            logger.exception("Slash command sync failed")

        if not REQUIRE_MESSAGE_CONTENT_INTENT:
            logger.info("Prefix commands are disabled (REQUIRE_MESSAGE_CONTENT_INTENT=0).")

    async def close(self):
        await super().close()
        if self.dbx is not None:
            await self.dbx.close()
            self.dbx = None


async def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv
    token = get_bot_token().strip()
    if not token:
        raise RuntimeError("DISCORD_TOKEN (or BOT_TOKEN) env var not set.")

    bot = KBot()
    if "--test" in argv:
        # Config check only; never connects.
        logger.info("Configuration OK (%d extensions); not logging in.", len(EXTENSIONS))
        return 0

    async with bot:
        logger.info("Logging in")
        await bot.start(token)
    return 0


def cli() -> int:
    return asyncio.run(main())


if __name__ == "__main__":
    raise SystemExit(cli())
