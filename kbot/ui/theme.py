from __future__ import annotations

from typing import Optional

import discord

from kbot.config import EMBED_COLOR


class Theme:
    # embed colors
    INFO = EMBED_COLOR
    OK = 0x2ECC71
    WARN = 0xF1C40F
    ERR = 0xE74C3C


def base_embed(title: str, description: str, color: int = Theme.INFO, footer: Optional[str] = None) -> discord.Embed:
    e = discord.Embed(title=title, description=description, color=color)
    if footer:
        e.set_footer(text=footer)
    return e
