from __future__ import annotations

from typing import List, Optional

import discord

from kbot.config import PREFIX, REGEX_PREFIX


def matched_prefixes(content: str, default: Optional[str] = None) -> List[str]:
    """Prefixes a message may use: the regex prefix it actually starts with, then the configured one."""
    out: List[str] = []
    m = REGEX_PREFIX.match(content or "")
    if m:
        out.append(m.group(0))
    out.append(PREFIX if default is None else default)
    return out


def safe_allowed_mentions() -> discord.AllowedMentions:
    return discord.AllowedMentions.none()
