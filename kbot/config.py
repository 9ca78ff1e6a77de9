from __future__ import annotations

import os
import re
from typing import Dict, Tuple

# =========================
# Secrets / environment
# =========================
# Put these in the host environment (or a local .env), NOT in code:
#   DISCORD_TOKEN=...
#   DATABASE_URL=...
#
# BOT_TOKEN is kept for backwards-compat with older deployments.
BOT_TOKEN = os.getenv("DISCORD_TOKEN", "") or os.getenv("BOT_TOKEN", "")
DATABASE_URL = os.getenv("DATABASE_URL", "").strip()
SQLITE_PATH = os.getenv("DB_PATH", "kbot.db")

# =========================
# Bot behavior
# =========================
PREFIX = os.getenv("PREFIX", "!")

# "bot, help" / "hey bot help" style invocations.
REGEX_PREFIX = re.compile(r"^(hey +)?bot[,! ]", re.IGNORECASE)

# Prefix commands require the privileged "Message Content Intent" in the Discord Developer Portal.
REQUIRE_MESSAGE_CONTENT_INTENT = os.getenv("REQUIRE_MESSAGE_CONTENT_INTENT", "1").strip() not in ("0", "false", "False")

EMBED_COLOR = int(os.getenv("EMBED_COLOR", "0x5DADE2"), 16)

# =========================
# Help menu
# =========================
HELP_COMMANDS_PER_PAGE = int(os.getenv("HELP_COMMANDS_PER_PAGE", "5"))

# Inactivity timeout for one help session (seconds)
HELP_TIMEOUT_SECONDS = float(os.getenv("HELP_TIMEOUT_SECONDS", "300"))

# Extra permission gate applied by the help menu on top of each module's own
# required permissions. A requester needs at least ONE flag from the list.
HELP_MODULE_PERMISSIONS: Dict[str, Tuple[str, ...]] = {
    "Administration": ("administrator", "manage_guild"),
    "Moderation": (
        "manage_channels",
        "manage_roles",
        "ban_members",
        "kick_members",
        "moderate_members",
    ),
}

# Select menu icon per module (lowercase name)
MODULE_EMOJIS: Dict[str, str] = {
    "general": "⚙️",
    "moderation": "🛡️",
    "administration": "🗝️",
    "fun": "🎮",
    "utility": "🔧",
    "music": "🎵",
    "economy": "💰",
    "leveling": "📈",
}
DEFAULT_MODULE_EMOJI = "📁"

# =========================
# Moderation
# =========================
PURGE_MAX_MESSAGES = int(os.getenv("PURGE_MAX_MESSAGES", "100"))


def get_bot_token() -> str:
    return BOT_TOKEN
