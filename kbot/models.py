from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


def module_flag_key(category: str) -> str:
    """Settings field that toggles a module, e.g. "Moderation" -> "isModerationModule"."""
    return f"is{category}Module"


@dataclass
class GuildSettings:
    guild_id: int
    document: Dict[str, Any] = field(default_factory=dict)

    def module_flag(self, category: str) -> Optional[bool]:
        value = self.document.get(module_flag_key(category))
        if value is None:
            return None
        return bool(value)

    def is_module_disabled(self, category: str) -> bool:
        # Absent means "not disabled".
        return self.module_flag(category) is False

    def with_module_flag(self, category: str, enabled: bool) -> "GuildSettings":
        doc = dict(self.document)
        doc[module_flag_key(category)] = bool(enabled)
        return GuildSettings(guild_id=self.guild_id, document=doc)
