from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Dict, Iterator, Mapping, Optional, Tuple


class ModuleId(str, enum.Enum):
    GENERAL = "general"
    MODERATION = "moderation"
    ADMINISTRATION = "administration"


class ModuleError(Exception):
    """Raised by a module when it cannot decide whether it is enabled."""


@dataclass(frozen=True)
class IsEnabledContext:
    guild: Any
    source: Any = None
    command: Optional[str] = None


class BotModule:
    """A feature area grouping commands. Cogs point at one via their ``category``."""

    module_id: ModuleId
    name: str
    required_permissions: Tuple[str, ...] = ()

    async def is_enabled(self, context: IsEnabledContext) -> bool:
        return True

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r}>"


def _require_guild(context: IsEnabledContext) -> bool:
    guild = context.guild
    if guild is None:
        return False
    if getattr(guild, "unavailable", False):
        raise ModuleError(f"guild {getattr(guild, 'id', '?')} is unavailable")
    return True


class GeneralModule(BotModule):
    module_id = ModuleId.GENERAL
    name = "General"


class ModerationModule(BotModule):
    module_id = ModuleId.MODERATION
    name = "Moderation"

    async def is_enabled(self, context: IsEnabledContext) -> bool:
        return _require_guild(context)


class AdministrationModule(BotModule):
    module_id = ModuleId.ADMINISTRATION
    name = "Administration"
    required_permissions = ("manage_guild",)

    async def is_enabled(self, context: IsEnabledContext) -> bool:
        return _require_guild(context)


class ModuleRegistry:
    def __init__(self, *modules: BotModule):
        self._modules: Dict[ModuleId, BotModule] = {m.module_id: m for m in modules}

    def list_modules(self) -> Mapping[ModuleId, BotModule]:
        return dict(self._modules)

    def get(self, category: str | None) -> Optional[BotModule]:
        if not category:
            return None
        try:
            key = ModuleId(category.lower())
        except ValueError:
            return None
        return self._modules.get(key)

    def __iter__(self) -> Iterator[BotModule]:
        return iter(self._modules.values())

    def __len__(self) -> int:
        return len(self._modules)


MODULES = ModuleRegistry(GeneralModule(), ModerationModule(), AdministrationModule())
