from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional, Protocol, Tuple

import discord
from discord import app_commands
from discord.ext import commands


@dataclass(frozen=True)
class CommandInfo:
    name: str
    description: str = ""
    category: Optional[str] = None
    required_permissions: Optional[discord.Permissions] = None
    parameters: Tuple[str, ...] = ()

    @property
    def root_name(self) -> str:
        return self.name.split(" ", 1)[0]


class CommandRegistry(Protocol):
    def list_commands(self) -> List[CommandInfo]:
        ...


def _required_permissions(cmd: Any) -> Optional[discord.Permissions]:
    extras = getattr(cmd, "extras", None) or {}
    perms = extras.get("required_permissions")
    if perms is not None:
        return perms
    perms = getattr(cmd, "default_permissions", None)
    if perms is not None:
        return perms
    app_cmd = getattr(cmd, "app_command", None)
    if app_cmd is not None:
        return getattr(app_cmd, "default_permissions", None)
    return None


def _from_app_command(cmd: app_commands.Command, category: Optional[str]) -> CommandInfo:
    return CommandInfo(
        name=cmd.qualified_name,
        description=cmd.description or "",
        category=category,
        required_permissions=_required_permissions(cmd),
        parameters=tuple(p.name for p in cmd.parameters),
    )


def _from_prefix_command(cmd: commands.Command, category: Optional[str]) -> CommandInfo:
    return CommandInfo(
        name=cmd.qualified_name,
        description=cmd.description or cmd.short_doc or "",
        category=category,
        required_permissions=_required_permissions(cmd),
        parameters=tuple(cmd.clean_params.keys()),
    )


class BotCommandRegistry:
    """Reads the commands a running bot has registered, grouped by cog category."""

    def __init__(self, bot: commands.Bot):
        self.bot = bot

    def list_commands(self) -> List[CommandInfo]:
        out: dict[str, CommandInfo] = {}
        for cog in self.bot.cogs.values():
            category = getattr(cog, "category", None)
            for cmd in cog.walk_app_commands():
                if isinstance(cmd, app_commands.Command):
                    out.setdefault(cmd.qualified_name, _from_app_command(cmd, category))
            for pcmd in cog.walk_commands():
                if isinstance(pcmd, commands.Group) or pcmd.hidden:
                    continue
                out.setdefault(pcmd.qualified_name, _from_prefix_command(pcmd, category))
        return list(out.values())
