from __future__ import annotations

from typing import Any, Iterable, Optional, Union

import discord

PermissionSource = Union[discord.Permissions, int, None]


def normalize_permissions(value: PermissionSource) -> discord.Permissions:
    """Return a Permissions object for a member's permission source.

    The platform hands us either a Permissions object or, on some legacy code
    paths, the raw integer bitset. Missing permissions mean "nothing granted".
    """
    if value is None:
        return discord.Permissions.none()
    if isinstance(value, discord.Permissions):
        return value
    if isinstance(value, bool):
        raise TypeError("permission bitset cannot be a bool")
    if isinstance(value, int):
        return discord.Permissions(value)
    raise TypeError(f"unsupported permission source: {type(value).__name__}")


def permissions_from(flags: Iterable[str]) -> discord.Permissions:
    return discord.Permissions(**{name: True for name in flags})


def _flag_names(required: Any) -> list[str]:
    if isinstance(required, discord.Permissions):
        return [name for name, granted in required if granted]
    return list(required)


def has_any(perms: discord.Permissions, required: Any) -> bool:
    """OR semantics: True when at least one required flag is granted."""
    names = _flag_names(required)
    if not names:
        return True
    if perms.administrator:
        return True
    return any(getattr(perms, name, False) for name in names)


def has_all(perms: discord.Permissions, required: Optional[Any]) -> bool:
    """Exact containment: every required flag must be granted."""
    if required is None:
        return True
    if not isinstance(required, discord.Permissions):
        required = permissions_from(required)
    if perms.administrator:
        return True
    return required <= perms


def channel_permissions(channel: Any, member: Any) -> discord.Permissions:
    """Permissions of a member in a channel, overwrites included (DMs grant nothing)."""
    if channel is None or getattr(member, "guild", None) is None:
        return discord.Permissions.none()
    return normalize_permissions(channel.permissions_for(member))
