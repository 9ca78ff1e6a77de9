"""Permission-filtered, paginated help menu.

The menu is rebuilt from scratch on every user action. Nothing is kept between
events except what the rendered controls carry: the module select sends the
chosen module, and every page button carries a ``help:<action>:<module>:<page>``
token naming the page it leads to.
"""
from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple

import discord

from kbot.config import (
    DEFAULT_MODULE_EMOJI,
    HELP_COMMANDS_PER_PAGE,
    HELP_MODULE_PERMISSIONS,
    MODULE_EMOJIS,
)
from kbot.models import GuildSettings
from kbot.modules import MODULES, BotModule, IsEnabledContext, ModuleRegistry
from kbot.permissions import channel_permissions, has_all, has_any, normalize_permissions
from kbot.registry import CommandInfo, CommandRegistry

log = logging.getLogger(__name__)

SELECT_ID = "help:module-select"
BACK_ID = "help:back"

MENU_TITLE = "Help Menu"
MENU_INTRO = "Select a module from the dropdown menu below to view its commands."
ERROR_TEXT = "An error occurred while fetching commands."
EMPTY_MODULE_TEXT = "No commands available in this module."
NO_DESCRIPTION = "No description available"

# Discord caps select menus at 25 options.
MAX_SELECT_OPTIONS = 25

# Discord rejects component custom_ids longer than this.
MAX_CUSTOM_ID_LENGTH = 100

# The module name is free text; the page is whatever follows the last colon.
_TOKEN_RE = re.compile(r"^help:(?P<action>prev|next|page):(?P<module>.+):(?P<page>-?\d+)$")


class HelpMenuError(Exception):
    pass


class SettingsUnavailable(HelpMenuError):
    """The guild has no settings document; the menu is not shown."""


class ModulePredicateFailed(HelpMenuError):
    """A module's enablement check errored; the module is treated as disabled."""


class InvalidPageIndex(HelpMenuError):
    def __init__(self, module: str, page: int, page_count: int):
        super().__init__(f"page {page} requested for {module!r}, which has {page_count} page(s)")
        self.module = module
        self.page = page
        self.page_count = page_count


class RenderDispatchFailed(HelpMenuError):
    """The platform rejected an edit of the menu message."""


@dataclass(frozen=True)
class RequesterContext:
    guild_id: Optional[int]
    user_id: int
    permissions: discord.Permissions = field(default_factory=discord.Permissions.none)
    is_interaction: bool = False
    guild: Any = field(default=None, compare=False, repr=False)
    source: Any = field(default=None, compare=False, repr=False)

    @classmethod
    def from_interaction(cls, interaction: discord.Interaction) -> "RequesterContext":
        # Resolved for the invoking channel, so channel overwrites apply.
        return cls(
            guild_id=interaction.guild_id,
            user_id=int(interaction.user.id),
            permissions=normalize_permissions(interaction.permissions),
            is_interaction=True,
            guild=interaction.guild,
            source=interaction,
        )

    @classmethod
    def from_message(cls, message: discord.Message) -> "RequesterContext":
        guild = message.guild
        return cls(
            guild_id=guild.id if guild else None,
            user_id=int(message.author.id),
            permissions=channel_permissions(message.channel, message.author),
            is_interaction=False,
            guild=guild,
            source=message,
        )

    @classmethod
    def from_context(cls, ctx: Any) -> "RequesterContext":
        if getattr(ctx, "interaction", None) is not None:
            return cls.from_interaction(ctx.interaction)
        return cls.from_message(ctx.message)


@dataclass(frozen=True)
class PageState:
    module: str
    page: int = 0

    def token(self, action: str = "page") -> str:
        token = f"help:{action}:{self.module}:{self.page}"
        if len(token) > MAX_CUSTOM_ID_LENGTH:
            raise ValueError(f"module name too long for a help control: {self.module!r}")
        return token

    @classmethod
    def parse(cls, custom_id: str) -> Optional["PageState"]:
        m = _TOKEN_RE.match(custom_id or "")
        if not m:
            return None
        return cls(module=m.group("module"), page=int(m.group("page")))


@dataclass(frozen=True)
class SelectChoice:
    label: str
    value: str
    description: str = ""
    emoji: Optional[str] = None


@dataclass(frozen=True)
class Control:
    kind: str  # "select" or "button"
    custom_id: str
    label: str = ""
    style: str = "primary"
    disabled: bool = False
    row: int = 0
    placeholder: str = ""
    options: Tuple[SelectChoice, ...] = ()


@dataclass
class MenuRender:
    title: str
    body: str
    footer: Optional[str] = None
    controls: List[Control] = field(default_factory=list)
    is_error: bool = False
    state: Optional[PageState] = None

    def get(self, custom_id: str) -> Optional[Control]:
        for c in self.controls:
            if c.custom_id == custom_id:
                return c
        return None


def display_module(name: str) -> str:
    return name[:1].upper() + name[1:]


def module_emoji(name: str) -> str:
    return MODULE_EMOJIS.get(name.lower(), DEFAULT_MODULE_EMOJI)


class HelpMenu:
    def __init__(
        self,
        commands: CommandRegistry,
        modules: ModuleRegistry = MODULES,
        settings: Any = None,
        command_ids: Optional[Mapping[str, int]] = None,
        per_page: int = HELP_COMMANDS_PER_PAGE,
        module_permissions: Optional[Mapping[str, Sequence[str]]] = None,
    ):
        if per_page < 1:
            raise ValueError("per_page must be >= 1")
        self.commands = commands
        self.modules = modules
        self.settings = settings
        self.command_ids = command_ids or {}
        self.per_page = per_page
        self.module_permissions = HELP_MODULE_PERMISSIONS if module_permissions is None else module_permissions

    # ---------------------------
    # Module filter
    # ---------------------------
    def categories(self) -> List[str]:
        seen: dict[str, None] = {}
        for cmd in self.commands.list_commands():
            if cmd.category:
                seen.setdefault(cmd.category, None)
        return list(seen)

    async def _load_settings(self, ctx: RequesterContext) -> GuildSettings:
        if ctx.guild_id is None or self.settings is None:
            raise SettingsUnavailable(f"no settings store for guild {ctx.guild_id}")
        settings = await self.settings.get_guild_settings(ctx.guild_id)
        if settings is None:
            raise SettingsUnavailable(f"guild {ctx.guild_id} has no settings document")
        return settings

    async def _check_enabled(self, module: BotModule, ctx: RequesterContext) -> bool:
        try:
            return bool(await module.is_enabled(IsEnabledContext(guild=ctx.guild, source=ctx.source, command="help")))
        except Exception as err:
            raise ModulePredicateFailed(f"{module.name}: {err}") from err

    async def _module_visible(self, category: str, ctx: RequesterContext, settings: GuildSettings) -> bool:
        if settings.is_module_disabled(category):
            return False

        module = self.modules.get(category)
        if module is not None:
            try:
                if not await self._check_enabled(module, ctx):
                    return False
            except ModulePredicateFailed:
                log.debug("Hiding module %s: enablement check failed", category, exc_info=True)
                return False
            if module.required_permissions and not has_any(ctx.permissions, module.required_permissions):
                return False

        # Second, independent gate owned by the menu itself.
        extra = self.module_permissions.get(category)
        if extra and not has_any(ctx.permissions, extra):
            return False
        return True

    async def filter_modules(self, ctx: RequesterContext, settings: GuildSettings) -> List[str]:
        cats = self.categories()
        visible = await asyncio.gather(*(self._module_visible(c, ctx, settings) for c in cats))
        return [c for c, ok in zip(cats, visible) if ok]

    async def visible_modules(self, ctx: RequesterContext) -> List[str]:
        settings = await self._load_settings(ctx)
        return await self.filter_modules(ctx, settings)

    # ---------------------------
    # Paginator
    # ---------------------------
    def module_commands(self, module: str, ctx: RequesterContext) -> List[CommandInfo]:
        key = module.lower()
        return [
            c
            for c in self.commands.list_commands()
            if (c.category or "").lower() == key and has_all(ctx.permissions, c.required_permissions)
        ]

    def paginate(self, cmds: Sequence[CommandInfo]) -> List[List[CommandInfo]]:
        n = self.per_page
        pages = [list(cmds[i : i + n]) for i in range(0, len(cmds), n)]
        return pages or [[]]

    def page_count(self, command_count: int) -> int:
        return max(1, -(-command_count // self.per_page))

    # ---------------------------
    # Rendering
    # ---------------------------
    def format_command(self, cmd: CommandInfo) -> str:
        cid = self.command_ids.get(cmd.root_name)
        mention = f"</{cmd.name}:{cid}>" if cid else f"`/{cmd.name}`"
        text = f"{mention}\n↳ {cmd.description or NO_DESCRIPTION}"
        if cmd.parameters:
            text += "\nOptions: " + ", ".join(f"`{p}`" for p in cmd.parameters)
        return text + "\n"

    def render_top_level(self, modules: Iterable[str]) -> MenuRender:
        modules = list(modules)
        body = MENU_INTRO + "\n\n**Available Modules:**\n" + "\n".join(f"↳ • `{m}`" for m in modules)
        controls: List[Control] = []
        if modules:
            controls.append(
                Control(
                    kind="select",
                    custom_id=SELECT_ID,
                    placeholder="Select a module",
                    options=tuple(
                        SelectChoice(
                            label=m,
                            value=m.lower(),
                            description=f"View {m} commands",
                            emoji=module_emoji(m),
                        )
                        for m in modules[:MAX_SELECT_OPTIONS]
                    ),
                )
            )
        return MenuRender(title=MENU_TITLE, body=body, controls=controls)

    def render_module(self, module: str, pages: Sequence[Sequence[CommandInfo]], page: int) -> MenuRender:
        key = module.lower()
        total = max(1, len(pages))
        if not 0 <= page < total:
            raise InvalidPageIndex(key, page, total)

        title = f"{display_module(key)} Commands"
        state = PageState(key, page)
        back = Control(kind="button", custom_id=BACK_ID, label="Back to Modules", style="secondary", row=1)

        current = list(pages[page]) if pages else []
        if not current:
            return MenuRender(title=title, body=EMPTY_MODULE_TEXT, controls=[back], state=state)

        # Boundary buttons point at the current page, so a stale click re-renders in place.
        prev = Control(
            kind="button",
            custom_id=PageState(key, max(page - 1, 0)).token("prev"),
            label="Previous",
            disabled=page == 0,
        )
        nxt = Control(
            kind="button",
            custom_id=PageState(key, min(page + 1, total - 1)).token("next"),
            label="Next",
            disabled=page == total - 1,
        )
        return MenuRender(
            title=title,
            body="\n".join(self.format_command(c) for c in current),
            footer=f"Page {page + 1}/{total}",
            controls=[prev, nxt, back],
            state=state,
        )

    def render_error(self) -> MenuRender:
        return MenuRender(title=MENU_TITLE, body=ERROR_TEXT, controls=[], is_error=True)

    # ---------------------------
    # Entry points
    # ---------------------------
    async def open(self, ctx: RequesterContext, module: Optional[str] = None) -> Optional[MenuRender]:
        """Initial render. Returns None when the guild has no settings document."""
        try:
            modules = await self.visible_modules(ctx)
        except SettingsUnavailable:
            log.debug("Help menu skipped for guild %s: no settings", ctx.guild_id)
            return None
        except Exception:
            log.exception("Failed to build help module list (guild=%s)", ctx.guild_id)
            return self.render_error()

        if module:
            wanted = module.strip().lower()
            for m in modules:
                if m.lower() == wanted:
                    return await self.module_view(ctx, m)
        return self.render_top_level(modules)

    async def top_level(self, ctx: RequesterContext) -> Optional[MenuRender]:
        return await self.open(ctx)

    async def module_view(self, ctx: RequesterContext, module: str, page: int = 0) -> MenuRender:
        try:
            cmds = self.module_commands(module, ctx)
            return self.render_module(module, self.paginate(cmds), page)
        except InvalidPageIndex as err:
            log.warning("Rejected help navigation from user %s: %s", ctx.user_id, err)
            return self.render_error()
        except Exception:
            log.exception("Failed to build help page for module %s", module)
            return self.render_error()

    async def navigate(self, ctx: RequesterContext, custom_id: str, values: Sequence[str] = ()) -> Optional[MenuRender]:
        if custom_id == SELECT_ID:
            if not values:
                return self.render_error()
            return await self.module_view(ctx, values[0].lower())
        if custom_id == BACK_ID:
            return await self.top_level(ctx)

        state = PageState.parse(custom_id)
        if state is None:
            log.warning("Unknown help control %r", custom_id)
            return self.render_error()
        return await self.module_view(ctx, state.module, state.page)
