import asyncio

import discord

from kbot.help_menu import HelpMenu
from kbot.modules import (
    MODULES,
    AdministrationModule,
    BotModule,
    GeneralModule,
    ModerationModule,
    ModuleError,
    ModuleId,
    ModuleRegistry,
)
from fakes import GUILD_ID, FakeCommands, FakeSettingsStore, cmd, requester

COMMANDS = [
    cmd("help", "General"),
    cmd("kick", "Moderation"),
    cmd("module list", "Administration"),
    cmd("ping", "General"),
]

ADMIN = discord.Permissions(administrator=True)


def _menu(docs=None, modules=MODULES, module_permissions=None, commands=COMMANDS):
    return HelpMenu(
        FakeCommands(commands),
        modules,
        settings=FakeSettingsStore(docs),
        module_permissions=module_permissions,
    )


def test_disabled_flag_hides_module_even_for_admins():
    menu = _menu({GUILD_ID: {"isModerationModule": False}})
    mods = asyncio.run(menu.visible_modules(requester(ADMIN)))
    assert "Moderation" not in mods
    assert mods == ["General", "Administration"]


def test_absent_or_true_flag_keeps_module():
    menu = _menu({GUILD_ID: {"isModerationModule": True}})
    assert asyncio.run(menu.visible_modules(requester(ADMIN))) == ["General", "Moderation", "Administration"]
    menu = _menu({GUILD_ID: {}})
    assert asyncio.run(menu.visible_modules(requester(ADMIN))) == ["General", "Moderation", "Administration"]


def test_one_of_three_permissions_is_enough():
    table = {"Moderation": ("ban_members", "kick_members", "manage_roles")}
    menu = _menu(module_permissions=table)

    one = asyncio.run(menu.visible_modules(requester(discord.Permissions(kick_members=True))))
    assert "Moderation" in one

    none = asyncio.run(menu.visible_modules(requester(discord.Permissions(send_messages=True))))
    assert "Moderation" not in none


def test_module_declared_permissions_gate():
    menu = _menu(module_permissions={})
    without = asyncio.run(menu.visible_modules(requester(discord.Permissions.none())))
    assert "Administration" not in without
    with_perm = asyncio.run(menu.visible_modules(requester(discord.Permissions(manage_guild=True))))
    assert "Administration" in with_perm


def test_both_gates_must_pass():
    class StrictModeration(ModerationModule):
        required_permissions = ("manage_guild",)

    modules = ModuleRegistry(GeneralModule(), StrictModeration(), AdministrationModule())
    menu = _menu(modules=modules, module_permissions={"Moderation": ("ban_members",)})

    only_module_gate = asyncio.run(menu.visible_modules(requester(discord.Permissions(manage_guild=True))))
    assert "Moderation" not in only_module_gate
    only_menu_gate = asyncio.run(menu.visible_modules(requester(discord.Permissions(ban_members=True))))
    assert "Moderation" not in only_menu_gate
    both = asyncio.run(menu.visible_modules(requester(discord.Permissions(manage_guild=True, ban_members=True))))
    assert "Moderation" in both


def test_failing_predicate_hides_only_that_module():
    class BrokenModeration(BotModule):
        module_id = ModuleId.MODERATION
        name = "Moderation"

        async def is_enabled(self, context):
            raise ModuleError("backend down")

    class OffAdministration(BotModule):
        module_id = ModuleId.ADMINISTRATION
        name = "Administration"

        async def is_enabled(self, context):
            return False

    modules = ModuleRegistry(GeneralModule(), BrokenModeration(), OffAdministration())
    menu = _menu(modules=modules)
    assert asyncio.run(menu.visible_modules(requester(ADMIN))) == ["General"]


def test_unavailable_guild_counts_as_predicate_failure():
    menu = _menu()
    ctx = requester(ADMIN)
    ctx.guild.unavailable = True
    assert asyncio.run(menu.visible_modules(ctx)) == ["General"]


def test_unknown_category_without_module_is_kept():
    menu = _menu(commands=COMMANDS + [cmd("roll", "Fun")])
    assert asyncio.run(menu.visible_modules(requester(ADMIN)))[-1] == "Fun"


def test_predicates_run_concurrently():
    state = {"active": 0, "peak": 0}

    class Slow(BotModule):
        async def is_enabled(self, context):
            state["active"] += 1
            state["peak"] = max(state["peak"], state["active"])
            await asyncio.sleep(0.01)
            state["active"] -= 1
            return True

    def slow(mid, name):
        return type(f"Slow{name}", (Slow,), {"module_id": mid, "name": name})()

    modules = ModuleRegistry(
        slow(ModuleId.GENERAL, "General"),
        slow(ModuleId.MODERATION, "Moderation"),
        slow(ModuleId.ADMINISTRATION, "Administration"),
    )
    menu = _menu(modules=modules, module_permissions={})
    assert len(asyncio.run(menu.visible_modules(requester(ADMIN)))) == 3
    assert state["peak"] == 3


def test_missing_settings_is_a_silent_noop():
    store = FakeSettingsStore({})
    menu = HelpMenu(FakeCommands(COMMANDS), MODULES, settings=store)
    assert asyncio.run(menu.open(requester(ADMIN))) is None
    assert store.reads == 1


def test_settings_read_error_renders_generic_failure():
    store = FakeSettingsStore(error=RuntimeError("db gone"))
    menu = HelpMenu(FakeCommands(COMMANDS), MODULES, settings=store)
    render = asyncio.run(menu.open(requester(ADMIN)))
    assert render is not None and render.is_error
    assert render.controls == []
