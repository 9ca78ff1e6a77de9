from pathlib import Path


def test_required_files_exist():
    base = Path(__file__).resolve().parent.parent  # .../kbot

    required = [
        "__init__.py",
        "main.py",
        "config.py",
        "database.py",
        "models.py",
        "modules.py",
        "permissions.py",
        "registry.py",
        "help_menu.py",
        "utils.py",
        "cogs/__init__.py",
        "cogs/help_cmd.py",
        "cogs/general.py",
        "cogs/moderation.py",
        "cogs/administration.py",
        "ui/__init__.py",
        "ui/theme.py",
        "ui/help_view.py",
    ]

    missing = [p for p in required if not (base / p).exists()]
    if missing:
        raise FileNotFoundError("Missing required files:\n" + "\n".join(missing))
