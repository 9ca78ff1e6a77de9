import os
import subprocess
import sys
from pathlib import Path


def test_main_config_check_exits_cleanly():
    # `python -m kbot.main --test` builds the bot and exits 0 without logging in
    repo_root = Path(__file__).resolve().parent.parent.parent
    env = dict(os.environ)
    env["DISCORD_TOKEN"] = "x" * 60
    env["DB_PATH"] = ":memory:"
    env["PYTHONPATH"] = str(repo_root) + os.pathsep + env.get("PYTHONPATH", "")

    p = subprocess.run(
        [sys.executable, "-m", "kbot.main", "--test"],
        cwd=str(repo_root),
        env=env,
        capture_output=True,
        text=True,
        timeout=30,
    )
    if p.returncode != 0:
        raise AssertionError(
            f"kbot.main --test failed. rc={p.returncode}\nSTDOUT:\n{p.stdout}\nSTDERR:\n{p.stderr}"
        )


def test_missing_token_is_an_error():
    repo_root = Path(__file__).resolve().parent.parent.parent
    env = {k: v for k, v in os.environ.items() if k not in ("DISCORD_TOKEN", "BOT_TOKEN")}
    env["PYTHONPATH"] = str(repo_root) + os.pathsep + env.get("PYTHONPATH", "")

    p = subprocess.run(
        [sys.executable, "-m", "kbot.main", "--test"],
        cwd=str(repo_root),
        env=env,
        capture_output=True,
        text=True,
        timeout=30,
    )
    assert p.returncode != 0
    assert "DISCORD_TOKEN" in p.stderr
