from __future__ import annotations

import os
from importlib.resources import files as pkg_files
from pathlib import Path

HOME_ENV = "PROBPRIME_HOME"


def workspace_dir() -> Path:
    """$PROBPRIME_HOME, else ~/Documents/ProbPrime."""
    env = os.environ.get(HOME_ENV)
    root = Path(env).expanduser() if env else Path.home() / "Documents" / "ProbPrime"
    return root.resolve()


def profiles_dir() -> Path:
    return workspace_dir() / "profiles"


def seed_workspace() -> int:
    """
    Create the workspace and copy in every packaged profile it does not have
    yet. Edited profiles are never replaced. Returns the number of files copied.
    """
    target = profiles_dir()
    target.mkdir(parents=True, exist_ok=True)
    copied = 0
    for src in (pkg_files("probprime") / "profiles").iterdir():
        if not src.name.endswith(".toml"):
            continue
        dst = target / src.name
        if dst.exists():
            continue
        dst.write_bytes(src.read_bytes())
        copied += 1
    return copied
