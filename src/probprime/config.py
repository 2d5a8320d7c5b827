# -----------------------------------------------------------------------------
#  config.py
#  TOML profiles in the workspace: loading, checking and the last-used profile
# -----------------------------------------------------------------------------

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Any

try:
    import tomllib as toml
except ImportError:
    import tomli as toml  # type: ignore

from probprime.utility import UserInputError
from probprime.workspace import profiles_dir, seed_workspace

META_TABLE = "_PROFILE_"
NO_DESCRIPTION = "(no description)"

# expected type of every known [BEHAVIOUR] key
BEHAVIOUR_KEYS: dict[str, type] = {
    "WITNESSES": int,
    "MAX_WORKERS": int,
    "SEED": int,
    "MAX_DIGITS": int,
    "DEBUG": bool,
}


@dataclass
class Settings:
    """One profile: its tables (without [_PROFILE_]) plus name and description."""
    data: dict[str, Any]
    name: str
    description: str = NO_DESCRIPTION
    path: Path | None = None

    def as_dict(self) -> dict[str, Any]:
        return self.data


def _read_profile_file(path: Path) -> dict[str, Any]:
    try:
        with path.open("rb") as fh:
            return toml.load(fh)
    except toml.TOMLDecodeError as e:
        raise UserInputError(f"profile {path.name} is not valid TOML: {e}") from None
    except OSError as e:
        raise UserInputError(f"cannot read profile {path.name}: {e.strerror or e}") from None


def _to_settings(raw: dict[str, Any], path: Path) -> Settings:
    meta = raw.get(META_TABLE) or {}
    data = {k: v for k, v in raw.items() if k != META_TABLE}
    description = " ".join(str(meta.get("description") or "").split())
    return Settings(
        data=data,
        name=str(meta.get("name") or path.stem),
        description=description or NO_DESCRIPTION,
        path=path,
    )


def _check_behaviour(settings: Settings) -> None:
    """Wrongly typed [BEHAVIOUR] keys fail at load time, naming the profile."""
    fname = settings.path.name if settings.path else settings.name
    beh = settings.data.get("BEHAVIOUR", {})
    if not isinstance(beh, dict):
        raise UserInputError(f"{fname}: [BEHAVIOUR] must be a table.")
    for key, kind in BEHAVIOUR_KEYS.items():
        if key not in beh:
            continue
        val = beh[key]
        # bool is an int subclass; only DEBUG may be one
        if isinstance(val, bool) != (kind is bool) or not isinstance(val, kind):
            expected = "true or false" if kind is bool else "an integer"
            raise UserInputError(f"{fname}: BEHAVIOUR.{key} must be {expected}, got {val!r}.")


def has_profile(name: str) -> bool:
    return bool(name) and (profiles_dir() / f"{name}.toml").is_file()


def load_settings(name: str | None) -> Settings:
    """Load and check profile `name` ('default' when empty)."""
    name = name or "default"
    path = profiles_dir() / f"{name}.toml"
    if not path.is_file():
        raise FileNotFoundError(f"Profile '{name}' not found at {path}")
    settings = _to_settings(_read_profile_file(path), path)
    _check_behaviour(settings)
    return settings


def list_profiles_with_descriptions() -> list[tuple[str, str]]:
    """[(name, description), ...] sorted by name; broken files show as unreadable."""
    seed_workspace()
    items: list[tuple[str, str]] = []
    for path in profiles_dir().glob("*.toml"):
        try:
            s = _to_settings(_read_profile_file(path), path)
        except UserInputError:
            items.append((path.stem, "(unreadable)"))
        else:
            items.append((s.name, s.description))
    return sorted(items, key=lambda item: item[0].lower())


# ---- last used profile ------------------------------------------------------

def _current_marker() -> Path:
    return profiles_dir() / ".current"


def read_current_profile() -> str | None:
    try:
        name = _current_marker().read_text(encoding="utf-8").strip()
    except OSError:
        return None
    return name.removesuffix(".toml") or None


def write_current_profile(name: str) -> None:
    marker = _current_marker()
    marker.parent.mkdir(parents=True, exist_ok=True)
    marker.write_text(name.strip().removesuffix(".toml"), encoding="utf-8")
