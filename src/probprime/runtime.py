# -----------------------------------------------------------------------------
#  runtime.py
#  Active profile of the current context: settings lookup and the debug switch
# -----------------------------------------------------------------------------

from __future__ import annotations

from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Any


@dataclass
class Runtime:
    profile_name: str = "default"
    settings: dict[str, Any] = field(default_factory=dict)
    debug: bool = False

    def apply(self, settings: Any) -> None:
        """
        Install a loaded profile (config.Settings) or a plain nested dict such
        as {"BEHAVIOUR": {"WITNESSES": 20}}. BEHAVIOUR.DEBUG, when present,
        switches debug on or off.
        """
        data = settings.as_dict() if hasattr(settings, "as_dict") else settings
        self.settings = dict(data)
        self.profile_name = getattr(settings, "name", None) or self.profile_name
        debug = self.get("BEHAVIOUR.DEBUG")
        if isinstance(debug, bool):
            self.debug = debug

    def get(self, key: str, default: Any = None) -> Any:
        """Dotted lookup: 'BEHAVIOUR.SEED' -> settings['BEHAVIOUR']['SEED']."""
        if not key:
            return default
        node: Any = self.settings
        for part in key.split("."):
            if not isinstance(node, dict) or part not in node:
                return default
            node = node[part]
        return node

    def flat(self) -> dict[str, Any]:
        """Every leaf setting under its dotted key, sorted case-insensitively."""
        leaves: dict[str, Any] = {}

        def walk(node: dict, prefix: str) -> None:
            for k, v in node.items():
                key = f"{prefix}{k}"
                if isinstance(v, dict):
                    walk(v, key + ".")
                else:
                    leaves[key] = v

        walk(self.settings, "")
        return dict(sorted(leaves.items(), key=lambda kv: kv[0].lower()))


_current_runtime: ContextVar[Runtime | None] = ContextVar("probprime_runtime", default=None)


def current() -> Runtime:
    rt = _current_runtime.get()
    if rt is None:
        rt = Runtime()
        _current_runtime.set(rt)
    return rt


def reset() -> None:
    """Forget the runtime of this context; the next current() starts clean."""
    _current_runtime.set(None)


def APPLY(settings: Any) -> None:
    current().apply(settings)


def CFG(key: str, default: Any = None) -> Any:
    return current().get(key, default)
