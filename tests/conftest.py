# tests/conftest.py
from __future__ import annotations

import sys

import pytest

from probprime import runtime


@pytest.fixture(autouse=True)
def isolated_workspace(tmp_path, monkeypatch):
    """Every test gets its own workspace and a fresh runtime (no profile applied)."""
    ws = tmp_path / "workspace"
    monkeypatch.setenv("PROBPRIME_HOME", str(ws))
    runtime.reset()
    # the CLI raises Python's int/str digit guard to the profile limit
    guard = sys.get_int_max_str_digits() if hasattr(sys, "get_int_max_str_digits") else None
    yield ws
    if guard is not None:
        sys.set_int_max_str_digits(guard)
    runtime.reset()
