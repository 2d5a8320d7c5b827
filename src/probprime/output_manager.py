from __future__ import annotations

from pathlib import Path

from probprime.fmt import strip_ansi
from probprime.workspace import workspace_dir


def resolve_output_path(output_file: str, root: Path | None = None) -> Path:
    """'~' is expanded; relative paths are taken from `root` (default: the workspace)."""
    if not output_file:
        raise ValueError("output path is empty")
    path = Path(output_file).expanduser()
    if not path.is_absolute():
        path = (root or workspace_dir()) / path
    return path.resolve()


class OutputManager:
    """
    Report sink for one batch of results. Lines go to the screen (unless
    quiet) and, when a file is configured, are appended to it without colour.
    close() ends the batch with a blank line in the file.
    """

    def __init__(self, output_file: str | None = None, quiet: bool = False):
        self.quiet = quiet
        self.path: Path | None = resolve_output_path(output_file) if output_file else None
        self._written = False
        if self.path is not None:
            self.path.parent.mkdir(parents=True, exist_ok=True)

    def _append(self, text: str) -> None:
        with self.path.open("a", encoding="utf-8") as fh:
            fh.write(text)

    def write(self, *parts, sep: str = " ", end: str = "\n") -> None:
        text = sep.join(map(str, parts)) + end
        self._written = True
        if not self.quiet:
            print(text, end="")
        if self.path is not None:
            self._append(strip_ansi(text))

    def close(self) -> None:
        if self.path is not None and self._written:
            self._append("\n")
        self._written = False
