"""Default candidate discovery."""

from __future__ import annotations

from pathlib import Path
from typing import Iterator


class DirectoryScanner:
    """List candidate entries of a single directory.

    Used when add/edit receive no explicit input. Every entry is yielded,
    including directories and non-image files, so that the identity
    resolver decides what gets dropped.
    """

    def __init__(self, *, include_hidden: bool = False) -> None:
        self.include_hidden = include_hidden

    def scan(self, root: Path) -> Iterator[Path]:
        """Yield the entries of ``root`` in name order."""
        root = root.expanduser()
        if not root.is_dir():
            return

        for path in sorted(root.iterdir()):
            if not self.include_hidden and path.name.startswith("."):
                continue
            yield path


__all__ = ["DirectoryScanner"]
