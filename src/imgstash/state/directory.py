"""Filesystem helpers for the flat store directory."""

from __future__ import annotations

import logging
import os
import shutil
import tempfile
from pathlib import Path
from typing import Iterator

from .models import Entry

LOGGER = logging.getLogger(__name__)


class StoreDirectory:
    """Flat directory holding one ``<hash>.<extension>`` file per entry."""

    def __init__(self, root: Path) -> None:
        self._root = root

    @property
    def root(self) -> Path:
        """Return the store directory path."""
        return self._root

    def ensure(self) -> Path:
        """Create the store directory on demand.

        Returns:
            Path: The store directory.
        """
        self._root.mkdir(parents=True, exist_ok=True)
        return self._root

    def path_for(self, file_hash: str, entry: Entry) -> Path:
        """Return the expected location of the file backing ``entry``."""
        return self._root / entry.path_name(file_hash)

    def iter_files(self) -> Iterator[Path]:
        """Yield every regular file physically present in the store."""
        if not self._root.is_dir():
            return
        for path in sorted(self._root.iterdir()):
            if path.is_file() and not path.is_symlink():
                yield path

    def copy_in(self, source: Path, destination: Path) -> bool:
        """Copy ``source`` to ``destination`` without overwriting anything.

        The bytes land in a temporary file first and are linked into place
        only once complete, so a failed copy never leaves a partial
        ``destination`` behind.

        Args:
            source: File being admitted.
            destination: Content-derived target inside the store.

        Returns:
            bool: True when the file was copied, False when the destination
            already existed and was kept.
        """
        self.ensure()
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{destination.name}.", suffix=".tmp", dir=self._root
        )
        temp_path = Path(temp_name)
        try:
            with os.fdopen(fd, "wb") as dst, source.open("rb") as src:
                shutil.copyfileobj(src, dst)
            shutil.copystat(source, temp_path)
            os.link(temp_path, destination)
        except FileExistsError:
            LOGGER.info("Keeping existing store file %s", destination)
            return False
        finally:
            temp_path.unlink(missing_ok=True)
        return True

    def move(self, source: Path, destination: Path) -> bool:
        """Rename ``source`` to ``destination`` unless the destination exists.

        Returns:
            bool: True when the file was moved.
        """
        if destination.exists():
            LOGGER.warning("Not moving %s: %s already exists", source, destination)
            return False
        source.rename(destination)
        return True

    def remove(self, path: Path) -> bool:
        """Delete ``path`` if present.

        Returns:
            bool: True when a file was removed.
        """
        try:
            path.unlink()
        except FileNotFoundError:
            LOGGER.info("Store file %s already absent", path)
            return False
        return True


__all__ = ["StoreDirectory"]
