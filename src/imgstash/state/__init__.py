"""Metadata persistence helpers for the imgstash store."""

from __future__ import annotations

import logging
import os
import stat
import tempfile
import tomllib
from pathlib import Path
from typing import Mapping

import tomli_w
from pydantic import ValidationError

from .directory import StoreDirectory
from .errors import (
    DuplicateHashError,
    EmptyTagsError,
    IdentityError,
    InvalidTagError,
    MetadataError,
    NotAFileError,
    NotFoundError,
    NotListedError,
    StoreError,
    TagError,
    UnsupportedExtensionError,
    VerificationError,
)
from .models import Catalog, Entry

LOGGER = logging.getLogger(__name__)


class MetadataStore:
    """Load and persist the hash to entry mapping.

    The whole document is read on every ``load`` and rewritten on every
    ``save``; there is no locking, the last writer wins.
    """

    def __init__(self, path: Path) -> None:
        """Initialize the store with the metadata document location.

        Args:
            path: Location of the TOML metadata document.
        """
        self._path = path

    @property
    def path(self) -> Path:
        """Return the metadata document path.

        Returns:
            Path: Location of the TOML document.
        """
        return self._path

    def initialize(self) -> Path:
        """Create an empty metadata document if none exists.

        Returns:
            Path: Location of the metadata document.
        """
        if not self._path.exists():
            LOGGER.info("Creating empty metadata document at %s", self._path)
            self.save({})
        return self._path

    def load(self) -> dict[str, Entry]:
        """Load the current mapping from disk.

        Returns:
            dict[str, Entry]: Entries keyed by content hash.

        Raises:
            MetadataError: If the document cannot be parsed or has the wrong shape.
        """
        self.initialize()
        try:
            raw = tomllib.loads(self._path.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as exc:
            raise MetadataError(f"Invalid metadata document {self._path}: {exc}") from exc

        try:
            catalog = Catalog.model_validate(raw)
        except ValidationError as exc:
            raise MetadataError(f"Malformed metadata document {self._path}: {exc}") from exc
        return dict(catalog.root)

    def save(self, entries: Mapping[str, Entry]) -> None:
        """Atomically overwrite the document with the full mapping.

        Args:
            entries: Complete mapping of hashes to entries.
        """
        payload = {
            file_hash: entry.model_dump(mode="python", exclude_none=True)
            for file_hash, entry in entries.items()
        }
        serialized = tomli_w.dumps(payload)

        directory = self._path.parent
        directory.mkdir(parents=True, exist_ok=True)
        fd, temp_name = tempfile.mkstemp(
            prefix=f".{self._path.name}.", suffix=".tmp", dir=directory
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                handle.write(serialized)
            os.chmod(temp_name, self._file_mode())
            os.replace(temp_name, self._path)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise

    def _file_mode(self) -> int:
        try:
            return stat.S_IMODE(self._path.stat().st_mode)
        except FileNotFoundError:
            umask = os.umask(0)
            os.umask(umask)
            return 0o666 & ~umask

    def get(self, file_hash: str) -> Entry:
        """Return the entry stored under ``file_hash``.

        Raises:
            NotListedError: If the hash is not listed.
        """
        entries = self.load()
        try:
            return entries[file_hash]
        except KeyError:
            raise NotListedError(f"{file_hash} is not listed in {self._path}") from None

    def contains(self, file_hash: str) -> bool:
        """Return True when ``file_hash`` is listed."""
        return file_hash in self.load()


__all__ = [
    "MetadataStore",
    "StoreDirectory",
    "Catalog",
    "Entry",
    "StoreError",
    "MetadataError",
    "IdentityError",
    "NotFoundError",
    "NotAFileError",
    "UnsupportedExtensionError",
    "DuplicateHashError",
    "NotListedError",
    "TagError",
    "InvalidTagError",
    "EmptyTagsError",
    "VerificationError",
]
