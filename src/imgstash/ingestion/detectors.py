"""File identity and hashing utilities."""

from __future__ import annotations

import hashlib
import re
from pathlib import Path
from typing import Iterable

from imgstash.state.errors import NotAFileError, NotFoundError, UnsupportedExtensionError

from .models import Identity

_HASH_PATTERN = re.compile(r"[0-9a-f]{64}")
DEFAULT_CHUNK_SIZE = 1024 * 1024


def is_valid_hash(value: str) -> bool:
    """Return True when ``value`` looks like a lowercase hex SHA-256 digest."""
    return _HASH_PATTERN.fullmatch(value) is not None


class HashComputer:
    """Compute SHA-256 content hashes."""

    def __init__(self, chunk_size: int = DEFAULT_CHUNK_SIZE) -> None:
        self.chunk_size = chunk_size

    def compute(self, path: Path) -> str:
        """Return the lowercase hex digest of the file contents."""
        digest = hashlib.sha256()
        with path.open("rb") as fh:
            for chunk in iter(lambda: fh.read(self.chunk_size), b""):
                digest.update(chunk)
        return digest.hexdigest()


class IdentityResolver:
    """Validate a candidate path and compute its content identity.

    Resolution never touches the store. Identical bytes always yield the same
    hash regardless of the filename or directory they are read from.
    """

    def __init__(
        self,
        extensions: Iterable[str],
        *,
        follow_symlinks: bool = False,
        hasher: HashComputer | None = None,
    ) -> None:
        self.extensions = frozenset(ext.lower().lstrip(".") for ext in extensions)
        self.follow_symlinks = follow_symlinks
        self.hasher = hasher or HashComputer()

    def resolve(self, path: Path) -> Identity:
        """Return the identity of the file at ``path``.

        Args:
            path: Candidate file.

        Returns:
            Identity: Content hash and normalized extension.

        Raises:
            NotFoundError: If the path does not exist.
            NotAFileError: If the path is not a regular file, or is a symlink
                while symlinks are not followed.
            UnsupportedExtensionError: If the extension is not allow-listed.
        """
        if path.is_symlink():
            if not self.follow_symlinks:
                raise NotAFileError(f"{path} is a symbolic link")
            if not path.exists():
                raise NotFoundError(f"{path} points to a missing target")
        elif not path.exists():
            raise NotFoundError(f"{path} does not exist")

        if not path.is_file():
            raise NotAFileError(f"{path} is not a regular file")

        extension = self.extension_of(path)
        return Identity(hash=self.hasher.compute(path), extension=extension)

    def extension_of(self, path: Path) -> str:
        """Return the allow-listed extension of ``path``.

        Raises:
            UnsupportedExtensionError: If the extension is not allow-listed.
        """
        extension = path.suffix.lower().lstrip(".")
        if extension not in self.extensions:
            allowed = ", ".join(sorted(self.extensions))
            raise UnsupportedExtensionError(
                f"{path.name}: extension {extension or '(none)'!r} is not one of {allowed}"
            )
        return extension


__all__ = ["HashComputer", "IdentityResolver", "is_valid_hash", "DEFAULT_CHUNK_SIZE"]
