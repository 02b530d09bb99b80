"""Store management errors."""

from __future__ import annotations

from typing import TYPE_CHECKING, Sequence

if TYPE_CHECKING:
    from imgstash.consistency.models import Finding


class StoreError(Exception):
    """Base exception for store and metadata operations."""


class MetadataError(StoreError):
    """Raised when the metadata document cannot be parsed or has the wrong shape."""


class IdentityError(StoreError):
    """Base exception for failures while resolving a file identity."""


class NotFoundError(IdentityError):
    """Raised when a candidate path does not exist."""


class NotAFileError(IdentityError):
    """Raised when a candidate path is a directory, symlink, or special file."""


class UnsupportedExtensionError(IdentityError):
    """Raised when a candidate file extension is not allow-listed."""


class DuplicateHashError(StoreError):
    """Raised when admitting a hash that is already listed."""


class NotListedError(StoreError):
    """Raised when an operation targets a hash absent from the metadata store."""


class TagError(StoreError):
    """Base exception for tag validation failures."""


class InvalidTagError(TagError):
    """Raised when a tag is empty or contains whitespace."""


class EmptyTagsError(TagError):
    """Raised when an entry would end up without tags."""


class VerificationError(StoreError):
    """Raised by strict checks when entries fail verification."""

    def __init__(self, findings: Sequence["Finding"]) -> None:
        self.findings = list(findings)
        hashes = ", ".join(finding.hash for finding in self.findings)
        super().__init__(f"{len(self.findings)} entries failed verification: {hashes}")

    @property
    def hashes(self) -> list[str]:
        """Return the hashes of the failing entries."""
        return [finding.hash for finding in self.findings]
