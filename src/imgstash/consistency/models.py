"""Verification and repair result models."""

from __future__ import annotations

from pathlib import Path
from typing import List

from pydantic import BaseModel, Field


class Finding(BaseModel):
    """Problems detected for one listed entry.

    Attributes:
        hash: Key of the offending entry.
        problems: Human-readable descriptions of each failed check.
    """

    hash: str
    problems: List[str] = Field(default_factory=list)


class RenameOperation(BaseModel):
    """A store file moved to its canonical name.

    Attributes:
        source: Misnamed file found in the store directory.
        destination: Canonical ``<hash>.<extension>`` path.
        hash: Recomputed content hash of the file.
        applied: False when the rename was only planned (dry run).
    """

    source: Path
    destination: Path
    hash: str
    applied: bool = False


class RepairReport(BaseModel):
    """Outcome of a repair pass.

    Attributes:
        renames: Files moved (or planned to move) to their canonical name.
        conflicts: Renames refused because the destination already exists.
        orphans: Files whose content hash is not listed; left untouched.
    """

    renames: List[RenameOperation] = Field(default_factory=list)
    conflicts: List[RenameOperation] = Field(default_factory=list)
    orphans: List[Path] = Field(default_factory=list)


__all__ = ["Finding", "RenameOperation", "RepairReport"]
