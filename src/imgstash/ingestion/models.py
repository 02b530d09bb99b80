"""Data models used by the admission pipeline."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, Field


class Identity(BaseModel):
    """Content-derived identity of a candidate file.

    Attributes:
        hash: Lowercase hex SHA-256 digest of the file bytes.
        extension: Allow-listed, lowercased extension of the original filename.
    """

    hash: str
    extension: str


class Candidate(BaseModel):
    """A resolved file waiting to be admitted."""

    path: Path
    identity: Identity


class Annotation(BaseModel):
    """Tags and source supplied for one item, by arguments or by a prompter.

    Attributes:
        tags: Tags to merge into the entry.
        source: Source string, or None when nothing was supplied.
    """

    tags: List[str] = Field(default_factory=list)
    source: Optional[str] = None


__all__ = ["Identity", "Candidate", "Annotation"]
