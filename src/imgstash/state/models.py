"""Metadata models describing stored images."""

from __future__ import annotations

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, RootModel, StrictStr


class Entry(BaseModel):
    """Annotation stored for one image, keyed by its content hash.

    Attributes:
        extension: File extension fixed at admission time.
        tags: Tags describing the image.
        source: Optional free-form provenance string.
    """

    model_config = ConfigDict(extra="forbid")

    extension: StrictStr
    tags: List[StrictStr] = Field(default_factory=list)
    source: Optional[StrictStr] = None

    def path_name(self, file_hash: str) -> str:
        """Return the canonical store filename for this entry.

        Args:
            file_hash: Content hash used as the mapping key.

        Returns:
            str: Filename of the form ``<hash>.<extension>``.
        """
        return f"{file_hash}.{self.extension}"


class Catalog(RootModel[Dict[str, Entry]]):
    """Shape of the persisted metadata document."""

    root: Dict[str, Entry] = Field(default_factory=dict)


__all__ = ["Entry", "Catalog"]
