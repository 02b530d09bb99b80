"""Tag normalization and validation utilities."""

from __future__ import annotations

import re
from typing import Iterable

from imgstash.state.errors import InvalidTagError

_WHITESPACE = re.compile(r"\s")


def is_valid_tag(tag: str) -> bool:
    """Return True when ``tag`` is non-empty and contains no whitespace."""
    return bool(tag) and _WHITESPACE.search(tag) is None


def validate_tag(tag: str) -> str:
    """Return ``tag`` unchanged when valid.

    Raises:
        InvalidTagError: If the tag is empty or contains whitespace.
    """
    if not is_valid_tag(tag):
        raise InvalidTagError(f"Invalid tag {tag!r}: tags must be non-empty without whitespace")
    return tag


def normalize_tags(tags: Iterable[str]) -> list[str]:
    """Deduplicate ``tags`` keeping the first occurrence of each."""
    return list(dict.fromkeys(tags))


def split_tags(text: str) -> list[str]:
    """Split space-separated user input into tags."""
    return text.split()


__all__ = ["is_valid_tag", "validate_tag", "normalize_tags", "split_tags"]
