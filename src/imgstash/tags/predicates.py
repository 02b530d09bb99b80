"""Tag predicates used to select entries."""

from __future__ import annotations

from typing import Callable, Iterable, Sequence

TagPredicate = Callable[[Sequence[str]], bool]


def any_of(tags: Iterable[str]) -> TagPredicate:
    """Match tag sets containing at least one of ``tags``."""
    wanted = frozenset(tags)
    return lambda entry_tags: not wanted.isdisjoint(entry_tags)


def all_of(tags: Iterable[str]) -> TagPredicate:
    """Match tag sets containing every one of ``tags``."""
    wanted = frozenset(tags)
    return lambda entry_tags: wanted.issubset(entry_tags)


def none_of(tags: Iterable[str]) -> TagPredicate:
    """Match tag sets containing none of ``tags``."""
    unwanted = frozenset(tags)
    return lambda entry_tags: unwanted.isdisjoint(entry_tags)


def both(first: TagPredicate, second: TagPredicate) -> TagPredicate:
    """Match tag sets satisfying ``first`` and ``second``."""
    return lambda entry_tags: first(entry_tags) and second(entry_tags)


__all__ = ["TagPredicate", "any_of", "all_of", "none_of", "both"]
