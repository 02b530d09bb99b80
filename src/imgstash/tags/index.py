"""Tag listing, bulk renames, and tag-based selection."""

from __future__ import annotations

import logging
from collections import Counter
from pathlib import Path
from typing import Iterable

from imgstash.integrations.git import GitCommitter
from imgstash.state import MetadataStore, StoreDirectory

from .predicates import TagPredicate
from .text import normalize_tags, validate_tag

LOGGER = logging.getLogger(__name__)


class TagIndex:
    """Derive tag information from the metadata store.

    Nothing is cached: every call reloads the store.
    """

    def __init__(
        self,
        store: MetadataStore,
        directory: StoreDirectory,
        committer: GitCommitter | None = None,
    ) -> None:
        self.store = store
        self.directory = directory
        self.committer = committer

    def list_tags(self) -> list[str]:
        """Return the distinct tags used by any entry, sorted."""
        return sorted({tag for entry in self.store.load().values() for tag in entry.tags})

    def counts(self) -> dict[str, int]:
        """Return the number of entries carrying each tag."""
        counter: Counter[str] = Counter()
        for entry in self.store.load().values():
            counter.update(set(entry.tags))
        return dict(sorted(counter.items()))

    def rename(self, old: str, new: str) -> list[str]:
        """Replace ``old`` with ``new`` on every entry and persist once.

        Entries already carrying ``new`` end up with a single copy of it.
        Nothing is written when no entry carries ``old``.

        Returns:
            list[str]: Hashes of the entries that changed.

        Raises:
            InvalidTagError: If either name is empty or contains whitespace.
        """
        validate_tag(old)
        validate_tag(new)

        entries = self.store.load()
        changed: list[str] = []
        for file_hash, entry in entries.items():
            if old not in entry.tags:
                continue
            renamed = normalize_tags(new if tag == old else tag for tag in entry.tags)
            entries[file_hash] = entry.model_copy(update={"tags": renamed})
            changed.append(file_hash)

        if not changed:
            LOGGER.info("No entries tagged %r", old)
            return changed

        self.store.save(entries)
        LOGGER.info("Renamed tag %r to %r on %d entries", old, new, len(changed))
        if self.committer is not None:
            self.committer.commit(f"rename tag {old} -> {new}", [self.store.path])
        return changed

    def filter(self, predicate: TagPredicate) -> list[str]:
        """Return the hashes of entries whose tags satisfy ``predicate``."""
        return [
            file_hash
            for file_hash, entry in self.store.load().items()
            if predicate(entry.tags)
        ]

    def resolve_paths(self, hashes: Iterable[str]) -> list[Path]:
        """Map hashes to their expected store paths, dropping unknown ones."""
        entries = self.store.load()
        return [
            self.directory.path_for(file_hash, entries[file_hash])
            for file_hash in hashes
            if file_hash in entries
        ]

    def select(self, predicate: TagPredicate) -> list[Path]:
        """Return the store paths of entries whose tags satisfy ``predicate``."""
        return self.resolve_paths(self.filter(predicate))

    def picker_lines(self, hashes: Iterable[str]) -> dict[str, Path]:
        """Return ``<path> <tag> <tag>...`` lines mapped to their paths."""
        entries = self.store.load()
        lines: dict[str, Path] = {}
        for file_hash in hashes:
            entry = entries.get(file_hash)
            if entry is None:
                continue
            path = self.directory.path_for(file_hash, entry)
            lines[" ".join([str(path), *entry.tags])] = path
        return lines


__all__ = ["TagIndex"]
