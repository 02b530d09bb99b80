"""Admission pipeline: add, edit, and delete store entries."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Sequence

from imgstash.integrations.git import GitCommitter
from imgstash.state import MetadataStore, StoreDirectory
from imgstash.state.errors import (
    DuplicateHashError,
    EmptyTagsError,
    IdentityError,
    NotListedError,
    TagError,
)
from imgstash.state.models import Entry
from imgstash.tags.text import normalize_tags, validate_tag

from .detectors import IdentityResolver
from .models import Candidate
from .prompts import NullPrompter, Prompter

LOGGER = logging.getLogger(__name__)


class AdmissionPipeline:
    """Keep the store directory and the metadata store in step.

    Every item of a batch is persisted on its own, so an interrupted batch
    keeps the items already processed.
    """

    def __init__(
        self,
        store: MetadataStore,
        directory: StoreDirectory,
        resolver: IdentityResolver,
        prompter: Prompter | None = None,
        committer: GitCommitter | None = None,
    ) -> None:
        self.store = store
        self.directory = directory
        self.resolver = resolver
        self.prompter: Prompter = prompter or NullPrompter()
        self.committer = committer

    def add(
        self,
        paths: Iterable[Path],
        *,
        tags: Sequence[str] = (),
        source: str | None = None,
    ) -> list[str]:
        """Admit new files into the store.

        Args:
            paths: Candidate files.
            tags: Tags applied to every item, merged with prompted tags.
            source: Source applied to every item; when None the prompter is
                asked for one.

        Returns:
            list[str]: Hashes actually admitted.
        """
        fixed_tags = [validate_tag(tag) for tag in tags]
        candidates = self._new_only(self.resolve_paths(paths))

        admitted: list[str] = []
        for candidate in candidates:
            file_hash = candidate.identity.hash
            preview = Entry(
                extension=candidate.identity.extension, tags=list(fixed_tags), source=source
            )
            answer = self.prompter.annotate(file_hash, preview, ask_source=source is None)
            entry = preview.model_copy(
                update={
                    "tags": normalize_tags([*fixed_tags, *answer.tags]),
                    "source": source if source is not None else answer.source,
                }
            )
            try:
                self._check_tags(file_hash, entry)
                self._admit(candidate, entry)
            except (TagError, DuplicateHashError) as exc:
                LOGGER.info("Skipping %s: %s", candidate.path, exc)
                continue
            admitted.append(file_hash)
        return admitted

    def edit(
        self,
        targets: Iterable[str | Path],
        *,
        tags: Sequence[str] = (),
        source: str | None = None,
    ) -> list[str]:
        """Update tags and source of listed entries.

        Prompted tags come first, explicit ``tags`` are appended, and the
        result is deduplicated. An explicit ``source`` (even empty) replaces
        the stored one; None leaves it untouched.

        Returns:
            list[str]: Hashes whose entries were written back.
        """
        fixed_tags = [validate_tag(tag) for tag in tags]
        edited: list[str] = []
        for file_hash in self.resolve_targets(targets):
            entries = self.store.load()
            current = entries.get(file_hash)
            if current is None:
                LOGGER.info("Skipping %s: no longer listed", file_hash)
                continue

            answer = self.prompter.annotate(file_hash, current, ask_source=source is None)
            if source is not None:
                new_source: str | None = source
            elif answer.source is not None:
                new_source = answer.source
            else:
                new_source = current.source
            updated = current.model_copy(
                update={
                    "tags": normalize_tags([*current.tags, *answer.tags, *fixed_tags]),
                    "source": new_source,
                }
            )
            try:
                self._check_tags(file_hash, updated)
            except TagError as exc:
                LOGGER.info("Skipping %s: %s", file_hash, exc)
                continue

            entries = self.store.load()
            entries[file_hash] = updated
            self.store.save(entries)
            LOGGER.info("Edited %s", file_hash)
            self._commit("edit", file_hash, [self.directory.path_for(file_hash, updated)])
            edited.append(file_hash)
        return edited

    def delete(
        self,
        targets: Iterable[str | Path],
        *,
        confirm: bool = False,
        strict: bool = False,
    ) -> list[str]:
        """Remove entries and their backing files.

        Args:
            targets: Hashes or paths identifying listed entries.
            confirm: Ask the prompter before each removal.
            strict: Raise on the first unresolvable target instead of
                dropping it; nothing is deleted in that case.

        Returns:
            list[str]: Hashes removed from the store.

        Raises:
            NotListedError: If ``strict`` and a target cannot be resolved.
        """
        removed: list[str] = []
        for file_hash in self.resolve_targets(targets, strict=strict):
            entries = self.store.load()
            entry = entries.get(file_hash)
            if entry is None:
                LOGGER.info("Skipping %s: no longer listed", file_hash)
                continue
            if confirm and not self.prompter.confirm(file_hash, entry, "delete"):
                LOGGER.info("Kept %s", file_hash)
                continue

            path = self.directory.path_for(file_hash, entry)
            self.directory.remove(path)
            entries = self.store.load()
            entries.pop(file_hash, None)
            self.store.save(entries)
            LOGGER.info("Deleted %s", file_hash)
            self._commit("delete", file_hash, [path])
            removed.append(file_hash)
        return removed

    def resolve_paths(self, paths: Iterable[Path]) -> list[Candidate]:
        """Resolve candidate paths, dropping any that fail validation."""
        candidates: list[Candidate] = []
        for path in paths:
            try:
                identity = self.resolver.resolve(path)
            except IdentityError as exc:
                LOGGER.info("Dropping %s: %s", path, exc)
                continue
            candidates.append(Candidate(path=path, identity=identity))
        return candidates

    def resolve_targets(self, targets: Iterable[str | Path], *, strict: bool = False) -> list[str]:
        """Map hashes or paths to listed hashes.

        A target matching a listed hash is used directly; anything else is
        treated as a path and looked up by its content hash.

        Raises:
            NotListedError: If ``strict`` and a target cannot be resolved.
        """
        entries = self.store.load()
        resolved: list[str] = []
        for target in targets:
            file_hash = self._resolve_target(target, entries)
            if file_hash is None:
                if strict:
                    raise NotListedError(f"{target} is not listed in {self.store.path}")
                LOGGER.info("Dropping %s: not listed", target)
                continue
            if file_hash not in resolved:
                resolved.append(file_hash)
        return resolved

    def _resolve_target(self, target: str | Path, entries: dict[str, Entry]) -> str | None:
        if isinstance(target, str) and target in entries:
            return target
        try:
            identity = self.resolver.resolve(Path(target))
        except IdentityError as exc:
            LOGGER.debug("%s is neither a listed hash nor a resolvable path: %s", target, exc)
            return None
        return identity.hash if identity.hash in entries else None

    def _new_only(self, candidates: Sequence[Candidate]) -> list[Candidate]:
        entries = self.store.load()
        seen: set[str] = set()
        fresh: list[Candidate] = []
        for candidate in candidates:
            file_hash = candidate.identity.hash
            if file_hash in entries or file_hash in seen:
                LOGGER.info("Dropping %s: %s already listed", candidate.path, file_hash)
                continue
            seen.add(file_hash)
            fresh.append(candidate)
        return fresh

    def _check_tags(self, file_hash: str, entry: Entry) -> None:
        if not entry.tags:
            raise EmptyTagsError(f"{file_hash} has no tags")
        for tag in entry.tags:
            validate_tag(tag)

    def _admit(self, candidate: Candidate, entry: Entry) -> None:
        file_hash = candidate.identity.hash
        if self.store.contains(file_hash):
            raise DuplicateHashError(f"{file_hash} is already listed")

        destination = self.directory.path_for(file_hash, entry)
        if not self.directory.copy_in(candidate.path, destination):
            if self.resolver.hasher.compute(destination) != file_hash:
                LOGGER.warning("Replacing store file %s: content does not match", destination)
                self.directory.remove(destination)
                self.directory.copy_in(candidate.path, destination)

        entries = self.store.load()
        entries[file_hash] = entry
        self.store.save(entries)
        LOGGER.info("Added %s as %s", candidate.path, destination.name)
        self._commit("add", file_hash, [destination])

    def _commit(self, operation: str, file_hash: str, paths: Sequence[Path]) -> None:
        if self.committer is not None:
            self.committer.commit(operation, [self.store.path, *paths], file_hash=file_hash)


__all__ = ["AdmissionPipeline"]
