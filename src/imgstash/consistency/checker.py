"""Consistency verification and repair between the metadata and the store."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

from imgstash.ingestion.detectors import HashComputer, is_valid_hash
from imgstash.state import MetadataStore, StoreDirectory
from imgstash.state.errors import VerificationError
from imgstash.state.models import Entry
from imgstash.tags.text import is_valid_tag

from .models import Finding, RenameOperation, RepairReport

LOGGER = logging.getLogger(__name__)


class ConsistencyChecker:
    """Detect and repair divergence between the metadata store and the store directory."""

    def __init__(
        self,
        store: MetadataStore,
        directory: StoreDirectory,
        hasher: HashComputer,
        extensions: Iterable[str],
    ) -> None:
        self.store = store
        self.directory = directory
        self.hasher = hasher
        self.extensions = frozenset(extensions)

    def inspect(
        self,
        *,
        tags: bool = True,
        source: bool = False,
        files: bool = True,
        hashes: bool = False,
    ) -> list[Finding]:
        """Run the requested checks against every listed entry.

        The key format and the extension allow-list are always checked.

        Args:
            tags: Require non-empty, whitespace-free tags.
            source: Require a non-empty source.
            files: Require ``<hash>.<extension>`` to exist in the store.
            hashes: Recompute the hash of existing files and compare it to
                the filename stem.

        Returns:
            list[Finding]: One finding per failing entry, in key order.
        """
        findings: list[Finding] = []
        for file_hash, entry in sorted(self.store.load().items()):
            problems = self._entry_problems(file_hash, entry, tags=tags, source=source)
            if files or hashes:
                problems.extend(
                    self._file_problems(file_hash, entry, require=files, rehash=hashes)
                )
            if problems:
                findings.append(Finding(hash=file_hash, problems=problems))
        return findings

    def verify(self, **checks: bool) -> list[str]:
        """Return the hashes failing at least one requested check."""
        return [finding.hash for finding in self.inspect(**checks)]

    def check(self, **checks: bool) -> None:
        """Raise when verification finds anything.

        Raises:
            VerificationError: Carrying every finding.
        """
        findings = self.inspect(**checks)
        if findings:
            raise VerificationError(findings)

    def orphans(self) -> list[Path]:
        """Return store files whose name does not belong to a listed entry."""
        entries = self.store.load()
        expected = {entry.path_name(file_hash) for file_hash, entry in entries.items()}
        return [
            path
            for path in self.directory.iter_files()
            if path.name not in expected and path != self.store.path
        ]

    def repair(self, *, dry_run: bool = False) -> RepairReport:
        """Move misnamed store files to their canonical names.

        Each file is identified by its recomputed content hash. Files whose
        hash is not listed are reported as orphans and never touched; an
        existing destination is never overwritten. The metadata document is
        not modified.

        Args:
            dry_run: Plan the renames without executing them.

        Returns:
            RepairReport: Renames, conflicts and orphans.
        """
        entries = self.store.load()
        report = RepairReport()
        for path in self.directory.iter_files():
            if path == self.store.path:
                continue
            file_hash = self.hasher.compute(path)
            entry = entries.get(file_hash)
            if entry is None:
                report.orphans.append(path)
                continue

            destination = self.directory.path_for(file_hash, entry)
            if path.name == destination.name:
                continue

            operation = RenameOperation(source=path, destination=destination, hash=file_hash)
            if destination.exists():
                report.conflicts.append(operation)
                LOGGER.warning("Cannot rename %s: %s already exists", path, destination)
                continue
            if not dry_run:
                operation.applied = self.directory.move(path, destination)
                LOGGER.info("Renamed %s to %s", path.name, destination.name)
            report.renames.append(operation)
        return report

    def _entry_problems(
        self, file_hash: str, entry: Entry, *, tags: bool, source: bool
    ) -> list[str]:
        problems: list[str] = []
        if not is_valid_hash(file_hash):
            problems.append("key is not a lowercase hex SHA-256 digest")
        if entry.extension not in self.extensions:
            problems.append(f"extension {entry.extension!r} is not allowed")
        if tags:
            if not entry.tags:
                problems.append("no tags")
            invalid = [tag for tag in entry.tags if not is_valid_tag(tag)]
            if invalid:
                problems.append(f"invalid tags: {invalid!r}")
        if source and not entry.source:
            problems.append("no source")
        return problems

    def _file_problems(
        self, file_hash: str, entry: Entry, *, require: bool, rehash: bool
    ) -> list[str]:
        path = self.directory.path_for(file_hash, entry)
        if not path.is_file():
            return [f"missing file {path.name}"] if require else []
        if rehash and self.hasher.compute(path) != file_hash:
            return [f"content of {path.name} does not match its name"]
        return []


__all__ = ["ConsistencyChecker"]
