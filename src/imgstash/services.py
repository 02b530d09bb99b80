"""Wiring of the store components from a resolved configuration."""

from __future__ import annotations

from dataclasses import dataclass

from imgstash.config import ImgstashConfig, resolve_store_paths
from imgstash.consistency import ConsistencyChecker
from imgstash.ingestion import (
    AdmissionPipeline,
    DirectoryScanner,
    HashComputer,
    IdentityResolver,
    NullPrompter,
    Prompter,
)
from imgstash.integrations import FuzzyPicker, GitCommitter
from imgstash.state import MetadataStore, StoreDirectory
from imgstash.tags import TagIndex


@dataclass
class StoreServices:
    """Components sharing one store, built once at process start."""

    config: ImgstashConfig
    store: MetadataStore
    directory: StoreDirectory
    resolver: IdentityResolver
    pipeline: AdmissionPipeline
    checker: ConsistencyChecker
    tags: TagIndex
    scanner: DirectoryScanner
    picker: FuzzyPicker

    @classmethod
    def from_config(
        cls, config: ImgstashConfig, *, prompter: Prompter | None = None
    ) -> "StoreServices":
        """Validate the configured paths and build every component.

        Raises:
            EnvMisconfiguredError: If the store paths are unusable.
        """
        directory_path, metadata_path = resolve_store_paths(config)
        store = MetadataStore(metadata_path)
        directory = StoreDirectory(directory_path)
        hasher = HashComputer(config.processing.hash_chunk_size)
        resolver = IdentityResolver(
            config.store.extensions,
            follow_symlinks=config.processing.follow_symlinks,
            hasher=hasher,
        )
        committer = None
        if config.git.enabled:
            committer = GitCommitter(
                metadata_path.parent, message_prefix=config.git.message_prefix
            )
        return cls(
            config=config,
            store=store,
            directory=directory,
            resolver=resolver,
            pipeline=AdmissionPipeline(
                store, directory, resolver, prompter or NullPrompter(), committer
            ),
            checker=ConsistencyChecker(store, directory, hasher, config.store.extensions),
            tags=TagIndex(store, directory, committer),
            scanner=DirectoryScanner(),
            picker=FuzzyPicker(config.picker.command),
        )


__all__ = ["StoreServices"]
