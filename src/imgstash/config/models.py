"""Configuration models describing imgstash settings."""

from __future__ import annotations

from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


class ImgstashBaseModel(BaseModel):
    """Shared configuration for imgstash Pydantic models."""

    model_config = ConfigDict(extra="forbid")


class StoreSettings(ImgstashBaseModel):
    """Locations and admission rules for the image store.

    Attributes:
        directory: Flat directory holding ``<hash>.<extension>`` files.
        metadata_file: TOML document mapping hashes to entries.
        extensions: Allow-listed file extensions, without the leading dot.
    """

    directory: Path = Path("~/.imgstash/store")
    metadata_file: Path = Path("~/.imgstash/metadata.toml")
    extensions: List[str] = Field(default_factory=lambda: ["png", "jpg", "jpeg"])

    @field_validator("extensions")
    @classmethod
    def _normalize_extensions(cls, value: List[str]) -> List[str]:
        normalized = [item.strip().lstrip(".").lower() for item in value]
        if not normalized or any(not item for item in normalized):
            raise ValueError("extensions must be a non-empty list of names")
        return normalized


class ProcessingOptions(ImgstashBaseModel):
    """Options governing how candidate files are read.

    Attributes:
        follow_symlinks: Whether symlinked inputs are hashed as their target.
        hash_chunk_size: Number of bytes read per hashing step.
    """

    follow_symlinks: bool = False
    hash_chunk_size: int = Field(default=1024 * 1024, gt=0)


class GitSettings(ImgstashBaseModel):
    """Optional git commits after each mutation.

    Attributes:
        enabled: Whether mutations are committed.
        message_prefix: Prefix for generated commit messages.
    """

    enabled: bool = False
    message_prefix: str = "imgstash"


class PickerSettings(ImgstashBaseModel):
    """External fuzzy picker invocation.

    Attributes:
        command: Command and arguments receiving candidate lines on stdin.
    """

    command: List[str] = Field(default_factory=lambda: ["fzf", "--multi"])


class LoggingSettings(ImgstashBaseModel):
    """Runtime logging configuration.

    Attributes:
        level: Logging verbosity level.
        file: Optional log file; rotated when set.
        max_size_mb: Maximum log size before rotation.
        backup_count: Number of historical log files to retain.
    """

    level: str = "WARNING"
    file: Optional[Path] = None
    max_size_mb: int = 10
    backup_count: int = 3


class CLIOptions(ImgstashBaseModel):
    """CLI behavior defaults.

    Attributes:
        interactive_default: Whether add/edit prompt for tags by default.
        confirm_delete: Whether delete asks before removing each entry.
    """

    interactive_default: bool = True
    confirm_delete: bool = True


class ImgstashConfig(ImgstashBaseModel):
    """Top-level configuration struct for imgstash.

    Attributes:
        store: Store locations and extension allow-list.
        processing: File reading options.
        git: Optional git integration.
        picker: Fuzzy picker command.
        logging: Logging configuration.
        cli: CLI defaults.
    """

    store: StoreSettings = Field(default_factory=StoreSettings)
    processing: ProcessingOptions = Field(default_factory=ProcessingOptions)
    git: GitSettings = Field(default_factory=GitSettings)
    picker: PickerSettings = Field(default_factory=PickerSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)
    cli: CLIOptions = Field(default_factory=CLIOptions)


__all__ = [
    "ImgstashBaseModel",
    "StoreSettings",
    "ProcessingOptions",
    "GitSettings",
    "PickerSettings",
    "LoggingSettings",
    "CLIOptions",
    "ImgstashConfig",
]
