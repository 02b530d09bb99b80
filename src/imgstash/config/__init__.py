"""Configuration management for imgstash."""

from __future__ import annotations

import os
import textwrap
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Mapping

import yaml

from .exceptions import ConfigError, EnvMisconfiguredError
from .models import ImgstashConfig
from .resolver import ENV_PREFIX, resolve_with_precedence

DEFAULT_CONFIG_PATH = Path("~/.imgstash/config.yaml")
METADATA_SUFFIX = ".toml"
_CONFIG_HEADER = textwrap.dedent(
    """\
    # imgstash configuration file
    # Generated automatically; manage via `imgstash config set` or edit by hand.
    # Environment variables of the form IMGSTASH__SECTION__KEY override these values.
    """
)


class ConfigManager:
    """Load and persist configuration data, applying precedence rules."""

    def __init__(
        self,
        config_path: Path | None = None,
        *,
        env: Mapping[str, str] | None = None,
    ) -> None:
        self._config_path = (config_path or DEFAULT_CONFIG_PATH).expanduser()
        self._env = env if env is not None else os.environ

    @property
    def config_path(self) -> Path:
        """Return the resolved configuration path."""
        return self._config_path

    def load(
        self,
        *,
        cli_overrides: Mapping[str, Any] | None = None,
        include_env: bool = True,
    ) -> ImgstashConfig:
        """Load the effective configuration.

        Args:
            cli_overrides: Dotted keys given on the command line, such as
                ``store.directory``.
            include_env: Apply ``IMGSTASH__SECTION__KEY`` variables.

        Raises:
            ConfigError: If any source is unreadable or a value is invalid.
        """
        self.ensure_exists()
        return resolve_with_precedence(
            defaults=ImgstashConfig(),
            file_overrides=self._read_file(),
            env_overrides=self._extract_env(self._env) if include_env else None,
            cli_overrides=cli_overrides,
        )

    def load_file_overrides(self) -> dict[str, Any]:
        """Return raw overrides stored on disk."""
        return self._read_file()

    def save(self, config: ImgstashConfig | Mapping[str, Any]) -> None:
        """Persist configuration data to disk."""
        if isinstance(config, ImgstashConfig):
            data = config.model_dump(mode="json")
        else:
            data = dict(config)
        self._write_file(data)

    def ensure_exists(self) -> Path:
        """Create a configuration file with defaults if one does not exist."""
        path = self._config_path
        if not path.exists():
            self._write_file(ImgstashConfig().model_dump(mode="json"))
        return path

    def read_text(self) -> str:
        """Return the current configuration file contents."""
        if not self._config_path.exists():
            return ""
        return self._config_path.read_text(encoding="utf-8")

    def _read_file(self) -> dict[str, Any]:
        if not self._config_path.exists():
            return {}

        try:
            raw = yaml.safe_load(self._config_path.read_text(encoding="utf-8")) or {}
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse configuration file: {exc}") from exc

        if not isinstance(raw, dict):
            raise ConfigError("Configuration file must contain a mapping at the top level.")

        return raw

    def _write_file(self, data: Mapping[str, Any]) -> None:
        self._config_path.parent.mkdir(parents=True, exist_ok=True)
        serialized = yaml.safe_dump(dict(data), sort_keys=False)
        stamp = datetime.now(timezone.utc).isoformat().replace("+00:00", "Z")
        timestamp = f"# Last updated: {stamp}\n"
        self._config_path.write_text(_CONFIG_HEADER + timestamp + serialized, encoding="utf-8")

    def _extract_env(self, env: Mapping[str, str]) -> dict[str, Any]:
        overrides: dict[str, Any] = {}
        for key, raw_value in env.items():
            if not key.startswith(ENV_PREFIX):
                continue
            path = [segment.lower() for segment in key[len(ENV_PREFIX) :].split("__")]
            if not all(path):
                continue
            try:
                parsed_value: Any = yaml.safe_load(raw_value)
            except yaml.YAMLError:
                parsed_value = raw_value

            current = overrides
            for segment in path[:-1]:
                existing = current.get(segment)
                if not isinstance(existing, dict):
                    existing = {}
                    current[segment] = existing
                current = existing
            current[path[-1]] = parsed_value

        return overrides


def resolve_store_paths(config: ImgstashConfig) -> tuple[Path, Path]:
    """Validate and prepare the configured store locations.

    The store directory is created on demand; the metadata file itself is
    created lazily by the metadata store.

    Args:
        config: Resolved configuration.

    Returns:
        tuple[Path, Path]: Store directory and metadata file paths.

    Raises:
        EnvMisconfiguredError: If a path has the wrong type or extension.
    """
    directory = config.store.directory.expanduser()
    metadata_file = config.store.metadata_file.expanduser()

    if metadata_file.suffix.lower() != METADATA_SUFFIX:
        raise EnvMisconfiguredError(
            f"Metadata file {metadata_file} must have a {METADATA_SUFFIX} extension."
        )
    if metadata_file.exists() and not metadata_file.is_file():
        raise EnvMisconfiguredError(f"Metadata file {metadata_file} is not a regular file.")
    if directory.exists() and not directory.is_dir():
        raise EnvMisconfiguredError(f"Store directory {directory} is not a directory.")

    directory.mkdir(parents=True, exist_ok=True)
    return directory, metadata_file


__all__ = [
    "ConfigManager",
    "DEFAULT_CONFIG_PATH",
    "ImgstashConfig",
    "resolve_with_precedence",
    "resolve_store_paths",
    "ConfigError",
    "EnvMisconfiguredError",
]
