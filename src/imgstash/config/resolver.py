"""Merging of configuration sources into one validated config."""

from __future__ import annotations

from collections.abc import Mapping as MappingABC
from copy import deepcopy
from typing import Any, Mapping

from pydantic import ValidationError

from .exceptions import ConfigError
from .models import ImgstashConfig

ENV_PREFIX = "IMGSTASH__"


def resolve_with_precedence(
    *,
    defaults: ImgstashConfig,
    file_overrides: Mapping[str, Any] | None = None,
    env_overrides: Mapping[str, Any] | None = None,
    cli_overrides: Mapping[str, Any] | None = None,
) -> ImgstashConfig:
    """Merge configuration sources: defaults < file < environment < CLI.

    Keys of any source may be nested mappings or dotted paths such as
    ``store.directory``.

    Raises:
        ConfigError: If a source is not a mapping or the merged values fail
            validation.
    """
    merged = defaults.model_dump(mode="python")
    layers = (("file", file_overrides), ("environment", env_overrides), ("cli", cli_overrides))
    for label, layer in layers:
        if layer is not None:
            merged = _merge(merged, _expand(layer, label))

    try:
        return ImgstashConfig.model_validate(merged)
    except ValidationError as exc:
        raise ConfigError(f"Invalid configuration values: {exc}") from exc


def _expand(layer: Any, label: str) -> dict[str, Any]:
    """Turn dotted keys into nested mappings."""
    if not isinstance(layer, MappingABC):
        raise ConfigError(f"{label.capitalize()} overrides must be a mapping.")

    nested: dict[str, Any] = {}
    for key, value in layer.items():
        if not isinstance(key, str):
            raise ConfigError(f"{label.capitalize()} override keys must be strings.")
        *parents, leaf = key.split(".")
        node = nested
        for segment in parents:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(f"{label.capitalize()} override {key} conflicts with {segment}.")
            node = child
        if isinstance(value, MappingABC):
            value = _expand(value, label)
        node[leaf] = _merge(node[leaf], value) if isinstance(node.get(leaf), dict) else value
    return nested


def _merge(base: Any, overrides: Any) -> Any:
    if not (isinstance(base, MappingABC) and isinstance(overrides, MappingABC)):
        return deepcopy(overrides)
    merged = {key: deepcopy(value) for key, value in base.items()}
    for key, value in overrides.items():
        merged[key] = _merge(merged[key], value) if key in merged else deepcopy(value)
    return merged


__all__ = ["ENV_PREFIX", "resolve_with_precedence"]
