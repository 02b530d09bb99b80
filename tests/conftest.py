"""Shared fixtures for imgstash tests."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterator

import pytest

from imgstash.config import ImgstashConfig
from imgstash.services import StoreServices


@pytest.fixture(autouse=True)
def _reset_imgstash_logging() -> Iterator[None]:
    """Drop handlers installed by CLI runs so they do not outlive the test."""
    yield
    logger = logging.getLogger("imgstash")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.setLevel(logging.NOTSET)


@pytest.fixture
def config(tmp_path: Path) -> ImgstashConfig:
    """Return a configuration pointing the store into ``tmp_path``."""
    return ImgstashConfig.model_validate(
        {
            "store": {
                "directory": str(tmp_path / "store"),
                "metadata_file": str(tmp_path / "meta" / "images.toml"),
            }
        }
    )


@pytest.fixture
def services(config: ImgstashConfig) -> StoreServices:
    """Return non-interactive store services for the temporary store."""
    return StoreServices.from_config(config)


@pytest.fixture
def make_image(tmp_path: Path) -> Callable[..., Path]:
    """Return a factory writing fake image files under ``tmp_path/inbox``."""
    inbox = tmp_path / "inbox"
    inbox.mkdir()

    def _make(name: str, content: bytes | None = None) -> Path:
        path = inbox / name
        path.write_bytes(content if content is not None else f"pixels of {name}".encode())
        return path

    return _make
