"""Fuzzy picker integration."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

LOGGER = logging.getLogger(__name__)

# fzf: 1 = no match, 130 = interrupted
_EMPTY_SELECTION_CODES = frozenset({1, 130})


class PickerError(Exception):
    """Raised when the external picker cannot be run."""


class FuzzyPicker:
    """Feed line-oriented text to an external selector and read back the choice."""

    def __init__(self, command: Sequence[str]) -> None:
        self.command = list(command)

    def pick(self, lines: Sequence[str]) -> list[str]:
        """Return the lines selected by the user.

        Args:
            lines: Candidate lines, one per item.

        Returns:
            list[str]: Selected lines; empty when nothing was selected.

        Raises:
            PickerError: If the command cannot be executed or fails.
        """
        if not self.command:
            raise PickerError("Picker command is empty; set picker.command in the configuration.")
        if not lines:
            return []
        try:
            completed = subprocess.run(
                self.command,
                input="\n".join(lines) + "\n",
                stdout=subprocess.PIPE,
                text=True,
                check=False,
            )
        except OSError as exc:
            raise PickerError(f"Unable to run {self.command[0]!r}: {exc}") from exc

        if completed.returncode in _EMPTY_SELECTION_CODES:
            LOGGER.debug("Picker returned %s; nothing selected", completed.returncode)
            return []
        if completed.returncode != 0:
            raise PickerError(f"{self.command[0]!r} exited with status {completed.returncode}")
        return [line for line in completed.stdout.splitlines() if line.strip()]

    def select(self, candidates: Mapping[str, Path]) -> list[Path]:
        """Offer ``candidates`` (line -> path) and return the chosen paths."""
        selected = self.pick(list(candidates))
        return [candidates.get(line) or Path(line.split(" ", 1)[0]) for line in selected]


__all__ = ["FuzzyPicker", "PickerError"]
