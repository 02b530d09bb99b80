"""Best-effort git commits after store mutations."""

from __future__ import annotations

import logging
import subprocess
from pathlib import Path
from typing import Sequence

LOGGER = logging.getLogger(__name__)


class GitCommitter:
    """Stage and commit touched paths after each mutation.

    Failures are logged and ignored: by the time a commit runs, the
    mutation has already been persisted.
    """

    def __init__(
        self,
        repo_dir: Path,
        *,
        enabled: bool = True,
        message_prefix: str = "imgstash",
    ) -> None:
        self.repo_dir = repo_dir
        self.enabled = enabled
        self.message_prefix = message_prefix

    def commit(
        self, operation: str, paths: Sequence[Path], *, file_hash: str | None = None
    ) -> bool:
        """Commit ``paths`` with a message naming ``operation`` and a hash prefix.

        Args:
            operation: Mutation description such as ``add`` or ``delete``.
            paths: Metadata file and store files touched by the mutation.
            file_hash: Hash of the affected entry, when there is one.

        Returns:
            bool: True when the commit succeeded.
        """
        if not self.enabled:
            return False

        message = self.message(operation, file_hash)
        present = [str(path) for path in paths if path.exists()]
        removed = [str(path) for path in paths if not path.exists()]
        try:
            if present:
                self._git("add", "--", *present)
            if removed:
                # untracked files that are already gone must not fail the commit
                self._git("rm", "--cached", "--quiet", "--ignore-unmatch", "--", *removed)
            self._git("commit", "--quiet", "-m", message)
        except (OSError, subprocess.CalledProcessError) as exc:
            LOGGER.warning("git commit for %r skipped: %s", message, _describe(exc))
            return False
        LOGGER.info("Committed %r", message)
        return True

    def message(self, operation: str, file_hash: str | None = None) -> str:
        """Return the commit message for ``operation``."""
        if file_hash is None:
            return f"{self.message_prefix}: {operation}"
        return f"{self.message_prefix}: {operation} {file_hash[:12]}"

    def _git(self, *args: str) -> None:
        subprocess.run(
            ["git", *args],
            cwd=self.repo_dir,
            check=True,
            capture_output=True,
            text=True,
        )


def _describe(exc: BaseException) -> str:
    if isinstance(exc, subprocess.CalledProcessError):
        detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
        return detail
    return str(exc)


__all__ = ["GitCommitter"]
