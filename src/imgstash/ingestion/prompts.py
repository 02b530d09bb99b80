"""Interactive and non-interactive annotation prompters."""

from __future__ import annotations

from typing import Protocol

import click
from rich.console import Console
from rich.table import Table

from imgstash.state.models import Entry
from imgstash.tags.text import split_tags

from .models import Annotation


class Prompter(Protocol):
    """Capability used by the pipeline to enrich and confirm items."""

    def annotate(self, file_hash: str, entry: Entry, *, ask_source: bool) -> Annotation:
        """Return user supplied tags (and source when ``ask_source``) for ``entry``."""

    def confirm(self, file_hash: str, entry: Entry, action: str) -> bool:
        """Return True when ``action`` should proceed for ``entry``."""


class NullPrompter:
    """Prompter for non-interactive runs: supplies nothing, confirms everything."""

    def annotate(self, file_hash: str, entry: Entry, *, ask_source: bool) -> Annotation:
        return Annotation()

    def confirm(self, file_hash: str, entry: Entry, action: str) -> bool:
        return True


class TerminalPrompter:
    """Prompt on the terminal using Rich for display and Click for input."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console()

    def annotate(self, file_hash: str, entry: Entry, *, ask_source: bool) -> Annotation:
        """Show ``entry`` and ask for additional tags and, optionally, a source.

        Args:
            file_hash: Hash of the item being annotated.
            entry: Current or candidate entry.
            ask_source: Whether to ask for a source string.

        Returns:
            Annotation: Tags typed by the user, and the source when one was
            asked for and a non-empty answer was given.
        """
        self.render(file_hash, entry)
        answer = click.prompt("Tags (space separated)", default="", show_default=False)
        source = None
        if ask_source:
            typed = click.prompt("Source", default="", show_default=False).strip()
            source = typed or None
        return Annotation(tags=split_tags(answer), source=source)

    def confirm(self, file_hash: str, entry: Entry, action: str) -> bool:
        """Ask a one-character y/n question; anything but ``y`` declines."""
        self.render(file_hash, entry)
        click.echo(f"{action.capitalize()} {file_hash[:12]}? [y/N] ", nl=False)
        answer = click.getchar()
        click.echo(answer)
        return answer.lower() == "y"

    def render(self, file_hash: str, entry: Entry) -> None:
        """Print a compact description of ``entry``."""
        table = Table(show_header=False, box=None)
        table.add_row("hash", file_hash)
        table.add_row("tags", " ".join(entry.tags) or "[dim](none)[/dim]")
        table.add_row("source", entry.source or "[dim](none)[/dim]")
        self.console.print(table)


__all__ = ["Prompter", "NullPrompter", "TerminalPrompter"]
