"""Command line interface for imgstash."""

from __future__ import annotations

import difflib
import sys
from pathlib import Path
from typing import Any, NoReturn, Sequence

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table

from imgstash.config import (
    ConfigError,
    ConfigManager,
    ImgstashConfig,
    resolve_with_precedence,
)
from imgstash.consistency import Finding, RepairReport
from imgstash.ingestion import TerminalPrompter
from imgstash.integrations import PickerError
from imgstash.logging_config import configure_logging
from imgstash.services import StoreServices
from imgstash.state import MetadataError, NotListedError, StoreError, TagError
from imgstash.tags import TagPredicate, all_of, any_of, both, none_of

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool = False,
    original: Exception | None = None,
) -> NoReturn:
    """Emit a standardized error and terminate the command.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """
    if json_output:
        console.print_json(data={"error": {"code": code, "message": message}})
        raise SystemExit(1)

    raise click.ClickException(message) from original


def _emit_message(ctx: click.Context, message: Any, *, mode: str = "detail") -> None:
    """Print ``message`` unless quiet mode suppresses it.

    Args:
        ctx: Click context carrying the global options.
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
    """
    if ctx.find_root().obj.get("quiet") and mode != "error":
        return
    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands.

    Args:
        command: Command name to include in the summary.
        root: Store directory relevant to the command.
        metrics: Ordered mapping of metric names to values.

    Returns:
        str: Rich-formatted summary string.
    """
    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _interactive(
    ctx: click.Context, name: str, value: bool | None, config: ImgstashConfig
) -> bool:
    """Return whether prompts are enabled for this invocation.

    An explicit ``--interactive/--no-interactive`` wins; otherwise the
    configured default applies when stdin is a terminal.
    """
    if ctx.get_parameter_source(name) == ParameterSource.COMMANDLINE and value is not None:
        return value
    return config.cli.interactive_default and sys.stdin.isatty()


def _load_config(ctx: click.Context) -> ImgstashConfig:
    root = ctx.find_root()
    config = root.obj.get("config")
    if config is not None:
        return config
    try:
        manager = ConfigManager()
        manager.ensure_exists()
        config = manager.load(cli_overrides=root.obj.get("overrides"))
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", original=exc)
    configure_logging(config.logging, verbose=root.obj.get("verbose", False))
    root.obj["config"] = config
    return config


def _open_store(
    ctx: click.Context,
    *,
    interactive: bool = False,
    json_output: bool = False,
) -> StoreServices:
    """Build the store components for the current command.

    Raises:
        click.ClickException: If the configuration, the store paths, or the
            metadata document are invalid.
    """
    config = _load_config(ctx)
    prompter = TerminalPrompter(console) if interactive else None
    try:
        services = StoreServices.from_config(config, prompter=prompter)
    except ConfigError as exc:
        _handle_cli_error(
            str(exc), code="config_error", json_output=json_output, original=exc
        )
    try:
        services.store.load()
    except MetadataError as exc:
        _handle_cli_error(
            str(exc), code="metadata_error", json_output=json_output, original=exc
        )
    return services


def _default_targets(services: StoreServices) -> list[Path]:
    return list(services.scanner.scan(Path.cwd()))


def _emit_paths(paths: Sequence[Path], json_output: bool) -> None:
    if json_output:
        console.print_json(data={"paths": [str(path) for path in paths]})
        return
    for path in paths:
        click.echo(str(path))


def _finding_table(findings: Sequence[Finding]) -> Table:
    table = Table(title="Verification findings")
    table.add_column("hash", overflow="fold")
    table.add_column("problems")
    for finding in findings:
        table.add_row(finding.hash, "; ".join(finding.problems))
    return table


def _repair_payload(report: RepairReport, dry_run: bool) -> dict[str, Any]:
    payload = report.model_dump(mode="json")
    payload["dry_run"] = dry_run
    return payload


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="imgstash")
@click.option("-v", "--verbose", is_flag=True, help="Log each processed item.")
@click.option("-q", "--quiet", is_flag=True, help="Suppress non-error output.")
@click.option(
    "--store",
    "store_dir",
    type=click.Path(path_type=Path),
    help="Store directory for this invocation.",
)
@click.option(
    "--metadata",
    "metadata_file",
    type=click.Path(path_type=Path),
    help="TOML metadata file for this invocation.",
)
@click.pass_context
def cli(
    ctx: click.Context,
    verbose: bool,
    quiet: bool,
    store_dir: Path | None,
    metadata_file: Path | None,
) -> None:
    """imgstash keeps a content-addressed, tagged collection of images.

    The store directory and metadata file default to ~/.imgstash. They can be
    overridden with IMGSTASH__STORE__DIRECTORY and IMGSTASH__STORE__METADATA_FILE,
    or per invocation with --store and --metadata.
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    overrides: dict[str, Any] = {}
    if store_dir is not None:
        overrides["store.directory"] = str(store_dir)
    if metadata_file is not None:
        overrides["store.metadata_file"] = str(metadata_file)
    ctx.obj["overrides"] = overrides or None


@cli.command()
@click.argument("paths", nargs=-1, type=click.Path(path_type=Path))
@click.option("-t", "--tag", "tags", multiple=True, help="Tag applied to every file.")
@click.option("-s", "--source", type=str, help="Source recorded for every file.")
@click.option(
    "--interactive/--no-interactive",
    default=None,
    help="Prompt for tags and source per file.",
)
@click.option("--json", "json_output", is_flag=True, help="Emit admitted hashes as JSON.")
@click.pass_context
def add(
    ctx: click.Context,
    paths: tuple[Path, ...],
    tags: tuple[str, ...],
    source: str | None,
    interactive: bool | None,
    json_output: bool,
) -> None:
    """Copy new images into the store.

    PATHS default to every entry of the current directory. Files already in
    the store, unsupported files, and files left without tags are skipped.
    """
    config = _load_config(ctx)
    prompting = _interactive(ctx, "interactive", interactive, config)
    services = _open_store(ctx, interactive=prompting, json_output=json_output)
    candidates = list(paths) or _default_targets(services)

    try:
        admitted = services.pipeline.add(candidates, tags=tags, source=source)
    except TagError as exc:
        _handle_cli_error(str(exc), code="invalid_tag", json_output=json_output, original=exc)

    if json_output:
        console.print_json(data={"added": admitted})
        return
    for file_hash in admitted:
        _emit_message(ctx, f"[cyan]added[/cyan] {file_hash}")
    _emit_message(
        ctx,
        _format_summary_line(
            "Add",
            services.directory.root,
            {"candidates": len(candidates), "added": len(admitted)},
        ),
        mode="summary",
    )


@cli.command()
@click.argument("targets", nargs=-1, type=str)
@click.option("-t", "--tag", "tags", multiple=True, help="Tag appended to every entry.")
@click.option("-s", "--source", type=str, help="Replace the stored source (may be empty).")
@click.option(
    "--interactive/--no-interactive",
    default=None,
    help="Prompt for additional tags and source per entry.",
)
@click.pass_context
def edit(
    ctx: click.Context,
    targets: tuple[str, ...],
    tags: tuple[str, ...],
    source: str | None,
    interactive: bool | None,
) -> None:
    """Add tags to, or change the source of, listed entries.

    TARGETS are hashes or paths and default to every entry of the current
    directory. Unlisted targets are skipped.
    """
    config = _load_config(ctx)
    prompting = _interactive(ctx, "interactive", interactive, config)
    services = _open_store(ctx, interactive=prompting)
    selected: list[str | Path] = list(targets) or list(_default_targets(services))

    try:
        edited = services.pipeline.edit(selected, tags=tags, source=source)
    except TagError as exc:
        _handle_cli_error(str(exc), code="invalid_tag", original=exc)

    for file_hash in edited:
        _emit_message(ctx, f"[cyan]edited[/cyan] {file_hash}")
    _emit_message(
        ctx,
        _format_summary_line(
            "Edit", services.directory.root, {"targets": len(selected), "edited": len(edited)}
        ),
        mode="summary",
    )


@cli.command()
@click.argument("targets", nargs=-1, required=True, type=str)
@click.option("-y", "--yes", is_flag=True, help="Do not ask for confirmation.")
@click.pass_context
def delete(ctx: click.Context, targets: tuple[str, ...], yes: bool) -> None:
    """Remove entries and their files from the store.

    TARGETS are hashes or paths; an unlisted target aborts the command
    before anything is removed.
    """
    config = _load_config(ctx)
    confirm = config.cli.confirm_delete and not yes
    services = _open_store(ctx, interactive=confirm)

    try:
        removed = services.pipeline.delete(targets, confirm=confirm, strict=True)
    except NotListedError as exc:
        _handle_cli_error(str(exc), code="not_listed", original=exc)

    for file_hash in removed:
        _emit_message(ctx, f"[red]deleted[/red] {file_hash}")
    _emit_message(
        ctx,
        _format_summary_line(
            "Delete", services.directory.root, {"targets": len(targets), "deleted": len(removed)}
        ),
        mode="summary",
    )


@cli.command()
@click.argument("targets", nargs=-1, type=str)
@click.option("--json", "json_output", is_flag=True, help="Emit entries as JSON.")
@click.pass_context
def show(ctx: click.Context, targets: tuple[str, ...], json_output: bool) -> None:
    """Display listed entries (all of them when no TARGETS are given)."""
    services = _open_store(ctx, json_output=json_output)
    entries = services.store.load()
    hashes = services.pipeline.resolve_targets(targets) if targets else sorted(entries)

    if json_output:
        payload = {
            file_hash: {
                **entries[file_hash].model_dump(mode="json", exclude_none=True),
                "path": str(services.directory.path_for(file_hash, entries[file_hash])),
            }
            for file_hash in hashes
        }
        console.print_json(data=payload)
        return

    table = Table()
    table.add_column("hash", overflow="fold")
    table.add_column("ext")
    table.add_column("tags")
    table.add_column("source", overflow="fold")
    for file_hash in hashes:
        entry = entries[file_hash]
        table.add_row(file_hash, entry.extension, " ".join(entry.tags), entry.source or "")
    _emit_message(ctx, table)


def _check_options(func: Any) -> Any:
    func = click.option("--source", "check_source", is_flag=True, help="Require a source.")(func)
    func = click.option(
        "--hashes", is_flag=True, help="Recompute file hashes and compare them to filenames."
    )(func)
    func = click.option(
        "--no-files", "skip_files", is_flag=True, help="Do not require store files to exist."
    )(func)
    return func


@cli.command()
@_check_options
@click.option("--orphans", "show_orphans", is_flag=True, help="Also list unlisted store files.")
@click.option("--json", "json_output", is_flag=True, help="Emit findings as JSON.")
@click.pass_context
def verify(
    ctx: click.Context,
    check_source: bool,
    hashes: bool,
    skip_files: bool,
    show_orphans: bool,
    json_output: bool,
) -> None:
    """Report entries that break the store invariants."""
    services = _open_store(ctx, json_output=json_output)
    findings = services.checker.inspect(source=check_source, files=not skip_files, hashes=hashes)
    orphans = services.checker.orphans() if show_orphans else []

    if json_output:
        payload: dict[str, Any] = {
            "valid": not findings,
            "findings": [finding.model_dump(mode="json") for finding in findings],
        }
        if show_orphans:
            payload["orphans"] = [str(path) for path in orphans]
        console.print_json(data=payload)
        return

    if findings:
        _emit_message(ctx, _finding_table(findings), mode="warning")
    for path in orphans:
        _emit_message(ctx, f"[yellow]orphan[/yellow] {path}", mode="warning")
    metrics: dict[str, Any] = {"invalid": len(findings)}
    if show_orphans:
        metrics["orphans"] = len(orphans)
    _emit_message(
        ctx,
        _format_summary_line("Verify", services.directory.root, metrics),
        mode="summary",
    )


@cli.command()
@_check_options
@click.pass_context
def check(ctx: click.Context, check_source: bool, hashes: bool, skip_files: bool) -> None:
    """Fail with a non-zero exit status when verification finds anything."""
    services = _open_store(ctx)
    try:
        services.checker.check(source=check_source, files=not skip_files, hashes=hashes)
    except StoreError as exc:
        findings = getattr(exc, "findings", [])
        if findings:
            _emit_message(ctx, _finding_table(findings), mode="error")
        _handle_cli_error(str(exc), code="verification_failed", original=exc)
    _emit_message(ctx, "[green]Store is consistent.[/green]", mode="summary")


@cli.command()
@click.option("--dry-run", is_flag=True, help="Show renames without applying them.")
@click.option("--json", "json_output", is_flag=True, help="Emit the repair report as JSON.")
@click.pass_context
def repair(ctx: click.Context, dry_run: bool, json_output: bool) -> None:
    """Rename misnamed store files to ``<hash>.<extension>``.

    Files whose content is not listed are reported and left in place.
    """
    services = _open_store(ctx, json_output=json_output)
    report = services.checker.repair(dry_run=dry_run)

    if json_output:
        console.print_json(data=_repair_payload(report, dry_run))
        return

    verb = "would rename" if dry_run else "renamed"
    for operation in report.renames:
        _emit_message(
            ctx, f"[cyan]{verb}[/cyan] {operation.source.name} -> {operation.destination.name}"
        )
    for operation in report.conflicts:
        _emit_message(
            ctx,
            f"[yellow]conflict[/yellow] {operation.source.name}: "
            f"{operation.destination.name} already exists",
            mode="warning",
        )
    for path in report.orphans:
        _emit_message(ctx, f"[yellow]orphan[/yellow] {path.name}", mode="warning")

    metrics: dict[str, Any] = {
        "renames": len(report.renames),
        "conflicts": len(report.conflicts),
        "orphans": len(report.orphans),
    }
    if dry_run:
        metrics["dry_run"] = True
    _emit_message(
        ctx, _format_summary_line("Repair", services.directory.root, metrics), mode="summary"
    )


@cli.group()
def tag() -> None:
    """List and rename tags."""


@tag.command("list")
@click.option("--counts", is_flag=True, help="Show how many entries carry each tag.")
@click.option("--json", "json_output", is_flag=True, help="Emit tags as JSON.")
@click.pass_context
def tag_list(ctx: click.Context, counts: bool, json_output: bool) -> None:
    """List every tag used in the store."""
    services = _open_store(ctx, json_output=json_output)
    if counts:
        tag_counts = services.tags.counts()
        if json_output:
            console.print_json(data=tag_counts)
            return
        for name, count in tag_counts.items():
            click.echo(f"{name} {count}")
        return

    names = services.tags.list_tags()
    if json_output:
        console.print_json(data=names)
        return
    for name in names:
        click.echo(name)


@tag.command("rename")
@click.argument("old")
@click.argument("new")
@click.pass_context
def tag_rename(ctx: click.Context, old: str, new: str) -> None:
    """Rename tag OLD to NEW on every entry."""
    services = _open_store(ctx)
    try:
        changed = services.tags.rename(old, new)
    except TagError as exc:
        _handle_cli_error(str(exc), code="invalid_tag", original=exc)
    _emit_message(
        ctx,
        _format_summary_line("Tag rename", services.directory.root, {"changed": len(changed)}),
        mode="summary",
    )


@cli.group()
def pick() -> None:
    """Print store paths of entries selected by tag."""


def _with_exclusions(predicate: TagPredicate, exclude: Sequence[str]) -> TagPredicate:
    if exclude:
        return both(predicate, none_of(exclude))
    return predicate


@pick.command("any")
@click.argument("tags", nargs=-1, required=True)
@click.option("-x", "--exclude", multiple=True, help="Skip entries carrying this tag.")
@click.option("--json", "json_output", is_flag=True, help="Emit paths as JSON.")
@click.pass_context
def pick_any(
    ctx: click.Context, tags: tuple[str, ...], exclude: tuple[str, ...], json_output: bool
) -> None:
    """Entries carrying at least one of TAGS."""
    services = _open_store(ctx, json_output=json_output)
    _emit_paths(services.tags.select(_with_exclusions(any_of(tags), exclude)), json_output)


@pick.command("all")
@click.argument("tags", nargs=-1, required=True)
@click.option("-x", "--exclude", multiple=True, help="Skip entries carrying this tag.")
@click.option("--json", "json_output", is_flag=True, help="Emit paths as JSON.")
@click.pass_context
def pick_all(
    ctx: click.Context, tags: tuple[str, ...], exclude: tuple[str, ...], json_output: bool
) -> None:
    """Entries carrying every one of TAGS."""
    services = _open_store(ctx, json_output=json_output)
    _emit_paths(services.tags.select(_with_exclusions(all_of(tags), exclude)), json_output)


@pick.command("fzf")
@click.argument("tags", nargs=-1)
@click.pass_context
def pick_fzf(ctx: click.Context, tags: tuple[str, ...]) -> None:
    """Choose entries interactively with the configured fuzzy picker.

    When TAGS are given only entries carrying one of them are offered.
    """
    services = _open_store(ctx)
    hashes = services.tags.filter(any_of(tags) if tags else (lambda _tags: True))
    try:
        selected = services.picker.select(services.tags.picker_lines(hashes))
    except PickerError as exc:
        _handle_cli_error(str(exc), code="picker_error", original=exc)
    _emit_paths(selected, False)


@cli.group()
def config() -> None:
    """Manage imgstash configuration files and overrides."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore environment overrides when displaying output.")
def config_view(no_env: bool) -> None:
    """Display the effective configuration after applying precedence rules."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
        loaded = manager.load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="json"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    VALUE is parsed as YAML, so lists and booleans can be given literally.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must specify a dotted path such as 'git.enabled'.")

    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        file_data = manager.load_file_overrides()
        node = file_data
        for segment in segments[:-1]:
            child = node.setdefault(segment, {})
            if not isinstance(child, dict):
                raise ConfigError(f"Cannot assign into '{segment}' because it is not a mapping.")
            node = child
        node[segments[-1]] = parsed_value
        resolve_with_precedence(defaults=ImgstashConfig(), file_overrides=file_data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(file_data)
    after = manager.read_text().splitlines()
    diff = [
        line
        for line in difflib.unified_diff(
            before,
            after,
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
        if not line.startswith(("-# Last updated", "+# Last updated"))
    ]

    changed = any(
        line.startswith(("+", "-")) and not line.startswith(("+++", "---")) for line in diff
    )
    if not changed:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return
    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
