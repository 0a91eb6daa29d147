"""Command line interface for shotsort."""

from __future__ import annotations

import difflib
import logging
from pathlib import Path
from typing import Any, Iterable, Sequence, TextIO

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.tree import Tree

from shotsort.config import (
    ConfigError,
    ConfigManager,
    ShotsortConfig,
    flatten_for_env,
    resolve_with_precedence,
)
from shotsort.organization import (
    CategoryNode,
    ConflictEntry,
    ConflictsPendingError,
    ExecutorBusyError,
    compute_destination,
)
from shotsort.proposals import (
    EventFormatError,
    FailedEvent,
    ProposalNotFoundError,
    SkippedEvent,
    load_events,
)
from shotsort.session import ReviewSession
from shotsort.state import MissingStateError, StateError, StateRepository

console = Console()


def _handle_cli_error(
    message: str,
    *,
    code: str,
    json_output: bool,
    details: Any | None = None,
    original: Exception | None = None,
) -> None:
    """Emit a standardized error and terminate the command appropriately.

    Args:
        message: Human-readable error message.
        code: Machine-readable error identifier.
        json_output: Indicates whether JSON mode is active.
        details: Optional structured details to include in the payload.
        original: Original exception for chaining when not using JSON.

    Raises:
        SystemExit: When emitting JSON output to terminate the command.
        click.ClickException: For non-JSON flows to surface the error.
    """

    if json_output:
        payload: dict[str, Any] = {"error": {"code": code, "message": message}}
        if details is not None:
            payload["error"]["details"] = details
        console.print_json(data=payload)
        raise SystemExit(1)

    if isinstance(original, click.ClickException):
        raise original

    raise click.ClickException(message) from original


def _emit_message(message: Any, *, mode: str, quiet: bool, summary_only: bool) -> None:
    """Conditionally print CLI output according to quiet/summary settings.

    Args:
        message: Renderable or string to emit.
        mode: Output mode identifier (`detail`, `summary`, `warning`, or `error`).
        quiet: Whether quiet mode is active.
        summary_only: Whether only summary lines should be emitted.
    """

    if quiet and mode != "error":
        return

    if summary_only and mode not in {"summary", "warning", "error"}:
        return

    console.print(message)


def _format_summary_line(command: str, root: Path | str, metrics: dict[str, Any]) -> str:
    """Return a consistent summary line for CLI commands."""

    parts = ", ".join(f"{key}={value}" for key, value in metrics.items())
    return f"[green]{command} summary for {root}: {parts}.[/green]"


def _resolve_output_modes(
    ctx: click.Context,
    config: ShotsortConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine CLI flags with configured defaults into (quiet, summary_only).

    Raises:
        click.ClickException: If the requested modes cannot be combined.
    """

    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE

    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        if explicit_summary and summary_only:
            raise click.ClickException("--json cannot be combined with --summary.")
        return False, False

    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _load_config() -> ShotsortConfig:
    manager = ConfigManager()
    manager.ensure_exists()
    config = manager.load()
    logging.basicConfig(format="%(levelname)s %(name)s: %(message)s")
    logging.getLogger("shotsort").setLevel(config.logging.level.upper())
    return config


def _build_session(
    config: ShotsortConfig,
    events_file: TextIO,
    *,
    optimize: bool,
) -> tuple[ReviewSession, dict[str, int]]:
    """Create a local session populated from a JSON-lines events file.

    Returns:
        tuple[ReviewSession, dict[str, int]]: Session and ingestion counters.
    """

    events = load_events(events_file)
    session = ReviewSession.local(config.organization)
    session.ingest_many(events)
    counts = {
        "proposals": len(session.store),
        "skipped": sum(1 for event in events if isinstance(event, SkippedEvent)),
        "failed": sum(1 for event in events if isinstance(event, FailedEvent)),
    }
    if optimize:
        session.optimize()
    return session, counts


def _parse_renames(values: Iterable[str]) -> list[tuple[str, str]]:
    renames = []
    for value in values:
        proposal_id, separator, name = value.partition("=")
        if not separator or not proposal_id or not name.strip():
            raise click.BadParameter(f"Expected ID=NAME, got {value!r}.", param_hint="--rename")
        renames.append((proposal_id, name.strip()))
    return renames


def _apply_resolutions(
    session: ReviewSession,
    *,
    skips: Sequence[str],
    overwrites: Sequence[str],
    renames: Sequence[tuple[str, str]],
) -> None:
    for proposal_id, name in renames:
        session.rename(proposal_id, name)
    for proposal_id in skips:
        session.skip(proposal_id)
    for proposal_id in overwrites:
        if proposal_id not in session.overwrite_ids:
            session.toggle_overwrite(proposal_id)


def _tree_renderable(forest: Sequence[CategoryNode], root: Path) -> Tree:
    tree = Tree(f"[bold]{root}[/bold]")

    def _attach(parent: Tree, node: CategoryNode) -> None:
        branch = parent.add(f"{node.name} [dim]({node.selected_count}/{node.file_count})[/dim]")
        for child in node.children:
            _attach(branch, child)

    for node in forest:
        _attach(tree, node)
    return tree


def _node_payload(node: CategoryNode) -> dict[str, Any]:
    return {
        "name": node.name,
        "path": node.full_path,
        "file_count": node.file_count,
        "selected_count": node.selected_count,
        "children": [_node_payload(child) for child in node.children],
    }


def _conflict_table(conflicts: Sequence[ConflictEntry]) -> Table:
    table = Table(title="Conflicts", show_lines=False)
    table.add_column("ID", style="cyan")
    table.add_column("File")
    table.add_column("Destination")
    table.add_column("Reasons", style="yellow")
    for conflict in conflicts:
        table.add_row(
            conflict.id,
            conflict.original_name,
            conflict.destination,
            ", ".join(conflict.reasons),
        )
    return table


def _proposal_table(session: ReviewSession, config: ShotsortConfig) -> Table:
    table = Table(title="Proposals")
    table.add_column("ID", style="cyan")
    table.add_column("Selected")
    table.add_column("File")
    table.add_column("Destination")
    table.add_column("Reasoning", style="dim")
    for proposal in session.store:
        destination = compute_destination(proposal, config.organization)
        table.add_row(
            proposal.id,
            "yes" if proposal.selected else "no",
            proposal.original_name,
            destination.path,
            proposal.reasoning,
        )
    return table


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="shotsort")
def cli() -> None:
    """shotsort sorts screenshots into AI-suggested category folders, safely and reversibly."""


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.argument("events", type=click.File("r", encoding="utf-8"))
@click.option("--overwrite", "overwrites", multiple=True, help="Allow ID to replace an existing file.")
@click.option("--no-optimize", is_flag=True, help="Keep categories exactly as classified.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the review.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def review(
    ctx: click.Context,
    root: str,
    events: TextIO,
    overwrites: tuple[str, ...],
    no_optimize: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Show the folder tree, proposals, and conflicts for classification EVENTS.

    EVENTS is a JSON-lines file of classification events for files under ROOT.
    """

    try:
        config = _load_config()
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        root_path = Path(root).expanduser().resolve()
        session, counts = _build_session(config, events, optimize=not no_optimize)
        _apply_resolutions(session, skips=(), overwrites=overwrites, renames=())

        forest = session.category_tree()
        conflicts = session.detect_conflicts()

        if json_output:
            console.print_json(
                data={
                    "context": {"root": str(root_path), "optimized": not no_optimize},
                    "tree": [_node_payload(node) for node in forest],
                    "proposals": [
                        {
                            **proposal.model_dump(mode="json"),
                            "destination": compute_destination(
                                proposal, config.organization
                            ).path,
                        }
                        for proposal in session.store
                    ],
                    "conflicts": [conflict.model_dump(mode="json") for conflict in conflicts],
                    "counts": {**counts, "conflicts": len(conflicts)},
                }
            )
            return

        _emit_message(
            _tree_renderable(forest, root_path),
            mode="detail",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
        _emit_message(
            _proposal_table(session, config),
            mode="detail",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
        if conflicts:
            _emit_message(
                _conflict_table(conflicts),
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line(
                "Review",
                root_path,
                {
                    **counts,
                    "selected": session.store.selected_count(),
                    "conflicts": len(conflicts),
                },
            ),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except (EventFormatError, ProposalNotFoundError) as exc:
        _handle_cli_error(str(exc), code="invalid_input", json_output=json_output, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.argument("events", type=click.File("r", encoding="utf-8"))
@click.option("--skip", "skips", multiple=True, help="Leave ID out of the batch.")
@click.option("--overwrite", "overwrites", multiple=True, help="Allow ID to replace an existing file.")
@click.option("--rename", "renames", multiple=True, help="Rename a proposal, given as ID=NAME.")
@click.option("--no-optimize", is_flag=True, help="Keep categories exactly as classified.")
@click.option("--dry-run", is_flag=True, help="Check for conflicts without moving files.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the moves.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def apply(
    ctx: click.Context,
    root: str,
    events: TextIO,
    skips: tuple[str, ...],
    overwrites: tuple[str, ...],
    renames: tuple[str, ...],
    no_optimize: bool,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Move the selected screenshots of EVENTS into their category folders under ROOT.

    Nothing is moved while conflicts remain; resolve them with --skip,
    --overwrite, or --rename and run the command again.
    """

    try:
        config = _load_config()
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        root_path = Path(root).expanduser().resolve()
        session, counts = _build_session(config, events, optimize=not no_optimize)
        _apply_resolutions(
            session, skips=skips, overwrites=overwrites, renames=_parse_renames(renames)
        )

        if dry_run:
            conflicts = session.detect_conflicts()
            if conflicts:
                raise ConflictsPendingError(conflicts)
            planned = [
                {
                    "id": proposal.id,
                    "source": proposal.original_path,
                    "destination": compute_destination(proposal, config.organization).path,
                    "overwrite": proposal.id in session.overwrite_ids,
                }
                for proposal in session.store.selected()
            ]
            if json_output:
                console.print_json(
                    data={
                        "context": {"root": str(root_path), "dry_run": True},
                        "moves": planned,
                        "counts": {**counts, "planned": len(planned)},
                    }
                )
                return
            _emit_message(
                "[yellow]Dry run: no files were moved.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            for move in planned:
                _emit_message(
                    f"  {move['source']} -> {move['destination']}",
                    mode="detail",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
            _emit_message(
                _format_summary_line("Apply", root_path, {**counts, "planned": len(planned)}),
                mode="summary",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            return

        report = session.accept(str(root_path))
        repository = StateRepository()
        if session.batch is not None:
            repository.save_batch(root_path, session.batch)

        metrics = {**counts, "moved": report.moved_count, "failed": report.failed_count}
        if json_output:
            console.print_json(
                data={
                    "context": {"root": str(root_path), "dry_run": False},
                    "moves": [record.model_dump(mode="json") for record in report.batch.records],
                    "errors": report.errors,
                    "counts": metrics,
                }
            )
            return

        for record in report.batch.records:
            suffix = " [yellow](renamed)[/yellow]" if record.renamed else ""
            _emit_message(
                f"  {record.proposal.original_path} -> {record.moved_path}{suffix}",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        if report.errors:
            _emit_message(
                "[red]Errors encountered:[/red]",
                mode="error",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            for proposal_id, message in report.errors.items():
                _emit_message(
                    f"  - {proposal_id}: {message}",
                    mode="error",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
        _emit_message(
            _format_summary_line("Apply", root_path, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except ConflictsPendingError as exc:
        if not json_output:
            console.print(_conflict_table(exc.conflicts))
        _handle_cli_error(
            str(exc),
            code="conflicts",
            json_output=json_output,
            details=[conflict.model_dump(mode="json") for conflict in exc.conflicts],
            original=exc,
        )
    except (EventFormatError, ProposalNotFoundError) as exc:
        _handle_cli_error(str(exc), code="invalid_input", json_output=json_output, original=exc)
    except ExecutorBusyError as exc:
        _handle_cli_error(str(exc), code="busy", json_output=json_output, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)


@cli.command()
@click.argument("root", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--dry-run", is_flag=True, help="Preview the undo without moving files.")
@click.option("--json", "json_output", is_flag=True, help="Emit JSON describing the undo.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def undo(
    ctx: click.Context,
    root: str,
    dry_run: bool,
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Move the files of the last batch applied under ROOT back where they came from."""

    try:
        config = _load_config()
        quiet_enabled, summary_only = _resolve_output_modes(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        root_path = Path(root).expanduser().resolve()
        repository = StateRepository()
        try:
            batch = repository.load_batch(root_path)
        except MissingStateError as exc:
            raise click.ClickException(
                f"No move batch recorded for {root_path}. Run `shotsort apply` first."
            ) from exc

        if dry_run:
            if json_output:
                console.print_json(
                    data={
                        "context": {"root": str(root_path), "dry_run": True},
                        "batch": batch.model_dump(mode="json"),
                    }
                )
                return
            _emit_message(
                "[yellow]Dry run: undo simulated.[/yellow]",
                mode="warning",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
            for record in batch.records:
                _emit_message(
                    f"  {record.moved_path} -> {record.proposal.original_path}",
                    mode="detail",
                    quiet=quiet_enabled,
                    summary_only=summary_only,
                )
            return

        session = ReviewSession.local(config.organization)
        session.restore_batch(batch)
        report = session.undo()
        repository.save_batch(root_path, batch)

        metrics = {"restored": len(report.restored), "remaining": report.remaining}
        if json_output:
            console.print_json(
                data={
                    "context": {"root": str(root_path), "dry_run": False},
                    "restored": [proposal.model_dump(mode="json") for proposal in report.restored],
                    "errors": report.errors,
                    "counts": metrics,
                }
            )
            return

        for proposal in report.restored:
            _emit_message(
                f"  restored {proposal.original_path}",
                mode="detail",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        for proposal_id, message in report.errors.items():
            _emit_message(
                f"[red]  - {proposal_id}: {message}[/red]",
                mode="error",
                quiet=quiet_enabled,
                summary_only=summary_only,
            )
        _emit_message(
            _format_summary_line("Undo", root_path, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except ExecutorBusyError as exc:
        _handle_cli_error(str(exc), code="busy", json_output=json_output, original=exc)
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)


@cli.group()
def config() -> None:
    """Manage shotsort configuration files and overrides."""


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

    yaml_text = yaml.safe_dump(loaded.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(yaml_text, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="Value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Persist a configuration value expressed as a dotted KEY.

    Args:
        key: Dotted path such as ``organization.merge_threshold``.
        value: YAML-literal value to write into the configuration file.

    Raises:
        click.ClickException: If parsing, assignment, or validation fails.
    """
    manager = ConfigManager()
    manager.ensure_exists()

    before = manager.read_text().splitlines()
    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    try:
        manager.set_value(key, parsed_value)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
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
        if not line.lstrip("+-").startswith("# Last updated:")
    ]
    if not any(line.startswith(("+", "-")) and line[1:2] not in {"+", "-"} for line in diff):
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {key.strip()}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Edit the configuration file in $EDITOR and save it once it validates.

    Raises:
        click.ClickException: If the edited text is not valid configuration.
    """
    manager = ConfigManager()
    manager.ensure_exists()
    try:
        before = flatten_for_env(manager.load(include_env=False))
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes applied.[/yellow]")
        return

    try:
        parsed = yaml.safe_load(edited) or {}
        if not isinstance(parsed, dict):
            raise ConfigError("Configuration file must contain a top-level mapping.")
        resolved = resolve_with_precedence(defaults=ShotsortConfig(), file_overrides=parsed)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Invalid YAML: {exc}") from exc
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    manager.save(parsed)
    after = flatten_for_env(resolved)
    changed = [name for name, value in after.items() if before.get(name) != value]
    for name in changed:
        console.print(f"  {name}: {before.get(name)} -> {after[name]}")
    console.print(f"[green]Configuration updated; {len(changed)} setting(s) changed.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
