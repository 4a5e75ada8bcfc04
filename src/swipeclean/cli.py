"""Command line interface for swipeclean."""

from __future__ import annotations

import difflib
import random
from pathlib import Path
from typing import Any, Callable, Optional

import click
import yaml
from click.core import ParameterSource
from rich.console import Console
from rich.markup import escape
from rich.syntax import Syntax
from rich.table import Table

from swipeclean.catalog import CatalogError, Item
from swipeclean.config import ConfigError, ConfigManager, SwipecleanConfig, parse_config_text
from swipeclean.gateway import AuthorizationOutcome, Done, GatewayResult
from swipeclean.log_config import configure_logging
from swipeclean.review import (
    CollectionServices,
    Empty,
    Loading,
    Ready,
    ReviewError,
    ReviewPipeline,
    build_services,
)
from swipeclean.state import StateError, StateRepository

console = Console()

_KEY_HELP = escape("[d]iscard  [k]eep  [u]ndo  [q]uit")


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


def _run_guarded(action: Callable[[], None], *, json_output: bool, context: str) -> None:
    """Run ``action`` and translate known failures into CLI errors."""
    try:
        action()
    except ConfigError as exc:
        _handle_cli_error(str(exc), code="config_error", json_output=json_output, original=exc)
    except StateError as exc:
        _handle_cli_error(str(exc), code="state_error", json_output=json_output, original=exc)
    except CatalogError as exc:
        _handle_cli_error(str(exc), code="catalog_error", json_output=json_output, original=exc)
    except ReviewError as exc:
        _handle_cli_error(str(exc), code="review_error", json_output=json_output, original=exc)
    except click.ClickException as exc:
        _handle_cli_error(str(exc), code="cli_error", json_output=json_output, original=exc)
    except OSError as exc:
        _handle_cli_error(
            f"Unexpected error while {context}: {exc}",
            code="internal_error",
            json_output=json_output,
            details={"exception": type(exc).__name__},
            original=exc,
        )


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


def _resolve_output_flags(
    ctx: click.Context,
    config: SwipecleanConfig,
    *,
    quiet: bool,
    summary_mode: bool,
    json_output: bool,
) -> tuple[bool, bool]:
    """Combine explicit flags with configured defaults.

    Returns:
        tuple[bool, bool]: Effective quiet and summary-only switches.
    """
    explicit_quiet = ctx.get_parameter_source("quiet") == ParameterSource.COMMANDLINE
    explicit_summary = ctx.get_parameter_source("summary_mode") == ParameterSource.COMMANDLINE
    quiet_enabled = quiet if explicit_quiet else config.cli.quiet_default
    summary_only = summary_mode if explicit_summary else config.cli.summary_default

    if json_output:
        if explicit_quiet and quiet_enabled:
            raise click.ClickException("--json cannot be combined with --quiet.")
        return False, False
    if quiet_enabled and summary_only:
        raise click.ClickException(
            "Quiet and summary modes cannot both be enabled. Adjust CLI defaults or flags."
        )
    return quiet_enabled, summary_only


def _open_collection(
    path: str, *, seed: Optional[int] = None, render: Optional[bool] = None
) -> tuple[SwipecleanConfig, CollectionServices]:
    """Load configuration, set up logging, and wire services for PATH."""
    config = ConfigManager().load()

    root = Path(path).expanduser().resolve()
    repository = StateRepository()
    repository.initialize(root)
    configure_logging(config.logging, repository.log_path(root))

    rng = random.Random(seed) if seed is not None else None
    services = build_services(root, config, repository=repository, rng=rng, render=render)
    return config, services


def _display_path(item: Item, root: Path) -> str:
    try:
        return str(item.locator.relative_to(root))
    except ValueError:
        return str(item.locator)


def _item_payload(item: Item, root: Path) -> dict[str, Any]:
    payload: dict[str, Any] = {"id": item.id, "path": _display_path(item, root)}
    if item.expires_at is not None:
        payload["expires_at"] = item.expires_at.isoformat()
    return payload


def _items_table(title: str, items: tuple[Item, ...], root: Path) -> Table:
    table = Table(title=title)
    table.add_column("Id", justify="right")
    table.add_column("Path")
    if any(item.expires_at is not None for item in items):
        table.add_column("Expires")
    for item in items:
        row = [str(item.id), _display_path(item, root)]
        if item.expires_at is not None:
            row.append(item.expires_at.strftime("%Y-%m-%d %H:%M"))
        table.add_row(*row)
    return table


def _authorize(*, assume_yes: bool, prompt: str, interactive: bool = True) -> bool:
    """Stand in for the platform authorization dialog.

    Without ``--yes`` a non-interactive caller never authorizes.
    """
    if assume_yes:
        return True
    if not interactive:
        return False
    return click.confirm(prompt, default=False)


def _done_payload(done: Optional[Done]) -> dict[str, Any] | None:
    if done is None:
        return None
    return {
        "intent": done.intent.value,
        "succeeded": done.succeeded,
        "processed": len(done.results),
        "failed": {str(path): done.errors.get(path, "") for path in done.failed},
    }


@click.group(context_settings={"help_option_names": ["-h", "--help"]})
@click.version_option(package_name="swipeclean")
def cli() -> None:
    """swipeclean lets you swipe through your photos and stage the ones to delete."""


# ---------------------------------------------------------------------- #
# review                                                                 #
# ---------------------------------------------------------------------- #


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--seed", type=int, help="Seed the shuffle for a reproducible order.")
@click.option("--json", "json_output", is_flag=True, help="Emit a JSON session summary on exit.")
@click.option("--summary", "summary_mode", is_flag=True, help="Only emit summary lines.")
@click.option("--quiet", is_flag=True, help="Suppress non-error output.")
@click.pass_context
def review(
    ctx: click.Context,
    path: str,
    seed: Optional[int],
    json_output: bool,
    summary_mode: bool,
    quiet: bool,
) -> None:
    """Review the photos under PATH one at a time.

    Press d to discard, k to keep, u to undo the previous decision, and q to
    stop. Discarded photos are staged until `swipeclean confirm` runs.
    """

    def _action() -> None:
        config, services = _open_collection(path, seed=seed)
        quiet_enabled, summary_only = _resolve_output_flags(
            ctx, config, quiet=quiet, summary_mode=summary_mode, json_output=json_output
        )
        pipeline = services.pipeline
        with pipeline:
            _review_loop(
                pipeline,
                services.root,
                quiet=quiet_enabled or json_output,
                summary_only=summary_only,
            )
            metrics = {
                "total": pipeline.total_count,
                "processed": pipeline.processed_count,
                "pending": pipeline.pending_count,
            }

        if json_output:
            console.print_json(data={"context": {"root": str(services.root)}, "counts": metrics})
            return
        _emit_message(
            _format_summary_line("Review", services.root, metrics),
            mode="summary",
            quiet=quiet_enabled,
            summary_only=summary_only,
        )

    _run_guarded(_action, json_output=json_output, context="reviewing photos")


def _review_loop(pipeline: ReviewPipeline, root: Path, *, quiet: bool, summary_only: bool) -> None:
    """Drive the pipeline from single-key input until the user quits."""
    while True:
        match pipeline.review_state:
            case Loading():
                return
            case Empty():
                if not pipeline.history_depth:
                    _emit_message(
                        "[yellow]Nothing left to review.[/yellow]",
                        mode="warning",
                        quiet=quiet,
                        summary_only=summary_only,
                    )
                    return
                _emit_message(
                    f"[yellow]All photos reviewed. {escape('[u]ndo or [q]uit')}.[/yellow]",
                    mode="detail",
                    quiet=quiet,
                    summary_only=summary_only,
                )
            case Ready(current_item=item):
                label = escape(_display_path(item, root)) if item is not None else "-"
                _emit_message(
                    f"[cyan][{pipeline.processed_count + 1}/{pipeline.total_count}][/cyan] "
                    f"{label}  [dim](pending: {pipeline.pending_count})  {_KEY_HELP}[/dim]",
                    mode="detail",
                    quiet=quiet,
                    summary_only=summary_only,
                )

        key = click.getchar().lower()
        # An empty read means stdin is exhausted.
        if key in {"q", ""}:
            return
        if key == "u":
            if pipeline.undo() is None:
                _emit_message(
                    "[yellow]Nothing to undo.[/yellow]",
                    mode="warning",
                    quiet=quiet,
                    summary_only=summary_only,
                )
        elif key in {"d", "k"} and isinstance(pipeline.review_state, Ready):
            pipeline.decide(key == "d")


# ---------------------------------------------------------------------- #
# pending / restore / confirm                                            #
# ---------------------------------------------------------------------- #


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit pending items as JSON.")
def pending(path: str, json_output: bool) -> None:
    """List photos staged for deletion under PATH."""

    def _action() -> None:
        _, services = _open_collection(path, render=False)
        pipeline = services.pipeline
        try:
            items = pipeline.refresh_pending_list()
        finally:
            pipeline.dispose()

        if json_output:
            console.print_json(
                data={
                    "context": {"root": str(services.root)},
                    "pending": [_item_payload(item, services.root) for item in items],
                }
            )
            return
        if not items:
            console.print("[yellow]No photos are staged for deletion.[/yellow]")
            return
        console.print(_items_table("Pending deletion", items, services.root))

    _run_guarded(_action, json_output=json_output, context="listing pending photos")


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.argument("item_id", type=int)
def restore(path: str, item_id: int) -> None:
    """Unstage ITEM_ID so it is no longer pending deletion."""

    def _action() -> None:
        _, services = _open_collection(path, render=False)
        pipeline = services.pipeline
        try:
            staged = {item.id for item in pipeline.refresh_pending_list()}
            if item_id not in staged:
                raise click.ClickException(f"Item {item_id} is not pending deletion.")
            pipeline.restore_item(item_id)
        finally:
            pipeline.dispose()
        console.print(f"[green]Restored item {item_id}.[/green]")

    _run_guarded(_action, json_output=False, context="restoring a photo")


@cli.command()
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--permanent", is_flag=True, help="Delete outright instead of moving to the trash.")
@click.option("--yes", "assume_yes", is_flag=True, help="Authorize without prompting.")
@click.option("--json", "json_output", is_flag=True, help="Emit the outcome as JSON.")
def confirm(path: str, permanent: bool, assume_yes: bool, json_output: bool) -> None:
    """Trash (or delete) every photo staged under PATH."""

    def _action() -> None:
        _, services = _open_collection(path, render=False)
        pipeline = services.pipeline
        try:
            items = pipeline.refresh_pending_list()
            result = pipeline.confirm_delete(permanent)
            outcome, done = _complete_request(
                result,
                resolve=pipeline.resolve_authorization,
                assume_yes=assume_yes,
                interactive=not json_output,
                prompt=(
                    f"Permanently delete {len(items)} photo(s)?"
                    if permanent
                    else f"Move {len(items)} photo(s) to the trash?"
                ),
            )
            remaining = pipeline.pending_count
        finally:
            pipeline.dispose()

        if json_output:
            console.print_json(
                data={
                    "context": {"root": str(services.root), "permanent": permanent},
                    "outcome": outcome,
                    "result": _done_payload(done),
                    "pending": remaining,
                }
            )
            return
        _report_outcome(outcome, done, verb="Deleted" if permanent else "Trashed")

    _run_guarded(_action, json_output=json_output, context="confirming deletion")


def _complete_request(
    result: Optional[GatewayResult],
    *,
    resolve: Callable[[AuthorizationOutcome], Optional[Done]],
    assume_yes: bool,
    prompt: str,
    interactive: bool = True,
) -> tuple[str, Optional[Done]]:
    """Drive a gateway result through the authorization prompt.

    Returns:
        tuple[str, Optional[Done]]: Outcome label and the finished result.
    """
    if result is None:
        return "nothing_pending", None
    if isinstance(result, Done):
        return ("completed" if result.succeeded else "failed"), result

    approved = _authorize(assume_yes=assume_yes, prompt=prompt, interactive=interactive)
    outcome = AuthorizationOutcome.CONFIRMED if approved else AuthorizationOutcome.CANCELLED
    done = resolve(outcome)
    if done is None:
        return "cancelled", None
    return ("completed" if done.succeeded else "failed"), done


def _report_outcome(outcome: str, done: Optional[Done], *, verb: str) -> None:
    if outcome == "nothing_pending":
        console.print("[yellow]Nothing selected.[/yellow]")
    elif outcome == "cancelled":
        console.print("[yellow]Cancelled; nothing changed.[/yellow]")
    elif outcome == "completed" and done is not None:
        console.print(f"[green]{verb} {len(done.results)} photo(s).[/green]")
    elif done is not None:
        console.print(f"[red]{len(done.failed)} of {len(done.results)} photo(s) failed.[/red]")
        for locator in done.failed:
            console.print(f"  - {locator}: {done.errors.get(locator, 'unknown error')}")


# ---------------------------------------------------------------------- #
# trash                                                                  #
# ---------------------------------------------------------------------- #


@cli.group()
def trash() -> None:
    """Inspect, restore, or purge photos in the system trash."""


@trash.command("list")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.option("--json", "json_output", is_flag=True, help="Emit trash contents as JSON.")
def trash_list(path: str, json_output: bool) -> None:
    """List photos currently in the system trash for PATH."""

    def _action() -> None:
        _, services = _open_collection(path, render=False)
        items = services.system_trash.refresh()
        if json_output:
            console.print_json(
                data={
                    "context": {"root": str(services.root)},
                    "trash": [_item_payload(item, services.root) for item in items],
                }
            )
            return
        if not items:
            console.print("[yellow]The system trash is empty.[/yellow]")
            return
        console.print(_items_table("System trash", items, services.root))

    _run_guarded(_action, json_output=json_output, context="listing the trash")


def _trash_action(
    path: str,
    item_ids: tuple[int, ...],
    select_all: bool,
    assume_yes: bool,
    *,
    restore_items: bool,
) -> None:
    _, services = _open_collection(path, render=False)
    review_surface = services.system_trash
    listing = review_surface.refresh()
    if select_all:
        selected = list(listing)
    else:
        by_id = {item.id: item for item in listing}
        missing = [item_id for item_id in item_ids if item_id not in by_id]
        if missing:
            raise click.ClickException(
                f"Not in the system trash: {', '.join(str(value) for value in missing)}"
            )
        selected = [by_id[item_id] for item_id in item_ids]

    if restore_items:
        result = review_surface.restore_selected(selected)
        prompt, verb = f"Restore {len(selected)} photo(s)?", "Restored"
    else:
        result = review_surface.delete_selected(selected)
        prompt, verb = f"Permanently delete {len(selected)} photo(s)?", "Deleted"

    outcome, done = _complete_request(
        result,
        resolve=review_surface.resolve_authorization,
        assume_yes=assume_yes,
        prompt=prompt,
    )
    _report_outcome(outcome, done, verb=verb)


@trash.command("restore")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.argument("item_ids", nargs=-1, type=int)
@click.option("--all", "select_all", is_flag=True, help="Restore everything in the trash.")
@click.option("--yes", "assume_yes", is_flag=True, help="Authorize without prompting.")
def trash_restore(path: str, item_ids: tuple[int, ...], select_all: bool, assume_yes: bool) -> None:
    """Move ITEM_IDS from the system trash back into the collection."""
    _run_guarded(
        lambda: _trash_action(path, item_ids, select_all, assume_yes, restore_items=True),
        json_output=False,
        context="restoring from the trash",
    )


@trash.command("delete")
@click.argument("path", type=click.Path(exists=True, file_okay=False, path_type=str))
@click.argument("item_ids", nargs=-1, type=int)
@click.option("--all", "select_all", is_flag=True, help="Delete everything in the trash.")
@click.option("--yes", "assume_yes", is_flag=True, help="Authorize without prompting.")
def trash_delete(path: str, item_ids: tuple[int, ...], select_all: bool, assume_yes: bool) -> None:
    """Permanently delete ITEM_IDS from the system trash."""
    _run_guarded(
        lambda: _trash_action(path, item_ids, select_all, assume_yes, restore_items=False),
        json_output=False,
        context="deleting from the trash",
    )


# ---------------------------------------------------------------------- #
# config                                                                 #
# ---------------------------------------------------------------------- #


def _stage_value(data: dict[str, Any], key: str, value: Any) -> list[str]:
    """Place ``value`` at the dotted ``key`` inside ``data``.

    Returns:
        list[str]: The key's path segments.

    Raises:
        click.ClickException: If ``key`` is empty or crosses a scalar value.
    """
    segments = [segment.strip() for segment in key.split(".") if segment.strip()]
    if not segments:
        raise click.ClickException("KEY must be a dotted path such as 'review.buffer_capacity'.")
    node = data
    for depth, segment in enumerate(segments[:-1], start=1):
        child = node.setdefault(segment, {})
        if not isinstance(child, dict):
            raise click.ClickException(
                f"'{'.'.join(segments[:depth])}' holds a value, not a section."
            )
        node = child
    node[segments[-1]] = value
    return segments


def _without_stamp(text: str) -> list[str]:
    return [line for line in text.splitlines() if not line.startswith("# Last updated")]


@cli.group()
def config() -> None:
    """View or change the swipeclean configuration file."""


@config.command("view")
@click.option("--no-env", is_flag=True, help="Ignore SWIPECLEAN__ environment overrides.")
def config_view(no_env: bool) -> None:
    """Print the effective configuration as YAML."""
    try:
        effective = ConfigManager().load(include_env=not no_env)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    rendered = yaml.safe_dump(effective.model_dump(mode="python"), sort_keys=False)
    console.print(Syntax(rendered, "yaml", word_wrap=True))


@config.command("set")
@click.argument("key")
@click.option("--value", required=True, help="YAML value to assign to KEY.")
def config_set(key: str, value: str) -> None:
    """Store VALUE under the dotted KEY and show the resulting diff."""
    try:
        parsed_value = yaml.safe_load(value)
    except yaml.YAMLError as exc:
        raise click.ClickException(f"Unable to parse value: {exc}") from exc

    manager = ConfigManager()
    try:
        manager.ensure_exists()
        before = manager.read_text()
        data = manager.load_file_overrides()
        segments = _stage_value(data, key, parsed_value)
        manager.save(data)
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    diff = list(
        difflib.unified_diff(
            _without_stamp(before),
            _without_stamp(manager.read_text()),
            fromfile="config.yaml (before)",
            tofile="config.yaml (after)",
            lineterm="",
        )
    )
    if not diff:
        console.print("[yellow]No changes applied; value already up to date.[/yellow]")
        return

    console.print(Syntax("\n".join(diff), "diff", word_wrap=False))
    console.print(f"[green]Updated {'.'.join(segments)}.[/green]")


@config.command("edit")
def config_edit() -> None:
    """Edit the configuration file in $EDITOR and save it if it validates."""
    manager = ConfigManager()
    try:
        manager.ensure_exists()
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc

    original = manager.read_text()
    edited = click.edit(original, extension=".yaml")
    if edited is None or edited == original:
        console.print("[yellow]No changes detected.[/yellow]")
        return

    try:
        manager.save(parse_config_text(edited))
    except ConfigError as exc:
        raise click.ClickException(str(exc)) from exc
    console.print("[green]Configuration updated successfully.[/green]")


def main() -> None:
    """Invoke the Click CLI as the console script entry point."""
    cli()


if __name__ == "__main__":
    main()
