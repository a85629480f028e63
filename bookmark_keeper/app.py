"""Typer CLI entrypoint for bookmark-keeper."""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Callable, List, Optional, Sequence

import typer
from rich import box
from rich.console import Console
from rich.table import Table
from typer import BadParameter

from .config import ConfigRepository, GlobalConfig
from .engine import Bookmark, BookmarkNotFoundError, ReconciliationError, UrlHealthProber
from .infra import RedisStore, StoreConnectionError, StoreError
from .logging_conf import configure_logging
from .orchestrator import Orchestrator

app = typer.Typer(
    help="Bookmark link-health checker and partition manager.",
    no_args_is_help=True,
    rich_markup_mode=None,
)
dead_app = typer.Typer(
    name="dead",
    help="Inspect and manage the dead-link partition.",
    no_args_is_help=True,
    rich_markup_mode=None,
)

console = Console()


@dataclass
class AppState:
    orchestrator: Orchestrator
    global_config: GlobalConfig
    closers: Sequence[Callable[[], Any]] = field(default_factory=tuple)

    def close(self) -> None:
        for closer in self.closers:
            closer()


_DURATION_PATTERN = re.compile(r"(?P<value>\d+(?:\.\d+)?)(?P<unit>ms|s|m|h)", re.IGNORECASE)
_DURATION_UNITS = {"ms": 0.001, "s": 1.0, "m": 60.0, "h": 3600.0}


def _parse_duration_option(value: Optional[str], option_name: str) -> float | None:
    """Return seconds for ``8s``, ``500ms``, ``1m30s`` or a bare number of seconds."""

    if value is None:
        return None
    text = value.strip().lower()
    if not text:
        raise BadParameter(f"{option_name} must not be empty.")
    try:
        seconds = float(text)
    except ValueError:
        seconds = 0.0
        index = 0
        for match in _DURATION_PATTERN.finditer(text):
            if match.start() != index:
                raise BadParameter(f"{option_name} has an unsupported duration format: {value}")
            seconds += float(match.group("value")) * _DURATION_UNITS[match.group("unit")]
            index = match.end()
        if index != len(text):
            raise BadParameter(f"{option_name} has an unsupported duration format: {value}")
    if seconds <= 0:
        raise BadParameter(f"{option_name} must be greater than 0.")
    return seconds


def _parse_date_option(value: Optional[str], option_name: str) -> date | None:
    if value is None:
        return None
    try:
        return datetime.strptime(value.strip(), "%Y-%m-%d").date()
    except ValueError as exc:
        raise BadParameter(f"{option_name} must use YYYY-MM-DD, e.g. 2024-10-14.") from exc


def build_state(verbose: bool) -> AppState:
    repository = ConfigRepository()
    global_config = repository.load_global_config()
    configure_logging(verbose=verbose)
    try:
        store = RedisStore.connect(global_config.redis)
    except StoreConnectionError as exc:
        console.print(f"Cannot reach the record store: {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc
    prober = UrlHealthProber(global_config.check)
    orchestrator = Orchestrator(store=store, global_config=global_config, probe=prober)
    return AppState(
        orchestrator=orchestrator,
        global_config=global_config,
        closers=(prober.close, store.close),
    )


def _get_state(ctx: typer.Context) -> AppState:
    root = ctx.find_root()
    state = root.obj
    if state is None:
        state = build_state(verbose=bool(root.meta.get("verbose", False)))
        root.obj = state
        root.call_on_close(state.close)
    return state


def _format_created(record: Bookmark) -> str:
    if not record.created_at:
        return "-"
    return datetime.fromtimestamp(record.created_at, tz=timezone.utc).strftime("%Y-%m-%d")


def _render_bookmarks_table(records: Sequence[Bookmark], title: str) -> Table:
    table = Table(title=f"{title} · {len(records)}", box=box.SIMPLE_HEAD)
    table.add_column("#", style="dim", justify="right")
    table.add_column("Title", style="cyan", overflow="fold")
    table.add_column("URL", style="green", overflow="fold")
    table.add_column("Tags", style="magenta", overflow="fold")
    table.add_column("Created", style="yellow", no_wrap=True)
    for position, record in enumerate(records, start=1):
        table.add_row(
            str(position),
            record.title or "-",
            record.url,
            ", ".join(record.tags),
            _format_created(record),
        )
    return table


def _run_store_command(action: Callable[[], Any]) -> Any:
    try:
        return action()
    except StoreError as exc:
        console.print(f"Record store error: {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc


app.add_typer(dead_app, name="dead", help="Show, purge or revive dead bookmarks.")


@app.callback()
def main(
    ctx: typer.Context,
    verbose: bool = typer.Option(False, "--verbose", help="Enable debug logging."),
) -> None:
    ctx.meta["verbose"] = verbose


@app.command("check", help="Report duplicates and dead links without changing anything.")
def check(
    ctx: typer.Context,
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", min=1, help="Maximum in-flight probes (default from config)."
    ),
    timeout: Optional[str] = typer.Option(
        None, "--timeout", metavar="DURATION", help="Per-probe timeout, e.g. 8s or 500ms."
    ),
) -> None:
    timeout_seconds = _parse_duration_option(timeout, "--timeout")
    state = _get_state(ctx)
    report = _run_store_command(lambda: state.orchestrator.check(concurrency, timeout_seconds))
    if not report.total:
        console.print("No bookmarks found", style="yellow")
        return
    console.print(f"Found {report.total} bookmarks")
    if report.duplicates:
        console.print(f"Found {len(report.duplicates)} duplicate URLs:", style="red")
        for duplicate in report.duplicates:
            console.print(
                f"  - {duplicate.url} ({duplicate.occurrence_count} occurrences)",
                markup=False,
                soft_wrap=True,
            )
    else:
        console.print("No duplicates found", style="green")
    console.print(f"Checked {report.probed}/{report.probed}: done.", style="dim")
    if report.dead:
        console.print(f"Found {len(report.dead)} dead links:", style="red")
        for record in report.dead:
            console.print(f"  - {record.title or '-'} ({record.url})", markup=False, soft_wrap=True)
    else:
        console.print("All links are active", style="green")
    console.print(report.summary_line())


@app.command("clean", help="Dedupe, probe and rebuild the active and dead partitions.")
def clean(
    ctx: typer.Context,
    concurrency: Optional[int] = typer.Option(
        None, "--concurrency", min=1, help="Maximum in-flight probes (default from config)."
    ),
    timeout: Optional[str] = typer.Option(
        None, "--timeout", metavar="DURATION", help="Per-probe timeout, e.g. 8s or 500ms."
    ),
) -> None:
    timeout_seconds = _parse_duration_option(timeout, "--timeout")
    state = _get_state(ctx)
    try:
        result = _run_store_command(lambda: state.orchestrator.clean(concurrency, timeout_seconds))
    except ReconciliationError as exc:
        console.print(str(exc), style="red", markup=False)
        raise typer.Exit(code=1) from exc
    if not (result.active_count or result.dead_count):
        console.print("No bookmarks to clean", style="yellow")
        return
    console.print(f"Removed {result.duplicates_removed} duplicate bookmarks")
    console.print(f"Moved {result.dead_count} dead bookmarks to the dead list")
    console.print(f"Cleanup complete: {result.active_count} bookmarks remaining", style="green")


@app.command("import", help="Import bookmarks from a JSON export file.")
def import_bookmarks(
    ctx: typer.Context,
    path: Path = typer.Argument(..., help='JSON file shaped like {"bookmarks": [...]}.'),
) -> None:
    state = _get_state(ctx)
    try:
        summary = _run_store_command(lambda: state.orchestrator.import_file(path))
    except (FileNotFoundError, ValueError) as exc:
        console.print(f"Import failed: {exc}", style="red", markup=False)
        raise typer.Exit(code=1) from exc
    console.print(
        f"Import complete: {summary.total} entries, {summary.imported} imported, "
        f"{summary.skipped} skipped, {summary.invalid} invalid"
    )


@app.command("list", help="List stored bookmarks.")
def list_bookmarks(
    ctx: typer.Context,
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Show at most N bookmarks."),
    tag: Optional[List[str]] = typer.Option(None, "--tag", help="Require tag (repeatable)."),
    include_dead: bool = typer.Option(
        False, "--include-dead", help="Also include the dead partition."
    ),
) -> None:
    state = _get_state(ctx)
    records = _run_store_command(
        lambda: state.orchestrator.list_bookmarks(limit=limit, tags=tag or (), include_dead=include_dead)
    )
    if not records:
        console.print("No bookmarks found", style="yellow")
        return
    console.print(_render_bookmarks_table(records, "Bookmarks"))


@app.command("search", help="Search bookmarks by text, tag and creation date.")
def search(
    ctx: typer.Context,
    query: str = typer.Option("", "--q", help="Case-insensitive text in title, URL or description."),
    tag: Optional[List[str]] = typer.Option(None, "--tag", help="Require tag (repeatable)."),
    date_from: Optional[str] = typer.Option(None, "--from", metavar="YYYY-MM-DD", help="Created on or after."),
    date_to: Optional[str] = typer.Option(None, "--to", metavar="YYYY-MM-DD", help="Created on or before."),
    limit: Optional[int] = typer.Option(None, "--limit", min=1, help="Show at most N bookmarks."),
    include_dead: bool = typer.Option(
        False, "--include-dead", help="Also search the dead partition."
    ),
) -> None:
    start = _parse_date_option(date_from, "--from")
    end = _parse_date_option(date_to, "--to")
    if start and end and end < start:
        raise BadParameter("--to must not be earlier than --from.")
    state = _get_state(ctx)
    records = _run_store_command(
        lambda: state.orchestrator.search(
            query=query,
            tags=tag or (),
            date_from=start,
            date_to=end,
            limit=limit,
            include_dead=include_dead,
        )
    )
    if not records:
        console.print("No bookmarks found", style="yellow")
        return
    console.print(_render_bookmarks_table(records, "Matches"))


@dead_app.command("show", help="Show bookmarks in the dead partition.")
def dead_show(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    records = _run_store_command(state.orchestrator.show_dead)
    if not records:
        console.print("No dead bookmarks", style="green")
        return
    console.print(_render_bookmarks_table(records, "Dead bookmarks"))


@dead_app.command("purge", help="Delete the dead partition entirely.")
def dead_purge(ctx: typer.Context) -> None:
    state = _get_state(ctx)
    removed = _run_store_command(state.orchestrator.purge_dead)
    console.print(f"Deleted {removed} dead bookmarks")


@dead_app.command("revive", help="Move one URL from the dead partition back to active.")
def dead_revive(
    ctx: typer.Context,
    url: str = typer.Argument(..., help="Exact URL of the dead bookmark."),
) -> None:
    state = _get_state(ctx)
    try:
        record = _run_store_command(lambda: state.orchestrator.revive(url))
    except BookmarkNotFoundError as exc:
        console.print("url not found in dead list", style="red")
        raise typer.Exit(code=1) from exc
    console.print(f"Revived: {record.url}", markup=False, soft_wrap=True)


def cli() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover
    cli()
