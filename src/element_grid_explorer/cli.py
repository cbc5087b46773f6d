from __future__ import annotations

import logging
import sys
from collections.abc import Callable
from dataclasses import replace
from pathlib import Path

import typer
from rich.console import Console
from rich.logging import RichHandler

from . import __version__
from .config import ConfigError, ExplorerConfig, parse_debounce_ms, parse_log_level
from .engine.edit import EditorCollaborator, EditorResult, EditPrompt
from .engine.scheduler import ManualScheduler
from .engine.session import ExplorerSession
from .model.records import SEED_RECORDS, DatasetLoadError, Record, load_records, records_to_json
from .ui.browse_textual import run_browse
from .ui.reporting import ConsoleReporter
from .ui.summary import render_table, rows_as_text

logger = logging.getLogger(__name__)

app = typer.Typer(
    add_completion=False,
    invoke_without_command=True,
    no_args_is_help=True,
    context_settings={"help_option_names": ["-h", "--help"]},
)


class _FixedValueEditor(EditorCollaborator):
    """Editor that answers every prompt with one preset value (non-interactive edits)."""

    def __init__(self, value: EditorResult) -> None:
        self._value = value
        self.prompts: list[EditPrompt] = []

    def present(self, prompt: EditPrompt, resolve: Callable[[EditorResult], None]) -> None:
        self.prompts.append(prompt)
        resolve(self._value)


def _configure_logging(level: str) -> None:
    root = logging.getLogger()
    for handler in list(root.handlers):
        if isinstance(handler, RichHandler):
            root.removeHandler(handler)
    handler = RichHandler(console=Console(stderr=True), show_path=False, rich_tracebacks=False)
    root.addHandler(handler)
    root.setLevel(level)


def _config(ctx: typer.Context) -> ExplorerConfig:
    config = ctx.obj
    if isinstance(config, ExplorerConfig):
        return config
    return ExplorerConfig()


def _resolve_config(
    ctx: typer.Context,
    *,
    file: Path | None,
    debounce_ms: str | None = None,
    query: str | None = None,
) -> ExplorerConfig:
    config = _config(ctx)
    if file is not None:
        config = replace(config, dataset_path=file)
    if query is not None:
        config = replace(config, initial_query=query)
    if debounce_ms is not None:
        try:
            config = replace(config, debounce_s=parse_debounce_ms(debounce_ms))
        except ConfigError as exc:
            typer.echo(f"Invalid --debounce-ms: {exc}", err=True)
            raise typer.Exit(2) from exc
    return config


def _load_dataset(config: ExplorerConfig) -> list[Record]:
    if config.dataset_path is None:
        return list(SEED_RECORDS)
    if not config.dataset_path.exists():
        typer.echo(f"Dataset not found: {config.dataset_path}", err=True)
        raise typer.Exit(2)
    try:
        return load_records(config.dataset_path)
    except DatasetLoadError as exc:
        typer.echo(f"Invalid dataset: {config.dataset_path} ({exc})", err=True)
        raise typer.Exit(2) from exc


def _build_session(
    records: list[Record],
    *,
    config: ExplorerConfig,
    editor: EditorCollaborator,
    reporter: ConsoleReporter,
) -> tuple[ExplorerSession, ManualScheduler]:
    scheduler = ManualScheduler()
    try:
        session = ExplorerSession(
            scheduler=scheduler,
            editor=editor,
            records=records,
            reporter=reporter,
            config=config,
        )
    except ValueError as exc:
        typer.echo(f"Invalid dataset: {exc}", err=True)
        raise typer.Exit(2) from exc
    return session, scheduler


def _settle(session: ExplorerSession, scheduler: ManualScheduler, query: str) -> None:
    session.on_input(query)
    scheduler.advance(session.debouncer.quiet_s)


def _can_launch_interactive_browse(console: Console) -> bool:
    return console.is_terminal and sys.stdin.isatty() and sys.stdout.isatty()


@app.callback()
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        help="Print version and exit.",
        is_eager=True,
    ),
    log_level: str | None = typer.Option(  # noqa: B008
        None,
        "--log-level",
        help="Log level (DEBUG, INFO, WARNING, ERROR). Default from EGX_LOG_LEVEL or WARNING.",
    ),
) -> None:
    if version:
        typer.echo(f"element-grid-explorer {__version__}")
        raise typer.Exit(0)

    try:
        config = ExplorerConfig.from_env()
        if log_level is not None:
            config = replace(config, log_level=parse_log_level(log_level))
    except ConfigError as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(2) from exc
    _configure_logging(config.log_level)
    ctx.obj = config


@app.command()
def show(
    ctx: typer.Context,
    file: Path | None = typer.Option(  # noqa: B008
        None,
        "--file",
        help="JSON dataset (list of records). Defaults to EGX_DATASET_PATH or the seed data.",
    ),
    query: str = typer.Option(  # noqa: B008
        "",
        "--query",
        "-q",
        help="Filter text (case-insensitive substring on any column).",
    ),
    plain: bool = typer.Option(  # noqa: B008
        False,
        "--plain",
        help="Print tab-separated lines instead of a table.",
    ),
) -> None:
    """Print the filtered view of the dataset."""

    config = _resolve_config(ctx, file=file)
    records = _load_dataset(config)
    err_console = Console(stderr=True)
    session, scheduler = _build_session(
        records,
        config=config,
        editor=_FixedValueEditor(None),
        reporter=ConsoleReporter(err_console),
    )
    try:
        _settle(session, scheduler, query)
        rows = session.rows
        if plain:
            for line in rows_as_text(rows, session.registry):
                typer.echo(line)
        else:
            render_table(
                Console(),
                rows,
                session.registry,
                query=session.query,
                total=len(session.snapshot()),
            )
    finally:
        session.teardown()


@app.command()
def edit(
    ctx: typer.Context,
    column: str = typer.Option(  # noqa: B008
        ...,
        "--column",
        help="Column label to edit (position, name, weight, symbol).",
    ),
    position: int = typer.Option(  # noqa: B008
        ...,
        "--position",
        help="Position (key) of the record to edit.",
    ),
    value: str = typer.Option(  # noqa: B008
        ...,
        "--value",
        help="New value, as typed into the editor.",
    ),
    file: Path | None = typer.Option(  # noqa: B008
        None,
        "--file",
        help="JSON dataset (list of records). Defaults to EGX_DATASET_PATH or the seed data.",
    ),
    output: Path | None = typer.Option(  # noqa: B008
        None,
        "--output",
        help="Write the resulting dataset as JSON to this path.",
    ),
) -> None:
    """Apply one edit through the edit coordinator and print the result."""

    config = _resolve_config(ctx, file=file)
    records = _load_dataset(config)
    reporter = ConsoleReporter(Console(stderr=True))
    session, _scheduler = _build_session(
        records,
        config=config,
        editor=_FixedValueEditor(value),
        reporter=reporter,
    )
    try:
        record = session.store.get(position)
        if record is None:
            typer.echo(f"No record at position {position}.", err=True)
            raise typer.Exit(2)
        session.request_edit(record, column)
        if reporter.count:
            raise typer.Exit(1)

        snapshot = session.snapshot()
        render_table(Console(), snapshot, session.registry, total=len(snapshot))
        if output is not None:
            output.parent.mkdir(parents=True, exist_ok=True)
            output.write_text(records_to_json(snapshot), encoding="utf-8")
            typer.echo(f"dataset={output}", err=True)
    finally:
        session.teardown()


@app.command()
def browse(
    ctx: typer.Context,
    file: Path | None = typer.Option(  # noqa: B008
        None,
        "--file",
        help="JSON dataset (list of records). Defaults to EGX_DATASET_PATH or the seed data.",
    ),
    debounce_ms: str | None = typer.Option(  # noqa: B008
        None,
        "--debounce-ms",
        help="Quiet period (ms) before filter text settles. Default: EGX_DEBOUNCE_MS or 2000.",
    ),
    query: str | None = typer.Option(  # noqa: B008
        None,
        "--query",
        "-q",
        help="Initial filter text.",
    ),
) -> None:
    """Browse, filter and edit the dataset in a fullscreen Textual UI."""

    config = _resolve_config(ctx, file=file, debounce_ms=debounce_ms, query=query)
    records = _load_dataset(config)

    console = Console()
    if not _can_launch_interactive_browse(console):
        err_console = Console(stderr=True)
        session, scheduler = _build_session(
            records,
            config=config,
            editor=_FixedValueEditor(None),
            reporter=ConsoleReporter(err_console),
        )
        try:
            _settle(session, scheduler, config.initial_query)
            render_table(
                err_console,
                session.rows,
                session.registry,
                query=session.query,
                total=len(session.snapshot()),
            )
        finally:
            session.teardown()
        typer.echo("Browse UI requires a TTY terminal.", err=True)
        raise typer.Exit(0)

    logger.debug("Launching browse UI with %d records", len(records))
    run_browse(records, config=config)
