"""Command line interface for the launcher."""

from __future__ import annotations

import shlex
import subprocess
from dataclasses import dataclass, replace
from enum import Enum
from pathlib import Path
from typing import Optional, Sequence

import click
import typer
from rich.console import Console
from rich.table import Table

from . import __version__
from .api import search as resolve_query
from .config import Config, ConfigError, load_config, resolve_editor_command, save_config
from .frontend import TerminalPresenter, stdin_is_interactive
from .models import LauncherResult, result_target
from .pipeline import Pipeline
from .ranking import available_engines
from .services.config_service import apply_config_updates, get_config_snapshot
from .services.index_service import build_index
from .services.query_service import looks_like_host
from .text import Messages, Styles
from .util.logging import setup_logging

console = Console()

app = typer.Typer(
    help=Messages.APP_HELP,
    context_settings={"help_option_names": ["-h", "--help"]},
)


class SearchOutputFormat(str, Enum):
    rich = "rich"
    porcelain = "porcelain"


@dataclass(slots=True)
class CliState:
    verbose: bool = False
    config_path: Path | None = None


def _version_callback(value: bool) -> None:
    if value:
        console.print(f"Launcher v{__version__}")
        raise typer.Exit()


def _styled(text: str, style: str) -> str:
    return f"[{style}]{text}[/{style}]"


def _state(ctx: typer.Context) -> CliState:
    state = ctx.obj
    if isinstance(state, CliState):
        return state
    return CliState()


def _load_config_or_exit(path: Path | None) -> Config:
    try:
        return load_config(path)
    except ConfigError as exc:
        console.print(_styled(str(exc), Styles.ERROR))
        raise typer.Exit(code=1) from exc


@app.callback(invoke_without_command=True)
def main(
    ctx: typer.Context,
    version: bool = typer.Option(
        False,
        "--version",
        "-v",
        callback=_version_callback,
        is_eager=True,
        help="Show version and exit.",
    ),
    verbose: bool = typer.Option(False, "--verbose", help=Messages.HELP_VERBOSE),
    config_path: Optional[Path] = typer.Option(
        None,
        "--config",
        help=Messages.HELP_CONFIG_PATH,
    ),
) -> None:
    """Start the interactive launcher when no subcommand is given."""
    ctx.obj = CliState(verbose=verbose, config_path=config_path)
    if ctx.invoked_subcommand is None:
        _run_interactive(ctx.obj)


def _run_interactive(state: CliState) -> None:
    config = _load_config_or_exit(state.config_path)
    setup_logging(state.verbose, log_file=config.log_path)
    if not stdin_is_interactive():
        console.print(_styled(Messages.ERROR_NOT_A_TTY, Styles.ERROR))
        raise typer.Exit(code=1)
    presenter = TerminalPresenter(console=console)
    try:
        outcome = Pipeline(config, presenter).run()
    except KeyboardInterrupt:
        raise typer.Exit(code=130)
    if outcome is not None and outcome.keep_alive:
        console.print(Messages.INFO_PRESS_ANY_KEY)
        click.getchar()


@app.command()
def search(
    ctx: typer.Context,
    query: str = typer.Argument(..., help=Messages.HELP_QUERY),
    top: Optional[int] = typer.Option(None, "--top", "-k", help=Messages.HELP_SEARCH_TOP),
    output_format: SearchOutputFormat = typer.Option(
        SearchOutputFormat.rich,
        "--format",
        help=Messages.HELP_SEARCH_FORMAT,
    ),
) -> None:
    """Resolve QUERY once and print the ranked results."""
    state = _state(ctx)
    setup_logging(state.verbose)
    config = _load_config_or_exit(state.config_path)
    if top is not None:
        if top < 1:
            raise typer.BadParameter(Messages.ERROR_MAX_RESULTS_INVALID, param_hint="--top")
        config = replace(config, max_results=top)
    if not query.strip():
        console.print(_styled(Messages.ERROR_EMPTY_QUERY, Styles.ERROR))
        raise typer.Exit(code=1)
    cache = build_index(config)
    results = resolve_query(query, config=config, cache=cache, host_lookup=looks_like_host)
    if output_format == SearchOutputFormat.porcelain:
        _render_results_porcelain(results)
        return
    _render_results(results)


@app.command()
def config(
    ctx: typer.Context,
    show: bool = typer.Option(False, "--show", help=Messages.HELP_SHOW_CONFIG),
    edit: bool = typer.Option(False, "--edit", help=Messages.HELP_EDIT_CONFIG),
    set_editor: Optional[str] = typer.Option(
        None, "--set-editor", help=Messages.HELP_SET_EDITOR
    ),
    clear_editor: bool = typer.Option(False, "--clear-editor", help=Messages.HELP_CLEAR_EDITOR),
    set_max_results: Optional[int] = typer.Option(
        None, "--set-max-results", help=Messages.HELP_SET_MAX_RESULTS
    ),
    set_engine: Optional[str] = typer.Option(
        None, "--set-engine", help=Messages.HELP_SET_ENGINE
    ),
    add_app_location: Optional[str] = typer.Option(
        None, "--add-app-location", help=Messages.HELP_ADD_APP_LOCATION
    ),
    clear_app_locations: bool = typer.Option(
        False, "--clear-app-locations", help=Messages.HELP_CLEAR_APP_LOCATIONS
    ),
    reset: bool = typer.Option(False, "--reset", help=Messages.HELP_RESET_CONFIG),
) -> None:
    """Show or update the launcher configuration."""
    state = _state(ctx)
    setup_logging(state.verbose)
    if set_engine is not None and set_engine.strip().lower() not in available_engines():
        allowed = ", ".join(available_engines())
        raise typer.BadParameter(
            Messages.ERROR_ENGINE_INVALID.format(value=set_engine, allowed=allowed),
            param_hint="--set-engine",
        )
    try:
        updates = apply_config_updates(
            state.config_path,
            editor=set_editor,
            clear_editor=clear_editor,
            max_results=set_max_results,
            fuzzy_engine=set_engine,
            add_app_location=add_app_location,
            clear_app_locations=clear_app_locations,
            reset=reset,
        )
    except ConfigError as exc:
        console.print(_styled(str(exc), Styles.ERROR))
        raise typer.Exit(code=1) from exc

    if updates.reset:
        console.print(
            _styled(Messages.INFO_CONFIG_RESET.format(path=updates.config.config_path), Styles.SUCCESS)
        )
    elif updates.changed:
        console.print(
            _styled(
                Messages.INFO_CONFIG_UPDATED.format(path=updates.config.config_path),
                Styles.SUCCESS,
            )
        )

    if edit:
        _edit_config_file(updates.config)
        return
    if show or not updates.changed:
        _print_config(get_config_snapshot(state.config_path))


def _print_config(config: Config) -> None:
    locations = ", ".join(config.app_locations) or Messages.INFO_LOCATIONS_NONE
    console.print(
        Messages.INFO_CONFIG_SUMMARY.format(
            path=config.config_path,
            locations=locations,
            editor=config.editor or Messages.INFO_EDITOR_AUTO,
            max_results=config.max_results,
            engine=config.fuzzy_engine,
            concurrency=config.rank_concurrency,
        ),
        markup=False,
    )


def _render_results(results: Sequence[LauncherResult]) -> None:
    if not results:
        console.print(_styled(Messages.INFO_NO_RESULTS, Styles.WARNING))
        return
    console.print(_styled(Messages.TABLE_TITLE, Styles.TITLE))
    table = Table(show_header=True, header_style=Styles.TABLE_HEADER)
    table.add_column(Messages.TABLE_HEADER_INDEX, justify="right")
    table.add_column(Messages.TABLE_HEADER_KIND)
    table.add_column(Messages.TABLE_HEADER_TARGET, overflow="fold")
    for idx, result in enumerate(results, start=1):
        table.add_row(str(idx), result.kind.value, result_target(result))
    console.print(table)


def _escape_porcelain_field(value: str) -> str:
    return (
        value.replace("\\", "\\\\")
        .replace("\t", "\\t")
        .replace("\n", "\\n")
        .replace("\r", "\\r")
    )


def _render_results_porcelain(results: Sequence[LauncherResult]) -> None:
    for idx, result in enumerate(results, start=1):
        fields = (
            str(idx),
            result.kind.value,
            _escape_porcelain_field(result_target(result)),
        )
        typer.echo("\t".join(fields))


def run(argv: list[str] | None = None) -> None:
    """Entry point wrapper allowing optional argument override."""
    if argv is None:
        app()
    else:
        app(args=list(argv))


def _format_command(parts: Sequence[str]) -> str:
    return " ".join(shlex.quote(part) for part in parts)


def _ensure_config_file(config: Config) -> Path:
    if not config.config_path.exists():
        save_config(config)
    return config.config_path


def _edit_config_file(config: Config) -> None:
    try:
        command = resolve_editor_command(config)
    except ConfigError as exc:
        console.print(_styled(str(exc), Styles.ERROR))
        raise typer.Exit(code=1) from exc
    if not command:
        console.print(_styled(Messages.ERROR_EDITOR_NOT_FOUND, Styles.ERROR))
        raise typer.Exit(code=1)

    cmd_list = list(command)
    config_path = _ensure_config_file(config)
    console.print(
        _styled(
            Messages.INFO_CONFIG_EDITING.format(
                path=config_path,
                editor=_format_command(cmd_list),
            ),
            Styles.INFO,
        )
    )
    try:
        subprocess.run(cmd_list + [str(config_path)], check=True)
    except FileNotFoundError as exc:
        console.print(
            _styled(
                Messages.ERROR_LAUNCH_MISSING.format(command=cmd_list[0], reason=exc),
                Styles.ERROR,
            )
        )
        raise typer.Exit(code=1)
    except subprocess.CalledProcessError as exc:
        code = exc.returncode if exc.returncode is not None else 1
        console.print(
            _styled(
                Messages.ERROR_LAUNCH_FAILED.format(command=_format_command(cmd_list), code=code),
                Styles.ERROR,
            )
        )
        raise typer.Exit(code=code)


