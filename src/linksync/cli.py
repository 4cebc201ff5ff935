"""Command-line interface for linksync."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable

import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from .config import DEFAULT_CONFIG_FILENAME, ConfigError, load_config
from .errors import LinkSyncError
from .models import ItemAction, ItemResult, StatusReport
from .reconciler import Reconciler, RunAbortedError

app = typer.Typer(help="Declarative link, shortcut and copy manager")
console = Console()

_ACTION_STYLES = {
    ItemAction.CREATED: "green",
    ItemAction.REPLACED: "green",
    ItemAction.COPIED: "green",
    ItemAction.SKIPPED: "dim",
    ItemAction.REMOVED: "cyan",
    ItemAction.FORGOTTEN: "yellow",
    ItemAction.WARNED: "yellow",
    ItemAction.FAILED: "red",
}

_STARTER_CONFIG = """# linksync configuration

[defaults]
mode = "symlink"
trash_enabled = true
trash_directory = "./.linksync-trash"

[groups.shell]
items = [
  { source = "./dotfiles/zshrc", destination = "~/.zshrc" },
  { source = "./dotfiles/bin", destination = "~/bin", mode = "junction" },
]
"""


def _load_reconciler(config: Path | None, *, resolve_items: bool = True) -> Reconciler:
    config_obj = load_config(config, resolve_items=resolve_items)
    return Reconciler(config_obj)


def _print_warnings(reconciler: Reconciler) -> None:
    for message in reconciler.pull_warnings():
        console.print(f"[yellow]warning:[/yellow] {message}", highlight=False)


def _handle_error(exc: Exception) -> None:
    if isinstance(exc, RunAbortedError):
        _format_results(exc.report.results)
        if isinstance(exc.cause, PermissionError):
            _print_permission_hint()
            raise typer.Exit(code=1)
        console.print(f"[red]Run aborted: {exc}[/red]", highlight=False)
        raise typer.Exit(code=1)
    if isinstance(exc, ConfigError):
        message = str(exc)
        console.print(f"[red]{message}[/red]", highlight=False)
        if "does not exist" in message:
            console.print("[yellow]Use 'linksync init --config <path>' to create a configuration file.[/yellow]")
        raise typer.Exit(code=1)
    if isinstance(exc, LinkSyncError):
        console.print(f"[red]{exc}[/red]", highlight=False)
        raise typer.Exit(code=1)
    if isinstance(exc, PermissionError):
        _print_permission_hint()
        raise typer.Exit(code=1)
    raise exc


def _print_permission_hint() -> None:
    console.print("[red]Permission denied.[/red] Creating symbolic links may require elevated privileges.")


def _format_results(results: Iterable[ItemResult]) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Group", no_wrap=True)
    table.add_column("Destination", overflow="fold")
    table.add_column("Mode", no_wrap=True)
    table.add_column("Action", no_wrap=True)
    table.add_column("Details", overflow="fold")

    for result in results:
        style = _ACTION_STYLES.get(result.action, "white")
        table.add_row(
            result.group,
            str(result.destination),
            result.mode.value if result.mode else "",
            f"[{style}]{result.action.value}[/{style}]",
            result.details or "",
        )

    console.print(table)


def _format_status(report: StatusReport) -> None:
    table = Table(show_header=True, header_style="bold magenta")
    table.add_column("Group", no_wrap=True)
    table.add_column("Destination", overflow="fold")
    table.add_column("Mode", no_wrap=True)
    table.add_column("Source", overflow="fold")
    table.add_column("State", no_wrap=True)

    for item in report.entries:
        state = "[green]present[/green]" if item.exists else "[red]missing[/red]"
        if item.orphaned:
            state += " [yellow](orphaned)[/yellow]"
        table.add_row(
            item.group,
            str(item.entry.destination),
            item.entry.mode.value,
            str(item.entry.source),
            state,
        )

    console.print(table)


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every filesystem change"),
) -> None:
    """Converge links, shortcuts and copies against a configuration file."""

    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=console, show_path=False)],
        force=True,
    )


@app.command()
def init(
    config: Path = typer.Option(
        Path(DEFAULT_CONFIG_FILENAME),
        "--config",
        "-c",
        help="Path to write the configuration file",
        dir_okay=False,
        writable=True,
    ),
    force: bool = typer.Option(False, "--force", help="Overwrite existing config if present"),
) -> None:
    """Create a starter linksync configuration file."""

    if config.exists() and not force:
        console.print(f"[red]Configuration '{config}' already exists. Use --force to overwrite.[/red]")
        raise typer.Exit(code=1)

    config.parent.mkdir(parents=True, exist_ok=True)
    config.write_text(_STARTER_CONFIG)
    console.print(f"[green]Created '{config}'.[/green]")


@app.command()
def apply(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to linksync.toml"),
    group: list[str] = typer.Option(None, "--group", "-g", help="Limit to specific group(s), even disabled ones"),
) -> None:
    """Create, refresh and clean up the configured artifacts."""

    try:
        reconciler = _load_reconciler(config)
        try:
            report = reconciler.apply(group or None)
        finally:
            _print_warnings(reconciler)
        _format_results(report.results)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def unlink(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to linksync.toml"),
    group: list[str] = typer.Option(None, "--group", "-g", help="Limit to specific tracked group(s)"),
) -> None:
    """Remove every tracked artifact that still matches what linksync created."""

    try:
        reconciler = _load_reconciler(config, resolve_items=False)
        try:
            report = reconciler.unlink(group or None)
        finally:
            _print_warnings(reconciler)
        _format_results(report.results)
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


@app.command()
def status(
    config: Path | None = typer.Option(None, "--config", "-c", help="Path to linksync.toml"),
) -> None:
    """Show tracked destinations and whether they exist."""

    try:
        reconciler = _load_reconciler(config, resolve_items=False)
        report = reconciler.status()
        if not report.available:
            console.print(f"[yellow]No data: {report.details}[/yellow]", highlight=False)
            return
        if not report.entries:
            console.print("[yellow]Nothing is tracked yet. Run 'linksync apply' first.[/yellow]")
            return
        _format_status(report)
        if any(not item.exists for item in report.entries):
            console.print("[yellow]Some tracked destinations are missing. Run 'linksync apply' to recreate them.[/yellow]")
    except Exception as exc:  # noqa: BLE001
        _handle_error(exc)


def run() -> None:
    """Entry point used for console_script bindings."""

    app()
