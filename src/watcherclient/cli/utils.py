"""Shared helpers for CLI commands."""

from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from typing import Any

import typer
from pydantic import BaseModel
from rich.console import Console
from rich.table import Table

from watcherclient.application.watcher_client import WatcherClient
from watcherclient.infrastructure.config import ConfigManager
from watcherclient.infrastructure.exceptions import WatcherClientError
from watcherclient.infrastructure.logger import setup_logging

console = Console()


def get_client() -> WatcherClient:
    """Build a client from configuration files and OS_* environment variables."""
    config_manager = ConfigManager()
    config = config_manager.load_config()
    setup_logging(log_level=config.log_level, log_dir=config_manager.get_log_dir())
    return WatcherClient.from_config(config_manager)


@contextmanager
def client_session() -> Iterator[WatcherClient]:
    """Yield a configured client, closing it afterwards.

    Library errors are printed and turned into exit code 1.
    """
    try:
        client = get_client()
    except WatcherClientError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e

    try:
        yield client
    except WatcherClientError as e:
        console.print(f"[red]Error:[/red] {e}")
        raise typer.Exit(1) from e
    finally:
        client.close()


def print_table(title: str, columns: Sequence[str], items: Sequence[BaseModel]) -> None:
    """Render resources as a table with one column per attribute."""
    table = Table(title=title)
    for i, column in enumerate(columns):
        table.add_column(column.replace("_", " ").title(), style="cyan" if i == 0 else None)
    for item in items:
        table.add_row(*(_cell(getattr(item, column, None)) for column in columns))
    console.print(table)


def print_resource(item: BaseModel) -> None:
    """Render a single resource as a two-column field/value table."""
    table = Table(show_header=True)
    table.add_column("Field", style="cyan")
    table.add_column("Value")
    for key, value in item.model_dump(mode="json", exclude_none=True).items():
        table.add_row(key, _cell(value))
    console.print(table)


def _cell(value: Any) -> str:
    if value is None:
        return "-"
    return str(value)
