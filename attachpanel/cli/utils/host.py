"""Helpers shared by the CLI commands."""

import asyncio
import json
from typing import Any, Awaitable, NoReturn, Optional, TypeVar

import typer
from rich.console import Console
from rich.markup import escape

from attachpanel.exceptions import PanelError, SchemaUnavailable
from attachpanel.host import InMemoryHost
from attachpanel.panel import AttachmentPanel, PanelOptions

console = Console()

T = TypeVar("T")


def fail(message: Any) -> NoReturn:
    """Print an error and exit with status 1."""
    console.print(f"[bold red]Error:[/bold red] {escape(str(message))}")
    raise typer.Exit(1)


def load_host(path: str) -> InMemoryHost:
    """Load a host snapshot file."""
    try:
        return InMemoryHost.from_file(path)
    except (OSError, json.JSONDecodeError, KeyError, TypeError) as exc:
        fail(f"Could not load snapshot {path}: {exc}")


def build_panel(path: str, options: Optional[PanelOptions] = None) -> AttachmentPanel:
    return AttachmentPanel(load_host(path), options or PanelOptions.from_env())


async def pick_table(panel: AttachmentPanel, table_id: Optional[str]) -> str:
    """Explicit table, else the host's active table, else the first table."""
    if table_id:
        return table_id
    active = await panel.raw.active_table_id()
    if active:
        return active
    tables = await panel.table_options()
    if not tables:
        raise SchemaUnavailable("The snapshot has no tables")
    return tables[0].value


def run(coro: Awaitable[T]) -> T:
    """Run ``coro`` to completion; panel errors become a CLI failure."""
    try:
        return asyncio.run(coro)
    except PanelError as exc:
        fail(exc)
