#!/usr/bin/env python
"""CLI for inspecting an attachment panel against a host snapshot."""

import logging

import typer
from rich.console import Console
from rich.logging import RichHandler

from attachpanel.cli.commands import boot, records, resolve, schema

app = typer.Typer(help="Attachment panel inspector")
console = Console()

# Add commands
app.add_typer(schema.app, name="schema")
app.add_typer(records.app, name="records")
app.add_typer(resolve.app, name="resolve")
app.add_typer(boot.app, name="boot")


@app.callback()
def callback(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Bind the panel core to a JSON host snapshot and inspect what it sees."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), rich_tracebacks=True)],
        force=True,
    )


def main():
    """Main entry point for the CLI."""
    app()


if __name__ == "__main__":
    main()
