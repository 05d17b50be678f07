"""Command modules for the attachpanel CLI."""

from attachpanel.cli.commands import boot, records, resolve, schema

__all__ = ["boot", "records", "resolve", "schema"]
