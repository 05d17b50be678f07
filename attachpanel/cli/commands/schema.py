"""Schema command: tables, views and fields as the panel sees them."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from attachpanel.cli.utils.host import build_panel, pick_table, run
from attachpanel.panel.schema import SchemaDiscovery

app = typer.Typer(
    help="Show the discovered schema of a table",
    context_settings={"allow_interspersed_args": True},
)
console = Console()


@app.callback(invoke_without_command=True)
def main(
    snapshot: str = typer.Argument(..., help="Path to a host snapshot JSON file"),
    table: Optional[str] = typer.Option(None, help="Table id (defaults to the active table)"),
):
    """List tables, then the views and fields of one table."""
    panel = build_panel(snapshot)

    async def _discover():
        tables = await panel.table_options()
        table_id = await pick_table(panel, table)
        return tables, await SchemaDiscovery(panel.raw).discover(table_id)

    tables, schema = run(_discover())

    tables_view = Table("Table ID", "Name", "")
    for opt in tables:
        tables_view.add_row(opt.value, opt.label, "bound" if opt.value == schema.table_id else "")
    console.print(tables_view)

    views = Table("View ID", "Name", title=f"Views of {schema.table_id}")
    for view in schema.view_options:
        views.add_row(view.value, view.label)
    console.print(views)

    fields = Table("Field ID", "Name", "Kind", "Type", "Flags", title=f"Fields of {schema.table_id}")
    for f in schema.fields:
        flags = []
        if f.is_primary:
            flags.append("primary")
        if f.is_attachment:
            flags.append("attachment")
        if f.options:
            flags.append("options: " + ", ".join(o.name for o in f.options))
        fields.add_row(f.id, f.name, f.kind.value, str(f.host_type or ""), "; ".join(flags))
    console.print(fields)
