"""Records command: load and filter a view like a dashboard would."""

from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from attachpanel.cli.utils.host import build_panel, pick_table, run
from attachpanel.panel import PanelOptions

app = typer.Typer(
    help="Load the records of a view",
    context_settings={"allow_interspersed_args": True},
)
console = Console()


@app.callback(invoke_without_command=True)
def main(
    snapshot: str = typer.Argument(..., help="Path to a host snapshot JSON file"),
    table: Optional[str] = typer.Option(None, help="Table id (defaults to the active table)"),
    view: Optional[str] = typer.Option(None, help="View id (defaults to the active view)"),
    field: Optional[str] = typer.Option(
        None, help="Attachment field id (defaults to the first attachment field)"
    ),
    filter_field: Optional[str] = typer.Option(None, help="Field used to exclude approved rows"),
    sentinel: Optional[str] = typer.Option(None, help="Filter value that excludes a row"),
):
    """Load rows, mark the ones with a playable video and the auto-selected one."""
    overrides = {"approved_sentinel": sentinel} if sentinel else {}
    panel = build_panel(snapshot, PanelOptions.from_env(**overrides))
    session = panel.session

    async def _load():
        table_id = await pick_table(panel, table)
        session.view_id = view
        session.attachment_field_id = field
        session.filter_field_id = filter_field
        await panel.bind_table(table_id)
        return await panel.load_records()

    records = run(_load())

    schema = session.schema
    title = f"{schema.table_id} / {session.view_id}" if schema else None
    columns = ["#", "Record", "Name", "Video"]
    if session.filter_field_id:
        columns.append("Filter")
    output = Table(*columns, title=title)
    current = session.current_record_id
    for index, row in enumerate(records.rows, start=1):
        marker = f"> {index}" if row.id == current else str(index)
        cells = [marker, row.id, session.display_name(row), "yes" if row.has_qualifying_attachment else ""]
        if session.filter_field_id:
            cells.append(row.value(session.filter_field_id) or "")
        output.add_row(*cells)
    console.print(output)

    console.print(f"{len(records.rows)} rows, {records.excluded} excluded")
    if current:
        row = session.row(current)
        console.print(f"Auto-selected: [bold]{session.display_name(row) if row else current}[/bold]")
    else:
        console.print("No row has a playable video")
