"""Boot command: which mode the panel starts in for a snapshot."""

import typer
from rich.console import Console
from rich.table import Table

from attachpanel.cli.utils.host import build_panel, fail, run
from attachpanel.panel import PanelOptions

app = typer.Typer(
    help="Detect the operating mode and bind the panel",
    context_settings={"allow_interspersed_args": True},
)
console = Console()


@app.callback(invoke_without_command=True)
def main(
    snapshot: str = typer.Argument(..., help="Path to a host snapshot JSON file"),
    paged: bool = typer.Option(False, help="Prefer paging over following the host selection"),
):
    """Start the panel and report what it bound to."""
    overrides = {"prefer_paging": True} if paged else {}
    panel = build_panel(snapshot, PanelOptions.from_env(**overrides))

    async def _start():
        session = await panel.start()
        panel.close()
        return session

    session = run(_start())
    if session.mode is None:
        fail(session.error)

    output = Table("Property", "Value")
    output.add_row("Mode", session.mode.value)
    output.add_row("Table", session.table_id or "")
    output.add_row("View", session.view_id or "")
    output.add_row("Attachment field", session.attachment_field_id or "")
    if session.filter_field_id:
        output.add_row("Filter field", session.filter_field_id)
    if session.title:
        output.add_row("Title", session.title)
    output.add_row("Records", str(len(session.record_ids)))
    if session.selection is not None:
        output.add_row("Selected record", session.selection.record_id)
    if session.resolved is not None and session.resolved.preview is not None:
        output.add_row("Previewing", session.resolved.preview.name)
    console.print(output)
    if session.error:
        console.print(f"[bold yellow]Warning:[/bold yellow] {session.error}")
