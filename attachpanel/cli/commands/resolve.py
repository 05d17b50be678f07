"""Resolve command: attachments and URLs of one cell."""

from datetime import datetime
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from attachpanel.cli.utils.host import build_panel, fail, pick_table, run

app = typer.Typer(
    help="Resolve the attachments of a record",
    context_settings={"allow_interspersed_args": True},
)
console = Console()


@app.callback(invoke_without_command=True)
def main(
    snapshot: str = typer.Argument(..., help="Path to a host snapshot JSON file"),
    record: str = typer.Option(..., help="Record id"),
    table: Optional[str] = typer.Option(None, help="Table id (defaults to the active table)"),
    field: Optional[str] = typer.Option(
        None, help="Attachment field id (defaults to the first attachment field)"
    ),
    verify: bool = typer.Option(False, help="Probe each URL and refresh broken ones"),
):
    """Show every attachment in the cell with its media kind, size and URL."""
    panel = build_panel(snapshot)
    session = panel.session

    async def _resolve():
        table_id = await pick_table(panel, table)
        session.attachment_field_id = field
        await panel.bind_table(table_id)
        resolved = await panel.navigation.select(session.attachment_field_id, record)
        statuses = {}
        if verify and resolved is not None:
            for att in resolved.attachments:
                before = resolved.urls.get(att.token)
                after = await panel.verify_url(att.token)
                if after is None:
                    statuses[att.token] = "broken"
                else:
                    statuses[att.token] = "ok" if after == before else "refreshed"
        panel.close()
        return session.resolved, statuses

    resolved, statuses = run(_resolve())
    if resolved is None:
        fail(f"Could not resolve record {record}")
    if resolved.is_empty:
        console.print(f"No attachments in {session.field_label or resolved.selection.field_id}")
        return

    columns = ["", "Token", "Name", "Kind", "Size", "URL", "Expires"]
    if verify:
        columns.append("Status")
    output = Table(*columns, title=session.field_label)
    for att in resolved.attachments:
        entry = panel.cache.get(att.token)
        expires = (
            datetime.fromtimestamp(entry.expires_at).strftime("%Y-%m-%d %H:%M:%S")
            if entry
            else ""
        )
        cells = [
            "*" if resolved.current is att else "",
            att.token,
            att.name,
            panel.options.media_kind(att.mime_type, att.name).value,
            att.human_size,
            resolved.urls.get(att.token, ""),
            expires,
        ]
        if verify:
            cells.append(statuses.get(att.token, ""))
        output.add_row(*cells)
    console.print(output)
