"""
Cell edits from the presentation layer back to the host.

Values are encoded per field kind: single-select labels become option ids
(falling back to the raw label when no option matches), plain text becomes
a rich-text segment list, everything else is written unchanged. The row is
patched optimistically before the write. A rejected write restores the
previous display value and raises `WriteFailure`.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

from attachpanel.exceptions import HostCallError, PanelError, WriteFailure

from .client import HostClient
from .domain import FieldKind
from .models import FieldDescriptor
from .session import PanelSession

LOGGER = logging.getLogger(__name__)


def encode_cell_value(field: FieldDescriptor, display_value: Optional[str]) -> Any:
    if display_value is None:
        return None
    if field.kind is FieldKind.SINGLE_SELECT:
        option = field.option_by_name(display_value)
        if option is None:
            LOGGER.warning(
                "panel.edit.no_matching_option field=%s label=%r; writing raw label",
                field.id,
                display_value,
            )
            return display_value
        return option.id
    if field.is_plain_text:
        return [{"type": "text", "text": display_value}]
    return display_value


class CellEditArbiter:
    def __init__(self, client: HostClient, session: PanelSession):
        self._client = client
        self._session = session

    def _field(self, field_id: str) -> FieldDescriptor:
        schema = self._session.schema
        f = schema.get_field(field_id) if schema else None
        if f is None:
            raise PanelError(f"Unknown field {field_id}")
        if not f.is_supported or f.is_attachment:
            raise PanelError(f"Field {f.name or field_id} cannot be edited here")
        return f

    async def edit(self, record_id: str, field_id: str, new_value: Optional[str]) -> None:
        field = self._field(field_id)
        table_id = self._session.table_id
        if not table_id:
            raise PanelError("No table is bound")
        encoded = encode_cell_value(field, new_value)

        row = self._session.row(record_id)
        previous = row.value(field_id) if row else None
        if row is not None:
            row.display_values[field_id] = new_value

        try:
            table = await self._client.table(table_id)
            await table.set_cell_value(field_id, record_id, encoded)
        except HostCallError as e:
            if row is not None:
                row.display_values[field_id] = previous
                LOGGER.warning(
                    "panel.edit.reverted record=%s field=%s", record_id, field_id
                )
            if isinstance(e, WriteFailure):
                e.previous = previous
                raise
            raise WriteFailure(
                str(e), record_id=record_id, field_id=field_id, previous=previous
            ) from e
        LOGGER.info("panel.edit.written record=%s field=%s", record_id, field_id)
