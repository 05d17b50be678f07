"""
Record loading and filtering for one (table, view, attachment field).

Every supported field of every visible record is decoded into a display
string. A field that fails to read or decode becomes absent for that row
only. Rows whose filter field decodes to the approved sentinel are dropped.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence

from attachpanel.exceptions import DecodeFailure, HostCallError, SchemaUnavailable

from .client import HostClient, TableClient
from .decoding import decode_attachments, decode_display
from .models import FieldDescriptor, RecordRow, RecordSet
from .options import PanelOptions
from .schema import SchemaSnapshot

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class RecordQuery:
    table_id: str
    view_id: str
    attachment_field_id: str
    filter_field_id: Optional[str] = None
    # Empty means every supported field.
    visible_field_ids: Sequence[str] = ()


class RecordLoader:
    def __init__(self, client: HostClient, options: Optional[PanelOptions] = None):
        self._client = client
        self._options = options or PanelOptions()

    async def load(self, schema: SchemaSnapshot, query: RecordQuery) -> RecordSet:
        if query.table_id != schema.table_id:
            raise ValueError(
                f"query table {query.table_id} does not match schema {schema.table_id}"
            )
        att_field = schema.get_field(query.attachment_field_id)
        if att_field is None or not att_field.is_attachment:
            LOGGER.error(
                "panel.records.bad_attachment_field table=%s field=%s",
                query.table_id,
                query.attachment_field_id,
            )
            raise SchemaUnavailable(
                f"Field {query.attachment_field_id} is not an attachment field"
            )
        try:
            table = await self._client.table(query.table_id)
            record_ids = await table.visible_record_ids(query.view_id)
        except HostCallError as e:
            LOGGER.error(
                "panel.records.unavailable table=%s view=%s err=%s",
                query.table_id,
                query.view_id,
                e,
            )
            raise SchemaUnavailable(f"Cannot list records of view {query.view_id}") from e

        fields = self._fields_to_decode(schema, query)
        rows: List[RecordRow] = []
        excluded = 0
        for record_id in record_ids:
            row = await self._build_row(table, fields, query, record_id)
            if query.filter_field_id and self._options.is_excluded(
                row.value(query.filter_field_id)
            ):
                LOGGER.debug("panel.records.excluded record=%s", record_id)
                excluded += 1
                continue
            rows.append(row)

        LOGGER.info(
            "panel.records.loaded view=%s rows=%d excluded=%d with_video=%d",
            query.view_id,
            len(rows),
            excluded,
            sum(1 for r in rows if r.has_qualifying_attachment),
        )
        return RecordSet(rows=rows, excluded=excluded)

    @staticmethod
    def _fields_to_decode(schema: SchemaSnapshot, query: RecordQuery) -> List[FieldDescriptor]:
        supported = schema.supported_fields
        if not query.visible_field_ids:
            return supported
        wanted = set(query.visible_field_ids)
        wanted.add(query.attachment_field_id)
        if query.filter_field_id:
            wanted.add(query.filter_field_id)
        primary = schema.primary_field
        if primary is not None:
            wanted.add(primary.id)
        return [f for f in supported if f.id in wanted]

    async def _build_row(
        self,
        table: TableClient,
        fields: List[FieldDescriptor],
        query: RecordQuery,
        record_id: str,
    ) -> RecordRow:
        values: Dict[str, Optional[str]] = {}
        attachment_raw: Any = None
        for f in fields:
            try:
                raw = await table.cell_value(f.id, record_id)
            except HostCallError as e:
                LOGGER.warning(
                    "panel.records.cell_failed record=%s field=%s err=%s",
                    record_id,
                    f.id,
                    e,
                )
                values[f.id] = None
                continue
            if f.id == query.attachment_field_id:
                attachment_raw = raw
            try:
                values[f.id] = decode_display(raw)
            except Exception as e:
                LOGGER.warning(
                    "panel.records.decode_failed record=%s field=%s err=%s",
                    record_id,
                    f.id,
                    e,
                )
                values[f.id] = None
        return RecordRow(
            id=record_id,
            display_values=values,
            has_qualifying_attachment=self._has_video(attachment_raw, record_id),
        )

    def _has_video(self, raw: Any, record_id: str) -> bool:
        try:
            attachments = decode_attachments(raw)
        except DecodeFailure as e:
            LOGGER.warning("panel.records.attachment_decode_failed record=%s err=%s", record_id, e)
            return False
        return any(self._options.is_video(a.mime_type, a.name) for a in attachments)
