"""Schema discovery: views, fields, attachment fields and the primary field."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Dict, List, Optional

from attachpanel.exceptions import HostCallError, SchemaUnavailable

from .client import HostClient
from .domain import FieldKind
from .models import FieldDescriptor, HostFieldMeta, HostViewMeta, Option, SelectOption

LOGGER = logging.getLogger(__name__)


def describe_field(meta: HostFieldMeta) -> FieldDescriptor:
    kind = FieldKind.from_host_type(meta.type)
    options = ()
    if kind in (FieldKind.SINGLE_SELECT, FieldKind.MULTI_SELECT):
        options = tuple(SelectOption(id=o.id, name=o.name) for o in meta.select_options())
    return FieldDescriptor(
        id=meta.id,
        name=meta.name,
        kind=kind,
        options=options,
        is_primary=meta.is_primary,
        host_type=meta.type,
    )


@dataclass(frozen=True)
class SchemaSnapshot:
    """Field classification for one bound table; rebuilt when the table changes."""

    table_id: str
    views: List[HostViewMeta]
    fields: List[FieldDescriptor]
    view_id: Optional[str] = None
    _by_id: Dict[str, FieldDescriptor] = field(default_factory=dict, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_id.update({f.id: f for f in self.fields})

    def get_field(self, field_id: Optional[str]) -> Optional[FieldDescriptor]:
        if not field_id:
            return None
        return self._by_id.get(field_id)

    @property
    def attachment_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.is_attachment]

    @property
    def supported_fields(self) -> List[FieldDescriptor]:
        return [f for f in self.fields if f.is_supported]

    @property
    def primary_field(self) -> Optional[FieldDescriptor]:
        for f in self.fields:
            if f.is_primary:
                return f
        return None

    @property
    def view_options(self) -> List[Option]:
        return [Option(value=v.id, label=v.name) for v in self.views]

    @property
    def attachment_field_options(self) -> List[Option]:
        return [Option(value=f.id, label=f.name) for f in self.attachment_fields]

    @property
    def all_field_options(self) -> List[Option]:
        return [Option(value=f.id, label=f.name) for f in self.fields]

    def require_attachment_field(self, field_id: Optional[str] = None) -> FieldDescriptor:
        """Return ``field_id`` if it is an attachment field, else the first one."""
        if field_id:
            f = self.get_field(field_id)
            if f is not None and f.is_attachment:
                return f
            LOGGER.warning(
                "panel.schema.attachment_field_missing table=%s field=%s",
                self.table_id,
                field_id,
            )
        candidates = self.attachment_fields
        if not candidates:
            LOGGER.error("panel.schema.no_attachment_field table=%s", self.table_id)
            raise SchemaUnavailable("The current table has no attachment field")
        return candidates[0]


class SchemaDiscovery:
    def __init__(self, client: HostClient):
        self._client = client

    async def discover(self, table_id: str) -> SchemaSnapshot:
        """Full discovery for ``table_id``."""
        LOGGER.info("Discovering schema for table %s", table_id)
        try:
            table = await self._client.table(table_id)
            views = await table.list_views()
            metas = await table.list_fields()
        except HostCallError as e:
            LOGGER.error("panel.schema.unavailable table=%s err=%s", table_id, e)
            raise SchemaUnavailable(f"Cannot read schema of table {table_id}") from e
        snapshot = SchemaSnapshot(
            table_id=table_id,
            views=views,
            fields=[describe_field(m) for m in metas],
        )
        LOGGER.info(
            "panel.schema.discovered table=%s views=%d fields=%d attachments=%d primary=%s",
            table_id,
            len(snapshot.views),
            len(snapshot.fields),
            len(snapshot.attachment_fields),
            snapshot.primary_field.id if snapshot.primary_field else None,
        )
        return snapshot

    async def refresh_fields(self, snapshot: SchemaSnapshot, view_id: Optional[str]) -> SchemaSnapshot:
        """Partial re-run when only the view changes: fields are re-read, views kept."""
        try:
            table = await self._client.table(snapshot.table_id)
            metas = await table.list_fields()
        except HostCallError as e:
            LOGGER.error("panel.schema.unavailable table=%s err=%s", snapshot.table_id, e)
            raise SchemaUnavailable(f"Cannot read fields of table {snapshot.table_id}") from e
        return replace(
            snapshot,
            fields=[describe_field(m) for m in metas],
            view_id=view_id,
            _by_id={},
        )
