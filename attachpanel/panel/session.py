"""Explicit session state shared by the panel components."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional

from .domain import OperatingMode
from .models import (
    DashboardConfig,
    HostSelection,
    RecordRow,
    RecordSet,
    ResolvedAttachments,
    Selection,
)
from .schema import SchemaSnapshot


@dataclass
class PanelSession:
    """Everything the panel currently shows or is about to show.

    ``selection`` always holds the most recently *requested* (field, record)
    pair; a resolution that finishes for any other pair is discarded.
    ``host_selection`` is the last host event as received, before any
    attachment-field scan replaced its field.
    """

    mode: Optional[OperatingMode] = None
    table_id: Optional[str] = None
    view_id: Optional[str] = None
    attachment_field_id: Optional[str] = None
    filter_field_id: Optional[str] = None
    visible_field_ids: List[str] = field(default_factory=list)
    title: str = ""

    schema: Optional[SchemaSnapshot] = None
    records: RecordSet = field(default_factory=lambda: RecordSet(rows=[]))
    record_ids: List[str] = field(default_factory=list)
    current_index: int = -1

    selection: Optional[Selection] = None
    host_selection: Optional[HostSelection] = None
    resolved: Optional[ResolvedAttachments] = None
    field_label: Optional[str] = None
    error: Optional[str] = None

    def apply_config(self, config: DashboardConfig) -> None:
        self.table_id = config.table_id
        self.view_id = config.view_id
        self.attachment_field_id = config.attachment_field_id
        self.filter_field_id = config.filter_field_id
        self.visible_field_ids = list(config.visible_field_ids)
        self.title = config.title

    def to_config(self) -> Optional[DashboardConfig]:
        if not (self.table_id and self.view_id and self.attachment_field_id):
            return None
        return DashboardConfig(
            table_id=self.table_id,
            view_id=self.view_id,
            attachment_field_id=self.attachment_field_id,
            filter_field_id=self.filter_field_id,
            visible_field_ids=list(self.visible_field_ids),
            title=self.title,
        )

    def row(self, record_id: str) -> Optional[RecordRow]:
        return self.records.get(record_id)

    def display_name(self, row: RecordRow) -> str:
        primary = self.schema.primary_field if self.schema else None
        name = row.value(primary.id) if primary else None
        if name:
            return name
        try:
            position = self.records.rows.index(row) + 1
        except ValueError:
            position = 0
        return f"Record {position}"

    @property
    def current_record_id(self) -> Optional[str]:
        return self.selection.record_id if self.selection else None

    def reset_binding(self) -> None:
        """Forget everything derived from the bound table."""
        self.schema = None
        self.records = RecordSet(rows=[])
        self.record_ids = []
        self.current_index = -1
        self.selection = None
        self.resolved = None
        self.field_label = None
