"""High-level panel data transfer objects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional, Tuple

from ..domain import FieldKind, HostFieldType


@dataclass(frozen=True)
class SelectOption:
    id: str
    name: str


@dataclass(frozen=True)
class FieldDescriptor:
    """Normalized field metadata, fixed for one schema snapshot."""

    id: str
    name: str
    kind: FieldKind
    options: Tuple[SelectOption, ...] = ()
    is_primary: bool = False
    host_type: Optional[int] = None

    @property
    def is_attachment(self) -> bool:
        return self.kind is FieldKind.ATTACHMENT

    @property
    def is_supported(self) -> bool:
        return self.kind is not FieldKind.UNSUPPORTED

    @property
    def is_plain_text(self) -> bool:
        return self.host_type == HostFieldType.TEXT

    def option_by_name(self, name: str) -> Optional[SelectOption]:
        for opt in self.options:
            if opt.name == name:
                return opt
        return None


@dataclass(frozen=True)
class Option:
    """A (value, label) pair for configuration pickers."""

    value: str
    label: str


@dataclass(frozen=True)
class AttachmentDescriptor:
    """Metadata for one attachment inside a cell."""

    token: str
    name: str
    byte_size: int
    mime_type: str
    captured_at: Optional[datetime]

    @property
    def human_size(self) -> str:
        size = self.byte_size
        if size <= 0:
            return "0 B"
        units = ("B", "KB", "MB", "GB")
        i = 0
        value = float(size)
        while value >= 1024 and i < len(units) - 1:
            value /= 1024
            i += 1
        text = f"{value:.2f}".rstrip("0").rstrip(".")
        return f"{text} {units[i]}"


@dataclass(frozen=True)
class ResolvedUrl:
    url: str
    expires_at: float

    def is_valid(self, now: float) -> bool:
        return now < self.expires_at


@dataclass
class RecordRow:
    """One loaded row. Only the cell edit arbiter mutates ``display_values``."""

    id: str
    display_values: Dict[str, Optional[str]]
    has_qualifying_attachment: bool

    def value(self, field_id: Optional[str]) -> Optional[str]:
        if not field_id:
            return None
        return self.display_values.get(field_id)


@dataclass(frozen=True)
class Selection:
    """What is currently being resolved; the arbitration point for stale loads."""

    table_id: str
    field_id: str
    record_id: str
    view_id: Optional[str] = None

    @property
    def key(self) -> Tuple[str, str]:
        return (self.field_id, self.record_id)


@dataclass(frozen=True)
class RecordSet:
    rows: List[RecordRow]
    excluded: int = 0

    def first_qualifying(self) -> Optional[RecordRow]:
        for row in self.rows:
            if row.has_qualifying_attachment:
                return row
        return None

    def ids(self) -> List[str]:
        return [r.id for r in self.rows]

    def get(self, record_id: str) -> Optional[RecordRow]:
        for row in self.rows:
            if row.id == record_id:
                return row
        return None


@dataclass(frozen=True)
class ResolvedAttachments:
    """Outcome of resolving one selection."""

    selection: Selection
    attachments: List[AttachmentDescriptor] = field(default_factory=list)
    current: Optional[AttachmentDescriptor] = None
    urls: Dict[str, str] = field(default_factory=dict)

    @property
    def preview(self) -> Optional[AttachmentDescriptor]:
        if self.current is not None:
            return self.current
        return self.attachments[0] if self.attachments else None

    @property
    def current_url(self) -> Optional[str]:
        target = self.preview
        return self.urls.get(target.token) if target else None

    @property
    def is_empty(self) -> bool:
        return not self.attachments
