"""Public exports for panel data models."""

from __future__ import annotations

from .dto import (
    AttachmentDescriptor,
    FieldDescriptor,
    Option,
    RecordRow,
    RecordSet,
    ResolvedAttachments,
    ResolvedUrl,
    SelectOption,
    Selection,
)
from .host import (
    DashboardConfig,
    HostAttachment,
    HostFieldMeta,
    HostSelection,
    HostSelectOption,
    HostTableMeta,
    HostViewMeta,
)

__all__ = [
    "AttachmentDescriptor",
    "DashboardConfig",
    "FieldDescriptor",
    "HostAttachment",
    "HostFieldMeta",
    "HostSelection",
    "HostSelectOption",
    "HostTableMeta",
    "HostViewMeta",
    "Option",
    "RecordRow",
    "RecordSet",
    "ResolvedAttachments",
    "ResolvedUrl",
    "SelectOption",
    "Selection",
]
