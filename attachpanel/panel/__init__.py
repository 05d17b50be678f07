"""Public API for the attachment panel."""

from .domain import FieldKind, MediaKind, OperatingMode
from .models import (
    AttachmentDescriptor,
    DashboardConfig,
    FieldDescriptor,
    RecordRow,
    RecordSet,
    ResolvedAttachments,
    Selection,
)
from .options import PanelOptions
from .service import AttachmentPanel
from .session import PanelSession

__all__ = [
    "AttachmentPanel",
    "AttachmentDescriptor",
    "DashboardConfig",
    "FieldDescriptor",
    "FieldKind",
    "MediaKind",
    "OperatingMode",
    "PanelOptions",
    "PanelSession",
    "RecordRow",
    "RecordSet",
    "ResolvedAttachments",
    "Selection",
]
