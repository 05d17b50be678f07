"""Attachment preview panel core bound to a host row/column table."""

from attachpanel.panel import AttachmentPanel, PanelOptions

__all__ = ["AttachmentPanel", "PanelOptions"]
