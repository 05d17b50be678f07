"""Library exceptions."""

from __future__ import annotations

from typing import Optional


class PanelError(Exception):
    """Base panel error."""


class HostCallError(PanelError):
    """A call into the host table API failed or returned an unusable payload."""

    def __init__(self, message: str, op: str = "", payload: Optional[object] = None):
        super().__init__(message)
        self.op = op
        self.payload = payload


class SchemaUnavailable(PanelError):
    """No table or no attachment field could be bound."""


class DecodeFailure(PanelError):
    """A single cell could not be decoded."""


class FetchFailure(HostCallError):
    """Attachment URL batch fetch or single token refresh failed."""


class WriteFailure(HostCallError):
    """The host rejected a cell edit."""

    def __init__(
        self,
        message: str,
        *,
        record_id: str,
        field_id: str,
        previous: Optional[str] = None,
        payload: Optional[object] = None,
    ):
        super().__init__(message, op="set_cell_value", payload=payload)
        self.record_id = record_id
        self.field_id = field_id
        self.previous = previous
