"""
Host "wire" models: the JSON-like payloads returned by the host table API
and the persisted dashboard configuration.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from pydantic import Field, field_validator

from ._base import HostModel


class HostTableMeta(HostModel):
    id: str
    name: str = ""


class HostViewMeta(HostModel):
    id: str
    name: str = ""


class HostSelectOption(HostModel):
    id: str
    name: str
    color: Optional[int] = None


class HostFieldMeta(HostModel):
    """Field metadata as listed by the host (`type` is the numeric host code)."""

    id: str
    name: str = ""
    type: int
    property: Optional[Dict[str, Any]] = None
    is_primary: bool = False

    def select_options(self) -> List[HostSelectOption]:
        raw = (self.property or {}).get("options") or []
        out: List[HostSelectOption] = []
        for item in raw:
            if isinstance(item, dict) and item.get("id") and item.get("name") is not None:
                out.append(HostSelectOption.model_validate(item))
        return out


class HostAttachment(HostModel):
    """One entry of an attachment cell value."""

    token: str
    name: str = ""
    size: int = 0
    type: str = ""
    time_stamp: Optional[int] = Field(default=None, alias="timeStamp")

    @field_validator("token")
    @classmethod
    def _token_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("attachment token is blank")
        return v

    @field_validator("size", mode="before")
    @classmethod
    def _size_default(cls, v):
        return 0 if v is None else v

    @field_validator("type", "name", mode="before")
    @classmethod
    def _str_default(cls, v):
        return "" if v is None else v

    def captured_at(self) -> Optional[datetime]:
        if not self.time_stamp:
            return None
        return datetime.fromtimestamp(self.time_stamp / 1000.0, tz=timezone.utc)


class HostSelection(HostModel):
    """Selection payload delivered by the host (any member may be missing)."""

    base_id: Optional[str] = None
    table_id: Optional[str] = None
    view_id: Optional[str] = None
    field_id: Optional[str] = None
    record_id: Optional[str] = None


class DashboardConfig(HostModel):
    """Persisted dashboard configuration, opaque to the host."""

    table_id: str
    view_id: str
    attachment_field_id: str
    filter_field_id: Optional[str] = None
    visible_field_ids: List[str] = Field(default_factory=list)
    title: str = ""

    @field_validator("filter_field_id", mode="before")
    @classmethod
    def _blank_filter_is_none(cls, v):
        # The authoring form uses "" for "no filter".
        return v or None

    def to_payload(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, exclude_none=True)
