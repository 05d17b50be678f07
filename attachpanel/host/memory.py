"""
In-memory host backed by a JSON snapshot.

Snapshot layout (camelCase, as the host reports it)::

    {
      "active": {"tableId": "...", "viewId": "..."},
      "selection": {"tableId": ..., "viewId": ..., "fieldId": ..., "recordId": ...},
      "dashboard": {"state": "View", "config": {...}},   # omit: no dashboard
      "urlBase": "https://files.example.invalid",
      "tables": [
        {"id": "...", "name": "...",
         "views": [{"id": "...", "name": "..."}],
         "fields": [{"id": "...", "name": "...", "type": 1, "isPrimary": true}],
         "records": {"<recordId>": {"<fieldId>": <cell value>}},
         "visible": {"<viewId>": ["<recordId>", ...]}}
      ]
    }

Besides serving the snapshot it can inject failures and hold individual
records (await an event before answering) to emulate slow host calls.
"""

from __future__ import annotations

import asyncio
import copy
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from attachpanel.panel.domain import HostFieldType

from .protocol import Disposer, Listener

LOGGER = logging.getLogger(__name__)

DEFAULT_URL_BASE = "https://files.example.invalid/attachments"

# Hold key that blocks field metadata reads instead of one record.
FIELD_METADATA = "*fields"


class HostUnavailableError(RuntimeError):
    """Raised by the in-memory host for injected or unsupported calls."""


@dataclass
class InMemoryTable:
    id: str
    name: str
    views: List[Dict[str, Any]]
    fields: List[Dict[str, Any]]
    records: Dict[str, Dict[str, Any]]
    visible: Dict[str, List[str]]
    url_base: str = DEFAULT_URL_BASE
    active_view_id: Optional[str] = None

    # failure injection
    fail_cells: Set[Tuple[str, str]] = field(default_factory=set)
    fail_url_tokens: Set[str] = field(default_factory=set)
    fail_writes: Set[Tuple[str, str]] = field(default_factory=set)
    fail_fields: bool = False

    # call journals
    url_calls: List[Tuple[Tuple[str, ...], str, str]] = field(default_factory=list)
    writes: List[Tuple[str, str, Any]] = field(default_factory=list)

    _holds: Dict[str, asyncio.Event] = field(default_factory=dict, repr=False)

    @classmethod
    def from_dict(cls, data: Dict[str, Any], *, url_base: str) -> "InMemoryTable":
        records = copy.deepcopy(data.get("records") or {})
        views = list(data.get("views") or [])
        visible = {k: list(v) for k, v in (data.get("visible") or {}).items()}
        for view in views:
            visible.setdefault(view["id"], list(records.keys()))
        return cls(
            id=data["id"],
            name=data.get("name", data["id"]),
            views=views,
            fields=list(data.get("fields") or []),
            records=records,
            visible=visible,
            url_base=url_base,
            active_view_id=data.get("activeViewId") or (views[0]["id"] if views else None),
        )

    # ----- latency emulation -----

    def hold(self, record_id: str) -> asyncio.Event:
        """Block reads of ``record_id`` until the returned event is set.

        Pass ``FIELD_METADATA`` to block `list_fields` instead.
        """
        ev = asyncio.Event()
        self._holds[record_id] = ev
        return ev

    def release(self, record_id: str) -> None:
        ev = self._holds.pop(record_id, None)
        if ev is not None:
            ev.set()

    async def _wait(self, record_id: str) -> None:
        ev = self._holds.get(record_id)
        if ev is not None:
            await ev.wait()
        else:
            await asyncio.sleep(0)

    # ----- HostTable -----

    async def list_views(self) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.views)

    async def list_fields(self) -> List[Dict[str, Any]]:
        await self._wait(FIELD_METADATA)
        if self.fail_fields:
            raise HostUnavailableError("field metadata unavailable")
        return copy.deepcopy(self.fields)

    async def get_field_by_id(self, field_id: str) -> Dict[str, Any]:
        for f in self.fields:
            if f["id"] == field_id:
                return copy.deepcopy(f)
        raise HostUnavailableError(f"unknown field {field_id}")

    async def get_active_view_id(self) -> Optional[str]:
        return self.active_view_id

    async def get_visible_record_ids(self, view_id: str) -> List[str]:
        if view_id not in self.visible:
            raise HostUnavailableError(f"unknown view {view_id}")
        return list(self.visible[view_id])

    async def get_cell_value(self, field_id: str, record_id: str) -> Any:
        await self._wait(record_id)
        if (field_id, record_id) in self.fail_cells:
            raise HostUnavailableError(f"cannot read {field_id}/{record_id}")
        if record_id not in self.records:
            raise HostUnavailableError(f"unknown record {record_id}")
        return copy.deepcopy(self.records[record_id].get(field_id))

    async def get_attachment_urls(
        self, tokens: Sequence[str], field_id: str, record_id: str
    ) -> List[Optional[str]]:
        await self._wait(record_id)
        toks = tuple(tokens)
        self.url_calls.append((toks, field_id, record_id))
        if any(t in self.fail_url_tokens for t in toks):
            raise HostUnavailableError("attachment url batch rejected")
        known = {
            item.get("token")
            for item in (self.records.get(record_id, {}).get(field_id) or [])
            if isinstance(item, dict)
        }
        return [
            f"{self.url_base}/{t}?field={field_id}&record={record_id}" if t in known else None
            for t in toks
        ]

    async def set_cell_value(self, field_id: str, record_id: str, value: Any) -> None:
        await asyncio.sleep(0)
        if (field_id, record_id) in self.fail_writes:
            raise HostUnavailableError(f"write rejected for {field_id}/{record_id}")
        if record_id not in self.records:
            raise HostUnavailableError(f"unknown record {record_id}")
        self.writes.append((field_id, record_id, copy.deepcopy(value)))
        self.records[record_id][field_id] = self._stored_value(field_id, value)

    def _stored_value(self, field_id: str, value: Any) -> Any:
        meta = next((f for f in self.fields if f["id"] == field_id), None)
        if meta and meta.get("type") == HostFieldType.SINGLE_SELECT and isinstance(value, str):
            for opt in (meta.get("property") or {}).get("options") or []:
                if opt.get("id") == value:
                    return {"id": opt["id"], "text": opt.get("name")}
            return {"text": value}
        return copy.deepcopy(value)


class InMemoryHost:
    """A `HostBridge` over a snapshot dict."""

    def __init__(self, snapshot: Dict[str, Any]):
        url_base = snapshot.get("urlBase") or DEFAULT_URL_BASE
        self.tables: Dict[str, InMemoryTable] = {}
        for t in snapshot.get("tables") or []:
            tbl = InMemoryTable.from_dict(t, url_base=url_base)
            self.tables[tbl.id] = tbl
        active = snapshot.get("active") or {}
        self.active_table_id: Optional[str] = active.get("tableId") or next(
            iter(self.tables), None
        )
        if active.get("viewId") and self.active_table_id in self.tables:
            self.tables[self.active_table_id].active_view_id = active["viewId"]
        self.selection: Dict[str, Any] = dict(snapshot.get("selection") or {})
        self.has_dashboard = "dashboard" in snapshot
        dashboard = snapshot.get("dashboard") or {}
        self.dashboard_state: Optional[str] = dashboard.get("state")
        self.dashboard_config: Optional[Dict[str, Any]] = dashboard.get("config")
        self.fail_dashboard_config = False
        self._listeners: Dict[str, List[Listener]] = {
            "selection": [],
            "config": [],
            "data": [],
        }

    @classmethod
    def from_file(cls, path: str) -> "InMemoryHost":
        with open(path, "r", encoding="utf-8") as f:
            return cls(json.load(f))

    def table(self, table_id: str) -> InMemoryTable:
        return self.tables[table_id]

    # ----- HostBridge -----

    async def list_tables(self) -> List[Dict[str, Any]]:
        return [{"id": t.id, "name": t.name} for t in self.tables.values()]

    async def get_table(self, table_id: str) -> InMemoryTable:
        try:
            return self.tables[table_id]
        except KeyError:
            raise HostUnavailableError(f"unknown table {table_id}") from None

    async def get_active_table_id(self) -> Optional[str]:
        return self.active_table_id

    async def get_selection(self) -> Dict[str, Any]:
        return dict(self.selection)

    async def get_dashboard_state(self) -> Optional[str]:
        if not self.has_dashboard:
            raise HostUnavailableError("host has no dashboard")
        return self.dashboard_state

    async def get_dashboard_config(self) -> Optional[Dict[str, Any]]:
        if not self.has_dashboard or self.fail_dashboard_config:
            raise HostUnavailableError("dashboard config unavailable")
        return copy.deepcopy(self.dashboard_config)

    async def save_dashboard_config(self, config: Dict[str, Any]) -> None:
        if not self.has_dashboard:
            raise HostUnavailableError("host has no dashboard")
        self.dashboard_config = copy.deepcopy(config)

    def on_selection_change(self, listener: Listener) -> Disposer:
        return self._subscribe("selection", listener)

    def on_config_change(self, listener: Listener) -> Disposer:
        return self._subscribe("config", listener)

    def on_data_change(self, listener: Listener) -> Disposer:
        return self._subscribe("data", listener)

    # ----- event emission -----

    def emit_selection(self, payload: Dict[str, Any]) -> None:
        self.selection = dict(payload)
        self._emit("selection", dict(payload))

    def emit_config(self, config: Dict[str, Any]) -> None:
        self.dashboard_config = copy.deepcopy(config)
        self._emit("config", copy.deepcopy(config))

    def emit_data_change(self) -> None:
        self._emit("data", None)

    def listener_count(self, kind: str) -> int:
        return len(self._listeners[kind])

    def _subscribe(self, kind: str, listener: Listener) -> Disposer:
        self._listeners[kind].append(listener)

        def dispose() -> None:
            try:
                self._listeners[kind].remove(listener)
            except ValueError:
                pass

        return dispose

    def _emit(self, kind: str, payload: Any) -> None:
        LOGGER.debug("host.memory.emit kind=%s listeners=%d", kind, len(self._listeners[kind]))
        for listener in list(self._listeners[kind]):
            listener(payload)
