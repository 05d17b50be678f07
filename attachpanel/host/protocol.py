"""
Transport-agnostic host contract.

Defines the minimal seams the panel consumes from the embedding host:
  - `HostTable`: per-table reads and writes
  - `HostBridge`: tables, selection, dashboard state/config and event feeds

Payloads are plain JSON-like values; the panel validates them. All calls may
suspend and may fail; none is assumed to be cheap or ordered.

Event callbacks are invoked synchronously with one payload argument. Every
`on_*` call returns a zero-argument disposer.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, List, Optional, Protocol, Sequence

Disposer = Callable[[], None]
Listener = Callable[[Any], Any]


class HostTable(Protocol):
    id: str

    async def list_views(self) -> List[Dict[str, Any]]: ...

    async def list_fields(self) -> List[Dict[str, Any]]: ...

    async def get_field_by_id(self, field_id: str) -> Dict[str, Any]: ...

    async def get_active_view_id(self) -> Optional[str]: ...

    async def get_visible_record_ids(self, view_id: str) -> List[str]: ...

    async def get_cell_value(self, field_id: str, record_id: str) -> Any: ...

    async def get_attachment_urls(
        self, tokens: Sequence[str], field_id: str, record_id: str
    ) -> List[Optional[str]]: ...

    async def set_cell_value(self, field_id: str, record_id: str, value: Any) -> None: ...


class HostBridge(Protocol):
    async def list_tables(self) -> List[Dict[str, Any]]: ...

    async def get_table(self, table_id: str) -> HostTable: ...

    async def get_active_table_id(self) -> Optional[str]: ...

    async def get_selection(self) -> Dict[str, Any]: ...

    async def get_dashboard_state(self) -> Optional[str]: ...

    async def get_dashboard_config(self) -> Optional[Dict[str, Any]]: ...

    async def save_dashboard_config(self, config: Dict[str, Any]) -> None: ...

    def on_selection_change(self, listener: Listener) -> Disposer: ...

    def on_config_change(self, listener: Listener) -> Disposer: ...

    def on_data_change(self, listener: Listener) -> Disposer: ...
