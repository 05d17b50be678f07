"""
Low-level client over the host bridge.

Every host call goes through here: it is logged, host exceptions become
`HostCallError` (or a more specific subclass), and dict payloads are
validated into the pydantic models from `attachpanel.panel.models.host`.
Used internally by the panel components; also usable directly as an
escape hatch.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Any, Awaitable, Callable, Iterable, List, Optional, Set, Type, TypeVar

from pydantic import BaseModel, ValidationError

from attachpanel.exceptions import FetchFailure, HostCallError, WriteFailure
from attachpanel.host.protocol import Disposer, HostBridge, HostTable

from .models import (
    DashboardConfig,
    HostFieldMeta,
    HostSelection,
    HostTableMeta,
    HostViewMeta,
)

LOGGER = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)


def _validate(op: str, model: Type[M], data: Any) -> M:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        LOGGER.error("panel.host.%s validation failed: %s", op, e.errors()[:3])
        raise HostCallError(f"{op}: invalid host payload", op=op, payload=data) from e


def _validate_list(op: str, model: Type[M], data: Any) -> List[M]:
    if not isinstance(data, (list, tuple)):
        raise HostCallError(f"{op}: expected a list", op=op, payload=data)
    return [_validate(op, model, item) for item in data]


async def _call(
    op: str,
    fn: Callable[..., Awaitable[Any]],
    *args: Any,
    error: Type[HostCallError] = HostCallError,
) -> Any:
    try:
        return await fn(*args)
    except HostCallError:
        raise
    except Exception as e:
        LOGGER.warning("panel.host.%s failed: %s", op, e)
        raise error(f"{op}: {e}", op=op, payload=None) from e


# ------------------------------ Table client ---------------------------------


class TableClient:
    """Wraps one `HostTable` handle."""

    def __init__(self, handle: HostTable, table_id: str):
        self._handle = handle
        self.id = table_id

    async def list_views(self) -> List[HostViewMeta]:
        LOGGER.info("Listing views for table %s", self.id)
        data = await _call("list_views", self._handle.list_views)
        return _validate_list("list_views", HostViewMeta, data)

    async def list_fields(self) -> List[HostFieldMeta]:
        LOGGER.info("Listing fields for table %s", self.id)
        data = await _call("list_fields", self._handle.list_fields)
        return _validate_list("list_fields", HostFieldMeta, data)

    async def get_field(self, field_id: str) -> HostFieldMeta:
        data = await _call("get_field_by_id", self._handle.get_field_by_id, field_id)
        return _validate("get_field_by_id", HostFieldMeta, data)

    async def active_view_id(self) -> Optional[str]:
        return await _call("get_active_view_id", self._handle.get_active_view_id)

    async def visible_record_ids(self, view_id: str) -> List[str]:
        data = await _call(
            "get_visible_record_ids", self._handle.get_visible_record_ids, view_id
        )
        if not isinstance(data, (list, tuple)):
            raise HostCallError(
                "get_visible_record_ids: expected a list",
                op="get_visible_record_ids",
                payload=data,
            )
        ids = [str(rid) for rid in data if rid]
        LOGGER.info("View %s has %d visible records.", view_id, len(ids))
        return ids

    async def cell_value(self, field_id: str, record_id: str) -> Any:
        LOGGER.debug("Reading cell field=%s record=%s", field_id, record_id)
        return await _call(
            "get_cell_value", self._handle.get_cell_value, field_id, record_id
        )

    async def attachment_urls(
        self, tokens: List[str], field_id: str, record_id: str
    ) -> List[Optional[str]]:
        """Fetch URLs for ``tokens``; the result is aligned with ``tokens``."""
        LOGGER.info(
            "Fetching %d attachment urls field=%s record=%s",
            len(tokens),
            field_id,
            record_id,
        )
        data = await _call(
            "get_attachment_urls",
            self._handle.get_attachment_urls,
            list(tokens),
            field_id,
            record_id,
            error=FetchFailure,
        )
        if not isinstance(data, (list, tuple)) or len(data) != len(tokens):
            raise FetchFailure(
                "get_attachment_urls: result not aligned with tokens",
                op="get_attachment_urls",
                payload=data,
            )
        return [u if isinstance(u, str) and u else None for u in data]

    async def set_cell_value(self, field_id: str, record_id: str, value: Any) -> None:
        LOGGER.info("Writing cell field=%s record=%s", field_id, record_id)
        try:
            await self._handle.set_cell_value(field_id, record_id, value)
        except Exception as e:
            LOGGER.error(
                "Write failed field=%s record=%s: %s", field_id, record_id, e
            )
            raise WriteFailure(
                f"set_cell_value: {e}", record_id=record_id, field_id=field_id
            ) from e


# ------------------------------- Host client ---------------------------------


class HostClient:
    """Raw client over a `HostBridge`."""

    def __init__(self, bridge: HostBridge):
        self._bridge = bridge
        self._tables: dict[str, TableClient] = {}
        self._pending: Set[asyncio.Task] = set()
        LOGGER.info("HostClient initialized.")

    # ----- tables -----

    async def list_tables(self) -> List[HostTableMeta]:
        data = await _call("list_tables", self._bridge.list_tables)
        tables = _validate_list("list_tables", HostTableMeta, data)
        LOGGER.info("Host lists %d tables.", len(tables))
        return tables

    async def table(self, table_id: str) -> TableClient:
        cached = self._tables.get(table_id)
        if cached is not None:
            return cached
        handle = await _call("get_table", self._bridge.get_table, table_id)
        client = TableClient(handle, table_id)
        self._tables[table_id] = client
        return client

    async def active_table_id(self) -> Optional[str]:
        return await _call("get_active_table_id", self._bridge.get_active_table_id)

    async def selection(self) -> HostSelection:
        data = await _call("get_selection", self._bridge.get_selection)
        return _validate("get_selection", HostSelection, data or {})

    # ----- dashboard -----

    async def dashboard_state(self) -> Optional[str]:
        state = await _call("get_dashboard_state", self._bridge.get_dashboard_state)
        return str(state) if state else None

    async def dashboard_config(self) -> Optional[DashboardConfig]:
        data = await _call("get_dashboard_config", self._bridge.get_dashboard_config)
        if not data:
            return None
        return _validate("get_dashboard_config", DashboardConfig, data)

    async def save_dashboard_config(self, config: DashboardConfig) -> None:
        LOGGER.info("Saving dashboard config table=%s", config.table_id)
        await _call(
            "save_dashboard_config",
            self._bridge.save_dashboard_config,
            config.to_payload(),
        )

    # ----- events -----

    def subscribe_selection(
        self, handler: Callable[[HostSelection], Awaitable[Any]]
    ) -> Disposer:
        return self._bridge.on_selection_change(
            self._dispatcher(
                "selection", lambda p: _validate("selection_event", HostSelection, p or {}), handler
            )
        )

    def subscribe_config(
        self, handler: Callable[[Optional[DashboardConfig]], Awaitable[Any]]
    ) -> Disposer:
        def parse(p: Any) -> Optional[DashboardConfig]:
            return _validate("config_event", DashboardConfig, p) if p else None

        return self._bridge.on_config_change(self._dispatcher("config", parse, handler))

    def subscribe_data_change(self, handler: Callable[[], Awaitable[Any]]) -> Disposer:
        return self._bridge.on_data_change(
            self._dispatcher("data", lambda p: None, lambda _: handler())
        )

    def _dispatcher(
        self,
        kind: str,
        parse: Callable[[Any], Any],
        handler: Callable[[Any], Any],
    ) -> Callable[[Any], None]:
        def listener(payload: Any) -> None:
            try:
                event = parse(payload)
            except HostCallError:
                LOGGER.warning("panel.events.%s dropped malformed payload", kind)
                return
            result = handler(event)
            if inspect.isawaitable(result):
                task = asyncio.ensure_future(result)
                self._pending.add(task)
                task.add_done_callback(self._task_done)

        return listener

    def _task_done(self, task: asyncio.Task) -> None:
        self._pending.discard(task)
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            LOGGER.error("panel.events handler failed: %r", exc)

    async def drain(self) -> None:
        """Await every event handler scheduled so far (including ones they schedule)."""
        while self._pending:
            await asyncio.gather(*list(self._pending), return_exceptions=True)
            self._pending = {t for t in self._pending if not t.done()}

    def forget_tables(self, keep: Iterable[str] = ()) -> None:
        keep_set = set(keep)
        for tid in list(self._tables):
            if tid not in keep_set:
                self._tables.pop(tid, None)
