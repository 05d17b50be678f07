"""
High-level attachment panel.

Public API:
  - AttachmentPanel.start() -> PanelSession
  - AttachmentPanel.bind_table(table_id) -> bool / set_view(view_id)
  - AttachmentPanel.configure(config) / preview() / save()
  - AttachmentPanel.load_records() -> RecordSet
  - AttachmentPanel.select_record(record_id) / next() / previous()
  - AttachmentPanel.refresh_url(token) / verify_url(token)
  - AttachmentPanel.edit_cell(record_id, field_id, value)
  - AttachmentPanel.drain() / close()
  - AttachmentPanel.raw -> HostClient (escape hatch)

This module wires the components together around one `PanelSession` and
hides the host contract details.
"""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, List, Optional

from attachpanel.exceptions import PanelError, SchemaUnavailable
from attachpanel.host.protocol import Disposer, HostBridge

from .bootstrap import BootPlan, ModeBootstrapper
from .cache import UrlCache
from .client import HostClient
from .domain import OperatingMode
from .editing import CellEditArbiter
from .models import (
    DashboardConfig,
    HostSelection,
    Option,
    RecordSet,
    ResolvedAttachments,
)
from .navigation import NavigationController
from .options import PanelOptions
from .probe import UrlProbe
from .records import RecordLoader, RecordQuery
from .resolver import AttachmentResolver
from .schema import SchemaDiscovery
from .session import PanelSession

LOGGER = logging.getLogger(__name__)


class AttachmentPanel:
    """Data-binding and attachment-resolution core for one embedded panel."""

    def __init__(
        self,
        host: HostBridge,
        options: Optional[PanelOptions] = None,
        *,
        clock: Callable[[], float] = time.time,
        probe: Optional[UrlProbe] = None,
    ):
        self._options = options or PanelOptions()
        if self._options.debug:
            logging.getLogger("attachpanel").setLevel(logging.DEBUG)
        self._client = HostClient(host)
        self._cache = UrlCache(self._options.url_ttl_seconds, clock)
        self.session = PanelSession()
        self._schema = SchemaDiscovery(self._client)
        self._loader = RecordLoader(self._client, self._options)
        self._resolver = AttachmentResolver(self._client, self._cache, self._options)
        self._nav = NavigationController(self.session, self._resolver)
        self._editor = CellEditArbiter(self._client, self.session)
        self._boot = ModeBootstrapper(self._client, self._options)
        self._probe = probe
        self._disposers: List[Disposer] = []
        self._load_seq = 0
        self._bind_seq = 0
        self._event_seq = 0

    # ------------------------------ properties -------------------------------

    @property
    def mode(self) -> Optional[OperatingMode]:
        return self.session.mode

    @property
    def options(self) -> PanelOptions:
        return self._options

    @property
    def cache(self) -> UrlCache:
        return self._cache

    @property
    def navigation(self) -> NavigationController:
        return self._nav

    @property
    def raw(self) -> HostClient:
        """Escape hatch: the wrapped host client."""
        return self._client

    # ------------------------------- lifecycle -------------------------------

    async def start(self) -> PanelSession:
        session = self.session
        try:
            plan = await self._boot.detect()
        except SchemaUnavailable as e:
            session.error = str(e)
            return session

        try:
            await self._enter(plan)
        except SchemaUnavailable as e:
            if plan.mode is not OperatingMode.DASHBOARD_DISPLAY:
                session.error = str(e)
                return session
            LOGGER.warning("panel.start.display_binding_failed err=%s; falling back", e)
            try:
                fallback = await self._boot.standalone(plan.host_state)
                await self._enter(fallback)
            except SchemaUnavailable as e2:
                session.error = str(e2)
                return session

        self._subscribe()
        return session

    async def _enter(self, plan: BootPlan) -> None:
        session = self.session
        session.error = None
        session.mode = plan.mode
        if plan.config is not None:
            session.apply_config(plan.config)
        else:
            session.view_id = None
            session.attachment_field_id = None
            session.filter_field_id = None
            session.visible_field_ids = []
        if not await self.bind_table(plan.table_id):
            return

        if plan.mode is OperatingMode.DASHBOARD_DISPLAY:
            await self.load_records()
        elif plan.mode is OperatingMode.PAGED:
            await self._load_paged_ids()
        elif plan.mode is OperatingMode.INSPECTOR:
            await self._follow_current_selection()

    def _subscribe(self) -> None:
        mode = self.session.mode
        if mode in (OperatingMode.INSPECTOR, OperatingMode.PAGED):
            self._disposers.append(self._client.subscribe_selection(self._on_selection))
        if mode is not None and mode.is_dashboard:
            self._disposers.append(self._client.subscribe_config(self._on_config_change))
        self._disposers.append(self._client.subscribe_data_change(self._on_data_change))

    async def drain(self) -> None:
        await self._client.drain()

    def close(self) -> None:
        while self._disposers:
            dispose = self._disposers.pop()
            dispose()
        if self._probe is not None:
            self._probe.close()

    # -------------------------------- binding --------------------------------

    async def bind_table(self, table_id: str) -> bool:
        """Full schema discovery; invalidates the record set and selection.

        Returns False when a newer bind started before this one finished;
        the superseded bind leaves the session alone.
        """
        session = self.session
        LOGGER.info("panel.bind table=%s", table_id)
        self._bind_seq += 1
        self._load_seq += 1
        seq = self._bind_seq
        wanted_view = session.view_id
        wanted_field = session.attachment_field_id
        session.reset_binding()
        session.table_id = table_id
        self._client.forget_tables(keep=[table_id])
        try:
            schema = await self._schema.discover(table_id)
            view_ids = [v.id for v in schema.views]
            view_id = wanted_view if wanted_view in view_ids else None
            if view_id is None:
                view_id = await self._default_view(table_id, view_ids)
        except SchemaUnavailable as e:
            if not self._binding_is_current(seq, table_id):
                LOGGER.debug("panel.bind.discard_stale_error table=%s err=%s", table_id, e)
                return False
            raise
        if not self._binding_is_current(seq, table_id):
            LOGGER.debug("panel.bind.discard_stale table=%s", table_id)
            return False

        session.schema = schema
        attachment = schema.require_attachment_field(wanted_field)
        session.attachment_field_id = attachment.id
        session.view_id = view_id
        if session.filter_field_id and schema.get_field(session.filter_field_id) is None:
            LOGGER.warning("panel.bind.filter_field_missing field=%s", session.filter_field_id)
            session.filter_field_id = None
        return True

    def _binding_is_current(self, seq: int, table_id: str) -> bool:
        return seq == self._bind_seq and self.session.table_id == table_id

    async def _default_view(self, table_id: str, view_ids: List[str]) -> Optional[str]:
        try:
            table = await self._client.table(table_id)
            active = await table.active_view_id()
        except PanelError:
            active = None
        if active in view_ids:
            return active
        return view_ids[0] if view_ids else None

    async def set_view(self, view_id: str) -> None:
        """Switch view: fields are re-read, the table schema is kept."""
        session = self.session
        if session.schema is None:
            raise PanelError("No table is bound")
        session.view_id = view_id
        schema = session.schema
        refreshed = await self._schema.refresh_fields(schema, view_id)
        if session.schema is not schema or session.view_id != view_id:
            LOGGER.debug("panel.view.discard_stale view=%s", view_id)
            return
        session.schema = refreshed
        if session.mode is OperatingMode.PAGED:
            await self._load_paged_ids()

    async def table_options(self) -> List[Option]:
        tables = await self._client.list_tables()
        return [Option(value=t.id, label=t.name) for t in tables]

    # ---------------------------- configuration ------------------------------

    async def configure(self, config: DashboardConfig) -> None:
        """Apply an authoring-form change; records load on `preview()`."""
        session = self.session
        table_changed = config.table_id != session.table_id
        view_changed = config.view_id != session.view_id
        session.apply_config(config)
        if table_changed:
            await self.bind_table(config.table_id)
        elif view_changed:
            await self.set_view(config.view_id)

    async def preview(self) -> RecordSet:
        return await self.load_records()

    async def save(self) -> DashboardConfig:
        config = self.session.to_config()
        if config is None:
            raise PanelError("Table, view and attachment field must be chosen before saving")
        await self._client.save_dashboard_config(config)
        return config

    # -------------------------------- records --------------------------------

    async def load_records(self) -> RecordSet:
        """Load the configured view and auto-select the first playable row."""
        session = self.session
        if session.schema is None or not (session.table_id and session.view_id):
            raise PanelError("Table and view must be bound before loading records")
        self._load_seq += 1
        seq = self._load_seq
        query = RecordQuery(
            table_id=session.table_id,
            view_id=session.view_id,
            attachment_field_id=session.attachment_field_id or "",
            filter_field_id=session.filter_field_id,
            visible_field_ids=tuple(session.visible_field_ids),
        )
        try:
            records = await self._loader.load(session.schema, query)
        except SchemaUnavailable as e:
            if seq == self._load_seq:
                session.error = str(e)
                session.records = RecordSet(rows=[])
                session.record_ids = []
                self._nav.clear()
            raise
        if seq != self._load_seq:
            LOGGER.debug("panel.records.discard_stale_load seq=%d", seq)
            return records
        session.error = None
        session.records = records
        session.record_ids = records.ids()
        await self._nav.select_first_qualifying(records)
        return records

    async def _load_paged_ids(self) -> None:
        session = self.session
        if not session.view_id:
            raise SchemaUnavailable("The current table has no view")
        try:
            table = await self._client.table(session.table_id or "")
            ids = await table.visible_record_ids(session.view_id)
        except PanelError as e:
            raise SchemaUnavailable(f"Cannot list records of view {session.view_id}") from e
        session.record_ids = ids
        session.current_index = -1
        start = 0
        try:
            current = await self._client.selection()
            if current.record_id in ids:
                start = ids.index(current.record_id)
        except PanelError:
            LOGGER.debug("panel.paged.no_host_selection")
        await self._nav.go_to(start)

    async def _follow_current_selection(self) -> None:
        try:
            current = await self._client.selection()
        except PanelError:
            LOGGER.debug("panel.inspector.no_host_selection")
            return
        if current.record_id and current.table_id in (None, self.session.table_id):
            await self._nav.on_host_selection(current)

    # ------------------------------ navigation -------------------------------

    async def select_record(self, record_id: str) -> Optional[ResolvedAttachments]:
        return await self._nav.select_record(record_id)

    async def next(self) -> Optional[ResolvedAttachments]:
        return await self._nav.next()

    async def previous(self) -> Optional[ResolvedAttachments]:
        return await self._nav.previous()

    async def refresh_url(self, token: str) -> Optional[str]:
        return await self._nav.refresh(token)

    async def verify_url(self, token: str) -> Optional[str]:
        """Probe the current URL for ``token``; refresh it when broken."""
        resolved = self.session.resolved
        url = resolved.urls.get(token) if resolved else None
        if url is None:
            return await self.refresh_url(token)
        if self._probe is None:
            self._probe = UrlProbe(timeout=self._options.probe_timeout_seconds)
        reachable = await asyncio.to_thread(self._probe.is_reachable, url)
        if reachable:
            return url
        LOGGER.info("panel.verify.broken token=%s", token)
        return await self.refresh_url(token)

    # -------------------------------- editing --------------------------------

    async def edit_cell(self, record_id: str, field_id: str, value: Optional[str]) -> None:
        await self._editor.edit(record_id, field_id, value)

    # -------------------------------- events ---------------------------------

    async def _on_selection(self, event: HostSelection) -> None:
        session = self.session
        if (
            session.mode is OperatingMode.INSPECTOR
            and event.table_id
            and event.table_id != session.table_id
        ):
            try:
                if not await self.bind_table(event.table_id):
                    return
            except SchemaUnavailable as e:
                session.error = str(e)
                return
            session.error = None
        await self._nav.on_host_selection(event)

    async def _on_config_change(self, config: Optional[DashboardConfig]) -> None:
        if config is None:
            return
        session = self.session
        self._event_seq += 1
        seq = self._event_seq
        table_changed = config.table_id != session.table_id
        view_changed = config.view_id != session.view_id
        session.apply_config(config)
        try:
            if table_changed:
                if not await self.bind_table(config.table_id):
                    return
            elif view_changed:
                await self.set_view(config.view_id)
            await self.load_records()
        except SchemaUnavailable as e:
            self._report_event_error(seq, e)

    async def _on_data_change(self) -> None:
        session = self.session
        self._event_seq += 1
        seq = self._event_seq
        try:
            if session.mode is not None and session.mode.is_dashboard:
                if session.mode is OperatingMode.DASHBOARD_AUTHORING and not session.records.rows:
                    return
                await self.load_records()
            elif session.mode is OperatingMode.PAGED:
                await self._load_paged_ids()
            elif session.mode is OperatingMode.INSPECTOR and self._replayable(
                session.host_selection
            ):
                # Raw event, not the field a previous scan settled on.
                await self._nav.on_host_selection(session.host_selection)
            elif session.selection is not None:
                await self._nav.select(session.selection.field_id, session.selection.record_id)
        except SchemaUnavailable as e:
            self._report_event_error(seq, e)

    def _replayable(self, event: Optional[HostSelection]) -> bool:
        return (
            event is not None
            and bool(event.record_id)
            and event.table_id in (None, self.session.table_id)
        )

    def _report_event_error(self, seq: int, error: SchemaUnavailable) -> None:
        if seq != self._event_seq:
            LOGGER.debug("panel.events.discard_stale_error err=%s", error)
            return
        self.session.error = str(error)
