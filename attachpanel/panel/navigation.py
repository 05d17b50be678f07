"""
Navigation and selection.

Two ways to move the selection:
  - host driven (inspector): follow the host's selection-change events
  - explicit paging (paged / dashboards): next/previous through record ids

Whatever moves it, only the last request may touch visible state. Each
resolution compares its own (field, record) against `PanelSession.selection`
when it completes and is dropped on mismatch. The underlying host call is
never cancelled.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from .domain import OperatingMode
from .models import HostSelection, RecordSet, ResolvedAttachments, Selection
from .resolver import AttachmentResolver
from .session import PanelSession

LOGGER = logging.getLogger(__name__)


class NavigationController:
    def __init__(self, session: PanelSession, resolver: AttachmentResolver):
        self._session = session
        self._resolver = resolver

    @property
    def session(self) -> PanelSession:
        return self._session

    def _is_current(self, request: Selection) -> bool:
        current = self._session.selection
        return (
            current is not None
            and current.table_id == request.table_id
            and current.key == request.key
        )

    def _field_name(self, field_id: Optional[str]) -> Optional[str]:
        schema = self._session.schema
        f = schema.get_field(field_id) if schema else None
        return f.name if f else None

    # ----------------------------- core select -------------------------------

    async def select(self, field_id: str, record_id: str) -> Optional[ResolvedAttachments]:
        """Resolve (field, record); returns None when superseded meanwhile."""
        table_id = self._session.table_id
        if not table_id:
            LOGGER.warning("panel.nav.select_without_table record=%s", record_id)
            return None
        request = Selection(
            table_id=table_id,
            field_id=field_id,
            record_id=record_id,
            view_id=self._session.view_id,
        )
        self._session.selection = request
        LOGGER.debug("panel.nav.request field=%s record=%s", field_id, record_id)

        result = await self._resolver.resolve(request)

        if not self._is_current(request):
            LOGGER.debug(
                "panel.nav.discard_stale field=%s record=%s", field_id, record_id
            )
            return None
        self._session.resolved = result
        self._session.field_label = self._field_name(field_id)
        return result

    def clear(self) -> None:
        """Drop the selection; in-flight resolutions will be discarded."""
        self._session.selection = None
        self._session.resolved = None
        self._session.current_index = -1

    async def refresh(self, token: str) -> Optional[str]:
        """Re-fetch a broken URL against the *current* selection."""
        request = self._session.selection
        if request is None:
            LOGGER.debug("panel.nav.refresh_without_selection token=%s", token)
            return None
        url = await self._resolver.refresh(token, request)
        if url and self._is_current(request) and self._session.resolved is not None:
            resolved = self._session.resolved
            self._session.resolved = replace(resolved, urls={**resolved.urls, token: url})
        return url

    # ---------------------------- explicit paging ----------------------------

    async def go_to(self, index: int) -> Optional[ResolvedAttachments]:
        ids = self._session.record_ids
        if index < 0 or index >= len(ids):
            LOGGER.debug("panel.nav.out_of_range index=%d size=%d", index, len(ids))
            return None
        field_id = self._session.attachment_field_id
        if not field_id:
            LOGGER.warning("panel.nav.no_attachment_field")
            return None
        self._session.current_index = index
        return await self.select(field_id, ids[index])

    async def next(self) -> Optional[ResolvedAttachments]:
        return await self.go_to(self._session.current_index + 1)

    async def previous(self) -> Optional[ResolvedAttachments]:
        if self._session.current_index <= 0:
            return None
        return await self.go_to(self._session.current_index - 1)

    async def select_record(self, record_id: str) -> Optional[ResolvedAttachments]:
        try:
            index = self._session.record_ids.index(record_id)
        except ValueError:
            LOGGER.debug("panel.nav.unknown_record record=%s", record_id)
            return None
        return await self.go_to(index)

    async def select_first_qualifying(self, records: RecordSet) -> Optional[ResolvedAttachments]:
        """Auto-select the first row with a playable attachment, or clear."""
        first = records.first_qualifying()
        if first is None:
            LOGGER.info("panel.nav.no_qualifying_rows rows=%d", len(records.rows))
            self.clear()
            return None
        LOGGER.info("panel.nav.auto_select record=%s", first.id)
        return await self.select_record(first.id)

    # ------------------------------ host driven ------------------------------

    async def on_host_selection(self, event: HostSelection) -> Optional[ResolvedAttachments]:
        if not event.record_id:
            return None
        session = self._session
        session.host_selection = event
        if session.mode is not OperatingMode.INSPECTOR:
            # Paged: follow the host cursor only within the known record list.
            return await self.select_record(event.record_id)

        schema = session.schema
        if schema is None or not session.table_id:
            return None
        record_id = event.record_id
        picked = schema.get_field(event.field_id)
        if picked is not None and picked.is_attachment:
            return await self.select(picked.id, record_id)

        request = Selection(
            table_id=session.table_id,
            field_id=event.field_id or "",
            record_id=record_id,
            view_id=event.view_id or session.view_id,
        )
        session.selection = request
        for candidate in schema.attachment_fields:
            found = await self._resolver.read_attachments(
                session.table_id, candidate.id, record_id
            )
            if not self._is_current(request):
                LOGGER.debug("panel.nav.discard_stale_scan record=%s", record_id)
                return None
            if found:
                return await self.select(candidate.id, record_id)

        LOGGER.debug("panel.nav.no_attachments record=%s", record_id)
        empty = ResolvedAttachments(selection=request)
        session.resolved = empty
        session.field_label = picked.name if picked else None
        return empty
