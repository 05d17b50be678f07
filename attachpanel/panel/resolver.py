"""Attachment resolution for one (table, field, record) selection."""

from __future__ import annotations

import logging
from typing import List, Optional

from attachpanel.exceptions import DecodeFailure, HostCallError

from .cache import UrlCache
from .client import HostClient
from .decoding import decode_attachments
from .models import AttachmentDescriptor, ResolvedAttachments, Selection
from .options import PanelOptions

LOGGER = logging.getLogger(__name__)


class AttachmentResolver:
    def __init__(
        self,
        client: HostClient,
        cache: UrlCache,
        options: Optional[PanelOptions] = None,
    ):
        self._client = client
        self._cache = cache
        self._options = options or PanelOptions()

    async def read_attachments(self, table_id: str, field_id: str, record_id: str) -> List[AttachmentDescriptor]:
        """Decode the raw attachment cell. Read or decode failures yield []."""
        try:
            table = await self._client.table(table_id)
            raw = await table.cell_value(field_id, record_id)
            return decode_attachments(raw)
        except (HostCallError, DecodeFailure) as e:
            LOGGER.warning(
                "panel.resolver.read_failed field=%s record=%s err=%s",
                field_id,
                record_id,
                e,
            )
            return []

    def pick_current(self, attachments: List[AttachmentDescriptor]) -> Optional[AttachmentDescriptor]:
        for att in attachments:
            if self._options.is_video(att.mime_type, att.name):
                return att
        return None

    async def resolve(self, selection: Selection) -> ResolvedAttachments:
        attachments = await self.read_attachments(
            selection.table_id, selection.field_id, selection.record_id
        )
        if not attachments:
            LOGGER.debug("panel.resolver.empty record=%s", selection.record_id)
            return ResolvedAttachments(selection=selection)

        table = await self._client.table(selection.table_id)
        urls = await self._cache.resolve(
            table,
            [a.token for a in attachments],
            selection.field_id,
            selection.record_id,
        )
        current = self.pick_current(attachments)
        LOGGER.info(
            "panel.resolver.resolved record=%s attachments=%d urls=%d current=%s",
            selection.record_id,
            len(attachments),
            len(urls),
            current.name if current else None,
        )
        return ResolvedAttachments(
            selection=selection,
            attachments=attachments,
            current=current,
            urls=urls,
        )

    async def refresh(self, token: str, selection: Selection) -> Optional[str]:
        """Re-fetch ``token`` against ``selection`` (the current one, not the token's origin)."""
        try:
            table = await self._client.table(selection.table_id)
        except HostCallError as e:
            LOGGER.warning("panel.resolver.refresh_failed token=%s err=%s", token, e)
            return None
        return await self._cache.refresh(
            table, token, selection.field_id, selection.record_id
        )
