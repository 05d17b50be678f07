"""
TTL cache of attachment token -> resolved URL.

Entries expire lazily: nothing is evicted in the background, `get()` simply
refuses to return an entry once ``now >= expires_at``. The TTL is kept
shorter than the host's own URL validity window. Process lifetime only.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Iterable, List, Optional, Tuple

from attachpanel.exceptions import HostCallError

from .client import TableClient
from .models import ResolvedUrl

LOGGER = logging.getLogger(__name__)


class UrlCache:
    def __init__(self, ttl_seconds: float = 8 * 60, clock: Callable[[], float] = time.time):
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, ResolvedUrl] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def __len__(self) -> int:
        return len(self._entries)

    def get(self, token: str) -> Optional[ResolvedUrl]:
        entry = self._entries.get(token)
        if entry is None or not entry.is_valid(self._clock()):
            return None
        return entry

    def put(self, token: str, url: str) -> ResolvedUrl:
        entry = ResolvedUrl(url=url, expires_at=self._clock() + self._ttl)
        self._entries[token] = entry
        return entry

    def partition(self, tokens: Iterable[str]) -> Tuple[Dict[str, str], List[str]]:
        """Split ``tokens`` into unexpired hits (token -> url) and misses."""
        hits: Dict[str, str] = {}
        misses: List[str] = []
        for token in tokens:
            if token in hits or token in misses:
                continue
            entry = self.get(token)
            if entry is not None:
                hits[token] = entry.url
            else:
                misses.append(token)
        return hits, misses

    async def resolve(
        self,
        table: TableClient,
        tokens: Iterable[str],
        field_id: str,
        record_id: str,
    ) -> Dict[str, str]:
        """Return token -> url for every token that could be resolved.

        Misses are fetched in exactly one batched host call. A failed batch
        leaves the misses unresolved; cached hits are still returned.
        """
        urls, misses = self.partition(tokens)
        LOGGER.debug("panel.cache.partition hits=%d misses=%d", len(urls), len(misses))
        if not misses:
            return urls
        try:
            fetched = await table.attachment_urls(misses, field_id, record_id)
        except HostCallError as e:
            LOGGER.warning(
                "panel.cache.fetch_failed tokens=%d record=%s err=%s",
                len(misses),
                record_id,
                e,
            )
            return urls
        for token, url in zip(misses, fetched):
            if url:
                urls[token] = self.put(token, url).url
            else:
                LOGGER.debug("panel.cache.no_url token=%s", token)
        return urls

    async def refresh(
        self,
        table: TableClient,
        token: str,
        field_id: str,
        record_id: str,
    ) -> Optional[str]:
        """Unconditionally re-fetch one token and overwrite its entry."""
        try:
            fetched = await table.attachment_urls([token], field_id, record_id)
        except HostCallError as e:
            LOGGER.warning("panel.cache.refresh_failed token=%s err=%s", token, e)
            return None
        url = fetched[0] if fetched else None
        if not url:
            LOGGER.warning("panel.cache.refresh_empty token=%s", token)
            return None
        LOGGER.info("panel.cache.refreshed token=%s", token)
        return self.put(token, url).url
