"""Reachability check for resolved attachment URLs."""

from __future__ import annotations

import logging
from typing import Optional

import requests

LOGGER = logging.getLogger(__name__)


class UrlProbe:
    """HEAD a resolved URL; any HTTP error or transport failure means broken."""

    def __init__(self, session: Optional[requests.Session] = None, timeout: float = 5.0):
        self._session = session or requests.Session()
        self._timeout = timeout

    def is_reachable(self, url: str) -> bool:
        try:
            resp = self._session.head(url, allow_redirects=True, timeout=self._timeout)
        except requests.RequestException as e:
            LOGGER.warning("panel.probe.transport_error url=%s err=%s", url, e)
            return False
        code = getattr(resp, "status_code", 0)
        LOGGER.debug("panel.probe.status url=%s code=%d", url, code)
        return 0 < code < 400

    def close(self) -> None:
        self._session.close()
