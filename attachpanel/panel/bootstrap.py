"""
Operating mode detection.

Order of preference:
  1. host dashboard in an authoring state -> DashboardAuthoring on the
     saved config (if any) or the first table
  2. host dashboard in a display state with a loadable config -> DashboardDisplay
  3. anything else (no dashboard, host error, missing or broken config)
     -> Inspector (or Paged when preferred) on the active table

Every host call degrades the mode on failure; only "no table at all" is an
error.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

from attachpanel.exceptions import HostCallError, SchemaUnavailable

from .client import HostClient
from .domain import AUTHORING_STATES, DISPLAY_STATES, OperatingMode
from .models import DashboardConfig
from .options import PanelOptions

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class BootPlan:
    mode: OperatingMode
    table_id: str
    config: Optional[DashboardConfig] = None
    host_state: Optional[str] = None


class ModeBootstrapper:
    def __init__(self, client: HostClient, options: Optional[PanelOptions] = None):
        self._client = client
        self._options = options or PanelOptions()

    async def detect(self) -> BootPlan:
        try:
            state = await self._client.dashboard_state()
        except HostCallError as e:
            LOGGER.info("panel.boot.no_dashboard err=%s", e)
            state = None

        normalized = (state or "").strip().lower()
        if normalized in AUTHORING_STATES:
            plan = await self._authoring(state)
            if plan is not None:
                return plan
        elif normalized in DISPLAY_STATES:
            plan = await self._display(state)
            if plan is not None:
                return plan
        elif state:
            LOGGER.warning("panel.boot.unknown_dashboard_state state=%s", state)

        return await self.standalone(state)

    async def _load_config(self) -> Optional[DashboardConfig]:
        try:
            return await self._client.dashboard_config()
        except HostCallError as e:
            LOGGER.warning("panel.boot.config_unavailable err=%s", e)
            return None

    async def _authoring(self, state: Optional[str]) -> Optional[BootPlan]:
        config = await self._load_config()
        if config is not None:
            LOGGER.info("panel.boot.mode authoring table=%s (saved config)", config.table_id)
            return BootPlan(OperatingMode.DASHBOARD_AUTHORING, config.table_id, config, state)
        try:
            tables = await self._client.list_tables()
        except HostCallError as e:
            LOGGER.warning("panel.boot.list_tables_failed err=%s", e)
            return None
        if not tables:
            LOGGER.warning("panel.boot.no_tables")
            return None
        LOGGER.info("panel.boot.mode authoring table=%s (first table)", tables[0].id)
        return BootPlan(OperatingMode.DASHBOARD_AUTHORING, tables[0].id, None, state)

    async def _display(self, state: Optional[str]) -> Optional[BootPlan]:
        config = await self._load_config()
        if config is None:
            LOGGER.info("panel.boot.display_without_config; falling back")
            return None
        LOGGER.info("panel.boot.mode display table=%s", config.table_id)
        return BootPlan(OperatingMode.DASHBOARD_DISPLAY, config.table_id, config, state)

    async def standalone(self, state: Optional[str]) -> BootPlan:
        mode = OperatingMode.PAGED if self._options.prefer_paging else OperatingMode.INSPECTOR
        table_id: Optional[str] = None
        try:
            table_id = await self._client.active_table_id()
        except HostCallError as e:
            LOGGER.warning("panel.boot.active_table_failed err=%s", e)
        if not table_id:
            try:
                tables = await self._client.list_tables()
                table_id = tables[0].id if tables else None
            except HostCallError as e:
                LOGGER.warning("panel.boot.list_tables_failed err=%s", e)
        if not table_id:
            LOGGER.error("panel.boot.no_table")
            raise SchemaUnavailable("No table is available to bind")
        LOGGER.info("panel.boot.mode %s table=%s", mode.value, table_id)
        return BootPlan(mode, table_id, None, state)
