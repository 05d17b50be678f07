"""Tests for operating mode detection."""

import unittest

from attachpanel.exceptions import SchemaUnavailable
from attachpanel.panel.bootstrap import ModeBootstrapper
from attachpanel.panel.client import HostClient
from attachpanel.panel.domain import OperatingMode
from attachpanel.panel.options import PanelOptions
from support import DISPLAY_CONFIG, dashboard, make_host


class ModeBootstrapperTest(unittest.IsolatedAsyncioTestCase):
    async def detect(self, host, options=None):
        return await ModeBootstrapper(HostClient(host), options).detect()

    async def test_no_dashboard_is_inspector_on_active_table(self):
        """Test that without a dashboard the panel inspects the active table."""
        plan = await self.detect(make_host())
        self.assertIs(plan.mode, OperatingMode.INSPECTOR)
        self.assertEqual(plan.table_id, "tbl_clips")
        self.assertIsNone(plan.config)

    async def test_no_dashboard_prefers_paging_when_asked(self):
        """Test no dashboard prefers paging when asked."""
        plan = await self.detect(make_host(), PanelOptions(prefer_paging=True))
        self.assertIs(plan.mode, OperatingMode.PAGED)

    async def test_config_state_with_saved_config(self):
        """Test the config state reopens the saved config for authoring."""
        plan = await self.detect(make_host(**dashboard("Config", DISPLAY_CONFIG)))
        self.assertIs(plan.mode, OperatingMode.DASHBOARD_AUTHORING)
        self.assertEqual(plan.config.view_id, "vew_all")
        self.assertEqual(plan.host_state, "Config")

    async def test_create_state_uses_first_table(self):
        """Test create state uses first table."""
        host = make_host(active={"tableId": "tbl_archive"}, **dashboard("Create"))
        plan = await self.detect(host)
        self.assertIs(plan.mode, OperatingMode.DASHBOARD_AUTHORING)
        self.assertEqual(plan.table_id, "tbl_clips")
        self.assertIsNone(plan.config)

    async def test_view_state_with_config_is_display(self):
        """Test the view state with a config starts in display mode."""
        plan = await self.detect(make_host(**dashboard("View", DISPLAY_CONFIG)))
        self.assertIs(plan.mode, OperatingMode.DASHBOARD_DISPLAY)
        self.assertEqual(plan.config.attachment_field_id, "fld_media")
        self.assertIsNone(plan.config.filter_field_id)
        self.assertEqual(plan.config.title, "Review queue")

    async def test_fullscreen_is_display(self):
        """Test the fullscreen state starts in display mode."""
        plan = await self.detect(make_host(**dashboard("FullScreen", DISPLAY_CONFIG)))
        self.assertIs(plan.mode, OperatingMode.DASHBOARD_DISPLAY)

    async def test_display_without_config_falls_back(self):
        """Test display without config falls back."""
        plan = await self.detect(make_host(**dashboard("View")))
        self.assertIs(plan.mode, OperatingMode.INSPECTOR)
        self.assertEqual(plan.table_id, "tbl_clips")

    async def test_display_with_unreadable_config_falls_back(self):
        """Test display with unreadable config falls back."""
        host = make_host(**dashboard("View", DISPLAY_CONFIG))
        host.fail_dashboard_config = True
        plan = await self.detect(host)
        self.assertIs(plan.mode, OperatingMode.INSPECTOR)

    async def test_display_with_malformed_config_falls_back(self):
        """Test display with malformed config falls back."""
        plan = await self.detect(make_host(**dashboard("View", {"title": "no table"})))
        self.assertIs(plan.mode, OperatingMode.INSPECTOR)

    async def test_unknown_state_falls_back(self):
        """Test unknown state falls back."""
        plan = await self.detect(make_host(**dashboard("Archived", DISPLAY_CONFIG)))
        self.assertIs(plan.mode, OperatingMode.INSPECTOR)

    async def test_missing_active_table_uses_first_table(self):
        """Test missing active table uses first table."""
        host = make_host()
        host.active_table_id = None
        plan = await self.detect(host)
        self.assertEqual(plan.table_id, "tbl_clips")

    async def test_no_table_at_all(self):
        """Test startup fails when the host has no table."""
        with self.assertRaises(SchemaUnavailable):
            await self.detect(make_host(tables=[], active={}))

    async def test_authoring_without_tables_is_an_error(self):
        """Test authoring without tables is an error."""
        with self.assertRaises(SchemaUnavailable):
            await self.detect(make_host(tables=[], active={}, **dashboard("Create")))


if __name__ == "__main__":
    unittest.main()
