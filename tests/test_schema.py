"""Tests for schema discovery."""

import unittest

from attachpanel.exceptions import SchemaUnavailable
from attachpanel.panel.client import HostClient
from attachpanel.panel.domain import FieldKind
from attachpanel.panel.schema import SchemaDiscovery
from support import make_host


class SchemaDiscoveryTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.host = make_host()
        self.discovery = SchemaDiscovery(HostClient(self.host))

    async def test_fields_are_classified(self):
        """Test fields are classified."""
        schema = await self.discovery.discover("tbl_clips")
        kinds = {f.id: f.kind for f in schema.fields}
        self.assertIs(kinds["fld_name"], FieldKind.TEXT)
        self.assertIs(kinds["fld_media"], FieldKind.ATTACHMENT)
        self.assertIs(kinds["fld_status"], FieldKind.SINGLE_SELECT)
        self.assertIs(kinds["fld_score"], FieldKind.UNSUPPORTED)
        self.assertNotIn("fld_score", [f.id for f in schema.supported_fields])

    async def test_attachment_and_primary_fields(self):
        """Test attachment and primary fields."""
        schema = await self.discovery.discover("tbl_clips")
        self.assertEqual([f.id for f in schema.attachment_fields], ["fld_media", "fld_extra"])
        self.assertEqual(schema.primary_field.id, "fld_name")
        self.assertEqual(
            [(o.value, o.label) for o in schema.attachment_field_options],
            [("fld_media", "Media"), ("fld_extra", "Extra files")],
        )

    async def test_select_options_are_kept(self):
        """Test select options are kept."""
        schema = await self.discovery.discover("tbl_clips")
        status = schema.get_field("fld_status")
        self.assertEqual([o.name for o in status.options], ["待审核", "审核通过"])
        self.assertEqual(status.option_by_name("审核通过").id, "opt_approved")
        self.assertIsNone(status.option_by_name("rejected"))

    async def test_views_become_options(self):
        """Test views become options."""
        schema = await self.discovery.discover("tbl_clips")
        self.assertEqual(
            [(o.value, o.label) for o in schema.view_options],
            [("vew_all", "All clips"), ("vew_pending", "Pending")],
        )

    async def test_require_attachment_field_falls_back_to_first(self):
        """Test require attachment field falls back to first."""
        schema = await self.discovery.discover("tbl_clips")
        self.assertEqual(schema.require_attachment_field("fld_extra").id, "fld_extra")
        self.assertEqual(schema.require_attachment_field("fld_name").id, "fld_media")
        self.assertEqual(schema.require_attachment_field(None).id, "fld_media")

    async def test_table_without_attachment_field(self):
        """Test a table without an attachment field."""
        schema = await self.discovery.discover("tbl_plain")
        with self.assertRaises(SchemaUnavailable):
            schema.require_attachment_field()

    async def test_unknown_table_is_unavailable(self):
        """Test unknown table is unavailable."""
        with self.assertRaises(SchemaUnavailable):
            await self.discovery.discover("tbl_missing")

    async def test_field_listing_failure_is_unavailable(self):
        """Test field listing failure is unavailable."""
        self.host.table("tbl_clips").fail_fields = True
        with self.assertRaises(SchemaUnavailable):
            await self.discovery.discover("tbl_clips")

    async def test_refresh_fields_keeps_views(self):
        """Test refresh fields keeps views."""
        schema = await self.discovery.discover("tbl_clips")
        self.host.table("tbl_clips").fields.append({"id": "fld_new", "name": "New", "type": 1})
        refreshed = await self.discovery.refresh_fields(schema, "vew_pending")
        self.assertEqual(refreshed.view_id, "vew_pending")
        self.assertEqual(refreshed.views, schema.views)
        self.assertIsNotNone(refreshed.get_field("fld_new"))
        self.assertIsNone(schema.get_field("fld_new"))


if __name__ == "__main__":
    unittest.main()
