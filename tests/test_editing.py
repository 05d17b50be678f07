"""Tests for cell edits and the optimistic patch."""

import asyncio
import unittest

from attachpanel.exceptions import PanelError, WriteFailure
from attachpanel.panel.client import HostClient
from attachpanel.panel.editing import CellEditArbiter, encode_cell_value
from attachpanel.panel.records import RecordLoader, RecordQuery
from attachpanel.panel.schema import SchemaDiscovery
from attachpanel.panel.session import PanelSession
from support import make_host


class CellEditArbiterTest(unittest.IsolatedAsyncioTestCase):
    async def asyncSetUp(self):
        self.host = make_host()
        self.raw_table = self.host.table("tbl_clips")
        self.client = HostClient(self.host)
        schema = await SchemaDiscovery(self.client).discover("tbl_clips")
        self.loader = RecordLoader(self.client)
        self.query = RecordQuery(
            table_id="tbl_clips", view_id="vew_all", attachment_field_id="fld_media"
        )
        self.session = PanelSession(
            table_id="tbl_clips",
            view_id="vew_all",
            attachment_field_id="fld_media",
            schema=schema,
            records=await self.loader.load(schema, self.query),
        )
        self.arbiter = CellEditArbiter(self.client, self.session)

    async def reload(self):
        return await self.loader.load(self.session.schema, self.query)

    async def test_single_select_label_is_written_as_option_id(self):
        """Test single select label is written as option id."""
        await self.arbiter.edit("rec_alpha", "fld_status", "审核通过")
        self.assertEqual(self.raw_table.writes, [("fld_status", "rec_alpha", "opt_approved")])
        self.assertEqual(self.session.row("rec_alpha").value("fld_status"), "审核通过")

        reloaded = await self.reload()
        self.assertEqual(reloaded.get("rec_alpha").value("fld_status"), "审核通过")

    async def test_unknown_option_label_is_written_raw(self):
        """Test unknown option label is written raw."""
        await self.arbiter.edit("rec_alpha", "fld_status", "rejected")
        self.assertEqual(self.raw_table.writes, [("fld_status", "rec_alpha", "rejected")])
        self.assertEqual(self.session.row("rec_alpha").value("fld_status"), "rejected")

        reloaded = await self.reload()
        self.assertEqual(reloaded.get("rec_alpha").value("fld_status"), "rejected")

    async def test_plain_text_becomes_segments(self):
        """Test plain text becomes segments."""
        await self.arbiter.edit("rec_alpha", "fld_notes", "second take")
        self.assertEqual(
            self.raw_table.writes,
            [("fld_notes", "rec_alpha", [{"type": "text", "text": "second take"}])],
        )
        reloaded = await self.reload()
        self.assertEqual(reloaded.get("rec_alpha").value("fld_notes"), "second take")

    async def test_other_kinds_are_written_unchanged(self):
        """Test other kinds are written unchanged."""
        await self.arbiter.edit("rec_beta", "fld_duration", "31")
        self.assertEqual(self.raw_table.writes, [("fld_duration", "rec_beta", "31")])

    async def test_patch_is_visible_before_the_write_completes(self):
        """Test patch is visible before the write completes."""
        pending = asyncio.ensure_future(self.arbiter.edit("rec_alpha", "fld_notes", "draft"))
        await asyncio.sleep(0)
        self.assertEqual(self.session.row("rec_alpha").value("fld_notes"), "draft")
        self.assertEqual(self.raw_table.writes, [])
        await pending
        self.assertEqual(len(self.raw_table.writes), 1)

    async def test_failed_write_reverts_optimistic_patch(self):
        """Test failed write reverts optimistic patch."""
        self.raw_table.fail_writes.add(("fld_notes", "rec_alpha"))
        with self.assertRaises(WriteFailure) as ctx:
            await self.arbiter.edit("rec_alpha", "fld_notes", "lost edit")
        self.assertEqual(self.session.row("rec_alpha").value("fld_notes"), "first take")
        self.assertEqual(ctx.exception.previous, "first take")
        self.assertEqual(ctx.exception.record_id, "rec_alpha")
        self.assertEqual(ctx.exception.field_id, "fld_notes")
        self.assertEqual(self.raw_table.writes, [])

    async def test_failed_write_reverts_to_absent_value(self):
        """Test failed write reverts to absent value."""
        self.raw_table.fail_writes.add(("fld_notes", "rec_beta"))
        with self.assertRaises(WriteFailure):
            await self.arbiter.edit("rec_beta", "fld_notes", "new")
        self.assertIsNone(self.session.row("rec_beta").value("fld_notes"))

    async def test_record_outside_loaded_rows_is_still_written(self):
        """Test record outside loaded rows is still written."""
        self.session.records.rows.remove(self.session.row("rec_gamma"))
        await self.arbiter.edit("rec_gamma", "fld_notes", "late note")
        self.assertEqual(len(self.raw_table.writes), 1)

    async def test_rejected_fields(self):
        """Test edits to unknown or unsupported fields are rejected."""
        for field_id in ("fld_missing", "fld_media", "fld_score"):
            with self.subTest(field_id=field_id):
                with self.assertRaises(PanelError):
                    await self.arbiter.edit("rec_alpha", field_id, "x")
        self.assertEqual(self.raw_table.writes, [])

    def test_clearing_encodes_none(self):
        """Test clearing a cell writes None."""
        field = self.session.schema.get_field("fld_status")
        self.assertIsNone(encode_cell_value(field, None))


if __name__ == "__main__":
    unittest.main()
