"""Shared fixtures for the panel tests."""

import copy
import json
import os

from attachpanel.host import InMemoryHost

FIXTURE_PATH = os.path.join(os.path.dirname(__file__), "fixtures", "panel_snapshot.json")

with open(FIXTURE_PATH, "r", encoding="utf-8") as _f:
    _SNAPSHOT = json.load(_f)


def snapshot(**overrides):
    """A fresh copy of the fixture snapshot with top-level keys replaced."""
    data = copy.deepcopy(_SNAPSHOT)
    data.update(copy.deepcopy(overrides))
    return data


def make_host(**overrides) -> InMemoryHost:
    return InMemoryHost(snapshot(**overrides))


def dashboard(state, config=None):
    return {"dashboard": {"state": state, "config": config}}


DISPLAY_CONFIG = {
    "tableId": "tbl_clips",
    "viewId": "vew_all",
    "attachmentFieldId": "fld_media",
    "filterFieldId": "",
    "visibleFieldIds": ["fld_name", "fld_notes"],
    "title": "Review queue",
}


class FakeClock:
    def __init__(self, now=1_000_000.0):
        self.now = now

    def __call__(self):
        return self.now

    def advance(self, seconds):
        self.now += seconds
