from __future__ import annotations

import os

from pydantic import BaseModel, ConfigDict

from attachpanel.utils import underscore_to_camelcase


def _env_extra_mode(default: str = "ignore") -> str:
    """
    Determine the extra-mode from environment vars.

    ATTACHPANEL_EXTRA: allow|forbid|ignore
    Convenience booleans: "true/1/on" -> forbid (strict), "false/0/off" -> allow
    """
    raw = (os.getenv("ATTACHPANEL_EXTRA") or default).strip().lower()

    if raw in {"allow", "forbid", "ignore"}:
        return raw

    if raw in {"1", "true", "yes", "on", "strict"}:
        return "forbid"
    if raw in {"0", "false", "no", "off", "lenient"}:
        return "allow"

    return default


_EXTRA = _env_extra_mode()


class HostModel(BaseModel):
    """
    Project-wide base model for host payloads.

    Host payloads use camelCase keys; snake_case is accepted too. Unknown
    keys are ignored unless ATTACHPANEL_EXTRA says otherwise (set before import).
    """

    model_config = ConfigDict(
        extra=_EXTRA,
        alias_generator=underscore_to_camelcase,
        populate_by_name=True,
    )


__all__ = ["HostModel", "_env_extra_mode"]
