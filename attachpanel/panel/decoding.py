from __future__ import annotations

import json
import logging
from typing import Any, List, Optional

from pydantic import ValidationError

from attachpanel.exceptions import DecodeFailure

from .models import AttachmentDescriptor, HostAttachment

LOGGER = logging.getLogger(__name__)


def _scalar_text(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _label_of(obj: dict) -> Optional[str]:
    for key in ("text", "name"):
        v = obj.get(key)
        if v is not None and v != "":
            return str(v)
    return None


def decode_display(value: Any) -> Optional[str]:
    """Normalize an opaque host cell value into a display string.

    - list   -> first element's ``text``/``name``, else the stringified list
    - dict   -> ``text``/``name``, else compact JSON
    - scalar -> ``str``
    - None / empty -> None (absent)
    """
    if value is None:
        return None
    if isinstance(value, (list, tuple)):
        if not value:
            return None
        first = value[0]
        if isinstance(first, dict):
            label = _label_of(first)
            if label is not None:
                return label
            return json.dumps(list(value), ensure_ascii=False, separators=(",", ":"))
        return ",".join(_scalar_text(v) for v in value if v is not None) or None
    if isinstance(value, dict):
        if not value:
            return None
        label = _label_of(value)
        if label is not None:
            return label
        return json.dumps(value, ensure_ascii=False, separators=(",", ":"))
    text = _scalar_text(value)
    return text if text != "" else None


def decode_attachments(value: Any) -> List[AttachmentDescriptor]:
    """Map an attachment cell value into descriptors.

    Entries that are not attachment-shaped are skipped; a non-list value is
    a DecodeFailure for the whole cell.
    """
    if value is None:
        return []
    if not isinstance(value, (list, tuple)):
        raise DecodeFailure(f"attachment cell is not a list: {type(value).__name__}")
    out: List[AttachmentDescriptor] = []
    for item in value:
        try:
            att = HostAttachment.model_validate(item)
        except ValidationError as e:
            LOGGER.debug("panel.decode.attachment_skipped err=%s", e.errors()[:1])
            continue
        out.append(
            AttachmentDescriptor(
                token=att.token,
                name=att.name,
                byte_size=att.size,
                mime_type=att.type,
                captured_at=att.captured_at(),
            )
        )
    return out
