# attachpanel/panel/domain.py
from __future__ import annotations

from enum import Enum, IntEnum
from typing import Dict, Iterable, Optional

VIDEO_EXTENSIONS: tuple[str, ...] = ("mp4", "webm", "mov", "avi", "mkv")
IMAGE_EXTENSIONS: tuple[str, ...] = ("jpg", "jpeg", "png", "gif", "webp", "bmp", "svg")


class HostFieldType(IntEnum):
    """Numeric field type codes reported by the host table API."""

    TEXT = 1
    NUMBER = 2
    SINGLE_SELECT = 3
    MULTI_SELECT = 4
    DATE_TIME = 5
    CHECKBOX = 7
    USER = 11
    PHONE = 13
    URL = 15
    ATTACHMENT = 17
    SINGLE_LINK = 18
    LOOKUP = 19
    FORMULA = 20
    DUPLEX_LINK = 21
    LOCATION = 22
    GROUP_CHAT = 23
    CREATED_TIME = 1001
    MODIFIED_TIME = 1002
    CREATED_USER = 1003
    MODIFIED_USER = 1004
    AUTO_NUMBER = 1005
    BUTTON = 3001
    BARCODE = 99001
    PROGRESS = 99002
    CURRENCY = 99003
    RATING = 99004
    EMAIL = 99005


class FieldKind(str, Enum):
    TEXT = "text"
    NUMBER = "number"
    SINGLE_SELECT = "single_select"
    MULTI_SELECT = "multi_select"
    DATE = "date"
    CHECKBOX = "checkbox"
    PERSON = "person"
    URL = "url"
    ATTACHMENT = "attachment"
    UNSUPPORTED = "unsupported"

    @classmethod
    def from_host_type(cls, code: Optional[int]) -> "FieldKind":
        if code is None:
            return cls.UNSUPPORTED
        return _HOST_TYPE_KINDS.get(int(code), cls.UNSUPPORTED)


# Anything missing here (buttons, lookups, formulas, created/modified
# stamps and actors, auto numbers, unknown codes) is unsupported.
_HOST_TYPE_KINDS: Dict[int, FieldKind] = {
    HostFieldType.TEXT: FieldKind.TEXT,
    HostFieldType.PHONE: FieldKind.TEXT,
    HostFieldType.BARCODE: FieldKind.TEXT,
    HostFieldType.EMAIL: FieldKind.TEXT,
    HostFieldType.LOCATION: FieldKind.TEXT,
    HostFieldType.SINGLE_LINK: FieldKind.TEXT,
    HostFieldType.DUPLEX_LINK: FieldKind.TEXT,
    HostFieldType.GROUP_CHAT: FieldKind.TEXT,
    HostFieldType.NUMBER: FieldKind.NUMBER,
    HostFieldType.PROGRESS: FieldKind.NUMBER,
    HostFieldType.CURRENCY: FieldKind.NUMBER,
    HostFieldType.RATING: FieldKind.NUMBER,
    HostFieldType.SINGLE_SELECT: FieldKind.SINGLE_SELECT,
    HostFieldType.MULTI_SELECT: FieldKind.MULTI_SELECT,
    HostFieldType.DATE_TIME: FieldKind.DATE,
    HostFieldType.CHECKBOX: FieldKind.CHECKBOX,
    HostFieldType.USER: FieldKind.PERSON,
    HostFieldType.URL: FieldKind.URL,
    HostFieldType.ATTACHMENT: FieldKind.ATTACHMENT,
}


class MediaKind(str, Enum):
    VIDEO = "video"
    IMAGE = "image"
    OTHER = "other"


class OperatingMode(str, Enum):
    INSPECTOR = "inspector"
    PAGED = "paged"
    DASHBOARD_AUTHORING = "dashboard_authoring"
    DASHBOARD_DISPLAY = "dashboard_display"

    @property
    def is_dashboard(self) -> bool:
        return self in (OperatingMode.DASHBOARD_AUTHORING, OperatingMode.DASHBOARD_DISPLAY)


# Host dashboard states. Create/Config are authoring, View/FullScreen display.
AUTHORING_STATES = frozenset({"create", "config"})
DISPLAY_STATES = frozenset({"view", "fullscreen"})


def _extension(name: Optional[str]) -> str:
    if not name or "." not in name:
        return ""
    return name.rsplit(".", 1)[1].lower()


def classify_media(
    mime_type: Optional[str],
    name: Optional[str],
    *,
    video_extensions: Iterable[str] = VIDEO_EXTENSIONS,
    image_extensions: Iterable[str] = IMAGE_EXTENSIONS,
) -> MediaKind:
    """MIME prefix first, then the filename extension (case-insensitive)."""
    mime = (mime_type or "").strip().lower()
    if mime.startswith("video/"):
        return MediaKind.VIDEO
    if mime.startswith("image/"):
        return MediaKind.IMAGE
    ext = _extension(name)
    if ext and ext in {e.lower().lstrip(".") for e in video_extensions}:
        return MediaKind.VIDEO
    if ext and ext in {e.lower().lstrip(".") for e in image_extensions}:
        return MediaKind.IMAGE
    return MediaKind.OTHER
