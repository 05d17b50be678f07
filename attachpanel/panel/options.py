"""
Panel configuration.

Centralizes behavior flags so callers can tune defaults without touching
core logic. `PanelOptions.from_env()` applies environment overrides.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Callable, Optional, Tuple

from .domain import IMAGE_EXTENSIONS, VIDEO_EXTENSIONS, MediaKind, classify_media

APPROVED_SENTINEL = "审核通过"


def _env_bool(name: str) -> Optional[bool]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _env_extensions(name: str) -> Optional[Tuple[str, ...]]:
    raw = os.getenv(name)
    if raw is None:
        return None
    return tuple(e.strip().lstrip(".").lower() for e in raw.split(",") if e.strip())


@dataclass(frozen=True)
class PanelOptions:
    # Cached URLs must expire before the host stops honouring them.
    url_ttl_seconds: float = 8 * 60
    host_url_validity_seconds: float = 10 * 60

    video_extensions: Tuple[str, ...] = VIDEO_EXTENSIONS
    image_extensions: Tuple[str, ...] = IMAGE_EXTENSIONS

    # Rows whose filter field decodes to this exact string are excluded.
    approved_sentinel: str = APPROVED_SENTINEL
    # Replaces the sentinel comparison when set.
    exclude_when: Optional[Callable[[Optional[str]], bool]] = None

    # Page through the active view instead of following host selection
    # when the host has no dashboard.
    prefer_paging: bool = False

    probe_timeout_seconds: float = 5.0
    debug: bool = False

    def __post_init__(self) -> None:
        if self.url_ttl_seconds <= 0:
            raise ValueError("url_ttl_seconds must be positive")
        if self.url_ttl_seconds >= self.host_url_validity_seconds:
            raise ValueError(
                "url_ttl_seconds must be shorter than host_url_validity_seconds"
            )

    @classmethod
    def from_env(cls, **overrides) -> "PanelOptions":
        kwargs = {}
        ttl = os.getenv("ATTACHPANEL_URL_TTL")
        if ttl:
            kwargs["url_ttl_seconds"] = float(ttl)
        sentinel = os.getenv("ATTACHPANEL_APPROVED_SENTINEL")
        if sentinel:
            kwargs["approved_sentinel"] = sentinel
        for key, env in (
            ("video_extensions", "ATTACHPANEL_VIDEO_EXTENSIONS"),
            ("image_extensions", "ATTACHPANEL_IMAGE_EXTENSIONS"),
        ):
            extensions = _env_extensions(env)
            if extensions is not None:
                kwargs[key] = extensions
        paged = _env_bool("ATTACHPANEL_PAGED")
        if paged is not None:
            kwargs["prefer_paging"] = paged
        debug = _env_bool("ATTACHPANEL_DEBUG")
        if debug is not None:
            kwargs["debug"] = debug
        kwargs.update(overrides)
        return cls(**kwargs)

    def is_excluded(self, value: Optional[str]) -> bool:
        if self.exclude_when is not None:
            return bool(self.exclude_when(value))
        return value is not None and value == self.approved_sentinel

    def media_kind(self, mime_type: Optional[str], name: Optional[str]) -> MediaKind:
        return classify_media(
            mime_type,
            name,
            video_extensions=self.video_extensions,
            image_extensions=self.image_extensions,
        )

    def is_video(self, mime_type: Optional[str], name: Optional[str]) -> bool:
        return self.media_kind(mime_type, name) is MediaKind.VIDEO
