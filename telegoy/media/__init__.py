"""Local media inspection: classification, captions, video metadata."""

from .captions import (
    TELEGRAM_CAPTION_LIMIT,
    compose_caption,
    fit_caption,
    read_sidecar_caption,
    read_static_caption,
    utf16_length,
)
from .ffmpeg import VideoMetadata, probe_video, render_thumbnail
from .kinds import MediaKind, classify_media

__all__ = [
    "MediaKind",
    "classify_media",
    "VideoMetadata",
    "probe_video",
    "render_thumbnail",
    "TELEGRAM_CAPTION_LIMIT",
    "compose_caption",
    "fit_caption",
    "read_sidecar_caption",
    "read_static_caption",
    "utf16_length",
]
