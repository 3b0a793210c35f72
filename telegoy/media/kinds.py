"""Media classification by file extension."""

from __future__ import annotations

import enum
from pathlib import Path

PHOTO_EXTENSIONS = frozenset({"jpg", "jpeg", "png", "webp"})
VIDEO_EXTENSIONS = frozenset({"mp4", "mov", "avi", "mkv"})


class MediaKind(str, enum.Enum):
    PHOTO = "photo"
    VIDEO = "video"
    UNSUPPORTED = "unsupported"


def classify_media(path: Path) -> MediaKind:
    """Classify ``path`` from its final suffix, case-insensitively."""
    ext = path.suffix.lstrip(".").lower()
    if ext in PHOTO_EXTENSIONS:
        return MediaKind.PHOTO
    if ext in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return MediaKind.UNSUPPORTED
