"""Caption lookup from sidecar and static caption files."""

from __future__ import annotations

from pathlib import Path

import structlog

logger = structlog.get_logger()

# Telegram limit for media captions after entity parsing.
TELEGRAM_CAPTION_LIMIT = 1024


def _read_text_or_empty(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return ""
    except (OSError, UnicodeDecodeError) as e:
        logger.warning("Caption file unreadable", path=str(path), error=str(e))
        return ""


def sidecar_caption_path(media_path: Path) -> Path:
    """``clip.mp4`` -> ``clip.txt``."""
    return media_path.with_suffix(".txt")


def read_sidecar_caption(media_path: Path) -> str:
    """Return the caption stored next to ``media_path``, or ``""``."""
    return _read_text_or_empty(sidecar_caption_path(media_path))


def read_static_caption(path: Path) -> str:
    """Return the shared caption appended to every upload, or ``""``."""
    return _read_text_or_empty(path)


def compose_caption(file_caption: str, static_caption: str) -> str:
    return f"{file_caption}{static_caption}"


def utf16_length(text: str) -> int:
    """Length in UTF-16 code units, the unit Telegram counts limits in."""
    return len(text.encode("utf-16-le")) // 2


def fit_caption(caption: str, limit: int = TELEGRAM_CAPTION_LIMIT) -> str:
    """Truncate caption to Telegram's media caption limit.

    Characters outside the BMP count twice and are never split.
    """
    length = utf16_length(caption)
    if length <= limit:
        return caption
    logger.warning("Caption truncated", length=length, limit=limit)

    used = 0
    for index, char in enumerate(caption):
        used += 2 if ord(char) > 0xFFFF else 1
        if used > limit:
            return caption[:index]
    return caption
