"""Telegram media send helpers with flood-control and network retries."""

from __future__ import annotations

import asyncio
import re
from datetime import timedelta
from typing import Any, Awaitable, Callable, Optional, Sequence, Union

import structlog
from telegram import InputMedia, InputMediaPhoto, InputMediaVideo
from telegram.error import BadRequest, NetworkError, RetryAfter

logger = structlog.get_logger()

# Telegram accepts 2-10 items per sendMediaGroup request.
MEDIA_GROUP_MAX_ITEMS = 10
MEDIA_GROUP_MIN_ITEMS = 2

_NUMERIC_CHAT_ID_RE = re.compile(r"^-?\d+$")
_NETWORK_BACKOFF_SECONDS = 2.0

ChatId = Union[int, str]


def normalize_chat_id(value: Any) -> ChatId:
    """Numeric ids become ints; ``@channel`` usernames stay strings."""
    text = str(value if value is not None else "").strip()
    if not text:
        raise ValueError("Chat id is empty")
    if _NUMERIC_CHAT_ID_RE.match(text):
        return int(text)
    return text


def _retry_after_seconds(error: RetryAfter) -> float:
    delay = error.retry_after
    if isinstance(delay, timedelta):
        return delay.total_seconds()
    return float(delay)


async def _call_with_retries(
    call: Callable[[], Awaitable[Any]],
    *,
    max_attempts: int,
    operation: str,
) -> Any:
    attempts = max(1, int(max_attempts))
    for attempt in range(1, attempts + 1):
        try:
            return await call()
        except RetryAfter as e:
            if attempt >= attempts:
                raise
            delay = _retry_after_seconds(e)
            logger.warning(
                "Flood control hit, waiting",
                operation=operation,
                retry_after=delay,
                attempt=attempt,
            )
            await asyncio.sleep(delay)
        except BadRequest:
            raise
        except NetworkError as e:
            if attempt >= attempts:
                raise
            delay = _NETWORK_BACKOFF_SECONDS * attempt
            logger.warning(
                "Network error, retrying",
                operation=operation,
                error=str(e),
                attempt=attempt,
                delay=delay,
            )
            await asyncio.sleep(delay)
    raise AssertionError("unreachable")


async def send_media_group_resilient(
    bot: Any,
    *,
    chat_id: ChatId,
    media: Sequence[InputMedia],
    max_attempts: int = 3,
    write_timeout: Optional[float] = None,
) -> Any:
    """Send one album, retrying on flood control and transient network errors."""
    if not MEDIA_GROUP_MIN_ITEMS <= len(media) <= MEDIA_GROUP_MAX_ITEMS:
        raise ValueError(
            f"Media group must hold {MEDIA_GROUP_MIN_ITEMS}-"
            f"{MEDIA_GROUP_MAX_ITEMS} items, got {len(media)}"
        )

    send_kwargs: dict[str, Any] = {"chat_id": chat_id, "media": list(media)}
    if write_timeout is not None:
        send_kwargs["write_timeout"] = write_timeout
    return await _call_with_retries(
        lambda: bot.send_media_group(**send_kwargs),
        max_attempts=max_attempts,
        operation="send_media_group",
    )


async def send_single_media_resilient(
    bot: Any,
    *,
    chat_id: ChatId,
    item: InputMedia,
    max_attempts: int = 3,
    write_timeout: Optional[float] = None,
) -> Any:
    """Send one photo or video outside of an album."""
    common: dict[str, Any] = {"chat_id": chat_id}
    if write_timeout is not None:
        common["write_timeout"] = write_timeout

    if isinstance(item, InputMediaPhoto):
        photo_kwargs = dict(common, photo=item.media)
        if item.caption:
            photo_kwargs["caption"] = item.caption
        return await _call_with_retries(
            lambda: bot.send_photo(**photo_kwargs),
            max_attempts=max_attempts,
            operation="send_photo",
        )

    if isinstance(item, InputMediaVideo):
        video_kwargs = dict(
            common, video=item.media, supports_streaming=item.supports_streaming
        )
        if item.caption:
            video_kwargs["caption"] = item.caption
        for key in ("width", "height", "duration", "thumbnail"):
            value = getattr(item, key, None)
            if value is not None:
                video_kwargs[key] = value
        return await _call_with_retries(
            lambda: bot.send_video(**video_kwargs),
            max_attempts=max_attempts,
            operation="send_video",
        )

    raise TypeError(f"Unsupported media item: {type(item).__name__}")
