"""Album uploader.

Turns a list of local files into Telegram albums:
- unsupported files are skipped
- videos are probed and thumbnailed concurrently
- the caption goes on the first item only
- albums are split at Telegram's 10 item limit
"""

import asyncio
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Optional, Sequence

import structlog
from telegram import InputMedia, InputMediaPhoto, InputMediaVideo

from ..config.settings import Settings
from ..exceptions import NoMediaError
from ..media import (
    MediaKind,
    VideoMetadata,
    classify_media,
    compose_caption,
    fit_caption,
    probe_video,
    read_sidecar_caption,
    read_static_caption,
    render_thumbnail,
)
from .utils.telegram_send import (
    MEDIA_GROUP_MAX_ITEMS,
    ChatId,
    send_media_group_resilient,
    send_single_media_resilient,
)

logger = structlog.get_logger()


@dataclass
class PreparedMedia:
    """A supported file ready to be turned into an InputMedia."""

    path: Path
    kind: MediaKind
    caption: Optional[str] = None
    thumbnail: Optional[bytes] = None
    metadata: VideoMetadata = field(default_factory=VideoMetadata)

    def to_input_media(self, *, local_mode: bool) -> InputMedia:
        """Local servers read the file by URI; otherwise the bytes are uploaded."""
        if local_mode:
            media: Any = self.path.absolute().as_uri()
            filename = None
        else:
            media = self.path.read_bytes()
            filename = self.path.name

        if self.kind is MediaKind.PHOTO:
            return InputMediaPhoto(
                media=media, caption=self.caption or None, filename=filename
            )

        return InputMediaVideo(
            media=media,
            caption=self.caption or None,
            width=self.metadata.width,
            height=self.metadata.height,
            duration=self.metadata.duration,
            supports_streaming=True,
            thumbnail=self.thumbnail or None,
            filename=filename,
        )


@dataclass
class UploadReport:
    """Outcome of one upload run."""

    requested: int
    sent: int = 0
    requests: int = 0
    skipped: List[Path] = field(default_factory=list)


def chunk_media(
    items: Sequence[Any], size: int = MEDIA_GROUP_MAX_ITEMS
) -> List[List[Any]]:
    """Split items into consecutive albums of at most ``size``."""
    return [list(items[i : i + size]) for i in range(0, len(items), size)]


class MediaGroupUploader:
    """Prepare local files and send them as Telegram albums."""

    def __init__(self, bot: Any, settings: Settings):
        self.bot = bot
        self.settings = settings

    async def _prepare_one(
        self, path: Path, kind: MediaKind, semaphore: asyncio.Semaphore
    ) -> PreparedMedia:
        if kind is not MediaKind.VIDEO:
            return PreparedMedia(path=path, kind=kind)

        async with semaphore:
            thumbnail = await render_thumbnail(path, self.settings)
            metadata = await probe_video(path, self.settings)
        logger.debug(
            "Video probed",
            path=str(path),
            width=metadata.width,
            height=metadata.height,
            duration=metadata.duration,
            has_thumbnail=thumbnail is not None,
        )
        return PreparedMedia(
            path=path, kind=kind, thumbnail=thumbnail, metadata=metadata
        )

    async def prepare(
        self,
        paths: Sequence[Path],
        *,
        static_caption_path: Optional[Path] = None,
    ) -> tuple[List[PreparedMedia], List[Path]]:
        """Return prepared media in input order plus the skipped paths."""
        supported: list[tuple[Path, MediaKind]] = []
        skipped: list[Path] = []
        for path in paths:
            logger.info("Processing file", path=str(path))
            kind = classify_media(path)
            if kind is MediaKind.UNSUPPORTED:
                logger.warning("Skipping unsupported file type", path=str(path))
                skipped.append(path)
                continue
            if not path.is_file() or not os.access(path, os.R_OK):
                logger.warning("Skipping missing or unreadable file", path=str(path))
                skipped.append(path)
                continue
            supported.append((path, kind))

        semaphore = asyncio.Semaphore(self.settings.media_concurrency)
        prepared = list(
            await asyncio.gather(
                *(self._prepare_one(path, kind, semaphore) for path, kind in supported)
            )
        )

        if prepared:
            first = prepared[0]
            static_path = static_caption_path or self.settings.static_caption_path
            caption = compose_caption(
                read_sidecar_caption(first.path), read_static_caption(static_path)
            )
            first.caption = fit_caption(caption) or None

        return prepared, skipped

    async def upload(
        self,
        paths: Sequence[Path],
        chat_id: ChatId,
        *,
        static_caption_path: Optional[Path] = None,
    ) -> UploadReport:
        """Send all supported files to ``chat_id``."""
        report = UploadReport(requested=len(paths))
        prepared, report.skipped = await self.prepare(
            paths, static_caption_path=static_caption_path
        )
        if not prepared:
            raise NoMediaError("No valid media found to send")

        local_mode = self.settings.uses_local_server
        albums = chunk_media(prepared)
        logger.info(
            "Sending media items",
            count=len(prepared),
            albums=len(albums),
            chat_id=chat_id,
        )

        for album in albums:
            media = [item.to_input_media(local_mode=local_mode) for item in album]
            try:
                if len(media) == 1:
                    await send_single_media_resilient(
                        self.bot,
                        chat_id=chat_id,
                        item=media[0],
                        max_attempts=self.settings.send_max_attempts,
                        write_timeout=self.settings.write_timeout,
                    )
                else:
                    await send_media_group_resilient(
                        self.bot,
                        chat_id=chat_id,
                        media=media,
                        max_attempts=self.settings.send_max_attempts,
                        write_timeout=self.settings.write_timeout,
                    )
            except Exception as e:
                logger.error(
                    "Failed to send media group",
                    error=str(e),
                    sent=report.sent,
                    remaining=len(prepared) - report.sent,
                )
                raise
            report.requests += 1
            report.sent += len(media)

        logger.info("Successfully sent media group", sent=report.sent)
        return report
