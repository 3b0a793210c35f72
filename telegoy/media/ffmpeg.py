"""Video metadata and thumbnails through ffprobe/ffmpeg subprocesses."""

from __future__ import annotations

import asyncio
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Sequence

import structlog

from ..config.settings import Settings
from ..exceptions import MediaToolError

logger = structlog.get_logger()


@dataclass(frozen=True)
class VideoMetadata:
    """Probed video attributes; ``None`` when unknown."""

    width: Optional[int] = None
    height: Optional[int] = None
    duration: Optional[int] = None


async def run_media_tool(cmd: Sequence[str], *, timeout: float) -> bytes:
    """Run an external tool and return stdout, raising on any failure."""
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise MediaToolError(f"Cannot start {cmd[0]}: {e}") from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        proc.kill()
        await proc.communicate()
        raise MediaToolError(f"{cmd[0]} timed out after {timeout:g}s") from e

    if proc.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()
        raise MediaToolError(
            f"{cmd[0]} exited with {proc.returncode}: {detail or 'no output'}"
        )
    return stdout


def _positive_int(raw: Optional[str]) -> Optional[int]:
    if raw is None:
        return None
    try:
        value = int(raw.strip())
    except ValueError:
        return None
    return value if value > 0 else None


def _positive_duration(raw: str) -> Optional[int]:
    try:
        value = float(raw.strip())
    except ValueError:
        return None
    if value <= 0:
        return None
    return int(round(value))


async def probe_video(path: Path, settings: Settings) -> VideoMetadata:
    """Return width, height and duration of the first video stream."""
    timeout = settings.media_tool_timeout_seconds
    width = height = duration = None

    try:
        output = await run_media_tool(
            [
                settings.ffprobe_path,
                "-v",
                "error",
                "-select_streams",
                "v:0",
                "-show_entries",
                "stream=width,height",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                str(path),
            ],
            timeout=timeout,
        )
        lines = output.decode("utf-8", errors="replace").splitlines()
        width = _positive_int(lines[0] if len(lines) > 0 else None)
        height = _positive_int(lines[1] if len(lines) > 1 else None)
    except MediaToolError as e:
        logger.warning("Video dimension probe failed", path=str(path), error=str(e))

    try:
        output = await run_media_tool(
            [
                settings.ffprobe_path,
                "-v",
                "error",
                "-show_entries",
                "format=duration",
                "-of",
                "default=noprint_wrappers=1:nokey=1",
                str(path),
            ],
            timeout=timeout,
        )
        duration = _positive_duration(output.decode("utf-8", errors="replace"))
    except MediaToolError as e:
        logger.warning("Video duration probe failed", path=str(path), error=str(e))

    return VideoMetadata(width=width, height=height, duration=duration)


async def render_thumbnail(path: Path, settings: Settings) -> Optional[bytes]:
    """Render the first frame as a JPEG bounded by ``thumbnail_size``."""
    size = settings.thumbnail_size
    scale = (
        f"scale='min({size},iw)':'min({size},ih)'"
        ":force_original_aspect_ratio=decrease"
    )
    with tempfile.TemporaryDirectory(prefix="telegoy-thumb-") as tmp_dir:
        thumb_path = Path(tmp_dir) / "thumb.jpg"
        try:
            await run_media_tool(
                [
                    settings.ffmpeg_path,
                    "-hide_banner",
                    "-v",
                    "error",
                    "-y",
                    "-i",
                    str(path),
                    "-ss",
                    "00:00:00.000",
                    "-frames:v",
                    "1",
                    "-update",
                    "1",
                    "-vf",
                    scale,
                    "-q:v",
                    "2",
                    str(thumb_path),
                ],
                timeout=settings.media_tool_timeout_seconds,
            )
        except MediaToolError as e:
            logger.warning("Thumbnail render failed", path=str(path), error=str(e))
            return None

        try:
            data = thumb_path.read_bytes()
        except OSError:
            return None
    return data or None
