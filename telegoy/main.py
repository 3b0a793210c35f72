"""Main entry point for telegoy."""

import argparse
import asyncio
import logging
import re
import sys
from pathlib import Path
from typing import Optional, Sequence

import structlog
from telegram import Bot
from telegram.error import TelegramError
from telegram.request import HTTPXRequest

from . import __version__
from .bot.uploader import MediaGroupUploader
from .bot.utils.telegram_send import ChatId, normalize_chat_id
from .config.loader import load_config
from .config.settings import Settings
from .exceptions import ConfigurationError, NoMediaError

_TELEGRAM_BOT_TOKEN_IN_URL_RE = re.compile(
    r"(https?://[^/\s]+/(?:file/)?bot)([^/\s]+)"
)
_TELEGRAM_BOT_TOKEN_RAW_RE = re.compile(r"\b\d{6,}:[A-Za-z0-9_-]{20,}\b")


def redact_sensitive_text(text: str) -> str:
    """Redact sensitive tokens from log text."""
    redacted = _TELEGRAM_BOT_TOKEN_IN_URL_RE.sub(r"\1<redacted>", text)
    redacted = _TELEGRAM_BOT_TOKEN_RAW_RE.sub("<redacted_token>", redacted)
    return redacted


class SensitiveLogFilter(logging.Filter):
    """Filter log records to avoid leaking secrets."""

    def filter(self, record: logging.LogRecord) -> bool:
        message = record.getMessage()
        redacted = redact_sensitive_text(message)
        if redacted != message:
            # Keep a pre-formatted safe message to avoid re-inserting args.
            record.msg = redacted
            record.args = ()
        return True


def setup_logging(debug: bool = False) -> None:
    """Configure structured logging."""
    level = logging.DEBUG if debug else logging.INFO

    logging.basicConfig(
        level=level,
        format="%(message)s",
        stream=sys.stderr,
    )
    sensitive_filter = SensitiveLogFilter()
    root_logger = logging.getLogger()
    for handler in root_logger.handlers:
        if not any(isinstance(f, SensitiveLogFilter) for f in handler.filters):
            handler.addFilter(sensitive_filter)

    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.stdlib.PositionalArgumentsFormatter(),
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            (
                structlog.processors.JSONRenderer()
                if not debug
                else structlog.dev.ConsoleRenderer()
            ),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog="telegoy",
        description="Upload photos and videos to a Telegram chat as one album",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )

    parser.add_argument(
        "--version", action="version", version=f"telegoy {__version__}"
    )
    parser.add_argument(
        "files", nargs="+", type=Path, help="Media files to upload, in album order"
    )
    parser.add_argument(
        "-c", "--chat-id", help="Target chat id (overrides config/env)"
    )
    parser.add_argument(
        "-s",
        "--static-caption-path",
        type=Path,
        help="File appended to the caption (overrides config/env)",
    )
    parser.add_argument("--config-file", type=Path, help="Path to a TOML config file")
    parser.add_argument("--debug", action="store_true", help="Enable debug logging")

    return parser.parse_args(argv)


def resolve_chat_id(cli_chat_id: Optional[str], config: Settings) -> ChatId:
    """CLI chat id wins over environment and config file values."""
    raw = cli_chat_id if cli_chat_id and cli_chat_id.strip() else config.chat_id
    if not raw:
        raise ConfigurationError(
            "Chat ID not found in config, environment or CLI. "
            "Pass --chat-id or set TELEGOY_CHAT_ID."
        )
    try:
        return normalize_chat_id(raw)
    except ValueError as e:
        raise ConfigurationError(str(e)) from e


def create_bot(config: Settings) -> Bot:
    """Build a Bot pointed at the configured Bot API server."""
    request = HTTPXRequest(
        connect_timeout=config.connect_timeout,
        read_timeout=config.read_timeout,
        write_timeout=config.write_timeout,
    )
    return Bot(
        token=config.telegram_token_str,
        base_url=config.bot_base_url,
        base_file_url=config.bot_base_file_url,
        request=request,
        local_mode=config.uses_local_server,
    )


async def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main application entry point. Returns the process exit code."""
    args = parse_args(argv)
    setup_logging(debug=args.debug)

    logger = structlog.get_logger()
    logger.info("Starting telegoy", version=__version__)

    try:
        config = load_config(config_file=args.config_file)
        if not args.debug:
            logging.getLogger().setLevel(config.log_level)
        chat_id = resolve_chat_id(args.chat_id, config)

        logger.info(
            "Starting uploader",
            chat_id=chat_id,
            api_url=config.api_url,
            local_mode=config.uses_local_server,
        )

        async with create_bot(config) as bot:
            uploader = MediaGroupUploader(bot, config)
            report = await uploader.upload(
                args.files,
                chat_id,
                static_caption_path=args.static_caption_path,
            )

    except ConfigurationError as e:
        logger.error("Configuration error", error=str(e))
        return 1
    except NoMediaError as e:
        logger.error(str(e))
        return 1
    except TelegramError as e:
        logger.error("Telegram request failed", error=str(e))
        return 1
    except OSError as e:
        logger.error(
            "Cannot read media file",
            path=getattr(e, "filename", None),
            error=str(e),
        )
        return 1

    logger.info(
        "Upload finished",
        sent=report.sent,
        skipped=[str(path) for path in report.skipped],
        requests=report.requests,
    )
    return 0


def run() -> None:
    """Synchronous entry point for setuptools."""
    try:
        sys.exit(asyncio.run(main()))
    except KeyboardInterrupt:
        print("\nShutdown requested by user")
        sys.exit(130)


if __name__ == "__main__":
    run()
