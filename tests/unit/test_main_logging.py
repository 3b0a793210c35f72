"""Tests for logging setup and sensitive data redaction."""

import logging

from telegoy.main import SensitiveLogFilter, redact_sensitive_text, setup_logging


def test_redact_sensitive_text_masks_telegram_token() -> None:
    """Token in Telegram API URL and raw token should be masked."""
    text = (
        "HTTP Request: POST https://api.telegram.org/bot"
        "8078587979:AAHfMFrZvAr8PdiRPtztOaOTk3Fm1pWCEJ4/sendMediaGroup "
        '"HTTP/1.1 200 OK" raw=8078587979:AAHfMFrZvAr8PdiRPtztOaOTk3Fm1pWCEJ4'
    )
    redacted = redact_sensitive_text(text)

    assert "AAHfMFrZvAr8PdiRPtztOaOTk3Fm1pWCEJ4" not in redacted
    assert "https://api.telegram.org/bot<redacted>/sendMediaGroup" in redacted
    assert "<redacted_token>" in redacted


def test_redact_sensitive_text_masks_local_server_token() -> None:
    """Self-hosted Bot API URLs carry the token the same way."""
    text = "POST http://localhost:8081/bot123456:abc/sendVideo"

    assert redact_sensitive_text(text) == (
        "POST http://localhost:8081/bot<redacted>/sendVideo"
    )


def test_sensitive_log_filter_redacts_message_with_args() -> None:
    """Filter should redact and flatten interpolated log message."""
    record = logging.LogRecord(
        name="httpx",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg='HTTP Request: %s %s "%s"',
        args=(
            "POST",
            "http://localhost:8081/bot8078587979:"
            "AAHfMFrZvAr8PdiRPtztOaOTk3Fm1pWCEJ4/sendMediaGroup",
            "HTTP/1.1 200 OK",
        ),
        exc_info=None,
    )

    filt = SensitiveLogFilter()
    assert filt.filter(record) is True
    assert record.args == ()
    assert "AAHfMFrZvAr8PdiRPtztOaOTk3Fm1pWCEJ4" not in str(record.msg)
    assert "http://localhost:8081/bot<redacted>/sendMediaGroup" in str(record.msg)


def test_setup_logging_installs_filter_once() -> None:
    """Repeated setup should not stack redaction filters."""
    setup_logging(debug=False)
    setup_logging(debug=False)

    for handler in logging.getLogger().handlers:
        matching = [f for f in handler.filters if isinstance(f, SensitiveLogFilter)]
        assert len(matching) == 1
