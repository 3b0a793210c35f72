"""Configuration module."""

from typing import Any

from .loader import load_config
from .settings import DEFAULT_API_URL, Settings

__all__ = ["Settings", "load_config", "create_test_config", "DEFAULT_API_URL"]


def create_test_config(**overrides: Any) -> Settings:
    """Create settings for tests without reading .env from the working tree."""
    values: dict[str, Any] = {
        "telegram_bot_token": "123456:test-token",
        "chat_id": "1001",
        "media_tool_timeout_seconds": 5.0,
        "debug": True,
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)
