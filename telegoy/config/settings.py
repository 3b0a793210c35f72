"""Configuration management using Pydantic Settings.

Features:
- Environment variable loading (``TELEGOY_`` prefix)
- Local ``.env`` overrides
- Optional ``config.toml`` file
- Type validation and defaults
"""

from pathlib import Path
from typing import Any, Optional, Tuple, Type
from urllib.parse import urlparse

from pydantic import AliasChoices, Field, SecretStr, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

DEFAULT_API_URL = "http://localhost:8081"
OFFICIAL_API_HOST = "api.telegram.org"


class Settings(BaseSettings):
    """Application settings loaded from environment, .env and config.toml."""

    # Bot settings
    telegram_bot_token: SecretStr = Field(
        ...,
        description="Telegram bot token from BotFather",
        validation_alias=AliasChoices(
            "telegoy_telegram_bot_token", "telegram_bot_token", "teloxide_token"
        ),
    )
    chat_id: Optional[str] = Field(
        None, description="Default target chat id or @channel username"
    )
    api_url: str = Field(DEFAULT_API_URL, description="Bot API server base URL")
    local_mode: Optional[bool] = Field(
        None,
        description=(
            "Let the Bot API server read uploads from local disk. "
            "Unset means enabled for any server other than api.telegram.org."
        ),
    )

    # Captions
    static_caption_path: Path = Field(
        Path("static_caption.txt"),
        description="File whose contents are appended to every caption",
    )

    # Media tools
    ffmpeg_path: str = Field("ffmpeg", description="ffmpeg executable")
    ffprobe_path: str = Field("ffprobe", description="ffprobe executable")
    thumbnail_size: int = Field(
        320, description="Bounding box for video thumbnails", ge=1, le=320
    )
    media_tool_timeout_seconds: float = Field(
        60.0, description="Timeout for a single ffmpeg/ffprobe run", gt=0
    )
    media_concurrency: int = Field(
        4, description="Videos probed in parallel", ge=1, le=32
    )

    # Telegram transport
    send_max_attempts: int = Field(
        3, description="Attempts per Telegram request", ge=1, le=10
    )
    connect_timeout: float = Field(30.0, description="HTTP connect timeout")
    read_timeout: float = Field(60.0, description="HTTP read timeout")
    write_timeout: float = Field(300.0, description="HTTP write timeout (uploads)")

    # Monitoring
    log_level: str = Field("INFO", description="Logging level")

    # Development
    debug: bool = Field(False, description="Enable debug mode")

    model_config = SettingsConfigDict(
        env_prefix="TELEGOY_",
        env_file=".env",
        env_file_encoding="utf-8",
        toml_file="config.toml",
        case_sensitive=False,
        populate_by_name=True,
        extra="ignore",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: Type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> Tuple[PydanticBaseSettingsSource, ...]:
        """Insert the TOML file below environment and .env sources."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            TomlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    @field_validator("chat_id", mode="before")
    @classmethod
    def parse_chat_id(cls, v: Any) -> Optional[str]:
        """Accept ints from TOML and treat blank values as unset."""
        if v is None:
            return None
        text = str(v).strip()
        return text or None

    @field_validator("api_url")
    @classmethod
    def validate_api_url(cls, v: str) -> str:
        """Require an absolute http(s) URL without trailing slash."""
        url = v.strip().rstrip("/")
        parsed = urlparse(url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ValueError(f"api_url must be an http(s) URL: {v!r}")
        return url

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: Any) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if str(v).upper() not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return str(v).upper()

    @property
    def telegram_token_str(self) -> str:
        """Get Telegram token as string."""
        return self.telegram_bot_token.get_secret_value()

    @property
    def uses_local_server(self) -> bool:
        """Whether uploads go through a self-hosted Bot API server."""
        if self.local_mode is not None:
            return self.local_mode
        return urlparse(self.api_url).hostname != OFFICIAL_API_HOST

    @property
    def bot_base_url(self) -> str:
        return f"{self.api_url}/bot"

    @property
    def bot_base_file_url(self) -> str:
        return f"{self.api_url}/file/bot"
