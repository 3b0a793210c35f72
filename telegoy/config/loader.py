"""Settings loading with explicit config file support."""

from pathlib import Path
from typing import Any, Optional

import structlog
from pydantic import ValidationError
from pydantic_settings import SettingsConfigDict

from ..exceptions import ConfigurationError
from .settings import Settings

logger = structlog.get_logger()


def _settings_class_for(config_file: Optional[Path]) -> type[Settings]:
    if config_file is None:
        return Settings
    return type(
        "FileSettings",
        (Settings,),
        {
            "__module__": __name__,
            "model_config": SettingsConfigDict(toml_file=config_file),
        },
    )


def load_config(config_file: Optional[Path] = None, **overrides: Any) -> Settings:
    """Build settings from init overrides, environment, .env and TOML.

    An explicit ``config_file`` must exist. Without one, ``config.toml`` in
    the working directory is used when present.
    """
    if config_file is not None:
        config_file = Path(config_file).expanduser()
        if not config_file.is_file():
            raise ConfigurationError(f"Config file does not exist: {config_file}")

    settings_cls = _settings_class_for(config_file)
    try:
        settings = settings_cls(**overrides)
    except ValidationError as e:
        raise ConfigurationError(_format_validation_error(e)) from e

    logger.debug(
        "Settings loaded",
        config_file=str(config_file) if config_file else None,
        api_url=settings.api_url,
        local_mode=settings.uses_local_server,
    )
    return settings


def _format_validation_error(error: ValidationError) -> str:
    problems = []
    for item in error.errors():
        location = ".".join(str(part) for part in item.get("loc", ())) or "settings"
        problems.append(f"{location}: {item.get('msg', 'invalid value')}")
    return "Invalid configuration: " + "; ".join(problems)
