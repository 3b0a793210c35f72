"""Tests for settings sources and validation."""

import pytest

from telegoy.config import DEFAULT_API_URL, create_test_config, load_config
from telegoy.exceptions import ConfigurationError

_ENV_KEYS = (
    "TELEGOY_TELEGRAM_BOT_TOKEN",
    "TELEGRAM_BOT_TOKEN",
    "TELOXIDE_TOKEN",
    "TELEGOY_CHAT_ID",
    "TELEGOY_API_URL",
    "TELEGOY_LOCAL_MODE",
)


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run in an empty directory with no telegoy variables set."""
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_defaults_target_local_bot_api_server(clean_env, monkeypatch):
    monkeypatch.setenv("TELEGOY_TELEGRAM_BOT_TOKEN", "123:abc")

    config = load_config()

    assert config.api_url == DEFAULT_API_URL
    assert config.uses_local_server is True
    assert config.bot_base_url == "http://localhost:8081/bot"
    assert config.bot_base_file_url == "http://localhost:8081/file/bot"
    assert config.chat_id is None
    assert config.telegram_token_str == "123:abc"


def test_teloxide_token_alias_is_accepted(clean_env, monkeypatch):
    monkeypatch.setenv("TELOXIDE_TOKEN", "999:legacy")

    assert load_config().telegram_token_str == "999:legacy"


def test_missing_token_is_configuration_error(clean_env):
    with pytest.raises(ConfigurationError, match="Invalid configuration"):
        load_config()


def test_dotenv_file_is_loaded(clean_env):
    (clean_env / ".env").write_text(
        "TELEGOY_TELEGRAM_BOT_TOKEN=1:dotenv\nTELEGOY_CHAT_ID=-100777\n",
        encoding="utf-8",
    )

    config = load_config()

    assert config.telegram_token_str == "1:dotenv"
    assert config.chat_id == "-100777"


def test_environment_overrides_config_file(clean_env, monkeypatch):
    config_file = clean_env / "telegoy.toml"
    config_file.write_text(
        'telegram_bot_token = "1:toml"\nchat_id = 555\nthumbnail_size = 200\n',
        encoding="utf-8",
    )
    monkeypatch.setenv("TELEGOY_CHAT_ID", "@override")

    config = load_config(config_file=config_file)

    assert config.telegram_token_str == "1:toml"
    assert config.chat_id == "@override"
    assert config.thumbnail_size == 200


def test_default_config_toml_in_working_directory(clean_env):
    (clean_env / "config.toml").write_text(
        'telegram_bot_token = "1:cwd"\napi_url = "https://api.telegram.org/"\n',
        encoding="utf-8",
    )

    config = load_config()

    assert config.api_url == "https://api.telegram.org"
    assert config.uses_local_server is False


def test_missing_explicit_config_file_is_rejected(clean_env):
    with pytest.raises(ConfigurationError, match="does not exist"):
        load_config(config_file=clean_env / "nope.toml")


def test_invalid_api_url_is_rejected(clean_env):
    with pytest.raises(ConfigurationError, match="api_url"):
        load_config(telegram_bot_token="1:x", api_url="localhost:8081")


def test_local_mode_can_be_forced_off():
    config = create_test_config(local_mode=False)

    assert config.uses_local_server is False


def test_log_level_is_normalized():
    assert create_test_config(log_level="debug").log_level == "DEBUG"


def test_thumbnail_size_is_bounded():
    with pytest.raises(ValueError):
        create_test_config(thumbnail_size=640)
