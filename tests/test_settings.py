"""Tests for settings loading."""

import json
from pathlib import Path

from kaya_bot.settings import DEFAULT_FALLBACK_VERSION, BotSettings, load_settings


def _write(tmp_path: Path, data) -> str:
    path = tmp_path / "bot_settings.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_defaults_without_file_or_env() -> None:
    settings = load_settings(env={})

    assert settings == BotSettings()
    assert settings.port == 3000
    assert settings.auth_file == "./auth_info_multi.json"
    assert settings.restart_delay == 2.0
    assert settings.retry_delay == 5.0
    assert settings.fallback_version == DEFAULT_FALLBACK_VERSION


def test_missing_config_file_uses_defaults(tmp_path: Path) -> None:
    settings = load_settings(str(tmp_path / "missing.json"), env={})

    assert settings == BotSettings()


def test_env_variables() -> None:
    settings = load_settings(
        env={
            "PORT": "8080",
            "AUTH_FILE_PATH": "/data/auth.json",
            "GATEWAY_URL": "ws://gateway:9000/",
            "LOG_LEVEL": "debug",
            "AUTO_REPLY_TEXT": "OK",
        }
    )

    assert settings.port == 8080
    assert settings.auth_file == "/data/auth.json"
    assert settings.gateway_url == "ws://gateway:9000/"
    assert settings.log_level == "DEBUG"
    assert settings.auto_reply_text == "OK"


def test_env_overrides_file(tmp_path: Path) -> None:
    path = _write(tmp_path, {"port": 4000, "bot_name": "Demo", "retry_delay": 10})

    settings = load_settings(path, env={"PORT": "5000", "HOST": ""})

    assert settings.port == 5000
    assert settings.host == "0.0.0.0"
    assert settings.bot_name == "Demo"
    assert settings.retry_delay == 10.0


def test_invalid_values_fall_back(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {
            "port": "not-a-port",
            "retry_delay": "soon",
            "restart_delay": -3,
            "message_store_limit": 0,
            "enable_message_store": "maybe",
            "fallback_version": ["a"],
        },
    )

    settings = load_settings(path, env={})

    assert settings.port == 3000
    assert settings.retry_delay == 5.0
    assert settings.restart_delay == 0.0
    assert settings.message_store_limit == 1
    assert settings.enable_message_store is True
    assert settings.fallback_version == DEFAULT_FALLBACK_VERSION


def test_bool_and_version_parsing(tmp_path: Path) -> None:
    path = _write(
        tmp_path,
        {"fetch_latest_version": "off", "enable_message_store": 0, "fallback_version": "2.3000.5"},
    )

    settings = load_settings(path, env={})

    assert settings.fetch_latest_version is False
    assert settings.enable_message_store is False
    assert settings.fallback_version == (2, 3000, 5)


def test_malformed_config_file_falls_back(tmp_path: Path, caplog) -> None:
    path = tmp_path / "bot_settings.json"
    path.write_text("{not json", encoding="utf-8")

    settings = load_settings(str(path), env={"PORT": "8080"})

    assert settings == BotSettings(port=8080)
    assert "读取配置文件" in caplog.text


def test_non_object_config_file_falls_back(tmp_path: Path, caplog) -> None:
    path = _write(tmp_path, [{"port": 4000}])

    settings = load_settings(path, env={})

    assert settings == BotSettings()
    assert "不是 JSON 对象" in caplog.text
