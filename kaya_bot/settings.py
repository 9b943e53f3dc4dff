"""配置模块。

所有配置集中在 BotSettings 中：
- 先读 config/bot_settings.json（可选）
- 再用环境变量覆盖（PORT / AUTH_FILE_PATH 等，方便部署到 Render 之类的平台）
"""

from __future__ import annotations

from dataclasses import dataclass
import json
import logging
import os
from pathlib import Path
from typing import Any, Mapping, Optional, Tuple

logger = logging.getLogger(__name__)

# 上游协议库维护的版本文件
DEFAULT_VERSION_URL = (
    "https://raw.githubusercontent.com/WhiskeySockets/Baileys/master/src/Defaults/baileys-version.json"
)
DEFAULT_FALLBACK_VERSION: Tuple[int, ...] = (2, 2204, 13)

# 环境变量 -> 字段名
ENV_OVERRIDES = {
    "HOST": "host",
    "PORT": "port",
    "AUTH_FILE_PATH": "auth_file",
    "GATEWAY_URL": "gateway_url",
    "LOG_LEVEL": "log_level",
    "AUTO_REPLY_TEXT": "auto_reply_text",
}


@dataclass(frozen=True)
class BotSettings:
    """机器人运行时配置。"""
    bot_name: str = "KAYA-MD"

    # HTTP（二维码页面）
    host: str = "0.0.0.0"
    port: int = 3000
    qr_refresh_seconds: int = 5

    # 认证文件（协议网关给的凭据，原样保存）
    auth_file: str = "./auth_info_multi.json"

    # 协议网关
    gateway_url: str = "ws://127.0.0.1:8765/"
    gateway_open_timeout: float = 10.0

    # 协议版本
    fetch_latest_version: bool = True
    version_url: str = DEFAULT_VERSION_URL
    fallback_version: Tuple[int, ...] = DEFAULT_FALLBACK_VERSION
    version_timeout: float = 10.0

    # 重连
    restart_delay: float = 2.0
    retry_delay: float = 5.0

    # 内存消息缓存
    enable_message_store: bool = True
    message_store_limit: int = 100

    # 自动回复（为空则只记录日志）
    auto_reply_text: str = ""

    # Logging
    log_level: str = "INFO"


def _read_json_file(path: Path) -> dict[str, Any]:
    """读取 JSON 文件为 dict；文件不存在或格式不对则返回空 dict（全部用默认值）。"""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return {}
    except (OSError, ValueError) as e:
        logger.warning("读取配置文件 %s 失败，使用默认配置: %s", path, e)
        return {}
    if not isinstance(data, dict):
        logger.warning("配置文件 %s 不是 JSON 对象，使用默认配置", path)
        return {}
    return data


def _to_bool(value: Any, default: bool) -> bool:
    """把常见输入转换为布尔值。"""
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return bool(value)
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in {"true", "1", "yes", "y", "on"}:
            return True
        if lowered in {"false", "0", "no", "n", "off"}:
            return False
    return default


def _to_version(value: Any, default: Tuple[int, ...]) -> Tuple[int, ...]:
    """[2, 2204, 13] / "2.2204.13" -> (2, 2204, 13)。"""
    if isinstance(value, str):
        value = value.split(".")
    if not isinstance(value, (list, tuple)) or not value:
        return default
    try:
        return tuple(int(part) for part in value)
    except (TypeError, ValueError):
        return default


def load_settings(
    config_path: Optional[str] = None,
    env: Optional[Mapping[str, str]] = None,
) -> BotSettings:
    """加载配置：JSON 文件打底，环境变量覆盖。"""
    config: dict[str, Any] = {}
    if config_path:
        config = _read_json_file(Path(config_path))

    env = os.environ if env is None else env
    for env_name, key in ENV_OVERRIDES.items():
        value = env.get(env_name)
        if value not in (None, ""):
            config[key] = value

    defaults = BotSettings()

    def pick_str(key: str) -> str:
        val = config.get(key)
        return str(val) if val is not None else getattr(defaults, key)

    def pick_int(key: str) -> int:
        try:
            val = config.get(key)
            return int(val) if val is not None else getattr(defaults, key)
        except (TypeError, ValueError):
            return getattr(defaults, key)

    def pick_float(key: str) -> float:
        try:
            val = config.get(key)
            return float(val) if val is not None else getattr(defaults, key)
        except (TypeError, ValueError):
            return getattr(defaults, key)

    def pick_bool(key: str) -> bool:
        return _to_bool(config.get(key), getattr(defaults, key))

    log_level = pick_str("log_level").upper().strip() or "INFO"

    return BotSettings(
        bot_name=pick_str("bot_name"),
        host=pick_str("host"),
        port=pick_int("port"),
        qr_refresh_seconds=max(1, pick_int("qr_refresh_seconds")),
        auth_file=pick_str("auth_file"),
        gateway_url=pick_str("gateway_url"),
        gateway_open_timeout=pick_float("gateway_open_timeout"),
        fetch_latest_version=pick_bool("fetch_latest_version"),
        version_url=pick_str("version_url"),
        fallback_version=_to_version(config.get("fallback_version"), defaults.fallback_version),
        version_timeout=pick_float("version_timeout"),
        restart_delay=max(0.0, pick_float("restart_delay")),
        retry_delay=max(0.0, pick_float("retry_delay")),
        enable_message_store=pick_bool("enable_message_store"),
        message_store_limit=max(1, pick_int("message_store_limit")),
        auto_reply_text=pick_str("auto_reply_text"),
        log_level=log_level,
    )
