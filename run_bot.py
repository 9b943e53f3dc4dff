"""启动入口。

本项目作为协议网关的 WebSocket 客户端：
- 网关负责聊天协议本身，默认监听 ws://127.0.0.1:8765/（GATEWAY_URL 可改）
- 本脚本启动二维码网页（PORT，默认 3000）并维护与网关的会话
"""

from __future__ import annotations

import asyncio
import logging
import os
import sys
from pathlib import Path

# 允许两种运行方式：
# 1) 从仓库根目录：python run_bot.py
# 2) 安装后：kaya-bot
_THIS_DIR = Path(__file__).resolve().parent
if str(_THIS_DIR) not in sys.path:
    sys.path.insert(0, str(_THIS_DIR))

from kaya_bot.logging import parse_level, setup_logger
from kaya_bot.server import run_server
from kaya_bot.settings import load_settings


def _config_path() -> str | None:
    """BOT_CONFIG 优先；否则用 config/bot_settings.json（存在时）。"""
    explicit = os.environ.get("BOT_CONFIG")
    if explicit:
        return explicit
    default_config = _THIS_DIR / "config" / "bot_settings.json"
    return str(default_config) if default_config.exists() else None


def main() -> None:
    """读取配置并启动服务。"""
    settings = load_settings(_config_path())
    setup_logger(parse_level(settings.log_level, logging.INFO))
    try:
        asyncio.run(run_server(settings))
    except KeyboardInterrupt:
        logging.getLogger(__name__).info("已退出")


if __name__ == "__main__":
    main()
