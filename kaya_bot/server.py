"""服务启动封装。

同一个事件循环里跑两件事：
- aiohttp HTTP 服务（二维码页面 / 健康检查）
- ConnectionManager（协议会话 + 断线重连）
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from pathlib import Path
from typing import Optional

from aiohttp import web

from .auth_state import SingleFileAuthState
from .connection import ConnectionManager
from .handler import MessageHandler
from .message_store import MessageStore
from .settings import BotSettings
from .status import ConnectionStatus
from .web import create_app

logger = logging.getLogger(__name__)


def build_manager(settings: BotSettings, status: ConnectionStatus) -> ConnectionManager:
    """按配置装配连接管理器。"""
    store: Optional[MessageStore] = None
    if settings.enable_message_store:
        store = MessageStore(limit=settings.message_store_limit)

    return ConnectionManager(
        settings,
        status=status,
        auth_state=SingleFileAuthState(Path(settings.auth_file)),
        handler=MessageHandler(settings),
        store=store,
    )


async def run_server(settings: BotSettings, stop_event: Optional[asyncio.Event] = None) -> None:
    """启动 HTTP 服务和连接管理器，阻塞到 stop_event 被置位（默认永久运行）。"""
    status = ConnectionStatus()
    manager = build_manager(settings, status)

    runner = web.AppRunner(create_app(settings, status))
    await runner.setup()
    site = web.TCPSite(runner, settings.host, settings.port)
    await site.start()
    logger.info("%s 二维码页面 http://%s:%s/", settings.bot_name, settings.host, settings.port)

    manager_task = asyncio.create_task(manager.run(), name="connection-manager")
    try:
        if stop_event is None:
            await asyncio.Future()
        else:
            await stop_event.wait()
    finally:
        await manager.stop()
        manager_task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await manager_task
        await runner.cleanup()
