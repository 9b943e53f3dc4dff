"""连接生命周期管理（启动会话 / 保存凭据 / 断线重连）。

流程（run 循环里每一轮就是一次 run_once）：
1. 拉协议版本（失败用兜底）
2. 从文件读凭据，连上网关并 start
3. 消费网关事件：
   - creds.update       -> 写回认证文件
   - connection.update  -> 更新状态 / 二维码；带 lastDisconnect 时做重连决策
   - messages.upsert    -> 交给 MessageHandler
4. 得到 ReconnectDecision 后等待 delay 秒，进入下一轮

任何启动异常都按“普通重试”处理（retry_delay 后再来）。
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Callable, Dict, Optional

from .auth_state import SingleFileAuthState
from .disconnect import (
    ReconnectAction,
    ReconnectDecision,
    decide_reconnect,
    describe_disconnect,
    extract_status_code,
)
from .gateway import GatewaySession
from .handler import MessageHandler
from .message_store import MessageStore
from .qr import render_qr_data_url
from .settings import BotSettings
from .status import ConnectionStatus
from .version import resolve_version

logger = logging.getLogger(__name__)

SessionFactory = Callable[[BotSettings], Any]


def default_session_factory(settings: BotSettings) -> GatewaySession:
    return GatewaySession(settings.gateway_url, open_timeout=settings.gateway_open_timeout)


class ConnectionManager:
    """监督协议会话：断了就按策略重连。"""

    def __init__(
        self,
        settings: BotSettings,
        *,
        status: ConnectionStatus,
        auth_state: SingleFileAuthState,
        handler: MessageHandler,
        store: Optional[MessageStore] = None,
        session_factory: SessionFactory = default_session_factory,
        version_resolver: Callable[[BotSettings], Any] = resolve_version,
    ):
        self.settings = settings
        self.status = status
        self.auth_state = auth_state
        self.handler = handler
        self.store = store
        self._session_factory = session_factory
        self._version_resolver = version_resolver
        self._stopping = asyncio.Event()
        self._session: Any = None
        self.attempts = 0

    @property
    def session(self) -> Any:
        """当前会话（没连上时为 None）。"""
        return self._session

    def _retry_decision(self) -> ReconnectDecision:
        return ReconnectDecision(ReconnectAction.RETRY, self.settings.retry_delay)

    async def run(self) -> None:
        """一直跑到 stop() 被调用。"""
        while not self._stopping.is_set():
            decision = await self.run_once()
            if self._stopping.is_set():
                break
            logger.info("%.1f 秒后重新启动会话 action=%s", decision.delay, decision.action.value)
            await self._pause(decision.delay)
        logger.info("连接管理器已停止")

    async def stop(self) -> None:
        self._stopping.set()
        session = self._session
        if session is not None:
            await session.close()

    async def _pause(self, delay: float) -> None:
        """等待 delay 秒；stop() 可以提前打断。"""
        try:
            await asyncio.wait_for(self._stopping.wait(), timeout=delay)
        except asyncio.TimeoutError:
            pass

    async def run_once(self) -> ReconnectDecision:
        """启动一次会话，直到出现断线决策（或会话异常结束）。"""
        self.attempts += 1
        started = False
        try:
            self.status.set("fetching-version")
            version = await self._version_resolver(self.settings)

            self.status.set("starting-socket")
            auth = await self.auth_state.load()
            if auth is None:
                logger.info("没有可用凭据，等待扫码登录")

            session = self._session_factory(self.settings)
            async with session:
                self._session = session
                await session.start(auth=auth, version=version)
                started = True
                return await self._consume(session)
        except Exception as e:
            if started:
                logger.error("会话异常中断: %s", e)
            else:
                logger.error("启动会话失败: %s", e)
            return self._retry_decision()
        finally:
            self._session = None

    async def _consume(self, session: Any) -> ReconnectDecision:
        """消费事件直到断线决策；单条事件处理失败只记日志，会话继续。"""
        async for event in session.events():
            try:
                decision = await self.on_event(session, event)
            except Exception as e:
                logger.error("处理事件 %s 失败: %s", event.get("event"), e)
                continue
            if decision is not None:
                return decision

        if self._stopping.is_set():
            # stop() 关掉的会话，run() 不会再用这个决策
            return self._retry_decision()
        logger.warning("网关事件流结束，未收到断线原因")
        return self._retry_decision()

    async def on_event(self, session: Any, event: Dict[str, Any]) -> Optional[ReconnectDecision]:
        """处理一条网关事件；需要重连时返回决策。"""
        name = event.get("event")
        data = event.get("data")
        if data is None:
            data = {}

        if self.store is not None:
            self.store.ingest(name, data)

        if name == "creds.update":
            await self.auth_state.update(data)
            return None

        if name == "connection.update":
            return await self.on_connection_update(data)

        if name == "messages.upsert":
            await self.handler.handle_upsert(session, data)
            return None

        logger.debug("忽略事件 %s", name)
        return None

    async def on_connection_update(self, update: Dict[str, Any]) -> Optional[ReconnectDecision]:
        if not isinstance(update, dict):
            return None

        qr = update.get("qr")
        if qr:
            await self._expose_qr(qr)

        connection = update.get("connection")
        if connection:
            self.status.set(connection)
            logger.info("connection.update connection=%s", connection)
            if connection == "open":
                logger.info("连接已打开，认证成功")
                self.status.clear_qr()

        last_disconnect = update.get("lastDisconnect")
        if isinstance(last_disconnect, dict) and last_disconnect.get("error"):
            return await self._on_disconnect(last_disconnect)
        return None

    async def _expose_qr(self, qr: str) -> None:
        loop = asyncio.get_running_loop()
        try:
            data_url = await loop.run_in_executor(None, render_qr_data_url, qr)
        except Exception as e:
            logger.error("二维码生成失败: %s", e)
            return
        self.status.set_qr(data_url)
        logger.info("二维码已生成，打开 HTTP / 扫码")

    async def _on_disconnect(self, last_disconnect: Dict[str, Any]) -> ReconnectDecision:
        logger.warning("lastDisconnect: %s", describe_disconnect(last_disconnect))

        code = extract_status_code(last_disconnect)
        decision = decide_reconnect(
            code,
            restart_delay=self.settings.restart_delay,
            retry_delay=self.settings.retry_delay,
        )

        if decision.purge_credentials:
            logger.warning("会话无效 code=%s，删除认证文件并重新登录", code)
            await self.auth_state.delete()
        elif decision.action is ReconnectAction.RESTART:
            logger.info("需要重启 socket code=%s", code)
        else:
            logger.info("连接断开 code=%s，稍后重连", code)
        return decision
