"""协议网关会话（WebSocket 客户端）。

聊天协议本身（握手、加密、多设备同步）全部由外部网关进程负责，
本项目只通过 WebSocket 跟它交换 JSON：

发给网关：
- {"action": "start", "params": {"auth": {...}|null, "version": [2, 2204, 13], "printQRInTerminal": false}}
- {"action": "send_message", "params": {"jid": "...", "content": {"text": "..."}, "quoted": {...}|null}, "echo": "..."}

网关推送：
- {"event": "connection.update", "data": {"connection": "open", "qr": "...", "lastDisconnect": {...}}}
- {"event": "creds.update", "data": {...}}
- {"event": "messages.upsert", "data": {"messages": [...], "type": "notify"}}
- 动作回执：{"echo": "...", "status": "ok"}（只记 debug 日志）
"""

from __future__ import annotations

import json
import logging
import uuid
from typing import Any, AsyncIterator, Dict, Optional, Sequence

import websockets

logger = logging.getLogger(__name__)


class GatewayError(RuntimeError):
    """网关会话使用不当（未连接就发送等）。"""


class GatewaySession:
    """一条到协议网关的 WebSocket 连接 = 一次会话。"""

    def __init__(self, url: str, *, open_timeout: float = 10.0, max_size: int = 2**22):
        self.url = url
        self.open_timeout = open_timeout
        self.max_size = max_size
        self._ws: Any = None

    async def __aenter__(self) -> "GatewaySession":
        await self.connect()
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.close()

    @property
    def is_connected(self) -> bool:
        return self._ws is not None

    async def connect(self) -> None:
        logger.info("连接协议网关 %s", self.url)
        self._ws = await websockets.connect(
            self.url,
            open_timeout=self.open_timeout,
            max_size=self.max_size,
        )

    async def close(self) -> None:
        ws, self._ws = self._ws, None
        if ws is not None:
            await ws.close()

    async def _send(self, payload: Dict[str, Any]) -> None:
        if self._ws is None:
            raise GatewayError("网关未连接")
        await self._ws.send(json.dumps(payload, ensure_ascii=False))

    async def start(self, *, auth: Optional[Dict[str, Any]], version: Sequence[int]) -> None:
        """让网关用给定凭据启动协议 socket（auth 为 None 时网关会推二维码）。"""
        await self._send(
            {
                "action": "start",
                "params": {
                    "auth": auth,
                    "version": list(version),
                    "printQRInTerminal": False,
                },
            }
        )

    async def send_text(
        self,
        jid: str,
        text: str,
        *,
        quoted: Optional[Dict[str, Any]] = None,
    ) -> str:
        """发送文本消息；quoted 传原始消息对象即可引用回复。返回 echo。"""
        echo = uuid.uuid4().hex
        await self._send(
            {
                "action": "send_message",
                "params": {"jid": jid, "content": {"text": text}, "quoted": quoted},
                "echo": echo,
            }
        )
        return echo

    async def events(self) -> AsyncIterator[Dict[str, Any]]:
        """逐条产出网关事件；连接关闭后结束。"""
        if self._ws is None:
            raise GatewayError("网关未连接")

        try:
            async for raw in self._ws:
                try:
                    event = json.loads(raw)
                except ValueError:
                    logger.warning("网关发来非 JSON 数据，忽略 len=%s", len(raw))
                    continue

                if not isinstance(event, dict):
                    logger.warning("网关发来非对象 JSON，忽略")
                    continue
                if "event" not in event:
                    if "echo" in event:
                        logger.debug("动作回执 echo=%s status=%s", event.get("echo"), event.get("status"))
                    else:
                        logger.warning("未知网关数据，忽略 keys=%s", sorted(event))
                    continue

                yield event
        except websockets.exceptions.ConnectionClosed as e:
            logger.warning("网关连接断开: %s", e)
