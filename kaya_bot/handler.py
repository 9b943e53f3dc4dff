"""消息处理（最小实现）。

职责：
- 把 messages.upsert 里的原始消息整理成 IncomingMessage
- 记录日志
- 配置了 auto_reply_text 时，对别人发来的文字消息引用回复

这里故意不做命令路由：需要业务逻辑时替换 MessageHandler 即可。
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from .settings import BotSettings

logger = logging.getLogger(__name__)

GROUP_SUFFIX = "@g.us"


@dataclass
class IncomingMessage:
    """一条收到的消息（预先取好常用字段）。"""
    raw: Dict[str, Any]
    remote_jid: str | None = None
    message_id: str | None = None
    from_me: bool = False
    is_group: bool = False
    content_type: str | None = None
    text: str = ""
    push_name: str | None = None

    @classmethod
    def from_raw(cls, raw: Any) -> Optional["IncomingMessage"]:
        """没有 message 内容的（系统通知等）返回 None。"""
        if not isinstance(raw, dict):
            return None
        content = raw.get("message")
        if not content or not isinstance(content, dict):
            return None

        key = raw.get("key") if isinstance(raw.get("key"), dict) else {}
        remote_jid = key.get("remoteJid")

        msg = cls(raw=raw)
        msg.remote_jid = remote_jid
        msg.message_id = key.get("id")
        msg.from_me = bool(key.get("fromMe"))
        msg.is_group = bool(remote_jid) and str(remote_jid).endswith(GROUP_SUFFIX)
        msg.content_type = next(iter(content), None)
        msg.text = _extract_text(content)
        msg.push_name = raw.get("pushName")
        return msg


def _extract_text(content: Dict[str, Any]) -> str:
    """conversation 或 extendedTextMessage.text。"""
    text = content.get("conversation")
    if isinstance(text, str):
        return text
    extended = content.get("extendedTextMessage")
    if isinstance(extended, dict) and isinstance(extended.get("text"), str):
        return extended["text"]
    return ""


class MessageHandler:
    """messages.upsert 的处理器。"""

    def __init__(self, settings: BotSettings):
        self.settings = settings

    async def handle_upsert(self, session: Any, data: Dict[str, Any]) -> int:
        """处理一批消息，返回实际处理的条数。单条失败不影响后面的。"""
        if not isinstance(data, dict):
            return 0
        messages = data.get("messages") or []
        upsert_type = data.get("type") or "notify"

        handled = 0
        for raw in messages:
            msg = IncomingMessage.from_raw(raw)
            if msg is None:
                continue
            try:
                await self.handle(session, msg, upsert_type=upsert_type)
            except Exception as e:
                logger.error("处理消息失败 from=%s id=%s: %s", msg.remote_jid, msg.message_id, e)
                continue
            handled += 1
        return handled

    async def handle(self, session: Any, msg: IncomingMessage, *, upsert_type: str = "notify") -> None:
        logger.info(
            "收到消息 from=%s group=%s type=%s id=%s",
            msg.remote_jid,
            msg.is_group,
            msg.content_type,
            msg.message_id,
        )

        if not self.should_auto_reply(msg, upsert_type):
            return
        await session.send_text(msg.remote_jid, self.settings.auto_reply_text, quoted=msg.raw)
        logger.info("已自动回复 to=%s", msg.remote_jid)

    def should_auto_reply(self, msg: IncomingMessage, upsert_type: str) -> bool:
        # 只回别人发的、实时推送的文字消息（历史同步的 append 不回）
        return bool(
            self.settings.auto_reply_text
            and msg.remote_jid
            and msg.text
            and not msg.from_me
            and upsert_type == "notify"
        )
