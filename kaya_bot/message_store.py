"""内存消息缓存。

每个会话（JID）只留最近 N 条原始消息，进程重启即丢失。
"""

from __future__ import annotations

from collections import deque
from typing import Any, Deque, Dict, List, Optional


class MessageStore:
    """按 JID 缓存最近的消息。"""

    def __init__(self, limit: int = 100):
        self.limit = max(1, int(limit))
        self._messages: Dict[str, Deque[Dict[str, Any]]] = {}

    @staticmethod
    def _key(message: Dict[str, Any]) -> Dict[str, Any]:
        key = message.get("key")
        return key if isinstance(key, dict) else {}

    def ingest(self, event: str, data: Any) -> None:
        """喂网关事件进来；不关心的事件直接忽略。"""
        if not isinstance(data, dict):
            return
        if event == "messages.upsert":
            for message in data.get("messages") or []:
                if isinstance(message, dict):
                    self._upsert(message)
        elif event == "messages.update":
            for item in data.get("updates") or []:
                if isinstance(item, dict):
                    self._apply_update(item)

    def _upsert(self, message: Dict[str, Any]) -> None:
        key = self._key(message)
        jid = key.get("remoteJid")
        if not jid or not isinstance(jid, str):
            return
        queue = self._messages.setdefault(jid, deque(maxlen=self.limit))

        # 同一条消息再次推送时替换
        msg_id = key.get("id")
        for i, existing in enumerate(queue):
            if msg_id and self._key(existing).get("id") == msg_id:
                queue[i] = message
                return
        queue.append(message)

    def _apply_update(self, item: Dict[str, Any]) -> None:
        key = item.get("key") if isinstance(item.get("key"), dict) else {}
        update = item.get("update")
        if not isinstance(update, dict):
            return
        stored = self.load_message(key.get("remoteJid"), key.get("id"))
        if stored is None:
            return
        stored.update(update)

    def load_message(self, jid: Optional[str], msg_id: Optional[str]) -> Optional[Dict[str, Any]]:
        if not isinstance(jid, str) or not msg_id:
            return None
        for message in self._messages.get(jid, ()):
            if self._key(message).get("id") == msg_id:
                return message
        return None

    def messages(self, jid: str) -> List[Dict[str, Any]]:
        return list(self._messages.get(jid, ()))

    @property
    def chat_count(self) -> int:
        return len(self._messages)
