"""连接状态（HTTP 页面和连接管理器共享）。

只在事件循环线程里读写，不需要锁。
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, Dict, Optional


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


def _iso(dt: datetime) -> str:
    # 2024-01-01T12:00:00.000Z
    return dt.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ConnectionStatus:
    """当前状态 + 最新二维码。"""

    def __init__(self, *, clock: Callable[[], datetime] = _utc_now):
        self._clock = clock
        self.status = "starting"
        self.qr_data_url: Optional[str] = None
        self.qr_last_updated: Optional[str] = None

    def set(self, status: str) -> None:
        self.status = status

    def set_qr(self, data_url: str) -> None:
        self.qr_data_url = data_url
        self.qr_last_updated = _iso(self._clock())
        self.status = "qr-generated"

    def clear_qr(self) -> None:
        """登录成功后二维码就没用了。"""
        self.qr_data_url = None
        self.qr_last_updated = _iso(self._clock())

    @property
    def has_qr(self) -> bool:
        return self.qr_data_url is not None

    def snapshot(self) -> Dict[str, Any]:
        """/health 的返回体。"""
        return {"status": self.status, "qrLastUpdated": self.qr_last_updated}
