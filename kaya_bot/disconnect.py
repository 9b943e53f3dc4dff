"""断线原因解析 + 重连策略。

协议网关在 connection.update 里带上 lastDisconnect：
    {"error": {"message": "...", "output": {"statusCode": 401, "payload": {...}}}}

策略只有三种：
- badSession / loggedOut：凭据已失效，删认证文件，2 秒后重启（重新扫码）
- restartRequired / connectionClosed：2 秒后重启
- 其它：5 秒后重试
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Optional


class DisconnectReason(enum.IntEnum):
    """协议层的断线状态码。"""
    CONNECTION_CLOSED = 428
    CONNECTION_LOST = 408
    TIMED_OUT = 408
    CONNECTION_REPLACED = 440
    LOGGED_OUT = 401
    BAD_SESSION = 500
    RESTART_REQUIRED = 515
    MULTIDEVICE_MISMATCH = 411
    FORBIDDEN = 403
    UNAVAILABLE_SERVICE = 503


class ReconnectAction(str, enum.Enum):
    RELOGIN = "relogin"
    RESTART = "restart"
    RETRY = "retry"


# 需要清掉凭据重新登录的状态码
RELOGIN_CODES = frozenset({DisconnectReason.BAD_SESSION, DisconnectReason.LOGGED_OUT})
# 直接重启 socket 即可的状态码
RESTART_CODES = frozenset({DisconnectReason.RESTART_REQUIRED, DisconnectReason.CONNECTION_CLOSED})


@dataclass(frozen=True)
class ReconnectDecision:
    """一次断线之后要做什么。"""
    action: ReconnectAction
    delay: float
    purge_credentials: bool = False
    code: Optional[int] = None


def _as_int(value: Any) -> Optional[int]:
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return None


def extract_status_code(last_disconnect: Any) -> Optional[int]:
    """取 error.output.statusCode，没有就退回 error.statusCode。"""
    if not isinstance(last_disconnect, dict):
        return None
    error = last_disconnect.get("error")
    if not isinstance(error, dict):
        return None

    output = error.get("output")
    if isinstance(output, dict):
        code = _as_int(output.get("statusCode"))
        if code:
            return code
    return _as_int(error.get("statusCode"))


def describe_disconnect(last_disconnect: Any) -> Any:
    """日志用：优先 output.payload，否则整个 error。"""
    if not isinstance(last_disconnect, dict):
        return last_disconnect
    error = last_disconnect.get("error")
    if isinstance(error, dict) and isinstance(error.get("output"), dict):
        payload = error["output"].get("payload")
        if payload is not None:
            return payload
    return error


def decide_reconnect(
    code: Optional[int],
    *,
    restart_delay: float = 2.0,
    retry_delay: float = 5.0,
) -> ReconnectDecision:
    """根据状态码决定：重新登录 / 重启 / 重试。"""
    if code in RELOGIN_CODES:
        return ReconnectDecision(ReconnectAction.RELOGIN, restart_delay, purge_credentials=True, code=code)
    if code in RESTART_CODES:
        return ReconnectDecision(ReconnectAction.RESTART, restart_delay, code=code)
    return ReconnectDecision(ReconnectAction.RETRY, retry_delay, code=code)
