"""日志配置模块。

统一配置项目日志，使用 logger 而非 print。
协议网关 / HTTP 库自己的日志比较吵，默认压到 WARNING。
"""

import logging
import sys

# 日志格式
LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# 第三方库 logger（只看警告以上）
NOISY_LOGGERS = ("websockets", "aiohttp.access", "httpx", "httpcore")


def parse_level(name: str, default: int = logging.INFO) -> int:
    """"debug" / "INFO" -> logging 常量；无法识别时返回 default。"""
    level = logging.getLevelName((name or "").upper().strip())
    return level if isinstance(level, int) else default


def setup_logger(level: int = logging.INFO) -> logging.Logger:
    """初始化日志配置。

    参数:
        level: 日志级别，默认 INFO

    返回:
        已配置的根 logger
    """
    root = logging.getLogger()
    root.setLevel(level)

    # 避免重复添加处理器
    if not root.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT))
        root.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    return root
