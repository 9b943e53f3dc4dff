"""单文件认证状态。

凭据由协议网关生成，这里只当黑盒 JSON 保存：
- 每次启动会话前从文件读出来交给网关
- 收到 creds.update 就合并后写回
- 会话失效（badSession / loggedOut）时删除，强制重新扫码

文件读写放到线程池里做，避免阻塞事件循环。
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

# 全局线程池（避免每次创建）
_executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="auth_io")


def _sync_read_json(path: Path) -> Optional[Dict[str, Any]]:
    """同步读取认证文件（在线程池中调用）。"""
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, ValueError) as e:
        logger.warning("读取认证文件 %s 失败: %s", path, e)
        return None
    if not isinstance(data, dict):
        logger.warning("认证文件 %s 内容不是 JSON 对象，忽略", path)
        return None
    return data


def _sync_write_json(path: Path, data: Dict[str, Any]) -> None:
    """先写临时文件再替换，避免写一半进程被杀导致文件损坏。"""
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_name(path.name + ".tmp")
    tmp.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
    os.replace(tmp, path)


def _sync_unlink(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True


class SingleFileAuthState:
    """认证状态（一个 JSON 文件）。"""

    def __init__(self, path: Path):
        self.path = Path(path)
        self.creds: Optional[Dict[str, Any]] = None

    @property
    def exists(self) -> bool:
        return self.path.exists()

    async def load(self) -> Optional[Dict[str, Any]]:
        """从文件加载凭据；没有文件返回 None（需要扫码）。"""
        loop = asyncio.get_running_loop()
        self.creds = await loop.run_in_executor(_executor, _sync_read_json, self.path)
        return self.creds

    async def update(self, partial: Dict[str, Any]) -> bool:
        """合并网关推送的凭据更新并写回文件。

        返回:
            是否写入成功；写失败只记日志（内存里的凭据仍然更新），不影响当前会话。
        """
        if not isinstance(partial, dict):
            logger.warning("忽略非法的 creds.update: %r", type(partial))
            return False
        creds = dict(self.creds or {})
        creds.update(partial)
        self.creds = creds

        loop = asyncio.get_running_loop()
        try:
            await loop.run_in_executor(_executor, _sync_write_json, self.path, creds)
        except OSError as e:
            logger.error("写入认证文件 %s 失败: %s", self.path, e)
            return False
        logger.debug("凭据已保存 keys=%s", len(creds))
        return True

    async def delete(self) -> bool:
        """删除认证文件。

        返回:
            是否真的删掉了一个文件；删除失败只记日志，不抛异常（后面还要继续重启）。
        """
        self.creds = None
        loop = asyncio.get_running_loop()
        try:
            removed = await loop.run_in_executor(_executor, _sync_unlink, self.path)
        except OSError as e:
            logger.error("无法删除认证文件 %s: %s", self.path, e)
            return False
        if removed:
            logger.info("认证文件已删除: %s", self.path)
        return removed
