"""拉取协议最新版本号（可选）。

拉不到就用配置里的兜底版本，不影响启动。
"""

from __future__ import annotations

import logging
from typing import Optional, Tuple

import httpx

from .settings import BotSettings

logger = logging.getLogger(__name__)


class VersionFetchError(RuntimeError):
    """版本文件格式不对。"""


async def fetch_latest_version(
    url: str,
    *,
    timeout: float = 10.0,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[int, ...]:
    """GET 版本文件，期望 {"version": [2, 3000, 1015901307]}。"""
    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=timeout)
    try:
        resp = await client.get(url)
        resp.raise_for_status()
        try:
            data = resp.json()
        except ValueError as exc:
            raise VersionFetchError("版本文件不是合法 JSON") from exc
    finally:
        if owns_client:
            await client.aclose()

    version = data.get("version") if isinstance(data, dict) else None
    if not isinstance(version, list) or not version:
        raise VersionFetchError(f"版本文件缺少 version 字段: {data!r}")
    if not all(isinstance(part, int) and not isinstance(part, bool) for part in version):
        raise VersionFetchError(f"version 字段必须是整数数组: {version!r}")
    return tuple(version)


async def resolve_version(
    settings: BotSettings,
    client: Optional[httpx.AsyncClient] = None,
) -> Tuple[int, ...]:
    """返回要交给网关的版本号：优先最新版，失败用兜底。"""
    if not settings.fetch_latest_version:
        return settings.fallback_version

    try:
        version = await fetch_latest_version(
            settings.version_url, timeout=settings.version_timeout, client=client
        )
    except (httpx.HTTPError, VersionFetchError) as e:
        logger.warning("拉取最新协议版本失败，使用兜底版本 %s: %s", settings.fallback_version, e)
        return settings.fallback_version

    logger.info("协议版本已获取 version=%s", ".".join(str(v) for v in version))
    return version
