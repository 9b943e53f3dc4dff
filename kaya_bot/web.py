"""HTTP 页面：显示登录二维码 + 健康检查。

- GET /        二维码页面（还没有二维码时显示等待页，自动刷新）
- GET /health  {"status": ..., "qrLastUpdated": ...}
"""

from __future__ import annotations

from pathlib import Path

from aiohttp import web
from jinja2 import Environment, FileSystemLoader, select_autoescape

from .settings import BotSettings
from .status import ConnectionStatus

TEMPLATES_DIR = Path(__file__).resolve().parent / "templates"

jinja_env = Environment(
    loader=FileSystemLoader(TEMPLATES_DIR),
    autoescape=select_autoescape(["html", "xml"]),
)

SETTINGS_KEY = web.AppKey("settings", BotSettings)
STATUS_KEY = web.AppKey("status", ConnectionStatus)


def render_index(settings: BotSettings, status: ConnectionStatus) -> str:
    if not status.has_qr:
        template = jinja_env.get_template("waiting.html")
        return template.render(
            bot_name=settings.bot_name,
            status=status.status,
            refresh_seconds=settings.qr_refresh_seconds,
        )

    template = jinja_env.get_template("qr.html")
    return template.render(
        bot_name=settings.bot_name,
        status=status.status,
        qr_last_updated=status.qr_last_updated,
        qr_data_url=status.qr_data_url,
    )


async def index(request: web.Request) -> web.Response:
    body = render_index(request.app[SETTINGS_KEY], request.app[STATUS_KEY])
    return web.Response(text=body, content_type="text/html")


async def health(request: web.Request) -> web.Response:
    return web.json_response(request.app[STATUS_KEY].snapshot())


def create_app(settings: BotSettings, status: ConnectionStatus) -> web.Application:
    app = web.Application()
    app[SETTINGS_KEY] = settings
    app[STATUS_KEY] = status
    app.router.add_get("/", index)
    app.router.add_get("/health", health)
    return app
