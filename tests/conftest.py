"""Shared test fixtures for pytest."""

from pathlib import Path

import pytest

from kaya_bot.auth_state import SingleFileAuthState
from kaya_bot.handler import MessageHandler
from kaya_bot.message_store import MessageStore
from kaya_bot.settings import BotSettings
from kaya_bot.status import ConnectionStatus


@pytest.fixture
def settings(tmp_path: Path) -> BotSettings:
    """Default settings with the auth file inside tmp_path and no network version lookup."""
    return BotSettings(
        auth_file=str(tmp_path / "auth_info_multi.json"),
        fetch_latest_version=False,
    )


@pytest.fixture
def status() -> ConnectionStatus:
    return ConnectionStatus()


@pytest.fixture
def auth_state(settings: BotSettings) -> SingleFileAuthState:
    return SingleFileAuthState(Path(settings.auth_file))


@pytest.fixture
def handler(settings: BotSettings) -> MessageHandler:
    return MessageHandler(settings)


@pytest.fixture
def store() -> MessageStore:
    return MessageStore(limit=10)
