from __future__ import annotations

import socket
from typing import TYPE_CHECKING

import pytest
from aiohttp.test_utils import TestServer

from polypanel.config import PanelConfig
from polypanel.services.game_client import GameServerClient
from polypanel.services.panel_sync import PanelSync
from polypanel.state import PanelView
from tests.utils.fake_launcher import FakeLauncher
from tests.utils.recorder import RecorderClient

pytest_plugins = ["nicegui.testing.user_plugin"]

if TYPE_CHECKING:
    from collections.abc import AsyncIterator


@pytest.fixture
def view() -> PanelView:
    return PanelView()


@pytest.fixture
def fast_config() -> PanelConfig:
    """Short intervals so loop tests finish quickly."""
    return PanelConfig(
        api_url="http://fake/api",
        status_interval=0.05,
        roster_interval=0.05,
        session_interval=0.05,
        start_settle=0.05,
        stop_settle=0.05,
        request_timeout=1.0,
    )


@pytest.fixture
def recorder() -> RecorderClient:
    return RecorderClient()


@pytest.fixture
async def panel(recorder: RecorderClient, fast_config: PanelConfig) -> AsyncIterator[PanelSync]:
    sync = PanelSync(recorder, fast_config)  # type: ignore[arg-type]
    try:
        yield sync
    finally:
        await sync.stop()


@pytest.fixture
def launcher() -> FakeLauncher:
    return FakeLauncher()


@pytest.fixture
async def launcher_url(launcher: FakeLauncher) -> AsyncIterator[str]:
    """Serve the fake launcher on an ephemeral port; yields the API base URL."""
    server = TestServer(launcher.make_app())
    await server.start_server()
    try:
        yield str(server.make_url("/api"))
    finally:
        await server.close()


@pytest.fixture
async def game_client(launcher_url: str) -> AsyncIterator[GameServerClient]:
    client = GameServerClient(base_url=launcher_url, timeout=2.0)
    try:
        yield client
    finally:
        await client.close()


@pytest.fixture
def dead_url() -> str:
    """Base URL of a port nothing listens on."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
        s.bind(("127.0.0.1", 0))
        port = s.getsockname()[1]
    return f"http://127.0.0.1:{port}/api"
