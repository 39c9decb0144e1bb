from __future__ import annotations

import pytest

from polypanel.config import PanelConfig
from polypanel.errors import DataUnavailableError, PayloadError
from polypanel.services.game_client import GameServerClient
from polypanel.services.panel_sync import PanelSync
from polypanel.state import GameMode, SessionRequest
from tests.utils.fake_launcher import FakeLauncher


@pytest.mark.integration
async def test_status(game_client: GameServerClient, launcher: FakeLauncher):
    status = await game_client.status()
    assert status.running
    assert status.pid == launcher.pid


@pytest.mark.integration
async def test_tracks_decodes_nested_session(game_client: GameServerClient, launcher: FakeLauncher):
    launcher.switching = True
    launcher.gamemode = 0
    snapshot = await game_client.tracks()
    assert snapshot.catalog.tracks == ("Alpine", "Desert", "Canyon")
    assert snapshot.catalog.current == "Alpine"
    assert snapshot.invite == "INV-1"
    assert snapshot.session.switching_session
    assert snapshot.session.gamemode is GameMode.CASUAL


@pytest.mark.integration
async def test_garbled_session_is_payload_error(game_client: GameServerClient, launcher: FakeLauncher):
    launcher.session_raw = "{garbled"
    with pytest.raises(PayloadError):
        await game_client.tracks()


@pytest.mark.integration
async def test_http_error_on_fetch_is_unavailable(game_client: GameServerClient, launcher: FakeLauncher):
    launcher.running = False
    with pytest.raises(DataUnavailableError):
        await game_client.tracks()


@pytest.mark.integration
async def test_unreachable_server(dead_url: str):
    client = GameServerClient(base_url=dead_url, timeout=1.0)
    try:
        with pytest.raises(DataUnavailableError):
            await client.status()
        result = await client.start_server()
        assert not result.ok
        assert result.status is None
        assert result.error
    finally:
        await client.close()


@pytest.mark.integration
async def test_players_and_kick(game_client: GameServerClient, launcher: FakeLauncher):
    launcher.players = [
        {"id": 42, "name": "Ana", "time": "3.000s", "ping": 20},
        {"id": 7, "name": "Bo", "time": "-", "ping": 95},
    ]
    players = await game_client.players()
    assert [p.id for p in players] == [42, 7]

    result = await game_client.kick(42)
    assert result.ok
    assert result.status == 204
    assert launcher.posted("/api/kick") == [{"id": 42}]
    assert [p.id for p in await game_client.players()] == [7]


@pytest.mark.integration
async def test_kick_with_undecodable_reply_still_returns_result(
    game_client: GameServerClient, launcher: FakeLauncher
):
    launcher.players = [{"id": 1, "name": "Ann", "time": "1.500s", "ping": 30}]
    launcher.kick_reply = (200, b"\xff\xfe bad", "application/json")
    result = await game_client.kick(1)
    assert result.ok
    assert result.data is None

    launcher.kick_reply = (500, b"\xff\xfe bad", "text/plain")
    result = await game_client.kick(1)
    assert not result.ok
    assert result.status == 500
    assert "bad" in result.error
    assert "\ufffd" in result.error


@pytest.mark.integration
async def test_create_invite_returns_code(game_client: GameServerClient):
    result = await game_client.create_invite()
    assert result.ok
    assert result.data == {"invite": "INV-2"}


@pytest.mark.integration
async def test_set_track_body_and_error(game_client: GameServerClient, launcher: FakeLauncher):
    assert (await game_client.set_track("Desert")).ok
    assert launcher.posted("/api/tracks") == [{"name": "Desert"}]

    missing = await game_client.set_track("Nowhere")
    assert not missing.ok
    assert missing.status == 404
    assert missing.error == "Track not found"


@pytest.mark.integration
async def test_session_set_sends_wire_payload(game_client: GameServerClient, launcher: FakeLauncher):
    request = SessionRequest(gamemode=GameMode.CASUAL, track="Canyon", max_players=10)
    assert (await game_client.set_session(request)).ok
    assert launcher.posted("/api/session/set") == [
        {"gamemode": 0, "track": "Canyon", "maxPlayers": 10}
    ]
    assert launcher.switching


@pytest.mark.integration
async def test_end_twice_reports_server_refusal(game_client: GameServerClient):
    assert (await game_client.end_session()).ok
    second = await game_client.end_session()
    assert not second.ok
    assert second.status == 400


@pytest.mark.integration
async def test_full_session_cycle_through_panel(launcher_url: str, launcher: FakeLauncher):
    client = GameServerClient(base_url=launcher_url, timeout=2.0)
    panel = PanelSync(client, PanelConfig(api_url=launcher_url))
    try:
        await panel.session.refresh()
        assert panel.view.end_enabled

        assert (await panel.session.end_session()).ok
        assert panel.view.send_enabled

        panel.view.gamemode_checks = [True, False]
        panel.view.session_track = "Canyon"
        panel.view.max_players_input = "16"
        assert (await panel.session.send_session()).ok
        assert launcher.max_players == 16
        assert launcher.current == "Canyon"
        # still configuring with populated widgets: the operator's form survives
        assert panel.view.session_track == "Canyon"

        assert (await panel.session.start_session()).ok
        assert panel.view.end_enabled
        assert panel.view.max_players_text == "16"
        assert panel.view.current_track == "Canyon"
    finally:
        await panel.stop()
