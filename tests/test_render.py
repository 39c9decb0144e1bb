from __future__ import annotations

import pytest

from polypanel.constants import SERVER_DOWN_TEXT
from polypanel.render import (
    render_roster,
    render_session_snapshot,
    render_session_unavailable,
    render_status,
    render_status_unavailable,
    session_controls,
)
from polypanel.state import GameMode, PanelView, ServerStatus
from tests.utils.recorder import make_player, make_snapshot


@pytest.mark.unit
def test_stopped_server_shows_placeholder_pid(view: PanelView):
    render_status(view, ServerStatus(running=False))
    assert view.status_text == "Stopped"
    assert view.pid_text == "-"


@pytest.mark.unit
def test_running_server_shows_pid(view: PanelView):
    render_status(view, ServerStatus(running=True, pid=1234))
    assert view.status_text == "Running"
    assert view.pid_text == "1234"


@pytest.mark.unit
def test_unreachable_status_renders_unknown(view: PanelView):
    render_status(view, ServerStatus(running=True, pid=1234))
    render_status_unavailable(view)
    assert view.status_text == "Unknown"
    assert view.pid_text == "-"


@pytest.mark.unit
@pytest.mark.parametrize("switching", [True, False])
def test_controls_are_a_function_of_switching(switching: bool):
    controls = session_controls(switching)
    assert controls.start is switching
    assert controls.send is switching
    assert controls.end is (not switching)


@pytest.mark.unit
def test_locked_first_poll_populates_both_selectors(view: PanelView):
    repopulated = render_session_snapshot(view, make_snapshot(switching=False))

    assert repopulated
    assert view.track_options == ["Alpine", "Desert"]
    assert view.session_track_options == ["Alpine", "Desert"]
    assert view.current_track == "Alpine"
    assert (view.start_enabled, view.send_enabled, view.end_enabled) == (False, False, True)
    assert view.invite_text == "ABC123"
    assert view.switching_text == "no"


@pytest.mark.unit
def test_configuring_with_populated_selectors_keeps_user_choice(view: PanelView):
    render_session_snapshot(view, make_snapshot(switching=True))
    # operator edits the form
    view.session_track = "Desert"
    view.current_track = "Desert"
    view.max_players_input = "12"
    view.gamemode_checks = [True, False]
    options_before = view.track_options

    repopulated = render_session_snapshot(
        view, make_snapshot(tracks=("Alpine", "Desert"), switching=True, invite="NEW")
    )

    assert not repopulated
    assert view.track_options is options_before
    assert view.track_options == ["Alpine", "Desert"]
    assert view.session_track == "Desert"
    assert view.current_track == "Desert"
    assert view.max_players_input == "12"
    assert view.gamemode_checks == [True, False]
    # info panel, buttons and invite are still re-rendered
    assert view.invite_text == "NEW"
    assert (view.start_enabled, view.send_enabled, view.end_enabled) == (True, True, False)


@pytest.mark.unit
def test_configuring_with_empty_selectors_populates(view: PanelView):
    assert render_session_snapshot(view, make_snapshot(switching=True))
    assert view.track_options == ["Alpine", "Desert"]


@pytest.mark.unit
def test_locked_poll_repopulates_from_latest_catalog(view: PanelView):
    render_session_snapshot(view, make_snapshot(switching=False))
    render_session_snapshot(
        view, make_snapshot(tracks=("Canyon", "Desert", "Alpine"), current="Desert", switching=False)
    )
    assert view.track_options == ["Canyon", "Desert", "Alpine"]
    assert view.current_track == "Desert"


@pytest.mark.unit
def test_current_missing_from_catalog_selects_nothing(view: PanelView):
    render_session_snapshot(view, make_snapshot(tracks=("Alpine",), current="Gone"))
    assert view.current_track is None
    assert view.session_track == "Alpine"


@pytest.mark.unit
def test_session_track_choice_survives_locked_repopulation(view: PanelView):
    render_session_snapshot(view, make_snapshot(switching=False))
    view.session_track = "Desert"
    render_session_snapshot(view, make_snapshot(switching=False))
    assert view.session_track == "Desert"


@pytest.mark.unit
def test_repopulation_prefills_form_from_descriptor(view: PanelView):
    render_session_snapshot(
        view, make_snapshot(gamemode=GameMode.CASUAL, max_players=64, switching=False)
    )
    assert view.gamemode_checks == [True, False]
    assert view.max_players_input == "64"
    assert view.gamemode_text == "Casual"
    assert view.max_players_text == "64"


@pytest.mark.unit
def test_missing_invite_shows_placeholder(view: PanelView):
    render_session_snapshot(view, make_snapshot(invite=None))
    assert view.invite_text == "-"


@pytest.mark.unit
def test_unavailable_session_locks_everything_but_keeps_tracks(view: PanelView):
    render_session_snapshot(view, make_snapshot(switching=True))
    render_session_unavailable(view)
    assert view.invite_text == SERVER_DOWN_TEXT
    assert view.track_options == ["Alpine", "Desert"]
    assert (view.start_enabled, view.send_enabled, view.end_enabled) == (False, False, False)


@pytest.mark.unit
def test_roster_render_is_idempotent(view: PanelView):
    players = [make_player(1, "Ana"), make_player(2, "Bo")]
    render_roster(view, players)
    first = list(view.players)
    render_roster(view, players)
    assert view.players == first
    assert len(view.players) == 2


@pytest.mark.unit
def test_roster_replaces_rows_and_collapses_duplicate_ids(view: PanelView):
    render_roster(view, [make_player(1), make_player(42)])
    render_roster(view, [make_player(1, ping=10), make_player(1, ping=20)])
    assert [row["id"] for row in view.players] == [1]
    assert view.players[0]["ping"] == "20 ms"
