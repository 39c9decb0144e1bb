"""Render policy: apply fetched snapshots to the PanelView.

Every function here is synchronous and only touches the view it is given, so the
merge policy can be exercised without a browser or a server.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from typing import NamedTuple

from polypanel.constants import (
    INVITE_PLACEHOLDER,
    PID_PLACEHOLDER,
    SERVER_DOWN_TEXT,
    STATUS_RUNNING,
    STATUS_STOPPED,
    STATUS_UNKNOWN,
)
from polypanel.errors import InvalidInputError
from polypanel.state import (
    GameMode,
    PanelView,
    PlayerRecord,
    ServerStatus,
    SessionDescriptor,
    SessionRequest,
    SessionSnapshot,
)


class SessionControls(NamedTuple):
    start: bool
    send: bool
    end: bool


def session_controls(switching_session: bool) -> SessionControls:
    """Configuring allows start/send, Locked allows only end."""
    return SessionControls(
        start=switching_session, send=switching_session, end=not switching_session
    )


# ---- status ----


def render_status(view: PanelView, status: ServerStatus) -> None:
    view.status_text = STATUS_RUNNING if status.running else STATUS_STOPPED
    if status.running and status.pid is not None:
        view.pid_text = str(status.pid)
    else:
        view.pid_text = PID_PLACEHOLDER


def render_status_unavailable(view: PanelView) -> None:
    view.status_text = STATUS_UNKNOWN
    view.pid_text = PID_PLACEHOLDER


# ---- roster ----


def render_roster(view: PanelView, players: Iterable[PlayerRecord]) -> None:
    """Replace the roster table; one row per player id."""
    rows: dict[int, dict] = {}
    for player in players:
        rows[player.id] = player.to_row()
    view.players = list(rows.values())


# ---- tracks + session ----


def _populate_tracks(view: PanelView, snapshot: SessionSnapshot) -> None:
    tracks = list(snapshot.catalog.tracks)
    current = snapshot.catalog.current if snapshot.catalog.current in tracks else None

    previous_choice = view.session_track
    if previous_choice in tracks:
        session_track = previous_choice
    elif current is not None:
        session_track = current
    else:
        session_track = tracks[0] if tracks else None

    view.track_options = tracks
    view.current_track = current
    view.session_track_options = list(tracks)
    view.session_track = session_track

    # prefill the form from what the server runs now
    view.gamemode_checks = [mode == snapshot.session.gamemode for mode in GameMode]
    view.max_players_input = str(snapshot.session.max_players)


def _render_session_info(view: PanelView, session: SessionDescriptor) -> None:
    view.session_id_text = session.session_id
    view.gamemode_text = session.gamemode.label
    view.max_players_text = str(session.max_players)
    view.switching_text = "yes" if session.switching_session else "no"
    controls = session_controls(session.switching_session)
    view.start_enabled = controls.start
    view.send_enabled = controls.send
    view.end_enabled = controls.end


def render_session_snapshot(view: PanelView, snapshot: SessionSnapshot) -> bool:
    """
    Merge one tracks+session poll into the view.

    While a session is being configured and the selectors already hold options,
    the selectors and the form are left alone so an unsubmitted choice survives
    the poll. Returns True when the selectors were repopulated.
    """
    mid_edit = bool(view.track_options) and snapshot.session.configuring
    if not mid_edit:
        _populate_tracks(view, snapshot)

    _render_session_info(view, snapshot.session)
    view.invite_text = snapshot.invite or INVITE_PLACEHOLDER
    return not mid_edit


def render_session_unavailable(view: PanelView) -> None:
    """Server down or session undecodable: keep the last track lists, lock every command."""
    view.invite_text = SERVER_DOWN_TEXT
    view.session_id_text = "-"
    view.gamemode_text = "-"
    view.max_players_text = "-"
    view.switching_text = "-"
    view.start_enabled = False
    view.send_enabled = False
    view.end_enabled = False


def render_invite(view: PanelView, invite: str | None) -> None:
    view.invite_text = invite or INVITE_PLACEHOLDER


# ---- session form ----


def selected_gamemode(checks: Sequence[bool]) -> GameMode:
    """Ordinal of the first checked choice."""
    for index, checked in enumerate(checks):
        if checked:
            try:
                return GameMode(index)
            except ValueError:
                break
    raise InvalidInputError("Select a gamemode")


def parse_max_players(text: str | int | None) -> int:
    if isinstance(text, bool):
        raise InvalidInputError("Max players must be a whole number")
    if isinstance(text, int):
        value = text
    else:
        raw = (text or "").strip()
        # digits only: no sign, underscores or decimal point
        if not raw.isdigit() or not raw.isascii():
            raise InvalidInputError(f"Max players must be a whole number, got {raw!r}")
        value = int(raw)
    if value < 1:
        raise InvalidInputError("Max players must be at least 1")
    return value


def build_session_request(
    checks: Sequence[bool], track: str | None, max_players: str | int | None
) -> SessionRequest:
    """Validate the session form; raises InvalidInputError before anything is sent."""
    gamemode = selected_gamemode(checks)
    if not track:
        raise InvalidInputError("Select a track for the session")
    return SessionRequest(
        gamemode=gamemode, track=track, max_players=parse_max_players(max_players)
    )


def session_request_from_view(view: PanelView) -> SessionRequest:
    return build_session_request(
        view.gamemode_checks, view.session_track, view.max_players_input
    )
