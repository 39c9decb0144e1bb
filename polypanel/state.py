from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import IntEnum
from typing import Any

from nicegui import binding

from polypanel.constants import INVITE_PLACEHOLDER, PID_PLACEHOLDER, STATUS_UNKNOWN
from polypanel.errors import PayloadError


class GameMode(IntEnum):
    CASUAL = 0
    COMPETITIVE = 1

    @property
    def label(self) -> str:
        return self.name.capitalize()


GAMEMODE_LABELS: dict[int, str] = {mode.value: mode.label for mode in GameMode}


def _require(payload: Any, key: str) -> Any:
    if not isinstance(payload, dict):
        raise PayloadError(f"expected a JSON object, got {type(payload).__name__}")
    if key not in payload:
        raise PayloadError(f"missing field {key!r}")
    return payload[key]


def _pick(payload: dict, *keys: str) -> Any:
    """Return the first present key; the game server encodes the session with capitalized field names."""
    for key in keys:
        if key in payload:
            return payload[key]
    raise PayloadError(f"missing field {keys[0]!r}")


def _as_int(value: Any, what: str) -> int:
    # bool is an int subclass; never accept it as a number
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise PayloadError(f"{what} must be a number, got {value!r}")
    if isinstance(value, float) and not value.is_integer():
        raise PayloadError(f"{what} must be an integer, got {value!r}")
    return int(value)


@dataclass(frozen=True)
class ServerStatus:
    running: bool
    pid: int | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "ServerStatus":
        running = _require(payload, "running")
        if not isinstance(running, bool):
            raise PayloadError(f"running must be a boolean, got {running!r}")
        pid = payload.get("pid")
        return cls(running=running, pid=None if pid is None else _as_int(pid, "pid"))


@dataclass(frozen=True)
class TrackCatalog:
    tracks: tuple[str, ...] = ()
    current: str = ""


@dataclass(frozen=True)
class SessionDescriptor:
    session_id: str
    gamemode: GameMode
    max_players: int
    switching_session: bool

    @property
    def configuring(self) -> bool:
        return self.switching_session

    @classmethod
    def decode(cls, raw: Any) -> "SessionDescriptor":
        """Decode the session field, which arrives as a JSON string nested in the outer payload."""
        if isinstance(raw, (str, bytes)):
            try:
                raw = json.loads(raw)
            except ValueError as e:
                raise PayloadError(f"undecodable session descriptor: {e}") from e
        if not isinstance(raw, dict):
            raise PayloadError(f"session descriptor must be an object, got {type(raw).__name__}")

        mode = _as_int(_pick(raw, "gamemode", "gameMode", "GameMode"), "gamemode")
        try:
            gamemode = GameMode(mode)
        except ValueError as e:
            raise PayloadError(f"unknown gamemode {mode}") from e
        switching = _pick(raw, "switchingSession", "SwitchingSession")
        if not isinstance(switching, bool):
            raise PayloadError(f"switchingSession must be a boolean, got {switching!r}")
        return cls(
            session_id=str(_pick(raw, "sessionId", "SessionID")),
            gamemode=gamemode,
            max_players=_as_int(_pick(raw, "maxPlayers", "MaxPlayers"), "maxPlayers"),
            switching_session=switching,
        )


@dataclass(frozen=True)
class SessionSnapshot:
    """One tracks poll: catalog, decoded session and the current invite."""

    catalog: TrackCatalog
    session: SessionDescriptor
    invite: str | None = None

    @classmethod
    def from_payload(cls, payload: Any) -> "SessionSnapshot":
        tracks = _require(payload, "tracks")
        if not isinstance(tracks, list) or not all(isinstance(t, str) for t in tracks):
            raise PayloadError("tracks must be a list of strings")
        current = payload.get("current") or ""
        if not isinstance(current, str):
            raise PayloadError(f"current must be a string, got {current!r}")
        invite = payload.get("invite") or None
        return cls(
            catalog=TrackCatalog(tracks=tuple(tracks), current=current),
            session=SessionDescriptor.decode(_require(payload, "session")),
            invite=str(invite) if invite is not None else None,
        )


@dataclass(frozen=True)
class PlayerRecord:
    id: int
    name: str
    time: str
    ping: int

    @classmethod
    def from_payload(cls, payload: Any) -> "PlayerRecord":
        return cls(
            id=_as_int(_require(payload, "id"), "id"),
            name=str(_require(payload, "name")),
            time=str(payload.get("time", "-")),
            ping=_as_int(payload.get("ping", 0), "ping"),
        )

    def to_row(self) -> dict[str, Any]:
        return {"id": self.id, "name": self.name, "time": self.time, "ping": f"{self.ping} ms"}


def parse_players(payload: Any) -> list[PlayerRecord]:
    players = _require(payload, "players")
    if players is None:
        return []
    if not isinstance(players, list):
        raise PayloadError("players must be a list")
    return [PlayerRecord.from_payload(p) for p in players]


@dataclass(frozen=True)
class SessionRequest:
    """Validated session configuration, ready for /session/set."""

    gamemode: GameMode
    track: str
    max_players: int

    def to_payload(self) -> dict[str, Any]:
        return {
            "gamemode": int(self.gamemode),
            "track": self.track,
            "maxPlayers": self.max_players,
        }


@dataclass(frozen=True)
class CommandResult:
    """Acknowledgement of a command: success flag plus whatever the server sent back."""

    ok: bool
    status: int | None = None
    data: dict | None = None
    error: str | None = None

    @classmethod
    def rejected(cls, reason: str) -> "CommandResult":
        return cls(ok=False, error=reason)


# Single view model shared by the render functions and the pages
@binding.bindable_dataclass
class PanelView:
    # server
    status_text: str = STATUS_UNKNOWN
    pid_text: str = PID_PLACEHOLDER
    # invite + tracks
    invite_text: str = INVITE_PLACEHOLDER
    track_options: list[str] = field(default_factory=list)
    current_track: str | None = None
    session_track_options: list[str] = field(default_factory=list)
    session_track: str | None = None
    # session info panel
    session_id_text: str = "-"
    gamemode_text: str = "-"
    max_players_text: str = "-"
    switching_text: str = "-"
    start_enabled: bool = False
    send_enabled: bool = False
    end_enabled: bool = False
    # session form (user-edited)
    gamemode_checks: list[bool] = field(default_factory=lambda: [False] * len(GameMode))
    max_players_input: str = ""
    # roster
    players: list[dict[str, Any]] = field(default_factory=list)
