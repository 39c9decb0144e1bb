"""Status, roster and session/track synchronization over the launcher API."""

from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable, Iterable

from polypanel.config import PanelConfig
from polypanel.errors import InvalidInputError
from polypanel.render import (
    render_invite,
    render_roster,
    render_session_snapshot,
    render_session_unavailable,
    render_status,
    render_status_unavailable,
    session_request_from_view,
)
from polypanel.services.game_client import GameServerClient
from polypanel.services.pollers import ResourcePoller
from polypanel.state import CommandResult, PanelView

Listener = Callable[[], None]


class StatusPoller:
    """Server running/pid label; every poll overwrites the previous one."""

    def __init__(
        self, client: GameServerClient, view: PanelView, interval: float, changed: Listener
    ) -> None:
        self.view = view
        self._changed = changed
        self.poller = ResourcePoller(
            "status", interval, client.status, self._apply, self._unavailable
        )

    def _apply(self, status) -> None:
        render_status(self.view, status)
        self._changed()

    def _unavailable(self, _error: Exception) -> None:
        render_status_unavailable(self.view)
        self._changed()

    async def refresh_status(self) -> bool:
        return await self.poller.refresh()


class RosterPoller:
    """Player table; a failed poll leaves the previous rows in place."""

    def __init__(
        self, client: GameServerClient, view: PanelView, interval: float, changed: Listener
    ) -> None:
        self.client = client
        self.view = view
        self._changed = changed
        self.poller = ResourcePoller("roster", interval, client.players, self._apply)

    def _apply(self, players) -> None:
        render_roster(self.view, players)
        self._changed()

    async def refresh_roster(self) -> bool:
        return await self.poller.refresh()

    async def kick_player(self, player_id: int) -> CommandResult:
        """Best effort; the next roster tick shows whether the player left."""
        result = await self.client.kick(player_id)
        if result.ok:
            logging.info("Kick sent for player %s", player_id)
        else:
            logging.warning("Kick for player %s failed: %s", player_id, result.error)
        return result


class SessionSynchronizer:
    """
    Track catalog, session descriptor and invite code.

    Polls merge through render_session_snapshot so an in-progress session
    configuration is not wiped. Session commands resynchronize right away;
    set_track waits for the next scheduled tick.
    """

    def __init__(
        self, client: GameServerClient, view: PanelView, interval: float, changed: Listener
    ) -> None:
        self.client = client
        self.view = view
        self._changed = changed
        self.poller = ResourcePoller(
            "session", interval, client.tracks, self._apply, self._unavailable
        )

    def _apply(self, snapshot) -> None:
        render_session_snapshot(self.view, snapshot)
        self._changed()

    def _unavailable(self, _error: Exception) -> None:
        render_session_unavailable(self.view)
        self._changed()

    async def refresh(self) -> bool:
        return await self.poller.refresh()

    async def _command_then_refresh(
        self, label: str, send: Callable[[], Awaitable[CommandResult]]
    ) -> CommandResult:
        result = await send()
        if result.ok:
            logging.info("%s sent", label)
        else:
            logging.warning("%s failed: %s", label, result.error)
        # the server may or may not have moved; the next descriptor decides
        await self.refresh()
        return result

    async def create_invite(self) -> CommandResult:
        result = await self.client.create_invite()
        if result.ok:
            invite = (result.data or {}).get("invite")
            render_invite(self.view, invite)
            self._changed()
            logging.info("Created invite %s", invite)
        else:
            logging.warning("Create invite failed: %s", result.error)
        await self.refresh()
        return result

    async def set_track(self, name: str | None = None) -> CommandResult:
        track = name if name is not None else self.view.current_track
        if not track:
            return CommandResult.rejected("Select a track first")
        result = await self.client.set_track(track)
        if result.ok:
            logging.info("Track set to %s", track)
        else:
            logging.warning("Set track %s failed: %s", track, result.error)
        return result

    async def end_session(self) -> CommandResult:
        if not self.view.end_enabled:
            return CommandResult.rejected("No running session to end")
        return await self._command_then_refresh("End session", self.client.end_session)

    async def start_session(self) -> CommandResult:
        if not self.view.start_enabled:
            return CommandResult.rejected("Session is already running")
        return await self._command_then_refresh("Start session", self.client.start_session)

    async def send_session(self) -> CommandResult:
        """Submit the session form; invalid input never reaches the server."""
        if not self.view.send_enabled:
            return CommandResult.rejected("End the running session before configuring a new one")
        try:
            request = session_request_from_view(self.view)
        except InvalidInputError as e:
            logging.warning("Session settings rejected: %s", e)
            return CommandResult.rejected(str(e))
        logging.info(
            "Sending session: %s on %s, max %d players",
            request.gamemode.label,
            request.track,
            request.max_players,
        )
        return await self._command_then_refresh(
            "Session settings", lambda: self.client.set_session(request)
        )


class PanelSync:
    """Owns the three pollers, the shared view and the server lifecycle commands."""

    def __init__(
        self,
        client: GameServerClient,
        cfg: PanelConfig,
        view: PanelView | None = None,
    ) -> None:
        self.client = client
        self.config = cfg
        self.view = view if view is not None else PanelView()
        self._listeners: list[Listener] = []
        self._delayed: set[asyncio.Task] = set()
        self.status = StatusPoller(client, self.view, cfg.status_interval, self._notify)
        self.roster = RosterPoller(client, self.view, cfg.roster_interval, self._notify)
        self.session = SessionSynchronizer(
            client, self.view, cfg.session_interval, self._notify
        )

    # ---- listeners ----

    def add_listener(self, listener: Listener) -> None:
        if listener not in self._listeners:
            self._listeners.append(listener)

    def remove_listener(self, listener: Listener) -> None:
        with contextlib.suppress(ValueError):
            self._listeners.remove(listener)

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener()
            except Exception as e:
                logging.error("View listener failed: %s", e)

    # ---- lifecycle ----

    @property
    def pollers(self) -> tuple[ResourcePoller, ...]:
        return (self.status.poller, self.roster.poller, self.session.poller)

    @property
    def running(self) -> bool:
        return any(p.running for p in self.pollers)

    def start(self) -> None:
        for poller in self.pollers:
            poller.start()
        logging.info("Polling %s", self.client.base_url)

    async def stop(self) -> None:
        for task in list(self._delayed):
            task.cancel()
        for task in list(self._delayed):
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._delayed.clear()
        for poller in self.pollers:
            await poller.stop()
        await self.client.close()

    def recheck_after(self, delay: float, pollers: Iterable[ResourcePoller]) -> asyncio.Task:
        """One delayed refresh of the given resources (not a new timer)."""
        targets = tuple(pollers)

        async def _recheck() -> None:
            await asyncio.sleep(delay)
            await asyncio.gather(*(p.refresh() for p in targets))

        task = asyncio.create_task(_recheck(), name="recheck")
        self._delayed.add(task)
        task.add_done_callback(self._delayed.discard)
        return task

    async def start_server(self) -> CommandResult:
        result = await self.client.start_server()
        if result.ok:
            logging.info("Server start requested")
        else:
            logging.error("Server start failed: %s", result.error)
        self.recheck_after(self.config.start_settle, (self.status.poller, self.session.poller))
        return result

    async def stop_server(self) -> CommandResult:
        result = await self.client.stop_server()
        if result.ok:
            logging.info("Server stop requested")
        else:
            logging.error("Server stop failed: %s", result.error)
        self.recheck_after(self.config.stop_settle, (self.status.poller,))
        return result
