from __future__ import annotations

import logging

from nicegui import ui

from polypanel.pages.server import notify_result
from polypanel.services.panel_sync import PanelSync
from polypanel.state import GAMEMODE_LABELS


class SessionPage:
    """Session tab page: invite, active track and the session configuration form."""

    def __init__(self, panel: PanelSync) -> None:
        self.panel = panel
        self.track_select: ui.select | None = None
        self.session_track_select: ui.select | None = None
        self.gamemode_radio: ui.radio | None = None
        self.max_players_input: ui.input | None = None

    # ---- Actions ----

    async def _create_invite(self) -> None:
        try:
            notify_result(await self.panel.session.create_invite(), "Invite created")
        except Exception as e:
            logging.error("Create invite failed: %s", e)

    async def _set_track(self) -> None:
        try:
            result = await self.panel.session.set_track()
            notify_result(result, f"Track set to {self.panel.view.current_track}")
        except Exception as e:
            logging.error("Set track failed: %s", e)

    async def _end_session(self) -> None:
        try:
            notify_result(await self.panel.session.end_session(), "Session ended")
        except Exception as e:
            logging.error("End session failed: %s", e)

    async def _start_session(self) -> None:
        try:
            notify_result(await self.panel.session.start_session(), "Session started")
        except Exception as e:
            logging.error("Start session failed: %s", e)

    async def _send_session(self) -> None:
        try:
            notify_result(await self.panel.session.send_session(), "Session settings sent")
        except Exception as e:
            logging.error("Send session failed: %s", e)

    # ---- Form edits (write-through to the view model) ----

    def _on_track(self, e) -> None:
        self.panel.view.current_track = e.value

    def _on_session_track(self, e) -> None:
        self.panel.view.session_track = e.value

    def _on_gamemode(self, e) -> None:
        self.panel.view.gamemode_checks = [e.value == mode for mode in GAMEMODE_LABELS]

    def _checked_gamemode(self) -> int | None:
        for mode, checked in zip(GAMEMODE_LABELS, self.panel.view.gamemode_checks):
            if checked:
                return mode
        return None

    # ---- View -> widgets ----

    @staticmethod
    def _sync_select(select: ui.select | None, options: list[str], value: str | None) -> None:
        if select is None:
            return
        if list(select.options) != options:
            select.set_options(list(options), value=value)
        elif select.value != value:
            select.value = value

    def sync_widgets(self) -> None:
        """Panel listener: push option lists and prefilled form values into the widgets."""
        view = self.panel.view
        self._sync_select(self.track_select, view.track_options, view.current_track)
        self._sync_select(
            self.session_track_select, view.session_track_options, view.session_track
        )
        if self.gamemode_radio is not None:
            checked = self._checked_gamemode()
            if self.gamemode_radio.value != checked:
                self.gamemode_radio.value = checked

    # ---- UI ----

    def build(self) -> None:
        view = self.panel.view

        with ui.card().classes("w-full"):
            ui.label("Invite").classes("text-md font-medium")
            with ui.row().classes("items-center gap-4"):
                ui.label().bind_text_from(view, "invite_text").classes("text-lg font-mono")
                ui.button("Create invite", on_click=self._create_invite).props("unelevated").mark(
                    "invite-button"
                )

        with ui.card().classes("w-full"):
            ui.label("Track").classes("text-md font-medium")
            with ui.row().classes("items-center gap-2"):
                self.track_select = ui.select(
                    options=list(view.track_options),
                    value=view.current_track,
                    label="Current track",
                    on_change=self._on_track,
                ).classes("w-64").mark("track-select")
                ui.button("Set track", on_click=self._set_track).props("unelevated").mark(
                    "set-track-button"
                )

        with ui.card().classes("w-full"):
            ui.label("Session").classes("text-md font-medium")
            with ui.row().classes("items-center gap-4"):
                for attr, caption in (
                    ("session_id_text", "ID"),
                    ("gamemode_text", "Mode"),
                    ("max_players_text", "Max players"),
                    ("switching_text", "Switching"),
                ):
                    ui.label().bind_text_from(
                        view, attr, backward=lambda v, c=caption: f"{c}: {v}"
                    ).classes("text-sm").mark(attr)
            ui.separator()
            with ui.row().classes("items-center gap-2"):
                self.gamemode_radio = ui.radio(
                    dict(GAMEMODE_LABELS),
                    value=self._checked_gamemode(),
                    on_change=self._on_gamemode,
                ).props("inline").mark("gamemode-radio")
                self.session_track_select = ui.select(
                    options=list(view.session_track_options),
                    value=view.session_track,
                    label="Session track",
                    on_change=self._on_session_track,
                ).classes("w-64").mark("session-track-select")
                self.max_players_input = (
                    ui.input(label="Max players")
                    .bind_value(view, "max_players_input")
                    .classes("w-32")
                    .mark("max-players-input")
                )
            with ui.row().classes("items-center gap-2"):
                ui.button("Send", on_click=self._send_session).bind_enabled_from(
                    view, "send_enabled"
                ).props("unelevated color=primary").mark("send-button")
                ui.button("Start session", on_click=self._start_session).bind_enabled_from(
                    view, "start_enabled"
                ).props("unelevated color=positive").mark("start-session-button")
                ui.button("End session", on_click=self._end_session).bind_enabled_from(
                    view, "end_enabled"
                ).props("unelevated color=negative").mark("end-session-button")

        self.panel.add_listener(self.sync_widgets)
        ui.context.client.on_delete(lambda: self.panel.remove_listener(self.sync_widgets))
