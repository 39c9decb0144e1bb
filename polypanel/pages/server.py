from __future__ import annotations

import logging

from nicegui import ui

from polypanel.common.logging_config import attach_ui_log, detach_ui_log
from polypanel.services.panel_sync import PanelSync
from polypanel.state import CommandResult


def notify_result(result: CommandResult, success: str) -> None:
    if result.ok:
        ui.notify(success, color="positive")
    else:
        ui.notify(result.error or "Request failed", color="negative")


class ServerPage:
    """Server tab page: process status and lifecycle."""

    def __init__(self, panel: PanelSync) -> None:
        self.panel = panel
        self.log: ui.log | None = None

    # ---- Actions ----

    async def _start(self) -> None:
        try:
            notify_result(await self.panel.start_server(), "Start requested")
        except Exception as e:
            logging.error("Start server failed: %s", e)

    async def _stop(self) -> None:
        try:
            notify_result(await self.panel.stop_server(), "Stop requested")
        except Exception as e:
            logging.error("Stop server failed: %s", e)

    def _release_log(self) -> None:
        if self.log is not None:
            detach_ui_log(self.log)

    # ---- UI ----

    def build(self) -> None:
        view = self.panel.view
        with ui.card().classes("w-full"):
            ui.label("Game server").classes("text-md font-medium")
            with ui.row().classes("items-center gap-4"):
                ui.label().bind_text_from(
                    view, "status_text", backward=lambda v: f"Status: {v}"
                ).classes("text-sm").mark("server-status")
                ui.label().bind_text_from(
                    view, "pid_text", backward=lambda v: f"PID: {v}"
                ).classes("text-sm").mark("server-pid")
            with ui.row().classes("items-center gap-2"):
                ui.button("Start", on_click=self._start).props("unelevated color=positive")
                ui.button("Stop", on_click=self._stop).props("unelevated color=negative")

        with ui.card().classes("w-full"):
            ui.label("Panel log").classes("text-md font-medium")
            self.log = ui.log(max_lines=200).classes("w-full h-64")
            attach_ui_log(self.log)
        # the log handler keeps weak refs; drop ours as soon as the tab goes away
        ui.context.client.on_delete(self._release_log)
