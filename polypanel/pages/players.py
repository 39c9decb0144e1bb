from __future__ import annotations

import logging

from nicegui import ui

from polypanel.pages.server import notify_result
from polypanel.services.panel_sync import PanelSync


class PlayersPage:
    """Players tab page: live roster with a kick action per row."""

    def __init__(self, panel: PanelSync) -> None:
        self.panel = panel
        self._shown_rows: list[dict] | None = None

    async def kick(self, player_id: int) -> None:
        try:
            notify_result(await self.panel.roster.kick_player(player_id), f"Kicked player {player_id}")
        except Exception as e:
            logging.error("Kick failed: %s", e)

    @ui.refreshable
    def _rows(self) -> None:
        players = self.panel.view.players
        if not players:
            ui.label("No players connected").classes("text-sm text-gray-500")
            return
        with ui.grid(columns=4).classes("w-full items-center gap-2"):
            for header in ("Name", "Time", "Ping", ""):
                ui.label(header).classes("text-xs font-medium")
            for row in players:
                ui.label(row["name"]).classes("text-sm")
                ui.label(row["time"]).classes("text-sm")
                ui.label(row["ping"]).classes("text-sm")
                ui.button(
                    "Kick", on_click=lambda _, pid=row["id"]: self.kick(pid)
                ).props("dense flat color=negative").mark(f"kick-{row['id']}")

    def sync_widgets(self) -> None:
        """Panel listener: redraw rows only when the roster actually changed."""
        rows = self.panel.view.players
        if rows == self._shown_rows:
            return
        self._shown_rows = list(rows)
        self._rows.refresh()

    def build(self) -> None:
        with ui.card().classes("w-full"):
            ui.label("Players").classes("text-md font-medium")
            self._shown_rows = list(self.panel.view.players)
            self._rows()
        self.panel.add_listener(self.sync_widgets)
        ui.context.client.on_delete(lambda: self.panel.remove_listener(self.sync_widgets))
