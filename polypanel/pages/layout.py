from __future__ import annotations

from nicegui import ui

from polypanel.pages.players import PlayersPage
from polypanel.pages.server import ServerPage
from polypanel.pages.session import SessionPage
from polypanel.services.panel_sync import PanelSync


def build_header_and_tabs(
    server_page: ServerPage, session_page: SessionPage, players_page: PlayersPage
) -> None:
    with (
        ui.header().classes("p-0"),
        ui.row().classes("w-full items-center justify-between"),
    ):
        with ui.tabs() as main_tabs:
            server_tab = ui.tab("Server")
            session_tab = ui.tab("Session")
            players_tab = ui.tab("Players")
        ui.label("PolyTrack server panel").classes("text-sm text-center pr-4")

    with ui.tab_panels(main_tabs, value=server_tab).classes("w-full"):
        with ui.tab_panel(server_tab):
            server_page.build()
        with ui.tab_panel(session_tab):
            session_page.build()
        with ui.tab_panel(players_tab):
            players_page.build()


def build_footer(panel: PanelSync) -> None:
    with ui.footer().classes("justify-between items-center px-3 py-1"):
        with ui.row().classes("items-center gap-4"):
            ui.label().bind_text_from(
                panel.view, "status_text", backward=lambda v: f"SERVER {v}"
            ).classes("text-sm")
            ui.label("|").classes("text-sm")
            ui.label().bind_text_from(
                panel.view, "players", backward=lambda v: f"{len(v)} players"
            ).classes("text-sm")
        ui.label(panel.client.base_url).classes("text-xs")


def build_layout(panel: PanelSync) -> tuple[ServerPage, SessionPage, PlayersPage]:
    """Build the whole panel for the current client; every browser tab gets its own pages."""
    pages = ServerPage(panel), SessionPage(panel), PlayersPage(panel)
    ui.query(".nicegui-content").classes("p-0")
    build_header_and_tabs(*pages)
    build_footer(panel)
    return pages
