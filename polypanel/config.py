from __future__ import annotations

import os
from dataclasses import dataclass

from polypanel.constants import (
    API_BASE_URL,
    REQUEST_TIMEOUT_S,
    ROSTER_INTERVAL_S,
    SERVER_HOST,
    SERVER_PORT,
    SESSION_INTERVAL_S,
    START_SETTLE_S,
    STATUS_INTERVAL_S,
    STOP_SETTLE_S,
    env_seconds,
)


@dataclass(frozen=True)
class PanelConfig:
    """Runtime configuration for the panel and its connection to the launcher API."""

    api_url: str = API_BASE_URL
    ui_host: str = SERVER_HOST
    ui_port: int = SERVER_PORT  # NiceGUI server port
    status_interval: float = STATUS_INTERVAL_S
    roster_interval: float = ROSTER_INTERVAL_S
    session_interval: float = SESSION_INTERVAL_S
    start_settle: float = START_SETTLE_S
    stop_settle: float = STOP_SETTLE_S
    request_timeout: float = REQUEST_TIMEOUT_S

    @classmethod
    def from_env(cls) -> "PanelConfig":
        return cls(
            api_url=os.getenv("POLYPANEL_API_URL", API_BASE_URL),
            ui_host=os.getenv("POLYPANEL_SERVER_IP", SERVER_HOST),
            ui_port=int(os.getenv("POLYPANEL_SERVER_PORT", str(SERVER_PORT))),
            status_interval=env_seconds("POLYPANEL_STATUS_INTERVAL", STATUS_INTERVAL_S),
            roster_interval=env_seconds("POLYPANEL_ROSTER_INTERVAL", ROSTER_INTERVAL_S),
            session_interval=env_seconds("POLYPANEL_SESSION_INTERVAL", SESSION_INTERVAL_S),
            request_timeout=env_seconds("POLYPANEL_REQUEST_TIMEOUT", REQUEST_TIMEOUT_S),
        )


# Export a default instance for convenience
config = PanelConfig.from_env()
