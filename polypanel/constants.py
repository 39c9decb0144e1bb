from __future__ import annotations

import logging
import os

# Launcher dashboard API (the panel talks to it, never to the game server directly)
API_BASE_URL: str = os.getenv("POLYPANEL_API_URL", "http://127.0.0.1:8080/api")

# Webserver bind (NiceGUI host/port)
SERVER_HOST: str = os.getenv("POLYPANEL_SERVER_IP", "0.0.0.0")
SERVER_PORT: int = int(os.getenv("POLYPANEL_SERVER_PORT", "8090"))


def env_seconds(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        value = float(raw)
    except ValueError:
        return default
    return value if value > 0 else default


# Poll intervals: roster is the most perishable, the combined session payload the heaviest
STATUS_INTERVAL_S: float = 2.0
ROSTER_INTERVAL_S: float = 1.0
SESSION_INTERVAL_S: float = 3.0

# Settle delays before re-checking after a lifecycle command
START_SETTLE_S: float = 0.8
STOP_SETTLE_S: float = 0.5

REQUEST_TIMEOUT_S: float = 5.0

# Display placeholders
PID_PLACEHOLDER = "-"
INVITE_PLACEHOLDER = "-"
SERVER_DOWN_TEXT = "(server not running)"
STATUS_RUNNING = "Running"
STATUS_STOPPED = "Stopped"
STATUS_UNKNOWN = "Unknown"


def _resolve_log_level() -> int:
    s = os.getenv("POLYPANEL_LOG_LEVEL")
    if s:
        name = s.strip().upper()
        mapping = {
            "DEBUG": logging.DEBUG,
            "INFO": logging.INFO,
            "WARNING": logging.WARNING,
            "ERROR": logging.ERROR,
            "CRITICAL": logging.CRITICAL,
        }
        return mapping.get(name, logging.WARNING)
    else:
        return logging.WARNING


LOG_LEVEL: int = _resolve_log_level()
