import argparse
import dataclasses
import logging
import sys

from nicegui import app as ng_app
from nicegui import ui

from polypanel.common.logging_config import TRACE, configure_logging, enable_trace
from polypanel.config import PanelConfig, config
from polypanel.constants import LOG_LEVEL
from polypanel.pages.layout import build_layout
from polypanel.services.game_client import client
from polypanel.services.panel_sync import PanelSync

# Runtime configuration (resolved later from CLI/env)
RUNTIME_CONFIG: PanelConfig = config

# ------------------------ Global state ------------------------

panel = PanelSync(client, RUNTIME_CONFIG)


@ui.page("/")
def index() -> None:
    build_layout(panel)


async def _app_shutdown() -> None:
    await panel.stop()


ng_app.on_shutdown(_app_shutdown)

# Poll timers (status 2s, roster 1s, session 3s); they begin ticking once the app is up
panel.start()


def main() -> None:
    global RUNTIME_CONFIG
    # CLI: web bind, launcher API target, and log level
    parser = argparse.ArgumentParser(description="PolyTrack server control panel")
    parser.add_argument("--host", default=config.ui_host, help="Webserver bind host")
    parser.add_argument(
        "--port", type=int, default=config.ui_port, help="Webserver bind port"
    )
    parser.add_argument(
        "--api-url",
        default=config.api_url,
        help="Launcher API base URL (e.g. http://127.0.0.1:8080/api)",
    )
    parser.add_argument(
        "--log-level",
        choices=["TRACE", "DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Set log level",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="count",
        default=0,
        help="Increase verbosity; -v=INFO, -vv=DEBUG, -vvv=TRACE",
    )
    parser.add_argument(
        "-q", "--quiet", action="store_true", help="Enable WARNING logging"
    )
    args, _ = parser.parse_known_args()

    RUNTIME_CONFIG = dataclasses.replace(
        config, ui_host=args.host, ui_port=int(args.port), api_url=args.api_url
    )
    client.base_url = RUNTIME_CONFIG.api_url
    panel.config = RUNTIME_CONFIG

    # Resolve log level priority: explicit --log-level > -v/-q > env default from constants
    if args.log_level:
        if args.log_level == "TRACE":
            enable_trace()
            runtime_log_level = TRACE
        else:
            runtime_log_level = getattr(logging, args.log_level)
    elif args.verbose >= 3:
        enable_trace()
        runtime_log_level = TRACE
    elif args.verbose >= 2:
        runtime_log_level = logging.DEBUG
    elif args.verbose == 1:
        runtime_log_level = logging.INFO
    elif args.quiet:
        runtime_log_level = logging.WARNING
    else:
        runtime_log_level = LOG_LEVEL

    configure_logging(runtime_log_level)
    logging.info(
        "Webserver bind: host=%s port=%s", RUNTIME_CONFIG.ui_host, RUNTIME_CONFIG.ui_port
    )
    logging.info("Launcher API: %s", RUNTIME_CONFIG.api_url)

    ui.run(
        title="PolyTrack Server Panel",
        host=RUNTIME_CONFIG.ui_host,
        port=RUNTIME_CONFIG.ui_port,
        reload=False,
        show=False,
        loop="uvloop" if sys.platform != "win32" else "asyncio",
        http="httptools",
        ws="wsproto",
    )


if __name__ in {"__main__", "__mp_main__"}:
    main()
