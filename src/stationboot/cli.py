import argparse
import asyncio
import logging
import os
from pathlib import Path

from .headless import run_headless
from .server.backend import create_backend
from .settings import Settings
from .utils.logging import configure_logging


def parse_args(argv=None):
    parser = argparse.ArgumentParser(
        prog="stationboot",
        description="Station boot flow: loading screen, local save backend and continue gate",
    )
    parser.add_argument(
        "--settings",
        dest="settings_path",
        type=Path,
        default=None,
        help="Path to a user settings YAML file to load/override defaults.",
    )
    parser.add_argument(
        "--debug",
        action="store_true",
        help="Enable verbose debug logging.",
    )
    parser.add_argument(
        "--headless",
        action="store_true",
        help="Run the boot sequence without a window and continue automatically.",
    )
    parser.add_argument(
        "--player-id",
        default=None,
        help="Player id whose save record is loaded during boot.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        default=None,
        help="Also write logs to this file.",
    )
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    configure_logging(level=logging.DEBUG if args.debug else logging.INFO, log_file=args.log_file)

    settings = Settings.load(user_path=args.settings_path)
    backend = create_backend(settings.server)
    if args.player_id:
        backend.set_player_id(args.player_id)

    if args.headless or os.environ.get("STATIONBOOT_HEADLESS") == "1":
        destination = asyncio.run(run_headless(settings, backend))
        return 0 if destination else 1

    # Imported here so headless runs never need a display.
    from .app import GameApp

    app = GameApp(settings, backend)
    app.run()
    return 0
