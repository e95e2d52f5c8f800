# src/momentum_spark/cli/main.py

"""
CLI entrypoint.

Initializes logging, then runs one of:
- serve: the task HTTP API on the configured SQLite database,
- console: the interactive client talking to a running API.
"""

from __future__ import annotations

import argparse
import asyncio
import logging
from dataclasses import replace

from ..cli.bootstrap import close_state, create_initial_state
from ..config import Settings, get_settings
from ..connectors.console_connector import run_console_loop
from ..logging_setup import setup_logging
from ..web.app import create_app
from ..web.routes import EXTENSION_KEY

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="momentum-spark", description="Weighted personal task tracker."
    )
    sub = parser.add_subparsers(dest="command", required=True)

    serve = sub.add_parser("serve", help="Run the task HTTP API.")
    serve.add_argument("--host", help="Bind address (default: MOMENTUM_HOST).")
    serve.add_argument("--port", type=int, help="Port (default: MOMENTUM_PORT).")

    console = sub.add_parser("console", help="Interactive console client.")
    console.add_argument("--api-url", help="API base URL (default: MOMENTUM_API_URL).")
    return parser


def _serve(settings: Settings) -> None:
    app = create_app(settings)
    state = app.extensions[EXTENSION_KEY]
    logger.info("Serving API on http://%s:%s", settings.host, settings.port)
    try:
        app.run(host=settings.host, port=settings.port)
    finally:
        state.database.close()


async def _console(settings: Settings) -> None:
    state = create_initial_state(settings=settings)
    try:
        await run_console_loop(state)
    finally:
        await close_state(state)


def main(argv: list[str] | None = None) -> None:
    args = build_parser().parse_args(argv)
    settings = get_settings()

    if args.command == "serve":
        if args.host:
            settings = replace(settings, host=args.host)
        if args.port:
            settings = replace(settings, port=args.port)
    elif args.command == "console" and args.api_url:
        settings = replace(settings, api_url=args.api_url)

    # choose console log level from settings.log_level
    level_name = str(settings.log_level).upper()
    console_level = getattr(logging, level_name, logging.INFO)
    setup_logging(log_dir=settings.data_dir, console_level=console_level)

    logger.info("Starting %s (%s)...", settings.app_name, args.command)

    if args.command == "serve":
        _serve(settings)
    else:
        try:
            asyncio.run(_console(settings))
        except KeyboardInterrupt:
            logger.info("Interrupted.")

    logger.info("Bye.")


if __name__ == "__main__":
    main()
