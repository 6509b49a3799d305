# src/daytasks/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, loads tasks, optionally turns on
due-task notifications, then runs the console front end on one asyncio loop.
"""

from __future__ import annotations

import asyncio
import logging

from ..cli.bootstrap import create_initial_state
from ..config import get_settings
from ..connectors.console_connector import run_console_loop
from ..core.state import AppState
from ..errors import AuthExpiredError
from ..logging_setup import setup_logging

logger = logging.getLogger(__name__)


async def _shutdown(state: AppState) -> None:
    """Best-effort shutdown (no exceptions should escape)."""
    try:
        await state.scheduler.stop()
    except Exception:
        logger.exception("Scheduler stop failed.")

    try:
        close = getattr(state.repo, "aclose", None)
        if close is not None:
            await close()
    except Exception:
        logger.debug("Repo close failed.", exc_info=True)


async def run(state: AppState) -> None:
    try:
        await state.manager.load()
    except AuthExpiredError:
        print("Session expired or missing. Use /login <token> to sign in.")

    try:
        if state.settings.notifications_enabled:
            await state.scheduler.enable()

        if state.settings.console_enabled:
            await run_console_loop(state)
        else:
            logger.info("Console disabled. Running notifications only. Press Ctrl+C to stop.")
            if not state.scheduler.running:
                logger.warning("Notifications are not enabled either; nothing to do.")
                return
            await asyncio.Event().wait()
    finally:
        await _shutdown(state)


def main() -> None:
    settings = get_settings()

    log_file = setup_logging(log_dir=settings.data_dir, console_level=settings.log_level)

    logger.info("Starting %s (log file: %s)...", settings.app_name, log_file)

    state = create_initial_state(settings=settings)
    try:
        asyncio.run(run(state))
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down...")
    logger.info("Bye.")


if __name__ == "__main__":
    main()
