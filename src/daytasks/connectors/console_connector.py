# src/daytasks/connectors/console_connector.py

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from ..cli.commands import registry as command_registry
from ..cli.commands import render_day
from ..core.ports import NotificationPermission
from ..core.state import AppState
from ..tasks.task_models import Occurrence

logger = logging.getLogger(__name__)


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleNotifier:
    """Notifier that prints due tasks to the terminal."""

    async def notify(self, occurrence: Occurrence, date_key: str) -> None:
        _print_ts(f'[DUE] "{occurrence.title}" is scheduled for {occurrence.time}')


class ConsolePermissionPrompt:
    """
    Ask on the terminal whether notifications may be shown.

    With assume_granted=True (notifications turned on via settings) no question is asked.
    """

    def __init__(self, *, assume_granted: bool = False) -> None:
        self._assume_granted = assume_granted

    async def request(self) -> NotificationPermission:
        if self._assume_granted:
            return NotificationPermission.GRANTED
        answer = await asyncio.to_thread(input, "Allow due-task notifications? [y/N] ")
        if answer.strip().lower() in ("y", "yes"):
            return NotificationPermission.GRANTED
        return NotificationPermission.DENIED


async def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started.")
    _print_ts("[CONSOLE] Use /help for commands. Use /exit to quit.\n")
    print(render_day(state), flush=True)

    def emit(text: str) -> None:
        # Immediate user-visible feedback for slow operations (network round-trips).
        _print_ts(text)

    while True:
        try:
            user_input = (await asyncio.to_thread(input, ">>> ")).strip()
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        # Coming back to the prompt counts as the app being in the foreground again.
        try:
            await state.scheduler.on_visible()
        except Exception:
            logger.exception("Foreground due-task check failed.")

        if not user_input:
            continue

        if user_input.lower() in ("/exit", "/quit"):
            logger.info("Console exit command received.")
            break

        try:
            reply = await command_registry.handle(state, user_input, emit=emit)
        except Exception:
            logger.exception("Command handler crashed.")
            reply = "Internal error while handling a command."

        if reply is None:
            reply = "Commands start with '/'. Use /help to list them."
        print(reply, flush=True)

    logger.info("Console connector finished.")
