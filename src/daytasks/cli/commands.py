# src/daytasks/cli/commands.py

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable
from datetime import date, timedelta

from ..core.ports import NotificationPermission
from ..core.state import AppState
from ..errors import (
    AuthExpiredError,
    DaytasksError,
    TransportError,
)
from ..tasks.recurrence import (
    completion_stats,
    format_date_key,
    month_grid,
    parse_date_key,
    sort_by_time,
)
from ..tasks.task_lifecycle import anchor_of
from ..tasks.task_models import Occurrence, RepeatType, SynthesizedOccurrence, TaskDraft, TaskTemplate

CommandEmitter = Callable[[str], None]
CommandHandler = Callable[[AppState, list[str], CommandEmitter | None], Awaitable[str]]

logger = logging.getLogger(__name__)


class CommandRegistry:
    """Simple slash-command registry used by the console connector (/help, /day, ...)."""

    def __init__(self) -> None:
        self._handlers: dict[str, CommandHandler] = {}
        self._help: dict[str, str] = {}

    def register(
        self,
        name: str,
        handler: CommandHandler,
        help_text: str,
        aliases: list[str] | None = None,
    ) -> None:
        aliases = aliases or []
        key = name.lower()
        self._handlers[key] = handler
        self._help[key] = help_text
        for alias in aliases:
            self._handlers[alias.lower()] = handler

    async def handle(
        self,
        state: AppState,
        line: str,
        emit: CommandEmitter | None = None,
    ) -> str | None:
        """
        Handle a string like "/command args".
        Returns a reply string or None if not a command.
        """
        if not line.startswith("/"):
            return None

        parts = line[1:].split()
        if not parts:
            return "Empty command. Use /help to list available commands."

        name = parts[0].lower()
        args = parts[1:]

        handler = self._handlers.get(name)
        if not handler:
            return f"Unknown command: /{name}. Use /help to list available commands."

        try:
            return await handler(state, args, emit)
        except AuthExpiredError:
            return "Session expired. Use /login <token> to sign in again."
        except TransportError:
            return "Offline: the change was not saved. Use /sync to retry loading."
        except DaytasksError as e:
            return f"Error: {e}"

    def build_help(self) -> str:
        lines = ["Available commands:"]
        for name, help_text in self._help.items():
            lines.append(f"  /{name} - {help_text}")
        return "\n".join(lines)


registry = CommandRegistry()


# ---- parsing helpers ----


def parse_day(arg: str, today: date) -> date:
    """today | tomorrow | yesterday | +N | -N | YYYY-MM-DD"""
    a = arg.strip().lower()
    if a in ("", "today"):
        return today
    if a == "tomorrow":
        return today + timedelta(days=1)
    if a == "yesterday":
        return today - timedelta(days=1)
    if a[0] in "+-" and a[1:].isdigit():
        return today + timedelta(days=int(a))
    return parse_date_key(a)


def parse_draft(args: list[str], base: TaskTemplate | None = None) -> TaskDraft:
    """
    Words form the title; "@HH:MM" sets the time; a repeat flag makes it recurring:
    --daily | --weekly | --weekdays | --custom=0,6 (0 = Sunday).

    With base (editing), every field starts from the existing template and only
    what was typed changes. --once stops recurrence, --no-time clears the time,
    and an edit without title words keeps the old title.
    """
    title: list[str] = []
    time_s = base.time if base else None
    is_repeating = base.is_repeating if base else False
    repeat_type = base.repeat_type if base else RepeatType.DAILY
    days = set(base.repeat_days) if base else set()

    for tok in args:
        if tok.startswith("@") and len(tok) > 1:
            time_s = tok[1:]
        elif tok == "--no-time":
            time_s = None
        elif tok == "--once":
            is_repeating = False
        elif tok.startswith("--custom="):
            is_repeating, repeat_type = True, RepeatType.CUSTOM
            days = {int(p) for p in tok.split("=", 1)[1].split(",") if p.strip().isdigit()}
        elif tok.startswith("--") and tok[2:] in {r.value for r in RepeatType}:
            is_repeating, repeat_type = True, RepeatType(tok[2:])
        else:
            title.append(tok)

    return TaskDraft(
        title=" ".join(title) if title or base is None else base.title,
        time=time_s,
        is_repeating=is_repeating,
        repeat_type=repeat_type,
        repeat_days=frozenset(days),
    )


def _pick(state: AppState, raw: str) -> Occurrence | None:
    if not raw.isdigit():
        return None
    i = int(raw) - 1
    if 0 <= i < len(state.listing):
        return state.listing[i]
    return None


def render_day(state: AppState) -> str:
    occs = sort_by_time(state.manager.occurrences_on(state.selected_date))
    state.listing = occs
    done, total = completion_stats(occs)

    header = f"{state.selected_date.strftime('%A, %B %d, %Y')} - completed {done}/{total}"
    if not state.manager.online:
        header += " [offline]"
    if not occs:
        return header + "\n  (no tasks)"

    lines = [header]
    for i, o in enumerate(occs, start=1):
        mark = "x" if o.completed else " "
        when = o.time or "--:--"
        repeat = f" (repeats {o.template.repeat_type})" if o.template.is_repeating else ""
        lines.append(f"  {i}. [{mark}] {when} {o.title}{repeat}")
    return "\n".join(lines)


# ---- handlers ----


async def cmd_help(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    return registry.build_help()


async def cmd_status(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    backend = getattr(state.settings, "api_base_url", None) or "local file"
    sched = state.scheduler
    notif = "ON" if sched.running and sched.permission == NotificationPermission.GRANTED else "OFF"
    return (
        "Status:\n"
        f"  Store: {'online' if state.manager.online else 'offline'} ({backend})\n"
        f"  Notifications: {notif} (permission: {sched.permission.value})\n"
        f"  Selected day: {format_date_key(state.selected_date)}"
    )


async def cmd_day(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if args:
        try:
            state.selected_date = parse_day(args[0], date.today())
        except ValueError:
            return "Usage: /day [today|tomorrow|+N|-N|YYYY-MM-DD]"
    return render_day(state)


async def cmd_add(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /add <title> [@HH:MM] [--daily|--weekly|--weekdays|--custom=1,3,5]"
    draft = parse_draft(args)
    await state.manager.create(format_date_key(state.selected_date), draft)
    return render_day(state)


async def cmd_edit(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    occ = _pick(state, args[0]) if args else None
    if occ is None or len(args) < 2:
        return "Usage: /edit <n> [title] [@HH:MM|--no-time] [--daily|--weekly|--weekdays|--custom=1,3,5|--once]"

    # Unmentioned fields keep their current values.
    await state.manager.edit(occ, parse_draft(args[1:], base=occ.template))

    note = ""
    if isinstance(occ, SynthesizedOccurrence):
        # Edits always land on the template; show its own day afterwards.
        state.selected_date = parse_date_key(anchor_of(occ))
        note = f"Edited the original task on {anchor_of(occ)}.\n"
    return note + render_day(state)


async def cmd_done(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    occ = _pick(state, args[0]) if args else None
    if occ is None:
        return "Usage: /done <n> (see /day for numbers)"
    await state.manager.toggle_completion(occ)
    return render_day(state)


async def cmd_rm(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    occ = _pick(state, args[0]) if args else None
    if occ is None:
        return "Usage: /rm <n> (see /day for numbers)"
    await state.manager.delete(occ)
    return render_day(state)


async def cmd_month(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    anchor = state.selected_date
    if args:
        try:
            y, m = (int(p) for p in args[0].split("-", 1))
            anchor = date(y, m, 1)
        except ValueError:
            return "Usage: /month [YYYY-MM]"

    today = date.today()
    lines = [anchor.strftime("%B %Y"), " Sun  Mon  Tue  Wed  Thu  Fri  Sat"]
    row: list[str] = []
    for d in month_grid(anchor.year, anchor.month):
        cell = f"{d.day:2d}" if d.month == anchor.month else "  "
        flag = "*" if d.month == anchor.month and state.manager.occurrences_on(d) else " "
        if d == today:
            cell = f"[{cell}]"
        else:
            cell = f" {cell} "
        row.append(cell + flag)
        if len(row) == 7:
            lines.append("".join(row).rstrip())
            row = []
    lines.append("(* = has tasks, [..] = today)")
    return "\n".join(lines)


async def cmd_notify(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    sched = state.scheduler
    if not args:
        return f"Notifications are {'ON' if sched.running else 'OFF'}. Use /notify on or /notify off."

    arg = args[0].lower()
    if arg in ("on", "1", "true", "yes"):
        if sched.running:
            return "Notifications are already ON."
        if await sched.enable():
            return "Notifications enabled. Due tasks will be announced here."
        return "Notifications were not allowed."

    if arg in ("off", "0", "false", "no"):
        await sched.stop()
        sched.disable()
        return "Notifications disabled."

    return "Usage: /notify on or /notify off."


async def cmd_sync(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if emit:
        emit("Loading tasks...")
    ok = await state.manager.load()
    if not ok:
        return "Could not reach the task store; showing the last known tasks."
    return render_day(state)


async def cmd_prune(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    dropped = await state.manager.prune_completions()
    return f"Removed {dropped} stale completion entr{'y' if dropped == 1 else 'ies'}."


async def cmd_login(state: AppState, args: list[str], emit: CommandEmitter | None = None) -> str:
    if not args:
        return "Usage: /login <token>"
    state.credentials.save(args[0])
    logger.info("New credentials stored")
    return await cmd_sync(state, [], emit)


registry.register("help", cmd_help, help_text="Show available commands.", aliases=["h", "?"])
registry.register("status", cmd_status, help_text="Show store / notification status.")
registry.register("day", cmd_day, help_text="Show a day: /day [today|tomorrow|+N|-N|YYYY-MM-DD].", aliases=["d"])
registry.register("add", cmd_add, help_text="Add a task to the selected day: /add <title> [@HH:MM] [--weekly].")
registry.register("edit", cmd_edit, help_text="Edit task n; only the typed fields change (repeating tasks edit the original).")
registry.register("done", cmd_done, help_text="Toggle completion of task n.", aliases=["toggle"])
registry.register("rm", cmd_rm, help_text="Delete task n (not repeating occurrences).", aliases=["delete"])
registry.register("month", cmd_month, help_text="Month overview: /month [YYYY-MM].")
registry.register("notify", cmd_notify, help_text="Due-task notifications: /notify on | /notify off.")
registry.register("sync", cmd_sync, help_text="Reload tasks from the store.")
registry.register("prune", cmd_prune, help_text="Drop completion marks of deleted tasks.")
registry.register("login", cmd_login, help_text="Store a new API token: /login <token>.")
