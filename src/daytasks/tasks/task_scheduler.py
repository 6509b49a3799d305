# src/daytasks/tasks/task_scheduler.py

from __future__ import annotations

"""
Due-task notification scheduler.

A small polling loop that:
- expands today's occurrences through the same engine the day view uses,
- picks the incomplete ones whose "HH:MM" equals the current minute,
- emits one notification per occurrence per calendar day via an injected
  notifier port,
- forgets everything at local midnight.

Rendering the notification belongs to the connector, not the scheduler.
"""

import asyncio
import contextlib
import logging
from collections.abc import Callable
from datetime import datetime, time, timedelta

from ..core.ports import (
    NotificationPermission,
    Notifier,
    OccurrenceSource,
    PermissionPrompt,
)
from .recurrence import format_date_key
from .task_models import Occurrence, TaskStore

logger = logging.getLogger(__name__)


def seconds_until_midnight(now: datetime) -> float:
    midnight = datetime.combine(now.date() + timedelta(days=1), time.min, tzinfo=now.tzinfo)
    return max(0.0, (midnight - now).total_seconds())


def seconds_until_next_minute(now: datetime) -> float:
    return 60.0 - (now.second + now.microsecond / 1_000_000)


class DueNotificationScheduler:
    """
    Emits at most one notification per (occurrence, day).

    State:
    - notified: instance keys ("<templateId>-<dateKey>") already announced today
    - permission: default / granted / denied

    Nothing is evaluated unless permission is granted. To stop the loops,
    call stop().
    """

    def __init__(
        self,
        source: OccurrenceSource,
        notifier: Notifier,
        permissions: PermissionPrompt,
        *,
        interval_seconds: float = 30.0,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._source = source
        self._notifier = notifier
        self._permissions = permissions
        self._interval = max(0.5, float(interval_seconds))
        self._clock = clock

        self.notified: set[str] = set()
        self.permission = NotificationPermission.DEFAULT

        self._loops: list[asyncio.Task[None]] = []
        self._pending: set[asyncio.Task[list[str]]] = set()
        self._unsubscribe: Callable[[], None] | None = None

    @property
    def running(self) -> bool:
        return bool(self._loops)

    # ---- lifecycle ----

    async def enable(self) -> bool:
        """
        Ask for permission; on grant start the loops and check immediately.

        Denial leaves the scheduler off without raising.
        """
        if self.running:
            return True

        try:
            answer = await self._permissions.request()
        except Exception:
            logger.exception("Notification permission request failed")
            answer = NotificationPermission.DENIED

        self.permission = NotificationPermission(answer)
        if self.permission != NotificationPermission.GRANTED:
            logger.info("Notifications not granted (%s); scheduler stays off", self.permission.value)
            return False

        self.start()
        await self.check_due()
        return True

    def start(self) -> None:
        if self.running:
            return
        self._loops = [
            asyncio.create_task(self._poll_loop(), name="due-poll"),
            asyncio.create_task(self._midnight_loop(), name="due-midnight-reset"),
        ]
        self._unsubscribe = self._source.subscribe(self._on_store_change)
        logger.info("Due-task scheduler started (interval=%.1fs)", self._interval)

    async def stop(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

        tasks = [*self._loops, *self._pending]
        self._loops = []
        self._pending.clear()
        for t in tasks:
            t.cancel()
        for t in tasks:
            with contextlib.suppress(asyncio.CancelledError):
                await t
        if tasks:
            logger.info("Due-task scheduler stopped")

    def disable(self) -> None:
        """Forget the grant; a later enable() asks again."""
        self.permission = NotificationPermission.DEFAULT

    # ---- checks ----

    async def check_due(self, now: datetime | None = None) -> list[str]:
        """
        Announce occurrences due at the current minute. Returns the keys emitted.

        A failed emission is logged and counted as announced (no retry within
        the day).
        """
        if self.permission != NotificationPermission.GRANTED:
            return []

        now = now or self._clock()
        date_key = format_date_key(now)
        now_hhmm = now.strftime("%H:%M")

        try:
            todays = self._source.occurrences_on(now)
        except Exception:
            logger.exception("Expanding occurrences for %s failed", date_key)
            return []

        emitted: list[str] = []
        for occ in todays:
            if not occ.time or occ.completed or occ.time != now_hhmm:
                continue

            key = occ.instance_key
            if key in self.notified:
                continue

            self.notified.add(key)
            try:
                await self._notifier.notify(occ, date_key)
            except Exception:
                logger.exception("Notification failed key=%s", key)
                continue

            emitted.append(key)
            logger.info("Notified due task key=%s title=%r time=%s", key, occ.title, occ.time)

        self._sweep(todays)
        return emitted

    def _sweep(self, todays: list[Occurrence]) -> None:
        # Completed occurrences may be announced again if they are un-completed later.
        for occ in todays:
            if occ.completed:
                self.notified.discard(occ.instance_key)

    def reset(self) -> None:
        if self.notified:
            logger.debug("Clearing %d notified keys", len(self.notified))
        self.notified.clear()

    async def on_visible(self) -> list[str]:
        """App came back to the foreground: check right away instead of waiting for the timer."""
        return await self.check_due()

    def _on_store_change(self, _store: TaskStore) -> None:
        if not self.running:
            return
        task = asyncio.create_task(self.check_due())
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    # ---- loops ----

    def _next_delay(self, now: datetime) -> float:
        # Never sleep across a minute boundary, so every minute gets a check.
        return min(self._interval, seconds_until_next_minute(now) + 0.05)

    async def _poll_loop(self) -> None:
        while True:
            await asyncio.sleep(self._next_delay(self._clock()))
            try:
                await self.check_due()
            except Exception:
                logger.exception("Due-task check failed")

    async def _midnight_loop(self) -> None:
        while True:
            await asyncio.sleep(seconds_until_midnight(self._clock()))
            self.reset()
