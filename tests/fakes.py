# tests/fakes.py

from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from daytasks.core.ports import NotificationPermission
from daytasks.tasks.task_models import Occurrence, TaskStore, TaskTemplate


class FakeTaskRepo:
    """
    In-memory TaskRepo used for lifecycle / scheduler tests.

    - records every call for assertions
    - fail_with: raise this error from the next calls (until reset to None)
    - gate: if set, every call waits on it (lets tests observe in-flight state)
    """

    def __init__(self, store: TaskStore | None = None) -> None:
        self.store = store.copy() if store is not None else TaskStore()
        self.calls: list[tuple] = []
        self.fail_with: Exception | None = None
        self.gate: asyncio.Event | None = None

    async def _enter(self, *call: object) -> None:
        self.calls.append(call)
        if self.gate is not None:
            await self.gate.wait()
        if self.fail_with is not None:
            raise self.fail_with

    async def fetch_all(self) -> TaskStore:
        await self._enter("fetch_all")
        return self.store.copy()

    async def create(self, date_key: str, template: TaskTemplate) -> None:
        await self._enter("create", date_key, template.copy())
        self.store.days.setdefault(date_key, []).append(template.copy())

    async def update(self, date_key: str, index: int, template: TaskTemplate) -> None:
        await self._enter("update", date_key, index, template.copy())
        self.store.days[date_key][index] = template.copy()

    async def remove(self, date_key: str, index: int) -> None:
        await self._enter("remove", date_key, index)
        del self.store.days[date_key][index]

    async def set_completions(self, completions: dict[str, bool]) -> None:
        await self._enter("set_completions", dict(completions))
        self.store.completions = dict(completions)


class FakeCredentials:
    def __init__(self, token: str | None = "secret") -> None:
        self._token = token
        self.discarded = 0

    def token(self) -> str | None:
        return self._token

    def discard(self) -> None:
        self._token = None
        self.discarded += 1


@dataclass(slots=True)
class SentNotification:
    key: str
    title: str
    time: str | None
    date_key: str


@dataclass(slots=True)
class FakeNotifier:
    """Fake Notifier; fail_titles makes notify() raise for those titles."""

    sent: list[SentNotification] = field(default_factory=list)
    fail_titles: set[str] = field(default_factory=set)

    async def notify(self, occurrence: Occurrence, date_key: str) -> None:
        if occurrence.title in self.fail_titles:
            raise RuntimeError(f"cannot show {occurrence.title}")
        self.sent.append(
            SentNotification(
                key=occurrence.instance_key,
                title=occurrence.title,
                time=occurrence.time,
                date_key=date_key,
            )
        )


@dataclass(slots=True)
class FakePermission:
    answer: NotificationPermission = NotificationPermission.GRANTED
    asked: int = 0

    async def request(self) -> NotificationPermission:
        self.asked += 1
        return self.answer
