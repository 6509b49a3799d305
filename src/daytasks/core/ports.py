# src/daytasks/core/ports.py

from __future__ import annotations

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the persistence backend, credential source and notification
channel swappable and makes testing easier.
"""

from collections.abc import Callable
from datetime import date, datetime
from enum import StrEnum
from typing import Awaitable, Protocol

from ..tasks.task_models import Occurrence, TaskStore, TaskTemplate


class NotificationPermission(StrEnum):
    DEFAULT = "default"
    GRANTED = "granted"
    DENIED = "denied"


StoreListener = Callable[[TaskStore], None]


class TaskRepo(Protocol):
    """
    Remote task persistence.

    Positional updates: `index` is the template's position in the list
    stored under `date_key`. set_completions replaces the whole overlay.
    """

    async def fetch_all(self) -> TaskStore: ...
    async def create(self, date_key: str, template: TaskTemplate) -> None: ...
    async def update(self, date_key: str, index: int, template: TaskTemplate) -> None: ...
    async def remove(self, date_key: str, index: int) -> None: ...
    async def set_completions(self, completions: dict[str, bool]) -> None: ...


class CredentialProvider(Protocol):
    """Bearer credential source (owned by the authentication side)."""

    def token(self) -> str | None: ...
    def discard(self) -> None: ...


class Notifier(Protocol):
    """
    Connector-side port: how the scheduler announces a due occurrence.

    The connector decides how to render it (console line, desktop popup, ...).
    """

    def notify(self, occurrence: Occurrence, date_key: str) -> Awaitable[None]: ...


class PermissionPrompt(Protocol):
    """Asks the user whether notifications may be shown. May suspend until answered."""

    def request(self) -> Awaitable[NotificationPermission]: ...


class OccurrenceSource(Protocol):
    """Read-only view the scheduler needs from the lifecycle manager."""

    def occurrences_on(self, target_date: date | datetime) -> list[Occurrence]: ...
    def subscribe(self, listener: StoreListener) -> Callable[[], None]: ...
