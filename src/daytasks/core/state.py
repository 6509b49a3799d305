# src/daytasks/core/state.py

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date

from ..tasks.task_lifecycle import TaskLifecycleManager
from ..tasks.task_models import Occurrence
from ..tasks.task_scheduler import DueNotificationScheduler
from .credentials import TokenCredentials
from .ports import TaskRepo


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules.
    settings: object

    repo: TaskRepo
    credentials: TokenCredentials
    manager: TaskLifecycleManager
    scheduler: DueNotificationScheduler

    selected_date: date = field(default_factory=date.today)
    # Last listing shown by /day; command indexes (1-based) refer to it.
    listing: list[Occurrence] = field(default_factory=list)
