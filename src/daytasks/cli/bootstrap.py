# src/daytasks/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (repo/credentials/manager/scheduler).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..connectors.console_connector import ConsoleNotifier, ConsolePermissionPrompt
from ..core.credentials import TokenCredentials
from ..core.ports import Notifier, PermissionPrompt, TaskRepo
from ..core.state import AppState
from ..tasks.file_repo import JsonFileTaskRepo
from ..tasks.task_lifecycle import TaskLifecycleManager
from ..tasks.task_repo import HttpTaskRepo
from ..tasks.task_scheduler import DueNotificationScheduler

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.token_path.parent.mkdir(parents=True, exist_ok=True)
    settings.local_store_path.parent.mkdir(parents=True, exist_ok=True)


def build_repo(settings, credentials: TokenCredentials) -> TaskRepo:
    if settings.api_base_url:
        return HttpTaskRepo(
            settings.api_base_url,
            credentials,
            timeout_seconds=settings.http_timeout_seconds,
        )
    logger.info("No API base URL configured; using local store %s", settings.local_store_path)
    return JsonFileTaskRepo(settings.local_store_path)


def create_initial_state(
    *,
    settings=None,
    repo: TaskRepo | None = None,
    notifier: Notifier | None = None,
    permissions: PermissionPrompt | None = None,
) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings and collaborators injectable makes the app easier to test.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    credentials = TokenCredentials(settings.api_token, token_path=settings.token_path)
    if repo is None:
        repo = build_repo(settings, credentials)

    manager = TaskLifecycleManager(repo, credentials=credentials)
    scheduler = DueNotificationScheduler(
        manager,
        notifier or ConsoleNotifier(),
        permissions or ConsolePermissionPrompt(assume_granted=settings.notifications_enabled),
        interval_seconds=settings.notify_interval_seconds,
    )

    return AppState(
        settings=settings,
        repo=repo,
        credentials=credentials,
        manager=manager,
        scheduler=scheduler,
    )
