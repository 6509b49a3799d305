# tests/conftest.py

from __future__ import annotations

from datetime import date
from pathlib import Path
from types import SimpleNamespace

import pytest

from daytasks.cli.bootstrap import create_initial_state
from daytasks.tasks.task_lifecycle import TaskLifecycleManager
from daytasks.tasks.task_models import RepeatType, TaskStore, TaskTemplate

from .fakes import FakeCredentials, FakeNotifier, FakePermission, FakeTaskRepo


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with bootstrap and the CLI commands.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated from the environment and any local .env.
    """
    return SimpleNamespace(
        app_name="daytasks",
        log_level="INFO",
        console_enabled=False,
        notifications_enabled=False,
        api_base_url=None,
        api_token="secret",
        http_timeout_seconds=5.0,
        notify_interval_seconds=30.0,
        data_dir=tmp_path,
        token_path=tmp_path / "token",
        local_store_path=tmp_path / "tasks.json",
    )


@pytest.fixture()
def standup_store() -> TaskStore:
    """
    One repeating weekdays template anchored on Monday 2024-03-04,
    plus a one-off task on the same day.
    """
    return TaskStore(
        days={
            "2024-03-04": [
                TaskTemplate(
                    id=1,
                    title="Standup",
                    time="09:00",
                    is_repeating=True,
                    repeat_type=RepeatType.WEEKDAYS,
                    original_date="2024-03-04",
                ),
                TaskTemplate(id=2, title="Dentist", time="14:30"),
            ]
        }
    )


@pytest.fixture()
def repo(standup_store: TaskStore) -> FakeTaskRepo:
    return FakeTaskRepo(standup_store)


@pytest.fixture()
def credentials() -> FakeCredentials:
    return FakeCredentials()


@pytest.fixture()
def manager(repo: FakeTaskRepo, credentials: FakeCredentials, standup_store: TaskStore) -> TaskLifecycleManager:
    """Manager whose local store starts in sync with the fake repo."""
    return TaskLifecycleManager(
        repo,
        credentials=credentials,
        store=standup_store.copy(),
        id_clock=lambda: 1_700_000_000.0,
    )


@pytest.fixture()
def state(settings: SimpleNamespace, standup_store: TaskStore):
    """AppState wired with fakes; call `await state.manager.load()` to pull the standup store."""
    st = create_initial_state(
        settings=settings,
        repo=FakeTaskRepo(standup_store),
        notifier=FakeNotifier(),
        permissions=FakePermission(),
    )
    st.selected_date = date(2024, 3, 5)
    return st
