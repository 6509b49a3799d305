# tests/test_config.py

from __future__ import annotations

from pathlib import Path

import pytest

from daytasks.config import Settings

_VARS = [
    "DAYTASKS_API_BASE_URL",
    "BACKEND_URL",
    "DAYTASKS_API_TOKEN",
    "DAYTASKS_NOTIFICATIONS",
    "DAYTASKS_NOTIFY_INTERVAL_SECONDS",
    "DAYTASKS_DATA_DIR",
    "DAYTASKS_TOKEN_PATH",
    "DAYTASKS_LOCAL_STORE_PATH",
]


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for name in _VARS:
        monkeypatch.delenv(name, raising=False)


def test_defaults_use_local_store() -> None:
    s = Settings.from_env()
    assert s.api_base_url is None
    assert s.api_token is None
    assert s.notifications_enabled is False
    assert s.notify_interval_seconds == 30.0
    assert s.local_store_path == Path(".local/daytasks") / "tasks.json"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("DAYTASKS_API_BASE_URL", " https://tasks.example.test/api ")
    monkeypatch.setenv("DAYTASKS_NOTIFICATIONS", "yes")
    monkeypatch.setenv("DAYTASKS_NOTIFY_INTERVAL_SECONDS", "not-a-number")
    monkeypatch.setenv("DAYTASKS_DATA_DIR", str(tmp_path))

    s = Settings.from_env()
    assert s.api_base_url == "https://tasks.example.test/api"
    assert s.notifications_enabled is True
    assert s.notify_interval_seconds == 30.0
    assert s.token_path == tmp_path / "token"


def test_legacy_backend_url(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("BACKEND_URL", "http://localhost:5000/api")
    assert Settings.from_env().api_base_url == "http://localhost:5000/api"
