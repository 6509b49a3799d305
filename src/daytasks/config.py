# src/daytasks/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- No secrets required at import time.
- Every knob has a DAYTASKS_* variable; a few also accept a bare legacy name.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "DAYTASKS"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _first_env(*names: str, default: str | None = None) -> str | None:
    for n in names:
        v = os.getenv(n)
        if v is not None and v.strip() != "":
            return v
    return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool
    notifications_enabled: bool

    # ---- Remote task store ----
    api_base_url: str | None
    api_token: str | None
    http_timeout_seconds: float

    # ---- Scheduler ----
    notify_interval_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    token_path: Path
    local_store_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "daytasks")
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        notifications_enabled = _env_bool(_k("NOTIFICATIONS"), False)

        # Empty base URL => local JSON-file store.
        api_base_url = (_first_env(_k("API_BASE_URL"), "BACKEND_URL", default="") or "").strip() or None
        api_token = (_first_env(_k("API_TOKEN"), default="") or "").strip() or None
        http_timeout_seconds = _env_float(_k("HTTP_TIMEOUT_SECONDS"), 10.0)

        notify_interval_seconds = _env_float(_k("NOTIFY_INTERVAL_SECONDS"), 30.0)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/daytasks"))
        token_path = _env_path(_k("TOKEN_PATH"), data_dir / "token")
        local_store_path = _env_path(_k("LOCAL_STORE_PATH"), data_dir / "tasks.json")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            notifications_enabled=notifications_enabled,
            api_base_url=api_base_url,
            api_token=api_token,
            http_timeout_seconds=http_timeout_seconds,
            notify_interval_seconds=notify_interval_seconds,
            data_dir=data_dir,
            token_path=token_path,
            local_store_path=local_store_path,
        )


_SETTINGS: Settings | None = None


def get_settings() -> Settings:
    """Process-wide settings; .env is read on first use and never overrides the real environment."""
    global _SETTINGS
    if _SETTINGS is None:
        load_dotenv(override=False)
        _SETTINGS = Settings.from_env()
    return _SETTINGS
