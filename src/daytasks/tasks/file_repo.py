# src/daytasks/tasks/file_repo.py

from __future__ import annotations

import contextlib
import json
import logging
import os
from pathlib import Path
from typing import Any

from ..errors import TransportError
from .task_models import COMPLETIONS_KEY, TaskStore, TaskTemplate

logger = logging.getLogger(__name__)


class JsonFileTaskRepo:
    """
    Local JSON-file task store with the same shape as the remote one.

    Used when no API base URL is configured (offline / single-machine use).
    Every call re-reads the file and writes it back atomically
    (tmp file + os.replace), so there is no cached state to go stale.
    """

    def __init__(self, path: str | Path) -> None:
        self._path = Path(path)
        self._path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("JsonFileTaskRepo ready path=%s", self._path)

    async def aclose(self) -> None:
        return

    # ---- low-level helpers ----

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {COMPLETIONS_KEY: {}}
        try:
            data = json.loads(self._path.read_text("utf-8"))
        except (OSError, ValueError) as e:
            raise TransportError(f"cannot read {self._path}: {e}") from e
        if not isinstance(data, dict):
            raise TransportError(f"{self._path} does not contain a JSON object")
        data.setdefault(COMPLETIONS_KEY, {})
        return data

    def _write(self, data: dict[str, Any]) -> None:
        tmp = self._path.with_suffix(".tmp")
        try:
            tmp.write_text(json.dumps(data, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, self._path)
        except OSError as e:
            raise TransportError(f"cannot write {self._path}: {e}") from e
        with contextlib.suppress(OSError):
            os.chmod(self._path, 0o600)

    @staticmethod
    def _day(data: dict[str, Any], date_key: str, index: int) -> list[Any]:
        day = data.get(date_key)
        if not isinstance(day, list) or not 0 <= index < len(day):
            raise TransportError(f"no task at {date_key}[{index}]")
        return day

    # ---- TaskRepo ----

    async def fetch_all(self) -> TaskStore:
        try:
            return TaskStore.from_wire(self._read())
        except ValueError as e:
            raise TransportError(str(e)) from e

    async def create(self, date_key: str, template: TaskTemplate) -> None:
        data = self._read()
        day = data.get(date_key)
        if not isinstance(day, list):
            day = []
            data[date_key] = day
        day.append(template.to_wire())
        self._write(data)

    async def update(self, date_key: str, index: int, template: TaskTemplate) -> None:
        data = self._read()
        self._day(data, date_key, index)[index] = template.to_wire()
        self._write(data)

    async def remove(self, date_key: str, index: int) -> None:
        data = self._read()
        day = self._day(data, date_key, index)
        del day[index]
        self._write(data)

    async def set_completions(self, completions: dict[str, bool]) -> None:
        data = self._read()
        data[COMPLETIONS_KEY] = dict(completions)
        self._write(data)
