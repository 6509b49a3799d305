# src/daytasks/tasks/task_models.py

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import StrEnum
from typing import Any

logger = logging.getLogger(__name__)

# Reserved store key holding the completion overlay (never a date-key).
COMPLETIONS_KEY = "completions"

TemplateId = int | str


class RepeatType(StrEnum):
    DAILY = "daily"
    WEEKLY = "weekly"
    WEEKDAYS = "weekdays"
    CUSTOM = "custom"

    @classmethod
    def from_wire(cls, raw: Any) -> RepeatType | str:
        """
        Parse a stored repeat type.

        Unknown values are kept as raw text so that expansion treats them as
        "never recurs" instead of silently turning them into daily tasks.
        """
        if raw is None or raw == "":
            return cls.DAILY
        try:
            return cls(raw)
        except ValueError:
            return str(raw)


def make_instance_key(template_id: TemplateId, date_key: str) -> str:
    return f"{template_id}-{date_key}"


def _parse_repeat_days(raw: Any) -> frozenset[int]:
    if not raw:
        return frozenset()
    out: set[int] = set()
    for d in raw:
        if isinstance(d, bool):
            continue
        try:
            n = int(d)
        except (TypeError, ValueError):
            continue
        if 0 <= n <= 6:
            out.add(n)
    return frozenset(out)


@dataclass(slots=True)
class TaskTemplate:
    """
    The originally authored task, owned by the date-key it is stored under.

    repeat_days uses 0 = Sunday .. 6 = Saturday and only matters for
    RepeatType.CUSTOM.
    """

    id: TemplateId
    title: str
    time: str | None = None
    completed: bool = False
    is_repeating: bool = False
    repeat_type: RepeatType | str = RepeatType.DAILY
    repeat_days: frozenset[int] = frozenset()
    original_date: str | None = None

    def copy(self, **changes: Any) -> TaskTemplate:
        return replace(self, **changes)

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "id": self.id,
            "title": self.title,
            "time": self.time or "",
            "completed": bool(self.completed),
            "isRepeating": bool(self.is_repeating),
            "repeatType": str(self.repeat_type),
            "repeatDays": sorted(self.repeat_days),
        }
        if self.original_date:
            out["originalDate"] = self.original_date
        return out

    @classmethod
    def from_wire(cls, raw: Any) -> TaskTemplate:
        if not isinstance(raw, dict):
            raise ValueError(f"task entry must be an object, got {type(raw).__name__}")

        tid = raw.get("id")
        if tid is None or isinstance(tid, bool) or not isinstance(tid, (int, str)):
            raise ValueError(f"task entry has invalid id: {tid!r}")

        time_raw = raw.get("time")
        return cls(
            id=tid,
            title=str(raw.get("title") or ""),
            time=str(time_raw) if time_raw else None,
            completed=bool(raw.get("completed", False)),
            is_repeating=bool(raw.get("isRepeating", False)),
            repeat_type=RepeatType.from_wire(raw.get("repeatType")),
            repeat_days=_parse_repeat_days(raw.get("repeatDays")),
            original_date=raw.get("originalDate") or None,
        )


@dataclass(slots=True, frozen=True)
class TaskDraft:
    """User-authored fields for create/edit. Id and completion are not part of a draft."""

    title: str
    time: str | None = None
    is_repeating: bool = False
    repeat_type: RepeatType | str = RepeatType.DAILY
    repeat_days: frozenset[int] = frozenset()


@dataclass(slots=True)
class TaskStore:
    """
    Date-keyed templates plus the completion overlay.

    days maps "YYYY-MM-DD" to templates in storage order; completions maps
    "<templateId>-<dateKey>" to the completion of a synthesized occurrence.
    """

    days: dict[str, list[TaskTemplate]] = field(default_factory=dict)
    completions: dict[str, bool] = field(default_factory=dict)

    def templates_on(self, date_key: str) -> list[TaskTemplate]:
        return self.days.get(date_key, [])

    def find(self, date_key: str, template_id: TemplateId) -> tuple[int, TaskTemplate] | None:
        for i, t in enumerate(self.days.get(date_key, [])):
            if t.id == template_id:
                return i, t
        return None

    def template_ids(self) -> set[str]:
        return {str(t.id) for templates in self.days.values() for t in templates}

    def copy(self) -> TaskStore:
        return TaskStore(
            days={k: [t.copy() for t in v] for k, v in self.days.items()},
            completions=dict(self.completions),
        )

    def to_wire(self) -> dict[str, Any]:
        out: dict[str, Any] = {k: [t.to_wire() for t in v] for k, v in self.days.items()}
        out[COMPLETIONS_KEY] = dict(self.completions)
        return out

    @classmethod
    def from_wire(cls, raw: Any) -> TaskStore:
        """
        Build a store from the remote JSON shape.

        Malformed task entries are skipped (with a warning) rather than failing
        the whole load.
        """
        if not isinstance(raw, dict):
            raise ValueError(f"task store must be an object, got {type(raw).__name__}")

        store = cls()
        for key, value in raw.items():
            if key == COMPLETIONS_KEY:
                if isinstance(value, dict):
                    store.completions = {str(k): bool(v) for k, v in value.items()}
                continue
            if not isinstance(value, list):
                logger.warning("Skipping non-list store entry key=%s", key)
                continue

            templates: list[TaskTemplate] = []
            for item in value:
                try:
                    templates.append(TaskTemplate.from_wire(item))
                except ValueError as e:
                    logger.warning("Skipping malformed task under %s: %s", key, e)
            store.days[str(key)] = templates
        return store


@dataclass(slots=True, frozen=True)
class DirectOccurrence:
    """A template shown on its own anchor date; completion lives on the template."""

    template: TaskTemplate
    date_key: str

    is_repeating_instance = False

    @property
    def id(self) -> TemplateId:
        return self.template.id

    @property
    def title(self) -> str:
        return self.template.title

    @property
    def time(self) -> str | None:
        return self.template.time

    @property
    def completed(self) -> bool:
        return self.template.completed

    @property
    def anchor_key(self) -> str:
        return self.date_key

    @property
    def instance_key(self) -> str:
        return make_instance_key(self.template.id, self.date_key)


@dataclass(slots=True, frozen=True)
class SynthesizedOccurrence:
    """
    A derived, non-stored occurrence of a repeating template on another date.

    completed comes from the overlay, never from the template.
    """

    template: TaskTemplate
    date_key: str
    anchor_key: str
    completed: bool = False

    is_repeating_instance = True

    @property
    def id(self) -> str:
        return make_instance_key(self.template.id, self.date_key)

    @property
    def original_id(self) -> TemplateId:
        return self.template.id

    @property
    def original_date(self) -> str:
        return self.anchor_key

    @property
    def title(self) -> str:
        return self.template.title

    @property
    def time(self) -> str | None:
        return self.template.time

    @property
    def instance_key(self) -> str:
        return make_instance_key(self.template.id, self.date_key)


Occurrence = DirectOccurrence | SynthesizedOccurrence
