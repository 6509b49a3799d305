# src/daytasks/tasks/recurrence.py

from __future__ import annotations

"""
Recurrence expansion.

Pure functions that turn a TaskStore into "what exists on day D":
- templates stored under D's date-key (direct occurrences),
- plus a synthesized occurrence for every repeating template anchored on
  another date whose schedule hits D.

No I/O and no clock reads. Both the day view and the notification scheduler
go through occurrences_on(), so their idea of a recurrence can never diverge.
"""

from collections.abc import Iterable
from datetime import date, datetime, timedelta

from .task_models import (
    COMPLETIONS_KEY,
    DirectOccurrence,
    Occurrence,
    RepeatType,
    SynthesizedOccurrence,
    TaskStore,
    TaskTemplate,
    make_instance_key,
)

DATE_KEY_FORMAT = "%Y-%m-%d"


def _as_date(value: date | datetime) -> date:
    # datetime is a subclass of date; drop the wall-clock part.
    if isinstance(value, datetime):
        return value.date()
    return value


def format_date_key(value: date | datetime) -> str:
    """Local calendar date as "YYYY-MM-DD"."""
    d = _as_date(value)
    return f"{d.year:04d}-{d.month:02d}-{d.day:02d}"


def parse_date_key(key: str) -> date:
    return datetime.strptime(key.strip(), DATE_KEY_FORMAT).date()


def weekday_index(value: date | datetime) -> int:
    """0 = Sunday .. 6 = Saturday (the convention used by repeat_days)."""
    return (_as_date(value).weekday() + 1) % 7


def days_between(anchor: date | datetime, target: date | datetime) -> int:
    """Whole calendar days from anchor to target (negative if target is earlier)."""
    return (_as_date(target) - _as_date(anchor)).days


def should_recur(template: TaskTemplate, target_date: date | datetime, anchor_key: str) -> bool:
    """
    Whether a repeating template anchored at anchor_key has an occurrence on target_date.

    The anchor day itself is never a recurrence (the template already shows
    there), and nothing recurs into the past.
    """
    if not template.is_repeating:
        return False

    try:
        anchor = parse_date_key(anchor_key)
    except ValueError:
        return False

    diff = days_between(anchor, target_date)
    if diff <= 0:
        return False

    rt = template.repeat_type
    if rt == RepeatType.DAILY:
        return True
    if rt == RepeatType.WEEKLY:
        return diff % 7 == 0
    if rt == RepeatType.WEEKDAYS:
        # Mon..Fri regardless of alignment with the anchor.
        return 1 <= weekday_index(target_date) <= 5
    if rt == RepeatType.CUSTOM:
        return weekday_index(target_date) in template.repeat_days
    return False


def occurrences_on(store: TaskStore, target_date: date | datetime) -> list[Occurrence]:
    """
    Ordered occurrences for target_date.

    Order: templates anchored on the day (storage order), then synthesized
    occurrences in (date-key, template) storage order. Sorting for display is
    the caller's job (see sort_by_time).
    """
    date_key = format_date_key(target_date)

    out: list[Occurrence] = [DirectOccurrence(template=t, date_key=date_key) for t in store.templates_on(date_key)]

    for anchor_key, templates in store.days.items():
        if anchor_key in (date_key, COMPLETIONS_KEY):
            continue
        for t in templates:
            if not t.is_repeating or not should_recur(t, target_date, anchor_key):
                continue
            done = bool(store.completions.get(make_instance_key(t.id, date_key), False))
            out.append(
                SynthesizedOccurrence(
                    template=t,
                    date_key=date_key,
                    anchor_key=anchor_key,
                    completed=done,
                )
            )

    return out


def sort_by_time(occurrences: Iterable[Occurrence]) -> list[Occurrence]:
    """Stable sort by "HH:MM"; occurrences without a time come first."""
    return sorted(occurrences, key=lambda o: o.time or "")


def completion_stats(occurrences: Iterable[Occurrence]) -> tuple[int, int]:
    """(completed, total) for a day's occurrences."""
    total = 0
    done = 0
    for o in occurrences:
        total += 1
        if o.completed:
            done += 1
    return done, total


def month_grid(year: int, month: int) -> list[date]:
    """
    42 consecutive days (6 weeks) covering the month, starting on the Sunday
    on or before the 1st.
    """
    first = date(year, month, 1)
    start = first - timedelta(days=weekday_index(first))
    return [start + timedelta(days=i) for i in range(42)]
