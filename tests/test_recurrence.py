# tests/test_recurrence.py

from __future__ import annotations

from datetime import date, datetime, timedelta

import pytest

from daytasks.tasks.recurrence import (
    completion_stats,
    format_date_key,
    month_grid,
    occurrences_on,
    should_recur,
    sort_by_time,
    weekday_index,
)
from daytasks.tasks.task_models import (
    DirectOccurrence,
    RepeatType,
    SynthesizedOccurrence,
    TaskStore,
    TaskTemplate,
)


def _repeating(tid: int, repeat_type: RepeatType | str, **kw) -> TaskTemplate:
    return TaskTemplate(id=tid, title=f"t{tid}", is_repeating=True, repeat_type=repeat_type, **kw)


def test_weekday_index_is_sunday_based() -> None:
    assert weekday_index(date(2024, 1, 7)) == 0  # Sunday
    assert weekday_index(date(2024, 1, 8)) == 1  # Monday
    assert weekday_index(date(2024, 1, 13)) == 6  # Saturday


def test_one_off_task_only_on_its_anchor_date() -> None:
    t = TaskTemplate(id=7, title="Pay rent")
    store = TaskStore(days={"2024-01-01": [t]})

    on_anchor = occurrences_on(store, date(2024, 1, 1))
    assert len(on_anchor) == 1
    assert isinstance(on_anchor[0], DirectOccurrence)
    assert on_anchor[0].template is t

    for offset in range(-5, 40):
        if offset == 0:
            continue
        assert occurrences_on(store, date(2024, 1, 1) + timedelta(days=offset)) == []


def test_daily_task_has_one_synthesized_occurrence_every_later_day() -> None:
    store = TaskStore(days={"2024-01-01": [_repeating(1, RepeatType.DAILY)]})

    for offset in range(1, 30):
        occs = occurrences_on(store, date(2024, 1, 1) + timedelta(days=offset))
        assert len(occs) == 1
        assert isinstance(occs[0], SynthesizedOccurrence)
        assert occs[0].original_id == 1
        assert occs[0].original_date == "2024-01-01"


@pytest.mark.parametrize("repeat_type", list(RepeatType))
def test_never_recurs_on_anchor_or_before(repeat_type: RepeatType) -> None:
    t = _repeating(1, repeat_type, repeat_days=frozenset(range(7)))
    anchor = date(2024, 1, 10)

    assert should_recur(t, anchor, "2024-01-10") is False
    for back in range(1, 15):
        assert should_recur(t, anchor - timedelta(days=back), "2024-01-10") is False


def test_weekly_recurs_every_seven_days() -> None:
    t = _repeating(1, RepeatType.WEEKLY)
    assert should_recur(t, date(2024, 1, 8), "2024-01-01") is True
    assert should_recur(t, date(2024, 1, 9), "2024-01-01") is False
    assert should_recur(t, date(2024, 1, 15), "2024-01-01") is True


def test_custom_days_over_two_weeks() -> None:
    t = _repeating(1, RepeatType.CUSTOM, repeat_days=frozenset({1, 3, 5}))
    store = TaskStore(days={"2024-01-06": [t]})  # Saturday anchor

    hits = []
    for offset in range(1, 15):
        d = date(2024, 1, 6) + timedelta(days=offset)
        if occurrences_on(store, d):
            hits.append(d)

    assert hits
    assert all(weekday_index(d) in {1, 3, 5} for d in hits)
    assert len(hits) == 6


def test_weekdays_ignores_repeat_days() -> None:
    t = _repeating(1, RepeatType.WEEKDAYS, repeat_days=frozenset({0}))
    assert should_recur(t, date(2024, 3, 10), "2024-03-04") is False  # Sunday
    assert should_recur(t, date(2024, 3, 11), "2024-03-04") is True  # Monday


def test_weekdays_anchored_on_weekend_starts_next_weekday() -> None:
    t = _repeating(1, RepeatType.WEEKDAYS)
    assert should_recur(t, date(2024, 3, 3), "2024-03-02") is False  # Sunday
    assert should_recur(t, date(2024, 3, 4), "2024-03-02") is True  # Monday


def test_unknown_repeat_type_never_recurs() -> None:
    raw = {"id": 3, "title": "odd", "isRepeating": True, "repeatType": "monthly"}
    t = TaskTemplate.from_wire(raw)
    assert t.repeat_type == "monthly"
    assert should_recur(t, date(2024, 2, 1), "2024-01-01") is False


def test_non_repeating_template_never_recurs() -> None:
    t = TaskTemplate(id=1, title="once", repeat_type=RepeatType.DAILY)
    assert should_recur(t, date(2024, 1, 2), "2024-01-01") is False


def test_day_difference_ignores_time_of_day() -> None:
    t = _repeating(1, RepeatType.WEEKLY)
    assert should_recur(t, datetime(2024, 1, 8, 23, 59), "2024-01-01") is True
    assert should_recur(t, datetime(2024, 1, 8, 0, 0), "2024-01-01") is True
    # Across the March DST change in many zones: still calendar arithmetic.
    assert should_recur(t, datetime(2024, 3, 11, 1, 0), "2024-03-04") is True


def test_output_order_direct_then_synthesized_in_storage_order() -> None:
    store = TaskStore(
        days={
            "2024-01-01": [_repeating(1, RepeatType.DAILY), _repeating(2, RepeatType.DAILY)],
            "2024-01-02": [_repeating(3, RepeatType.DAILY)],
            "2024-01-05": [TaskTemplate(id=4, title="local")],
        }
    )
    occs = occurrences_on(store, date(2024, 1, 5))
    assert [type(o).__name__ for o in occs] == [
        "DirectOccurrence",
        "SynthesizedOccurrence",
        "SynthesizedOccurrence",
        "SynthesizedOccurrence",
    ]
    assert [o.template.id for o in occs] == [4, 1, 2, 3]


def test_overlay_is_keyed_by_template_id_and_date() -> None:
    store = TaskStore(
        days={"2024-01-01": [_repeating(1, RepeatType.DAILY)]},
        completions={"1-2024-01-03": True},
    )
    (on_3rd,) = occurrences_on(store, date(2024, 1, 3))
    (on_4th,) = occurrences_on(store, date(2024, 1, 4))

    assert on_3rd.completed is True
    assert on_3rd.id == "1-2024-01-03"
    assert on_4th.completed is False
    # The template's own flag is separate.
    (anchor,) = occurrences_on(store, date(2024, 1, 1))
    assert anchor.completed is False


def test_sort_by_time_puts_untimed_first() -> None:
    store = TaskStore(
        days={
            "2024-01-01": [
                TaskTemplate(id=1, title="late", time="18:00"),
                TaskTemplate(id=2, title="whenever"),
                TaskTemplate(id=3, title="early", time="07:30"),
            ]
        }
    )
    ordered = sort_by_time(occurrences_on(store, date(2024, 1, 1)))
    assert [o.title for o in ordered] == ["whenever", "early", "late"]
    assert completion_stats(ordered) == (0, 3)


def test_month_grid_starts_on_sunday_and_spans_six_weeks() -> None:
    grid = month_grid(2024, 1)  # Jan 1st 2024 is a Monday
    assert len(grid) == 42
    assert grid[0] == date(2023, 12, 31)
    assert weekday_index(grid[0]) == 0
    assert grid[-1] == date(2024, 2, 10)


def test_format_date_key_pads() -> None:
    assert format_date_key(date(2024, 3, 5)) == "2024-03-05"
    assert format_date_key(datetime(2024, 12, 31, 23, 0)) == "2024-12-31"
