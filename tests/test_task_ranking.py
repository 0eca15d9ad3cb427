# tests/test_task_ranking.py

from __future__ import annotations

from datetime import date

import pytest

from focusdeck.tasks.task_models import Task, TaskPriority
from focusdeck.tasks.task_ranking import (
    Bucket,
    OverduePolicy,
    categorize,
    days_until,
    interleave,
    parse_task_date,
    rank,
    top_task,
)

TODAY = date(2026, 3, 10)

HIGH = TaskPriority.HIGH
LOW = TaskPriority.LOW


def _t(task_id: int, date_str: str = "", priority: TaskPriority = HIGH) -> Task:
    return Task(id=task_id, text=f"task {task_id}", date=date_str, priority=priority)


def _ids(tasks: list[Task]) -> list[int]:
    return [t.id for t in tasks]


def test_due_today_beats_undated_backlog() -> None:
    tasks = [
        Task(id=1, text="x", date="", priority=LOW),
        Task(id=2, text="y", date="03/10", priority=HIGH),
    ]
    ranked = rank(tasks, today=TODAY)

    assert _ids(ranked) == [2, 1]
    assert ranked[0].is_top_task is True
    assert ranked[1].is_top_task is False


def test_exactly_one_top_task_and_rank_is_idempotent() -> None:
    tasks = [_t(1), _t(2, "03/12", LOW), _t(3, "03/11"), _t(4, "04/01"), _t(5, "", LOW)]
    once = rank(tasks, today=TODAY)
    twice = rank(once, today=TODAY)

    assert _ids(once) == _ids(twice)
    assert sum(t.is_top_task for t in twice) == 1
    assert top_task(twice) is twice[0]


def test_rank_empty_and_top_task_none() -> None:
    assert rank([], today=TODAY) == []
    assert top_task([]) is None


def test_urgency_tiers_today_then_tomorrow_then_later() -> None:
    tasks = [
        _t(1, "03/20", HIGH),  # later high
        _t(2, "03/11", LOW),  # tomorrow low
        _t(3, "03/11", HIGH),  # tomorrow high
        _t(4, "03/10", LOW),  # today low
        _t(5, "03/10", HIGH),  # today high
    ]
    assert _ids(rank(tasks, today=TODAY)) == [5, 4, 3, 2, 1]


def test_interleave_alternates_then_appends_tail() -> None:
    assert interleave(["A", "B"], ["C", "D", "E"]) == ["A", "C", "B", "D", "E"]
    assert interleave(["A", "B", "C"], []) == ["A", "B", "C"]
    assert interleave([], ["X"]) == ["X"]


def test_later_and_undated_high_are_interleaved() -> None:
    tasks = [
        _t(1, "03/20"),  # A
        _t(2, "04/02"),  # B
        _t(3),  # C
        _t(4),  # D
        _t(5),  # E
    ]
    assert _ids(rank(tasks, today=TODAY)) == [1, 3, 2, 4, 5]


def test_low_priority_interleave_comes_after_high_interleave() -> None:
    tasks = [_t(1, "", LOW), _t(2, "05/01", LOW), _t(3, ""), _t(4, "05/01")]
    assert _ids(rank(tasks, today=TODAY)) == [4, 3, 2, 1]


def test_within_bucket_by_date_then_id() -> None:
    tasks = [_t(9, "03/25"), _t(3, "03/25"), _t(5, "03/15")]
    assert _ids(rank(tasks, today=TODAY)) == [5, 3, 9]


def test_malformed_dates_degrade_to_undated() -> None:
    for raw in ("soon", "ab/cd", "00/05", "03/00", "/"):
        assert parse_task_date(raw, year=2026) is None
        assert categorize(_t(1, raw), today=TODAY) == Bucket.UNDATED_HIGH


def test_month_day_overflow_rolls_forward() -> None:
    assert parse_task_date("02/30", year=2026) == date(2026, 3, 2)
    assert parse_task_date("13/01", year=2026) == date(2027, 1, 1)
    assert days_until("03/12", today=TODAY) == 2


def test_overflow_past_the_calendar_is_undated() -> None:
    for raw in ("99999/01", "01/99999999"):
        assert parse_task_date(raw, year=2026) is None
        assert days_until(raw, today=TODAY) is None

    ranked = rank([_t(1, "99999/01"), _t(2, "03/10", LOW)], today=TODAY)
    assert _ids(ranked) == [2, 1]
    assert categorize(ranked[1], today=TODAY) == Bucket.UNDATED_HIGH


def test_overdue_is_clamped_to_today_by_default() -> None:
    overdue_low = _t(1, "03/01", LOW)
    assert categorize(overdue_low, today=TODAY) == Bucket.TODAY_LOW

    tasks = [_t(2, "03/11"), overdue_low]
    assert _ids(rank(tasks, today=TODAY)) == [1, 2]


def test_overdue_separate_policy_ranks_ahead_of_today() -> None:
    policy = OverduePolicy.SEPARATE
    assert categorize(_t(1, "03/01", LOW), today=TODAY, overdue_policy=policy) == Bucket.OVERDUE_LOW

    tasks = [_t(1, "03/10"), _t(2, "03/01", LOW), _t(3, "02/01")]
    assert _ids(rank(tasks, today=TODAY, overdue_policy=policy)) == [3, 2, 1]


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("separate", OverduePolicy.SEPARATE), ("AS_TODAY", OverduePolicy.AS_TODAY), ("", OverduePolicy.AS_TODAY)],
)
def test_overdue_policy_from_raw(raw: str, expected: OverduePolicy) -> None:
    assert OverduePolicy.from_raw(raw) == expected
