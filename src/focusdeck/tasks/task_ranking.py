# src/focusdeck/tasks/task_ranking.py

"""
Task ranking engine.

Every surface that shows or mutates tasks goes through rank(); there is no
other ordering in the codebase.

Ordering rules:
- tasks are bucketed by (days until due, priority):

      days until   HIGH  LOW
      0 (today)     1     2
      1             3     4
      >= 2          5     6
      no date       7     8

- inside a bucket: undated first, then earliest date, then lowest id,
- output is 1, 2, 3, 4, interleave(5, 7), interleave(6, 8).

The interleave keeps a large undated backlog from burying dated-but-distant
tasks (and the other way round); anything due today or tomorrow always wins.

Overdue tasks are clamped to "today" by default (OverduePolicy.AS_TODAY).
OverduePolicy.SEPARATE keeps them in their own tier ahead of today instead.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, timedelta
from enum import IntEnum, StrEnum
from typing import TypeVar

from .task_models import Task, TaskPriority

T = TypeVar("T")


class OverduePolicy(StrEnum):
    AS_TODAY = "as_today"
    SEPARATE = "separate"

    @classmethod
    def from_raw(cls, raw: str | None) -> OverduePolicy:
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.AS_TODAY


class Bucket(IntEnum):
    # Only used under OverduePolicy.SEPARATE.
    OVERDUE_HIGH = -1
    OVERDUE_LOW = 0

    TODAY_HIGH = 1
    TODAY_LOW = 2
    TOMORROW_HIGH = 3
    TOMORROW_LOW = 4
    LATER_HIGH = 5
    LATER_LOW = 6
    UNDATED_HIGH = 7
    UNDATED_LOW = 8


def parse_task_date(raw: str | None, *, year: int) -> date | None:
    """
    Resolve "MM/DD" against `year`.

    Month/day overflow rolls forward like a calendar would ("02/30" -> March 2,
    "13/01" -> January 1 of the next year). Anything else unparsable -> None.
    """
    if not raw or "/" not in raw:
        return None
    parts = raw.split("/")
    try:
        mm = int(parts[0].strip())
        dd = int(parts[1].strip())
    except (ValueError, IndexError):
        return None
    if mm <= 0 or dd <= 0:
        return None

    y = year + (mm - 1) // 12
    m = (mm - 1) % 12 + 1
    try:
        return date(y, m, 1) + timedelta(days=dd - 1)
    except (OverflowError, ValueError):
        # Month overflow can push the year past date.max.
        return None


def days_until(raw: str | None, *, today: date) -> int | None:
    """Signed day distance from today; None when the task has no usable date."""
    resolved = parse_task_date(raw, year=today.year)
    if resolved is None:
        return None
    return (resolved - today).days


def categorize(task: Task, *, today: date, overdue_policy: OverduePolicy = OverduePolicy.AS_TODAY) -> Bucket:
    days = days_until(task.date, today=today)
    high = task.priority == TaskPriority.HIGH

    if days is None:
        return Bucket.UNDATED_HIGH if high else Bucket.UNDATED_LOW
    if days < 0:
        if overdue_policy == OverduePolicy.SEPARATE:
            return Bucket.OVERDUE_HIGH if high else Bucket.OVERDUE_LOW
        days = 0
    if days == 0:
        return Bucket.TODAY_HIGH if high else Bucket.TODAY_LOW
    if days == 1:
        return Bucket.TOMORROW_HIGH if high else Bucket.TOMORROW_LOW
    return Bucket.LATER_HIGH if high else Bucket.LATER_LOW


def interleave(first: Sequence[T], second: Sequence[T]) -> list[T]:
    """first[0], second[0], first[1], second[1], ... then the longer list's tail."""
    out: list[T] = []
    for i in range(max(len(first), len(second))):
        if i < len(first):
            out.append(first[i])
        if i < len(second):
            out.append(second[i])
    return out


def _within_bucket_key(task: Task, year: int) -> tuple[int, date, int]:
    resolved = parse_task_date(task.date, year=year)
    if resolved is None:
        return (0, date.min, task.id)
    return (1, resolved, task.id)


def rank(
        tasks: Iterable[Task],
        *,
        today: date | None = None,
        overdue_policy: OverduePolicy = OverduePolicy.AS_TODAY,
) -> list[Task]:
    """
    Return tasks in display order and mark exactly one top task.

    Precondition: ids are unique (duplicates are not rejected, the order
    between them is then unspecified beyond being deterministic).
    """
    today = today or date.today()

    buckets: dict[Bucket, list[Task]] = {b: [] for b in Bucket}
    for task in tasks:
        buckets[categorize(task, today=today, overdue_policy=overdue_policy)].append(task)

    for members in buckets.values():
        members.sort(key=lambda t: _within_bucket_key(t, today.year))

    ordered = [
        *buckets[Bucket.OVERDUE_HIGH],
        *buckets[Bucket.OVERDUE_LOW],
        *buckets[Bucket.TODAY_HIGH],
        *buckets[Bucket.TODAY_LOW],
        *buckets[Bucket.TOMORROW_HIGH],
        *buckets[Bucket.TOMORROW_LOW],
        *interleave(buckets[Bucket.LATER_HIGH], buckets[Bucket.UNDATED_HIGH]),
        *interleave(buckets[Bucket.LATER_LOW], buckets[Bucket.UNDATED_LOW]),
    ]

    for i, task in enumerate(ordered):
        task.is_top_task = i == 0
    return ordered


def top_task(ranked: Sequence[Task]) -> Task | None:
    return ranked[0] if ranked else None
