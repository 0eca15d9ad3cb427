# src/focusdeck/session/stats.py

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta

from .session_models import StatsAggregate, WorkspaceSession

RECENT_SESSIONS = 10
ACTIVITY_DAYS = 7


def format_minutes(minutes: int) -> str:
    hours, mins = divmod(max(0, int(minutes)), 60)
    return f"{hours}h {mins}m" if hours > 0 else f"{mins}m"


@dataclass(slots=True, frozen=True)
class WorkspaceTotal:
    workspace: str
    minutes: int
    percentage: int

    @property
    def label(self) -> str:
        return format_minutes(self.minutes)


@dataclass(slots=True, frozen=True)
class DayActivity:
    day: date
    minutes: int


@dataclass(slots=True, frozen=True)
class StatsSummary:
    totals: list[WorkspaceTotal]
    recent_sessions: list[WorkspaceSession]
    activity: list[DayActivity]

    @property
    def total_minutes(self) -> int:
        return sum(t.minutes for t in self.totals)


def summarize(aggregate: StatsAggregate, *, today: date) -> StatsSummary:
    """Read-only view used by the stats screen."""
    ordered = sorted(aggregate.workspace_times.items(), key=lambda kv: kv[1], reverse=True)
    grand_total = sum(m for _, m in ordered)
    totals = [
        WorkspaceTotal(
            workspace=name,
            minutes=minutes,
            percentage=round(minutes * 100 / grand_total) if grand_total else 0,
        )
        for name, minutes in ordered
    ]

    recent = list(reversed(aggregate.sessions[-RECENT_SESSIONS:]))

    per_day: dict[date, int] = {}
    for session in aggregate.sessions:
        started = datetime.fromtimestamp(session.start_time / 1000).date()
        per_day[started] = per_day.get(started, 0) + session.duration

    activity = [
        DayActivity(day=d, minutes=per_day.get(d, 0))
        for d in (today - timedelta(days=i) for i in range(ACTIVITY_DAYS - 1, -1, -1))
    ]

    return StatsSummary(totals=totals, recent_sessions=recent, activity=activity)
