# tests/test_session_timer.py

from __future__ import annotations

from datetime import date, datetime

from focusdeck.session.session_models import StatsAggregate, WorkspaceSession
from focusdeck.session.session_timer import STATS_KEY, SessionTimer
from focusdeck.session.stats import format_minutes, summarize

from .fakes import FakeClock, MemoryStore


def test_first_load_creates_empty_stats(store: MemoryStore, clock: FakeClock) -> None:
    timer = SessionTimer(store, clock=clock)
    timer.load()
    assert store.data[STATS_KEY] == {"workspaceTimes": {}, "sessions": []}


def test_stop_without_open_session_is_a_no_op(sessions: SessionTimer, store: MemoryStore) -> None:
    before = store.writes
    assert sessions.stop() is None
    assert sessions.aggregate() == StatsAggregate()
    assert store.writes == before


def test_stop_floors_minutes_and_accumulates(sessions: SessionTimer, clock: FakeClock, store: MemoryStore) -> None:
    sessions.start("Deep Work")
    clock.advance(59)
    first = sessions.stop()
    assert first is not None and first.duration == 0

    sessions.start("Deep Work")
    clock.advance(25 * 60 + 59)
    second = sessions.stop()
    assert second.duration == 25

    record = store.data[STATS_KEY]
    assert record["workspaceTimes"] == {"Deep Work": 25}
    assert [s["duration"] for s in record["sessions"]] == [0, 25]
    assert record["sessions"][1]["endTime"] - record["sessions"][1]["startTime"] == (25 * 60 + 59) * 1000


def test_start_closes_the_previous_session(sessions: SessionTimer, clock: FakeClock) -> None:
    sessions.start("Writing")
    clock.advance(120)
    sessions.start("Admin")
    assert sessions.current_workspace == "Admin"
    assert sessions.aggregate().workspace_times == {"Writing": 2}

    clock.advance(61)
    assert sessions.elapsed_seconds() == 61


def test_session_log_keeps_the_most_recent_hundred(store: MemoryStore, clock: FakeClock) -> None:
    timer = SessionTimer(store, clock=clock, session_log_limit=100)
    timer.load()
    for i in range(101):
        timer.start(f"ws{i}")
        clock.advance(60)
        timer.stop()

    sessions = timer.aggregate().sessions
    assert len(sessions) == 100
    assert sessions[0].workspace == "ws1"
    assert sessions[-1].workspace == "ws100"
    # Totals are not trimmed with the log.
    assert timer.aggregate().workspace_times["ws0"] == 1


def test_failed_write_does_not_lose_the_session(sessions: SessionTimer, clock: FakeClock, store: MemoryStore) -> None:
    store.fail_writes = True
    sessions.start("Deep Work")
    clock.advance(600)
    session = sessions.stop()

    assert session.duration == 10
    assert sessions.aggregate().workspace_times == {"Deep Work": 10}


def test_load_reads_existing_record(store: MemoryStore, clock: FakeClock) -> None:
    store.data[STATS_KEY] = {
        "workspaceTimes": {"Writing": "30", "Broken": "x"},
        "sessions": [{"workspace": "Writing", "startTime": 1, "endTime": 1800001, "duration": 30}, {"oops": 1}],
    }
    aggregate = SessionTimer(store, clock=clock).load()
    assert aggregate.workspace_times == {"Writing": 30}
    assert aggregate.sessions == [WorkspaceSession("Writing", 1, 1800001, 30)]


# ---- stats summary ----


def _ms(value: datetime) -> int:
    return int(value.timestamp() * 1000)


def test_summary_totals_recent_and_activity() -> None:
    day1 = datetime(2026, 3, 9, 9, 0)
    day2 = datetime(2026, 3, 10, 9, 0)
    aggregate = StatsAggregate(
        workspace_times={"Writing": 30, "Deep Work": 90},
        sessions=[
            WorkspaceSession("Deep Work", _ms(day1), _ms(day1) + 90 * 60000, 90),
            WorkspaceSession("Writing", _ms(day2), _ms(day2) + 30 * 60000, 30),
        ],
    )

    summary = summarize(aggregate, today=date(2026, 3, 10))

    assert [(t.workspace, t.minutes, t.percentage) for t in summary.totals] == [
        ("Deep Work", 90, 75),
        ("Writing", 30, 25),
    ]
    assert summary.totals[0].label == "1h 30m"
    assert summary.total_minutes == 120
    assert [s.workspace for s in summary.recent_sessions] == ["Writing", "Deep Work"]
    assert [a.day for a in summary.activity][0] == date(2026, 3, 4)
    assert [a.minutes for a in summary.activity][-2:] == [90, 30]
    assert sum(a.minutes for a in summary.activity) == 120


def test_summary_of_empty_aggregate() -> None:
    summary = summarize(StatsAggregate(), today=date(2026, 3, 10))
    assert summary.totals == []
    assert summary.recent_sessions == []
    assert len(summary.activity) == 7
    assert format_minutes(0) == "0m"
    assert format_minutes(61) == "1h 1m"
