# tests/test_task_store.py

from __future__ import annotations

import pytest

from focusdeck.errors import InvalidTaskError
from focusdeck.tasks.task_models import Task, TaskPriority
from focusdeck.tasks.task_ranking import OverduePolicy
from focusdeck.tasks.task_store import TASKS_KEY, TaskList, normalize_task_date

from .fakes import FakeClock, MemoryStore


def test_add_assigns_max_plus_one_ids_and_persists_ranked_records(tasks: TaskList, store: MemoryStore) -> None:
    a = tasks.add_task("write report")
    b = tasks.add_task("call bank", "03/10", "low")
    tasks.complete_task(a.id)
    c = tasks.add_task("groceries", "", TaskPriority.LOW)

    assert (a.id, b.id, c.id) == (1, 2, 3)

    saved = store.data[TASKS_KEY]
    assert saved["tasks"][0] == {
        "id": 2,
        "text": "call bank",
        "date": "03/10",
        "priority": "low",
        "isTopTask": True,
    }
    assert [r["id"] for r in saved["tasks"]] == [2, 3]
    assert [r["isTopTask"] for r in saved["tasks"]] == [True, False]


def test_add_rejects_empty_text_and_unknown_priority(tasks: TaskList, store: MemoryStore) -> None:
    with pytest.raises(InvalidTaskError):
        tasks.add_task("   ")
    with pytest.raises(InvalidTaskError):
        tasks.add_task("x", "", "urgent")
    assert tasks.tasks() == []
    assert TASKS_KEY not in store.data


def test_complete_unknown_id_is_a_no_op(tasks: TaskList, store: MemoryStore) -> None:
    tasks.add_task("one")
    writes = store.writes

    assert tasks.complete_task(42) is False
    assert store.writes == writes
    assert len(tasks.tasks()) == 1


def test_load_skips_malformed_records(store: MemoryStore, clock: FakeClock) -> None:
    store.data[TASKS_KEY] = {
        "tasks": [
            {"id": 4, "text": "undated", "date": "", "priority": "high", "isTopTask": False},
            {"id": "nope", "text": "bad id"},
            {"id": 5, "text": ""},
            "garbage",
            {"id": 7, "text": "today", "date": "03/10", "priority": "low", "isTopTask": True},
        ]
    }
    task_list = TaskList(store, clock=clock)
    loaded = task_list.load()

    assert [t.id for t in loaded] == [7, 4]
    assert task_list.next_id() == 8


def test_load_tolerates_dates_past_the_calendar(store: MemoryStore, clock: FakeClock) -> None:
    store.data[TASKS_KEY] = {
        "tasks": [
            {"id": 1, "text": "far future", "date": "99999/01", "priority": "high", "isTopTask": False},
            {"id": 2, "text": "today", "date": "03/10", "priority": "low", "isTopTask": False},
        ]
    }
    task_list = TaskList(store, clock=clock)
    loaded = task_list.load()

    assert [t.text for t in loaded] == ["today", "far future"]
    assert task_list.top_task().text == "today"


def test_failed_write_keeps_memory_authoritative_and_retries(tasks: TaskList, store: MemoryStore) -> None:
    store.fail_writes = True
    tasks.add_task("kept in memory")
    assert tasks.dirty is True
    assert [t.text for t in tasks.tasks()] == ["kept in memory"]
    assert TASKS_KEY not in store.data

    store.fail_writes = False
    tasks.add_task("second")
    assert tasks.dirty is False
    assert [r["text"] for r in store.data[TASKS_KEY]["tasks"]] == ["kept in memory", "second"]


def test_top_task_listener_fires_only_on_change(tasks: TaskList) -> None:
    seen: list[str | None] = []
    tasks.subscribe(seen.append)

    tasks.add_task("later", "")
    tasks.add_task("more backlog", "", "low")
    tasks.add_task("urgent", "03/10")
    tasks.complete_task(3)
    tasks.complete_task(1)
    tasks.complete_task(2)

    assert seen == ["later", "urgent", "later", "more backlog", None]


def test_refresh_reranks_after_the_date_moves(store: MemoryStore, clock: FakeClock) -> None:
    task_list = TaskList(store, clock=clock, overdue_policy=OverduePolicy.AS_TODAY)
    task_list.load()
    task_list.add_task("backlog")
    task_list.add_task("next week", "03/13")
    assert task_list.top_task().text == "next week"

    clock.advance(3 * 24 * 3600)
    task_list.add_task("backlog 2")
    task_list.refresh()
    assert task_list.top_task().text == "next week"
    assert task_list.tasks()[0].is_top_task


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("3/7", "03/07"),
        ("10/", ""),
        ("", ""),
        ("14/40", "12/31"),
        ("00/00", "01/01"),
        ("someday", "someday"),
    ],
)
def test_normalize_task_date(raw: str, expected: str) -> None:
    assert normalize_task_date(raw) == expected


def test_task_record_roundtrip_defaults() -> None:
    task = Task.from_record({"id": "3", "text": " read ", "priority": "whatever"})
    assert task == Task(id=3, text="read", date="", priority=TaskPriority.HIGH, is_top_task=False)
