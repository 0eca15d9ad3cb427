# src/focusdeck/tasks/task_store.py

from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from ..core.ports import Clock, KeyValueStore
from ..errors import InvalidTaskError, PersistenceError
from .task_models import Task, TaskPriority
from .task_ranking import OverduePolicy, rank

logger = logging.getLogger(__name__)

TASKS_KEY = "tasks"

TopTaskListener = Callable[[str | None], None]


def normalize_task_date(raw: str | None) -> str:
    """
    Clean an "MM/DD" entry the way the entry bar does on blur.

    - a bare month prefix ("10/") or empty input means "no date"
    - numeric parts are clamped to 1..12 / 1..31 and zero-padded
    - anything non-numeric is kept verbatim (ranking treats it as undated)
    """
    value = (raw or "").strip()
    if not value:
        return ""
    if "/" not in value:
        return value

    mm_raw, _, dd_raw = value.partition("/")
    mm_raw, dd_raw = mm_raw.strip(), dd_raw.strip()
    if not dd_raw:
        return ""
    if not (mm_raw.isdigit() and dd_raw.isdigit()):
        return value

    mm = max(1, min(12, int(mm_raw)))
    dd = max(1, min(31, int(dd_raw)))
    return f"{mm:02d}/{dd:02d}"


class TaskList:
    """
    Ranked task collection backed by a key-value store.

    Every mutation re-ranks, then persists the whole ordered collection.
    A failed write is logged and left for the next mutation to retry; the
    in-memory list stays authoritative.
    """

    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Clock,
        overdue_policy: OverduePolicy = OverduePolicy.AS_TODAY,
        on_top_task_changed: TopTaskListener | None = None,
    ) -> None:
        self._store = store
        self._clock = clock
        self._overdue_policy = overdue_policy
        self._listeners: list[TopTaskListener] = []
        if on_top_task_changed is not None:
            self._listeners.append(on_top_task_changed)
        self._tasks: list[Task] = []
        self._last_top: str | None = None
        self.dirty = False

    # ---- listeners ----

    def subscribe(self, listener: TopTaskListener) -> None:
        self._listeners.append(listener)

    def _notify_top_task(self) -> None:
        top = self._tasks[0].text if self._tasks else None
        if top == self._last_top:
            return
        self._last_top = top
        for listener in list(self._listeners):
            try:
                listener(top)
            except Exception:
                logger.exception("top-task listener failed")

    # ---- persistence ----

    def load(self) -> list[Task]:
        try:
            raw = self._store.read(TASKS_KEY)
        except Exception:
            logger.exception("Failed to read task list; starting empty")
            raw = None

        records: list[Any] = []
        if isinstance(raw, dict) and isinstance(raw.get("tasks"), list):
            records = raw["tasks"]
        elif isinstance(raw, list):
            records = raw

        tasks: list[Task] = []
        for record in records:
            task = Task.from_record(record)
            if task is None:
                logger.warning("Skipping malformed task record: %r", record)
                continue
            tasks.append(task)

        self._tasks = self._rank(tasks)
        logger.info("Loaded %d task(s)", len(self._tasks))
        self._notify_top_task()
        return self.tasks()

    def _persist(self) -> None:
        payload = {"tasks": [t.to_record() for t in self._tasks]}
        try:
            self._store.write(TASKS_KEY, payload)
            self.dirty = False
        except PersistenceError:
            self.dirty = True
            logger.exception("Task list not persisted; will retry on next change")

    def _rank(self, tasks: list[Task]) -> list[Task]:
        return rank(tasks, today=self._clock.now().date(), overdue_policy=self._overdue_policy)

    # ---- public API ----

    def tasks(self) -> list[Task]:
        return list(self._tasks)

    def top_task(self) -> Task | None:
        return self._tasks[0] if self._tasks else None

    def refresh(self) -> list[Task]:
        """Re-rank against the current date (e.g. after midnight) without mutating tasks."""
        self._tasks = self._rank(self._tasks)
        self._notify_top_task()
        return self.tasks()

    def next_id(self) -> int:
        return max((t.id for t in self._tasks), default=0) + 1

    def add_task(
        self,
        text: str,
        date: str | None = "",
        priority: TaskPriority | str = TaskPriority.HIGH,
    ) -> Task:
        clean_text = (text or "").strip()
        if not clean_text:
            raise InvalidTaskError("task text is required")

        if isinstance(priority, str) and not isinstance(priority, TaskPriority):
            if priority.strip().lower() not in ("high", "low", "hp", "lp"):
                raise InvalidTaskError(f"unknown priority: {priority!r}")
            priority = TaskPriority.from_raw(priority)

        task = Task(
            id=self.next_id(),
            text=clean_text,
            date=normalize_task_date(date),
            priority=priority,
        )
        self._tasks = self._rank([*self._tasks, task])
        self._persist()
        logger.info("Task %s added (priority=%s date=%s)", task.id, task.priority.value, task.date or "-")
        self._notify_top_task()
        return task

    def complete_task(self, task_id: int) -> bool:
        """Completing a task removes it for good."""
        remaining = [t for t in self._tasks if t.id != task_id]
        if len(remaining) == len(self._tasks):
            logger.debug("complete_task: unknown id %s", task_id)
            return False

        self._tasks = self._rank(remaining)
        self._persist()
        logger.info("Task %s completed", task_id)
        self._notify_top_task()
        return True
