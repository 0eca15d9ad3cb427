# src/focusdeck/tasks/task_models.py

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any


class TaskPriority(StrEnum):
    HIGH = "high"
    LOW = "low"

    @classmethod
    def from_raw(cls, raw: Any) -> TaskPriority:
        """Anything that is not an explicit "low" is treated as high (entry-bar default)."""
        if isinstance(raw, str) and raw.strip().lower() in ("low", "lp"):
            return cls.LOW
        return cls.HIGH


@dataclass(slots=True)
class Task:
    id: int
    text: str
    date: str = ""
    priority: TaskPriority = TaskPriority.HIGH
    is_top_task: bool = False

    def to_record(self) -> dict[str, Any]:
        return {
            "id": self.id,
            "text": self.text,
            "date": self.date,
            "priority": self.priority.value,
            "isTopTask": self.is_top_task,
        }

    @classmethod
    def from_record(cls, raw: Any) -> Task | None:
        """Build a Task from a stored dict; returns None for records that cannot be used."""
        if not isinstance(raw, dict):
            return None
        try:
            task_id = int(raw["id"])
        except (KeyError, TypeError, ValueError):
            return None
        text = str(raw.get("text") or "").strip()
        if not text:
            return None
        date = raw.get("date")
        return cls(
            id=task_id,
            text=text,
            date=date.strip() if isinstance(date, str) else "",
            priority=TaskPriority.from_raw(raw.get("priority")),
            is_top_task=bool(raw.get("isTopTask", False)),
        )
