# src/focusdeck/core/state.py

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Protocol

from ..orchestrator.orchestrator import Orchestrator
from ..panic.links import PanicLinkSaver
from ..session.session_timer import SessionTimer
from ..tasks.task_store import TaskList
from .ports import Clock, DisplayManager, KeyValueStore


class EventPoster(Protocol):
    """How connectors hand work to the event-serialization context."""
    def submit(self, label: str, fn: Any, *args: Any, timeout: float | None = 10.0) -> Any: ...


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    store: KeyValueStore
    clock: Clock
    display: DisplayManager
    tasks: TaskList
    sessions: SessionTimer
    panic_links: PanicLinkSaver
    orchestrator: Orchestrator
    events: EventPoster

    # PowerNotifier with a fire_resume() hook (console /resume).
    power: Any = None
