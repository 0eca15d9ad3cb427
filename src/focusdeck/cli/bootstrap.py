# src/focusdeck/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete adapters (JSON store, headless display, shortcuts runner)
  into the task list, session timer, panic saver and orchestrator,
- loads persisted tasks/stats/panic config.
"""

from __future__ import annotations

import logging

from ..adapters.headless_display import HeadlessDisplayManager
from ..adapters.json_store import FileAppendLog, JsonFileStore
from ..adapters.system import ManualPowerNotifier, ShortcutsAutomationRunner, SystemClock
from ..config import get_settings
from ..core.ports import EventSink
from ..core.state import AppState
from ..orchestrator.event_loop import EventLoop
from ..orchestrator.orchestrator import Orchestrator, OrchestratorConfig
from ..panic.links import PanicLinkSaver
from ..session.session_timer import SessionTimer
from ..tasks.task_ranking import OverduePolicy
from ..tasks.task_store import TaskList

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.store_dir.mkdir(parents=True, exist_ok=True)


def create_app(*, settings=None, sink: EventSink, events: EventLoop | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings injectable makes the app easier to test and avoids hidden global config reads.
    If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    events = events or EventLoop()
    clock = SystemClock()
    store = JsonFileStore(settings.store_dir)
    display = HeadlessDisplayManager()
    power = ManualPowerNotifier()

    tasks = TaskList(
        store,
        clock=clock,
        overdue_policy=OverduePolicy.from_raw(settings.overdue_policy),
    )
    sessions = SessionTimer(store, clock=clock, session_log_limit=settings.session_log_limit)
    panic_links = PanicLinkSaver(store, FileAppendLog(), clock=clock)

    tasks.load()
    sessions.load()
    panic_links.load()

    orchestrator = Orchestrator(
        display=display,
        automation=ShortcutsAutomationRunner(settings.automation_command),
        sessions=sessions,
        tasks=tasks,
        panic_links=panic_links,
        scheduler=events,
        clock=clock,
        events=sink,
        config=OrchestratorConfig.from_settings(settings),
    )

    # OS notifications arrive on foreign threads: route them through the queue.
    power.on_resume(lambda: events.post("resume", orchestrator.resume))
    display.on_display_changed(lambda: events.post("display-changed", orchestrator.display_changed))

    return AppState(
        settings=settings,
        store=store,
        clock=clock,
        display=display,
        tasks=tasks,
        sessions=sessions,
        panic_links=panic_links,
        orchestrator=orchestrator,
        events=events,
        power=power,
    )
