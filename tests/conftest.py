# tests/conftest.py

from __future__ import annotations

import random
from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from focusdeck.adapters.headless_display import HeadlessDisplayManager
from focusdeck.adapters.system import ManualPowerNotifier
from focusdeck.core.state import AppState
from focusdeck.display.geometry import Bounds, Display
from focusdeck.orchestrator.orchestrator import Orchestrator, OrchestratorConfig
from focusdeck.panic.links import PanicLinkSaver
from focusdeck.session.session_timer import SessionTimer
from focusdeck.tasks.task_ranking import OverduePolicy
from focusdeck.tasks.task_store import TaskList

from .fakes import (
    FakeClock,
    InlineEvents,
    ManualScheduler,
    MemoryStore,
    RecordingAppendLog,
    RecordingAutomation,
    RecordingSink,
)

# A Tuesday morning, well outside the 19-23 sleep window.
MORNING = datetime(2026, 3, 10, 10, 0, 0)

PRIMARY = Display(id=1, bounds=Bounds(0, 0, 1920, 1080), work_area=Bounds(0, 25, 1920, 1055))
SECONDARY = Display(id=2, bounds=Bounds(1920, 0, 2560, 1440), work_area=Bounds(1920, 0, 2560, 1400))


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the orchestrator.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="focusdeck-test",
        data_dir=tmp_path,
        store_dir=tmp_path / "store",
        workspaces=["Deep Work", "Writing"],
        blocker_shortcut="Cold Turkey",
        sleep_start_hour=19,
        sleep_end_hour=23,
        sleep_check_interval_seconds=60.0,
        panic_countdown_seconds=20,
        cold_turkey_countdown_seconds=20,
        break_countdown_seconds=60,
        workspace_settle_delay_seconds=1.0,
        session_log_limit=100,
        overdue_policy="as_today",
    )


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock(MORNING)


@pytest.fixture()
def scheduler(clock: FakeClock) -> ManualScheduler:
    return ManualScheduler(clock)


@pytest.fixture()
def store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture()
def display() -> HeadlessDisplayManager:
    return HeadlessDisplayManager([PRIMARY, SECONDARY])


@pytest.fixture()
def automation() -> RecordingAutomation:
    return RecordingAutomation()


@pytest.fixture()
def sink() -> RecordingSink:
    return RecordingSink()


@pytest.fixture()
def append_log() -> RecordingAppendLog:
    return RecordingAppendLog()


@pytest.fixture()
def tasks(store: MemoryStore, clock: FakeClock) -> TaskList:
    task_list = TaskList(store, clock=clock, overdue_policy=OverduePolicy.AS_TODAY)
    task_list.load()
    return task_list


@pytest.fixture()
def sessions(store: MemoryStore, clock: FakeClock) -> SessionTimer:
    timer = SessionTimer(store, clock=clock, session_log_limit=100)
    timer.load()
    return timer


@pytest.fixture()
def panic_links(store: MemoryStore, append_log: RecordingAppendLog, clock: FakeClock) -> PanicLinkSaver:
    saver = PanicLinkSaver(store, append_log, clock=clock)
    saver.load()
    return saver


@pytest.fixture()
def orchestrator(
    settings: SimpleNamespace,
    display: HeadlessDisplayManager,
    automation: RecordingAutomation,
    sessions: SessionTimer,
    tasks: TaskList,
    panic_links: PanicLinkSaver,
    scheduler: ManualScheduler,
    clock: FakeClock,
    sink: RecordingSink,
) -> Orchestrator:
    """Started orchestrator on two displays, wired with deterministic fakes."""
    orch = Orchestrator(
        display=display,
        automation=automation,
        sessions=sessions,
        tasks=tasks,
        panic_links=panic_links,
        scheduler=scheduler,
        clock=clock,
        events=sink,
        config=OrchestratorConfig.from_settings(settings),
        rng=random.Random(7),
    )
    orch.start()
    return orch


@pytest.fixture()
def state(
    settings: SimpleNamespace,
    store: MemoryStore,
    clock: FakeClock,
    display: HeadlessDisplayManager,
    tasks: TaskList,
    sessions: SessionTimer,
    panic_links: PanicLinkSaver,
    orchestrator: Orchestrator,
) -> AppState:
    power = ManualPowerNotifier()
    power.on_resume(orchestrator.resume)
    return AppState(
        settings=settings,
        store=store,
        clock=clock,
        display=display,
        tasks=tasks,
        sessions=sessions,
        panic_links=panic_links,
        orchestrator=orchestrator,
        events=InlineEvents(),
        power=power,
    )
