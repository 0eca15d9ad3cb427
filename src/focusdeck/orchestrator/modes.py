# src/focusdeck/orchestrator/modes.py

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum

from ..core.ports import SurfaceHandle
from .countdown import Countdown, Repeater


class Mode(StrEnum):
    DASHBOARD = "dashboard"
    WORKSPACE = "workspace"
    SLEEP = "sleep"
    STATS = "stats"
    PANIC_COUNTDOWN = "panic-countdown"
    # Shown alongside PANIC_COUNTDOWN; never the current mode on its own.
    PANIC_LINKS_INPUT = "panic-links-input"
    PANIC_DECISION = "panic-decision"
    COLD_TURKEY_ACTIVATION = "cold-turkey-activation"
    BREAK_COUNTDOWN = "break-countdown"


class PanicDecision(StrEnum):
    WORK = "work"
    NO_WORK = "no-work"

    @classmethod
    def from_raw(cls, raw: str) -> PanicDecision | None:
        value = (raw or "").strip().lower().replace("_", "-")
        if value in ("nowork", "no"):
            value = cls.NO_WORK.value
        try:
            return cls(value)
        except ValueError:
            return None


class ShellEvent(StrEnum):
    """Events pushed to the presentation layer."""

    MODE_CHANGED = "mode-changed"
    SESSION_TICK = "session-tick"
    COUNTDOWN_TICK = "countdown-tick"
    TOP_TASK_CHANGED = "top-task-changed"
    STATS_UPDATED = "stats-updated"
    CHALLENGE_ISSUED = "challenge-issued"
    LINKS_FINALIZE = "links-finalize"


MAX_PANIC_LINKS = 3


@dataclass(slots=True)
class Surfaces:
    main: SurfaceHandle | None = None
    overlay: SurfaceHandle | None = None
    panic_countdown: SurfaceHandle | None = None
    panic_links: SurfaceHandle | None = None
    cold_turkey: SurfaceHandle | None = None


@dataclass(slots=True)
class OrchestratorContext:
    """
    All mutable orchestration state, owned by exactly one Orchestrator.

    Nothing here is module-global, so independent orchestrators (tests) never
    share state.
    """

    mode: Mode = Mode.DASHBOARD
    panic_active: bool = False
    panic_decision: PanicDecision | None = None
    links_finalized: bool = False
    blocking: bool = True
    overlay_opacity: float = 0.0
    surfaces: Surfaces = field(default_factory=Surfaces)

    panic_countdown: Countdown | None = None
    cold_turkey_countdown: Countdown | None = None
    break_countdown: Countdown | None = None
    session_ticker: Repeater | None = None
