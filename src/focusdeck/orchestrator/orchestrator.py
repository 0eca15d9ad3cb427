# src/focusdeck/orchestrator/orchestrator.py

"""
Mode orchestrator.

A finite-state machine over exclusive display modes:

    DASHBOARD -> WORKSPACE | SLEEP | STATS
    any       -> PANIC_COUNTDOWN (+ links overlay) -> PANIC_DECISION
              -> COLD_TURKEY_ACTIVATION -> DASHBOARD | BREAK_COUNTDOWN -> DASHBOARD
    any       -> (resume from lock) DASHBOARD [-> SLEEP inside the evening window]

Key invariants:
- every handler runs in the single event-serialization context (see event_loop),
  so transitions never interleave,
- events that the current mode does not define are ignored and leave the mode unchanged,
- at most one workspace session is open; leaving WORKSPACE always closes it,
- the panic flow is guarded by one flag: a second hotkey while it is active is a no-op,
- collaborator failures (display, automation, persistence) are logged and the
  transition still completes; there is always a path back to DASHBOARD.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Any

from ..core.ports import AutomationRunner, Cancellable, Clock, DisplayManager, EventSink, SurfaceHandle, TickScheduler
from ..display.coordinator import DisplayCoordinator
from ..display.geometry import (
    SurfaceKind,
    cold_turkey_bounds,
    main_bounds,
    overlay_bounds,
    panic_countdown_bounds,
    panic_links_bounds,
)
from ..panic.links import PanicLinkSaver, clean_links
from ..session.session_timer import SessionTimer
from ..tasks.task_store import TaskList
from .countdown import Countdown, Repeater, start_countdown
from .modes import MAX_PANIC_LINKS, Mode, OrchestratorContext, PanicDecision, ShellEvent
from .sleep_window import MathChallenge, SleepWindowWatcher, in_sleep_window

logger = logging.getLogger(__name__)

OVERLAY_FLAGS = frozenset({"frameless", "transparent", "always-on-top", "non-focusable", "all-workspaces"})
PANIC_FLAGS = frozenset({"frameless", "transparent", "always-on-top", "all-workspaces"})


@dataclass(slots=True, frozen=True)
class OrchestratorConfig:
    sleep_start_hour: int = 19
    sleep_end_hour: int = 23
    sleep_check_interval_seconds: float = 60.0
    panic_countdown_seconds: int = 20
    cold_turkey_countdown_seconds: int = 20
    break_countdown_seconds: int = 60
    workspace_settle_delay_seconds: float = 1.0
    blocker_shortcut: str = "Cold Turkey"

    @classmethod
    def from_settings(cls, settings: Any) -> OrchestratorConfig:
        defaults = cls()
        return cls(
            sleep_start_hour=int(getattr(settings, "sleep_start_hour", defaults.sleep_start_hour)),
            sleep_end_hour=int(getattr(settings, "sleep_end_hour", defaults.sleep_end_hour)),
            sleep_check_interval_seconds=float(
                getattr(settings, "sleep_check_interval_seconds", defaults.sleep_check_interval_seconds)
            ),
            panic_countdown_seconds=int(getattr(settings, "panic_countdown_seconds", defaults.panic_countdown_seconds)),
            cold_turkey_countdown_seconds=int(
                getattr(settings, "cold_turkey_countdown_seconds", defaults.cold_turkey_countdown_seconds)
            ),
            break_countdown_seconds=int(getattr(settings, "break_countdown_seconds", defaults.break_countdown_seconds)),
            workspace_settle_delay_seconds=float(
                getattr(settings, "workspace_settle_delay_seconds", defaults.workspace_settle_delay_seconds)
            ),
            blocker_shortcut=str(getattr(settings, "blocker_shortcut", defaults.blocker_shortcut)),
        )


class Orchestrator:
    def __init__(
        self,
        *,
        display: DisplayManager,
        automation: AutomationRunner,
        sessions: SessionTimer,
        tasks: TaskList,
        panic_links: PanicLinkSaver,
        scheduler: TickScheduler,
        clock: Clock,
        events: EventSink,
        config: OrchestratorConfig | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self._display = display
        self._automation = automation
        self._sessions = sessions
        self._tasks = tasks
        self._panic_links = panic_links
        self._scheduler = scheduler
        self._clock = clock
        self._events = events
        self.config = config or OrchestratorConfig()
        self._rng = rng or random.Random()

        self.ctx = OrchestratorContext()
        self.coordinator = DisplayCoordinator(display)

        self._settle: Cancellable | None = None
        self._sleep_ticker: Repeater | None = None
        self._sleep_watcher: SleepWindowWatcher | None = None
        self._links_draft: list[str] = []
        self.challenge: MathChallenge | None = None
        self._started = False

        self._tasks.subscribe(self._on_top_task_changed)

    # ------------------------------------------------------------------ helpers

    @property
    def mode(self) -> Mode:
        return self.ctx.mode

    @property
    def panic_active(self) -> bool:
        return self.ctx.panic_active

    def _emit(self, event: ShellEvent, payload: Any = None) -> None:
        try:
            self._events.emit(event.value, payload)
        except Exception:
            logger.exception("event sink failed for %s", event.value)

    def _set_mode(self, mode: Mode) -> None:
        previous = self.ctx.mode
        self.ctx.mode = mode
        logger.info("Mode %s -> %s", previous.value, mode.value)
        self._emit(ShellEvent.MODE_CHANGED, mode)

    def _ui(self, what: str, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
        """Best-effort display call: failures are logged, never retried."""
        try:
            return fn(*args, **kwargs)
        except Exception:
            logger.exception("display call failed: %s", what)
            return None

    def _ignored(self, event: str) -> bool:
        logger.debug("Ignoring %s in mode %s", event, self.ctx.mode.value)
        return False

    def _in_sleep_window(self) -> bool:
        return in_sleep_window(
            self._clock.now(),
            start_hour=self.config.sleep_start_hour,
            end_hour=self.config.sleep_end_hour,
        )

    def _destroy_surface(self, handle: SurfaceHandle | None) -> None:
        if handle is None:
            return
        try:
            if self._display.is_alive(handle):
                self._display.destroy(handle)
        except Exception:
            logger.exception("Failed to destroy surface %s", handle)

    def _cancel(self, timer: Countdown | Repeater | None) -> None:
        if timer is not None:
            timer.cancel()

    def _stop_session(self) -> None:
        try:
            session = self._sessions.stop()
        except Exception:
            logger.exception("Session stop failed")
            return
        if session is not None:
            self._emit(ShellEvent.STATS_UPDATED, self._sessions.aggregate())

    def _show_main(self, page: str, *, kiosk: bool = True) -> None:
        main = self.ctx.surfaces.main
        if main is None:
            return
        self._ui("load main", self._display.load, main, page)
        self._ui("show main", self._display.show, main, focus=True)
        self._ui("kiosk main", self._display.set_kiosk, main, kiosk)

    def _acquire_blockers(self) -> None:
        self.ctx.blocking = True
        self.coordinator.acquire_blockers()

    def _release_blockers(self) -> None:
        self.ctx.blocking = False
        self.coordinator.release_blockers()

    def _on_top_task_changed(self, text: str | None) -> None:
        self._emit(ShellEvent.TOP_TASK_CHANGED, text)

    def _refresh_tasks(self) -> None:
        """Re-rank against today; the date may have moved since the last mutation."""
        try:
            self._tasks.refresh()
        except Exception:
            logger.exception("Task re-rank failed")

    def _leave_workspace(self) -> None:
        """Close whatever WORKSPACE left behind: settle timer, ticker, overlay, open session."""
        if self._settle is not None:
            self._settle.cancel()
            self._settle = None
        self._cancel(self.ctx.session_ticker)
        self.ctx.session_ticker = None
        overlay = self.ctx.surfaces.overlay
        if overlay is not None:
            self._ui("hide overlay", self._display.hide, overlay)
        self._stop_session()

    # ------------------------------------------------------------------ lifecycle

    def start(self) -> None:
        """Create the kiosk dashboard on the target display and start the minute tick."""
        if self._started:
            return
        self._started = True

        target = self.coordinator.target_display()
        if target is not None:
            handle = self._ui(
                "create main",
                self._display.create_surface,
                SurfaceKind.MAIN,
                main_bounds(target),
                frozenset({"kiosk"}),
            )
            self.ctx.surfaces.main = handle
        else:
            logger.warning("No display available; running without a main surface")

        self._show_main("dashboard")
        self._acquire_blockers()
        self._set_mode(Mode.DASHBOARD)
        self._emit(ShellEvent.TOP_TASK_CHANGED, getattr(self._tasks.top_task(), "text", None))

        self._sleep_watcher = SleepWindowWatcher(self._in_sleep_window())
        self._sleep_ticker = Repeater(
            self._scheduler,
            self.config.sleep_check_interval_seconds,
            self.sleep_check,
            name="sleep-window-check",
        ).start()

        if self._in_sleep_window():
            logger.info("Inside the sleep window at startup, entering sleep mode")
            self.enter_sleep()

    def shutdown(self) -> None:
        """Stop timers, finalize the open session and drop every surface we own."""
        for timer in (
            self.ctx.panic_countdown,
            self.ctx.cold_turkey_countdown,
            self.ctx.break_countdown,
            self.ctx.session_ticker,
            self._sleep_ticker,
        ):
            self._cancel(timer)
        if self._settle is not None:
            self._settle.cancel()
            self._settle = None
        self._stop_session()
        self.coordinator.release_blockers()
        s = self.ctx.surfaces
        for handle in (s.overlay, s.panic_countdown, s.panic_links, s.cold_turkey, s.main):
            self._destroy_surface(handle)
        logger.info("Orchestrator shut down")

    # ------------------------------------------------------------------ workspace

    def select_workspace(self, name: str) -> bool:
        name = (name or "").strip()
        if self.ctx.mode != Mode.DASHBOARD or not name:
            return self._ignored("select_workspace")

        self._stop_session()
        self._sessions.start(name)

        overlay = self._ensure_overlay()

        logger.info("Launching workspace: %s", name)
        try:
            self._automation.run_named(name)
        except Exception:
            logger.exception("Automation %r could not be started", name)

        main = self.ctx.surfaces.main
        if main is not None:
            self._ui("kiosk off", self._display.set_kiosk, main, False)
            self._ui("fullscreen off", self._display.set_exclusive_fullscreen, main, False)

        self._set_mode(Mode.WORKSPACE)

        def finish_entry() -> None:
            self._settle = None
            if self.ctx.mode != Mode.WORKSPACE:
                return
            if main is not None:
                self._ui("hide main", self._display.hide, main)
            self._release_blockers()
            if overlay is not None:
                self._ui("show overlay", self._display.show, overlay)
                self._ui("overlay opacity", self._display.set_opacity, overlay, 0.0)
            self.ctx.overlay_opacity = 0.0
            self._emit(ShellEvent.TOP_TASK_CHANGED, getattr(self._tasks.top_task(), "text", None))
            self._emit(ShellEvent.SESSION_TICK, 0)
            self.ctx.session_ticker = Repeater(self._scheduler, 1.0, self._session_tick, name="session-tick").start()

        self._settle = self._scheduler.call_later(self.config.workspace_settle_delay_seconds, finish_entry)
        return True

    def _ensure_overlay(self) -> SurfaceHandle | None:
        overlay = self.ctx.surfaces.overlay
        if overlay is not None and self._ui("overlay alive", self._display.is_alive, overlay):
            return overlay
        target = self.coordinator.target_display()
        if target is None:
            return None
        handle = self._ui(
            "create overlay",
            self._display.create_surface,
            SurfaceKind.OVERLAY,
            overlay_bounds(target),
            OVERLAY_FLAGS,
        )
        if handle is not None:
            self._ui("load overlay", self._display.load, handle, "overlay")
        self.ctx.surfaces.overlay = handle
        return handle

    def _session_tick(self) -> None:
        if self.ctx.mode != Mode.WORKSPACE:
            return
        self._emit(ShellEvent.SESSION_TICK, self._sessions.elapsed_seconds())

    def overlay_hover(self, entered: bool) -> bool:
        overlay = self.ctx.surfaces.overlay
        if self.ctx.mode != Mode.WORKSPACE or overlay is None:
            return self._ignored("overlay_hover")
        opacity = 1.0 if entered else 0.0
        self.ctx.overlay_opacity = opacity
        self._ui("overlay opacity", self._display.set_opacity, overlay, opacity)
        return True

    # ------------------------------------------------------------------ dashboard / sleep / stats

    def _return_to_dashboard(self) -> None:
        self._leave_workspace()
        self.challenge = None
        self._refresh_tasks()
        self._show_main("dashboard")
        self._acquire_blockers()
        self._set_mode(Mode.DASHBOARD)

    def exit_mode(self) -> bool:
        """The overlay exit button / the "back" action of a full-screen mode."""
        mode = self.ctx.mode
        if mode in (Mode.WORKSPACE, Mode.STATS):
            self._return_to_dashboard()
            return True
        if mode == Mode.SLEEP:
            return self._attempt_sleep_exit()
        return self._ignored("exit_mode")

    def go_dashboard(self) -> bool:
        """Global "return to dashboard" hotkey."""
        if self.ctx.mode == Mode.DASHBOARD:
            # Re-assert kiosk + blockers (e.g. something stole focus).
            self._show_main("dashboard")
            self._acquire_blockers()
            return True
        return self.exit_mode()

    def enter_sleep(self) -> bool:
        if self.ctx.mode != Mode.DASHBOARD:
            return self._ignored("enter_sleep")
        self._stop_session()
        self.challenge = None
        main = self.ctx.surfaces.main
        if main is not None:
            self._ui("load sleep", self._display.load, main, "sleep")
        self._set_mode(Mode.SLEEP)
        return True

    def _attempt_sleep_exit(self) -> bool:
        if not self._in_sleep_window():
            self._return_to_dashboard()
            return True
        self.challenge = MathChallenge.generate(self._rng)
        logger.info("Sleep exit requested inside the window; challenge issued")
        self._emit(ShellEvent.CHALLENGE_ISSUED, self.challenge.prompt)
        return False

    def answer_challenge(self, value: int | str | None) -> bool:
        if self.ctx.mode != Mode.SLEEP or self.challenge is None:
            return self._ignored("answer_challenge")
        if not self.challenge.check(value):
            logger.info("Wrong challenge answer; staying in sleep mode")
            return False
        self.challenge = None
        self._return_to_dashboard()
        return True

    def cancel_challenge(self) -> bool:
        """Dismiss the pending exit challenge; the mode stays SLEEP."""
        if self.ctx.mode != Mode.SLEEP or self.challenge is None:
            return self._ignored("cancel_challenge")
        self.challenge = None
        logger.info("Sleep exit challenge dismissed")
        return True

    def sleep_check(self) -> bool:
        """Minute tick: auto-enter SLEEP only on the edge into the window, only from DASHBOARD."""
        self._refresh_tasks()
        inside = self._in_sleep_window()
        if self._sleep_watcher is None:
            self._sleep_watcher = SleepWindowWatcher(inside)
            return False
        if not self._sleep_watcher.check(inside):
            return False
        if self.ctx.mode != Mode.DASHBOARD:
            logger.debug("Sleep window opened while in %s; not switching", self.ctx.mode.value)
            return False
        logger.info("Sleep window opened, auto-entering sleep mode")
        return self.enter_sleep()

    def enter_stats(self) -> bool:
        if self.ctx.mode != Mode.DASHBOARD:
            return self._ignored("enter_stats")
        main = self.ctx.surfaces.main
        if main is not None:
            self._ui("load stats", self._display.load, main, "stats")
        self._set_mode(Mode.STATS)
        self._emit(ShellEvent.STATS_UPDATED, self._sessions.aggregate())
        return True

    # ------------------------------------------------------------------ panic flow

    def panic(self) -> bool:
        if self.ctx.panic_active:
            logger.info("Panic mode already active, ignoring hotkey")
            return False

        logger.info("PANIC MODE ACTIVATED")
        self.ctx.panic_active = True
        self.ctx.panic_decision = None
        self.ctx.links_finalized = False
        self._links_draft = []
        self.challenge = None
        self._leave_workspace()

        if not self._panic_links.link_dump_path:
            logger.warning("No link dump path configured; panic links will not be saved")

        target = self.coordinator.target_display()
        s = self.ctx.surfaces
        if target is not None:
            s.panic_countdown = self._ui(
                "create panic countdown",
                self._display.create_surface,
                SurfaceKind.PANIC_COUNTDOWN,
                panic_countdown_bounds(target),
                PANIC_FLAGS | {"non-focusable"},
            )
            s.panic_links = self._ui(
                "create panic links",
                self._display.create_surface,
                SurfaceKind.PANIC_LINKS,
                panic_links_bounds(target),
                PANIC_FLAGS,
            )
        if s.panic_countdown is not None:
            self._ui("load panic", self._display.load, s.panic_countdown, "panic")
            self._ui("show panic", self._display.show, s.panic_countdown)
        if s.panic_links is not None:
            self._ui("load links", self._display.load, s.panic_links, "links")
            self._ui("show links", self._display.show, s.panic_links, focus=True)

        self._set_mode(Mode.PANIC_COUNTDOWN)
        self.ctx.panic_countdown = start_countdown(
            self._scheduler,
            self.config.panic_countdown_seconds,
            lambda remaining: self._emit(ShellEvent.COUNTDOWN_TICK, ("panic", remaining)),
            self._panic_countdown_finished,
            name="panic-countdown",
        )
        return True

    def update_panic_links(self, links: Iterable[str | None]) -> bool:
        """Draft of what is typed in the link fields; saved when the countdown ends."""
        if self.ctx.mode != Mode.PANIC_COUNTDOWN or self.ctx.links_finalized:
            return self._ignored("update_panic_links")
        self._links_draft = [(link or "") for link in list(links)[:MAX_PANIC_LINKS]]
        return True

    def _panic_countdown_finished(self) -> None:
        logger.info("Panic countdown finished")
        self.ctx.panic_countdown = None
        self._emit(ShellEvent.LINKS_FINALIZE, list(self._links_draft))
        self._finalize_links(self._links_draft)

    def submit_links(self, links: Iterable[str | None] | None = None) -> bool:
        """Finalize the links overlay (normally in reply to links-finalize)."""
        if self.ctx.mode != Mode.PANIC_COUNTDOWN or self.ctx.links_finalized:
            return self._ignored("submit_links")
        if links is not None:
            self._links_draft = [(link or "") for link in list(links)[:MAX_PANIC_LINKS]]
        self._finalize_links(self._links_draft)
        return True

    def _finalize_links(self, links: Iterable[str | None]) -> None:
        if self.ctx.links_finalized or self.ctx.mode != Mode.PANIC_COUNTDOWN:
            return
        self.ctx.links_finalized = True
        self._cancel(self.ctx.panic_countdown)
        self.ctx.panic_countdown = None

        cleaned = clean_links(links, limit=MAX_PANIC_LINKS)
        if cleaned:
            self._panic_links.save(cleaned)
        self._links_draft = []

        s = self.ctx.surfaces
        self._destroy_surface(s.panic_countdown)
        self._destroy_surface(s.panic_links)
        s.panic_countdown = None
        s.panic_links = None

        main = self.ctx.surfaces.main
        if main is not None:
            self._ui("load decision", self._display.load, main, "panic-decision")
            # Leave kiosk for plain fullscreen so the window can be hidden afterwards.
            self._ui("kiosk off", self._display.set_kiosk, main, False)
            self._ui("fullscreen on", self._display.set_exclusive_fullscreen, main, True)
            self._ui("show decision", self._display.show, main, focus=True)
        self.ctx.panic_decision = None
        self._set_mode(Mode.PANIC_DECISION)

    def decide(self, decision: PanicDecision | str) -> bool:
        if not isinstance(decision, PanicDecision):
            parsed = PanicDecision.from_raw(decision)
            if parsed is None:
                logger.warning("Unknown panic decision %r", decision)
                return False
            decision = parsed
        if self.ctx.mode != Mode.PANIC_DECISION or self.ctx.panic_decision is not None:
            return self._ignored("decide")

        logger.info("Panic decision: %s", decision.value)
        self.ctx.panic_decision = decision

        main = self.ctx.surfaces.main
        if main is not None:
            self._ui("kiosk off", self._display.set_kiosk, main, False)

            def hide_main() -> None:
                # A late confirmation must not hide a dashboard restored in the meantime.
                if self.ctx.mode != Mode.COLD_TURKEY_ACTIVATION:
                    logger.debug("Fullscreen exit confirmed in %s; main stays visible", self.ctx.mode.value)
                    return
                self._ui("hide main", self._display.hide, main)

            # Hide only once the fullscreen exit has actually completed.
            self._ui(
                "fullscreen off",
                self._display.set_exclusive_fullscreen,
                main,
                False,
                on_done=lambda: self._scheduler.call_later(0, hide_main),
            )

        try:
            self._automation.run_named(self.config.blocker_shortcut)
        except Exception:
            logger.exception("Blocker tool %r could not be started", self.config.blocker_shortcut)

        target = self.coordinator.target_display()
        s = self.ctx.surfaces
        if target is not None:
            s.cold_turkey = self._ui(
                "create cold turkey",
                self._display.create_surface,
                SurfaceKind.COLD_TURKEY,
                cold_turkey_bounds(target),
                PANIC_FLAGS | {"non-focusable"},
            )
        if s.cold_turkey is not None:
            self._ui("load cold turkey", self._display.load, s.cold_turkey, "cold-turkey")
            self._ui("show cold turkey", self._display.show, s.cold_turkey)

        self._set_mode(Mode.COLD_TURKEY_ACTIVATION)
        self.ctx.cold_turkey_countdown = start_countdown(
            self._scheduler,
            self.config.cold_turkey_countdown_seconds,
            lambda remaining: self._emit(ShellEvent.COUNTDOWN_TICK, ("cold-turkey", remaining)),
            self._cold_turkey_finished,
            name="cold-turkey-countdown",
        )
        return True

    def _cold_turkey_finished(self) -> None:
        self.ctx.cold_turkey_countdown = None
        s = self.ctx.surfaces
        self._destroy_surface(s.cold_turkey)
        s.cold_turkey = None

        decision = self.ctx.panic_decision
        self.ctx.panic_decision = None
        logger.info("Cold Turkey activation finished (decision=%s)", decision.value if decision else None)

        if decision == PanicDecision.NO_WORK:
            self._show_main("break-countdown")
            self._set_mode(Mode.BREAK_COUNTDOWN)
            self.ctx.break_countdown = start_countdown(
                self._scheduler,
                self.config.break_countdown_seconds,
                lambda remaining: self._emit(ShellEvent.COUNTDOWN_TICK, ("break", remaining)),
                self._break_finished,
                name="break-countdown",
            )
            return

        self.ctx.panic_active = False
        self._return_to_dashboard()

    def _break_finished(self) -> None:
        self.ctx.break_countdown = None
        self.ctx.panic_active = False
        self._return_to_dashboard()

    # ------------------------------------------------------------------ system events

    def resume(self) -> Mode:
        """Unlock/wake: always back to a clean dashboard, then SLEEP if inside the window."""
        logger.info("System resumed; restoring dashboard")
        for timer in (self.ctx.panic_countdown, self.ctx.cold_turkey_countdown, self.ctx.break_countdown):
            self._cancel(timer)
        self.ctx.panic_countdown = None
        self.ctx.cold_turkey_countdown = None
        self.ctx.break_countdown = None

        self._leave_workspace()

        s = self.ctx.surfaces
        for attr in ("panic_countdown", "panic_links", "cold_turkey"):
            self._destroy_surface(getattr(s, attr))
            setattr(s, attr, None)

        self.ctx.panic_active = False
        self.ctx.panic_decision = None
        self.ctx.links_finalized = False
        self._links_draft = []
        self.challenge = None

        self._refresh_tasks()
        self._show_main("dashboard")
        self._acquire_blockers()
        self._set_mode(Mode.DASHBOARD)

        if self._in_sleep_window():
            logger.info("Resumed inside the sleep window")
            self.enter_sleep()
        return self.ctx.mode

    def _reposition(self) -> None:
        target = self.coordinator.target_display()
        if target is None:
            return
        s = self.ctx.surfaces
        if s.main is not None:
            self._ui("move main", self._display.set_bounds, s.main, main_bounds(target))
        if s.overlay is not None:
            self._ui("move overlay", self._display.set_bounds, s.overlay, overlay_bounds(target))

    def cycle_display(self) -> bool:
        if self.coordinator.cycle_to_next_display() is None:
            return False
        self._reposition()
        if self.ctx.blocking:
            self.coordinator.acquire_blockers()
        return True

    def display_changed(self) -> None:
        self.coordinator.handle_display_change()
        self._reposition()
        if self.ctx.blocking:
            self.coordinator.acquire_blockers()
