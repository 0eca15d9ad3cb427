# src/focusdeck/display/coordinator.py

"""
Multi-monitor coordination.

Owns the choice of target display (where every focusdeck surface lives) and
the black blocker surfaces that cover every other display while the kiosk
dashboard is up.

All display-manager calls are best-effort: a failure is logged and the
coordinator carries on as if the call had succeeded. Nothing is retried.
"""

from __future__ import annotations

import logging

from ..core.ports import DisplayManager, SurfaceHandle
from .geometry import Display, SurfaceKind, blocker_bounds

logger = logging.getLogger(__name__)

BLOCKER_FLAGS = frozenset({"frameless", "always-on-top", "skip-taskbar", "non-focusable"})


class DisplayCoordinator:
    def __init__(self, display: DisplayManager) -> None:
        self._display = display
        self._target: Display | None = None
        self._blockers: list[SurfaceHandle] = []

    @property
    def blockers(self) -> list[SurfaceHandle]:
        return list(self._blockers)

    def _displays(self) -> list[Display]:
        try:
            return list(self._display.enumerate_displays())
        except Exception:
            logger.exception("enumerate_displays failed")
            return []

    def target_display(self) -> Display | None:
        """Previous target if it is still connected, else the primary (first) display."""
        displays = self._displays()
        if self._target is not None:
            for d in displays:
                if d.id == self._target.id:
                    self._target = d
                    return d

        self._target = displays[0] if displays else None
        if self._target is not None:
            b = self._target.bounds
            logger.info("Using display %s (%dx%d)", self._target.id, b.width, b.height)
        return self._target

    # ---- blockers ----

    def acquire_blockers(self) -> list[SurfaceHandle]:
        """Cover every non-target display with a black kiosk surface."""
        self.release_blockers()

        target = self.target_display()
        for d in self._displays():
            if target is not None and d.id == target.id:
                continue
            try:
                handle = self._display.create_surface(SurfaceKind.BLOCKER, blocker_bounds(d), BLOCKER_FLAGS)
                self._display.load(handle, "blocker")
                self._display.set_kiosk(handle, True)
                self._display.show(handle)
            except Exception:
                logger.exception("Failed to create blocker for display %s", d.id)
                continue
            self._blockers.append(handle)
            logger.info("Created blocker for display %s", d.id)
        return self.blockers

    def release_blockers(self) -> None:
        for handle in self._blockers:
            try:
                if self._display.is_alive(handle):
                    self._display.destroy(handle)
            except Exception:
                logger.exception("Failed to destroy blocker %s", handle)
        self._blockers = []

    # ---- display changes ----

    def cycle_to_next_display(self) -> Display | None:
        """Move the target to the next display (round-robin). Returns the new target or None."""
        displays = self._displays()
        if len(displays) <= 1:
            logger.info("Only one display available")
            return None

        current = self.target_display()
        ids = [d.id for d in displays]
        idx = ids.index(current.id) if current is not None and current.id in ids else -1
        nxt = displays[(idx + 1) % len(displays)]
        logger.info("Switching target display %s -> %s", current.id if current else None, nxt.id)
        self._target = nxt
        return nxt

    def handle_display_change(self) -> Display | None:
        """Re-resolve the target after hot-plug; a removed target falls back to primary."""
        before = self._target.id if self._target is not None else None
        target = self.target_display()
        if target is not None and before is not None and target.id != before:
            logger.info("Target display %s removed, switched to %s", before, target.id)
        return target
