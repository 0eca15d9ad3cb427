# src/focusdeck/adapters/headless_display.py

from __future__ import annotations

import itertools
import logging
from collections.abc import Callable
from dataclasses import dataclass, field

from ..display.geometry import Bounds, Display, SurfaceKind

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SurfaceRecord:
    handle: int
    kind: SurfaceKind
    bounds: Bounds
    flags: frozenset[str]
    page: str | None = None
    visible: bool = False
    focused: bool = False
    kiosk: bool = False
    fullscreen: bool = False
    opacity: float = 1.0
    alive: bool = True
    history: list[str] = field(default_factory=list)


class HeadlessDisplayManager:
    """
    DisplayManager without a GUI: keeps surface state in memory and logs it.

    Used by the console shell and handy for integration tests. Displays are
    configurable; the first one is the primary.
    """

    def __init__(self, displays: list[Display] | None = None) -> None:
        self._displays = list(displays) if displays else [
            Display(id=1, bounds=Bounds(0, 0, 1920, 1080), work_area=Bounds(0, 25, 1920, 1055)),
        ]
        self._ids = itertools.count(1)
        self.surfaces: dict[int, SurfaceRecord] = {}
        self._display_listeners: list[Callable[[], None]] = []

    def _get(self, handle: int) -> SurfaceRecord:
        rec = self.surfaces.get(handle)
        if rec is None or not rec.alive:
            raise KeyError(f"surface {handle} does not exist")
        return rec

    def _log(self, rec: SurfaceRecord, action: str) -> None:
        rec.history.append(action)
        logger.debug("surface %s (%s): %s", rec.handle, rec.kind.value, action)

    # ---- DisplayManager ----

    def create_surface(self, kind: SurfaceKind, bounds: Bounds, flags: frozenset[str] = frozenset()) -> int:
        handle = next(self._ids)
        rec = SurfaceRecord(handle=handle, kind=kind, bounds=bounds, flags=frozenset(flags))
        self.surfaces[handle] = rec
        self._log(rec, f"create {bounds.width}x{bounds.height}@{bounds.x},{bounds.y}")
        return handle

    def load(self, handle: int, page: str) -> None:
        rec = self._get(handle)
        rec.page = page
        self._log(rec, f"load {page}")

    def show(self, handle: int, *, focus: bool = False) -> None:
        rec = self._get(handle)
        rec.visible = True
        rec.focused = focus
        self._log(rec, "show+focus" if focus else "show")

    def hide(self, handle: int) -> None:
        rec = self._get(handle)
        rec.visible = False
        rec.focused = False
        self._log(rec, "hide")

    def destroy(self, handle: int) -> None:
        rec = self._get(handle)
        rec.alive = False
        rec.visible = False
        self._log(rec, "destroy")

    def is_alive(self, handle: int) -> bool:
        rec = self.surfaces.get(handle)
        return rec is not None and rec.alive

    def set_bounds(self, handle: int, bounds: Bounds) -> None:
        rec = self._get(handle)
        rec.bounds = bounds
        self._log(rec, f"bounds {bounds.width}x{bounds.height}@{bounds.x},{bounds.y}")

    def set_opacity(self, handle: int, value: float) -> None:
        rec = self._get(handle)
        rec.opacity = value
        self._log(rec, f"opacity {value}")

    def set_kiosk(self, handle: int, enabled: bool) -> None:
        rec = self._get(handle)
        rec.kiosk = enabled
        self._log(rec, f"kiosk {enabled}")

    def set_exclusive_fullscreen(
        self,
        handle: int,
        enabled: bool,
        on_done: Callable[[], None] | None = None,
    ) -> None:
        rec = self._get(handle)
        rec.fullscreen = enabled
        self._log(rec, f"fullscreen {enabled}")
        # No animation to wait for: the transition is complete right away.
        if on_done is not None:
            on_done()

    def enumerate_displays(self) -> list[Display]:
        return list(self._displays)

    def on_display_changed(self, callback: Callable[[], None]) -> None:
        self._display_listeners.append(callback)

    # ---- simulation helpers ----

    def set_displays(self, displays: list[Display]) -> None:
        self._displays = list(displays)
        for cb in list(self._display_listeners):
            try:
                cb()
            except Exception:
                logger.exception("display-changed callback failed")

    def live(self, kind: SurfaceKind | None = None) -> list[SurfaceRecord]:
        return [r for r in self.surfaces.values() if r.alive and (kind is None or r.kind == kind)]
