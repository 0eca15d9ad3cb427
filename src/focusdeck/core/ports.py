# src/focusdeck/core/ports.py

"""
Ports (interfaces) used by the core.

The core depends on Protocols instead of concrete implementations.
This keeps the windowing layer, process spawning and storage swappable and
makes the orchestrator testable with in-memory fakes.
"""

from __future__ import annotations

from collections.abc import Callable
from datetime import datetime
from typing import Any, Protocol

from ..display.geometry import Bounds, Display, SurfaceKind

SurfaceHandle = int
# Opaque id handed out by the display manager.


class DisplayManager(Protocol):
    """
    Windowing layer: creates and positions on-screen surfaces.

    Failures surface as exceptions; callers log them and continue
    (best-effort blocking, no retries).
    """

    def create_surface(
            self,
            kind: SurfaceKind,
            bounds: Bounds,
            flags: frozenset[str] = frozenset(),
    ) -> SurfaceHandle: ...

    def load(self, handle: SurfaceHandle, page: str) -> None: ...
    def show(self, handle: SurfaceHandle, *, focus: bool = False) -> None: ...
    def hide(self, handle: SurfaceHandle) -> None: ...
    def destroy(self, handle: SurfaceHandle) -> None: ...
    def is_alive(self, handle: SurfaceHandle) -> bool: ...
    def set_bounds(self, handle: SurfaceHandle, bounds: Bounds) -> None: ...
    def set_opacity(self, handle: SurfaceHandle, value: float) -> None: ...
    def set_kiosk(self, handle: SurfaceHandle, enabled: bool) -> None: ...

    def set_exclusive_fullscreen(
            self,
            handle: SurfaceHandle,
            enabled: bool,
            on_done: Callable[[], None] | None = None,
    ) -> None:
        """Toggle fullscreen; on_done fires once the transition has actually finished."""
        ...

    def enumerate_displays(self) -> list[Display]: ...
    def on_display_changed(self, callback: Callable[[], None]) -> None: ...


class AutomationRunner(Protocol):
    """Fire-and-forget runner for named OS automations. Exit status is never observed."""
    def run_named(self, name: str) -> None: ...


class KeyValueStore(Protocol):
    """Durable JSON documents by key (task collection, stats, panic config)."""
    def read(self, key: str) -> Any | None: ...
    def write(self, key: str, value: Any) -> None: ...


class AppendLog(Protocol):
    def append(self, path: str, text: str) -> None: ...


class PowerNotifier(Protocol):
    def on_resume(self, callback: Callable[[], None]) -> None: ...


class EventSink(Protocol):
    """Presentation-layer port: receives mode/timer/task/stats notifications."""
    def emit(self, event: str, payload: Any = None) -> None: ...


class Clock(Protocol):
    def now(self) -> datetime: ...


class Cancellable(Protocol):
    def cancel(self) -> None: ...


class TickScheduler(Protocol):
    """
    Delayed-callback port.

    Every callback it fires runs in the orchestrator's event-serialization
    context, never concurrently with another event.
    """
    def call_later(self, delay: float, callback: Callable[[], None]) -> Cancellable: ...
