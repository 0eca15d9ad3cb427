# src/focusdeck/display/geometry.py

"""
Display/surface value types and the fixed placement of every surface kind.

Placement mirrors the kiosk layout: the workspace timer overlay sits in the
bottom-left corner, the panic countdown top-centre, the panic link entry on
the right edge, and the blocker-tool banner across the top of the work area.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum


class SurfaceKind(StrEnum):
    MAIN = "main"
    OVERLAY = "overlay"
    BLOCKER = "blocker"
    PANIC_COUNTDOWN = "panic-countdown"
    PANIC_LINKS = "panic-links"
    COLD_TURKEY = "cold-turkey"


@dataclass(frozen=True, slots=True)
class Bounds:
    x: int
    y: int
    width: int
    height: int


@dataclass(frozen=True, slots=True)
class Display:
    id: int
    bounds: Bounds
    work_area: Bounds


OVERLAY_SIZE = (180, 140)
PANIC_COUNTDOWN_SIZE = (200, 120)
PANIC_LINKS_SIZE = (460, 260)
COLD_TURKEY_HEIGHT = 200


def overlay_bounds(display: Display) -> Bounds:
    wa = display.work_area
    w, h = OVERLAY_SIZE
    return Bounds(x=wa.x + 20, y=wa.y + wa.height - 160, width=w, height=h)


def panic_countdown_bounds(display: Display) -> Bounds:
    wa = display.work_area
    w, h = PANIC_COUNTDOWN_SIZE
    return Bounds(x=wa.x + wa.width // 2 - w // 2, y=wa.y + 50, width=w, height=h)


def panic_links_bounds(display: Display) -> Bounds:
    wa = display.work_area
    w, h = PANIC_LINKS_SIZE
    return Bounds(x=wa.x + wa.width - 480, y=wa.y + wa.height // 2 - h // 2, width=w, height=h)


def cold_turkey_bounds(display: Display) -> Bounds:
    wa = display.work_area
    return Bounds(x=wa.x, y=wa.y, width=wa.width, height=COLD_TURKEY_HEIGHT)


def main_bounds(display: Display) -> Bounds:
    return display.work_area


def blocker_bounds(display: Display) -> Bounds:
    # Blockers cover the whole display, menu bar/dock included.
    return display.bounds
