# src/focusdeck/orchestrator/sleep_window.py

"""Evening "sleep window" membership, its exit challenge and edge detection."""

from __future__ import annotations

import random
from dataclasses import dataclass
from datetime import datetime


def in_sleep_window(now: datetime, *, start_hour: int = 19, end_hour: int = 23) -> bool:
    """[start_hour, end_hour) on the local wall clock; windows may wrap past midnight."""
    hour = now.hour
    if start_hour == end_hour:
        return False
    if start_hour < end_hour:
        return start_hour <= hour < end_hour
    return hour >= start_hour or hour < end_hour


class SleepWindowWatcher:
    """
    Reports only the false -> true edge of window membership.

    Checked once per minute; staying inside the window does not re-trigger.
    """

    def __init__(self, initially_inside: bool) -> None:
        self._was_inside = initially_inside

    def check(self, inside_now: bool) -> bool:
        entered = inside_now and not self._was_inside
        self._was_inside = inside_now
        return entered


@dataclass(slots=True, frozen=True)
class MathChallenge:
    """Two-digit by two-digit multiplication that must be solved to leave sleep mode."""

    left: int
    right: int

    @classmethod
    def generate(cls, rng: random.Random | None = None) -> MathChallenge:
        r = rng or random.Random()
        return cls(left=r.randint(10, 99), right=r.randint(10, 99))

    @property
    def answer(self) -> int:
        return self.left * self.right

    @property
    def prompt(self) -> str:
        return f"{self.left} × {self.right}"

    def check(self, value: int | str | None) -> bool:
        if value is None:
            return False
        try:
            return int(str(value).strip()) == self.answer
        except ValueError:
            return False
