# src/focusdeck/adapters/system.py

"""
OS-facing adapters: wall clock, fire-and-forget automations, power notifications.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
from collections.abc import Callable
from datetime import datetime

logger = logging.getLogger(__name__)


class SystemClock:
    def now(self) -> datetime:
        return datetime.now().astimezone()


class ShortcutsAutomationRunner:
    """
    Runs a named automation as `<command> run <name>` in its own session.

    The child is never waited on and its exit status is never observed.
    """

    def __init__(self, command: str = "/usr/bin/shortcuts") -> None:
        self._argv = shlex.split(command) if command.strip() else []

    def run_named(self, name: str) -> None:
        if not self._argv:
            logger.warning("No automation command configured; skipping %r", name)
            return
        argv = [*self._argv, "run", name]
        logger.info("Spawning automation: %s", " ".join(shlex.quote(a) for a in argv))
        subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=subprocess.DEVNULL,
            stderr=subprocess.DEVNULL,
            start_new_session=True,
            close_fds=True,
        )


class ManualPowerNotifier:
    """PowerNotifier fired by hand (console /resume); OS integrations call fire_resume()."""

    def __init__(self) -> None:
        self._callbacks: list[Callable[[], None]] = []

    def on_resume(self, callback: Callable[[], None]) -> None:
        self._callbacks.append(callback)

    def fire_resume(self) -> None:
        for cb in list(self._callbacks):
            try:
                cb()
            except Exception:
                logger.exception("resume callback failed")
