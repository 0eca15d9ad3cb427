# src/focusdeck/connectors/console_connector.py

from __future__ import annotations

import logging
import random
import sys
import threading
from datetime import datetime
from typing import Any

from ..cli.commands import registry as command_registry
from ..core.state import AppState
from ..orchestrator.modes import Mode, ShellEvent
from ..orchestrator.sleep_window import MathChallenge

logger = logging.getLogger(__name__)

# Countdown values worth echoing to the terminal (every tick would flood it).
_ANNOUNCED_TICKS = {60, 30, 20, 10, 5, 3, 2, 1}


def _ts_local() -> str:
    return datetime.now().astimezone().strftime("%Y-%m-%d %H:%M:%S")


def _rewrite_prev_line(line: str) -> None:
    """
    Replace the last terminal line with `line`.
    Best-effort: if not a TTY, just print a new line.
    """
    try:
        if sys.stdout.isatty():
            sys.stdout.write("\033[1A\033[2K\r")
            sys.stdout.write(line + "\n")
            sys.stdout.flush()
        else:
            print(line)
    except Exception:
        print(line)


def _print_ts(text: str) -> None:
    print(f"[{_ts_local()}] {text}", flush=True)


class ConsoleEventSink:
    """
    EventSink that renders shell events as terminal lines.

    Runs on the event thread, so printing is serialized with a lock against
    the REPL's own output.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()

    def _say(self, text: str) -> None:
        with self._lock:
            _print_ts(text)

    def emit(self, event: str, payload: Any = None) -> None:
        if event == ShellEvent.MODE_CHANGED:
            self._say(f"[MODE] {payload}")
            if payload == Mode.PANIC_DECISION:
                self._say("WORK or NO-WORK?  (/decide work | /decide no-work)")
        elif event == ShellEvent.TOP_TASK_CHANGED:
            self._say(f"[TOP TASK] {payload or 'No tasks yet'}")
        elif event == ShellEvent.CHALLENGE_ISSUED:
            self._say(f"SOLVE TO EXIT SLEEP MODE: {payload} = ?  (/answer <n>)")
        elif event == ShellEvent.COUNTDOWN_TICK:
            label, remaining = payload
            if remaining in _ANNOUNCED_TICKS:
                self._say(f"[{str(label).upper()}] {remaining}s")
        elif event == ShellEvent.LINKS_FINALIZE:
            links = [link for link in (payload or []) if link]
            self._say(f"[PANIC] time is up, {len(links)} link(s) submitted")
        elif event == ShellEvent.SESSION_TICK:
            seconds = int(payload or 0)
            if seconds and seconds % 600 == 0:
                self._say(f"[SESSION] {seconds // 60} min")
        else:
            logger.debug("event %s: %r", event, payload)


def _confirm_quit(rng: random.Random | None = None) -> bool:
    """Quitting the shell asks for the same arithmetic as leaving sleep mode."""
    challenge = MathChallenge.generate(rng)
    try:
        raw = input(f"Solve to quit: {challenge.prompt} = ").strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return True
    if challenge.check(raw):
        return True
    _print_ts("Wrong answer. Staying.")
    return False


def run_console_loop(state: AppState) -> None:
    logger.info("Console connector started (mode=%s).", state.orchestrator.mode.value)
    _print_ts("[CONSOLE] focusdeck shell. Use /help for commands. Use /quit to leave.\n")

    def emit(text: str) -> None:
        print(f"[{_ts_local()}] {text}", flush=True)

    while True:
        try:
            user_input = input(">>> ").strip()
            _rewrite_prev_line(f"[{_ts_local()}] >>> {user_input}")
        except EOFError:
            logger.info("Console EOF received, exiting.")
            break
        except KeyboardInterrupt:
            logger.info("Console KeyboardInterrupt, exiting.")
            print()
            break

        if not user_input:
            continue

        if user_input.lower() in ("/quit", "/exit"):
            if _confirm_quit():
                logger.info("Console exit command received.")
                break
            continue

        try:
            cmd_response = command_registry.handle(state, user_input, emit=emit)
        except TimeoutError:
            logger.warning("Command %r timed out waiting for the event loop", user_input)
            cmd_response = "The event loop is busy; try again."
        except Exception:
            logger.exception("Command handler crashed.")
            cmd_response = "Internal error while handling a command."

        if cmd_response is None:
            cmd_response = "Commands start with '/'. Use /help to list them."
        print(f"[{_ts_local()}] {cmd_response}")

    logger.info("Console connector finished.")
