# src/focusdeck/cli/main.py

"""
CLI entrypoint.

Initializes logging, builds AppState, then starts:
- the event-serialization loop (orchestrator, timers) in a background thread,
- the console REPL in the main thread (optional).
"""

from __future__ import annotations

import logging
import signal
import threading

from ..cli.bootstrap import create_app
from ..config import get_settings
from ..connectors.console_connector import ConsoleEventSink, run_console_loop
from ..logging_setup import setup_logging
from ..orchestrator.event_loop import EventLoop, start_event_loop_in_background

logger = logging.getLogger(__name__)


def main() -> None:
    settings = get_settings()

    # choose console log level from settings.log_level
    level_name = str(getattr(settings, "log_level", "INFO")).upper()
    console_level = getattr(logging, level_name, logging.INFO)

    log_dir = getattr(settings, "data_dir", ".local/focusdeck")
    setup_logging(log_dir=log_dir, console_level=console_level)

    logger.info("Starting %s...", getattr(settings, "app_name", "focusdeck"))

    events = EventLoop()
    # IMPORTANT: reuse same settings object
    state = create_app(settings=settings, sink=ConsoleEventSink(), events=events)

    runner = start_event_loop_in_background(
        events,
        on_start=state.orchestrator.start,
        on_stop=state.orchestrator.shutdown,
    )
    if runner is None:
        logger.error("Could not start the event loop; exiting.")
        return

    # Use an Event so main can wait without a busy while-loop.
    stop_main = threading.Event()

    def _handle_signal(signum, _frame) -> None:
        logger.info("Signal %s received, shutting down...", signum)
        stop_main.set()

    try:
        signal.signal(signal.SIGTERM, _handle_signal)
        if not settings.console_enabled:
            # The REPL handles Ctrl+C itself.
            signal.signal(signal.SIGINT, _handle_signal)
    except (ValueError, OSError):
        logger.debug("Signal handlers not installed.", exc_info=True)

    try:
        if settings.console_enabled:
            run_console_loop(state)
            stop_main.set()
        else:
            logger.info("Console disabled. Running headless. Press Ctrl+C to stop.")
            stop_main.wait()
    finally:
        runner.stop()
        runner.join(timeout=10.0)
        logger.info("Bye.")


if __name__ == "__main__":
    main()
