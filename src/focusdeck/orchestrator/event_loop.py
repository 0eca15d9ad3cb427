# src/focusdeck/orchestrator/event_loop.py

"""
Event serialization.

Everything that can change orchestrator state (console commands from the REPL
thread, countdown ticks, settle delays, power/display notifications) becomes
one item on a single asyncio.Queue. One consumer task drains it and runs each
item to completion before taking the next, so no two transitions interleave.

Timers never call the orchestrator directly: when they fire they enqueue
their callback like any other event.
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class QueuedEvent:
    label: str
    fn: Callable[..., Any]
    args: tuple[Any, ...] = ()
    done: "asyncio.Future[Any] | None" = None


class QueuedTimer:
    """Cancellation handle for EventLoop.call_later; safe even after the callback was queued."""

    def __init__(self) -> None:
        self.cancelled = False
        self._handle: asyncio.TimerHandle | None = None

    def cancel(self) -> None:
        self.cancelled = True
        if self._handle is not None:
            self._handle.cancel()
            self._handle = None


class EventLoop:
    """Single-consumer event queue; also implements the TickScheduler port."""

    def __init__(self) -> None:
        self._loop: asyncio.AbstractEventLoop | None = None
        self._queue: asyncio.Queue[QueuedEvent] | None = None

    @property
    def loop(self) -> asyncio.AbstractEventLoop:
        if self._loop is None:
            raise RuntimeError("event loop not running")
        return self._loop

    def bind(self) -> None:
        """Attach to the running asyncio loop. Must be called from inside it."""
        self._loop = asyncio.get_running_loop()
        self._queue = asyncio.Queue()

    # ---- producers ----

    def post(self, label: str, fn: Callable[..., Any], *args: Any) -> None:
        """Enqueue from any thread."""
        event = QueuedEvent(label=label, fn=fn, args=args)
        self.loop.call_soon_threadsafe(self._put, event)

    def submit(self, label: str, fn: Callable[..., Any], *args: Any, timeout: float | None = 10.0) -> Any:
        """Enqueue from another thread and block until the handler has run; returns its result."""
        holder: dict[str, Any] = {}
        ready = threading.Event()

        def put_with_future() -> None:
            fut: asyncio.Future[Any] = self.loop.create_future()

            def finished(f: asyncio.Future[Any]) -> None:
                holder["future"] = f
                ready.set()

            fut.add_done_callback(finished)
            self._put(QueuedEvent(label=label, fn=fn, args=args, done=fut))

        self.loop.call_soon_threadsafe(put_with_future)
        if not ready.wait(timeout=timeout):
            raise TimeoutError(f"event {label!r} not handled within {timeout}s")
        return holder["future"].result()

    def _put(self, event: QueuedEvent) -> None:
        if self._queue is None:
            raise RuntimeError("event loop not bound")
        self._queue.put_nowait(event)

    def call_later(self, delay: float, callback: Callable[[], None]) -> QueuedTimer:
        """TickScheduler: after `delay` seconds, enqueue `callback` unless cancelled first."""
        timer = QueuedTimer()
        label = getattr(callback, "__qualname__", "timer")

        def fire() -> None:
            timer._handle = None
            if not timer.cancelled:
                self._put(QueuedEvent(label=label, fn=self._guarded, args=(timer, callback)))

        timer._handle = self.loop.call_later(max(0.0, float(delay)), fire)
        return timer

    @staticmethod
    def _guarded(timer: QueuedTimer, callback: Callable[[], None]) -> None:
        if not timer.cancelled:
            callback()

    # ---- consumer ----

    async def run(self, stop_event: asyncio.Event) -> None:
        if self._queue is None:
            self.bind()
        assert self._queue is not None

        stop_waiter = asyncio.ensure_future(stop_event.wait())
        try:
            while not stop_event.is_set():
                getter = asyncio.ensure_future(self._queue.get())
                done, _ = await asyncio.wait({getter, stop_waiter}, return_when=asyncio.FIRST_COMPLETED)
                if getter not in done:
                    getter.cancel()
                    with contextlib.suppress(asyncio.CancelledError):
                        await getter
                    break
                self._dispatch(getter.result())
        finally:
            stop_waiter.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await stop_waiter

    def _dispatch(self, event: QueuedEvent) -> None:
        logger.debug("event: %s", event.label)
        try:
            result = event.fn(*event.args)
        except Exception as e:
            logger.exception("Handler for %s crashed", event.label)
            if event.done is not None and not event.done.done():
                event.done.set_exception(e)
            return
        if event.done is not None and not event.done.done():
            event.done.set_result(result)


@dataclass
class ShellBackgroundRunner:
    thread: threading.Thread
    loop: asyncio.AbstractEventLoop
    stop_event: asyncio.Event
    events: EventLoop

    def stop(self) -> None:
        try:
            self.loop.call_soon_threadsafe(self.stop_event.set)
        except Exception:
            logger.debug("Failed to signal event loop stop.", exc_info=True)

    def join(self, timeout: float | None = None) -> None:
        self.thread.join(timeout=timeout)


def start_event_loop_in_background(
        events: EventLoop,
        on_start: Callable[[], None] | None = None,
        on_stop: Callable[[], None] | None = None,
) -> ShellBackgroundRunner | None:
    """
    Run the event queue in a background thread (so the console REPL can block on input()).

    on_start/on_stop run inside the event-serialization context, before the first
    and after the last queued event.
    """
    ready = threading.Event()
    holder: dict[str, object] = {}

    async def main(stop_event: asyncio.Event) -> None:
        events.bind()
        if on_start is not None:
            events.post("startup", on_start)
        try:
            await events.run(stop_event)
        finally:
            if on_stop is not None:
                try:
                    on_stop()
                except Exception:
                    logger.exception("Shutdown hook failed")

    def runner() -> None:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        stop_event = asyncio.Event()

        holder["loop"] = loop
        holder["stop_event"] = stop_event

        try:
            task = loop.create_task(main(stop_event))
            # Bind happens on the first loop iteration; signal readiness right after.
            loop.call_soon(ready.set)
            loop.run_until_complete(task)
        except Exception:
            logger.exception("Event loop crashed.")
        finally:
            with contextlib.suppress(Exception):
                loop.stop()
            with contextlib.suppress(Exception):
                loop.close()

    t = threading.Thread(target=runner, name="focusdeck-events", daemon=True)
    t.start()

    ready.wait(timeout=5.0)
    loop = holder.get("loop")
    stop_event = holder.get("stop_event")

    if not isinstance(loop, asyncio.AbstractEventLoop) or not isinstance(stop_event, asyncio.Event):
        logger.error("Event loop thread did not initialize properly.")
        return None

    logger.info("Event loop thread started.")
    return ShellBackgroundRunner(thread=t, loop=loop, stop_event=stop_event, events=events)
