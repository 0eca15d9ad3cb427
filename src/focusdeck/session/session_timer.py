# src/focusdeck/session/session_timer.py

"""
Workspace session timer.

Tracks at most one open interval {workspace, start}. stop() closes it,
adds the floored minutes to the per-workspace totals, appends a session
record and trims the log to the most recent `session_log_limit` entries.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from ..core.ports import Clock, KeyValueStore
from ..errors import PersistenceError
from .session_models import StatsAggregate, WorkspaceSession

logger = logging.getLogger(__name__)

STATS_KEY = "stats"
DEFAULT_SESSION_LOG_LIMIT = 100


def _epoch_ms(clock: Clock) -> int:
    return int(clock.now().timestamp() * 1000)


@dataclass(slots=True, frozen=True)
class OpenSession:
    workspace: str
    start_time: int  # epoch ms


class SessionTimer:
    def __init__(
        self,
        store: KeyValueStore,
        *,
        clock: Clock,
        session_log_limit: int = DEFAULT_SESSION_LOG_LIMIT,
    ) -> None:
        self._store = store
        self._clock = clock
        self._limit = max(1, int(session_log_limit))
        self._open: OpenSession | None = None
        self._stats = StatsAggregate()

    def load(self) -> StatsAggregate:
        try:
            raw = self._store.read(STATS_KEY)
        except Exception:
            logger.exception("Failed to read stats; starting from empty totals")
            raw = None

        self._stats = StatsAggregate.from_record(raw)
        if raw is None:
            # First run: create the file so the stats screen has something to read.
            self._persist()
        logger.info(
            "Stats loaded: %d workspace(s), %d session(s)",
            len(self._stats.workspace_times),
            len(self._stats.sessions),
        )
        return self.aggregate()

    def _persist(self) -> None:
        try:
            self._store.write(STATS_KEY, self._stats.to_record())
        except PersistenceError:
            logger.exception("Stats not persisted; will retry on next session stop")

    # ---- state ----

    @property
    def is_open(self) -> bool:
        return self._open is not None

    @property
    def current_workspace(self) -> str | None:
        return self._open.workspace if self._open else None

    def elapsed_seconds(self) -> int:
        if self._open is None:
            return 0
        return max(0, (_epoch_ms(self._clock) - self._open.start_time) // 1000)

    def aggregate(self) -> StatsAggregate:
        return self._stats.copy()

    # ---- lifecycle ----

    def start(self, workspace: str) -> None:
        if self._open is not None:
            # One open interval at a time: close the previous one first.
            self.stop()
        self._open = OpenSession(workspace=workspace, start_time=_epoch_ms(self._clock))
        logger.info("Started tracking: %s", workspace)

    def stop(self) -> WorkspaceSession | None:
        if self._open is None:
            return None

        opened = self._open
        self._open = None

        end_time = _epoch_ms(self._clock)
        minutes = max(0, (end_time - opened.start_time) // 60000)

        times = self._stats.workspace_times
        times[opened.workspace] = times.get(opened.workspace, 0) + minutes

        session = WorkspaceSession(
            workspace=opened.workspace,
            start_time=opened.start_time,
            end_time=end_time,
            duration=minutes,
        )
        self._stats.sessions.append(session)
        if len(self._stats.sessions) > self._limit:
            del self._stats.sessions[: len(self._stats.sessions) - self._limit]

        self._persist()
        logger.info("Stopped tracking %s: %d minute(s)", opened.workspace, minutes)
        return session
