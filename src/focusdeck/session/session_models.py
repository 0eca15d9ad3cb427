# src/focusdeck/session/session_models.py

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any


@dataclass(slots=True, frozen=True)
class WorkspaceSession:
    workspace: str
    start_time: int  # epoch ms
    end_time: int  # epoch ms
    duration: int  # whole minutes, floored

    def to_record(self) -> dict[str, Any]:
        return {
            "workspace": self.workspace,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "duration": self.duration,
        }

    @classmethod
    def from_record(cls, raw: Any) -> WorkspaceSession | None:
        if not isinstance(raw, dict):
            return None
        try:
            return cls(
                workspace=str(raw["workspace"]),
                start_time=int(raw["startTime"]),
                end_time=int(raw["endTime"]),
                duration=int(raw["duration"]),
            )
        except (KeyError, TypeError, ValueError):
            return None


@dataclass(slots=True)
class StatsAggregate:
    """Minutes per workspace plus the bounded log of recent sessions."""

    workspace_times: dict[str, int] = field(default_factory=dict)
    sessions: list[WorkspaceSession] = field(default_factory=list)

    def to_record(self) -> dict[str, Any]:
        return {
            "workspaceTimes": dict(self.workspace_times),
            "sessions": [s.to_record() for s in self.sessions],
        }

    @classmethod
    def from_record(cls, raw: Any) -> StatsAggregate:
        if not isinstance(raw, dict):
            return cls()

        times: dict[str, int] = {}
        raw_times = raw.get("workspaceTimes")
        if isinstance(raw_times, dict):
            for name, minutes in raw_times.items():
                try:
                    times[str(name)] = int(minutes)
                except (TypeError, ValueError):
                    continue

        sessions: list[WorkspaceSession] = []
        raw_sessions = raw.get("sessions")
        if isinstance(raw_sessions, list):
            for item in raw_sessions:
                session = WorkspaceSession.from_record(item)
                if session is not None:
                    sessions.append(session)

        return cls(workspace_times=times, sessions=sessions)

    def copy(self) -> StatsAggregate:
        return StatsAggregate(workspace_times=dict(self.workspace_times), sessions=list(self.sessions))
