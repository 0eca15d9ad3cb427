# src/focusdeck/errors.py

"""Exception types raised across focusdeck.

Only a few of these ever reach a caller: the orchestrator and the stores log
and absorb collaborator failures so there is always a way back to the dashboard.
"""

from __future__ import annotations


class FocusDeckError(Exception):
    """Base class for all focusdeck errors."""


class ConfigurationMissingError(FocusDeckError):
    """A required piece of user configuration (e.g. panic link-dump path) is not set."""


class PersistenceError(FocusDeckError):
    """A durable write (task list, stats, panic config, append log) failed."""

    def __init__(self, key: str, reason: str) -> None:
        super().__init__(f"persisting {key!r} failed: {reason}")
        self.key = key
        self.reason = reason


class InvalidTaskError(FocusDeckError, ValueError):
    """Task entry rejected (empty text, bad priority)."""
