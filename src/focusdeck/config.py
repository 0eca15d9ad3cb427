# src/focusdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing required at import time: every value has a working default.
- Bad values never crash startup, they fall back to defaults.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import List

from dotenv import load_dotenv

ENV_PREFIX = "FOCUSDECK"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_list(name: str, default: List[str]) -> List[str]:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return list(default)
    # Workspace names may contain spaces, so only commas separate items.
    return [p.strip() for p in raw.split(",") if p.strip()]


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


def _env_hour(name: str, default: int) -> int:
    value = _env_int(name, default)
    return value if 0 <= value <= 24 else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str
    console_enabled: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_dir: Path

    # ---- External automations ----
    automation_command: str
    blocker_shortcut: str
    workspaces: List[str]

    # ---- Sleep window (local wall clock, [start, end)) ----
    sleep_start_hour: int
    sleep_end_hour: int
    sleep_check_interval_seconds: float

    # ---- Countdowns (ticks of one second) ----
    panic_countdown_seconds: int
    cold_turkey_countdown_seconds: int
    break_countdown_seconds: int

    # ---- Tuning ----
    session_log_limit: int
    workspace_settle_delay_seconds: float
    overdue_policy: str

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "focusdeck") or "focusdeck"
        log_level = _env(_k("LOG_LEVEL"), "INFO")
        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/focusdeck"))
        store_dir = _env_path(_k("STORE_DIR"), data_dir / "store")

        automation_command = _env(_k("AUTOMATION_COMMAND"), "/usr/bin/shortcuts")
        blocker_shortcut = _env(_k("BLOCKER_SHORTCUT"), "Cold Turkey")
        workspaces = _env_list(_k("WORKSPACES"), ["Deep Work", "Writing", "Admin"])

        sleep_start_hour = _env_hour(_k("SLEEP_START_HOUR"), 19)
        sleep_end_hour = _env_hour(_k("SLEEP_END_HOUR"), 23)
        sleep_check_interval_seconds = max(1.0, _env_float(_k("SLEEP_CHECK_INTERVAL"), 60.0))

        panic_countdown_seconds = max(1, _env_int(_k("PANIC_COUNTDOWN"), 20))
        cold_turkey_countdown_seconds = max(1, _env_int(_k("COLD_TURKEY_COUNTDOWN"), 20))
        break_countdown_seconds = max(1, _env_int(_k("BREAK_COUNTDOWN"), 60))

        session_log_limit = max(1, _env_int(_k("SESSION_LOG_LIMIT"), 100))
        workspace_settle_delay_seconds = max(0.0, _env_float(_k("WORKSPACE_SETTLE_DELAY"), 1.0))

        overdue_policy = _env(_k("OVERDUE_POLICY"), "as_today").strip().lower()
        if overdue_policy not in ("as_today", "separate"):
            overdue_policy = "as_today"

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            data_dir=data_dir,
            store_dir=store_dir,
            automation_command=automation_command,
            blocker_shortcut=blocker_shortcut,
            workspaces=workspaces,
            sleep_start_hour=sleep_start_hour,
            sleep_end_hour=sleep_end_hour,
            sleep_check_interval_seconds=sleep_check_interval_seconds,
            panic_countdown_seconds=panic_countdown_seconds,
            cold_turkey_countdown_seconds=cold_turkey_countdown_seconds,
            break_countdown_seconds=break_countdown_seconds,
            session_log_limit=session_log_limit,
            workspace_settle_delay_seconds=workspace_settle_delay_seconds,
            overdue_policy=overdue_policy,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
