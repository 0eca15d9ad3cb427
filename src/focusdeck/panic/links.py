# src/focusdeck/panic/links.py

"""
Panic-mode link capture.

Links typed during the panic countdown are appended to a user-chosen
Markdown file ("link dump"). The destination is stored under the
`panic-config` key; without it, saving is skipped and the panic flow goes on.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime

from ..core.ports import AppendLog, Clock, KeyValueStore
from ..errors import ConfigurationMissingError, PersistenceError

logger = logging.getLogger(__name__)

PANIC_CONFIG_KEY = "panic-config"


def clean_links(links: Iterable[str | None], *, limit: int = 3) -> list[str]:
    """Strip entries, drop empty ones, keep at most `limit` (the overlay has three fields)."""
    out: list[str] = []
    for link in list(links)[:limit]:
        text = (link or "").strip()
        if text:
            out.append(text)
    return out


def format_panic_entry(links: list[str], *, timestamp: datetime) -> str:
    bullets = "\n".join(f"- {link}" for link in links)
    return f"\n## Panic Save - {timestamp.isoformat()}\n{bullets}\n"


class PanicLinkSaver:
    def __init__(self, store: KeyValueStore, append_log: AppendLog, *, clock: Clock) -> None:
        self._store = store
        self._append_log = append_log
        self._clock = clock
        self._path: str | None = None

    @property
    def link_dump_path(self) -> str | None:
        return self._path

    def load(self) -> str | None:
        try:
            raw = self._store.read(PANIC_CONFIG_KEY)
        except Exception:
            logger.exception("Failed to read panic config")
            raw = None

        path = raw.get("linkDumpPath") if isinstance(raw, dict) else None
        self._path = path.strip() if isinstance(path, str) and path.strip() else None
        if self._path:
            logger.info("Panic link dump path loaded: %s", self._path)
        else:
            logger.info("No panic link dump path configured yet")
        return self._path

    def set_link_dump_path(self, path: str) -> None:
        clean = (path or "").strip()
        if not clean:
            raise ConfigurationMissingError("link dump path must not be empty")
        self._path = clean
        try:
            self._store.write(PANIC_CONFIG_KEY, {"linkDumpPath": clean})
        except PersistenceError:
            logger.exception("Panic config not persisted (path kept in memory)")
        logger.info("Panic link dump path set: %s", clean)

    def save(self, links: Iterable[str | None]) -> int:
        """
        Append non-empty links as one timestamped entry. Returns how many were written.

        Missing configuration and write failures are logged, never raised.
        """
        clean = clean_links(links)
        if not clean:
            return 0
        if not self._path:
            logger.warning("No link dump path configured; %d panic link(s) not saved", len(clean))
            return 0

        entry = format_panic_entry(clean, timestamp=self._clock.now())
        try:
            self._append_log.append(self._path, entry)
        except Exception:
            logger.exception("Failed to append panic links to %s", self._path)
            return 0
        logger.info("Saved %d link(s) to %s", len(clean), self._path)
        return len(clean)
