# src/focusdeck/adapters/json_store.py

from __future__ import annotations

import contextlib
import json
import logging
import os
import re
from pathlib import Path
from typing import Any

from ..errors import PersistenceError

logger = logging.getLogger(__name__)

_SAFE_KEY = re.compile(r"^[A-Za-z0-9_.-]+$")


class JsonFileStore:
    """
    KeyValueStore backed by one pretty-printed JSON file per key.

    - writes go to a temp file and are moved into place with os.replace
    - unreadable/corrupt files read as missing (logged), so startup never fails
    - write failures raise PersistenceError for the caller to log
    """

    def __init__(self, directory: str | Path) -> None:
        self._dir = Path(directory)
        self._dir.mkdir(parents=True, exist_ok=True)
        logger.info("JsonFileStore ready dir=%s", self._dir)

    def path_for(self, key: str) -> Path:
        if not _SAFE_KEY.match(key):
            raise ValueError(f"invalid store key: {key!r}")
        return self._dir / f"{key}.json"

    def read(self, key: str) -> Any | None:
        path = self.path_for(key)
        if not path.exists():
            return None
        try:
            return json.loads(path.read_text("utf-8"))
        except (OSError, ValueError):
            logger.warning("Could not read %s; treating as missing", path, exc_info=True)
            return None

    def write(self, key: str, value: Any) -> None:
        path = self.path_for(key)
        tmp = path.with_suffix(".tmp")
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
            tmp.write_text(json.dumps(value, ensure_ascii=False, indent=2), "utf-8")
            os.replace(tmp, path)
        except (OSError, TypeError, ValueError) as e:
            with contextlib.suppress(OSError):
                tmp.unlink()
            raise PersistenceError(key, str(e)) from e
        logger.debug("Saved %s", path)


class FileAppendLog:
    """AppendLog writing UTF-8 text to the end of a file (created if missing)."""

    def append(self, path: str, text: str) -> None:
        target = Path(path).expanduser()
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            with target.open("a", encoding="utf-8") as fh:
                fh.write(text)
        except OSError as e:
            raise PersistenceError(str(target), str(e)) from e
