# tests/test_json_store.py

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path

import pytest

from focusdeck.adapters.json_store import FileAppendLog, JsonFileStore
from focusdeck.errors import ConfigurationMissingError, PersistenceError
from focusdeck.panic.links import PANIC_CONFIG_KEY, PanicLinkSaver, clean_links, format_panic_entry

from .fakes import FakeClock, MemoryStore, RecordingAppendLog


def test_store_writes_pretty_json_per_key(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path / "store")
    store.write("tasks", {"tasks": [{"id": 1, "text": "café"}]})

    path = tmp_path / "store" / "tasks.json"
    assert json.loads(path.read_text("utf-8")) == {"tasks": [{"id": 1, "text": "café"}]}
    assert store.read("tasks") == {"tasks": [{"id": 1, "text": "café"}]}
    assert not path.with_suffix(".tmp").exists()


def test_missing_or_corrupt_file_reads_as_none(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    assert store.read("stats") is None

    (tmp_path / "stats.json").write_text("{not json", "utf-8")
    assert store.read("stats") is None


def test_unserializable_value_raises_persistence_error(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    with pytest.raises(PersistenceError) as exc:
        store.write("stats", {"when": object()})
    assert exc.value.key == "stats"
    assert not (tmp_path / "stats.tmp").exists()


def test_keys_cannot_escape_the_directory(tmp_path: Path) -> None:
    store = JsonFileStore(tmp_path)
    with pytest.raises(ValueError):
        store.path_for("../etc/passwd")


def test_append_log_creates_parents_and_appends(tmp_path: Path) -> None:
    target = tmp_path / "notes" / "links.md"
    log = FileAppendLog()
    log.append(str(target), "one\n")
    log.append(str(target), "two\n")
    assert target.read_text("utf-8") == "one\ntwo\n"


def test_append_log_failure_raises_persistence_error(tmp_path: Path) -> None:
    blocker = tmp_path / "file"
    blocker.write_text("x", "utf-8")
    with pytest.raises(PersistenceError):
        FileAppendLog().append(str(blocker / "links.md"), "x")


# ---- panic link saver ----


def test_clean_links_and_entry_format() -> None:
    assert clean_links([" a ", None, "", "b", "c", "d"]) == ["a"]
    assert clean_links(["a", "b", "c", "d"]) == ["a", "b", "c"]

    entry = format_panic_entry(["a", "b"], timestamp=datetime(2026, 3, 10, 10, 0, 0))
    assert entry == "\n## Panic Save - 2026-03-10T10:00:00\n- a\n- b\n"


def test_saver_skips_when_no_path_configured() -> None:
    log = RecordingAppendLog()
    saver = PanicLinkSaver(MemoryStore(), log, clock=FakeClock(datetime(2026, 3, 10)))
    assert saver.load() is None
    assert saver.save(["https://example.com"]) == 0
    assert log.entries == []


def test_saver_persists_path_and_appends(tmp_path: Path) -> None:
    store = MemoryStore()
    target = tmp_path / "dump.md"
    saver = PanicLinkSaver(store, FileAppendLog(), clock=FakeClock(datetime(2026, 3, 10, 9, 30)))

    with pytest.raises(ConfigurationMissingError):
        saver.set_link_dump_path("   ")
    saver.set_link_dump_path(str(target))
    assert store.data[PANIC_CONFIG_KEY] == {"linkDumpPath": str(target)}

    assert saver.save(["https://a.example", "", "https://b.example"]) == 2
    assert target.read_text("utf-8") == "\n## Panic Save - 2026-03-10T09:30:00\n- https://a.example\n- https://b.example\n"

    reloaded = PanicLinkSaver(store, FileAppendLog(), clock=FakeClock(datetime(2026, 3, 10)))
    assert reloaded.load() == str(target)


def test_saver_absorbs_append_failures() -> None:
    store = MemoryStore({PANIC_CONFIG_KEY: {"linkDumpPath": "/nowhere/links.md"}})
    log = RecordingAppendLog(fail=True)
    saver = PanicLinkSaver(store, log, clock=FakeClock(datetime(2026, 3, 10)))
    saver.load()
    assert saver.save(["https://a.example"]) == 0
