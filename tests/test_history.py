"""Tests for the history store."""

import json
from pathlib import Path

from conftest import make_history_item

from trustle.errors import StorageError
from trustle.history import HistoryStore
from trustle.store import LocalStore


def test_load_empty(history: HistoryStore):
    assert history.load() == []
    assert history.newest() is None


def test_append_is_newest_first(history: HistoryStore):
    ids = [f"2025-01-0{i}T10:00:00+00:00" for i in range(1, 4)]
    for item_id in ids:
        history.append(make_history_item(item_id))
    assert [item.id for item in history.all()] == list(reversed(ids))
    assert history.newest().id == ids[-1]


def test_find_by_id(history: HistoryStore):
    item = make_history_item("2025-01-01T10:00:00+00:00")
    history.append(item)
    assert history.find_by_id(item.id) == item
    assert history.find_by_id("missing") is None


def test_select_keeps_history_order(history: HistoryStore):
    a = make_history_item("2025-01-01T10:00:00+00:00")
    b = make_history_item("2025-01-02T10:00:00+00:00")
    c = make_history_item("2025-01-03T10:00:00+00:00")
    for item in (a, b, c):
        history.append(item)
    assert history.select([a.id, c.id]) == [c, a]


def test_persisted_and_reloaded(store: LocalStore, history: HistoryStore, sample_settings):
    history.append(make_history_item("2025-01-01T10:00:00+00:00", report="Kept"))
    path = store.path_for("alice", "history")
    raw = json.loads(path.read_text())
    assert len(raw["items"]) == 1

    reopened = HistoryStore(store, "alice")
    items = reopened.load()
    assert len(items) == 1
    assert items[0].report == "Kept"
    assert items[0].pipeline_state == history.all()[0].pipeline_state


def test_clear(store: LocalStore, history: HistoryStore):
    history.append(make_history_item("2025-01-01T10:00:00+00:00"))
    history.clear()
    assert history.all() == []
    assert HistoryStore(store, "alice").load() == []


def test_persist_failure_keeps_in_memory_append(history: HistoryStore, monkeypatch):
    def broken(*args, **kwargs):
        raise StorageError("read-only")

    monkeypatch.setattr(LocalStore, "save", broken)
    item = make_history_item("2025-01-01T10:00:00+00:00")
    history.append(item)
    assert history.all() == [item]


def test_corrupt_file_loads_empty(tmp_path: Path):
    store = LocalStore(tmp_path)
    path = store.path_for("alice", "history")
    path.parent.mkdir(parents=True)
    path.write_text("[broken")
    assert HistoryStore(store, "alice").load() == []
