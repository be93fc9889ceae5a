from __future__ import annotations

import json

import pytest

from wifiverify.fix import Fix
from wifiverify.store import (
    JsonLocationStore,
    MemoryLocationStore,
    StoreError,
    store_session,
)


def _fix(source_id: str, verified_at: int | None = None) -> Fix:
    return Fix(latitude=52.0, longitude=13.0, accuracy=20.0, source_id=source_id, verified_at=verified_at)


def test_memory_store_applies_batch_on_end() -> None:
    store = MemoryLocationStore()
    editor = store.edit()
    editor.put(_fix("a", 10))
    editor.put(_fix("b", 10))
    assert len(store) == 0

    editor.end()
    assert len(store) == 2
    assert "a" in store
    assert store.get("b").verified_at == 10


def test_memory_store_upsert_never_rolls_back() -> None:
    store = MemoryLocationStore([_fix("a", 200)])
    with store_session(store) as editor:
        editor.put(_fix("a", 100))
    assert store.get("a").verified_at == 200

    with store_session(store) as editor:
        editor.put(_fix("a", 300))
    with store_session(store) as editor:
        editor.put(_fix("a", 300))
    assert store.get("a").verified_at == 300
    assert len(store) == 1


def test_editor_rejects_use_after_end() -> None:
    editor = MemoryLocationStore().edit()
    editor.end()
    with pytest.raises(StoreError):
        editor.put(_fix("a", 1))
    with pytest.raises(StoreError):
        editor.end()


def test_store_session_ends_on_failure() -> None:
    ended: list[bool] = []

    class _Editor:
        def put(self, fix: Fix) -> None:
            raise StoreError("disk full")

        def end(self) -> None:
            ended.append(True)

    class _Store:
        def edit(self) -> _Editor:
            return _Editor()

    with pytest.raises(StoreError):
        with store_session(_Store()) as editor:
            editor.put(_fix("a", 1))
    assert ended == [True]


def test_annotate_fills_newer_verification() -> None:
    store = MemoryLocationStore([_fix("a", 500), _fix("b", 50)])
    annotated = store.annotate([_fix("a"), _fix("b", 100), _fix("c")])
    assert [fix.verified_at for fix in annotated] == [500, 100, None]


def test_json_store_persists_between_instances(tmp_path) -> None:
    path = tmp_path / "nested" / "verified.json"
    store = JsonLocationStore(path)
    assert store.load() == {}

    with store_session(store) as editor:
        editor.put(_fix("aa:bb", 1_000))
        editor.put(_fix("cc:dd", 2_000))

    reopened = JsonLocationStore(path)
    assert reopened.get("aa:bb").verified_at == 1_000
    assert reopened.get("cc:dd").source_id == "cc:dd"
    assert set(json.loads(path.read_text())["fixes"]) == {"aa:bb", "cc:dd"}
    assert not path.with_name("verified.json.tmp").exists()

    with store_session(reopened) as editor:
        editor.put(_fix("aa:bb", 500))
    assert JsonLocationStore(path).get("aa:bb").verified_at == 1_000


def test_json_store_reports_malformed_file(tmp_path) -> None:
    path = tmp_path / "verified.json"
    path.write_text("{not json")
    store = JsonLocationStore(path)
    with pytest.raises(StoreError):
        store.load()
    with pytest.raises(StoreError):
        store.annotate([_fix("a")])


def test_fixes_without_source_id_are_not_stored(tmp_path) -> None:
    memory = MemoryLocationStore([_fix("", 100)])
    with store_session(memory) as editor:
        editor.put(_fix("", 200))
        editor.put(_fix("a", 200))
    assert len(memory) == 1
    assert "" not in memory

    store = JsonLocationStore(tmp_path / "verified.json")
    with store_session(store) as editor:
        editor.put(_fix("", 200))
    assert store.load() == {}


def test_annotate_leaves_fixes_without_source_id_alone() -> None:
    store = MemoryLocationStore([_fix("a", 500)])
    store._fixes[""] = _fix("", 500)
    annotated = store.annotate([_fix(""), _fix("a")])
    assert [fix.verified_at for fix in annotated] == [None, 500]
