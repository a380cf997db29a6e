"""Tests for the persisted record store."""

import json

import pytest

from jobcollector.config import STORAGE_KEY
from jobcollector.models import JobRecord
from jobcollector.store import KeyValueFile, RecordStore


def _job(i: int, **kw) -> JobRecord:
    return JobRecord(id=f"item_{i}", title=f"Job {i}", company=f"Co {i}", **kw)


@pytest.mark.unit
def test_empty_when_file_missing(store):
    assert store.records() == ()
    assert len(store) == 0


@pytest.mark.unit
def test_add_puts_newest_first_and_persists(store, storage_file):
    store.add(_job(1))
    store.add(_job(2))
    assert [r.id for r in store.records()] == ["item_2", "item_1"]

    blob = json.loads(storage_file.read_text(encoding="utf-8"))
    stored = json.loads(blob[STORAGE_KEY])
    assert [r["id"] for r in stored] == ["item_2", "item_1"]


@pytest.mark.unit
def test_reload_reproduces_equal_list(store, storage_file):
    jobs = [
        _job(1, salary="20-30k", requirements=["Go", "gRPC"]),
        _job(2, status="applied", url="https://jobs.bytedance.com/x"),
        _job(3, status="rejected", description='Says "hello", quoted'),
    ]
    for j in reversed(jobs):
        store.add(j)

    reloaded = RecordStore(KeyValueFile(storage_file))
    assert reloaded.records() == tuple(jobs)


@pytest.mark.unit
def test_duplicate_id_rejected(store):
    store.add(_job(1))
    with pytest.raises(ValueError):
        store.add(_job(1))


@pytest.mark.unit
def test_replace_and_remove(store):
    store.add(_job(1))
    store.add(_job(2))

    assert store.replace(_job(1, status="interview"))
    assert store.get("item_1").status == "interview"
    assert [r.id for r in store.records()] == ["item_2", "item_1"]

    assert store.remove("item_2")
    assert [r.id for r in store.records()] == ["item_1"]


@pytest.mark.unit
def test_unknown_ids_leave_list_unchanged(store):
    store.add(_job(1))
    before = store.records()
    assert not store.remove("item_404")
    assert not store.replace(_job(404))
    assert store.records() == before


@pytest.mark.unit
def test_snapshots_are_not_mutated(store):
    store.add(_job(1))
    snapshot = store.records()
    store.add(_job(2))
    store.remove("item_1")
    assert [r.id for r in snapshot] == ["item_1"]


@pytest.mark.unit
def test_corrupt_value_treated_as_empty_then_overwritten(storage_file):
    kv = KeyValueFile(storage_file)
    kv.set(STORAGE_KEY, "{not json")
    store = RecordStore(kv)
    assert store.records() == ()

    store.add(_job(1))
    assert [r["id"] for r in json.loads(kv.get(STORAGE_KEY))] == ["item_1"]


@pytest.mark.unit
def test_non_array_value_treated_as_empty(storage_file):
    kv = KeyValueFile(storage_file)
    kv.set(STORAGE_KEY, json.dumps({"id": "item_1"}))
    assert RecordStore(kv).records() == ()


@pytest.mark.unit
def test_corrupt_file_treated_as_empty(storage_file):
    storage_file.write_text("garbage", encoding="utf-8")
    store = RecordStore(KeyValueFile(storage_file))
    assert store.records() == ()
    store.add(_job(1))
    assert len(RecordStore(KeyValueFile(storage_file))) == 1


@pytest.mark.unit
def test_bad_records_skipped(storage_file):
    kv = KeyValueFile(storage_file)
    kv.set(STORAGE_KEY, json.dumps([
        {"id": "item_1", "title": "ok", "status": "applied"},
        {"title": "no id"},
        {"id": "item_2", "status": "bogus"},
        {"id": "item_1", "title": "duplicate"},
        "not an object",
    ]))
    records = RecordStore(kv).records()
    assert [r.id for r in records] == ["item_1"]
    assert records[0].title == "ok"


@pytest.mark.unit
def test_other_keys_in_file_are_preserved(storage_file):
    kv = KeyValueFile(storage_file)
    kv.set("other_app", "keep me")
    store = RecordStore(kv)
    store.add(_job(1))
    assert kv.get("other_app") == "keep me"


@pytest.mark.unit
def test_clear(store):
    store.add(_job(1))
    store.clear()
    assert store.records() == ()


@pytest.mark.unit
def test_two_stores_on_one_file_keep_each_others_records(storage_file):
    ui = RecordStore(KeyValueFile(storage_file))
    cli = RecordStore(KeyValueFile(storage_file))

    cli.add(_job(1))
    ui.add(_job(2))

    ids = [r.id for r in RecordStore(KeyValueFile(storage_file)).records()]
    assert ids == ["item_2", "item_1"]
    assert [r.id for r in cli.records()] == ["item_2", "item_1"]


@pytest.mark.unit
def test_mutations_apply_to_what_is_on_disk(storage_file):
    first = RecordStore(KeyValueFile(storage_file))
    second = RecordStore(KeyValueFile(storage_file))
    first.add(_job(1))
    first.add(_job(2))

    assert second.replace(_job(1, status="applied"))
    assert second.remove("item_2")
    with pytest.raises(ValueError):
        second.add(_job(1))

    records = first.records()
    assert [r.id for r in records] == ["item_1"]
    assert records[0].status == "applied"


@pytest.mark.unit
def test_update_returning_none_leaves_file_alone(storage_file):
    kv = KeyValueFile(storage_file)
    kv.set("a", "1")
    before = storage_file.read_text(encoding="utf-8")
    assert kv.update("a", lambda current: None) is None
    assert storage_file.read_text(encoding="utf-8") == before
