"""Unit tests for snapshot persistence and the key-value stores."""

import json
import threading

import pytest

from vitae.contexts.editing.fields import EditableDocument
from vitae.contexts.editing.persistence import (
    PersistenceState,
    SnapshotPersistence,
    decode_snapshot,
)
from vitae.contexts.editing.storage import JsonFileStorage, MemoryStorage


def stored(store, key="cvData"):
    return json.loads(store.get_item(key))


@pytest.mark.unit
def test_snapshot_round_trips_into_fresh_document(page_html, store):
    document = EditableDocument(page_html)
    document.field("greeting.title").set_value("Augusta Ada King")
    document.field("job.0.duty.1").set_value("Wrote <i>Note G</i>")
    assert SnapshotPersistence(document, store).save() is True

    fresh = EditableDocument(page_html)
    restored = SnapshotPersistence(fresh, store).load()

    assert restored == len(fresh)
    assert fresh.field("greeting.title").value == "Augusta Ada King"
    assert fresh.field("job.0.duty.1").value == "Wrote <i>Note G</i>"
    assert fresh.field("greeting.subtitle").value == "Analyst &amp; <b>Metaphysician</b>"


@pytest.mark.unit
def test_save_is_one_write_of_every_field(page_html, store):
    document = EditableDocument(page_html)
    SnapshotPersistence(document, store).save()

    assert store.writes == 1
    assert set(stored(store)) == set(document.fields)


@pytest.mark.unit
def test_save_replaces_previous_snapshot(page_html):
    store = MemoryStorage({"cvData": json.dumps({"stale.key": "old", "greeting.title": "Old"})})
    document = EditableDocument(page_html)

    SnapshotPersistence(document, store).save()

    data = stored(store)
    assert "stale.key" not in data
    assert data["greeting.title"] == "Ada Lovelace"


@pytest.mark.unit
def test_load_ignores_unknown_keys_and_keeps_defaults_for_missing(page_html):
    store = MemoryStorage({"cvData": json.dumps({"greeting.title": "Countess", "removed.field": "x"})})
    document = EditableDocument(page_html)

    restored = SnapshotPersistence(document, store).load()

    assert restored == 1
    assert document.field("greeting.title").text == "Countess"
    assert document.field("job.0.dates").text == "1842 - 1843"
    assert "removed.field" not in document


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["{not json", "[1, 2, 3]", '"text"', "null"])
def test_corrupt_snapshot_leaves_defaults(page_html, raw):
    store = MemoryStorage({"cvData": raw})
    document = EditableDocument(page_html)

    assert SnapshotPersistence(document, store).load() == 0
    assert document.field("greeting.title").text == "Ada Lovelace"


@pytest.mark.unit
def test_decode_snapshot_drops_non_string_values():
    assert decode_snapshot(None) is None
    assert decode_snapshot('{"a": "x", "b": 3, "c": null}') == {"a": "x"}


@pytest.mark.unit
def test_load_without_snapshot_restores_nothing(page_html, store):
    document = EditableDocument(page_html)
    before = document.to_html()

    assert SnapshotPersistence(document, store).load() == 0
    assert document.to_html() == before


@pytest.mark.unit
def test_reset_matches_never_having_saved(page_html, store):
    document = EditableDocument(page_html)
    persistence = SnapshotPersistence(document, store)
    document.field("greeting.title").set_value("Edited")
    persistence.save()

    persistence.reset()

    assert persistence.state is PersistenceState.RESETTING
    assert store.get_item("cvData") is None
    fresh = EditableDocument(page_html)
    SnapshotPersistence(fresh, store).load()
    assert fresh.to_html() == EditableDocument(page_html).to_html()


@pytest.mark.unit
def test_no_save_after_reset(page_html, store):
    document = EditableDocument(page_html)
    persistence = SnapshotPersistence(document, store)
    document.field("greeting.title").set_value("Edited")

    persistence.reset()

    assert persistence.save() is False
    assert persistence.on_unload() is False
    assert store.get_item("cvData") is None
    assert store.writes == 0


@pytest.mark.unit
def test_unload_saves_when_active(page_html, store):
    document = EditableDocument(page_html)
    persistence = SnapshotPersistence(document, store)
    document.field("job.0.dates").set_value("1843")

    assert persistence.on_unload() is True
    assert stored(store)["job.0.dates"] == "1843"


@pytest.mark.unit
def test_custom_storage_key(page_html, store):
    document = EditableDocument(page_html)
    SnapshotPersistence(document, store, storage_key="draft").save()

    assert store.get_item("cvData") is None
    assert "greeting.title" in stored(store, "draft")


# ------------------------------------------------------------------
# JsonFileStorage
# ------------------------------------------------------------------
@pytest.mark.unit
def test_json_file_storage_persists_across_instances(tmp_path):
    path = tmp_path / "nested" / "store.json"
    JsonFileStorage(path).set_item("cvData", '{"a": "b"}')

    reopened = JsonFileStorage(path)
    assert reopened.get_item("cvData") == '{"a": "b"}'

    reopened.remove_item("cvData")
    assert JsonFileStorage(path).get_item("cvData") is None
    assert json.loads(path.read_text(encoding="utf-8")) == {}
    # No temporary files left behind
    assert [p.name for p in path.parent.iterdir()] == ["store.json"]


@pytest.mark.unit
def test_json_file_storage_concurrent_writers_keep_every_key(tmp_path):
    storage = JsonFileStorage(tmp_path / "store.json")

    def write_keys(worker):
        for i in range(10):
            storage.set_item(f"{worker}.{i}", str(i))

    threads = [threading.Thread(target=write_keys, args=(worker,)) for worker in range(6)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    items = json.loads((tmp_path / "store.json").read_text(encoding="utf-8"))
    assert len(items) == 60
    assert items["5.9"] == "9"


@pytest.mark.unit
def test_json_file_storage_treats_unreadable_file_as_empty(tmp_path):
    path = tmp_path / "store.json"
    path.write_text("{broken", encoding="utf-8")
    storage = JsonFileStorage(path)

    assert storage.get_item("cvData") is None
    storage.set_item("cvData", "{}")
    assert json.loads(path.read_text(encoding="utf-8")) == {"cvData": "{}"}
