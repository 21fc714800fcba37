"""Unit tests for snapshot files (flat and enveloped forms)."""

import json

import pytest

from vitae.contexts.editing.exceptions import SnapshotFileError
from vitae.contexts.editing.interchange import (
    SNAPSHOT_FORMAT_VERSION,
    read_snapshot_file,
    unwrap_snapshot,
    write_snapshot_file,
)


@pytest.mark.unit
def test_enveloped_file_layout(tmp_path):
    path = write_snapshot_file(tmp_path / "cv-data.json", {"greeting.title": "Ada"})

    payload = json.loads(path.read_text(encoding="utf-8"))
    assert set(payload) == {"timestamp", "data", "version"}
    assert payload["data"] == {"greeting.title": "Ada"}
    assert payload["version"] == SNAPSHOT_FORMAT_VERSION
    assert read_snapshot_file(path) == {"greeting.title": "Ada"}


@pytest.mark.unit
def test_flat_file_is_read_as_is(tmp_path):
    path = write_snapshot_file(tmp_path / "saved-cv-data.json", {"a": "<b>x</b>"}, envelope=False)

    assert json.loads(path.read_text(encoding="utf-8")) == {"a": "<b>x</b>"}
    assert read_snapshot_file(path) == {"a": "<b>x</b>"}


@pytest.mark.unit
def test_missing_file_reads_as_none(tmp_path):
    assert read_snapshot_file(tmp_path / "absent.json") is None


@pytest.mark.unit
def test_invalid_json_raises_with_path(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{oops", encoding="utf-8")

    with pytest.raises(SnapshotFileError) as exc_info:
        read_snapshot_file(path)

    assert exc_info.value.path == path
    assert exc_info.value.original_error is not None
    assert "Invalid JSON" in str(exc_info.value)


@pytest.mark.unit
def test_non_object_payload_raises(tmp_path):
    path = tmp_path / "list.json"
    path.write_text("[1, 2]", encoding="utf-8")

    with pytest.raises(SnapshotFileError, match="must be a JSON object"):
        read_snapshot_file(path)


@pytest.mark.unit
def test_unwrap_keeps_only_string_values():
    assert unwrap_snapshot({"a": "x", "b": 1}) == {"a": "x"}
    # "data" alone is an ordinary field key, not an envelope
    assert unwrap_snapshot({"data": "kept"}) == {"data": "kept"}
