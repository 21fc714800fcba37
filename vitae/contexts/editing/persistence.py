"""
Snapshot persistence for editable fields.

A snapshot is one JSON object mapping field key -> inner markup, stored as a
single value under one store key ("cvData"). Saving always replaces the whole
snapshot; loading writes stored values back into matching fields and ignores
everything else.

Reset and autosave are coordinated by PersistenceState: once reset() has
removed the snapshot, the component is RESETTING and refuses to save, so the
unload-triggered save cannot bring the old content back.
"""

import json
from enum import Enum
from typing import Dict, Optional

from vitae.contexts.editing.fields import EditableDocument
from vitae.contexts.editing.logger import (
    _log_debug,
    _log_info,
    _log_warning,
    log_snapshot_loaded,
    log_snapshot_saved,
)
from vitae.contexts.editing.storage import KeyValueStore


class PersistenceState(Enum):
    ACTIVE = "active"
    RESETTING = "resetting"


def decode_snapshot(raw: Optional[str]) -> Optional[Dict[str, str]]:
    """
    Parse a stored snapshot value.

    Returns:
        The field mapping, or None when the value is missing, not JSON, or not an object
    """
    if raw is None:
        return None
    try:
        data = json.loads(raw)
    except (json.JSONDecodeError, TypeError) as e:
        _log_warning(f"Discarding corrupt snapshot: {e}")
        return None
    if not isinstance(data, dict):
        _log_warning(f"Discarding snapshot of type {type(data).__name__}, expected an object")
        return None
    return {str(key): value for key, value in data.items() if isinstance(value, str)}


class SnapshotPersistence:
    """
    Save, load and reset the snapshot of one EditableDocument.

    Args:
        document: The document whose fields are tracked
        store: Backing key-value store
        storage_key: Store key of the snapshot (defaults to the document's options)
    """

    def __init__(
        self,
        document: EditableDocument,
        store: KeyValueStore,
        storage_key: Optional[str] = None,
    ):
        self.document = document
        self.store = store
        self.storage_key = storage_key or document.options.storage_key
        self.state = PersistenceState.ACTIVE

    def snapshot(self) -> Dict[str, str]:
        """Current value of every tracked field."""
        return {field.key: field.value for field in self.document}

    def save(self) -> bool:
        """
        Write the current snapshot in one store operation.

        Returns:
            True if written, False if skipped because a reset is in progress
        """
        if self.state is PersistenceState.RESETTING:
            _log_debug("Save skipped: reset in progress")
            return False

        data = self.snapshot()
        self.store.set_item(self.storage_key, json.dumps(data, ensure_ascii=False))
        log_snapshot_saved(self.storage_key, len(data))
        return True

    def read_snapshot(self) -> Optional[Dict[str, str]]:
        return decode_snapshot(self.store.get_item(self.storage_key))

    def load(self) -> int:
        """
        Restore stored values into matching fields.

        Returns:
            Number of fields restored (0 when there is no usable snapshot)
        """
        data = self.read_snapshot()
        if data is None:
            _log_debug(f"No saved state under '{self.storage_key}', using page defaults")
            return 0
        return self.apply(data)

    def apply(self, data: Dict[str, str]) -> int:
        """Write a field mapping into the document; unknown keys are ignored."""
        restored = 0
        for key, value in data.items():
            if key in self.document:
                self.document.field(key).set_value(value)
                restored += 1
        log_snapshot_loaded(self.storage_key, restored, len(data) - restored)
        return restored

    def reset(self) -> None:
        """Delete the snapshot and stop saving until the page is reloaded."""
        self.state = PersistenceState.RESETTING
        self.store.remove_item(self.storage_key)
        _log_info(f"Snapshot '{self.storage_key}' removed")

    def on_unload(self) -> bool:
        """Save on page unload unless a reset is in progress."""
        if self.state is PersistenceState.RESETTING:
            return False
        return self.save()
