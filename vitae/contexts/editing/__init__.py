"""
Editing Context

Responsibilities:
- Marks page fields editable and applies keyboard/clipboard rules
- Persists field snapshots to a key-value store (memory, file, browser)
- Provides the control panel (save, reset, export)

Owns: Field identity, snapshots, editor session lifecycle
Never: Produces PDF bytes (export is delegated to a registered exporter)
"""

from vitae.contexts.editing.control_panel import ControlPanel, Notifier
from vitae.contexts.editing.fields import EditableDocument, EditableField, FieldManager, KeyResult
from vitae.contexts.editing.persistence import PersistenceState, SnapshotPersistence
from vitae.contexts.editing.session import EditorSession

__all__ = [
    "ControlPanel",
    "EditableDocument",
    "EditableField",
    "EditorSession",
    "FieldManager",
    "KeyResult",
    "Notifier",
    "PersistenceState",
    "SnapshotPersistence",
]
