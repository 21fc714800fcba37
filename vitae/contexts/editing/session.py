"""
Editor session: one loaded page with its fields, persistence and control panel.

Mirrors the page lifecycle. Loading parses the original markup, marks fields
editable, restores the saved snapshot and renders the control panel; unloading
saves (unless a reset is in progress); reloading is unload followed by a fresh
load of the original markup.

The live document is shared with the scheduler thread (debounced saves, the
delayed reload), so every mutation happens under the session lock. Scheduled
callbacks take it automatically; callers take it through editing().
"""

import threading
from contextlib import contextmanager
from pathlib import Path
from typing import Callable, Iterator, Optional

from vitae.contexts.editing.config import EditorOptions, load_editor_options
from vitae.contexts.editing.control_panel import ControlPanel, Exporter, Notifier
from vitae.contexts.editing.debounce import Scheduler, ThreadingScheduler
from vitae.contexts.editing.fields import EditableDocument, EditableField, FieldManager
from vitae.contexts.editing.logger import _log_info
from vitae.contexts.editing.persistence import SnapshotPersistence
from vitae.contexts.editing.storage import KeyValueStore


def _decline(prompt: str) -> bool:
    return False


class EditorSession:
    """
    Example:
        >>> session = EditorSession(html, JsonFileStorage(Path("cv-store.json")))
        >>> session.field("name").paste("Ada Lovelace")
        >>> session.panel.save()
        >>> session.unload()
    """

    def __init__(
        self,
        html: str,
        store: KeyValueStore,
        options: Optional[EditorOptions] = None,
        scheduler: Optional[Scheduler] = None,
        confirm: Callable[[str], bool] = _decline,
    ):
        self.source_html = html
        self.store = store
        self.options = options or load_editor_options()
        self.lock = threading.RLock()
        self.scheduler = scheduler or ThreadingScheduler(lock=self.lock)
        self.confirm = confirm
        self.load_count = 0
        self._exporter: Optional[Exporter] = None
        self.load()

    @classmethod
    def from_file(cls, path: Path, store: KeyValueStore, **kwargs) -> "EditorSession":
        return cls(Path(path).read_text(encoding="utf-8"), store, **kwargs)

    def load(self) -> None:
        with self.lock:
            self._load()

    def _load(self) -> None:
        self.document = EditableDocument(self.source_html, self.options)
        self.persistence = SnapshotPersistence(self.document, self.store)
        self.notifier = Notifier(self.scheduler, duration=self.options.notification_seconds)
        self.manager = FieldManager(
            self.document,
            self.persistence.save,
            self.scheduler,
            notify=self.notifier.notify,
            debounce_seconds=self.options.debounce_seconds,
        )
        restored = self.persistence.load()

        self.panel = ControlPanel(
            self.persistence,
            self.notifier,
            self.scheduler,
            confirm=self.confirm,
            reload=self.reload,
            reload_delay=self.options.reload_delay_seconds,
            element_id=self.options.panel_element_id,
        )
        if self._exporter is not None:
            self.panel.register_exporter(self._exporter)
        self.panel.render(self.document)

        self.load_count += 1
        _log_info(
            f"Editor loaded: {len(self.document)} editable fields, {restored} restored from storage"
        )

    def unload(self) -> None:
        with self.lock:
            # Pending debounced writes die with the page; the unload save covers them
            self.manager.debouncer.cancel()
            self.persistence.on_unload()

    def reload(self) -> None:
        with self.lock:
            self.unload()
            self.load()

    @contextmanager
    def editing(self) -> Iterator[EditableDocument]:
        """
        Hold the session lock while mutating the document from the caller's thread.

        Example:
            >>> with session.editing() as document:
            ...     document.field("name").paste("Ada Lovelace")
        """
        with self.lock:
            yield self.document

    def register_exporter(self, exporter: Exporter) -> None:
        self._exporter = exporter
        self.panel.register_exporter(exporter)

    def field(self, key: str) -> EditableField:
        return self.document.field(key)

    def to_html(self) -> str:
        """Current live markup, control panel included."""
        return self.document.to_html()
