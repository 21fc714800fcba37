"""
Key-value stores for persisted snapshots.

All stores expose the browser localStorage surface (get_item / set_item /
remove_item) with string keys and string values, so persistence code is the
same whether it runs against memory, a file on disk, or a live browser page.
"""

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from dotenv import load_dotenv

from vitae.contexts.editing.logger import _log_debug, _log_warning

load_dotenv()

# Store shared by the editor CLI and the PDF generator
STORE_FILE = Path(os.getenv("VITAE_STORE_FILE", "cv-store.json"))


class KeyValueStore(Protocol):
    def get_item(self, key: str) -> Optional[str]: ...

    def set_item(self, key: str, value: str) -> None: ...

    def remove_item(self, key: str) -> None: ...


class MemoryStorage:
    """Dict-backed store; contents live as long as the object."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self._items: Dict[str, str] = dict(initial or {})

    def get_item(self, key: str) -> Optional[str]:
        return self._items.get(key)

    def set_item(self, key: str, value: str) -> None:
        self._items[key] = value

    def remove_item(self, key: str) -> None:
        self._items.pop(key, None)

    def __len__(self) -> int:
        return len(self._items)


class JsonFileStorage:
    """
    Store persisted to one JSON object on disk.

    Every set/remove rewrites the file through a temporary file and os.replace,
    so a reader never sees a half-written store. Read-modify-write cycles are
    serialized by an instance lock, so concurrent writers in one process never
    drop each other's keys. An unreadable file is treated as empty.
    """

    def __init__(self, path: Path):
        self.path = Path(path)
        self._lock = threading.Lock()

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            items = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            _log_warning(f"Ignoring unreadable store file {self.path}: {e}")
            return {}
        if not isinstance(items, dict):
            _log_warning(f"Ignoring store file {self.path}: expected a JSON object")
            return {}
        return items

    def _write(self, items: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=f".{self.path.name}.")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(items, handle, ensure_ascii=False, indent=2)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise
        _log_debug(f"Wrote store file {self.path}")

    def get_item(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        return value if isinstance(value, str) else None

    def set_item(self, key: str, value: str) -> None:
        with self._lock:
            items = self._read()
            items[key] = value
            self._write(items)

    def remove_item(self, key: str) -> None:
        with self._lock:
            items = self._read()
            if key in items:
                del items[key]
                self._write(items)


class BrowserLocalStorage:
    """window.localStorage of a Playwright page (sync API)."""

    def __init__(self, page):
        self.page = page

    def get_item(self, key: str) -> Optional[str]:
        return self.page.evaluate("key => window.localStorage.getItem(key)", key)

    def set_item(self, key: str, value: str) -> None:
        self.page.evaluate(
            "([key, value]) => window.localStorage.setItem(key, value)", [key, value]
        )

    def remove_item(self, key: str) -> None:
        self.page.evaluate("key => window.localStorage.removeItem(key)", key)
