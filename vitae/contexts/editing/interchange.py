"""
Snapshot files.

Two on-disk forms are accepted when reading:
- flat: {"name": "<b>Ada</b>", ...}
- enveloped: {"timestamp": "...", "data": {...}, "version": "1.0"}
"""

import json
from pathlib import Path
from typing import Dict, Optional

from vitae.contexts.editing.exceptions import SnapshotFileError
from vitae.contexts.editing.logger import _log_debug
from vitae.utils.timestamp import now_exact

SNAPSHOT_FORMAT_VERSION = "1.0"
ENVELOPE_KEYS = {"timestamp", "data", "version"}


def is_envelope(payload: dict) -> bool:
    return ENVELOPE_KEYS.issubset(payload) and isinstance(payload.get("data"), dict)


def unwrap_snapshot(payload) -> Dict[str, str]:
    """Field mapping from either file form."""
    if not isinstance(payload, dict):
        raise SnapshotFileError(f"Snapshot must be a JSON object, got {type(payload).__name__}")
    data = payload["data"] if is_envelope(payload) else payload
    return {str(key): value for key, value in data.items() if isinstance(value, str)}


def read_snapshot_file(path: Path) -> Optional[Dict[str, str]]:
    """
    Read a snapshot file in flat or enveloped form.

    Returns:
        Field mapping, or None if the file does not exist

    Raises:
        SnapshotFileError: If the file exists but is not a usable snapshot
    """
    path = Path(path)
    if not path.exists():
        return None
    try:
        payload = json.loads(path.read_text(encoding="utf-8"))
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise SnapshotFileError("Invalid JSON", path=path, original_error=e) from e
    try:
        return unwrap_snapshot(payload)
    except SnapshotFileError as e:
        raise SnapshotFileError(e.message, path=path) from e


def write_snapshot_file(path: Path, data: Dict[str, str], envelope: bool = True) -> Path:
    """
    Write a snapshot file.

    Args:
        path: Destination file
        data: Field mapping
        envelope: Wrap in {timestamp, data, version} (False writes the flat mapping)

    Returns:
        The written path
    """
    path = Path(path)
    payload = (
        {"timestamp": now_exact(), "data": data, "version": SNAPSHOT_FORMAT_VERSION}
        if envelope
        else data
    )
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
    _log_debug(f"Snapshot file written: {path} ({len(data)} fields)")
    return path
