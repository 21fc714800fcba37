"""Custom exceptions for the editing context."""

from pathlib import Path
from typing import Optional


class SnapshotFileError(ValueError):
    """
    Exception raised when a snapshot file exists but cannot be used.

    Attributes:
        message: Error description
        path: The offending file
        original_error: The underlying decode error, if any
    """

    def __init__(
        self,
        message: str,
        path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.path = path
        self.original_error = original_error

        parts = [message]
        if path:
            parts.append(f"File: {path}")
        if original_error:
            parts.append(f"Original error: {original_error}")

        super().__init__("\n".join(parts))


class ExporterNotRegisteredError(RuntimeError):
    """Raised when the control panel is asked to export before an exporter was registered."""

    pass
