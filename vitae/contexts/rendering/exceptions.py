"""Custom exceptions for the rendering context."""

from pathlib import Path
from typing import Optional


class ExportError(Exception):
    """
    Base exception for failed PDF exports.

    Attributes:
        message: Error description
        output_path: Intended artifact path, if known
        original_error: The underlying error, if any
    """

    def __init__(
        self,
        message: str,
        output_path: Optional[Path] = None,
        original_error: Optional[Exception] = None,
    ):
        self.message = message
        self.output_path = output_path
        self.original_error = original_error

        parts = [message]
        if output_path:
            parts.append(f"Output: {output_path}")
        if original_error:
            parts.append(f"Original error: {original_error}")

        super().__init__("\n".join(parts))


class ServerStartError(ExportError):
    """Raised when the local page server cannot bind its port."""

    pass


class PDFGenerationError(ExportError):
    """Raised when the browser produced no usable PDF."""

    pass
