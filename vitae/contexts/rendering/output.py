"""Artifact naming and sanity checks for exported PDFs."""

from pathlib import Path
from typing import Optional

from vitae.contexts.rendering.exceptions import PDFGenerationError
from vitae.utils.pdf_processing import is_pdf_bytes
from vitae.utils.timestamp import today

ARTIFACT_PREFIX = "cv"


def default_pdf_name(date: Optional[str] = None) -> str:
    """Date-stamped artifact name, e.g. cv-2025-11-14.pdf."""
    return f"{ARTIFACT_PREFIX}-{date or today()}.pdf"


def resolve_output_path(output_path: Optional[Path] = None, output_dir: Optional[Path] = None) -> Path:
    """
    Explicit path if given, otherwise the date-stamped name inside output_dir (or cwd).
    """
    if output_path is not None:
        return Path(output_path)
    return Path(output_dir or Path.cwd()) / default_pdf_name()


def write_pdf(pdf_bytes: bytes, output_path: Path) -> Path:
    """
    Write PDF bytes after checking they look like a PDF.

    Raises:
        PDFGenerationError: If the bytes are empty or lack the PDF header
    """
    if not is_pdf_bytes(pdf_bytes):
        raise PDFGenerationError("Browser returned empty or non-PDF output", output_path=output_path)
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_bytes(pdf_bytes)
    return output_path
