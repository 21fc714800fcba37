"""
PDF inspection helpers for exported artifacts.

Helper functions:
    page_count: Quick page count without full extraction.
    is_pdf_bytes: Cheap header check on an in-memory PDF.
"""

from io import BytesIO
from pathlib import Path
from typing import Optional, Union

from PyPDF2 import PdfReader

PDF_MAGIC = b"%PDF-"


def page_count(pdf: Union[Path, bytes]) -> Optional[int]:
    """Get page count from a PDF path or PDF bytes, or None if unreadable."""
    try:
        source = BytesIO(pdf) if isinstance(pdf, bytes) else str(pdf)
        reader = PdfReader(source)
        return len(reader.pages)
    except Exception:
        return None


def is_pdf_bytes(data: Optional[bytes]) -> bool:
    """True when data is non-empty and starts with the PDF header."""
    return bool(data) and data.startswith(PDF_MAGIC)
