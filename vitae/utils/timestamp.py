"""Timestamp formatting utilities."""

from datetime import datetime


def now() -> str:
    """Filesystem-safe timestamp for session directories (YYYYMMDD_HHMMSS)."""
    return datetime.now().strftime("%Y%m%d_%H%M%S")


def now_exact() -> str:
    """ISO 8601 timestamp with microseconds, used in exported snapshot envelopes."""
    return datetime.now().isoformat()


def today() -> str:
    """Current date as YYYY-MM-DD."""
    return datetime.now().strftime("%Y-%m-%d")
