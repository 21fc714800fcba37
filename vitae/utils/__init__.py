"""
Shared utilities for VITAE.

Common functionality used across contexts:
- Logger setup
- Timestamps
- PDF inspection
"""

from vitae.utils.timestamp import now, now_exact, today

__all__ = ["now", "now_exact", "today"]
