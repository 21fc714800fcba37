"""
Editing context logger.

Provides logging interface for editing context with automatic [edit] prefix.
All editing modules should import from this module, not from utils.logger directly.
"""

from pathlib import Path

from loguru import logger

from vitae.utils.logger import setup_logger as _setup_logger

CONTEXT_PREFIX = "[edit]"


def setup_editing_logger(log_dir: Path, storage: str = "memory") -> Path:
    """
    Setup logger for editing context.

    Args:
        log_dir: Directory for this editing session
        storage: Name of the backing store, recorded in the provenance header

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="edit",
        log_dir=log_dir,
        extra_provenance={"Storage": storage},
    )


# Wrapper functions with automatic [edit] prefix


def _log_info(message: str) -> None:
    """Log info message with [edit] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [edit] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [edit] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [edit] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [edit] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level editing-specific logging helpers


def log_snapshot_saved(storage_key: str, field_count: int) -> None:
    """Log a completed snapshot write."""
    _log_debug(f"Snapshot '{storage_key}' saved ({field_count} fields)")


def log_snapshot_loaded(storage_key: str, restored: int, skipped: int) -> None:
    """Log a snapshot restore, including keys with no matching field."""
    _log_info(f"Snapshot '{storage_key}' restored {restored} fields")
    if skipped:
        _log_debug(f"  {skipped} stored keys have no matching field (ignored)")
