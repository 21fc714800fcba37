"""
Rendering context logger.

Every message from the export pipeline (server, browser, rasterizer) carries the
[render] prefix. Rendering modules log through the helpers below.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from loguru import logger

from vitae.utils.logger import setup_logger as _setup_logger

load_dotenv()

CONTEXT_PREFIX = "[render]"


def setup_rendering_logger(log_dir: Path, strategy: str = "browser") -> Path:
    """
    Start a rendering session log.

    The provenance header records which export strategy ran and which Chromium
    binary was used, since PDF output differs between browser builds.

    Args:
        log_dir: Session directory (see vitae.utils.logger.session_log_dir)
        strategy: Export strategy name ("browser" or "raster")

    Returns:
        Path to log file
    """
    return _setup_logger(
        context_name="render",
        log_dir=log_dir,
        extra_provenance={
            "Strategy": strategy,
            "Chromium": os.getenv("VITAE_CHROME_PATH") or "playwright bundled",
        },
    )


# Wrapper functions with automatic [render] prefix


def _log_info(message: str) -> None:
    """Log info message with [render] prefix."""
    logger.info(f"{CONTEXT_PREFIX} {message}")


def _log_success(message: str) -> None:
    """Log success message with [render] prefix."""
    logger.success(f"{CONTEXT_PREFIX} {message}")


def _log_error(message: str) -> None:
    """Log error message with [render] prefix."""
    logger.error(f"{CONTEXT_PREFIX} {message}")


def _log_warning(message: str) -> None:
    """Log warning message with [render] prefix."""
    logger.warning(f"{CONTEXT_PREFIX} {message}")


def _log_debug(message: str) -> None:
    """Log debug message with [render] prefix."""
    logger.debug(f"{CONTEXT_PREFIX} {message}")


# High-level rendering-specific logging helpers


def log_state(previous, current) -> None:
    """Log a generator state transition."""
    _log_debug(f"State: {previous.value} -> {current.value}")


def log_export_result(output_path: Path, size_bytes: int, pages, elapsed_time: float) -> None:
    """Log a written PDF artifact."""
    _log_success(f"PDF saved as: {output_path} ({elapsed_time:.2f}s)")
    _log_debug(f"  Size: {size_bytes} bytes")
    if pages is not None:
        _log_debug(f"  Pages: {pages}")


def log_export_failure(stage: str, error: BaseException) -> None:
    """Log a failed export with the stage it failed in."""
    _log_error(f"PDF export failed during '{stage}': {type(error).__name__}: {error}")
