"""
Logger setup shared by the editing and rendering contexts.

Each CLI run gets its own session directory (outs/logs/<context>_<timestamp>/)
holding one log file that starts with a provenance header. Context-specific
prefixed helpers live in contexts/{context}/logger.py.
"""

import os
import platform
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from loguru import logger

from vitae import __version__
from vitae.utils.timestamp import now

load_dotenv()

LOGS_PATH = Path(os.getenv("VITAE_LOGS_PATH", "outs/logs"))
CONSOLE_LEVEL = os.getenv("VITAE_LOG_LEVEL", "INFO")

FILE_FORMAT = "{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <7} | {thread.name} | {message}"
CONSOLE_FORMAT = "{time:HH:mm:ss} | <level>{level: <7}</level> | <level>{message}</level>"

# Console colors per level; levels not listed keep loguru's defaults
LEVEL_COLORS = {
    "DEBUG": "<dim>",
    "WARNING": "<yellow>",
    "ERROR": "<red>",
    "CRITICAL": "<bold><red>",
}


def session_log_dir(context_name: str, base: Optional[Path] = None) -> Path:
    """Fresh session directory name, e.g. outs/logs/render_20251114_123456."""
    return Path(base or LOGS_PATH) / f"{context_name}_{now()}"


def setup_logger(
    context_name: str,
    log_dir: Path,
    extra_provenance: Optional[dict] = None,
    level_colors: Optional[dict] = None,
    console_level: str = CONSOLE_LEVEL,
) -> Path:
    """
    Route loguru output to a session log file and the console.

    The file sink keeps DEBUG and above (state transitions, HTTP requests,
    snapshot writes); the console shows console_level and above.

    Args:
        context_name: Context identifier ("edit" or "render"), used as log file name
        log_dir: Session directory, created if missing
        extra_provenance: Additional key-value pairs for the provenance header
        level_colors: Overrides for LEVEL_COLORS
        console_level: Minimum console level (VITAE_LOG_LEVEL, default INFO)

    Returns:
        Path to the log file

    Example:
        from vitae.utils.logger import session_log_dir, setup_logger

        log_file = setup_logger("render", session_log_dir("render"), {"Port": 3000})
    """
    log_dir = Path(log_dir)
    log_dir.mkdir(exist_ok=True, parents=True)
    log_file = log_dir / f"{context_name}.log"

    logger.remove()

    for level_name, color in {**LEVEL_COLORS, **(level_colors or {})}.items():
        logger.level(level_name, color=color)

    # enqueue: timers and the server thread log concurrently with the main thread
    logger.add(log_file, format=FILE_FORMAT, level="DEBUG", enqueue=True, encoding="utf-8")
    logger.add(sys.stdout, format=CONSOLE_FORMAT, level=console_level, colorize=True)

    log_provenance(context_name, extra_provenance)
    return log_file


def log_provenance(context_name: str, extra_context: Optional[dict] = None) -> None:
    """Write the session header: what ran, where, and with which versions."""
    logger.info("=" * 80)
    logger.info(f"vitae {__version__} [{context_name}]")
    logger.info(f"Command: {' '.join(sys.argv)}")
    logger.info(f"Working directory: {Path.cwd()}")
    logger.info(f"Python: {platform.python_version()} on {platform.system()}")

    for key, value in (extra_context or {}).items():
        logger.info(f"{key}: {value}")

    logger.info("=" * 80)
