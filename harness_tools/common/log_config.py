"""
================================================================================
Logging Configuration
================================================================================

Centralized Loguru setup for the test process and the runner script.

Features:
    - Level from LOG_LEVEL (DEBUG, INFO, WARNING, ERROR), default INFO
    - Timestamped console sink
    - Per-run file sink (test.log at the project root), embedded into the
      per-scenario index.html by the report processor

Author: Automation Team
License: MIT
================================================================================
"""

import os
import sys
from pathlib import Path
from typing import Optional, Union

from loguru import logger


PROJECT_ROOT = Path(__file__).resolve().parent.parent.parent
DEFAULT_LOG_FILE = PROJECT_ROOT / "test.log"

CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | <level>{level: <8}</level> | {message}"
)
FILE_FORMAT = "[{time:YYYY-MM-DDTHH:mm:ss.SSSZ}] [{level}] {message}"

_logger_initialized: bool = False


def init_logger(
    level: Optional[str] = None,
    log_file: Optional[Union[str, Path]] = DEFAULT_LOG_FILE,
    force: bool = False,
) -> None:
    """
    Initialize the global Loguru logger.

    Safe to call more than once; later calls are ignored unless force=True.

    Args:
        level: Log level. Defaults to the LOG_LEVEL env var, then INFO.
        log_file: File sink path (truncated on init). None disables it.
        force: Reconfigure even if already initialized.
    """
    global _logger_initialized

    if _logger_initialized and not force:
        return

    log_level = (level or os.getenv("LOG_LEVEL") or "INFO").upper()

    logger.remove()
    logger.add(
        sys.stderr,
        level=log_level,
        format=CONSOLE_FORMAT,
        colorize=True,
        backtrace=True,
        diagnose=False,
    )

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)
        logger.add(
            log_path,
            level=log_level,
            format=FILE_FORMAT,
            mode="w",
            encoding="utf-8",
        )

    _logger_initialized = True
    logger.debug(f"Logger initialized with level: {log_level}")


def get_logger():
    """
    Return the configured Loguru logger, initializing it on first use.
    """
    if not _logger_initialized:
        init_logger()
    return logger


__all__ = [
    "DEFAULT_LOG_FILE",
    "PROJECT_ROOT",
    "get_logger",
    "init_logger",
]
