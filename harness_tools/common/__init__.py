"""
================================================================================
Harness Tools Common Utilities
================================================================================

Shared logging setup and bounded polling for the test process and the
runner script.

Usage:
    from harness_tools.common import init_logger, wait_for_file

    init_logger()
    ready = wait_for_file("reports/current/report.json", timeout=20)

================================================================================
"""

from .log_config import DEFAULT_LOG_FILE, PROJECT_ROOT, get_logger, init_logger
from .polling import WaitResult, poll_until, wait_for_file

__all__ = [
    "DEFAULT_LOG_FILE",
    "PROJECT_ROOT",
    "WaitResult",
    "get_logger",
    "init_logger",
    "poll_until",
    "wait_for_file",
]
