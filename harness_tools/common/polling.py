"""
================================================================================
Bounded Polling
================================================================================

Soft waits for conditions owned by another process (e.g. a report file still
being flushed by the test runner). A timeout is reported, never raised; the
caller decides whether it is fatal.

================================================================================
"""

import time
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Union

from loguru import logger


@dataclass
class WaitResult:
    """
    Outcome of a bounded poll.

    Attributes:
        success: Whether the condition was met before the timeout
        elapsed: Seconds spent polling
        attempts: Number of condition checks performed
    """
    success: bool
    elapsed: float
    attempts: int

    def __bool__(self) -> bool:
        return self.success


def poll_until(
    condition: Callable[[], bool],
    timeout: float = 15.0,
    interval: float = 0.3,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> WaitResult:
    """
    Poll a condition until it holds or the timeout elapses.

    Exceptions raised by the condition count as "not yet".
    """
    start = clock()
    attempts = 0

    while True:
        attempts += 1
        try:
            if condition():
                return WaitResult(True, clock() - start, attempts)
        except Exception as e:
            logger.debug(f"Poll attempt {attempts} raised: {e}")

        elapsed = clock() - start
        if elapsed >= timeout:
            return WaitResult(False, elapsed, attempts)
        sleep(interval)


def wait_for_file(
    path: Union[str, Path],
    timeout: float = 15.0,
    interval: float = 0.3,
    min_size: int = 20,
    clock: Callable[[], float] = time.monotonic,
    sleep: Callable[[float], None] = time.sleep,
) -> WaitResult:
    """
    Wait until a file exists and is at least min_size bytes.
    """
    path = Path(path)

    def _ready() -> bool:
        return path.exists() and path.stat().st_size >= min_size

    result = poll_until(_ready, timeout=timeout, interval=interval, clock=clock, sleep=sleep)
    if result.success:
        logger.debug(f"File ready after {result.elapsed:.1f}s: {path}")
    else:
        logger.warning(f"Timed out after {result.elapsed:.1f}s waiting for file: {path}")
    return result


__all__ = [
    "WaitResult",
    "poll_until",
    "wait_for_file",
]
