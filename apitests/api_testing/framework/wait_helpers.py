# ================================================================================
# Wait Helpers Module
# ================================================================================
#
# Retry and strict waiting utilities for step definitions.
#
# Key Features:
#   - Retry with exponential backoff (caller-driven, nothing retries implicitly)
#   - Optional jitter to prevent thundering herd
#   - Strict condition waits that raise on timeout
#
# Usage:
#   token = retry_with_backoff(auth.get_bearer_token, max_attempts=3)
#   wait_until(lambda: world.get_test_data("jwtToken"), timeout=5)
#
# ================================================================================

import random
import time
from dataclasses import dataclass
from typing import Callable, Tuple, Type, TypeVar

import allure
from loguru import logger

from harness_tools.common.polling import poll_until


T = TypeVar('T')


@dataclass
class WaitConfig:
    """
    Configuration for backoff operations.

    Attributes:
        initial_interval: Initial wait interval in seconds
        multiplier: Multiplier for exponential backoff
        max_interval: Maximum interval between attempts
        jitter: Add random jitter to prevent thundering herd
    """
    initial_interval: float = 1.0
    multiplier: float = 2.0
    max_interval: float = 30.0
    jitter: bool = False


class WaitTimeoutError(Exception):
    """Raised when a strict wait operation times out."""
    pass


def calculate_next_interval(
    current_interval: float,
    config: WaitConfig
) -> float:
    """
    Calculate the next wait interval with exponential backoff and jitter.

    Args:
        current_interval: Current interval in seconds
        config: Wait configuration

    Returns:
        Next interval in seconds
    """
    next_interval = min(
        current_interval * config.multiplier,
        config.max_interval
    )

    if config.jitter:
        # Add +/- 25% jitter
        jitter_factor = 0.75 + (random.random() * 0.5)
        next_interval = next_interval * jitter_factor

    return next_interval


@allure.step("Retrying with backoff: {description}")
def retry_with_backoff(
    fn: Callable[[], T],
    max_attempts: int = 3,
    delay: float = 1.0,
    retry_on: Tuple[Type[BaseException], ...] = (Exception,),
    description: str = "operation",
    config: WaitConfig = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """
    Call fn until it succeeds, waiting delay * 2^(attempt-1) between attempts.

    Args:
        fn: Zero-argument callable
        max_attempts: Total attempts (including the first)
        delay: Wait before the second attempt, in seconds
        retry_on: Exception types that trigger another attempt
        description: Human-readable description for logging
        config: Optional custom WaitConfig (overrides delay)
        sleep: Sleep function (injectable for tests)

    Returns:
        fn's return value

    Raises:
        ValueError: max_attempts is less than 1
        The last exception once all attempts are exhausted
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    if config is None:
        config = WaitConfig(initial_interval=delay, max_interval=float("inf"))
    interval = config.initial_interval

    attempt = 1
    while True:
        try:
            return fn()
        except retry_on as e:
            if attempt >= max_attempts:
                logger.error(f"{description} failed after {attempt} attempts: {e}")
                raise
            logger.warning(
                f"{description} failed (attempt {attempt}/{max_attempts}): {e}. "
                f"Retrying in {interval:.1f}s..."
            )
            sleep(interval)
            interval = calculate_next_interval(interval, config)
            attempt += 1


def wait_until(
    condition: Callable[[], bool],
    timeout: float = 5.0,
    interval: float = 0.1,
    description: str = "condition",
) -> None:
    """
    Wait for a condition, failing loudly on timeout.

    Raises:
        WaitTimeoutError: The condition did not hold within the timeout
    """
    result = poll_until(condition, timeout=timeout, interval=interval)
    if not result.success:
        raise WaitTimeoutError(
            f"{description} not met within {timeout}s ({result.attempts} attempts)"
        )
    logger.debug(f"{description} met after {result.attempts} attempts")


__all__ = [
    "WaitConfig",
    "WaitTimeoutError",
    "calculate_next_interval",
    "retry_with_backoff",
    "wait_until",
]
