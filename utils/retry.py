"""Retry utilities for handling transient failures."""
import asyncio
import functools
import random
from typing import Any, Callable, Optional, Tuple, Type

from logging_config import get_logger
from constants import MAX_RETRY_ATTEMPTS, RETRY_BACKOFF_FACTOR, RETRY_INITIAL_DELAY

logger = get_logger(__name__)


def exponential_backoff(
    attempt: int,
    base_delay: float = RETRY_INITIAL_DELAY,
    backoff_factor: float = RETRY_BACKOFF_FACTOR,
    max_delay: float = 30.0,
    jitter: bool = True
) -> float:
    """
    Calculate exponential backoff delay.

    Args:
        attempt: Current attempt number (0-indexed)
        base_delay: Initial delay in seconds
        backoff_factor: Multiplier for each retry
        max_delay: Maximum delay in seconds
        jitter: Add random jitter to prevent thundering herd

    Returns:
        Delay in seconds
    """
    delay = min(base_delay * (backoff_factor ** attempt), max_delay)

    if jitter:
        # ±25%
        jitter_amount = delay * 0.25
        delay = delay + random.uniform(-jitter_amount, jitter_amount)

    return max(0, delay)


def retry_async_with_backoff(
    max_attempts: int = MAX_RETRY_ATTEMPTS,
    base_delay: float = RETRY_INITIAL_DELAY,
    backoff_factor: float = RETRY_BACKOFF_FACTOR,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable[[Exception, int], None]] = None
):
    """
    Decorator to retry an async function with exponential backoff.

    Only wrap idempotent calls: a retried mutation may be applied twice.

    Args:
        max_attempts: Maximum number of attempts
        base_delay: Initial delay between retries
        backoff_factor: Multiplier for delay on each retry
        exceptions: Tuple of exception types to catch and retry
        on_retry: Optional callback function called on each retry

    Returns:
        Decorated async function

    Example:
        @retry_async_with_backoff(max_attempts=3, exceptions=(TransientError,))
        async def fetch_booking():
            return await client.get_booking(42)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def wrapper(*args, **kwargs) -> Any:
            for attempt in range(max_attempts):
                try:
                    return await func(*args, **kwargs)

                except exceptions as e:
                    if attempt == max_attempts - 1:
                        logger.error(f"Async function {func.__name__} failed after {max_attempts} attempts", error=str(e))
                        raise

                    delay = exponential_backoff(attempt, base_delay=base_delay, backoff_factor=backoff_factor)
                    logger.warning(f"Async function {func.__name__} failed, retrying", attempt=attempt + 1, max_attempts=max_attempts, delay_seconds=round(delay, 2), error=str(e))

                    if on_retry:
                        try:
                            on_retry(e, attempt)
                        except Exception as callback_error:
                            logger.error("Retry callback failed", error=str(callback_error))

                    await asyncio.sleep(delay)

        return wrapper
    return decorator
