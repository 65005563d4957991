"""
Retry decorator with backoff for connection attempts

Provides retry logic for transient failures with:
- Exponential or fixed backoff (exponential_base=1.0 gives a fixed delay)
- Optional jitter to prevent thundering herd
- Retryable exception filtering
- Callback support for metrics integration

Usage:
    from utils.retry import retry_with_backoff

    @retry_with_backoff(max_retries=2, base_delay=10.0, exponential_base=1.0)
    def open_connection():
        return dialect.connect()
"""

import logging
import random
import time
from functools import wraps
from typing import Any, Callable, Optional, Tuple, Type

logger = logging.getLogger(__name__)


def compute_delay(
    attempt: int,
    base_delay: float,
    max_delay: float,
    exponential_base: float,
    jitter: bool,
) -> float:
    """
    Compute the wait before the next attempt

    Args:
        attempt: Zero-based index of the attempt that just failed
        base_delay: Initial delay in seconds
        max_delay: Upper bound for the delay in seconds
        exponential_base: Growth factor per attempt
        jitter: Add up to +/-25% random jitter

    Returns:
        Delay in seconds, never negative
    """
    delay = min(base_delay * (exponential_base ** attempt), max_delay)

    if jitter and delay > 0:
        jitter_amount = delay * 0.25
        delay = max(0.1, delay + random.uniform(-jitter_amount, jitter_amount))

    return max(0.0, delay)


def retry_with_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    retryable_exceptions: Optional[Tuple[Type[BaseException], ...]] = None,
    on_retry: Optional[Callable[[int, Exception, float], None]] = None,
):
    """
    Decorator that retries a function with backoff

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Initial delay in seconds (default: 1.0)
        max_delay: Maximum delay in seconds (default: 60.0)
        exponential_base: Base for exponential backoff (default: 2.0)
        jitter: Add random jitter to prevent thundering herd (default: True)
        retryable_exceptions: Tuple of exception types to retry (default: all exceptions)
        on_retry: Callback function(attempt, exception, delay) called on each retry

    Returns:
        Decorated function with retry logic
    """
    def decorator(func: Callable) -> Callable:
        func_name = getattr(func, "__name__", "function")

        @wraps(func)
        def wrapper(*args, **kwargs) -> Any:
            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)

                except Exception as e:
                    if retryable_exceptions and not isinstance(e, retryable_exceptions):
                        logger.error(
                            f"Non-retryable exception in {func_name}: {type(e).__name__}: {e}"
                        )
                        raise

                    if attempt == max_retries:
                        logger.error(
                            f"Giving up on {func_name} after {attempt + 1} attempt(s): "
                            f"{type(e).__name__}: {e}"
                        )
                        raise

                    delay = compute_delay(
                        attempt, base_delay, max_delay, exponential_base, jitter
                    )

                    logger.warning(
                        f"Attempt {attempt + 1}/{max_retries + 1} failed for {func_name}: "
                        f"{type(e).__name__}: {e}. Retrying in {delay:.2f}s..."
                    )

                    if on_retry:
                        try:
                            on_retry(attempt + 1, e, delay)
                        except Exception as callback_error:
                            logger.error(f"Error in retry callback: {callback_error}")

                    if delay > 0:
                        time.sleep(delay)

            raise RuntimeError(f"Unexpected error in retry logic for {func_name}")

        return wrapper
    return decorator
