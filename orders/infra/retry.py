"""
Retry utilities with exponential backoff and jitter.
"""
import logging
import random
import time
from functools import wraps
from typing import Any, Callable, TypeVar

T = TypeVar('T')

logger = logging.getLogger(__name__)


def backoff_delays(
    max_retries: int,
    initial_delay: float,
    max_delay: float,
    exponential_base: float = 2.0,
    jitter: bool = True,
):
    """Yield the sleep before each retry (0 to 25% jitter, capped at max_delay)."""
    delay = initial_delay
    for _ in range(max_retries):
        actual_delay = delay + (delay * 0.25 * random.random() if jitter else 0)
        yield min(actual_delay, max_delay)
        delay *= exponential_base


def retry_with_backoff(
    max_retries: int | Callable[[], int] = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    exceptions: tuple = (Exception,),
):
    """
    Decorator for retrying functions with exponential backoff and jitter.

    Args:
        max_retries: Maximum number of retry attempts, or a callable returning
            it (read on every call so settings overrides apply)
        initial_delay: Initial delay in seconds
        max_delay: Maximum delay in seconds
        exponential_base: Base for exponential backoff
        jitter: Whether to add random jitter to delay
        exceptions: Tuple of exceptions to catch and retry
    """
    def decorator(func: Callable[..., T]) -> Callable[..., T]:
        @wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> T:
            retries = max_retries() if callable(max_retries) else max_retries
            delays = backoff_delays(retries, initial_delay, max_delay, exponential_base, jitter)

            for attempt in range(retries + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == retries:
                        raise
                    delay = next(delays)
                    logger.warning(
                        "retrying_after_error",
                        extra={
                            "operation": func.__qualname__,
                            "error": str(e),
                            "attempt": attempt + 1,
                        },
                    )
                    time.sleep(delay)

        return wrapper
    return decorator
