"""
Retry helpers
"""
import functools
import time
import logging
from typing import Callable, Type, Tuple, Optional
import asyncio

logger = logging.getLogger(__name__)


def _next_delay(delay: float, current_delay: float, attempt: int, backoff: float, linear: bool) -> float:
    if linear:
        return delay * (attempt + 1)
    return current_delay * backoff


def retry(
    max_attempts: int = 3,
    delay: float = 1.0,
    backoff: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = None,
    should_retry: Optional[Callable[[Exception], bool]] = None,
    linear: bool = False
):
    """
    Retry a function when it raises.

    Args:
        max_attempts: total number of attempts
        delay: wait before the second attempt (seconds)
        backoff: multiplier applied to the wait after each failure
        exceptions: exception types that trigger a retry
        on_retry: callback invoked as on_retry(attempt, error) before sleeping
        should_retry: predicate; returning False re-raises immediately
        linear: wait delay * attempt instead of multiplying by backoff

    Example:
        @retry(max_attempts=3, delay=1.0, linear=True)
        async def fetch_rates():
            return await load()
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        async def async_wrapper(*args, **kwargs):
            current_delay = delay

            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if should_retry is not None and not should_retry(e):
                        logger.warning(f"Function {func.__name__} failed with a non-retryable error: {e}")
                        raise

                    if attempt == max_attempts:
                        logger.error(
                            f"Function {func.__name__} failed after {max_attempts} attempts. "
                            f"Last error: {e}"
                        )
                        raise

                    logger.warning(
                        f"Function {func.__name__} failed (attempt {attempt}/{max_attempts}). "
                        f"Retrying in {current_delay}s. Error: {e}"
                    )

                    if on_retry:
                        on_retry(attempt, e)

                    await asyncio.sleep(current_delay)
                    current_delay = _next_delay(delay, current_delay, attempt, backoff, linear)

        @functools.wraps(func)
        def sync_wrapper(*args, **kwargs):
            current_delay = delay

            for attempt in range(1, max_attempts + 1):
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if should_retry is not None and not should_retry(e):
                        logger.warning(f"Function {func.__name__} failed with a non-retryable error: {e}")
                        raise

                    if attempt == max_attempts:
                        logger.error(
                            f"Function {func.__name__} failed after {max_attempts} attempts. "
                            f"Last error: {e}"
                        )
                        raise

                    logger.warning(
                        f"Function {func.__name__} failed (attempt {attempt}/{max_attempts}). "
                        f"Retrying in {current_delay}s. Error: {e}"
                    )

                    if on_retry:
                        on_retry(attempt, e)

                    time.sleep(current_delay)
                    current_delay = _next_delay(delay, current_delay, attempt, backoff, linear)

        if asyncio.iscoroutinefunction(func):
            return async_wrapper
        return sync_wrapper

    return decorator
