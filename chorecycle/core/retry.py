"""Bounded retry for store operations."""

import asyncio
import logging
from collections.abc import Callable, Coroutine
from functools import wraps
from typing import Any, TypeVar

from chorecycle.core.config import settings
from chorecycle.core.errors import classify_store_error, is_retryable


logger = logging.getLogger(__name__)

# Type variable for generic retry decorator
T = TypeVar("T")


def with_retry(
    max_attempts: int | None = None, base_delay: float | None = None
) -> Callable[[Callable[..., Coroutine[Any, Any, T]]], Callable[..., Coroutine[Any, Any, T]]]:
    """Decorator to retry async store operations with exponential backoff.

    Only transient failures and transaction conflicts are retried; anything
    else propagates on the first attempt. Defaults are read from settings at
    call time.

    Args:
        max_attempts: Maximum number of attempts (default: settings.spawn_max_attempts)
        base_delay: Base delay in seconds for exponential backoff (default: settings.spawn_retry_base_delay_seconds)

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., Coroutine[Any, Any, T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:  # noqa: ANN401
            attempts = max_attempts if max_attempts is not None else settings.spawn_max_attempts
            delay_base = base_delay if base_delay is not None else settings.spawn_retry_base_delay_seconds

            for attempt in range(1, attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable(e):
                        raise
                    if attempt >= attempts:
                        logger.error(
                            "%s failed after %d attempts: %s",
                            func.__name__,
                            attempts,
                            e,
                            extra={"category": classify_store_error(e).value},
                        )
                        raise
                    delay = delay_base * (2 ** (attempt - 1))
                    logger.warning(
                        "%s failed (attempt %d/%d): %s. Retrying in %.2fs",
                        func.__name__,
                        attempt,
                        attempts,
                        e,
                        delay,
                    )
                    await asyncio.sleep(delay)

            msg = f"{func.__name__} was configured with no attempts"
            raise RuntimeError(msg)

        return wrapper

    return decorator
