"""Retry with exponential backoff for page requests."""

import asyncio
import random
from typing import Any, Awaitable, Callable, TypeVar

import structlog

logger = structlog.get_logger()

T = TypeVar("T")


def backoff_delay(
    attempt: int,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
) -> float:
    """Delay before retry number attempt + 1 (attempt is zero-based)."""
    delay = min(base_delay * (exponential_base**attempt), max_delay)
    if jitter:
        delay *= 0.5 + random.random()
    return delay


async def retry_async(
    func: Callable[..., Awaitable[T]],
    *args: Any,
    max_attempts: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 60.0,
    jitter: bool = True,
    retryable_exceptions: tuple[type[BaseException], ...] = (Exception,),
    label: str | None = None,
    **kwargs: Any,
) -> T:
    """Execute an async function with retry logic.

    Args:
        func: Async function to execute
        *args: Positional arguments for func
        max_attempts: Total attempts, including the first
        base_delay: Initial delay between retries in seconds
        max_delay: Maximum delay between retries in seconds
        jitter: Add randomness to delay
        retryable_exceptions: Exception types to retry on
        label: Name used in log events (defaults to func.__name__)
        **kwargs: Keyword arguments for func

    Returns:
        Result of successful function call

    Raises:
        Last exception if all attempts fail
    """
    label = label or getattr(func, "__name__", "call")
    attempts = max(1, max_attempts)
    last_exception: BaseException | None = None

    for attempt in range(attempts):
        try:
            return await func(*args, **kwargs)
        except retryable_exceptions as e:
            last_exception = e
            if attempt < attempts - 1:
                delay = backoff_delay(attempt, base_delay, max_delay, jitter=jitter)
                logger.warning(
                    "retry_attempt",
                    target=label,
                    attempt=attempt + 1,
                    max_attempts=attempts,
                    delay=round(delay, 2),
                    error=str(e) or type(e).__name__,
                )
                await asyncio.sleep(delay)

    logger.error(
        "retry_exhausted",
        target=label,
        max_attempts=attempts,
        error=str(last_exception) or type(last_exception).__name__,
    )
    raise last_exception  # type: ignore
