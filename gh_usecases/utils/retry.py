"""Retry decorator for transient failures of read-only API calls.

Only idempotent queries are decorated. Mutations such as repository
creation are never retried here, so a flaky connection cannot create the
same repository twice.

Backoff Formula:
    delay = backoff_factor ** attempt_number
"""

import asyncio
import functools
from collections.abc import Callable
from typing import Any, TypeVar

import structlog

log = structlog.get_logger(__name__)

T = TypeVar("T")


def async_retry(
    max_attempts: int = 2,
    backoff_factor: float = 1.0,
    exceptions: tuple[type[Exception], ...] = (Exception,),
) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
    """Decorator for async functions with exponential backoff retry logic.

    Args:
        max_attempts: Maximum number of calls before giving up.
        backoff_factor: Base for the delay before the next attempt.
        exceptions: Only these exception types trigger a retry; anything
            else propagates immediately.

    Raises:
        The last caught exception once all attempts are exhausted.

    Example:
        >>> @async_retry(max_attempts=2, exceptions=(NetworkError,))
        ... async def list_teams(self, org: str) -> list[Team]:
        ...     ...
    """

    def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
        @functools.wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            for attempt in range(1, max_attempts + 1):
                try:
                    return await func(*args, **kwargs)
                except exceptions as e:
                    if attempt == max_attempts:
                        log.error(
                            "retry_exhausted",
                            function=func.__name__,
                            attempts=attempt,
                            error=str(e),
                        )
                        raise

                    delay = backoff_factor**attempt
                    log.warning(
                        "retry_attempt",
                        function=func.__name__,
                        attempt=attempt,
                        max_attempts=max_attempts,
                        delay=delay,
                        error=str(e),
                    )
                    await asyncio.sleep(delay)

            raise RuntimeError("Retry logic error")

        return wrapper

    return decorator
