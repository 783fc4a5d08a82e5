"""Exponential backoff for operations that may fail transiently.

Two callers rely on it:

- init_database() retries the first connection while the database
  container is still starting (OSError / DBAPIError)
- TreeEngine.write_value() re-runs a whole write transaction that lost a
  path-creation race (DuplicatePathError); the rerun is safe because
  writes reuse every node that already exists

Example:
    ```python
    @retry(max_attempts=3, initial_delay=0.05, exceptions=(DuplicatePathError,), reraise=True)
    async def attempt() -> int:
        async with session_factory() as session, session.begin():
            return await write(session)
    ```
"""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from functools import wraps
from typing import Any

logger = logging.getLogger(__name__)


class RetryError(Exception):
    """Raised once every attempt has failed with a retryable error.

    Attributes:
        last_exception: Error raised by the final attempt.
        attempts: How many attempts were made.
    """

    def __init__(self, last_exception: Exception, attempts: int) -> None:
        self.last_exception = last_exception
        self.attempts = attempts
        super().__init__(f"Gave up after {attempts} attempts. Last error: {last_exception}")


@dataclass(frozen=True, slots=True)
class RetryStrategy:
    """Backoff schedule and the exception types it applies to.

    The delay before retry ``n`` (0-indexed) is
    ``min(initial_delay * exponential_base ** n, max_delay)``, scaled by a
    random factor in [0.5, 1.5] when jitter is on so that concurrent
    writers that collided once do not collide again.
    """

    max_attempts: int = 3
    initial_delay: float = 1.0
    max_delay: float = 60.0
    exponential_base: float = 2.0
    jitter: bool = True
    exceptions: tuple[type[Exception], ...] = (Exception,)

    def should_retry(self, exception: Exception) -> bool:
        return isinstance(exception, self.exceptions)

    def calculate_delay(self, attempt: int) -> float:
        """Seconds to wait after the given failed attempt (0-indexed)."""
        delay = min(self.initial_delay * self.exponential_base**attempt, self.max_delay)
        if self.jitter:
            delay *= 0.5 + random.random()
        return delay


def retry[T](
    max_attempts: int = 3,
    initial_delay: float = 1.0,
    max_delay: float = 60.0,
    exponential_base: float = 2.0,
    jitter: bool = True,
    exceptions: tuple[type[Exception], ...] = (Exception,),
    on_retry: Callable[[Exception, int], None] | None = None,
    reraise: bool = False,
) -> Callable[[Callable[..., Awaitable[T]]], Callable[..., Awaitable[T]]]:
    """Retry an async callable according to a RetryStrategy.

    Args:
        max_attempts: Total attempts, the first call included.
        initial_delay: Delay (seconds) after the first failure.
        max_delay: Upper bound on any single delay.
        exponential_base: Growth factor between consecutive delays.
        jitter: Randomize each delay between 50% and 150%.
        exceptions: Exception types that trigger a retry; anything else
            propagates immediately.
        on_retry: Called with (exception, attempt number) before each wait.
        reraise: Once attempts run out, raise the last exception itself
            instead of wrapping it in RetryError.
    """
    strategy = RetryStrategy(
        max_attempts=max_attempts,
        initial_delay=initial_delay,
        max_delay=max_delay,
        exponential_base=exponential_base,
        jitter=jitter,
        exceptions=exceptions,
    )

    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:
            attempt = 0
            while True:
                try:
                    return await func(*args, **kwargs)
                except Exception as e:
                    if not strategy.should_retry(e):
                        raise
                    attempt += 1
                    if attempt >= strategy.max_attempts:
                        logger.error(
                            "Retries exhausted",
                            extra={"function": func.__qualname__, "attempts": attempt, "error": str(e)},
                        )
                        if reraise:
                            raise
                        raise RetryError(e, attempt) from e

                    delay = strategy.calculate_delay(attempt - 1)
                    logger.warning(
                        "Retrying after transient failure",
                        extra={
                            "function": func.__qualname__,
                            "attempt": attempt,
                            "max_attempts": strategy.max_attempts,
                            "delay": round(delay, 3),
                            "error": str(e),
                        },
                    )
                    if on_retry is not None:
                        on_retry(e, attempt)
                    await asyncio.sleep(delay)

        return wrapper

    return decorator


__all__ = [
    "RetryError",
    "RetryStrategy",
    "retry",
]
