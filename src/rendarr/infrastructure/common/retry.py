"""Declarative retry policy for browser navigation.

One ``RetryPolicy`` value describes max attempts, delay and which errors
are retryable; ``run()`` applies it to any coroutine factory.  Used by
the page fetcher and the stream resolver.
"""

from __future__ import annotations

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TypeVar

import structlog

from rendarr.domain.exceptions import NavigationError

log = structlog.get_logger(__name__)

T = TypeVar("T")


def _is_navigation_error(exc: BaseException) -> bool:
    return isinstance(exc, NavigationError)


@dataclass(frozen=True)
class RetryPolicy:
    """Retry with a fixed delay (optionally growing by *backoff_factor*).

    Attributes:
        max_attempts: Total attempts including the first one.
        delay_seconds: Sleep between attempts.
        backoff_factor: Multiplier applied to the delay after each retry
            (1.0 = fixed delay).
        retry_on: Predicate deciding whether an exception is retryable.
            Non-retryable exceptions propagate immediately.
    """

    max_attempts: int = 3
    delay_seconds: float = 2.0
    backoff_factor: float = 1.0
    retry_on: Callable[[BaseException], bool] = field(default=_is_navigation_error)

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")

    def delay_for(self, attempt: int) -> float:
        """Delay before retry number *attempt* (0-based)."""
        return self.delay_seconds * (self.backoff_factor**attempt)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        *,
        context: str = "operation",
    ) -> T:
        """Await ``operation()`` until it succeeds or attempts run out.

        The last exception propagates once attempts are exhausted.
        """
        for attempt in range(self.max_attempts):
            try:
                return await operation()
            except Exception as exc:
                if not self.retry_on(exc) or attempt == self.max_attempts - 1:
                    raise
                delay = self.delay_for(attempt)
                log.info(
                    "retry_scheduled",
                    context=context,
                    attempt=attempt + 1,
                    max_attempts=self.max_attempts,
                    delay=round(delay, 2),
                    error=str(exc),
                )
                await asyncio.sleep(delay)
        raise AssertionError("unreachable")  # pragma: no cover
