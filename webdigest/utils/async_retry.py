"""
Async retry with exponential backoff and optional full jitter.

Retry is opt-in: the default :class:`BackoffPolicy` makes a single attempt,
so a provider failure surfaces immediately. Callers that want resilience
against rate limits pass a policy with more attempts::

    from webdigest.utils.async_retry import BackoffPolicy

    policy = BackoffPolicy(max_attempts=4, base_delay=0.5, jitter=True)
    text = await policy.run(provider.complete, request, prompt)
"""

from __future__ import annotations

import asyncio
import logging
import random
from dataclasses import dataclass
from typing import (
    Any,
    Awaitable,
    Callable,
    Iterator,
    Optional,
    Tuple,
    Type,
    TypeVar,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

SleepFn = Callable[[float], Awaitable[Any]]

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------
_DEFAULT_RETRYABLE: Tuple[Type[BaseException], ...] = (Exception,)


# ---------------------------------------------------------------------------
# Backoff policy
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class BackoffPolicy:
    """
    Retry schedule for a single async call.

    Attributes:
        max_attempts: Total number of attempts (including the first).
        base_delay: Delay in seconds before the first retry.
        max_delay: Upper cap on any single delay.
        backoff_factor: Multiplier applied to the delay after each failure.
        jitter: If True, each delay is drawn from ``[0, capped delay]``.
        retryable_exceptions: Only these exception types are retried.
    """

    max_attempts: int = 1
    base_delay: float = 1.0
    max_delay: float = 60.0
    backoff_factor: float = 2.0
    jitter: bool = False
    retryable_exceptions: Tuple[Type[BaseException], ...] = _DEFAULT_RETRYABLE

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        if self.base_delay < 0 or self.max_delay < 0:
            raise ValueError("delays must be non-negative")

    def delays(self, rng: Optional[random.Random] = None) -> Iterator[float]:
        """Yield the wait before each retry (``max_attempts - 1`` values)."""
        delay = self.base_delay
        for _ in range(self.max_attempts - 1):
            capped = min(self.max_delay, delay)
            yield (rng or random).uniform(0.0, capped) if self.jitter else capped
            delay *= self.backoff_factor

    async def run(
        self,
        func: Callable[..., Awaitable[T]],
        *args: Any,
        sleep: SleepFn = asyncio.sleep,
        on_retry: Optional[Callable[[int, BaseException], None]] = None,
        **kwargs: Any,
    ) -> T:
        """
        Await ``func(*args, **kwargs)``, retrying per this policy.

        Args:
            func: Async callable to invoke.
            sleep: Awaitable sleep used between attempts.
            on_retry: Optional callback(attempt_number, exception) called
                before each retry.

        Returns:
            The first successful result.

        Raises:
            The last exception once attempts are exhausted, or immediately
            for non-retryable exceptions.
        """
        func_name = getattr(func, "__qualname__", repr(func))
        schedule = self.delays()
        attempt = 1

        while True:
            try:
                return await func(*args, **kwargs)
            except self.retryable_exceptions as exc:
                wait = next(schedule, None)
                if wait is None:
                    if self.max_attempts > 1:
                        logger.error(
                            "%s: all %d attempts failed. Last error: %s",
                            func_name,
                            self.max_attempts,
                            exc,
                        )
                    raise

                logger.warning(
                    "%s: attempt %d/%d failed (%s: %s), retrying in %.2fs",
                    func_name,
                    attempt,
                    self.max_attempts,
                    type(exc).__name__,
                    exc,
                    wait,
                )
                if on_retry is not None:
                    on_retry(attempt, exc)

                await sleep(wait)
                attempt += 1


NO_RETRY = BackoffPolicy()
