"""Retry policy for fallible asynchronous operations."""

from __future__ import annotations

import asyncio
import logging
import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field

from taming_core.ports.generation import TRANSIENT_STATUS_CODES, GenerationError
from taming_core.ports.random_source import RandomSourceProtocol
from taming_schemas.config import RetryConfig

_log = logging.getLogger(__name__)

_TRANSIENT_MARKERS = ("503", "429", "overloaded")

type RetryPredicate = Callable[[BaseException], bool]
type BackoffFunction = Callable[[int, RandomSourceProtocol], float]
type SleepFunction = Callable[[float], Awaitable[object]]
type RetryObserver = Callable[[int, float, BaseException], Awaitable[None] | None]


def is_transient_failure(exc: BaseException) -> bool:
    """Classify a failure as transient overload or rate limiting.

    Args:
        exc: Raised exception.

    Returns:
        bool: True when the failure should be retried.
    """
    if isinstance(exc, GenerationError):
        return exc.is_transient
    status = getattr(exc, "status_code", None) or getattr(exc, "status", None)
    if isinstance(status, int) and status in TRANSIENT_STATUS_CODES:
        return True
    message = str(exc).lower()
    return any(marker in message for marker in _TRANSIENT_MARKERS)


def exponential_backoff(
    base_delay_s: float, max_jitter_s: float
) -> BackoffFunction:
    """Build a backoff function computing ``base * 2**attempt + jitter``.

    Args:
        base_delay_s: Delay for the first retry before jitter.
        max_jitter_s: Upper bound of the uniform jitter.

    Returns:
        BackoffFunction: Delay in seconds for a zero-based attempt number.
    """

    def _delay(attempt: int, random_source: RandomSourceProtocol) -> float:
        jitter = random_source.uniform(0.0, max_jitter_s) if max_jitter_s else 0.0
        return base_delay_s * (2**attempt) + jitter

    return _delay


@dataclass(frozen=True, slots=True)
class RetryPolicy:
    """Bounded retry policy with exponential backoff and jitter."""

    max_retries: int = 2
    base_delay_s: float = 1.0
    max_jitter_s: float = 0.5
    is_retryable: RetryPredicate = is_transient_failure
    backoff: BackoffFunction | None = None
    random_source: RandomSourceProtocol = field(default_factory=random.Random)

    @classmethod
    def from_config(
        cls,
        config: RetryConfig,
        *,
        random_source: RandomSourceProtocol | None = None,
    ) -> RetryPolicy:
        """Build a retry policy from configuration.

        Args:
            config: Retry configuration.
            random_source: Optional random source for jitter.

        Returns:
            RetryPolicy: Configured policy.
        """
        return cls(
            max_retries=config.max_retries,
            base_delay_s=config.backoff_s,
            max_jitter_s=config.max_jitter_s,
            random_source=random_source or random.Random(),
        )

    def delay_for(self, attempt: int) -> float:
        """Return the backoff delay in seconds for a zero-based attempt."""
        backoff = self.backoff or exponential_backoff(
            self.base_delay_s, self.max_jitter_s
        )
        return backoff(attempt, self.random_source)


async def with_retry[T](
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
    *,
    sleep: SleepFunction = asyncio.sleep,
    on_retry: RetryObserver | None = None,
    label: str = "operation",
) -> T:
    """Run an operation, retrying retryable failures with backoff.

    The last observed failure propagates unchanged once retries are exhausted,
    as do non-retryable failures on first occurrence. Cancellation raised while
    awaiting the operation or the backoff sleep propagates immediately.

    Args:
        operation: Zero-argument coroutine factory; called once per attempt.
        policy: Retry policy (defaults to two retries, 1s base, 0.5s jitter).
        sleep: Awaitable sleep used for backoff.
        on_retry: Optional observer called with attempt number, delay and error
            before each backoff sleep.
        label: Operation label used in log messages.

    Returns:
        T: Result of the first successful attempt.

    Raises:
        Exception: The original failure when it is not retryable or when
            retries are exhausted.
    """
    resolved = policy or RetryPolicy()
    attempt = 0
    while True:
        try:
            return await operation()
        except Exception as exc:
            if attempt >= resolved.max_retries or not resolved.is_retryable(exc):
                raise
            delay = resolved.delay_for(attempt)
            _log.warning(
                "%s busy, retrying in %.0fms (attempt %d/%d): %s",
                label,
                delay * 1000,
                attempt + 1,
                resolved.max_retries,
                exc,
            )
            if on_retry is not None:
                observed = on_retry(attempt + 1, delay, exc)
                if observed is not None:
                    await observed
            await sleep(delay)
            attempt += 1
