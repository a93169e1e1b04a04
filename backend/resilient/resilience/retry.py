"""Retry Policies with Exponential Backoff and Jitter

Repeats a failing async operation under a configurable policy. Every
failure is classified before the policy decides whether another attempt is
worth it; the final failure is always the operation's own exception.
"""
from __future__ import annotations

import asyncio
import dataclasses
import inspect
import random
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Awaitable, Callable, Generic, TypeVar

from resilient.config import Settings, get_settings
from resilient.errors import (
    Classifier,
    ConfigurationError,
    Err,
    ErrorCategory,
    ErrorState,
    Ok,
    OperationCancelledError,
    Result,
    classify,
)
from resilient.logging import retry_logger

from .backoff import BackoffCalculator

T = TypeVar("T")

log = retry_logger()

ShouldRetry = Callable[[ErrorState, int], bool]
OnRetry = Callable[[ErrorState, int, float], "Awaitable[None] | None"]
Sleep = Callable[[float], Awaitable[None]]

# Categories retried when no should_retry predicate is supplied.
# Validation failures are never retried: resending bad input cannot succeed.
DEFAULT_RETRYABLE_CATEGORIES: frozenset[ErrorCategory] = frozenset({
    ErrorCategory.NETWORK,
    ErrorCategory.TIMEOUT,
    ErrorCategory.SERVER,
    ErrorCategory.UNKNOWN,
})


@dataclass(frozen=True)
class RetryPolicy:
    """Configuration for retry behavior. Delays are in seconds."""
    max_attempts: int = 3
    base_delay: float = 1.0
    max_delay: float = 30.0
    backoff_factor: float = 2.0
    jitter: float = 1.0         # Upper bound of the uniform jitter added to each delay
    should_retry: ShouldRetry | None = None
    on_retry: OnRetry | None = None
    retryable_categories: frozenset[ErrorCategory] = DEFAULT_RETRYABLE_CATEGORIES
    classifier: Classifier = classify

    def __post_init__(self) -> None:
        if self.max_attempts < 1:
            raise ConfigurationError(
                "max_attempts must be >= 1", field="max_attempts", value=self.max_attempts
            )
        if self.base_delay < 0:
            raise ConfigurationError(
                "base_delay must be >= 0", field="base_delay", value=self.base_delay
            )
        if self.max_delay < 0:
            raise ConfigurationError(
                "max_delay must be >= 0", field="max_delay", value=self.max_delay
            )
        if self.backoff_factor <= 1:
            raise ConfigurationError(
                "backoff_factor must be > 1", field="backoff_factor", value=self.backoff_factor
            )
        if self.jitter < 0:
            raise ConfigurationError("jitter must be >= 0", field="jitter", value=self.jitter)

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides) -> RetryPolicy:
        """Build a policy from environment-driven defaults."""
        settings = settings or get_settings()
        values = {
            "max_attempts": settings.RETRY_MAX_ATTEMPTS,
            "base_delay": settings.RETRY_BASE_DELAY,
            "max_delay": settings.RETRY_MAX_DELAY,
            "backoff_factor": settings.RETRY_BACKOFF_FACTOR,
            "jitter": settings.RETRY_JITTER,
        }
        values.update(overrides)
        return cls(**values)

    def replace(self, **changes) -> RetryPolicy:
        return dataclasses.replace(self, **changes)

    def is_final_attempt(self, attempt: int) -> bool:
        return attempt >= self.max_attempts - 1

    def should_attempt_again(self, error: ErrorState, attempt: int) -> bool:
        """Determine if another attempt follows the failed ``attempt`` (0-indexed)."""
        if self.is_final_attempt(attempt):
            return False
        # Cancelled work stopped because the caller asked it to
        if isinstance(error.cause, OperationCancelledError):
            return False
        if self.should_retry is not None:
            return bool(self.should_retry(error, attempt))
        return error.category in self.retryable_categories


@dataclass
class RetryAttempt:
    """Information about a single attempt."""
    attempt_number: int
    started_at: datetime
    delay_seconds: float
    error: ErrorState | None = None


@dataclass
class RetryResult(Generic[T]):
    """Outcome of a retried operation with full attempt history."""
    result: Result[T, ErrorState]
    attempts: list[RetryAttempt]
    total_duration_seconds: float

    @property
    def succeeded(self) -> bool:
        return self.result.is_ok()

    @property
    def attempt_count(self) -> int:
        return len(self.attempts)


class RetryExecutor:
    """Runs an operation under a RetryPolicy.

    Attempts are strictly sequential: attempt n+1 starts only after attempt
    n's failure is classified and its backoff delay has elapsed.

    Usage:
        executor = RetryExecutor()

        async def fetch_album():
            return await client.get_album(album_id)

        album = await executor.execute(fetch_album, RetryPolicy(max_attempts=5))
    """

    def __init__(
        self,
        *,
        sleep: Sleep | None = None,
        rng: random.Random | None = None,
    ):
        self._sleep = sleep or asyncio.sleep
        self._backoff = BackoffCalculator(rng)

    async def run(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
    ) -> RetryResult[T]:
        """Execute operation with retry policy, capturing the outcome.

        Operation failures never escape; they end up as ``Err`` whose
        ``cause`` is the raw exception. Exceptions from ``on_retry`` or the
        classifier do escape.
        """
        policy = policy or RetryPolicy()
        attempts: list[RetryAttempt] = []
        start = time.monotonic()

        for attempt in range(policy.max_attempts):
            attempt_start = datetime.now(timezone.utc)
            try:
                value = await operation()
            except Exception as exc:
                error = policy.classifier(exc)
                if error.cause is not exc:
                    error = error.chain(exc)

                if not policy.should_attempt_again(error, attempt):
                    attempts.append(RetryAttempt(attempt, attempt_start, 0.0, error))
                    log.warning(
                        "retry_exhausted" if policy.is_final_attempt(attempt) else "retry_aborted",
                        attempt=attempt,
                        max_attempts=policy.max_attempts,
                        error=error,
                    )
                    return RetryResult(
                        result=Err(error),
                        attempts=attempts,
                        total_duration_seconds=time.monotonic() - start,
                    )

                delay = self._backoff.calculate(attempt, policy)
                attempts.append(RetryAttempt(attempt, attempt_start, delay, error))
                log.info(
                    "retry_scheduled",
                    attempt=attempt,
                    max_attempts=policy.max_attempts,
                    delay_seconds=round(delay, 3),
                    error=error,
                )

                if policy.on_retry is not None:
                    observed = policy.on_retry(error, attempt, delay)
                    if inspect.isawaitable(observed):
                        await observed

                await self._sleep(delay)
            else:
                attempts.append(RetryAttempt(attempt, attempt_start, 0.0, None))
                if attempt > 0:
                    log.info("retry_succeeded", attempt=attempt)
                return RetryResult(
                    result=Ok(value),
                    attempts=attempts,
                    total_duration_seconds=time.monotonic() - start,
                )

        # The final attempt is never eligible, so the loop always returns.
        # Kept to satisfy the type checker.
        return RetryResult(
            result=Err(attempts[-1].error),
            attempts=attempts,
            total_duration_seconds=time.monotonic() - start,
        )

    async def execute(
        self,
        operation: Callable[[], Awaitable[T]],
        policy: RetryPolicy | None = None,
    ) -> T:
        """Execute operation, returning its value or re-raising its last exception."""
        outcome = await self.run(operation, policy)
        match outcome.result:
            case Ok(value):
                return value
            case Err(error):
                raise error.cause


async def execute(
    operation: Callable[[], Awaitable[T]],
    policy: RetryPolicy | None = None,
) -> T:
    """Retry ``operation`` under ``policy`` with a default executor."""
    return await RetryExecutor().execute(operation, policy)
