"""Composition Wrappers

Convenience forms binding the retry executor, timeout race and circuit
breaker to an operation.
"""
from __future__ import annotations

import functools
from typing import Any, Awaitable, Callable, TypeVar

from resilient.errors import ErrorCategory, ErrorState

from .circuit_breaker import CircuitBreaker, CircuitBreakerConfig
from .retry import RetryExecutor, RetryPolicy
from .timeout import CancellationToken, race_with_timeout

T = TypeVar("T")


def with_retry(
    fn: Callable[..., Awaitable[T]],
    policy: RetryPolicy | None = None,
) -> Callable[..., Awaitable[T]]:
    """Wrap ``fn`` so every call is retried under ``policy``.

    The wrapper holds no per-call state; independent calls never interfere.
    """
    executor = RetryExecutor()

    @functools.wraps(fn)
    async def wrapper(*args: Any, **kwargs: Any) -> T:
        return await executor.execute(lambda: fn(*args, **kwargs), policy)

    return wrapper


def retryable(policy: RetryPolicy | None = None):
    """Decorator to make async function retryable.

    Usage:
        @retryable(RetryPolicy(max_attempts=3))
        async def fetch_album(album_id: str) -> Album:
            ...
    """
    def decorator(fn: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        return with_retry(fn, policy)
    return decorator


async def retry_with_condition(
    operation: Callable[[], Awaitable[T]],
    predicate: Callable[[ErrorState, int], bool],
    max_attempts: int = 3,
    base_delay: float = 1.0,
) -> T:
    policy = RetryPolicy(
        max_attempts=max_attempts,
        base_delay=base_delay,
        should_retry=predicate,
    )
    return await RetryExecutor().execute(operation, policy)


async def retry_on_category(
    operation: Callable[[], Awaitable[T]],
    category: ErrorCategory,
    max_attempts: int = 3,
) -> T:
    """Retry only failures classified as ``category``; any other fails at once."""
    category = ErrorCategory(category)
    policy = RetryPolicy(
        max_attempts=max_attempts,
        should_retry=lambda error, attempt: error.category is category,
    )
    return await RetryExecutor().execute(operation, policy)


async def retry_network_errors(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int = 3,
) -> T:
    return await retry_on_category(operation, ErrorCategory.NETWORK, max_attempts)


async def retry_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    policy: RetryPolicy | None = None,
    *,
    token: CancellationToken | None = None,
) -> T:
    """Retry ``operation``, bounding each individual attempt by ``timeout`` seconds.

    Every attempt runs under its own child of ``token``: an attempt's timeout
    signals only that attempt (see ``current_token()``), while cancelling
    ``token`` reaches whichever attempt is running.
    """
    async def timed_operation() -> T:
        attempt_token = token.child() if token is not None else CancellationToken()
        return await race_with_timeout(operation, timeout, token=attempt_token)

    return await RetryExecutor().execute(timed_operation, policy)


def with_circuit_breaker(
    fn: Callable[..., Awaitable[T]],
    config: CircuitBreakerConfig | None = None,
    *,
    name: str | None = None,
) -> CircuitBreaker[T]:
    """Create a circuit breaker bound to ``fn``; call ``.execute(...)`` on it."""
    return CircuitBreaker(fn, config, name=name)
