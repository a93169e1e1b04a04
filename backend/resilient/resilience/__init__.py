"""Resilience Patterns

Fault tolerance for unreliable async operations:
- Retry with exponential backoff and jitter
- Per-attempt timeout races
- Circuit breakers guarding a failing dependency
"""
from .backoff import (
    BackoffCalculator,
    compute_delay,
    exponential_delay,
)

from .retry import (
    DEFAULT_RETRYABLE_CATEGORIES,
    RetryAttempt,
    RetryExecutor,
    RetryPolicy,
    RetryResult,
    execute,
)

from .timeout import (
    CancellationToken,
    abandoned_count,
    current_token,
    race_with_timeout,
)

from .circuit_breaker import (
    BreakerState,
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    CircuitStats,
    admit,
    initial_state,
    record_failure,
    record_success,
)

from .wrappers import (
    retry_network_errors,
    retry_on_category,
    retry_with_condition,
    retry_with_timeout,
    retryable,
    with_circuit_breaker,
    with_retry,
)

__all__ = [
    # Backoff
    "BackoffCalculator",
    "compute_delay",
    "exponential_delay",
    # Retry
    "DEFAULT_RETRYABLE_CATEGORIES",
    "RetryAttempt",
    "RetryExecutor",
    "RetryPolicy",
    "RetryResult",
    "execute",
    # Timeout
    "CancellationToken",
    "abandoned_count",
    "current_token",
    "race_with_timeout",
    # Circuit Breaker
    "BreakerState",
    "CircuitBreaker",
    "CircuitBreakerConfig",
    "CircuitState",
    "CircuitStats",
    "admit",
    "initial_state",
    "record_failure",
    "record_success",
    # Wrappers
    "retry_network_errors",
    "retry_on_category",
    "retry_with_condition",
    "retry_with_timeout",
    "retryable",
    "with_circuit_breaker",
    "with_retry",
]
