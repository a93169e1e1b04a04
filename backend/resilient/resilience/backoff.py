"""Exponential Backoff with Additive Jitter

delay = min(base_delay * backoff_factor ** attempt + U[0, jitter), max_delay)

Jitter only ever adds to the exponential term so concurrent retriers spread
out instead of retrying in lockstep.
"""
from __future__ import annotations

import random
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .retry import RetryPolicy


def exponential_delay(attempt: int, policy: RetryPolicy) -> float:
    """Un-jittered delay for a 0-indexed attempt."""
    try:
        return policy.base_delay * (policy.backoff_factor ** attempt)
    except OverflowError:
        return float("inf") if policy.base_delay > 0 else 0.0


def compute_delay(
    attempt: int,
    policy: RetryPolicy,
    rng: random.Random | None = None,
) -> float:
    """Calculate delay in seconds before retrying after ``attempt`` (0-indexed)."""
    source = rng if rng is not None else random
    jitter = source.random() * policy.jitter
    return min(exponential_delay(attempt, policy) + jitter, policy.max_delay)


class BackoffCalculator:
    """Binds a random source so a seeded generator can drive every delay.

    Usage:
        calculator = BackoffCalculator(random.Random(42))
        delay = calculator.calculate(0, policy)
    """

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng

    def calculate(self, attempt: int, policy: RetryPolicy) -> float:
        return compute_delay(attempt, policy, self._rng)
