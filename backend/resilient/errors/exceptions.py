"""Synthetic Exceptions

Failures raised by the resilience layer itself, distinguishable from
anything a wrapped operation raises. Each wraps an ErrorState so
classification needs no guessing.
"""
from __future__ import annotations

from .builders import cancelled_error, circuit_open, configuration_error, timeout_error
from .types import ErrorState


class ResilienceError(Exception):
    """Exception wrapper for an ErrorState produced by this package."""

    def __init__(self, error: ErrorState):
        self.error = error
        super().__init__(error.message)


class CircuitOpenError(ResilienceError):
    """Raised without invoking the operation while a breaker is open."""

    def __init__(self, name: str, retry_after_seconds: float | None = None):
        self.name = name
        self.retry_after_seconds = retry_after_seconds
        super().__init__(circuit_open(name, retry_after_seconds))


class OperationTimeoutError(ResilienceError, TimeoutError):
    """Raised when a raced operation misses its deadline.

    The operation itself is not stopped by this.
    """

    def __init__(self, timeout_seconds: float):
        self.timeout_seconds = timeout_seconds
        super().__init__(timeout_error(timeout_seconds))


class OperationCancelledError(ResilienceError):
    """Raised by cooperative operations whose token was cancelled by the caller.

    Never retried: the caller asked for the work to stop.
    """

    def __init__(self, reason: str | None = None):
        self.reason = reason
        super().__init__(cancelled_error(reason))


class ConfigurationError(ResilienceError, ValueError):
    """Raised when a policy or breaker config is constructed with invalid values."""

    def __init__(self, message: str, **metadata):
        super().__init__(configuration_error(message, **metadata))
