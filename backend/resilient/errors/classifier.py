"""Default Error Classifier

Maps a raw exception to an ErrorState. Host applications may supply their
own classifier with the same signature; the retry executor only depends on
the ``Classifier`` protocol.
"""
from __future__ import annotations

import asyncio
from typing import Protocol

from .builders import network_error, server_error, unknown_error, validation_error
from .exceptions import ResilienceError
from .types import ErrorCategory, ErrorState


class Classifier(Protocol):
    def __call__(self, error: BaseException) -> ErrorState: ...


def _status_of(error: BaseException) -> int | None:
    """Extract an HTTP status from common client exception shapes."""
    for attr in ("status_code", "status"):
        value = getattr(error, attr, None)
        if isinstance(value, int):
            return value
    response = getattr(error, "response", None)
    if response is not None:
        for attr in ("status_code", "status"):
            value = getattr(response, attr, None)
            if isinstance(value, int):
                return value
    return None


def is_retryable_status(status: int) -> bool:
    """Server errors and rate limiting are worth another attempt."""
    return status >= 500 or status == 429


def classify(error: BaseException) -> ErrorState:
    """Classify a raw failure.

    Order matters: synthetic errors first, then timeouts (``TimeoutError`` is
    an ``OSError``), then anything carrying an HTTP status, then transport
    errors, then bad input.
    """
    if isinstance(error, ResilienceError):
        return error.error.chain(error)

    message = str(error) or type(error).__name__

    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorState(
            category=ErrorCategory.TIMEOUT,
            message=message,
            cause=error,
        )

    status = _status_of(error)
    if status is not None:
        if is_retryable_status(status):
            return server_error(
                f"Server error: {status}",
                status_code=status,
                details=message,
                cause=error,
            )
        return validation_error(
            f"Request rejected: {status}",
            status_code=status,
            details=message,
            cause=error,
        )

    if isinstance(error, (ConnectionError, OSError)):
        return network_error(
            "Network error",
            details=message,
            cause=error,
        )

    if isinstance(error, (ValueError, TypeError, KeyError)):
        return validation_error(message, cause=error)

    return unknown_error(message, details=type(error).__name__, cause=error)
