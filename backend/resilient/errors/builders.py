"""Error State Builders

Ergonomic constructors for classified errors, one per category, plus the
two synthetic failures introduced by the resilience layer itself.
"""
from .types import ErrorCategory, ErrorState


def _format_ms(seconds: float) -> str:
    return f"{round(seconds * 1000, 3):g}ms"


def network_error(
    message: str,
    *,
    details: str | None = None,
    cause: BaseException | None = None,
    **metadata,
) -> ErrorState:
    """Create transport-level failure."""
    return ErrorState(
        category=ErrorCategory.NETWORK,
        message=message,
        details=details,
        cause=cause,
        metadata=metadata,
    )


def server_error(
    message: str,
    *,
    status_code: int | None = None,
    details: str | None = None,
    cause: BaseException | None = None,
    **metadata,
) -> ErrorState:
    """Create error for a remote that answered with an error status."""
    return ErrorState(
        category=ErrorCategory.SERVER,
        message=message,
        details=details,
        status_code=status_code,
        cause=cause,
        metadata=metadata,
    )


def validation_error(
    message: str,
    *,
    status_code: int | None = None,
    details: str | None = None,
    cause: BaseException | None = None,
    **metadata,
) -> ErrorState:
    """Create error for bad caller input. Never retried by default."""
    return ErrorState(
        category=ErrorCategory.VALIDATION,
        message=message,
        details=details,
        status_code=status_code,
        cause=cause,
        metadata=metadata,
    )


def unknown_error(
    message: str,
    *,
    details: str | None = None,
    cause: BaseException | None = None,
    **metadata,
) -> ErrorState:
    return ErrorState(
        category=ErrorCategory.UNKNOWN,
        message=message,
        details=details,
        cause=cause,
        metadata=metadata,
    )


def timeout_error(timeout_seconds: float, cause: BaseException | None = None) -> ErrorState:
    """Deadline exceeded by a single raced invocation."""
    return ErrorState(
        category=ErrorCategory.TIMEOUT,
        message=f"Operation timed out after {_format_ms(timeout_seconds)}",
        cause=cause,
        metadata={"timeout_seconds": timeout_seconds},
    )


def cancelled_error(reason: str | None = None) -> ErrorState:
    """Work stopped because its caller signalled a CancellationToken."""
    return ErrorState(
        category=ErrorCategory.UNKNOWN,
        message="Operation cancelled",
        details=reason,
    )


def circuit_open(name: str, retry_after_seconds: float | None = None) -> ErrorState:
    """Fail-fast rejection from an open breaker."""
    metadata: dict = {"circuit": name}
    if retry_after_seconds is not None:
        metadata["retry_after_seconds"] = retry_after_seconds
    return ErrorState(
        category=ErrorCategory.SERVER,
        message="Circuit breaker is open",
        details=f"Circuit '{name}' is rejecting calls",
        metadata=metadata,
    )


def configuration_error(message: str, **metadata) -> ErrorState:
    return ErrorState(
        category=ErrorCategory.VALIDATION,
        message=message,
        metadata=metadata,
    )
