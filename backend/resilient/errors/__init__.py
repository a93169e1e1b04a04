"""Error Classification

- ErrorState / ErrorCategory: classified form of a raw failure
- Ok / Err / Result: outcome containers used by the retry executor
- Synthetic exceptions raised by the resilience layer
- Default classifier mapping raw exceptions to categories

Usage:
    from resilient.errors import classify, ErrorCategory

    try:
        await fetch()
    except Exception as exc:
        if classify(exc).category is ErrorCategory.NETWORK:
            ...
"""
from .types import (
    ErrorCategory,
    ErrorState,
    Err,
    Ok,
    Result,
)

from .builders import (
    cancelled_error,
    circuit_open,
    configuration_error,
    network_error,
    server_error,
    timeout_error,
    unknown_error,
    validation_error,
)

from .exceptions import (
    CircuitOpenError,
    ConfigurationError,
    OperationCancelledError,
    OperationTimeoutError,
    ResilienceError,
)

from .classifier import (
    Classifier,
    classify,
    is_retryable_status,
)

__all__ = [
    # Types
    "ErrorCategory",
    "ErrorState",
    "Err",
    "Ok",
    "Result",
    # Builders
    "cancelled_error",
    "circuit_open",
    "configuration_error",
    "network_error",
    "server_error",
    "timeout_error",
    "unknown_error",
    "validation_error",
    # Exceptions
    "CircuitOpenError",
    "ConfigurationError",
    "OperationCancelledError",
    "OperationTimeoutError",
    "ResilienceError",
    # Classification
    "Classifier",
    "classify",
    "is_retryable_status",
]
