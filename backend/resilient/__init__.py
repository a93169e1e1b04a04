# Package exports
from resilient.config import Settings, get_settings
from resilient.logging import (
    configure_logging,
    get_logger,
    bind_context,
    clear_context,
    unbind_context,
)
from resilient.errors import (
    CircuitOpenError,
    ConfigurationError,
    ErrorCategory,
    ErrorState,
    OperationCancelledError,
    OperationTimeoutError,
    ResilienceError,
    classify,
)
from resilient.resilience import (
    CancellationToken,
    CircuitBreaker,
    CircuitBreakerConfig,
    CircuitState,
    RetryExecutor,
    RetryPolicy,
    compute_delay,
    current_token,
    execute,
    race_with_timeout,
    retry_network_errors,
    retry_on_category,
    retry_with_condition,
    retry_with_timeout,
    retryable,
    with_circuit_breaker,
    with_retry,
)
