"""Circuit Breaker Pattern Implementation

Guards one logical operation. Consecutive failures open the circuit, after
which calls fail fast without reaching the operation until the recovery
timeout has passed; the next call is then let through as a probe.

State lives in an immutable BreakerState record. Transitions are pure
functions, and only the owning CircuitBreaker swaps the record.
"""
from __future__ import annotations

import dataclasses
import time
from dataclasses import dataclass
from enum import Enum
from typing import Awaitable, Callable, Generic, TypeVar

from resilient.config import Settings, get_settings
from resilient.errors import CircuitOpenError, ConfigurationError
from resilient.logging import breaker_logger

T = TypeVar("T")

log = breaker_logger()

Clock = Callable[[], float]


class CircuitState(str, Enum):
    """Circuit breaker phases."""
    CLOSED = "closed"        # Normal operation, calls pass through
    OPEN = "open"            # Failing, calls rejected immediately
    HALF_OPEN = "half-open"  # Probing whether the dependency recovered


@dataclass(frozen=True)
class CircuitBreakerConfig:
    """Configuration for circuit breaker behavior. Durations are in seconds."""
    failure_threshold: int = 5           # Failures before opening
    recovery_timeout: float = 60.0       # Time before open -> half-open
    monitoring_period: float | None = None  # Failure streak expiry while closed; None disables

    def __post_init__(self) -> None:
        if self.failure_threshold < 1:
            raise ConfigurationError(
                "failure_threshold must be >= 1",
                field="failure_threshold",
                value=self.failure_threshold,
            )
        if self.recovery_timeout <= 0:
            raise ConfigurationError(
                "recovery_timeout must be > 0",
                field="recovery_timeout",
                value=self.recovery_timeout,
            )
        if self.monitoring_period is not None and self.monitoring_period <= 0:
            raise ConfigurationError(
                "monitoring_period must be > 0",
                field="monitoring_period",
                value=self.monitoring_period,
            )

    @classmethod
    def from_settings(cls, settings: Settings | None = None, **overrides) -> CircuitBreakerConfig:
        settings = settings or get_settings()
        values = {
            "failure_threshold": settings.CIRCUIT_FAILURE_THRESHOLD,
            "recovery_timeout": settings.CIRCUIT_RECOVERY_TIMEOUT,
            "monitoring_period": settings.CIRCUIT_MONITORING_PERIOD,
        }
        values.update(overrides)
        return cls(**values)


@dataclass(frozen=True, slots=True)
class BreakerState:
    """Snapshot of one breaker's mutable state."""
    failure_count: int = 0
    last_failure_at: float | None = None
    phase: CircuitState = CircuitState.CLOSED


def initial_state() -> BreakerState:
    return BreakerState()


def admit(
    state: BreakerState, now: float, config: CircuitBreakerConfig
) -> tuple[BreakerState, bool]:
    """Decide whether a call may reach the operation.

    Returns the (possibly half-opened) state and whether the call is admitted.
    """
    if state.phase is not CircuitState.OPEN:
        return state, True
    if now - state.last_failure_at > config.recovery_timeout:
        return dataclasses.replace(state, phase=CircuitState.HALF_OPEN), True
    return state, False


def record_success(state: BreakerState) -> BreakerState:
    """Any success clears the failure streak and closes the circuit."""
    return BreakerState(
        failure_count=0,
        last_failure_at=state.last_failure_at,
        phase=CircuitState.CLOSED,
    )


def record_failure(
    state: BreakerState, now: float, config: CircuitBreakerConfig
) -> BreakerState:
    """Count a failure, opening the circuit once the threshold is reached."""
    failure_count = state.failure_count
    if (
        config.monitoring_period is not None
        and state.phase is CircuitState.CLOSED
        and state.last_failure_at is not None
        and now - state.last_failure_at > config.monitoring_period
    ):
        failure_count = 0

    failure_count += 1
    phase = CircuitState.OPEN if failure_count >= config.failure_threshold else state.phase
    return BreakerState(failure_count=failure_count, last_failure_at=now, phase=phase)


def retry_after(state: BreakerState, now: float, config: CircuitBreakerConfig) -> float | None:
    """Seconds until an open circuit admits a probe."""
    if state.phase is not CircuitState.OPEN or state.last_failure_at is None:
        return None
    return max(0.0, config.recovery_timeout - (now - state.last_failure_at))


@dataclass
class CircuitStats:
    """Statistics for a circuit breaker."""
    state: CircuitState
    failure_count: int
    last_failure_at: float | None
    last_state_change_at: float
    total_requests: int
    total_failures: int
    total_successes: int
    total_rejections: int


class CircuitBreaker(Generic[T]):
    """Circuit breaker bound to a single operation.

    Concurrent calls are not serialized: every call admitted while the
    circuit was closed reaches the operation, even if an earlier one is about
    to open it. Each individual transition is atomic on the event loop since
    none of them awaits.

    Usage:
        breaker = CircuitBreaker(fetch_album, CircuitBreakerConfig(failure_threshold=3))

        try:
            album = await breaker.execute(album_id)
        except CircuitOpenError:
            album = cached_album(album_id)
    """

    def __init__(
        self,
        operation: Callable[..., Awaitable[T]],
        config: CircuitBreakerConfig | None = None,
        *,
        name: str | None = None,
        clock: Clock = time.monotonic,
    ):
        self.name = name or getattr(operation, "__name__", "operation")
        self.config = config or CircuitBreakerConfig()
        self._operation = operation
        self._clock = clock
        self._state = initial_state()
        self._last_state_change_at = clock()
        self._total_requests = 0
        self._total_failures = 0
        self._total_successes = 0
        self._total_rejections = 0

    @property
    def state(self) -> CircuitState:
        return self._state.phase

    @property
    def failure_count(self) -> int:
        return self._state.failure_count

    @property
    def snapshot(self) -> BreakerState:
        return self._state

    @property
    def stats(self) -> CircuitStats:
        return CircuitStats(
            state=self._state.phase,
            failure_count=self._state.failure_count,
            last_failure_at=self._state.last_failure_at,
            last_state_change_at=self._last_state_change_at,
            total_requests=self._total_requests,
            total_failures=self._total_failures,
            total_successes=self._total_successes,
            total_rejections=self._total_rejections,
        )

    def get_state(self) -> CircuitState:
        return self._state.phase

    def _transition(self, new_state: BreakerState) -> None:
        previous = self._state.phase
        self._state = new_state
        if new_state.phase is previous:
            return

        self._last_state_change_at = self._clock()
        if new_state.phase is CircuitState.OPEN:
            log.warning(
                "circuit_opened",
                circuit=self.name,
                failure_count=new_state.failure_count,
                recovery_timeout=self.config.recovery_timeout,
            )
        elif new_state.phase is CircuitState.HALF_OPEN:
            log.info("circuit_half_open", circuit=self.name)
        else:
            log.info("circuit_closed", circuit=self.name, previous=previous.value)

    async def execute(self, *args, **kwargs) -> T:
        """Invoke the operation through the breaker.

        Raises CircuitOpenError without invoking the operation while the
        circuit is open. Operation failures are recorded and re-raised as is.
        """
        now = self._clock()
        self._total_requests += 1

        state, admitted = admit(self._state, now, self.config)
        self._transition(state)
        if not admitted:
            self._total_rejections += 1
            raise CircuitOpenError(self.name, retry_after(self._state, now, self.config))

        try:
            result = await self._operation(*args, **kwargs)
        except Exception:
            self._total_failures += 1
            self._transition(record_failure(self._state, self._clock(), self.config))
            raise

        self._total_successes += 1
        self._transition(record_success(self._state))
        return result

    def reset(self) -> None:
        """Manually reset circuit to closed state."""
        self._transition(initial_state())
        log.info("circuit_reset", circuit=self.name)
