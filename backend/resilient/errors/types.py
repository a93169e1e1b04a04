"""Error Classification Types

ErrorState is the classified form of a raw failure. Retry predicates and
breaker decisions consult it; the raw exception it was built from travels
along as ``cause`` so it can be re-raised untouched.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Generic, NoReturn, TypeVar, Union, final

T = TypeVar("T")
E = TypeVar("E")


class ErrorCategory(str, Enum):
    """Failure taxonomy assigned by the classifier."""
    NETWORK = "network"         # Transport-level failure
    TIMEOUT = "timeout"         # Deadline exceeded
    SERVER = "server"           # Remote returned an error status
    VALIDATION = "validation"   # Caller supplied bad input
    UNKNOWN = "unknown"         # Unclassified


@dataclass(frozen=True, slots=True)
class ErrorState:
    """Classified failure.

    Carries no retry decision of its own: policies consult ``category``.
    """
    category: ErrorCategory
    message: str
    details: str | None = None
    status_code: int | None = None
    cause: BaseException | None = None
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    metadata: dict = field(default_factory=dict)

    def chain(self, cause: BaseException) -> ErrorState:
        """Attach the raw failure this state was classified from."""
        return ErrorState(
            category=self.category,
            message=self.message,
            details=self.details,
            status_code=self.status_code,
            cause=cause,
            timestamp=self.timestamp,
            metadata=self.metadata,
        )

    def to_dict(self) -> dict:
        """Serialize for structured logging."""
        data = {
            "category": self.category.value,
            "message": self.message,
            "timestamp": self.timestamp.isoformat(),
        }
        if self.details is not None:
            data["details"] = self.details
        if self.status_code is not None:
            data["status_code"] = self.status_code
        if self.cause is not None:
            data["cause"] = type(self.cause).__name__
        if self.metadata:
            data["metadata"] = self.metadata
        return data

    def __str__(self) -> str:
        return f"[{self.category.value}] {self.message}"


@final
@dataclass(frozen=True, slots=True)
class Ok(Generic[T]):
    """Success variant of Result."""
    value: T

    def is_ok(self) -> bool:
        return True

    def is_err(self) -> bool:
        return False

    def unwrap(self) -> T:
        return self.value


@final
@dataclass(frozen=True, slots=True)
class Err(Generic[E]):
    """Failure variant of Result."""
    error: E

    def is_ok(self) -> bool:
        return False

    def is_err(self) -> bool:
        return True

    def unwrap(self) -> NoReturn:
        raise ValueError(f"Called unwrap on Err: {self.error}")

    def unwrap_err(self) -> E:
        return self.error


Result = Union[Ok[T], Err[E]]
