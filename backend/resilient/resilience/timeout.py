"""Timeout Race

Races one invocation of an operation against a deadline. Missing the
deadline fails the caller but does NOT stop the operation: it keeps running
in the background and its eventual outcome is discarded. Operations that
hold resources can check their CancellationToken and stop themselves once
it is signalled.
"""
from __future__ import annotations

import asyncio
import weakref
from contextvars import ContextVar
from typing import Awaitable, Callable, TypeVar

from resilient.errors import ConfigurationError, OperationCancelledError, OperationTimeoutError
from resilient.logging import timeout_logger

T = TypeVar("T")

log = timeout_logger()

# Token of the race the current task is running in
_current_token: ContextVar[CancellationToken | None] = ContextVar(
    "resilient_cancellation_token", default=None
)

# Strong references to abandoned operations until they settle
_abandoned: set[asyncio.Future] = set()


class CancellationToken:
    """Cooperative cancellation signal shared between caller and operation.

    Cancelling a token cancels all of its children; a child's timeout never
    reaches its parent. Each timeout race runs the operation under its own
    token, available inside the operation as ``current_token()``.

    Usage:
        async def upload():
            for chunk in chunks:
                current_token().raise_if_cancelled()
                await send(chunk)

        await race_with_timeout(upload, 5.0)
    """

    def __init__(self, parent: CancellationToken | None = None):
        self._event = asyncio.Event()
        self._children: weakref.WeakSet[CancellationToken] = weakref.WeakSet()
        self.reason: str | None = None
        self.timeout_seconds: float | None = None
        self.parent = parent
        if parent is not None:
            parent._children.add(self)
            if parent.cancelled:
                self.cancel(parent.reason, timeout_seconds=parent.timeout_seconds)

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    @property
    def timed_out(self) -> bool:
        return self.timeout_seconds is not None

    def child(self) -> CancellationToken:
        return CancellationToken(parent=self)

    def cancel(self, reason: str | None = None, *, timeout_seconds: float | None = None) -> None:
        if self._event.is_set():
            return
        self.reason = reason
        self.timeout_seconds = timeout_seconds
        self._event.set()
        for child in list(self._children):
            child.cancel(reason, timeout_seconds=timeout_seconds)

    async def wait(self) -> None:
        await self._event.wait()

    def raise_if_cancelled(self) -> None:
        """Raise OperationTimeoutError or OperationCancelledError once signalled."""
        if not self._event.is_set():
            return
        if self.timeout_seconds is not None:
            raise OperationTimeoutError(self.timeout_seconds)
        raise OperationCancelledError(self.reason)


def current_token() -> CancellationToken | None:
    """Token of the timeout race the calling operation runs under, if any."""
    return _current_token.get()


def abandoned_count() -> int:
    """Number of timed-out operations still running in the background."""
    return len(_abandoned)


def _settle_abandoned(task: asyncio.Future) -> None:
    _abandoned.discard(task)
    if task.cancelled():
        log.debug("abandoned_operation_cancelled")
        return
    exc = task.exception()
    if exc is not None:
        log.debug("abandoned_operation_failed", error=str(exc), error_type=type(exc).__name__)
    else:
        log.debug("abandoned_operation_completed")


def _abandon(task: asyncio.Future) -> None:
    _abandoned.add(task)
    task.add_done_callback(_settle_abandoned)


async def _run_under(operation: Callable[[], Awaitable[T]], token: CancellationToken) -> T:
    # Runs inside its own task, so the context change stays local to it
    _current_token.set(token)
    return await operation()


async def race_with_timeout(
    operation: Callable[[], Awaitable[T]],
    timeout: float,
    *,
    token: CancellationToken | None = None,
) -> T:
    """Run ``operation`` and fail with OperationTimeoutError after ``timeout`` seconds.

    ``token`` (a fresh one when omitted) is signalled on timeout and is the
    operation's ``current_token()``.
    """
    if timeout <= 0:
        raise ConfigurationError("timeout must be > 0", field="timeout", value=timeout)

    token = token if token is not None else CancellationToken()
    task = asyncio.ensure_future(_run_under(operation, token))
    try:
        done, _ = await asyncio.wait({task}, timeout=timeout)
    except asyncio.CancelledError:
        _abandon(task)
        raise

    if task in done:
        return task.result()

    _abandon(task)
    error = OperationTimeoutError(timeout)
    log.warning("operation_timed_out", timeout_seconds=timeout)
    token.cancel(str(error), timeout_seconds=timeout)
    raise error
