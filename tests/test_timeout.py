"""
Tests for resilient.resilience.timeout.

A timed-out operation is not stopped: these tests check that it keeps
running in the background and that a CancellationToken lets it stop itself.
"""

import asyncio

import pytest

from resilient.errors import (
    ConfigurationError,
    OperationCancelledError,
    OperationTimeoutError,
    ResilienceError,
)
from resilient.resilience import (
    CancellationToken,
    abandoned_count,
    current_token,
    race_with_timeout,
)


def delayed(value, seconds):
    async def operation():
        await asyncio.sleep(seconds)
        return value
    return operation


class TestRaceWithTimeout:
    """Tests for race_with_timeout."""

    @pytest.mark.asyncio
    async def test_fast_operation_wins(self):
        result = await race_with_timeout(delayed("fast", 0.05), 0.1)
        assert result == "fast"

    @pytest.mark.asyncio
    async def test_slow_operation_times_out(self):
        with pytest.raises(OperationTimeoutError, match="100ms") as exc_info:
            await race_with_timeout(delayed("slow", 0.2), 0.1)

        assert str(exc_info.value) == "Operation timed out after 100ms"
        assert exc_info.value.timeout_seconds == 0.1

    @pytest.mark.asyncio
    async def test_timeout_error_is_distinguishable(self):
        with pytest.raises(OperationTimeoutError) as exc_info:
            await race_with_timeout(delayed(None, 0.2), 0.01)

        assert isinstance(exc_info.value, ResilienceError)
        assert isinstance(exc_info.value, TimeoutError)
        assert exc_info.value.error.category.value == "timeout"

    @pytest.mark.asyncio
    async def test_operation_error_propagates(self):
        async def failing():
            raise ConnectionError("refused")

        with pytest.raises(ConnectionError, match="refused"):
            await race_with_timeout(failing, 1.0)

    @pytest.mark.asyncio
    async def test_timed_out_operation_keeps_running(self):
        """Timed out does not mean stopped."""
        finished = asyncio.Event()

        async def slow():
            await asyncio.sleep(0.05)
            finished.set()
            return "late"

        with pytest.raises(OperationTimeoutError):
            await race_with_timeout(slow, 0.01)

        assert not finished.is_set()
        assert abandoned_count() >= 1
        await asyncio.wait_for(finished.wait(), timeout=1.0)
        await asyncio.sleep(0)
        assert finished.is_set()

    @pytest.mark.asyncio
    async def test_abandoned_failure_is_discarded(self):
        async def slow_failure():
            await asyncio.sleep(0.02)
            raise RuntimeError("too late")

        with pytest.raises(OperationTimeoutError):
            await race_with_timeout(slow_failure, 0.005)

        await asyncio.sleep(0.05)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("timeout", [0, -1.0])
    async def test_rejects_non_positive_timeout(self, timeout):
        with pytest.raises(ConfigurationError):
            await race_with_timeout(delayed(1, 0), timeout)


class TestCancellationToken:
    """Tests for cooperative cancellation on timeout."""

    @pytest.mark.asyncio
    async def test_token_signalled_on_timeout(self):
        token = CancellationToken()
        stopped = asyncio.Event()

        async def cooperative():
            await token.wait()
            stopped.set()

        with pytest.raises(OperationTimeoutError):
            await race_with_timeout(cooperative, 0.01, token=token)

        assert token.cancelled
        assert "timed out" in token.reason
        await asyncio.wait_for(stopped.wait(), timeout=1.0)

    @pytest.mark.asyncio
    async def test_token_untouched_on_success(self):
        token = CancellationToken()

        await race_with_timeout(delayed("ok", 0), 1.0, token=token)

        assert not token.cancelled
        assert token.reason is None

    def test_raise_if_cancelled(self):
        token = CancellationToken()
        token.raise_if_cancelled()

        token.cancel("shutdown")

        with pytest.raises(OperationCancelledError, match="Operation cancelled") as exc_info:
            token.raise_if_cancelled()
        assert token.reason == "shutdown"
        assert isinstance(exc_info.value, Exception)
        assert exc_info.value.reason == "shutdown"

    @pytest.mark.asyncio
    async def test_timed_out_token_raises_timeout(self):
        token = CancellationToken()

        with pytest.raises(OperationTimeoutError):
            await race_with_timeout(delayed(None, 0.05), 0.01, token=token)

        assert token.timed_out
        with pytest.raises(OperationTimeoutError, match="10ms"):
            token.raise_if_cancelled()

    @pytest.mark.asyncio
    async def test_current_token_inside_race(self):
        token = CancellationToken()
        seen = []

        async def operation():
            seen.append(current_token())
            return "ok"

        assert current_token() is None
        assert await race_with_timeout(operation, 1.0, token=token) == "ok"
        assert seen == [token]
        assert current_token() is None

    @pytest.mark.asyncio
    async def test_fresh_token_per_race(self):
        seen = []

        async def operation():
            seen.append(current_token())

        await race_with_timeout(operation, 1.0)
        await race_with_timeout(operation, 1.0)

        assert all(isinstance(token, CancellationToken) for token in seen)
        assert seen[0] is not seen[1]

    def test_cancel_cascades_to_children(self):
        parent = CancellationToken()
        child = parent.child()
        grandchild = child.child()

        parent.cancel("shutdown")

        assert child.cancelled and grandchild.cancelled
        assert grandchild.reason == "shutdown"
        assert not grandchild.timed_out

    def test_child_cancel_does_not_reach_parent(self):
        parent = CancellationToken()
        child = parent.child()

        child.cancel("attempt timed out", timeout_seconds=0.5)

        assert child.timed_out
        assert not parent.cancelled
        assert not parent.child().cancelled

    def test_child_of_cancelled_parent_starts_cancelled(self):
        parent = CancellationToken()
        parent.cancel("shutdown")

        child = parent.child()

        assert child.cancelled
        with pytest.raises(OperationCancelledError):
            child.raise_if_cancelled()
