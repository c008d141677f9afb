"""Tests for the bounded polling policy."""

from unittest.mock import AsyncMock

import pytest

from checkout.exceptions import GatewayError, PollingTimeoutError
from checkout.services.polling import RetryPolicy, poll_until


class TestRetryPolicy:
    def test_attempts_are_timeout_over_interval(self):
        assert RetryPolicy(interval=2.0, timeout=30.0).max_attempts == 15

    def test_attempts_round_down(self):
        assert RetryPolicy(interval=2.0, timeout=5.0).max_attempts == 2

    def test_budget_shorter_than_interval_allows_no_attempts(self):
        assert RetryPolicy(interval=5.0, timeout=1.0).max_attempts == 0
        assert RetryPolicy(interval=5.0, timeout=0).max_attempts == 0

    def test_interval_must_be_positive(self):
        with pytest.raises(ValueError):
            RetryPolicy(interval=0, timeout=30.0)

    def test_timeout_cannot_be_negative(self):
        with pytest.raises(ValueError):
            RetryPolicy(interval=1.0, timeout=-1)


class TestPollUntil:
    async def test_returns_first_accepted_result(self, sleep):
        fetch = AsyncMock(side_effect=["PENDING", "PENDING", "APPROVED"])
        policy = RetryPolicy(interval=2.0, timeout=30.0, sleep=sleep)

        result = await poll_until(fetch, lambda status: status != "PENDING", policy)

        assert result == "APPROVED"
        assert fetch.await_count == 3
        assert sleep.await_count == 2
        sleep.assert_awaited_with(2.0)

    async def test_no_sleep_when_first_attempt_settles(self, sleep):
        fetch = AsyncMock(return_value="DECLINED")
        policy = RetryPolicy(interval=2.0, timeout=30.0, sleep=sleep)

        assert await poll_until(fetch, lambda status: status != "PENDING", policy) == "DECLINED"
        sleep.assert_not_awaited()

    async def test_timeout_after_budget(self, sleep):
        fetch = AsyncMock(return_value="PENDING")
        policy = RetryPolicy(interval=2.0, timeout=10.0, sleep=sleep)

        with pytest.raises(PollingTimeoutError, match="Polling timeout exceeded") as exc:
            await poll_until(fetch, lambda status: status != "PENDING", policy)

        assert exc.value.attempts == 5
        assert fetch.await_count == 5
        # no wait after the final attempt
        assert sleep.await_count == 4

    async def test_fetch_errors_propagate(self, sleep):
        fetch = AsyncMock(side_effect=GatewayError("HTTP 500", status_code=500))
        policy = RetryPolicy(interval=2.0, timeout=10.0, sleep=sleep)

        with pytest.raises(GatewayError):
            await poll_until(fetch, lambda status: True, policy)
        assert fetch.await_count == 1

    async def test_zero_attempt_budget_times_out_without_fetching(self, sleep):
        fetch = AsyncMock(return_value="APPROVED")
        policy = RetryPolicy(interval=5.0, timeout=1.0, sleep=sleep)

        with pytest.raises(PollingTimeoutError) as exc:
            await poll_until(fetch, lambda status: status != "PENDING", policy)

        assert exc.value.attempts == 0
        fetch.assert_not_awaited()
        sleep.assert_not_awaited()
