"""Tests for RetryPolicy."""

from __future__ import annotations

import time

import pytest

from tablespec.execution.retry import RetryPolicy


def test_defaults() -> None:
    policy = RetryPolicy()
    assert policy.max_attempts == 3
    assert policy.base_delay == 0.2
    assert policy.max_delay == 5.0


def test_should_retry() -> None:
    policy = RetryPolicy(max_attempts=3)
    assert policy.should_retry(1) is True
    assert policy.should_retry(2) is True
    assert policy.should_retry(3) is False
    assert policy.should_retry(0) is False


def test_delay_for_attempt_exponential() -> None:
    policy = RetryPolicy(base_delay=1.0, max_delay=100.0, jitter=False)
    assert policy.delay_for_attempt(1) == 1.0
    assert policy.delay_for_attempt(2) == 2.0
    assert policy.delay_for_attempt(3) == 4.0
    assert policy.delay_for_attempt(10) == 100.0  # capped


def test_delay_with_jitter_in_range() -> None:
    policy = RetryPolicy(base_delay=2.0, max_delay=10.0, jitter=True)
    for _ in range(20):
        # attempt 2 -> 4.0; jitter 0.5..1.5 -> 2.0..6.0
        assert 2.0 <= policy.delay_for_attempt(2) <= 6.0


def test_delay_for_attempt_zero_returns_zero() -> None:
    assert RetryPolicy(jitter=False).delay_for_attempt(0) == 0.0


def test_invalid_configuration() -> None:
    with pytest.raises(ValueError, match="max_attempts"):
        RetryPolicy(max_attempts=0)
    with pytest.raises(ValueError, match="base_delay and max_delay"):
        RetryPolicy(base_delay=-0.1)
    with pytest.raises(ValueError, match="base_delay must be <= max_delay"):
        RetryPolicy(base_delay=10.0, max_delay=1.0)


@pytest.mark.asyncio
async def test_wait() -> None:
    policy = RetryPolicy(base_delay=0.01, jitter=False)
    t0 = time.monotonic()
    await policy.wait(2)
    assert time.monotonic() - t0 >= 0.015
