"""Tests for transaction conflict retries."""

import pytest
from asyncpg.exceptions import (
    DeadlockDetectedError,
    SerializationError,
    UniqueViolationError,
)

from database import TransactionConflictError
from database.transaction import retry_on_conflict

def flaky(failures):
    """Create an attempt that raises each error in failures, then succeeds."""
    calls = []

    async def attempt():
        calls.append(1)
        if len(calls) <= len(failures):
            raise failures[len(calls) - 1]
        return "committed"

    return attempt, calls

@pytest.mark.asyncio
async def test_retries_until_success():
    """Test that retryable errors re-run the attempt."""
    attempt, calls = flaky([
        SerializationError("restart transaction"),
        DeadlockDetectedError("deadlock"),
        UniqueViolationError("duplicate key"),
    ])

    result = await retry_on_conflict(attempt, max_attempts=5, factor=0)

    assert result == "committed"
    assert len(calls) == 4

@pytest.mark.asyncio
async def test_exhausted_attempts_raise_conflict():
    """Test that the last conflict is reported as TransactionConflictError."""
    attempt, calls = flaky([SerializationError("restart transaction")] * 3)

    with pytest.raises(TransactionConflictError) as exc_info:
        await retry_on_conflict(attempt, max_attempts=3, factor=0)

    assert len(calls) == 3
    assert isinstance(exc_info.value.__cause__, SerializationError)

@pytest.mark.asyncio
async def test_other_errors_propagate():
    """Test that non-conflict errors are not retried."""
    attempt, calls = flaky([ValueError("bad input")])

    with pytest.raises(ValueError):
        await retry_on_conflict(attempt, max_attempts=5, factor=0)

    assert len(calls) == 1

@pytest.mark.asyncio
async def test_invalid_max_attempts():
    """Test that at least one attempt is required."""
    attempt, calls = flaky([])

    with pytest.raises(ValueError):
        await retry_on_conflict(attempt, max_attempts=0)

    assert calls == []
