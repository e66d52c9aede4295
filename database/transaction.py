"""Retry support for serializable transactions.

CockroachDB runs every transaction at SERIALIZABLE isolation. When two
transactions touch the same rows, one of them is aborted with SQLSTATE 40001
and the client is expected to run the whole transaction again from the start.
This module wraps a transaction attempt so that happens automatically, with
exponential backoff between attempts.
"""
import logging
from typing import Any, Awaitable, Callable, Dict, TypeVar

import backoff
from asyncpg.exceptions import (
    DeadlockDetectedError,
    SerializationError,
    UniqueViolationError,
)

from .exceptions import TransactionConflictError

logger = logging.getLogger(__name__)

T = TypeVar('T')

# A unique violation can only come from a concurrent insert of the same key,
# so re-running the attempt lets it observe the winner's row.
RETRYABLE_ERRORS = (
    SerializationError,
    DeadlockDetectedError,
    UniqueViolationError,
)

DEFAULT_MAX_ATTEMPTS = 5


def _log_retry(details: Dict[str, Any]) -> None:
    """Log a retry scheduled by backoff."""
    logger.warning(
        f"Transaction conflict on attempt {details['tries']}, "
        f"retrying in {details['wait']:.3f}s"
    )


async def retry_on_conflict(
    attempt: Callable[[], Awaitable[T]],
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    factor: float = 0.05,
    max_delay: float = 2.0
) -> T:
    """Run a transaction attempt, re-running it on write conflicts.

    Args:
        attempt: Coroutine function that opens, runs and commits one
            transaction. It is called again from scratch on every retry.
        max_attempts: Total number of attempts before giving up
        factor: Base delay in seconds for the exponential backoff
        max_delay: Upper bound for a single backoff delay in seconds

    Returns:
        Whatever the successful attempt returned

    Raises:
        ValueError: If max_attempts is less than 1
        TransactionConflictError: If every attempt hit a retryable error
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    retrying = backoff.on_exception(
        backoff.expo,
        RETRYABLE_ERRORS,
        max_tries=max_attempts,
        on_backoff=_log_retry,
        factor=factor,
        max_value=max_delay
    )(attempt)

    try:
        return await retrying()
    except RETRYABLE_ERRORS as e:
        logger.error(f"Transaction failed after {max_attempts} attempts: {e}")
        raise TransactionConflictError(
            f"Transaction aborted after {max_attempts} attempts: {e}"
        ) from e
