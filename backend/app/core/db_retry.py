"""Retry wrapper for database operations.

Only ``OperationalError`` (lost connection, locked database) is retried; every
other exception propagates on the first attempt. Integrity errors that survive
are translated into the application error taxonomy.
"""

import logging
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from tenacity import (
    RetryCallState,
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
)

from app.core.errors import translate_integrity_error

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_ATTEMPTS = 3


def _log_retry(state: RetryCallState) -> None:
    exc = state.outcome.exception() if state.outcome else None
    logger.warning(
        "Retrying DB operation %s (attempt %d): %s",
        getattr(state.fn, "__name__", "operation"),
        state.attempt_number,
        exc,
    )


def with_db_retry(
    operation: Callable[[], T],
    *,
    table: str | None = None,
    attempts: int = DEFAULT_ATTEMPTS,
    max_wait: float = 5.0,
) -> T:
    """Run ``operation`` with exponential backoff on transient database errors."""
    retrying = retry(
        retry=retry_if_exception_type(OperationalError),
        stop=stop_after_attempt(attempts),
        wait=wait_exponential(multiplier=1, max=max_wait),
        before_sleep=_log_retry,
        reraise=True,
    )(operation)

    try:
        return retrying()
    except IntegrityError as e:
        raise translate_integrity_error(e, table) from e
