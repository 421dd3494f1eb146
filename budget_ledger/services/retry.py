"""
Bounded retry for storage access.

Every ledger read and every multi-step write runs through
retry_call(). A failure is either permanent (the record does not
exist, the request breaks a ledger rule) and is raised after the
first attempt, or transient (lock contention, a dropped
connection, a racing insert) and is retried with exponential
backoff until the attempt budget is spent.

The callable passed in must be a complete unit of work: a retry
re-executes all of it, never a part.
"""

import logging
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from sqlalchemy.exc import NoResultFound, SQLAlchemyError
from tenacity import (
    Retrying,
    before_sleep_log,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)
from tenacity.wait import wait_base

from budget_ledger.config import get_settings
from budget_ledger.errors import LedgerError, StorageError

logger = logging.getLogger(__name__)

T = TypeVar("T")


def is_transient(exc: BaseException) -> bool:
    """Whether a failed attempt is worth repeating."""
    if isinstance(exc, (LedgerError, NoResultFound)):
        return False
    return isinstance(exc, SQLAlchemyError)


def _default_wait() -> wait_base:
    return wait_exponential(
        multiplier=0.05, max=get_settings().DB_RETRY_WAIT_MAX
    )


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = field(
        default_factory=lambda: get_settings().DB_MAX_RETRIES
    )
    wait: wait_base = field(default_factory=_default_wait)


def retry_call(fn: Callable[[], T], policy: RetryPolicy | None = None) -> T:
    """
    Run fn until it succeeds, fails permanently or runs out of attempts.

    Permanent failures propagate unchanged. A storage error that is
    still failing on the last attempt is raised as StorageError,
    chained to the original exception.
    """
    policy = policy or RetryPolicy()
    retrying = Retrying(
        stop=stop_after_attempt(policy.max_attempts),
        wait=policy.wait,
        retry=retry_if_exception(is_transient),
        before_sleep=before_sleep_log(logger, logging.WARNING),
        reraise=True,
    )
    try:
        return retrying(fn)
    except SQLAlchemyError as e:
        if not is_transient(e):
            raise
        attempts = retrying.statistics.get("attempt_number", 1)
        raise StorageError(
            f"storage operation failed after {attempts} attempt(s): {e}"
        ) from e
