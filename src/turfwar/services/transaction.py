"""Transactional execution with optimistic-concurrency retries.

Every mutating service call funnels through :func:`run_in_transaction`. The
unit of work runs in a fresh session inside a single database transaction:
it reads, validates, and mutates, and the versioned rows it touched are
written with ``UPDATE ... WHERE version = :loaded``. When another caller
committed first the flush raises ``StaleDataError``; the whole unit is then
rolled back and re-run against fresh state, up to the configured number of
attempts.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import TypeVar

from sqlalchemy.exc import IntegrityError, OperationalError
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.orm.exc import StaleDataError

from turfwar.domain.errors import ConflictError, DeadlineExceededError
from turfwar.domain.rules_config import ConcurrencyRules

logger = logging.getLogger(__name__)

T = TypeVar("T")


class Deadline:
    """Caller-supplied time budget for one operation."""

    def __init__(self, timeout: float | None, *, clock: Callable[[], float] = time.monotonic):
        if timeout is not None and timeout <= 0:
            raise DeadlineExceededError("Deadline already expired")
        self._clock = clock
        self._expires_at = None if timeout is None else clock() + timeout

    def remaining(self) -> float | None:
        if self._expires_at is None:
            return None
        return max(0.0, self._expires_at - self._clock())

    def expired(self) -> bool:
        return self._expires_at is not None and self._clock() >= self._expires_at

    def check(self, operation: str) -> None:
        if self.expired():
            raise DeadlineExceededError(f"Deadline exceeded during {operation}")


def backoff_delay(attempt: int, rules: ConcurrencyRules) -> float:
    """Exponential delay before retry number ``attempt`` (1-based)."""

    return min(rules.backoff_base_seconds * 2 ** (attempt - 1), rules.backoff_max_seconds)


def is_retryable(exc: Exception) -> bool:
    """Whether ``exc`` signals a lost race rather than a real failure."""

    if isinstance(exc, StaleDataError):
        return True
    if isinstance(exc, OperationalError):
        return "locked" in str(exc.orig).lower()
    return False


def run_in_transaction(
    session_factory: sessionmaker[Session],
    work: Callable[[Session], T],
    *,
    operation: str,
    rules: ConcurrencyRules,
    timeout: float | None = None,
    sleep: Callable[[float], None] = time.sleep,
) -> T:
    """Run ``work`` in one transaction, retrying lost optimistic races.

    Args:
        session_factory: Factory producing a new session per attempt
        work: Unit of work; receives the session and returns the result
        operation: Name used in logs and error messages
        rules: Retry policy
        timeout: Optional time budget in seconds
        sleep: Sleep function, replaceable in tests

    Returns:
        Whatever ``work`` returned on the attempt that committed

    Raises:
        ConflictError: Retries exhausted, or a uniqueness constraint fired
        DeadlineExceededError: The time budget ran out; nothing was committed
        TurfError: Any domain failure raised by ``work`` (not retried)
    """
    deadline = Deadline(timeout)
    for attempt in range(1, rules.max_attempts + 1):
        deadline.check(operation)
        try:
            with session_factory() as session, session.begin():
                result = work(session)
                session.flush()
                deadline.check(operation)
            return result
        except IntegrityError as exc:
            raise ConflictError(f"{operation} conflicts with existing data") from exc
        except (StaleDataError, OperationalError) as exc:
            if not is_retryable(exc):
                raise
            if attempt == rules.max_attempts:
                logger.warning(
                    "%s lost %d optimistic races; giving up", operation, rules.max_attempts
                )
                raise ConflictError(
                    f"{operation} conflicted with a concurrent update; re-fetch and retry"
                ) from exc
            delay = backoff_delay(attempt, rules)
            remaining = deadline.remaining()
            if remaining is not None and delay >= remaining:
                raise DeadlineExceededError(f"Deadline exceeded during {operation}") from exc
            logger.warning(
                "%s hit a write conflict (attempt %d/%d); retrying in %.3fs",
                operation,
                attempt,
                rules.max_attempts,
                delay,
            )
            sleep(delay)

    raise AssertionError("unreachable")  # pragma: no cover
