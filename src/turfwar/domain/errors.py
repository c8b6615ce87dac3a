"""Domain error taxonomy.

Every failure that a caller can act on is raised as a subclass of
:class:`TurfError` carrying an :class:`ErrorKind`. Storage failures are not
part of this hierarchy and propagate as the driver's own exceptions.
"""

from __future__ import annotations

from turfwar.domain.enums import ErrorKind


class TurfError(Exception):
    """Base class for domain failures."""

    kind: ErrorKind = ErrorKind.INVALID_STATE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(TurfError):
    """A referenced club, territory or user does not exist."""

    kind = ErrorKind.NOT_FOUND


class ConflictError(TurfError):
    """Uniqueness violation, already-claimed territory or retry exhaustion."""

    kind = ErrorKind.CONFLICT


class InvalidStateError(TurfError):
    """Operation not valid given the caller's membership or territory state."""

    kind = ErrorKind.INVALID_STATE


class ForbiddenError(TurfError):
    """Caller lacks the role or eligibility for the operation."""

    kind = ErrorKind.FORBIDDEN


class CapacityError(TurfError):
    """Defender roster is full."""

    kind = ErrorKind.CAPACITY


class ValidationError(TurfError, ValueError):
    """Input values outside their documented range."""

    kind = ErrorKind.VALIDATION


class DeadlineExceededError(TurfError):
    """The caller's deadline expired before the operation committed."""

    kind = ErrorKind.DEADLINE_EXCEEDED
