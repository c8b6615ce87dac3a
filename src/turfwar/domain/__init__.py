"""Pure rules for clubs, territories and challenges.

Modules here never touch the database; services load rows, convert them to
the dataclasses in :mod:`turfwar.domain.models` and call into these rules.
"""

from turfwar.domain import battle, leaderboard, membership, permissions, roster
from turfwar.domain.enums import ClubRole, ErrorKind
from turfwar.domain.errors import (
    CapacityError,
    ConflictError,
    DeadlineExceededError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    TurfError,
    ValidationError,
)
from turfwar.domain.rules_config import DEFAULT_RULES, RulesConfig

__all__ = [
    "DEFAULT_RULES",
    "CapacityError",
    "ClubRole",
    "ConflictError",
    "DeadlineExceededError",
    "ErrorKind",
    "ForbiddenError",
    "InvalidStateError",
    "NotFoundError",
    "RulesConfig",
    "TurfError",
    "ValidationError",
    "battle",
    "leaderboard",
    "membership",
    "permissions",
    "roster",
]
