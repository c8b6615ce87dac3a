"""Defender roster rules."""

from __future__ import annotations

from collections.abc import Sequence

from turfwar.domain.errors import CapacityError, ConflictError
from turfwar.domain.models import Defender, UserID
from turfwar.domain.rules_config import DEFAULT_RULES, RulesConfig


def control_strength(defenders: Sequence[Defender]) -> int:
    """Sum of the defenders' levels; zero for an empty roster."""

    return sum(defender.level for defender in defenders)


def is_defending(defenders: Sequence[Defender], user_id: UserID) -> bool:
    return any(defender.user_id == user_id for defender in defenders)


def with_defender(
    defenders: Sequence[Defender],
    defender: Defender,
    *,
    rules: RulesConfig = DEFAULT_RULES,
) -> list[Defender]:
    """Return a new roster with ``defender`` appended.

    Raises:
        ConflictError: The user is already on the roster
        CapacityError: The roster is full
    """

    if is_defending(defenders, defender.user_id):
        raise ConflictError("You are already defending this territory")
    if len(defenders) >= rules.roster.max_defenders:
        raise CapacityError("Maximum defenders reached for this territory")
    return [*defenders, defender]


def without_defender(defenders: Sequence[Defender], user_id: UserID) -> list[Defender]:
    """Return the roster with ``user_id`` removed.

    The last defender of a held territory stays on it, since a controlled
    territory always has at least one defender.
    """

    remaining = [defender for defender in defenders if defender.user_id != user_id]
    return remaining if remaining else list(defenders)
