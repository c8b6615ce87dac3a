"""Role capabilities for club management.

The capability table maps each role to the club settings it may change.
Fields outside the caller's set are dropped from a patch rather than
rejected; callers get back the list of dropped names for logging.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence

from turfwar.domain.enums import ClubRole
from turfwar.domain.models import UserID

CLUB_SETTINGS = frozenset(
    {
        "name",
        "tag",
        "description",
        "color",
        "emblem",
        "is_recruiting",
        "min_level_to_join",
    }
)

EDITABLE_FIELDS: Mapping[ClubRole, frozenset[str]] = {
    ClubRole.FOUNDER: CLUB_SETTINGS,
    ClubRole.OFFICER: frozenset({"description", "is_recruiting"}),
    ClubRole.MEMBER: frozenset(),
}


def role_in_club(
    user_id: UserID,
    founder_id: UserID,
    officers: Sequence[UserID],
    members: Sequence[UserID],
) -> ClubRole | None:
    """Return the user's role in a club, or None for outsiders."""

    if user_id == founder_id:
        return ClubRole.FOUNDER
    if user_id in officers:
        return ClubRole.OFFICER
    if user_id in members:
        return ClubRole.MEMBER
    return None


def can_manage(role: ClubRole | None) -> bool:
    """Whether the role may change club settings at all."""

    return role is not None and bool(EDITABLE_FIELDS[role])


def filter_patch(
    role: ClubRole, patch: Mapping[str, object]
) -> tuple[dict[str, object], list[str]]:
    """Split a patch into the fields ``role`` may apply and the dropped rest."""

    allowed = EDITABLE_FIELDS[role]
    applied = {key: value for key, value in patch.items() if key in allowed}
    dropped = sorted(key for key in patch if key not in allowed)
    return applied, dropped
