"""Club naming and membership rules."""

from __future__ import annotations

from collections.abc import Sequence

from turfwar.domain.enums import ClubRole
from turfwar.domain.errors import ValidationError
from turfwar.domain.models import ClubMember, UserID
from turfwar.domain.rules_config import DEFAULT_RULES, RulesConfig

_ROLE_ORDER = {ClubRole.FOUNDER: 0, ClubRole.OFFICER: 1, ClubRole.MEMBER: 2}


def validate_name(name: str, rules: RulesConfig = DEFAULT_RULES) -> str:
    cleaned = name.strip()
    if len(cleaned) < rules.club.name_min_length:
        raise ValidationError(
            f"Club name must be at least {rules.club.name_min_length} characters"
        )
    return cleaned


def normalize_tag(tag: str | None, name: str, rules: RulesConfig = DEFAULT_RULES) -> str:
    """Upper-case the tag, deriving it from the name when absent."""

    limit = rules.club.tag_max_length
    if not tag or not tag.strip():
        return name.strip()[:limit].rstrip().upper()
    cleaned = tag.strip().upper()
    if len(cleaned) > limit:
        raise ValidationError(f"Club tag must be at most {limit} characters")
    return cleaned


def validate_min_level(value: int, rules: RulesConfig = DEFAULT_RULES) -> int:
    if value < rules.club.min_level_floor:
        raise ValidationError(f"minLevelToJoin must be at least {rules.club.min_level_floor}")
    return value


def pick_successor(
    founder_id: UserID, officers: Sequence[UserID], members: Sequence[UserID]
) -> UserID | None:
    """Choose the next founder: the first officer, else the earliest other member."""

    for officer in officers:
        if officer != founder_id:
            return officer
    for member in members:
        if member != founder_id:
            return member
    return None


def sort_members(members: Sequence[ClubMember]) -> list[ClubMember]:
    """Founder first, then officers, then members; each group by level descending."""

    return sorted(members, key=lambda member: (_ROLE_ORDER[member.role], -member.level))
