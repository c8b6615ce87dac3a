"""Tests for club naming and membership rules."""

import pytest

from turfwar.domain.enums import ClubRole
from turfwar.domain.errors import ValidationError
from turfwar.domain.leaderboard import rank_clubs
from turfwar.domain.membership import (
    normalize_tag,
    pick_successor,
    sort_members,
    validate_min_level,
    validate_name,
)
from turfwar.domain.models import Club, ClubID, ClubMember, UserID


class TestNaming:
    def test_name_is_stripped(self):
        assert validate_name("  Iron Lions ") == "Iron Lions"

    def test_short_name_rejected(self):
        with pytest.raises(ValidationError, match="at least 3"):
            validate_name(" ab ")

    def test_tag_defaults_to_name_prefix(self):
        assert normalize_tag(None, "Iron Lions") == "IRON"
        assert normalize_tag("  ", "abc") == "ABC"

    def test_tag_is_upper_cased(self):
        assert normalize_tag("lion", "Iron Lions") == "LION"

    def test_long_tag_rejected(self):
        with pytest.raises(ValidationError, match="at most 5"):
            normalize_tag("LIONSS", "Iron Lions")

    def test_min_level_floor(self):
        assert validate_min_level(1) == 1
        with pytest.raises(ValidationError):
            validate_min_level(0)


class TestSuccession:
    def test_first_officer_wins(self):
        successor = pick_successor(
            UserID("alice"),
            [UserID("carol"), UserID("erin")],
            [UserID("alice"), UserID("dave"), UserID("carol"), UserID("erin")],
        )
        assert successor == "carol"

    def test_falls_back_to_earliest_member(self):
        successor = pick_successor(
            UserID("alice"), [], [UserID("alice"), UserID("dave"), UserID("bob")]
        )
        assert successor == "dave"

    def test_sole_founder_has_no_successor(self):
        assert pick_successor(UserID("alice"), [], [UserID("alice")]) is None


def _member(user_id, level, role):
    return ClubMember(
        id=UserID(user_id), username=user_id, handle=None, level=level, avatar_url=None, role=role
    )


def test_members_sorted_by_role_then_level():
    ordered = sort_members(
        [
            _member("m1", 3, ClubRole.MEMBER),
            _member("o1", 2, ClubRole.OFFICER),
            _member("m2", 9, ClubRole.MEMBER),
            _member("f", 1, ClubRole.FOUNDER),
        ]
    )
    assert [m.id for m in ordered] == ["f", "o1", "m2", "m1"]


def _club(club_id, name, territories, power):
    return Club(
        id=ClubID(club_id),
        name=name,
        tag=name[:5].upper(),
        description="",
        color="#FF6B6B",
        emblem="shield",
        founder_id=UserID("x"),
        founder_name="X",
        territories_controlled=territories,
        total_power=power,
    )


def test_leaderboard_ranks_by_territories_then_power():
    entries = rank_clubs(
        [
            _club("a", "Alpha", 1, 50),
            _club("b", "Bravo", 3, 10),
            _club("c", "Charlie", 1, 70),
            _club("d", "Delta", 0, 99),
        ],
        limit=3,
    )
    assert [(e.rank, e.id) for e in entries] == [(1, "b"), (2, "c"), (3, "a")]


def test_leaderboard_ties_fall_back_to_name():
    entries = rank_clubs([_club("z", "Zulu", 1, 5), _club("y", "Yankee", 1, 5)], limit=10)
    assert [e.name for e in entries] == ["Yankee", "Zulu"]
