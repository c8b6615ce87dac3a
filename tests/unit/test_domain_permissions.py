"""Tests for the club capability table."""

import pytest

from turfwar.domain.enums import ClubRole
from turfwar.domain.models import UserID
from turfwar.domain.permissions import (
    CLUB_SETTINGS,
    EDITABLE_FIELDS,
    can_manage,
    filter_patch,
    role_in_club,
)

FOUNDER = UserID("alice")
OFFICERS = [UserID("carol")]
MEMBERS = [UserID("alice"), UserID("carol"), UserID("dave")]


@pytest.mark.parametrize(
    ("user_id", "expected"),
    [
        ("alice", ClubRole.FOUNDER),
        ("carol", ClubRole.OFFICER),
        ("dave", ClubRole.MEMBER),
        ("eve", None),
    ],
)
def test_role_in_club(user_id, expected):
    assert role_in_club(UserID(user_id), FOUNDER, OFFICERS, MEMBERS) == expected


def test_only_founder_and_officer_can_manage():
    assert can_manage(ClubRole.FOUNDER)
    assert can_manage(ClubRole.OFFICER)
    assert not can_manage(ClubRole.MEMBER)
    assert not can_manage(None)


def test_founder_may_change_every_setting():
    assert EDITABLE_FIELDS[ClubRole.FOUNDER] == CLUB_SETTINGS


def test_officer_patch_drops_restricted_fields():
    applied, dropped = filter_patch(
        ClubRole.OFFICER,
        {"description": "New", "is_recruiting": False, "name": "Hijack", "color": "#000000"},
    )
    assert applied == {"description": "New", "is_recruiting": False}
    assert dropped == ["color", "name"]


def test_unknown_fields_are_dropped_for_founder():
    applied, dropped = filter_patch(ClubRole.FOUNDER, {"name": "Lions", "wins": 99})
    assert applied == {"name": "Lions"}
    assert dropped == ["wins"]
