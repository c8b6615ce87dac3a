"""Integration tests for TerritoryLedger against a SQLite database."""

import pytest

from turfwar.domain.errors import (
    CapacityError,
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from turfwar.domain.models import ClubDraft, TerritoryID, UserID
from turfwar.utils.geo import BoundingBox


@pytest.fixture
def lions(clubs, register):
    register("alice", level=5)
    return clubs.create_club(UserID("alice"), ClubDraft(name="Iron Lions"))


class TestUpsert:
    def test_creates_unclaimed_territory(self, territories, place):
        territory = territories.upsert_territory(place("gym1", name="Downtown Gym"))

        assert territory.id == "territory_gym1"
        assert territory.place_id == "gym1"
        assert territory.name == "Downtown Gym"
        assert territory.controlling_club_id is None
        assert territory.defenders == []
        assert territory.control_strength == 0
        assert territory.total_battles == 0

    def test_refresh_preserves_control(self, territories, place, lions):
        territories.upsert_territory(place("gym1"))
        territories.claim(UserID("alice"), TerritoryID("territory_gym1"))

        refreshed = territories.upsert_territory(place("gym1", name="Renamed Gym", rating=3.9))

        assert refreshed.name == "Renamed Gym"
        assert refreshed.rating == 3.9
        assert refreshed.controlling_club_id == lions.id
        assert refreshed.control_strength == 5

    def test_invalid_coordinates(self, territories, place):
        with pytest.raises(ValidationError, match="latitude"):
            territories.upsert_territory(place("gym1", lat=95.0))


class TestClaim:
    def test_claim_scenario(self, territories, clubs, place, lions):
        t1 = territories.upsert_territory(place("t1", name="Muscle Beach"))

        result = territories.claim(UserID("alice"), t1.id)

        assert result.message == "Successfully claimed Muscle Beach for Iron Lions!"
        claimed = territories.get_territory(t1.id)
        assert claimed.controlling_club_id == lions.id
        assert claimed.controlling_club_name == "Iron Lions"
        assert claimed.controlling_club_color == lions.color
        assert [(d.user_id, d.level) for d in claimed.defenders] == [("alice", 5)]
        assert claimed.control_strength == 5
        assert clubs.get_club(lions.id).territories_controlled == 1

    def test_requires_club(self, territories, register, place):
        register("bob")
        t1 = territories.upsert_territory(place("t1"))
        with pytest.raises(ForbiddenError, match="must be in a club"):
            territories.claim(UserID("bob"), t1.id)

    def test_unknown_user_is_forbidden(self, territories, place):
        t1 = territories.upsert_territory(place("t1"))
        with pytest.raises(ForbiddenError):
            territories.claim(UserID("nobody"), t1.id)

    def test_missing_territory(self, territories, lions):
        with pytest.raises(NotFoundError, match="Territory not found"):
            territories.claim(UserID("alice"), TerritoryID("territory_nowhere"))

    def test_already_claimed(self, territories, clubs, register, place, lions):
        register("bob")
        clubs.create_club(UserID("bob"), ClubDraft(name="Night Owls"))
        t1 = territories.upsert_territory(place("t1"))
        territories.claim(UserID("alice"), t1.id)

        with pytest.raises(ConflictError, match="already claimed"):
            territories.claim(UserID("bob"), t1.id)
        with pytest.raises(ConflictError):
            territories.claim(UserID("alice"), t1.id)


class TestDefenders:
    def test_add_defender_recomputes_strength(self, territories, clubs, register, place, lions):
        register("bob", level=3)
        clubs.join_club(UserID("bob"), lions.id)
        t1 = territories.upsert_territory(place("t1", name="Muscle Beach"))
        territories.claim(UserID("alice"), t1.id)

        result = territories.add_defender(UserID("bob"), t1.id)

        assert result.message == "You are now defending Muscle Beach! Territory strength: 8"
        defended = territories.get_territory(t1.id)
        assert [d.user_id for d in defended.defenders] == ["alice", "bob"]
        assert defended.control_strength == 8

    def test_second_add_is_conflict(self, territories, place, lions):
        t1 = territories.upsert_territory(place("t1"))
        territories.claim(UserID("alice"), t1.id)

        with pytest.raises(ConflictError, match="already defending"):
            territories.add_defender(UserID("alice"), t1.id)
        assert len(territories.get_territory(t1.id).defenders) == 1

    def test_roster_capacity(self, territories, clubs, register, place, lions):
        t1 = territories.upsert_territory(place("t1"))
        territories.claim(UserID("alice"), t1.id)
        for name in ("bob", "carol", "dave", "erin", "frank"):
            register(name, level=2)
            clubs.join_club(UserID(name), lions.id)
        for name in ("bob", "carol", "dave", "erin"):
            territories.add_defender(UserID(name), t1.id)

        with pytest.raises(CapacityError, match="Maximum defenders"):
            territories.add_defender(UserID("frank"), t1.id)
        full = territories.get_territory(t1.id)
        assert len(full.defenders) == 5
        assert full.control_strength == 5 + 4 * 2

    def test_other_club_cannot_defend(self, territories, clubs, register, place, lions):
        register("bob")
        clubs.create_club(UserID("bob"), ClubDraft(name="Night Owls"))
        t1 = territories.upsert_territory(place("t1"))
        territories.claim(UserID("alice"), t1.id)

        with pytest.raises(ForbiddenError, match="does not control"):
            territories.add_defender(UserID("bob"), t1.id)

    def test_unclaimed_cannot_be_defended(self, territories, place, lions):
        t1 = territories.upsert_territory(place("t1"))
        with pytest.raises(ForbiddenError):
            territories.add_defender(UserID("alice"), t1.id)

    def test_missing_territory(self, territories, lions):
        with pytest.raises(NotFoundError):
            territories.add_defender(UserID("alice"), TerritoryID("territory_nowhere"))


class TestListing:
    @pytest.fixture
    def spread(self, territories, place):
        # Roughly 0, 5.6 and 111 km north of the origin point
        territories.upsert_territory(place("near", name="Near Gym", lat=40.0, lng=-74.0))
        territories.upsert_territory(place("mid", name="Mid Gym", lat=40.05, lng=-74.0))
        territories.upsert_territory(place("far", name="Far Gym", lat=41.0, lng=-74.0))

    def test_list_all(self, territories, spread):
        names = [t.name for t in territories.list_territories()]
        assert names == ["Far Gym", "Mid Gym", "Near Gym"]

    def test_bounding_box(self, territories, spread):
        box = BoundingBox(min_lat=39.9, min_lng=-74.1, max_lat=40.1, max_lng=-73.9)
        found = {t.id for t in territories.list_territories(bounds=box)}
        assert found == {"territory_near", "territory_mid"}

    def test_radius_sorted_by_distance(self, territories, spread):
        found = territories.list_territories(near=(40.0, -74.0), radius_km=10.0)
        assert [t.id for t in found] == ["territory_near", "territory_mid"]
        assert found[0].distance_km == 0.0
        assert found[1].distance_km == pytest.approx(5.56, abs=0.05)

    def test_radius_is_capped(self, territories, spread):
        found = territories.list_territories(near=(40.0, -74.0), radius_km=10_000.0)
        assert len(found) == 3

    def test_controlled_by(self, territories, spread, lions):
        territories.claim(UserID("alice"), TerritoryID("territory_mid"))
        found = territories.list_territories(controlled_by=lions.id)
        assert [t.id for t in found] == ["territory_mid"]

    def test_limit(self, territories, spread):
        assert len(territories.list_territories(limit=2)) == 2

    def test_get_missing(self, territories):
        with pytest.raises(NotFoundError):
            territories.get_territory(TerritoryID("territory_nowhere"))
