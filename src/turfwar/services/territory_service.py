"""Territory Ledger Service for Turfwar.

This module owns per-territory control state: claiming unclaimed
territories, the defender roster and its control strength, and the
descriptive place data refreshed from the external lookup.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from turfwar.domain import models as dm
from turfwar.domain.errors import (
    ConflictError,
    ForbiddenError,
    NotFoundError,
    ValidationError,
)
from turfwar.domain.roster import control_strength, with_defender
from turfwar.domain.rules_config import DEFAULT_RULES, RulesConfig
from turfwar.interfaces.users import IUserDirectory
from turfwar.models import Club, Territory
from turfwar.services.snapshots import defenders_of, to_territory
from turfwar.services.transaction import run_in_transaction
from turfwar.utils.geo import BoundingBox, bounding_box_around, clamp_radius, haversine_km

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50


def territory_id_for(place_id: str) -> dm.TerritoryID:
    return dm.TerritoryID(f"territory_{place_id}")


def _validate_place(place: dm.PlaceData) -> None:
    if not place.place_id:
        raise ValidationError("place_id is required")
    if not place.name:
        raise ValidationError("name is required")
    if not -90.0 <= place.latitude <= 90.0:
        raise ValidationError(f"latitude {place.latitude} out of range")
    if not -180.0 <= place.longitude <= 180.0:
        raise ValidationError(f"longitude {place.longitude} out of range")


class TerritoryLedger:
    """Service for territory control and defender rosters."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        users: IUserDirectory,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._sessions = session_factory
        self._users = users
        self._rules = rules

    def _transact(self, operation: str, work, timeout: float | None):
        return run_in_transaction(
            self._sessions,
            work,
            operation=operation,
            rules=self._rules.concurrency,
            timeout=timeout,
        )

    @staticmethod
    def _load_territory(session: Session, territory_id: str) -> Territory:
        row = session.get(Territory, territory_id, with_for_update=True)
        if row is None:
            raise NotFoundError("Territory not found")
        return row

    def upsert_territory(
        self, place: dm.PlaceData, *, timeout: float | None = None
    ) -> dm.Territory:
        """Create a territory for ``place`` or refresh its descriptive fields.

        Control state (controller, defenders, strength, battle count) is never
        touched by an upsert.
        """
        _validate_place(place)
        territory_id = territory_id_for(place.place_id)

        def work(session: Session) -> dm.Territory:
            row = session.get(Territory, territory_id, with_for_update=True)
            if row is None:
                row = Territory(
                    id=territory_id,
                    place_id=place.place_id,
                    defenders=[],
                    control_strength=0,
                    total_battles=0,
                )
                session.add(row)
            row.name = place.name
            row.address = place.address
            row.latitude = place.latitude
            row.longitude = place.longitude
            row.rating = place.rating
            row.rating_count = place.rating_count
            session.flush()
            return to_territory(row)

        territory = self._transact("upsert_territory", work, timeout)
        logger.debug("Upserted territory %s (%s)", territory.id, territory.name)
        return territory

    def claim(
        self, user_id: dm.UserID, territory_id: dm.TerritoryID, *, timeout: float | None = None
    ) -> dm.ActionResult:
        """Take control of an unclaimed territory for the caller's club.

        Raises:
            ForbiddenError: The caller has no club
            NotFoundError: Territory (or the caller's club) missing
            ConflictError: The territory is already controlled
        """

        def work(session: Session) -> dm.ActionResult:
            user = self._users.get_user(session, user_id)
            if user is None or user.club_id is None:
                raise ForbiddenError("You must be in a club to claim territory")
            club = session.get(Club, user.club_id, with_for_update=True)
            if club is None:
                raise NotFoundError("Club not found")
            territory = self._load_territory(session, territory_id)
            if territory.controlling_club_id is not None:
                raise ConflictError("This territory is already claimed")

            defender = dm.Defender(user_id=user.id, username=user.username, level=user.level)
            territory.controlling_club_id = club.id
            territory.controlling_club_name = club.name
            territory.controlling_club_color = club.color
            territory.defenders = [defender.to_json()]
            territory.control_strength = user.level
            club.territories_controlled += 1
            return dm.ActionResult(
                message=f"Successfully claimed {territory.name} for {club.name}!",
                club_id=dm.ClubID(club.id),
            )

        result = self._transact("claim", work, timeout)
        logger.info("Territory %s claimed by club %s (user %s)", territory_id, result.club_id, user_id)
        return result

    def add_defender(
        self, user_id: dm.UserID, territory_id: dm.TerritoryID, *, timeout: float | None = None
    ) -> dm.ActionResult:
        """Add the caller to the defender roster of a territory their club holds.

        Raises:
            ForbiddenError: The caller's club does not control the territory
            NotFoundError: The territory does not exist
            ConflictError: The caller already defends it
            CapacityError: The roster is full
        """

        def work(session: Session) -> dm.ActionResult:
            user = self._users.get_user(session, user_id)
            if user is None or user.club_id is None:
                raise ForbiddenError("You must be in a club")
            territory = self._load_territory(session, territory_id)
            if territory.controlling_club_id != user.club_id:
                raise ForbiddenError("Your club does not control this territory")

            roster = with_defender(
                defenders_of(territory),
                dm.Defender(user_id=user.id, username=user.username, level=user.level),
                rules=self._rules,
            )
            strength = control_strength(roster)
            territory.defenders = [defender.to_json() for defender in roster]
            territory.control_strength = strength
            return dm.ActionResult(
                message=f"You are now defending {territory.name}! Territory strength: {strength}",
                club_id=user.club_id,
            )

        result = self._transact("add_defender", work, timeout)
        logger.info("User %s now defends territory %s", user_id, territory_id)
        return result

    def get_territory(self, territory_id: dm.TerritoryID) -> dm.Territory:
        with self._sessions() as session:
            row = session.get(Territory, territory_id)
            if row is None:
                raise NotFoundError("Territory not found")
            return to_territory(row)

    def list_territories(
        self,
        *,
        bounds: BoundingBox | None = None,
        near: tuple[float, float] | None = None,
        radius_km: float | None = None,
        controlled_by: dm.ClubID | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[dm.Territory]:
        """List territories, optionally restricted to an area or a controller.

        Args:
            bounds: Only territories inside this box
            near: ``(lat, lng)``; only territories within ``radius_km`` of the
                point, nearest first
            radius_km: Search radius for ``near``, capped at the maximum
            controlled_by: Only territories held by this club
            limit: Maximum number of territories
        """
        stmt = select(Territory)
        radius = None
        if near is not None:
            radius = clamp_radius(radius_km)
            bounds = bounding_box_around(near[0], near[1], radius)
        if bounds is not None:
            stmt = stmt.where(
                Territory.latitude.between(bounds.min_lat, bounds.max_lat),
                Territory.longitude.between(bounds.min_lng, bounds.max_lng),
            )
        if controlled_by is not None:
            stmt = stmt.where(Territory.controlling_club_id == controlled_by)

        if near is None:
            stmt = stmt.order_by(Territory.name).limit(limit)
            with self._sessions() as session:
                return [to_territory(row) for row in session.scalars(stmt)]

        with self._sessions() as session:
            candidates = list(session.scalars(stmt))
        lat, lng = near
        found = []
        for row in candidates:
            distance = haversine_km(lat, lng, row.latitude, row.longitude)
            if distance <= radius:
                found.append(to_territory(row, distance_km=round(distance, 3)))
        found.sort(key=lambda territory: territory.distance_km)
        return found[:limit]
