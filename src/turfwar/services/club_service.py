"""Club Registry Service for Turfwar.

This module owns club entities: creation, membership changes, founder
succession, officer appointment, permissioned settings updates and the
derived aggregates (member count, total power).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from uuid import uuid4

from sqlalchemy import func, select
from sqlalchemy.orm import Session, sessionmaker

from turfwar.domain import models as dm
from turfwar.domain.enums import ClubRole
from turfwar.domain.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
    ValidationError,
)
from turfwar.domain.leaderboard import rank_clubs
from turfwar.domain.membership import (
    normalize_tag,
    pick_successor,
    sort_members,
    validate_min_level,
    validate_name,
)
from turfwar.domain.permissions import can_manage, filter_patch, role_in_club
from turfwar.domain.roster import control_strength, without_defender
from turfwar.domain.rules_config import DEFAULT_RULES, RulesConfig
from turfwar.interfaces.users import IUserDirectory
from turfwar.models import Club, Territory
from turfwar.services.snapshots import defenders_of, to_club
from turfwar.services.transaction import run_in_transaction

logger = logging.getLogger(__name__)

DEFAULT_LIST_LIMIT = 50
DEFAULT_LEADERBOARD_LIMIT = 20


def _new_club_id() -> str:
    return f"club_{uuid4().hex[:16]}"


class ClubRegistry:
    """Service for club lifecycle and membership."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        users: IUserDirectory,
        *,
        rules: RulesConfig = DEFAULT_RULES,
        id_factory: Callable[[], str] = _new_club_id,
    ) -> None:
        self._sessions = session_factory
        self._users = users
        self._rules = rules
        self._new_id = id_factory

    def _transact(self, operation: str, work, timeout: float | None):
        return run_in_transaction(
            self._sessions,
            work,
            operation=operation,
            rules=self._rules.concurrency,
            timeout=timeout,
        )

    @staticmethod
    def _load_club(session: Session, club_id: str) -> Club:
        row = session.get(Club, club_id, with_for_update=True)
        if row is None:
            raise NotFoundError("Club not found")
        return row

    def _member_power(self, session: Session, members: list[str]) -> int:
        """Sum of the members' current profile levels."""

        profiles = self._users.get_users(session, [dm.UserID(m) for m in members])
        return sum(profile.level for profile in profiles.values())

    @staticmethod
    def _release_defender(session: Session, club_id: str, user_id: dm.UserID) -> None:
        """Take a departing member off the rosters of the club's territories."""

        held = session.scalars(
            select(Territory)
            .where(Territory.controlling_club_id == club_id)
            .with_for_update()
        )
        for territory in held:
            current = defenders_of(territory)
            roster = without_defender(current, user_id)
            if len(roster) == len(current):
                continue
            territory.defenders = [defender.to_json() for defender in roster]
            territory.control_strength = control_strength(roster)
            logger.info("Removed %s from defenders of %s", user_id, territory.id)

    # -- Mutations -------------------------------------------------------------------

    def create_club(
        self, founder_id: dm.UserID, draft: dm.ClubDraft, *, timeout: float | None = None
    ) -> dm.Club:
        """Create a club with ``founder_id`` as its founder and only member.

        Raises:
            ValidationError: Name too short, tag too long or level floor below 1
            ConflictError: The name is taken
            InvalidStateError: The founder already belongs to a club
            NotFoundError: The founder has no profile
        """
        name = validate_name(draft.name, self._rules)
        tag = normalize_tag(draft.tag, name, self._rules)
        min_level = validate_min_level(draft.min_level_to_join, self._rules)

        def work(session: Session) -> dm.Club:
            founder = self._users.get_user(session, founder_id)
            if founder is None:
                raise NotFoundError(f"User {founder_id} not found")
            if session.scalar(select(Club.id).where(Club.name == name)) is not None:
                raise ConflictError("Club name already taken")
            if founder.club_id is not None:
                raise InvalidStateError(
                    "You must leave your current club before creating a new one"
                )

            row = Club(
                id=self._new_id(),
                name=name,
                tag=tag,
                description=draft.description or "",
                color=draft.color or self._rules.club.default_color,
                emblem=draft.emblem or self._rules.club.default_emblem,
                founder_id=founder_id,
                founder_name=founder.username,
                members=[founder_id],
                officers=[],
                member_count=1,
                total_power=founder.level,
                territories_controlled=0,
                wins=0,
                losses=0,
                is_recruiting=True,
                min_level_to_join=min_level,
            )
            session.add(row)
            self._users.set_user_club(session, founder_id, dm.ClubID(row.id), ClubRole.FOUNDER)
            session.flush()
            return to_club(row)

        club = self._transact("create_club", work, timeout)
        logger.info("Club %s (%s) created by %s", club.id, club.name, founder_id)
        return club

    def join_club(
        self, user_id: dm.UserID, club_id: dm.ClubID, *, timeout: float | None = None
    ) -> dm.ActionResult:
        """Add ``user_id`` to a recruiting club.

        Raises:
            NotFoundError: Club or profile missing
            InvalidStateError: The user already belongs to a club
            ForbiddenError: Club closed to recruits or the user's level is too low
        """

        def work(session: Session) -> dm.ActionResult:
            club = self._load_club(session, club_id)
            user = self._users.get_user(session, user_id)
            if user is None:
                raise NotFoundError(f"User {user_id} not found")
            if user.club_id is not None:
                raise InvalidStateError("You must leave your current club first")
            if not club.is_recruiting:
                raise ForbiddenError("This club is not accepting new members")
            if user.level < club.min_level_to_join:
                raise ForbiddenError(
                    f"You must be at least level {club.min_level_to_join} to join this club"
                )

            club.members = [*club.members, user_id]
            club.member_count = len(club.members)
            club.total_power = self._member_power(session, club.members)
            self._users.set_user_club(session, user_id, club_id, ClubRole.MEMBER)
            return dm.ActionResult(message=f"Welcome to {club.name}!", club_id=club_id)

        result = self._transact("join_club", work, timeout)
        logger.info("User %s joined club %s", user_id, club_id)
        return result

    def leave_club(self, user_id: dm.UserID, *, timeout: float | None = None) -> dm.ActionResult:
        """Remove ``user_id`` from their club.

        A sole founder disbands the club. A founder leaving other members behind
        hands the club to the first officer, or else the earliest-joined member.

        Raises:
            InvalidStateError: The user is not in a club
        """

        def work(session: Session) -> dm.ActionResult:
            user = self._users.get_user(session, user_id)
            if user is None or user.club_id is None:
                raise InvalidStateError("You are not in a club")

            club = session.get(Club, user.club_id, with_for_update=True)
            self._users.set_user_club(session, user_id, None, None)
            if club is None:
                return dm.ActionResult(message="Left club successfully")

            if club.founder_id == user_id:
                successor_id = pick_successor(
                    dm.UserID(club.founder_id),
                    [dm.UserID(officer) for officer in club.officers],
                    [dm.UserID(member) for member in club.members],
                )
                if successor_id is None:
                    session.delete(club)
                    logger.info("Club %s (%s) disbanded", club.id, club.name)
                    return dm.ActionResult(message=f"You have left {club.name}")

                successor = self._users.get_user(session, successor_id)
                club.founder_id = successor_id
                club.founder_name = successor.username if successor is not None else "Unknown"
                self._users.set_user_club(
                    session, successor_id, dm.ClubID(club.id), ClubRole.FOUNDER
                )
                logger.info("Founder of club %s passed to %s", club.id, successor_id)

            club.members = [member for member in club.members if member != user_id]
            club.officers = [
                officer
                for officer in club.officers
                if officer != user_id and officer != club.founder_id
            ]
            club.member_count = len(club.members)
            club.total_power = self._member_power(session, club.members)
            self._release_defender(session, club.id, user_id)
            return dm.ActionResult(message=f"You have left {club.name}")

        result = self._transact("leave_club", work, timeout)
        logger.info("User %s left their club", user_id)
        return result

    def update_club(
        self,
        caller_id: dm.UserID,
        club_id: dm.ClubID,
        patch: Mapping[str, object],
        *,
        timeout: float | None = None,
    ) -> dm.Club:
        """Apply the subset of ``patch`` the caller's role allows.

        Fields outside the caller's capability set are dropped, not rejected.

        Raises:
            NotFoundError: The club does not exist
            ForbiddenError: Caller is neither founder nor officer
            ConflictError: The new name is taken
            ValidationError: A supplied value is out of range
        """

        def work(session: Session) -> dm.Club:
            club = self._load_club(session, club_id)
            role = role_in_club(
                caller_id, dm.UserID(club.founder_id), club.officers, club.members
            )
            if not can_manage(role):
                raise ForbiddenError("You do not have permission to update this club")

            applied, dropped = filter_patch(role, patch)
            if dropped:
                logger.warning(
                    "Dropped fields %s from %s update of club %s by %s",
                    dropped,
                    role,
                    club_id,
                    caller_id,
                )
            self._apply_settings(session, club, applied)
            session.flush()
            return to_club(club)

        club = self._transact("update_club", work, timeout)
        logger.info("Club %s updated by %s", club_id, caller_id)
        return club

    def _apply_settings(self, session: Session, club: Club, applied: dict[str, object]) -> None:
        if "name" in applied:
            name = validate_name(str(applied["name"]), self._rules)
            taken = session.scalar(select(Club.id).where(Club.name == name, Club.id != club.id))
            if taken is not None:
                raise ConflictError("Club name already taken")
            club.name = name
        if "tag" in applied:
            club.tag = normalize_tag(applied["tag"], club.name, self._rules)  # type: ignore[arg-type]
        if "min_level_to_join" in applied:
            value = applied["min_level_to_join"]
            if not isinstance(value, int) or isinstance(value, bool):
                raise ValidationError("minLevelToJoin must be an integer")
            club.min_level_to_join = validate_min_level(value, self._rules)
        if "is_recruiting" in applied:
            club.is_recruiting = bool(applied["is_recruiting"])
        for key in ("description", "color", "emblem"):
            if key in applied and applied[key] is not None:
                setattr(club, key, str(applied[key]))

        if "name" in applied or "color" in applied:
            held = session.scalars(
                select(Territory).where(Territory.controlling_club_id == club.id)
            )
            for territory in held:
                territory.controlling_club_name = club.name
                territory.controlling_club_color = club.color

    def set_officer(
        self,
        caller_id: dm.UserID,
        club_id: dm.ClubID,
        member_id: dm.UserID,
        *,
        promote: bool,
        timeout: float | None = None,
    ) -> dm.Club:
        """Promote a member to officer, or demote an officer back to member.

        Raises:
            NotFoundError: The club does not exist
            ForbiddenError: Caller is not the founder
            InvalidStateError: Target is not a member, or is the founder
        """

        def work(session: Session) -> dm.Club:
            club = self._load_club(session, club_id)
            if club.founder_id != caller_id:
                raise ForbiddenError("Only the founder can appoint officers")
            if member_id not in club.members:
                raise InvalidStateError("That user is not a member of this club")
            if member_id == club.founder_id:
                raise InvalidStateError("The founder cannot be an officer")

            if promote and member_id not in club.officers:
                club.officers = [*club.officers, member_id]
            elif not promote:
                club.officers = [officer for officer in club.officers if officer != member_id]
            role = ClubRole.OFFICER if promote else ClubRole.MEMBER
            self._users.set_user_club(session, member_id, club_id, role)
            session.flush()
            return to_club(club)

        club = self._transact("set_officer", work, timeout)
        logger.info(
            "%s %s in club %s", "Promoted" if promote else "Demoted", member_id, club_id
        )
        return club

    def reconcile_aggregates(
        self, club_id: dm.ClubID, *, timeout: float | None = None
    ) -> dm.Club:
        """Recompute the club's counters from membership and territory ownership."""

        def work(session: Session) -> dm.Club:
            club = self._load_club(session, club_id)
            held =session.scalar(
                select(func.count())
                .select_from(Territory)
                .where(Territory.controlling_club_id == club.id)
            )
            expected = {
                "member_count": len(club.members),
                "total_power": self._member_power(session, club.members),
                "territories_controlled": held or 0,
            }
            for field_name, value in expected.items():
                current = getattr(club, field_name)
                if current != value:
                    logger.warning(
                        "Club %s %s drifted: stored %s, recomputed %s",
                        club.id,
                        field_name,
                        current,
                        value,
                    )
                    setattr(club, field_name, value)
            session.flush()
            return to_club(club)

        return self._transact("reconcile_aggregates", work, timeout)

    # -- Queries ---------------------------------------------------------------------

    def get_club(self, club_id: dm.ClubID) -> dm.Club:
        with self._sessions() as session:
            row = session.get(Club, club_id)
            if row is None:
                raise NotFoundError("Club not found")
            return to_club(row)

    def list_clubs(
        self,
        *,
        recruiting: bool | None = None,
        min_level: int | None = None,
        limit: int = DEFAULT_LIST_LIMIT,
    ) -> list[dm.Club]:
        """Return clubs ordered by territories held.

        Args:
            recruiting: Only clubs with this recruiting flag
            min_level: Only clubs a player of this level may join
            limit: Maximum number of clubs
        """
        stmt = select(Club)
        if recruiting is not None:
            stmt = stmt.where(Club.is_recruiting == recruiting)
        if min_level is not None:
            stmt = stmt.where(Club.min_level_to_join <= min_level)
        stmt = stmt.order_by(
            Club.territories_controlled.desc(), Club.total_power.desc(), Club.name
        ).limit(limit)
        with self._sessions() as session:
            return [to_club(row) for row in session.scalars(stmt)]

    def get_members(self, club_id: dm.ClubID) -> list[dm.ClubMember]:
        """Resolve the club's members for display, founder first."""

        with self._sessions() as session:
            row = session.get(Club, club_id)
            if row is None:
                raise NotFoundError("Club not found")
            profiles = self._users.get_users(session, [dm.UserID(m) for m in row.members])

        members: list[dm.ClubMember] = []
        for member_id in row.members:
            profile = profiles.get(dm.UserID(member_id))
            if profile is None:
                continue
            role = role_in_club(profile.id, dm.UserID(row.founder_id), row.officers, row.members)
            members.append(
                dm.ClubMember(
                    id=profile.id,
                    username=profile.username,
                    handle=profile.handle,
                    level=profile.level,
                    avatar_url=profile.avatar_url,
                    role=role or ClubRole.MEMBER,
                )
            )
        return sort_members(members)

    def get_leaderboard(self, limit: int = DEFAULT_LEADERBOARD_LIMIT) -> list[dm.LeaderboardEntry]:
        with self._sessions() as session:
            clubs = [to_club(row) for row in session.scalars(select(Club))]
        return rank_clubs(clubs, limit)

    def get_territory_stats(self, club_id: dm.ClubID) -> dm.TerritoryStats:
        """Summarize the territories a club currently holds."""

        with self._sessions() as session:
            if session.get(Club, club_id) is None:
                raise NotFoundError("Club not found")
            held = list(
                session.scalars(
                    select(Territory)
                    .where(Territory.controlling_club_id == club_id)
                    .order_by(Territory.name)
                )
            )
        return dm.TerritoryStats(
            total_territories=len(held),
            total_defense_strength=sum(t.control_strength for t in held),
            territories=[
                dm.TerritorySummary(
                    id=dm.TerritoryID(t.id),
                    name=t.name,
                    control_strength=t.control_strength,
                    defender_count=len(t.defenders or []),
                )
                for t in held
            ],
        )
