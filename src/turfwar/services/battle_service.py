"""Battle Resolver Service for Turfwar.

This module applies challenge outcomes. The territory, the attacking club,
the defending club and the battle log row are all written in a single
transaction, so either the whole outcome is visible or none of it is.
"""

from __future__ import annotations

import logging

from sqlalchemy import select
from sqlalchemy.orm import Session, sessionmaker

from turfwar.domain import models as dm
from turfwar.domain.battle import resolve_challenge
from turfwar.domain.errors import (
    ConflictError,
    ForbiddenError,
    InvalidStateError,
    NotFoundError,
)
from turfwar.domain.rules_config import DEFAULT_RULES, RulesConfig
from turfwar.interfaces.rolls import IRollSource
from turfwar.interfaces.users import IUserDirectory
from turfwar.models import Club, Territory, TerritoryBattle, utc_now
from turfwar.services.snapshots import to_battle
from turfwar.services.transaction import run_in_transaction

logger = logging.getLogger(__name__)

DEFAULT_HISTORY_LIMIT = 20


def victory_message(territory_name: str, attacker_club_name: str) -> str:
    return f"Victory! You captured {territory_name} for {attacker_club_name}!"


def defeat_message(territory_name: str, defender_club_name: str | None) -> str:
    return f"Defeat! {defender_club_name or 'The defenders'} successfully defended {territory_name}!"


class BattleResolver:
    """Service resolving challenges against club-held territories."""

    def __init__(
        self,
        session_factory: sessionmaker[Session],
        users: IUserDirectory,
        rolls: IRollSource,
        *,
        rules: RulesConfig = DEFAULT_RULES,
    ) -> None:
        self._sessions = session_factory
        self._users = users
        self._rolls = rolls
        self._rules = rules

    def challenge(
        self,
        user_id: dm.UserID,
        territory_id: dm.TerritoryID,
        *,
        request_id: str | None = None,
        timeout: float | None = None,
    ) -> dm.ChallengeResult:
        """Challenge the club holding ``territory_id``.

        Passing the same ``request_id`` again returns the recorded outcome
        instead of fighting a second battle.

        Raises:
            ForbiddenError: The caller has no club
            NotFoundError: Territory (or the caller's club) missing
            InvalidStateError: Territory unclaimed or held by the caller's club
            ConflictError: ``request_id`` already used for another challenge,
                or the territory kept changing underneath the caller
        """

        def work(session: Session) -> dm.ChallengeResult:
            if request_id is not None:
                replay = self._replay(session, request_id, user_id, territory_id)
                if replay is not None:
                    return replay

            user = self._users.get_user(session, user_id)
            if user is None or user.club_id is None:
                raise ForbiddenError("You must be in a club to challenge territory")
            attacker = session.get(Club, user.club_id, with_for_update=True)
            if attacker is None:
                raise NotFoundError("Club not found")
            territory = session.get(Territory, territory_id, with_for_update=True)
            if territory is None:
                raise NotFoundError("Territory not found")
            if territory.controlling_club_id is None:
                raise InvalidStateError("This territory is unclaimed - use claim instead")
            if territory.controlling_club_id == attacker.id:
                raise InvalidStateError("Your club already controls this territory")

            defender_club_id = territory.controlling_club_id
            defender_club_name = territory.controlling_club_name
            defender = session.get(Club, defender_club_id, with_for_update=True)

            outcome = resolve_challenge(
                user.level,
                territory.control_strength,
                rolls=self._rolls,
                territory_id=territory.id,
                battle_number=territory.total_battles,
                rules=self._rules,
            )
            logger.debug(
                "Challenge on %s: attacker %d+%d vs defense %d+%d",
                territory.id,
                outcome.attacker_power,
                outcome.attacker_bonus,
                outcome.defender_strength,
                outcome.defender_bonus,
            )

            now = utc_now()
            territory.total_battles += 1
            territory.last_battle_at = now
            if outcome.victory:
                territory.controlling_club_id = attacker.id
                territory.controlling_club_name = attacker.name
                territory.controlling_club_color = attacker.color
                territory.defenders = [
                    dm.Defender(user_id=user.id, username=user.username, level=user.level).to_json()
                ]
                territory.control_strength = user.level
                attacker.territories_controlled += 1
                attacker.wins += 1
                if defender is not None:
                    defender.territories_controlled = max(0, defender.territories_controlled - 1)
                    defender.losses += 1
                message = victory_message(territory.name, attacker.name)
            else:
                attacker.losses += 1
                if defender is not None:
                    defender.wins += 1
                message = defeat_message(territory.name, defender_club_name)
            if defender is None:
                logger.warning(
                    "Defending club %s of territory %s no longer exists; counters skipped",
                    defender_club_id,
                    territory.id,
                )

            record = TerritoryBattle(
                territory_id=territory.id,
                attacker_club_id=attacker.id,
                attacker_user_id=user.id,
                defender_club_id=defender_club_id,
                attacker_power=outcome.attacker_power,
                defender_strength=outcome.defender_strength,
                attacker_roll=outcome.attacker_roll,
                defense_roll=outcome.defense_roll,
                victory=outcome.victory,
                request_id=request_id,
                timestamp=now,
            )
            session.add(record)
            session.flush()
            return dm.ChallengeResult(
                victory=outcome.victory,
                message=message,
                attacker_roll=outcome.attacker_roll,
                defense_roll=outcome.defense_roll,
                battle_id=dm.BattleID(record.id),
            )

        result = self._transact("challenge", work, timeout)
        logger.info(
            "Challenge by %s on territory %s: %s (%d vs %d)",
            user_id,
            territory_id,
            "captured" if result.victory else "repelled",
            result.attacker_roll,
            result.defense_roll,
        )
        return result

    def _replay(
        self,
        session: Session,
        request_id: str,
        user_id: dm.UserID,
        territory_id: dm.TerritoryID,
    ) -> dm.ChallengeResult | None:
        record = session.scalar(
            select(TerritoryBattle).where(TerritoryBattle.request_id == request_id)
        )
        if record is None:
            return None
        if record.attacker_user_id != user_id or record.territory_id != territory_id:
            raise ConflictError("Request id already used for a different challenge")

        territory = session.get(Territory, record.territory_id)
        territory_name = territory.name if territory is not None else record.territory_id
        if record.victory:
            attacker = session.get(Club, record.attacker_club_id)
            message = victory_message(
                territory_name, attacker.name if attacker is not None else record.attacker_club_id
            )
        else:
            defender = session.get(Club, record.defender_club_id)
            message = defeat_message(territory_name, defender.name if defender is not None else None)
        logger.info("Replayed challenge %s for request %s", record.id, request_id)
        return dm.ChallengeResult(
            victory=record.victory,
            message=message,
            attacker_roll=record.attacker_roll,
            defense_roll=record.defense_roll,
            battle_id=dm.BattleID(record.id),
        )

    def list_battles(
        self, territory_id: dm.TerritoryID, limit: int = DEFAULT_HISTORY_LIMIT
    ) -> list[dm.BattleRecord]:
        """Return the territory's battle log, newest first."""

        with self._sessions() as session:
            if session.get(Territory, territory_id) is None:
                raise NotFoundError("Territory not found")
            rows = session.scalars(
                select(TerritoryBattle)
                .where(TerritoryBattle.territory_id == territory_id)
                .order_by(TerritoryBattle.timestamp.desc(), TerritoryBattle.id.desc())
                .limit(limit)
            )
            return [to_battle(row) for row in rows]

    def _transact(self, operation: str, work, timeout: float | None):
        return run_in_transaction(
            self._sessions,
            work,
            operation=operation,
            rules=self._rules.concurrency,
            timeout=timeout,
        )
