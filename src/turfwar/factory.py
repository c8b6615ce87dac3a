"""Service Factory for Turfwar.

This module provides factory functions for creating service instances with
proper dependency wiring. Use these functions in production code to ensure
all services share one engine, one session factory and one rule set.

For testing, construct the services directly and inject protocol-based
fakes instead of using these factories.

Example:
    # Production usage
    from turfwar.factory import build_services
    services = build_services()
    services.clubs.create_club(user_id, ClubDraft(name="Iron Lions"))

    # Testing usage
    from turfwar.services.battle_service import BattleResolver

    class FixedRolls:
        def roll(self, context, low, high):
            return low

    resolver = BattleResolver(sessions, directory, FixedRolls())
"""

from dataclasses import dataclass

from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from turfwar.config import Settings, get_settings
from turfwar.database import create_db_engine, create_session_factory, init_db
from turfwar.domain.rules_config import RulesConfig
from turfwar.interfaces.rolls import IRollSource
from turfwar.services.battle_service import BattleResolver
from turfwar.services.club_service import ClubRegistry
from turfwar.services.territory_service import TerritoryLedger
from turfwar.services.user_directory import SqlUserDirectory
from turfwar.utils.rng import SeededRollSource


@dataclass(slots=True)
class Services:
    """Wired service graph sharing one database."""

    engine: Engine
    sessions: sessionmaker[Session]
    rules: RulesConfig
    users: SqlUserDirectory
    clubs: ClubRegistry
    territories: TerritoryLedger
    battles: BattleResolver


def create_club_registry(
    sessions: sessionmaker[Session], users: SqlUserDirectory, rules: RulesConfig
) -> ClubRegistry:
    """Create a ClubRegistry with all dependencies."""
    return ClubRegistry(sessions, users, rules=rules)


def create_territory_ledger(
    sessions: sessionmaker[Session], users: SqlUserDirectory, rules: RulesConfig
) -> TerritoryLedger:
    """Create a TerritoryLedger with all dependencies."""
    return TerritoryLedger(sessions, users, rules=rules)


def create_battle_resolver(
    sessions: sessionmaker[Session],
    users: SqlUserDirectory,
    rules: RulesConfig,
    rolls: IRollSource | None = None,
) -> BattleResolver:
    """Create a BattleResolver with all dependencies.

    Args:
        sessions: Session factory
        users: Profile directory
        rules: Rule set
        rolls: Roll source; defaults to a freshly salted seeded source

    Returns:
        Fully initialized BattleResolver
    """
    return BattleResolver(sessions, users, rolls or SeededRollSource(), rules=rules)


def build_services(
    settings: Settings | None = None,
    *,
    rolls: IRollSource | None = None,
    create_tables: bool = True,
) -> Services:
    """Build every service from settings.

    Args:
        settings: Settings to use; defaults to the cached application settings
        rolls: Roll source override for deterministic battles
        create_tables: Create missing tables on the configured database

    Returns:
        The wired service graph
    """
    settings = settings or get_settings()
    engine = create_db_engine(settings)
    if create_tables:
        init_db(engine)
    sessions = create_session_factory(engine)
    rules = settings.rules()
    users = SqlUserDirectory()
    return Services(
        engine=engine,
        sessions=sessions,
        rules=rules,
        users=users,
        clubs=create_club_registry(sessions, users, rules),
        territories=create_territory_ledger(sessions, users, rules),
        battles=create_battle_resolver(sessions, users, rules, rolls),
    )
