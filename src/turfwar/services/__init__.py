"""Service layer for Turfwar.

Services own transactions: each mutating call opens a session, validates
against fresh state, writes and commits, retrying lost optimistic races.
Collaborators are injected through the protocols in
:mod:`turfwar.interfaces`:

- ClubRegistry: club lifecycle, membership, officers, aggregates
- TerritoryLedger: territory upserts, claims, defender rosters
- BattleResolver: challenge resolution and the battle log

Production Usage:
    from turfwar.factory import build_services
    services = build_services(settings)
    services.territories.claim(user_id, territory_id)

Testing Usage:
    from turfwar.services.battle_service import BattleResolver

    class FixedRolls:
        def roll(self, context, low, high):
            return high

    resolver = BattleResolver(sessions, directory, FixedRolls())
"""

from turfwar.services.battle_service import BattleResolver
from turfwar.services.club_service import ClubRegistry
from turfwar.services.territory_service import TerritoryLedger
from turfwar.services.transaction import Deadline, run_in_transaction
from turfwar.services.user_directory import SqlUserDirectory

__all__ = [
    "BattleResolver",
    "ClubRegistry",
    "Deadline",
    "SqlUserDirectory",
    "TerritoryLedger",
    "run_in_transaction",
]
