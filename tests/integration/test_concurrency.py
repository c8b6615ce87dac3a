"""Concurrent callers racing on the same clubs and territories.

Each test releases its threads together through a barrier and then checks
that the stored state still satisfies the ownership and membership
invariants.
"""

import threading

import pytest
from sqlalchemy import func, select

from turfwar.domain.errors import ConflictError, InvalidStateError, TurfError
from turfwar.domain.models import ClubDraft, UserID
from turfwar.domain.rules_config import ConcurrencyRules, RulesConfig
from turfwar.models import Club, Territory
from turfwar.services.battle_service import BattleResolver
from turfwar.services.club_service import ClubRegistry
from turfwar.services.territory_service import TerritoryLedger

PATIENT = RulesConfig(
    concurrency=ConcurrencyRules(max_attempts=8, backoff_base_seconds=0.01, backoff_max_seconds=0.1)
)


def _race(*calls):
    """Run the callables on separate threads; return (results, errors)."""

    barrier = threading.Barrier(len(calls))
    results, errors = [], []
    lock = threading.Lock()

    def runner(call):
        barrier.wait()
        try:
            value = call()
        except TurfError as exc:
            with lock:
                errors.append(exc)
        else:
            with lock:
                results.append(value)

    threads = [threading.Thread(target=runner, args=(call,)) for call in calls]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)
    return results, errors


def _check_invariants(sessions):
    with sessions() as session:
        for club in session.scalars(select(Club)):
            assert club.member_count == len(club.members)
            held = session.scalar(
                select(func.count())
                .select_from(Territory)
                .where(Territory.controlling_club_id == club.id)
            )
            assert club.territories_controlled == held
        for territory in session.scalars(select(Territory)):
            assert (territory.controlling_club_id is not None) == bool(territory.defenders)
            assert len(territory.defenders) <= 5
            assert territory.control_strength == sum(d["level"] for d in territory.defenders)


def test_simultaneous_claims_have_one_winner(sessions, clubs, territories, register, place):
    register("alice", level=5)
    register("bob", level=8)
    clubs.create_club(UserID("alice"), ClubDraft(name="Iron Lions"))
    clubs.create_club(UserID("bob"), ClubDraft(name="Night Owls"))
    t1 = territories.upsert_territory(place("t1"))

    results, errors = _race(
        lambda: territories.claim(UserID("alice"), t1.id),
        lambda: territories.claim(UserID("bob"), t1.id),
    )

    assert len(results) == 1
    assert len(errors) == 1
    assert isinstance(errors[0], ConflictError)
    winner = territories.get_territory(t1.id)
    assert winner.controlling_club_id == results[0].club_id
    assert len(winner.defenders) == 1
    _check_invariants(sessions)


def test_concurrent_joins_keep_member_count(sessions, directory, register):
    registry = ClubRegistry(sessions, directory, rules=PATIENT)
    register("alice")
    club = registry.create_club(UserID("alice"), ClubDraft(name="Iron Lions"))
    joiners = [f"user{i}" for i in range(6)]
    for user in joiners:
        register(user, level=2)

    results, errors = _race(*(lambda u=u: registry.join_club(UserID(u), club.id) for u in joiners))

    assert all(isinstance(exc, ConflictError) for exc in errors)
    after = registry.get_club(club.id)
    assert after.member_count == 1 + len(results)
    assert after.total_power == 1 + 2 * len(results)
    _check_invariants(sessions)


def test_join_racing_leave(sessions, directory, register):
    registry = ClubRegistry(sessions, directory, rules=PATIENT)
    register("alice")
    register("bob")
    register("carol")
    club = registry.create_club(UserID("alice"), ClubDraft(name="Iron Lions"))
    registry.join_club(UserID("bob"), club.id)

    _race(
        lambda: registry.leave_club(UserID("bob")),
        lambda: registry.join_club(UserID("carol"), club.id),
    )

    after = registry.get_club(club.id)
    assert "bob" not in after.members
    assert after.member_count == len(after.members)
    _check_invariants(sessions)


def test_concurrent_challenges_preserve_ownership_counts(
    sessions, directory, register, place, make_rolls
):
    registry = ClubRegistry(sessions, directory, rules=PATIENT)
    ledger = TerritoryLedger(sessions, directory, rules=PATIENT)
    resolver = BattleResolver(
        sessions, directory, make_rolls(attacker=(), defender=(), default=5), rules=PATIENT
    )
    register("alice", level=1)
    register("bob", level=9)
    register("carol", level=9)
    registry.create_club(UserID("alice"), ClubDraft(name="Iron Lions"))
    registry.create_club(UserID("bob"), ClubDraft(name="Night Owls"))
    registry.create_club(UserID("carol"), ClubDraft(name="Red Foxes"))
    t1 = ledger.upsert_territory(place("t1"))
    ledger.claim(UserID("alice"), t1.id)

    results, errors = _race(
        lambda: resolver.challenge(UserID("bob"), t1.id),
        lambda: resolver.challenge(UserID("carol"), t1.id),
    )

    assert len(results) + len(errors) == 2
    assert all(isinstance(exc, (ConflictError, InvalidStateError)) for exc in errors)
    final = ledger.get_territory(t1.id)
    assert final.controlling_club_id is not None
    assert final.total_battles == len(results)
    assert len(resolver.list_battles(t1.id)) == len(results)
    _check_invariants(sessions)


@pytest.mark.parametrize("attempt", range(3))
def test_concurrent_defenders_respect_capacity(attempt, sessions, directory, register, place):
    registry = ClubRegistry(sessions, directory, rules=PATIENT)
    ledger = TerritoryLedger(sessions, directory, rules=PATIENT)
    register("alice", level=5)
    club = registry.create_club(UserID("alice"), ClubDraft(name="Iron Lions"))
    t1 = ledger.upsert_territory(place("t1"))
    ledger.claim(UserID("alice"), t1.id)
    helpers = [f"helper{i}" for i in range(6)]
    for user in helpers:
        register(user, level=1)
        registry.join_club(UserID(user), club.id)

    _race(*(lambda u=u: ledger.add_defender(UserID(u), t1.id) for u in helpers))

    final = ledger.get_territory(t1.id)
    assert len(final.defenders) <= 5
    assert len({d.user_id for d in final.defenders}) == len(final.defenders)
    _check_invariants(sessions)
