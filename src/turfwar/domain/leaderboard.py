"""Club leaderboard projection."""

from __future__ import annotations

from collections.abc import Iterable

from turfwar.domain.models import Club, LeaderboardEntry


def rank_clubs(clubs: Iterable[Club], limit: int) -> list[LeaderboardEntry]:
    """Rank clubs by territories held, then total power.

    Remaining ties fall back to the club name so the order is stable between
    queries.
    """

    ordered = sorted(
        clubs,
        key=lambda club: (-club.territories_controlled, -club.total_power, club.name),
    )
    return [
        LeaderboardEntry(
            rank=index,
            id=club.id,
            name=club.name,
            tag=club.tag,
            color=club.color,
            member_count=club.member_count,
            territories_controlled=club.territories_controlled,
            total_power=club.total_power,
            wins=club.wins,
            losses=club.losses,
        )
        for index, club in enumerate(ordered[: max(limit, 0)], start=1)
    ]
