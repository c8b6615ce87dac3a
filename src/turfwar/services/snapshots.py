"""Conversions from ORM rows to domain snapshots."""

from __future__ import annotations

from datetime import UTC, datetime

from turfwar.domain import models as dm
from turfwar.models import Club, Territory, TerritoryBattle


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to timestamps that SQLite hands back without an offset."""

    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=UTC)


def to_club(row: Club) -> dm.Club:
    return dm.Club(
        id=dm.ClubID(row.id),
        name=row.name,
        tag=row.tag,
        description=row.description,
        color=row.color,
        emblem=row.emblem,
        founder_id=dm.UserID(row.founder_id),
        founder_name=row.founder_name,
        members=[dm.UserID(member) for member in row.members],
        officers=[dm.UserID(officer) for officer in row.officers],
        member_count=row.member_count,
        total_power=row.total_power,
        territories_controlled=row.territories_controlled,
        wins=row.wins,
        losses=row.losses,
        is_recruiting=row.is_recruiting,
        min_level_to_join=row.min_level_to_join,
        created_at=as_utc(row.created_at),
        updated_at=as_utc(row.updated_at),
    )


def defenders_of(row: Territory) -> list[dm.Defender]:
    return [dm.Defender.from_json(entry) for entry in row.defenders or []]


def to_territory(row: Territory, *, distance_km: float | None = None) -> dm.Territory:
    return dm.Territory(
        id=dm.TerritoryID(row.id),
        place_id=row.place_id,
        name=row.name,
        address=row.address,
        latitude=row.latitude,
        longitude=row.longitude,
        rating=row.rating,
        rating_count=row.rating_count,
        controlling_club_id=(
            dm.ClubID(row.controlling_club_id) if row.controlling_club_id is not None else None
        ),
        controlling_club_name=row.controlling_club_name,
        controlling_club_color=row.controlling_club_color,
        defenders=defenders_of(row),
        control_strength=row.control_strength,
        total_battles=row.total_battles,
        last_battle_at=as_utc(row.last_battle_at),
        distance_km=distance_km,
    )


def to_battle(row: TerritoryBattle) -> dm.BattleRecord:
    return dm.BattleRecord(
        id=dm.BattleID(row.id),
        territory_id=dm.TerritoryID(row.territory_id),
        attacker_club_id=dm.ClubID(row.attacker_club_id),
        attacker_user_id=dm.UserID(row.attacker_user_id),
        defender_club_id=dm.ClubID(row.defender_club_id),
        attacker_power=row.attacker_power,
        defender_strength=row.defender_strength,
        attacker_roll=row.attacker_roll,
        defense_roll=row.defense_roll,
        victory=row.victory,
        timestamp=as_utc(row.timestamp),
        request_id=row.request_id,
    )
