"""Dataclasses describing clubs, territories and battles.

The ORM layer in :mod:`turfwar.models` owns persistence. Services convert
rows into these plain snapshots before returning them so callers never hold
session-bound objects, and the pure rule modules only ever see these types.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import NewType

from .enums import ClubRole

# --- Strongly typed identifiers -------------------------------------------------

ClubID = NewType("ClubID", str)
TerritoryID = NewType("TerritoryID", str)
UserID = NewType("UserID", str)
BattleID = NewType("BattleID", int)


# --- Core dataclasses -----------------------------------------------------------


@dataclass(slots=True)
class UserProfile:
    """Externally owned player profile as seen by the core."""

    id: UserID
    username: str
    level: int
    handle: str | None = None
    avatar_url: str | None = None
    club_id: ClubID | None = None
    club_role: ClubRole | None = None


@dataclass(slots=True)
class Defender:
    """Entry in a territory's defender roster."""

    user_id: UserID
    username: str
    level: int

    def to_json(self) -> dict[str, object]:
        return {"user_id": self.user_id, "username": self.username, "level": self.level}

    @classmethod
    def from_json(cls, payload: dict[str, object]) -> Defender:
        return cls(
            user_id=UserID(str(payload["user_id"])),
            username=str(payload.get("username") or ""),
            level=int(payload["level"]),  # type: ignore[arg-type]
        )


@dataclass(slots=True)
class ClubDraft:
    """Caller-supplied fields for a new club."""

    name: str
    tag: str | None = None
    description: str = ""
    color: str | None = None
    emblem: str | None = None
    min_level_to_join: int = 1


@dataclass(slots=True)
class Club:
    """Persistent team competing for territory."""

    id: ClubID
    name: str
    tag: str
    description: str
    color: str
    emblem: str
    founder_id: UserID
    founder_name: str
    members: list[UserID] = field(default_factory=list)
    officers: list[UserID] = field(default_factory=list)
    member_count: int = 0
    total_power: int = 0
    territories_controlled: int = 0
    wins: int = 0
    losses: int = 0
    is_recruiting: bool = True
    min_level_to_join: int = 1
    created_at: datetime | None = None
    updated_at: datetime | None = None


@dataclass(slots=True)
class ClubMember:
    """Member entry resolved for display."""

    id: UserID
    username: str
    handle: str | None
    level: int
    avatar_url: str | None
    role: ClubRole


@dataclass(slots=True)
class PlaceData:
    """Location details supplied by the external place lookup."""

    place_id: str
    name: str
    latitude: float
    longitude: float
    address: str | None = None
    rating: float = 0.0
    rating_count: int = 0


@dataclass(slots=True)
class Territory:
    """Real-world location with contestable ownership."""

    id: TerritoryID
    place_id: str
    name: str
    address: str | None
    latitude: float
    longitude: float
    rating: float = 0.0
    rating_count: int = 0
    controlling_club_id: ClubID | None = None
    controlling_club_name: str | None = None
    controlling_club_color: str | None = None
    defenders: list[Defender] = field(default_factory=list)
    control_strength: int = 0
    total_battles: int = 0
    last_battle_at: datetime | None = None
    distance_km: float | None = None


@dataclass(slots=True)
class BattleRecord:
    """Immutable log entry for a resolved challenge."""

    id: BattleID
    territory_id: TerritoryID
    attacker_club_id: ClubID
    attacker_user_id: UserID
    defender_club_id: ClubID
    attacker_power: int
    defender_strength: int
    attacker_roll: int
    defense_roll: int
    victory: bool
    timestamp: datetime
    request_id: str | None = None


@dataclass(slots=True)
class ActionResult:
    """Acknowledgement returned by membership and territory actions."""

    message: str
    club_id: ClubID | None = None


@dataclass(slots=True)
class ChallengeResult:
    """Outcome of a challenge as reported to the attacker."""

    victory: bool
    message: str
    attacker_roll: int
    defense_roll: int
    battle_id: BattleID | None = None


@dataclass(slots=True)
class LeaderboardEntry:
    """Ranked row of the club leaderboard."""

    rank: int
    id: ClubID
    name: str
    tag: str
    color: str
    member_count: int
    territories_controlled: int
    total_power: int
    wins: int
    losses: int


@dataclass(slots=True)
class TerritorySummary:
    """Compact view of a territory held by a club."""

    id: TerritoryID
    name: str
    control_strength: int
    defender_count: int


@dataclass(slots=True)
class TerritoryStats:
    """Aggregate view of a club's holdings."""

    total_territories: int
    total_defense_strength: int
    territories: list[TerritorySummary] = field(default_factory=list)
