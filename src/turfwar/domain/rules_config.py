"""Declarative rule configuration for the territory domain."""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True, slots=True)
class BattleRules:
    """Random bonus windows used when resolving a challenge.

    The attacker's window is twice the defender's so that challenges succeed
    more often than a static defense would allow.
    """

    attacker_bonus_min: int = 0
    attacker_bonus_max: int = 10
    defender_bonus_min: int = 0
    defender_bonus_max: int = 5


@dataclass(frozen=True, slots=True)
class RosterRules:
    """Defender roster limits."""

    max_defenders: int = 5


@dataclass(frozen=True, slots=True)
class ClubRules:
    """Club naming and membership constants."""

    name_min_length: int = 3
    tag_max_length: int = 5
    min_level_floor: int = 1
    default_color: str = "#FF6B6B"
    default_emblem: str = "shield"


@dataclass(frozen=True, slots=True)
class ConcurrencyRules:
    """Retry policy for optimistic write conflicts."""

    max_attempts: int = 3
    backoff_base_seconds: float = 0.05
    backoff_max_seconds: float = 1.0


@dataclass(frozen=True, slots=True)
class RulesConfig:
    """Aggregate rule configuration."""

    battle: BattleRules = field(default_factory=BattleRules)
    roster: RosterRules = field(default_factory=RosterRules)
    club: ClubRules = field(default_factory=ClubRules)
    concurrency: ConcurrencyRules = field(default_factory=ConcurrencyRules)


DEFAULT_RULES = RulesConfig()
