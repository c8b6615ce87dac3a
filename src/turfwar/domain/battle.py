"""Challenge resolution rules."""

from __future__ import annotations

from dataclasses import dataclass

from turfwar.domain.rules_config import DEFAULT_RULES, RulesConfig
from turfwar.interfaces.rolls import IRollSource
from turfwar.utils.rng import generate_seed


@dataclass(slots=True)
class ChallengeOutcome:
    """Rolls and verdict of a single challenge."""

    attacker_power: int
    defender_strength: int
    attacker_bonus: int
    defender_bonus: int
    attacker_roll: int
    defense_roll: int
    victory: bool


def attacker_roll_bounds(attacker_level: int, rules: RulesConfig = DEFAULT_RULES) -> tuple[int, int]:
    """Inclusive range the attacker's total roll can take."""

    battle = rules.battle
    return attacker_level + battle.attacker_bonus_min, attacker_level + battle.attacker_bonus_max


def defense_roll_bounds(
    control_strength: int, rules: RulesConfig = DEFAULT_RULES
) -> tuple[int, int]:
    """Inclusive range the defender's total roll can take."""

    battle = rules.battle
    return (
        control_strength + battle.defender_bonus_min,
        control_strength + battle.defender_bonus_max,
    )


def resolve_challenge(
    attacker_level: int,
    control_strength: int,
    *,
    rolls: IRollSource,
    territory_id: str,
    battle_number: int,
    rules: RulesConfig = DEFAULT_RULES,
) -> ChallengeOutcome:
    """Roll a challenge and decide whether the attacker wins.

    The attacker wins only on a strictly higher total; ties go to the
    defender.
    """

    battle = rules.battle
    attacker_bonus = rolls.roll(
        generate_seed(territory_id, battle_number, "attacker"),
        battle.attacker_bonus_min,
        battle.attacker_bonus_max,
    )
    defender_bonus = rolls.roll(
        generate_seed(territory_id, battle_number, "defender"),
        battle.defender_bonus_min,
        battle.defender_bonus_max,
    )
    _check_bonus("attacker", attacker_bonus, battle.attacker_bonus_min, battle.attacker_bonus_max)
    _check_bonus("defender", defender_bonus, battle.defender_bonus_min, battle.defender_bonus_max)

    attacker_roll = attacker_level + attacker_bonus
    defense_roll = control_strength + defender_bonus
    return ChallengeOutcome(
        attacker_power=attacker_level,
        defender_strength=control_strength,
        attacker_bonus=attacker_bonus,
        defender_bonus=defender_bonus,
        attacker_roll=attacker_roll,
        defense_roll=defense_roll,
        victory=attacker_roll > defense_roll,
    )


def _check_bonus(side: str, value: int, low: int, high: int) -> None:
    if not low <= value <= high:
        raise ValueError(f"{side} bonus {value} outside [{low}, {high}]")
