"""Seedable Random Number Generator (RNG) helpers for Turfwar.

Every roll is derived from a seed string so that a battle can be replayed
exactly when the seed is known:
- Reproducibility: Same seed always produces same results
- Auditability: The seed describes what the roll was for
- Fairness: Production seeds carry a random salt so outcomes cannot be
  predicted from public state

Examples:
    >>> seed = generate_seed("territory_abc", 3, "attacker")
    >>> seed
    'territory_abc:3:attacker'
    >>> result = random_int(seed, 0, 10)
    >>> 0 <= result['value'] <= 10
    True
"""

import hashlib
import random
from typing import Any
from uuid import uuid4


def generate_seed(territory_id: str, battle_number: int, context: str) -> str:
    """Generate a seed string for a battle roll.

    Format: "territory_id:battle_number:context"

    Args:
        territory_id: Territory the battle is fought over
        battle_number: Ordinal of the battle on that territory
        context: What the roll is for (e.g., 'attacker', 'defender')

    Returns:
        Seed string for RNG

    Examples:
        >>> generate_seed("territory_abc", 0, "defender")
        'territory_abc:0:defender'

    Raises:
        ValueError: If battle_number is negative
    """
    if battle_number < 0:
        raise ValueError(f"battle_number must be non-negative, got {battle_number}")

    return f"{territory_id}:{battle_number}:{context}"


def _seed_to_int(seed: str) -> int:
    """Convert seed string to a stable 64-bit integer for random.Random().

    Args:
        seed: Seed string

    Returns:
        64-bit integer derived from SHA-256(seed)
    """
    digest = hashlib.sha256(seed.encode("utf-8")).digest()
    return int.from_bytes(digest[:8], "big", signed=False)


def random_int(seed: str, min_val: int, max_val: int) -> dict[str, Any]:
    """Generate random integer in range with deterministic seed.

    Generates a random integer between min_val and max_val (inclusive) using
    the seed. The same seed and range will always produce the same value.

    Args:
        seed: Deterministic seed string
        min_val: Minimum value (inclusive)
        max_val: Maximum value (inclusive)

    Returns:
        Dictionary containing:
            - value: The random integer
            - min: The minimum value
            - max: The maximum value
            - seed: The seed used

    Raises:
        ValueError: If min_val > max_val
    """
    if min_val > max_val:
        raise ValueError(f"min_val ({min_val}) cannot be greater than max_val ({max_val})")

    rng = random.Random(_seed_to_int(seed))
    value = rng.randint(min_val, max_val)

    return {
        "value": value,
        "min": min_val,
        "max": max_val,
        "seed": seed,
    }


class SeededRollSource:
    """Roll source backed by :func:`random_int`.

    With ``salt=None`` every roll gets a fresh random salt. A fixed salt makes
    every roll a pure function of its context, which replays battles exactly.
    """

    def __init__(self, salt: str | None = None) -> None:
        self._salt = salt

    def roll(self, context: str, low: int, high: int) -> int:
        salt = self._salt if self._salt is not None else uuid4().hex
        return random_int(f"{context}:{salt}", low, high)["value"]
