"""Roll Source Protocol Interface.

This module defines the protocol for the random number source used by
challenge resolution.
"""

from typing import Protocol


class IRollSource(Protocol):
    """Protocol for drawing bounded random integers.

    Implementations may be deterministic (seeded) or fully random. Tests
    inject fakes that return fixed values to reproduce exact battles.
    """

    def roll(self, context: str, low: int, high: int) -> int:
        """Return an integer in ``[low, high]`` (inclusive).

        Args:
            context: Stable description of what the roll is for, e.g.
                ``"territory_abc:battle_3:attacker"``
            low: Minimum value
            high: Maximum value

        Returns:
            The drawn integer
        """
        ...
