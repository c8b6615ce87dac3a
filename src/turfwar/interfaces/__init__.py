"""Protocol-based interfaces for Turfwar collaborators.

This module exports the protocols the services depend on, enabling
dependency injection of fakes in tests.
"""

from turfwar.interfaces.rolls import IRollSource
from turfwar.interfaces.users import IUserDirectory

__all__ = [
    "IRollSource",
    "IUserDirectory",
]
