"""User Directory Protocol Interface.

This module defines the protocol for the user profile store the club and
territory services depend on. The store is owned by another subsystem; the
core only reads profiles and records club membership on them.
"""

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy.orm import Session

from turfwar.domain.enums import ClubRole
from turfwar.domain.models import ClubID, UserID, UserProfile


class IUserDirectory(Protocol):
    """Protocol defining the profile operations used by the core.

    Methods receive the caller's session so that membership changes commit
    in the same transaction as the club update that caused them.
    """

    def get_user(self, session: Session, user_id: UserID) -> UserProfile | None:
        """Load a single profile.

        Args:
            session: Active database session
            user_id: Identifier of the user

        Returns:
            The profile, or None when the user is unknown
        """
        ...

    def get_users(self, session: Session, user_ids: Iterable[UserID]) -> dict[UserID, UserProfile]:
        """Load several profiles at once, skipping unknown identifiers."""
        ...

    def set_user_club(
        self,
        session: Session,
        user_id: UserID,
        club_id: ClubID | None,
        role: ClubRole | None,
    ) -> None:
        """Record (or clear, with ``None``) the user's club and role."""
        ...
