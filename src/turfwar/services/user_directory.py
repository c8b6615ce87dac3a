"""SQL-backed user directory.

Implements :class:`turfwar.interfaces.IUserDirectory` on the ``users`` table
so profile membership updates share the caller's transaction.
"""

from __future__ import annotations

from collections.abc import Iterable

from sqlalchemy import select
from sqlalchemy.orm import Session

from turfwar.domain import models as dm
from turfwar.domain.enums import ClubRole
from turfwar.domain.errors import NotFoundError, ValidationError
from turfwar.models import User


class SqlUserDirectory:
    """Profile store living in the same database as clubs and territories."""

    def get_user(self, session: Session, user_id: dm.UserID) -> dm.UserProfile | None:
        row = session.get(User, user_id)
        return to_profile(row) if row is not None else None

    def get_users(
        self, session: Session, user_ids: Iterable[dm.UserID]
    ) -> dict[dm.UserID, dm.UserProfile]:
        ids = list(user_ids)
        if not ids:
            return {}
        rows = session.scalars(select(User).where(User.id.in_(ids)))
        return {dm.UserID(row.id): to_profile(row) for row in rows}

    def set_user_club(
        self,
        session: Session,
        user_id: dm.UserID,
        club_id: dm.ClubID | None,
        role: ClubRole | None,
    ) -> None:
        row = session.get(User, user_id)
        if row is None:
            raise NotFoundError(f"User {user_id} not found")
        row.club_id = club_id
        row.club_role = str(role) if role is not None else None

    def register(
        self,
        session: Session,
        user_id: dm.UserID,
        *,
        username: str,
        level: int = 1,
        handle: str | None = None,
        avatar_url: str | None = None,
    ) -> dm.UserProfile:
        """Create or refresh a profile's display fields and level.

        The club reference is left untouched; only club operations write it.
        """

        if level < 1:
            raise ValidationError(f"level must be at least 1, got {level}")
        row = session.get(User, user_id)
        if row is None:
            row = User(id=user_id, username=username, level=level)
            session.add(row)
        else:
            row.username = username
            row.level = level
        row.handle = handle
        row.avatar_url = avatar_url
        session.flush()
        return to_profile(row)


def to_profile(row: User) -> dm.UserProfile:
    return dm.UserProfile(
        id=dm.UserID(row.id),
        username=row.username,
        level=row.level,
        handle=row.handle,
        avatar_url=row.avatar_url,
        club_id=dm.ClubID(row.club_id) if row.club_id is not None else None,
        club_role=ClubRole(row.club_role) if row.club_role is not None else None,
    )
