"""User profile model for the Turfwar service.

Profiles are owned by the identity subsystem; this table mirrors the fields
the club core reads (display name, level) and the club reference it writes.
"""

from sqlalchemy import CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class User(Base, TimestampMixin):
    """Represents a player profile.

    Attributes:
        id: Opaque identifier issued by the identity provider
        username: Display name
        handle: Public @handle
        level: Player level, used as combat power
        avatar_url: Profile picture location
        club_id: Club the player belongs to, if any
        club_role: founder/officer/member while in a club
    """

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String, primary_key=True)

    username: Mapped[str] = mapped_column(String, nullable=False)
    handle: Mapped[str | None] = mapped_column(String, nullable=True)
    level: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    avatar_url: Mapped[str | None] = mapped_column(String, nullable=True)

    # Club reference
    club_id: Mapped[str | None] = mapped_column(String, nullable=True)
    club_role: Mapped[str | None] = mapped_column(String, nullable=True)

    # Optimistic concurrency token
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    __table_args__ = (
        CheckConstraint("level >= 1", name="ck_users_level"),
        CheckConstraint(
            "club_role IS NULL OR club_role IN ('founder', 'officer', 'member')",
            name="ck_users_club_role",
        ),
        Index("idx_users_club", "club_id"),
    )

    def __repr__(self) -> str:
        return f"<User(id='{self.id}', username='{self.username}', level={self.level})>"
