"""Club model for the Turfwar service.

This module contains the model for clubs, the persistent teams that claim
and contest territories.
"""

from sqlalchemy import JSON, Boolean, CheckConstraint, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin


class Club(Base, TimestampMixin):
    """Represents a club.

    Membership is stored on the club row itself so that a single versioned
    update covers the member list and every counter derived from it.

    Attributes:
        id: Opaque identifier (``club_<hex>``)
        name: Globally unique display name
        tag: Short upper-case tag (at most 5 characters)
        description: Free text shown on the club page
        color: Banner color used on maps
        emblem: Emblem icon name
        founder_id: User holding founder authority
        founder_name: Display name of the founder
        members: JSON array of member user ids in join order
        officers: JSON array of officer user ids
        member_count: Cached ``len(members)``
        total_power: Sum of member levels at join time
        territories_controlled: Number of territories the club holds
        wins: Challenges won, as attacker or defender
        losses: Challenges lost, as attacker or defender
        is_recruiting: Whether new members may join
        min_level_to_join: Minimum player level to join
        version: Optimistic concurrency token
    """

    __tablename__ = "clubs"

    # Primary key
    id: Mapped[str] = mapped_column(String, primary_key=True)

    # Club attributes
    name: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    tag: Mapped[str] = mapped_column(String(5), nullable=False)
    description: Mapped[str] = mapped_column(String, nullable=False, default="")
    color: Mapped[str] = mapped_column(String, nullable=False)
    emblem: Mapped[str] = mapped_column(String, nullable=False)
    founder_id: Mapped[str] = mapped_column(String, nullable=False)
    founder_name: Mapped[str] = mapped_column(String, nullable=False)

    # Membership
    members: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    officers: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    member_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_power: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Territory standing
    territories_controlled: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    wins: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    losses: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Recruiting settings
    is_recruiting: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)
    min_level_to_join: Mapped[int] = mapped_column(Integer, nullable=False, default=1)

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Table constraints
    __table_args__ = (
        CheckConstraint("member_count >= 0", name="ck_clubs_member_count"),
        CheckConstraint("territories_controlled >= 0", name="ck_clubs_territories"),
        CheckConstraint("min_level_to_join >= 1", name="ck_clubs_min_level"),
        Index("idx_clubs_standing", "territories_controlled", "total_power"),
    )

    def __repr__(self) -> str:
        return f"<Club(id='{self.id}', name='{self.name}', members={self.member_count})>"
