"""Territory models for the Turfwar service.

This module contains the model for territories (real-world locations whose
ownership clubs contest) and the append-only log of challenges fought over
them.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    DateTime,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
)
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base, TimestampMixin, utc_now


class Territory(Base, TimestampMixin):
    """Represents a contestable location.

    Descriptive fields come from the external place lookup; the control
    fields are owned by this service.

    Attributes:
        id: ``territory_<place_id>``
        place_id: Reference into the external place provider
        name: Place name
        address: Formatted address
        latitude: WGS84 latitude
        longitude: WGS84 longitude
        rating: Provider rating
        rating_count: Number of provider ratings
        controlling_club_id: Club holding the territory, NULL when unclaimed
        controlling_club_name: Denormalized club name for display
        controlling_club_color: Denormalized club color for display
        defenders: JSON array of {user_id, username, level}
        control_strength: Sum of defender levels
        total_battles: Number of resolved challenges
        last_battle_at: Time of the most recent challenge
        version: Optimistic concurrency token
    """

    __tablename__ = "territories"

    # Primary key
    id: Mapped[str] = mapped_column(String, primary_key=True)

    # Place attributes
    place_id: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    name: Mapped[str] = mapped_column(String, nullable=False)
    address: Mapped[str | None] = mapped_column(String, nullable=True)
    latitude: Mapped[float] = mapped_column(Float, nullable=False)
    longitude: Mapped[float] = mapped_column(Float, nullable=False)
    rating: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    rating_count: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    # Control state
    controlling_club_id: Mapped[str | None] = mapped_column(String, nullable=True)
    controlling_club_name: Mapped[str | None] = mapped_column(String, nullable=True)
    controlling_club_color: Mapped[str | None] = mapped_column(String, nullable=True)
    defenders: Mapped[list[dict[str, Any]]] = mapped_column(JSON, nullable=False, default=list)
    control_strength: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    total_battles: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
    last_battle_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    version: Mapped[int] = mapped_column(Integer, nullable=False)

    __mapper_args__ = {"version_id_col": version}

    # Table constraints
    __table_args__ = (
        CheckConstraint("control_strength >= 0", name="ck_territories_strength"),
        CheckConstraint("total_battles >= 0", name="ck_territories_battles"),
        Index("idx_territories_club", "controlling_club_id"),
        Index("idx_territories_position", "latitude", "longitude"),
    )

    def __repr__(self) -> str:
        return (
            f"<Territory(id='{self.id}', name='{self.name}', "
            f"club='{self.controlling_club_id}')>"
        )


class TerritoryBattle(Base):
    """Immutable record of a resolved challenge.

    Rows are inserted in the same transaction that applies the outcome and
    are never updated afterwards.

    Attributes:
        id: Primary key
        territory_id: Territory that was challenged
        attacker_club_id: Club of the challenger
        attacker_user_id: Challenging user
        defender_club_id: Club holding the territory at the time
        attacker_power: Challenger's level
        defender_strength: Territory control strength at the time
        attacker_roll: Challenger's total roll
        defense_roll: Defender's total roll
        victory: Whether the challenger won
        request_id: Caller-supplied idempotency key
        timestamp: When the challenge resolved
    """

    __tablename__ = "territory_battles"

    # Primary key
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)

    # Foreign keys
    territory_id: Mapped[str] = mapped_column(
        String, ForeignKey("territories.id"), nullable=False
    )

    # Battle attributes
    attacker_club_id: Mapped[str] = mapped_column(String, nullable=False)
    attacker_user_id: Mapped[str] = mapped_column(String, nullable=False)
    defender_club_id: Mapped[str] = mapped_column(String, nullable=False)
    attacker_power: Mapped[int] = mapped_column(Integer, nullable=False)
    defender_strength: Mapped[int] = mapped_column(Integer, nullable=False)
    attacker_roll: Mapped[int] = mapped_column(Integer, nullable=False)
    defense_roll: Mapped[int] = mapped_column(Integer, nullable=False)
    victory: Mapped[bool] = mapped_column(Boolean, nullable=False)
    request_id: Mapped[str | None] = mapped_column(String, nullable=True, unique=True)
    timestamp: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utc_now
    )

    # Table constraints
    __table_args__ = (
        Index("idx_territory_battles_territory", "territory_id", "timestamp"),
        Index("idx_territory_battles_attacker", "attacker_club_id"),
    )

    def __repr__(self) -> str:
        return (
            f"<TerritoryBattle(id={self.id}, territory='{self.territory_id}', "
            f"victory={self.victory})>"
        )
