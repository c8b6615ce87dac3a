"""SQLAlchemy models for the Turfwar service.

This module exports all database models and the declarative base.
"""

from .base import Base, TimestampMixin, utc_now
from .club import Club
from .territory import Territory, TerritoryBattle
from .user import User

__all__ = [
    "Base",
    "Club",
    "Territory",
    "TerritoryBattle",
    "TimestampMixin",
    "User",
    "utc_now",
]
