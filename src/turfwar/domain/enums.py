"""Enumerations used across the territory domain."""

from __future__ import annotations

from enum import StrEnum


class ClubRole(StrEnum):
    """Role a user holds inside their club."""

    FOUNDER = "founder"
    OFFICER = "officer"
    MEMBER = "member"


class ErrorKind(StrEnum):
    """Failure categories reported to callers."""

    NOT_FOUND = "not_found"
    CONFLICT = "conflict"
    INVALID_STATE = "invalid_state"
    FORBIDDEN = "forbidden"
    CAPACITY = "capacity"
    VALIDATION = "validation"
    DEADLINE_EXCEEDED = "deadline_exceeded"
