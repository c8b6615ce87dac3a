"""Runtime configuration for the Turfwar service."""

from __future__ import annotations

import logging
from functools import lru_cache

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from turfwar.domain.rules_config import (
    BattleRules,
    ClubRules,
    ConcurrencyRules,
    RosterRules,
    RulesConfig,
)


class Settings(BaseSettings):
    """Application settings loaded from the environment or a `.env` file."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", env_prefix="TURFWAR_"
    )

    database_url: str = Field(default="sqlite:///turfwar.db", description="SQLAlchemy URL")
    database_echo: bool = Field(default=False, description="Echo SQL statements")
    database_pool_size: int = Field(default=5, ge=1)
    database_max_overflow: int = Field(default=10, ge=0)
    database_pool_recycle: int = Field(default=1800, description="Seconds before reconnecting")
    database_pool_timeout: int = Field(default=30, ge=1)

    max_defenders: int = Field(default=5, ge=1, description="Defender roster capacity")
    attacker_roll_max: int = Field(
        default=10, ge=0, description="Upper bound of the attacker's random bonus"
    )
    defender_roll_max: int = Field(
        default=5, ge=0, description="Upper bound of the defender's random bonus"
    )

    conflict_max_attempts: int = Field(
        default=3, ge=1, description="Attempts before a write conflict is surfaced"
    )
    conflict_backoff_seconds: float = Field(
        default=0.05, ge=0.0, description="Base delay of the exponential retry backoff"
    )

    default_list_limit: int = Field(default=50, ge=1)
    default_leaderboard_limit: int = Field(default=20, ge=1)

    cors_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173", "http://127.0.0.1:5173"],
        description="Origins allowed to call the HTTP API",
    )
    log_level: str = Field(default="INFO")

    def rules(self) -> RulesConfig:
        """Build the domain rule set from the configured constants."""

        return RulesConfig(
            battle=BattleRules(
                attacker_bonus_max=self.attacker_roll_max,
                defender_bonus_max=self.defender_roll_max,
            ),
            roster=RosterRules(max_defenders=self.max_defenders),
            club=ClubRules(),
            concurrency=ConcurrencyRules(
                max_attempts=self.conflict_max_attempts,
                backoff_base_seconds=self.conflict_backoff_seconds,
            ),
        )


@lru_cache
def get_settings() -> Settings:
    """Return a cached Settings instance."""

    return Settings()


def configure_logging(level: str | int = "INFO") -> None:
    """Install a basic root handler for the server process."""

    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
