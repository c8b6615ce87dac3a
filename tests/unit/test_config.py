"""Tests for settings and rule construction."""

from turfwar.config import Settings
from turfwar.domain.rules_config import DEFAULT_RULES


def test_defaults_match_domain_rules():
    settings = Settings()
    assert settings.rules() == DEFAULT_RULES


def test_rule_overrides_flow_into_rules():
    settings = Settings(
        max_defenders=3,
        attacker_roll_max=12,
        defender_roll_max=6,
        conflict_max_attempts=5,
        conflict_backoff_seconds=0.01,
    )
    rules = settings.rules()
    assert rules.roster.max_defenders == 3
    assert rules.battle.attacker_bonus_max == 12
    assert rules.battle.defender_bonus_max == 6
    assert rules.concurrency.max_attempts == 5
    assert rules.concurrency.backoff_base_seconds == 0.01


def test_environment_prefix(monkeypatch):
    monkeypatch.setenv("TURFWAR_DATABASE_URL", "sqlite://")
    monkeypatch.setenv("TURFWAR_MAX_DEFENDERS", "7")
    settings = Settings()
    assert settings.database_url == "sqlite://"
    assert settings.max_defenders == 7
