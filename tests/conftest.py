"""Pytest configuration and shared fixtures.

This adds the `src/` directory to `sys.path` so tests can import the
`turfwar` package without requiring an editable install in CI, and
provides a file-backed SQLite database per test.
"""

import sys
from pathlib import Path

import pytest

SRC_PATH = Path(__file__).resolve().parents[1] / "src"
if str(SRC_PATH) not in sys.path:
    sys.path.insert(0, str(SRC_PATH))

from turfwar.config import Settings  # noqa: E402
from turfwar.database import create_db_engine, create_session_factory, init_db  # noqa: E402
from turfwar.domain import models as dm  # noqa: E402
from turfwar.services.battle_service import BattleResolver  # noqa: E402
from turfwar.services.club_service import ClubRegistry  # noqa: E402
from turfwar.services.territory_service import TerritoryLedger  # noqa: E402
from turfwar.services.user_directory import SqlUserDirectory  # noqa: E402


class FakeRolls:
    """Roll source returning scripted bonuses per side.

    Contexts end with ``:attacker`` or ``:defender``; each side pops from its
    own queue and falls back to ``default`` once the queue is empty.
    """

    def __init__(self, attacker=(), defender=(), default=0):
        self.queues = {"attacker": list(attacker), "defender": list(defender)}
        self.default = default
        self.calls = []

    def roll(self, context, low, high):
        self.calls.append((context, low, high))
        side = context.rsplit(":", 1)[-1]
        queue = self.queues.get(side, [])
        return queue.pop(0) if queue else self.default


@pytest.fixture
def settings(tmp_path):
    return Settings(database_url=f"sqlite:///{tmp_path / 'turfwar.db'}")


@pytest.fixture
def engine(settings):
    engine = create_db_engine(settings)
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def sessions(engine):
    return create_session_factory(engine)


@pytest.fixture
def directory():
    return SqlUserDirectory()


@pytest.fixture
def register(sessions, directory):
    """Provision a profile: ``register("alice", level=5)``."""

    def _register(user_id, *, level=1, username=None, handle=None):
        with sessions() as session, session.begin():
            return directory.register(
                session,
                dm.UserID(user_id),
                username=username or user_id.capitalize(),
                level=level,
                handle=handle,
            )

    return _register


@pytest.fixture
def profile(sessions, directory):
    """Read a profile back from the database."""

    def _profile(user_id):
        with sessions() as session:
            return directory.get_user(session, dm.UserID(user_id))

    return _profile


@pytest.fixture
def rolls():
    return FakeRolls()


@pytest.fixture
def clubs(sessions, directory):
    return ClubRegistry(sessions, directory)


@pytest.fixture
def territories(sessions, directory):
    return TerritoryLedger(sessions, directory)


@pytest.fixture
def battles(sessions, directory, rolls):
    return BattleResolver(sessions, directory, rolls)


@pytest.fixture
def place():
    """Build place data: ``place("gym1", lat=40.0, lng=-74.0)``."""

    def _place(place_id, *, name=None, lat=40.7128, lng=-74.0060, rating=4.5):
        return dm.PlaceData(
            place_id=place_id,
            name=name or f"Gym {place_id}",
            latitude=lat,
            longitude=lng,
            address=f"{place_id} Main St",
            rating=rating,
            rating_count=12,
        )

    return _place


@pytest.fixture
def make_rolls():
    """Factory for scripted roll sources outside the default ``rolls`` fixture."""

    return FakeRolls
