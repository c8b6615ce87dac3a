"""Runtime primitives backing the Turfwar HTTP API."""

from __future__ import annotations

import logging

from turfwar.config import Settings, get_settings
from turfwar.domain import models as dm
from turfwar.factory import Services, build_services
from turfwar.interfaces.rolls import IRollSource

logger = logging.getLogger(__name__)


class ApiState:
    """Aggregated services shared by the FastAPI layer."""

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        rolls: IRollSource | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.services: Services = build_services(self.settings, rolls=rolls)
        self.clubs = self.services.clubs
        self.territories = self.services.territories
        self.battles = self.services.battles
        logger.info("Turfwar API state ready on %s", self.services.engine.url)

    def register_user(
        self,
        user_id: dm.UserID,
        *,
        username: str,
        level: int = 1,
        handle: str | None = None,
        avatar_url: str | None = None,
    ) -> dm.UserProfile:
        """Provision or refresh a profile in the shared user table."""

        with self.services.sessions() as session, session.begin():
            return self.services.users.register(
                session,
                user_id,
                username=username,
                level=level,
                handle=handle,
                avatar_url=avatar_url,
            )

    async def shutdown(self) -> None:
        self.services.engine.dispose()


def build_state() -> ApiState:
    """Factory used by the API to initialize state."""

    return ApiState()
