"""HTTP routes for the Turfwar API."""

from __future__ import annotations

from dataclasses import asdict
from datetime import datetime
from typing import Annotated

from fastapi import APIRouter, Depends, Header, HTTPException, Query, Request, status
from pydantic import BaseModel, Field

from turfwar.api.runtime import ApiState
from turfwar.database import check_database_health
from turfwar.domain import models as dm
from turfwar.domain.enums import ClubRole
from turfwar.domain.errors import ValidationError
from turfwar.utils.geo import BoundingBox

router = APIRouter()


def get_state(request: Request) -> ApiState:
    state = getattr(request.app.state, "api_state", None)
    if state is None:  # pragma: no cover - FastAPI should always initialise state
        raise RuntimeError("API state not initialised")
    return state


def get_caller(x_user_id: Annotated[str | None, Header()] = None) -> dm.UserID:
    if not x_user_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED, detail="X-User-Id header required"
        )
    return dm.UserID(x_user_id)


def get_timeout(
    x_request_timeout: Annotated[float | None, Header(gt=0.0)] = None,
) -> float | None:
    return x_request_timeout


ApiStateDep = Annotated[ApiState, Depends(get_state)]
CallerDep = Annotated[dm.UserID, Depends(get_caller)]
TimeoutDep = Annotated[float | None, Depends(get_timeout)]


class ClubCreateRequest(BaseModel):
    name: str
    tag: str | None = None
    description: str = ""
    color: str | None = None
    emblem: str | None = None
    min_level_to_join: int = 1


class ClubUpdateRequest(BaseModel):
    name: str | None = None
    tag: str | None = None
    description: str | None = None
    color: str | None = None
    emblem: str | None = None
    is_recruiting: bool | None = None
    min_level_to_join: int | None = None


class ClubResponse(BaseModel):
    id: str
    name: str
    tag: str
    description: str
    color: str
    emblem: str
    founder_id: str
    founder_name: str
    members: list[str]
    officers: list[str]
    member_count: int
    total_power: int
    territories_controlled: int
    wins: int
    losses: int
    is_recruiting: bool
    min_level_to_join: int
    created_at: datetime | None
    updated_at: datetime | None


class MemberResponse(BaseModel):
    id: str
    username: str
    handle: str | None
    level: int
    avatar_url: str | None
    role: ClubRole


class LeaderboardEntryResponse(BaseModel):
    rank: int
    id: str
    name: str
    tag: str
    color: str
    member_count: int
    territories_controlled: int
    total_power: int
    wins: int
    losses: int


class TerritorySummaryResponse(BaseModel):
    id: str
    name: str
    control_strength: int
    defender_count: int


class TerritoryStatsResponse(BaseModel):
    total_territories: int
    total_defense_strength: int
    territories: list[TerritorySummaryResponse]


class ActionResponse(BaseModel):
    message: str
    club_id: str | None = None


class DefenderResponse(BaseModel):
    user_id: str
    username: str
    level: int


class TerritoryResponse(BaseModel):
    id: str
    place_id: str
    name: str
    address: str | None
    latitude: float
    longitude: float
    rating: float
    rating_count: int
    controlling_club_id: str | None
    controlling_club_name: str | None
    controlling_club_color: str | None
    defenders: list[DefenderResponse]
    control_strength: int
    total_battles: int
    last_battle_at: datetime | None
    distance_km: float | None = None


class PlaceRequest(BaseModel):
    place_id: str = Field(min_length=1)
    name: str = Field(min_length=1)
    latitude: float = Field(ge=-90.0, le=90.0)
    longitude: float = Field(ge=-180.0, le=180.0)
    address: str | None = None
    rating: float = 0.0
    rating_count: int = Field(default=0, ge=0)


class ChallengeResponse(BaseModel):
    victory: bool
    message: str
    attacker_roll: int
    defense_roll: int
    battle_id: int | None = None


class BattleResponse(BaseModel):
    id: int
    territory_id: str
    attacker_club_id: str
    attacker_user_id: str
    defender_club_id: str
    attacker_power: int
    defender_strength: int
    attacker_roll: int
    defense_roll: int
    victory: bool
    timestamp: datetime
    request_id: str | None


@router.get("/health")
async def health(state: ApiStateDep) -> dict[str, object]:
    return {
        "status": "ok",
        "database": check_database_health(state.services.engine),
        "max_defenders": state.services.rules.roster.max_defenders,
    }


# -- Clubs -----------------------------------------------------------------------------


@router.post("/clubs", response_model=ClubResponse, status_code=status.HTTP_201_CREATED)
def create_club(
    payload: ClubCreateRequest, state: ApiStateDep, caller: CallerDep, timeout: TimeoutDep
) -> ClubResponse:
    draft = dm.ClubDraft(**payload.model_dump())
    club = state.clubs.create_club(caller, draft, timeout=timeout)
    return ClubResponse.model_validate(asdict(club))


@router.get("/clubs", response_model=list[ClubResponse])
def list_clubs(
    state: ApiStateDep,
    recruiting: bool | None = None,
    min_level: Annotated[int | None, Query(ge=1)] = None,
    limit: Annotated[int | None, Query(ge=1, le=200)] = None,
) -> list[ClubResponse]:
    clubs = state.clubs.list_clubs(
        recruiting=recruiting,
        min_level=min_level,
        limit=limit or state.settings.default_list_limit,
    )
    return [ClubResponse.model_validate(asdict(club)) for club in clubs]


@router.get("/clubs/leaderboard", response_model=list[LeaderboardEntryResponse])
def get_leaderboard(
    state: ApiStateDep, limit: Annotated[int | None, Query(ge=1, le=200)] = None
) -> list[LeaderboardEntryResponse]:
    entries = state.clubs.get_leaderboard(limit or state.settings.default_leaderboard_limit)
    return [LeaderboardEntryResponse.model_validate(asdict(entry)) for entry in entries]


@router.post("/clubs/leave", response_model=ActionResponse)
def leave_club(state: ApiStateDep, caller: CallerDep, timeout: TimeoutDep) -> ActionResponse:
    result = state.clubs.leave_club(caller, timeout=timeout)
    return ActionResponse.model_validate(asdict(result))


@router.get("/clubs/{club_id}", response_model=ClubResponse)
def get_club(club_id: str, state: ApiStateDep) -> ClubResponse:
    club = state.clubs.get_club(dm.ClubID(club_id))
    return ClubResponse.model_validate(asdict(club))


@router.get("/clubs/{club_id}/members", response_model=list[MemberResponse])
def get_members(club_id: str, state: ApiStateDep) -> list[MemberResponse]:
    members = state.clubs.get_members(dm.ClubID(club_id))
    return [MemberResponse.model_validate(asdict(member)) for member in members]


@router.get("/clubs/{club_id}/territories", response_model=TerritoryStatsResponse)
def get_territory_stats(club_id: str, state: ApiStateDep) -> TerritoryStatsResponse:
    stats = state.clubs.get_territory_stats(dm.ClubID(club_id))
    return TerritoryStatsResponse.model_validate(asdict(stats))


@router.post("/clubs/{club_id}/join", response_model=ActionResponse)
def join_club(
    club_id: str, state: ApiStateDep, caller: CallerDep, timeout: TimeoutDep
) -> ActionResponse:
    result = state.clubs.join_club(caller, dm.ClubID(club_id), timeout=timeout)
    return ActionResponse.model_validate(asdict(result))


@router.patch("/clubs/{club_id}", response_model=ClubResponse)
def update_club(
    club_id: str,
    payload: ClubUpdateRequest,
    state: ApiStateDep,
    caller: CallerDep,
    timeout: TimeoutDep,
) -> ClubResponse:
    patch = payload.model_dump(exclude_unset=True, exclude_none=True)
    club = state.clubs.update_club(caller, dm.ClubID(club_id), patch, timeout=timeout)
    return ClubResponse.model_validate(asdict(club))


@router.put("/clubs/{club_id}/officers/{user_id}", response_model=ClubResponse)
def promote_officer(
    club_id: str, user_id: str, state: ApiStateDep, caller: CallerDep, timeout: TimeoutDep
) -> ClubResponse:
    club = state.clubs.set_officer(
        caller, dm.ClubID(club_id), dm.UserID(user_id), promote=True, timeout=timeout
    )
    return ClubResponse.model_validate(asdict(club))


@router.delete("/clubs/{club_id}/officers/{user_id}", response_model=ClubResponse)
def demote_officer(
    club_id: str, user_id: str, state: ApiStateDep, caller: CallerDep, timeout: TimeoutDep
) -> ClubResponse:
    club = state.clubs.set_officer(
        caller, dm.ClubID(club_id), dm.UserID(user_id), promote=False, timeout=timeout
    )
    return ClubResponse.model_validate(asdict(club))


# -- Territories -----------------------------------------------------------------------


@router.get("/territories", response_model=list[TerritoryResponse])
def list_territories(
    state: ApiStateDep,
    min_lat: Annotated[float | None, Query(ge=-90.0, le=90.0)] = None,
    min_lng: Annotated[float | None, Query(ge=-180.0, le=180.0)] = None,
    max_lat: Annotated[float | None, Query(ge=-90.0, le=90.0)] = None,
    max_lng: Annotated[float | None, Query(ge=-180.0, le=180.0)] = None,
    lat: Annotated[float | None, Query(ge=-90.0, le=90.0)] = None,
    lng: Annotated[float | None, Query(ge=-180.0, le=180.0)] = None,
    radius_km: Annotated[float | None, Query(gt=0.0)] = None,
    controlled_by: str | None = None,
    limit: Annotated[int | None, Query(ge=1, le=500)] = None,
) -> list[TerritoryResponse]:
    box_values = (min_lat, min_lng, max_lat, max_lng)
    bounds = None
    if any(value is not None for value in box_values):
        if any(value is None for value in box_values):
            raise ValidationError("min_lat, min_lng, max_lat and max_lng must be given together")
        try:
            bounds = BoundingBox(min_lat, min_lng, max_lat, max_lng)  # type: ignore[arg-type]
        except ValueError as exc:
            raise ValidationError(str(exc)) from exc
    near = None
    if lat is not None or lng is not None:
        if lat is None or lng is None:
            raise ValidationError("lat and lng must be given together")
        near = (lat, lng)

    territories = state.territories.list_territories(
        bounds=bounds,
        near=near,
        radius_km=radius_km,
        controlled_by=dm.ClubID(controlled_by) if controlled_by else None,
        limit=limit or state.settings.default_list_limit,
    )
    return [TerritoryResponse.model_validate(asdict(t)) for t in territories]


@router.put("/territories", response_model=TerritoryResponse)
def upsert_territory(
    payload: PlaceRequest, state: ApiStateDep, timeout: TimeoutDep
) -> TerritoryResponse:
    territory = state.territories.upsert_territory(
        dm.PlaceData(**payload.model_dump()), timeout=timeout
    )
    return TerritoryResponse.model_validate(asdict(territory))


@router.get("/territories/{territory_id}", response_model=TerritoryResponse)
def get_territory(territory_id: str, state: ApiStateDep) -> TerritoryResponse:
    territory = state.territories.get_territory(dm.TerritoryID(territory_id))
    return TerritoryResponse.model_validate(asdict(territory))


@router.post("/territories/{territory_id}/claim", response_model=ActionResponse)
def claim_territory(
    territory_id: str, state: ApiStateDep, caller: CallerDep, timeout: TimeoutDep
) -> ActionResponse:
    result = state.territories.claim(caller, dm.TerritoryID(territory_id), timeout=timeout)
    return ActionResponse.model_validate(asdict(result))


@router.post("/territories/{territory_id}/challenge", response_model=ChallengeResponse)
def challenge_territory(
    territory_id: str,
    state: ApiStateDep,
    caller: CallerDep,
    timeout: TimeoutDep,
    idempotency_key: Annotated[str | None, Header()] = None,
) -> ChallengeResponse:
    result = state.battles.challenge(
        caller, dm.TerritoryID(territory_id), request_id=idempotency_key, timeout=timeout
    )
    return ChallengeResponse.model_validate(asdict(result))


@router.post("/territories/{territory_id}/defend", response_model=ActionResponse)
def defend_territory(
    territory_id: str, state: ApiStateDep, caller: CallerDep, timeout: TimeoutDep
) -> ActionResponse:
    result = state.territories.add_defender(caller, dm.TerritoryID(territory_id), timeout=timeout)
    return ActionResponse.model_validate(asdict(result))


@router.get("/territories/{territory_id}/battles", response_model=list[BattleResponse])
def list_battles(
    territory_id: str,
    state: ApiStateDep,
    limit: Annotated[int, Query(ge=1, le=200)] = 20,
) -> list[BattleResponse]:
    battles = state.battles.list_battles(dm.TerritoryID(territory_id), limit)
    return [BattleResponse.model_validate(asdict(battle)) for battle in battles]
