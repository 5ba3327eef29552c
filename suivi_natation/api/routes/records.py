"""
Records API endpoints.

Hall of fame, personal swim records, club records and the federation
import jobs. Import endpoints need the server-side functions; without
them they answer 503.
"""

import logging

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from ...core.training.models import SwimRecord
from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------

class SwimRecordRequest(BaseModel):
    id: int | None = None
    event_name: str = Field(min_length=1)
    athlete_id: int | None = None
    athlete_name: str | None = None
    pool_length: int | None = Field(None, description="25 or 50")
    time_seconds: float | None = Field(None, gt=0)
    record_date: str | None = None
    notes: str | None = None
    ffn_points: int | None = None
    record_type: str | None = None

    def to_record(self) -> SwimRecord:
        return SwimRecord(**{**self.model_dump(), "id": self.id or 0})


class ClubSwimmerRequest(BaseModel):
    display_name: str = Field(min_length=1)
    iuf: str | None = None
    sex: str | None = Field(None, pattern="^[MF]$")
    birthdate: str | None = None
    is_active: bool = True


class ClubSwimmerPatch(BaseModel):
    """Only the fields present in the body change."""
    iuf: str | None = None
    sex: str | None = Field(None, pattern="^[MF]$")
    birthdate: str | None = None
    is_active: bool | None = None


class SwimmerImportRequest(BaseModel):
    swimmer_iuf: str = Field(min_length=1)
    swimmer_name: str | None = None
    user_id: int | None = None


class FfnSyncRequest(BaseModel):
    iuf: str = Field(min_length=1)
    athlete_id: int | None = None
    athlete_name: str | None = None


class SyncCountResponse(BaseModel):
    changed: int


# ---------------------------------------------------------------------------
# Hall of fame and personal records
# ---------------------------------------------------------------------------

@router.get("/hall-of-fame", summary="Top athletes per board")
async def hall_of_fame(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_hall_of_fame()


@router.get("/swim", summary="Personal swim records of one athlete")
async def list_swim_records(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    athlete_id: int | None = Query(None),
    athlete_name: str | None = Query(None),
):
    return training_api.get_swim_records(athlete_id=athlete_id, athlete_name=athlete_name)


@router.put("/swim", summary="Create or update a personal swim record")
async def upsert_swim_record(
    request: SwimRecordRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.upsert_swim_record(request.to_record())


# ---------------------------------------------------------------------------
# Club records
# ---------------------------------------------------------------------------

@router.get("/club", summary="Club records, filtered")
async def list_club_records(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    pool_m: int | None = Query(None),
    sex: str | None = Query(None),
    age: int | None = Query(None),
    event_code: str | None = Query(None),
):
    return training_api.get_club_records(pool_m=pool_m, sex=sex, age=age, event_code=event_code)


@router.get("/club/swimmers", summary="Swimmers eligible for club records")
async def list_club_swimmers(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_club_record_swimmers()


@router.post("/club/swimmers", status_code=status.HTTP_201_CREATED, summary="Add a swimmer by hand")
async def create_club_swimmer(
    request: ClubSwimmerRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.create_club_record_swimmer(**request.model_dump())


@router.patch(
    "/club/swimmers/{swimmer_id}",
    summary="Update a club record swimmer",
    responses={404: {"description": "Swimmer not found"}},
)
async def update_club_swimmer(
    swimmer_id: int,
    request: ClubSwimmerPatch,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.update_club_record_swimmer(swimmer_id, **request.model_dump(exclude_unset=True))


@router.post(
    "/club/swimmers/sync",
    response_model=SyncCountResponse,
    summary="Create or refresh swimmer entries from athlete accounts",
)
async def sync_club_swimmers(training_api: TrainingApiDep, api_key: AuthenticatedUser) -> SyncCountResponse:
    return SyncCountResponse(changed=training_api.sync_club_record_swimmers_from_users())


@router.get("/performances", summary="Imported federation performances")
async def list_performances(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    user_id: int | None = Query(None),
    iuf: str | None = Query(None),
    event_code: str | None = Query(None),
    pool_length: int | None = Query(None),
    from_date: str | None = Query(None),
    to_date: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
):
    return training_api.get_swimmer_performances(
        user_id=user_id,
        iuf=iuf,
        event_code=event_code,
        pool_length=pool_length,
        from_date=from_date,
        to_date=to_date,
        limit=limit,
    )


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------

@router.get("/imports/logs", summary="History of import jobs")
async def list_import_logs(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    swimmer_iuf: str | None = Query(None),
    limit: int | None = Query(None, ge=1),
):
    return training_api.get_import_logs(swimmer_iuf, limit)


@router.post(
    "/imports/swimmer",
    summary="Import one swimmer's federation performances",
    responses={503: {"description": "Server-side functions not configured"}},
)
async def import_swimmer(
    request: SwimmerImportRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    if request.user_id is not None:
        return training_api.import_swimmer_performances(request.swimmer_iuf, request.user_id)
    return training_api.import_single_swimmer(request.swimmer_iuf, request.swimmer_name)


@router.post(
    "/imports/club-records",
    summary="Refresh club records from the federation",
    responses={503: {"description": "Server-side functions not configured"}},
)
async def import_club_records(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    recalculate: bool = Query(False, description="Recompute from stored performances only"),
):
    if recalculate:
        return training_api.recalculate_club_records()
    return training_api.import_club_records()


@router.post(
    "/imports/ffn-sync",
    summary="Copy federation best times into personal records",
    responses={503: {"description": "Server-side functions not configured"}},
)
async def sync_ffn_records(
    request: FfnSyncRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.sync_ffn_swim_records(request.iuf, request.athlete_id, request.athlete_name)
