"""
Strength training API endpoints.

Covers the exercise library, session templates, runs (one athlete doing
one template), per-set logging, 1RM records and training history.

Responses are the data layer's own dataclasses, serialized as-is.
"""

import logging
from typing import Any

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from ...core.training.models import RunStatus, SetLog
from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------

class StrengthSessionRequest(BaseModel):
    """
    A strength template.

    Items accept either storage names (ordre, rest_series_s, pct_1rm) or
    domain names (order_index, rest_seconds, percent_1rm).
    """
    title: str = Field(min_length=1)
    description: str = ""
    cycle: str | None = Field(None, description="endurance, hypertrophie or force")
    items: list[dict[str, Any]] = Field(default_factory=list)


class StartRunRequest(BaseModel):
    session_id: int | None = None
    assignment_id: int | None = None
    athlete_id: int | None = None
    athlete_name: str | None = None
    cycle_type: str | None = None
    progress_pct: float = 0


class SetLogRequest(BaseModel):
    """One performed set."""
    exercise_id: int
    set_index: int | None = None
    reps: int | None = Field(None, ge=0)
    weight: float | None = Field(None, ge=0, description="Load in kg")
    rest_seconds: int | None = None
    rpe: int | None = None
    notes: str | None = None
    pct_1rm_suggested: float | None = None
    completed_at: str | None = None
    athlete_id: int | None = None
    athlete_name: str | None = None

    def to_set_log(self) -> SetLog:
        return SetLog(**self.model_dump(exclude={"athlete_id", "athlete_name"}))


class UpdateRunRequest(BaseModel):
    status: RunStatus | None = None
    progress_pct: float | None = Field(None, ge=0, le=100)
    fatigue: int | None = None
    comments: str | None = None
    assignment_id: int | None = None


class SaveRunRequest(BaseModel):
    """Finish a run in one call, creating it when run_id is absent."""
    logs: list[dict[str, Any]]
    run_id: int | None = None
    assignment_id: int | None = None
    athlete_id: int | None = None
    athlete_name: str | None = None
    session_id: int | None = None
    cycle_type: str | None = None
    progress_pct: float | None = None


class SaveRunResponse(BaseModel):
    run_id: int


class OneRmRequest(BaseModel):
    weight: float = Field(gt=0, description="1RM in kg")
    athlete_id: int | None = None
    athlete_name: str | None = None


# ---------------------------------------------------------------------------
# Exercises and templates
# ---------------------------------------------------------------------------

@router.get("/exercises", summary="List exercises")
async def list_exercises(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_exercises()


@router.get("/sessions", summary="List strength session templates")
async def list_strength_sessions(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_strength_sessions()


@router.get(
    "/sessions/{session_id}",
    summary="Get one strength session template",
    responses={404: {"description": "Template not found"}},
)
async def get_strength_session(
    session_id: int,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.get_strength_session(session_id)


@router.post(
    "/sessions",
    status_code=status.HTTP_201_CREATED,
    summary="Create a strength session template",
    responses={422: {"description": "Invalid item list"}},
)
async def create_strength_session(
    request: StrengthSessionRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.create_strength_session(
        request.title, request.description, request.cycle, request.items
    )


@router.put("/sessions/{session_id}", summary="Replace a strength session template")
async def update_strength_session(
    session_id: int,
    request: StrengthSessionRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.update_strength_session(
        session_id, request.title, request.description, request.cycle, request.items
    )


@router.delete(
    "/sessions/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a strength session template",
)
async def delete_strength_session(
    session_id: int,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> None:
    training_api.delete_strength_session(session_id)


@router.get(
    "/sessions/{session_id}/items",
    summary="Items of a template with parameters resolved for a cycle",
)
async def resolve_strength_items(
    session_id: int,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    cycle: str | None = Query(None),
):
    return training_api.resolve_strength_items(session_id, cycle)


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------

@router.post("/runs", status_code=status.HTTP_201_CREATED, summary="Start a strength run")
async def start_run(
    request: StartRunRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.start_strength_run(**request.model_dump())


@router.post(
    "/runs/complete",
    response_model=SaveRunResponse,
    summary="Save a whole run at once",
    responses={409: {"description": "Run already finished"}},
)
async def save_run(
    request: SaveRunRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> SaveRunResponse:
    run_id = training_api.save_strength_run(**request.model_dump())
    return SaveRunResponse(run_id=run_id)


@router.get("/runs/{run_id}", summary="Get a run with its set logs")
async def get_run(run_id: int, training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_strength_run(run_id)


@router.post(
    "/runs/{run_id}/logs",
    status_code=status.HTTP_201_CREATED,
    summary="Log one set",
    responses={409: {"description": "Run is completed or abandoned"}},
)
async def log_set(
    run_id: int,
    request: SetLogRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.log_strength_set(
        run_id, request.to_set_log(), request.athlete_id, request.athlete_name
    )


@router.patch(
    "/runs/{run_id}",
    summary="Update progress or status of a run",
    responses={409: {"description": "Run is completed or abandoned"}},
)
async def update_run(
    run_id: int,
    request: UpdateRunRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.update_strength_run(run_id, **request.model_dump())


@router.delete("/runs/{run_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a run")
async def delete_run(run_id: int, training_api: TrainingApiDep, api_key: AuthenticatedUser) -> None:
    training_api.delete_strength_run(run_id)


# ---------------------------------------------------------------------------
# History and 1RM
# ---------------------------------------------------------------------------

@router.get("/history", summary="Paged run history with per-exercise totals")
async def get_history(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    athlete_name: str | None = Query(None),
    athlete_id: int | None = Query(None),
    limit: int | None = Query(None),
    offset: int | None = Query(None),
    order: str | None = Query("desc"),
    status_filter: str | None = Query(None, alias="status"),
    date_from: str | None = Query(None),
    date_to: str | None = Query(None),
):
    return training_api.get_strength_history(
        athlete_name=athlete_name,
        athlete_id=athlete_id,
        limit=limit,
        offset=offset,
        order=order,
        status=status_filter,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/history/aggregate", summary="Tonnage and volume per period")
async def get_history_aggregate(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    athlete_name: str | None = Query(None),
    athlete_id: int | None = Query(None),
    period: str = Query("day", pattern="^(day|week|month)$"),
    limit: int | None = Query(None),
    offset: int | None = Query(None),
    order: str | None = Query("desc"),
    date_from: str | None = Query(None),
    date_to: str | None = Query(None),
):
    return training_api.get_strength_history_aggregate(
        athlete_name=athlete_name,
        athlete_id=athlete_id,
        period=period,
        limit=limit,
        offset=offset,
        order=order,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/one-rm", summary="1RM records of one athlete")
async def get_one_rm(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    athlete_name: str | None = Query(None),
    athlete_id: int | None = Query(None),
):
    return training_api.get_1rm(athlete_id=athlete_id, athlete_name=athlete_name)


@router.put("/one-rm/{exercise_id}", summary="Set a 1RM manually")
async def update_one_rm(
    exercise_id: int,
    request: OneRmRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.update_1rm(
        exercise_id, request.weight, athlete_id=request.athlete_id, athlete_name=request.athlete_name
    )
