"""
Swim session API endpoints.

Athletes log one session per training slot: effort and feeling on the
1-5 scale, distance in meters, duration in minutes. Each request goes to
whichever storage the data layer picks at that moment.
"""

import logging

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, ConfigDict, Field

from ...core.training.models import SessionDraft
from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class SessionRequest(BaseModel):
    """A swim session as entered by the athlete."""
    athlete_name: str = Field(description="Athlete display name", min_length=1)
    athlete_id: int | None = Field(None, description="Athlete user id when known")
    date: str = Field(description="Session date (YYYY-MM-DD)")
    slot: str = Field("", description="Training slot, e.g. Matin or Soir")
    effort: int = Field(description="Perceived effort, 1-5")
    feeling: int = Field(description="Overall feeling, 1-5")
    performance: int | None = Field(None, description="Defaults to feeling when omitted")
    engagement: int | None = Field(None, description="Defaults to feeling when omitted")
    distance: int = Field(0, ge=0, description="Distance in meters")
    duration: int = Field(0, ge=0, description="Duration in minutes")
    comments: str = ""

    def to_draft(self) -> SessionDraft:
        return SessionDraft(**self.model_dump())


class SessionResponse(BaseModel):
    """A stored swim session."""
    model_config = ConfigDict(from_attributes=True)

    id: int
    athlete_name: str
    athlete_id: int | None = None
    date: str
    slot: str | None = None
    effort: int
    feeling: int
    rpe: int | None = None
    performance: int | None = None
    engagement: int | None = None
    fatigue: int | None = None
    distance: int = 0
    distance_km: float = 0
    duration: int = 0
    comments: str = ""
    created_at: str | None = None


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get(
    "",
    response_model=list[SessionResponse],
    summary="List swim sessions",
    description="Sessions of one athlete (by id, else by name), newest first. All sessions when neither is given.",
)
async def list_sessions(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    athlete_name: str | None = Query(None),
    athlete_id: int | None = Query(None),
) -> list[SessionResponse]:
    if athlete_name is None and athlete_id is None:
        sessions = training_api.get_all_sessions()
    else:
        sessions = training_api.get_sessions(athlete_name=athlete_name, athlete_id=athlete_id)
    return [SessionResponse.model_validate(session) for session in sessions]


@router.post(
    "",
    response_model=SessionResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Log a swim session",
)
async def create_session(
    request: SessionRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> SessionResponse:
    session = training_api.sync_session(request.to_draft())
    logger.info(
        "Session logged via API",
        extra={"session_id": session.id, "athlete_name": session.athlete_name}
    )
    return SessionResponse.model_validate(session)


@router.put(
    "/{session_id}",
    response_model=SessionResponse,
    summary="Replace a swim session",
    responses={404: {"description": "Session not found"}},
)
async def update_session(
    session_id: int,
    request: SessionRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> SessionResponse:
    session = training_api.update_session(session_id, request.to_draft())
    return SessionResponse.model_validate(session)


@router.delete(
    "/{session_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a swim session",
)
async def delete_session(
    session_id: int,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> None:
    training_api.delete_session(session_id)


# ---------------------------------------------------------------------------
# Technical notes per exercise
# ---------------------------------------------------------------------------

class ExerciseLogRequest(BaseModel):
    exercise_label: str = Field(min_length=1)
    source_item_id: int | None = None
    split_times: list[float] = Field(default_factory=list)
    tempo: float | None = None
    stroke_count: list[int] = Field(default_factory=list)
    notes: str | None = None


class ExerciseLogsRequest(BaseModel):
    """Replaces every log this user has for the session."""
    user_id: int
    logs: list[ExerciseLogRequest]


@router.get("/{session_id}/exercise-logs", summary="Technical notes of a session")
async def list_exercise_logs(session_id: int, training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_swim_exercise_logs(session_id)


@router.put("/{session_id}/exercise-logs", summary="Replace a user's technical notes for a session")
async def save_exercise_logs(
    session_id: int,
    request: ExerciseLogsRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.save_swim_exercise_logs(
        session_id, request.user_id, [log.model_dump() for log in request.logs]
    )
