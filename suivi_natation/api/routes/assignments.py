"""
Assignment API endpoints.

A coach schedules a catalog session (swim or strength) for a user, a
group or an athlete name. Every assignment also notifies its target.
Assigning to several groups reports 207 when only some groups worked.
"""

import logging

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from ...core.training.models import AssignmentDraft, SessionType
from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request/Response Models
# ---------------------------------------------------------------------------

class AssignmentRequest(BaseModel):
    session_id: int = Field(description="Swim catalog id or strength session id")
    session_type: SessionType
    scheduled_date: str | None = Field(None, description="Defaults to today (UTC)")
    scheduled_slot: str | None = None
    target_user_id: int | None = None
    target_group_id: int | None = None
    target_athlete: str | None = None
    assigned_by: int | None = None

    def to_draft(self) -> AssignmentDraft:
        return AssignmentDraft(**self.model_dump())


class GroupAssignmentRequest(BaseModel):
    session_id: int
    session_type: SessionType
    group_ids: list[int] = Field(min_length=1)
    scheduled_date: str | None = None
    scheduled_slot: str | None = None
    assigned_by: int | None = None


class GroupAssignmentResponse(BaseModel):
    """Group id -> created assignment id."""
    assignment_ids: dict[int, int]


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("", summary="Open assignments of an athlete")
async def list_assignments(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    athlete_name: str | None = Query(None),
    athlete_id: int | None = Query(None),
    assignment_type: str | None = Query(None, pattern="^(swim|strength)$"),
    status_filter: str | None = Query(None, alias="status"),
):
    return training_api.get_assignments(
        athlete_name=athlete_name,
        athlete_id=athlete_id,
        assignment_type=assignment_type,
        status=status_filter,
    )


@router.get("/all", summary="Every assignment, for coaches")
async def list_all_assignments(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_assignments_for_coach()


@router.post(
    "",
    status_code=status.HTTP_201_CREATED,
    summary="Assign a session",
    responses={
        404: {"description": "Source session not found"},
        422: {"description": "No target given"},
    },
)
async def create_assignment(
    request: AssignmentRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.create_assignment(request.to_draft())


@router.post(
    "/groups",
    response_model=GroupAssignmentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Assign a session to several groups",
    responses={207: {"description": "Some groups failed"}},
)
async def create_group_assignments(
    request: GroupAssignmentRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> GroupAssignmentResponse:
    draft = AssignmentDraft(
        session_id=request.session_id,
        session_type=request.session_type,
        scheduled_date=request.scheduled_date,
        scheduled_slot=request.scheduled_slot,
        assigned_by=request.assigned_by,
    )
    result = training_api.create_group_assignments(draft, request.group_ids)
    return GroupAssignmentResponse(assignment_ids=result.assignment_ids)


@router.delete(
    "/{assignment_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete an assignment",
)
async def delete_assignment(
    assignment_id: int,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> None:
    training_api.delete_assignment(assignment_id)
