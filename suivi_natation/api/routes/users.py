"""
User-specific API endpoints.

Profiles, athlete and group directories, birthdays, and the admin actions
(coach accounts, roles) that go through the server-side functions.
"""

import logging

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from ...core.training.models import UserProfile
from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------------
# Request Models
# ---------------------------------------------------------------------------

class ProfileRequest(BaseModel):
    display_name: str | None = None
    email: str | None = None
    birthdate: str | None = None
    group_id: int | None = None
    group_label: str | None = None
    objectives: str | None = None
    bio: str | None = None
    avatar_url: str | None = None
    ffn_iuf: str | None = Field(None, description="Federation swimmer id")


class CreateCoachRequest(BaseModel):
    display_name: str = Field(min_length=1)
    email: str | None = None
    password: str | None = None


class RoleRequest(BaseModel):
    role: str = Field(description="athlete, coach, comite or admin")


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------

@router.get("/athletes", summary="Athlete directory")
async def list_athletes(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_athletes()


@router.get("/groups", summary="Training groups")
async def list_groups(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_groups()


@router.get("/birthdays", summary="Birthdays in the coming days")
async def upcoming_birthdays(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    days: int = Query(30, ge=1, le=366),
):
    return training_api.get_upcoming_birthdays(days)


@router.get("", summary="List user accounts")
async def list_users(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    role: str | None = Query(None),
    include_inactive: bool = Query(False),
):
    return training_api.list_users(role, include_inactive)


@router.get("/{user_id}/profile", summary="Get a user profile")
async def get_profile(user_id: int, training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_profile(user_id=user_id)


@router.put("/{user_id}/profile", summary="Create or replace a user profile")
async def update_profile(
    user_id: int,
    request: ProfileRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.update_profile(UserProfile(user_id=user_id, **request.model_dump()))


@router.post(
    "/coaches",
    status_code=status.HTTP_201_CREATED,
    summary="Create a coach account",
    responses={503: {"description": "Server-side functions not configured"}},
)
async def create_coach(
    request: CreateCoachRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.create_coach(request.display_name, request.email, request.password)


@router.put(
    "/{user_id}/role",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Change a user's role",
)
async def update_role(
    user_id: int,
    request: RoleRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> None:
    training_api.update_user_role(user_id, request.role)


@router.post(
    "/{user_id}/disable",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Disable a user account",
)
async def disable_user(user_id: int, training_api: TrainingApiDep, api_key: AuthenticatedUser) -> None:
    training_api.disable_user(user_id)
