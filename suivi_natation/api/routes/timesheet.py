"""
Coach timesheet API endpoints.
"""

import logging

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from ...core.training.models import TimesheetShift
from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


class ShiftRequest(BaseModel):
    coach_id: int
    shift_date: str = Field(description="YYYY-MM-DD")
    start_time: str = Field(description="HH:MM")
    end_time: str | None = Field(None, description="Empty while the shift is open")
    location: str | None = None
    is_travel: bool = False


class ShiftPatch(BaseModel):
    shift_date: str | None = None
    start_time: str | None = None
    end_time: str | None = None
    location: str | None = None
    is_travel: bool | None = None


class LocationRequest(BaseModel):
    name: str


@router.get("/shifts", summary="List shifts, newest first")
async def list_shifts(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    coach_id: int | None = Query(None),
    date_from: str | None = Query(None),
    date_to: str | None = Query(None),
):
    return training_api.list_timesheet_shifts(coach_id, date_from, date_to)


@router.post("/shifts", status_code=status.HTTP_201_CREATED, summary="Record a shift")
async def create_shift(
    request: ShiftRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.create_timesheet_shift(TimesheetShift(id=0, **request.model_dump()))


@router.patch(
    "/shifts/{shift_id}",
    summary="Update a shift",
    responses={404: {"description": "Shift not found"}},
)
async def update_shift(
    shift_id: int,
    request: ShiftPatch,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.update_timesheet_shift(shift_id, **request.model_dump(exclude_unset=True))


@router.delete("/shifts/{shift_id}", status_code=status.HTTP_204_NO_CONTENT, summary="Delete a shift")
async def delete_shift(shift_id: int, training_api: TrainingApiDep, api_key: AuthenticatedUser) -> None:
    training_api.delete_timesheet_shift(shift_id)


@router.get("/locations", summary="Known shift locations")
async def list_locations(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.list_timesheet_locations()


@router.post(
    "/locations",
    summary="Add a location",
    description="Answers status 'exists' when a location with the same name (any case) is already known.",
)
async def create_location(
    request: LocationRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.create_timesheet_location(request.name)


@router.delete(
    "/locations/{location_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a location",
)
async def delete_location(location_id: int, training_api: TrainingApiDep, api_key: AuthenticatedUser) -> None:
    training_api.delete_timesheet_location(location_id)


@router.get("/coaches", summary="Active coaches")
async def list_coaches(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.list_timesheet_coaches()
