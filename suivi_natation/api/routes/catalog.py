"""
Swim catalog API endpoints: coach-curated swim templates.
"""

import logging
from typing import Any

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from ...core.training.models import SwimSessionItem, SwimSessionTemplate
from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


class SwimItemRequest(BaseModel):
    order_index: int | None = None
    label: str | None = None
    distance: int | None = Field(None, ge=0, description="Meters")
    duration: int | None = Field(None, ge=0)
    intensity: str | None = None
    notes: str | None = None
    raw_payload: dict[str, Any] | None = None


class SwimSessionRequest(BaseModel):
    """A swim template. Saving with an existing id replaces it."""
    id: int | None = None
    name: str = Field(min_length=1)
    description: str | None = None
    created_by: int | None = None
    folder: str | None = None
    items: list[SwimItemRequest] = Field(default_factory=list)

    def to_template(self) -> SwimSessionTemplate:
        return SwimSessionTemplate(
            id=self.id or 0,
            name=self.name,
            description=self.description,
            created_by=self.created_by,
            folder=self.folder,
            items=[SwimSessionItem(**item.model_dump()) for item in self.items],
        )


class ArchiveRequest(BaseModel):
    archived: bool = True


class MoveRequest(BaseModel):
    folder: str | None = None


@router.get("", summary="List swim templates, newest first")
async def list_catalog(training_api: TrainingApiDep, api_key: AuthenticatedUser):
    return training_api.get_swim_catalog()


@router.post("", status_code=status.HTTP_201_CREATED, summary="Create or replace a swim template")
async def save_swim_session(
    request: SwimSessionRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
):
    return training_api.save_swim_session(request.to_template())


@router.post(
    "/{catalog_id}/archive",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Archive or unarchive a swim template",
)
async def archive_swim_session(
    catalog_id: int,
    request: ArchiveRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> None:
    training_api.archive_swim_session(catalog_id, request.archived)


@router.post(
    "/{catalog_id}/move",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Move a swim template to a folder",
)
async def move_swim_session(
    catalog_id: int,
    request: MoveRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> None:
    training_api.move_swim_session(catalog_id, request.folder)


@router.delete(
    "/{catalog_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete a swim template and its items",
)
async def delete_swim_session(
    catalog_id: int,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> None:
    training_api.delete_swim_session(catalog_id)
