"""
Notification API endpoints.

A notification is stored once and delivered through one target row per
recipient; read state lives on the target row.
"""

import logging

from fastapi import APIRouter, Query, status
from pydantic import BaseModel, Field

from ...core.training.models import NotificationTarget, NotificationType
from ..dependencies import AuthenticatedUser, TrainingApiDep

logger = logging.getLogger(__name__)

router = APIRouter()


class TargetRequest(BaseModel):
    target_user_id: int | None = None
    target_group_id: int | None = None


class SendNotificationRequest(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    body: str | None = None
    type: NotificationType = NotificationType.MESSAGE
    targets: list[TargetRequest] = Field(min_length=1)
    created_by: int | None = None


class SendNotificationResponse(BaseModel):
    notification_id: int


class UnreadCountResponse(BaseModel):
    unread: int


@router.get("", summary="Notifications of a user or athlete, paged")
async def list_notifications(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    target_user_id: int | None = Query(None),
    target_athlete_name: str | None = Query(None),
    limit: int | None = Query(None),
    offset: int | None = Query(None),
    order: str | None = Query(None),
    status_filter: str | None = Query(None, alias="status", pattern="^(read|unread)$"),
    notification_type: str | None = Query(None, alias="type"),
    date_from: str | None = Query(None),
    date_to: str | None = Query(None),
):
    return training_api.list_notifications(
        target_user_id=target_user_id,
        target_athlete_name=target_athlete_name,
        limit=limit,
        offset=offset,
        order=order,
        status=status_filter,
        notification_type=notification_type,
        date_from=date_from,
        date_to=date_to,
    )


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Number of unread notifications")
async def unread_count(
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
    target_user_id: int | None = Query(None),
    target_athlete_name: str | None = Query(None),
) -> UnreadCountResponse:
    count = training_api.get_unread_notification_count(target_user_id, target_athlete_name)
    return UnreadCountResponse(unread=count)


@router.post(
    "",
    response_model=SendNotificationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a notification",
)
async def send_notification(
    request: SendNotificationRequest,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> SendNotificationResponse:
    notification_id = training_api.send_notification(
        request.title,
        request.body,
        request.type,
        [NotificationTarget(**target.model_dump()) for target in request.targets],
        request.created_by,
    )
    return SendNotificationResponse(notification_id=notification_id)


@router.post(
    "/targets/{target_id}/read",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Mark one delivery as read",
    responses={404: {"description": "Unknown target"}},
)
async def mark_read(
    target_id: int,
    training_api: TrainingApiDep,
    api_key: AuthenticatedUser,
) -> None:
    training_api.mark_notification_read(target_id)
