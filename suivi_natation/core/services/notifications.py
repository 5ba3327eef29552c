"""
Notifications and their per-recipient delivery rows.

A notification is stored once; each recipient (user, group or athlete
name) gets a notification_targets row, and read state lives on that row.
"""

import logging
from typing import Any, Iterable, Optional, Sequence

from ..errors import NotFoundError
from ..training.models import Notification, NotificationPage, NotificationTarget, NotificationType, Pagination
from ..training.strength import clamp_limit, clamp_offset, end_of_day, normalize_order, parse_timestamp
from ...infrastructure.mappers import notification_from_rows
from ...infrastructure.store.base import CollectionStore, Filter, Query, by_id
from .base import Service, utc_now

logger = logging.getLogger(__name__)

NOTIFICATION_DEFAULT_LIMIT = 20
BROADCAST_ATHLETE = "All"
TARGET_NOT_FOUND = "Notification introuvable"


def user_group_ids(store: CollectionStore, user_id: Optional[int]) -> list[int]:
    """Groups a user belongs to. Unknown or missing users belong to none."""
    if not user_id:
        return []
    rows = store.select("group_members", Query().eq("user_id", user_id))
    return [row["group_id"] for row in rows if (row.get("group_id") or 0) > 0]


def recipient_filters(
    store: CollectionStore,
    user_id: Optional[int],
    athlete_name: Optional[str] = None,
    include_broadcast: bool = False,
) -> list[Filter]:
    """OR-filters selecting rows addressed to a user, their groups or their name."""
    filters = []
    if user_id is not None and str(user_id) != "":
        filters.append(Filter("target_user_id", "eq", int(user_id)))
    for group_id in user_group_ids(store, user_id):
        filters.append(Filter("target_group_id", "eq", group_id))
    if athlete_name:
        names = [athlete_name, BROADCAST_ATHLETE] if include_broadcast else [athlete_name]
        filters.append(Filter("target_athlete", "in", tuple(names)))
    return filters


def insert_notification(
    store: CollectionStore,
    next_id,
    title: str,
    body: Optional[str],
    notification_type: NotificationType,
    targets: Iterable[dict[str, Any]],
    created_by: Optional[int] = None,
    related_id: Optional[int] = None,
) -> int:
    """Write one notification row and one target row per recipient. Returns the notification id."""
    notification_id = next_id()
    store.insert("notifications", [{
        "id": notification_id,
        "title": title,
        "body": body,
        "type": notification_type.value,
        "created_by": created_by,
        "related_id": related_id,
        "created_at": utc_now(),
    }])
    target_rows = [
        {
            "id": next_id(),
            "notification_id": notification_id,
            "target_user_id": target.get("target_user_id"),
            "target_group_id": target.get("target_group_id"),
            "target_athlete": target.get("target_athlete"),
            "read_at": None,
        }
        for target in targets
    ]
    if target_rows:
        store.insert("notification_targets", target_rows)
    return notification_id


class NotificationService(Service):

    def send_notification(
        self,
        title: str,
        body: Optional[str] = None,
        notification_type: Any = NotificationType.MESSAGE,
        targets: Sequence[NotificationTarget] = (),
        created_by: Optional[int] = None,
    ) -> int:
        kind = notification_type if isinstance(notification_type, NotificationType) else NotificationType(notification_type)
        notification_id = insert_notification(
            self._store(),
            self._next_id,
            title,
            body,
            kind,
            [
                {"target_user_id": target.target_user_id, "target_group_id": target.target_group_id}
                for target in targets
            ],
            created_by=created_by,
        )
        logger.info(
            "Notification sent",
            extra={"notification_id": notification_id, "target_count": len(targets)}
        )
        return notification_id

    def list_notifications(
        self,
        target_user_id: Optional[int] = None,
        target_athlete_name: Optional[str] = None,
        limit: Any = None,
        offset: Any = None,
        order: Optional[str] = None,
        status: Optional[str] = None,
        notification_type: Optional[str] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> NotificationPage:
        """
        Notifications addressed to a user (directly or through a group) or to an
        athlete name, filtered and paged.

        status is "read" or "unread"; date_to covers the whole day.
        """
        page_limit = clamp_limit(limit, NOTIFICATION_DEFAULT_LIMIT)
        page_offset = clamp_offset(offset)
        direction = normalize_order(order)
        store = self._store()

        filters = recipient_filters(store, target_user_id, target_athlete_name, include_broadcast=True)
        if not filters:
            return NotificationPage([], Pagination(page_limit, page_offset, 0))

        query = Query().any_of(*filters)
        if status == "read":
            query.not_null("read_at")
        elif status == "unread":
            query.is_null("read_at")
        target_rows = store.select("notification_targets", query)
        if not target_rows:
            return NotificationPage([], Pagination(page_limit, page_offset, 0))

        notification_query = Query().in_("id", {row.get("notification_id") for row in target_rows})
        if notification_type:
            notification_query.eq("type", notification_type)
        notifications_by_id = {
            row["id"]: row for row in store.select("notifications", notification_query)
        }

        lower = parse_timestamp(date_from)
        upper = end_of_day(date_to)
        mapped = []
        for target_row in target_rows:
            notification_row = notifications_by_id.get(target_row.get("notification_id"))
            if notification_row is None:
                continue
            created = parse_timestamp(notification_row.get("created_at"))
            if lower is not None and (created is None or created < lower):
                continue
            if upper is not None and (created is None or created > upper):
                continue
            mapped.append((created, notification_from_rows(target_row, notification_row)))

        mapped = [entry for entry in mapped if entry[1] is not None]
        mapped.sort(key=lambda entry: entry[0].timestamp() if entry[0] else 0, reverse=direction == "desc")
        notifications = [notification for _, notification in mapped]
        return NotificationPage(
            notifications=notifications[page_offset:page_offset + page_limit],
            pagination=Pagination(page_limit, page_offset, len(notifications)),
        )

    def get_notifications(self, athlete_name: str) -> list[Notification]:
        """Everything addressed to an athlete by name, including broadcasts, newest first."""
        return self.list_notifications(target_athlete_name=athlete_name, limit=200).notifications

    def mark_read(self, target_id: Optional[int]) -> None:
        if not target_id:
            raise ValueError("Missing target id")
        store = self._store()
        if not store.select("notification_targets", by_id(target_id)):
            raise NotFoundError(TARGET_NOT_FOUND)
        store.update("notification_targets", {"read_at": utc_now()}, by_id(target_id))

    def unread_count(self, target_user_id: Optional[int] = None, target_athlete_name: Optional[str] = None) -> int:
        return self.list_notifications(
            target_user_id=target_user_id,
            target_athlete_name=target_athlete_name,
            status="unread",
            limit=1,
        ).pagination.total
