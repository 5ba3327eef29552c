"""
Assignments: scheduling a catalog session for an athlete, a user or a group.

Every assignment creates a notification addressed to the same target.
Deleting an assignment leaves its notification in place.
"""

import dataclasses
import logging
from typing import Iterable, Optional

from ..errors import NotFoundError, PartialAssignmentError
from ..training.models import (
    Assignment,
    AssignmentDraft,
    AssignmentStatus,
    Cycle,
    GroupAssignmentResult,
    NotificationType,
    SessionType,
    StrengthSessionTemplate,
    SwimSessionTemplate,
)
from ...infrastructure.functions.client import FunctionsClient
from ...infrastructure.mappers import assignment_from_row
from ...infrastructure.store.base import Query, by_id
from ...infrastructure.store.factory import DataContext
from .base import Service, utc_now, utc_today
from .catalog import SwimCatalogService
from .notifications import insert_notification, recipient_filters
from .strength import StrengthSessionService

logger = logging.getLogger(__name__)

ASSIGNMENT_TITLE = "Nouvelle séance assignée"
SWIM_FALLBACK_TITLE = "Séance natation"
STRENGTH_FALLBACK_TITLE = "Séance musculation"
SOURCE_NOT_FOUND = "Séance introuvable"


class AssignmentService(Service):

    def __init__(self, context: DataContext, functions: Optional[FunctionsClient] = None) -> None:
        super().__init__(context, functions)
        self.swim_catalog = SwimCatalogService(context, functions)
        self.strength_sessions = StrengthSessionService(context, functions)

    def _source_title(self, draft: AssignmentDraft) -> str:
        table = "swim_sessions_catalog" if draft.session_type is SessionType.SWIM else "strength_sessions"
        rows = self._store().select(table, by_id(draft.session_id))
        if not rows:
            raise NotFoundError(SOURCE_NOT_FOUND)
        return rows[0].get("name") or ""

    def create_assignment(self, draft: AssignmentDraft) -> Assignment:
        """
        Schedule a session and notify its target.

        The scheduled date defaults to today. A user target wins over a
        group target; an athlete name is kept alongside either.
        """
        if draft.target_user_id is None and draft.target_group_id is None and not draft.target_athlete:
            raise ValueError("Missing assignment target")
        title = self._source_title(draft)
        scheduled_date = draft.scheduled_date or utc_today()

        row = {
            "id": self._next_id(),
            "assignment_type": draft.session_type.value,
            "swim_catalog_id": draft.session_id if draft.session_type is SessionType.SWIM else None,
            "strength_session_id": draft.session_id if draft.session_type is SessionType.STRENGTH else None,
            "target_user_id": draft.target_user_id,
            "target_group_id": draft.target_group_id if draft.target_user_id is None else None,
            "target_athlete": draft.target_athlete,
            "assigned_by": draft.assigned_by,
            "scheduled_date": scheduled_date,
            "scheduled_slot": draft.scheduled_slot,
            "status": AssignmentStatus.ASSIGNED.value,
            "created_at": utc_now(),
        }
        store = self._store()
        store.insert("session_assignments", [row])

        insert_notification(
            store,
            self._next_id,
            ASSIGNMENT_TITLE,
            f"Séance {title} prévue le {scheduled_date}.",
            NotificationType.ASSIGNMENT,
            [{
                "target_user_id": row["target_user_id"],
                "target_group_id": row["target_group_id"],
                "target_athlete": row["target_athlete"],
            }],
            created_by=draft.assigned_by,
            related_id=row["id"],
        )

        logger.info(
            "Session assigned",
            extra={
                "assignment_id": row["id"],
                "session_type": draft.session_type.value,
                "session_id": draft.session_id,
            }
        )
        return assignment_from_row(row, title=title)

    def create_group_assignments(
        self,
        draft: AssignmentDraft,
        group_ids: Iterable[int],
    ) -> GroupAssignmentResult:
        """
        Assign one session to several groups, one group at a time.

        Raises PartialAssignmentError when any group failed. Assignments
        already created for the other groups are kept.
        """
        succeeded: dict[int, int] = {}
        failed: dict[int, Exception] = {}
        for group_id in dict.fromkeys(group_ids):
            group_draft = dataclasses.replace(
                draft, target_group_id=group_id, target_user_id=None, target_athlete=None
            )
            try:
                succeeded[group_id] = self.create_assignment(group_draft).id
            except Exception as e:
                logger.warning(
                    "Group assignment failed",
                    extra={"group_id": group_id, "error": str(e)}
                )
                failed[group_id] = e

        if failed:
            raise PartialAssignmentError(succeeded, failed)
        return GroupAssignmentResult(assignment_ids=succeeded)

    def _enrich(self, rows: list[dict]) -> list[Assignment]:
        swim_by_id: dict[int, SwimSessionTemplate] = {}
        strength_by_id: dict[int, StrengthSessionTemplate] = {}
        if any(row.get("assignment_type") == SessionType.SWIM.value for row in rows):
            swim_by_id = {template.id: template for template in self.swim_catalog.get_swim_catalog()}
        if any(row.get("assignment_type") == SessionType.STRENGTH.value for row in rows):
            strength_by_id = {
                template.id: template for template in self.strength_sessions.get_strength_sessions()
            }

        assignments: dict[int, Assignment] = {}
        for row in rows:
            if row.get("assignment_type") == SessionType.STRENGTH.value:
                strength = strength_by_id.get(row.get("strength_session_id"))
                assignment = assignment_from_row(
                    row,
                    title=strength.title if strength else STRENGTH_FALLBACK_TITLE,
                    description=strength.description if strength else "",
                    items=strength.items if strength else [],
                    cycle=strength.cycle if strength else Cycle.ENDURANCE,
                )
            else:
                swim = swim_by_id.get(row.get("swim_catalog_id"))
                assignment = assignment_from_row(
                    row,
                    title=swim.name if swim else SWIM_FALLBACK_TITLE,
                    description=(swim.description or "") if swim else "",
                    items=swim.items if swim else [],
                )
            if assignment is not None:
                assignments[assignment.id] = assignment
        return list(assignments.values())

    def get_assignments(
        self,
        athlete_name: Optional[str] = None,
        athlete_id: Optional[int] = None,
        assignment_type: Optional[str] = None,
        status: Optional[str] = None,
    ) -> list[Assignment]:
        """
        Assignments addressed to an athlete directly, through one of their
        groups, or by name. Completed ones are hidden unless asked for.
        """
        store = self._store()
        filters = recipient_filters(store, athlete_id, athlete_name)
        if not filters:
            return []
        query = Query().any_of(*filters)
        if assignment_type:
            query.eq("assignment_type", assignment_type)
        if status:
            query.eq("status", status)
        else:
            query.neq("status", AssignmentStatus.COMPLETED.value)
        query.order_by("scheduled_date")

        rows = store.select("session_assignments", query)
        if not rows:
            return []
        return self._enrich(rows)

    def get_assignments_for_coach(self) -> list[Assignment]:
        """Every assignment, most recently scheduled first."""
        rows = self._store().select(
            "session_assignments",
            Query().order_by("scheduled_date", descending=True),
        )
        return self._enrich(rows) if rows else []

    def delete_assignment(self, assignment_id: int) -> None:
        self._store().delete("session_assignments", by_id(assignment_id))
        logger.info("Assignment deleted", extra={"assignment_id": assignment_id})
