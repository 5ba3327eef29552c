"""
Coach timesheet: worked shifts and the places they happen.
"""

import logging
from typing import Any, Optional

from ..errors import NotFoundError
from ..training.models import TimesheetLocation, TimesheetShift, UserSummary
from ...infrastructure.mappers import (
    present,
    timesheet_location_from_row,
    timesheet_shift_from_row,
    timesheet_shift_to_row,
    user_summary_from_row,
)
from ...infrastructure.store.base import Query, by_id
from .base import Service, utc_now

logger = logging.getLogger(__name__)

SHIFT_NOT_FOUND = "Créneau introuvable"
SHIFT_FIELDS = ("coach_id", "shift_date", "start_time", "end_time", "location", "is_travel")


class TimesheetService(Service):

    def list_shifts(
        self,
        coach_id: Optional[int] = None,
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> list[TimesheetShift]:
        """Shifts newest first; same-day shifts by start time, latest first."""
        query = Query().order_by("shift_date", descending=True).order_by("start_time", descending=True)
        if coach_id:
            query.eq("coach_id", coach_id)
        if date_from:
            query.gte("shift_date", date_from)
        if date_to:
            query.lte("shift_date", date_to)
        return present(timesheet_shift_from_row(row) for row in self._store().select("timesheet_shifts", query))

    def create_shift(self, shift: TimesheetShift) -> TimesheetShift:
        shift.id = shift.id or self._next_id()
        shift.created_at = utc_now()
        row = timesheet_shift_to_row(shift)
        row.update({"id": shift.id, "created_at": shift.created_at})
        self._store().insert("timesheet_shifts", [row])
        logger.info(
            "Shift created",
            extra={"shift_id": shift.id, "coach_id": shift.coach_id}
        )
        return shift

    def update_shift(self, shift_id: int, **changes: Any) -> TimesheetShift:
        store = self._store()
        rows = store.select("timesheet_shifts", by_id(shift_id))
        if not rows:
            raise NotFoundError(SHIFT_NOT_FOUND)
        values = {key: changes[key] for key in SHIFT_FIELDS if key in changes}
        values["updated_at"] = utc_now()
        store.update("timesheet_shifts", values, by_id(shift_id))
        return timesheet_shift_from_row({**rows[0], **values})

    def delete_shift(self, shift_id: int) -> None:
        self._store().delete("timesheet_shifts", by_id(shift_id))

    def list_locations(self) -> list[TimesheetLocation]:
        rows = self._store().select("timesheet_locations", Query().order_by("name"))
        return present(timesheet_location_from_row(row) for row in rows)

    def create_location(self, name: str) -> dict[str, Any]:
        """
        Add a location unless one with the same name exists, ignoring case.

        Returns {"status": "created", "location": ...} or {"status": "exists"}.
        """
        trimmed = (name or "").strip()
        if not trimmed:
            raise ValueError("Missing location name")
        existing = self.list_locations()
        if any(location.name.lower() == trimmed.lower() for location in existing):
            return {"status": "exists"}

        now = utc_now()
        row = {"id": self._next_id(), "name": trimmed, "created_at": now, "updated_at": now}
        self._store().insert("timesheet_locations", [row])
        return {"status": "created", "location": timesheet_location_from_row(row)}

    def delete_location(self, location_id: int) -> None:
        self._store().delete("timesheet_locations", by_id(location_id))

    def list_coaches(self) -> list[UserSummary]:
        rows = self._store().select(
            "users",
            Query().eq("role", "coach").eq("is_active", True).order_by("display_name"),
        )
        return present(user_summary_from_row(row) for row in rows)
