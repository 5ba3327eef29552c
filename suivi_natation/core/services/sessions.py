"""
Swim session log: what athletes record after each pool session.

The database keeps ratings on the 1-10 scale; the local mirror keeps them
as entered, on the 1-5 scale, so a local round trip never shifts them.
"""

import logging
from typing import Optional

from ..errors import NotFoundError
from ..training.models import SessionDraft, TrainingSession
from ...infrastructure.mappers import present, session_from_row, session_to_row
from ...infrastructure.store.base import CollectionStore, Query, by_id
from .base import Service, athlete_query, utc_now

logger = logging.getLogger(__name__)

SESSION_NOT_FOUND = "Séance introuvable"
LOCAL_MODE = "local"


def _row_for(store: CollectionStore, draft: SessionDraft) -> dict:
    return session_to_row(draft, ten_scale=store.mode != LOCAL_MODE)


def _validate_draft(draft: SessionDraft) -> None:
    """Sessions are read back by athlete name and date; both are required."""
    if not (draft.athlete_name or "").strip():
        raise ValueError("Missing athlete name")
    if not (draft.date or "").strip():
        raise ValueError("Missing session date")


def _has_athlete_id(athlete_id: Optional[int]) -> bool:
    return athlete_id is not None and str(athlete_id) != ""


class SessionService(Service):

    def get_sessions(
        self,
        athlete_name: Optional[str] = None,
        athlete_id: Optional[int] = None,
    ) -> list[TrainingSession]:
        """
        Sessions of one athlete, most recent date first.

        The local mirror matches the name ignoring case.
        """
        store = self._store()
        if store.mode == LOCAL_MODE and not _has_athlete_id(athlete_id):
            wanted = (athlete_name or "").casefold()
            rows = [
                row for row in store.select("sessions", Query().order_by("session_date", descending=True))
                if str(row.get("athlete_name") or "").casefold() == wanted
            ]
        else:
            query = athlete_query(athlete_id, athlete_name).order_by("session_date", descending=True)
            rows = store.select("sessions", query)
        return present(session_from_row(row) for row in rows)

    def get_all_sessions(self) -> list[TrainingSession]:
        rows = self._store().select("sessions", Query().order_by("session_date", descending=True))
        return present(session_from_row(row) for row in rows)

    def sync_session(self, draft: SessionDraft) -> TrainingSession:
        """Record a new session. Returns it with its generated id."""
        _validate_draft(draft)
        store = self._store()
        row = _row_for(store, draft)
        row["id"] = self._next_id()
        row["created_at"] = utc_now()
        store.insert("sessions", [row])

        logger.info(
            "Session recorded",
            extra={"session_id": row["id"], "athlete": draft.athlete_name}
        )
        return session_from_row(row)

    def update_session(self, session_id: int, draft: SessionDraft) -> TrainingSession:
        _validate_draft(draft)
        store = self._store()
        existing = store.select("sessions", by_id(session_id))
        if not existing:
            raise NotFoundError(SESSION_NOT_FOUND)

        values = _row_for(store, draft)
        values["updated_at"] = utc_now()
        store.update("sessions", values, by_id(session_id))
        return session_from_row({**existing[0], **values})

    def delete_session(self, session_id: int) -> None:
        store = self._store()
        store.delete("swim_exercise_logs", Query().eq("session_id", session_id))
        store.delete("sessions", by_id(session_id))
