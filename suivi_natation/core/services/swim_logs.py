"""
Technical notes per swim exercise (splits, tempo, stroke counts).
"""

from typing import Any, Iterable, Mapping, Optional, Union

from ..training.models import SwimExerciseLog
from ..training.scales import safe_optional_int, safe_optional_number
from ...infrastructure.mappers import present, swim_exercise_log_from_row, swim_exercise_log_to_row
from ...infrastructure.store.base import Query, by_id
from .base import Service, utc_now

HISTORY_DEFAULT_LIMIT = 50
PATCHABLE_FIELDS = ("exercise_label", "split_times", "tempo", "stroke_count", "notes")


class SwimLogService(Service):

    def get_logs(self, session_id: int) -> list[SwimExerciseLog]:
        query = Query().eq("session_id", session_id).order_by("created_at")
        return present(swim_exercise_log_from_row(row) for row in self._store().select("swim_exercise_logs", query))

    def get_history(self, user_id: int, limit: int = HISTORY_DEFAULT_LIMIT) -> list[SwimExerciseLog]:
        query = Query().eq("user_id", user_id).order_by("created_at", descending=True).page(limit)
        return present(swim_exercise_log_from_row(row) for row in self._store().select("swim_exercise_logs", query))

    def save_logs(
        self,
        session_id: int,
        user_id: int,
        logs: Iterable[Union[SwimExerciseLog, Mapping[str, Any]]],
    ) -> list[SwimExerciseLog]:
        """Replace every log this user has for the session."""
        store = self._store()
        store.delete("swim_exercise_logs", Query().eq("session_id", session_id).eq("user_id", user_id))

        now = utc_now()
        saved = []
        for raw in logs:
            if isinstance(raw, SwimExerciseLog):
                log = raw
                log.session_id = session_id
                log.user_id = user_id
            else:
                log = SwimExerciseLog(
                    id=0,
                    session_id=session_id,
                    user_id=user_id,
                    exercise_label=str(raw.get("exercise_label") or ""),
                    source_item_id=safe_optional_int(raw.get("source_item_id")),
                    split_times=list(raw.get("split_times") or []),
                    tempo=safe_optional_number(raw.get("tempo")),
                    stroke_count=list(raw.get("stroke_count") or []),
                    notes=raw.get("notes"),
                )
            log.id = self._next_id()
            log.created_at = now
            log.updated_at = now
            saved.append(log)

        if saved:
            rows = []
            for log in saved:
                row = swim_exercise_log_to_row(log)
                row.update({"id": log.id, "created_at": now, "updated_at": now})
                rows.append(row)
            store.insert("swim_exercise_logs", rows)
        return saved

    def update_log(self, log_id: int, patch: Mapping[str, Any]) -> Optional[SwimExerciseLog]:
        values = {key: patch[key] for key in PATCHABLE_FIELDS if key in patch}
        values["updated_at"] = utc_now()
        store = self._store()
        store.update("swim_exercise_logs", values, by_id(log_id))
        rows = store.select("swim_exercise_logs", by_id(log_id))
        return swim_exercise_log_from_row(rows[0]) if rows else None

    def delete_log(self, log_id: int) -> None:
        self._store().delete("swim_exercise_logs", by_id(log_id))
