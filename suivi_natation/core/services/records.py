"""
Records: hall of fame, personal swim records, club records and the
federation (FFN) imports that feed them.

Imports and club record recalculation run as server-side functions; they
need the functions endpoint and raise BackendUnavailableError without it.
"""

import logging
from typing import Any, Mapping, Optional

from ..errors import NotFoundError
from ..training.models import (
    ClubRecord,
    ClubRecordSwimmer,
    HallOfFame,
    ImportSummary,
    SwimmerPerformance,
    SwimRecord,
    SyncSummary,
)
from ..training.ranking import hall_of_fame_from_rows
from ..training.scales import safe_int
from ...infrastructure.functions.client import require_functions
from ...infrastructure.mappers import (
    club_record_from_row,
    club_record_swimmer_from_row,
    present,
    swim_record_from_row,
    swim_record_to_row,
    swimmer_performance_from_row,
)
from ...infrastructure.store.base import Query, by_id
from .base import Service, athlete_query, utc_now

logger = logging.getLogger(__name__)

SWIMMER_NOT_FOUND = "Nageur introuvable"
SWIMMER_FIELDS = ("iuf", "is_active", "sex", "birthdate")


def _import_summary(data: Any) -> ImportSummary:
    data = data if isinstance(data, Mapping) else {}
    return ImportSummary(
        total_found=safe_int(data.get("total_found"), 0),
        new_imported=safe_int(data.get("new_imported"), 0),
        already_existed=safe_int(data.get("already_existed"), 0),
    )


def _job_summary(data: Any) -> Any:
    if isinstance(data, Mapping) and data.get("summary") is not None:
        return data["summary"]
    return data


class RecordService(Service):

    # -- Hall of fame ------------------------------------------------------

    def get_hall_of_fame(self) -> HallOfFame:
        """Top 5 athletes per board: distance, effort, engagement, strength volume."""
        return hall_of_fame_from_rows(self._store().call("get_hall_of_fame"))

    # -- Personal swim records ---------------------------------------------

    def get_swim_records(
        self,
        athlete_id: Optional[int] = None,
        athlete_name: Optional[str] = None,
    ) -> list[SwimRecord]:
        if not athlete_id and not athlete_name:
            return []
        query = athlete_query(athlete_id or None, athlete_name).order_by("record_date", descending=True)
        return present(swim_record_from_row(row) for row in self._store().select("swim_records", query))

    def upsert_swim_record(self, record: SwimRecord) -> SwimRecord:
        """Update the record when its id exists, insert it otherwise."""
        store = self._store()
        values = swim_record_to_row(record)
        if record.id and store.select("swim_records", by_id(record.id)):
            store.update("swim_records", values, by_id(record.id))
            return record
        if not record.id:
            record.id = self._next_id()
        values["id"] = record.id
        store.insert("swim_records", [values])
        logger.info(
            "Swim record created",
            extra={"record_id": record.id, "event": record.event_name}
        )
        return record

    # -- Club records ------------------------------------------------------

    def get_club_records(
        self,
        pool_m: Optional[int] = None,
        sex: Optional[str] = None,
        age: Optional[int] = None,
        event_code: Optional[str] = None,
    ) -> list[ClubRecord]:
        query = Query()
        if pool_m:
            query.eq("pool_m", pool_m)
        if sex:
            query.eq("sex", sex)
        if age:
            query.eq("age", age)
        if event_code:
            query.eq("event_code", event_code)
        return present(club_record_from_row(row) for row in self._store().select("club_records", query))

    def get_club_record_swimmers(self) -> list[ClubRecordSwimmer]:
        rows = self._store().select("club_record_swimmers", Query().order_by("display_name"))
        return present(club_record_swimmer_from_row(row) for row in rows)

    def create_club_record_swimmer(
        self,
        display_name: str,
        iuf: Optional[str] = None,
        sex: Optional[str] = None,
        birthdate: Optional[str] = None,
        is_active: bool = True,
    ) -> ClubRecordSwimmer:
        now = utc_now()
        row = {
            "id": self._next_id(),
            "source_type": "manual",
            "user_id": None,
            "display_name": display_name,
            "iuf": iuf,
            "sex": sex,
            "birthdate": birthdate,
            "is_active": is_active is not False,
            "created_at": now,
            "updated_at": now,
        }
        self._store().insert("club_record_swimmers", [row])
        return club_record_swimmer_from_row(row)

    def _update_swimmers(self, query: Query, changes: Mapping[str, Any]) -> Optional[ClubRecordSwimmer]:
        store = self._store()
        rows = store.select("club_record_swimmers", query)
        if not rows:
            raise NotFoundError(SWIMMER_NOT_FOUND)
        values = {key: changes[key] for key in SWIMMER_FIELDS if key in changes}
        values["updated_at"] = utc_now()
        store.update("club_record_swimmers", values, query)
        return club_record_swimmer_from_row({**rows[0], **values})

    def update_club_record_swimmer(self, swimmer_id: int, **changes: Any) -> Optional[ClubRecordSwimmer]:
        """Patch iuf, is_active, sex or birthdate. Only the given fields change."""
        return self._update_swimmers(by_id(swimmer_id), changes)

    def update_club_record_swimmer_for_user(self, user_id: int, **changes: Any) -> Optional[ClubRecordSwimmer]:
        query = Query().eq("user_id", user_id).eq("source_type", "user")
        return self._update_swimmers(query, changes)

    def sync_club_record_swimmers_from_users(self) -> int:
        """
        Make sure every active athlete has a club record swimmer entry.

        Missing entries are created from the user and profile; existing ones
        pick up a changed iuf, sex or birthdate. Returns how many rows changed.
        """
        store = self._store()
        users = store.select("users", Query().eq("role", "athlete").eq("is_active", True))
        if not users:
            return 0
        existing = {
            row.get("user_id"): row
            for row in store.select("club_record_swimmers", Query().eq("source_type", "user"))
        }
        profiles = {row.get("user_id"): row for row in store.select("user_profiles")}

        changed = 0
        now = utc_now()
        for user in users:
            profile = profiles.get(user["id"], {})
            iuf = profile.get("ffn_iuf")
            sex = profile.get("sex")
            birthdate = profile.get("birthdate") or user.get("birthdate")

            entry = existing.get(user["id"])
            if entry is None:
                store.insert("club_record_swimmers", [{
                    "id": self._next_id(),
                    "source_type": "user",
                    "user_id": user["id"],
                    "display_name": user.get("display_name"),
                    "iuf": iuf,
                    "sex": sex,
                    "birthdate": birthdate,
                    "is_active": True,
                    "created_at": now,
                    "updated_at": now,
                }])
                changed += 1
                continue

            updates = {
                key: value
                for key, value in (("iuf", iuf), ("sex", sex), ("birthdate", birthdate))
                if value and value != entry.get(key)
            }
            if updates:
                updates["updated_at"] = now
                store.update("club_record_swimmers", updates, by_id(entry["id"]))
                changed += 1

        logger.info("Club record swimmers synced", extra={"changed": changed})
        return changed

    def get_import_logs(self, swimmer_iuf: Optional[str] = None, limit: Optional[int] = None) -> list[dict]:
        query = Query().order_by("started_at", descending=True)
        if swimmer_iuf:
            query.eq("swimmer_iuf", swimmer_iuf)
        if limit:
            query.page(limit)
        return self._store().select("import_logs", query)

    def get_swimmer_performances(
        self,
        user_id: Optional[int] = None,
        iuf: Optional[str] = None,
        event_code: Optional[str] = None,
        pool_length: Optional[int] = None,
        from_date: Optional[str] = None,
        to_date: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> list[SwimmerPerformance]:
        query = Query().order_by("competition_date", descending=True)
        if user_id:
            query.eq("user_id", user_id)
        if iuf:
            query.eq("swimmer_iuf", iuf)
        if event_code:
            query.eq("event_code", event_code)
        if pool_length:
            query.eq("pool_length", pool_length)
        if from_date:
            query.gte("competition_date", from_date)
        if to_date:
            query.lte("competition_date", to_date)
        if limit:
            query.page(limit)
        rows = self._store().select("swimmer_performances", query)
        return present(swimmer_performance_from_row(row) for row in rows)

    # -- Federation imports (server-side functions) ------------------------

    def import_swimmer_performances(self, iuf: str, user_id: Optional[int] = None) -> ImportSummary:
        functions = require_functions(self._functions, "import_swimmer_performances")
        data = functions.invoke("ffn-performances", {"swimmer_iuf": iuf, "user_id": user_id})
        return _import_summary(data)

    def import_single_swimmer(self, swimmer_iuf: str, swimmer_name: Optional[str] = None) -> ImportSummary:
        functions = require_functions(self._functions, "import_single_swimmer")
        data = functions.invoke(
            "ffn-performances", {"swimmer_iuf": swimmer_iuf, "swimmer_name": swimmer_name}
        )
        return _import_summary(data)

    def import_club_records(self) -> Any:
        functions = require_functions(self._functions, "import_club_records")
        return _job_summary(functions.invoke("import-club-records", {}))

    def recalculate_club_records(self) -> Any:
        """Recompute club records from stored performances without refetching."""
        functions = require_functions(self._functions, "recalculate_club_records")
        return _job_summary(functions.invoke("import-club-records", {"mode": "recalculate"}))

    def sync_ffn_swim_records(
        self,
        iuf: str,
        athlete_id: Optional[int] = None,
        athlete_name: Optional[str] = None,
    ) -> SyncSummary:
        functions = require_functions(self._functions, "sync_ffn_swim_records")
        data = functions.invoke(
            "ffn-sync", {"athlete_id": athlete_id, "athlete_name": athlete_name, "iuf": iuf}
        )
        data = data if isinstance(data, Mapping) else {}
        return SyncSummary(
            inserted=safe_int(data.get("inserted"), 0),
            updated=safe_int(data.get("updated"), 0),
            skipped=safe_int(data.get("skipped"), 0),
        )
