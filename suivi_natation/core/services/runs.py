"""
Strength runs, set logs, 1RM records and training history.

A run moves through the state machine enforced by the strength engine:
in_progress until completed or abandoned, both terminal. Logging a set
or saving a run re-evaluates the athlete's 1RM per exercise and only
ever raises it.

1RM records are keyed by (athlete_id, exercise_id) when the athlete id
is known and by (athlete_name, exercise_id) otherwise.
"""

import logging
from typing import Any, Mapping, Optional, Sequence, Union

from ..errors import NotFoundError
from ..training.models import (
    AssignmentStatus,
    Cycle,
    HistoryPeriod,
    OneRmRecord,
    Pagination,
    RunStatus,
    SetLog,
    SetLogResult,
    StrengthHistory,
    StrengthHistoryAggregate,
    StrengthRun,
)
from ..training.scales import safe_optional_int, safe_optional_number
from ..training.strength import (
    check_can_log,
    check_run_transition,
    clamp_limit,
    clamp_offset,
    collect_estimated_one_rms,
    end_of_day,
    estimate_one_rm,
    normalize_order,
    one_rm_improvements,
    parse_timestamp,
    summarize_exercises,
)
from ...infrastructure.mappers import (
    exercise_from_row,
    one_rm_from_row,
    present,
    run_from_row,
    run_to_row,
    set_log_to_row,
)
from ...infrastructure.store.base import CollectionStore, Query, by_id
from .base import Service, athlete_query, index_by, utc_now

logger = logging.getLogger(__name__)

RUN_NOT_FOUND = "Séance de musculation introuvable"
HISTORY_DEFAULT_LIMIT = 50
AGGREGATE_DEFAULT_LIMIT = 200


def _has_athlete_id(athlete_id: Any) -> bool:
    return athlete_id is not None and str(athlete_id) != ""


def _set_log_from_input(raw: Union[SetLog, Mapping[str, Any]], index: int) -> SetLog:
    """Accept a SetLog or a loose dict; set_index falls back to set_number, then position."""
    if isinstance(raw, SetLog):
        if raw.set_index is None:
            raw.set_index = index
        return raw
    set_index = next(
        (raw.get(key) for key in ("set_index", "set_number") if raw.get(key) is not None),
        index,
    )
    return SetLog(
        exercise_id=int(raw["exercise_id"]),
        set_index=safe_optional_int(set_index),
        reps=safe_optional_int(raw.get("reps")),
        weight=safe_optional_number(raw.get("weight")),
        rest_seconds=safe_optional_int(raw.get("rest_seconds")),
        rpe=safe_optional_int(raw.get("rpe")),
        notes=raw.get("notes"),
        pct_1rm_suggested=safe_optional_number(raw.get("pct_1rm_suggested")),
        completed_at=raw.get("completed_at"),
    )


class OneRmService(Service):

    def get_one_rm(
        self,
        athlete_id: Optional[int] = None,
        athlete_name: Optional[str] = None,
    ) -> list[OneRmRecord]:
        rows = self._store().select("one_rm_records", athlete_query(athlete_id, athlete_name))
        return present(one_rm_from_row(row) for row in rows)

    def update_one_rm(
        self,
        exercise_id: int,
        weight: float,
        athlete_id: Optional[int] = None,
        athlete_name: Optional[str] = None,
    ) -> OneRmRecord:
        """Store a 1RM unconditionally (manual entry by a coach or athlete)."""
        if not _has_athlete_id(athlete_id) and not athlete_name:
            raise ValueError("athlete_id ou athlete_name requis")

        record = OneRmRecord(
            id=self._next_id(),
            exercise_id=exercise_id,
            weight=weight,
            athlete_id=int(athlete_id) if _has_athlete_id(athlete_id) else None,
            athlete_name=athlete_name,
            recorded_at=utc_now(),
        )
        key = "athlete_id" if record.athlete_id is not None else "athlete_name"
        self._store().upsert(
            "one_rm_records",
            [{
                "id": record.id,
                "athlete_id": record.athlete_id,
                "athlete_name": record.athlete_name,
                "exercise_id": record.exercise_id,
                "one_rm": record.weight,
                "recorded_at": record.recorded_at,
            }],
            on_conflict=[key, "exercise_id"],
        )
        return record

    def apply_estimates(
        self,
        estimates: Mapping[int, int],
        athlete_id: Optional[int],
        athlete_name: Optional[str],
    ) -> dict[int, int]:
        """
        Raise stored 1RMs where an estimate beats them.

        Compared per exercise against the stored value, 0 when the athlete
        has no record. Returns the exercises that were updated.
        """
        if not estimates or (not _has_athlete_id(athlete_id) and not athlete_name):
            return {}
        stored = {
            record.exercise_id: record.weight
            for record in self.get_one_rm(athlete_id, athlete_name)
        }
        improvements = one_rm_improvements(estimates, stored)
        for exercise_id, estimate in improvements.items():
            self.update_one_rm(exercise_id, estimate, athlete_id, athlete_name)
        if improvements:
            logger.info(
                "1RM records raised",
                extra={"athlete_id": athlete_id, "exercises": sorted(improvements)}
            )
        return improvements


class StrengthRunService(Service):

    def __init__(self, context, functions=None) -> None:
        super().__init__(context, functions)
        self.one_rm = OneRmService(context)

    def _load_run(self, store: CollectionStore, run_id: int, with_logs: bool = False) -> StrengthRun:
        rows = store.select("strength_session_runs", by_id(run_id))
        log_rows = (
            store.select("strength_set_logs", Query().eq("run_id", run_id).order_by("set_index"))
            if with_logs and rows else []
        )
        run = run_from_row(rows[0] if rows else None, log_rows)
        if run is None:
            raise NotFoundError(RUN_NOT_FOUND)
        return run

    def _set_assignment_status(
        self,
        store: CollectionStore,
        assignment_id: Optional[int],
        status: AssignmentStatus,
    ) -> None:
        if assignment_id:
            store.update("session_assignments", {"status": status.value}, by_id(assignment_id))

    def get_run(self, run_id: int) -> StrengthRun:
        return self._load_run(self._store(), run_id, with_logs=True)

    def start_run(
        self,
        session_id: Optional[int] = None,
        assignment_id: Optional[int] = None,
        athlete_id: Optional[int] = None,
        athlete_name: Optional[str] = None,
        cycle_type: Any = None,
        progress_pct: float = 0,
    ) -> StrengthRun:
        """Open a run in progress and move its assignment to in_progress."""
        now = utc_now()
        run = StrengthRun(
            id=self._next_id(),
            status=RunStatus.IN_PROGRESS,
            athlete_id=athlete_id,
            athlete_name=athlete_name,
            assignment_id=assignment_id,
            session_id=session_id,
            cycle_type=Cycle.parse(cycle_type) if cycle_type else None,
            progress_pct=progress_pct or 0,
            started_at=now,
            updated_at=now,
        )
        store = self._store()
        store.insert("strength_session_runs", [run_to_row(run)])
        self._set_assignment_status(store, assignment_id, AssignmentStatus.IN_PROGRESS)

        logger.info(
            "Strength run started",
            extra={"run_id": run.id, "assignment_id": assignment_id}
        )
        return run

    def log_set(
        self,
        run_id: int,
        log: SetLog,
        athlete_id: Optional[int] = None,
        athlete_name: Optional[str] = None,
    ) -> SetLogResult:
        """
        Append one set to a run in progress.

        The athlete comes from the arguments when given, from the run
        otherwise. The 1RM for the exercise is raised if the set's
        estimate beats it.
        """
        store = self._store()
        run = self._load_run(store, run_id)
        check_can_log(run)

        log.run_id = run_id
        log.completed_at = log.completed_at or utc_now()
        row = set_log_to_row(log, run_id)
        row["id"] = self._next_id()
        store.insert("strength_set_logs", [row])

        if not _has_athlete_id(athlete_id) and not athlete_name:
            athlete_id, athlete_name = run.athlete_id, run.athlete_name

        estimate = estimate_one_rm(log.weight, log.reps)
        if not estimate:
            return SetLogResult()
        improved = self.one_rm.apply_estimates({log.exercise_id: estimate}, athlete_id, athlete_name)
        if log.exercise_id in improved:
            return SetLogResult(one_rm_updated=True, one_rm=improved[log.exercise_id])
        return SetLogResult()

    def update_run(
        self,
        run_id: int,
        status: Optional[RunStatus] = None,
        progress_pct: Optional[float] = None,
        fatigue: Optional[int] = None,
        comments: Optional[str] = None,
        assignment_id: Optional[int] = None,
    ) -> StrengthRun:
        store = self._store()
        run = self._load_run(store, run_id)
        check_run_transition(run, status)

        now = utc_now()
        values: dict[str, Any] = {"updated_at": now}
        if progress_pct is not None:
            values["progress_pct"] = progress_pct
            run.progress_pct = progress_pct
        if status is not None:
            values["status"] = status.value
            run.status = status
        if status is RunStatus.COMPLETED:
            values["completed_at"] = now
            run.completed_at = now
        if fatigue is not None or comments is not None:
            values["raw_payload"] = {"fatigue": fatigue, "comments": comments}
            run.fatigue, run.comments = fatigue, comments
        run.updated_at = now
        store.update("strength_session_runs", values, by_id(run_id))

        if status is RunStatus.COMPLETED:
            self._set_assignment_status(
                store, assignment_id or run.assignment_id, AssignmentStatus.COMPLETED
            )
        return run

    def delete_run(self, run_id: int) -> None:
        """Remove a run and its logs; its assignment goes back to assigned."""
        store = self._store()
        rows = store.select("strength_session_runs", by_id(run_id))
        store.delete("strength_set_logs", Query().eq("run_id", run_id))
        store.delete("strength_session_runs", by_id(run_id))
        if rows:
            self._set_assignment_status(
                store, safe_optional_int(rows[0].get("assignment_id")), AssignmentStatus.ASSIGNED
            )

    def save_run(
        self,
        logs: Sequence[Union[SetLog, Mapping[str, Any]]],
        run_id: Optional[int] = None,
        assignment_id: Optional[int] = None,
        athlete_id: Optional[int] = None,
        athlete_name: Optional[str] = None,
        session_id: Optional[int] = None,
        cycle_type: Any = None,
        progress_pct: Optional[float] = None,
    ) -> int:
        """
        Finish a run in one call.

        Creates the run when run_id is None, bulk-writes the logs, raises
        1RMs, marks the run completed and its assignment completed.
        Returns the run id.
        """
        store = self._store()
        if run_id is None:
            run = self.start_run(session_id, assignment_id, athlete_id, athlete_name, cycle_type)
            run_id = run.id
        else:
            run = self._load_run(store, run_id)
            check_run_transition(run, RunStatus.COMPLETED)
            assignment_id = assignment_id or run.assignment_id
            if not _has_athlete_id(athlete_id) and not athlete_name:
                athlete_id, athlete_name = run.athlete_id, run.athlete_name

        now = utc_now()
        set_logs = [_set_log_from_input(raw, index) for index, raw in enumerate(logs)]
        rows = []
        for log in set_logs:
            log.completed_at = log.completed_at or now
            row = set_log_to_row(log, run_id)
            row["id"] = self._next_id()
            rows.append(row)
        store.insert("strength_set_logs", rows)

        self.one_rm.apply_estimates(collect_estimated_one_rms(set_logs), athlete_id, athlete_name)

        store.update(
            "strength_session_runs",
            {
                "progress_pct": progress_pct if progress_pct is not None else 100,
                "status": RunStatus.COMPLETED.value,
                "completed_at": now,
                "updated_at": now,
            },
            by_id(run_id),
        )
        self._set_assignment_status(store, assignment_id, AssignmentStatus.COMPLETED)

        logger.info(
            "Strength run saved",
            extra={"run_id": run_id, "log_count": len(rows)}
        )
        return run_id

    # -----------------------------------------------------------------------
    # History
    # -----------------------------------------------------------------------

    def get_history(
        self,
        athlete_name: Optional[str] = None,
        athlete_id: Optional[int] = None,
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order: Optional[str] = "desc",
        status: Optional[str] = None,
        date_from: Any = None,
        date_to: Any = None,
    ) -> StrengthHistory:
        """
        Runs of one athlete, paged, with per-exercise totals.

        Runs are sorted by start time; the exercise summary covers every
        matching run, not only the returned page.
        """
        limit = clamp_limit(limit, HISTORY_DEFAULT_LIMIT)
        offset = clamp_offset(offset)
        order = normalize_order(order)

        query = athlete_query(athlete_id, athlete_name)
        if status:
            query.eq("status", status)
        lower = parse_timestamp(date_from)
        if lower is not None:
            query.gte("started_at", lower.isoformat())
        upper = end_of_day(date_to)
        if upper is not None:
            query.lte("started_at", upper.isoformat())
        query.order_by("started_at", descending=order == "desc")

        store = self._store()
        run_rows = store.select("strength_session_runs", query)
        log_rows = (
            store.select("strength_set_logs", Query().in_("run_id", [row["id"] for row in run_rows]))
            if run_rows else []
        )
        logs_by_run = index_by(log_rows, "run_id")
        runs = present(run_from_row(row, logs_by_run.get(row.get("id"), [])) for row in run_rows)

        names = {
            exercise.id: exercise.name
            for exercise in present(exercise_from_row(row) for row in store.select("exercises"))
        }
        return StrengthHistory(
            runs=runs[offset:offset + limit],
            pagination=Pagination(limit=limit, offset=offset, total=len(runs)),
            exercise_summary=summarize_exercises(runs, names),
        )

    def get_history_aggregate(
        self,
        athlete_name: Optional[str] = None,
        athlete_id: Optional[int] = None,
        period: str = "day",
        limit: Optional[int] = None,
        offset: Optional[int] = None,
        order: Optional[str] = "desc",
        date_from: Optional[str] = None,
        date_to: Optional[str] = None,
    ) -> StrengthHistoryAggregate:
        limit = clamp_limit(limit, AGGREGATE_DEFAULT_LIMIT)
        offset = clamp_offset(offset)
        order = normalize_order(order)

        params: dict[str, Any] = {"p_period": period or "day"}
        if _has_athlete_id(athlete_id):
            params["p_athlete_id"] = int(athlete_id)
        else:
            params["p_athlete_name"] = athlete_name
        if date_from:
            params["p_from"] = date_from
        if date_to:
            params["p_to"] = date_to

        rows = self._store().call("get_strength_history_aggregate", params)
        periods = sorted(
            (
                HistoryPeriod(
                    period=str(row.get("period")),
                    tonnage=safe_optional_number(row.get("tonnage")) or 0,
                    volume=safe_optional_int(row.get("volume")) or 0,
                )
                for row in rows
                if row.get("period") is not None
            ),
            key=lambda entry: entry.period,
            reverse=order == "desc",
        )
        return StrengthHistoryAggregate(
            periods=periods[offset:offset + limit],
            pagination=Pagination(limit=limit, offset=offset, total=len(periods)),
        )
