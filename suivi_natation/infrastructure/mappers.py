"""
Row <-> domain mappers.

One pair per entity: *_from_row validates a stored row against its schema
and builds the domain object, *_to_row flattens a domain object into the
column layout both stores share.

*_from_row never raises. A row that fails validation or lacks a required
field (an athlete name, a date, a title) maps to None, and callers filter
those out. Nested lists (items, logs) always come back as lists.
"""

import logging
from typing import Any, Iterable, Mapping, Optional, Type, TypeVar, Union

from pydantic import ValidationError

from ..core.training.models import (
    Assignment,
    AssignmentStatus,
    ClubRecord,
    ClubRecordSwimmer,
    Cycle,
    CycleParams,
    Exercise,
    ExerciseType,
    Notification,
    NotificationType,
    OneRmRecord,
    RunStatus,
    SessionDraft,
    SessionType,
    SetLog,
    StrengthRun,
    StrengthSessionItem,
    StrengthSessionTemplate,
    SwimExerciseLog,
    SwimmerPerformance,
    SwimRecord,
    SwimSessionItem,
    SwimSessionTemplate,
    TimesheetLocation,
    TimesheetShift,
    TrainingSession,
    UpcomingBirthday,
    UserProfile,
    UserSummary,
)
from ..core.training.scales import safe_int, safe_optional_int, to_five_scale, to_ten_scale
from ..core.training.strength import order_items
from . import schemas

logger = logging.getLogger(__name__)

RowT = TypeVar("RowT", bound=schemas.RowModel)

CYCLE_COLUMNS = (
    ("sets", "nb_series"),
    ("reps", "nb_reps"),
    ("percent_1rm", "pourcentage_charge_1rm"),
    ("rest_seconds", "recup_series"),
    ("rest_exercise_seconds", "recup_exercices"),
)


def _validate(schema: Type[RowT], row: Optional[Mapping[str, Any]]) -> Optional[RowT]:
    if not row:
        return None
    try:
        return schema.model_validate(dict(row))
    except ValidationError as e:
        logger.warning(
            "Dropping invalid row",
            extra={"schema": schema.__name__, "error": str(e)}
        )
        return None


def _clean(value: Optional[str]) -> str:
    return (value or "").strip()


def _first_not_none(*values: Any) -> Any:
    for value in values:
        if value is not None:
            return value
    return None


def _status(enum_type, value: Optional[str], default):
    try:
        return enum_type(value)
    except ValueError:
        return default


# ---------------------------------------------------------------------------
# Swim sessions
# ---------------------------------------------------------------------------

def session_to_row(
    session: Union[SessionDraft, TrainingSession],
    ten_scale: bool = True,
) -> dict[str, Any]:
    """
    Flatten a session for storage.

    Ratings are expanded to the 1-10 scale for the database. With
    ten_scale=False they stay on the 1-5 scale, which is how the local
    mirror keeps them. performance and engagement fall back to feeling;
    fatigue is feeling.
    """
    scale = to_ten_scale if ten_scale else to_five_scale
    row: dict[str, Any] = {
        "athlete_name": session.athlete_name,
        "session_date": session.date,
        "time_slot": session.slot,
        "distance": session.distance,
        "duration": session.duration,
        "rpe": scale(session.effort),
        "performance": scale(_first_not_none(session.performance, session.feeling)),
        "engagement": scale(_first_not_none(session.engagement, session.feeling)),
        "fatigue": scale(session.feeling),
        "comments": session.comments,
    }
    if session.athlete_id is not None and str(session.athlete_id) != "":
        row["athlete_id"] = session.athlete_id
    return row


def session_from_row(row: Optional[Mapping[str, Any]]) -> Optional[TrainingSession]:
    parsed = _validate(schemas.SessionRow, row)
    if parsed is None:
        return None
    athlete_name = _clean(parsed.athlete_name)
    session_date = _clean(parsed.session_date)
    if not athlete_name or not session_date:
        return None

    rpe = to_five_scale(parsed.rpe)
    feeling = to_five_scale(_first_not_none(parsed.performance, parsed.engagement, parsed.fatigue))
    return TrainingSession(
        id=parsed.id or 0,
        athlete_id=parsed.athlete_id or None,
        athlete_name=athlete_name,
        date=session_date,
        slot=parsed.time_slot or "",
        effort=rpe if rpe is not None else 3,
        feeling=feeling if feeling is not None else 3,
        rpe=rpe,
        performance=to_five_scale(parsed.performance),
        engagement=to_five_scale(parsed.engagement),
        fatigue=to_five_scale(parsed.fatigue),
        distance=parsed.distance or 0,
        duration=parsed.duration or 0,
        comments=parsed.comments or "",
        created_at=parsed.created_at or parsed.updated_at,
    )


# ---------------------------------------------------------------------------
# Exercises
# ---------------------------------------------------------------------------

def exercise_to_row(exercise: Exercise) -> dict[str, Any]:
    row: dict[str, Any] = {
        "id": exercise.id,
        "numero_exercice": exercise.number,
        "nom_exercice": exercise.name,
        "description": exercise.description,
        "illustration_gif": exercise.illustration_gif,
        "exercise_type": exercise.exercise_type.value,
        "warmup_reps": exercise.warmup_reps,
        "warmup_duration": exercise.warmup_duration,
    }
    for cycle in Cycle:
        params = exercise.params_for(cycle)
        for attribute, prefix in CYCLE_COLUMNS:
            row[f"{prefix}_{cycle.value}"] = getattr(params, attribute)
    return row


def exercise_from_row(row: Optional[Mapping[str, Any]]) -> Optional[Exercise]:
    """
    Build an Exercise with all three cycle groups.

    A zero in the row stays zero; an absent column is None.
    """
    parsed = _validate(schemas.ExerciseRow, row)
    if parsed is None or parsed.id is None:
        return None
    name = _clean(parsed.nom_exercice)
    if not name:
        return None

    cycles = {}
    for cycle in Cycle:
        cycles[cycle.value] = CycleParams(**{
            attribute: getattr(parsed, f"{prefix}_{cycle.value}")
            for attribute, prefix in CYCLE_COLUMNS
        })

    return Exercise(
        id=parsed.id,
        name=name,
        number=parsed.numero_exercice,
        description=parsed.description,
        illustration_gif=parsed.illustration_gif,
        exercise_type=ExerciseType.parse(parsed.exercise_type),
        warmup_reps=parsed.warmup_reps,
        warmup_duration=parsed.warmup_duration,
        **cycles,
    )


# ---------------------------------------------------------------------------
# Strength sessions
# ---------------------------------------------------------------------------

def strength_item_to_row(item: StrengthSessionItem, session_id: int, cycle: Cycle) -> dict[str, Any]:
    return {
        "session_id": session_id,
        "ordre": item.order_index,
        "exercise_id": item.exercise_id,
        "block": "main",
        "cycle_type": (item.cycle_type or cycle).value,
        "sets": item.sets,
        "reps": item.reps,
        "pct_1rm": item.percent_1rm,
        "rest_series_s": item.rest_seconds,
        "notes": item.notes,
    }


def strength_item_from_row(
    row: Optional[Mapping[str, Any]],
    session_cycle: Cycle = Cycle.ENDURANCE,
) -> Optional[StrengthSessionItem]:
    parsed = _validate(schemas.StrengthItemRow, row)
    if parsed is None or parsed.exercise_id is None:
        return None
    return StrengthSessionItem(
        exercise_id=parsed.exercise_id,
        order_index=parsed.ordre,
        sets=parsed.sets or 0,
        reps=parsed.reps or 0,
        rest_seconds=parsed.rest_series_s or 0,
        percent_1rm=parsed.pct_1rm or 0,
        cycle_type=Cycle.parse(parsed.cycle_type or session_cycle),
        notes=parsed.notes or "",
    )


def strength_session_to_row(template: StrengthSessionTemplate) -> dict[str, Any]:
    return {
        "name": template.title,
        "description": template.description,
        "cycle": template.cycle.value,
    }


def strength_session_from_row(
    row: Optional[Mapping[str, Any]],
    item_rows: Iterable[Mapping[str, Any]] = (),
) -> Optional[StrengthSessionTemplate]:
    parsed = _validate(schemas.StrengthSessionRow, row)
    if parsed is None or parsed.id is None:
        return None
    cycle = Cycle.parse(parsed.cycle)
    items = [strength_item_from_row(item_row, cycle) for item_row in item_rows]
    return StrengthSessionTemplate(
        id=parsed.id,
        title=_clean(parsed.name),
        description=parsed.description or "",
        cycle=cycle,
        items=order_items([item for item in items if item is not None]),
        created_at=parsed.created_at,
    )


# ---------------------------------------------------------------------------
# Swim catalog
# ---------------------------------------------------------------------------

def swim_item_to_row(item: SwimSessionItem, catalog_id: int) -> dict[str, Any]:
    return {
        "catalog_id": catalog_id,
        "ordre": item.order_index,
        "label": item.label,
        "distance": item.distance,
        "duration": item.duration,
        "intensity": item.intensity,
        "notes": item.notes,
        "raw_payload": item.raw_payload,
    }


def swim_item_from_row(row: Optional[Mapping[str, Any]]) -> Optional[SwimSessionItem]:
    parsed = _validate(schemas.SwimItemRow, row)
    if parsed is None:
        return None
    payload = parsed.raw_payload if isinstance(parsed.raw_payload, dict) else None
    return SwimSessionItem(
        id=parsed.id,
        catalog_id=parsed.catalog_id,
        order_index=parsed.ordre if parsed.ordre is not None else 0,
        label=parsed.label,
        distance=parsed.distance,
        duration=parsed.duration,
        intensity=parsed.intensity,
        notes=parsed.notes,
        raw_payload=payload,
    )


def swim_session_to_row(template: SwimSessionTemplate) -> dict[str, Any]:
    return {
        "name": template.name,
        "description": template.description,
        "created_by": template.created_by,
        "folder": template.folder,
        "is_archived": template.is_archived,
    }


def swim_session_from_row(
    row: Optional[Mapping[str, Any]],
    item_rows: Iterable[Mapping[str, Any]] = (),
) -> Optional[SwimSessionTemplate]:
    parsed = _validate(schemas.SwimCatalogRow, row)
    if parsed is None or parsed.id is None:
        return None
    items = [swim_item_from_row(item_row) for item_row in item_rows]
    return SwimSessionTemplate(
        id=parsed.id,
        name=_clean(parsed.name),
        description=parsed.description,
        created_by=parsed.created_by,
        created_at=parsed.created_at,
        updated_at=parsed.updated_at,
        folder=parsed.folder,
        is_archived=bool(parsed.is_archived),
        items=sorted(
            (item for item in items if item is not None),
            key=lambda item: item.order_index,
        ),
    )


# ---------------------------------------------------------------------------
# Strength runs, set logs, 1RM
# ---------------------------------------------------------------------------

def set_log_to_row(log: SetLog, run_id: int) -> dict[str, Any]:
    return {
        "run_id": run_id,
        "exercise_id": log.exercise_id,
        "set_index": log.set_index,
        "reps": log.reps,
        "weight": log.weight,
        "pct_1rm_suggested": log.pct_1rm_suggested,
        "rest_seconds": log.rest_seconds,
        "rpe": log.rpe,
        "notes": log.notes,
        "completed_at": log.completed_at,
    }


def set_log_from_row(row: Optional[Mapping[str, Any]]) -> Optional[SetLog]:
    parsed = _validate(schemas.SetLogRow, row)
    if parsed is None or parsed.exercise_id is None:
        return None
    return SetLog(
        id=parsed.id,
        run_id=parsed.run_id,
        exercise_id=parsed.exercise_id,
        set_index=parsed.set_index,
        reps=parsed.reps,
        weight=parsed.weight,
        pct_1rm_suggested=parsed.pct_1rm_suggested,
        rest_seconds=parsed.rest_seconds,
        rpe=parsed.rpe,
        notes=parsed.notes,
        completed_at=parsed.completed_at,
    )


def run_to_row(run: StrengthRun) -> dict[str, Any]:
    row = {
        "id": run.id,
        "assignment_id": run.assignment_id,
        "session_id": run.session_id,
        "athlete_id": run.athlete_id,
        "athlete_name": run.athlete_name,
        "cycle_type": run.cycle_type.value if run.cycle_type else None,
        "status": run.status.value,
        "progress_pct": run.progress_pct,
        "started_at": run.started_at,
        "completed_at": run.completed_at,
        "updated_at": run.updated_at,
    }
    if run.fatigue is not None or run.comments is not None:
        row["raw_payload"] = {"fatigue": run.fatigue, "comments": run.comments}
    return row


def run_from_row(
    row: Optional[Mapping[str, Any]],
    log_rows: Iterable[Mapping[str, Any]] = (),
) -> Optional[StrengthRun]:
    parsed = _validate(schemas.StrengthRunRow, row)
    if parsed is None or parsed.id is None:
        return None
    payload = parsed.raw_payload if isinstance(parsed.raw_payload, dict) else {}
    logs = [set_log_from_row(log_row) for log_row in log_rows]
    return StrengthRun(
        id=parsed.id,
        status=_status(RunStatus, parsed.status, RunStatus.IN_PROGRESS),
        athlete_id=parsed.athlete_id,
        athlete_name=parsed.athlete_name,
        assignment_id=parsed.assignment_id,
        session_id=parsed.session_id,
        cycle_type=Cycle.parse(parsed.cycle_type) if parsed.cycle_type else None,
        progress_pct=parsed.progress_pct or 0,
        started_at=parsed.started_at,
        completed_at=parsed.completed_at,
        updated_at=parsed.updated_at,
        fatigue=safe_optional_int(payload.get("fatigue")),
        comments=payload.get("comments"),
        logs=[log for log in logs if log is not None],
    )


def one_rm_from_row(row: Optional[Mapping[str, Any]]) -> Optional[OneRmRecord]:
    parsed = _validate(schemas.OneRmRow, row)
    if parsed is None or parsed.exercise_id is None:
        return None
    return OneRmRecord(
        id=parsed.id,
        athlete_id=parsed.athlete_id,
        athlete_name=parsed.athlete_name,
        exercise_id=parsed.exercise_id,
        weight=parsed.one_rm or 0,
        recorded_at=parsed.recorded_at,
    )


# ---------------------------------------------------------------------------
# Assignments and notifications
# ---------------------------------------------------------------------------

def assignment_from_row(
    row: Optional[Mapping[str, Any]],
    title: str = "",
    description: str = "",
    items: Optional[list[Any]] = None,
    cycle: Optional[Cycle] = None,
) -> Optional[Assignment]:
    parsed = _validate(schemas.AssignmentRow, row)
    if parsed is None or parsed.id is None:
        return None
    session_type = _status(SessionType, parsed.assignment_type, None)
    if session_type is None:
        return None
    session_id = (
        parsed.strength_session_id if session_type is SessionType.STRENGTH else parsed.swim_catalog_id
    )
    return Assignment(
        id=parsed.id,
        session_id=session_id or 0,
        session_type=session_type,
        title=title,
        description=description,
        assigned_date=parsed.scheduled_date or parsed.created_at or "",
        assigned_slot=parsed.scheduled_slot,
        status=_status(AssignmentStatus, parsed.status, AssignmentStatus.ASSIGNED),
        target_user_id=parsed.target_user_id,
        target_group_id=parsed.target_group_id,
        target_athlete=parsed.target_athlete,
        items=items or [],
        cycle=cycle,
    )


def notification_from_rows(
    target_row: Optional[Mapping[str, Any]],
    notification_row: Optional[Mapping[str, Any]],
) -> Optional[Notification]:
    """
    One recipient's view of a notification.

    The id is the target row's id; the sender reads "Coach" when someone
    created it, "Système" otherwise.
    """
    target = _validate(schemas.NotificationTargetRow, target_row)
    notification = _validate(schemas.NotificationRow, notification_row)
    if target is None or notification is None or target.id is None:
        return None
    return Notification(
        id=target.id,
        notification_id=notification.id,
        title=notification.title or "",
        message=notification.body or "",
        type=_status(NotificationType, notification.type, NotificationType.MESSAGE),
        read=bool(target.read_at),
        date=notification.created_at,
        sender="Coach" if notification.created_by else "Système",
        sender_id=notification.created_by,
        target_user_id=target.target_user_id,
        target_group_id=target.target_group_id,
        target_athlete=target.target_athlete,
        related_id=notification.related_id,
    )


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

SWIM_RECORD_COLUMNS = (
    "event_name", "athlete_id", "athlete_name", "pool_length", "time_seconds",
    "record_date", "notes", "ffn_points", "record_type",
)


def swim_record_to_row(record: SwimRecord) -> dict[str, Any]:
    return {column: getattr(record, column) for column in SWIM_RECORD_COLUMNS}


def swim_record_from_row(row: Optional[Mapping[str, Any]]) -> Optional[SwimRecord]:
    parsed = _validate(schemas.SwimRecordRow, row)
    if parsed is None or parsed.id is None or not _clean(parsed.event_name):
        return None
    return SwimRecord(id=parsed.id, **{
        column: getattr(parsed, column) for column in SWIM_RECORD_COLUMNS
    })


def club_record_from_row(row: Optional[Mapping[str, Any]]) -> Optional[ClubRecord]:
    parsed = _validate(schemas.ClubRecordRow, row)
    if parsed is None or parsed.id is None or not parsed.event_code:
        return None
    return ClubRecord(
        id=parsed.id,
        event_code=parsed.event_code,
        event_label=parsed.event_label,
        athlete_name=parsed.athlete_name or "",
        sex=parsed.sex,
        pool_m=parsed.pool_m,
        age=parsed.age,
        time_ms=parsed.time_ms,
        record_date=parsed.record_date,
        performance_id=parsed.performance_id,
    )


def club_record_swimmer_from_row(row: Optional[Mapping[str, Any]]) -> Optional[ClubRecordSwimmer]:
    parsed = _validate(schemas.ClubRecordSwimmerRow, row)
    if parsed is None or parsed.id is None:
        return None
    return ClubRecordSwimmer(
        id=parsed.id,
        display_name=_clean(parsed.display_name),
        source_type=parsed.source_type or "manual",
        user_id=parsed.user_id,
        iuf=parsed.iuf,
        sex=parsed.sex,
        birthdate=parsed.birthdate,
        is_active=parsed.is_active is not False,
        created_at=parsed.created_at,
        updated_at=parsed.updated_at,
    )


def swimmer_performance_from_row(row: Optional[Mapping[str, Any]]) -> Optional[SwimmerPerformance]:
    parsed = _validate(schemas.SwimmerPerformanceRow, row)
    if parsed is None or parsed.id is None or not parsed.swimmer_iuf or not parsed.event_code:
        return None
    return SwimmerPerformance(
        id=parsed.id,
        swimmer_iuf=parsed.swimmer_iuf,
        event_code=parsed.event_code,
        pool_length=parsed.pool_length,
        time_seconds=parsed.time_seconds,
        user_id=parsed.user_id,
        time_display=parsed.time_display,
        competition_name=parsed.competition_name,
        competition_date=parsed.competition_date,
        competition_location=parsed.competition_location,
        ffn_points=parsed.ffn_points,
        source=parsed.source or "ffn",
        imported_at=parsed.imported_at,
    )


# ---------------------------------------------------------------------------
# Timesheet, users, swim exercise logs
# ---------------------------------------------------------------------------

def timesheet_shift_to_row(shift: TimesheetShift) -> dict[str, Any]:
    return {
        "coach_id": shift.coach_id,
        "shift_date": shift.shift_date,
        "start_time": shift.start_time,
        "end_time": shift.end_time,
        "location": shift.location,
        "is_travel": shift.is_travel,
    }


def timesheet_shift_from_row(row: Optional[Mapping[str, Any]]) -> Optional[TimesheetShift]:
    parsed = _validate(schemas.TimesheetShiftRow, row)
    if parsed is None or parsed.id is None or parsed.coach_id is None:
        return None
    if not parsed.shift_date or not parsed.start_time:
        return None
    return TimesheetShift(
        id=parsed.id,
        coach_id=parsed.coach_id,
        shift_date=parsed.shift_date,
        start_time=parsed.start_time,
        end_time=parsed.end_time,
        location=parsed.location,
        is_travel=bool(parsed.is_travel),
        created_at=parsed.created_at,
        updated_at=parsed.updated_at,
    )


def timesheet_location_from_row(row: Optional[Mapping[str, Any]]) -> Optional[TimesheetLocation]:
    parsed = _validate(schemas.TimesheetLocationRow, row)
    if parsed is None or parsed.id is None or not _clean(parsed.name):
        return None
    return TimesheetLocation(
        id=parsed.id,
        name=_clean(parsed.name),
        created_at=parsed.created_at,
        updated_at=parsed.updated_at,
    )


PROFILE_COLUMNS = (
    "display_name", "email", "birthdate", "group_id", "group_label",
    "objectives", "bio", "avatar_url", "ffn_iuf",
)


def user_profile_to_row(profile: UserProfile) -> dict[str, Any]:
    row = {"user_id": profile.user_id}
    row.update({column: getattr(profile, column) for column in PROFILE_COLUMNS})
    return row


def user_profile_from_row(row: Optional[Mapping[str, Any]]) -> Optional[UserProfile]:
    parsed = _validate(schemas.UserProfileRow, row)
    if parsed is None or parsed.user_id is None:
        return None
    return UserProfile(user_id=parsed.user_id, **{
        column: getattr(parsed, column) for column in PROFILE_COLUMNS
    })


def user_summary_from_row(row: Optional[Mapping[str, Any]]) -> Optional[UserSummary]:
    parsed = _validate(schemas.UserRow, row)
    if parsed is None or parsed.id is None:
        return None
    return UserSummary(
        id=parsed.id,
        display_name=parsed.display_name or "",
        role=parsed.role or "",
        email=parsed.email,
        is_active=parsed.is_active is not False,
    )


def upcoming_birthday_from_row(row: Optional[Mapping[str, Any]]) -> Optional[UpcomingBirthday]:
    if not row or row.get("id") is None or not row.get("next_birthday"):
        return None
    return UpcomingBirthday(
        id=safe_int(row.get("id")),
        display_name=str(row.get("display_name") or ""),
        birthdate=str(row.get("birthdate") or ""),
        next_birthday=str(row["next_birthday"]),
        days_until=safe_int(row.get("days_until")),
    )


def swim_exercise_log_to_row(log: SwimExerciseLog) -> dict[str, Any]:
    return {
        "session_id": log.session_id,
        "user_id": log.user_id,
        "exercise_label": log.exercise_label,
        "source_item_id": log.source_item_id,
        "split_times": log.split_times,
        "tempo": log.tempo,
        "stroke_count": log.stroke_count,
        "notes": log.notes,
    }


def swim_exercise_log_from_row(row: Optional[Mapping[str, Any]]) -> Optional[SwimExerciseLog]:
    parsed = _validate(schemas.SwimExerciseLogRow, row)
    if parsed is None or parsed.id is None or parsed.session_id is None or parsed.user_id is None:
        return None
    return SwimExerciseLog(
        id=parsed.id,
        session_id=parsed.session_id,
        user_id=parsed.user_id,
        exercise_label=parsed.exercise_label or "",
        source_item_id=parsed.source_item_id,
        split_times=parsed.split_times if isinstance(parsed.split_times, list) else [],
        tempo=parsed.tempo,
        stroke_count=parsed.stroke_count if isinstance(parsed.stroke_count, list) else [],
        notes=parsed.notes,
        created_at=parsed.created_at,
        updated_at=parsed.updated_at,
    )


def present(entities: Iterable[Optional[Any]]) -> list[Any]:
    """Drop the rows that failed to map."""
    return [entity for entity in entities if entity is not None]
