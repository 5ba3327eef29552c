"""
Row schemas for the stored collections.

Each model describes one table's row as both backends hold it. Rows are
validated here, at the storage boundary, before the mappers turn them
into domain objects. Field types are lenient in the way the database is:
numeric strings become numbers, dates become ISO strings, VARIANT text
becomes decoded JSON. Unknown columns are ignored.
"""

from datetime import date, datetime
from typing import Annotated, Any, Optional

from pydantic import BaseModel, BeforeValidator, ConfigDict

from ..core.training.scales import safe_optional_int, safe_optional_number
from .store.base import parse_variant_json


def _text(value: Any) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, (date, datetime)):
        return value.isoformat()
    return str(value)


def _flag(value: Any) -> Optional[bool]:
    if value is None or value == "":
        return None
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "t")
    return bool(value)


OptionalInt = Annotated[Optional[int], BeforeValidator(safe_optional_int)]
OptionalFloat = Annotated[Optional[float], BeforeValidator(safe_optional_number)]
OptionalText = Annotated[Optional[str], BeforeValidator(_text)]
OptionalFlag = Annotated[Optional[bool], BeforeValidator(_flag)]
Json = Annotated[Any, BeforeValidator(parse_variant_json)]


class RowModel(BaseModel):
    model_config = ConfigDict(extra="ignore")


class SessionRow(RowModel):
    """sessions: ratings stored on the 1-10 scale."""
    id: OptionalInt = None
    athlete_id: OptionalInt = None
    athlete_name: OptionalText = None
    session_date: OptionalText = None
    time_slot: OptionalText = None
    distance: OptionalInt = None
    duration: OptionalInt = None
    rpe: OptionalInt = None
    performance: OptionalInt = None
    engagement: OptionalInt = None
    fatigue: OptionalInt = None
    comments: OptionalText = None
    created_at: OptionalText = None
    updated_at: OptionalText = None


class ExerciseRow(RowModel):
    id: OptionalInt = None
    numero_exercice: OptionalInt = None
    nom_exercice: OptionalText = None
    description: OptionalText = None
    illustration_gif: OptionalText = None
    exercise_type: OptionalText = None
    warmup_reps: OptionalInt = None
    warmup_duration: OptionalInt = None
    nb_series_endurance: OptionalInt = None
    nb_reps_endurance: OptionalInt = None
    pourcentage_charge_1rm_endurance: OptionalFloat = None
    recup_series_endurance: OptionalInt = None
    recup_exercices_endurance: OptionalInt = None
    nb_series_hypertrophie: OptionalInt = None
    nb_reps_hypertrophie: OptionalInt = None
    pourcentage_charge_1rm_hypertrophie: OptionalFloat = None
    recup_series_hypertrophie: OptionalInt = None
    recup_exercices_hypertrophie: OptionalInt = None
    nb_series_force: OptionalInt = None
    nb_reps_force: OptionalInt = None
    pourcentage_charge_1rm_force: OptionalFloat = None
    recup_series_force: OptionalInt = None
    recup_exercices_force: OptionalInt = None


class StrengthSessionRow(RowModel):
    id: OptionalInt = None
    name: OptionalText = None
    description: OptionalText = None
    cycle: OptionalText = None
    created_at: OptionalText = None


class StrengthItemRow(RowModel):
    id: OptionalInt = None
    session_id: OptionalInt = None
    ordre: OptionalInt = None
    exercise_id: OptionalInt = None
    block: OptionalText = None
    cycle_type: OptionalText = None
    sets: OptionalInt = None
    reps: OptionalInt = None
    pct_1rm: OptionalFloat = None
    rest_series_s: OptionalInt = None
    notes: OptionalText = None


class StrengthRunRow(RowModel):
    id: OptionalInt = None
    assignment_id: OptionalInt = None
    session_id: OptionalInt = None
    athlete_id: OptionalInt = None
    athlete_name: OptionalText = None
    cycle_type: OptionalText = None
    status: OptionalText = None
    progress_pct: OptionalFloat = None
    started_at: OptionalText = None
    completed_at: OptionalText = None
    updated_at: OptionalText = None
    raw_payload: Json = None


class SetLogRow(RowModel):
    id: OptionalInt = None
    run_id: OptionalInt = None
    exercise_id: OptionalInt = None
    set_index: OptionalInt = None
    reps: OptionalInt = None
    weight: OptionalFloat = None
    pct_1rm_suggested: OptionalFloat = None
    rest_seconds: OptionalInt = None
    rpe: OptionalInt = None
    notes: OptionalText = None
    completed_at: OptionalText = None


class OneRmRow(RowModel):
    id: OptionalInt = None
    athlete_id: OptionalInt = None
    athlete_name: OptionalText = None
    exercise_id: OptionalInt = None
    one_rm: OptionalFloat = None
    recorded_at: OptionalText = None


class SwimCatalogRow(RowModel):
    id: OptionalInt = None
    name: OptionalText = None
    description: OptionalText = None
    created_by: OptionalInt = None
    created_at: OptionalText = None
    updated_at: OptionalText = None
    folder: OptionalText = None
    is_archived: OptionalFlag = None


class SwimItemRow(RowModel):
    id: OptionalInt = None
    catalog_id: OptionalInt = None
    ordre: OptionalInt = None
    label: OptionalText = None
    distance: OptionalInt = None
    duration: OptionalInt = None
    intensity: OptionalText = None
    notes: OptionalText = None
    raw_payload: Json = None


class AssignmentRow(RowModel):
    id: OptionalInt = None
    assignment_type: OptionalText = None
    swim_catalog_id: OptionalInt = None
    strength_session_id: OptionalInt = None
    target_user_id: OptionalInt = None
    target_group_id: OptionalInt = None
    target_athlete: OptionalText = None
    assigned_by: OptionalInt = None
    scheduled_date: OptionalText = None
    scheduled_slot: OptionalText = None
    status: OptionalText = None
    created_at: OptionalText = None


class NotificationRow(RowModel):
    id: OptionalInt = None
    title: OptionalText = None
    body: OptionalText = None
    type: OptionalText = None
    created_by: OptionalInt = None
    related_id: OptionalInt = None
    created_at: OptionalText = None


class NotificationTargetRow(RowModel):
    id: OptionalInt = None
    notification_id: OptionalInt = None
    target_user_id: OptionalInt = None
    target_group_id: OptionalInt = None
    target_athlete: OptionalText = None
    read_at: OptionalText = None


class SwimRecordRow(RowModel):
    id: OptionalInt = None
    event_name: OptionalText = None
    athlete_id: OptionalInt = None
    athlete_name: OptionalText = None
    pool_length: OptionalInt = None
    time_seconds: OptionalFloat = None
    record_date: OptionalText = None
    notes: OptionalText = None
    ffn_points: OptionalInt = None
    record_type: OptionalText = None


class ClubRecordRow(RowModel):
    id: OptionalInt = None
    event_code: OptionalText = None
    event_label: OptionalText = None
    athlete_name: OptionalText = None
    sex: OptionalText = None
    pool_m: OptionalInt = None
    age: OptionalInt = None
    time_ms: OptionalInt = None
    record_date: OptionalText = None
    performance_id: OptionalInt = None


class ClubRecordSwimmerRow(RowModel):
    id: OptionalInt = None
    source_type: OptionalText = None
    user_id: OptionalInt = None
    display_name: OptionalText = None
    iuf: OptionalText = None
    sex: OptionalText = None
    birthdate: OptionalText = None
    is_active: OptionalFlag = None
    created_at: OptionalText = None
    updated_at: OptionalText = None


class SwimmerPerformanceRow(RowModel):
    id: OptionalInt = None
    user_id: OptionalInt = None
    swimmer_iuf: OptionalText = None
    event_code: OptionalText = None
    pool_length: OptionalInt = None
    time_seconds: OptionalFloat = None
    time_display: OptionalText = None
    competition_name: OptionalText = None
    competition_date: OptionalText = None
    competition_location: OptionalText = None
    ffn_points: OptionalInt = None
    source: OptionalText = None
    imported_at: OptionalText = None


class TimesheetShiftRow(RowModel):
    id: OptionalInt = None
    coach_id: OptionalInt = None
    shift_date: OptionalText = None
    start_time: OptionalText = None
    end_time: OptionalText = None
    location: OptionalText = None
    is_travel: OptionalFlag = None
    created_at: OptionalText = None
    updated_at: OptionalText = None


class TimesheetLocationRow(RowModel):
    id: OptionalInt = None
    name: OptionalText = None
    created_at: OptionalText = None
    updated_at: OptionalText = None


class UserRow(RowModel):
    id: OptionalInt = None
    display_name: OptionalText = None
    email: OptionalText = None
    role: OptionalText = None
    is_active: OptionalFlag = None
    birthdate: OptionalText = None


class UserProfileRow(RowModel):
    user_id: OptionalInt = None
    display_name: OptionalText = None
    email: OptionalText = None
    birthdate: OptionalText = None
    group_id: OptionalInt = None
    group_label: OptionalText = None
    objectives: OptionalText = None
    bio: OptionalText = None
    avatar_url: OptionalText = None
    ffn_iuf: OptionalText = None
    sex: OptionalText = None


class SwimExerciseLogRow(RowModel):
    id: OptionalInt = None
    session_id: OptionalInt = None
    user_id: OptionalInt = None
    exercise_label: OptionalText = None
    source_item_id: OptionalInt = None
    split_times: Json = None
    tempo: OptionalFloat = None
    stroke_count: Json = None
    notes: OptionalText = None
    created_at: OptionalText = None
    updated_at: OptionalText = None
