"""
Domain models for swim and strength training.

These models represent the core business concepts. They have no dependencies
on external frameworks, databases, or APIs. How they are stored (Snowflake
tables or the local JSON mirror) is the infrastructure layer's concern.

Ratings on TrainingSession are always on the 1-5 scale here, whatever scale
the storage uses.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

from .scales import meters_to_km


class Cycle(Enum):
    """Training periodization phase. Selects which exercise parameters apply."""
    ENDURANCE = "endurance"
    HYPERTROPHIE = "hypertrophie"
    FORCE = "force"

    @classmethod
    def parse(cls, value: Any) -> "Cycle":
        """Lenient parse: case-insensitive, anything unknown is endurance."""
        if isinstance(value, cls):
            return value
        normalized = str(value if value is not None else "").strip().lower()
        for cycle in cls:
            if cycle.value == normalized:
                return cycle
        return cls.ENDURANCE


class ExerciseType(Enum):
    STRENGTH = "strength"
    WARMUP = "warmup"

    @classmethod
    def parse(cls, value: Any) -> "ExerciseType":
        if isinstance(value, cls):
            return value
        return cls.WARMUP if value == "warmup" else cls.STRENGTH


class SessionType(Enum):
    """What kind of catalog session an assignment points to."""
    SWIM = "swim"
    STRENGTH = "strength"


class AssignmentStatus(Enum):
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"


class RunStatus(Enum):
    """
    Lifecycle of a strength run.

    in_progress is the only non-terminal state. Completed and abandoned
    runs accept no further status change and no new set logs.
    """
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    ABANDONED = "abandoned"

    @property
    def is_terminal(self) -> bool:
        return self is not RunStatus.IN_PROGRESS


class NotificationType(Enum):
    MESSAGE = "message"
    ASSIGNMENT = "assignment"
    BIRTHDAY = "birthday"


# ---------------------------------------------------------------------------
# Swim session log
# ---------------------------------------------------------------------------

@dataclass
class SessionDraft:
    """
    A session as submitted by an athlete, before it has an id.

    performance and engagement fall back to feeling when left empty.
    """
    athlete_name: str
    date: str
    slot: str
    effort: int
    feeling: int
    distance: int = 0
    duration: int = 0
    comments: str = ""
    athlete_id: Optional[int] = None
    performance: Optional[int] = None
    engagement: Optional[int] = None


@dataclass
class TrainingSession:
    """A logged swim session. All ratings on the 1-5 scale."""
    id: int
    athlete_name: str
    date: str
    slot: str
    effort: int
    feeling: int
    distance: int = 0
    duration: int = 0
    comments: str = ""
    athlete_id: Optional[int] = None
    rpe: Optional[int] = None
    performance: Optional[int] = None
    engagement: Optional[int] = None
    fatigue: Optional[int] = None
    created_at: Optional[str] = None

    @property
    def distance_km(self) -> float:
        return meters_to_km(self.distance)


# ---------------------------------------------------------------------------
# Exercises and strength templates
# ---------------------------------------------------------------------------

@dataclass
class CycleParams:
    """
    Prescription for one exercise in one cycle.

    None means "not specified". Zero is a real recorded value.
    """
    sets: Optional[int] = None
    reps: Optional[int] = None
    percent_1rm: Optional[float] = None
    rest_seconds: Optional[int] = None
    rest_exercise_seconds: Optional[int] = None


@dataclass
class Exercise:
    id: int
    name: str
    number: Optional[int] = None
    description: Optional[str] = None
    illustration_gif: Optional[str] = None
    exercise_type: ExerciseType = ExerciseType.STRENGTH
    warmup_reps: Optional[int] = None
    warmup_duration: Optional[int] = None
    endurance: CycleParams = field(default_factory=CycleParams)
    hypertrophie: CycleParams = field(default_factory=CycleParams)
    force: CycleParams = field(default_factory=CycleParams)

    def params_for(self, cycle: Cycle) -> CycleParams:
        return getattr(self, Cycle.parse(cycle).value)


@dataclass
class StrengthSessionItem:
    """One exercise slot in a strength session. Order lives in order_index."""
    exercise_id: int
    order_index: Optional[int] = None
    sets: int = 0
    reps: int = 0
    rest_seconds: int = 0
    percent_1rm: float = 0
    cycle_type: Cycle = Cycle.ENDURANCE
    notes: str = ""
    exercise_name: Optional[str] = None
    category: Optional[str] = None


@dataclass
class StrengthSessionTemplate:
    id: int
    title: str
    description: str = ""
    cycle: Cycle = Cycle.ENDURANCE
    items: list[StrengthSessionItem] = field(default_factory=list)
    created_at: Optional[str] = None


@dataclass
class ResolvedParams:
    """Exercise parameters for one cycle, non-positive values blanked to None."""
    sets: Optional[int] = None
    reps: Optional[int] = None
    percent_1rm: Optional[float] = None
    rest_seconds: Optional[int] = None


@dataclass
class ResolvedItem:
    """A strength item ready to be performed: parameters come from the exercise."""
    item: StrengthSessionItem
    exercise: Optional[Exercise]
    params: ResolvedParams


# ---------------------------------------------------------------------------
# Swim catalog
# ---------------------------------------------------------------------------

@dataclass
class SwimSessionItem:
    """
    One block line of a swim session.

    raw_payload carries the structured detail (block/exercise grouping,
    stroke, intensity, equipment, rest type); the other fields are the
    denormalized copy used for quick rendering.
    """
    order_index: int
    label: Optional[str] = None
    distance: Optional[int] = None
    duration: Optional[int] = None
    intensity: Optional[str] = None
    notes: Optional[str] = None
    raw_payload: Optional[dict] = None
    id: Optional[int] = None
    catalog_id: Optional[int] = None


@dataclass
class SwimSessionTemplate:
    id: int
    name: str
    description: Optional[str] = None
    created_by: Optional[int] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None
    folder: Optional[str] = None
    is_archived: bool = False
    items: list[SwimSessionItem] = field(default_factory=list)

    @property
    def total_distance(self) -> int:
        return sum(item.distance or 0 for item in self.items)


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

@dataclass
class AssignmentDraft:
    """
    Request to schedule a catalog session for a target.

    Exactly one of target_user_id, target_group_id or target_athlete
    should be set.
    """
    session_id: int
    session_type: SessionType
    scheduled_date: Optional[str] = None
    scheduled_slot: Optional[str] = None
    target_user_id: Optional[int] = None
    target_group_id: Optional[int] = None
    target_athlete: Optional[str] = None
    assigned_by: Optional[int] = None


@dataclass
class Assignment:
    id: int
    session_id: int
    session_type: SessionType
    title: str
    description: str = ""
    assigned_date: str = ""
    assigned_slot: Optional[str] = None
    status: AssignmentStatus = AssignmentStatus.ASSIGNED
    target_user_id: Optional[int] = None
    target_group_id: Optional[int] = None
    target_athlete: Optional[str] = None
    items: list[Any] = field(default_factory=list)
    cycle: Optional[Cycle] = None


@dataclass
class GroupAssignmentResult:
    """Outcome of assigning one session to several groups."""
    assignment_ids: dict[int, int] = field(default_factory=dict)

    @property
    def succeeded(self) -> list[int]:
        return list(self.assignment_ids)


# ---------------------------------------------------------------------------
# Strength runs and 1RM
# ---------------------------------------------------------------------------

@dataclass
class SetLog:
    exercise_id: int
    set_index: Optional[int] = None
    reps: Optional[int] = None
    weight: Optional[float] = None
    rest_seconds: Optional[int] = None
    rpe: Optional[int] = None
    notes: Optional[str] = None
    pct_1rm_suggested: Optional[float] = None
    completed_at: Optional[str] = None
    id: Optional[int] = None
    run_id: Optional[int] = None


@dataclass
class StrengthRun:
    id: int
    status: RunStatus = RunStatus.IN_PROGRESS
    athlete_id: Optional[int] = None
    athlete_name: Optional[str] = None
    assignment_id: Optional[int] = None
    session_id: Optional[int] = None
    cycle_type: Optional[Cycle] = None
    progress_pct: float = 0
    started_at: Optional[str] = None
    completed_at: Optional[str] = None
    updated_at: Optional[str] = None
    fatigue: Optional[int] = None
    comments: Optional[str] = None
    logs: list[SetLog] = field(default_factory=list)

    @property
    def is_terminal(self) -> bool:
        return self.status.is_terminal


@dataclass
class SetLogResult:
    """What logging a set did to the athlete's 1RM for that exercise."""
    one_rm_updated: bool = False
    one_rm: Optional[int] = None


@dataclass
class OneRmRecord:
    exercise_id: int
    weight: float
    id: Optional[int] = None
    athlete_id: Optional[int] = None
    athlete_name: Optional[str] = None
    recorded_at: Optional[str] = None


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

@dataclass
class Pagination:
    limit: int
    offset: int
    total: int


@dataclass
class ExerciseSummary:
    exercise_id: int
    exercise_name: str
    total_sets: int = 0
    total_reps: int = 0
    total_volume: float = 0
    max_weight: Optional[float] = None
    last_performed_at: Optional[str] = None


@dataclass
class StrengthHistory:
    runs: list[StrengthRun]
    pagination: Pagination
    exercise_summary: list[ExerciseSummary] = field(default_factory=list)


@dataclass
class HistoryPeriod:
    """Volume (total reps) and tonnage (reps x weight) for one period key."""
    period: str
    tonnage: float = 0
    volume: int = 0


@dataclass
class StrengthHistoryAggregate:
    periods: list[HistoryPeriod]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

@dataclass
class NotificationTarget:
    target_user_id: Optional[int] = None
    target_group_id: Optional[int] = None


@dataclass
class Notification:
    """
    A notification as seen by one recipient.

    id is the delivery (target row) id, which is what mark-as-read takes;
    notification_id is the shared message id.
    """
    id: int
    title: str
    message: str = ""
    type: NotificationType = NotificationType.MESSAGE
    read: bool = False
    date: Optional[str] = None
    sender: str = "Système"
    sender_id: Optional[int] = None
    notification_id: Optional[int] = None
    target_user_id: Optional[int] = None
    target_group_id: Optional[int] = None
    target_athlete: Optional[str] = None
    related_id: Optional[int] = None


@dataclass
class NotificationPage:
    notifications: list[Notification]
    pagination: Pagination


# ---------------------------------------------------------------------------
# Records
# ---------------------------------------------------------------------------

@dataclass
class SwimStanding:
    athlete_name: str
    total_distance: int = 0
    avg_effort: float = 0
    avg_engagement: float = 0


@dataclass
class StrengthStanding:
    athlete_name: str
    total_volume: float = 0
    total_reps: int = 0
    total_sets: int = 0
    max_weight: float = 0


@dataclass
class HallOfFame:
    distance: list[SwimStanding] = field(default_factory=list)
    performance: list[SwimStanding] = field(default_factory=list)
    engagement: list[SwimStanding] = field(default_factory=list)
    strength: list[StrengthStanding] = field(default_factory=list)


@dataclass
class SwimRecord:
    id: int
    event_name: str
    athlete_id: Optional[int] = None
    athlete_name: Optional[str] = None
    pool_length: Optional[int] = None
    time_seconds: Optional[float] = None
    record_date: Optional[str] = None
    notes: Optional[str] = None
    ffn_points: Optional[int] = None
    record_type: Optional[str] = None


@dataclass
class ClubRecord:
    id: int
    event_code: str
    athlete_name: str = ""
    sex: Optional[str] = None
    pool_m: Optional[int] = None
    age: Optional[int] = None
    time_ms: Optional[int] = None
    event_label: Optional[str] = None
    record_date: Optional[str] = None
    performance_id: Optional[int] = None


@dataclass
class ClubRecordSwimmer:
    id: int
    display_name: str
    source_type: str = "manual"
    user_id: Optional[int] = None
    iuf: Optional[str] = None
    sex: Optional[str] = None
    birthdate: Optional[str] = None
    is_active: bool = True
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class SwimmerPerformance:
    id: int
    swimmer_iuf: str
    event_code: str
    pool_length: Optional[int] = None
    time_seconds: Optional[float] = None
    user_id: Optional[int] = None
    time_display: Optional[str] = None
    competition_name: Optional[str] = None
    competition_date: Optional[str] = None
    competition_location: Optional[str] = None
    ffn_points: Optional[int] = None
    source: str = "ffn"
    imported_at: Optional[str] = None


@dataclass
class ImportSummary:
    """Result of importing one swimmer's federation performances."""
    total_found: int = 0
    new_imported: int = 0
    already_existed: int = 0


@dataclass
class SyncSummary:
    """Result of syncing federation times into personal swim records."""
    inserted: int = 0
    updated: int = 0
    skipped: int = 0


# ---------------------------------------------------------------------------
# Timesheet, users, swim exercise logs
# ---------------------------------------------------------------------------

@dataclass
class TimesheetShift:
    id: int
    coach_id: int
    shift_date: str
    start_time: str
    end_time: Optional[str] = None
    location: Optional[str] = None
    is_travel: bool = False
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class TimesheetLocation:
    id: int
    name: str
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class UserProfile:
    user_id: int
    display_name: Optional[str] = None
    email: Optional[str] = None
    birthdate: Optional[str] = None
    group_id: Optional[int] = None
    group_label: Optional[str] = None
    objectives: Optional[str] = None
    bio: Optional[str] = None
    avatar_url: Optional[str] = None
    ffn_iuf: Optional[str] = None


@dataclass
class AthleteSummary:
    display_name: str
    id: Optional[int] = None
    email: Optional[str] = None
    group_id: Optional[int] = None
    group_label: Optional[str] = None
    ffn_iuf: Optional[str] = None


@dataclass
class GroupSummary:
    id: int
    name: str
    member_count: Optional[int] = None


@dataclass
class UpcomingBirthday:
    id: int
    display_name: str
    birthdate: str
    next_birthday: str
    days_until: int


@dataclass
class UserSummary:
    id: int
    display_name: str
    role: str = ""
    email: Optional[str] = None
    is_active: bool = True
    group_label: Optional[str] = None


@dataclass
class SwimExerciseLog:
    """Technical notes (splits, tempo, stroke counts) for one swim exercise."""
    id: int
    session_id: int
    user_id: int
    exercise_label: str = ""
    source_item_id: Optional[int] = None
    split_times: list[Any] = field(default_factory=list)
    tempo: Optional[float] = None
    stroke_count: list[Any] = field(default_factory=list)
    notes: Optional[str] = None
    created_at: Optional[str] = None
    updated_at: Optional[str] = None


@dataclass
class Capabilities:
    """Which storage the data layer is using right now, and feature flags."""
    mode: str
    version: Optional[str] = None
    timesheet: bool = True
    messaging: bool = True
    imports: bool = False
