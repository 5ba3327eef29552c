"""
Strength training engine.

Pure functions over the domain models: no storage, no I/O. The services
layer loads rows, calls into here, and writes the results back.

Covers:
- item normalization and validation for strength session templates
- item ordering and cycle-based parameter resolution
- 1RM estimation (Epley) and the "only if strictly better" update rule
- the strength run state machine
- history summaries and period aggregation (day / ISO week / month)
"""

import math
from datetime import date, datetime, time, timezone
from typing import Any, Iterable, Mapping, Optional, Sequence, TypeVar, Union

from ..errors import InvalidRunTransitionError, InvalidStrengthItemError
from .models import (
    Cycle,
    Exercise,
    ExerciseSummary,
    HistoryPeriod,
    ResolvedItem,
    ResolvedParams,
    RunStatus,
    SetLog,
    StrengthRun,
    StrengthSessionItem,
)
from .scales import round_half_up, safe_int, safe_optional_int, safe_optional_number

EM_DASH = "—"
MAX_PAGE_SIZE = 200
PERIODS = ("day", "week", "month")

T = TypeVar("T")


# ---------------------------------------------------------------------------
# Item normalization and validation
# ---------------------------------------------------------------------------

def _count(value: Any) -> Union[int, float]:
    """
    Coerce an item count (sets, reps, rest).

    Absent means 0. Unparseable or non-finite values are kept as NaN/inf
    so that validation can reject them instead of silently zeroing.
    """
    if value is None or value == "":
        return 0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return math.nan
    if not math.isfinite(number):
        return number
    return round_half_up(number)


def _first(raw: Mapping[str, Any], *keys: str) -> Any:
    for key in keys:
        value = raw.get(key)
        if value is not None:
            return value
    return None


def normalize_strength_item(
    raw: Union[Mapping[str, Any], StrengthSessionItem],
    index: int,
    session_cycle: Cycle,
) -> StrengthSessionItem:
    """
    Build a StrengthSessionItem from loose input.

    Accepts both storage column names (ordre, rest_series_s, pct_1rm) and
    domain names. Position in the list is the order index fallback.
    """
    if isinstance(raw, StrengthSessionItem):
        raw = {
            "exercise_id": raw.exercise_id,
            "order_index": raw.order_index,
            "sets": raw.sets,
            "reps": raw.reps,
            "rest_seconds": raw.rest_seconds,
            "percent_1rm": raw.percent_1rm,
            "cycle_type": raw.cycle_type,
            "notes": raw.notes,
            "exercise_name": raw.exercise_name,
            "category": raw.category,
        }

    order_index = safe_optional_int(_first(raw, "ordre", "order_index"))
    cycle_value = _first(raw, "cycle_type")
    return StrengthSessionItem(
        exercise_id=safe_int(raw.get("exercise_id")),
        order_index=index if order_index is None else order_index,
        sets=_count(raw.get("sets")),
        reps=_count(raw.get("reps")),
        rest_seconds=_count(_first(raw, "rest_series_s", "rest_seconds")),
        percent_1rm=safe_optional_number(_first(raw, "pct_1rm", "percent_1rm")) or 0,
        cycle_type=Cycle.parse(cycle_value if cycle_value is not None else session_cycle),
        notes=raw.get("notes") or "",
        exercise_name=_first(raw, "exercise_name", "nom_exercice"),
        category=_first(raw, "category", "exercise_type"),
    )


def normalize_strength_items(
    raw_items: Optional[Iterable[Any]],
    session_cycle: Cycle,
) -> list[StrengthSessionItem]:
    return [
        normalize_strength_item(raw, index, session_cycle)
        for index, raw in enumerate(raw_items or [])
    ]


def _is_valid_count(value: Any) -> bool:
    return isinstance(value, (int, float)) and math.isfinite(value) and value >= 0


def validate_strength_items(items: Sequence[StrengthSessionItem]) -> None:
    """
    Reject the whole list if any item has a negative or non-finite count.

    The error names the offending item by its 1-based position.
    """
    for index, item in enumerate(items, start=1):
        if not _is_valid_count(item.sets):
            raise InvalidStrengthItemError(f"Séries invalides pour l'exercice #{index}")
        if not _is_valid_count(item.reps):
            raise InvalidStrengthItemError(f"Reps invalides pour l'exercice #{index}")
        if not _is_valid_count(item.rest_seconds):
            raise InvalidStrengthItemError(f"Repos invalide pour l'exercice #{index}")


def enrich_items_with_exercise_names(
    items: list[StrengthSessionItem],
    exercises: Iterable[Exercise],
) -> list[StrengthSessionItem]:
    """Fill exercise_name and category from the exercise library, in place."""
    by_id = {exercise.id: exercise for exercise in exercises}
    for item in items:
        exercise = by_id.get(item.exercise_id)
        if exercise is not None:
            item.exercise_name = exercise.name
            item.category = exercise.exercise_type.value
    return items


# ---------------------------------------------------------------------------
# Ordering and cycle resolution
# ---------------------------------------------------------------------------

def _order_of(item: Any) -> Optional[float]:
    value = item.get("order_index") if isinstance(item, Mapping) else getattr(item, "order_index", None)
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def order_items(items: Sequence[T]) -> list[T]:
    """
    Sort items by order index.

    When no item carries a finite order index the input order is returned
    unchanged. Otherwise ascending by index, ties keep their original
    position, items without an index go last.
    """
    orders = [_order_of(item) for item in items]
    if all(order is None for order in orders):
        return list(items)

    positioned = sorted(
        range(len(items)),
        key=lambda position: (
            orders[position] is None,
            orders[position] if orders[position] is not None else 0,
            position,
        ),
    )
    return [items[position] for position in positioned]


def items_for_cycle(items: Sequence[StrengthSessionItem], cycle: Cycle) -> list[StrengthSessionItem]:
    """Items tagged with the cycle, or every item when none are."""
    cycle = Cycle.parse(cycle)
    matching = [item for item in items if item.cycle_type == cycle]
    return matching if matching else list(items)


def _positive(value: Any) -> Optional[float]:
    number = safe_optional_number(value)
    if number is None or number <= 0:
        return None
    return number


def _positive_int(value: Any) -> Optional[int]:
    number = _positive(value)
    return round_half_up(number) if number is not None else None


def resolve_exercise_params(exercise: Exercise, cycle: Cycle) -> ResolvedParams:
    """Parameters of the exercise for a cycle. Zero and negatives read as unspecified."""
    params = exercise.params_for(cycle)
    return ResolvedParams(
        sets=_positive_int(params.sets),
        reps=_positive_int(params.reps),
        percent_1rm=_positive(params.percent_1rm),
        rest_seconds=_positive_int(params.rest_seconds),
    )


def format_param(value: Optional[float], suffix: str = "") -> str:
    """Render a parameter for display; unspecified is an em-dash."""
    if value is None:
        return EM_DASH
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return f"{value}{suffix}"


def resolve_session_items(
    items: Sequence[StrengthSessionItem],
    cycle: Cycle,
    exercises: Iterable[Exercise],
) -> list[ResolvedItem]:
    by_id = {exercise.id: exercise for exercise in exercises}
    resolved = []
    for item in order_items(items_for_cycle(items, cycle)):
        exercise = by_id.get(item.exercise_id)
        params = resolve_exercise_params(exercise, cycle) if exercise else ResolvedParams()
        resolved.append(ResolvedItem(item=item, exercise=exercise, params=params))
    return resolved


# ---------------------------------------------------------------------------
# 1RM
# ---------------------------------------------------------------------------

def estimate_one_rm(weight: Any, reps: Any) -> Optional[int]:
    """
    Epley estimate of the one-repetition maximum.

    None when weight or reps is missing, non-finite or not positive.
    A single rep is its own maximum.
    """
    weight_value = safe_optional_number(weight)
    reps_value = safe_optional_number(reps)
    if weight_value is None or reps_value is None:
        return None
    if weight_value <= 0 or reps_value <= 0:
        return None
    if reps_value == 1:
        return round_half_up(weight_value)
    return round_half_up(weight_value * (1 + reps_value / 30))


def collect_estimated_one_rms(logs: Iterable[Union[SetLog, Mapping[str, Any]]]) -> dict[int, int]:
    """Best estimate per exercise over a set of logs."""
    estimates: dict[int, int] = {}
    for log in logs:
        if isinstance(log, Mapping):
            exercise_id, weight, reps = log.get("exercise_id"), log.get("weight"), log.get("reps")
        else:
            exercise_id, weight, reps = log.exercise_id, log.weight, log.reps
        estimate = estimate_one_rm(weight, reps)
        if not estimate:
            continue
        exercise = safe_optional_int(exercise_id)
        if exercise is None:
            continue
        if estimate > estimates.get(exercise, 0):
            estimates[exercise] = estimate
    return estimates


def one_rm_improvements(
    estimates: Mapping[int, int],
    stored: Mapping[int, float],
) -> dict[int, int]:
    """Estimates strictly greater than the stored value (0 when none stored)."""
    return {
        exercise_id: estimate
        for exercise_id, estimate in estimates.items()
        if estimate > (stored.get(exercise_id) or 0)
    }


# ---------------------------------------------------------------------------
# Run state machine
# ---------------------------------------------------------------------------

def check_run_transition(run: StrengthRun, new_status: Optional[RunStatus]) -> None:
    """
    Allow in_progress -> {in_progress, completed, abandoned} only.

    Progress-only updates (new_status None) are allowed while in progress.
    """
    if run.status.is_terminal:
        target = new_status.value if new_status else "update"
        raise InvalidRunTransitionError(
            f"Run {run.id} is {run.status.value}; cannot apply {target}"
        )


def check_can_log(run: StrengthRun) -> None:
    if run.status.is_terminal:
        raise InvalidRunTransitionError(
            f"Run {run.id} is {run.status.value}; cannot log sets"
        )


# ---------------------------------------------------------------------------
# Dates and paging
# ---------------------------------------------------------------------------

def parse_timestamp(value: Any) -> Optional[datetime]:
    """Parse an ISO date or timestamp into an aware UTC datetime."""
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, date):
        parsed = datetime.combine(value, time.min)
    else:
        text = str(value).strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def end_of_day(value: Any) -> Optional[datetime]:
    """
    Inclusive upper bound for a date filter.

    A bare date covers the whole day; a full timestamp is used as-is.
    """
    parsed = parse_timestamp(value)
    if parsed is None:
        return None
    text = value.isoformat() if isinstance(value, (date, datetime)) else str(value)
    if isinstance(value, datetime) or "T" in text or " " in text.strip():
        return parsed
    return parsed.replace(hour=23, minute=59, second=59, microsecond=999999)


def clamp_limit(limit: Any, default: int) -> int:
    value = safe_optional_int(limit)
    if value is None:
        return default
    return min(max(value, 1), MAX_PAGE_SIZE)


def clamp_offset(offset: Any) -> int:
    value = safe_optional_int(offset)
    return max(value, 0) if value is not None else 0


def normalize_order(order: Optional[str]) -> str:
    return "asc" if order == "asc" else "desc"


# ---------------------------------------------------------------------------
# History
# ---------------------------------------------------------------------------

def period_key(moment: datetime, period: str) -> str:
    """
    Bucket key for a timestamp.

    day: 2024-01-05, week: 2024-W01 (ISO, Thursday-anchored year),
    month: 2024-01.
    """
    if period == "month":
        return f"{moment.year}-{moment.month:02d}"
    if period == "week":
        iso_year, iso_week, _ = moment.isocalendar()
        return f"{iso_year}-W{iso_week:02d}"
    return moment.date().isoformat()


def run_date(run: StrengthRun) -> Optional[datetime]:
    return parse_timestamp(run.started_at) or parse_timestamp(run.completed_at)


def aggregate_history(
    runs: Iterable[StrengthRun],
    period: str = "day",
    date_from: Any = None,
    date_to: Any = None,
    order: str = "desc",
) -> list[HistoryPeriod]:
    """
    Sum volume (reps) and tonnage (reps x weight) per period.

    Each log is dated by its completion time, falling back to the run
    start. date_to is inclusive to the end of that day.
    """
    if period not in PERIODS:
        period = "day"
    lower = parse_timestamp(date_from)
    upper = end_of_day(date_to)

    buckets: dict[str, HistoryPeriod] = {}
    for run in runs:
        for log in run.logs:
            moment = parse_timestamp(log.completed_at) or run_date(run)
            if moment is None:
                continue
            if lower and moment < lower:
                continue
            if upper and moment > upper:
                continue
            key = period_key(moment, period)
            entry = buckets.setdefault(key, HistoryPeriod(period=key))
            reps = log.reps or 0
            weight = log.weight or 0
            entry.volume += reps
            entry.tonnage += reps * weight

    return sorted(buckets.values(), key=lambda entry: entry.period, reverse=normalize_order(order) == "desc")


def summarize_exercises(
    runs: Iterable[StrengthRun],
    names: Mapping[int, str],
) -> list[ExerciseSummary]:
    """Per-exercise totals across runs, heaviest total volume first."""
    summaries: dict[int, ExerciseSummary] = {}
    last_seen: dict[int, datetime] = {}

    for run in runs:
        for log in run.logs:
            exercise_id = log.exercise_id
            if not exercise_id:
                continue
            summary = summaries.get(exercise_id)
            if summary is None:
                summary = ExerciseSummary(
                    exercise_id=exercise_id,
                    exercise_name=names.get(exercise_id) or f"Exercice {exercise_id}",
                )
                summaries[exercise_id] = summary

            reps = log.reps or 0
            weight = log.weight or 0
            summary.total_sets += 1
            summary.total_reps += reps
            summary.total_volume += reps * weight
            if weight > (summary.max_weight or 0):
                summary.max_weight = weight

            performed_at = log.completed_at or run.completed_at or run.started_at
            moment = parse_timestamp(performed_at)
            if moment is not None and (exercise_id not in last_seen or moment > last_seen[exercise_id]):
                last_seen[exercise_id] = moment
                summary.last_performed_at = performed_at

    return sorted(summaries.values(), key=lambda summary: summary.total_volume, reverse=True)
