"""
Local versions of the server-side procedures.

Each function takes the LocalMirrorStore plus the procedure's named
parameters and returns rows shaped like the Snowflake procedure output.
get_hall_of_fame additionally returns strength rows, which the remote
procedure does not compute.
"""

from datetime import date, datetime, timezone
from typing import Any, Optional

from ...core.training.ranking import strength_standings, swim_standings
from ...core.training.strength import aggregate_history
from ..mappers import present, run_from_row, session_from_row
from ..store.base import Query


def _runs_with_logs(store, query: Optional[Query] = None) -> list:
    run_rows = store.select("strength_session_runs", query)
    logs_by_run: dict[Any, list] = {}
    for log_row in store.select("strength_set_logs"):
        logs_by_run.setdefault(log_row.get("run_id"), []).append(log_row)
    return present(
        run_from_row(run_row, logs_by_run.get(run_row.get("id"), []))
        for run_row in run_rows
    )


def get_hall_of_fame(store) -> list[dict[str, Any]]:
    sessions = present(session_from_row(row) for row in store.select("sessions"))
    rows: list[dict[str, Any]] = [
        {
            "athlete_name": standing.athlete_name,
            "total_distance": standing.total_distance,
            "avg_performance": standing.avg_effort,
            "avg_engagement": standing.avg_engagement,
        }
        for standing in swim_standings(sessions)
    ]
    rows.extend(
        {
            "athlete_name": standing.athlete_name,
            "total_volume": standing.total_volume,
            "total_reps": standing.total_reps,
            "total_sets": standing.total_sets,
            "max_weight": standing.max_weight,
        }
        for standing in strength_standings(_runs_with_logs(store))
    )
    return rows


def _next_birthday(birthdate: date, today: date) -> date:
    for year in (today.year, today.year + 1):
        try:
            candidate = birthdate.replace(year=year)
        except ValueError:
            # 29 February outside a leap year
            candidate = date(year, 2, 28)
        if candidate >= today:
            return candidate
    return candidate


def get_upcoming_birthdays(store, p_days: int = 30, today: Optional[date] = None) -> list[dict[str, Any]]:
    today = today or datetime.now(timezone.utc).date()
    profiles = {row.get("user_id"): row for row in store.select("user_profiles")}
    rows = []
    for user in store.select("users", Query().neq("is_active", False)):
        profile = profiles.get(user.get("id")) or {}
        raw = profile.get("birthdate") or user.get("birthdate")
        if not raw:
            continue
        try:
            birthdate = date.fromisoformat(str(raw)[:10])
        except ValueError:
            continue
        upcoming = _next_birthday(birthdate, today)
        days_until = (upcoming - today).days
        if days_until > p_days:
            continue
        rows.append({
            "id": user.get("id"),
            "display_name": profile.get("display_name") or user.get("display_name") or "",
            "birthdate": birthdate.isoformat(),
            "next_birthday": upcoming.isoformat(),
            "days_until": days_until,
        })
    return sorted(rows, key=lambda row: row["days_until"])


def get_strength_history_aggregate(
    store,
    p_period: str = "day",
    p_athlete_id: Optional[int] = None,
    p_athlete_name: Optional[str] = None,
    p_from: Optional[str] = None,
    p_to: Optional[str] = None,
) -> list[dict[str, Any]]:
    query = Query()
    if p_athlete_id is not None:
        query.eq("athlete_id", p_athlete_id)
    else:
        query.eq("athlete_name", p_athlete_name)
    periods = aggregate_history(_runs_with_logs(store, query), p_period, p_from, p_to, "desc")
    return [
        {"period": entry.period, "tonnage": entry.tonnage, "volume": entry.volume}
        for entry in periods
    ]
