"""
Hall of fame rankings.

Each board keeps the top five athletes for one metric. Sorting is stable,
so athletes tied on a metric stay in the order they were first seen.
"""

from typing import Any, Iterable, Mapping

from .models import HallOfFame, StrengthRun, StrengthStanding, SwimStanding, TrainingSession
from .scales import safe_optional_number

TOP_N = 5


def _top(entries: list, metric: str) -> list:
    return sorted(entries, key=lambda entry: getattr(entry, metric), reverse=True)[:TOP_N]


def swim_standings(sessions: Iterable[TrainingSession]) -> list[SwimStanding]:
    """
    Per-athlete swim totals.

    Mean engagement only counts sessions that have an engagement rating.
    """
    totals: dict[str, dict[str, float]] = {}
    for session in sessions:
        entry = totals.setdefault(
            session.athlete_name,
            {"distance": 0, "effort": 0, "count": 0, "engagement": 0, "engagement_count": 0},
        )
        entry["distance"] += session.distance
        entry["effort"] += session.effort
        entry["count"] += 1
        if session.engagement is not None:
            entry["engagement"] += session.engagement
            entry["engagement_count"] += 1

    return [
        SwimStanding(
            athlete_name=name,
            total_distance=int(entry["distance"]),
            avg_effort=entry["effort"] / entry["count"],
            avg_engagement=(
                entry["engagement"] / entry["engagement_count"] if entry["engagement_count"] else 0
            ),
        )
        for name, entry in totals.items()
    ]


def strength_standings(runs: Iterable[StrengthRun]) -> list[StrengthStanding]:
    standings: dict[str, StrengthStanding] = {}
    for run in runs:
        name = run.athlete_name or ""
        standing = standings.setdefault(name, StrengthStanding(athlete_name=name))
        for log in run.logs:
            reps = log.reps or 0
            weight = log.weight or 0
            standing.total_volume += reps * weight
            standing.total_reps += reps
            standing.total_sets += 1
            if weight > standing.max_weight:
                standing.max_weight = weight
    return list(standings.values())


def hall_of_fame(
    sessions: Iterable[TrainingSession],
    runs: Iterable[StrengthRun],
) -> HallOfFame:
    swim = swim_standings(sessions)
    return HallOfFame(
        distance=_top(swim, "total_distance"),
        performance=_top(swim, "avg_effort"),
        engagement=_top(swim, "avg_engagement"),
        strength=_top(strength_standings(runs), "total_volume"),
    )


def _number(row: Mapping[str, Any], key: str) -> float:
    return safe_optional_number(row.get(key)) or 0


def hall_of_fame_from_rows(rows: Iterable[Mapping[str, Any]]) -> HallOfFame:
    """
    Build the boards from the get_hall_of_fame procedure output.

    Swim rows carry athlete_name, total_distance, avg_performance and
    avg_engagement. Strength rows carry total_volume, total_reps,
    total_sets and max_weight. The remote procedure only returns swim rows.
    """
    swim: list[SwimStanding] = []
    strength: list[StrengthStanding] = []
    for row in rows:
        name = str(row.get("athlete_name") or "")
        if row.get("total_volume") is not None:
            strength.append(StrengthStanding(
                athlete_name=name,
                total_volume=_number(row, "total_volume"),
                total_reps=int(_number(row, "total_reps")),
                total_sets=int(_number(row, "total_sets")),
                max_weight=_number(row, "max_weight"),
            ))
            continue
        performance = row.get("avg_performance")
        swim.append(SwimStanding(
            athlete_name=name,
            total_distance=int(_number(row, "total_distance")),
            avg_effort=safe_optional_number(
                performance if performance is not None else row.get("avg_engagement")
            ) or 0,
            avg_engagement=_number(row, "avg_engagement"),
        ))

    return HallOfFame(
        distance=_top(swim, "total_distance"),
        performance=_top(swim, "avg_effort"),
        engagement=_top(swim, "avg_engagement"),
        strength=_top(strength, "total_volume"),
    )
