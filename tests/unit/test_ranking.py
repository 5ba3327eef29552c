"""
Unit tests for the hall of fame boards.
"""

from suivi_natation.core.training.models import SetLog, StrengthRun, TrainingSession
from suivi_natation.core.training.ranking import (
    TOP_N,
    hall_of_fame,
    hall_of_fame_from_rows,
    swim_standings,
)


def session(name: str, distance: int, effort: int, engagement=None) -> TrainingSession:
    return TrainingSession(
        id=0,
        athlete_name=name,
        date="2024-01-01",
        slot="",
        effort=effort,
        feeling=3,
        distance=distance,
        engagement=engagement,
    )


class TestSwimStandings:

    def test_totals_and_averages(self):
        standings = swim_standings([
            session("Camille", 2000, 4, engagement=5),
            session("Camille", 3000, 2),
            session("Léo", 1000, 5, engagement=3),
        ])

        camille = standings[0]
        assert camille.total_distance == 5000
        assert camille.avg_effort == 3
        assert camille.avg_engagement == 5

    def test_no_engagement_ratings_average_zero(self):
        assert swim_standings([session("Léo", 1000, 5)])[0].avg_engagement == 0


class TestHallOfFame:
    """Top five per board, ties in first-seen order."""

    def test_boards_are_capped(self):
        sessions = [session(f"Nageur {i}", 1000 * i, 3) for i in range(1, 8)]

        fame = hall_of_fame(sessions, [])

        assert len(fame.distance) == TOP_N
        assert fame.distance[0].athlete_name == "Nageur 7"

    def test_ties_keep_first_seen_order(self):
        fame = hall_of_fame([session("A", 1000, 3), session("B", 1000, 3)], [])

        assert [s.athlete_name for s in fame.distance] == ["A", "B"]

    def test_strength_board_by_volume(self):
        runs = [
            StrengthRun(id=1, athlete_name="A", logs=[SetLog(exercise_id=1, reps=10, weight=20)]),
            StrengthRun(id=2, athlete_name="B", logs=[SetLog(exercise_id=1, reps=5, weight=100)]),
        ]

        fame = hall_of_fame([], runs)

        assert [s.athlete_name for s in fame.strength] == ["B", "A"]
        assert fame.strength[0].max_weight == 100

    def test_from_procedure_rows(self):
        rows = [
            {"athlete_name": "A", "total_distance": 5000, "avg_performance": 4, "avg_engagement": 3},
            {"athlete_name": "B", "total_distance": 9000, "avg_performance": None, "avg_engagement": 5},
        ]

        fame = hall_of_fame_from_rows(rows)

        assert [s.athlete_name for s in fame.distance] == ["B", "A"]
        assert fame.performance[0].athlete_name == "B"
        assert fame.strength == []
