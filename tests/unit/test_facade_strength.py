"""
Strength operations through TrainingApi, in local mode.

Covers the exercise library, session templates, runs with the 1RM rule,
and history.
"""

import pytest

from suivi_natation.core.errors import (
    InvalidRunTransitionError,
    InvalidStrengthItemError,
    NotFoundError,
)
from suivi_natation.core.training.models import (
    Cycle,
    CycleParams,
    Exercise,
    RunStatus,
    SetLog,
)


@pytest.fixture
def exercises(api) -> tuple[Exercise, Exercise]:
    squat = api.create_exercise(Exercise(
        id=0, name="Squat", number=1,
        force=CycleParams(sets=5, reps=3, percent_1rm=85, rest_seconds=180),
    ))
    bench = api.create_exercise(Exercise(id=0, name="Développé Couché", number=2))
    return squat, bench


@pytest.fixture
def assignment_id(context) -> int:
    context.local_store.insert("session_assignments", [{
        "id": 555,
        "assignment_type": "strength",
        "strength_session_id": 101,
        "target_athlete": "Camille",
        "status": "assigned",
    }])
    return 555


def assignment_status(context, assignment_id: int) -> str:
    rows = context.local_store.select("session_assignments")
    return next(row["status"] for row in rows if row["id"] == assignment_id)


# ---------------------------------------------------------------------------
# Exercises and templates
# ---------------------------------------------------------------------------

class TestExercises:

    def test_created_exercises_get_ids_and_order(self, api, exercises):
        squat, bench = exercises

        listed = api.get_exercises()

        assert squat.id > 0
        assert [exercise.name for exercise in listed] == ["Squat", "Développé Couché"]
        assert listed[0].force.sets == 5

    def test_update_missing_exercise(self, api):
        with pytest.raises(NotFoundError, match="Exercice introuvable"):
            api.update_exercise(Exercise(id=42, name="Ghost"))


class TestStrengthTemplates:
    """Templates are validated as a whole and stored with ordered items."""

    def test_create_and_read_back(self, api, exercises):
        squat, bench = exercises

        created = api.create_strength_session(
            "Full Body",
            cycle="force",
            items=[
                {"exercise_id": bench.id, "order_index": 1, "sets": 4, "reps": 8},
                {"exercise_id": squat.id, "order_index": 0, "sets": 5, "reps": 3},
            ],
        )

        template = api.get_strength_session(created.id)

        assert template.cycle is Cycle.FORCE
        assert [item.exercise_name for item in template.items] == ["Squat", "Développé Couché"]

    def test_invalid_item_rejects_everything(self, api, exercises, context):
        squat, _ = exercises

        with pytest.raises(InvalidStrengthItemError, match="#2"):
            api.create_strength_session(
                "Broken",
                items=[{"exercise_id": squat.id, "sets": 3}, {"exercise_id": squat.id, "sets": -3}],
            )

        assert context.local_store.select("strength_sessions") == []
        assert context.local_store.select("strength_session_items") == []

    def test_update_replaces_items(self, api, exercises):
        squat, bench = exercises
        created = api.create_strength_session("A", items=[{"exercise_id": squat.id}, {"exercise_id": bench.id}])

        api.update_strength_session(created.id, "B", items=[{"exercise_id": bench.id}])

        template = api.get_strength_session(created.id)
        assert template.title == "B"
        assert [item.exercise_id for item in template.items] == [bench.id]

    def test_update_missing_template(self, api):
        with pytest.raises(NotFoundError):
            api.update_strength_session(999, "X")

    def test_deleting_an_exercise_removes_it_from_templates(self, api, exercises):
        squat, bench = exercises
        created = api.create_strength_session("A", items=[{"exercise_id": squat.id}, {"exercise_id": bench.id}])

        api.delete_exercise(squat.id)

        assert [item.exercise_id for item in api.get_strength_session(created.id).items] == [bench.id]

    def test_resolve_items_for_cycle(self, api, exercises):
        squat, _ = exercises
        created = api.create_strength_session("A", cycle="force", items=[{"exercise_id": squat.id}])

        resolved = api.resolve_strength_items(created.id)

        assert resolved[0].exercise.name == "Squat"
        assert resolved[0].params.sets == 5

    def test_listing_enriches_names(self, api, exercises):
        squat, _ = exercises
        api.create_strength_session("A", items=[{"exercise_id": squat.id}])

        templates = api.get_strength_sessions()

        assert templates[0].items[0].exercise_name == "Squat"


# ---------------------------------------------------------------------------
# Runs
# ---------------------------------------------------------------------------

class TestRuns:
    """Run lifecycle and its effect on assignments and 1RM."""

    def test_start_moves_assignment_in_progress(self, api, context, assignment_id):
        run = api.start_strength_run(session_id=101, assignment_id=assignment_id, athlete_name="Camille")

        assert run.status is RunStatus.IN_PROGRESS
        assert assignment_status(context, assignment_id) == "in_progress"

    def test_log_set_raises_one_rm_only_when_better(self, api, exercises):
        squat, _ = exercises
        run = api.start_strength_run(athlete_id=3)

        first = api.log_strength_set(run.id, SetLog(exercise_id=squat.id, reps=5, weight=100))
        second = api.log_strength_set(run.id, SetLog(exercise_id=squat.id, reps=5, weight=90))

        assert (first.one_rm_updated, first.one_rm) == (True, 117)
        assert second.one_rm_updated is False
        assert [record.weight for record in api.get_1rm(athlete_id=3)] == [117]

    def test_logs_are_attached_to_the_run(self, api, exercises):
        squat, _ = exercises
        run = api.start_strength_run(athlete_name="Camille")
        api.log_strength_set(run.id, SetLog(exercise_id=squat.id, set_index=2, reps=5, weight=60))
        api.log_strength_set(run.id, SetLog(exercise_id=squat.id, set_index=1, reps=5, weight=50))

        loaded = api.get_strength_run(run.id)

        assert [log.weight for log in loaded.logs] == [50, 60]

    def test_completing_closes_run_and_assignment(self, api, context, assignment_id, exercises):
        squat, _ = exercises
        run = api.start_strength_run(assignment_id=assignment_id, athlete_name="Camille")

        completed = api.update_strength_run(run.id, status=RunStatus.COMPLETED, progress_pct=100, fatigue=4)

        assert completed.status is RunStatus.COMPLETED
        assert completed.completed_at is not None
        assert assignment_status(context, assignment_id) == "completed"
        with pytest.raises(InvalidRunTransitionError):
            api.log_strength_set(run.id, SetLog(exercise_id=squat.id, reps=5, weight=50))
        with pytest.raises(InvalidRunTransitionError):
            api.update_strength_run(run.id, status=RunStatus.IN_PROGRESS)

    def test_progress_update_keeps_status(self, api):
        run = api.start_strength_run(athlete_name="Camille")

        updated = api.update_strength_run(run.id, progress_pct=40)

        assert updated.status is RunStatus.IN_PROGRESS
        assert api.get_strength_run(run.id).progress_pct == 40

    def test_delete_resets_assignment(self, api, context, assignment_id):
        run = api.start_strength_run(assignment_id=assignment_id, athlete_name="Camille")

        api.delete_strength_run(run.id)

        assert assignment_status(context, assignment_id) == "assigned"
        with pytest.raises(NotFoundError, match="Séance de musculation introuvable"):
            api.get_strength_run(run.id)

    def test_save_run_in_one_call(self, api, context, assignment_id, exercises):
        squat, bench = exercises

        run_id = api.save_strength_run(
            [
                {"exercise_id": squat.id, "set_number": 1, "reps": 5, "weight": 100},
                {"exercise_id": bench.id, "reps": 10, "weight": 60},
            ],
            assignment_id=assignment_id,
            athlete_id=3,
        )

        run = api.get_strength_run(run_id)
        assert run.status is RunStatus.COMPLETED
        assert run.progress_pct == 100
        assert len(run.logs) == 2
        assert assignment_status(context, assignment_id) == "completed"
        assert {record.exercise_id: record.weight for record in api.get_1rm(athlete_id=3)} == {
            squat.id: 117,
            bench.id: 80,
        }

    def test_missing_run(self, api):
        with pytest.raises(NotFoundError):
            api.update_strength_run(1, progress_pct=10)


# ---------------------------------------------------------------------------
# 1RM and history
# ---------------------------------------------------------------------------

class TestOneRm:

    def test_manual_update_needs_an_athlete(self, api):
        with pytest.raises(ValueError):
            api.update_1rm(1, 100)

    def test_manual_update_replaces_per_exercise(self, api):
        api.update_1rm(1, 100, athlete_name="Camille")
        api.update_1rm(1, 95, athlete_name="Camille")

        records = api.get_1rm(athlete_name="Camille")

        assert [record.weight for record in records] == [95]


class TestHistory:

    @pytest.fixture
    def history(self, api, exercises):
        squat, bench = exercises
        api.save_strength_run(
            [{"exercise_id": squat.id, "reps": 10, "weight": 50, "completed_at": "2024-01-05T10:00:00+00:00"}],
            athlete_name="Camille",
        )
        api.save_strength_run(
            [{"exercise_id": bench.id, "reps": 5, "weight": 40, "completed_at": "2024-02-10T10:00:00+00:00"}],
            athlete_name="Camille",
        )
        api.save_strength_run(
            [{"exercise_id": squat.id, "reps": 1, "weight": 200}],
            athlete_name="Léo",
        )
        return squat, bench

    def test_history_pages_and_summarizes(self, api, history):
        result = api.get_strength_history(athlete_name="Camille", limit=1)

        assert len(result.runs) == 1
        assert result.pagination.total == 2
        assert result.pagination.limit == 1
        assert {summary.exercise_name for summary in result.exercise_summary} == {"Squat", "Développé Couché"}

    def test_status_filter(self, api, history):
        assert api.get_strength_history(athlete_name="Camille", status="abandoned").runs == []

    def test_aggregate_by_month(self, api, history):
        result = api.get_strength_history_aggregate(athlete_name="Camille", period="month", order="asc")

        assert [(p.period, p.volume, p.tonnage) for p in result.periods] == [
            ("2024-01", 10, 500),
            ("2024-02", 5, 200),
        ]
        assert result.pagination.total == 2
