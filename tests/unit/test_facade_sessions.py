"""
Swim session operations through TrainingApi, in local mode unless a
test asks for the database backend.
"""

import pytest

from suivi_natation.core.errors import NotFoundError
from suivi_natation.core.training.models import SessionDraft
from suivi_natation.facade import TrainingApi


def draft(**overrides) -> SessionDraft:
    values = dict(athlete_name="Camille", date="2024-01-05", slot="Matin", effort=4, feeling=3, distance=2500, duration=90)
    values.update(overrides)
    return SessionDraft(**values)


class TestSyncSession:
    """Recording sessions."""

    def test_returns_session_with_id(self, api):
        session = api.sync_session(draft())

        assert session.id > 0
        assert session.effort == 4
        assert session.feeling == 3
        assert session.distance_km == 2.5

    def test_stored_as_entered_in_local_mirror(self, api, context):
        session = api.sync_session(draft())

        row = context.local_store.select("sessions")[0]

        assert row["id"] == session.id
        assert (row["rpe"], row["fatigue"], row["performance"]) == (4, 3, 3)

    def test_stored_on_ten_scale_in_database(self, remote_context, fake_connection):
        TrainingApi(remote_context).sync_session(draft())

        sql, params = fake_connection.statements[0]
        columns = sql[sql.index("(") + 1:sql.index(")")].split(", ")
        stored = dict(zip(columns, params))

        assert (stored["rpe"], stored["fatigue"], stored["performance"]) == (8, 6, 6)

    @pytest.mark.parametrize("rating", [1, 2, 3, 4, 5])
    def test_local_round_trip_keeps_ratings(self, api, rating):
        api.sync_session(draft(effort=rating, feeling=rating))

        session = api.get_sessions(athlete_name="Camille")[0]

        assert (session.effort, session.feeling, session.performance, session.engagement) == (rating,) * 4

    @pytest.mark.parametrize("name", ["", "   "])
    def test_blank_name_is_rejected_before_writing(self, api, context, name):
        with pytest.raises(ValueError, match="athlete name"):
            api.sync_session(draft(athlete_name=name, athlete_id=7))

        assert context.local_store.select("sessions") == []

    def test_missing_date_is_rejected(self, api):
        with pytest.raises(ValueError, match="date"):
            api.sync_session(draft(date=""))

    def test_ids_are_unique(self, api):
        first = api.sync_session(draft())
        second = api.sync_session(draft())

        assert first.id != second.id


class TestGetSessions:

    def test_filters_by_name_newest_first(self, api):
        api.sync_session(draft(date="2024-01-01"))
        api.sync_session(draft(date="2024-01-03"))
        api.sync_session(draft(athlete_name="Léo", date="2024-01-02"))

        sessions = api.get_sessions(athlete_name="Camille")

        assert [s.date for s in sessions] == ["2024-01-03", "2024-01-01"]

    def test_athlete_id_wins_over_name(self, api):
        api.sync_session(draft(athlete_id=7))
        api.sync_session(draft(athlete_name="Camille"))

        sessions = api.get_sessions(athlete_name="Camille", athlete_id=7)

        assert len(sessions) == 1
        assert sessions[0].athlete_id == 7

    def test_local_name_match_ignores_case(self, api):
        api.sync_session(draft(athlete_name="Camille"))
        api.sync_session(draft(athlete_name="Léo"))

        sessions = api.get_sessions(athlete_name="camille")

        assert [s.athlete_name for s in sessions] == ["Camille"]

    def test_all_sessions(self, api):
        api.sync_session(draft())
        api.sync_session(draft(athlete_name="Léo"))

        assert len(api.get_all_sessions()) == 2


class TestUpdateAndDelete:

    def test_update_replaces_values(self, api):
        session = api.sync_session(draft())

        updated = api.update_session(session.id, draft(effort=2, comments="facile"))

        assert updated.id == session.id
        assert updated.effort == 2
        stored = api.get_sessions(athlete_name="Camille")[0]
        assert (stored.effort, stored.comments) == (2, "facile")

    def test_update_missing_session(self, api):
        with pytest.raises(NotFoundError, match="Séance introuvable"):
            api.update_session(12345, draft())

    def test_update_with_blank_name_is_rejected(self, api):
        session = api.sync_session(draft())

        with pytest.raises(ValueError):
            api.update_session(session.id, draft(athlete_name=" "))

        assert api.get_sessions(athlete_name="Camille")[0].id == session.id

    def test_delete_removes_session_and_its_logs(self, api):
        session = api.sync_session(draft())
        api.save_swim_exercise_logs(session.id, 3, [{"exercise_label": "4x100 NL", "split_times": [72.1, 71.8]}])

        api.delete_session(session.id)

        assert api.get_all_sessions() == []
        assert api.get_swim_exercise_logs(session.id) == []


class TestLocalModeOffline:
    """A configured backend is bypassed while offline."""

    def test_offline_mode_uses_mirror(self, remote_settings):
        from suivi_natation.infrastructure.store.factory import DataContext

        remote_settings.offline_mode = True
        api = TrainingApi(DataContext(remote_settings))

        session = api.sync_session(draft())

        assert api.get_capabilities().mode == "local"
        assert api.get_all_sessions()[0].id == session.id
