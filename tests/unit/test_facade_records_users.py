"""
Records, federation imports and the user directory through TrainingApi.

Imports and admin actions go through a FunctionsClient whose HTTP calls
are answered by httpx.MockTransport.
"""

import json
from datetime import datetime, timezone

import httpx
import pytest

from suivi_natation.core.errors import BackendUnavailableError, NotFoundError
from suivi_natation.core.training.models import SessionDraft, SetLog, SwimRecord, UserProfile
from suivi_natation.facade import TrainingApi
from suivi_natation.infrastructure.functions.client import FunctionsClient
from suivi_natation.infrastructure.store.base import Query


@pytest.fixture
def function_calls() -> list[tuple[str, dict]]:
    return []


@pytest.fixture
def functions_api(context, function_calls) -> TrainingApi:
    """TrainingApi with a functions endpoint that echoes canned answers."""
    answers = {
        "ffn-performances": {"total_found": 12, "new_imported": 5, "already_existed": 7},
        "import-club-records": {"summary": {"records_updated": 3}},
        "ffn-sync": {"inserted": 2, "updated": 1, "skipped": 4},
        "admin-user": {"user": {"id": 77}, "initial_password": "Temp-1234"},
    }

    def handler(request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        function_calls.append((name, json.loads(request.content)))
        return httpx.Response(200, json=answers[name])

    client = FunctionsClient(
        "https://functions.example.test",
        "anon-key",
        http_client=httpx.Client(transport=httpx.MockTransport(handler)),
    )
    return TrainingApi(context, functions=client)


@pytest.fixture
def athletes(context):
    store = context.local_store
    store.insert("users", [
        {"id": 3, "display_name": "camille", "role": "athlete", "is_active": True},
        {"id": 4, "display_name": "Léo", "role": "athlete", "is_active": True},
        {"id": 5, "display_name": "Ancien", "role": "athlete", "is_active": False},
        {"id": 9, "display_name": "Anne", "role": "coach", "is_active": True},
    ])


# ---------------------------------------------------------------------------
# Hall of fame and personal records
# ---------------------------------------------------------------------------

class TestHallOfFame:

    def test_boards_from_local_data(self, api):
        api.sync_session(SessionDraft(athlete_name="Camille", date="2024-01-01", slot="", effort=4, feeling=4, distance=3000))
        api.sync_session(SessionDraft(athlete_name="Léo", date="2024-01-01", slot="", effort=2, feeling=5, distance=5000))
        run = api.start_strength_run(athlete_name="Léo")
        api.log_strength_set(run.id, SetLog(exercise_id=1, reps=5, weight=80))

        fame = api.get_hall_of_fame()

        assert [s.athlete_name for s in fame.distance] == ["Léo", "Camille"]
        assert [s.athlete_name for s in fame.performance] == ["Camille", "Léo"]
        assert fame.strength[0].athlete_name == "Léo"
        assert fame.strength[0].total_volume == 400


class TestSwimRecords:

    def test_upsert_inserts_then_updates(self, api):
        record = api.upsert_swim_record(SwimRecord(id=0, event_name="100 NL", athlete_id=3, pool_length=25, time_seconds=62.4, record_date="2024-01-05"))
        record.time_seconds = 61.9
        api.upsert_swim_record(record)

        records = api.get_swim_records(athlete_id=3)

        assert len(records) == 1
        assert records[0].time_seconds == 61.9

    def test_no_athlete_no_records(self, api):
        assert api.get_swim_records() == []


# ---------------------------------------------------------------------------
# Club records
# ---------------------------------------------------------------------------

class TestClubRecordSwimmers:

    def test_create_and_patch_manual_swimmer(self, api):
        swimmer = api.create_club_record_swimmer("Jeanne", iuf="111", sex="F")

        patched = api.update_club_record_swimmer(swimmer.id, is_active=False)

        assert patched.is_active is False
        assert patched.iuf == "111"
        assert api.get_club_record_swimmers()[0].is_active is False

    def test_patch_unknown_swimmer(self, api):
        with pytest.raises(NotFoundError):
            api.update_club_record_swimmer(1, sex="M")

    def test_sync_from_users(self, api, context, athletes):
        context.local_store.insert("user_profiles", [{"user_id": 3, "ffn_iuf": "999"}])

        assert api.sync_club_record_swimmers_from_users() == 2
        assert api.sync_club_record_swimmers_from_users() == 0

        context.local_store.update("user_profiles", {"ffn_iuf": "1000"}, Query().eq("user_id", 3))

        assert api.sync_club_record_swimmers_from_users() == 1
        swimmer = api.update_club_record_swimmer_for_user(3, sex="F")
        assert (swimmer.iuf, swimmer.sex) == ("1000", "F")

    def test_club_record_filters(self, api, context):
        context.local_store.insert("club_records", [
            {"id": 1, "event_code": "100NL", "pool_m": 25, "sex": "F", "athlete_name": "A"},
            {"id": 2, "event_code": "100NL", "pool_m": 50, "sex": "F", "athlete_name": "B"},
        ])

        assert [r.athlete_name for r in api.get_club_records(pool_m=50)] == ["B"]


# ---------------------------------------------------------------------------
# Imports
# ---------------------------------------------------------------------------

class TestImports:
    """Federation imports call the server-side functions."""

    def test_without_functions_they_are_unavailable(self, api):
        with pytest.raises(BackendUnavailableError):
            api.import_swimmer_performances("123")
        with pytest.raises(BackendUnavailableError):
            api.recalculate_club_records()

    def test_import_swimmer(self, functions_api, function_calls):
        summary = functions_api.import_swimmer_performances("123", user_id=3)

        assert (summary.total_found, summary.new_imported, summary.already_existed) == (12, 5, 7)
        assert function_calls == [("ffn-performances", {"swimmer_iuf": "123", "user_id": 3})]

    def test_recalculate_unwraps_summary(self, functions_api, function_calls):
        assert functions_api.recalculate_club_records() == {"records_updated": 3}
        assert function_calls[0][1] == {"mode": "recalculate"}

    def test_sync_ffn_swim_records(self, functions_api):
        summary = functions_api.sync_ffn_swim_records("123", athlete_id=3)

        assert (summary.inserted, summary.updated, summary.skipped) == (2, 1, 4)

    def test_capabilities_report_imports(self, functions_api, api):
        assert functions_api.get_capabilities().imports is True
        assert api.get_capabilities().imports is False


# ---------------------------------------------------------------------------
# Users and profiles
# ---------------------------------------------------------------------------

class TestUsers:

    def test_athletes_without_groups(self, api, athletes):
        names = [athlete.display_name for athlete in api.get_athletes()]

        assert names == ["camille", "Léo"]

    def test_athletes_with_groups_carry_labels(self, api, context, athletes):
        context.local_store.insert("groups", [{"id": 1, "name": "Elite"}])
        context.local_store.insert("group_members", [{"group_id": 1, "user_id": 4}])

        athletes_list = api.get_athletes()

        assert [(a.display_name, a.group_label) for a in athletes_list] == [("Léo", "Elite")]

    def test_athletes_from_activity_without_users(self, api):
        api.sync_session(SessionDraft(athlete_name="Zoé", date="2024-01-01", slot="", effort=3, feeling=3))
        api.start_strength_run(athlete_name="Adam")

        assert [a.display_name for a in api.get_athletes()] == ["Adam", "Zoé"]

    def test_groups_default_name(self, api, context):
        context.local_store.insert("groups", [{"id": 2, "name": None}, {"id": 1, "name": "Elite"}])

        assert [(g.id, g.name) for g in api.get_groups()] == [(1, "Elite"), (2, "Groupe 2")]

    def test_profile_iuf_removes_manual_duplicate(self, api):
        api.create_club_record_swimmer("Camille (manuel)", iuf="555")

        api.update_profile(UserProfile(user_id=3, display_name="Camille", ffn_iuf=" 555 "))

        assert api.get_club_record_swimmers() == []
        assert api.get_profile(user_id=3).ffn_iuf == "555"
        assert api.get_profile(display_name="Camille").user_id == 3

    def test_list_users_hides_inactive(self, api, athletes):
        assert {u.id for u in api.list_users(role="athlete")} == {3, 4}
        assert 5 not in [u.id for u in api.list_users()]
        assert 5 in [u.id for u in api.list_users(include_inactive=True)]

    def test_upcoming_birthdays(self, api, context):
        today = datetime.now(timezone.utc).date()
        context.local_store.insert("users", [
            {"id": 3, "display_name": "Camille", "role": "athlete", "is_active": True, "birthdate": today.replace(year=today.year - 20).isoformat()},
        ])

        birthdays = api.get_upcoming_birthdays(days=7)

        assert [(b.display_name, b.days_until) for b in birthdays] == [("Camille", 0)]


class TestAdministration:

    def test_create_coach(self, functions_api, function_calls):
        result = functions_api.create_coach("Anne", email="anne@club.test")

        assert result["status"] == "created"
        assert result["initial_password"] == "Temp-1234"
        assert function_calls[0][1]["action"] == "create_coach"

    def test_unknown_role(self, functions_api):
        with pytest.raises(ValueError):
            functions_api.update_user_role(3, "president")

    def test_disable_without_functions(self, api):
        with pytest.raises(BackendUnavailableError):
            api.disable_user(3)
