"""
Assignments and notifications through TrainingApi, in local mode.

The club here has two groups; user 3 (Camille) is in group 1 and
user 4 (Léo) in group 2.
"""

import pytest

from suivi_natation.core.errors import NotFoundError, PartialAssignmentError
from suivi_natation.core.training.models import (
    AssignmentDraft,
    AssignmentStatus,
    Cycle,
    NotificationTarget,
    NotificationType,
    SessionType,
    SwimSessionItem,
    SwimSessionTemplate,
)
from suivi_natation.infrastructure.store.base import by_id


@pytest.fixture
def club(context):
    store = context.local_store
    store.insert("users", [
        {"id": 3, "display_name": "Camille", "role": "athlete", "is_active": True},
        {"id": 4, "display_name": "Léo", "role": "athlete", "is_active": True},
        {"id": 9, "display_name": "Coach Anne", "role": "coach", "is_active": True},
    ])
    store.insert("groups", [{"id": 1, "name": "Elite"}, {"id": 2, "name": "Espoirs"}])
    store.insert("group_members", [
        {"id": 11, "group_id": 1, "user_id": 3},
        {"id": 12, "group_id": 2, "user_id": 4},
    ])


@pytest.fixture
def swim_session(api) -> SwimSessionTemplate:
    return api.save_swim_session(SwimSessionTemplate(
        id=0,
        name="VMA 100",
        description="Vitesse",
        items=[
            SwimSessionItem(order_index=0, label="Échauffement", distance=400),
            SwimSessionItem(order_index=1, label="10x100", distance=1000),
        ],
    ))


def swim_draft(session_id: int, **targets) -> AssignmentDraft:
    return AssignmentDraft(
        session_id=session_id,
        session_type=SessionType.SWIM,
        scheduled_date="2024-03-01",
        **targets,
    )


# ---------------------------------------------------------------------------
# Assignments
# ---------------------------------------------------------------------------

class TestCreateAssignment:
    """Single assignments and their notification."""

    def test_assign_by_name_notifies_the_athlete(self, api, swim_session):
        assignment = api.create_assignment(swim_draft(swim_session.id, target_athlete="Camille"))

        assert assignment.title == "VMA 100"
        assert assignment.status is AssignmentStatus.ASSIGNED
        notifications = api.get_notifications("Camille")
        assert len(notifications) == 1
        assert notifications[0].title == "Nouvelle séance assignée"
        assert notifications[0].message == "Séance VMA 100 prévue le 2024-03-01."
        assert notifications[0].type is NotificationType.ASSIGNMENT
        assert notifications[0].related_id == assignment.id

    def test_missing_target(self, api, swim_session):
        with pytest.raises(ValueError):
            api.create_assignment(swim_draft(swim_session.id))

    def test_missing_source_session(self, api):
        with pytest.raises(NotFoundError):
            api.create_assignment(swim_draft(404, target_athlete="Camille"))

    def test_user_target_wins_over_group(self, api, club, swim_session):
        assignment = api.create_assignment(swim_draft(swim_session.id, target_user_id=3, target_group_id=2))

        assert assignment.target_user_id == 3
        assert assignment.target_group_id is None

    def test_date_defaults_to_today(self, api, swim_session):
        draft = swim_draft(swim_session.id, target_athlete="Camille")
        draft.scheduled_date = None

        assert api.create_assignment(draft).assigned_date != ""


class TestGroupAssignments:
    """One assignment per group, each reaching the group's members."""

    def test_two_groups_two_assignments(self, api, club, swim_session):
        result = api.create_group_assignments(swim_draft(swim_session.id), [1, 2])

        assert sorted(result.assignment_ids) == [1, 2]
        assert len(set(result.assignment_ids.values())) == 2

    def test_one_notification_per_group(self, api, context, club, swim_session):
        api.create_group_assignments(swim_draft(swim_session.id), [1, 2])

        targets = context.local_store.select("notification_targets")

        assert len(context.local_store.select("notifications")) == 2
        assert sorted(row["target_group_id"] for row in targets) == [1, 2]
        assert all(row.get("target_user_id") is None for row in targets)

    def test_repeated_group_is_assigned_once(self, api, context, club, swim_session):
        result = api.create_group_assignments(swim_draft(swim_session.id), [1, 1, 2])

        assert sorted(result.assignment_ids) == [1, 2]
        assert len(context.local_store.select("session_assignments")) == 2

    def test_members_see_their_group_assignment(self, api, club, swim_session):
        result = api.create_group_assignments(swim_draft(swim_session.id), [1, 2])

        camille = api.get_assignments(athlete_id=3)

        assert [assignment.id for assignment in camille] == [result.assignment_ids[1]]
        assert camille[0].title == "VMA 100"
        assert [item.label for item in camille[0].items] == ["Échauffement", "10x100"]
        assert api.list_notifications(target_user_id=3).pagination.total == 1

    def test_every_group_failing(self, api, club):
        with pytest.raises(PartialAssignmentError) as exc_info:
            api.create_group_assignments(swim_draft(404), [1, 2])

        assert exc_info.value.succeeded == {}
        assert sorted(exc_info.value.failed) == [1, 2]

    def test_one_group_failing_keeps_the_other(self, api, context, club, swim_session, refuse_group_assignment):
        refuse_group_assignment(2)

        with pytest.raises(PartialAssignmentError) as exc_info:
            api.create_group_assignments(swim_draft(swim_session.id), [1, 2])

        assert list(exc_info.value.succeeded) == [1]
        assert list(exc_info.value.failed) == [2]
        rows = context.local_store.select("session_assignments")
        assert [row["target_group_id"] for row in rows] == [1]
        assert len(context.local_store.select("notifications")) == 1


class TestReadAssignments:

    def test_completed_are_hidden_by_default(self, api, context, swim_session):
        assignment = api.create_assignment(swim_draft(swim_session.id, target_athlete="Camille"))
        context.local_store.update("session_assignments", {"status": "completed"}, by_id(assignment.id))

        assert api.get_assignments(athlete_name="Camille") == []
        assert len(api.get_assignments(athlete_name="Camille", status="completed")) == 1

    def test_strength_assignment_carries_template(self, api):
        template = api.create_strength_session("Full Body", cycle="force", items=[{"exercise_id": 1, "sets": 3}])
        api.create_assignment(AssignmentDraft(
            session_id=template.id,
            session_type=SessionType.STRENGTH,
            scheduled_date="2024-03-02",
            target_athlete="Camille",
        ))

        assignments = api.get_assignments(athlete_name="Camille", assignment_type="strength")

        assert assignments[0].title == "Full Body"
        assert assignments[0].cycle is Cycle.FORCE
        assert len(assignments[0].items) == 1

    def test_coach_sees_everything_latest_first(self, api, swim_session):
        api.create_assignment(swim_draft(swim_session.id, target_athlete="Camille"))
        later = swim_draft(swim_session.id, target_athlete="Léo")
        later.scheduled_date = "2024-04-01"
        api.create_assignment(later)

        dates = [assignment.assigned_date for assignment in api.get_assignments_for_coach()]

        assert dates == ["2024-04-01", "2024-03-01"]

    def test_delete_keeps_the_notification(self, api, swim_session):
        assignment = api.create_assignment(swim_draft(swim_session.id, target_athlete="Camille"))

        api.delete_assignment(assignment.id)

        assert api.get_assignments(athlete_name="Camille") == []
        assert len(api.get_notifications("Camille")) == 1


# ---------------------------------------------------------------------------
# Notifications
# ---------------------------------------------------------------------------

class TestNotifications:
    """Delivery rows, read state and filters."""

    def test_group_message_reaches_members(self, api, club):
        api.send_notification("Entraînement annulé", "Piscine fermée", targets=[NotificationTarget(target_group_id=1)], created_by=9)

        camille = api.list_notifications(target_user_id=3)
        leo = api.list_notifications(target_user_id=4)

        assert [n.title for n in camille.notifications] == ["Entraînement annulé"]
        assert camille.notifications[0].sender == "Coach"
        assert leo.notifications == []

    def test_mark_read_and_unread_count(self, api, club):
        api.send_notification("A", targets=[NotificationTarget(target_user_id=3)])
        api.send_notification("B", targets=[NotificationTarget(target_user_id=3)])
        first = api.list_notifications(target_user_id=3).notifications[0]

        api.mark_notification_read(first.id)

        assert api.get_unread_notification_count(target_user_id=3) == 1
        read = api.list_notifications(target_user_id=3, status="read").notifications
        assert [n.id for n in read] == [first.id]
        assert read[0].read is True

    def test_mark_read_unknown_target(self, api):
        with pytest.raises(NotFoundError):
            api.mark_notification_read(123)
        with pytest.raises(ValueError):
            api.mark_notification_read(None)

    def test_broadcast_reaches_every_name(self, api, context):
        notification_id = api.send_notification("Bienvenue")
        context.local_store.insert("notification_targets", [
            {"notification_id": notification_id, "target_athlete": "All", "read_at": None},
        ])

        assert [n.title for n in api.get_notifications("Camille")] == ["Bienvenue"]

    def test_type_filter(self, api, club):
        api.send_notification("Msg", targets=[NotificationTarget(target_user_id=3)])
        api.send_notification("Anniv", notification_type="birthday", targets=[NotificationTarget(target_user_id=3)])

        page = api.list_notifications(target_user_id=3, notification_type="birthday")

        assert [n.title for n in page.notifications] == ["Anniv"]

    def test_no_recipient_is_an_empty_page(self, api):
        page = api.list_notifications()

        assert page.notifications == []
        assert page.pagination.total == 0
