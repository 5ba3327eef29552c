"""
TrainingApi: the single entry point to the data layer.

Every operation dispatches to a service; the facade holds no logic of its
own. Each call re-evaluates which backend answers, so the same object keeps
working when connectivity comes and goes.

    api = TrainingApi.from_settings(get_settings())
    api.sync_session(SessionDraft(athlete_name="Camille", date="2024-05-02"))
    api.close()
"""

import logging
from typing import Any, Optional

from .config.settings import Settings
from .core.services import (
    AppService,
    AssignmentService,
    ExerciseService,
    NotificationService,
    RecordService,
    SessionService,
    StrengthRunService,
    StrengthSessionService,
    SwimCatalogService,
    SwimLogService,
    TimesheetService,
    UserService,
)
from .infrastructure.functions.client import FunctionsClient
from .infrastructure.store.factory import DataContext

logger = logging.getLogger(__name__)


class TrainingApi:
    """
    Facade over the services.

    Services are also reachable directly (api.runs, api.records, ...) for
    callers that prefer grouped access.
    """

    def __init__(self, context: DataContext, functions: Optional[FunctionsClient] = None) -> None:
        self.context = context
        self.functions = functions

        self.sessions = SessionService(context, functions)
        self.exercises = ExerciseService(context, functions)
        self.strength_sessions = StrengthSessionService(context, functions)
        self.runs = StrengthRunService(context, functions)
        self.swim_catalog = SwimCatalogService(context, functions)
        self.assignments = AssignmentService(context, functions)
        self.notifications = NotificationService(context, functions)
        self.records = RecordService(context, functions)
        self.timesheet = TimesheetService(context, functions)
        self.users = UserService(context, functions)
        self.swim_logs = SwimLogService(context, functions)
        self.app = AppService(context, functions)

    @classmethod
    def from_settings(cls, settings: Settings) -> "TrainingApi":
        context = DataContext.from_settings(settings)
        functions = FunctionsClient.from_settings(settings, context.reporter)
        logger.info(
            "Training API ready",
            extra={"mode": context.mode, "functions": functions is not None}
        )
        return cls(context, functions)

    def close(self) -> None:
        if self.functions is not None:
            self.functions.close()
        self.context.close()

    # -- Capabilities, settings, local cache --------------------------------

    def get_capabilities(self):
        return self.app.get_capabilities()

    def get_app_settings(self, key: str):
        return self.app.get_app_settings(key)

    def update_app_settings(self, key: str, value: Any):
        return self.app.update_app_settings(key, value)

    def seed_demo_data(self):
        return self.app.seed_demo_data()

    def reset_cache(self):
        return self.app.reset_cache()

    # -- Swim sessions ------------------------------------------------------

    def get_sessions(self, athlete_name=None, athlete_id=None):
        return self.sessions.get_sessions(athlete_name, athlete_id)

    def get_all_sessions(self):
        return self.sessions.get_all_sessions()

    def sync_session(self, draft):
        return self.sessions.sync_session(draft)

    def update_session(self, session_id, draft):
        return self.sessions.update_session(session_id, draft)

    def delete_session(self, session_id):
        return self.sessions.delete_session(session_id)

    # -- Exercises and strength templates -----------------------------------

    def get_exercises(self):
        return self.exercises.get_exercises()

    def create_exercise(self, exercise):
        return self.exercises.create_exercise(exercise)

    def update_exercise(self, exercise):
        return self.exercises.update_exercise(exercise)

    def delete_exercise(self, exercise_id):
        return self.exercises.delete_exercise(exercise_id)

    def get_strength_sessions(self):
        return self.strength_sessions.get_strength_sessions()

    def get_strength_session(self, session_id):
        return self.strength_sessions.get_strength_session(session_id)

    def create_strength_session(self, title, description="", cycle=None, items=None):
        return self.strength_sessions.create_strength_session(title, description, cycle, items)

    def update_strength_session(self, session_id, title, description="", cycle=None, items=None):
        return self.strength_sessions.update_strength_session(session_id, title, description, cycle, items)

    def persist_strength_session_order(self, template):
        return self.strength_sessions.persist_order(template)

    def delete_strength_session(self, session_id):
        return self.strength_sessions.delete_strength_session(session_id)

    def resolve_strength_items(self, session_id, cycle=None):
        return self.strength_sessions.resolve_items(session_id, cycle)

    # -- Strength runs, 1RM, history ----------------------------------------

    def start_strength_run(self, **kwargs):
        return self.runs.start_run(**kwargs)

    def get_strength_run(self, run_id):
        return self.runs.get_run(run_id)

    def log_strength_set(self, run_id, log, athlete_id=None, athlete_name=None):
        return self.runs.log_set(run_id, log, athlete_id, athlete_name)

    def update_strength_run(self, run_id, **changes):
        return self.runs.update_run(run_id, **changes)

    def delete_strength_run(self, run_id):
        return self.runs.delete_run(run_id)

    def save_strength_run(self, logs, **kwargs):
        return self.runs.save_run(logs, **kwargs)

    def get_strength_history(self, **filters):
        return self.runs.get_history(**filters)

    def get_strength_history_aggregate(self, **filters):
        return self.runs.get_history_aggregate(**filters)

    def get_1rm(self, athlete_id=None, athlete_name=None):
        return self.runs.one_rm.get_one_rm(athlete_id, athlete_name)

    def update_1rm(self, exercise_id, weight, athlete_id=None, athlete_name=None):
        return self.runs.one_rm.update_one_rm(exercise_id, weight, athlete_id, athlete_name)

    # -- Swim catalog -------------------------------------------------------

    def get_swim_catalog(self):
        return self.swim_catalog.get_swim_catalog()

    def save_swim_session(self, template):
        return self.swim_catalog.save_swim_session(template)

    def archive_swim_session(self, catalog_id, archived=True):
        return self.swim_catalog.archive_swim_session(catalog_id, archived)

    def move_swim_session(self, catalog_id, folder):
        return self.swim_catalog.move_swim_session(catalog_id, folder)

    def delete_swim_session(self, catalog_id):
        return self.swim_catalog.delete_swim_session(catalog_id)

    # -- Assignments and notifications --------------------------------------

    def get_assignments(self, athlete_name=None, athlete_id=None, assignment_type=None, status=None):
        return self.assignments.get_assignments(athlete_name, athlete_id, assignment_type, status)

    def get_assignments_for_coach(self):
        return self.assignments.get_assignments_for_coach()

    def create_assignment(self, draft):
        return self.assignments.create_assignment(draft)

    def create_group_assignments(self, draft, group_ids):
        return self.assignments.create_group_assignments(draft, group_ids)

    def delete_assignment(self, assignment_id):
        return self.assignments.delete_assignment(assignment_id)

    def send_notification(self, title, body=None, notification_type="message", targets=(), created_by=None):
        return self.notifications.send_notification(title, body, notification_type, targets, created_by)

    def list_notifications(self, **filters):
        return self.notifications.list_notifications(**filters)

    def get_notifications(self, athlete_name):
        return self.notifications.get_notifications(athlete_name)

    def mark_notification_read(self, target_id):
        return self.notifications.mark_read(target_id)

    def get_unread_notification_count(self, target_user_id=None, target_athlete_name=None):
        return self.notifications.unread_count(target_user_id, target_athlete_name)

    # -- Records ------------------------------------------------------------

    def get_hall_of_fame(self):
        return self.records.get_hall_of_fame()

    def get_swim_records(self, athlete_id=None, athlete_name=None):
        return self.records.get_swim_records(athlete_id, athlete_name)

    def upsert_swim_record(self, record):
        return self.records.upsert_swim_record(record)

    def get_club_records(self, **filters):
        return self.records.get_club_records(**filters)

    def get_club_record_swimmers(self):
        return self.records.get_club_record_swimmers()

    def create_club_record_swimmer(self, display_name, **fields):
        return self.records.create_club_record_swimmer(display_name, **fields)

    def update_club_record_swimmer(self, swimmer_id, **changes):
        return self.records.update_club_record_swimmer(swimmer_id, **changes)

    def update_club_record_swimmer_for_user(self, user_id, **changes):
        return self.records.update_club_record_swimmer_for_user(user_id, **changes)

    def sync_club_record_swimmers_from_users(self):
        return self.records.sync_club_record_swimmers_from_users()

    def get_import_logs(self, swimmer_iuf=None, limit=None):
        return self.records.get_import_logs(swimmer_iuf, limit)

    def get_swimmer_performances(self, **filters):
        return self.records.get_swimmer_performances(**filters)

    def import_swimmer_performances(self, iuf, user_id=None):
        return self.records.import_swimmer_performances(iuf, user_id)

    def import_single_swimmer(self, swimmer_iuf, swimmer_name=None):
        return self.records.import_single_swimmer(swimmer_iuf, swimmer_name)

    def import_club_records(self):
        return self.records.import_club_records()

    def recalculate_club_records(self):
        return self.records.recalculate_club_records()

    def sync_ffn_swim_records(self, iuf, athlete_id=None, athlete_name=None):
        return self.records.sync_ffn_swim_records(iuf, athlete_id, athlete_name)

    # -- Timesheet ----------------------------------------------------------

    def list_timesheet_shifts(self, coach_id=None, date_from=None, date_to=None):
        return self.timesheet.list_shifts(coach_id, date_from, date_to)

    def create_timesheet_shift(self, shift):
        return self.timesheet.create_shift(shift)

    def update_timesheet_shift(self, shift_id, **changes):
        return self.timesheet.update_shift(shift_id, **changes)

    def delete_timesheet_shift(self, shift_id):
        return self.timesheet.delete_shift(shift_id)

    def list_timesheet_locations(self):
        return self.timesheet.list_locations()

    def create_timesheet_location(self, name):
        return self.timesheet.create_location(name)

    def delete_timesheet_location(self, location_id):
        return self.timesheet.delete_location(location_id)

    def list_timesheet_coaches(self):
        return self.timesheet.list_coaches()

    # -- Users --------------------------------------------------------------

    def get_profile(self, user_id=None, display_name=None):
        return self.users.get_profile(user_id, display_name)

    def update_profile(self, profile):
        return self.users.update_profile(profile)

    def get_athletes(self):
        return self.users.get_athletes()

    def get_groups(self):
        return self.users.get_groups()

    def get_upcoming_birthdays(self, days=30):
        return self.users.get_upcoming_birthdays(days)

    def list_users(self, role=None, include_inactive=False):
        return self.users.list_users(role, include_inactive)

    def create_coach(self, display_name, email=None, password=None):
        return self.users.create_coach(display_name, email, password)

    def update_user_role(self, user_id, role):
        return self.users.update_user_role(user_id, role)

    def disable_user(self, user_id):
        return self.users.disable_user(user_id)

    # -- Swim exercise logs -------------------------------------------------

    def get_swim_exercise_logs(self, session_id):
        return self.swim_logs.get_logs(session_id)

    def get_swim_exercise_logs_history(self, user_id, limit=50):
        return self.swim_logs.get_history(user_id, limit)

    def save_swim_exercise_logs(self, session_id, user_id, logs):
        return self.swim_logs.save_logs(session_id, user_id, logs)

    def update_swim_exercise_log(self, log_id, patch):
        return self.swim_logs.update_log(log_id, patch)

    def delete_swim_exercise_log(self, log_id):
        return self.swim_logs.delete_log(log_id)
