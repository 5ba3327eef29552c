"""
Services: one class per area of the data layer, each working through the
CollectionStore chosen by the DataContext for every call.
"""

from .app import AppService
from .assignments import AssignmentService
from .catalog import SwimCatalogService
from .notifications import NotificationService
from .records import RecordService
from .runs import OneRmService, StrengthRunService
from .sessions import SessionService
from .strength import ExerciseService, StrengthSessionService
from .swim_logs import SwimLogService
from .timesheet import TimesheetService
from .users import UserService

__all__ = [
    "AppService",
    "AssignmentService",
    "ExerciseService",
    "NotificationService",
    "OneRmService",
    "RecordService",
    "SessionService",
    "StrengthRunService",
    "StrengthSessionService",
    "SwimCatalogService",
    "SwimLogService",
    "TimesheetService",
    "UserService",
]
