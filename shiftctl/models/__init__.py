"""Data models for the shiftctl workforce client.

This package contains Pydantic models for rows of the backend's
``workers``, ``shifts``, ``timesheets``, ``worker_schedules`` and
``worker_documents`` tables.
"""

from .worker import Worker, is_valid_uuid
from .shift import Location, Shift, Timesheet
from .schedule import ScheduleStatus, WorkerSchedule
from .document import WorkerDocument

__all__ = [
    "Worker",
    "is_valid_uuid",
    "Location",
    "Shift",
    "Timesheet",
    "ScheduleStatus",
    "WorkerSchedule",
    "WorkerDocument",
]
