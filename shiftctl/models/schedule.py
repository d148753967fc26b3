"""Worker schedule model.

Status values:
    BOOKED: future shift, not started yet
    STARTED: currently in progress (clocked in)
    COMPLETED: shift finished (clocked out)
"""

from datetime import date, datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel


class ScheduleStatus(str, Enum):
    """Lifecycle state of a scheduled shift."""

    BOOKED = "BOOKED"
    STARTED = "STARTED"
    COMPLETED = "COMPLETED"


class WorkerSchedule(BaseModel):
    """Scheduled shift from the ``worker_schedules`` table."""

    id: str
    worker_id: str
    scheduled_date: date
    start_time: time
    end_time: time
    location_name: Optional[str] = None
    location_address: Optional[str] = None
    notes: Optional[str] = None
    status: ScheduleStatus = ScheduleStatus.BOOKED
    actual_start_time: Optional[datetime] = None
    actual_end_time: Optional[datetime] = None
    created_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None
