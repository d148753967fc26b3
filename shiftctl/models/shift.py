"""Shift and timesheet models."""

from datetime import datetime, timedelta, timezone
from typing import Optional

from pydantic import BaseModel, Field, field_validator


class Location(BaseModel):
    """A latitude/longitude pair recorded at clock in or clock out."""

    lat: float = Field(..., ge=-90, le=90)
    lng: float = Field(..., ge=-180, le=180)


class Shift(BaseModel):
    """Worker shift from the ``shifts`` table."""

    id: str
    worker_id: Optional[str] = None
    clock_in_time: datetime
    clock_out_time: Optional[datetime] = None
    clock_in_lat: Optional[float] = None
    clock_in_lng: Optional[float] = None
    clock_out_lat: Optional[float] = None
    clock_out_lng: Optional[float] = None
    shift_duration: Optional[str] = None
    shift_notes: Optional[str] = None
    created_at: Optional[datetime] = None

    @field_validator("clock_in_time", "clock_out_time", "created_at")
    @classmethod
    def assume_utc(cls, v: Optional[datetime]) -> Optional[datetime]:
        """Treat naive timestamps from the backend as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v

    @property
    def is_active(self) -> bool:
        return self.clock_out_time is None

    @property
    def duration(self) -> Optional[timedelta]:
        """Worked time, or None while the shift is still active."""
        if self.clock_out_time is None:
            return None
        return max(self.clock_out_time - self.clock_in_time, timedelta(0))

    def elapsed(self, now: Optional[datetime] = None) -> timedelta:
        """Time since clock in (or the full duration once clocked out)."""
        end = self.clock_out_time or now or datetime.now(timezone.utc)
        return max(end - self.clock_in_time, timedelta(0))


class Timesheet(Shift):
    """Admin-entered timesheet from the ``timesheets`` table."""

    created_by: Optional[str] = None
    updated_at: Optional[datetime] = None
