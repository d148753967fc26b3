"""Worker sign-in, shift clocking and timesheet queries.

Write paths (clock in and clock out) retry on network failures and on
database connection exceptions; reads retry on network failures only.
"""

import re
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Any, Callable, Dict, Iterable, List, Optional, Union
from zoneinfo import ZoneInfo

from ..events import AuthEvent
from ..exceptions import (
    APIError,
    AuthenticationError,
    BadRequestError,
    NotFoundError,
    ShiftCtlError,
    UnauthorizedError,
    ValidationError,
)
from ..models import Location, Shift, Timesheet, Worker, WorkerSchedule, is_valid_uuid
from ..models.schedule import ScheduleStatus
from ..query import Query
from ..utils.dates import (
    WeekGroup,
    format_date_for_query,
    format_duration,
    get_week_end,
    get_week_start,
    group_shifts_by_week,
)
from ..utils.exceptions import is_connection_failure
from .base import BaseService

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
UUID_SUFFIX_RE = re.compile(r"^[0-9a-f]{4}$")
MIN_PASSWORD_LENGTH = 6
MIN_NAME_LENGTH = 2

WORKER_COLUMNS = "id,name,email"
MISSING_COLUMN_CODE = "42703"
CLOCK_IN_LOCATION_COLUMNS = ("clock_in_lat", "clock_in_lng")
CLOCK_OUT_OPTIONAL_COLUMNS = ("clock_out_lat", "clock_out_lng", "shift_duration")

DateBound = Union[date, datetime, str, None]


def _is_missing_column(error: APIError, columns: Iterable[str]) -> bool:
    if error.code == MISSING_COLUMN_CODE:
        return True
    return any(column in (error.message or "") for column in columns)


def _lower_bound(value: DateBound) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        value = format_date_for_query(value)
    return f"{value}T00:00:00"


def _upper_bound(value: DateBound) -> Optional[str]:
    if value is None:
        return None
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, date):
        value = format_date_for_query(value)
    return f"{value}T23:59:59"


def validate_email(email: str) -> str:
    """Normalize and validate an email address."""
    email = (email or "").strip().lower()
    if not email:
        raise ValidationError("Please enter an email address")
    if not EMAIL_RE.match(email):
        raise ValidationError("Please enter a valid email address")
    return email


class WorkforceService(BaseService):
    """Facade over the worker, shift, timesheet and schedule tables."""

    def __init__(self, *args: Any, clock: Optional[Callable[[], datetime]] = None, **kwargs: Any) -> None:
        super().__init__(*args, **kwargs)
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    # Identity

    async def login(self, email: str, password: str) -> Worker:
        """Sign in with email and password.

        The worker row is looked up first so an unknown email is reported
        before any credentials are sent.

        Raises:
            ValidationError: If the email or password is malformed
            AuthenticationError: If the worker is unknown or sign-in fails
        """
        email = validate_email(email)
        password = (password or "").strip()
        if len(password) < MIN_PASSWORD_LENGTH:
            raise ValidationError(f"Password must be at least {MIN_PASSWORD_LENGTH} characters long")

        query = Query("workers").select(WORKER_COLUMNS).eq("email", email).single()
        try:
            row = await self._call(self.client.select, query)
        except NotFoundError as e:
            raise AuthenticationError(
                "Worker account not found. Please ensure a worker exists with this email."
            ) from e
        worker = Worker(**row)

        try:
            await self._call(self.client.sign_in_with_password, email, password)
        except (BadRequestError, UnauthorizedError) as e:
            if "Invalid login credentials" in e.message:
                raise AuthenticationError("Invalid email or password. Please try again.") from e
            if "Email not confirmed" in e.message:
                raise AuthenticationError("Please verify your email before logging in.") from e
            raise AuthenticationError(e.message) from e

        self.store.save_worker(worker)
        self.events.emit(AuthEvent.LOGGED_IN, worker=worker)
        return worker

    async def identify_worker(self, email: str, full_name: str, uuid_last4: str) -> Worker:
        """Identify a worker by email, exact name and the last four digits of their id.

        No auth session is created; table access uses the anonymous key.
        """
        name = (full_name or "").strip()
        suffix = (uuid_last4 or "").strip().lower()
        if not (email or "").strip() or not name or not suffix:
            raise ValidationError("Please enter email, full name, and UUID last 4 digits")
        if len(suffix) != 4:
            raise ValidationError("UUID must be exactly 4 characters")
        if not UUID_SUFFIX_RE.match(suffix):
            raise ValidationError("UUID must be 4 hexadecimal characters (0-9, a-f)")
        email = validate_email(email)
        if len(name) < MIN_NAME_LENGTH:
            raise ValidationError(f"Full name must be at least {MIN_NAME_LENGTH} characters long")

        query = (
            Query("workers")
            .select(WORKER_COLUMNS)
            .ilike("email", email)
            .eq("name", name)
            .single()
        )
        try:
            row = await self._call(self.client.select, query)
        except NotFoundError as e:
            raise AuthenticationError(
                "Worker not found. Please check your email and name match the database."
            ) from e

        worker = Worker(**row)
        if worker.id_suffix != suffix:
            raise AuthenticationError(
                "UUID verification failed. Please check the last 4 digits of your UUID."
            )

        self.store.save_worker(worker)
        self.events.emit(AuthEvent.LOGGED_IN, worker=worker)
        return worker

    async def logout(self) -> None:
        """Sign out remotely (best effort) and clear all local state."""
        try:
            await self._call(self.client.sign_out, retry=self._executor(max_retries=0))
        except ShiftCtlError as e:
            self._warn(f"Remote sign-out failed: {e}")
        self.store.current_shift_id = None
        self.store.clear_worker()
        self.events.emit(AuthEvent.LOGGED_OUT)

    def current_worker(self) -> Optional[Worker]:
        """Stored worker identity; an invalid stored id is cleared."""
        return self.store.load_worker()

    async def verify_worker(self, worker_id: Optional[str] = None) -> Worker:
        """Confirm the worker still exists in the backend.

        Looks the stored worker up by email (falling back to id). When the
        backend returns a different id for the same email, the stored id
        is updated.

        Raises:
            ValidationError: If ``worker_id`` is not a UUID
            NotFoundError: If the worker no longer exists; stored credentials
                are cleared
        """
        if worker_id is not None:
            if not is_valid_uuid(worker_id):
                raise ValidationError("Worker ID must be a valid UUID")
            stored = None
            query = Query("workers").select(WORKER_COLUMNS).eq("id", worker_id.lower())
        else:
            stored = self.require_worker()
            query = Query("workers").select(WORKER_COLUMNS)
            if stored.email:
                query.eq("email", stored.email)
            else:
                query.eq("id", stored.id)

        try:
            row = await self._call(
                self.client.select,
                query.single(),
                retry=self._executor(max_retries=2, initial_delay=500),
            )
        except NotFoundError as e:
            self.store.clear_worker()
            raise NotFoundError(
                "Worker account not found. Please log in again.",
                status_code=e.status_code,
                code=e.code,
            ) from e

        worker = Worker(**row)
        if stored is not None and worker.id != stored.id:
            self._debug("Worker ID mismatch, updating stored ID")
            self.store.save_worker(worker)
        return worker

    # Shifts

    async def clock_in(self, location: Optional[Location] = None) -> Shift:
        """Open a new shift for the signed-in worker.

        Raises:
            ValidationError: If a shift is already active
        """
        worker = await self.verify_worker()

        active = await self.restore_active_shift()
        if active is not None:
            raise ValidationError(f"A shift is already active (started {active.clock_in_time.isoformat()}).")

        base_payload: Dict[str, Any] = {
            "worker_id": worker.id,
            "clock_in_time": self._clock().isoformat(),
        }
        payload = dict(base_payload)
        if location is not None:
            payload["clock_in_lat"] = location.lat
            payload["clock_in_lng"] = location.lng

        def insert_shift() -> Any:
            try:
                return self.client.insert("shifts", payload, single=True)
            except APIError as e:
                if location is None or not _is_missing_column(e, CLOCK_IN_LOCATION_COLUMNS):
                    raise
                self._debug("Location columns not found, retrying without location")
                return self.client.insert("shifts", base_payload, single=True)

        row = await self._call(
            insert_shift,
            retry=self._executor(max_retries=3, initial_delay=1000, should_retry=is_connection_failure),
        )
        shift = Shift(**row)
        self.store.current_shift_id = shift.id
        return shift

    async def clock_out(self, notes: str, location: Optional[Location] = None) -> Shift:
        """Close the active shift, then sign the worker out.

        Raises:
            ValidationError: If notes are missing or no shift is active
        """
        notes = (notes or "").strip()
        if not notes:
            raise ValidationError("Shift notes are required. Please add shift notes before clocking out.")

        shift = await self.restore_active_shift()
        if shift is None:
            raise ValidationError("No active shift found.")

        now = self._clock()
        duration = format_duration(now - shift.clock_in_time)

        values: Dict[str, Any] = {
            "clock_out_time": now.isoformat(),
            "shift_duration": duration,
            "shift_notes": notes,
        }
        if location is not None:
            values["clock_out_lat"] = location.lat
            values["clock_out_lng"] = location.lng

        def update_shift() -> Any:
            query = Query("shifts").eq("id", shift.id)
            try:
                return self.client.update(query, values, single=True)
            except APIError as e:
                if not _is_missing_column(e, CLOCK_OUT_OPTIONAL_COLUMNS):
                    raise
                self._debug("Some columns not found, retrying with minimal data")
                minimal: Dict[str, Any] = {"clock_out_time": values["clock_out_time"], "shift_notes": notes}
                if "shift_duration" not in (e.message or ""):
                    minimal["shift_duration"] = duration
                return self.client.update(query, minimal, single=True)

        row = await self._call(
            update_shift,
            retry=self._executor(max_retries=3, initial_delay=1000, should_retry=is_connection_failure),
        )

        try:
            await self._call(self.client.sign_out, retry=self._executor(max_retries=0))
        except ShiftCtlError as e:
            self._warn(f"Remote sign-out failed: {e}")

        self.store.current_shift_id = None
        self.store.clear_worker()
        self.events.emit(AuthEvent.LOGGED_OUT)

        if row:
            return Shift(**row)
        return shift.model_copy(update={
            "clock_out_time": now,
            "shift_duration": duration,
            "shift_notes": notes,
        })

    async def restore_active_shift(self) -> Optional[Shift]:
        """Get the stored open shift, clearing the stored id when it is stale.

        A malformed id or a shift that is completed or no longer exists
        clears the stored id and returns None. Any other failure, such as a
        network error left after retrying, is raised and the id is kept.
        """
        shift_id = self.store.current_shift_id
        if not shift_id:
            return None
        if not is_valid_uuid(shift_id):
            self.store.current_shift_id = None
            return None

        query = Query("shifts").eq("id", shift_id).single()
        try:
            row = await self._call(
                self.client.select,
                query,
                retry=self._executor(max_retries=2, initial_delay=500),
            )
        except NotFoundError:
            self._debug(f"Stored shift {shift_id} no longer exists")
            self.store.current_shift_id = None
            return None

        shift = Shift(**row)
        if not shift.is_active:
            self.store.current_shift_id = None
            return None
        return shift

    # Listings

    def _clock_query(
        self,
        table: str,
        worker_id: Optional[str],
        date_from: DateBound,
        date_to: DateBound,
        completed_only: bool,
    ) -> Query:
        query = Query(table).select("*").order("clock_in_time", ascending=False)
        if worker_id:
            query.eq("worker_id", worker_id)
        if completed_only:
            query.not_("clock_out_time", "is", None)
        if date_from is not None:
            query.gte("clock_in_time", _lower_bound(date_from))
        if date_to is not None:
            query.lte("clock_in_time", _upper_bound(date_to))
        return query

    async def list_shifts(
        self,
        worker_id: Optional[str] = None,
        date_from: DateBound = None,
        date_to: DateBound = None,
        completed_only: bool = False,
    ) -> List[Shift]:
        """List shifts, newest first."""
        query = self._clock_query("shifts", worker_id, date_from, date_to, completed_only)
        rows = await self._call(self.client.select, query)
        return [Shift(**row) for row in rows or []]

    async def list_timesheets(
        self,
        worker_id: Optional[str] = None,
        date_from: DateBound = None,
        date_to: DateBound = None,
        completed_only: bool = False,
    ) -> List[Timesheet]:
        """List admin-entered timesheets, newest first."""
        query = self._clock_query("timesheets", worker_id, date_from, date_to, completed_only)
        rows = await self._call(self.client.select, query)
        return [Timesheet(**row) for row in rows or []]

    async def list_schedules(
        self,
        date_from: Optional[date] = None,
        date_to: Optional[date] = None,
        status: Optional[Union[ScheduleStatus, str]] = None,
        worker_id: Optional[str] = None,
    ) -> List[WorkerSchedule]:
        """List scheduled shifts ordered by date, then start time."""
        query = (
            Query("worker_schedules")
            .select("*")
            .order("scheduled_date")
            .order("start_time")
        )
        if worker_id:
            query.eq("worker_id", worker_id)
        if date_from is not None:
            query.gte("scheduled_date", format_date_for_query(date_from))
        if date_to is not None:
            query.lte("scheduled_date", format_date_for_query(date_to))
        if status is not None:
            value = status.value if isinstance(status, ScheduleStatus) else str(status).upper()
            if value != "ALL":
                try:
                    query.eq("status", ScheduleStatus(value).value)
                except ValueError:
                    raise ValidationError(f"Unknown schedule status: {status}")

        rows = await self._call(self.client.select, query)
        return [WorkerSchedule(**row) for row in rows or []]

    def _timezone(self, tz: Optional[tzinfo]) -> Optional[tzinfo]:
        if tz is not None:
            return tz
        profile = self.profile
        if profile and profile.timezone:
            return ZoneInfo(profile.timezone)
        return None

    async def weekly_timesheet(
        self,
        week_of: Optional[date] = None,
        tz: Optional[tzinfo] = None,
    ) -> WeekGroup:
        """Completed and active shifts of the signed-in worker for one week."""
        worker = self.require_worker()
        tz = self._timezone(tz)
        week_of = week_of or self._clock().astimezone(tz).date()
        start = get_week_start(week_of)
        end = get_week_end(week_of)

        local_tz = tz or datetime.now().astimezone().tzinfo
        shifts = await self.list_shifts(
            worker_id=worker.id,
            date_from=datetime.combine(start, time.min, tzinfo=local_tz),
            date_to=datetime.combine(end + timedelta(days=1), time.min, tzinfo=local_tz) - timedelta(microseconds=1),
        )

        for group in group_shifts_by_week(shifts, tz):
            if group.week_start == start:
                return group
        return WeekGroup(week_start=start)
