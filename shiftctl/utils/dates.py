"""Date and time helpers for schedules, shifts and timesheets.

Weeks run Monday to Sunday.
"""

import re
from dataclasses import dataclass, field
from datetime import date, datetime, time, timedelta, tzinfo
from typing import Dict, Iterable, List, Optional, Union

from ..models.shift import Shift

DAY_NAMES = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday", "Sunday"]
DAY_ABBREVIATIONS = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
MONTH_ABBREVIATIONS = ["Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec"]

_INTERVAL_RE = re.compile(
    r"^\s*(?:(?P<days>-?\d+)\s+days?\s*)?"
    r"(?:(?P<hours>-?\d+):(?P<minutes>\d{1,2})(?::(?P<seconds>\d{1,2}(?:\.\d+)?))?)?\s*$"
)

DateLike = Union[date, str]
TimeLike = Union[time, str]


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


def format_schedule_date(value: DateLike) -> str:
    """Format a date as e.g. ``Monday, Jan 15, 2024``."""
    d = _to_date(value)
    return f"{DAY_NAMES[d.weekday()]}, {MONTH_ABBREVIATIONS[d.month - 1]} {d.day}, {d.year}"


def format_schedule_time(value: TimeLike) -> str:
    """Format a time in 12-hour form, e.g. ``13:30:00`` -> ``1:30 PM``.

    Strings that do not parse are returned unchanged.
    """
    if isinstance(value, time):
        hours, minutes = value.hour, value.minute
    else:
        parts = value.split(":")
        try:
            hours, minutes = int(parts[0]), int(parts[1])
        except (IndexError, ValueError):
            return value

    period = "PM" if hours >= 12 else "AM"
    display_hours = hours % 12 or 12
    return f"{display_hours}:{minutes:02d} {period}"


def format_time_range(start: TimeLike, end: TimeLike) -> str:
    return f"{format_schedule_time(start)} - {format_schedule_time(end)}"


def get_day_name(value: DateLike) -> str:
    """Abbreviated day name, e.g. ``Mon``."""
    return DAY_ABBREVIATIONS[_to_date(value).weekday()]


def get_day_name_for_week_position(position: int) -> str:
    """Abbreviated day name for a Monday-first week position (0..6)."""
    if not 0 <= position <= 6:
        raise ValueError("Week position must be between 0 and 6")
    return DAY_ABBREVIATIONS[position]


def get_month_name(value: DateLike) -> str:
    return MONTH_ABBREVIATIONS[_to_date(value).month - 1]


def format_date_for_query(value: Union[date, datetime]) -> str:
    """Format a date as ``YYYY-MM-DD``."""
    return _to_date(value).isoformat()


def get_week_start(value: DateLike) -> date:
    """Monday of the week containing ``value``."""
    d = _to_date(value)
    return d - timedelta(days=d.weekday())


def get_week_end(value: DateLike) -> date:
    """Sunday of the week containing ``value``."""
    return get_week_start(value) + timedelta(days=6)


def format_week_range(value: DateLike) -> str:
    """Format the week containing ``value``, e.g. ``Mon, Apr 01 - Sun, Apr 07``."""
    start = get_week_start(value)
    end = get_week_end(value)
    return (
        f"Mon, {MONTH_ABBREVIATIONS[start.month - 1]} {start.day:02d} - "
        f"Sun, {MONTH_ABBREVIATIONS[end.month - 1]} {end.day:02d}"
    )


def format_duration(delta: timedelta) -> str:
    """Format a duration as ``HH:MM:SS``; hours may exceed 24."""
    total = max(int(delta.total_seconds()), 0)
    hours, remainder = divmod(total, 3600)
    minutes, seconds = divmod(remainder, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_hours_minutes(delta: timedelta) -> str:
    """Format a duration as ``HH:MM``."""
    total_minutes = max(int(delta.total_seconds()), 0) // 60
    hours, minutes = divmod(total_minutes, 60)
    return f"{hours:02d}:{minutes:02d}"


def parse_interval(value: Optional[str]) -> Optional[timedelta]:
    """Parse a database interval such as ``08:30:00`` or ``1 day 02:00:00``.

    Returns None for empty or unparseable values.
    """
    if not value:
        return None
    match = _INTERVAL_RE.match(value)
    if not match or not (match.group("days") or match.group("hours")):
        return None

    days = int(match.group("days") or 0)
    hours = int(match.group("hours") or 0)
    minutes = int(match.group("minutes") or 0)
    seconds = float(match.group("seconds") or 0)
    return timedelta(days=days, hours=hours, minutes=minutes, seconds=seconds)


@dataclass
class WeekGroup:
    """Shifts that started in the same Monday-to-Sunday week."""

    week_start: date
    shifts: List[Shift] = field(default_factory=list)

    @property
    def week_end(self) -> date:
        return self.week_start + timedelta(days=6)

    @property
    def week_range(self) -> str:
        return format_week_range(self.week_start)

    @property
    def total(self) -> timedelta:
        """Worked time of completed shifts; active shifts count zero."""
        return sum((s.duration or timedelta(0) for s in self.shifts), timedelta(0))

    @property
    def total_hours(self) -> str:
        return format_hours_minutes(self.total)


def group_shifts_by_week(shifts: Iterable[Shift], tz: Optional[tzinfo] = None) -> List[WeekGroup]:
    """Group shifts by the week of their local clock-in date.

    Args:
        shifts: Shifts to group
        tz: Timezone deciding which local date a shift starts on
            (defaults to the system local timezone)

    Returns:
        Week groups, newest week first; shifts within a week newest first
    """
    groups: Dict[date, WeekGroup] = {}
    for shift in shifts:
        local_start = shift.clock_in_time.astimezone(tz)
        week_start = get_week_start(local_start.date())
        groups.setdefault(week_start, WeekGroup(week_start=week_start)).shifts.append(shift)

    for group in groups.values():
        group.shifts.sort(key=lambda s: s.clock_in_time, reverse=True)

    return sorted(groups.values(), key=lambda g: g.week_start, reverse=True)
