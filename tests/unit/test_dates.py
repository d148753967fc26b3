"""Unit tests for utils/dates.py module.

Tests schedule formatting, Monday-first week helpers, duration formatting
and interval parsing, and grouping shifts into weeks.
"""

import pytest
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo

from shiftctl.models import Shift
from shiftctl.utils.dates import (
    WeekGroup,
    format_date_for_query,
    format_duration,
    format_hours_minutes,
    format_schedule_date,
    format_schedule_time,
    format_time_range,
    format_week_range,
    get_day_name,
    get_day_name_for_week_position,
    get_month_name,
    get_week_end,
    get_week_start,
    group_shifts_by_week,
    parse_interval,
)


def make_shift(shift_id, clock_in, clock_out=None):
    return Shift(id=shift_id, worker_id="w", clock_in_time=clock_in, clock_out_time=clock_out)


class TestScheduleFormatting:
    """Test cases for schedule date and time formatting."""

    def test_format_schedule_date(self):
        """Test the long date format."""
        assert format_schedule_date(date(2024, 1, 15)) == "Monday, Jan 15, 2024"
        assert format_schedule_date("2024-03-03") == "Sunday, Mar 3, 2024"

    @pytest.mark.parametrize("value,expected", [
        ("13:30:00", "1:30 PM"),
        ("09:05", "9:05 AM"),
        ("00:15:00", "12:15 AM"),
        ("12:00:00", "12:00 PM"),
        (time(23, 59), "11:59 PM"),
    ])
    def test_format_schedule_time(self, value, expected):
        """Test 12-hour time formatting."""
        assert format_schedule_time(value) == expected

    def test_format_schedule_time_unparseable(self):
        """Test unparseable times are returned unchanged."""
        assert format_schedule_time("soon") == "soon"

    def test_format_time_range(self):
        """Test time ranges."""
        assert format_time_range(time(8, 0), time(16, 30)) == "8:00 AM - 4:30 PM"


class TestDayAndMonthNames:
    """Test cases for day and month helpers."""

    def test_get_day_name(self):
        """Test abbreviated day names."""
        assert get_day_name(date(2024, 1, 15)) == "Mon"
        assert get_day_name("2024-01-21") == "Sun"

    def test_week_position(self):
        """Test Monday-first week positions."""
        assert get_day_name_for_week_position(0) == "Mon"
        assert get_day_name_for_week_position(6) == "Sun"

    @pytest.mark.parametrize("position", [-1, 7])
    def test_week_position_out_of_range(self, position):
        """Test positions outside 0..6 are rejected."""
        with pytest.raises(ValueError):
            get_day_name_for_week_position(position)

    def test_get_month_name(self):
        """Test abbreviated month names."""
        assert get_month_name(date(2024, 9, 1)) == "Sep"

    def test_format_date_for_query(self):
        """Test query date format."""
        assert format_date_for_query(date(2024, 4, 1)) == "2024-04-01"
        assert format_date_for_query(datetime(2024, 4, 1, 23, 0)) == "2024-04-01"


class TestWeeks:
    """Test cases for Monday-to-Sunday week helpers."""

    @pytest.mark.parametrize("day", [date(2024, 4, 1), date(2024, 4, 3), date(2024, 4, 7)])
    def test_week_bounds(self, day):
        """Test every day of a week maps to the same Monday and Sunday."""
        assert get_week_start(day) == date(2024, 4, 1)
        assert get_week_end(day) == date(2024, 4, 7)

    def test_format_week_range(self):
        """Test week range formatting."""
        assert format_week_range(date(2024, 4, 3)) == "Mon, Apr 01 - Sun, Apr 07"

    def test_format_week_range_across_months(self):
        """Test a week spanning two months."""
        assert format_week_range(date(2024, 1, 31)) == "Mon, Jan 29 - Sun, Feb 04"


class TestDurations:
    """Test cases for duration formatting and interval parsing."""

    def test_format_duration(self):
        """Test HH:MM:SS formatting with hours beyond a day."""
        assert format_duration(timedelta(hours=26, minutes=5, seconds=3)) == "26:05:03"

    def test_format_duration_negative(self):
        """Test negative durations are clamped to zero."""
        assert format_duration(timedelta(seconds=-5)) == "00:00:00"

    def test_format_hours_minutes(self):
        """Test HH:MM formatting drops seconds."""
        assert format_hours_minutes(timedelta(hours=7, minutes=59, seconds=59)) == "07:59"

    @pytest.mark.parametrize("value,expected", [
        ("08:30:00", timedelta(hours=8, minutes=30)),
        ("08:30", timedelta(hours=8, minutes=30)),
        ("1 day 02:00:00", timedelta(hours=26)),
        ("2 days", timedelta(days=2)),
        ("00:00:01.5", timedelta(seconds=1.5)),
    ])
    def test_parse_interval(self, value, expected):
        """Test database interval parsing."""
        assert parse_interval(value) == expected

    @pytest.mark.parametrize("value", [None, "", "eight hours", "::"])
    def test_parse_interval_invalid(self, value):
        """Test empty or unparseable intervals."""
        assert parse_interval(value) is None


class TestWeekGrouping:
    """Test cases for WeekGroup and group_shifts_by_week."""

    def test_total_skips_active_shifts(self):
        """Test only completed shifts count towards the weekly total."""
        start = datetime(2024, 4, 2, 8, 0, tzinfo=timezone.utc)
        group = WeekGroup(
            week_start=date(2024, 4, 1),
            shifts=[
                make_shift("a", start, start + timedelta(hours=8)),
                make_shift("b", start + timedelta(days=1)),
            ],
        )

        assert group.total == timedelta(hours=8)
        assert group.total_hours == "08:00"
        assert group.week_end == date(2024, 4, 7)
        assert group.week_range == "Mon, Apr 01 - Sun, Apr 07"

    def test_empty_group(self):
        """Test an empty week totals zero."""
        assert WeekGroup(week_start=date(2024, 4, 1)).total_hours == "00:00"

    def test_grouping_order(self):
        """Test weeks are newest first and shifts within a week newest first."""
        utc = timezone.utc
        shifts = [
            make_shift("w1-mon", datetime(2024, 4, 1, 8, tzinfo=utc), datetime(2024, 4, 1, 16, tzinfo=utc)),
            make_shift("w2-tue", datetime(2024, 4, 9, 8, tzinfo=utc), datetime(2024, 4, 9, 12, tzinfo=utc)),
            make_shift("w1-fri", datetime(2024, 4, 5, 8, tzinfo=utc), datetime(2024, 4, 5, 10, tzinfo=utc)),
        ]

        groups = group_shifts_by_week(shifts, utc)

        assert [g.week_start for g in groups] == [date(2024, 4, 8), date(2024, 4, 1)]
        assert [s.id for s in groups[1].shifts] == ["w1-fri", "w1-mon"]
        assert groups[1].total_hours == "10:00"

    def test_grouping_uses_local_date(self):
        """Test a late Sunday UTC shift belongs to the next week in a later timezone."""
        shift = make_shift("late", datetime(2024, 4, 7, 23, 30, tzinfo=timezone.utc))

        in_utc = group_shifts_by_week([shift], timezone.utc)
        in_copenhagen = group_shifts_by_week([shift], ZoneInfo("Europe/Copenhagen"))

        assert in_utc[0].week_start == date(2024, 4, 1)
        assert in_copenhagen[0].week_start == date(2024, 4, 8)

    def test_grouping_empty(self):
        """Test no shifts means no groups."""
        assert group_shifts_by_week([]) == []
