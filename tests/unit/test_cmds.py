"""Unit tests for command helpers.

Covers the small pieces of the command modules that do not need a backend:
location parsing, shift rows and document sizes.
"""

from datetime import datetime, timezone

import pytest

from shiftctl.cmds.documents import _size
from shiftctl.cmds.shifts import parse_location, shift_row
from shiftctl.exceptions import ValidationError
from shiftctl.models import Shift


class TestParseLocation:
    """Test cases for --lat/--lng handling."""

    def test_neither(self):
        """Test no coordinates means no location."""
        assert parse_location(None, None) is None

    def test_both(self):
        """Test both coordinates build a location."""
        location = parse_location(51.5072, -0.1276)

        assert location.lat == 51.5072
        assert location.lng == -0.1276

    @pytest.mark.parametrize("lat,lng", [(51.5, None), (None, -0.12)])
    def test_only_one(self, lat, lng):
        """Test a single coordinate is rejected."""
        with pytest.raises(ValidationError, match="both --lat and --lng"):
            parse_location(lat, lng)

    def test_out_of_range(self):
        """Test impossible coordinates are rejected."""
        with pytest.raises(ValidationError, match="Invalid location"):
            parse_location(100.0, 0.0)


class TestShiftRow:
    """Test cases for shift table rows."""

    def test_completed_shift(self):
        """Test a completed shift shows its stored duration and notes."""
        shift = Shift(
            id="s1",
            clock_in_time="2024-04-01T08:00:00Z",
            clock_out_time="2024-04-01T16:30:00Z",
            shift_duration="08:30:00",
            shift_notes="Handover done",
        )

        row = shift_row(shift)

        expected_in = datetime(2024, 4, 1, 8, tzinfo=timezone.utc).astimezone().strftime("%Y-%m-%d %H:%M")
        assert row["id"] == "s1"
        assert row["clock_in"] == expected_in
        assert row["duration"] == "08:30:00"
        assert row["notes"] == "Handover done"

    def test_duration_computed_when_missing(self):
        """Test the duration falls back to the clock times."""
        shift = Shift(
            id="s1",
            clock_in_time="2024-04-01T08:00:00Z",
            clock_out_time="2024-04-01T09:15:30Z",
        )

        assert shift_row(shift)["duration"] == "01:15:30"

    def test_active_shift(self):
        """Test an open shift is marked active."""
        shift = Shift(id="s2", clock_in_time="2024-04-01T08:00:00Z")

        row = shift_row(shift)

        assert row["clock_out"] == "active"
        assert row["notes"] == ""


class TestSize:
    """Test cases for document size display."""

    def test_kilobytes(self):
        assert _size(2048) == "2.0 KB"

    def test_megabytes(self):
        assert _size(3 * 1024 * 1024) == "3.00 MB"
