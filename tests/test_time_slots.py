"""
Tests for 12-hour time handling and slugs
"""

from datetime import date, datetime

import pytest

from clinic_booking.utils.time_slots import (
    combine_date_time,
    format_time_12h,
    parse_time_12h,
    slugify,
)


class TestParseTime12h:

    @pytest.mark.parametrize("value, expected", [
        ("12:00 AM", (0, 0)),
        ("12:30 AM", (0, 30)),
        ("09:00 AM", (9, 0)),
        ("12:00 PM", (12, 0)),
        ("01:00 PM", (13, 0)),
        ("11:59 pm", (23, 59)),
        ("4:15PM", (16, 15)),
    ])
    def test_conversion(self, value, expected):
        assert parse_time_12h(value) == expected

    @pytest.mark.parametrize("value", ["13:00 PM", "00:00 AM", "10:60 AM", "10:00", "", "noon"])
    def test_invalid(self, value):
        with pytest.raises(ValueError):
            parse_time_12h(value)


def test_combine_date_time():
    assert combine_date_time(date(2025, 6, 1), "02:30 PM") == datetime(2025, 6, 1, 14, 30)
    assert combine_date_time(datetime(2025, 6, 1, 8, 0), "12:00 AM") == datetime(2025, 6, 1, 0, 0)


def test_format_time_12h():
    assert format_time_12h(datetime(2025, 6, 1, 13, 0)) == "01:00 PM"


def test_slugify():
    assert slugify("Aesthetic Treatments") == "aesthetic-treatments"
    assert slugify("  General Medicine ") == "general-medicine"
