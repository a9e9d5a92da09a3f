"""
Tests for calendar windows in utils/periods.py
"""

from datetime import date

import pytest

from utils import periods
from utils.periods import Period


class TestCompletedWindows:
    @pytest.mark.parametrize(
        "reference, expected",
        [
            # Wednesday
            (date(2024, 6, 12), Period(date(2024, 6, 3), date(2024, 6, 9))),
            # Monday: the week that ended yesterday
            (date(2024, 6, 10), Period(date(2024, 6, 3), date(2024, 6, 9))),
            # Sunday: the current week is not complete yet
            (date(2024, 6, 9), Period(date(2024, 5, 27), date(2024, 6, 2))),
            # Across a year boundary
            (date(2025, 1, 1), Period(date(2024, 12, 23), date(2024, 12, 29))),
        ],
    )
    def test_last_completed_week(self, reference, expected):
        assert periods.last_completed_week(reference) == expected

    @pytest.mark.parametrize(
        "reference, expected",
        [
            (date(2024, 6, 12), Period(date(2024, 5, 1), date(2024, 5, 31))),
            (date(2024, 3, 1), Period(date(2024, 2, 1), date(2024, 2, 29))),
            (date(2024, 1, 15), Period(date(2023, 12, 1), date(2023, 12, 31))),
        ],
    )
    def test_last_completed_month(self, reference, expected):
        assert periods.last_completed_month(reference) == expected


class TestWindowsEndingOnADay:
    def test_single_day(self):
        assert periods.single_day(date(2024, 6, 1)) == Period(date(2024, 6, 1), date(2024, 6, 1))

    def test_week_ending(self):
        assert periods.week_ending(date(2024, 6, 2)) == Period(date(2024, 5, 27), date(2024, 6, 2))

    def test_month_to_date(self):
        assert periods.month_to_date(date(2024, 6, 20)) == Period(date(2024, 6, 1), date(2024, 6, 20))


class TestDayHelpers:
    def test_yesterday(self):
        assert periods.yesterday(date(2024, 3, 1)) == date(2024, 2, 29)

    def test_is_week_start(self):
        assert periods.is_week_start(date(2024, 6, 10))
        assert not periods.is_week_start(date(2024, 6, 9))

    def test_is_month_start(self):
        assert periods.is_month_start(date(2024, 6, 1))
        assert not periods.is_month_start(date(2024, 6, 2))

    def test_today_uses_timezone(self):
        # Zones less than a day apart differ by at most one calendar day.
        east = periods.today("Asia/Tokyo")
        west = periods.today("America/Los_Angeles")
        assert 0 <= (east - west).days <= 1
