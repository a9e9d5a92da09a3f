"""Calendar windows used by ranking generation and ranking queries.

All windows are closed ranges ``[start, end]``. Weeks are ISO weeks
(Monday through Sunday); months are calendar months.
"""

from datetime import date, datetime, timedelta
from typing import NamedTuple

import pytz

from db.config import settings


class Period(NamedTuple):
    start: date
    end: date


def today(tz_name: str | None = None) -> date:
    """Current date in the stats timezone (``settings.stats_timezone``)."""
    return datetime.now(pytz.timezone(tz_name or settings.stats_timezone)).date()


def yesterday(reference: date | None = None) -> date:
    return (reference or today()) - timedelta(days=1)


def first_of_month(day: date) -> date:
    return day.replace(day=1)


def is_week_start(day: date) -> bool:
    return day.isoweekday() == 1


def is_month_start(day: date) -> bool:
    return day.day == 1


def single_day(day: date) -> Period:
    return Period(day, day)


def week_ending(day: date) -> Period:
    """The seven days ending on ``day``."""
    return Period(day - timedelta(days=6), day)


def month_to_date(day: date) -> Period:
    """From the first of ``day``'s month up to ``day``."""
    return Period(first_of_month(day), day)


def last_completed_week(reference: date | None = None) -> Period:
    """The Monday-Sunday week before the week containing ``reference``."""
    reference = reference or today()
    monday_this_week = reference - timedelta(days=reference.isoweekday() - 1)
    return week_ending(monday_this_week - timedelta(days=1))


def last_completed_month(reference: date | None = None) -> Period:
    """The calendar month before the month containing ``reference``."""
    reference = reference or today()
    last_day = first_of_month(reference) - timedelta(days=1)
    return Period(first_of_month(last_day), last_day)
