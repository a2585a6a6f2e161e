from datetime import date, datetime, time, timedelta
import os

import pytz


def get_timezone():
    return pytz.timezone(os.getenv("APP_TIMEZONE", "Asia/Kolkata"))


def now() -> datetime:
    return datetime.now(get_timezone())


def today() -> date:
    return now().date()


def local_date(value: datetime) -> date:
    """Calendar day of a stored timestamp in the business timezone.

    Naive values (sqlite drops tzinfo) are already wall-clock local time.
    """
    if value.tzinfo is None:
        return value.date()
    return value.astimezone(get_timezone()).date()


def day_bounds(day: date):
    """Return the [start, end) datetimes covering one business day."""
    tz = get_timezone()
    start = tz.localize(datetime.combine(day, time.min))
    return start, start + timedelta(days=1)


def range_bounds(start_date: date, end_date: date):
    start, _ = day_bounds(start_date)
    _, end = day_bounds(end_date)
    return start, end
