"""Timezone-aware date/time helpers for the hotel back office."""

from datetime import date, datetime, timedelta
from zoneinfo import ZoneInfo

from flask import current_app


def get_timezone() -> ZoneInfo:
    """Get the configured timezone."""
    tz_name = current_app.config.get('TIMEZONE', 'UTC')
    return ZoneInfo(tz_name)


def get_today() -> date:
    """Get today's date in the configured timezone."""
    return datetime.now(get_timezone()).date()


def get_now() -> datetime:
    """Get current datetime in the configured timezone."""
    return datetime.now(get_timezone())


def count_nights(check_in: date, check_out: date) -> int:
    """Number of occupied nights in the half-open stay [check_in, check_out)."""
    return (check_out - check_in).days


def iter_nights(check_in: date, check_out: date):
    """Yield each occupied night; the check-out day itself is not a night."""
    current = check_in
    while current < check_out:
        yield current
        current += timedelta(days=1)
