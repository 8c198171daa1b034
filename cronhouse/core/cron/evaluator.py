"""
Next fire time for a parsed cron expression.

The search walks forward from the minute after `after`, skipping whole months,
days and hours that cannot match, and gives up after a fixed number of years.
"""
from datetime import MAXYEAR, datetime, timedelta

from cronhouse.core.cron.errors import CronEvaluationError
from cronhouse.core.cron.expression import RecurrenceDescriptor

DEFAULT_HORIZON_YEARS = 5


def _start_of_next_month(t: datetime) -> datetime:
    t = t.replace(day=1, hour=0, minute=0)
    if t.month == 12:
        return t.replace(year=t.year + 1, month=1)
    return t.replace(month=t.month + 1)


def _start_of_next_day(t: datetime) -> datetime:
    return t.replace(hour=0, minute=0) + timedelta(days=1)


def _start_of_next_hour(t: datetime) -> datetime:
    return t.replace(minute=0) + timedelta(hours=1)


def next_fire_time(
    descriptor: RecurrenceDescriptor,
    after: datetime,
    horizon_years: int = DEFAULT_HORIZON_YEARS,
) -> datetime:
    """
    Return the first minute strictly after `after` that matches the descriptor.

    Seconds and microseconds of `after` are discarded. The result keeps the
    tzinfo of `after`. Raises CronEvaluationError when nothing matches within
    `horizon_years` (e.g. "0 0 31 2 *").
    """
    t = after.replace(second=0, microsecond=0)
    year_limit = min(t.year + horizon_years, MAXYEAR)
    try:
        t = t + timedelta(minutes=1)
        while t.year <= year_limit:
            if t.month not in descriptor.month:
                if t.year == MAXYEAR and t.month == 12:
                    break
                t = _start_of_next_month(t)
                continue
            if not descriptor.day_matches(t):
                t = _start_of_next_day(t)
                continue
            if t.hour not in descriptor.hour:
                t = _start_of_next_hour(t)
                continue
            if t.minute not in descriptor.minute:
                t = t + timedelta(minutes=1)
                continue
            return t
    except OverflowError as e:
        raise CronEvaluationError(_not_found(descriptor, after, horizon_years)) from e
    raise CronEvaluationError(_not_found(descriptor, after, horizon_years))


def _not_found(descriptor: RecurrenceDescriptor, after: datetime, horizon_years: int) -> str:
    return f"no time matching {descriptor.expression!r} within {horizon_years} years after {after.isoformat()}"
