"""Expansion of recurring event templates into concrete occurrences."""
import calendar
import logging
from datetime import date, datetime, timedelta
from typing import Iterable, List, Optional, Union

from scheduler.models import EventTemplate, Occurrence, RecurrenceType

logger = logging.getLogger(__name__)

DateLike = Union[date, datetime]


def combine_date_and_time(
    event_date: date, time_str: Optional[str]
) -> Optional[datetime]:
    """
    Combine a calendar date with an HH:MM time string.

    HH:MM:SS is also accepted; seconds are dropped.

    Args:
        event_date: The date part
        time_str: Time of day in 24-hour format

    Returns:
        Naive datetime, or None if the time is absent or malformed
    """
    if not time_str:
        return None

    parts = time_str.strip().split(':')
    if len(parts) not in (2, 3):
        return None
    if not all(part.isdecimal() for part in parts):
        return None

    hours = int(parts[0])
    minutes = int(parts[1])
    if hours > 23 or minutes > 59:
        return None

    return datetime(event_date.year, event_date.month, event_date.day,
                    hours, minutes)


def expand(
    template: EventTemplate, range_start: DateLike, range_end: DateLike
) -> List[Occurrence]:
    """
    Enumerate the occurrences of a template within a date range.

    The range is intersected with the template's own recurrence bounds.
    Unknown recurrence types, missing rule data and empty or inverted
    windows all produce an empty list.

    Args:
        template: Event template with recurrence settings
        range_start: First day of the query range (inclusive)
        range_end: Last day of the query range (inclusive)

    Returns:
        Occurrences in ascending date order
    """
    window_start = _to_date(range_start)
    window_end = _to_date(range_end)

    if template.recurrence_start_date:
        window_start = max(window_start, _to_date(template.recurrence_start_date))
    if template.recurrence_end_date:
        window_end = min(window_end, _to_date(template.recurrence_end_date))

    if window_start > window_end:
        return []

    if template.recurrence_type == RecurrenceType.WEEKLY:
        dates = _weekly_dates(
            window_start, window_end, template.recurring_days_of_week or []
        )
    elif template.recurrence_type == RecurrenceType.MONTHLY:
        dates = _monthly_dates(window_start, window_end, template.day_of_month)
    else:
        if template.recurrence_type != RecurrenceType.NONE:
            logger.debug(
                f"Unknown recurrence type '{template.recurrence_type}' "
                f"for template {template.id}"
            )
        return []

    return [_make_occurrence(template, day) for day in dates]


def occurrences_for_dates(
    template: EventTemplate, dates: Iterable[DateLike]
) -> List[Occurrence]:
    """
    Build occurrences for an explicit list of dates.

    Used for templates without a recurrence rule. Duplicate dates are
    collapsed and the result is sorted.
    """
    unique_dates = sorted({_to_date(d) for d in dates})
    return [_make_occurrence(template, day) for day in unique_dates]


def weekday_index(day: date) -> int:
    """Day of week with 0 = Sunday through 6 = Saturday."""
    return (day.weekday() + 1) % 7


def _weekly_dates(start: date, end: date, days_of_week) -> List[date]:
    wanted = set(days_of_week)
    dates = []
    if not wanted:
        return dates

    current = start
    while current <= end:
        if weekday_index(current) in wanted:
            dates.append(current)
        current = current + timedelta(days=1)

    return dates


def _monthly_dates(
    start: date, end: date, day_of_month: Optional[int]
) -> List[date]:
    dates = []
    if not day_of_month or day_of_month < 1:
        return dates

    year, month = start.year, start.month
    while (year, month) <= (end.year, end.month):
        last_day = calendar.monthrange(year, month)[1]
        candidate = date(year, month, min(day_of_month, last_day))
        if start <= candidate <= end:
            dates.append(candidate)

        if month == 12:
            year, month = year + 1, 1
        else:
            month += 1

    return dates


def _make_occurrence(template: EventTemplate, day: date) -> Occurrence:
    return Occurrence(
        date=day,
        start_time=combine_date_and_time(day, template.default_start_time),
        end_time=combine_date_and_time(day, template.default_end_time),
    )


def _to_date(value: DateLike) -> date:
    if isinstance(value, datetime):
        return value.date()
    return value
