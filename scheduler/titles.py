"""Event title formatting."""
import re
from datetime import date, datetime
from typing import Optional

DEFAULT_TITLE_FORMAT = '{venue} Event'
DEFAULT_VENUE_NAME = 'Venue'

TOKEN_PATTERN = re.compile(r'\{(venue|date|time)\}')


def format_event_title(
    title_format: str,
    venue: Optional[str] = None,
    date: Optional[str] = None,
    time: Optional[str] = None
) -> str:
    """
    Replace {venue}, {date} and {time} placeholders in a title format.

    Every occurrence of each token is replaced literally in a single pass,
    so placeholders inside substituted values are kept as text. Tokens
    whose value is None are left as they are.

    Args:
        title_format: Format string with placeholders
        venue: Venue name
        date: Display date
        time: Display time

    Returns:
        Formatted title
    """
    values = {'venue': venue, 'date': date, 'time': time}

    def substitute(match):
        value = values[match.group(1)]
        return match.group(0) if value is None else value

    return TOKEN_PATTERN.sub(substitute, title_format)


def display_date(value: date) -> str:
    """Render a date as e.g. 'March 4, 2024'."""
    return f"{value:%B} {value.day}, {value.year}"


def display_time(value: datetime) -> str:
    """Render a time as e.g. '6:00 PM'."""
    hour = value.hour % 12 or 12
    suffix = 'AM' if value.hour < 12 else 'PM'
    return f"{hour}:{value.minute:02d} {suffix}"
