"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from typing import Union

from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta

DateInput = Union[date, datetime, str]


def _relative_date(text: str, today: date) -> date | None:
    keywords = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }
    if text in keywords:
        return keywords[text]

    # "this"/"last" + period resolve to the first day of that period
    prefix, _, period = text.partition(" ")
    if prefix == "this":
        offset = 0
    elif prefix == "last":
        offset = 1
    else:
        return None

    if period == "month":
        return (today - relativedelta(months=offset)).replace(day=1)
    if period == "year":
        return today.replace(month=1, day=1) - relativedelta(years=offset)
    if period == "week":
        return today - timedelta(days=today.weekday() + 7 * offset)
    return None


def parse_date(value: DateInput, today: date) -> date:
    """Parse an entry date.

    Accepts date objects, ISO strings ("2024-01-15"), German day-first
    strings ("15.01.2024", "15.1.24") and relative keywords ("today",
    "yesterday", "this month", "last week", ...), all resolved against
    ``today`` rather than the system clock.

    Args:
        value: Date, datetime or date string
        today: Reference date for relative keywords

    Returns:
        Date object

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"Could not parse date '{value}'")

    text = value.strip().lower()

    relative = _relative_date(text, today)
    if relative is not None:
        return relative

    try:
        return date.fromisoformat(text)
    except ValueError:
        pass

    try:
        default = datetime(today.year, today.month, today.day)
        return date_parser.parse(text, dayfirst=True, default=default).date()
    except (ValueError, OverflowError) as e:
        raise ValueError(f"Could not parse date '{value}': {e}")
