"""Tests for date parser with relative dates."""

from datetime import date, datetime

import pytest

from tideledger.utils.date_parser import parse_date

# A Friday
TODAY = date(2024, 6, 14)


def test_parse_absolute_date():
    """Test parsing ISO dates."""
    assert parse_date("2024-01-15", TODAY) == date(2024, 1, 15)


def test_parse_german_date():
    """Test that dotted dates are read day first."""
    assert parse_date("03.02.2024", TODAY) == date(2024, 2, 3)
    assert parse_date("3.2.24", TODAY) == date(2024, 2, 3)


def test_parse_date_objects():
    """Test that date and datetime values pass through."""
    assert parse_date(date(2024, 1, 1), TODAY) == date(2024, 1, 1)
    assert parse_date(datetime(2024, 1, 1, 23, 59), TODAY) == date(2024, 1, 1)


@pytest.mark.parametrize(
    "text,expected",
    [
        ("today", date(2024, 6, 14)),
        ("Yesterday", date(2024, 6, 13)),
        ("tomorrow", date(2024, 6, 15)),
        ("this week", date(2024, 6, 10)),
        ("last week", date(2024, 6, 3)),
        ("this month", date(2024, 6, 1)),
        ("last month", date(2024, 5, 1)),
        ("this year", date(2024, 1, 1)),
        ("last year", date(2023, 1, 1)),
    ],
)
def test_parse_relative(text, expected):
    """Test relative keywords resolve against the given day."""
    assert parse_date(text, TODAY) == expected


def test_last_month_in_january():
    """Test that last month wraps into the previous year."""
    assert parse_date("last month", date(2024, 1, 20)) == date(2023, 12, 1)


@pytest.mark.parametrize("value", ["", "   ", "not a date", "32.13.2024", None])
def test_parse_invalid(value):
    """Test that invalid input raises ValueError."""
    with pytest.raises(ValueError):
        parse_date(value, TODAY)
