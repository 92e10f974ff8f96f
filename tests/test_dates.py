from datetime import date, datetime, time

import pandas as pd
import pytest

from stocktrack.utils.dates import (
    end_of_day,
    parse_calendar_date,
    parse_datetime,
    parse_optional_datetime,
    start_of_day,
    to_iso,
)


@pytest.mark.parametrize("value,expected", [
    ("2024-01-31", datetime(2024, 1, 31)),
    ("2024-01-31T10:15:00", datetime(2024, 1, 31, 10, 15)),
    ("2024/01/31", datetime(2024, 1, 31)),
    ("31/01/2024", datetime(2024, 1, 31)),
    (date(2024, 1, 31), datetime(2024, 1, 31)),
    (pd.Timestamp("2024-01-31 08:00"), datetime(2024, 1, 31, 8)),
])
def test_parse_datetime(value, expected):
    assert parse_datetime(value) == expected


def test_aware_values_become_naive_utc():
    assert parse_datetime("2024-01-01T00:30:00+02:00") == datetime(2023, 12, 31, 22, 30)
    assert parse_datetime("2024-01-01T00:30:00Z") == datetime(2024, 1, 1, 0, 30)


@pytest.mark.parametrize("value", ["", "tomorrow", "2024-13-45", 42])
def test_parse_datetime_rejects_garbage(value):
    with pytest.raises(ValueError):
        parse_datetime(value)


@pytest.mark.parametrize("value", [None, "", "   ", float("nan"), pd.NaT])
def test_parse_optional_datetime_blank(value):
    assert parse_optional_datetime(value) is None


def test_day_boundaries():
    assert parse_calendar_date("2024-01-31T23:00:00") == date(2024, 1, 31)
    assert start_of_day("2024-01-31") == datetime(2024, 1, 31, 0, 0)
    assert end_of_day(date(2024, 1, 31)) == datetime.combine(date(2024, 1, 31), time.max)


def test_to_iso():
    assert to_iso(None) is None
    assert to_iso(datetime(2024, 1, 31, 9)) == "2024-01-31T09:00:00"
