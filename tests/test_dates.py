# tests/test_dates.py
from datetime import date, datetime, timedelta, timezone

import pytest

from json_timeline_extractor.dates import (
    is_valid_date_format,
    looks_like_date,
    parse_date,
    to_iso_string,
)

UTC = timezone.utc


def _utc(*args):
    return datetime(*args, tzinfo=UTC)


# ======================
# accepted inputs
# ======================
@pytest.mark.parametrize(
    "value, expected",
    [
        ("2024-01-01", _utc(2024, 1, 1)),
        ("2024-01-15T10:30:00Z", _utc(2024, 1, 15, 10, 30)),
        ("2024-01-15T10:30:00+02:00", _utc(2024, 1, 15, 8, 30)),
        ("2024-01-15 10:30:00", _utc(2024, 1, 15, 10, 30)),
        ("12/25/2024", _utc(2024, 12, 25)),
        ("01-15-2024", _utc(2024, 1, 15)),
        ("1704067200000", _utc(2024, 1, 1)),
        (1704067200000, _utc(2024, 1, 1)),
        (1704067200000.0, _utc(2024, 1, 1)),
        (-86400000, _utc(1969, 12, 31)),
    ],
)
def test_parse_date_formats(value, expected):
    assert parse_date(value) == expected


def test_datetime_and_date_objects():
    aware = datetime(2024, 5, 1, 12, 0, tzinfo=timezone(timedelta(hours=-5)))
    assert parse_date(aware) == _utc(2024, 5, 1, 17, 0)
    assert parse_date(datetime(2024, 5, 1, 12, 0)) == _utc(2024, 5, 1, 12, 0)
    assert parse_date(date(2024, 3, 1)) == _utc(2024, 3, 1)


def test_results_are_utc_aware():
    parsed = parse_date("2024-06-01")
    assert parsed.tzinfo is not None
    assert parsed.utcoffset() == timedelta(0)


# ======================
# rejected inputs
# ======================
@pytest.mark.parametrize("value", [None, "", "   ", 0, 0.0, False, True])
def test_falsy_and_boolean_values_rejected(value):
    assert parse_date(value) is None


@pytest.mark.parametrize(
    "value",
    ["not a date", "Kickoff", "13/45/2024", float("nan"), float("inf"), 1e20, {"a": 1}, ["2024-01-01"]],
)
def test_unparseable_values_rejected(value):
    assert parse_date(value) is None


def test_is_valid_date_format():
    assert is_valid_date_format("2024-02-29")
    assert not is_valid_date_format("2023-02-29")


# ======================
# ISO rendering
# ======================
def test_to_iso_string_has_millisecond_precision():
    assert to_iso_string(_utc(2024, 1, 1)) == "2024-01-01T00:00:00.000Z"
    assert to_iso_string(_utc(2024, 1, 1, 9, 5, 7, 123456)) == "2024-01-01T09:05:07.123Z"


@pytest.mark.parametrize(
    "text",
    ["2024-03-05T12:34:56.789Z", "2024-03-05", "2024-03-05T12:34:56+05:30", "1999-12-31T23:59:59.000Z"],
)
def test_iso_round_trip(text):
    parsed = parse_date(text)
    assert parse_date(to_iso_string(parsed)) == parsed


# ======================
# heuristic date shape
# ======================
def test_looks_like_date():
    assert looks_like_date("2024-01-01")
    assert looks_like_date("2024-01-01T10:00:00Z")
    assert looks_like_date("03/15/2024")
    assert looks_like_date(1704067200000)
    assert looks_like_date(date(2024, 1, 1))
    assert not looks_like_date(5)
    assert not looks_like_date("Kickoff")
    assert not looks_like_date("2024-99-99")
    assert not looks_like_date(True)
    assert not looks_like_date(None)
