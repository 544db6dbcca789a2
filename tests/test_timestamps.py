from datetime import datetime, timedelta, timezone

import pytest

from usermirror.timestamps import normalize_timestamp, parse_timestamp, utc_day


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("2024-03-01T10:00:00Z", "2024-03-01T10:00:00.000Z"),
        ("2024-03-01T12:00:00.250+02:00", "2024-03-01T10:00:00.250Z"),
        ("2024-03-01T10:00:00.5Z", "2024-03-01T10:00:00.500Z"),
        ("Fri, 01 Mar 2024 10:00:00 GMT", "2024-03-01T10:00:00.000Z"),
        (1709287200000, "2024-03-01T10:00:00.000Z"),
        (datetime(2024, 3, 1, 10, 0), "2024-03-01T10:00:00.000Z"),
    ],
)
def test_normalize_timestamp_accepts_directory_formats(raw, expected) -> None:
    assert normalize_timestamp(raw) == expected


def test_normalize_keeps_raw_text_when_unparsable() -> None:
    assert normalize_timestamp("yesterday-ish") == "yesterday-ish"
    assert normalize_timestamp(None) is None


def test_parse_timestamp_rejects_nonsense() -> None:
    assert parse_timestamp("") is None
    assert parse_timestamp(True) is None
    assert parse_timestamp(10**30) is None


def test_utc_day_uses_utc_calendar() -> None:
    late_evening = datetime(2024, 3, 1, 23, 30, tzinfo=timezone(timedelta(hours=-5)))
    assert utc_day(late_evening) == "2024-03-02"
    assert utc_day("garbage") == ""
    assert utc_day(None) == ""
