from datetime import date, datetime, timezone

from utils.dates import month_key, month_label, parse_played_at, parse_timestamp, short_date


def test_parse_played_at_accepts_common_shapes():
    assert parse_played_at("2025-01-05") == date(2025, 1, 5)
    assert parse_played_at("2025-01-05T21:30:00Z") == date(2025, 1, 5)
    assert parse_played_at(datetime(2025, 1, 5, 3, 0)) == date(2025, 1, 5)
    assert parse_played_at(date(2025, 1, 5)) == date(2025, 1, 5)


def test_parse_played_at_rejects_garbage():
    assert parse_played_at(None) is None
    assert parse_played_at("") is None
    assert parse_played_at("yesterday") is None
    assert parse_played_at("2025-13-40") is None


def test_parse_timestamp_is_tz_aware():
    ts = parse_timestamp("2025-01-05T10:00:00")
    assert ts.tzinfo is not None
    assert ts == datetime(2025, 1, 5, 10, 0, tzinfo=timezone.utc)
    assert parse_timestamp("nope") is None


def test_month_helpers():
    assert month_key(date(2025, 3, 9)) == "2025-03"
    assert month_label("2025-03") == "Mar 2025"
    assert month_label("garbage") == "garbage"


def test_short_date():
    assert short_date(date(2025, 1, 5)) == "Jan 5, 2025"
    assert short_date(None) == "—"
