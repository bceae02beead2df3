"""Tests for datetime helper utilities."""
from datetime import UTC, datetime, timedelta, timezone

from codebreaker.schemas.base import serialize_datetime_utc
from codebreaker.utils.datetime_helpers import ensure_utc, seconds_between, utc_now


def test_ensure_utc_none_returns_none():
    """The helper should gracefully handle ``None`` inputs."""

    assert ensure_utc(None) is None


def test_ensure_utc_attaches_timezone_to_naive_datetime():
    """Naive datetimes should be marked as UTC without adjusting the clock."""

    naive = datetime(2024, 5, 1, 12, 30, 0)

    result = ensure_utc(naive)

    assert result.tzinfo is UTC
    assert result.replace(tzinfo=None) == naive


def test_ensure_utc_converts_from_other_timezones_to_utc():
    """Timezone-aware datetimes not already UTC should be converted."""

    eastern = timezone(timedelta(hours=-4))
    aware = datetime(2024, 5, 1, 8, 0, tzinfo=eastern)

    result = ensure_utc(aware)

    assert result.hour == 12
    assert result.replace(tzinfo=None) == datetime(2024, 5, 1, 12, 0)


def test_seconds_between_mixes_naive_and_aware():
    earlier = datetime(2024, 5, 1, 12, 0, 0)
    later = datetime(2024, 5, 1, 12, 0, 45, tzinfo=UTC)

    assert seconds_between(earlier, later) == 45
    assert seconds_between(None, later) is None


def test_utc_now_is_aware():
    assert utc_now().tzinfo is UTC


def test_schema_datetimes_serialize_as_utc_with_z_suffix():
    """Naive values from SQLite and aware non-UTC values both come out as UTC ``Z`` strings."""
    assert serialize_datetime_utc(datetime(2024, 5, 1, 12, 0)) == "2024-05-01T12:00:00Z"
    eastern = timezone(timedelta(hours=-4))
    assert serialize_datetime_utc(datetime(2024, 5, 1, 8, 0, tzinfo=eastern)) == "2024-05-01T12:00:00Z"
