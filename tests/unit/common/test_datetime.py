"""Tests for common.datetime module."""

from datetime import datetime, timedelta, timezone

from common.datetime import to_utc, utc_now


class TestUtcNow:
    def test_is_timezone_aware(self) -> None:
        before = datetime.now(timezone.utc)
        result = utc_now()
        after = datetime.now(timezone.utc)
        assert before <= result <= after
        assert result.tzinfo is not None


class TestToUtc:
    def test_naive_assumed_utc(self) -> None:
        result = to_utc(datetime(2024, 1, 1, 12, 0, 0))
        assert result == datetime(2024, 1, 1, 12, 0, 0, tzinfo=timezone.utc)

    def test_aware_converted(self) -> None:
        jakarta = timezone(timedelta(hours=7))
        result = to_utc(datetime(2024, 1, 1, 12, 0, 0, tzinfo=jakarta))
        assert result == datetime(2024, 1, 1, 5, 0, 0, tzinfo=timezone.utc)
        assert result.tzinfo == timezone.utc
