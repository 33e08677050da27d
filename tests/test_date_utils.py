"""Tests for trace date helpers."""

from datetime import datetime, timedelta, timezone

import pytest

from tideways_mcp_server.utils.date_utils import (
    add_default_date_range,
    format_date_for_api,
    parse_trace_date,
)

NOW = datetime(2025, 8, 9, 14, 30, 15, 123456, tzinfo=timezone.utc)


class TestFormatDateForApi:
    def test_utc_with_milliseconds(self):
        assert format_date_for_api(NOW) == "2025-08-09T14:30:15.123Z"

    def test_naive_is_utc(self):
        assert format_date_for_api(datetime(2025, 1, 2, 3, 4, 5)) == "2025-01-02T03:04:05.000Z"

    def test_other_timezone_converted(self):
        cest = timezone(timedelta(hours=2))

        assert format_date_for_api(datetime(2025, 8, 9, 16, 0, tzinfo=cest)) == "2025-08-09T14:00:00.000Z"


class TestParseTraceDate:
    @pytest.mark.parametrize(
        "value,expected",
        [
            ("2025-08-09 14:30", datetime(2025, 8, 9, 14, 30, tzinfo=timezone.utc)),
            ("2025-08-09T14:30:00Z", datetime(2025, 8, 9, 14, 30, tzinfo=timezone.utc)),
            ("2025-08-09T14:30:00.500Z", datetime(2025, 8, 9, 14, 30, 0, 500000, tzinfo=timezone.utc)),
            ("2025-08-09", datetime(2025, 8, 9, tzinfo=timezone.utc)),
        ],
    )
    def test_valid(self, value, expected):
        assert parse_trace_date(value) == expected

    @pytest.mark.parametrize("value", ["", "   ", "yesterday", "2025-13-01 00:00", None])
    def test_invalid(self, value):
        assert parse_trace_date(value) is None


class TestAddDefaultDateRange:
    def test_fills_last_24_hours(self):
        params = {"env": "production"}

        result = add_default_date_range(params, now=NOW)

        assert result == {
            "env": "production",
            "min_date": "2025-08-08T14:30:15.123Z",
            "max_date": "2025-08-09T14:30:15.123Z",
        }
        assert params == {"env": "production"}

    @pytest.mark.parametrize(
        "params",
        [
            {"min_date": "2025-08-01 00:00"},
            {"max_date": "2025-08-01 00:00"},
            {"min_date": "2025-08-01 00:00", "max_date": "2025-08-02 00:00"},
        ],
    )
    def test_leaves_given_dates_alone(self, params):
        assert add_default_date_range(params, now=NOW) == params
