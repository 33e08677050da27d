"""Tests for error classification, retry policy and user formatting."""

from datetime import datetime, timezone
from unittest.mock import patch

import pytest
import requests
from pydantic import ValidationError

from tideways_mcp_server.errors import (
    ErrorKind,
    ErrorRecord,
    classify_error,
    format_error_for_user,
    format_partial_failure,
    get_header,
    get_retry_delay_ms,
    is_retryable,
    validation_error,
)


def http_error(status_code, headers=None):
    response = requests.Response()
    response.status_code = status_code
    response.headers.update(headers or {})
    return requests.exceptions.HTTPError(f"HTTP {status_code}", response=response)


class TestClassifyError:
    """Test mapping of raw failures to error kinds."""

    def test_rate_limit_with_reset_header(self):
        record = classify_error(http_error(429, {"X-RateLimit-Reset": "60"}))

        assert record.kind == ErrorKind.RATE_LIMIT
        assert record.http_status == 429
        assert record.retry_after_ms == 60000

    def test_rate_limit_without_reset_header(self):
        record = classify_error(http_error(429))

        assert record.kind == ErrorKind.RATE_LIMIT
        assert record.retry_after_ms is None

    def test_rate_limit_with_malformed_reset_header(self):
        record = classify_error(http_error(429, {"x-ratelimit-reset": "soon"}))

        assert record.retry_after_ms is None

    @pytest.mark.parametrize("status", [401, 403])
    def test_auth_statuses(self, status):
        record = classify_error(http_error(status))

        assert record.kind == ErrorKind.AUTH
        assert record.http_status == status

    def test_forbidden_mentions_scopes(self):
        record = classify_error(http_error(403))

        assert "scopes" in record.message

    def test_not_found_is_api_error(self):
        record = classify_error(http_error(404))

        assert record.kind == ErrorKind.API
        assert record.http_status == 404

    @pytest.mark.parametrize("status", [500, 502, 503])
    def test_server_errors_keep_status(self, status):
        record = classify_error(http_error(status))

        assert record.kind == ErrorKind.API
        assert record.http_status == status

    def test_connection_error_is_network(self):
        record = classify_error(requests.exceptions.ConnectionError("refused"))

        assert record.kind == ErrorKind.NETWORK
        assert "Unable to connect" in record.message

    def test_timeout_is_network(self):
        record = classify_error(requests.exceptions.ReadTimeout("read timed out"))

        assert record.kind == ErrorKind.NETWORK
        assert "took too long" in record.message

    def test_connect_timeout_counts_as_timeout(self):
        # ConnectTimeout is both a ConnectionError and a Timeout
        record = classify_error(requests.exceptions.ConnectTimeout("connect timed out"))

        assert record.kind == ErrorKind.NETWORK
        assert "took too long" in record.message

    def test_unexpected_status_is_unknown(self):
        record = classify_error(http_error(418))

        assert record.kind == ErrorKind.UNKNOWN
        assert record.http_status == 418

    def test_arbitrary_exception_is_unknown(self):
        record = classify_error(ValueError("boom"))

        assert record.kind == ErrorKind.UNKNOWN
        assert record.message == "Unexpected error: boom"
        assert record.http_status is None

    def test_classification_is_idempotent(self):
        error = http_error(429, {"x-ratelimit-reset": "5"})

        assert classify_error(error, "GET", "https://x/a") == classify_error(error)

    def test_classification_logs_at_error(self):
        with patch("tideways_mcp_server.errors.logger") as mock_logger:
            classify_error(http_error(500), "GET", "https://api.example/acme/shop/issues")

        mock_logger.error.assert_called_once()
        message = mock_logger.error.call_args[0][0]
        assert "GET https://api.example/acme/shop/issues" in message
        assert "status=500" in message


class TestErrorRecord:
    """Test the ErrorRecord model."""

    def test_record_is_frozen(self):
        record = validation_error("bad")

        with pytest.raises(ValidationError):
            record.message = "changed"

    def test_validation_error_kind(self):
        record = validation_error("Invalid date")

        assert record.kind == ErrorKind.VALIDATION
        assert record.message == "Invalid date"
        assert record.http_status is None

    def test_str_includes_category_and_status(self):
        record = ErrorRecord(kind=ErrorKind.API, message="Server error", http_status=502)

        assert str(record) == "Server error | Category: api | Status: 502"


class TestRetryPolicy:
    """Test retry decisions and backoff."""

    @pytest.mark.parametrize(
        "record,expected",
        [
            (ErrorRecord(kind=ErrorKind.NETWORK, message="x"), True),
            (ErrorRecord(kind=ErrorKind.RATE_LIMIT, message="x", http_status=429), True),
            (ErrorRecord(kind=ErrorKind.API, message="x", http_status=503), True),
            (ErrorRecord(kind=ErrorKind.API, message="x", http_status=404), False),
            (ErrorRecord(kind=ErrorKind.AUTH, message="x", http_status=401), False),
            (ErrorRecord(kind=ErrorKind.VALIDATION, message="x"), False),
            (ErrorRecord(kind=ErrorKind.UNKNOWN, message="x"), False),
        ],
    )
    def test_is_retryable(self, record, expected):
        assert is_retryable(record) is expected

    def test_exponential_backoff(self):
        record = ErrorRecord(kind=ErrorKind.NETWORK, message="x")

        assert [get_retry_delay_ms(record, n) for n in range(6)] == [
            1000, 2000, 4000, 8000, 16000, 30000,
        ]

    def test_retry_after_overrides_backoff(self):
        record = ErrorRecord(
            kind=ErrorKind.RATE_LIMIT, message="x", http_status=429, retry_after_ms=45000
        )

        assert get_retry_delay_ms(record, 0) == 45000
        assert get_retry_delay_ms(record, 5) == 45000

    def test_zero_retry_after_is_used_as_is(self):
        record = classify_error(http_error(429, {"X-RateLimit-Reset": "0"}))

        assert record.retry_after_ms == 0
        assert get_retry_delay_ms(record, 0) == 0
        assert get_retry_delay_ms(record, 3) == 0


class TestFormatting:
    """Test user-facing error text."""

    def test_rate_limit_with_reset_time(self):
        record = ErrorRecord(
            kind=ErrorKind.RATE_LIMIT,
            message="Rate limit exceeded. Please try again later.",
            retry_after_ms=60000,
        )
        now = datetime(2025, 8, 9, 12, 0, tzinfo=timezone.utc)

        text = format_error_for_user(record, now=now)

        assert "Rate limit resets at: 2025-08-09T12:01:00+00:00" in text

    def test_rate_limit_with_zero_reset_time(self):
        record = ErrorRecord(kind=ErrorKind.RATE_LIMIT, message="Rate limit exceeded.", retry_after_ms=0)
        now = datetime(2025, 8, 9, 12, 0, tzinfo=timezone.utc)

        assert "Rate limit resets at: 2025-08-09T12:00:00+00:00" in format_error_for_user(record, now=now)

    def test_rate_limit_without_reset_time(self):
        record = ErrorRecord(kind=ErrorKind.RATE_LIMIT, message="Rate limit exceeded.")

        assert "wait a few minutes" in format_error_for_user(record)

    def test_auth_suggestions(self):
        text = format_error_for_user(classify_error(http_error(401)))

        assert "TIDEWAYS_TOKEN" in text
        assert "scopes" in text

    def test_api_suggestions(self):
        text = format_error_for_user(classify_error(http_error(404)))

        assert "TIDEWAYS_ORG" in text
        assert "TIDEWAYS_PROJECT" in text

    def test_network_suggestions(self):
        text = format_error_for_user(classify_error(requests.exceptions.ConnectionError()))

        assert "internet connection" in text

    def test_validation_text(self):
        text = format_error_for_user(validation_error("Invalid granularity"))

        assert text.startswith("Invalid granularity")
        assert "check your input parameters" in text

    def test_unknown_points_to_logs(self):
        text = format_error_for_user(classify_error(RuntimeError("weird")))

        assert "server logs" in text


class TestPartialFailure:
    """Test summarizing several sub-fetch failures."""

    def test_with_partial_data(self):
        errors = [validation_error("a"), ErrorRecord(kind=ErrorKind.NETWORK, message="b")]

        text = format_partial_failure(errors, {"metrics": {}})

        assert text.startswith("⚠️ Partial data available")
        assert "• validation: a" in text
        assert "• network: b" in text

    def test_without_partial_data(self):
        text = format_partial_failure([ErrorRecord(kind=ErrorKind.API, message="down")])

        assert text.startswith("❌ Unable to retrieve performance data")
        assert "• api: down" in text


class TestGetHeader:
    """Test case-insensitive header lookup."""

    def test_lookup_ignores_case(self):
        assert get_header({"X-RateLimit-Reset": "10"}, "x-ratelimit-reset") == "10"

    def test_missing_header(self):
        assert get_header({"Accept": "application/json"}, "x-ratelimit-reset") is None
        assert get_header(None, "anything") is None
