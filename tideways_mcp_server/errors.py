"""Error taxonomy, classification and retry policy for Tideways API failures.

Every failure that leaves the API client is an ``ErrorRecord`` of exactly one
``ErrorKind``. Raw ``requests`` exceptions are turned into records by
``classify_error``; input problems found before any network call are built
with ``validation_error``.
"""

import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Any, Iterable, Mapping, Optional

import requests
from pydantic import BaseModel, ConfigDict, Field

logger = logging.getLogger(__name__)

MAX_RETRY_DELAY_MS = 30000
BASE_RETRY_DELAY_MS = 1000


class ErrorKind(str, Enum):
    """Closed set of failure categories."""

    RATE_LIMIT = "rate_limit"
    AUTH = "auth"
    NETWORK = "network"
    API = "api"
    VALIDATION = "validation"
    UNKNOWN = "unknown"


class ErrorRecord(BaseModel):
    """A classified failure. Immutable once built."""

    model_config = ConfigDict(frozen=True)

    kind: ErrorKind = Field(description="Failure category")
    message: str = Field(description="Human readable description")
    http_status: Optional[int] = Field(None, description="HTTP status code, when there was a response")
    retry_after_ms: Optional[int] = Field(None, description="Server-declared cooldown in milliseconds")

    def __str__(self) -> str:
        parts = [self.message, f"Category: {self.kind.value}"]
        if self.http_status:
            parts.append(f"Status: {self.http_status}")
        return " | ".join(parts)


def get_header(headers: Optional[Mapping[str, Any]], name: str) -> Optional[str]:
    """Case-insensitive header lookup that also works on plain dicts."""
    if not headers:
        return None
    wanted = name.lower()
    for key, value in headers.items():
        if str(key).lower() == wanted:
            return value
    return None


def _parse_reset_ms(value: Optional[str]) -> Optional[int]:
    if value is None:
        return None
    try:
        return int(str(value).strip()) * 1000
    except ValueError:
        return None


def classify_error(
    error: BaseException,
    method: Optional[str] = None,
    url: Optional[str] = None,
) -> ErrorRecord:
    """
    Map a raw transport or HTTP failure to exactly one ErrorRecord.

    Rules are applied in order: 429, 401, 403, 404, >=500, connection
    failures, timeouts, then everything else as ``unknown``. The outcome
    depends only on ``error``; ``method`` and ``url`` are used for the log
    line.

    Args:
        error: Exception raised while talking to the API. HTTP errors carry
            the response in ``error.response``.
        method: HTTP method of the failed request
        url: URL of the failed request

    Returns:
        ErrorRecord describing the failure
    """
    response = getattr(error, "response", None)
    status = getattr(response, "status_code", None)
    headers = getattr(response, "headers", None)

    request = getattr(error, "request", None)
    method = method or getattr(request, "method", None)
    url = url or getattr(request, "url", None)

    logger.error(
        f"API error occurred: {method or '?'} {url or '?'} "
        f"status={status if status is not None else '-'}: {error}"
    )

    if status == 429:
        return ErrorRecord(
            kind=ErrorKind.RATE_LIMIT,
            message="Rate limit exceeded. Please try again later.",
            http_status=429,
            retry_after_ms=_parse_reset_ms(get_header(headers, "x-ratelimit-reset")),
        )

    if status == 401:
        return ErrorRecord(
            kind=ErrorKind.AUTH,
            message="Authentication failed. Please check your API token.",
            http_status=401,
        )

    if status == 403:
        return ErrorRecord(
            kind=ErrorKind.AUTH,
            message="Access denied. Your token may not have the required scopes for this operation.",
            http_status=403,
        )

    if status == 404:
        return ErrorRecord(
            kind=ErrorKind.API,
            message="Resource not found. Please check your organization and project settings.",
            http_status=404,
        )

    if status is not None and status >= 500:
        return ErrorRecord(
            kind=ErrorKind.API,
            message="Tideways API server error. Please try again later.",
            http_status=status,
        )

    if isinstance(error, requests.exceptions.ConnectionError) and not isinstance(
        error, requests.exceptions.Timeout
    ):
        return ErrorRecord(
            kind=ErrorKind.NETWORK,
            message="Network error: Unable to connect to Tideways API. Please check your internet connection.",
        )

    if isinstance(error, requests.exceptions.Timeout):
        return ErrorRecord(
            kind=ErrorKind.NETWORK,
            message="Request timeout: Tideways API took too long to respond.",
        )

    return ErrorRecord(
        kind=ErrorKind.UNKNOWN,
        message=f"Unexpected error: {error}",
        http_status=status,
    )


def validation_error(message: str) -> ErrorRecord:
    """Build a validation ErrorRecord for bad input caught before any request."""
    logger.warning(f"Validation error: {message}")
    return ErrorRecord(kind=ErrorKind.VALIDATION, message=message)


def is_retryable(error: ErrorRecord) -> bool:
    """Network failures, rate limiting and 5xx server errors are worth retrying."""
    if error.kind in (ErrorKind.NETWORK, ErrorKind.RATE_LIMIT):
        return True
    return (
        error.kind == ErrorKind.API
        and error.http_status is not None
        and error.http_status >= 500
    )


def get_retry_delay_ms(error: ErrorRecord, attempt: int) -> int:
    """Delay before the next attempt.

    A server-declared ``retry_after_ms`` wins; otherwise exponential backoff
    starting at one second, capped at 30 seconds.
    """
    if error.retry_after_ms is not None:
        return error.retry_after_ms

    return min(BASE_RETRY_DELAY_MS * (2 ** attempt), MAX_RETRY_DELAY_MS)


def format_error_for_user(error: ErrorRecord, now: Optional[datetime] = None) -> str:
    """Render an ErrorRecord as category-specific text with suggestions."""
    base_message = error.message

    if error.kind == ErrorKind.RATE_LIMIT:
        if error.retry_after_ms is not None:
            now = now or datetime.now(timezone.utc)
            reset_at = now + timedelta(milliseconds=error.retry_after_ms)
            return f"{base_message} Rate limit resets at: {reset_at.isoformat()}"
        return f"{base_message} Please wait a few minutes before trying again."

    if error.kind == ErrorKind.AUTH:
        return (
            f"{base_message}\n\nSuggestions:\n"
            "• Verify your TIDEWAYS_TOKEN environment variable\n"
            "• Check that your token has the required scopes (metrics, issues, traces)\n"
            "• Ensure your token hasn't expired"
        )

    if error.kind == ErrorKind.NETWORK:
        return (
            f"{base_message}\n\nSuggestions:\n"
            "• Check your internet connection\n"
            "• Verify Tideways API is accessible from your network\n"
            "• Try again in a few minutes"
        )

    if error.kind == ErrorKind.API:
        return (
            f"{base_message}\n\nSuggestions:\n"
            "• Verify your TIDEWAYS_ORG and TIDEWAYS_PROJECT settings\n"
            "• Check if the resource exists in your Tideways dashboard\n"
            "• Try again in a few minutes if this is a temporary server issue"
        )

    if error.kind == ErrorKind.VALIDATION:
        return f"{base_message}\n\nPlease check your input parameters and try again."

    return f"{base_message}\n\nIf this error persists, please check the server logs for more details."


def format_partial_failure(
    errors: Iterable[ErrorRecord], partial_data: Optional[Mapping[str, Any]] = None
) -> str:
    """Summarize failures from several sub-fetches.

    Whether any partial data survived decides the framing, not how many
    errors there were.
    """
    error_summary = "\n".join(f"• {err.kind.value}: {err.message}" for err in errors)

    if partial_data:
        return (
            "⚠️ Partial data available (some sources failed):\n\n"
            f"Issues encountered:\n{error_summary}\n\n"
            "Note: Analysis may be incomplete. Try again in a few minutes."
        )

    return (
        "❌ Unable to retrieve performance data:\n\n"
        f"{error_summary}\n\n"
        "Suggestions:\n"
        "• Check your internet connection\n"
        "• Verify API token permissions\n"
        "• Try again in a few minutes (may be temporary API issue)"
    )
