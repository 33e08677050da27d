"""Shared utilities: request context, header redaction and date helpers."""

from .request_context import (
    REQUEST_ID_CONTEXT,
    ensure_request_id,
    format_request_id,
    generate_request_id,
    get_request_id,
    set_request_id,
    with_request_id,
)
from .redaction import REDACTED, SENSITIVE_HEADERS, redact_headers
from .date_utils import (
    MAX_TRACE_RANGE_DAYS,
    add_default_date_range,
    format_date_for_api,
    parse_trace_date,
)

__all__ = [
    "REQUEST_ID_CONTEXT",
    "ensure_request_id",
    "format_request_id",
    "generate_request_id",
    "get_request_id",
    "set_request_id",
    "with_request_id",
    "REDACTED",
    "SENSITIVE_HEADERS",
    "redact_headers",
    "MAX_TRACE_RANGE_DAYS",
    "add_default_date_range",
    "format_date_for_api",
    "parse_trace_date",
]
