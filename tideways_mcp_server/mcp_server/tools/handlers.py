"""Tool handlers for the Tideways MCP server.

Each handler takes the shared API client and the raw argument bag of one tool
call, runs the matching client method and renders the ``ApiResult`` as text:
indented JSON on success, ``Error: ...`` with user guidance on failure.
"""

import logging
from typing import Any, Awaitable, Callable, Dict, Optional, TYPE_CHECKING

from pydantic import BaseModel

from ...errors import format_error_for_user
from ...utils.date_utils import add_default_date_range
from ..utils.serialization import safe_json_dumps

if TYPE_CHECKING:
    from ...api_client import ApiResult, TidewaysClient

logger = logging.getLogger(__name__)

TRACE_ARGUMENTS = (
    "env",
    "s",
    "transaction_name",
    "has_callgraph",
    "search",
    "min_date",
    "max_date",
    "min_response_time_ms",
    "max_response_time_ms",
    "sort_by",
    "sort_order",
)


class ToolOutput(BaseModel):
    """Rendered result of one tool call."""

    text: str
    is_error: bool = False


ToolHandler = Callable[["TidewaysClient", Dict[str, Any]], Awaitable[ToolOutput]]


def _as_int(value: Any) -> Any:
    # JSON numbers arrive as floats from some hosts; 60.0 should go out as 60
    if isinstance(value, float) and value.is_integer():
        return int(value)
    return value


def render_result(result: "ApiResult") -> ToolOutput:
    """Turn an ApiResult into tool output text."""
    if result.success:
        return ToolOutput(text=safe_json_dumps(result.data))

    return ToolOutput(
        text=f"Error: {format_error_for_user(result.error)}", is_error=True
    )


async def handle_get_performance_metrics(
    client: "TidewaysClient", arguments: Dict[str, Any]
) -> ToolOutput:
    result = await client.get_performance_metrics(
        ts=arguments.get("ts"),
        m=_as_int(arguments.get("m")),
        env=arguments.get("env"),
        s=arguments.get("s"),
    )
    return render_result(result)


async def handle_get_performance_summary(
    client: "TidewaysClient", arguments: Dict[str, Any]
) -> ToolOutput:
    result = await client.get_performance_summary(s=arguments.get("s"))
    return render_result(result)


async def handle_get_issues(
    client: "TidewaysClient", arguments: Dict[str, Any]
) -> ToolOutput:
    result = await client.get_issues(
        issue_type=arguments.get("issue_type"),
        status=arguments.get("status"),
        page=_as_int(arguments.get("page")),
    )
    return render_result(result)


async def handle_get_traces(
    client: "TidewaysClient", arguments: Dict[str, Any]
) -> ToolOutput:
    """Fetch trace samples, defaulting to the last 24 hours when no dates are given."""
    params: Dict[str, Optional[Any]] = {
        key: arguments.get(key) for key in TRACE_ARGUMENTS if arguments.get(key) is not None
    }
    params = add_default_date_range(params)
    logger.debug(f"Trace query parameters: {params}")

    result = await client.get_traces(**params)
    return render_result(result)


async def handle_get_historical_data(
    client: "TidewaysClient", arguments: Dict[str, Any]
) -> ToolOutput:
    result = await client.get_historical_data(
        date=arguments.get("date"),
        granularity=arguments.get("granularity") or "day",
    )
    return render_result(result)


TOOL_HANDLERS: Dict[str, ToolHandler] = {
    "get_performance_metrics": handle_get_performance_metrics,
    "get_performance_summary": handle_get_performance_summary,
    "get_issues": handle_get_issues,
    "get_traces": handle_get_traces,
    "get_historical_data": handle_get_historical_data,
}
