"""
Tool Definitions Configuration

Input schemas and descriptions for every tool the server exposes. This is the
single source of truth for what ``list_tools`` returns; the handlers in
``mcp_server.tools`` are keyed by the same names.

Descriptions carry "use X instead" hints so a model can pick between the
aggregate and per-request tools without trial and error.
"""

from typing import Dict, Any

from ...utils.date_utils import MAX_TRACE_RANGE_DAYS

TRACE_CONFIG = {
    "MAX_DATE_RANGE_DAYS": MAX_TRACE_RANGE_DAYS,
}

MAX_DATE_RANGE_DAYS = TRACE_CONFIG["MAX_DATE_RANGE_DAYS"]

# Performance Tools Schemas
PERFORMANCE_TOOLS_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "get_performance_metrics": {
        "name": "get_performance_metrics",
        "description": (
            "Retrieve aggregate performance metrics and system-wide statistics in JSON format. "
            "Use for monitoring overall application health, trends, and high-level performance "
            "overview (use get_traces for detailed individual request analysis)."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "ts": {
                    "type": "string",
                    "description": (
                        'End timestamp in Y-m-d H:i format (e.g., "2025-08-12 18:30"). '
                        "Specifies the end time of the last minute to include in the query."
                    ),
                },
                "m": {
                    "type": "number",
                    "minimum": 1,
                    "description": (
                        "Number of minutes backward from timestamp to retrieve data "
                        "(e.g., 60 for 1 hour, 1440 for 24 hours)."
                    ),
                },
                "env": {
                    "type": "string",
                    "description": "Filter by specific environment (production, staging, etc.)",
                },
                "s": {
                    "type": "string",
                    "description": "Filter by specific service name",
                },
            },
            "required": [],
        },
    },
    "get_performance_summary": {
        "name": "get_performance_summary",
        "description": (
            "Retrieve time-series performance summary data in 15-minute intervals in JSON format "
            "for trend analysis and historical comparison. Returns data aggregated in 15-minute "
            "time buckets showing requests, errors, and 95th percentile response times."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "s": {
                    "type": "string",
                    "description": 'Service name to filter by (e.g., "web", "api", "worker"). Default: "web"',
                },
            },
            "required": [],
        },
    },
}

# Issue Tools Schemas
ISSUE_TOOLS_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "get_issues": {
        "name": "get_issues",
        "description": (
            "Retrieve and analyze recent errors, exceptions, and performance issues in JSON "
            "format for actionable insights"
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "issue_type": {
                    "type": "string",
                    "enum": ["error", "slowsql", "deprecated", "all"],
                    "default": "all",
                    "description": "Type of issues to retrieve",
                },
                "status": {
                    "type": "string",
                    "enum": ["open", "new", "resolved", "not_error", "ignored", "all"],
                    "default": "open",
                    "description": "Issue status filter",
                },
                "page": {
                    "type": "number",
                    "minimum": 1,
                    "default": 1,
                    "description": "Page number for pagination",
                },
            },
            "required": [],
        },
    },
}

# Historical Tools Schemas
HISTORICAL_TOOLS_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "get_historical_data": {
        "name": "get_historical_data",
        "description": (
            "Retrieve historical performance data in JSON format for a specific date with "
            "configurable granularity. Analyze daily, weekly, or monthly performance trends, "
            "transaction reports, and time-series metrics."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "date": {
                    "type": "string",
                    "pattern": r"^\d{4}-\d{2}-\d{2}$",
                    "description": "Date in YYYY-MM-DD format for the historical data",
                },
                "granularity": {
                    "type": "string",
                    "enum": ["day", "week", "month"],
                    "default": "day",
                    "description": (
                        "Granularity for data aggregation. Day shows hourly breakdown, "
                        "week/month show daily breakdown."
                    ),
                },
            },
            "required": ["date"],
        },
    },
}

# Trace Tools Schemas
TRACE_TOOLS_SCHEMAS: Dict[str, Dict[str, Any]] = {
    "get_traces": {
        "name": "get_traces",
        "description": (
            "Analyze individual trace samples in JSON format for detailed bottleneck "
            "identification and performance debugging. Use for investigating specific slow "
            "requests, not system-wide statistics (use get_performance_metrics for aggregate data). "
            "Defaults to the last 24 hours when no dates are given."
        ),
        "inputSchema": {
            "type": "object",
            "properties": {
                "env": {
                    "type": "string",
                    "description": 'Environment name (e.g., "production", "staging")',
                },
                "s": {
                    "type": "string",
                    "description": 'Service name (e.g., "web", "api", "worker")',
                },
                "transaction_name": {
                    "type": "string",
                    "description": "Filter by specific transaction/endpoint name",
                },
                "has_callgraph": {
                    "type": "boolean",
                    "description": "Only return traces with detailed callgraph data",
                },
                "search": {
                    "type": "string",
                    "description": (
                        "Word-based search on transaction_name, host, and URL text tokens. "
                        "This is no fulltext search."
                    ),
                },
                "min_date": {
                    "type": "string",
                    "description": (
                        'Minimal date for traces in YYYY-MM-DD HH:MM format (e.g., "2024-01-15 14:30"). '
                        'Convert natural language like "1 hour ago" to this format. Requires max_date.'
                    ),
                },
                "max_date": {
                    "type": "string",
                    "description": (
                        'Maximal date for traces in YYYY-MM-DD HH:MM format (e.g., "2024-01-15 16:30"). '
                        'Convert natural language like "now" to this format. Requires min_date.'
                    ),
                },
                "min_response_time_ms": {
                    "type": "number",
                    "minimum": 0,
                    "description": "Minimum response time in milliseconds for filtering slow traces",
                },
                "max_response_time_ms": {
                    "type": "number",
                    "minimum": 0,
                    "description": "Maximum response time in milliseconds for filtering traces",
                },
                "sort_by": {
                    "type": "string",
                    "enum": ["response_time", "date", "memory"],
                    "default": "response_time",
                    "description": "Field to sort traces by",
                },
                "sort_order": {
                    "type": "string",
                    "enum": ["ASC", "DESC"],
                    "default": "DESC",
                    "description": "Sort order (DESC = slowest/newest first)",
                },
            },
            "required": [],
        },
    },
}

# All tool schemas combined, in the order list_tools reports them
ALL_TOOL_SCHEMAS: Dict[str, Dict[str, Any]] = {
    **PERFORMANCE_TOOLS_SCHEMAS,
    **ISSUE_TOOLS_SCHEMAS,
    **HISTORICAL_TOOLS_SCHEMAS,
    **TRACE_TOOLS_SCHEMAS,
}

# Tool categories for organization
TOOL_CATEGORIES = {
    "performance_tools": list(PERFORMANCE_TOOLS_SCHEMAS.keys()),
    "issue_tools": list(ISSUE_TOOLS_SCHEMAS.keys()),
    "historical_tools": list(HISTORICAL_TOOLS_SCHEMAS.keys()),
    "trace_tools": list(TRACE_TOOLS_SCHEMAS.keys()),
}


def get_tool_category(tool_name: str) -> str:
    """Return the category a tool belongs to, or 'uncategorized'."""
    for category, tools in TOOL_CATEGORIES.items():
        if tool_name in tools:
            return category
    return "uncategorized"


def validate_tool_definitions() -> bool:
    """
    Validate that tool definitions are consistent and complete.

    Every categorized tool must have a schema, and every schema needs a
    matching ``name``, a description and an object ``inputSchema`` whose
    required fields are declared properties.

    Returns:
        True if all definitions are valid
    """
    categorized = [name for tools in TOOL_CATEGORIES.values() for name in tools]
    if sorted(categorized) != sorted(ALL_TOOL_SCHEMAS):
        return False

    for tool_name, schema in ALL_TOOL_SCHEMAS.items():
        if schema.get("name") != tool_name or not schema.get("description"):
            return False

        input_schema = schema.get("inputSchema")
        if not isinstance(input_schema, dict) or input_schema.get("type") != "object":
            return False

        properties = input_schema.get("properties", {})
        for required in input_schema.get("required", []):
            if required not in properties:
                return False

    return True
