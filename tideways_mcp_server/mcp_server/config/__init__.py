"""
MCP Server Configuration Package

Tool schema definitions and the limits shared between schemas and handlers.
"""

from .tool_definitions import (
    ALL_TOOL_SCHEMAS,
    TOOL_CATEGORIES,
    TRACE_CONFIG,
    MAX_DATE_RANGE_DAYS,
    PERFORMANCE_TOOLS_SCHEMAS,
    ISSUE_TOOLS_SCHEMAS,
    HISTORICAL_TOOLS_SCHEMAS,
    TRACE_TOOLS_SCHEMAS,
    get_tool_category,
    validate_tool_definitions,
)

__all__ = [
    "ALL_TOOL_SCHEMAS",
    "TOOL_CATEGORIES",
    "TRACE_CONFIG",
    "MAX_DATE_RANGE_DAYS",
    "PERFORMANCE_TOOLS_SCHEMAS",
    "ISSUE_TOOLS_SCHEMAS",
    "HISTORICAL_TOOLS_SCHEMAS",
    "TRACE_TOOLS_SCHEMAS",
    "get_tool_category",
    "validate_tool_definitions",
]
