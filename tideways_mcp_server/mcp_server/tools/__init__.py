"""
MCP Server Tools Package

One async handler per exposed tool, keyed by tool name in ``TOOL_HANDLERS``.
"""

from .handlers import (
    TOOL_HANDLERS,
    ToolHandler,
    ToolOutput,
    handle_get_historical_data,
    handle_get_issues,
    handle_get_performance_metrics,
    handle_get_performance_summary,
    handle_get_traces,
    render_result,
)

__all__ = [
    "TOOL_HANDLERS",
    "ToolHandler",
    "ToolOutput",
    "handle_get_historical_data",
    "handle_get_issues",
    "handle_get_performance_metrics",
    "handle_get_performance_summary",
    "handle_get_traces",
    "render_result",
]
