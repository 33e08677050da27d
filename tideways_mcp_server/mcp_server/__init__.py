"""MCP Server implementation for Tideways performance monitoring."""

from .server import TidewaysMCPServer

from .utils import (
    MCPJSONEncoder,
    safe_json_dumps,
    sanitize_error,
)

from .config import (
    ALL_TOOL_SCHEMAS,
    TOOL_CATEGORIES,
    validate_tool_definitions,
)

from .handlers import ToolRegistry, UnknownToolError

__all__ = [
    "TidewaysMCPServer",
    "ToolRegistry",
    "UnknownToolError",
    "MCPJSONEncoder",
    "safe_json_dumps",
    "sanitize_error",
    "ALL_TOOL_SCHEMAS",
    "TOOL_CATEGORIES",
    "validate_tool_definitions",
]
