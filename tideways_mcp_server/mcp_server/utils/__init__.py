"""Helpers shared by the MCP server modules: JSON output and error sanitizing."""

from .serialization import MCPJSONEncoder, safe_json_dumps
from .errors import sanitize_error

__all__ = [
    "MCPJSONEncoder",
    "safe_json_dumps",
    "sanitize_error",
]
