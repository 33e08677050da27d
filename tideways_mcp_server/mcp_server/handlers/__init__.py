"""
MCP Server Handlers Package

Tool registry and the MCP protocol handlers that dispatch through it.
"""

from .registry import ToolRegistry, UnknownToolError

__all__ = ["ToolRegistry", "UnknownToolError"]
