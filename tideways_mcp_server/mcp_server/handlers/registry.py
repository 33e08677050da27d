"""Tool registry for MCP server - maps tool names to definitions and handlers."""

import logging
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from mcp.server import Server
from mcp.types import TextContent, Tool

from ...errors import ErrorKind, ErrorRecord, format_error_for_user
from ...utils.request_context import generate_request_id, set_request_id
from ..config.tool_definitions import ALL_TOOL_SCHEMAS, get_tool_category
from ..tools.handlers import TOOL_HANDLERS, ToolHandler, ToolOutput
from ..utils.errors import sanitize_error

if TYPE_CHECKING:
    from ...api_client import TidewaysClient

logger = logging.getLogger(__name__)


class UnknownToolError(ValueError):
    """Raised when a tool name has no registered handler."""

    def __init__(self, name: str):
        self.name = name
        super().__init__(f"Unknown tool: {name}")


class ToolRegistry:
    """
    Manages tool registration, discovery and dispatch for the MCP server.

    Dispatch is a plain lookup by exact tool name. The registry does no
    retrying, error classification or argument rewriting of its own; that
    belongs to the handlers and the API client behind them.
    """

    def __init__(self):
        self._tools: Dict[str, Tool] = {}
        self._tool_handlers: Dict[str, ToolHandler] = {}
        self._tool_metadata: Dict[str, Dict[str, Any]] = {}

    def register_tool(
        self,
        name: str,
        tool: Tool,
        handler: ToolHandler,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        """
        Register a tool with its handler and optional metadata.

        Args:
            name: Tool name/identifier
            tool: MCP Tool definition
            handler: Async function taking ``(client, arguments)``
            metadata: Optional metadata for the tool (category, etc.)
        """
        if name in self._tools:
            logger.warning(f"Tool '{name}' is already registered, overwriting")

        self._tools[name] = tool
        self._tool_handlers[name] = handler
        self._tool_metadata[name] = metadata or {}

        logger.debug(f"Registered tool: {name}")

    def register_default_tools(self) -> None:
        """Register every tool from the schema definitions with its handler."""
        for name, schema in ALL_TOOL_SCHEMAS.items():
            handler = TOOL_HANDLERS.get(name)
            if handler is None:
                raise RuntimeError(f"No handler implemented for tool: {name}")

            self.register_tool(
                name,
                Tool(
                    name=schema["name"],
                    description=schema["description"],
                    inputSchema=schema["inputSchema"],
                ),
                handler,
                metadata={"category": get_tool_category(name)},
            )

    def unregister_tool(self, name: str) -> bool:
        """Unregister a tool by name. Returns False if it was not registered."""
        if name not in self._tools:
            return False

        del self._tools[name]
        del self._tool_handlers[name]
        del self._tool_metadata[name]

        logger.debug(f"Unregistered tool: {name}")
        return True

    def get_tool_handler(self, name: str) -> Optional[ToolHandler]:
        return self._tool_handlers.get(name)

    def get_tool_definition(self, name: str) -> Optional[Tool]:
        return self._tools.get(name)

    def get_tool_metadata(self, name: str) -> Dict[str, Any]:
        return self._tool_metadata.get(name, {})

    def list_tools(self) -> List[Tool]:
        """All registered tool definitions, in registration order."""
        return list(self._tools.values())

    def list_tool_names(self) -> List[str]:
        return list(self._tools.keys())

    def get_tool_count(self) -> int:
        return len(self._tools)

    def has_tool(self, name: str) -> bool:
        return name in self._tools

    def get_tool_stats(self) -> Dict[str, Any]:
        """
        Get registry statistics and summary information.

        Returns:
            Dict: total tool count, per-category counts and tool names
        """
        categories: Dict[str, int] = {}
        for metadata in self._tool_metadata.values():
            category = metadata.get("category", "uncategorized")
            categories[category] = categories.get(category, 0) + 1

        return {
            "total_tools": len(self._tools),
            "categories": categories,
            "tool_names": list(self._tools.keys()),
        }

    async def execute_tool(
        self,
        name: str,
        arguments: Optional[Dict[str, Any]],
        client: "TidewaysClient",
    ) -> ToolOutput:
        """
        Run the handler registered under ``name``.

        Args:
            name: Exact tool name
            arguments: Argument bag from the caller (``None`` means no arguments)
            client: API client passed through to the handler

        Returns:
            ToolOutput produced by the handler

        Raises:
            UnknownToolError: if no handler is registered under ``name``
        """
        handler = self.get_tool_handler(name)
        if handler is None:
            raise UnknownToolError(name)

        return await handler(client, arguments or {})

    def register_mcp_handlers(self, server: Server, client: "TidewaysClient") -> None:
        """
        Register the MCP ``list_tools`` and ``call_tool`` handlers.

        Args:
            server: MCP server instance
            client: API client handed to every tool call
        """

        @server.list_tools()
        async def list_tools() -> List[Tool]:
            """List all available MCP tools."""
            return self.list_tools()

        @server.call_tool()
        async def call_tool(name: str, arguments: Optional[Dict[str, Any]]) -> List[TextContent]:
            """Handle MCP tool calls with request ID tracking."""
            request_id = generate_request_id()
            set_request_id(request_id)

            logger.info(f"[{request_id}] MCP tool call: {name} with arguments: {arguments}")

            try:
                output = await self.execute_tool(name, arguments, client)
            except Exception as e:
                logger.exception(f"[{request_id}] Error calling tool {name}")
                error = ErrorRecord(
                    kind=ErrorKind.UNKNOWN,
                    message=f"Unexpected error: {sanitize_error(e)}",
                )
                return [TextContent(type="text", text=f"Error: {format_error_for_user(error)}")]

            if output.is_error:
                logger.warning(f"[{request_id}] MCP tool '{name}' returned an error")
            else:
                logger.info(f"[{request_id}] MCP tool '{name}' completed successfully")

            return [TextContent(type="text", text=output.text)]

    def clear_registry(self) -> None:
        """Clear all registered tools (useful for testing)."""
        self._tools.clear()
        self._tool_handlers.clear()
        self._tool_metadata.clear()
        logger.debug("Cleared tool registry")
