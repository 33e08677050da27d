"""Tideways MCP Server.

Wires configuration, the API client and the tool registry into an MCP
low-level ``Server`` and runs it on the stdio transport.
"""

import logging
from typing import Optional

from mcp.server import Server
from mcp.server.models import InitializationOptions
from mcp.server.lowlevel.server import NotificationOptions

from .. import __version__
from ..api_client import HealthStatus, TidewaysClient
from ..config import AppConfig
from ..rate_limiter import RateLimiter
from .handlers.registry import ToolRegistry
from .utils.errors import sanitize_error

logger = logging.getLogger(__name__)

SERVER_NAME = "tideways-mcp-server"

SERVER_INSTRUCTIONS = """You have access to Tideways application performance monitoring data for one project.

- Start with get_performance_metrics or get_performance_summary for an overview of throughput, errors and response times.
- Use get_issues to see open errors, slow SQL and deprecations.
- Use get_traces to drill into individual slow requests; it covers the last 24 hours unless min_date and max_date are given.
- Use get_historical_data to compare a past day, week or month.

Tool results are JSON. Results starting with "Error:" explain what went wrong and how to fix it."""


class TidewaysMCPServer:
    """MCP server exposing Tideways monitoring data as tools."""

    def __init__(
        self,
        config: AppConfig,
        client: Optional[TidewaysClient] = None,
        rate_limiter: Optional[RateLimiter] = None,
    ):
        self.config = config
        self.server: Server = Server(SERVER_NAME)
        self.client = client or TidewaysClient(config.tideways, rate_limiter=rate_limiter)
        self.tool_registry = ToolRegistry()
        self._initialized = False

    async def initialize(self) -> None:
        """Register tools and MCP handlers. Safe to call more than once."""
        if self._initialized:
            return

        self.tool_registry.register_default_tools()
        self.tool_registry.register_mcp_handlers(self.server, self.client)
        self._initialized = True

        logger.info(
            f"Tideways MCP Server initialized with {self.tool_registry.get_tool_count()} tools"
        )

    async def check_connection(self) -> Optional[HealthStatus]:
        """Probe the API once. Failure is logged but never stops the server."""
        try:
            health = await self.client.health_check()
        except Exception as e:
            logger.warning(
                f"Tideways API health check failed, but starting server anyway: {sanitize_error(e)}"
            )
            return None

        if health.healthy:
            logger.info("Tideways API connection verified")
        else:
            logger.warning(
                f"Tideways API health check failed, but starting server anyway: {health.message}"
            )
        return health

    async def run(self, transport_type: str = "stdio") -> None:
        """Run the MCP server with the specified transport.

        Args:
            transport_type: Transport type to use (only "stdio" is supported)
        """
        if transport_type != "stdio":
            raise ValueError(f"Unsupported transport type: {transport_type}")

        await self.initialize()

        tideways = self.config.tideways
        logger.info(
            f"Starting Tideways MCP Server v{__version__} "
            f"(organization={tideways.organization}, project={tideways.project})"
        )
        await self.check_connection()

        from mcp.server.stdio import stdio_server

        try:
            async with stdio_server() as (read_stream, write_stream):
                await self.server.run(
                    read_stream,
                    write_stream,
                    InitializationOptions(
                        server_name=SERVER_NAME,
                        server_version=__version__,
                        capabilities=self.server.get_capabilities(
                            notification_options=NotificationOptions(),
                            experimental_capabilities={},
                        ),
                        instructions=SERVER_INSTRUCTIONS,
                    ),
                )
        finally:
            logger.info("Shutting down Tideways MCP Server")
            self.client.close()
