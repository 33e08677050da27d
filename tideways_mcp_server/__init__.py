"""
Tideways MCP Server

An MCP (Model Context Protocol) server that exposes Tideways performance
monitoring data (metrics, issues, traces, historical reports) as tools for
AI assistants.
"""

# Logging is configured at app entry point via tideways_mcp_server/logging_utils.py
# No need to configure logging here.

__version__ = "0.1.0"
__author__ = "Tideways MCP Server Team"
__description__ = "MCP server for Tideways performance monitoring"
