"""Tests for the tool schema definitions."""

import re

from tideways_mcp_server.mcp_server.config import (
    ALL_TOOL_SCHEMAS,
    MAX_DATE_RANGE_DAYS,
    TOOL_CATEGORIES,
    get_tool_category,
    validate_tool_definitions,
)
from tideways_mcp_server.utils.date_utils import MAX_TRACE_RANGE_DAYS


def test_definitions_are_valid():
    assert validate_tool_definitions() is True


def test_tool_names():
    assert list(ALL_TOOL_SCHEMAS) == [
        "get_performance_metrics",
        "get_performance_summary",
        "get_issues",
        "get_historical_data",
        "get_traces",
    ]


def test_historical_data_requires_date():
    schema = ALL_TOOL_SCHEMAS["get_historical_data"]["inputSchema"]

    assert schema["required"] == ["date"]
    pattern = re.compile(schema["properties"]["date"]["pattern"])
    assert pattern.match("2025-08-09")
    assert not pattern.match("2025-8-9")


def test_enums_match_client_expectations():
    issues = ALL_TOOL_SCHEMAS["get_issues"]["inputSchema"]["properties"]
    traces = ALL_TOOL_SCHEMAS["get_traces"]["inputSchema"]["properties"]
    history = ALL_TOOL_SCHEMAS["get_historical_data"]["inputSchema"]["properties"]

    assert issues["issue_type"]["enum"] == ["error", "slowsql", "deprecated", "all"]
    assert issues["status"]["default"] == "open"
    assert traces["sort_by"]["default"] == "response_time"
    assert traces["sort_order"]["enum"] == ["ASC", "DESC"]
    assert traces["has_callgraph"]["type"] == "boolean"
    assert history["granularity"]["enum"] == ["day", "week", "month"]


def test_trace_range_limit_shared():
    assert MAX_DATE_RANGE_DAYS == MAX_TRACE_RANGE_DAYS == 90


def test_categories():
    assert sorted(name for tools in TOOL_CATEGORIES.values() for name in tools) == sorted(ALL_TOOL_SCHEMAS)
    assert get_tool_category("get_issues") == "issue_tools"
    assert get_tool_category("nope") == "uncategorized"


def test_broken_definition_detected(monkeypatch):
    broken = dict(ALL_TOOL_SCHEMAS)
    broken["get_issues"] = {**broken["get_issues"], "description": ""}
    monkeypatch.setattr(
        "tideways_mcp_server.mcp_server.config.tool_definitions.ALL_TOOL_SCHEMAS", broken
    )

    assert validate_tool_definitions() is False
