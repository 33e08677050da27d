"""Tests for the MCP tool handlers."""

import json
from unittest.mock import AsyncMock, Mock, patch

import pytest

from tideways_mcp_server.api_client import ApiResult
from tideways_mcp_server.errors import ErrorKind, ErrorRecord, validation_error
from tideways_mcp_server.mcp_server.config.tool_definitions import ALL_TOOL_SCHEMAS
from tideways_mcp_server.mcp_server.tools.handlers import (
    TOOL_HANDLERS,
    ToolOutput,
    handle_get_historical_data,
    handle_get_issues,
    handle_get_performance_metrics,
    handle_get_performance_summary,
    handle_get_traces,
    render_result,
)


@pytest.fixture
def mock_client():
    """API client whose convenience methods return a canned success."""
    client = Mock()
    ok = ApiResult.success_result({"zeta": 1, "alpha": 2})
    for method in (
        "get_performance_metrics",
        "get_performance_summary",
        "get_issues",
        "get_traces",
        "get_historical_data",
    ):
        setattr(client, method, AsyncMock(return_value=ok))
    return client


class TestRenderResult:
    """Test turning ApiResults into tool text."""

    def test_success_is_indented_json_in_order(self):
        output = render_result(ApiResult.success_result({"zeta": 1, "alpha": 2}))

        assert output == ToolOutput(text='{\n  "zeta": 1,\n  "alpha": 2\n}', is_error=False)

    def test_failure_is_prefixed_error_text(self):
        record = ErrorRecord(kind=ErrorKind.AUTH, message="Authentication failed.", http_status=401)

        output = render_result(ApiResult.error_result(record, attempts=1))

        assert output.is_error
        assert output.text.startswith("Error: Authentication failed.")
        assert "TIDEWAYS_TOKEN" in output.text


class TestHandlers:
    """Test argument mapping for each tool."""

    def test_every_schema_has_a_handler(self):
        assert set(TOOL_HANDLERS) == set(ALL_TOOL_SCHEMAS)

    @pytest.mark.asyncio
    async def test_performance_metrics(self, mock_client):
        output = await handle_get_performance_metrics(
            mock_client, {"ts": "2025-08-12 18:30", "m": 60.0, "env": "staging"}
        )

        mock_client.get_performance_metrics.assert_awaited_once_with(
            ts="2025-08-12 18:30", m=60, env="staging", s=None
        )
        assert json.loads(output.text) == {"zeta": 1, "alpha": 2}

    @pytest.mark.asyncio
    async def test_performance_summary(self, mock_client):
        await handle_get_performance_summary(mock_client, {})

        mock_client.get_performance_summary.assert_awaited_once_with(s=None)

    @pytest.mark.asyncio
    async def test_issues(self, mock_client):
        await handle_get_issues(mock_client, {"issue_type": "error", "page": 2.0})

        mock_client.get_issues.assert_awaited_once_with(issue_type="error", status=None, page=2)

    @pytest.mark.asyncio
    async def test_historical_data_default_granularity(self, mock_client):
        await handle_get_historical_data(mock_client, {"date": "2025-08-09"})

        mock_client.get_historical_data.assert_awaited_once_with(
            date="2025-08-09", granularity="day"
        )

    @pytest.mark.asyncio
    async def test_historical_validation_failure(self, mock_client):
        mock_client.get_historical_data.return_value = ApiResult.error_result(
            validation_error("Invalid date format. Expected YYYY-MM-DD, got: tomorrow")
        )

        output = await handle_get_historical_data(mock_client, {"date": "tomorrow"})

        assert output.is_error
        assert output.text.startswith("Error: Invalid date format.")

    @pytest.mark.asyncio
    async def test_traces_default_window(self, mock_client):
        with patch(
            "tideways_mcp_server.mcp_server.tools.handlers.add_default_date_range",
            side_effect=lambda params: {**params, "min_date": "A", "max_date": "B"},
        ):
            await handle_get_traces(mock_client, {"env": "production", "unknown": 1})

        mock_client.get_traces.assert_awaited_once_with(
            env="production", min_date="A", max_date="B"
        )

    @pytest.mark.asyncio
    async def test_traces_fills_real_dates_when_absent(self, mock_client):
        await handle_get_traces(mock_client, {})

        kwargs = mock_client.get_traces.call_args.kwargs
        assert kwargs["min_date"].endswith("Z")
        assert kwargs["max_date"].endswith("Z")
        assert kwargs["min_date"] < kwargs["max_date"]

    @pytest.mark.asyncio
    async def test_traces_given_dates_pass_through(self, mock_client):
        arguments = {
            "min_date": "2025-08-09 10:00",
            "max_date": "2025-08-09 12:00",
            "has_callgraph": False,
            "min_response_time_ms": 0,
        }

        await handle_get_traces(mock_client, arguments)

        mock_client.get_traces.assert_awaited_once_with(**arguments)
