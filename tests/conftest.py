"""Pytest configuration and shared fixtures."""

import pytest
import os
import logging
from unittest.mock import Mock

from tideways_mcp_server.config import TidewaysConfig

# Disable logging during tests to reduce noise
logging.disable(logging.CRITICAL)


@pytest.fixture(autouse=True)
def clean_env():
    """Clean environment variables before each test."""
    env_vars_to_clean = [
        "TIDEWAYS_TOKEN",
        "TIDEWAYS_ORG",
        "TIDEWAYS_PROJECT",
        "TIDEWAYS_BASE_URL",
        "TIDEWAYS_MAX_RETRIES",
        "TIDEWAYS_REQUEST_TIMEOUT",
        "LOG_LEVEL",
    ]

    # Store original values
    original_values = {}
    for var in env_vars_to_clean:
        original_values[var] = os.environ.get(var)
        if var in os.environ:
            del os.environ[var]

    yield

    # Restore original values
    for var, value in original_values.items():
        if value is not None:
            os.environ[var] = value
        elif var in os.environ:
            del os.environ[var]


@pytest.fixture
def tideways_config():
    """Tideways configuration used by client tests."""
    return TidewaysConfig(
        token="secret-token-123",
        organization="acme",
        project="shop",
        base_url="https://app.tideways.io/apps/api",
        max_retries=3,
        request_timeout_ms=30000,
    )


class FakeClock:
    """Manually advanced millisecond clock with a matching async sleep."""

    def __init__(self, start: float = 0.0):
        self.now = start
        self.sleeps = []

    def __call__(self) -> float:
        return self.now

    async def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds * 1000


@pytest.fixture
def fake_clock():
    """Deterministic clock for rate limiter tests."""
    return FakeClock()


def make_response(status_code=200, json_data=None, headers=None):
    """Build a mock requests.Response."""
    response = Mock()
    response.status_code = status_code
    response.headers = headers or {}
    response.json.return_value = json_data if json_data is not None else {}
    return response


@pytest.fixture
def response_factory():
    """Factory for mock HTTP responses."""
    return make_response
