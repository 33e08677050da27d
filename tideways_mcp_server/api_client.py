"""Tideways REST API client with rate limiting, retries and error classification."""

import asyncio
import contextvars
import logging
import re
from datetime import datetime, timedelta
from typing import Any, Awaitable, Callable, Dict, Generic, Literal, Optional, TypeVar
from urllib.parse import urljoin

import requests
from pydantic import BaseModel, Field, model_validator

from . import __version__
from .config import TidewaysConfig
from .errors import (
    ErrorRecord,
    classify_error,
    format_error_for_user,
    get_header,
    get_retry_delay_ms,
    is_retryable,
    validation_error,
)
from .rate_limiter import RateLimiter
from .utils.date_utils import MAX_TRACE_RANGE_DAYS, parse_trace_date
from .utils.redaction import redact_headers
from .utils.request_context import (
    ensure_request_id,
    format_request_id,
    get_request_id,
    with_request_id,
)

T = TypeVar("T")

DATE_PATTERN = re.compile(r"[0-9]{4}-[0-9]{2}-[0-9]{2}")
VALID_GRANULARITIES = ("day", "week", "month")


class ApiResult(BaseModel, Generic[T]):
    """Outcome of one client call: ``data`` on success XOR ``error`` on failure."""

    success: bool = Field(description="Whether the call succeeded")
    data: Optional[T] = Field(None, description="Decoded response payload")
    error: Optional[ErrorRecord] = Field(None, description="Classified failure")
    attempts: int = Field(0, description="Transport calls actually made")
    retries_exhausted: bool = Field(
        False, description="True when a retryable failure hit the retry cap"
    )
    request_id: Optional[str] = Field(None, description="Request ID of the call")
    timestamp: datetime = Field(default_factory=datetime.now)

    @model_validator(mode="after")
    def _check_tag(self):
        if self.success and self.error is not None:
            raise ValueError("successful result cannot carry an error")
        if not self.success and self.error is None:
            raise ValueError("failed result must carry an error")
        return self

    @classmethod
    def success_result(
        cls, data: T, attempts: int = 1, request_id: Optional[str] = None
    ) -> "ApiResult[T]":
        return cls(success=True, data=data, attempts=attempts, request_id=request_id)

    @classmethod
    def error_result(
        cls,
        error: ErrorRecord,
        attempts: int = 0,
        retries_exhausted: bool = False,
        request_id: Optional[str] = None,
    ) -> "ApiResult[T]":
        return cls(
            success=False,
            error=error,
            attempts=attempts,
            retries_exhausted=retries_exhausted,
            request_id=request_id,
        )


class HealthStatus(BaseModel):
    """Result of the token introspection probe."""

    status: Literal["healthy", "unhealthy"]
    message: str
    details: Optional[Dict[str, Any]] = None

    @property
    def healthy(self) -> bool:
        return self.status == "healthy"


class TidewaysClient:
    """Client for the Tideways REST API.

    Every request goes through the shared rate limiter. Failures are
    classified into ``ErrorRecord``s and retried when the error kind allows
    it; callers always get an ``ApiResult`` back, never a raw exception.
    """

    def __init__(
        self,
        config: TidewaysConfig,
        rate_limiter: Optional[RateLimiter] = None,
        sleep: Optional[Callable[[float], Awaitable[None]]] = None,
    ):
        self.config = config
        self.base_url = config.base_url
        self.rate_limiter = rate_limiter or RateLimiter()
        self._sleep = sleep or asyncio.sleep
        self.session = requests.Session()
        self.logger = logging.getLogger(__name__)

        self.session.headers.update(
            {
                "Authorization": f"Bearer {config.token}",
                "Accept": "application/json",
                "Content-Type": "application/json",
                "User-Agent": f"Tideways-MCP-Server/{__version__}",
            }
        )
        self.logger.debug(
            f"Session headers: {redact_headers(self.session.headers, config.token)}"
        )

    def close(self) -> None:
        self.session.close()

    def _url(self, endpoint: str) -> str:
        # Strip the leading slash so urljoin keeps the base path
        return urljoin(self.base_url + "/", endpoint.lstrip("/"))

    def _project_endpoint(self, resource: str) -> str:
        return f"/{self.config.organization}/{self.config.project}/{resource}"

    def _observe_rate_limit_headers(self, response: requests.Response) -> None:
        remaining = get_header(response.headers, "x-ratelimit-remaining")
        reset = get_header(response.headers, "x-ratelimit-reset")
        if remaining is None or reset is None:
            return
        try:
            self.rate_limiter.update_limits(int(remaining), int(reset))
        except ValueError:
            self.logger.debug(
                f"Ignoring malformed rate limit headers: remaining={remaining!r} reset={reset!r}"
            )

    def _send(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> Any:
        """Perform one blocking HTTP request. Raises ``requests`` exceptions.

        ``timeout`` bounds the connect and each socket read separately, so a
        server that keeps trickling bytes can take longer than
        ``request_timeout_ms`` in total.
        """
        url = self._url(endpoint)
        request_id = format_request_id(request_id or get_request_id())

        safe_headers = redact_headers(self.session.headers, self.config.token)
        self.logger.debug(
            f"[{request_id}] API request: {method} {url} params={params} headers={safe_headers}"
        )

        response = self.session.request(
            method=method,
            url=url,
            params=params,
            timeout=self.config.request_timeout_seconds,
        )
        self._observe_rate_limit_headers(response)
        self.logger.debug(f"[{request_id}] API response: {response.status_code} {url}")

        if response.status_code >= 400:
            raise requests.exceptions.HTTPError(
                f"HTTP {response.status_code} for {method} {url}", response=response
            )

        if response.status_code == 204:
            return {}

        return response.json()

    async def _send_async(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict[str, Any]] = None,
        request_id: Optional[str] = None,
    ) -> Any:
        # Run the blocking session call in a thread pool to avoid blocking the loop.
        # Executor threads do not inherit contextvars, so run inside a copy.
        loop = asyncio.get_running_loop()
        context = contextvars.copy_context()
        return await loop.run_in_executor(
            None,
            lambda: context.run(self._send, method, endpoint, params, request_id),
        )

    @with_request_id()
    async def fetch(
        self, endpoint: str, params: Optional[Dict[str, Any]] = None
    ) -> ApiResult[Any]:
        """
        GET ``endpoint`` with retries.

        Attempts run from 0 through ``config.max_retries``. Each attempt waits
        for the rate limiter first. Failures that are not retryable, or the
        last allowed attempt, end the loop with a failed result.

        Args:
            endpoint: Path relative to the base URL
            params: Query parameters

        Returns:
            ApiResult with the decoded JSON payload or the last ErrorRecord
        """
        request_id = ensure_request_id()
        max_retries = self.config.max_retries
        last_error: Optional[ErrorRecord] = None
        attempts = 0

        for attempt in range(max_retries + 1):
            await self.rate_limiter.acquire()
            attempts += 1

            try:
                data = await self._send_async("GET", endpoint, params, request_id)
                if attempt > 0:
                    self.logger.info(
                        f"[{request_id}] GET {endpoint} succeeded on attempt {attempts}"
                    )
                return ApiResult.success_result(
                    data, attempts=attempts, request_id=request_id
                )
            except Exception as e:
                last_error = classify_error(e, "GET", self._url(endpoint))

            if not is_retryable(last_error):
                self.logger.warning(
                    f"[{request_id}] Non-retriable {last_error.kind.value} error for GET {endpoint}"
                )
                break

            if attempt >= max_retries:
                self.logger.error(
                    f"[{request_id}] All {attempts} attempts failed for GET {endpoint}"
                )
                break

            delay_ms = get_retry_delay_ms(last_error, attempt)
            self.logger.warning(
                f"[{request_id}] Retrying GET {endpoint} "
                f"(attempt {attempt + 1}/{max_retries}) in {delay_ms}ms: {last_error.message}"
            )
            await self._sleep(delay_ms / 1000)

        return ApiResult.error_result(
            last_error,
            attempts=attempts,
            retries_exhausted=is_retryable(last_error),
            request_id=request_id,
        )

    async def get_performance_metrics(
        self,
        ts: Optional[str] = None,
        m: Optional[int] = None,
        env: Optional[str] = None,
        s: Optional[str] = None,
    ) -> ApiResult[Dict[str, Any]]:
        """
        Get aggregate performance metrics.

        Args:
            ts: End timestamp in 'Y-m-d H:i' format
            m: Minutes backward from ``ts``
            env: Environment, defaults to 'production'
            s: Service, defaults to 'web'
        """
        params: Dict[str, Any] = {"env": env or "production", "s": s or "web"}
        if ts:
            params["ts"] = ts
        if m:
            params["m"] = m

        self.logger.debug(f"Performance metrics parameters: {params}")
        return await self.fetch(self._project_endpoint("performance"), params)

    async def get_performance_summary(
        self, s: Optional[str] = None
    ) -> ApiResult[Dict[str, Any]]:
        """Get the 15-minute bucketed performance summary for a service (default 'web')."""
        params = {"s": s or "web"}
        self.logger.debug(f"Performance summary parameters: {params}")
        return await self.fetch(self._project_endpoint("summary"), params)

    async def get_issues(
        self,
        issue_type: Optional[str] = None,
        status: Optional[str] = None,
        page: Optional[int] = None,
    ) -> ApiResult[Dict[str, Any]]:
        """
        Get errors, slow SQL and deprecation issues.

        Args:
            issue_type: 'error', 'slowsql', 'deprecated' or 'all' (no filter)
            status: Issue status, defaults to 'open'
            page: Page number, defaults to 1
        """
        params: Dict[str, Any] = {"status": status or "open", "page": page or 1}
        if issue_type and issue_type != "all":
            params["issueType"] = issue_type

        return await self.fetch(self._project_endpoint("issues"), params)

    async def get_traces(
        self,
        env: Optional[str] = None,
        s: Optional[str] = None,
        transaction_name: Optional[str] = None,
        has_callgraph: Optional[bool] = None,
        search: Optional[str] = None,
        min_date: Optional[str] = None,
        max_date: Optional[str] = None,
        min_response_time_ms: Optional[float] = None,
        max_response_time_ms: Optional[float] = None,
        sort_by: Optional[str] = None,
        sort_order: Optional[str] = None,
    ) -> ApiResult[Dict[str, Any]]:
        """
        Get individual trace samples.

        Date and response time bounds are validated locally before any
        request is made: when both ends are given the lower one must be
        smaller, and a date range may not exceed 90 days.
        """
        if min_date and max_date:
            start = parse_trace_date(min_date)
            end = parse_trace_date(max_date)
            if start is None or end is None:
                bad = min_date if start is None else max_date
                return ApiResult.error_result(
                    validation_error(
                        f"Invalid date format. Expected YYYY-MM-DD HH:MM, got: {bad}"
                    )
                )
            if start >= end:
                return ApiResult.error_result(
                    validation_error("min_date must be earlier than max_date")
                )
            if end - start > timedelta(days=MAX_TRACE_RANGE_DAYS):
                return ApiResult.error_result(
                    validation_error(
                        f"Date range cannot exceed {MAX_TRACE_RANGE_DAYS} days"
                    )
                )

        if min_response_time_ms is not None and max_response_time_ms is not None:
            if min_response_time_ms >= max_response_time_ms:
                return ApiResult.error_result(
                    validation_error(
                        "min_response_time_ms must be less than max_response_time_ms"
                    )
                )

        params: Dict[str, Any] = {
            "env": env,
            "s": s,
            "transaction_name": transaction_name,
            "has_callgraph": has_callgraph,
            "search": search,
            "min_date": min_date,
            "max_date": max_date,
            "min_response_time_ms": min_response_time_ms,
            "max_response_time_ms": max_response_time_ms,
            "sort_by": sort_by or "response_time",
            "sort_order": sort_order or "DESC",
        }
        params = {key: value for key, value in params.items() if value is not None}
        if "has_callgraph" in params:
            params["has_callgraph"] = "true" if params["has_callgraph"] else "false"

        return await self.fetch(self._project_endpoint("traces"), params)

    async def get_historical_data(
        self, date: str, granularity: str = "day"
    ) -> ApiResult[Dict[str, Any]]:
        """
        Get the historical report for a date.

        Args:
            date: Date in YYYY-MM-DD format
            granularity: 'day' (hourly breakdown), 'week' or 'month' (daily breakdown)
        """
        if not isinstance(date, str) or not DATE_PATTERN.fullmatch(date):
            return ApiResult.error_result(
                validation_error(
                    f"Invalid date format. Expected YYYY-MM-DD, got: {date}"
                )
            )

        granularity = granularity or "day"
        if granularity not in VALID_GRANULARITIES:
            return ApiResult.error_result(
                validation_error(
                    f"Invalid granularity. Expected one of: {', '.join(VALID_GRANULARITIES)}, "
                    f"got: {granularity}"
                )
            )

        endpoint = self._project_endpoint(f"history/{date}")
        if granularity != "day":
            endpoint += f"/{granularity}"

        self.logger.debug(
            f"Fetching historical data: date={date} granularity={granularity} endpoint={endpoint}"
        )
        return await self.fetch(endpoint, {})

    @with_request_id()
    async def health_check(self) -> HealthStatus:
        """
        Verify the token against the introspection endpoint.

        One attempt, no retries. Never raises: failures come back as an
        unhealthy status with the error category for diagnostics.
        """
        await self.rate_limiter.acquire()

        try:
            data = await self._send_async("GET", "/_token", request_id=get_request_id())
        except Exception as e:
            error = classify_error(e, "GET", self._url("/_token"))
            return HealthStatus(
                status="unhealthy",
                message=format_error_for_user(error),
                details={
                    "category": error.kind.value,
                    "status_code": error.http_status,
                },
            )

        if isinstance(data, dict) and data.get("scopes"):
            self.logger.info(
                f"Tideways API token verified: scopes={data['scopes']} "
                f"projects={len(data.get('projects') or [])}"
            )
            return HealthStatus(
                status="healthy", message="Successfully connected to Tideways API"
            )

        return HealthStatus(status="healthy", message="Connected to Tideways API")
