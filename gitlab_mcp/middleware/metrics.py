"""Prometheus Metrics Middleware.

Collects and exposes metrics for the GitLab MCP Gateway.
"""

import re
import time
from typing import Callable

from fastapi import Request, Response
from prometheus_client import Counter, Gauge, Histogram, Info
from starlette.middleware.base import BaseHTTPMiddleware

from ..config import get_settings

settings = get_settings()
prefix = settings.metrics_prefix


# =============================================================================
# Metrics Definitions
# =============================================================================

# HTTP Metrics
HTTP_REQUESTS_TOTAL = Counter(
    f"{prefix}_http_requests_total",
    "Total HTTP requests",
    ["method", "endpoint", "status_code"],
)

HTTP_REQUEST_DURATION_SECONDS = Histogram(
    f"{prefix}_http_request_duration_seconds",
    "HTTP request duration in seconds",
    ["method", "endpoint"],
    buckets=(0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0),
)

HTTP_REQUESTS_IN_PROGRESS = Gauge(
    f"{prefix}_http_requests_in_progress",
    "Number of HTTP requests in progress",
    ["method", "endpoint"],
)

# Tool Metrics
TOOL_INVOCATIONS_TOTAL = Counter(
    f"{prefix}_tool_invocations_total",
    "Total tool invocations",
    ["tool_name", "status"],
)

TOOL_INVOCATION_DURATION_SECONDS = Histogram(
    f"{prefix}_tool_invocation_duration_seconds",
    "Tool invocation duration in seconds",
    ["tool_name"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 30.0),
)

TOOLS_VISIBLE = Gauge(
    f"{prefix}_tools_visible",
    "Number of tools exposed in the catalog",
)

# Upstream Metrics
UPSTREAM_REQUESTS_TOTAL = Counter(
    f"{prefix}_upstream_requests_total",
    "Total GitLab API requests",
    ["method", "status_code"],
)

UPSTREAM_REQUEST_DURATION_SECONDS = Histogram(
    f"{prefix}_upstream_request_duration_seconds",
    "GitLab API request duration in seconds",
    ["method"],
    buckets=(0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0, 10.0, 20.0),
)

# Service Info
SERVICE_INFO = Info(
    f"{prefix}_service",
    "Service information",
)

SERVICE_INFO.info({
    "name": "gitlab-mcp-gateway",
    "version": settings.app_version,
    "environment": settings.environment,
})


# =============================================================================
# Middleware
# =============================================================================


class MetricsMiddleware(BaseHTTPMiddleware):
    """Middleware for collecting HTTP metrics."""

    async def dispatch(
        self,
        request: Request,
        call_next: Callable,
    ) -> Response:
        """Process request and collect metrics."""
        method = request.method
        endpoint = normalize_path(request.url.path)

        HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).inc()
        start_time = time.time()

        try:
            response = await call_next(request)
            status_code = response.status_code
        except Exception:
            status_code = 500
            raise
        finally:
            duration = time.time() - start_time
            HTTP_REQUEST_DURATION_SECONDS.labels(method=method, endpoint=endpoint).observe(duration)
            HTTP_REQUESTS_TOTAL.labels(
                method=method,
                endpoint=endpoint,
                status_code=str(status_code),
            ).inc()
            HTTP_REQUESTS_IN_PROGRESS.labels(method=method, endpoint=endpoint).dec()

        return response


def normalize_path(path: str) -> str:
    """Normalize path for metrics labels.

    Tool names in invoke URLs are kept (the catalog is small and fixed);
    numeric segments are replaced to prevent high cardinality.
    """
    return re.sub(r"/\d+(?=/|$)", "/{id}", path)


# =============================================================================
# Metric Recording Functions
# =============================================================================


def record_tool_invocation(
    tool_name: str,
    duration_seconds: float,
    status: str,
) -> None:
    """Record metrics for a tool invocation.

    Args:
        tool_name: Invoked tool
        duration_seconds: Wall time of the invocation
        status: "success" or the lowercased error code
    """
    TOOL_INVOCATIONS_TOTAL.labels(tool_name=tool_name, status=status).inc()
    TOOL_INVOCATION_DURATION_SECONDS.labels(tool_name=tool_name).observe(duration_seconds)


def record_upstream_request(
    method: str,
    status_code: int | str,
    duration_seconds: float,
) -> None:
    """Record metrics for a GitLab API request.

    ``status_code`` is "error" when no response was received.
    """
    UPSTREAM_REQUESTS_TOTAL.labels(method=method, status_code=str(status_code)).inc()
    UPSTREAM_REQUEST_DURATION_SECONDS.labels(method=method).observe(duration_seconds)


def update_tools_visible(count: int) -> None:
    """Update the count of tools exposed in the catalog."""
    TOOLS_VISIBLE.set(count)
