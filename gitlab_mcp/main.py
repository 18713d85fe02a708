"""GitLab MCP Gateway - Main Application Entry Point.

Exposes GitLab projects, members, pipelines and integrations as MCP tools
for LLM consumption.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any

import structlog
import uvicorn
from fastapi import FastAPI
from fastapi.responses import JSONResponse
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest
from starlette.responses import Response

from .config import get_settings
from .handlers import mcp_router
from .middleware import MetricsMiddleware
from .services import get_registry_manager, shutdown_registry_manager


def configure_logging(log_level: str = "INFO", log_format: str = "json") -> None:
    """Configure structured logging.

    ``json`` renders one JSON object per line, ``text`` renders the
    console format for local development.
    """
    logging.basicConfig(format="%(message)s", level=log_level.upper())
    renderer = (
        structlog.processors.JSONRenderer()
        if log_format == "json"
        else structlog.dev.ConsoleRenderer()
    )
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


_settings = get_settings()
configure_logging(_settings.log_level, _settings.log_format)

logger = structlog.get_logger(__name__)

# Application state
app_state: dict[str, Any] = {
    "ready": False,
    "started_at": None,
}


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    settings = get_settings()
    logger.info(
        "Starting GitLab MCP Gateway",
        version=settings.app_version,
        environment=settings.environment,
        gitlab_api_url=settings.gitlab_api_url,
    )

    # Startup
    app_state["started_at"] = datetime.now(timezone.utc)

    manager = await get_registry_manager()
    app_state["ready"] = True

    logger.info(
        "GitLab MCP Gateway ready",
        tools=len(manager.tool_names()),
        read_only=manager.deployment.read_only,
    )

    yield

    # Shutdown
    logger.info("Shutting down GitLab MCP Gateway")
    app_state["ready"] = False
    await shutdown_registry_manager()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    settings = get_settings()

    app = FastAPI(
        title=settings.app_name,
        description="Model Context Protocol Gateway for the GitLab API",
        version=settings.app_version,
        docs_url="/docs" if settings.debug else None,
        redoc_url="/redoc" if settings.debug else None,
        openapi_url="/openapi.json" if settings.debug else None,
        lifespan=lifespan,
    )

    # Metrics middleware (must be added first to capture all requests)
    if settings.enable_metrics:
        app.add_middleware(MetricsMiddleware)

    register_routes(app)
    app.include_router(mcp_router)

    return app


def register_routes(app: FastAPI) -> None:
    """Register health, metrics and info routes."""

    @app.get("/health", tags=["Health"])
    async def health_check() -> dict[str, Any]:
        """Health check. Always returns 200 if the service is running."""
        settings = get_settings()
        return {
            "status": "healthy",
            "service": "gitlab-mcp-gateway",
            "version": settings.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }

    @app.get("/ready", tags=["Health"])
    async def readiness_check() -> JSONResponse:
        """Readiness check. Returns 503 until the tool catalog is built."""
        settings = get_settings()

        checks: dict[str, Any] = {
            "service": "gitlab-mcp-gateway",
            "version": settings.app_version,
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "checks": {
                "app_ready": app_state["ready"],
            },
        }

        is_ready = all(checks["checks"].values())
        checks["status"] = "ready" if is_ready else "not_ready"

        return JSONResponse(
            content=checks,
            status_code=200 if is_ready else 503,
        )

    @app.get("/metrics", tags=["Observability"])
    async def metrics() -> Response:
        """Prometheus metrics endpoint."""
        return Response(
            content=generate_latest(),
            media_type=CONTENT_TYPE_LATEST,
        )

    @app.get("/", tags=["Info"])
    async def root() -> dict[str, Any]:
        """Root endpoint with service information."""
        settings = get_settings()
        return {
            "service": "gitlab-mcp-gateway",
            "description": "Model Context Protocol Gateway for the GitLab API",
            "version": settings.app_version,
            "mcp": {
                "info": "/mcp/v1/",
                "tools": "/mcp/v1/tools",
                "docs": "https://modelcontextprotocol.io",
            },
        }


# Create the application instance
app = create_app()


def main() -> None:
    """Run the application with uvicorn."""
    settings = get_settings()
    uvicorn.run(
        "gitlab_mcp.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
