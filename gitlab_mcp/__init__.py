"""GitLab MCP Gateway - GitLab API tools over the Model Context Protocol."""

__version__ = "0.1.0"

from .errors import (
    MCPErrorCode,
    MCPError,
    MCPErrorDetail,
    MCPErrorResponse,
    error_result,
    SchemaValidationError,
    ActionDeniedError,
    ProjectNotAllowedError,
    UnknownToolError,
    UpstreamApiError,
    UpstreamUnavailableError,
    UnreachableDispatchError,
)

__all__ = [
    "MCPErrorCode",
    "MCPError",
    "MCPErrorDetail",
    "MCPErrorResponse",
    "error_result",
    "SchemaValidationError",
    "ActionDeniedError",
    "ProjectNotAllowedError",
    "UnknownToolError",
    "UpstreamApiError",
    "UpstreamUnavailableError",
    "UnreachableDispatchError",
]
