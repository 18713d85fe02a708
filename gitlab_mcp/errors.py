# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Standard error codes for the GitLab MCP Gateway.

Every failure of a tool invocation is raised as an ``MCPError`` subclass.
Errors carry a machine-readable code, a human-readable message, optional
details and a remediation hint aimed at the calling agent.

Tool result format:
```json
{
  "error": "ACTION_DENIED",
  "message": "Action 'delete' is not allowed for manage_project tool",
  "details": {"tool": "manage_project", "action": "delete"},
  "suggestion": "This action is disabled by the deployment policy; pick another action"
}
```
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class MCPErrorCode(str, Enum):
    """Standard error codes.

    Each code maps to an HTTP status and a default suggestion.
    """

    # 400 Bad Request
    VALIDATION_ERROR = "VALIDATION_ERROR"

    # 403 Forbidden
    ACTION_DENIED = "ACTION_DENIED"

    # 404 Not Found
    TOOL_NOT_FOUND = "TOOL_NOT_FOUND"

    # 500 Internal Server Error
    INTERNAL_ERROR = "INTERNAL_ERROR"

    # 502 Bad Gateway
    UPSTREAM_ERROR = "UPSTREAM_ERROR"

    # 503 Service Unavailable
    UPSTREAM_UNAVAILABLE = "UPSTREAM_UNAVAILABLE"


ERROR_CODE_TO_HTTP_STATUS: dict[MCPErrorCode, int] = {
    MCPErrorCode.VALIDATION_ERROR: 400,
    MCPErrorCode.ACTION_DENIED: 403,
    MCPErrorCode.TOOL_NOT_FOUND: 404,
    MCPErrorCode.INTERNAL_ERROR: 500,
    MCPErrorCode.UPSTREAM_ERROR: 502,
    MCPErrorCode.UPSTREAM_UNAVAILABLE: 503,
}


# Default suggestions for each error code (helps LLMs recover)
ERROR_CODE_SUGGESTIONS: dict[MCPErrorCode, str] = {
    MCPErrorCode.VALIDATION_ERROR: "Check the arguments against the tool's input schema for the chosen action",
    MCPErrorCode.ACTION_DENIED: "This action is disabled by the deployment policy; pick another action",
    MCPErrorCode.TOOL_NOT_FOUND: "List the available tools and call one of them by its exact name",
    MCPErrorCode.INTERNAL_ERROR: "Retry the request; if persistent, report it to the gateway operator",
    MCPErrorCode.UPSTREAM_ERROR: "GitLab rejected the request; check identifiers, permissions and field values",
    MCPErrorCode.UPSTREAM_UNAVAILABLE: "GitLab could not be reached; retry later",
}


class MCPErrorDetail(BaseModel):
    """Error body returned to HTTP callers."""

    code: str = Field(
        ...,
        description="Machine-readable error code (e.g., 'ACTION_DENIED')",
        examples=["VALIDATION_ERROR", "TOOL_NOT_FOUND"],
    )
    message: str = Field(..., description="Human-readable error message")
    details: dict[str, Any] | None = Field(None, description="Additional context")
    suggestion: str | None = Field(None, description="Remediation hint for the agent")


class MCPErrorResponse(BaseModel):
    """Wrapper for error responses."""

    error: MCPErrorDetail


class ValidationIssue(BaseModel):
    """A single field-level validation problem."""

    path: str = Field(..., description="Dotted path of the offending field ('(root)' for the whole input)")
    message: str = Field(..., description="What is wrong with the field")


class MCPError(Exception):
    """Base exception for gateway errors.

    Usage:
        raise MCPError(
            code=MCPErrorCode.INTERNAL_ERROR,
            message="Registry is not initialized",
        )
    """

    def __init__(
        self,
        code: MCPErrorCode | str,
        message: str,
        details: dict[str, Any] | None = None,
        suggestion: str | None = None,
    ):
        """Initialize the error.

        Args:
            code: Error code (MCPErrorCode enum or string)
            message: Human-readable error message
            details: Additional context for debugging
            suggestion: Override default suggestion (optional)
        """
        self.code = code if isinstance(code, MCPErrorCode) else MCPErrorCode(code)
        self.message = message
        self.details = details
        self.suggestion = suggestion or ERROR_CODE_SUGGESTIONS.get(self.code)
        super().__init__(message)

    @property
    def http_status(self) -> int:
        """Get HTTP status code for this error."""
        return ERROR_CODE_TO_HTTP_STATUS.get(self.code, 500)

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "error": {
                "code": self.code.value,
                "message": self.message,
                "details": self.details,
                "suggestion": self.suggestion,
            }
        }

    def to_tool_result(self) -> dict[str, Any]:
        """Convert to the flat format embedded in error tool results."""
        result: dict[str, Any] = {
            "error": self.code.value,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        if self.suggestion:
            result["suggestion"] = self.suggestion
        return result

    def to_response(self) -> MCPErrorResponse:
        """Convert to Pydantic response model."""
        return MCPErrorResponse(
            error=MCPErrorDetail(
                code=self.code.value,
                message=self.message,
                details=self.details,
                suggestion=self.suggestion,
            )
        )


# =============================================================================
# Invocation Errors
# =============================================================================


class SchemaValidationError(MCPError):
    """Raised when tool arguments do not match any action of the tool schema."""

    def __init__(self, tool_name: str, issues: list[ValidationIssue]):
        self.tool_name = tool_name
        self.issues = issues
        summary = "; ".join(f"{issue.path}: {issue.message}" for issue in issues)
        super().__init__(
            code=MCPErrorCode.VALIDATION_ERROR,
            message=f"Invalid arguments for {tool_name}: {summary}",
            details={
                "tool": tool_name,
                "issues": [issue.model_dump() for issue in issues],
            },
        )

    @property
    def paths(self) -> list[str]:
        """Offending field paths, in the order reported."""
        return [issue.path for issue in self.issues]


class ActionDeniedError(MCPError):
    """Raised when the policy gate denies an otherwise valid action."""

    def __init__(self, tool_name: str, action: str):
        self.tool_name = tool_name
        self.action = action
        super().__init__(
            code=MCPErrorCode.ACTION_DENIED,
            message=f"Action '{action}' is not allowed for {tool_name} tool",
            details={"tool": tool_name, "action": action},
        )


class ProjectNotAllowedError(MCPError):
    """Raised when a project is outside GITLAB_ALLOWED_PROJECT_IDS."""

    def __init__(self, project_id: str, allowed: list[str] | tuple[str, ...]):
        self.project_id = project_id
        self.allowed = tuple(allowed)
        super().__init__(
            code=MCPErrorCode.ACTION_DENIED,
            message=f"Project ID {project_id} is not allowed. Allowed project IDs: {', '.join(allowed)}",
            details={"project_id": project_id, "allowed_project_ids": list(allowed)},
            suggestion="Use one of the allowed project IDs",
        )


class UnknownToolError(MCPError):
    """Raised when a tool is not part of the visible catalog.

    The message is identical for tools that do not exist and tools that are
    hidden by a gate, read-only mode or the denied-tools pattern.
    """

    def __init__(self, tool_name: str):
        self.tool_name = tool_name
        super().__init__(
            code=MCPErrorCode.TOOL_NOT_FOUND,
            message=f"Tool '{tool_name}' not found",
            details={"tool": tool_name},
        )


class UpstreamApiError(MCPError):
    """Raised when GitLab answers with a non-2xx status."""

    def __init__(
        self,
        status: int,
        status_text: str,
        detail: str | None = None,
        method: str | None = None,
        path: str | None = None,
    ):
        self.status = status
        self.status_text = status_text
        self.detail = detail
        message = f"GitLab API error: {status} {status_text}".rstrip()
        if detail:
            message += f" - {detail}"
        details: dict[str, Any] = {"status": status, "status_text": status_text}
        if method:
            details["method"] = method
        if path:
            details["path"] = path
        super().__init__(
            code=MCPErrorCode.UPSTREAM_ERROR,
            message=message,
            details=details,
        )


class UpstreamUnavailableError(MCPError):
    """Raised when the request never produced an HTTP response."""

    def __init__(self, reason: str, method: str | None = None, path: str | None = None):
        details: dict[str, Any] = {"reason": reason}
        if method:
            details["method"] = method
        if path:
            details["path"] = path
        super().__init__(
            code=MCPErrorCode.UPSTREAM_UNAVAILABLE,
            message=f"GitLab is unreachable: {reason}",
            details=details,
        )


class UnreachableDispatchError(MCPError):
    """Raised when a validated action has no dispatch branch.

    Signals that a tool schema and its dispatcher disagree on the action set.
    """

    def __init__(self, tool_name: str, action: str):
        self.tool_name = tool_name
        self.action = action
        super().__init__(
            code=MCPErrorCode.INTERNAL_ERROR,
            message=f"Unknown action: {action} (no dispatch branch in {tool_name})",
            details={"tool": tool_name, "action": action},
        )


# =============================================================================
# Helper Functions
# =============================================================================


def error_result(
    code: MCPErrorCode | str,
    message: str,
    details: dict[str, Any] | None = None,
    suggestion: str | None = None,
) -> dict[str, Any]:
    """Create a standardized error result dict.

    Used for failures that are not ``MCPError`` instances, such as an
    unexpected exception caught at the invocation boundary.
    """
    error_code = code if isinstance(code, MCPErrorCode) else MCPErrorCode(code)
    result: dict[str, Any] = {
        "error": error_code.value,
        "message": message,
    }
    if details:
        result["details"] = details
    result["suggestion"] = suggestion or ERROR_CODE_SUGGESTIONS.get(error_code)
    return result
