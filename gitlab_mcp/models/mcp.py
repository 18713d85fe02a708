"""MCP Protocol Models.

Based on the Model Context Protocol specification.
https://modelcontextprotocol.io/specification
"""

from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


# =============================================================================
# Base Types
# =============================================================================


class MCPVersion(str, Enum):
    """Supported MCP protocol versions."""

    V1 = "1.0"


class ToolKind(str, Enum):
    """CQRS role of a tool."""

    QUERY = "query"  # browse_* tools, read-only
    COMMAND = "command"  # manage_* tools, at least one mutating action


# =============================================================================
# Tool Models
# =============================================================================


class Tool(BaseModel):
    """MCP Tool definition as published in the catalog."""

    name: str = Field(..., description="Unique tool identifier")
    description: str = Field(..., description="Human-readable tool description")
    input_schema: dict[str, Any] = Field(
        default_factory=lambda: {"type": "object"},
        alias="inputSchema",
        description="JSON Schema for tool input",
    )

    model_config = ConfigDict(populate_by_name=True)


class ToolInvocation(BaseModel):
    """Request to invoke a tool."""

    name: str = Field(..., description="Tool name to invoke")
    arguments: dict[str, Any] = Field(default_factory=dict, description="Tool arguments")
    request_id: str | None = Field(None, description="Optional request ID for tracing")


class TextContent(BaseModel):
    """Text content in tool response."""

    type: Literal["text"] = "text"
    text: str


class ToolResult(BaseModel):
    """Result of a tool invocation."""

    content: list[TextContent] = Field(default_factory=list)
    is_error: bool = Field(False, alias="isError")

    request_id: str | None = Field(None, description="Request ID for tracing")
    latency_ms: int | None = Field(None, description="Invocation latency in milliseconds")
    error_code: str | None = Field(None, description="Error code when is_error is set")

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Server Models
# =============================================================================


class ServerCapabilities(BaseModel):
    """Capabilities advertised by the server."""

    tools: dict[str, Any] = Field(default_factory=lambda: {"listChanged": False})


class ServerInfo(BaseModel):
    """Server information returned by the MCP root endpoint."""

    name: str
    version: str
    protocol_version: MCPVersion = Field(MCPVersion.V1, alias="protocolVersion")
    capabilities: ServerCapabilities = Field(default_factory=ServerCapabilities)
    read_only: bool = Field(False, alias="readOnly")

    model_config = ConfigDict(populate_by_name=True)


# =============================================================================
# Response Models
# =============================================================================


class ListToolsResponse(BaseModel):
    """Response for listing tools."""

    tools: list[Tool] = Field(default_factory=list)
    total_count: int = Field(0)

    model_config = ConfigDict(populate_by_name=True)


class InvokeToolResponse(BaseModel):
    """Response for tool invocation."""

    result: ToolResult
    tool_name: str = Field(..., alias="toolName")
    invoked_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    model_config = ConfigDict(populate_by_name=True)


class ErrorResponse(BaseModel):
    """Standard error response."""

    error: str = Field(..., description="Error message")
    code: str = Field("INTERNAL_ERROR", description="Error code")
    details: dict[str, Any] | None = Field(None, description="Additional error details")
    suggestion: str | None = Field(None, description="Remediation hint")
    request_id: str | None = Field(None, description="Request ID for tracing")
