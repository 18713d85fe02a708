"""MCP Protocol Models."""

from .mcp import (
    ErrorResponse,
    InvokeToolResponse,
    ListToolsResponse,
    MCPVersion,
    ServerCapabilities,
    ServerInfo,
    TextContent,
    Tool,
    ToolInvocation,
    ToolKind,
    ToolResult,
)

__all__ = [
    "MCPVersion",
    "ToolKind",
    "Tool",
    "ToolInvocation",
    "TextContent",
    "ToolResult",
    "ServerCapabilities",
    "ServerInfo",
    "ListToolsResponse",
    "InvokeToolResponse",
    "ErrorResponse",
]
