"""MCP Protocol Handler.

FastAPI router for MCP endpoints: server info, tool catalog and tool
invocation.
"""

import structlog
from fastapi import APIRouter, HTTPException, status

from ..config import get_settings
from ..errors import MCPErrorCode
from ..models import (
    ErrorResponse,
    InvokeToolResponse,
    ListToolsResponse,
    ServerInfo,
    Tool,
    ToolInvocation,
)
from ..services import get_registry_manager

logger = structlog.get_logger(__name__)

# Create router
router = APIRouter(prefix="/mcp/v1", tags=["MCP"])


def _tool_not_found(tool_name: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail=ErrorResponse(
            error=f"Tool not found: {tool_name}",
            code=MCPErrorCode.TOOL_NOT_FOUND.value,
        ).model_dump(exclude_none=True),
    )


# =============================================================================
# Tools Endpoints
# =============================================================================


@router.get(
    "/tools",
    response_model=ListToolsResponse,
    response_model_by_alias=True,
    summary="List available MCP tools",
    description="Returns the tools visible under the current deployment configuration.",
)
async def list_tools() -> ListToolsResponse:
    """List all visible MCP tools."""
    manager = await get_registry_manager()
    result = manager.list_tools()

    logger.info("Listed tools", count=result.total_count)

    return result


@router.get(
    "/tools/{tool_name}",
    response_model=Tool,
    response_model_by_alias=True,
    summary="Get tool details",
    description="Returns the published definition of a visible tool.",
    responses={
        404: {"model": ErrorResponse, "description": "Tool not found"},
    },
)
async def get_tool(tool_name: str) -> Tool:
    """Get details of a specific tool."""
    manager = await get_registry_manager()
    tool = manager.get_tool(tool_name)

    if not tool:
        raise _tool_not_found(tool_name)

    return tool


@router.post(
    "/tools/{tool_name}/invoke",
    response_model=InvokeToolResponse,
    response_model_by_alias=True,
    summary="Invoke a tool",
    description="Execute a tool with the provided arguments.",
    responses={
        404: {"model": ErrorResponse, "description": "Tool not found"},
    },
)
async def invoke_tool(tool_name: str, invocation: ToolInvocation) -> InvokeToolResponse:
    """Invoke a tool.

    Validation, policy and upstream failures are reported inside the
    result with ``isError`` set, not as HTTP errors.
    """
    manager = await get_registry_manager()

    if not manager.is_visible(tool_name):
        raise _tool_not_found(tool_name)

    # Override tool name from path
    invocation.name = tool_name

    result = await manager.invoke(invocation)

    return InvokeToolResponse(
        result=result,
        tool_name=tool_name,
    )


# =============================================================================
# Server Info
# =============================================================================


@router.get(
    "/",
    response_model=ServerInfo,
    response_model_by_alias=True,
    summary="MCP Server Info",
    description="Get MCP server capabilities and version information.",
)
async def server_info() -> ServerInfo:
    """Get MCP server information."""
    settings = get_settings()
    manager = await get_registry_manager()

    return ServerInfo(
        name=settings.app_name,
        version=settings.app_version,
        read_only=manager.deployment.read_only,
    )

