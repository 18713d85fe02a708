# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tool definitions and handler construction.

A handler runs the same fixed sequence for every tool:

1. validate the raw arguments and narrow them to one action;
2. re-check the action policy with the narrowed tag;
3. dispatch to the action's upstream request;
4. shape the upstream response.

Any step may raise an ``MCPError``; nothing is retried.
"""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..errors import ActionDeniedError
from ..models.mcp import ToolKind
from ..policy.denylist import ActionPolicy
from ..policy.project_scope import ProjectScope
from ..schema.base import ActionModel, ToolSchema
from .shaping import clean_gids

if TYPE_CHECKING:
    from ..clients.gitlab_client import GitLabClient

logger = structlog.get_logger(__name__)

ToolHandler = Callable[[Any], Awaitable[Any]]
Dispatch = Callable[[Any, "GitLabClient"], Awaitable[Any]]
Shaper = Callable[[Any], Any]


class ToolGate(BaseModel):
    """Feature flag that must be on for a tool to be listed."""

    model_config = ConfigDict(frozen=True)

    env_var: str = Field(..., description="Gate variable name, e.g. USE_PIPELINE")
    default_value: bool = Field(True, description="Value used when the variable is unset")


class ToolDefinition(BaseModel):
    """A tool as declared by its registry. Built once, never mutated."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    name: str = Field(..., description="Unique, stable tool name")
    description: str = Field(..., description="Tool description shown to the agent")
    action_schema: ToolSchema = Field(..., description="Tagged union of the tool's actions")
    handler: ToolHandler = Field(..., description="Validating coroutine taking the raw arguments")
    gate: ToolGate | None = Field(None, description="Optional feature gate")

    @property
    def input_schema(self) -> dict[str, Any]:
        """Full JSON Schema of the tool input (every action, oneOf form)."""
        return self.action_schema.json_schema()

    @property
    def actions(self) -> tuple[str, ...]:
        return self.action_schema.actions

    @property
    def kind(self) -> ToolKind:
        return ToolKind.COMMAND if self.action_schema.mutating_actions else ToolKind.QUERY


@dataclass(frozen=True)
class ToolContext:
    """Read-only collaborators shared by every handler."""

    client: "GitLabClient"
    policy: ActionPolicy
    project_scope: ProjectScope = field(default_factory=ProjectScope)


def build_handler(
    tool_name: str,
    schema: ToolSchema,
    dispatch: Dispatch,
    ctx: ToolContext,
    shape: Shaper | None = clean_gids,
) -> ToolHandler:
    """Wrap a dispatch coroutine into a tool handler.

    Args:
        tool_name: Name used for policy checks and error messages
        schema: Tool input schema
        dispatch: Coroutine building and sending the upstream request for a
                  validated action
        ctx: Client and policy
        shape: Pure post-processing of the upstream response (None = as is)
    """

    async def handler(arguments: Any) -> Any:
        action: ActionModel = schema.validate(arguments)

        if ctx.policy.is_denied(tool_name, action.action):
            logger.warning("Action denied by policy", tool=tool_name, action=action.action)
            raise ActionDeniedError(tool_name, action.action)

        logger.debug("Dispatching action", tool=tool_name, action=action.action)
        result = await dispatch(action, ctx.client)
        return shape(result) if shape is not None else result

    handler.__name__ = f"{tool_name}_handler"
    handler.__qualname__ = handler.__name__
    return handler


def define_tool(
    name: str,
    description: str,
    schema: ToolSchema,
    dispatch: Dispatch,
    ctx: ToolContext,
    gate: ToolGate | None = None,
    shape: Shaper | None = clean_gids,
) -> ToolDefinition:
    """Declare a tool whose handler dispatches through ``dispatch``."""
    if schema.tool_name != name:
        raise ValueError(f"Schema for '{schema.tool_name}' cannot back tool '{name}'")
    return ToolDefinition(
        name=name,
        description=description,
        action_schema=schema,
        handler=build_handler(name, schema, dispatch, ctx, shape=shape),
        gate=gate,
    )
