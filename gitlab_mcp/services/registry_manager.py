# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Registry manager: the visible tool catalog and the invocation entry point.

A tool is visible when, in this order:

1. its feature gate is open;
2. read-only mode is off, or the tool is in its registry's read-only set;
3. its name does not match the denied-tools pattern;
4. at least one of its actions is allowed by the action policy.

Visible tools publish a schema pruned of denied actions, an optional
description override and resolved "Related:" cross-references. Invisible
tools cannot be called and fail exactly like tools that do not exist.
"""

import json
import time
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import structlog

from ..clients.gitlab_client import GitLabClient
from ..config.deployment import DeploymentConfig
from ..errors import MCPError, MCPErrorCode, UnknownToolError, error_result
from ..middleware.metrics import record_tool_invocation, update_tools_visible
from ..models.mcp import ListToolsResponse, TextContent, Tool, ToolInvocation, ToolKind, ToolResult
from ..tools import DEFAULT_BUILDERS
from ..tools.definition import ToolContext, ToolDefinition
from ..tools.registry import ToolRegistry
from ..tools.shaping import resolve_related_references, strip_related_section

logger = structlog.get_logger(__name__)

RegistryBuilder = Callable[[ToolContext], ToolRegistry]


@dataclass(frozen=True)
class CatalogEntry:
    """A visible tool as published in the catalog."""

    definition: ToolDefinition
    description: str
    input_schema: dict[str, Any]
    allowed_actions: tuple[str, ...]
    overridden: bool = False

    @property
    def name(self) -> str:
        return self.definition.name

    def to_tool(self) -> Tool:
        return Tool(name=self.name, description=self.description, input_schema=self.input_schema)


class RegistryManager:
    """Aggregates the area registries and filters them for a deployment.

    Example usage:
        manager = RegistryManager(deployment, client)
        catalog = manager.list_tools()
        project = await manager.call_tool("browse_projects", {"action": "get", "project_id": "42"})
    """

    def __init__(
        self,
        deployment: DeploymentConfig,
        client: GitLabClient,
        builders: Sequence[RegistryBuilder] = DEFAULT_BUILDERS,
    ):
        self.client = client
        self._builders = tuple(builders)
        self.deployment = deployment
        self.registries: list[ToolRegistry] = []
        self._visible: dict[str, CatalogEntry] = {}
        self.refresh(deployment)

    # =========================================================================
    # Catalog
    # =========================================================================

    def refresh(self, deployment: DeploymentConfig | None = None) -> None:
        """Rebuild registries and the visible catalog.

        Args:
            deployment: New deployment configuration (None = keep the current one)
        """
        if deployment is not None:
            self.deployment = deployment
        ctx = ToolContext(
            client=self.client,
            policy=self.deployment.policy,
            project_scope=self.deployment.project_scope,
        )
        self.registries = [build(ctx) for build in self._builders]

        seen: dict[str, str] = {}
        for registry in self.registries:
            for name in registry.names():
                if name in seen:
                    raise ValueError(f"Tool '{name}' is registered by both {seen[name]} and {registry.area}")
                seen[name] = registry.area

        entries: list[CatalogEntry] = []
        for registry in self.registries:
            for tool in registry:
                entry = self._filter(registry, tool)
                if entry is not None:
                    entries.append(entry)

        self._visible = {entry.name: entry for entry in self._apply_cross_refs(entries)}
        update_tools_visible(len(self._visible))
        logger.info(
            "Tool catalog built",
            visible=len(self._visible),
            queries=sum(1 for e in self._visible.values() if e.definition.kind == ToolKind.QUERY),
            commands=sum(1 for e in self._visible.values() if e.definition.kind == ToolKind.COMMAND),
            registered=len(seen),
            read_only=self.deployment.read_only,
        )

    def _filter(self, registry: ToolRegistry, tool: ToolDefinition) -> CatalogEntry | None:
        deployment = self.deployment

        if tool.gate is not None and not deployment.gates.resolve(tool.gate.env_var, tool.gate.default_value):
            logger.debug("Tool filtered out", tool=tool.name, reason="gate", gate=tool.gate.env_var)
            return None

        if deployment.read_only and tool.name not in registry.read_only_names:
            logger.debug("Tool filtered out", tool=tool.name, reason="read_only")
            return None

        if deployment.is_tool_hidden(tool.name):
            logger.debug("Tool filtered out", tool=tool.name, reason="denied_tools_regex")
            return None

        allowed = tuple(deployment.policy.allowed_actions(tool.name, tool.actions))
        if not allowed:
            logger.debug("Tool filtered out", tool=tool.name, reason="all_actions_denied")
            return None
        denied = deployment.policy.denied_actions(tool.name, tool.actions)
        if denied:
            logger.info("Denied actions pruned from schema", tool=tool.name, actions=denied)

        override = deployment.description_overrides.get(tool.name)
        if override:
            logger.debug("Applied description override", tool=tool.name)

        return CatalogEntry(
            definition=tool,
            description=override or tool.description,
            input_schema=tool.action_schema.json_schema(
                actions=allowed,
                flat=deployment.schema_mode == "flat",
            ),
            allowed_actions=allowed,
            overridden=bool(override),
        )

    def _apply_cross_refs(self, entries: list[CatalogEntry]) -> Iterable[CatalogEntry]:
        """Resolve or strip "Related:" clauses. Overridden descriptions are left alone."""
        available = {entry.name for entry in entries}
        for entry in entries:
            if entry.overridden:
                yield entry
                continue
            if self.deployment.cross_refs:
                description = resolve_related_references(entry.description, available)
            else:
                description = strip_related_section(entry.description)
            if description == entry.description:
                yield entry
            else:
                yield CatalogEntry(
                    definition=entry.definition,
                    description=description,
                    input_schema=entry.input_schema,
                    allowed_actions=entry.allowed_actions,
                    overridden=entry.overridden,
                )

    def list_tools(self) -> ListToolsResponse:
        """Return the visible catalog, in registry order."""
        tools = [entry.to_tool() for entry in self._visible.values()]
        return ListToolsResponse(tools=tools, total_count=len(tools))

    def tool_names(self) -> list[str]:
        return list(self._visible)

    def is_visible(self, name: str) -> bool:
        return name in self._visible

    def get_tool(self, name: str) -> Tool | None:
        """Get the catalog entry of a visible tool."""
        entry = self._visible.get(name)
        return entry.to_tool() if entry else None

    def get_definition(self, name: str) -> ToolDefinition | None:
        """Look a tool up in every registry, visible or not."""
        for registry in self.registries:
            tool = registry.get(name)
            if tool is not None:
                return tool
        return None

    # =========================================================================
    # Invocation
    # =========================================================================

    async def call_tool(self, name: str, arguments: Any) -> Any:
        """Run a visible tool and return its shaped result.

        Raises:
            UnknownToolError: the tool does not exist or is not visible
            SchemaValidationError, ActionDeniedError, UpstreamApiError,
            UpstreamUnavailableError, UnreachableDispatchError: from the handler
        """
        entry = self._visible.get(name)
        if entry is None:
            raise UnknownToolError(name)
        return await entry.definition.handler(arguments)

    async def invoke(self, invocation: ToolInvocation) -> ToolResult:
        """Invoke a tool and render the outcome as a ToolResult.

        Errors never escape: they become ``is_error`` results carrying the
        error code, message, details and suggestion as JSON text.
        """
        start_time = time.time()
        logger.info("Invoking tool", tool_name=invocation.name, request_id=invocation.request_id)

        try:
            result = await self.call_tool(invocation.name, invocation.arguments)
        except MCPError as e:
            latency_ms = int((time.time() - start_time) * 1000)
            record_tool_invocation(invocation.name, latency_ms / 1000, e.code.value.lower())
            log = logger.error if e.code == MCPErrorCode.INTERNAL_ERROR else logger.warning
            log(
                "Tool invocation failed",
                tool_name=invocation.name,
                code=e.code.value,
                error=e.message,
                request_id=invocation.request_id,
            )
            return ToolResult(
                content=[TextContent(text=json.dumps(e.to_tool_result(), indent=2))],
                is_error=True,
                error_code=e.code.value,
                request_id=invocation.request_id,
                latency_ms=latency_ms,
            )
        except Exception as e:
            latency_ms = int((time.time() - start_time) * 1000)
            record_tool_invocation(invocation.name, latency_ms / 1000, MCPErrorCode.INTERNAL_ERROR.value.lower())
            logger.exception("Tool invocation crashed", tool_name=invocation.name, error=str(e))
            payload = error_result(
                MCPErrorCode.INTERNAL_ERROR,
                f"Tool invocation failed: {e}",
                details={"tool": invocation.name},
            )
            return ToolResult(
                content=[TextContent(text=json.dumps(payload, indent=2))],
                is_error=True,
                error_code=MCPErrorCode.INTERNAL_ERROR.value,
                request_id=invocation.request_id,
                latency_ms=latency_ms,
            )

        latency_ms = int((time.time() - start_time) * 1000)
        record_tool_invocation(invocation.name, latency_ms / 1000, "success")
        text = result if isinstance(result, str) else json.dumps(result, indent=2, default=str)
        return ToolResult(
            content=[TextContent(text=text)],
            request_id=invocation.request_id,
            latency_ms=latency_ms,
        )

    async def shutdown(self) -> None:
        """Release the upstream client."""
        await self.client.aclose()
        logger.info("Registry manager shutdown")
