# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Integrations tools.

browse_integrations (Query): list, get
manage_integration (Command): update, disable

Gated by USE_INTEGRATIONS (default on). Every call goes through the project
scope: GITLAB_PROJECT_ID pins the project, GITLAB_ALLOWED_PROJECT_IDS
restricts it.
"""

from functools import partial
from typing import Any

from ..clients.gitlab_client import GitLabClient
from ..errors import UnreachableDispatchError
from ..policy.project_scope import ProjectScope
from ..schema.integrations import (
    BROWSE_INTEGRATIONS,
    INTEGRATION_EVENT_FIELDS,
    MANAGE_INTEGRATION,
    DisableIntegration,
    GetIntegration,
    ListIntegrations,
    UpdateIntegration,
)
from .definition import ToolContext, ToolGate, define_tool
from .registry import ToolRegistry
from .shaping import encode_id, to_query

INTEGRATIONS_GATE = ToolGate(env_var="USE_INTEGRATIONS", default_value=True)


def _integration_path(project_id: str, integration: str) -> str:
    return f"projects/{encode_id(project_id)}/integrations/{encode_id(integration)}"


async def dispatch_browse_integrations(
    action: Any, client: GitLabClient, scope: ProjectScope = ProjectScope()
) -> Any:
    if isinstance(action, ListIntegrations):
        project_id = scope.resolve(action.project_id)
        return await client.get(
            f"projects/{encode_id(project_id)}/integrations",
            query=to_query(action.pick("per_page", "page")),
        )

    elif isinstance(action, GetIntegration):
        project_id = scope.resolve(action.project_id)
        return await client.get(_integration_path(project_id, action.integration))

    raise UnreachableDispatchError("browse_integrations", action.action)


async def dispatch_manage_integration(
    action: Any, client: GitLabClient, scope: ProjectScope = ProjectScope()
) -> Any:
    if isinstance(action, UpdateIntegration):
        project_id = scope.resolve(action.project_id)
        # Integration-specific settings are top-level fields; declared fields override them
        body = dict(action.config or {})
        body.update(action.pick("active", *INTEGRATION_EVENT_FIELDS))
        return await client.put(_integration_path(project_id, action.integration), body=body)

    elif isinstance(action, DisableIntegration):
        project_id = scope.resolve(action.project_id)
        await client.delete(_integration_path(project_id, action.integration))
        return {"deleted": True}

    raise UnreachableDispatchError("manage_integration", action.action)


def build_integrations_registry(ctx: ToolContext) -> ToolRegistry:
    """Build the integrations registry bound to ``ctx``."""
    return ToolRegistry(
        "integrations",
        [
            define_tool(
                "browse_integrations",
                "Browse project integrations. Actions: list (all active integrations such as Slack, Jira, "
                "Discord, Teams, Jenkins), get (settings of one integration by type slug). "
                "Related: manage_integration to enable, configure or disable integrations.",
                BROWSE_INTEGRATIONS,
                partial(dispatch_browse_integrations, scope=ctx.project_scope),
                ctx,
                gate=INTEGRATIONS_GATE,
            ),
            define_tool(
                "manage_integration",
                "Manage project integrations. Actions: update (enable or change an integration with its "
                "settings), disable (remove an integration). gitlab-slack-application cannot be created "
                "through the API, it requires the OAuth installation from the GitLab UI. "
                "Related: browse_integrations for current settings.",
                MANAGE_INTEGRATION,
                partial(dispatch_manage_integration, scope=ctx.project_scope),
                ctx,
                gate=INTEGRATIONS_GATE,
            ),
        ],
        read_only_names=["browse_integrations"],
    )
