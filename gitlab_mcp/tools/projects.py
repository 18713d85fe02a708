# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Projects and namespaces tools.

browse_projects (Query): search, list, get
browse_namespaces (Query): list, get, verify
manage_project (Command): create, fork, update, delete, archive, unarchive, transfer

These tools are not gated.
"""

import re
from typing import Any

from ..clients.gitlab_client import GitLabClient
from ..errors import UnreachableDispatchError
from ..schema.projects import (
    BROWSE_NAMESPACES,
    BROWSE_PROJECTS,
    MANAGE_PROJECT,
    PROJECT_FEATURE_FIELDS,
    ArchiveProject,
    CreateProject,
    DeleteProject,
    ForkProject,
    GetNamespace,
    GetProject,
    ListNamespaces,
    ListProjects,
    SearchProjects,
    TransferProject,
    UnarchiveProject,
    UpdateProject,
    VerifyNamespace,
)
from .definition import ToolContext, define_tool
from .registry import ToolRegistry
from .shaping import encode_id, path_slug, to_query

TOPIC_PATTERN = re.compile(r"topic:(\w+)")

# Applied to "list" when the caller leaves them unset
LIST_DEFAULTS = {
    "order_by": "created_at",
    "sort": "desc",
    "simple": "true",
    "per_page": "20",
}


# =============================================================================
# browse_projects
# =============================================================================


def split_search_terms(q: str) -> tuple[list[str], str]:
    """Split "topic:devops topic:k8s api" into (["devops", "k8s"], "api")."""
    topics = TOPIC_PATTERN.findall(q)
    remainder = " ".join(TOPIC_PATTERN.sub("", q).split())
    return topics, remainder


async def dispatch_browse_projects(action: Any, client: GitLabClient) -> Any:
    if isinstance(action, SearchProjects):
        query = to_query(
            action.pick("with_programming_language", "visibility", "order_by", "sort", "per_page", "page")
        )
        topics, terms = split_search_terms(action.q)
        if topics:
            query["topic"] = ",".join(topics)
        if terms:
            query["search"] = terms
        query["active"] = "true"
        return await client.get("projects", query=query)

    elif isinstance(action, ListProjects):
        query = to_query(
            action.pick(
                "search",
                "owned",
                "starred",
                "membership",
                "simple",
                "archived",
                "visibility",
                "with_programming_language",
                "include_subgroups",
                "with_shared",
                "order_by",
                "sort",
                "per_page",
                "page",
            )
        )
        for key, value in LIST_DEFAULTS.items():
            query.setdefault(key, value)
        if action.group_id:
            return await client.get(f"groups/{encode_id(action.group_id)}/projects", query=query)
        query["active"] = "true"
        return await client.get("projects", query=query)

    elif isinstance(action, GetProject):
        query = to_query(action.pick("statistics", "license"))
        return await client.get(f"projects/{encode_id(action.project_id)}", query=query)

    raise UnreachableDispatchError("browse_projects", action.action)


# =============================================================================
# browse_namespaces
# =============================================================================


async def dispatch_browse_namespaces(action: Any, client: GitLabClient) -> Any:
    if isinstance(action, ListNamespaces):
        query = to_query(
            action.pick(
                "search",
                "owned_only",
                "top_level_only",
                "with_statistics",
                "min_access_level",
                "per_page",
                "page",
            )
        )
        return await client.get("namespaces", query=query)

    elif isinstance(action, GetNamespace):
        return await client.get(f"namespaces/{encode_id(action.namespace_id)}")

    elif isinstance(action, VerifyNamespace):
        status, data = await client.probe(f"namespaces/{encode_id(action.namespace_id)}")
        return {
            "exists": 200 <= status < 300,
            "status": status,
            "namespace": action.namespace_id,
            "data": data,
        }

    raise UnreachableDispatchError("browse_namespaces", action.action)


# =============================================================================
# manage_project
# =============================================================================


async def dispatch_manage_project(action: Any, client: GitLabClient) -> Any:
    if isinstance(action, CreateProject):
        generated_path = path_slug(action.name)
        body: dict[str, Any] = {"name": action.name, "path": generated_path}
        if action.namespace:
            body["namespace_id"] = action.namespace
        body.update(action.pick("description", "visibility", "initialize_with_readme", *PROJECT_FEATURE_FIELDS))
        project = await client.post("projects", body=body, content_type="form")
        if isinstance(project, dict):
            return {
                **project,
                "validation": {
                    "namespace": action.namespace or "current-user",
                    "generated_path": generated_path,
                },
            }
        return project

    elif isinstance(action, ForkProject):
        body = action.pick("namespace", "namespace_path")
        if action.fork_name:
            body["name"] = action.fork_name
        if action.fork_path:
            body["path"] = action.fork_path
        return await client.post(
            f"projects/{encode_id(action.project_id)}/fork",
            body=body,
            content_type="form",
        )

    elif isinstance(action, UpdateProject):
        body = action.pick("name", "description", "visibility", "default_branch", *PROJECT_FEATURE_FIELDS)
        return await client.put(
            f"projects/{encode_id(action.project_id)}",
            body=body,
            content_type="form",
        )

    elif isinstance(action, DeleteProject):
        await client.delete(f"projects/{encode_id(action.project_id)}")
        return {"success": True, "message": f"Project {action.project_id} deleted"}

    elif isinstance(action, ArchiveProject):
        return await client.post(f"projects/{encode_id(action.project_id)}/archive")

    elif isinstance(action, UnarchiveProject):
        return await client.post(f"projects/{encode_id(action.project_id)}/unarchive")

    elif isinstance(action, TransferProject):
        return await client.put(
            f"projects/{encode_id(action.project_id)}/transfer",
            body={"namespace": action.namespace},
            content_type="form",
        )

    raise UnreachableDispatchError("manage_project", action.action)


# =============================================================================
# Registry
# =============================================================================


def build_projects_registry(ctx: ToolContext) -> ToolRegistry:
    """Build the projects registry bound to ``ctx``."""
    return ToolRegistry(
        "projects",
        [
            define_tool(
                "browse_projects",
                "Find, list, or inspect GitLab projects. Actions: search (find by name/topic across GitLab), "
                "list (browse accessible projects or group projects), get (retrieve full project details). "
                "Related: manage_project to create/update/delete projects.",
                BROWSE_PROJECTS,
                dispatch_browse_projects,
                ctx,
            ),
            define_tool(
                "browse_namespaces",
                "Explore GitLab groups and user namespaces. Actions: list (discover available namespaces), "
                "get (retrieve details with storage stats), verify (check if path exists). "
                "Related: browse_projects to list the projects of a group.",
                BROWSE_NAMESPACES,
                dispatch_browse_namespaces,
                ctx,
            ),
            define_tool(
                "manage_project",
                "Create, update, or manage GitLab projects. Actions: create (new project with settings), "
                "fork (copy existing project), update (modify settings), delete (remove permanently), "
                "archive/unarchive (toggle read-only), transfer (move to different namespace). "
                "Related: browse_projects for discovery, browse_namespaces to find target namespaces.",
                MANAGE_PROJECT,
                dispatch_manage_project,
                ctx,
            ),
        ],
        read_only_names=["browse_projects", "browse_namespaces"],
    )
