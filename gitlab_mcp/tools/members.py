# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Members tools.

browse_members (Query): list_project, list_group, get_project, get_group,
                        list_all_project, list_all_group
manage_member (Command): add_to_project, add_to_group, remove_from_project,
                         remove_from_group, update_project, update_group

Gated by USE_MEMBERS (default on).
"""

from typing import Any

from ..clients.gitlab_client import GitLabClient
from ..errors import UnreachableDispatchError
from ..schema.members import (
    BROWSE_MEMBERS,
    MANAGE_MEMBER,
    AddGroupMember,
    AddProjectMember,
    GetGroupMember,
    GetProjectMember,
    ListAllGroupMembers,
    ListAllProjectMembers,
    ListGroupMembers,
    ListProjectMembers,
    RemoveGroupMember,
    RemoveProjectMember,
    UpdateGroupMember,
    UpdateProjectMember,
)
from .definition import ToolContext, ToolGate, define_tool
from .registry import ToolRegistry
from .shaping import encode_id, to_query

MEMBERS_GATE = ToolGate(env_var="USE_MEMBERS", default_value=True)

LIST_FIELDS = ("query", "user_ids", "per_page", "page")


async def dispatch_browse_members(action: Any, client: GitLabClient) -> Any:
    if isinstance(action, ListProjectMembers):
        return await client.get(
            f"projects/{encode_id(action.project_id)}/members",
            query=to_query(action.pick(*LIST_FIELDS)),
        )

    elif isinstance(action, ListGroupMembers):
        return await client.get(
            f"groups/{encode_id(action.group_id)}/members",
            query=to_query(action.pick(*LIST_FIELDS)),
        )

    elif isinstance(action, GetProjectMember):
        scope = "members/all" if action.include_inherited else "members"
        return await client.get(
            f"projects/{encode_id(action.project_id)}/{scope}/{encode_id(action.user_id)}"
        )

    elif isinstance(action, GetGroupMember):
        scope = "members/all" if action.include_inherited else "members"
        return await client.get(
            f"groups/{encode_id(action.group_id)}/{scope}/{encode_id(action.user_id)}"
        )

    elif isinstance(action, ListAllProjectMembers):
        return await client.get(
            f"projects/{encode_id(action.project_id)}/members/all",
            query=to_query(action.pick(*LIST_FIELDS, "state")),
        )

    elif isinstance(action, ListAllGroupMembers):
        return await client.get(
            f"groups/{encode_id(action.group_id)}/members/all",
            query=to_query(action.pick(*LIST_FIELDS, "state")),
        )

    raise UnreachableDispatchError("browse_members", action.action)


async def dispatch_manage_member(action: Any, client: GitLabClient) -> Any:
    if isinstance(action, AddProjectMember):
        return await client.post(
            f"projects/{encode_id(action.project_id)}/members",
            body=action.pick("user_id", "access_level", "expires_at"),
        )

    elif isinstance(action, AddGroupMember):
        return await client.post(
            f"groups/{encode_id(action.group_id)}/members",
            body=action.pick("user_id", "access_level", "expires_at"),
        )

    elif isinstance(action, RemoveProjectMember):
        await client.delete(
            f"projects/{encode_id(action.project_id)}/members/{encode_id(action.user_id)}",
            query=to_query(action.pick("skip_subresources", "unassign_issuables")),
        )
        return {"removed": True, "project_id": action.project_id, "user_id": action.user_id}

    elif isinstance(action, RemoveGroupMember):
        await client.delete(
            f"groups/{encode_id(action.group_id)}/members/{encode_id(action.user_id)}",
            query=to_query(action.pick("skip_subresources", "unassign_issuables")),
        )
        return {"removed": True, "group_id": action.group_id, "user_id": action.user_id}

    elif isinstance(action, UpdateProjectMember):
        return await client.put(
            f"projects/{encode_id(action.project_id)}/members/{encode_id(action.user_id)}",
            body=action.pick("access_level", "expires_at"),
        )

    elif isinstance(action, UpdateGroupMember):
        return await client.put(
            f"groups/{encode_id(action.group_id)}/members/{encode_id(action.user_id)}",
            body=action.pick("access_level", "expires_at", "member_role_id"),
        )

    raise UnreachableDispatchError("manage_member", action.action)


def build_members_registry(ctx: ToolContext) -> ToolRegistry:
    """Build the members registry bound to ``ctx``."""
    return ToolRegistry(
        "members",
        [
            define_tool(
                "browse_members",
                "View team members and access levels in projects or groups. Actions: list_project, list_group, "
                "get_project, get_group (direct members), list_all_project, list_all_group (includes inherited). "
                "Levels: Guest(10), Reporter(20), Developer(30), Maintainer(40), Owner(50). "
                "Related: manage_member to add/remove members.",
                BROWSE_MEMBERS,
                dispatch_browse_members,
                ctx,
                gate=MEMBERS_GATE,
            ),
            define_tool(
                "manage_member",
                "Add, remove, or update access levels for project/group members. Actions: add_to_project, "
                "add_to_group (with access level + optional expiry), remove_from_project, remove_from_group, "
                "update_project, update_group (change access level). "
                "Related: browse_members for current membership.",
                MANAGE_MEMBER,
                dispatch_manage_member,
                ctx,
                gate=MEMBERS_GATE,
            ),
        ],
        read_only_names=["browse_members"],
    )
