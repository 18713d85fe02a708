# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Action models for project and group membership.

browse_members (query): list_project, list_group, get_project, get_group,
                        list_all_project, list_all_group
manage_member (command): add_to_project, add_to_group, remove_from_project,
                         remove_from_group, update_project, update_group
"""

from typing import Annotated, Literal

from pydantic import AfterValidator, Field

from .base import ActionModel, FlexibleBool, Page, PerPage, RequiredId, ToolSchema

VALID_ACCESS_LEVELS = (0, 5, 10, 20, 30, 40, 50)


def _check_access_level(value: int) -> int:
    if value not in VALID_ACCESS_LEVELS:
        raise ValueError(
            "Access level must be 0 (No access), 5 (Minimal), 10 (Guest), 20 (Reporter), "
            "30 (Developer), 40 (Maintainer), or 50 (Owner)"
        )
    return value


AccessLevel = Annotated[
    int,
    AfterValidator(_check_access_level),
    Field(description="Access level: 10=Guest, 20=Reporter, 30=Developer, 40=Maintainer, 50=Owner"),
]
MemberState = Literal["active", "awaiting", "blocked"]


# =============================================================================
# browse_members
# =============================================================================


class ListProjectMembers(ActionModel):
    action: Literal["list_project"] = Field(..., description="List direct members of a project")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    query: str | None = Field(None, description="Search members by name or username")
    user_ids: list[RequiredId] | None = Field(None, description="Filter to specific user IDs")
    per_page: PerPage | None = None
    page: Page | None = None


class ListGroupMembers(ActionModel):
    action: Literal["list_group"] = Field(..., description="List direct members of a group")
    group_id: RequiredId = Field(..., description="Group ID or URL-encoded path")
    query: str | None = Field(None, description="Search members by name or username")
    user_ids: list[RequiredId] | None = Field(None, description="Filter to specific user IDs")
    per_page: PerPage | None = None
    page: Page | None = None


class GetProjectMember(ActionModel):
    action: Literal["get_project"] = Field(..., description="Get one member of a project")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    user_id: RequiredId = Field(..., description="User ID of the member")
    include_inherited: FlexibleBool | None = Field(None, description="Include members inherited from parent groups")


class GetGroupMember(ActionModel):
    action: Literal["get_group"] = Field(..., description="Get one member of a group")
    group_id: RequiredId = Field(..., description="Group ID or URL-encoded path")
    user_id: RequiredId = Field(..., description="User ID of the member")
    include_inherited: FlexibleBool | None = Field(None, description="Include members inherited from parent groups")


class ListAllProjectMembers(ActionModel):
    action: Literal["list_all_project"] = Field(
        ..., description="List project members including those inherited from parent groups"
    )
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    query: str | None = Field(None, description="Search members by name or username")
    user_ids: list[RequiredId] | None = Field(None, description="Filter to specific user IDs")
    state: MemberState | None = Field(None, description="Filter by member state")
    per_page: PerPage | None = None
    page: Page | None = None


class ListAllGroupMembers(ActionModel):
    action: Literal["list_all_group"] = Field(
        ..., description="List group members including those inherited from parent groups"
    )
    group_id: RequiredId = Field(..., description="Group ID or URL-encoded path")
    query: str | None = Field(None, description="Search members by name or username")
    user_ids: list[RequiredId] | None = Field(None, description="Filter to specific user IDs")
    state: MemberState | None = Field(None, description="Filter by member state")
    per_page: PerPage | None = None
    page: Page | None = None


BROWSE_MEMBERS = ToolSchema(
    "browse_members",
    ListProjectMembers,
    ListGroupMembers,
    GetProjectMember,
    GetGroupMember,
    ListAllProjectMembers,
    ListAllGroupMembers,
)


# =============================================================================
# manage_member
# =============================================================================


class AddProjectMember(ActionModel):
    mutating = True

    action: Literal["add_to_project"] = Field(..., description="Add a user as member of a project")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    user_id: RequiredId = Field(..., description="User ID to add")
    access_level: AccessLevel
    expires_at: str | None = Field(None, description="Membership expiration date (YYYY-MM-DD)")


class AddGroupMember(ActionModel):
    mutating = True

    action: Literal["add_to_group"] = Field(..., description="Add a user as member of a group")
    group_id: RequiredId = Field(..., description="Group ID or URL-encoded path")
    user_id: RequiredId = Field(..., description="User ID to add")
    access_level: AccessLevel
    expires_at: str | None = Field(None, description="Membership expiration date (YYYY-MM-DD)")


class RemoveProjectMember(ActionModel):
    mutating = True

    action: Literal["remove_from_project"] = Field(..., description="Remove a member from a project")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    user_id: RequiredId = Field(..., description="User ID to remove")
    skip_subresources: FlexibleBool | None = Field(None, description="Skip removal from subprojects and forks")
    unassign_issuables: FlexibleBool | None = Field(None, description="Unassign the member from issues and merge requests")


class RemoveGroupMember(ActionModel):
    mutating = True

    action: Literal["remove_from_group"] = Field(..., description="Remove a member from a group")
    group_id: RequiredId = Field(..., description="Group ID or URL-encoded path")
    user_id: RequiredId = Field(..., description="User ID to remove")
    skip_subresources: FlexibleBool | None = Field(None, description="Skip removal from subgroups and projects")
    unassign_issuables: FlexibleBool | None = Field(None, description="Unassign the member from issues and merge requests")


class UpdateProjectMember(ActionModel):
    mutating = True

    action: Literal["update_project"] = Field(..., description="Change the access level of a project member")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    user_id: RequiredId = Field(..., description="User ID to update")
    access_level: AccessLevel
    expires_at: str | None = Field(None, description="Membership expiration date (YYYY-MM-DD)")


class UpdateGroupMember(ActionModel):
    mutating = True

    action: Literal["update_group"] = Field(..., description="Change the access level of a group member")
    group_id: RequiredId = Field(..., description="Group ID or URL-encoded path")
    user_id: RequiredId = Field(..., description="User ID to update")
    access_level: AccessLevel
    expires_at: str | None = Field(None, description="Membership expiration date (YYYY-MM-DD)")
    member_role_id: int | None = Field(None, description="ID of a custom member role (Ultimate only)")


MANAGE_MEMBER = ToolSchema(
    "manage_member",
    AddProjectMember,
    AddGroupMember,
    RemoveProjectMember,
    RemoveGroupMember,
    UpdateProjectMember,
    UpdateGroupMember,
)
