# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Action models for projects and namespaces.

browse_projects (query): search, list, get
browse_namespaces (query): list, get, verify
manage_project (command): create, fork, update, delete, archive, unarchive, transfer
"""

from typing import Literal

from pydantic import Field

from .base import ActionModel, FlexibleBool, OptionalId, Page, PerPage, RequiredId, ToolSchema

Visibility = Literal["public", "internal", "private"]
SortOrder = Literal["asc", "desc"]
ProjectOrderBy = Literal[
    "id",
    "name",
    "path",
    "created_at",
    "updated_at",
    "last_activity_at",
    "similarity",
    "star_count",
]


# =============================================================================
# browse_projects
# =============================================================================


class SearchProjects(ActionModel):
    action: Literal["search"] = Field(..., description="Find projects by name or topic across GitLab")
    q: str = Field(
        ...,
        min_length=1,
        description="Search terms. 'topic:<name>' tokens filter by topic, the rest matches names",
    )
    with_programming_language: str | None = Field(None, description="Limit to projects using this language")
    visibility: Visibility | None = Field(None, description="Limit by visibility")
    order_by: ProjectOrderBy | None = Field(None, description="Return projects ordered by field")
    sort: SortOrder | None = Field(None, description="Sort direction")
    per_page: PerPage | None = None
    page: Page | None = None


class ListProjects(ActionModel):
    action: Literal["list"] = Field(..., description="Browse accessible projects, or the projects of one group")
    group_id: OptionalId = Field(None, description="List projects of this group (ID or URL-encoded path)")
    search: str | None = Field(None, description="Return projects matching the search criteria")
    owned: FlexibleBool | None = Field(None, description="Limit to projects owned by the current user")
    starred: FlexibleBool | None = Field(None, description="Limit to projects starred by the current user")
    membership: FlexibleBool | None = Field(None, description="Limit to projects the current user is a member of")
    simple: FlexibleBool | None = Field(None, description="Return only limited fields (default true)")
    archived: FlexibleBool | None = Field(None, description="Limit by archived status")
    visibility: Visibility | None = Field(None, description="Limit by visibility")
    with_programming_language: str | None = Field(None, description="Limit to projects using this language")
    include_subgroups: FlexibleBool | None = Field(None, description="Include projects in subgroups (group_id only)")
    with_shared: FlexibleBool | None = Field(None, description="Include projects shared to the group (group_id only)")
    order_by: ProjectOrderBy | None = Field(None, description="Return projects ordered by field (default created_at)")
    sort: SortOrder | None = Field(None, description="Sort direction (default desc)")
    per_page: PerPage | None = None
    page: Page | None = None


class GetProject(ActionModel):
    action: Literal["get"] = Field(..., description="Retrieve full project details")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    statistics: FlexibleBool | None = Field(None, description="Include project statistics")
    license: FlexibleBool | None = Field(None, description="Include project license data")


BROWSE_PROJECTS = ToolSchema("browse_projects", SearchProjects, ListProjects, GetProject)


# =============================================================================
# browse_namespaces
# =============================================================================


class ListNamespaces(ActionModel):
    action: Literal["list"] = Field(..., description="Discover available namespaces")
    search: str | None = Field(None, description="Filter namespaces by name or path")
    owned_only: FlexibleBool | None = Field(None, description="Only namespaces owned by the current user")
    top_level_only: FlexibleBool | None = Field(None, description="Only top level namespaces")
    with_statistics: FlexibleBool | None = Field(None, description="Include storage statistics")
    min_access_level: int | None = Field(None, description="Minimal access level of the current user")
    per_page: PerPage | None = None
    page: Page | None = None


class GetNamespace(ActionModel):
    action: Literal["get"] = Field(..., description="Retrieve namespace details with storage stats")
    namespace_id: RequiredId = Field(..., description="Namespace ID or URL-encoded path")


class VerifyNamespace(ActionModel):
    action: Literal["verify"] = Field(..., description="Check whether a namespace path exists")
    namespace_id: RequiredId = Field(..., description="Namespace ID or URL-encoded path to check")


BROWSE_NAMESPACES = ToolSchema("browse_namespaces", ListNamespaces, GetNamespace, VerifyNamespace)


# =============================================================================
# manage_project
# =============================================================================

# Settings shared by create and update
PROJECT_FEATURE_FIELDS = (
    "issues_enabled",
    "merge_requests_enabled",
    "jobs_enabled",
    "wiki_enabled",
    "snippets_enabled",
    "lfs_enabled",
    "request_access_enabled",
    "only_allow_merge_if_pipeline_succeeds",
    "only_allow_merge_if_all_discussions_are_resolved",
)


class _ProjectFeatures(ActionModel):
    issues_enabled: FlexibleBool | None = Field(None, description="Enable issue tracking")
    merge_requests_enabled: FlexibleBool | None = Field(None, description="Enable merge requests")
    jobs_enabled: FlexibleBool | None = Field(None, description="Enable CI/CD jobs")
    wiki_enabled: FlexibleBool | None = Field(None, description="Enable project wiki")
    snippets_enabled: FlexibleBool | None = Field(None, description="Enable code snippets")
    lfs_enabled: FlexibleBool | None = Field(None, description="Enable Git LFS")
    request_access_enabled: FlexibleBool | None = Field(None, description="Allow access requests")
    only_allow_merge_if_pipeline_succeeds: FlexibleBool | None = Field(
        None, description="Require passing pipelines for merge"
    )
    only_allow_merge_if_all_discussions_are_resolved: FlexibleBool | None = Field(
        None, description="Require resolved discussions for merge"
    )


class CreateProject(_ProjectFeatures):
    mutating = True

    action: Literal["create"] = Field(..., description="Create a new project")
    name: RequiredId = Field(..., description="Project name")
    namespace: OptionalId = Field(None, description="Target namespace ID. Omit for the current user namespace")
    description: str | None = Field(None, description="Project description")
    visibility: Visibility | None = Field(None, description="Project visibility level")
    initialize_with_readme: FlexibleBool | None = Field(None, description="Create an initial README.md")


class ForkProject(ActionModel):
    mutating = True

    action: Literal["fork"] = Field(..., description="Fork an existing project")
    project_id: RequiredId = Field(..., description="Source project ID or URL-encoded path")
    namespace: OptionalId = Field(None, description="Target namespace ID or path")
    namespace_path: str | None = Field(None, description="Target namespace path")
    fork_name: str | None = Field(None, description="Name of the fork (API 'name')")
    fork_path: str | None = Field(None, description="Path of the fork (API 'path')")


class UpdateProject(_ProjectFeatures):
    mutating = True

    action: Literal["update"] = Field(..., description="Update project settings")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    name: str | None = Field(None, description="New project name")
    description: str | None = Field(None, description="New project description")
    visibility: Visibility | None = Field(None, description="New visibility level")
    default_branch: str | None = Field(None, description="Default branch name")


class DeleteProject(ActionModel):
    mutating = True

    action: Literal["delete"] = Field(..., description="Delete a project permanently")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")


class ArchiveProject(ActionModel):
    mutating = True

    action: Literal["archive"] = Field(..., description="Archive a project (read-only mode)")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")


class UnarchiveProject(ActionModel):
    mutating = True

    action: Literal["unarchive"] = Field(..., description="Restore an archived project")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")


class TransferProject(ActionModel):
    mutating = True

    action: Literal["transfer"] = Field(..., description="Move a project to another namespace")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    namespace: RequiredId = Field(..., description="Target namespace ID or path")


MANAGE_PROJECT = ToolSchema(
    "manage_project",
    CreateProject,
    ForkProject,
    UpdateProject,
    DeleteProject,
    ArchiveProject,
    UnarchiveProject,
    TransferProject,
)
