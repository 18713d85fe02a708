# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Action models for project integrations.

browse_integrations (query): list, get
manage_integration (command): update, disable
"""

from typing import Any, Literal

from pydantic import Field

from .base import ActionModel, FlexibleBool, Page, PerPage, RequiredId, ToolSchema

IntegrationSlug = Literal[
    "apple-app-store",
    "asana",
    "assembla",
    "bamboo",
    "bugzilla",
    "buildkite",
    "campfire",
    "clickup",
    "confluence",
    "custom-issue-tracker",
    "datadog",
    "diffblue-cover",
    "discord",
    "drone-ci",
    "emails-on-push",
    "ewm",
    "external-wiki",
    "gitlab-slack-application",
    "github",
    "google-play",
    "hangouts-chat",
    "harbor",
    "irker",
    "jenkins",
    "jira",
    "jira-cloud-app",
    "matrix",
    "mattermost",
    "mattermost-slash-commands",
    "microsoft-teams",
    "packagist",
    "phorge",
    "pipelines-email",
    "pivotaltracker",
    "prometheus",
    "pumble",
    "pushover",
    "redmine",
    "slack",
    "slack-slash-commands",
    "squash-tm",
    "teamcity",
    "telegram",
    "unify-circuit",
    "webex-teams",
    "youtrack",
    "zentao",
]

# Event toggles accepted by every integration update
INTEGRATION_EVENT_FIELDS = (
    "push_events",
    "issues_events",
    "confidential_issues_events",
    "merge_requests_events",
    "tag_push_events",
    "note_events",
    "confidential_note_events",
    "pipeline_events",
    "wiki_page_events",
    "job_events",
    "deployment_events",
    "alert_events",
    "incident_events",
    "vulnerability_events",
)


# =============================================================================
# browse_integrations
# =============================================================================


class ListIntegrations(ActionModel):
    action: Literal["list"] = Field(..., description="List all active integrations of a project")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    per_page: PerPage | None = None
    page: Page | None = None


class GetIntegration(ActionModel):
    action: Literal["get"] = Field(..., description="Get the settings of one integration")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    integration: IntegrationSlug = Field(..., description="Integration type slug (e.g. slack, jira, discord)")


BROWSE_INTEGRATIONS = ToolSchema("browse_integrations", ListIntegrations, GetIntegration)


# =============================================================================
# manage_integration
# =============================================================================


class UpdateIntegration(ActionModel):
    mutating = True

    action: Literal["update"] = Field(..., description="Enable an integration or change its settings")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    integration: IntegrationSlug = Field(
        ...,
        description=(
            "Integration type slug. gitlab-slack-application cannot be created via the API, "
            "it requires the OAuth installation from the GitLab UI"
        ),
    )
    active: FlexibleBool | None = Field(None, description="Enable or disable the integration")
    push_events: FlexibleBool | None = Field(None, description="Trigger on push events")
    issues_events: FlexibleBool | None = Field(None, description="Trigger on issue events")
    confidential_issues_events: FlexibleBool | None = Field(None, description="Trigger on confidential issue events")
    merge_requests_events: FlexibleBool | None = Field(None, description="Trigger on merge request events")
    tag_push_events: FlexibleBool | None = Field(None, description="Trigger on tag push events")
    note_events: FlexibleBool | None = Field(None, description="Trigger on comment events")
    confidential_note_events: FlexibleBool | None = Field(None, description="Trigger on confidential comment events")
    pipeline_events: FlexibleBool | None = Field(None, description="Trigger on pipeline events")
    wiki_page_events: FlexibleBool | None = Field(None, description="Trigger on wiki page events")
    job_events: FlexibleBool | None = Field(None, description="Trigger on job events")
    deployment_events: FlexibleBool | None = Field(None, description="Trigger on deployment events")
    alert_events: FlexibleBool | None = Field(None, description="Trigger on alert events")
    incident_events: FlexibleBool | None = Field(None, description="Trigger on incident events")
    vulnerability_events: FlexibleBool | None = Field(None, description="Trigger on vulnerability events")
    config: dict[str, Any] | None = Field(
        None,
        description="Integration-specific settings (webhook, token, url, ...), sent as top-level fields",
    )


class DisableIntegration(ActionModel):
    mutating = True

    action: Literal["disable"] = Field(..., description="Disable and remove an integration")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    integration: IntegrationSlug = Field(..., description="Integration type slug")


MANAGE_INTEGRATION = ToolSchema("manage_integration", UpdateIntegration, DisableIntegration)
