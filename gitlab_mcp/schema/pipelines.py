# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Action models for CI/CD pipelines and jobs.

browse_pipelines (query): list, get, jobs, triggers, job, logs
manage_pipeline (command): create, retry, cancel
manage_pipeline_job (command): play, retry, cancel
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from .base import ActionModel, FlexibleBool, Page, PerPage, RequiredId, ToolSchema

PipelineScope = Literal["running", "pending", "finished", "branches", "tags"]
PipelineStatus = Literal[
    "created",
    "waiting_for_resource",
    "preparing",
    "pending",
    "running",
    "success",
    "failed",
    "canceled",
    "skipped",
    "manual",
    "scheduled",
]
JobScope = Literal[
    "created",
    "pending",
    "running",
    "failed",
    "success",
    "canceled",
    "skipped",
    "waiting_for_resource",
    "manual",
]

DEFAULT_LOG_LINES = 200


class PipelineVariable(BaseModel):
    """A key/value variable passed to a pipeline or a manual job."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    key: str = Field(..., description="Variable name")
    value: str = Field(..., description="Variable value")
    variable_type: Literal["env_var", "file"] | None = Field(
        None, description="Variable type: env_var (default) or file"
    )


PipelineInputValue = str | int | float | bool | list[str]


# =============================================================================
# browse_pipelines
# =============================================================================


class ListPipelines(ActionModel):
    action: Literal["list"] = Field(..., description="List pipelines filtered by status, ref, source or user")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    scope: PipelineScope | None = Field(None, description="Pipeline scope")
    status: PipelineStatus | None = Field(None, description="Pipeline status")
    source: str | None = Field(None, description="Pipeline source (push, web, schedule, merge_request_event, ...)")
    ref: str | None = Field(None, description="Branch or tag name")
    sha: str | None = Field(None, description="Commit SHA")
    yaml_errors: FlexibleBool | None = Field(None, description="Only pipelines with invalid configuration")
    username: str | None = Field(None, description="Username of the user who triggered the pipeline")
    updated_after: str | None = Field(None, description="Updated after this time (ISO 8601)")
    updated_before: str | None = Field(None, description="Updated before this time (ISO 8601)")
    order_by: Literal["id", "status", "ref", "updated_at", "user_id"] | None = Field(
        None, description="Order pipelines by field"
    )
    sort: Literal["asc", "desc"] | None = Field(None, description="Sort direction")
    per_page: PerPage | None = None
    page: Page | None = None


class GetPipeline(ActionModel):
    action: Literal["get"] = Field(..., description="Get pipeline details")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    pipeline_id: RequiredId = Field(..., description="The ID of the pipeline")


class ListPipelineJobs(ActionModel):
    action: Literal["jobs"] = Field(..., description="List the jobs of a pipeline")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    pipeline_id: RequiredId = Field(..., description="The ID of the pipeline")
    job_scope: list[JobScope] | None = Field(None, description="Job statuses to include")
    include_retried: FlexibleBool | None = Field(None, description="Include retried jobs")
    per_page: PerPage | None = None
    page: Page | None = None


class ListPipelineTriggers(ActionModel):
    action: Literal["triggers"] = Field(..., description="List the bridge (trigger) jobs of a pipeline")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    pipeline_id: RequiredId = Field(..., description="The ID of the pipeline")
    trigger_scope: list[JobScope] | None = Field(None, description="Bridge job statuses to include")
    include_retried: FlexibleBool | None = Field(None, description="Include retried jobs")
    per_page: PerPage | None = None
    page: Page | None = None


class GetJob(ActionModel):
    action: Literal["job"] = Field(..., description="Get details of a single job")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    job_id: RequiredId = Field(..., description="The ID of the job")


class GetJobLogs(ActionModel):
    action: Literal["logs"] = Field(..., description="Read the console output of a job")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    job_id: RequiredId = Field(..., description="The ID of the job")
    per_page: int | None = Field(
        None, ge=1, description=f"Maximum number of lines to return (default {DEFAULT_LOG_LINES})"
    )
    start: int | None = Field(
        None,
        description="First line to return. Negative values count from the end. Omit to get the tail",
    )


BROWSE_PIPELINES = ToolSchema(
    "browse_pipelines",
    ListPipelines,
    GetPipeline,
    ListPipelineJobs,
    ListPipelineTriggers,
    GetJob,
    GetJobLogs,
)


# =============================================================================
# manage_pipeline
# =============================================================================


class CreatePipeline(ActionModel):
    mutating = True

    action: Literal["create"] = Field(..., description="Run a new pipeline on a branch or tag")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    ref: str = Field(..., min_length=1, description="The branch or tag to run the pipeline on")
    variables: list[PipelineVariable] | None = Field(None, description="Variables passed to the pipeline")
    inputs: dict[str, PipelineInputValue] | None = Field(
        None, description="Typed pipeline inputs declared in the .gitlab-ci.yml spec"
    )


class RetryPipeline(ActionModel):
    mutating = True

    action: Literal["retry"] = Field(..., description="Re-run the failed or canceled jobs of a pipeline")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    pipeline_id: RequiredId = Field(..., description="The ID of the pipeline")


class CancelPipeline(ActionModel):
    mutating = True

    action: Literal["cancel"] = Field(..., description="Stop a running pipeline")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    pipeline_id: RequiredId = Field(..., description="The ID of the pipeline")


MANAGE_PIPELINE = ToolSchema("manage_pipeline", CreatePipeline, RetryPipeline, CancelPipeline)


# =============================================================================
# manage_pipeline_job
# =============================================================================


class PlayJob(ActionModel):
    mutating = True

    action: Literal["play"] = Field(..., description="Trigger a manual job")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    job_id: RequiredId = Field(..., description="The ID of the job")
    job_variables_attributes: list[PipelineVariable] | None = Field(
        None, description="Variables passed to the job"
    )


class RetryJob(ActionModel):
    mutating = True

    action: Literal["retry"] = Field(..., description="Re-run a single job")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    job_id: RequiredId = Field(..., description="The ID of the job")


class CancelJob(ActionModel):
    mutating = True

    action: Literal["cancel"] = Field(..., description="Stop a running job")
    project_id: RequiredId = Field(..., description="Project ID or URL-encoded path")
    job_id: RequiredId = Field(..., description="The ID of the job")
    force: FlexibleBool | None = Field(None, description="Force cancellation of the job")


MANAGE_PIPELINE_JOB = ToolSchema("manage_pipeline_job", PlayJob, RetryJob, CancelJob)
