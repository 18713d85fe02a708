# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pipelines tools.

browse_pipelines (Query): list, get, jobs, triggers, job, logs
manage_pipeline (Command): create, retry, cancel
manage_pipeline_job (Command): play, retry, cancel

Gated by USE_PIPELINE (default on).
"""

from typing import Any

from ..clients.gitlab_client import GitLabClient
from ..errors import UnreachableDispatchError
from ..schema.pipelines import (
    BROWSE_PIPELINES,
    DEFAULT_LOG_LINES,
    MANAGE_PIPELINE,
    MANAGE_PIPELINE_JOB,
    CancelJob,
    CancelPipeline,
    CreatePipeline,
    GetJob,
    GetJobLogs,
    GetPipeline,
    ListPipelineJobs,
    ListPipelines,
    ListPipelineTriggers,
    PlayJob,
    RetryJob,
    RetryPipeline,
)
from .definition import ToolContext, ToolGate, define_tool
from .registry import ToolRegistry
from .shaping import encode_id, to_query, window_trace

PIPELINE_GATE = ToolGate(env_var="USE_PIPELINE", default_value=True)


def _pipeline_path(project_id: str, pipeline_id: str) -> str:
    return f"projects/{encode_id(project_id)}/pipelines/{encode_id(pipeline_id)}"


def _job_path(project_id: str, job_id: str) -> str:
    return f"projects/{encode_id(project_id)}/jobs/{encode_id(job_id)}"


def _scoped_query(action: Any, scope_field: str) -> dict[str, str | list[str]]:
    """Jobs and bridges take their status filter as ``scope[]``."""
    params = action.pick("include_retried", "per_page", "page")
    scope = getattr(action, scope_field)
    if scope:
        params["scope"] = scope
    return to_query(params)


async def dispatch_browse_pipelines(action: Any, client: GitLabClient) -> Any:
    if isinstance(action, ListPipelines):
        query = to_query(
            action.pick(
                "scope",
                "status",
                "source",
                "ref",
                "sha",
                "yaml_errors",
                "username",
                "updated_after",
                "updated_before",
                "order_by",
                "sort",
                "per_page",
                "page",
            )
        )
        return await client.get(f"projects/{encode_id(action.project_id)}/pipelines", query=query)

    elif isinstance(action, GetPipeline):
        return await client.get(_pipeline_path(action.project_id, action.pipeline_id))

    elif isinstance(action, ListPipelineJobs):
        return await client.get(
            f"{_pipeline_path(action.project_id, action.pipeline_id)}/jobs",
            query=_scoped_query(action, "job_scope"),
        )

    elif isinstance(action, ListPipelineTriggers):
        return await client.get(
            f"{_pipeline_path(action.project_id, action.pipeline_id)}/bridges",
            query=_scoped_query(action, "trigger_scope"),
        )

    elif isinstance(action, GetJob):
        return await client.get(_job_path(action.project_id, action.job_id))

    elif isinstance(action, GetJobLogs):
        trace = await client.get_text(f"{_job_path(action.project_id, action.job_id)}/trace")
        return window_trace(trace, action.per_page or DEFAULT_LOG_LINES, action.start)

    raise UnreachableDispatchError("browse_pipelines", action.action)


async def dispatch_manage_pipeline(action: Any, client: GitLabClient) -> Any:
    if isinstance(action, CreatePipeline):
        body: dict[str, Any] = {}
        if action.variables:
            body["variables"] = [variable.model_dump(exclude_none=True) for variable in action.variables]
        if action.inputs:
            body["inputs"] = dict(action.inputs)
        return await client.post(
            f"projects/{encode_id(action.project_id)}/pipeline",
            query={"ref": action.ref},
            body=body,
        )

    elif isinstance(action, RetryPipeline):
        return await client.post(f"{_pipeline_path(action.project_id, action.pipeline_id)}/retry")

    elif isinstance(action, CancelPipeline):
        return await client.post(f"{_pipeline_path(action.project_id, action.pipeline_id)}/cancel")

    raise UnreachableDispatchError("manage_pipeline", action.action)


async def dispatch_manage_pipeline_job(action: Any, client: GitLabClient) -> Any:
    if isinstance(action, PlayJob):
        body: dict[str, Any] = {}
        if action.job_variables_attributes:
            body["job_variables_attributes"] = [
                variable.model_dump(exclude_none=True) for variable in action.job_variables_attributes
            ]
        return await client.post(f"{_job_path(action.project_id, action.job_id)}/play", body=body)

    elif isinstance(action, RetryJob):
        return await client.post(f"{_job_path(action.project_id, action.job_id)}/retry")

    elif isinstance(action, CancelJob):
        query = {"force": "true"} if action.force else None
        return await client.post(f"{_job_path(action.project_id, action.job_id)}/cancel", query=query)

    raise UnreachableDispatchError("manage_pipeline_job", action.action)


def build_pipelines_registry(ctx: ToolContext) -> ToolRegistry:
    """Build the pipelines registry bound to ``ctx``."""
    return ToolRegistry(
        "pipelines",
        [
            define_tool(
                "browse_pipelines",
                "Monitor CI/CD pipelines and read job logs. Actions: list (filter by status/ref/source/username), "
                "get (pipeline details), jobs (list pipeline jobs), triggers (bridge/trigger jobs), "
                "job (single job details), logs (job console output). "
                "Related: manage_pipeline to trigger/retry/cancel, manage_pipeline_job for individual jobs.",
                BROWSE_PIPELINES,
                dispatch_browse_pipelines,
                ctx,
                gate=PIPELINE_GATE,
            ),
            define_tool(
                "manage_pipeline",
                "Trigger, retry, or cancel CI/CD pipelines. Actions: create (run pipeline on ref with variables "
                "or typed inputs), retry (re-run failed jobs), cancel (stop running pipeline). "
                "Related: browse_pipelines for monitoring.",
                MANAGE_PIPELINE,
                dispatch_manage_pipeline,
                ctx,
                gate=PIPELINE_GATE,
            ),
            define_tool(
                "manage_pipeline_job",
                "Control individual CI/CD jobs within a pipeline. Actions: play (trigger manual/delayed job "
                "with variables), retry (re-run single job), cancel (stop running job). "
                "Related: browse_pipelines actions 'job'/'logs' for job details.",
                MANAGE_PIPELINE_JOB,
                dispatch_manage_pipeline_job,
                ctx,
                gate=PIPELINE_GATE,
            ),
        ],
        read_only_names=["browse_pipelines"],
    )
