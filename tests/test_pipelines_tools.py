# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for the pipelines tools."""

import pytest

from gitlab_mcp.errors import UnreachableDispatchError
from gitlab_mcp.schema.pipelines import CancelJob, GetPipeline, RetryPipeline
from gitlab_mcp.tools.pipelines import (
    PIPELINE_GATE,
    build_pipelines_registry,
    dispatch_browse_pipelines,
    dispatch_manage_pipeline,
    dispatch_manage_pipeline_job,
)


@pytest.fixture
def registry(ctx):
    return build_pipelines_registry(ctx)


async def call(registry, tool_name: str, arguments: dict):
    return await registry.get(tool_name).handler(arguments)


def test_registry_layout(registry):
    assert registry.names() == ["browse_pipelines", "manage_pipeline", "manage_pipeline_job"]
    assert registry.read_only_names == {"browse_pipelines"}
    assert all(tool.gate == PIPELINE_GATE for tool in registry)


class TestBrowsePipelines:
    async def test_list(self, registry, gitlab):
        gitlab.get.return_value = []
        await call(registry, "browse_pipelines", {"action": "list", "project_id": 5, "status": "failed", "ref": "main"})
        gitlab.get.assert_awaited_once_with("projects/5/pipelines", query={"status": "failed", "ref": "main"})

    async def test_get(self, registry, gitlab):
        gitlab.get.return_value = {"id": 100}
        await call(registry, "browse_pipelines", {"action": "get", "project_id": 5, "pipeline_id": 100})
        gitlab.get.assert_awaited_once_with("projects/5/pipelines/100")

    async def test_jobs_scope(self, registry, gitlab):
        gitlab.get.return_value = []
        await call(
            registry,
            "browse_pipelines",
            {"action": "jobs", "project_id": 5, "pipeline_id": 100, "job_scope": ["failed", "canceled"]},
        )
        gitlab.get.assert_awaited_once_with(
            "projects/5/pipelines/100/jobs", query={"scope[]": ["failed", "canceled"]}
        )

    async def test_triggers(self, registry, gitlab):
        gitlab.get.return_value = []
        await call(registry, "browse_pipelines", {"action": "triggers", "project_id": 5, "pipeline_id": 100})
        gitlab.get.assert_awaited_once_with("projects/5/pipelines/100/bridges", query={})

    async def test_job(self, registry, gitlab):
        gitlab.get.return_value = {"id": 9}
        await call(registry, "browse_pipelines", {"action": "job", "project_id": 5, "job_id": 9})
        gitlab.get.assert_awaited_once_with("projects/5/jobs/9")

    async def test_logs_default_window(self, registry, gitlab):
        gitlab.get_text.return_value = "\n".join(f"line {i}" for i in range(500))
        result = await call(registry, "browse_pipelines", {"action": "logs", "project_id": 5, "job_id": 9})
        gitlab.get_text.assert_awaited_once_with("projects/5/jobs/9/trace")
        assert result["totalLines"] == 500
        assert result["shownLines"] == 200
        assert result["startLine"] == 300
        assert result["trace"].startswith("[LOG TRUNCATED: Showing last 200 of 500 lines (lines 300-499)]")

    async def test_logs_explicit_window(self, registry, gitlab):
        gitlab.get_text.return_value = "a\nb\nc\nd\ne"
        result = await call(
            registry, "browse_pipelines", {"action": "logs", "project_id": 5, "job_id": 9, "start": 1, "per_page": 2}
        )
        assert result["shownLines"] == 2
        assert result["hasMore"] is True
        assert result["nextStart"] == 3
        assert result["trace"].endswith("b\nc")


class TestManagePipeline:
    async def test_create_with_variables_and_inputs(self, registry, gitlab):
        gitlab.post.return_value = {"id": 101}
        await call(
            registry,
            "manage_pipeline",
            {
                "action": "create",
                "project_id": 5,
                "ref": "main",
                "variables": [{"key": "DEPLOY", "value": "yes", "variable_type": "env_var"}, {"key": "X", "value": "1"}],
                "inputs": {"env": "prod"},
            },
        )
        gitlab.post.assert_awaited_once_with(
            "projects/5/pipeline",
            query={"ref": "main"},
            body={
                "variables": [
                    {"key": "DEPLOY", "value": "yes", "variable_type": "env_var"},
                    {"key": "X", "value": "1"},
                ],
                "inputs": {"env": "prod"},
            },
        )

    async def test_create_minimal(self, registry, gitlab):
        gitlab.post.return_value = {"id": 102}
        await call(registry, "manage_pipeline", {"action": "create", "project_id": 5, "ref": "v1.0"})
        gitlab.post.assert_awaited_once_with("projects/5/pipeline", query={"ref": "v1.0"}, body={})

    @pytest.mark.parametrize("action", ["retry", "cancel"])
    async def test_retry_cancel(self, registry, gitlab, action):
        gitlab.post.return_value = {"id": 100}
        await call(registry, "manage_pipeline", {"action": action, "project_id": 5, "pipeline_id": 100})
        gitlab.post.assert_awaited_once_with(f"projects/5/pipelines/100/{action}")


class TestManagePipelineJob:
    async def test_play_with_variables(self, registry, gitlab):
        gitlab.post.return_value = {"id": 9}
        await call(
            registry,
            "manage_pipeline_job",
            {"action": "play", "project_id": 5, "job_id": 9, "job_variables_attributes": [{"key": "A", "value": "b"}]},
        )
        gitlab.post.assert_awaited_once_with(
            "projects/5/jobs/9/play", body={"job_variables_attributes": [{"key": "A", "value": "b"}]}
        )

    async def test_retry(self, registry, gitlab):
        gitlab.post.return_value = {"id": 10}
        await call(registry, "manage_pipeline_job", {"action": "retry", "project_id": 5, "job_id": 9})
        gitlab.post.assert_awaited_once_with("projects/5/jobs/9/retry")

    async def test_force_cancel(self, registry, gitlab):
        gitlab.post.return_value = {"id": 9}
        await call(registry, "manage_pipeline_job", {"action": "cancel", "project_id": 5, "job_id": 9, "force": "true"})
        gitlab.post.assert_awaited_once_with("projects/5/jobs/9/cancel", query={"force": "true"})

    async def test_cancel(self, registry, gitlab):
        gitlab.post.return_value = {"id": 9}
        await call(registry, "manage_pipeline_job", {"action": "cancel", "project_id": 5, "job_id": 9})
        gitlab.post.assert_awaited_once_with("projects/5/jobs/9/cancel", query=None)


@pytest.mark.parametrize(
    "dispatch,action",
    [
        (dispatch_browse_pipelines, RetryPipeline(action="retry", project_id="1", pipeline_id="2")),
        (dispatch_manage_pipeline, CancelJob(action="cancel", project_id="1", job_id="2")),
        (dispatch_manage_pipeline_job, GetPipeline(action="get", project_id="1", pipeline_id="2")),
    ],
)
async def test_dispatch_without_branch(dispatch, action, gitlab):
    with pytest.raises(UnreachableDispatchError):
        await dispatch(action, gitlab)
    assert gitlab.mock_calls == []
