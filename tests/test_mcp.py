# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for MCP endpoints."""

from unittest.mock import AsyncMock, patch

import pytest
from fastapi.testclient import TestClient

from gitlab_mcp.config.deployment import DeploymentConfig
from gitlab_mcp.main import app
from gitlab_mcp.policy import ActionPolicy
from gitlab_mcp.services import RegistryManager


@pytest.fixture
def client() -> TestClient:
    """Create test client."""
    return TestClient(app)


@pytest.fixture
def manager(gitlab) -> RegistryManager:
    return RegistryManager(DeploymentConfig(policy=ActionPolicy.from_denied("manage_project:delete")), gitlab)


@pytest.fixture
def patched_manager(manager):
    with patch("gitlab_mcp.handlers.mcp.get_registry_manager", AsyncMock(return_value=manager)):
        yield manager


# =============================================================================
# MCP Server Info Tests
# =============================================================================


class TestMCPServerInfo:
    def test_server_info(self, client: TestClient, patched_manager):
        response = client.get("/mcp/v1/")
        assert response.status_code == 200
        data = response.json()

        assert data["name"] == "GitLab MCP Gateway"
        assert data["protocolVersion"] == "1.0"
        assert data["readOnly"] is False
        assert data["capabilities"]["tools"] == {"listChanged": False}


# =============================================================================
# MCP Tools Tests
# =============================================================================


class TestMCPTools:
    def test_list_tools(self, client: TestClient, patched_manager):
        response = client.get("/mcp/v1/tools")
        assert response.status_code == 200
        data = response.json()

        assert data["total_count"] == 10
        first = data["tools"][0]
        assert first["name"] == "browse_projects"
        assert "inputSchema" in first

    def test_get_tool_pruned_schema(self, client: TestClient, patched_manager):
        response = client.get("/mcp/v1/tools/manage_project")
        assert response.status_code == 200
        branches = response.json()["inputSchema"]["oneOf"]
        assert "delete" not in [branch["properties"]["action"]["const"] for branch in branches]

    def test_get_tool_not_found(self, client: TestClient, patched_manager):
        response = client.get("/mcp/v1/tools/nonexistent_tool")
        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "TOOL_NOT_FOUND"

    def test_invoke_tool(self, client: TestClient, patched_manager, gitlab):
        gitlab.get.return_value = {"id": 123, "name": "app"}
        response = client.post(
            "/mcp/v1/tools/browse_projects/invoke",
            json={"name": "ignored", "arguments": {"action": "get", "project_id": "123"}, "request_id": "req-9"},
        )
        assert response.status_code == 200
        data = response.json()

        assert data["toolName"] == "browse_projects"
        assert data["result"]["isError"] is False
        assert data["result"]["request_id"] == "req-9"
        assert "invoked_at" in data
        gitlab.get.assert_awaited_once_with("projects/123", query={})

    def test_invoke_denied_action(self, client: TestClient, patched_manager, gitlab):
        response = client.post(
            "/mcp/v1/tools/manage_project/invoke",
            json={"name": "manage_project", "arguments": {"action": "delete", "project_id": 1}},
        )
        assert response.status_code == 200
        result = response.json()["result"]
        assert result["isError"] is True
        assert result["error_code"] == "ACTION_DENIED"
        gitlab.delete.assert_not_awaited()

    def test_invoke_validation_error(self, client: TestClient, patched_manager):
        response = client.post(
            "/mcp/v1/tools/browse_projects/invoke",
            json={"name": "browse_projects", "arguments": {"action": "get"}},
        )
        assert response.status_code == 200
        assert response.json()["result"]["error_code"] == "VALIDATION_ERROR"

    def test_invoke_tool_not_found(self, client: TestClient, patched_manager):
        response = client.post(
            "/mcp/v1/tools/nonexistent_tool/invoke",
            json={"name": "nonexistent_tool", "arguments": {}},
        )
        assert response.status_code == 404


# =============================================================================
# Health and Observability Tests
# =============================================================================


class TestHealth:
    def test_health(self, client: TestClient):
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

    def test_root(self, client: TestClient):
        response = client.get("/")
        assert response.status_code == 200
        assert response.json()["mcp"]["tools"] == "/mcp/v1/tools"

    def test_metrics(self, client: TestClient):
        response = client.get("/metrics")
        assert response.status_code == 200
        assert "gitlab_mcp_tools_visible" in response.text

    def test_ready_after_startup(self, manager):
        with (
            patch("gitlab_mcp.main.get_registry_manager", AsyncMock(return_value=manager)),
            patch("gitlab_mcp.main.shutdown_registry_manager", AsyncMock()) as shutdown,
        ):
            with TestClient(app) as client:
                response = client.get("/ready")
                assert response.status_code == 200
                assert response.json()["status"] == "ready"
            shutdown.assert_awaited_once()
