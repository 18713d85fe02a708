# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock

import pytest

from gitlab_mcp.clients.gitlab_client import GitLabClient
from gitlab_mcp.config import clear_settings_cache
from gitlab_mcp.config.deployment import DeploymentConfig
from gitlab_mcp.policy import ActionPolicy
from gitlab_mcp.tools.definition import ToolContext


@pytest.fixture(autouse=True)
def reset_settings():
    """Reset settings cache before each test."""
    clear_settings_cache()
    yield
    clear_settings_cache()


@pytest.fixture
def gitlab() -> AsyncMock:
    """GitLab client double. Every verb is an AsyncMock."""
    return AsyncMock(spec=GitLabClient)


@pytest.fixture
def ctx(gitlab: AsyncMock) -> ToolContext:
    """Tool context with an empty policy."""
    return ToolContext(client=gitlab, policy=ActionPolicy())


@pytest.fixture
def deployment() -> DeploymentConfig:
    """Default deployment: every gate open, nothing denied."""
    return DeploymentConfig()
