# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Registry manager singleton management.

Startup order: settings -> deployment configuration -> GitLab client ->
registry manager.
"""

from typing import TYPE_CHECKING

import structlog

from ..clients.gitlab_client import GitLabClient
from ..config import get_settings
from ..config.deployment import load_deployment_config

if TYPE_CHECKING:
    from .registry_manager import RegistryManager

logger = structlog.get_logger(__name__)

# Singleton instance
_manager: "RegistryManager | None" = None


async def get_registry_manager() -> "RegistryManager":
    """Get the registry manager singleton."""
    global _manager
    if _manager is None:
        # Import here to avoid circular imports
        from .registry_manager import RegistryManager

        settings = get_settings()
        deployment = load_deployment_config(settings)
        client = GitLabClient.from_settings(settings)
        _manager = RegistryManager(deployment, client)
    return _manager


async def shutdown_registry_manager() -> None:
    """Shutdown the registry manager."""
    global _manager
    if _manager:
        await _manager.shutdown()
        _manager = None
