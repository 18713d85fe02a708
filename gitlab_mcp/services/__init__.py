"""Services for the GitLab MCP Gateway."""

from .registry_manager import CatalogEntry, RegistryManager
from .singleton import get_registry_manager, shutdown_registry_manager

__all__ = [
    "CatalogEntry",
    "RegistryManager",
    "get_registry_manager",
    "shutdown_registry_manager",
]
