"""GitLab tools, grouped into one registry per functional area."""

from .definition import ToolContext, ToolDefinition, ToolGate, build_handler, define_tool
from .integrations import build_integrations_registry
from .members import build_members_registry
from .pipelines import build_pipelines_registry
from .projects import build_projects_registry
from .registry import ToolRegistry

# Catalog order: areas are listed in this order
DEFAULT_BUILDERS = (
    build_projects_registry,
    build_members_registry,
    build_pipelines_registry,
    build_integrations_registry,
)

__all__ = [
    "DEFAULT_BUILDERS",
    "ToolContext",
    "ToolDefinition",
    "ToolGate",
    "ToolRegistry",
    "build_handler",
    "define_tool",
    "build_projects_registry",
    "build_members_registry",
    "build_pipelines_registry",
    "build_integrations_registry",
]
