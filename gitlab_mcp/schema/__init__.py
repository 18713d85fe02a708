"""Tool input schemas: one tagged union of action models per tool."""

from .base import (
    ActionModel,
    FlexibleBool,
    OptionalId,
    Page,
    PerPage,
    RequiredId,
    ToolSchema,
)

__all__ = [
    "ActionModel",
    "ToolSchema",
    "RequiredId",
    "OptionalId",
    "FlexibleBool",
    "PerPage",
    "Page",
]
