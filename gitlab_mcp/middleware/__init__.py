"""Middleware for the GitLab MCP Gateway."""

from .metrics import MetricsMiddleware

__all__ = ["MetricsMiddleware"]
