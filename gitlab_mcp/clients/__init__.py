"""Upstream API clients."""

from .gitlab_client import GitLabClient

__all__ = ["GitLabClient"]
