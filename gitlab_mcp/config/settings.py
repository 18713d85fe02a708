"""Application settings using Pydantic Settings."""

from functools import lru_cache
from typing import Literal

from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration settings.

    All settings can be overridden via environment variables.
    Per-tool feature gates (USE_PIPELINE, USE_MEMBERS, ...) and description
    overrides (GITLAB_TOOL_<NAME>) are not settings fields; they are read from
    the environment when the deployment configuration is built.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "GitLab MCP Gateway"
    app_version: str = "0.1.0"
    environment: Literal["dev", "staging", "prod"] = "dev"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8080

    # Upstream GitLab API
    gitlab_api_url: str = "https://gitlab.com"
    gitlab_token: str = ""
    gitlab_api_timeout_ms: int = 20000
    skip_tls_verify: bool = False

    # Catalog filtering
    gitlab_read_only_mode: bool = False
    gitlab_denied_tools_regex: str = ""
    gitlab_cross_refs: bool = True
    gitlab_schema_mode: Literal["discriminated", "flat"] = "discriminated"

    # Action policy
    # Comma-separated "tool:action" pairs, e.g. "manage_project:delete,manage_member:remove_from_group"
    gitlab_denied_actions: str = ""
    gitlab_policy_preset: str = ""  # Path to the global preset YAML
    gitlab_project_root: str = ""  # Empty = current working directory

    # Project scope
    gitlab_project_id: str = ""  # Pins project-bound tools to this project
    gitlab_allowed_project_ids: str = ""  # Comma-separated allowlist, empty = any project

    # Logging
    log_level: str = "INFO"
    log_format: Literal["json", "text"] = "json"

    # Observability
    enable_metrics: bool = True
    metrics_prefix: str = "gitlab_mcp"

    @model_validator(mode="after")
    def normalize_api_url(self) -> "Settings":
        """Strip trailing slashes and a trailing /api/v4 from the API URL."""
        url = self.gitlab_api_url.rstrip("/")
        if url.endswith("/api/v4"):
            url = url[: -len("/api/v4")]
        object.__setattr__(self, "gitlab_api_url", url)
        return self

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        upper = v.upper()
        if upper not in valid_levels:
            raise ValueError(f"Invalid log level: {v}. Must be one of {valid_levels}")
        return upper

    @field_validator("gitlab_api_timeout_ms")
    @classmethod
    def validate_timeout(cls, v: int) -> int:
        """Reject non-positive timeouts."""
        if v <= 0:
            raise ValueError("gitlab_api_timeout_ms must be positive")
        return v

    @property
    def gitlab_api_base(self) -> str:
        """Return the REST API v4 base URL."""
        return f"{self.gitlab_api_url}/api/v4"

    @property
    def gitlab_timeout_seconds(self) -> float:
        """Return the upstream timeout in seconds."""
        return self.gitlab_api_timeout_ms / 1000

    @property
    def denied_actions_list(self) -> list[str]:
        """Return the raw denied action entries as a list."""
        return [entry.strip() for entry in self.gitlab_denied_actions.split(",") if entry.strip()]

    @property
    def allowed_project_ids_list(self) -> list[str]:
        """Return the project allowlist as a list."""
        return [entry.strip() for entry in self.gitlab_allowed_project_ids.split(",") if entry.strip()]

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.environment == "prod"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear the settings cache (useful for testing)."""
    get_settings.cache_clear()
