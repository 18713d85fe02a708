"""Pydantic models for YAML policy preset files.

A preset restricts what the gateway exposes and executes: denied or
re-allowed ``tool:action`` pairs, a denied-tools pattern, feature toggles
and a read-only switch.
"""

import re
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field, field_validator

ACTION_PAIR_PATTERN = re.compile(r"^[A-Za-z0-9_]+:[A-Za-z0-9_]+$")

# Preset feature names and the gate variable each one controls
FEATURE_GATES: dict[str, str] = {
    "pipelines": "USE_PIPELINE",
    "members": "USE_MEMBERS",
    "integrations": "USE_INTEGRATIONS",
}


class PolicyScope(str, Enum):
    """Configuration layers, from least to most specific."""

    GLOBAL = "global"  # Preset file named by GITLAB_POLICY_PRESET
    ENVIRONMENT = "environment"  # GITLAB_DENIED_ACTIONS
    PROJECT = "project"  # .gitlab-mcp/preset.yaml under the project root


class PolicyPreset(BaseModel):
    """One preset file.

    Example:
        read_only: false
        denied_actions: ["manage_project:delete"]
        allowed_actions: ["browse_pipelines:logs"]
        denied_tools_regex: "^manage_"
        features: {pipelines: false}
    """

    model_config = ConfigDict(extra="forbid")

    description: str | None = Field(None, description="Free-form note about the preset")
    read_only: bool = Field(False, description="Force read-only mode (can only restrict)")
    denied_actions: list[str] = Field(default_factory=list, description="'tool:action' pairs to deny")
    allowed_actions: list[str] = Field(
        default_factory=list,
        description="'tool:action' pairs to re-allow over a less specific layer",
    )
    denied_tools_regex: str | None = Field(None, description="Hide tools whose name matches")
    features: dict[str, bool] = Field(default_factory=dict, description="Feature toggles (pipelines, members, ...)")

    @field_validator("denied_actions", "allowed_actions")
    @classmethod
    def validate_action_pairs(cls, v: list[str]) -> list[str]:
        """Require 'tool:action' entries and normalize them to lowercase."""
        normalized = []
        for entry in v:
            stripped = entry.strip()
            if not ACTION_PAIR_PATTERN.match(stripped):
                raise ValueError(f"Invalid action entry '{entry}': expected 'tool:action'")
            normalized.append(stripped.lower())
        return normalized

    @field_validator("denied_tools_regex")
    @classmethod
    def validate_regex(cls, v: str | None) -> str | None:
        """Reject patterns that do not compile."""
        if v:
            try:
                re.compile(v)
            except re.error as e:
                raise ValueError(f"Invalid denied_tools_regex: {e}") from e
        return v or None

    @field_validator("features")
    @classmethod
    def validate_features(cls, v: dict[str, bool]) -> dict[str, bool]:
        """Only known feature names are accepted."""
        unknown = sorted(set(v) - set(FEATURE_GATES))
        if unknown:
            raise ValueError(f"Unknown features {unknown}. Known: {sorted(FEATURE_GATES)}")
        return v

    @property
    def gate_overrides(self) -> dict[str, bool]:
        """Feature toggles keyed by gate variable name."""
        return {FEATURE_GATES[name]: enabled for name, enabled in self.features.items()}
