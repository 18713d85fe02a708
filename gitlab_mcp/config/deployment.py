# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Deployment configuration.

Everything that decides which tools are listed and which actions may run is
resolved once at startup into an immutable ``DeploymentConfig``: settings,
an environment snapshot for gates, the global preset named by
GITLAB_POLICY_PRESET and the project-local ``.gitlab-mcp/preset.yaml``.
"""

import os
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Literal

import structlog
from pydantic import BaseModel, ConfigDict, Field

from ..policy.denylist import ActionPolicy, PolicyLayer, parse_action_pairs
from ..policy.loader import find_project_preset, layer_from_preset, load_preset_file
from ..policy.models import PolicyPreset, PolicyScope
from ..policy.project_scope import ProjectScope
from .settings import Settings

logger = structlog.get_logger(__name__)

DESCRIPTION_OVERRIDE_PREFIX = "GITLAB_TOOL_"

_TRUE_VALUES = frozenset({"true", "1", "yes", "on"})
_FALSE_VALUES = frozenset({"false", "0", "no", "off"})


class GateResolver:
    """Resolve per-tool feature gates.

    Precedence, highest first: project preset features, environment
    variables, global preset features, the gate's default.
    """

    def __init__(
        self,
        environ: Mapping[str, str] | None = None,
        project_overrides: Mapping[str, bool] | None = None,
        global_overrides: Mapping[str, bool] | None = None,
    ):
        self._environ = dict(environ or {})
        self._project = dict(project_overrides or {})
        self._global = dict(global_overrides or {})

    def resolve(self, env_var: str, default_value: bool = True) -> bool:
        """Return whether the gate named ``env_var`` is open."""
        if env_var in self._project:
            return self._project[env_var]

        raw = self._environ.get(env_var)
        if raw is not None:
            value = raw.strip().lower()
            if value in _TRUE_VALUES:
                return True
            if value in _FALSE_VALUES:
                return False
            logger.warning(
                "Unrecognized gate value, using default",
                gate=env_var,
                value=raw,
                default=default_value,
            )
            return default_value

        if env_var in self._global:
            return self._global[env_var]
        return default_value


class DeploymentConfig(BaseModel):
    """Read-only configuration shared by the registry manager and every handler."""

    model_config = ConfigDict(frozen=True, arbitrary_types_allowed=True)

    read_only: bool = False
    policy: ActionPolicy = Field(default_factory=ActionPolicy)
    gates: GateResolver = Field(default_factory=GateResolver)
    denied_tools_regex: re.Pattern[str] | None = None
    description_overrides: dict[str, str] = Field(default_factory=dict)
    cross_refs: bool = True
    schema_mode: Literal["discriminated", "flat"] = "discriminated"
    project_scope: ProjectScope = Field(default_factory=ProjectScope)

    def is_tool_hidden(self, tool_name: str) -> bool:
        """Check the denied-tools pattern."""
        return bool(self.denied_tools_regex and self.denied_tools_regex.search(tool_name))


def _description_overrides(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect GITLAB_TOOL_<NAME>=<description> overrides keyed by tool name."""
    overrides: dict[str, str] = {}
    for key, value in environ.items():
        if key.startswith(DESCRIPTION_OVERRIDE_PREFIX) and value.strip():
            tool_name = key[len(DESCRIPTION_OVERRIDE_PREFIX):].lower()
            overrides[tool_name] = value.strip()
    return overrides


def _compile_regex(pattern: str | None, source: str) -> re.Pattern[str] | None:
    if not pattern:
        return None
    try:
        return re.compile(pattern)
    except re.error as e:
        logger.error("Invalid denied tools pattern", source=source, pattern=pattern, error=str(e))
        raise ValueError(f"Invalid denied tools pattern from {source}: {e}") from e


def load_deployment_config(
    settings: Settings,
    environ: Mapping[str, str] | None = None,
    project_root: Path | str | None = None,
) -> DeploymentConfig:
    """Build the deployment configuration.

    Args:
        settings: Application settings
        environ: Environment snapshot for gates and description overrides
                 (defaults to os.environ)
        project_root: Directory holding ``.gitlab-mcp/preset.yaml``
                      (defaults to GITLAB_PROJECT_ROOT, then the current directory)

    Raises:
        PresetLoadError: a preset file exists but is invalid
        ValueError: a denied tools pattern does not compile
    """
    env = dict(os.environ if environ is None else environ)

    global_preset: PolicyPreset | None = None
    if settings.gitlab_policy_preset:
        global_preset = load_preset_file(settings.gitlab_policy_preset)

    root = Path(project_root or settings.gitlab_project_root or Path.cwd())
    project_preset = find_project_preset(root)

    layers: list[PolicyLayer] = []
    if global_preset is not None:
        layers.append(layer_from_preset(global_preset, PolicyScope.GLOBAL, settings.gitlab_policy_preset))
    layers.append(
        PolicyLayer(
            PolicyScope.ENVIRONMENT,
            denied=parse_action_pairs(settings.gitlab_denied_actions),
            source="GITLAB_DENIED_ACTIONS",
        )
    )
    if project_preset is not None:
        layers.append(layer_from_preset(project_preset, PolicyScope.PROJECT, str(root)))

    # Most specific definition of the pattern wins
    regex_source, regex = "none", None
    for source, pattern in (
        ("project preset", project_preset.denied_tools_regex if project_preset else None),
        ("GITLAB_DENIED_TOOLS_REGEX", settings.gitlab_denied_tools_regex),
        ("global preset", global_preset.denied_tools_regex if global_preset else None),
    ):
        if pattern:
            regex_source, regex = source, pattern
            break

    read_only = (
        settings.gitlab_read_only_mode
        or bool(global_preset and global_preset.read_only)
        or bool(project_preset and project_preset.read_only)
    )

    config = DeploymentConfig(
        read_only=read_only,
        policy=ActionPolicy(layers),
        gates=GateResolver(
            environ=env,
            project_overrides=project_preset.gate_overrides if project_preset else None,
            global_overrides=global_preset.gate_overrides if global_preset else None,
        ),
        denied_tools_regex=_compile_regex(regex, regex_source),
        description_overrides=_description_overrides(env),
        cross_refs=settings.gitlab_cross_refs,
        schema_mode=settings.gitlab_schema_mode,
        project_scope=ProjectScope(
            pinned_project_id=settings.gitlab_project_id.strip() or None,
            allowed_project_ids=tuple(settings.allowed_project_ids_list),
        ),
    )
    logger.info(
        "Deployment configuration loaded",
        read_only=config.read_only,
        policy=repr(config.policy),
        denied_tools_regex=regex,
        regex_source=regex_source,
        description_overrides=sorted(config.description_overrides),
        schema_mode=config.schema_mode,
        project_scope=repr(config.project_scope),
    )
    return config
