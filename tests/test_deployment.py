# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for settings and deployment configuration."""

import re

import pytest

from gitlab_mcp.config import Settings, get_settings
from gitlab_mcp.config.deployment import DeploymentConfig, GateResolver, load_deployment_config
from gitlab_mcp.policy import PresetLoadError


def write_project_preset(root, content: str) -> None:
    (root / ".gitlab-mcp").mkdir(exist_ok=True)
    (root / ".gitlab-mcp" / "preset.yaml").write_text(content)


# =============================================================================
# Settings
# =============================================================================


class TestSettings:
    def test_defaults(self):
        settings = Settings(_env_file=None)
        assert settings.gitlab_api_url == "https://gitlab.com"
        assert settings.gitlab_api_base == "https://gitlab.com/api/v4"
        assert settings.gitlab_timeout_seconds == 20.0
        assert settings.gitlab_cross_refs is True
        assert settings.gitlab_schema_mode == "discriminated"

    def test_api_url_normalization(self):
        settings = Settings(_env_file=None, gitlab_api_url="https://gitlab.example.com/api/v4/")
        assert settings.gitlab_api_url == "https://gitlab.example.com"
        assert settings.gitlab_api_base == "https://gitlab.example.com/api/v4"

    def test_from_environment(self, monkeypatch):
        monkeypatch.setenv("GITLAB_API_URL", "https://git.internal")
        monkeypatch.setenv("GITLAB_READ_ONLY_MODE", "true")
        monkeypatch.setenv("GITLAB_DENIED_ACTIONS", "manage_project:delete, manage_member:add_to_group")
        settings = get_settings()
        assert settings.gitlab_api_url == "https://git.internal"
        assert settings.gitlab_read_only_mode is True
        assert settings.denied_actions_list == ["manage_project:delete", "manage_member:add_to_group"]

    def test_log_level_is_validated(self):
        assert Settings(_env_file=None, log_level="debug").log_level == "DEBUG"
        with pytest.raises(ValueError):
            Settings(_env_file=None, log_level="loud")

    def test_timeout_must_be_positive(self):
        with pytest.raises(ValueError):
            Settings(_env_file=None, gitlab_api_timeout_ms=0)

    def test_settings_are_cached(self):
        assert get_settings() is get_settings()


# =============================================================================
# Gates
# =============================================================================


class TestGateResolver:
    def test_default(self):
        assert GateResolver().resolve("USE_PIPELINE") is True
        assert GateResolver().resolve("USE_PIPELINE", default_value=False) is False

    @pytest.mark.parametrize("value,expected", [("false", False), ("0", False), ("OFF", False), ("true", True), ("1", True)])
    def test_environment(self, value, expected):
        gates = GateResolver(environ={"USE_PIPELINE": value})
        assert gates.resolve("USE_PIPELINE") is expected

    def test_unrecognized_value_uses_default(self):
        gates = GateResolver(environ={"USE_MEMBERS": "maybe"})
        assert gates.resolve("USE_MEMBERS") is True

    def test_precedence(self):
        gates = GateResolver(
            environ={"USE_PIPELINE": "false", "USE_MEMBERS": "false"},
            project_overrides={"USE_PIPELINE": True},
            global_overrides={"USE_MEMBERS": True, "USE_INTEGRATIONS": False},
        )
        assert gates.resolve("USE_PIPELINE") is True
        assert gates.resolve("USE_MEMBERS") is False
        assert gates.resolve("USE_INTEGRATIONS") is False

    def test_gate_variable_without_use_prefix(self):
        gates = GateResolver(environ={"GITLAB_ENABLE_AUDIT_TOOLS": "off", "USE_PIPELINE": "no"})
        assert gates.resolve("GITLAB_ENABLE_AUDIT_TOOLS") is False
        assert gates.resolve("USE_PIPELINE") is False

    def test_non_flag_value_uses_default(self):
        gates = GateResolver(environ={"PATH": "/usr/bin"})
        assert gates.resolve("PATH", default_value=False) is False


# =============================================================================
# Deployment configuration
# =============================================================================


class TestDeploymentConfig:
    def test_is_tool_hidden(self):
        config = DeploymentConfig(denied_tools_regex=re.compile("^manage_"))
        assert config.is_tool_hidden("manage_project")
        assert not config.is_tool_hidden("browse_projects")
        assert not DeploymentConfig().is_tool_hidden("manage_project")


class TestLoadDeploymentConfig:
    def test_defaults(self, tmp_path):
        config = load_deployment_config(Settings(_env_file=None), environ={}, project_root=tmp_path)
        assert config.read_only is False
        assert config.denied_tools_regex is None
        assert config.policy.layers == ()
        assert config.description_overrides == {}
        assert config.schema_mode == "discriminated"

    def test_environment_settings(self, tmp_path):
        settings = Settings(
            _env_file=None,
            gitlab_read_only_mode=True,
            gitlab_denied_actions="manage_project:delete",
            gitlab_denied_tools_regex="integration",
            gitlab_schema_mode="flat",
            gitlab_cross_refs=False,
        )
        config = load_deployment_config(settings, environ={}, project_root=tmp_path)
        assert config.read_only is True
        assert config.policy.is_denied("manage_project", "delete")
        assert config.is_tool_hidden("browse_integrations")
        assert config.schema_mode == "flat"
        assert config.cross_refs is False

    def test_description_overrides(self, tmp_path):
        environ = {"GITLAB_TOOL_BROWSE_PROJECTS": "Find projects", "GITLAB_TOOL_MANAGE_PROJECT": "  "}
        config = load_deployment_config(Settings(_env_file=None), environ=environ, project_root=tmp_path)
        assert config.description_overrides == {"browse_projects": "Find projects"}

    def test_gates_from_environ(self, tmp_path):
        config = load_deployment_config(Settings(_env_file=None), environ={"USE_PIPELINE": "false"}, project_root=tmp_path)
        assert config.gates.resolve("USE_PIPELINE") is False

    def test_custom_gate_from_environ(self, tmp_path):
        config = load_deployment_config(
            Settings(_env_file=None), environ={"GITLAB_ENABLE_AUDIT_TOOLS": "false"}, project_root=tmp_path
        )
        assert config.gates.resolve("GITLAB_ENABLE_AUDIT_TOOLS") is False

    def test_project_scope_unrestricted_by_default(self, tmp_path):
        config = load_deployment_config(Settings(_env_file=None), environ={}, project_root=tmp_path)
        assert config.project_scope.is_restricted is False

    def test_project_scope_from_settings(self, tmp_path):
        settings = Settings(_env_file=None, gitlab_allowed_project_ids=" 12, 34 ,,")
        config = load_deployment_config(settings, environ={}, project_root=tmp_path)
        assert config.project_scope.pinned_project_id is None
        assert config.project_scope.allowed_project_ids == ("12", "34")

        pinned = load_deployment_config(
            Settings(_env_file=None, gitlab_project_id="77"), environ={}, project_root=tmp_path
        )
        assert pinned.project_scope.pinned_project_id == "77"

    def test_project_preset(self, tmp_path):
        write_project_preset(
            tmp_path,
            "read_only: true\n"
            "denied_actions: [manage_member:add_to_group]\n"
            "allowed_actions: [manage_project:delete]\n"
            "denied_tools_regex: '^browse_namespaces$'\n"
            "features: {pipelines: false}\n",
        )
        settings = Settings(
            _env_file=None,
            gitlab_denied_actions="manage_project:delete",
            gitlab_denied_tools_regex="^manage_",
        )
        config = load_deployment_config(settings, environ={"USE_PIPELINE": "true"}, project_root=tmp_path)

        assert config.read_only is True
        assert not config.policy.is_denied("manage_project", "delete")
        assert config.policy.is_denied("manage_member", "add_to_group")
        # Project pattern replaces the environment one
        assert config.is_tool_hidden("browse_namespaces")
        assert not config.is_tool_hidden("manage_project")
        assert config.gates.resolve("USE_PIPELINE") is False

    def test_global_preset(self, tmp_path):
        global_preset = tmp_path / "global.yaml"
        global_preset.write_text(
            "denied_actions: [manage_project:delete, manage_project:transfer]\n"
            "denied_tools_regex: member\n"
            "features: {integrations: false}\n"
        )
        project = tmp_path / "project"
        project.mkdir()
        settings = Settings(_env_file=None, gitlab_policy_preset=str(global_preset))
        config = load_deployment_config(settings, environ={}, project_root=project)

        assert config.policy.is_denied("manage_project", "transfer")
        assert config.is_tool_hidden("browse_members")
        assert config.gates.resolve("USE_INTEGRATIONS") is False

    def test_project_root_from_settings(self, tmp_path):
        write_project_preset(tmp_path, "denied_actions: [manage_pipeline:cancel]\n")
        settings = Settings(_env_file=None, gitlab_project_root=str(tmp_path))
        config = load_deployment_config(settings, environ={})
        assert config.policy.is_denied("manage_pipeline", "cancel")

    def test_invalid_project_preset_aborts(self, tmp_path):
        write_project_preset(tmp_path, "read_only: [not, a, bool]\n")
        with pytest.raises(PresetLoadError):
            load_deployment_config(Settings(_env_file=None), environ={}, project_root=tmp_path)

    def test_invalid_regex_from_environment(self, tmp_path):
        settings = Settings(_env_file=None, gitlab_denied_tools_regex="([")
        with pytest.raises(ValueError, match="Invalid denied tools pattern"):
            load_deployment_config(settings, environ={}, project_root=tmp_path)
