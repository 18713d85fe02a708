# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for the action policy and preset files."""

import pytest
from pydantic import ValidationError

from gitlab_mcp.errors import ProjectNotAllowedError
from gitlab_mcp.policy import (
    ActionPolicy,
    PolicyLayer,
    PolicyPreset,
    PolicyScope,
    PresetLoadError,
    ProjectScope,
    find_project_preset,
    layer_from_preset,
    load_preset_file,
    parse_action_pairs,
)


class TestParseActionPairs:
    def test_comma_separated(self):
        pairs = parse_action_pairs("manage_project:delete, manage_member:remove_from_group")
        assert pairs == {("manage_project", "delete"), ("manage_member", "remove_from_group")}

    def test_lowercases(self):
        assert parse_action_pairs("Manage_Project:DELETE") == {("manage_project", "delete")}

    def test_skips_malformed_entries(self):
        pairs = parse_action_pairs("manage_project:delete,not-a-pair,:delete,manage_project:,,")
        assert pairs == {("manage_project", "delete")}

    def test_empty(self):
        assert parse_action_pairs("") == frozenset()

    def test_iterable(self):
        assert parse_action_pairs(["a_tool:x", "b_tool:y"]) == {("a_tool", "x"), ("b_tool", "y")}


class TestActionPolicy:
    def test_empty_policy_allows_everything(self):
        policy = ActionPolicy()
        assert not policy.is_denied("manage_project", "delete")
        assert policy.layers == ()

    def test_from_denied(self):
        policy = ActionPolicy.from_denied("manage_project:delete")
        assert policy.is_denied("manage_project", "delete")
        assert policy.is_denied("MANAGE_PROJECT", "Delete")
        assert not policy.is_denied("manage_project", "create")
        assert not policy.is_denied("manage_member", "delete")

    def test_allowed_and_denied_actions(self):
        policy = ActionPolicy.from_denied("manage_project:delete,manage_project:transfer")
        actions = ["create", "delete", "update", "transfer"]
        assert policy.allowed_actions("manage_project", actions) == ["create", "update"]
        assert policy.denied_actions("manage_project", actions) == ["delete", "transfer"]

    def test_more_specific_layer_wins(self):
        policy = ActionPolicy(
            [
                PolicyLayer(PolicyScope.PROJECT, allowed=parse_action_pairs("manage_project:delete")),
                PolicyLayer(PolicyScope.GLOBAL, denied=parse_action_pairs("manage_project:delete")),
            ]
        )
        assert not policy.is_denied("manage_project", "delete")

    def test_project_deny_over_environment(self):
        policy = ActionPolicy(
            [
                PolicyLayer(PolicyScope.ENVIRONMENT, denied=parse_action_pairs("manage_member:add_to_group")),
                PolicyLayer(PolicyScope.PROJECT, denied=parse_action_pairs("manage_project:fork")),
            ]
        )
        assert policy.is_denied("manage_member", "add_to_group")
        assert policy.is_denied("manage_project", "fork")

    def test_deny_wins_within_a_layer(self):
        layer = PolicyLayer(
            PolicyScope.PROJECT,
            denied=parse_action_pairs("manage_project:delete"),
            allowed=parse_action_pairs("manage_project:delete"),
        )
        assert layer.decision("manage_project", "delete") is True
        assert ActionPolicy([layer]).is_denied("manage_project", "delete")

    def test_layer_decision_not_mentioned(self):
        layer = PolicyLayer(PolicyScope.GLOBAL, denied=parse_action_pairs("a_tool:x"))
        assert layer.decision("a_tool", "y") is None

    def test_empty_layers_are_dropped(self):
        policy = ActionPolicy([PolicyLayer(PolicyScope.ENVIRONMENT)])
        assert policy.layers == ()
        assert repr(policy) == "ActionPolicy(layers=[])"

    def test_layers_sorted_by_scope(self):
        policy = ActionPolicy(
            [
                PolicyLayer(PolicyScope.PROJECT, denied=parse_action_pairs("a_tool:x")),
                PolicyLayer(PolicyScope.GLOBAL, denied=parse_action_pairs("b_tool:y")),
            ]
        )
        assert [layer.scope for layer in policy.layers] == [PolicyScope.GLOBAL, PolicyScope.PROJECT]


class TestPolicyPreset:
    def test_defaults(self):
        preset = PolicyPreset()
        assert preset.read_only is False
        assert preset.denied_actions == []
        assert preset.gate_overrides == {}

    def test_normalizes_pairs(self):
        preset = PolicyPreset(denied_actions=[" Manage_Project:Delete "])
        assert preset.denied_actions == ["manage_project:delete"]

    def test_rejects_malformed_pairs(self):
        with pytest.raises(ValidationError):
            PolicyPreset(denied_actions=["manage_project"])

    def test_rejects_bad_regex(self):
        with pytest.raises(ValidationError):
            PolicyPreset(denied_tools_regex="([")

    def test_rejects_unknown_keys(self):
        with pytest.raises(ValidationError):
            PolicyPreset.model_validate({"deny": ["a:b"]})

    def test_features_map_to_gates(self):
        preset = PolicyPreset(features={"pipelines": False, "members": True})
        assert preset.gate_overrides == {"USE_PIPELINE": False, "USE_MEMBERS": True}

    def test_rejects_unknown_features(self):
        with pytest.raises(ValidationError):
            PolicyPreset(features={"wikis": True})


class TestPresetLoader:
    def test_load_preset_file(self, tmp_path):
        path = tmp_path / "preset.yaml"
        path.write_text(
            "description: locked down\n"
            "read_only: true\n"
            "denied_actions:\n"
            "  - manage_project:delete\n"
            "features:\n"
            "  pipelines: false\n"
        )
        preset = load_preset_file(path)
        assert preset.read_only is True
        assert preset.denied_actions == ["manage_project:delete"]
        assert preset.features == {"pipelines": False}

    def test_empty_file_is_empty_preset(self, tmp_path):
        path = tmp_path / "preset.yaml"
        path.write_text("")
        assert load_preset_file(path) == PolicyPreset()

    def test_missing_file(self, tmp_path):
        with pytest.raises(PresetLoadError):
            load_preset_file(tmp_path / "nope.yaml")

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "preset.yaml"
        path.write_text("denied_actions: [unclosed\n")
        with pytest.raises(PresetLoadError, match="invalid YAML"):
            load_preset_file(path)

    def test_invalid_schema(self, tmp_path):
        path = tmp_path / "preset.yaml"
        path.write_text("denied_actions: ['no colon here']\n")
        with pytest.raises(PresetLoadError):
            load_preset_file(path)

    def test_find_project_preset(self, tmp_path):
        assert find_project_preset(tmp_path) is None
        (tmp_path / ".gitlab-mcp").mkdir()
        (tmp_path / ".gitlab-mcp" / "preset.yaml").write_text("allowed_actions: [manage_project:delete]\n")
        preset = find_project_preset(tmp_path)
        assert preset is not None
        assert preset.allowed_actions == ["manage_project:delete"]

    def test_layer_from_preset(self):
        preset = PolicyPreset(denied_actions=["a_tool:x"], allowed_actions=["b_tool:y"])
        layer = layer_from_preset(preset, PolicyScope.GLOBAL, "global.yaml")
        assert layer.denied == {("a_tool", "x")}
        assert layer.allowed == {("b_tool", "y")}
        assert layer.source == "global.yaml"


# =============================================================================
# Project scope
# =============================================================================


class TestProjectScope:
    def test_unrestricted(self):
        scope = ProjectScope()
        assert scope.is_restricted is False
        assert scope.resolve("group/app") == "group/app"

    def test_pinned_project_wins(self):
        scope = ProjectScope(pinned_project_id="42", allowed_project_ids=("1",))
        assert scope.resolve("1") == "42"
        assert scope.resolve("999") == "42"

    def test_allowlist(self):
        scope = ProjectScope(allowed_project_ids=("1", "group/app"))
        assert scope.resolve("group/app") == "group/app"
        with pytest.raises(ProjectNotAllowedError) as exc_info:
            scope.resolve("2")
        assert exc_info.value.details == {"project_id": "2", "allowed_project_ids": ["1", "group/app"]}
