"""Action policy: which tool actions may be listed and executed."""

from .denylist import ActionPolicy, PolicyLayer, parse_action_pairs
from .loader import PresetLoadError, find_project_preset, layer_from_preset, load_preset_file
from .models import FEATURE_GATES, PolicyPreset, PolicyScope
from .project_scope import ProjectScope

__all__ = [
    "ActionPolicy",
    "PolicyLayer",
    "PolicyPreset",
    "PolicyScope",
    "ProjectScope",
    "PresetLoadError",
    "FEATURE_GATES",
    "parse_action_pairs",
    "load_preset_file",
    "find_project_preset",
    "layer_from_preset",
]
