"""Preset file loading.

Presets are YAML documents validated by ``PolicyPreset``. A preset that
fails to parse or validate aborts startup: running with a partially
applied policy would expose actions the operator meant to deny.
"""

from pathlib import Path

import structlog
import yaml
from pydantic import ValidationError

from .denylist import PolicyLayer, parse_action_pairs
from .models import PolicyPreset, PolicyScope

logger = structlog.get_logger(__name__)

PROJECT_PRESET_DIR = ".gitlab-mcp"
PROJECT_PRESET_FILE = "preset.yaml"


class PresetLoadError(RuntimeError):
    """Raised when a preset file exists but cannot be used."""

    def __init__(self, path: Path, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Invalid policy preset {path}: {reason}")


def load_preset_file(path: Path | str) -> PolicyPreset:
    """Load and validate a preset file.

    An empty file is an empty preset.

    Raises:
        PresetLoadError: unreadable file, invalid YAML or schema violation
    """
    preset_path = Path(path)
    try:
        with open(preset_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except OSError as e:
        logger.error("Failed to read policy preset", path=str(preset_path), error=str(e))
        raise PresetLoadError(preset_path, str(e)) from e
    except yaml.YAMLError as e:
        logger.error("Failed to parse policy preset", path=str(preset_path), error=str(e))
        raise PresetLoadError(preset_path, f"invalid YAML: {e}") from e

    if data is None:
        return PolicyPreset()

    try:
        preset = PolicyPreset.model_validate(data)
    except ValidationError as e:
        logger.error("Invalid policy preset", path=str(preset_path), errors=e.error_count())
        raise PresetLoadError(preset_path, str(e)) from e

    logger.info(
        "Loaded policy preset",
        path=str(preset_path),
        denied=len(preset.denied_actions),
        allowed=len(preset.allowed_actions),
        read_only=preset.read_only,
        features=preset.features,
    )
    return preset


def project_preset_path(project_root: Path | str) -> Path:
    """Location of the project-local preset under ``project_root``."""
    return Path(project_root) / PROJECT_PRESET_DIR / PROJECT_PRESET_FILE


def find_project_preset(project_root: Path | str) -> PolicyPreset | None:
    """Load the project-local preset if the project has one."""
    path = project_preset_path(project_root)
    if not path.is_file():
        logger.debug("No project preset", path=str(path))
        return None
    return load_preset_file(path)


def layer_from_preset(preset: PolicyPreset, scope: PolicyScope, source: str | None = None) -> PolicyLayer:
    """Convert a preset's action lists into a policy layer."""
    return PolicyLayer(
        scope=scope,
        denied=parse_action_pairs(preset.denied_actions),
        allowed=parse_action_pairs(preset.allowed_actions),
        source=source,
    )
