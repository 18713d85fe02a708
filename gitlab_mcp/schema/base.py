# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Action models and tool schemas.

Every tool accepts a single JSON object whose ``action`` field selects one
variant of a closed, tagged union. Each variant is an ``ActionModel``
subclass listing only the fields that action needs. ``ToolSchema`` wraps the
union behind a pydantic ``TypeAdapter`` and produces both the validated
action instance and the JSON Schema published in the tool catalog.
"""

import copy
from typing import Annotated, Any, ClassVar, Union, get_args

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

from ..errors import SchemaValidationError, ValidationIssue


# =============================================================================
# Coercing field types
# =============================================================================


def _coerce_id(value: Any) -> Any:
    """Normalize numeric identifiers to strings.

    Agents send IDs both as ``42`` and ``"42"``. Booleans are left untouched so
    the string check rejects them.
    """
    if isinstance(value, bool):
        return value
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    if isinstance(value, str):
        return value.strip()
    return value


_TRUTHY_STRINGS = frozenset({"true", "t", "1"})


def _coerce_bool(value: Any) -> Any:
    """Accept the string forms agents commonly use for flags.

    ``"true"``, ``"t"`` and ``"1"`` (any case) are true; every other string is
    false. Non-string values go through pydantic's normal bool validation.
    """
    if isinstance(value, str):
        return value.strip().lower() in _TRUTHY_STRINGS
    return value


RequiredId = Annotated[str, BeforeValidator(_coerce_id), Field(min_length=1)]
OptionalId = Annotated[str | None, BeforeValidator(_coerce_id)]
FlexibleBool = Annotated[bool, BeforeValidator(_coerce_bool)]
PerPage = Annotated[int, Field(ge=1, le=100, description="Number of items per page (max 100)")]
Page = Annotated[int, Field(ge=1, description="Page number")]


# =============================================================================
# Action base model
# =============================================================================


class ActionModel(BaseModel):
    """Base class for one variant of a tool's input union.

    Subclasses narrow ``action`` to a single ``Literal`` tag and set
    ``mutating = True`` when the action changes upstream state.
    """

    model_config = ConfigDict(extra="ignore", frozen=True)

    mutating: ClassVar[bool] = False

    action: str

    @classmethod
    def tag(cls) -> str:
        """Return the literal discriminant value of this variant."""
        args = get_args(cls.model_fields["action"].annotation)
        if len(args) != 1 or not isinstance(args[0], str):
            raise TypeError(f"{cls.__name__}.action must be a single-value Literal")
        return args[0]

    def pick(self, *names: str) -> dict[str, Any]:
        """Return the named fields that carry a value.

        Request builders list the fields each upstream call accepts; fields
        the caller did not send are never forwarded.
        """
        picked: dict[str, Any] = {}
        for name in names:
            value = getattr(self, name)
            if value is not None:
                picked[name] = value
        return picked

    def to_arguments(self) -> dict[str, Any]:
        """Serialize back to the raw argument mapping a caller would send."""
        return self.model_dump(mode="json", exclude_none=True)


# =============================================================================
# Tool schema
# =============================================================================


def _format_loc(loc: tuple[Any, ...]) -> str:
    if not loc:
        return "(root)"
    return ".".join(str(part) for part in loc)


def _inline_refs(node: Any, defs: dict[str, Any]) -> Any:
    """Replace every ``$ref`` to ``#/$defs/...`` with a copy of its target."""
    if isinstance(node, dict):
        ref = node.get("$ref")
        if isinstance(ref, str) and ref.startswith("#/$defs/"):
            target = copy.deepcopy(defs[ref.split("/")[-1]])
            merged = {k: v for k, v in node.items() if k != "$ref"}
            merged.update(target)
            return _inline_refs(merged, defs)
        return {k: _inline_refs(v, defs) for k, v in node.items() if k != "$defs"}
    if isinstance(node, list):
        return [_inline_refs(item, defs) for item in node]
    return node


def _simplify(node: Any) -> Any:
    """Drop titles and collapse ``anyOf: [X, null]`` into ``X``.

    Keys of a ``properties`` mapping are field names and are never dropped.
    """
    if isinstance(node, list):
        return [_simplify(item) for item in node]
    if not isinstance(node, dict):
        return node

    any_of = node.get("anyOf")
    if isinstance(any_of, list):
        branches = [b for b in any_of if b != {"type": "null"}]
        if len(branches) == 1 and len(branches) != len(any_of):
            collapsed = {k: v for k, v in node.items() if k != "anyOf"}
            collapsed.update(branches[0])
            if collapsed.get("default", ...) is None:
                del collapsed["default"]
            return _simplify(collapsed)

    result: dict[str, Any] = {}
    for key, value in node.items():
        if key == "title":
            continue
        if key == "properties" and isinstance(value, dict):
            result[key] = {name: _simplify(prop) for name, prop in value.items()}
        else:
            result[key] = _simplify(value)
    return result


class ToolSchema:
    """Closed tagged union of a tool's actions.

    Usage:
        schema = ToolSchema("browse_projects", SearchProjects, ListProjects, GetProject)
        action = schema.validate({"action": "get", "project_id": 42})
        assert isinstance(action, GetProject)
    """

    def __init__(self, tool_name: str, *variants: type[ActionModel]):
        if not variants:
            raise ValueError(f"{tool_name}: a tool schema needs at least one action")
        tags = [variant.tag() for variant in variants]
        if len(set(tags)) != len(tags):
            raise ValueError(f"{tool_name}: duplicate action tags {tags}")

        self.tool_name = tool_name
        self._variants: dict[str, type[ActionModel]] = dict(zip(tags, variants))

        if len(variants) == 1:
            self._adapter: TypeAdapter[Any] = TypeAdapter(variants[0])
        else:
            self._adapter = TypeAdapter(
                Annotated[Union[tuple(variants)], Field(discriminator="action")]
            )

    @property
    def actions(self) -> tuple[str, ...]:
        """All action tags, in declaration order."""
        return tuple(self._variants)

    @property
    def mutating_actions(self) -> tuple[str, ...]:
        """Action tags whose variant changes upstream state."""
        return tuple(tag for tag, variant in self._variants.items() if variant.mutating)

    def variant(self, action: str) -> type[ActionModel]:
        """Return the model class for an action tag."""
        return self._variants[action]

    def validate(self, raw: Any) -> ActionModel:
        """Validate untyped input and narrow it to one action variant.

        Raises:
            SchemaValidationError: one issue per offending field
        """
        try:
            return self._adapter.validate_python(raw)
        except ValidationError as exc:
            raise SchemaValidationError(self.tool_name, self._issues(exc, raw)) from exc

    def _issues(self, exc: ValidationError, raw: Any) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []
        sent_tag = raw.get("action") if isinstance(raw, dict) else None
        for error in exc.errors():
            loc = tuple(error["loc"])
            if error["type"] in ("union_tag_invalid", "union_tag_not_found"):
                message = (
                    f"Invalid action. Expected one of: {', '.join(self.actions)}"
                    if error["type"] == "union_tag_invalid"
                    else f"Missing action. Expected one of: {', '.join(self.actions)}"
                )
                issues.append(ValidationIssue(path="action", message=message))
                continue
            # Tagged unions prefix the location with the selected tag
            if len(self._variants) > 1 and loc and loc[0] == sent_tag:
                loc = loc[1:]
            issues.append(ValidationIssue(path=_format_loc(loc), message=error["msg"]))
        return issues

    def json_schema(self, actions: list[str] | tuple[str, ...] | None = None, flat: bool = False) -> dict[str, Any]:
        """Build the catalog input schema.

        Args:
            actions: Restrict the schema to these action tags (None = all)
            flat: Merge all variants into one object with an ``action`` enum

        Returns:
            ``{"type": "object", "oneOf": [...]}`` with inlined branches, or a
            single merged object schema in flat mode
        """
        tags = [tag for tag in self._variants if actions is None or tag in actions]
        branches = [self._variant_schema(tag) for tag in tags]
        if flat:
            return self._flatten(tags, branches)
        return {"type": "object", "oneOf": branches}

    def _variant_schema(self, tag: str) -> dict[str, Any]:
        raw = self.variant(tag).model_json_schema()
        schema = _simplify(_inline_refs(raw, raw.get("$defs", {})))
        schema.pop("description", None)
        action_prop = schema.setdefault("properties", {}).get("action", {})
        described = {"description": action_prop["description"]} if "description" in action_prop else {}
        schema["properties"]["action"] = {"type": "string", "const": tag, **described}
        required = schema.get("required", [])
        if "action" not in required:
            schema["required"] = ["action", *required]
        return schema

    @staticmethod
    def _flatten(tags: list[str], branches: list[dict[str, Any]]) -> dict[str, Any]:
        properties: dict[str, Any] = {"action": {"type": "string", "enum": tags}}
        required: list[str] | None = None
        for branch in branches:
            for name, prop in branch.get("properties", {}).items():
                if name != "action":
                    properties.setdefault(name, prop)
            branch_required = branch.get("required", [])
            required = (
                list(branch_required)
                if required is None
                else [name for name in required if name in branch_required]
            )
        required = required or []
        if "action" not in required:
            required.insert(0, "action")
        return {"type": "object", "properties": properties, "required": required}
