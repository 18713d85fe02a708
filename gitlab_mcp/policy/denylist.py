# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Per-action allow/deny policy.

The policy answers one question: may ``tool`` run ``action``? It is kept
apart from the tool schemas because project-local presets can be loaded
after the schemas are built, and because every handler re-checks it at
call time.

Layers are ordered from least to most specific. For a given pair the most
specific layer that mentions it decides. Within one layer a deny wins over
an allow.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field

import structlog

from .models import ACTION_PAIR_PATTERN, PolicyScope

logger = structlog.get_logger(__name__)

ActionPair = tuple[str, str]


def _split_pair(entry: str) -> ActionPair:
    tool, action = entry.split(":", 1)
    return tool.strip().lower(), action.strip().lower()


def parse_action_pairs(raw: str | Iterable[str]) -> frozenset[ActionPair]:
    """Parse ``tool:action`` entries, skipping malformed ones.

    Accepts a comma-separated string (the GITLAB_DENIED_ACTIONS format) or an
    iterable of entries. Names are lowercased.

    Args:
        raw: "manage_project:delete,manage_member:remove_from_group" or a list

    Returns:
        Set of (tool, action) pairs
    """
    entries = raw.split(",") if isinstance(raw, str) else raw
    pairs: set[ActionPair] = set()
    for entry in entries:
        stripped = entry.strip()
        if not stripped:
            continue
        if not ACTION_PAIR_PATTERN.match(stripped):
            logger.warning("Skipping malformed action entry", entry=stripped)
            continue
        pairs.add(_split_pair(stripped))
    return frozenset(pairs)


@dataclass(frozen=True)
class PolicyLayer:
    """Deny and allow entries from one configuration source."""

    scope: PolicyScope
    denied: frozenset[ActionPair] = field(default_factory=frozenset)
    allowed: frozenset[ActionPair] = field(default_factory=frozenset)
    source: str | None = None

    def decision(self, tool: str, action: str) -> bool | None:
        """Return True (denied), False (allowed) or None (not mentioned)."""
        pair = (tool.lower(), action.lower())
        if pair in self.denied:
            return True
        if pair in self.allowed:
            return False
        return None

    @property
    def is_empty(self) -> bool:
        return not self.denied and not self.allowed


class ActionPolicy:
    """Layered (tool, action) policy.

    Example usage:
        policy = ActionPolicy([
            PolicyLayer(PolicyScope.ENVIRONMENT, denied=parse_action_pairs("manage_project:delete")),
        ])
        policy.is_denied("manage_project", "delete")  # True
    """

    def __init__(self, layers: Iterable[PolicyLayer] = ()):
        order = list(PolicyScope)
        self._layers: tuple[PolicyLayer, ...] = tuple(
            sorted((layer for layer in layers if not layer.is_empty), key=lambda layer: order.index(layer.scope))
        )

    @classmethod
    def from_denied(cls, raw: str | Iterable[str]) -> "ActionPolicy":
        """Build a single environment-layer policy (tests and simple setups)."""
        return cls([PolicyLayer(PolicyScope.ENVIRONMENT, denied=parse_action_pairs(raw))])

    @property
    def layers(self) -> tuple[PolicyLayer, ...]:
        return self._layers

    def is_denied(self, tool: str, action: str) -> bool:
        """Check whether an action is denied for a tool."""
        for layer in reversed(self._layers):
            decision = layer.decision(tool, action)
            if decision is not None:
                return decision
        return False

    def allowed_actions(self, tool: str, actions: Iterable[str]) -> list[str]:
        """Filter ``actions`` down to the ones the policy lets through."""
        return [action for action in actions if not self.is_denied(tool, action)]

    def denied_actions(self, tool: str, actions: Iterable[str]) -> list[str]:
        return [action for action in actions if self.is_denied(tool, action)]

    def __repr__(self) -> str:
        return f"ActionPolicy(layers={[layer.scope.value for layer in self._layers]})"
