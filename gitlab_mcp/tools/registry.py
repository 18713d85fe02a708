# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Per-area tool registry.

Definitions are stored arena-style: an ordered list for catalog
presentation and a name -> index table for lookup. The read-only subset is
checked against the action schemas at construction, so a registry that
exists is a registry whose invariants hold.
"""

from collections.abc import Iterable, Iterator

from .definition import ToolDefinition


class ToolRegistry:
    """Ordered, name-indexed set of tool definitions for one functional area."""

    def __init__(
        self,
        area: str,
        tools: Iterable[ToolDefinition],
        read_only_names: Iterable[str],
    ):
        """Build and check the registry.

        Args:
            area: Functional area ("projects", "pipelines", ...)
            tools: Definitions in catalog order
            read_only_names: Tools exposed in read-only mode

        Raises:
            ValueError: duplicate names, unknown read-only names, a read-only
                        tool with a mutating action, or another tool without one
        """
        self.area = area
        self._tools: list[ToolDefinition] = []
        self._index: dict[str, int] = {}

        for tool in tools:
            if tool.name in self._index:
                raise ValueError(f"{area}: duplicate tool name '{tool.name}'")
            self._index[tool.name] = len(self._tools)
            self._tools.append(tool)

        self._read_only = frozenset(read_only_names)
        unknown = sorted(self._read_only - set(self._index))
        if unknown:
            raise ValueError(f"{area}: read-only names {unknown} are not registered")

        for tool in self._tools:
            mutating = tool.action_schema.mutating_actions
            if tool.name in self._read_only and mutating:
                raise ValueError(f"{area}: read-only tool '{tool.name}' has mutating actions {list(mutating)}")
            if tool.name not in self._read_only and not mutating:
                raise ValueError(f"{area}: tool '{tool.name}' has no mutating action but is not read-only")

    def get(self, name: str) -> ToolDefinition | None:
        """Get a tool by name."""
        index = self._index.get(name)
        return None if index is None else self._tools[index]

    def names(self) -> list[str]:
        return [tool.name for tool in self._tools]

    def items(self) -> list[tuple[str, ToolDefinition]]:
        return [(tool.name, tool) for tool in self._tools]

    @property
    def read_only_names(self) -> frozenset[str]:
        return self._read_only

    def get_filtered_tools(self, read_only: bool = False) -> list[ToolDefinition]:
        """Return the tools exposed in the given mode, in catalog order."""
        if not read_only:
            return list(self._tools)
        return [tool for tool in self._tools if tool.name in self._read_only]

    def __contains__(self, name: object) -> bool:
        return name in self._index

    def __iter__(self) -> Iterator[ToolDefinition]:
        return iter(self._tools)

    def __len__(self) -> int:
        return len(self._tools)

    def __repr__(self) -> str:
        return f"ToolRegistry(area={self.area!r}, tools={self.names()})"
