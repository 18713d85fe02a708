# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Pure helpers for request building and response shaping.

Nothing in this module performs I/O.
"""

import re
from collections.abc import Collection
from typing import Any
from urllib.parse import quote

GID_PATTERN = re.compile(r"^gid://gitlab/[A-Za-z0-9:_]+/(\d+)$")
RELATED_PATTERN = re.compile(r"\s*Related:\s*(.+?)\.?\s*$", re.DOTALL)
TOOL_REFERENCE_PATTERN = re.compile(r"^((?:browse|manage)_\w+)\b")


# =============================================================================
# Request building
# =============================================================================


def encode_id(value: str | int) -> str:
    """Percent-encode one path segment (``group/project`` -> ``group%2Fproject``)."""
    return quote(str(value), safe="")


def to_query(params: dict[str, Any]) -> dict[str, str | list[str]]:
    """Convert picked action fields into query parameters.

    Booleans become "true"/"false", lists become ``key[]`` parameters and
    None values are dropped.
    """
    query: dict[str, str | list[str]] = {}
    for key, value in params.items():
        if value is None:
            continue
        if isinstance(value, bool):
            query[key] = "true" if value else "false"
        elif isinstance(value, (list, tuple)):
            query[f"{key}[]"] = [str(item) for item in value]
        else:
            query[key] = str(value)
    return query


def path_slug(name: str) -> str:
    """Derive a URL path from a project name ("My App!" -> "my-app")."""
    slug = re.sub(r"[^a-z0-9-]", "-", name.lower())
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


# =============================================================================
# Response shaping
# =============================================================================


def clean_gids(value: Any) -> Any:
    """Replace GitLab global IDs with their numeric part, recursively.

    ``"gid://gitlab/Project/42"`` becomes ``"42"``. Other values are returned
    unchanged.
    """
    if isinstance(value, str):
        match = GID_PATTERN.match(value)
        return match.group(1) if match else value
    if isinstance(value, dict):
        return {key: clean_gids(item) for key, item in value.items()}
    if isinstance(value, list):
        return [clean_gids(item) for item in value]
    return value


def window_trace(trace: str, max_lines: int, start: int | None = None) -> dict[str, Any]:
    """Cut a job trace down to a window of lines.

    Args:
        trace: Full job log
        max_lines: Maximum number of log lines to return
        start: First line (0-based). Negative counts from the end. None
               returns the last ``max_lines`` lines.

    Returns:
        {trace, totalLines, shownLines, startLine, hasMore, nextStart}. A
        bracketed notice is prepended to ``trace`` when the output is
        truncated or the request is out of range.
    """
    lines = trace.split("\n")
    total = len(lines)
    notice = ""

    if start is not None and start < 0:
        effective_start = max(0, total + start)
        shown = lines[effective_start:]
        if len(shown) > max_lines:
            effective_start = total - max_lines
            shown = shown[-max_lines:]
    elif start is not None:
        effective_start = start
        if start >= total:
            shown = []
            notice = (
                f"[OUT OF BOUNDS: Start position {start} exceeds total lines {total}. "
                f"Available range: 0-{total - 1}]"
            )
        else:
            shown = lines[start:start + max_lines]
            if start + max_lines > total:
                notice = (
                    f"[PARTIAL REQUEST: Requested {max_lines} lines from position {start}, "
                    f"but only {total - start} lines available]"
                )
    else:
        effective_start = max(0, total - max_lines)
        shown = lines[effective_start:]

    shown_count = len(shown)
    output = list(shown)
    if notice:
        output.insert(0, notice)
    elif shown_count < total:
        end_line = effective_start + shown_count - 1
        if start is None or start < 0:
            output.insert(
                0,
                f"[LOG TRUNCATED: Showing last {shown_count} of {total} lines "
                f"(lines {effective_start}-{end_line})]",
            )
        else:
            output.insert(0, f"[LOG TRUNCATED: Showing lines {effective_start}-{end_line} of {total}]")

    has_more = effective_start + shown_count < total
    return {
        "trace": "\n".join(output),
        "totalLines": total,
        "shownLines": shown_count,
        "startLine": effective_start,
        "hasMore": has_more,
        "nextStart": effective_start + shown_count if has_more else None,
    }


# =============================================================================
# Description cross-references
# =============================================================================


def resolve_related_references(description: str, available: Collection[str]) -> str:
    """Keep only "Related:" items that point at available tools.

    Format: "... Related: tool_a purpose, tool_b purpose." When no item
    survives, the whole clause is removed.
    """
    match = RELATED_PATTERN.search(description)
    if not match:
        return description

    base = description[: match.start()].rstrip()
    items = [item.strip() for item in match.group(1).split(",")]
    kept = []
    for item in items:
        ref = TOOL_REFERENCE_PATTERN.match(item)
        if ref and ref.group(1) in available:
            kept.append(item)

    if not kept:
        return base
    return f"{base} Related: {', '.join(kept)}."


def strip_related_section(description: str) -> str:
    """Remove the "Related:" clause entirely."""
    match = RELATED_PATTERN.search(description)
    if not match:
        return description
    return description[: match.start()].rstrip()
