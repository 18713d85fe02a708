# SPDX-License-Identifier: Apache-2.0
# Copyright 2024-2026 CAB Ingénierie / Christophe ABOULICAM
"""Tests for request building and response shaping helpers."""

import pytest

from gitlab_mcp.tools.shaping import (
    clean_gids,
    encode_id,
    path_slug,
    resolve_related_references,
    strip_related_section,
    to_query,
    window_trace,
)


class TestRequestHelpers:
    @pytest.mark.parametrize(
        "value,expected",
        [("42", "42"), (42, "42"), ("group/sub/app", "group%2Fsub%2Fapp"), ("a b", "a%20b")],
    )
    def test_encode_id(self, value, expected):
        assert encode_id(value) == expected

    def test_to_query(self):
        assert to_query({"a": True, "b": False, "c": 3, "d": None, "e": ["x", 1]}) == {
            "a": "true",
            "b": "false",
            "c": "3",
            "e[]": ["x", "1"],
        }

    @pytest.mark.parametrize(
        "name,expected",
        [("My App", "my-app"), ("  Hello,  World!! ", "hello-world"), ("api_v2", "api-v2"), ("ok-name", "ok-name")],
    )
    def test_path_slug(self, name, expected):
        assert path_slug(name) == expected


class TestCleanGids:
    def test_nested(self):
        data = {
            "id": "gid://gitlab/Project/42",
            "items": [{"id": "gid://gitlab/Ci::Pipeline/7"}, "plain"],
            "count": 2,
        }
        assert clean_gids(data) == {"id": "42", "items": [{"id": "7"}, "plain"], "count": 2}

    def test_non_gid_strings_untouched(self):
        assert clean_gids("gid://gitlab/Project/abc") == "gid://gitlab/Project/abc"
        assert clean_gids("see gid://gitlab/Project/1") == "see gid://gitlab/Project/1"


class TestWindowTrace:
    def test_short_log_is_returned_whole(self):
        result = window_trace("a\nb\nc", 10)
        assert result == {
            "trace": "a\nb\nc",
            "totalLines": 3,
            "shownLines": 3,
            "startLine": 0,
            "hasMore": False,
            "nextStart": None,
        }

    def test_tail(self):
        result = window_trace("\n".join(str(i) for i in range(10)), 3)
        assert result["trace"] == "[LOG TRUNCATED: Showing last 3 of 10 lines (lines 7-9)]\n7\n8\n9"
        assert result["hasMore"] is False

    def test_negative_start(self):
        result = window_trace("\n".join(str(i) for i in range(10)), 5, start=-4)
        assert result["startLine"] == 6
        assert result["shownLines"] == 4
        assert result["trace"].endswith("6\n7\n8\n9")

    def test_negative_start_capped_by_max_lines(self):
        result = window_trace("\n".join(str(i) for i in range(10)), 2, start=-6)
        assert result["startLine"] == 8
        assert result["shownLines"] == 2

    def test_forward_window(self):
        result = window_trace("\n".join(str(i) for i in range(10)), 3, start=2)
        assert result["trace"] == "[LOG TRUNCATED: Showing lines 2-4 of 10]\n2\n3\n4"
        assert result["nextStart"] == 5

    def test_partial_request(self):
        result = window_trace("\n".join(str(i) for i in range(10)), 5, start=8)
        assert result["shownLines"] == 2
        assert result["trace"].startswith("[PARTIAL REQUEST: Requested 5 lines from position 8, but only 2 lines available]")
        assert result["hasMore"] is False

    def test_out_of_bounds(self):
        result = window_trace("a\nb", 5, start=10)
        assert result["shownLines"] == 0
        assert result["trace"] == "[OUT OF BOUNDS: Start position 10 exceeds total lines 2. Available range: 0-1]"


class TestRelatedReferences:
    DESCRIPTION = (
        "Browse pipelines. Related: manage_pipeline to trigger/retry/cancel, "
        "manage_pipeline_job for individual jobs."
    )

    def test_all_available(self):
        available = {"manage_pipeline", "manage_pipeline_job"}
        assert resolve_related_references(self.DESCRIPTION, available) == self.DESCRIPTION

    def test_some_available(self):
        assert resolve_related_references(self.DESCRIPTION, {"manage_pipeline_job"}) == (
            "Browse pipelines. Related: manage_pipeline_job for individual jobs."
        )

    def test_none_available(self):
        assert resolve_related_references(self.DESCRIPTION, set()) == "Browse pipelines."

    def test_no_related_clause(self):
        assert resolve_related_references("Plain description.", set()) == "Plain description."

    def test_strip(self):
        assert strip_related_section(self.DESCRIPTION) == "Browse pipelines."
        assert strip_related_section("Plain.") == "Plain."
