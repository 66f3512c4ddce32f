"""Tests for PathResolver."""
from __future__ import annotations

import itertools
from pathlib import Path

import pytest

from steadyport.domain.errors import PathTraversalError
from steadyport.infrastructure.paths import PathResolver

DATA_DIR = Path("/srv/app/data")


@pytest.fixture
def resolver() -> PathResolver:
    return PathResolver(DATA_DIR)


class TestResolve:
    def test_joins_segments(self, resolver):
        assert resolver.resolve(["users", "42.json"]) == Path("/srv/app/data/users/42.json")

    def test_single_string_is_one_segment(self, resolver):
        assert resolver.resolve("users/42.json") == Path("/srv/app/data/users/42.json")

    def test_empty_segments_give_data_dir(self, resolver):
        assert resolver.resolve([]) == DATA_DIR

    def test_parent_references_that_stay_inside_are_allowed(self, resolver):
        assert resolver.resolve(["users", "..", "teams", "7.json"]) == Path("/srv/app/data/teams/7.json")


class TestTraversal:
    def test_parent_escape(self, resolver):
        with pytest.raises(PathTraversalError) as exc:
            resolver.resolve(["..", "..", "secrets.json"])
        assert exc.value.data_dir == DATA_DIR
        assert exc.value.segments == ("..", "..", "secrets.json")

    def test_escape_hidden_in_one_segment(self, resolver):
        with pytest.raises(PathTraversalError):
            resolver.resolve(["users/../../other/x.json"])

    def test_sibling_with_shared_prefix(self, resolver):
        with pytest.raises(PathTraversalError):
            resolver.resolve(["..", "data-backup", "x.json"])

    def test_absolute_override(self, resolver):
        with pytest.raises(PathTraversalError):
            resolver.resolve(["users", "/etc/passwd"])

    def test_absolute_segment_inside_data_dir_still_rejected(self, resolver):
        with pytest.raises(PathTraversalError):
            resolver.resolve(["/srv/app/data/users"])

    def test_nul_byte(self, resolver):
        with pytest.raises(PathTraversalError):
            resolver.resolve(["users\x00.json"])

    def test_non_string_segment(self, resolver):
        with pytest.raises(TypeError):
            resolver.resolve(["users", 42])

    def test_is_a_value_error(self, resolver):
        with pytest.raises(ValueError):
            resolver.resolve([".."])

    def test_never_outside_for_any_combination(self, resolver):
        alphabet = ["..", ".", "users", "a/..", "../data", "x.json", ""]
        for length in range(1, 5):
            for segments in itertools.product(alphabet, repeat=length):
                try:
                    result = resolver.resolve(list(segments))
                except PathTraversalError:
                    continue
                assert result == DATA_DIR or result.is_relative_to(DATA_DIR), segments


class TestConstruction:
    def test_relative_data_dir_rejected(self):
        with pytest.raises(ValueError):
            PathResolver(Path("relative/data"))

    def test_data_dir_is_normalized(self):
        resolver = PathResolver(Path("/srv/app/./data/"))
        assert resolver.data_dir == DATA_DIR
