from __future__ import annotations

import pytest

from bufconfig.application.normalize import (
    collapse_per_module,
    resolve_check_paths,
    resolve_module_includes_excludes,
    resolve_root_to_excludes,
)
from bufconfig.domain.errors import ValidationError


def test_default_root() -> None:
    assert resolve_root_to_excludes([], ["foo/bar"]) == {".": ("foo/bar",)}


def test_excludes_attributed_to_their_root() -> None:
    assert resolve_root_to_excludes(["proto", "vendor"], ["vendor/x", "proto/a"]) == {
        "proto": ("a",),
        "vendor": ("x",),
    }


@pytest.mark.parametrize(
    ("roots", "excludes", "message"),
    [
        (["a", "a/b"], [], "overlap"),
        (["a"], ["a"], "both a root and exclude"),
        (["a"], ["b/c"], "not contained in any root"),
        ([], ["a/b.proto"], "can only be directories"),
        (["a", "./a"], [], "more than once"),
        (["../a"], [], "outside the context directory"),
    ],
)
def test_root_and_exclude_errors(roots, excludes, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        resolve_root_to_excludes(roots, excludes)


def test_module_includes_and_excludes_are_module_relative() -> None:
    assert resolve_module_includes_excludes("proto", ["proto/b", "proto/a"], ["proto/a/x"]) == (("a", "b"), ("a/x",))


@pytest.mark.parametrize(
    ("includes", "excludes", "message"),
    [
        (["proto"], [], "equal to module directory"),
        (["other/a"], [], "does not reside within"),
        (["proto/a"], ["proto/b"], "not contained in any include"),
        (["proto/a/b"], ["proto/a"], "contains include path"),
        (["proto/a"], ["proto/a"], "both an include path and an exclude path"),
    ],
)
def test_module_include_errors(includes, excludes, message: str) -> None:
    with pytest.raises(ValidationError, match=message):
        resolve_module_includes_excludes("proto", includes, excludes)


def test_ignore_equal_to_module_disables() -> None:
    assert resolve_check_paths("proto", ["proto", "proto/a"], {}, require_contained=True, label="lint ignore").disabled


def test_contained_ignore_required_for_module_blocks() -> None:
    with pytest.raises(ValidationError, match="not within module directory"):
        resolve_check_paths("proto", ["other/a.proto"], {}, require_contained=True, label="lint ignore")
    resolved = resolve_check_paths("proto", ["other/a.proto"], {}, require_contained=False, label="lint ignore")
    assert resolved.ignore == ()


def test_ignore_only_rules_without_paths_are_dropped() -> None:
    resolved = resolve_check_paths(
        "proto", [], {"ENUM_PASCAL_CASE": ["other"], "FIELD_LOWER_SNAKE_CASE": ["proto/x"]},
        require_contained=False, label="lint ignore",
    )
    assert dict(resolved.ignore_only) == {"FIELD_LOWER_SNAKE_CASE": ("x",)}


def test_collapse_is_all_or_nothing() -> None:
    same = {"use": ["STANDARD"]}
    assert collapse_per_module([same, dict(same), dict(same)]) == (same, [None, None, None])
    assert collapse_per_module([{}, {}]) == (None, [None, None])
    assert collapse_per_module([same, {"use": ["MINIMAL"]}]) == (None, [same, {"use": ["MINIMAL"]}])
