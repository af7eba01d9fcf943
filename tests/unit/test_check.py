from __future__ import annotations

from bufconfig.domain.check import (
    DEFAULT_BREAKING_CONFIGS,
    DEFAULT_LINT_CONFIGS,
    BreakingConfig,
    LintConfig,
    canonical_rule_ids,
)
from bufconfig.domain.file_version import FileVersion


def test_lists_are_canonicalised() -> None:
    first = LintConfig(use=("STANDARD", "COMMENTS", "STANDARD"), ignore=("b/", "a"))
    second = LintConfig(use=("COMMENTS", "STANDARD"), ignore=("a", "b"))
    assert first == second
    assert first.use == ("COMMENTS", "STANDARD")
    assert first.ignore == ("a", "b")


def test_empty_ignore_only_entries_are_dropped() -> None:
    config = BreakingConfig(ignore_only={"FILE_NO_DELETE": [], "WIRE": ["x/./y"]})
    assert dict(config.ignore_only) == {"WIRE": ("x/y",)}


def test_default_use_depends_on_version() -> None:
    assert LintConfig(file_version=FileVersion.V1).effective_use == ("STANDARD",)
    assert LintConfig(file_version=FileVersion.V2).effective_use == ("STANDARD",)
    assert BreakingConfig().effective_use == ("FILE",)


def test_disabled_config_selects_nothing() -> None:
    disabled = LintConfig.disabled_config(FileVersion.V2)
    assert disabled.disabled
    assert disabled.effective_use == ()
    assert not disabled.is_empty()


def test_comment_ignores_default_per_version() -> None:
    assert DEFAULT_LINT_CONFIGS[FileVersion.V1].allow_comment_ignores is False
    assert DEFAULT_LINT_CONFIGS[FileVersion.V2].allow_comment_ignores is True
    assert DEFAULT_LINT_CONFIGS[FileVersion.V2].is_empty()
    assert DEFAULT_BREAKING_CONFIGS[FileVersion.V1].is_empty()


def test_category_aliases() -> None:
    assert canonical_rule_ids(["STYLE_DEFAULT", "FIELD_LOWER_SNAKE_CASE"]) == ("FIELD_LOWER_SNAKE_CASE", "STYLE_STANDARD")
