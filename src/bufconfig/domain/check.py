"""Lint and breaking-change check configuration value objects.

Purpose
-------
Hold the per-module settings that drive the lint and breaking-change checkers
in one canonical shape, whatever schema version they were read from.

Contents
--------
* :class:`CheckConfig` – shared fields (``use``, ``except``, ``ignore``,
  ``ignore_only``, ``disable_builtin``) and the *disabled* sentinel.
* :class:`LintConfig` / :class:`BreakingConfig` – category specific settings.
* ``DEFAULT_LINT_CONFIGS`` / ``DEFAULT_BREAKING_CONFIGS`` – immutable per
  version defaults.
* :func:`canonical_rule_ids` – folds deprecated category names onto their
  current spelling so configs from different versions compare cleanly.

System Role
-----------
Decoders build these objects after resolving paths relative to the owning
module; the serializer reads them back to emit the latest schema.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Final, Iterable, Mapping

from . import normalpath
from .file_version import FileVersion

CATEGORY_ALIASES: Final[Mapping[str, str]] = MappingProxyType(
    {
        "DEFAULT": "STANDARD",
        "STYLE_DEFAULT": "STYLE_STANDARD",
    }
)

_DEFAULT_LINT_USE: Final[Mapping[FileVersion, tuple[str, ...]]] = MappingProxyType(
    {
        FileVersion.V1BETA1: ("DEFAULT",),
        FileVersion.V1: ("DEFAULT",),
        FileVersion.V2: ("STANDARD",),
    }
)
_DEFAULT_BREAKING_USE: Final[Mapping[FileVersion, tuple[str, ...]]] = MappingProxyType(
    {version: ("FILE",) for version in FileVersion}
)


def _sorted_unique(values: Iterable[str]) -> tuple[str, ...]:
    return tuple(sorted(set(values)))


def _sorted_paths(values: Iterable[str]) -> tuple[str, ...]:
    return _sorted_unique(normalpath.normalize_and_validate(value) for value in values)


def _freeze_ignore_only(mapping: Mapping[str, Iterable[str]]) -> Mapping[str, tuple[str, ...]]:
    frozen = {key: _sorted_paths(mapping[key]) for key in sorted(mapping)}
    return MappingProxyType({key: paths for key, paths in frozen.items() if paths})


def canonical_rule_ids(ids: Iterable[str]) -> tuple[str, ...]:
    """Return *ids* with deprecated category names replaced, sorted and unique.

    >>> canonical_rule_ids(["DEFAULT", "COMMENTS"])
    ('COMMENTS', 'STANDARD')
    """

    return _sorted_unique(CATEGORY_ALIASES.get(value, value) for value in ids)


@dataclass(frozen=True, slots=True)
class CheckConfig:
    """Settings shared by lint and breaking configurations.

    Why
    ----
    A category is either *disabled* for a module (an ignore path equal to the
    module directory) or *enabled* with rule selections and ignores. Keeping the
    sentinel distinct from "enabled with nothing selected" lets the serializer
    reproduce the escape hatch faithfully.

    What
    ----
    Lists are stored sorted and unique; ``ignore`` and ``ignore_only`` paths are
    normalized and relative to the owning module directory. The constructor
    canonicalises its inputs, so two configs built from the same settings in a
    different order compare equal.
    """

    file_version: FileVersion = FileVersion.V2
    use: tuple[str, ...] = ()
    except_: tuple[str, ...] = ()
    ignore: tuple[str, ...] = ()
    ignore_only: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    disable_builtin: bool = False
    disabled: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "use", _sorted_unique(self.use))
        object.__setattr__(self, "except_", _sorted_unique(self.except_))
        object.__setattr__(self, "ignore", _sorted_paths(self.ignore))
        object.__setattr__(self, "ignore_only", _freeze_ignore_only(self.ignore_only))

    @property
    def default_use(self) -> tuple[str, ...]:
        return ()

    @property
    def effective_use(self) -> tuple[str, ...]:
        """Rule IDs and categories in force, falling back to the version default."""

        if self.disabled:
            return ()
        return canonical_rule_ids(self.use or self.default_use)

    @property
    def effective_except(self) -> tuple[str, ...]:
        if self.disabled:
            return ()
        return canonical_rule_ids(self.except_)

    def is_empty(self) -> bool:
        """Return ``True`` for an enabled config that sets nothing."""

        return self == type(self)(file_version=self.file_version)


@dataclass(frozen=True, slots=True)
class LintConfig(CheckConfig):
    """Lint settings; ``allow_comment_ignores`` is written inverted in v2."""

    enum_zero_value_suffix: str = ""
    rpc_allow_same_request_response: bool = False
    rpc_allow_google_protobuf_empty_requests: bool = False
    rpc_allow_google_protobuf_empty_responses: bool = False
    service_suffix: str = ""
    allow_comment_ignores: bool = True

    @property
    def default_use(self) -> tuple[str, ...]:
        return _DEFAULT_LINT_USE[self.file_version]

    @classmethod
    def disabled_config(cls, file_version: FileVersion) -> "LintConfig":
        return cls(file_version=file_version, disabled=True)

    def is_empty(self) -> bool:
        return self == DEFAULT_LINT_CONFIGS[self.file_version]


@dataclass(frozen=True, slots=True)
class BreakingConfig(CheckConfig):
    """Breaking-change settings."""

    ignore_unstable_packages: bool = False

    @property
    def default_use(self) -> tuple[str, ...]:
        return _DEFAULT_BREAKING_USE[self.file_version]

    @classmethod
    def disabled_config(cls, file_version: FileVersion) -> "BreakingConfig":
        return cls(file_version=file_version, disabled=True)


def _default_allow_comment_ignores(file_version: FileVersion) -> bool:
    """Pre-v2 files must opt in to comment ignores; v2 allows them unless disallowed."""

    return file_version is FileVersion.V2


def default_lint_config(file_version: FileVersion) -> LintConfig:
    return DEFAULT_LINT_CONFIGS[file_version]


def default_breaking_config(file_version: FileVersion) -> BreakingConfig:
    return DEFAULT_BREAKING_CONFIGS[file_version]


DEFAULT_LINT_CONFIGS: Final[Mapping[FileVersion, LintConfig]] = MappingProxyType(
    {
        version: LintConfig(file_version=version, allow_comment_ignores=_default_allow_comment_ignores(version))
        for version in FileVersion
    }
)
DEFAULT_BREAKING_CONFIGS: Final[Mapping[FileVersion, BreakingConfig]] = MappingProxyType(
    {version: BreakingConfig(file_version=version) for version in FileVersion}
)
