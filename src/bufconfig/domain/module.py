"""Module, policy and check-plugin value objects.

Purpose
-------
Represent one module's build configuration together with the policies and
check plugins a module manifest can attach.

Contents
--------
* :class:`ModuleConfig` – directory, optional name, roots with their
  include/exclude sets, lint and breaking configs.
* :class:`PolicyConfig` – a referenced policy with its ignores.
* :class:`PluginConfigType` / :class:`PluginConfig` – check plugins that run
  inside lint/breaking (local executables, local or remote Wasm).
* :func:`new_plugin_config` – resolves the plugin type from a ``plugin`` value.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Callable, Final, Iterable, Mapping, Sequence

from . import normalpath
from .check import BreakingConfig, LintConfig, default_breaking_config, default_lint_config
from .errors import InvariantError, ValidationError
from .file_version import FileVersion
from .refs import ModuleFullName, ModuleRef, PluginRef

WASM_SUFFIX: Final[str] = ".wasm"
_LOCAL_POLICY_SUFFIXES: Final[tuple[str, ...]] = (".yaml", ".yml")


def _freeze_path_sets(mapping: Mapping[str, Iterable[str]], *, label: str) -> Mapping[str, tuple[str, ...]]:
    """Freeze root->paths, requiring normalized, sorted, unique, strictly relative paths."""

    frozen: dict[str, tuple[str, ...]] = {}
    for root in sorted(mapping):
        if normalpath.normalize(root) != root:
            raise InvariantError(f"{label} root {root!r} is not normalized")
        paths = tuple(mapping[root])
        if list(paths) != sorted(set(paths)):
            raise InvariantError(f"{label} for root {root!r} are not sorted and unique: {list(paths)}")
        for path in paths:
            if path == "." or normalpath.normalize_and_validate(path) != path:
                raise InvariantError(f"{label} path {path!r} for root {root!r} is not a normalized descendant")
        frozen[root] = paths
    return MappingProxyType(frozen)


@dataclass(frozen=True, slots=True)
class ModuleConfig:
    """Build configuration for one module.

    Why
    ----
    v1beta1 and v1 manifests describe a single module at ``"."`` (v1beta1 may
    split it into several roots); v2 manifests list modules explicitly. This
    type is the common denominator.

    What
    ----
    ``root_to_includes`` and ``root_to_excludes`` map each root to paths stored
    relative to that root. In v2 the only root is ``"."``. Inputs must already be
    canonical (sorted, unique, normalized); the normalizer guarantees that, and a
    violation is reported as an :class:`InvariantError`.
    """

    dir_path: str = "."
    full_name: ModuleFullName | None = None
    root_to_includes: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: {".": ()})
    root_to_excludes: Mapping[str, tuple[str, ...]] = field(default_factory=lambda: {".": ()})
    lint: LintConfig = field(default_factory=lambda: default_lint_config(FileVersion.V2))
    breaking: BreakingConfig = field(default_factory=lambda: default_breaking_config(FileVersion.V2))

    def __post_init__(self) -> None:
        dir_path = normalpath.normalize_and_validate(self.dir_path)
        object.__setattr__(self, "dir_path", dir_path)
        object.__setattr__(self, "root_to_includes", _freeze_path_sets(self.root_to_includes, label="includes"))
        object.__setattr__(self, "root_to_excludes", _freeze_path_sets(self.root_to_excludes, label="excludes"))
        if set(self.root_to_includes) != set(self.root_to_excludes):
            raise InvariantError(
                f"module {dir_path!r} has mismatched roots for includes {sorted(self.root_to_includes)} "
                f"and excludes {sorted(self.root_to_excludes)}"
            )
        if not self.root_to_excludes:
            raise InvariantError(f"module {dir_path!r} has no roots")

    @property
    def roots(self) -> tuple[str, ...]:
        return tuple(self.root_to_excludes)

    @property
    def includes(self) -> tuple[str, ...]:
        """Includes of the sole ``"."`` root, as used by v2 modules."""

        return self.root_to_includes.get(".", ())

    @property
    def excludes(self) -> tuple[str, ...]:
        return self.root_to_excludes.get(".", ())


@dataclass(frozen=True, slots=True)
class PolicyConfig:
    """A policy attached to a v2 module manifest.

    ``name`` is either a local path ending in ``.yaml``/``.yml`` or a remote
    reference, in which case ``ref`` carries the parsed form.
    """

    name: str
    ignore: tuple[str, ...] = ()
    ignore_only: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    ref: ModuleRef | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValidationError("policy name must not be empty")
        ignore = tuple(sorted({normalpath.normalize_and_validate(path) for path in self.ignore}))
        ignore_only = {
            key: tuple(sorted({normalpath.normalize_and_validate(path) for path in self.ignore_only[key]}))
            for key in sorted(self.ignore_only)
        }
        object.__setattr__(self, "ignore", ignore)
        object.__setattr__(self, "ignore_only", MappingProxyType({k: v for k, v in ignore_only.items() if v}))

    @classmethod
    def new(
        cls,
        name: str,
        ignore: Iterable[str] = (),
        ignore_only: Mapping[str, Iterable[str]] | None = None,
    ) -> "PolicyConfig":
        """Build a policy, parsing *name* as a remote reference unless it is a local file."""

        ref = None
        if name and not name.endswith(_LOCAL_POLICY_SUFFIXES):
            ref = ModuleRef.parse(name)
        return cls(name, tuple(ignore), dict(ignore_only or {}), ref)


class PluginConfigType(Enum):
    LOCAL = "local"
    LOCAL_WASM = "local_wasm"
    REMOTE_WASM = "remote_wasm"


@dataclass(frozen=True, slots=True)
class PluginConfig:
    """A check plugin that contributes lint or breaking rules.

    Attributes
    ----------
    type:
        Local executable, local Wasm module, or remote Wasm plugin.
    name:
        Executable name, Wasm path, or remote reference string.
    options:
        Arbitrary option values passed to the plugin, keys sorted.
    args:
        Extra command line arguments (local executables only).
    ref:
        Parsed reference for remote Wasm plugins.
    """

    type: PluginConfigType
    name: str
    options: Mapping[str, Any] = field(default_factory=dict)
    args: tuple[str, ...] = ()
    ref: PluginRef | None = None

    def __post_init__(self) -> None:
        if not self.name:
            raise ValidationError("plugin name must not be empty")
        if self.type is PluginConfigType.LOCAL_WASM and not self.name.endswith(WASM_SUFFIX):
            raise ValidationError(f"local Wasm plugin {self.name!r} must end in {WASM_SUFFIX}")
        if self.type is PluginConfigType.REMOTE_WASM and self.ref is None:
            raise ValidationError(f"remote Wasm plugin {self.name!r} requires a reference")
        if self.type is not PluginConfigType.REMOTE_WASM and self.ref is not None:
            raise InvariantError(f"{self.type.value} plugin {self.name!r} cannot carry a remote reference")
        object.__setattr__(self, "options", MappingProxyType({key: self.options[key] for key in sorted(self.options)}))
        object.__setattr__(self, "args", tuple(self.args))

    @property
    def argv(self) -> tuple[str, ...]:
        return (self.name, *self.args)


def _path_exists(path: str) -> bool:
    return os.path.exists(path)


def new_plugin_config(
    plugin: Sequence[str],
    options: Mapping[str, Any] | None = None,
    *,
    local_file_exists: Callable[[str], bool] = _path_exists,
) -> PluginConfig:
    """Resolve a ``plugin`` value into a :class:`PluginConfig`.

    Why
    ----
    The manifest uses one key for all plugin kinds. A name ending in ``.wasm``
    is a local Wasm module. A name that parses as a remote reference is a
    remote Wasm plugin unless its first path segment exists locally, in which
    case the local file wins. Everything else is a local executable.

    Parameters
    ----------
    plugin:
        The plugin name or path followed by its arguments.
    options:
        Option mapping from the manifest.
    local_file_exists:
        Probe used for the local-file-wins rule; injected by tests.

    Examples
    --------
    >>> new_plugin_config(["buf-plugin-timestamp", "--strict"]).type
    <PluginConfigType.LOCAL: 'local'>
    >>> new_plugin_config(["plugins/check.wasm"]).type
    <PluginConfigType.LOCAL_WASM: 'local_wasm'>
    >>> new_plugin_config(["buf.build/acme/check:v1"], local_file_exists=lambda _: False).type
    <PluginConfigType.REMOTE_WASM: 'remote_wasm'>
    """

    if not plugin or not plugin[0]:
        raise ValidationError("plugin must specify a name or path")
    name, args = plugin[0], tuple(plugin[1:])
    options = dict(options or {})
    if name.endswith(WASM_SUFFIX):
        return PluginConfig(PluginConfigType.LOCAL_WASM, name, options, args)
    try:
        ref = PluginRef.parse(name)
    except ValidationError:
        ref = None
    if ref is not None and not local_file_exists(normalpath.components(name)[0]):
        if args:
            raise ValidationError(f"remote Wasm plugin {name!r} cannot take arguments")
        return PluginConfig(PluginConfigType.REMOTE_WASM, name, options, (), ref)
    return PluginConfig(PluginConfigType.LOCAL, name, options, args)
