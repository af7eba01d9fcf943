"""Code generation value objects.

Purpose
-------
Model the plugins a generation manifest runs, the strategy they use, the type
allow-list and the overall :class:`GenerateConfig` that ties plugins, managed
mode and inputs together.

Contents
--------
* :class:`GeneratePluginType` – the four plugin kinds, including the deferred
  ``LOCAL_OR_PROTOC_BUILTIN`` kind read from v1beta1/v1 files.
* :class:`GenerateStrategy` – ``directory`` or ``all``.
* :class:`GeneratePluginConfig` – validated plugin entry.
* :class:`GenerateTypeConfig` – v1beta1/v1 ``types.include`` allow-list.
* :class:`GenerateConfig` – the complete generation configuration.
* :func:`resolve_local_or_protoc_builtin` – resolution helper for the code that
  executes plugins.

System Role
-----------
Built by the ``buf.gen.yaml`` decoder and consumed by the serializer. The
deferred plugin kind is never resolved here; the executor calls
:func:`resolve_local_or_protoc_builtin` when it needs a concrete kind, and the
serializer uses :meth:`GeneratePluginConfig.explicit` to pick the canonical v2
key.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Final, Optional, Sequence

from .errors import InvariantError, ValidationError
from .inputs import GenerateInputConfig
from .managed import GenerateManagedConfig
from .refs import PluginRef

MAX_REVISION: Final[int] = 2**31 - 1

PROTOC_BUILTIN_PLUGIN_NAMES: Final[frozenset[str]] = frozenset(
    {"cpp", "csharp", "java", "js", "kotlin", "objc", "php", "pyi", "python", "ruby", "rust"}
)
LOCAL_PLUGIN_PREFIX: Final[str] = "protoc-gen-"


class GeneratePluginType(Enum):
    REMOTE = "remote"
    LOCAL = "local"
    PROTOC_BUILTIN = "protoc_builtin"
    LOCAL_OR_PROTOC_BUILTIN = "local_or_protoc_builtin"


class GenerateStrategy(Enum):
    DIRECTORY = "directory"
    ALL = "all"

    @classmethod
    def parse(cls, value: str) -> "GenerateStrategy":
        """Parse a wire strategy name.

        >>> GenerateStrategy.parse("all")
        <GenerateStrategy.ALL: 'all'>
        """

        for strategy in cls:
            if strategy.value == value:
                return strategy
        raise ValidationError(f"unknown strategy: {value!r}")


_TYPE_LABELS: Final[dict[GeneratePluginType, str]] = {
    GeneratePluginType.REMOTE: "remote plugin",
    GeneratePluginType.LOCAL: "local plugin",
    GeneratePluginType.PROTOC_BUILTIN: "protoc built-in plugin",
    GeneratePluginType.LOCAL_OR_PROTOC_BUILTIN: "local or protoc built-in plugin",
}


@dataclass(frozen=True, slots=True)
class GeneratePluginConfig:
    """One plugin entry of a generation manifest.

    Why
    ----
    Three schema versions describe plugins with different keys; v1beta1 and v1
    cannot even say whether a bare name is an executable or a protoc built-in.
    One validated type with an explicit discriminant keeps that ambiguity in a
    single, visible place.

    What
    ----
    ``type`` selects which optional fields may be set: ``revision`` and
    ``remote_host`` are remote only, ``path`` is local only, ``protoc_path`` is
    protoc built-in only, and remote plugins may not choose a strategy.
    ``include_wkt`` requires ``include_imports``. Violations raise
    :class:`~bufconfig.domain.errors.ValidationError`.
    """

    type: GeneratePluginType
    name: str
    out: str
    opts: tuple[str, ...] = ()
    include_imports: bool = False
    include_wkt: bool = False
    strategy: Optional[GenerateStrategy] = None
    path: tuple[str, ...] = ()
    protoc_path: tuple[str, ...] = ()
    remote_host: str = ""
    revision: int = 0
    types: tuple[str, ...] = ()
    exclude_types: tuple[str, ...] = ()
    postprocess_cmd: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("opts", "path", "protoc_path", "types", "exclude_types", "postprocess_cmd"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        label = _TYPE_LABELS[self.type]
        if not self.name:
            raise ValidationError("plugin name must not be empty")
        if not self.out:
            raise ValidationError(f"must specify out for {label} {self.name}")
        if self.include_wkt and not self.include_imports:
            raise ValidationError("cannot include well-known types without including imports")
        if self.type is GeneratePluginType.REMOTE:
            if not 0 <= self.revision <= MAX_REVISION:
                raise ValidationError(f"revision {self.revision} is out of accepted range 0-{MAX_REVISION}")
            if self.strategy is not None:
                raise ValidationError("cannot specify strategy for remote plugin")
            if self.protoc_path:
                raise ValidationError("cannot specify protoc_path for remote plugin")
            if self.path:
                raise ValidationError("cannot specify path for remote plugin")
            if not self.remote_host:
                raise InvariantError(f"remote plugin {self.name} has no remote host")
            return
        if self.revision:
            raise ValidationError(f"cannot specify revision for {label}")
        if self.remote_host:
            raise InvariantError(f"{label} {self.name} cannot carry a remote host")
        if self.type is GeneratePluginType.LOCAL:
            if not self.path:
                raise ValidationError(f"local plugin {self.name} must specify a path")
            if self.protoc_path:
                raise ValidationError("cannot specify protoc_path for local plugin")
        elif self.type is GeneratePluginType.PROTOC_BUILTIN:
            if self.path:
                raise ValidationError("cannot specify path for protoc built-in plugin")
        elif self.path or self.protoc_path:
            raise InvariantError(f"{label} {self.name} cannot set path or protoc_path")

    @classmethod
    def remote(cls, reference: str, out: str, *, revision: int = 0, **options) -> "GeneratePluginConfig":
        """Build a remote plugin from ``registry/owner/name[:version]``."""

        ref = PluginRef.parse(reference)
        return cls(GeneratePluginType.REMOTE, reference, out, remote_host=ref.registry, revision=revision, **options)

    @classmethod
    def local(cls, path: Sequence[str], out: str, **options) -> "GeneratePluginConfig":
        """Build a local plugin invoked through the argv *path*."""

        path = tuple(path)
        if not path or not path[0]:
            raise ValidationError("local plugin must specify a path")
        return cls(GeneratePluginType.LOCAL, " ".join(path), out, path=path, **options)

    @classmethod
    def protoc_builtin(
        cls, name: str, out: str, *, protoc_path: Sequence[str] = (), **options
    ) -> "GeneratePluginConfig":
        return cls(GeneratePluginType.PROTOC_BUILTIN, name, out, protoc_path=tuple(protoc_path), **options)

    @classmethod
    def local_or_protoc_builtin(cls, name: str, out: str, **options) -> "GeneratePluginConfig":
        return cls(GeneratePluginType.LOCAL_OR_PROTOC_BUILTIN, name, out, **options)

    @property
    def opt(self) -> str:
        """Options joined with commas, as passed to ``protoc`` plugins."""

        return ",".join(self.opts)

    @property
    def effective_strategy(self) -> GenerateStrategy:
        if self.type is GeneratePluginType.REMOTE:
            return GenerateStrategy.ALL
        return self.strategy or GenerateStrategy.DIRECTORY

    def explicit(self) -> "GeneratePluginConfig":
        """Return this plugin with the deferred kind replaced by a concrete one.

        Names in the protoc built-in set become built-in plugins; any other
        name becomes a local ``protoc-gen-<name>`` executable. This decision
        does not inspect ``PATH`` so that written files are reproducible.

        Examples
        --------
        >>> GeneratePluginConfig.local_or_protoc_builtin("java", "gen").explicit().type
        <GeneratePluginType.PROTOC_BUILTIN: 'protoc_builtin'>
        >>> GeneratePluginConfig.local_or_protoc_builtin("go", "gen").explicit().path
        ('protoc-gen-go',)
        """

        if self.type is not GeneratePluginType.LOCAL_OR_PROTOC_BUILTIN:
            return self
        if self.name in PROTOC_BUILTIN_PLUGIN_NAMES:
            return replace(self, type=GeneratePluginType.PROTOC_BUILTIN)
        path = (LOCAL_PLUGIN_PREFIX + self.name,)
        return replace(self, type=GeneratePluginType.LOCAL, name=path[0], path=path)


def resolve_local_or_protoc_builtin(
    plugin: GeneratePluginConfig,
    *,
    which: Callable[[str], Optional[str]] = shutil.which,
) -> GeneratePluginConfig:
    """Resolve a deferred plugin kind at execution time.

    Why
    ----
    A v1 ``plugin: foo`` means ``protoc-gen-foo`` when that executable exists,
    and the protoc built-in ``foo`` otherwise.

    Parameters
    ----------
    plugin:
        Any plugin config; concrete kinds are returned unchanged.
    which:
        Executable lookup, defaulting to :func:`shutil.which`.

    Raises
    ------
    ValidationError
        When neither an executable nor a built-in matches.
    """

    if plugin.type is not GeneratePluginType.LOCAL_OR_PROTOC_BUILTIN:
        return plugin
    executable = LOCAL_PLUGIN_PREFIX + plugin.name
    if which(executable):
        return replace(plugin, type=GeneratePluginType.LOCAL, name=executable, path=(executable,))
    if plugin.name in PROTOC_BUILTIN_PLUGIN_NAMES:
        return replace(plugin, type=GeneratePluginType.PROTOC_BUILTIN)
    raise ValidationError(
        f"plugin {plugin.name}: {executable} was not found on PATH and {plugin.name} is not a protoc built-in plugin"
    )


@dataclass(frozen=True, slots=True)
class GenerateTypeConfig:
    """Fully qualified type names that limit generation (v1beta1/v1 ``types.include``)."""

    include_types: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "include_types", tuple(sorted(set(self.include_types))))


@dataclass(frozen=True, slots=True)
class GenerateConfig:
    """Everything a generation manifest configures.

    ``plugins`` keeps declaration order and must not be empty. ``type_config``
    only comes from v1beta1/v1 files; ``inputs`` and ``clean`` only from v2.
    """

    plugins: tuple[GeneratePluginConfig, ...]
    managed: Optional[GenerateManagedConfig] = None
    type_config: Optional[GenerateTypeConfig] = None
    inputs: tuple[GenerateInputConfig, ...] = ()
    clean: bool = False

    def __post_init__(self) -> None:
        object.__setattr__(self, "plugins", tuple(self.plugins))
        object.__setattr__(self, "inputs", tuple(self.inputs))
        if not self.plugins:
            raise ValidationError("must specify at least one plugin")
