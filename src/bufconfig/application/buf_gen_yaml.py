"""Generation manifest (``buf.gen.yaml``) decoding and encoding.

Purpose
-------
Read generation manifests of every schema version into
:class:`BufGenYAMLFile` and write them back as v2.

Contents
--------
* :class:`BufGenYAMLFile` – validated manifest contents.
* :func:`read_buf_gen_yaml_file` – decode bytes of any supported version.
* :func:`write_buf_gen_yaml_file` – encode as v2.

System Role
-----------
v1beta1 and v1 plugins are named by a bare ``name``/``plugin`` whose kind is
only known at execution time; they are kept as the deferred kind and given a
concrete v2 key on write. Managed mode translation lives in
:mod:`bufconfig.application.managed`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Optional

from ..adapters.codec import decode_document, encode_document
from ..domain.errors import ValidationError
from ..domain.file_version import BUF_GEN_YAML, FileVersion, unexpected_version
from ..domain.generate import (
    GenerateConfig,
    GeneratePluginConfig,
    GeneratePluginType,
    GenerateStrategy,
    GenerateTypeConfig,
)
from ..domain.inputs import INPUT_TYPE_KEYS, GenerateInputConfig, InputType
from ..domain.refs import is_remote_plugin_reference
from .external import ExternalObject, omit_empty
from .managed import (
    MANAGED_KEYS_V1,
    MANAGED_KEYS_V2,
    OPTIONS_KEYS_V1BETA1,
    decode_managed_v1,
    decode_managed_v1beta1,
    decode_managed_v2,
    encode_managed,
)
from .version import get_file_version_for_data

DOCS_LINK_PREFIX: Final[str] = (
    "# For details on buf.gen.yaml configuration, visit https://buf.build/docs/configuration/"
)
DOCS_LINK_COMMENT: Final[str] = DOCS_LINK_PREFIX + "{version}/buf-gen-yaml"

REMOTE_ALPHA_DEPRECATION: Final[str] = (
    "the remote field no longer works as the remote generation alpha has been deprecated, "
    "see the migration guide to now-stable remote plugins: "
    "https://buf.build/docs/migration-guides/migrate-remote-generation-alpha/#migrate-to-remote-plugins"
)

_TOP_KEYS_V1BETA1: Final[frozenset[str]] = frozenset({"version", "managed", "plugins", "options"})
_TOP_KEYS_V1: Final[frozenset[str]] = frozenset({"version", "plugins", "managed", "types"})
_TOP_KEYS_V2: Final[frozenset[str]] = frozenset({"version", "clean", "managed", "plugins", "inputs"})
_PLUGIN_KEYS_V1BETA1: Final[frozenset[str]] = frozenset({"name", "out", "opt", "path", "strategy"})
_PLUGIN_KEYS_V1: Final[frozenset[str]] = frozenset(
    {"plugin", "revision", "name", "remote", "out", "opt", "path", "protoc_path", "strategy", "postprocess_cmd"}
)
_PLUGIN_KINDS_V2: Final[tuple[str, ...]] = ("remote", "local", "protoc_builtin")
_PLUGIN_KEYS_V2: Final[frozenset[str]] = frozenset(
    {
        *_PLUGIN_KINDS_V2,
        "revision",
        "protoc_path",
        "out",
        "opt",
        "include_imports",
        "include_wkt",
        "strategy",
        "types",
        "exclude_types",
        "postprocess_cmd",
    }
)
_PLUGIN_OPTIONS_V2: Final[dict[str, frozenset[str]]] = {
    "remote": frozenset({"revision"}),
    "local": frozenset({"strategy"}),
    "protoc_builtin": frozenset({"protoc_path", "strategy"}),
}
_INPUT_OPTION_KEYS: Final[tuple[str, ...]] = (
    "compression",
    "strip_components",
    "subdir",
    "branch",
    "commit",
    "tag",
    "ref",
    "depth",
    "recurse_submodules",
    "include_package_files",
)
_INPUT_FILTER_KEYS: Final[tuple[str, ...]] = ("types", "exclude_types", "paths", "exclude_paths")
_INPUT_KEYS: Final[frozenset[str]] = frozenset((*INPUT_TYPE_KEYS, *_INPUT_OPTION_KEYS, *_INPUT_FILTER_KEYS))
_INPUT_KINDS_TEXT: Final[str] = ", ".join(INPUT_TYPE_KEYS[:-1]) + " or " + INPUT_TYPE_KEYS[-1]


@dataclass(frozen=True, slots=True)
class BufGenYAMLFile:
    """Contents of a generation manifest."""

    file_version: FileVersion
    generate_config: GenerateConfig
    include_docs_link: bool = False


def _strategy(obj: ExternalObject) -> Optional[GenerateStrategy]:
    raw = obj.string("strategy")
    return GenerateStrategy.parse(raw) if raw else None


def _is_remote_alpha_path(value: str) -> bool:
    """Match the retired ``remote/owner/plugins/name[:version]`` form."""

    parts = value.split("/")
    return len(parts) == 4 and parts[2] == "plugins" and all(parts)


def _decode_plugin_v1beta1(entry: ExternalObject) -> GeneratePluginConfig:
    name = entry.string("name")
    if not name:
        raise ValidationError("plugin name is required")
    out = entry.string("out")
    if not out:
        raise ValidationError(f"out is required for plugin {name}")
    options = {"opts": entry.string_or_strings("opt"), "strategy": _strategy(entry)}
    path = entry.string("path")
    if path:
        return GeneratePluginConfig.local([path], out, **options)
    return GeneratePluginConfig.local_or_protoc_builtin(name, out, **options)


def _decode_plugin_v1(entry: ExternalObject) -> GeneratePluginConfig:
    """Decode one v1 plugin; see :func:`read_buf_gen_yaml_file` for the rules."""

    if entry.string("remote"):
        raise ValidationError(REMOTE_ALPHA_DEPRECATION)
    plugin = entry.string("plugin")
    name = entry.string("name")
    if not plugin and not name:
        raise ValidationError("one of plugin or name is required")
    if plugin and name:
        raise ValidationError("only one of plugin or name can be set")
    identifier = plugin or name
    if plugin and _is_remote_alpha_path(plugin):
        raise ValidationError(f"invalid remote plugin reference: {plugin}")
    if name and _is_remote_alpha_path(name):
        raise ValidationError(f"invalid plugin name {name}, did you mean to use a remote plugin?")
    if name and is_remote_plugin_reference(name):
        raise ValidationError(f"invalid local plugin name: {name}")
    out = entry.string("out")
    if not out:
        raise ValidationError(f"out is required for plugin {identifier}")
    strategy = _strategy(entry)
    opts = entry.string_or_strings("opt")
    path = entry.string_or_strings("path")
    protoc_path = entry.string("protoc_path")
    postprocess_cmd = entry.strings("postprocess_cmd")
    if plugin and is_remote_plugin_reference(plugin):
        if entry.has("path"):
            raise ValidationError(f"remote plugin {plugin} cannot specify a path")
        if strategy is not None:
            raise ValidationError(f"remote plugin {plugin} cannot specify a strategy")
        if protoc_path:
            raise ValidationError(f"remote plugin {plugin} cannot specify a protoc path")
        return GeneratePluginConfig.remote(
            plugin, out, revision=entry.integer("revision") or 0, opts=opts, postprocess_cmd=postprocess_cmd
        )
    revision = entry.integer("revision") or 0
    options = {"opts": opts, "strategy": strategy, "revision": revision, "postprocess_cmd": postprocess_cmd}
    if path:
        return GeneratePluginConfig.local(path, out, **options)
    if protoc_path:
        return GeneratePluginConfig.protoc_builtin(identifier, out, protoc_path=[protoc_path], **options)
    return GeneratePluginConfig.local_or_protoc_builtin(identifier, out, **options)


def _decode_plugin_v2(entry: ExternalObject) -> GeneratePluginConfig:
    kinds = [kind for kind in _PLUGIN_KINDS_V2 if entry.has(kind)]
    if not kinds:
        raise ValidationError("must specify one of remote, local or protoc_builtin")
    if len(kinds) > 1:
        raise ValidationError("only one of remote, local or protoc_builtin is allowed")
    kind = kinds[0]
    for option in ("revision", "protoc_path", "strategy"):
        if entry.has(option) and option not in _PLUGIN_OPTIONS_V2[kind]:
            raise ValidationError(f"{option} is not allowed for {kind} plugin")
    out = entry.string("out")
    options: dict[str, Any] = {
        "opts": entry.string_or_strings("opt"),
        "include_imports": entry.boolean("include_imports"),
        "include_wkt": entry.boolean("include_wkt"),
        "types": entry.strings("types"),
        "exclude_types": entry.strings("exclude_types"),
        "postprocess_cmd": entry.strings("postprocess_cmd"),
    }
    if kind == "remote":
        return GeneratePluginConfig.remote(entry.string("remote"), out, revision=entry.integer("revision") or 0, **options)
    options["strategy"] = _strategy(entry)
    if kind == "local":
        return GeneratePluginConfig.local(entry.string_or_strings("local"), out, **options)
    return GeneratePluginConfig.protoc_builtin(
        entry.string("protoc_builtin"), out, protoc_path=entry.string_or_strings("protoc_path"), **options
    )


def _decode_input(entry: ExternalObject) -> GenerateInputConfig:
    kinds = [key for key in INPUT_TYPE_KEYS if entry.has(key)]
    if not kinds:
        raise ValidationError(f"must specify one of {_INPUT_KINDS_TEXT}")
    if len(kinds) > 1:
        raise ValidationError(f"exactly one of {_INPUT_KINDS_TEXT} must be specified")
    kind = kinds[0]
    return GenerateInputConfig(
        InputType(kind),
        entry.string(kind),
        compression=entry.string("compression"),
        strip_components=entry.integer("strip_components"),
        subdir=entry.string("subdir"),
        branch=entry.string("branch"),
        commit=entry.string("commit"),
        tag=entry.string("tag"),
        ref=entry.string("ref"),
        depth=entry.integer("depth"),
        recurse_submodules=entry.boolean("recurse_submodules"),
        include_package_files=entry.boolean("include_package_files"),
        types=entry.strings("types"),
        exclude_types=entry.strings("exclude_types"),
        paths=entry.strings("paths"),
        exclude_paths=entry.strings("exclude_paths"),
    )


def _decode_v1beta1(top: ExternalObject) -> GenerateConfig:
    plugins = [_decode_plugin_v1beta1(entry) for entry in top.objects("plugins", _PLUGIN_KEYS_V1BETA1)]
    managed = decode_managed_v1beta1(top.boolean("managed"), top.object("options", OPTIONS_KEYS_V1BETA1))
    return GenerateConfig(tuple(plugins), managed)


def _decode_v1(top: ExternalObject) -> GenerateConfig:
    plugins = [_decode_plugin_v1(entry) for entry in top.objects("plugins", _PLUGIN_KEYS_V1)]
    managed = decode_managed_v1(top.object("managed", MANAGED_KEYS_V1))
    include_types = top.object("types", {"include"}).strings("include")
    type_config = GenerateTypeConfig(tuple(include_types)) if include_types else None
    return GenerateConfig(tuple(plugins), managed, type_config)


def _decode_v2(top: ExternalObject) -> GenerateConfig:
    plugins = [_decode_plugin_v2(entry) for entry in top.objects("plugins", _PLUGIN_KEYS_V2)]
    managed = decode_managed_v2(top.object("managed", MANAGED_KEYS_V2))
    inputs = [_decode_input(entry) for entry in top.objects("inputs", _INPUT_KEYS)]
    return GenerateConfig(tuple(plugins), managed, None, tuple(inputs), top.boolean("clean"))


def read_buf_gen_yaml_file(
    data: bytes, *, allow_json: bool = False, path: str | None = None
) -> BufGenYAMLFile:
    """Decode a generation manifest of any supported version.

    Why
    ----
    Each version spells plugins differently. v1 alone has four spellings for
    one entry: a remote reference under ``plugin``, a local executable with
    ``path``, a protoc built-in with ``protoc_path``, and a bare name whose
    kind is decided when generation runs.

    What
    ----
    * v1beta1: ``name`` plus optional ``path``; ``managed`` flag with ``options``.
    * v1: exactly one of ``plugin``/``name``; a remote reference under
      ``plugin`` may not set ``path``, ``strategy`` or ``protoc_path``; the
      retired ``remote`` key is rejected with a migration hint.
    * v2: exactly one of ``remote``/``local``/``protoc_builtin`` per plugin,
      plus ``inputs`` and ``clean``.

    Examples
    --------
    >>> buf_gen_yaml = read_buf_gen_yaml_file(
    ...     b"version: v1\\nplugins:\\n  - plugin: go\\n    out: gen/go\\n")
    >>> buf_gen_yaml.generate_config.plugins[0].type
    <GeneratePluginType.LOCAL_OR_PROTOC_BUILTIN: 'local_or_protoc_builtin'>
    >>> read_buf_gen_yaml_file(b"version: v2\\nplugins:\\n  - remote: buf.build/a/b\\n    local: x\\n    out: gen\\n")
    Traceback (most recent call last):
    ...
    bufconfig.domain.errors.ValidationError: only one of remote, local or protoc_builtin is allowed
    """

    version = get_file_version_for_data(data, BUF_GEN_YAML, allow_json=allow_json, path=path)
    document = decode_document(data, allow_json=allow_json, path=path)
    docs_link = data.lstrip().startswith(DOCS_LINK_PREFIX.encode("utf-8"))
    if version is FileVersion.V1BETA1:
        config = _decode_v1beta1(ExternalObject(document, allowed=_TOP_KEYS_V1BETA1))
    elif version is FileVersion.V1:
        config = _decode_v1(ExternalObject(document, allowed=_TOP_KEYS_V1))
    elif version is FileVersion.V2:
        config = _decode_v2(ExternalObject(document, allowed=_TOP_KEYS_V2))
    else:
        raise unexpected_version(version)
    return BufGenYAMLFile(version, config, docs_link)


# Writing


def _scalar_or_list(values: tuple[str, ...]) -> Any:
    """Emit one value as a bare scalar and several as a list."""

    if not values:
        return None
    if len(values) == 1:
        return values[0]
    return list(values)


def encode_plugin(plugin: GeneratePluginConfig, type_config: Optional[GenerateTypeConfig] = None) -> dict[str, Any]:
    """Render one plugin as a v2 entry, fixing the kind of deferred plugins."""

    plugin = plugin.explicit()
    if plugin.type is GeneratePluginType.REMOTE:
        head: dict[str, Any] = {"remote": plugin.name, "revision": plugin.revision}
    elif plugin.type is GeneratePluginType.LOCAL:
        head = {"local": _scalar_or_list(plugin.path)}
    else:
        head = {"protoc_builtin": plugin.name, "protoc_path": _scalar_or_list(plugin.protoc_path)}
    types = plugin.types
    if not types and type_config is not None:
        types = type_config.include_types
    body = {
        "out": plugin.out,
        "opt": _scalar_or_list(plugin.opts),
        "include_imports": plugin.include_imports,
        "include_wkt": plugin.include_wkt,
        "strategy": plugin.strategy.value if plugin.strategy else None,
        "types": list(types),
        "exclude_types": list(plugin.exclude_types),
        "postprocess_cmd": list(plugin.postprocess_cmd),
    }
    return omit_empty({**head, **body})


def encode_input(input_config: GenerateInputConfig) -> dict[str, Any]:
    document: dict[str, Any] = {
        input_config.type.value: input_config.location,
        "compression": input_config.compression,
        "strip_components": input_config.strip_components,
        "subdir": input_config.subdir,
        "branch": input_config.branch,
        "commit": input_config.commit,
        "tag": input_config.tag,
        "ref": input_config.ref,
        "depth": input_config.depth,
        "recurse_submodules": input_config.recurse_submodules,
        "include_package_files": input_config.include_package_files,
        "types": list(input_config.types),
        "exclude_types": list(input_config.exclude_types),
        "paths": list(input_config.paths),
        "exclude_paths": list(input_config.exclude_paths),
    }
    return omit_empty(document)


def write_buf_gen_yaml_file(buf_gen_yaml_file: BufGenYAMLFile) -> bytes:
    """Encode *buf_gen_yaml_file* as a v2 generation manifest.

    Single options and single-element argv lists are written as scalars, so
    hand-written v2 files survive a round trip unchanged. A v1 ``types``
    allow-list is carried into every plugin.

    >>> buf_gen_yaml = read_buf_gen_yaml_file(
    ...     b"version: v1\\nplugins:\\n  - plugin: go\\n    out: gen/go\\n"
    ...     b"    opt: paths=source_relative\\n    path: custom-gen-go\\n    strategy: directory\\n")
    >>> print(write_buf_gen_yaml_file(buf_gen_yaml).decode(), end="")
    version: v2
    plugins:
      - local: custom-gen-go
        out: gen/go
        opt: paths=source_relative
        strategy: directory
    """

    config = buf_gen_yaml_file.generate_config
    document: dict[str, Any] = {"version": str(FileVersion.V2)}
    if config.clean:
        document["clean"] = True
    managed = encode_managed(config.managed)
    if managed is not None:
        document["managed"] = managed
    document["plugins"] = [encode_plugin(plugin, config.type_config) for plugin in config.plugins]
    if config.inputs:
        document["inputs"] = [encode_input(input_config) for input_config in config.inputs]
    header = DOCS_LINK_COMMENT.format(version=FileVersion.V2) + "\n" if buf_gen_yaml_file.include_docs_link else ""
    return encode_document(document, header=header)
