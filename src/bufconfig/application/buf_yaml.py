"""Module manifest (``buf.yaml`` / ``buf.mod``) decoding and encoding.

Purpose
-------
Read module manifests of every schema version into :class:`BufYAMLFile` and
write them back in the latest schema.

Contents
--------
* :class:`BufYAMLFile` – validated manifest contents.
* :func:`read_buf_yaml_file` – decode bytes of any supported version.
* :func:`write_buf_yaml_file` – encode as v2 with collapsing and stable order.
* ``decode_*``/``encode_*`` helpers for lint, breaking and plugin blocks, shared
  with :mod:`bufconfig.application.buf_policy_yaml`.

System Role
-----------
v1beta1 and v1 manifests describe one module (v1beta1 possibly with several
roots); v2 manifests list modules and resolve every path relative to the
manifest. Reading normalizes all of that into :class:`ModuleConfig` objects;
writing expands roots into v2 modules and hoists identical lint/breaking blocks
to the top level.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Iterable, Mapping, Optional

from ..adapters.codec import decode_document, encode_document
from ..domain import normalpath
from ..domain.check import BreakingConfig, LintConfig
from ..domain.errors import ValidationError
from ..domain.file_version import BUF_YAML, FileName, FileVersion, unexpected_version
from ..domain.module import ModuleConfig, PluginConfig, PolicyConfig, new_plugin_config
from ..domain.refs import ModuleFullName, ModuleRef
from ..observability import log_warning
from .external import ExternalObject, omit_empty
from .normalize import (
    collapse_per_module,
    resolve_check_paths,
    resolve_module_includes_excludes,
    resolve_root_to_excludes,
)
from .ports import LocalFileProbe
from .version import get_file_version_for_data

DOCS_LINK_PREFIX: Final[str] = "# For details on buf.yaml configuration, visit https://buf.build/docs/configuration/"
DOCS_LINK_COMMENT: Final[str] = DOCS_LINK_PREFIX + "{version}/buf-yaml"

_CHECK_KEYS: Final[tuple[str, ...]] = ("use", "except", "ignore", "ignore_only")
_LINT_SCALAR_KEYS: Final[tuple[str, ...]] = (
    "enum_zero_value_suffix",
    "rpc_allow_same_request_response",
    "rpc_allow_google_protobuf_empty_requests",
    "rpc_allow_google_protobuf_empty_responses",
    "service_suffix",
)
_LINT_KEYS_V1: Final[frozenset[str]] = frozenset((*_CHECK_KEYS, *_LINT_SCALAR_KEYS, "allow_comment_ignores"))
_LINT_KEYS_V2: Final[frozenset[str]] = frozenset(
    (*_CHECK_KEYS, *_LINT_SCALAR_KEYS, "disallow_comment_ignores", "disable_builtin")
)
_BREAKING_KEYS_V1: Final[frozenset[str]] = frozenset((*_CHECK_KEYS, "ignore_unstable_packages"))
_BREAKING_KEYS_V2: Final[frozenset[str]] = frozenset((*_CHECK_KEYS, "ignore_unstable_packages", "disable_builtin"))
_TOP_KEYS_V1: Final[frozenset[str]] = frozenset({"version", "name", "deps", "build", "lint", "breaking"})
_TOP_KEYS_V2: Final[frozenset[str]] = frozenset(
    {"version", "name", "modules", "deps", "lint", "breaking", "plugins", "policies"}
)
_MODULE_KEYS_V2: Final[frozenset[str]] = frozenset({"path", "name", "includes", "excludes", "lint", "breaking"})
_PLUGIN_KEYS: Final[frozenset[str]] = frozenset({"plugin", "options"})
_POLICY_KEYS: Final[frozenset[str]] = frozenset({"policy", "ignore", "ignore_only"})


def lint_keys(file_version: FileVersion) -> frozenset[str]:
    return _LINT_KEYS_V2 if file_version is FileVersion.V2 else _LINT_KEYS_V1


def breaking_keys(file_version: FileVersion) -> frozenset[str]:
    return _BREAKING_KEYS_V2 if file_version is FileVersion.V2 else _BREAKING_KEYS_V1


def _duplicates(values: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    duplicates: list[str] = []
    for value in values:
        if value in seen and value not in duplicates:
            duplicates.append(value)
        seen.add(value)
    return duplicates


@dataclass(frozen=True, slots=True)
class BufYAMLFile:
    """Contents of a module manifest.

    Attributes
    ----------
    file_version:
        Schema version the file was read from (or ``V2`` when built in code).
    module_configs:
        At least one module, stable-sorted by directory. Exactly one before v2.
    configured_dep_module_refs:
        Declared dependencies, sorted by name, one per module name.
    plugin_configs / policy_configs:
        Check plugins and policies (v2 only).
    include_docs_link:
        Whether the file started with the documentation link comment.
    """

    file_version: FileVersion
    module_configs: tuple[ModuleConfig, ...]
    configured_dep_module_refs: tuple[ModuleRef, ...] = ()
    plugin_configs: tuple[PluginConfig, ...] = ()
    policy_configs: tuple[PolicyConfig, ...] = ()
    include_docs_link: bool = False

    def __post_init__(self) -> None:
        modules = sorted(self.module_configs, key=lambda module: module.dir_path)
        if not modules:
            raise ValidationError("a module manifest must describe at least one module")
        if self.file_version is not FileVersion.V2:
            if len(modules) != 1:
                raise ValidationError(f"version {self.file_version} manifests describe exactly one module")
            if self.plugin_configs or self.policy_configs:
                raise ValidationError(f"plugins and policies cannot be set on version {self.file_version}")
        duplicate_names = _duplicates(str(m.full_name) for m in modules if m.full_name is not None)
        if duplicate_names:
            raise ValidationError(f"module name {', '.join(duplicate_names)!r} seen more than once")
        deps = sorted(self.configured_dep_module_refs, key=lambda ref: str(ref.full_name))
        duplicate_deps = _duplicates(str(ref.full_name) for ref in deps)
        if duplicate_deps:
            raise ValidationError(f"dep with module name {', '.join(duplicate_deps)!r} seen more than once")
        object.__setattr__(self, "module_configs", tuple(modules))
        object.__setattr__(self, "configured_dep_module_refs", tuple(deps))
        object.__setattr__(self, "plugin_configs", tuple(self.plugin_configs))
        object.__setattr__(self, "policy_configs", tuple(self.policy_configs))

    def module_dir_paths(self) -> tuple[str, ...]:
        return tuple(module.dir_path for module in self.module_configs)


# Reading


def decode_lint_config(
    obj: ExternalObject, file_version: FileVersion, dir_path: str, *, require_contained: bool
) -> LintConfig:
    """Build a :class:`LintConfig` from a ``lint`` block anchored at *dir_path*."""

    # Every field is type-checked even when the block turns out disabled.
    use = tuple(obj.strings("use"))
    except_ = tuple(obj.strings("except"))
    disable_builtin = obj.boolean("disable_builtin")
    enum_zero_value_suffix = obj.string("enum_zero_value_suffix")
    rpc_allow_same_request_response = obj.boolean("rpc_allow_same_request_response")
    rpc_allow_google_protobuf_empty_requests = obj.boolean("rpc_allow_google_protobuf_empty_requests")
    rpc_allow_google_protobuf_empty_responses = obj.boolean("rpc_allow_google_protobuf_empty_responses")
    service_suffix = obj.string("service_suffix")
    if file_version is FileVersion.V2:
        allow_comment_ignores = not obj.boolean("disallow_comment_ignores")
    else:
        allow_comment_ignores = obj.boolean("allow_comment_ignores")
    resolved = resolve_check_paths(
        dir_path,
        obj.strings("ignore"),
        obj.strings_map("ignore_only"),
        require_contained=require_contained,
        label="lint ignore",
    )
    if resolved.disabled:
        return LintConfig.disabled_config(file_version)
    return LintConfig(
        file_version=file_version,
        use=use,
        except_=except_,
        ignore=resolved.ignore,
        ignore_only=dict(resolved.ignore_only or {}),
        disable_builtin=disable_builtin,
        enum_zero_value_suffix=enum_zero_value_suffix,
        rpc_allow_same_request_response=rpc_allow_same_request_response,
        rpc_allow_google_protobuf_empty_requests=rpc_allow_google_protobuf_empty_requests,
        rpc_allow_google_protobuf_empty_responses=rpc_allow_google_protobuf_empty_responses,
        service_suffix=service_suffix,
        allow_comment_ignores=allow_comment_ignores,
    )


def decode_breaking_config(
    obj: ExternalObject, file_version: FileVersion, dir_path: str, *, require_contained: bool
) -> BreakingConfig:
    """Build a :class:`BreakingConfig` from a ``breaking`` block anchored at *dir_path*."""

    use = tuple(obj.strings("use"))
    except_ = tuple(obj.strings("except"))
    disable_builtin = obj.boolean("disable_builtin")
    ignore_unstable_packages = obj.boolean("ignore_unstable_packages")
    resolved = resolve_check_paths(
        dir_path,
        obj.strings("ignore"),
        obj.strings_map("ignore_only"),
        require_contained=require_contained,
        label="breaking ignore",
    )
    if resolved.disabled:
        return BreakingConfig.disabled_config(file_version)
    return BreakingConfig(
        file_version=file_version,
        use=use,
        except_=except_,
        ignore=resolved.ignore,
        ignore_only=dict(resolved.ignore_only or {}),
        disable_builtin=disable_builtin,
        ignore_unstable_packages=ignore_unstable_packages,
    )


def decode_plugin_configs(obj: ExternalObject, *, local_file_exists: LocalFileProbe) -> list[PluginConfig]:
    plugins: list[PluginConfig] = []
    for entry in obj.objects("plugins", _PLUGIN_KEYS):
        plugin = entry.string_or_strings("plugin")
        if not plugin:
            raise ValidationError(f"{entry.where}: plugin is required")
        plugins.append(new_plugin_config(plugin, entry.mapping("options"), local_file_exists=local_file_exists))
    return plugins


def _decode_policy_configs(obj: ExternalObject) -> list[PolicyConfig]:
    policies: list[PolicyConfig] = []
    for entry in obj.objects("policies", _POLICY_KEYS):
        name = entry.string("policy")
        if not name:
            raise ValidationError(f"{entry.where}: policy is required")
        policies.append(PolicyConfig.new(name, entry.strings("ignore"), entry.strings_map("ignore_only")))
    return policies


def _decode_deps(obj: ExternalObject) -> list[ModuleRef]:
    refs: list[ModuleRef] = []
    for dep in obj.strings("deps"):
        try:
            refs.append(ModuleRef.parse(dep))
        except ValidationError as exc:
            raise ValidationError(f"invalid dep {dep!r}: {exc.message}") from exc
    return refs


def _decode_name(value: str) -> Optional[ModuleFullName]:
    if not value:
        return None
    return ModuleFullName.parse(value)


def _decode_v1(document: Any, file_version: FileVersion, include_docs_link: bool) -> BufYAMLFile:
    top = ExternalObject(document, allowed=_TOP_KEYS_V1)
    build = top.object("build", {"roots", "excludes"})
    roots = build.strings("roots")
    if roots and file_version is not FileVersion.V1BETA1:
        raise ValidationError(f"build.roots cannot be set on version {file_version}: {roots}")
    root_to_excludes = resolve_root_to_excludes(roots, build.strings("excludes"))
    module = ModuleConfig(
        dir_path=".",
        full_name=_decode_name(top.string("name")),
        root_to_includes={root: () for root in root_to_excludes},
        root_to_excludes=root_to_excludes,
        lint=decode_lint_config(top.object("lint", lint_keys(file_version)), file_version, ".", require_contained=True),
        breaking=decode_breaking_config(
            top.object("breaking", breaking_keys(file_version)), file_version, ".", require_contained=True
        ),
    )
    return BufYAMLFile(file_version, (module,), tuple(_decode_deps(top)), include_docs_link=include_docs_link)


def _decode_v2(document: Any, include_docs_link: bool, local_file_exists: LocalFileProbe) -> BufYAMLFile:
    version = FileVersion.V2
    top = ExternalObject(document, allowed=_TOP_KEYS_V2)
    top_lint = top.object("lint", _LINT_KEYS_V2)
    top_breaking = top.object("breaking", _BREAKING_KEYS_V2)
    entries = top.objects("modules", _MODULE_KEYS_V2)
    top_name = top.string("name")
    if entries and top_name:
        raise ValidationError("name cannot be set at the top level when modules are set, set name on each module")
    if not entries:
        entries = [ExternalObject({"name": top_name or None}, allowed=_MODULE_KEYS_V2, where="modules[0]")]
    modules: list[ModuleConfig] = []
    for entry in entries:
        dir_path = normalpath.normalize_and_validate(entry.string("path", "."))
        includes, excludes = resolve_module_includes_excludes(dir_path, entry.strings("includes"), entry.strings("excludes"))
        module_lint = entry.object("lint", _LINT_KEYS_V2)
        module_breaking = entry.object("breaking", _BREAKING_KEYS_V2)
        if module_lint.is_empty():
            lint = decode_lint_config(top_lint, version, dir_path, require_contained=False)
        else:
            lint = decode_lint_config(module_lint, version, dir_path, require_contained=True)
        if module_breaking.is_empty():
            breaking = decode_breaking_config(top_breaking, version, dir_path, require_contained=False)
        else:
            breaking = decode_breaking_config(module_breaking, version, dir_path, require_contained=True)
        modules.append(
            ModuleConfig(
                dir_path=dir_path,
                full_name=_decode_name(entry.string("name")),
                root_to_includes={".": includes},
                root_to_excludes={".": excludes},
                lint=lint,
                breaking=breaking,
            )
        )
    return BufYAMLFile(
        version,
        tuple(modules),
        tuple(_decode_deps(top)),
        tuple(decode_plugin_configs(top, local_file_exists=local_file_exists)),
        tuple(_decode_policy_configs(top)),
        include_docs_link,
    )


def has_docs_link(data: bytes, prefix: str = DOCS_LINK_PREFIX) -> bool:
    return data.lstrip().startswith(prefix.encode("utf-8"))


def read_buf_yaml_file(
    data: bytes,
    *,
    file_name: FileName = BUF_YAML,
    allow_json: bool = False,
    path: str | None = None,
    local_file_exists: LocalFileProbe = lambda _: False,
) -> BufYAMLFile:
    """Decode a module manifest of any supported version.

    Parameters
    ----------
    data:
        Raw file contents.
    file_name:
        Name rules to validate the version against (``buf.mod`` has no v2).
    allow_json:
        Accept JSON as well as YAML (override values from the command line).
    path:
        Location used in error messages.
    local_file_exists:
        Probe for the local-file-wins rule of check plugin references.

    Raises
    ------
    InvalidFormat, ValidationError
        On the first violated constraint; no partial result is returned.

    Examples
    --------
    >>> buf_yaml = read_buf_yaml_file(b"version: v1\\nname: buf.build/acme/weather\\n")
    >>> str(buf_yaml.module_configs[0].full_name)
    'buf.build/acme/weather'
    """

    version = get_file_version_for_data(data, file_name, allow_json=allow_json, path=path)
    document = decode_document(data, allow_json=allow_json, path=path)
    docs_link = has_docs_link(data)
    if version in (FileVersion.V1BETA1, FileVersion.V1):
        return _decode_v1(document, version, docs_link)
    if version is FileVersion.V2:
        return _decode_v2(document, docs_link, local_file_exists)
    raise unexpected_version(version)


# Writing


def encode_lint_config(config: LintConfig, dir_path: str) -> dict[str, Any]:
    """Render *config* as a v2 ``lint`` block with manifest-relative paths."""

    if config.disabled:
        return {"ignore": [dir_path]}
    return omit_empty(
        {
            "use": list(config.use),
            "except": list(config.except_),
            "ignore": [normalpath.join(dir_path, path) for path in config.ignore],
            "ignore_only": {
                rule: [normalpath.join(dir_path, path) for path in paths] for rule, paths in config.ignore_only.items()
            },
            "enum_zero_value_suffix": config.enum_zero_value_suffix,
            "rpc_allow_same_request_response": config.rpc_allow_same_request_response,
            "rpc_allow_google_protobuf_empty_requests": config.rpc_allow_google_protobuf_empty_requests,
            "rpc_allow_google_protobuf_empty_responses": config.rpc_allow_google_protobuf_empty_responses,
            "service_suffix": config.service_suffix,
            "disallow_comment_ignores": not config.allow_comment_ignores,
            "disable_builtin": config.disable_builtin,
        }
    )


def encode_breaking_config(config: BreakingConfig, dir_path: str) -> dict[str, Any]:
    """Render *config* as a v2 ``breaking`` block with manifest-relative paths."""

    if config.disabled:
        return {"ignore": [dir_path]}
    return omit_empty(
        {
            "use": list(config.use),
            "except": list(config.except_),
            "ignore": [normalpath.join(dir_path, path) for path in config.ignore],
            "ignore_only": {
                rule: [normalpath.join(dir_path, path) for path in paths] for rule, paths in config.ignore_only.items()
            },
            "ignore_unstable_packages": config.ignore_unstable_packages,
            "disable_builtin": config.disable_builtin,
        }
    )


def encode_plugin_configs(plugins: Iterable[PluginConfig]) -> list[dict[str, Any]]:
    encoded: list[dict[str, Any]] = []
    for plugin in plugins:
        entry: dict[str, Any] = {"plugin": list(plugin.argv) if plugin.args else plugin.name}
        if plugin.options:
            entry["options"] = dict(plugin.options)
        encoded.append(entry)
    return encoded


def _encode_policy_configs(policies: Iterable[PolicyConfig]) -> list[dict[str, Any]]:
    return [
        omit_empty(
            {
                "policy": policy.name,
                "ignore": list(policy.ignore),
                "ignore_only": {rule: list(paths) for rule, paths in policy.ignore_only.items()},
            }
        )
        for policy in policies
    ]


@dataclass(frozen=True, slots=True)
class _V2Module:
    dir_path: str
    name: str
    includes: list[str]
    excludes: list[str]
    lint: dict[str, Any]
    breaking: dict[str, Any]


def _expand_v2_modules(buf_yaml_file: BufYAMLFile) -> list[_V2Module]:
    """Turn every module (and every pre-v2 root) into a v2 module entry."""

    expanded: list[_V2Module] = []
    for module in buf_yaml_file.module_configs:
        name = str(module.full_name) if module.full_name else ""
        if name and len(module.roots) > 1:
            log_warning("module_name_dropped", name=name, roots=list(module.roots))
            name = ""
        for root in module.roots:
            dir_path = normalpath.join(module.dir_path, root)
            expanded.append(
                _V2Module(
                    dir_path=dir_path,
                    name=name,
                    includes=[normalpath.join(dir_path, path) for path in module.root_to_includes[root]],
                    excludes=[normalpath.join(dir_path, path) for path in module.root_to_excludes[root]],
                    lint=encode_lint_config(module.lint, dir_path),
                    breaking=encode_breaking_config(module.breaking, dir_path),
                )
            )
    expanded.sort(key=lambda entry: entry.dir_path)
    return expanded


def write_buf_yaml_file(buf_yaml_file: BufYAMLFile) -> bytes:
    """Encode *buf_yaml_file* as a v2 module manifest.

    Why
    ----
    Writing always upgrades, so the output must say the same thing as the
    input in v2 terms and must be a fixed point: reading it back and writing
    again yields identical bytes.

    What
    ----
    * Modules are ordered by path; v1beta1 roots become separate modules.
    * Lint and breaking blocks identical across all modules move to the top
      level; otherwise each module keeps its own block.
    * A lone module at ``"."`` without includes or excludes is written in the
      short form with a top-level ``name``.
    * Dependencies are sorted by module name.

    Examples
    --------
    >>> buf_yaml = read_buf_yaml_file(b"version: v1\\nlint:\\n  use:\\n    - DEFAULT\\n")
    >>> print(write_buf_yaml_file(buf_yaml).decode(), end="")
    version: v2
    lint:
      use:
        - DEFAULT
      disallow_comment_ignores: true
    """

    modules = _expand_v2_modules(buf_yaml_file)
    top_lint, module_lints = collapse_per_module([module.lint for module in modules])
    top_breaking, module_breakings = collapse_per_module([module.breaking for module in modules])
    document: dict[str, Any] = {"version": str(FileVersion.V2)}
    sole = modules[0] if len(modules) == 1 else None
    if sole is not None and sole.dir_path == "." and not sole.includes and not sole.excludes:
        if sole.name:
            document["name"] = sole.name
    else:
        document["modules"] = [
            omit_empty(
                {
                    "path": module.dir_path,
                    "name": module.name,
                    "includes": module.includes,
                    "excludes": module.excludes,
                    "lint": dict(lint) if lint else None,
                    "breaking": dict(breaking) if breaking else None,
                }
            )
            for module, lint, breaking in zip(modules, module_lints, module_breakings)
        ]
    if buf_yaml_file.configured_dep_module_refs:
        document["deps"] = [str(ref) for ref in buf_yaml_file.configured_dep_module_refs]
    if top_lint:
        document["lint"] = dict(top_lint)
    if top_breaking:
        document["breaking"] = dict(top_breaking)
    if buf_yaml_file.plugin_configs:
        document["plugins"] = encode_plugin_configs(buf_yaml_file.plugin_configs)
    if buf_yaml_file.policy_configs:
        document["policies"] = _encode_policy_configs(buf_yaml_file.policy_configs)
    header = DOCS_LINK_COMMENT.format(version=FileVersion.V2) + "\n" if buf_yaml_file.include_docs_link else ""
    return encode_document(document, header=header)
