"""Managed mode blocks of generation manifests.

Purpose
-------
Translate the three spellings of managed mode into one
:class:`~bufconfig.domain.managed.GenerateManagedConfig` and write it back in
the v2 shape.

Contents
--------
* :func:`decode_managed_v1beta1` – top-level ``managed`` flag plus ``options``.
* :func:`decode_managed_v1` – per-option knobs with ``default``/``except``/
  ``override`` sub-keys and per-file ``override`` maps.
* :func:`decode_managed_v2` – explicit ``disable``/``override`` rule lists.
* :func:`encode_managed` – the v2 ``managed`` block.

System Role
-----------
Legacy knobs become rules in a fixed order: unscoped defaults first, then
module-scoped disables and overrides, then path-scoped overrides. Combined with
the most-specific-wins lookup of the domain type this reproduces the legacy
precedence exactly.
"""

from __future__ import annotations

from typing import Any, Final, Mapping, Optional

from ..domain import normalpath
from ..domain.errors import InvalidFormat, ValidationError
from ..domain.managed import (
    BOOL_FILE_OPTIONS,
    FieldOption,
    FileOption,
    GenerateManagedConfig,
    ManagedDisableRule,
    ManagedOverrideRule,
)
from ..domain.refs import ModuleFullName
from ..observability import log_warning
from .external import ExternalObject, omit_empty

_PREFIX_KEYS: Final[frozenset[str]] = frozenset({"default", "except", "override"})
_MODULE_ONLY_KEYS: Final[frozenset[str]] = frozenset({"except", "override"})

MANAGED_KEYS_V1: Final[frozenset[str]] = frozenset(
    {
        "enabled",
        "cc_enable_arenas",
        "java_multiple_files",
        "java_string_check_utf8",
        "java_package_prefix",
        "csharp_namespace",
        "optimize_for",
        "go_package_prefix",
        "objc_class_prefix",
        "ruby_package",
        "override",
    }
)
OPTIONS_KEYS_V1BETA1: Final[frozenset[str]] = frozenset({"cc_enable_arenas", "java_multiple_files", "optimize_for"})
MANAGED_KEYS_V2: Final[frozenset[str]] = frozenset({"enabled", "disable", "override"})
_DISABLE_KEYS_V2: Final[tuple[str, ...]] = ("file_option", "field_option", "module", "path", "field")
_OVERRIDE_KEYS_V2: Final[tuple[str, ...]] = (*_DISABLE_KEYS_V2, "value")

# Knobs with module-scoped except/override, in translation order:
# (key, option disabled by except, option set by default/override, default required, scalar form allowed)
_MODULE_KNOBS_V1: Final[tuple[tuple[str, FileOption, FileOption, Optional[bool], bool], ...]] = (
    ("java_package_prefix", FileOption.JAVA_PACKAGE, FileOption.JAVA_PACKAGE_PREFIX, True, True),
    ("csharp_namespace", FileOption.CSHARP_NAMESPACE, FileOption.CSHARP_NAMESPACE, None, False),
    ("optimize_for", FileOption.OPTIMIZE_FOR, FileOption.OPTIMIZE_FOR, True, True),
    ("go_package_prefix", FileOption.GO_PACKAGE, FileOption.GO_PACKAGE_PREFIX, True, False),
    ("objc_class_prefix", FileOption.OBJC_CLASS_PREFIX, FileOption.OBJC_CLASS_PREFIX, False, False),
    ("ruby_package", FileOption.RUBY_PACKAGE, FileOption.RUBY_PACKAGE, None, False),
)

_TRUE_STRINGS: Final[frozenset[str]] = frozenset({"1", "t", "T", "true", "TRUE", "True"})
_FALSE_STRINGS: Final[frozenset[str]] = frozenset({"0", "f", "F", "false", "FALSE", "False"})


def _parse_module(value: str) -> ModuleFullName:
    return ModuleFullName.parse(value)


def _string_map(value: Any, where: str) -> dict[str, str]:
    if value is None:
        return {}
    if not isinstance(value, Mapping):
        raise InvalidFormat(f"{where}: expected a mapping of strings, got {type(value).__name__}")
    result: dict[str, str] = {}
    for key, item in value.items():
        if not isinstance(key, str) or not isinstance(item, str):
            raise InvalidFormat(f"{where}: expected a mapping of strings, got {key!r}: {item!r}")
        result[key] = item
    return result


def _except_and_override(
    except_option: FileOption,
    excepts: list[str],
    override_option: FileOption,
    module_overrides: Mapping[str, str],
) -> tuple[list[ManagedDisableRule], list[ManagedOverrideRule]]:
    """Turn one knob's ``except`` list and ``override`` map into rules."""

    disables: list[ManagedDisableRule] = []
    seen: set[str] = set()
    for name in excepts:
        module = _parse_module(name)
        if name in seen:
            raise ValidationError(f'"{name}" is defined multiple times in except')
        seen.add(name)
        disables.append(ManagedDisableRule(module_full_name=module, file_option=except_option))
    overrides: list[ManagedOverrideRule] = []
    for name in sorted(module_overrides):
        module = _parse_module(name)
        if name in seen:
            raise ValidationError(f'override "{name}" is already defined as an except')
        overrides.append(ManagedOverrideRule(override_option, value=module_overrides[name], module_full_name=module))
    return disables, overrides


def _coerce_bool(raw: str, option_name: str) -> bool:
    if raw in _TRUE_STRINGS:
        return True
    if raw in _FALSE_STRINGS:
        return False
    raise ValidationError(f"invalid value {raw!r} for {option_name}: expected a boolean")


def _per_file_overrides(raw: Any) -> list[ManagedOverrideRule]:
    """Flatten ``override: {OPTION: {path: value}}`` into path-scoped rules."""

    if raw is None:
        return []
    if not isinstance(raw, Mapping):
        raise InvalidFormat(f"managed.override: expected a mapping, got {type(raw).__name__}")
    rules: list[ManagedOverrideRule] = []
    for option_name in sorted(raw):
        try:
            option = FileOption.parse(str(option_name))
        except ValidationError as exc:
            raise ValidationError(f'"{option_name}" is not a valid file option') from exc
        path_to_value = _string_map(raw[option_name], f"managed.override.{option_name}")
        for path in sorted(path_to_value):
            try:
                normalized = normalpath.normalize_and_validate(path)
            except ValidationError as exc:
                raise ValidationError(
                    f"{path} for override {option_name} is not a valid import path: {exc.message}"
                ) from exc
            if normalized != path:
                raise ValidationError(
                    f"import path {path} for override {option_name} is not normalized, use {normalized} instead"
                )
            value: Any = path_to_value[path]
            if option in BOOL_FILE_OPTIONS:
                value = _coerce_bool(value, option.value)
            rules.append(ManagedOverrideRule(option, value=value, path=path))
    return rules


def decode_managed_v1beta1(managed: bool, options: ExternalObject) -> Optional[GenerateManagedConfig]:
    """Translate the v1beta1 ``managed`` flag and ``options`` block.

    ``options`` only applies while managed mode is on; with the flag off the
    result is ``None`` like every other disabled managed block.

    >>> options = ExternalObject({"optimize_for": "CODE_SIZE"}, allowed=OPTIONS_KEYS_V1BETA1)
    >>> config = decode_managed_v1beta1(True, options)
    >>> config.overrides[0].file_option, config.overrides[0].wire_value
    (<FileOption.OPTIMIZE_FOR: 'optimize_for'>, 'CODE_SIZE')
    """

    if not managed:
        return None
    overrides: list[ManagedOverrideRule] = []
    for key, option in (
        ("cc_enable_arenas", FileOption.CC_ENABLE_ARENAS),
        ("java_multiple_files", FileOption.JAVA_MULTIPLE_FILES),
    ):
        if options.has(key):
            overrides.append(ManagedOverrideRule(option, value=options.boolean(key)))
    optimize_for = options.string("optimize_for")
    if optimize_for:
        overrides.append(ManagedOverrideRule(FileOption.OPTIMIZE_FOR, value=optimize_for))
    return GenerateManagedConfig(True, (), tuple(overrides))


def _knob(managed: ExternalObject, key: str, scalar: bool, has_default: bool) -> Optional[ExternalObject]:
    """Read one v1 knob, expanding the legacy scalar form to ``{default: ...}``."""

    raw = managed.raw(key)
    if raw is None:
        return None
    if scalar and isinstance(raw, str):
        raw = {"default": raw}
    allowed = _PREFIX_KEYS if has_default else _MODULE_ONLY_KEYS
    knob = ExternalObject(raw, allowed=allowed, where=f"managed.{key}")
    return None if knob.is_empty() else knob


def decode_managed_v1(managed: ExternalObject) -> Optional[GenerateManagedConfig]:
    """Translate a v1 ``managed`` block into disable and override rules.

    Why
    ----
    v1 describes managed mode as a fixed set of knobs, each with a default and
    module-level exceptions. v2 and the executor only understand rules, so the
    knobs are expanded here once.

    What
    ----
    * ``enabled: false`` (or absent) yields ``None``.
    * Boolean knobs become unscoped overrides.
    * ``java_package_prefix``, ``optimize_for`` and ``go_package_prefix``
      require a ``default``; ``objc_class_prefix`` accepts none.
    * ``except`` entries disable the option for a module (``go_package`` and
      ``java_package`` for the prefix knobs); ``override`` entries set it per
      module, sorted by module name, and may not repeat an except.
    * Per-file ``override`` maps become path-scoped overrides sorted by option
      then path; boolean options accept ``"true"``/``"false"`` strings.

    Examples
    --------
    >>> block = ExternalObject(
    ...     {"enabled": True, "go_package_prefix": {"default": "example.com/gen",
    ...      "except": ["buf.build/googleapis/googleapis"]}},
    ...     allowed=MANAGED_KEYS_V1, where="managed")
    >>> config = decode_managed_v1(block)
    >>> [rule.file_option.value for rule in config.disables]
    ['go_package']
    >>> [rule.wire_value for rule in config.overrides]
    ['example.com/gen']
    """

    if not managed.boolean("enabled"):
        return None
    disables: list[ManagedDisableRule] = []
    overrides: list[ManagedOverrideRule] = []
    for key, option in (
        ("cc_enable_arenas", FileOption.CC_ENABLE_ARENAS),
        ("java_multiple_files", FileOption.JAVA_MULTIPLE_FILES),
        ("java_string_check_utf8", FileOption.JAVA_STRING_CHECK_UTF8),
    ):
        if managed.has(key):
            overrides.append(ManagedOverrideRule(option, value=managed.boolean(key)))
    for key, except_option, override_option, default_required, scalar in _MODULE_KNOBS_V1:
        knob = _knob(managed, key, scalar, default_required is not None)
        if knob is None:
            continue
        default = knob.string("default") if default_required is not None else ""
        if default_required and not default:
            raise ValidationError(f"{key} must have a default value")
        if default:
            overrides.append(ManagedOverrideRule(override_option, value=default))
        knob_disables, knob_overrides = _except_and_override(
            except_option,
            knob.strings("except"),
            override_option,
            _string_map(knob.raw("override"), f"{knob.where}.override"),
        )
        disables.extend(knob_disables)
        overrides.extend(knob_overrides)
    overrides.extend(_per_file_overrides(managed.raw("override")))
    return GenerateManagedConfig(True, tuple(disables), tuple(overrides))


def _optional_module(value: str) -> Optional[ModuleFullName]:
    return _parse_module(value) if value else None


def decode_managed_v2(managed: ExternalObject) -> Optional[GenerateManagedConfig]:
    """Decode a v2 ``managed`` block.

    Rules written under a disabled block are ignored with a warning.

    >>> block = ExternalObject({"enabled": True, "override": [
    ...     {"file_option": "go_package_prefix", "value": "example.com/gen"}]},
    ...     allowed=MANAGED_KEYS_V2, where="managed")
    >>> decode_managed_v2(block).overrides[0].value
    'example.com/gen'
    """

    disable_entries = managed.objects("disable", _DISABLE_KEYS_V2)
    override_entries = managed.objects("override", _OVERRIDE_KEYS_V2)
    if not managed.boolean("enabled"):
        if disable_entries or override_entries:
            log_warning(
                "managed_rules_ignored",
                disables=len(disable_entries),
                overrides=len(override_entries),
            )
        return None
    disables: list[ManagedDisableRule] = []
    for entry in disable_entries:
        file_option = entry.string("file_option")
        field_option = entry.string("field_option")
        disables.append(
            ManagedDisableRule(
                path=entry.string("path"),
                module_full_name=_optional_module(entry.string("module")),
                field_name=entry.string("field"),
                file_option=FileOption.parse(file_option) if file_option else None,
                field_option=FieldOption.parse(field_option) if field_option else None,
            )
        )
    overrides: list[ManagedOverrideRule] = []
    for entry in override_entries:
        file_option = entry.string("file_option")
        field_option = entry.string("field_option")
        if not file_option and not field_option:
            raise ValidationError("must set file_option or field_option for an override")
        if file_option and field_option:
            raise ValidationError("exactly one of file_option and field_option must be set for an override")
        if not entry.has("value"):
            raise ValidationError("must set value for an override")
        overrides.append(
            ManagedOverrideRule(
                file_option=FileOption.parse(file_option) if file_option else None,
                field_option=FieldOption.parse(field_option) if field_option else None,
                value=entry.raw("value"),
                path=entry.string("path"),
                module_full_name=_optional_module(entry.string("module")),
                field_name=entry.string("field"),
            )
        )
    return GenerateManagedConfig(True, tuple(disables), tuple(overrides))


def encode_managed(config: Optional[GenerateManagedConfig]) -> Optional[dict[str, Any]]:
    """Render *config* as a v2 ``managed`` block, ``None`` when managed mode is off."""

    if config is None or not config.enabled:
        return None
    document: dict[str, Any] = {"enabled": True}
    if config.disables:
        document["disable"] = [
            omit_empty(
                {
                    "file_option": rule.file_option.value if rule.file_option else None,
                    "field_option": rule.field_option.value if rule.field_option else None,
                    "module": str(rule.module_full_name) if rule.module_full_name else None,
                    "path": rule.path,
                    "field": rule.field_name,
                }
            )
            for rule in config.disables
        ]
    if config.overrides:
        document["override"] = [
            {
                **omit_empty(
                    {
                        "file_option": rule.file_option.value if rule.file_option else None,
                        "field_option": rule.field_option.value if rule.field_option else None,
                        "module": str(rule.module_full_name) if rule.module_full_name else None,
                        "path": rule.path,
                        "field": rule.field_name,
                    }
                ),
                "value": rule.wire_value,
            }
            for rule in config.overrides
        ]
    return document
