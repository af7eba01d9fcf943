"""Managed mode rules.

Purpose
-------
Managed mode rewrites file and field options of generated code from
declarative rules instead of options written in ``.proto`` sources. Every
schema version is normalized into one ordered list of disable rules and one
ordered list of override rules.

Contents
--------
* :class:`FileOption` / :class:`FieldOption` – the options managed mode can set.
* :class:`OptimizeMode` / :class:`JSType` – enum values for typed options.
* :func:`parse_file_option_value` / :func:`parse_field_option_value` – type
  checks for override values.
* :class:`ManagedDisableRule` / :class:`ManagedOverrideRule` – validated rules.
* :class:`GenerateManagedConfig` – the rule set with most-specific-wins lookups.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Final, Mapping, Optional, Union

from . import normalpath
from .errors import ValidationError
from .refs import ModuleFullName


class FileOption(Enum):
    JAVA_PACKAGE = "java_package"
    JAVA_PACKAGE_PREFIX = "java_package_prefix"
    JAVA_PACKAGE_SUFFIX = "java_package_suffix"
    JAVA_OUTER_CLASSNAME = "java_outer_classname"
    JAVA_MULTIPLE_FILES = "java_multiple_files"
    JAVA_STRING_CHECK_UTF8 = "java_string_check_utf8"
    OPTIMIZE_FOR = "optimize_for"
    GO_PACKAGE = "go_package"
    GO_PACKAGE_PREFIX = "go_package_prefix"
    CC_ENABLE_ARENAS = "cc_enable_arenas"
    OBJC_CLASS_PREFIX = "objc_class_prefix"
    CSHARP_NAMESPACE = "csharp_namespace"
    CSHARP_NAMESPACE_PREFIX = "csharp_namespace_prefix"
    PHP_NAMESPACE = "php_namespace"
    PHP_METADATA_NAMESPACE = "php_metadata_namespace"
    PHP_METADATA_NAMESPACE_SUFFIX = "php_metadata_namespace_suffix"
    RUBY_PACKAGE = "ruby_package"
    RUBY_PACKAGE_SUFFIX = "ruby_package_suffix"

    @classmethod
    def parse(cls, value: str) -> "FileOption":
        """Parse a file option name, accepting the upper-case legacy spelling.

        >>> FileOption.parse("JAVA_PACKAGE")
        <FileOption.JAVA_PACKAGE: 'java_package'>
        """

        lowered = value.lower()
        for option in cls:
            if option.value == lowered:
                return option
        raise ValidationError(f"unknown file_option: {value!r}")


class FieldOption(Enum):
    JSTYPE = "jstype"

    @classmethod
    def parse(cls, value: str) -> "FieldOption":
        lowered = value.lower()
        for option in cls:
            if option.value == lowered:
                return option
        raise ValidationError(f"unknown field_option: {value!r}")


class OptimizeMode(Enum):
    SPEED = 1
    CODE_SIZE = 2
    LITE_RUNTIME = 3


class JSType(Enum):
    JS_NORMAL = 0
    JS_STRING = 1
    JS_NUMBER = 2


ManagedValue = Union[str, bool, OptimizeMode, JSType]


def _parse_string(value: Any) -> str:
    if not isinstance(value, str):
        raise TypeError(f"expected a string, got {type(value).__name__}")
    return value


def _parse_bool(value: Any) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"expected a boolean, got {type(value).__name__}")
    return value


def _enum_parser(enum_type: type[Enum]) -> Callable[[Any], Enum]:
    def parse(value: Any) -> Enum:
        if isinstance(value, enum_type):
            return value
        if isinstance(value, str) and value in enum_type.__members__:
            return enum_type[value]
        names = ", ".join(enum_type.__members__)
        raise TypeError(f"expected one of {names}")

    return parse


_FILE_OPTION_PARSERS: Final[Mapping[FileOption, Callable[[Any], Any]]] = {
    **{option: _parse_string for option in FileOption},
    FileOption.JAVA_MULTIPLE_FILES: _parse_bool,
    FileOption.JAVA_STRING_CHECK_UTF8: _parse_bool,
    FileOption.CC_ENABLE_ARENAS: _parse_bool,
    FileOption.OPTIMIZE_FOR: _enum_parser(OptimizeMode),
}
_FIELD_OPTION_PARSERS: Final[Mapping[FieldOption, Callable[[Any], Any]]] = {
    FieldOption.JSTYPE: _enum_parser(JSType),
}

BOOL_FILE_OPTIONS: Final[frozenset[FileOption]] = frozenset(
    option for option, parser in _FILE_OPTION_PARSERS.items() if parser is _parse_bool
)


def parse_file_option_value(option: FileOption, value: Any) -> ManagedValue:
    """Type-check *value* for *option*.

    >>> parse_file_option_value(FileOption.OPTIMIZE_FOR, "SPEED")
    <OptimizeMode.SPEED: 1>
    >>> parse_file_option_value(FileOption.CC_ENABLE_ARENAS, "yes")
    Traceback (most recent call last):
    ...
    bufconfig.domain.errors.ValidationError: invalid value 'yes' for cc_enable_arenas: expected a boolean, got str
    """

    try:
        return _FILE_OPTION_PARSERS[option](value)
    except TypeError as exc:
        raise ValidationError(f"invalid value {value!r} for {option.value}: {exc}") from exc


def parse_field_option_value(option: FieldOption, value: Any) -> ManagedValue:
    try:
        return _FIELD_OPTION_PARSERS[option](value)
    except TypeError as exc:
        raise ValidationError(f"invalid value {value!r} for {option.value}: {exc}") from exc


def _validate_path(path: str) -> None:
    if path and normalpath.normalize(path) != path:
        raise ValidationError(f"path must be normalized: {path!r}")
    if path:
        normalpath.normalize_and_validate(path)


def _matches(rule: "ManagedDisableRule | ManagedOverrideRule", module: Optional[ModuleFullName], path: str) -> bool:
    if rule.path and not normalpath.equals_or_contains_path(rule.path, path):
        return False
    if rule.module_full_name is not None and rule.module_full_name != module:
        return False
    return True


@dataclass(frozen=True, slots=True)
class ManagedDisableRule:
    """Stop managed mode from touching matching files, modules, fields or options."""

    path: str = ""
    module_full_name: Optional[ModuleFullName] = None
    field_name: str = ""
    file_option: Optional[FileOption] = None
    field_option: Optional[FieldOption] = None

    def __post_init__(self) -> None:
        _validate_path(self.path)
        if not (self.path or self.module_full_name or self.field_name or self.file_option or self.field_option):
            raise ValidationError("empty disable rule is not allowed")
        if self.field_name and self.file_option is not None:
            raise ValidationError("cannot disable a file option for a field")
        if self.file_option is not None and self.field_option is not None:
            raise ValidationError("at most one of file_option and field_option can be specified")

    def disables_file_option(self, option: FileOption, module: Optional[ModuleFullName], path: str) -> bool:
        if self.field_name or self.field_option is not None:
            return False
        if self.file_option is not None and self.file_option is not option:
            return False
        return _matches(self, module, path)

    def disables_field_option(
        self, option: FieldOption, module: Optional[ModuleFullName], path: str, field_name: str
    ) -> bool:
        if self.file_option is not None:
            return False
        if self.field_option is not None and self.field_option is not option:
            return False
        if self.field_name and self.field_name != field_name:
            return False
        return _matches(self, module, path)


@dataclass(frozen=True, slots=True)
class ManagedOverrideRule:
    """Set a file or field option to a fixed value for matching files."""

    file_option: Optional[FileOption] = None
    field_option: Optional[FieldOption] = None
    value: Any = None
    path: str = ""
    module_full_name: Optional[ModuleFullName] = None
    field_name: str = ""

    def __post_init__(self) -> None:
        _validate_path(self.path)
        if self.file_option is None and self.field_option is None:
            raise ValidationError("must set file_option or field_option for an override")
        if self.file_option is not None and self.field_option is not None:
            raise ValidationError("exactly one of file_option and field_option must be set for an override")
        if self.value is None:
            raise ValidationError("must set value for an override")
        if self.file_option is not None:
            if self.field_name:
                raise ValidationError("must not set field for a file_option override")
            object.__setattr__(self, "value", parse_file_option_value(self.file_option, self.value))
        else:
            object.__setattr__(self, "value", parse_field_option_value(self.field_option, self.value))

    @property
    def specificity(self) -> tuple[int, int, int]:
        """Rank used to pick the winning override: field, then path depth, then module."""

        depth = len(normalpath.components(self.path)) + 1 if self.path else 0
        return (1 if self.field_name else 0, depth, 1 if self.module_full_name else 0)

    @property
    def wire_value(self) -> Union[str, bool]:
        if isinstance(self.value, Enum):
            return self.value.name
        return self.value


@dataclass(frozen=True, slots=True)
class GenerateManagedConfig:
    """Managed mode switch plus its ordered disable and override rules.

    Why
    ----
    Several rules can match the same file. Disables always win; among matching
    overrides the most specific one wins (field over path over module over
    unscoped), and the later declaration breaks ties. Legacy translations emit
    unscoped defaults before module-scoped overrides, so both orderings agree.

    Examples
    --------
    >>> config = GenerateManagedConfig(True, (), (
    ...     ManagedOverrideRule(FileOption.GO_PACKAGE_PREFIX, value="example.com/gen"),
    ...     ManagedOverrideRule(FileOption.GO_PACKAGE_PREFIX, value="example.com/vendor", path="vendor"),
    ... ))
    >>> config.file_option_value(FileOption.GO_PACKAGE_PREFIX, None, "vendor/a.proto")
    'example.com/vendor'
    >>> config.file_option_value(FileOption.GO_PACKAGE_PREFIX, None, "api/a.proto")
    'example.com/gen'
    """

    enabled: bool = False
    disables: tuple[ManagedDisableRule, ...] = ()
    overrides: tuple[ManagedOverrideRule, ...] = ()

    def __post_init__(self) -> None:
        object.__setattr__(self, "disables", tuple(self.disables))
        object.__setattr__(self, "overrides", tuple(self.overrides))

    def is_empty(self) -> bool:
        return not self.enabled and not self.disables and not self.overrides

    def is_file_option_disabled(self, option: FileOption, module: Optional[ModuleFullName], path: str) -> bool:
        return any(rule.disables_file_option(option, module, path) for rule in self.disables)

    def is_field_option_disabled(
        self, option: FieldOption, module: Optional[ModuleFullName], path: str, field_name: str
    ) -> bool:
        return any(rule.disables_field_option(option, module, path, field_name) for rule in self.disables)

    def file_option_value(self, option: FileOption, module: Optional[ModuleFullName], path: str) -> Optional[ManagedValue]:
        """Return the winning override value for *option* on *path*, or ``None``."""

        if self.is_file_option_disabled(option, module, path):
            return None
        candidates = [
            (rule.specificity, index, rule)
            for index, rule in enumerate(self.overrides)
            if rule.file_option is option and _matches(rule, module, path)
        ]
        return _winner(candidates)

    def field_option_value(
        self, option: FieldOption, module: Optional[ModuleFullName], path: str, field_name: str
    ) -> Optional[ManagedValue]:
        if self.is_field_option_disabled(option, module, path, field_name):
            return None
        candidates = [
            (rule.specificity, index, rule)
            for index, rule in enumerate(self.overrides)
            if rule.field_option is option
            and (not rule.field_name or rule.field_name == field_name)
            and _matches(rule, module, path)
        ]
        return _winner(candidates)


def _winner(candidates: list[tuple[tuple[int, int, int], int, ManagedOverrideRule]]) -> Optional[ManagedValue]:
    if not candidates:
        return None
    return max(candidates, key=lambda item: (item[0], item[1]))[2].value
