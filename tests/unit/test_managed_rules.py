from __future__ import annotations

import pytest

from bufconfig.domain.errors import ValidationError
from bufconfig.domain.managed import (
    FieldOption,
    FileOption,
    GenerateManagedConfig,
    JSType,
    ManagedDisableRule,
    ManagedOverrideRule,
    OptimizeMode,
)
from bufconfig.domain.refs import ModuleFullName

WEATHER = ModuleFullName.parse("buf.build/acme/weather")


def test_override_values_are_type_checked() -> None:
    assert ManagedOverrideRule(FileOption.OPTIMIZE_FOR, value="LITE_RUNTIME").value is OptimizeMode.LITE_RUNTIME
    assert ManagedOverrideRule(field_option=FieldOption.JSTYPE, value="JS_STRING").value is JSType.JS_STRING
    with pytest.raises(ValidationError, match="expected a boolean"):
        ManagedOverrideRule(FileOption.JAVA_MULTIPLE_FILES, value="true")


def test_override_requires_exactly_one_option_and_a_value() -> None:
    with pytest.raises(ValidationError, match="must set file_option or field_option"):
        ManagedOverrideRule(value="x")
    with pytest.raises(ValidationError, match="exactly one of"):
        ManagedOverrideRule(FileOption.GO_PACKAGE, FieldOption.JSTYPE, value="x")
    with pytest.raises(ValidationError, match="must set value"):
        ManagedOverrideRule(FileOption.GO_PACKAGE)


def test_disable_rule_shape() -> None:
    with pytest.raises(ValidationError, match="empty disable rule"):
        ManagedDisableRule()
    with pytest.raises(ValidationError, match="file option for a field"):
        ManagedDisableRule(field_name="acme.v1.Msg.id", file_option=FileOption.GO_PACKAGE)
    with pytest.raises(ValidationError, match="normalized"):
        ManagedDisableRule(path="a//b")


def test_disables_win_over_overrides() -> None:
    config = GenerateManagedConfig(
        True,
        (ManagedDisableRule(module_full_name=WEATHER, file_option=FileOption.GO_PACKAGE_PREFIX),),
        (ManagedOverrideRule(FileOption.GO_PACKAGE_PREFIX, value="example.com/gen"),),
    )
    assert config.file_option_value(FileOption.GO_PACKAGE_PREFIX, WEATHER, "a.proto") is None
    assert config.file_option_value(FileOption.GO_PACKAGE_PREFIX, None, "a.proto") == "example.com/gen"


def test_most_specific_override_wins_then_latest() -> None:
    config = GenerateManagedConfig(
        True,
        (),
        (
            ManagedOverrideRule(FileOption.JAVA_PACKAGE_PREFIX, value="com.module", module_full_name=WEATHER),
            ManagedOverrideRule(FileOption.JAVA_PACKAGE_PREFIX, value="com.default"),
            ManagedOverrideRule(FileOption.JAVA_PACKAGE_PREFIX, value="com.path", path="acme/v1"),
            ManagedOverrideRule(FileOption.JAVA_PACKAGE_PREFIX, value="com.later", path="acme/v1"),
        ),
    )
    assert config.file_option_value(FileOption.JAVA_PACKAGE_PREFIX, WEATHER, "acme/v1/a.proto") == "com.later"
    assert config.file_option_value(FileOption.JAVA_PACKAGE_PREFIX, WEATHER, "other/a.proto") == "com.module"
    assert config.file_option_value(FileOption.JAVA_PACKAGE_PREFIX, None, "other/a.proto") == "com.default"


def test_field_overrides_match_field_name() -> None:
    config = GenerateManagedConfig(
        True,
        (ManagedDisableRule(field_name="acme.v1.Msg.skip"),),
        (
            ManagedOverrideRule(field_option=FieldOption.JSTYPE, value="JS_NUMBER"),
            ManagedOverrideRule(field_option=FieldOption.JSTYPE, value="JS_STRING", field_name="acme.v1.Msg.id"),
        ),
    )
    assert config.field_option_value(FieldOption.JSTYPE, None, "a.proto", "acme.v1.Msg.id") is JSType.JS_STRING
    assert config.field_option_value(FieldOption.JSTYPE, None, "a.proto", "acme.v1.Msg.other") is JSType.JS_NUMBER
    assert config.field_option_value(FieldOption.JSTYPE, None, "a.proto", "acme.v1.Msg.skip") is None


def test_wire_value_uses_enum_names() -> None:
    assert ManagedOverrideRule(FileOption.OPTIMIZE_FOR, value="SPEED").wire_value == "SPEED"
    assert ManagedOverrideRule(FileOption.CC_ENABLE_ARENAS, value=False).wire_value is False
