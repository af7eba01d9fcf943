from __future__ import annotations

import pytest

from bufconfig.domain.errors import ValidationError
from bufconfig.domain.generate import (
    GenerateConfig,
    GeneratePluginConfig,
    GeneratePluginType,
    GenerateStrategy,
    GenerateTypeConfig,
    resolve_local_or_protoc_builtin,
)


def test_remote_plugin_constraints() -> None:
    plugin = GeneratePluginConfig.remote("buf.build/protocolbuffers/go:v1.31.0", "gen", revision=2)
    assert plugin.remote_host == "buf.build"
    assert plugin.effective_strategy is GenerateStrategy.ALL
    with pytest.raises(ValidationError, match="strategy"):
        GeneratePluginConfig.remote("buf.build/a/b", "gen", strategy=GenerateStrategy.ALL)
    with pytest.raises(ValidationError, match="out of accepted range"):
        GeneratePluginConfig.remote("buf.build/a/b", "gen", revision=-1)


def test_non_remote_plugins_reject_revision() -> None:
    with pytest.raises(ValidationError, match="revision"):
        GeneratePluginConfig.local(["protoc-gen-x"], "gen", revision=1)


def test_local_plugin_name_joins_argv() -> None:
    plugin = GeneratePluginConfig.local(["go", "run", "./cmd/protoc-gen-x"], "gen")
    assert plugin.name == "go run ./cmd/protoc-gen-x"
    assert plugin.effective_strategy is GenerateStrategy.DIRECTORY


def test_include_wkt_requires_include_imports() -> None:
    with pytest.raises(ValidationError, match="well-known types"):
        GeneratePluginConfig.protoc_builtin("java", "gen", include_wkt=True)


def test_out_is_required() -> None:
    with pytest.raises(ValidationError, match="must specify out"):
        GeneratePluginConfig.local_or_protoc_builtin("go", "")


def test_deferred_resolution_prefers_executable() -> None:
    plugin = GeneratePluginConfig.local_or_protoc_builtin("java", "gen")
    resolved = resolve_local_or_protoc_builtin(plugin, which=lambda name: "/usr/bin/" + name)
    assert resolved.type is GeneratePluginType.LOCAL
    assert resolved.path == ("protoc-gen-java",)
    builtin = resolve_local_or_protoc_builtin(plugin, which=lambda name: None)
    assert builtin.type is GeneratePluginType.PROTOC_BUILTIN


def test_deferred_resolution_fails_for_unknown_name() -> None:
    plugin = GeneratePluginConfig.local_or_protoc_builtin("nope", "gen")
    with pytest.raises(ValidationError, match="not found on PATH"):
        resolve_local_or_protoc_builtin(plugin, which=lambda name: None)


def test_generate_config_requires_plugins() -> None:
    with pytest.raises(ValidationError, match="at least one plugin"):
        GenerateConfig(())


def test_type_config_sorted_unique() -> None:
    assert GenerateTypeConfig(("b.T", "a.T", "b.T")).include_types == ("a.T", "b.T")
