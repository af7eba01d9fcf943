from __future__ import annotations

from textwrap import dedent

import pytest
import yaml

from bufconfig.application.buf_policy_yaml import (
    BufPolicyYAMLFile,
    read_buf_policy_yaml_file,
    write_buf_policy_yaml_file,
)
from bufconfig.domain.errors import InvalidFormat, InvariantError, UnsupportedFileVersion
from bufconfig.domain.file_version import FileVersion
from bufconfig.domain.module import PluginConfigType

POLICY = """\
version: v2
name: buf.build/acme/policy
lint:
  use:
    - STANDARD
  except:
    - FIELD_NOT_REQUIRED
  ignore:
    - legacy
  disallow_comment_ignores: true
breaking:
  use:
    - WIRE_JSON
plugins:
  - plugin: plugins/check.wasm
    options:
      strict: true
"""


def test_policy_decodes() -> None:
    policy = read_buf_policy_yaml_file(dedent(POLICY).encode("utf-8"))
    assert policy.name == "buf.build/acme/policy"
    assert policy.lint_config.except_ == ("FIELD_NOT_REQUIRED",)
    assert policy.lint_config.ignore == ("legacy",)
    assert policy.lint_config.allow_comment_ignores is False
    assert policy.breaking_config.use == ("WIRE_JSON",)
    assert policy.plugin_configs[0].type is PluginConfigType.LOCAL_WASM


def test_policy_rewrite_is_stable() -> None:
    data = dedent(POLICY).encode("utf-8")
    output = write_buf_policy_yaml_file(read_buf_policy_yaml_file(data))
    assert yaml.safe_load(output) == yaml.safe_load(data)
    assert write_buf_policy_yaml_file(read_buf_policy_yaml_file(output)) == output


def test_missing_blocks_stay_missing() -> None:
    policy = read_buf_policy_yaml_file(b"version: v2\nname: local\n")
    assert policy.lint_config is None and policy.breaking_config is None
    assert write_buf_policy_yaml_file(policy) == b"version: v2\nname: local\n"


def test_only_v2_is_supported() -> None:
    with pytest.raises(UnsupportedFileVersion):
        read_buf_policy_yaml_file(b"version: v1\nname: x\n")
    with pytest.raises(InvariantError):
        BufPolicyYAMLFile(FileVersion.V1)


def test_module_only_keys_rejected() -> None:
    with pytest.raises(InvalidFormat, match='unknown field "deps"'):
        read_buf_policy_yaml_file(b"version: v2\ndeps:\n  - buf.build/acme/units\n")


def test_remote_check_plugin_unless_local_file_exists() -> None:
    data = b"version: v2\nplugins:\n  - plugin: buf.build/acme/check\n"
    remote = read_buf_policy_yaml_file(data)
    assert remote.plugin_configs[0].type is PluginConfigType.REMOTE_WASM
    local = read_buf_policy_yaml_file(data, local_file_exists=lambda path: path == "buf.build")
    assert local.plugin_configs[0].type is PluginConfigType.LOCAL
