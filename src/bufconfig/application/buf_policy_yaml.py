"""Policy file (``buf.policy.yaml``) decoding and encoding.

A policy bundles lint and breaking settings plus check plugins under a name so
module manifests can reference it. The file only exists in v2 and reuses the
block codecs of :mod:`bufconfig.application.buf_yaml`.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Final, Optional

from ..adapters.codec import decode_document, encode_document
from ..domain.check import BreakingConfig, LintConfig
from ..domain.file_version import BUF_POLICY_YAML, FileVersion, unexpected_version
from ..domain.module import PluginConfig
from .buf_yaml import (
    breaking_keys,
    decode_breaking_config,
    decode_lint_config,
    decode_plugin_configs,
    encode_breaking_config,
    encode_lint_config,
    encode_plugin_configs,
    lint_keys,
)
from .external import ExternalObject
from .ports import LocalFileProbe
from .version import get_file_version_for_data

_TOP_KEYS: Final[frozenset[str]] = frozenset({"version", "name", "lint", "breaking", "plugins"})


@dataclass(frozen=True, slots=True)
class BufPolicyYAMLFile:
    """Named lint/breaking policy with its check plugins.

    ``lint_config`` and ``breaking_config`` are ``None`` when the file has no
    such block.
    """

    file_version: FileVersion
    name: str = ""
    lint_config: Optional[LintConfig] = None
    breaking_config: Optional[BreakingConfig] = None
    plugin_configs: tuple[PluginConfig, ...] = ()

    def __post_init__(self) -> None:
        if self.file_version is not FileVersion.V2:
            raise unexpected_version(self.file_version)
        object.__setattr__(self, "plugin_configs", tuple(self.plugin_configs))


def read_buf_policy_yaml_file(
    data: bytes,
    *,
    allow_json: bool = False,
    path: str | None = None,
    local_file_exists: LocalFileProbe = lambda _: False,
) -> BufPolicyYAMLFile:
    """Decode a v2 policy file.

    Ignore paths are anchored at the policy file; paths that do not apply are
    dropped rather than rejected, as for top-level module manifest blocks.

    >>> policy = read_buf_policy_yaml_file(
    ...     b"version: v2\\nname: buf.build/acme/policy\\nlint:\\n  use:\\n    - STANDARD\\n")
    >>> policy.lint_config.use, policy.breaking_config is None
    (('STANDARD',), True)
    """

    version = get_file_version_for_data(data, BUF_POLICY_YAML, allow_json=allow_json, path=path)
    top = ExternalObject(decode_document(data, allow_json=allow_json, path=path), allowed=_TOP_KEYS)
    lint = top.object("lint", lint_keys(version))
    breaking = top.object("breaking", breaking_keys(version))
    return BufPolicyYAMLFile(
        version,
        top.string("name"),
        None if lint.is_empty() else decode_lint_config(lint, version, ".", require_contained=False),
        None if breaking.is_empty() else decode_breaking_config(breaking, version, ".", require_contained=False),
        tuple(decode_plugin_configs(top, local_file_exists=local_file_exists)),
    )


def write_buf_policy_yaml_file(buf_policy_yaml_file: BufPolicyYAMLFile) -> bytes:
    document: dict[str, Any] = {"version": str(buf_policy_yaml_file.file_version)}
    if buf_policy_yaml_file.name:
        document["name"] = buf_policy_yaml_file.name
    if buf_policy_yaml_file.lint_config is not None:
        lint = encode_lint_config(buf_policy_yaml_file.lint_config, ".")
        if lint:
            document["lint"] = lint
    if buf_policy_yaml_file.breaking_config is not None:
        breaking = encode_breaking_config(buf_policy_yaml_file.breaking_config, ".")
        if breaking:
            document["breaking"] = breaking
    if buf_policy_yaml_file.plugin_configs:
        document["plugins"] = encode_plugin_configs(buf_policy_yaml_file.plugin_configs)
    return encode_document(document)
