"""Public package surface for ``bufconfig``.

Reading and writing go through :mod:`bufconfig.core`; the value objects and
errors most callers need are re-exported here so ``import bufconfig`` is
enough for everyday use.
"""

from __future__ import annotations

from .adapters.buckets import DirectoryBucket, MemoryBucket
from .application.buf_gen_yaml import BufGenYAMLFile, read_buf_gen_yaml_file, write_buf_gen_yaml_file
from .application.buf_lock import read_buf_lock_file, write_buf_lock_file
from .application.buf_policy_yaml import BufPolicyYAMLFile, read_buf_policy_yaml_file, write_buf_policy_yaml_file
from .application.buf_work_yaml import BufWorkYAMLFile, read_buf_work_yaml_file, write_buf_work_yaml_file
from .application.buf_yaml import BufYAMLFile, read_buf_yaml_file, write_buf_yaml_file
from .application.terminate import (
    ControllingWorkspace,
    climb_to_controlling_workspace,
    find_controlling_workspace,
    terminate_at_controlling_workspace,
    terminate_at_enclosing_module_or_workspace_for_proto_file_ref,
)
from .application.version import get_file_version_for_data
from .core import (
    get_buf_gen_yaml_file_for_override,
    get_buf_gen_yaml_file_for_prefix,
    get_buf_gen_yaml_file_version_for_prefix,
    get_buf_lock_file_for_prefix,
    get_buf_lock_file_version_for_prefix,
    get_buf_policy_yaml_file_for_override,
    get_buf_policy_yaml_file_for_prefix,
    get_buf_work_yaml_file_for_prefix,
    get_buf_work_yaml_file_version_for_prefix,
    get_buf_yaml_file_for_override,
    get_buf_yaml_file_for_prefix,
    get_buf_yaml_file_version_for_prefix,
    put_buf_gen_yaml_file_for_prefix,
    put_buf_lock_file_for_prefix,
    put_buf_policy_yaml_file_for_prefix,
    put_buf_work_yaml_file_for_prefix,
    put_buf_yaml_file_for_prefix,
    read_file_version,
)
from .domain.errors import (
    ConfigError,
    FileVersionError,
    InvalidFormat,
    InvariantError,
    NoFileVersion,
    NotFound,
    UnknownFileVersion,
    UnsupportedFileVersion,
    ValidationError,
    WriteError,
)
from .domain.file_version import FileVersion
from .domain.lock import BufLockFile
from .observability import bind_operation_id, get_logger

__all__ = [
    "BufGenYAMLFile",
    "BufLockFile",
    "BufPolicyYAMLFile",
    "BufWorkYAMLFile",
    "BufYAMLFile",
    "ConfigError",
    "ControllingWorkspace",
    "DirectoryBucket",
    "FileVersion",
    "FileVersionError",
    "InvalidFormat",
    "InvariantError",
    "MemoryBucket",
    "NoFileVersion",
    "NotFound",
    "UnknownFileVersion",
    "UnsupportedFileVersion",
    "ValidationError",
    "WriteError",
    "bind_operation_id",
    "climb_to_controlling_workspace",
    "find_controlling_workspace",
    "get_buf_gen_yaml_file_for_override",
    "get_buf_gen_yaml_file_for_prefix",
    "get_buf_gen_yaml_file_version_for_prefix",
    "get_buf_lock_file_for_prefix",
    "get_buf_lock_file_version_for_prefix",
    "get_buf_policy_yaml_file_for_override",
    "get_buf_policy_yaml_file_for_prefix",
    "get_buf_work_yaml_file_for_prefix",
    "get_buf_work_yaml_file_version_for_prefix",
    "get_buf_yaml_file_for_override",
    "get_buf_yaml_file_for_prefix",
    "get_buf_yaml_file_version_for_prefix",
    "get_file_version_for_data",
    "get_logger",
    "put_buf_gen_yaml_file_for_prefix",
    "put_buf_lock_file_for_prefix",
    "put_buf_policy_yaml_file_for_prefix",
    "put_buf_work_yaml_file_for_prefix",
    "put_buf_yaml_file_for_prefix",
    "read_buf_gen_yaml_file",
    "read_buf_lock_file",
    "read_buf_policy_yaml_file",
    "read_buf_work_yaml_file",
    "read_buf_yaml_file",
    "read_file_version",
    "terminate_at_controlling_workspace",
    "terminate_at_enclosing_module_or_workspace_for_proto_file_ref",
    "write_buf_gen_yaml_file",
    "write_buf_lock_file",
    "write_buf_policy_yaml_file",
    "write_buf_work_yaml_file",
    "write_buf_yaml_file",
]
