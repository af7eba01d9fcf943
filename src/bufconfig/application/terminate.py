"""Workspace and module boundary detection.

Purpose
-------
Answer "which configuration file controls this directory?" while a caller
walks from a target directory towards the bucket root.

Contents
--------
* :class:`ControllingWorkspace` – outcome of one prefix check.
* :func:`find_controlling_workspace` – check a single prefix.
* :func:`terminate_at_controlling_workspace` – boolean form for directory inputs.
* :func:`terminate_at_enclosing_module_or_workspace_for_proto_file_ref` –
  boolean form for single ``.proto`` file inputs.
* :func:`climb_to_controlling_workspace` – the full walk.

System Role
-----------
A workspace file is a ``buf.work.yaml``/``buf.work`` or a v2 ``buf.yaml``. A
module file is a v1beta1/v1 ``buf.yaml``/``buf.mod``, or a v2 ``buf.yaml``
declaring a module at ``"."``. Both kinds of workspace file at one prefix is an
error.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from ..domain import normalpath
from ..domain.errors import NotFound, ValidationError
from ..domain.file_version import BUF_WORK_YAML_FILE_NAMES, BUF_YAML_FILE_NAMES, FileVersion
from ..observability import log_debug
from .buf_work_yaml import BufWorkYAMLFile, read_buf_work_yaml_file
from .buf_yaml import BufYAMLFile, read_buf_yaml_file
from .lookup import read_for_prefix
from .ports import ReadBucket


@dataclass(frozen=True, slots=True)
class ControllingWorkspace:
    """Result of checking one prefix.

    ``buf_work_yaml_dir_paths`` is non-empty exactly when the controlling file
    is a workspace manifest; the paths include the prefix. A found v2
    ``buf.yaml`` leaves it empty.
    """

    found: bool
    buf_work_yaml_dir_paths: tuple[str, ...] = ()

    @property
    def is_buf_work_yaml(self) -> bool:
        return bool(self.buf_work_yaml_dir_paths)


NOT_FOUND = ControllingWorkspace(False)


def _optional_buf_yaml(bucket: ReadBucket, prefix: str) -> Optional[BufYAMLFile]:
    try:
        _, buf_yaml = read_for_prefix(
            bucket,
            prefix,
            BUF_YAML_FILE_NAMES,
            lambda data, file_name, path: read_buf_yaml_file(data, file_name=file_name, path=path),
        )
    except NotFound:
        return None
    return buf_yaml


def _optional_buf_work_yaml(bucket: ReadBucket, prefix: str) -> Optional[BufWorkYAMLFile]:
    try:
        _, buf_work_yaml = read_for_prefix(
            bucket,
            prefix,
            BUF_WORK_YAML_FILE_NAMES,
            lambda data, file_name, path: read_buf_work_yaml_file(data, file_name=file_name, path=path),
        )
    except NotFound:
        return None
    return buf_work_yaml


def find_controlling_workspace(
    bucket: ReadBucket,
    prefix: str,
    original_subdir_path: str,
    *,
    require_exact: bool = True,
) -> ControllingWorkspace:
    """Check whether a workspace file at *prefix* controls *original_subdir_path*.

    Why
    ----
    A workspace file higher up only matters for a target directory it actually
    lists; otherwise the climb continues. Single-file targets relax this with
    ``require_exact=False``: any workspace file on the way up controls them.

    What
    ----
    A workspace at *prefix* controls the target when the prefix is the target,
    when it lists the target's path relative to the prefix (as a v2 module
    path or a workspace directory), or when ``require_exact`` is off.

    Examples
    --------
    >>> from bufconfig.adapters.buckets import MemoryBucket
    >>> bucket = MemoryBucket({"buf.work.yaml": b"version: v1\\ndirectories:\\n  - proto\\n"})
    >>> find_controlling_workspace(bucket, ".", "proto").buf_work_yaml_dir_paths
    ('proto',)
    >>> find_controlling_workspace(bucket, ".", "other").found
    False
    """

    prefix = normalpath.normalize_and_validate(prefix)
    original_subdir_path = normalpath.normalize_and_validate(original_subdir_path)
    buf_work_yaml = _optional_buf_work_yaml(bucket, prefix)
    buf_yaml = _optional_buf_yaml(bucket, prefix)
    if buf_work_yaml is not None and buf_yaml is not None:
        raise ValidationError(f"cannot have a buf.work.yaml and buf.yaml in the same directory {prefix!r}")
    relative = normalpath.rel(prefix, original_subdir_path)
    exact = prefix == original_subdir_path
    if buf_yaml is not None and buf_yaml.file_version is FileVersion.V2:
        if not require_exact or exact or relative in buf_yaml.module_dir_paths():
            log_debug("controlling_workspace_found", prefix=prefix, target=original_subdir_path, kind="buf.yaml")
            return ControllingWorkspace(True)
    if buf_work_yaml is not None:
        if not require_exact or exact or relative in buf_work_yaml.directory_paths:
            dir_paths = tuple(normalpath.join(prefix, path) for path in buf_work_yaml.directory_paths)
            log_debug(
                "controlling_workspace_found", prefix=prefix, target=original_subdir_path, kind="buf.work.yaml"
            )
            return ControllingWorkspace(True, dir_paths)
    return NOT_FOUND


def terminate_at_controlling_workspace(bucket: ReadBucket, prefix: str, original_subdir_path: str) -> bool:
    return find_controlling_workspace(bucket, prefix, original_subdir_path).found


def terminate_at_enclosing_module_or_workspace_for_proto_file_ref(
    bucket: ReadBucket, prefix: str, original_subdir_path: str
) -> bool:
    """Stop at any workspace file, or at a module file rooted at *prefix*.

    >>> from bufconfig.adapters.buckets import MemoryBucket
    >>> bucket = MemoryBucket({"a/buf.yaml": b"version: v1\\n"})
    >>> terminate_at_enclosing_module_or_workspace_for_proto_file_ref(bucket, "a", "a/b")
    True
    """

    if find_controlling_workspace(bucket, prefix, original_subdir_path, require_exact=False).found:
        return True
    buf_yaml = _optional_buf_yaml(bucket, prefix)
    if buf_yaml is None:
        return False
    if buf_yaml.file_version in (FileVersion.V1BETA1, FileVersion.V1):
        return True
    return "." in buf_yaml.module_dir_paths()


def climb_to_controlling_workspace(
    bucket: ReadBucket,
    subdir_path: str,
    *,
    require_exact: bool = True,
) -> tuple[str, ControllingWorkspace]:
    """Walk from *subdir_path* up to the bucket root and stop at the first control.

    Returns the prefix where the search stopped together with its result;
    ``(".", NOT_FOUND)`` when nothing on the way controls the directory.
    """

    for prefix in normalpath.ancestors(normalpath.normalize_and_validate(subdir_path)):
        result = find_controlling_workspace(bucket, prefix, subdir_path, require_exact=require_exact)
        if result.found:
            return prefix, result
    return ".", NOT_FOUND
