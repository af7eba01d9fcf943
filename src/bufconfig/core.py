"""Composition root for ``bufconfig``.

Purpose
-------
Wire the per-file codecs to bucket storage: find a configuration file at a
prefix, decode it, and write files back atomically in the latest schema.

Contents
--------
* ``get_*_for_prefix`` – read and decode one file kind at a bucket prefix.
* ``get_*_version_for_prefix`` – resolve only the schema version.
* ``put_*_for_prefix`` – encode and store one file kind at a bucket prefix.
* ``get_*_for_override`` – read a file path or inline YAML/JSON given on the
  command line.
* :func:`read_file_version` – resolve the version of a file on disk by name.

System Role
-----------
Application modules are pure and bucket-agnostic; this module adds lookup
order, path-bound errors, :class:`~bufconfig.domain.errors.WriteError`
wrapping and the file lifecycle log events.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Final, Optional, Sequence, TypeVar

from .application.buf_gen_yaml import BufGenYAMLFile, read_buf_gen_yaml_file, write_buf_gen_yaml_file
from .application.buf_lock import read_buf_lock_file, write_buf_lock_file
from .application.buf_policy_yaml import BufPolicyYAMLFile, read_buf_policy_yaml_file, write_buf_policy_yaml_file
from .application.buf_work_yaml import BufWorkYAMLFile, read_buf_work_yaml_file, write_buf_work_yaml_file
from .application.buf_yaml import BufYAMLFile, read_buf_yaml_file, write_buf_yaml_file
from .application.lookup import read_for_prefix
from .application.ports import DigestResolver, LocalFileProbe, ReadBucket, WriteBucket
from .application.version import get_file_version_for_data
from .domain import normalpath
from .domain.errors import ConfigError, NotFound, ValidationError, WriteError
from .domain.file_version import (
    ALL_FILE_NAMES,
    BUF_GEN_YAML,
    BUF_GEN_YAML_FILE_NAMES,
    BUF_LOCK,
    BUF_LOCK_FILE_NAMES,
    BUF_POLICY_YAML,
    BUF_POLICY_YAML_FILE_NAMES,
    BUF_WORK_YAML,
    BUF_WORK_YAML_FILE_NAMES,
    BUF_YAML,
    BUF_YAML_FILE_NAMES,
    FileName,
    FileVersion,
    file_name_for,
)
from .domain.lock import BufLockFile
from .observability import log_debug, log_error, log_info, make_event

T = TypeVar("T")

# Suffixes that mark an override value as a path rather than inline data.
_OVERRIDE_FILE_SUFFIXES: Final[tuple[str, ...]] = (".yaml", ".yml", ".json")


def _no_local_files(_: str) -> bool:
    return False


def _version_for_prefix(bucket: ReadBucket, prefix: str, file_names: Sequence[FileName]) -> FileVersion:
    _, version = read_for_prefix(
        bucket,
        prefix,
        file_names,
        lambda data, file_name, path: get_file_version_for_data(data, file_name, path=path),
    )
    return version


def _put(bucket: WriteBucket, prefix: str, file_name: FileName, encode: Callable[[], bytes]) -> None:
    """Encode and store one file, wrapping any failure in :class:`WriteError`."""

    path = normalpath.join(normalpath.normalize_and_validate(prefix), file_name.name)
    try:
        data = encode()
        bucket.put(path, data)
    except (ConfigError, OSError) as exc:
        log_error("config_file_write_failed", **make_event(file_name.name, path, {"error": str(exc)}))
        raise WriteError(f"failed to write {file_name.name}: {exc}", path=path) from exc
    log_info("config_file_written", **make_event(file_name.name, path, {"size": len(data)}))


# buf.yaml / buf.mod


def get_buf_yaml_file_for_prefix(
    bucket: ReadBucket, prefix: str, *, local_file_probe: LocalFileProbe = _no_local_files
) -> BufYAMLFile:
    """Read the module manifest at *prefix*, preferring ``buf.yaml`` over ``buf.mod``.

    Examples
    --------
    >>> from bufconfig.adapters.buckets import MemoryBucket
    >>> bucket = MemoryBucket({"proto/buf.mod": b"version: v1\\n"})
    >>> get_buf_yaml_file_for_prefix(bucket, "proto").file_version
    <FileVersion.V1: 'v1'>
    """

    _, buf_yaml = read_for_prefix(
        bucket,
        prefix,
        BUF_YAML_FILE_NAMES,
        lambda data, file_name, path: read_buf_yaml_file(
            data, file_name=file_name, path=path, local_file_exists=local_file_probe
        ),
    )
    return buf_yaml


def get_buf_yaml_file_version_for_prefix(bucket: ReadBucket, prefix: str) -> FileVersion:
    return _version_for_prefix(bucket, prefix, BUF_YAML_FILE_NAMES)


def put_buf_yaml_file_for_prefix(bucket: WriteBucket, prefix: str, buf_yaml_file: BufYAMLFile) -> None:
    """Write *buf_yaml_file* as ``buf.yaml`` in the latest schema."""

    _put(bucket, prefix, BUF_YAML, lambda: write_buf_yaml_file(buf_yaml_file))


# buf.lock


def get_buf_lock_file_for_prefix(
    bucket: ReadBucket, prefix: str, *, digest_resolver: Optional[DigestResolver] = None
) -> BufLockFile:
    _, buf_lock = read_for_prefix(
        bucket,
        prefix,
        BUF_LOCK_FILE_NAMES,
        lambda data, file_name, path: read_buf_lock_file(data, digest_resolver=digest_resolver, path=path),
    )
    return buf_lock


def get_buf_lock_file_version_for_prefix(bucket: ReadBucket, prefix: str) -> FileVersion:
    return _version_for_prefix(bucket, prefix, BUF_LOCK_FILE_NAMES)


def put_buf_lock_file_for_prefix(bucket: WriteBucket, prefix: str, buf_lock_file: BufLockFile) -> None:
    _put(bucket, prefix, BUF_LOCK, lambda: write_buf_lock_file(buf_lock_file))


# buf.gen.yaml


def get_buf_gen_yaml_file_for_prefix(bucket: ReadBucket, prefix: str) -> BufGenYAMLFile:
    _, buf_gen_yaml = read_for_prefix(
        bucket,
        prefix,
        BUF_GEN_YAML_FILE_NAMES,
        lambda data, file_name, path: read_buf_gen_yaml_file(data, path=path),
    )
    return buf_gen_yaml


def get_buf_gen_yaml_file_version_for_prefix(bucket: ReadBucket, prefix: str) -> FileVersion:
    return _version_for_prefix(bucket, prefix, BUF_GEN_YAML_FILE_NAMES)


def put_buf_gen_yaml_file_for_prefix(bucket: WriteBucket, prefix: str, buf_gen_yaml_file: BufGenYAMLFile) -> None:
    _put(bucket, prefix, BUF_GEN_YAML, lambda: write_buf_gen_yaml_file(buf_gen_yaml_file))


# buf.work.yaml / buf.work


def get_buf_work_yaml_file_for_prefix(bucket: ReadBucket, prefix: str) -> BufWorkYAMLFile:
    _, buf_work_yaml = read_for_prefix(
        bucket,
        prefix,
        BUF_WORK_YAML_FILE_NAMES,
        lambda data, file_name, path: read_buf_work_yaml_file(data, file_name=file_name, path=path),
    )
    return buf_work_yaml


def get_buf_work_yaml_file_version_for_prefix(bucket: ReadBucket, prefix: str) -> FileVersion:
    return _version_for_prefix(bucket, prefix, BUF_WORK_YAML_FILE_NAMES)


def put_buf_work_yaml_file_for_prefix(bucket: WriteBucket, prefix: str, buf_work_yaml_file: BufWorkYAMLFile) -> None:
    _put(bucket, prefix, BUF_WORK_YAML, lambda: write_buf_work_yaml_file(buf_work_yaml_file))


# buf.policy.yaml


def get_buf_policy_yaml_file_for_prefix(
    bucket: ReadBucket, prefix: str, *, local_file_probe: LocalFileProbe = _no_local_files
) -> BufPolicyYAMLFile:
    _, buf_policy_yaml = read_for_prefix(
        bucket,
        prefix,
        BUF_POLICY_YAML_FILE_NAMES,
        lambda data, file_name, path: read_buf_policy_yaml_file(
            data, path=path, local_file_exists=local_file_probe
        ),
    )
    return buf_policy_yaml


def put_buf_policy_yaml_file_for_prefix(
    bucket: WriteBucket, prefix: str, buf_policy_yaml_file: BufPolicyYAMLFile
) -> None:
    _put(bucket, prefix, BUF_POLICY_YAML, lambda: write_buf_policy_yaml_file(buf_policy_yaml_file))


# Overrides


def _override_data(value: str) -> tuple[bytes, bool, Optional[str]]:
    """Return ``(data, allow_json, path)`` for an override *value*.

    Values ending in ``.yaml``, ``.yml`` or ``.json`` name a file; anything
    else is the file content itself and may be JSON.
    """

    if value.endswith(_OVERRIDE_FILE_SUFFIXES):
        file_path = Path(value)
        if not file_path.is_file():
            raise NotFound(f"override file not found: {value}", path=value)
        data = file_path.read_bytes()
        log_debug("config_file_read", **make_event(file_path.name, value, {"size": len(data), "override": True}))
        return data, value.endswith(".json"), value
    return value.encode("utf-8"), True, None


def _read_override(value: str, read: Callable[[bytes, bool, Optional[str]], T]) -> T:
    data, allow_json, path = _override_data(value)
    try:
        return read(data, allow_json, path)
    except ConfigError as exc:
        if path is None or exc.path:
            raise
        raise exc.with_path(path) from exc


def get_buf_yaml_file_for_override(value: str, *, local_file_probe: LocalFileProbe = _no_local_files) -> BufYAMLFile:
    """Read a module manifest from a path or inline data given as an override.

    >>> get_buf_yaml_file_for_override('{"version": "v2", "name": "buf.build/acme/weather"}').file_version
    <FileVersion.V2: 'v2'>
    """

    return _read_override(
        value,
        lambda data, allow_json, path: read_buf_yaml_file(
            data, allow_json=allow_json, path=path, local_file_exists=local_file_probe
        ),
    )


def get_buf_gen_yaml_file_for_override(value: str) -> BufGenYAMLFile:
    return _read_override(
        value, lambda data, allow_json, path: read_buf_gen_yaml_file(data, allow_json=allow_json, path=path)
    )


def get_buf_policy_yaml_file_for_override(
    value: str, *, local_file_probe: LocalFileProbe = _no_local_files
) -> BufPolicyYAMLFile:
    return _read_override(
        value,
        lambda data, allow_json, path: read_buf_policy_yaml_file(
            data, allow_json=allow_json, path=path, local_file_exists=local_file_probe
        ),
    )


def read_file_version(path: str | Path) -> FileVersion:
    """Resolve the schema version of the configuration file at *path*.

    The base name selects the file kind, so ``buf.lock`` without a version
    resolves to ``v1beta1`` while ``buf.yaml`` without one is an error.
    """

    file_path = Path(path)
    file_name = _known_file_name(file_path.name)
    if not file_path.is_file():
        raise NotFound(f"file not found: {file_path}", path=str(file_path))
    data = file_path.read_bytes()
    return get_file_version_for_data(data, file_name, path=str(file_path))


def _known_file_name(base_name: str) -> FileName:
    known = [file_name.name for file_name in ALL_FILE_NAMES]
    if base_name not in known:
        raise ValidationError(
            f"{base_name} is not a known configuration file name, expected one of: {', '.join(known)}"
        )
    return file_name_for(base_name)
