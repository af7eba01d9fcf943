"""File version resolution.

Purpose
-------
Determine which schema generation a configuration file uses before any
version-specific decoding happens. Only the ``version`` field is read, so a
file with an unrelated schema error still reports its version correctly.

Contents
--------
* :func:`sniff_file_version` – read of the ``version`` field alone.
* :func:`get_file_version_for_data` – resolve and validate a version for a
  :class:`~bufconfig.domain.file_version.FileName`.
"""

from __future__ import annotations

from collections.abc import Mapping

from ..adapters.codec import decode_document
from ..domain.errors import InvalidFormat, NoFileVersion, UnsupportedFileVersion
from ..domain.file_version import BUF_LOCK, FileName, FileVersion
from ..observability import log_debug


def sniff_file_version(
    data: bytes, *, allow_json: bool = False, strict: bool = True, path: str | None = None
) -> str:
    """Return the raw ``version`` string of *data*, or ``""`` when absent.

    Every other field is ignored, whatever its shape. With ``strict=False``
    duplicate keys are tolerated as well.

    >>> sniff_file_version(b"version: v1\\nbogus: [1, 2]\\n")
    'v1'
    >>> sniff_file_version(b"deps: []\\n")
    ''
    >>> sniff_file_version(b"deps: []\\ndeps: []\\n", strict=False)
    ''
    """

    document = decode_document(data, allow_json=allow_json, strict=strict, path=path)
    if not isinstance(document, Mapping):
        raise InvalidFormat(f"expected a mapping at the top level, got {type(document).__name__}", path=path)
    version = document.get("version")
    if version is None:
        return ""
    if not isinstance(version, str):
        raise InvalidFormat(f"version: expected a string, got {type(version).__name__}", path=path)
    return version


def get_file_version_for_data(
    data: bytes,
    file_name: FileName,
    *,
    allow_json: bool = False,
    path: str | None = None,
) -> FileVersion:
    """Resolve the schema version of *data* for the file kind *file_name*.

    Why
    ----
    The version decides which decoder runs. Getting it wrong would turn schema
    errors into confusing "unknown field" messages, so this step is strict
    about the version and lenient about everything else.

    What
    ----
    * Missing version: the file kind's default when the version is optional,
      otherwise :class:`NoFileVersion` naming a version to add.
    * Unrecognized string: :class:`UnknownFileVersion`.
    * Recognized but not valid for this file name:
      :class:`UnsupportedFileVersion`.
    * Lock files are sniffed non-strictly: legacy ones written by older tools
      may repeat keys, and only the version matters here.

    Examples
    --------
    >>> from bufconfig.domain.file_version import BUF_LOCK, BUF_WORK_YAML
    >>> get_file_version_for_data(b"deps: []", BUF_LOCK)
    <FileVersion.V1BETA1: 'v1beta1'>
    >>> get_file_version_for_data(b"version: v2", BUF_WORK_YAML)
    Traceback (most recent call last):
    ...
    bufconfig.domain.errors.UnsupportedFileVersion: buf.work.yaml does not support version v2, supported versions: v1
    """

    strict = file_name.name != BUF_LOCK.name
    raw = sniff_file_version(data, allow_json=allow_json, strict=strict, path=path)
    if not raw:
        if file_name.version_required:
            raise NoFileVersion(file_name.name, str(file_name.suggested_version()), path=path)
        version = file_name.default_version
    else:
        version = FileVersion.parse(raw)
    if not file_name.supports(version):
        supported = ", ".join(str(v) for v in sorted(file_name.supported_versions))
        raise UnsupportedFileVersion(
            f"{file_name.name} does not support version {version}, supported versions: {supported}",
            path=path,
        )
    log_debug("file_version_resolved", file_name=file_name.name, path=path, version=str(version))
    return version
