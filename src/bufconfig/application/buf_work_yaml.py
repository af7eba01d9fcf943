"""Workspace manifest (``buf.work.yaml`` / ``buf.work``) decoding and encoding.

The workspace manifest only exists in version v1, so it is also written as v1.
Its role was taken over by the multi-module v2 module manifest.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable

from ..adapters.codec import decode_document, encode_document
from ..domain import normalpath
from ..domain.errors import ValidationError
from ..domain.file_version import BUF_WORK_YAML, FileName, FileVersion
from .external import ExternalObject
from .version import get_file_version_for_data


def validate_directories(directories: Iterable[str]) -> tuple[str, ...]:
    """Normalize workspace directories and enforce the membership rules.

    Directories must be relative, unique, not ``"."`` and must not contain one
    another. The result is sorted.

    Examples
    --------
    >>> validate_directories(["proto", "vendor/./protoc"])
    ('proto', 'vendor/protoc')
    >>> validate_directories(["foo", "foo/bar"])
    Traceback (most recent call last):
    ...
    bufconfig.domain.errors.ValidationError: directory 'foo' contains directory 'foo/bar'
    """

    directories = list(directories)
    if not directories:
        raise ValidationError("directories is empty")
    normalized: list[str] = []
    for directory in directories:
        try:
            path = normalpath.normalize_and_validate(directory)
        except ValidationError as exc:
            raise ValidationError(f"directory {directory!r} is invalid: {exc.message}") from exc
        if path == ".":
            raise ValidationError(f"directory {directory!r} is invalid: the workspace root cannot be listed as a directory")
        if path in normalized:
            raise ValidationError(f"directory {path!r} is listed more than once")
        normalized.append(path)
    normalized.sort()
    for directory in normalized:
        for other in normalized:
            if normalpath.contains_path(directory, other):
                raise ValidationError(f"directory {directory!r} contains directory {other!r}")
    return tuple(normalized)


@dataclass(frozen=True, slots=True)
class BufWorkYAMLFile:
    """Member directories of a v1 workspace, sorted and non-nested."""

    file_version: FileVersion
    directory_paths: tuple[str, ...]

    def __post_init__(self) -> None:
        object.__setattr__(self, "directory_paths", validate_directories(self.directory_paths))


def read_buf_work_yaml_file(
    data: bytes, *, file_name: FileName = BUF_WORK_YAML, path: str | None = None
) -> BufWorkYAMLFile:
    version = get_file_version_for_data(data, file_name, path=path)
    top = ExternalObject(decode_document(data, path=path), allowed={"version", "directories"})
    return BufWorkYAMLFile(version, tuple(top.strings("directories")))


def write_buf_work_yaml_file(buf_work_yaml_file: BufWorkYAMLFile) -> bytes:
    """Encode as v1, the only version this file kind has.

    >>> print(write_buf_work_yaml_file(BufWorkYAMLFile(FileVersion.V1, ("b", "a"))).decode(), end="")
    version: v1
    directories:
      - a
      - b
    """

    document = {
        "version": str(BUF_WORK_YAML.latest_version),
        "directories": list(buf_work_yaml_file.directory_paths),
    }
    return encode_document(document)
