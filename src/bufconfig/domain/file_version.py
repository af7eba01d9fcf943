"""Schema versions and the file-name table that scopes them.

Purpose
-------
Model the three schema generations as a totally ordered enum and describe, for
each configuration file name, which generations it accepts and how a missing
``version`` field is treated.

Contents
--------
* :class:`FileVersion` – ``v1beta1 < v1 < v2``.
* :class:`FileName` – immutable per-name rules.
* Module-level tables ``BUF_YAML_FILE_NAMES``, ``BUF_LOCK_FILE_NAMES``,
  ``BUF_GEN_YAML_FILE_NAMES``, ``BUF_WORK_YAML_FILE_NAMES`` and
  ``BUF_POLICY_YAML_FILE_NAMES`` in search order.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final

from .errors import InvariantError, UnknownFileVersion


class FileVersion(Enum):
    """Released configuration schema generations, ordered by release."""

    V1BETA1 = "v1beta1"
    V1 = "v1"
    V2 = "v2"

    @property
    def rank(self) -> int:
        return _ORDER.index(self)

    def __lt__(self, other: object) -> bool:
        if not isinstance(other, FileVersion):
            return NotImplemented
        return self.rank < other.rank

    def __le__(self, other: object) -> bool:
        if not isinstance(other, FileVersion):
            return NotImplemented
        return self.rank <= other.rank

    def __gt__(self, other: object) -> bool:
        if not isinstance(other, FileVersion):
            return NotImplemented
        return self.rank > other.rank

    def __ge__(self, other: object) -> bool:
        if not isinstance(other, FileVersion):
            return NotImplemented
        return self.rank >= other.rank

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "FileVersion":
        """Return the version named by *value*.

        >>> FileVersion.parse("v1")
        <FileVersion.V1: 'v1'>
        """

        for version in cls:
            if version.value == value:
                return version
        raise UnknownFileVersion(f"unknown file version: {value!r}")


_ORDER: Final[tuple[FileVersion, ...]] = (FileVersion.V1BETA1, FileVersion.V1, FileVersion.V2)

LATEST_FILE_VERSION: Final[FileVersion] = FileVersion.V2


@dataclass(frozen=True, slots=True)
class FileName:
    """Rules for one configuration file name.

    Attributes
    ----------
    name:
        Base name inside a directory (``buf.yaml``).
    supported_versions:
        Versions this name may declare.
    version_required:
        Whether a missing ``version`` field is an error.
    default_version:
        Version assumed when the field is absent and not required; also the
        version suggested in the "no version" error.
    """

    name: str
    supported_versions: frozenset[FileVersion]
    version_required: bool
    default_version: FileVersion

    @property
    def latest_version(self) -> FileVersion:
        return max(self.supported_versions)

    def supports(self, version: FileVersion) -> bool:
        return version in self.supported_versions

    def suggested_version(self) -> FileVersion:
        """Version recommended to users when the field is missing."""

        return self.latest_version


_ALL: Final[frozenset[FileVersion]] = frozenset(FileVersion)
_PRE_V2: Final[frozenset[FileVersion]] = frozenset({FileVersion.V1BETA1, FileVersion.V1})

BUF_YAML = FileName("buf.yaml", _ALL, True, FileVersion.V1BETA1)
BUF_MOD = FileName("buf.mod", _PRE_V2, True, FileVersion.V1BETA1)
BUF_LOCK = FileName("buf.lock", _ALL, False, FileVersion.V1BETA1)
BUF_GEN_YAML = FileName("buf.gen.yaml", _ALL, True, FileVersion.V1BETA1)
BUF_WORK_YAML = FileName("buf.work.yaml", frozenset({FileVersion.V1}), True, FileVersion.V1)
BUF_WORK = FileName("buf.work", frozenset({FileVersion.V1}), True, FileVersion.V1)
BUF_POLICY_YAML = FileName("buf.policy.yaml", frozenset({FileVersion.V2}), True, FileVersion.V2)

BUF_YAML_FILE_NAMES: Final[tuple[FileName, ...]] = (BUF_YAML, BUF_MOD)
BUF_LOCK_FILE_NAMES: Final[tuple[FileName, ...]] = (BUF_LOCK,)
BUF_GEN_YAML_FILE_NAMES: Final[tuple[FileName, ...]] = (BUF_GEN_YAML,)
BUF_WORK_YAML_FILE_NAMES: Final[tuple[FileName, ...]] = (BUF_WORK_YAML, BUF_WORK)
BUF_POLICY_YAML_FILE_NAMES: Final[tuple[FileName, ...]] = (BUF_POLICY_YAML,)

ALL_FILE_NAMES: Final[tuple[FileName, ...]] = (
    *BUF_YAML_FILE_NAMES,
    *BUF_LOCK_FILE_NAMES,
    *BUF_GEN_YAML_FILE_NAMES,
    *BUF_WORK_YAML_FILE_NAMES,
    *BUF_POLICY_YAML_FILE_NAMES,
)


def file_name_for(base_name: str) -> FileName:
    """Return the :class:`FileName` rules registered under *base_name*."""

    for file_name in ALL_FILE_NAMES:
        if file_name.name == base_name:
            return file_name
    raise InvariantError(f"unknown configuration file name {base_name!r}")


def unexpected_version(version: FileVersion) -> InvariantError:
    """Build the error raised when a version reaches a branch with no case."""

    return InvariantError(f"unexpected file version {version}")
