from __future__ import annotations

import pytest

from bufconfig.domain.errors import InvariantError, UnknownFileVersion
from bufconfig.domain.file_version import (
    ALL_FILE_NAMES,
    BUF_GEN_YAML,
    BUF_LOCK,
    BUF_MOD,
    BUF_POLICY_YAML,
    BUF_WORK,
    BUF_WORK_YAML,
    BUF_YAML,
    LATEST_FILE_VERSION,
    FileVersion,
    file_name_for,
    unexpected_version,
)


def test_versions_are_ordered_by_release() -> None:
    assert FileVersion.V1BETA1 < FileVersion.V1 < FileVersion.V2
    assert max(FileVersion) is LATEST_FILE_VERSION is FileVersion.V2


def test_parse_rejects_unknown_version() -> None:
    assert FileVersion.parse("v1beta1") is FileVersion.V1BETA1
    with pytest.raises(UnknownFileVersion):
        FileVersion.parse("v3")


@pytest.mark.parametrize(
    ("file_name", "supported", "required"),
    [
        (BUF_YAML, {FileVersion.V1BETA1, FileVersion.V1, FileVersion.V2}, True),
        (BUF_MOD, {FileVersion.V1BETA1, FileVersion.V1}, True),
        (BUF_LOCK, {FileVersion.V1BETA1, FileVersion.V1, FileVersion.V2}, False),
        (BUF_GEN_YAML, {FileVersion.V1BETA1, FileVersion.V1, FileVersion.V2}, True),
        (BUF_WORK_YAML, {FileVersion.V1}, True),
        (BUF_WORK, {FileVersion.V1}, True),
        (BUF_POLICY_YAML, {FileVersion.V2}, True),
    ],
)
def test_file_name_table(file_name, supported, required) -> None:
    assert file_name.supported_versions == supported
    assert file_name.version_required is required


def test_lock_defaults_to_v1beta1() -> None:
    assert BUF_LOCK.default_version is FileVersion.V1BETA1


def test_suggested_version_is_latest_supported() -> None:
    assert BUF_MOD.suggested_version() is FileVersion.V1
    assert BUF_WORK_YAML.suggested_version() is FileVersion.V1
    assert BUF_YAML.suggested_version() is FileVersion.V2


def test_file_name_for_lookup() -> None:
    assert [file_name_for(name.name) for name in ALL_FILE_NAMES] == list(ALL_FILE_NAMES)
    with pytest.raises(InvariantError):
        file_name_for("buf.toml")


def test_unexpected_version_is_invariant_error() -> None:
    assert isinstance(unexpected_version(FileVersion.V2), InvariantError)
