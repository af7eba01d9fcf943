from __future__ import annotations

import pytest

from bufconfig.application.version import get_file_version_for_data, sniff_file_version
from bufconfig.domain.errors import InvalidFormat, NoFileVersion, UnknownFileVersion, UnsupportedFileVersion
from bufconfig.domain.file_version import BUF_GEN_YAML, BUF_LOCK, BUF_MOD, BUF_POLICY_YAML, BUF_YAML, FileVersion


def test_sniff_ignores_other_fields() -> None:
    assert sniff_file_version(b"version: v2\nmodules: 12\n") == "v2"
    assert sniff_file_version(b'{"version": "v1"}', allow_json=True) == "v1"


def test_sniff_rejects_non_string_version() -> None:
    with pytest.raises(InvalidFormat, match="expected a string"):
        sniff_file_version(b"version: 2\n")


def test_missing_required_version_suggests_one() -> None:
    with pytest.raises(NoFileVersion) as info:
        get_file_version_for_data(b"name: buf.build/acme/weather\n", BUF_YAML, path="buf.yaml")
    assert 'add "version: v2"' in str(info.value)
    assert info.value.path == "buf.yaml"


def test_missing_lock_version_defaults() -> None:
    assert get_file_version_for_data(b"", BUF_LOCK) is FileVersion.V1BETA1


def test_unknown_version() -> None:
    with pytest.raises(UnknownFileVersion):
        get_file_version_for_data(b"version: v3\n", BUF_GEN_YAML)


@pytest.mark.parametrize(("file_name", "data"), [(BUF_MOD, b"version: v2\n"), (BUF_POLICY_YAML, b"version: v1\n")])
def test_unsupported_version_for_file_name(file_name, data: bytes) -> None:
    with pytest.raises(UnsupportedFileVersion, match="does not support version"):
        get_file_version_for_data(data, file_name)


def test_lock_version_sniffed_leniently() -> None:
    data = b"version: v1\nlegacy_field: 1\ndeps: []\ndeps: []\n"
    assert get_file_version_for_data(data, BUF_LOCK) is FileVersion.V1
    with pytest.raises(InvalidFormat, match="duplicate key"):
        get_file_version_for_data(data, BUF_YAML)
