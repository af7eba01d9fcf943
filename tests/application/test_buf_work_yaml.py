from __future__ import annotations

import pytest

from bufconfig.application.buf_work_yaml import BufWorkYAMLFile, read_buf_work_yaml_file, write_buf_work_yaml_file
from bufconfig.domain.errors import NoFileVersion, UnsupportedFileVersion, ValidationError
from bufconfig.domain.file_version import BUF_WORK, FileVersion


def test_directories_are_normalized_and_sorted() -> None:
    buf_work = read_buf_work_yaml_file(b"version: v1\ndirectories:\n  - vendor/./protoc\n  - proto\n")
    assert buf_work.file_version is FileVersion.V1
    assert buf_work.directory_paths == ("proto", "vendor/protoc")


def test_legacy_name_reads_the_same() -> None:
    buf_work = read_buf_work_yaml_file(b"version: v1\ndirectories:\n  - proto\n", file_name=BUF_WORK)
    assert buf_work.directory_paths == ("proto",)


def test_written_as_v1() -> None:
    buf_work = BufWorkYAMLFile(FileVersion.V1, ("vendor", "proto"))
    assert write_buf_work_yaml_file(buf_work) == b"version: v1\ndirectories:\n  - proto\n  - vendor\n"


@pytest.mark.parametrize(
    ("directories", "message"),
    [
        ([], "directories is empty"),
        (["."], "the workspace root cannot be listed"),
        (["../proto"], "directory '../proto' is invalid"),
        (["/abs"], "directory '/abs' is invalid"),
        (["proto", "proto/"], "directory 'proto' is listed more than once"),
        (["foo", "foo/bar"], "directory 'foo' contains directory 'foo/bar'"),
    ],
)
def test_directory_rules(directories: list[str], message: str) -> None:
    with pytest.raises(ValidationError) as excinfo:
        BufWorkYAMLFile(FileVersion.V1, tuple(directories))
    assert message in excinfo.value.message


@pytest.mark.parametrize("version", ["v1beta1", "v2"])
def test_only_v1_exists(version: str) -> None:
    with pytest.raises(UnsupportedFileVersion):
        read_buf_work_yaml_file(f"version: {version}\ndirectories:\n  - proto\n".encode("utf-8"))


def test_version_required() -> None:
    with pytest.raises(NoFileVersion):
        read_buf_work_yaml_file(b"directories:\n  - proto\n")
