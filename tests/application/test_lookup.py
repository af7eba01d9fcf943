from __future__ import annotations

import pytest

from bufconfig.adapters.buckets import MemoryBucket
from bufconfig.application.buf_yaml import read_buf_yaml_file
from bufconfig.application.lookup import read_for_prefix
from bufconfig.domain.errors import NoFileVersion, NotFound
from bufconfig.domain.file_version import BUF_MOD, BUF_YAML, BUF_YAML_FILE_NAMES


def _reader(data, file_name, path):
    return read_buf_yaml_file(data, file_name=file_name, path=path)


def test_buf_yaml_preferred_over_buf_mod() -> None:
    bucket = MemoryBucket({"proto/buf.yaml": b"version: v2\n", "proto/buf.mod": b"version: v1\n"})
    file_name, buf_yaml = read_for_prefix(bucket, "proto", BUF_YAML_FILE_NAMES, _reader)
    assert file_name is BUF_YAML
    assert str(buf_yaml.file_version) == "v2"


def test_falls_back_to_buf_mod() -> None:
    bucket = MemoryBucket({"buf.mod": b"version: v1\n"})
    file_name, _ = read_for_prefix(bucket, "./", BUF_YAML_FILE_NAMES, _reader)
    assert file_name is BUF_MOD


def test_missing_file_names_candidates() -> None:
    with pytest.raises(NotFound, match="no buf.yaml, buf.mod found in proto") as excinfo:
        read_for_prefix(MemoryBucket(), "proto", BUF_YAML_FILE_NAMES, _reader)
    assert excinfo.value.path == "proto"


def test_errors_are_bound_to_the_file() -> None:
    bucket = MemoryBucket({"proto/buf.yaml": b"name: buf.build/acme/weather\n"})
    with pytest.raises(NoFileVersion) as excinfo:
        read_for_prefix(bucket, "proto", BUF_YAML_FILE_NAMES, _reader)
    assert excinfo.value.path == "proto/buf.yaml"
