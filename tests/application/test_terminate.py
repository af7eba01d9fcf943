"""Controlling workspace search over in-memory buckets."""

from __future__ import annotations

import pytest

from bufconfig.adapters.buckets import MemoryBucket
from bufconfig.application.terminate import (
    NOT_FOUND,
    climb_to_controlling_workspace,
    find_controlling_workspace,
    terminate_at_controlling_workspace,
    terminate_at_enclosing_module_or_workspace_for_proto_file_ref,
)
from bufconfig.domain.errors import ValidationError

WORK = b"version: v1\ndirectories:\n  - proto\n  - vendor/protoc\n"
V2_MODULES = b"version: v2\nmodules:\n  - path: proto\n  - path: vendor\n"


def test_workspace_lists_target() -> None:
    bucket = MemoryBucket({"buf.work.yaml": WORK})
    prefix, result = climb_to_controlling_workspace(bucket, "vendor/protoc")
    assert prefix == "."
    assert result.found and result.is_buf_work_yaml
    assert result.buf_work_yaml_dir_paths == ("proto", "vendor/protoc")


def test_workspace_paths_include_prefix() -> None:
    bucket = MemoryBucket({"root/buf.work": WORK})
    prefix, result = climb_to_controlling_workspace(bucket, "root/proto")
    assert prefix == "root"
    assert result.buf_work_yaml_dir_paths == ("root/proto", "root/vendor/protoc")


def test_unlisted_directory_is_not_controlled() -> None:
    bucket = MemoryBucket({"buf.work.yaml": WORK})
    assert climb_to_controlling_workspace(bucket, "proto/acme") == (".", NOT_FOUND)
    assert not terminate_at_controlling_workspace(bucket, ".", "other")


def test_relaxed_search_accepts_any_workspace() -> None:
    bucket = MemoryBucket({"buf.work.yaml": WORK})
    prefix, result = climb_to_controlling_workspace(bucket, "proto/acme", require_exact=False)
    assert prefix == "." and result.found


def test_workspace_at_target_controls_it() -> None:
    bucket = MemoryBucket({"proto/buf.work.yaml": b"version: v1\ndirectories:\n  - a\n"})
    assert find_controlling_workspace(bucket, "proto", "proto").found


def test_v2_manifest_controls_its_modules() -> None:
    bucket = MemoryBucket({"buf.yaml": V2_MODULES})
    prefix, result = climb_to_controlling_workspace(bucket, "vendor")
    assert prefix == "." and result.found
    assert not result.is_buf_work_yaml
    assert climb_to_controlling_workspace(bucket, "other")[1] is NOT_FOUND


def test_v1_manifest_is_not_a_workspace() -> None:
    bucket = MemoryBucket({"buf.yaml": b"version: v1\n"})
    assert climb_to_controlling_workspace(bucket, "proto")[1] is NOT_FOUND
    assert not find_controlling_workspace(bucket, ".", ".").found


def test_nearest_workspace_wins() -> None:
    bucket = MemoryBucket({"buf.work.yaml": b"version: v1\ndirectories:\n  - a/b\n", "a/buf.yaml": V2_MODULES})
    prefix, result = climb_to_controlling_workspace(bucket, "a/proto")
    assert prefix == "a" and not result.is_buf_work_yaml


def test_both_workspace_files_at_one_prefix() -> None:
    bucket = MemoryBucket({"buf.work.yaml": WORK, "buf.yaml": b"version: v1\n"})
    with pytest.raises(ValidationError, match="cannot have a buf.work.yaml and buf.yaml in the same directory"):
        find_controlling_workspace(bucket, ".", "proto")


def test_decode_errors_carry_the_file_path() -> None:
    bucket = MemoryBucket({"a/buf.work.yaml": b"version: v1\ndirectories: []\n"})
    with pytest.raises(ValidationError) as excinfo:
        climb_to_controlling_workspace(bucket, "a/b")
    assert excinfo.value.path == "a/buf.work.yaml"


def test_proto_file_ref_stops_at_enclosing_module() -> None:
    bucket = MemoryBucket({"a/buf.yaml": b"version: v1\n"})
    assert terminate_at_enclosing_module_or_workspace_for_proto_file_ref(bucket, "a", "a/b")
    assert not terminate_at_enclosing_module_or_workspace_for_proto_file_ref(bucket, ".", "a/b")


def test_proto_file_ref_stops_at_any_workspace() -> None:
    bucket = MemoryBucket({"buf.work.yaml": WORK})
    assert terminate_at_enclosing_module_or_workspace_for_proto_file_ref(bucket, ".", "elsewhere")
