"""Bucket-backed reads, writes and overrides through the public API."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import pytest

import bufconfig
from bufconfig import core
from bufconfig.adapters.buckets import MemoryBucket
from bufconfig.domain.errors import NotFound, ValidationError, WriteError
from bufconfig.domain.file_version import FileVersion
from bufconfig.domain.lock import BufLockFile, ModuleKey
from bufconfig.domain.refs import ModuleFullName


class _FailingBucket(MemoryBucket):
    def put(self, path: str, data: bytes) -> None:
        raise OSError(f"read-only bucket: {path}")


def test_buf_yaml_upgraded_in_place() -> None:
    bucket = MemoryBucket({"proto/buf.mod": b"version: v1\nname: buf.build/acme/weather\n"})
    assert core.get_buf_yaml_file_version_for_prefix(bucket, "proto") is FileVersion.V1
    buf_yaml = core.get_buf_yaml_file_for_prefix(bucket, "proto")
    core.put_buf_yaml_file_for_prefix(bucket, "proto", buf_yaml)
    assert bucket.get("proto/buf.yaml") == (
        b"version: v2\nname: buf.build/acme/weather\nlint:\n  disallow_comment_ignores: true\n"
    )
    assert core.get_buf_yaml_file_version_for_prefix(bucket, "proto") is FileVersion.V2


def test_every_kind_round_trips_through_a_bucket() -> None:
    bucket = MemoryBucket(
        {
            "buf.gen.yaml": b"version: v1\nplugins:\n  - plugin: go\n    out: gen\n",
            "buf.lock": b"version: v2\ndeps:\n  - name: buf.build/acme/units\n    digest: b5:aa\n",
            "buf.work": b"version: v1\ndirectories:\n  - proto\n",
            "buf.policy.yaml": b"version: v2\nname: acme\n",
        }
    )
    core.put_buf_gen_yaml_file_for_prefix(bucket, ".", core.get_buf_gen_yaml_file_for_prefix(bucket, "."))
    core.put_buf_lock_file_for_prefix(bucket, ".", core.get_buf_lock_file_for_prefix(bucket, "."))
    core.put_buf_work_yaml_file_for_prefix(bucket, ".", core.get_buf_work_yaml_file_for_prefix(bucket, "."))
    core.put_buf_policy_yaml_file_for_prefix(bucket, ".", core.get_buf_policy_yaml_file_for_prefix(bucket, "."))
    assert core.get_buf_gen_yaml_file_version_for_prefix(bucket, ".") is FileVersion.V2
    assert core.get_buf_lock_file_version_for_prefix(bucket, ".") is FileVersion.V2
    assert core.get_buf_work_yaml_file_version_for_prefix(bucket, ".") is FileVersion.V1
    assert bucket.get("buf.work.yaml") == b"version: v1\ndirectories:\n  - proto\n"
    assert bucket.get("buf.policy.yaml") == b"version: v2\nname: acme\n"


def test_lock_digests_resolved_through_the_resolver() -> None:
    bucket = MemoryBucket(
        {"buf.lock": b"deps:\n  - remote: buf.build\n    owner: acme\n    repository: units\n    commit: abc\n"}
    )
    lock = core.get_buf_lock_file_for_prefix(bucket, ".", digest_resolver=lambda remote, commit: "b5:12")
    assert lock.file_version is FileVersion.V1BETA1
    core.put_buf_lock_file_for_prefix(bucket, ".", lock)
    assert b"digest: b5:12" in bucket.get("buf.lock")


def test_missing_file_is_not_found() -> None:
    with pytest.raises(NotFound) as excinfo:
        core.get_buf_gen_yaml_file_for_prefix(MemoryBucket(), "gen")
    assert excinfo.value.path == "gen"


def test_storage_failure_becomes_write_error(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.ERROR, logger="bufconfig")
    buf_yaml = bufconfig.read_buf_yaml_file(b"version: v2\n")
    with pytest.raises(WriteError) as excinfo:
        core.put_buf_yaml_file_for_prefix(_FailingBucket(), "proto", buf_yaml)
    assert excinfo.value.path == "proto/buf.yaml"
    assert isinstance(excinfo.value.__cause__, OSError)
    assert [record.getMessage() for record in caplog.records] == ["config_file_write_failed"]


def test_encoding_failure_writes_nothing() -> None:
    bucket = MemoryBucket()
    lock = BufLockFile(FileVersion.V1, (ModuleKey(ModuleFullName.parse("buf.build/acme/units"), "abc"),))
    with pytest.raises(WriteError, match="no digest specified"):
        core.put_buf_lock_file_for_prefix(bucket, ".", lock)
    assert not bucket.exists("buf.lock")


def test_successful_write_is_logged(caplog: pytest.LogCaptureFixture) -> None:
    caplog.set_level(logging.INFO, logger="bufconfig")
    bufconfig.bind_operation_id("op-1")
    core.put_buf_work_yaml_file_for_prefix(
        MemoryBucket(), "ws", bufconfig.read_buf_work_yaml_file(b"version: v1\ndirectories:\n  - a\n")
    )
    (record,) = [record for record in caplog.records if record.getMessage() == "config_file_written"]
    assert record.context["operation_id"] == "op-1"
    assert record.context["path"] == "ws/buf.work.yaml"


def test_inline_json_override() -> None:
    value = json.dumps({"version": "v2", "plugins": [{"remote": "buf.build/protocolbuffers/go", "out": "gen"}]})
    buf_gen_yaml = core.get_buf_gen_yaml_file_for_override(value)
    assert buf_gen_yaml.generate_config.plugins[0].remote_host == "buf.build"


def test_inline_yaml_override() -> None:
    buf_yaml = core.get_buf_yaml_file_for_override("version: v1\nname: buf.build/acme/weather\n")
    assert buf_yaml.file_version is FileVersion.V1


def test_file_override_errors_name_the_file(tmp_path: Path) -> None:
    override = tmp_path / "policy.yaml"
    override.write_text("version: v2\nlint:\n  use: STANDARD\n")
    with pytest.raises(bufconfig.InvalidFormat) as excinfo:
        core.get_buf_policy_yaml_file_for_override(str(override))
    assert excinfo.value.path == str(override)


def test_json_file_override(tmp_path: Path) -> None:
    override = tmp_path / "buf.json"
    override.write_text('{"version": "v2", "modules": [{"path": "proto"}]}')
    assert core.get_buf_yaml_file_for_override(str(override)).module_dir_paths() == ("proto",)


def test_missing_override_file(tmp_path: Path) -> None:
    with pytest.raises(NotFound, match="override file not found"):
        core.get_buf_gen_yaml_file_for_override(str(tmp_path / "missing.yaml"))


def test_read_file_version_by_name(tmp_path: Path) -> None:
    (tmp_path / "buf.lock").write_text("deps: []\n")
    (tmp_path / "buf.yaml").write_text("deps: []\n")
    assert core.read_file_version(tmp_path / "buf.lock") is FileVersion.V1BETA1
    with pytest.raises(bufconfig.NoFileVersion):
        core.read_file_version(tmp_path / "buf.yaml")


def test_read_file_version_rejects_unknown_names(tmp_path: Path) -> None:
    with pytest.raises(ValidationError, match="not a known configuration file name") as excinfo:
        core.read_file_version(tmp_path / "config.yaml")
    assert not isinstance(excinfo.value, NotFound)
    with pytest.raises(NotFound, match="file not found"):
        core.read_file_version(tmp_path / "buf.gen.yaml")


def test_invalid_prefix_is_rejected() -> None:
    with pytest.raises(ValidationError):
        core.get_buf_yaml_file_for_prefix(MemoryBucket(), "../outside")
