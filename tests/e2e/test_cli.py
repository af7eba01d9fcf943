"""End-to-end CLI coverage for the ``bufconfig`` commands."""

from __future__ import annotations

import json
from pathlib import Path

import lib_cli_exit_tools
from click.testing import CliRunner

from bufconfig import cli

V1_BUF_YAML = "version: v1\nname: buf.build/acme/weather\n"


def _runner() -> CliRunner:
    return CliRunner()


def test_cli_info() -> None:
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "bufconfig" in result.output


def test_cli_info_handles_missing_metadata(monkeypatch) -> None:
    def _raise_pkg_not_found(*_args, **_kwargs):
        raise cli.metadata.PackageNotFoundError()

    monkeypatch.setattr(cli.metadata, "metadata", _raise_pkg_not_found)
    result = _runner().invoke(cli.cli, ["info"])
    assert result.exit_code == 0
    assert "metadata unavailable" in result.output


def test_cli_version_prints_schema_version(tmp_path: Path) -> None:
    (tmp_path / "buf.lock").write_text("deps: []\n")
    result = _runner().invoke(cli.cli, ["version", str(tmp_path / "buf.lock")])
    assert result.exit_code == 0
    assert result.output == "v1beta1\n"


def test_cli_validate_reports_each_file(tmp_path: Path) -> None:
    (tmp_path / "buf.yaml").write_text(V1_BUF_YAML)
    (tmp_path / "buf.gen.yaml").write_text("version: v2\nplugins: []\n")
    result = _runner().invoke(cli.cli, ["validate", str(tmp_path)])
    assert result.exit_code == 1
    entries = json.loads(result.output)
    assert entries == [
        {"kind": "buf.yaml", "valid": True, "version": "v1"},
        {
            "kind": "buf.gen.yaml",
            "valid": False,
            "path": "buf.gen.yaml",
            "error": "must specify at least one plugin",
        },
    ]


def test_cli_validate_succeeds_on_valid_directory(tmp_path: Path) -> None:
    (tmp_path / "buf.work.yaml").write_text("version: v1\ndirectories:\n  - proto\n")
    result = _runner().invoke(cli.cli, ["validate", "--indent", "0", str(tmp_path)])
    assert result.exit_code == 0
    assert json.loads(result.output) == [{"kind": "buf.work.yaml", "valid": True, "version": "v1"}]


def test_cli_migrate_prints_without_writing(tmp_path: Path) -> None:
    (tmp_path / "buf.yaml").write_text(V1_BUF_YAML)
    result = _runner().invoke(cli.cli, ["migrate", str(tmp_path)])
    assert result.exit_code == 0
    assert result.output == (
        "--- # buf.yaml\n"
        "version: v2\n"
        "name: buf.build/acme/weather\n"
        "lint:\n"
        "  disallow_comment_ignores: true\n"
    )
    assert (tmp_path / "buf.yaml").read_text() == V1_BUF_YAML


def test_cli_migrate_writes_files(tmp_path: Path) -> None:
    (tmp_path / "buf.mod").write_text(V1_BUF_YAML)
    (tmp_path / "buf.gen.yaml").write_text("version: v1\nplugins:\n  - plugin: java\n    out: gen\n")
    result = _runner().invoke(cli.cli, ["migrate", "--write", str(tmp_path)])
    assert result.exit_code == 0
    assert result.output == "migrated buf.yaml\nmigrated buf.gen.yaml\n"
    assert (tmp_path / "buf.yaml").read_text().startswith("version: v2\n")
    assert (tmp_path / "buf.gen.yaml").read_text() == (
        "version: v2\nplugins:\n  - protoc_builtin: java\n    out: gen\n"
    )


def test_cli_migrate_leaves_directory_untouched_on_error(tmp_path: Path) -> None:
    (tmp_path / "buf.yaml").write_text(V1_BUF_YAML)
    (tmp_path / "buf.gen.yaml").write_text("version: v1\nplugins: []\n")
    result = _runner().invoke(cli.cli, ["migrate", "--write", str(tmp_path)])
    assert result.exit_code != 0
    assert (tmp_path / "buf.yaml").read_text() == V1_BUF_YAML


def test_cli_migrate_empty_directory(tmp_path: Path) -> None:
    result = _runner().invoke(cli.cli, ["migrate", str(tmp_path)])
    assert result.exit_code != 0
    assert isinstance(result.exception, cli.NotFound)


def test_cli_workspace(tmp_path: Path) -> None:
    (tmp_path / "buf.yaml").write_text("version: v2\nmodules:\n  - path: proto\n")
    found = _runner().invoke(cli.cli, ["workspace", str(tmp_path), "proto"])
    assert json.loads(found.output) == {"found": True, "prefix": ".", "kind": "buf.yaml", "directories": []}
    missing = _runner().invoke(cli.cli, ["workspace", str(tmp_path), "other"])
    assert json.loads(missing.output) == {"found": False, "prefix": None, "kind": None, "directories": []}
    relaxed = _runner().invoke(cli.cli, ["workspace", "--relaxed", str(tmp_path), "other"])
    assert json.loads(relaxed.output)["found"] is True


def test_cli_main_restores_traceback_flag(tmp_path: Path) -> None:
    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    (tmp_path / "buf.work.yaml").write_text("version: v1\ndirectories:\n  - proto\n")
    exit_code = cli.main(["--traceback", "version", str(tmp_path / "buf.work.yaml")], restore_traceback=True)
    assert exit_code == 0
    assert getattr(lib_cli_exit_tools.config, "traceback", False) == previous_traceback


def test_cli_main_reports_errors_with_exit_code(tmp_path: Path) -> None:
    (tmp_path / "buf.work.yaml").write_text("version: v2\ndirectories:\n  - proto\n")
    assert cli.main(["version", str(tmp_path / "buf.work.yaml")]) != 0
