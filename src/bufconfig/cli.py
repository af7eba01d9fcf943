"""CLI adapter for ``bufconfig`` built on ``lib_cli_exit_tools``.

Purpose
-------
Let operators check, migrate and locate configuration files from a shell
without writing Python code.

Contents
--------
* :data:`CLICK_CONTEXT_SETTINGS` – shared Click settings ensuring ``-h`` works.
* :func:`cli` – root command wiring traceback handling and the operation id.
* :func:`cli_info` – distribution metadata.
* :func:`cli_version` – schema version of one file.
* :func:`cli_validate` – decode every configuration file in a directory.
* :func:`cli_migrate` – re-encode files in the latest schema.
* :func:`cli_workspace` – run the controlling-workspace search.
* :func:`main` – entry point used by the ``bufconfig`` console script.

System Role
-----------
Outermost layer: it calls :mod:`bufconfig.core` and the terminator over a
:class:`~bufconfig.adapters.buckets.DirectoryBucket` and leaves exit codes to
``lib_cli_exit_tools``.
"""

from __future__ import annotations

import json
import sys
import uuid
from importlib import metadata
from pathlib import Path
from typing import Any, Callable, Final, Optional, Sequence

import lib_cli_exit_tools
import rich_click as click

from . import core
from .adapters.buckets import DirectoryBucket
from .application.terminate import climb_to_controlling_workspace
from .domain.errors import ConfigError, NotFound
from .observability import bind_operation_id, log_info

CLICK_CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}
_TRACEBACK_SUMMARY_LIMIT: Final[int] = 500
_TRACEBACK_VERBOSE_LIMIT: Final[int] = 10_000
_DISTRIBUTION: Final[str] = "bufconfig"

_DIRECTORY = click.Path(path_type=Path, exists=True, file_okay=False, dir_okay=True, readable=True)


def _resolve_version() -> str:
    try:
        return metadata.version(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        return "0.0.0"


def _local_file_probe(root: Path) -> Callable[[str], bool]:
    """Resolve check plugin paths against the directory being inspected."""

    return lambda path: (root / path).is_file()


@click.group(
    help="Read, validate and migrate buf configuration files",
    context_settings=CLICK_CONTEXT_SETTINGS,
    invoke_without_command=False,
)
@click.version_option(
    version=_resolve_version(),
    prog_name=_DISTRIBUTION,
    message="bufconfig version %(version)s",
)
@click.option(
    "--traceback/--no-traceback",
    is_flag=True,
    default=False,
    help="Show full Python traceback on errors",
)
@click.pass_context
def cli(ctx: click.Context, traceback: bool) -> None:
    """Root command storing the traceback preference for all subcommands.

    Side Effects
        Mutates ``lib_cli_exit_tools.config.traceback`` and
        ``traceback_force_color`` and binds a fresh operation id for logging.
    """

    ctx.ensure_object(dict)
    ctx.obj["traceback"] = traceback
    lib_cli_exit_tools.config.traceback = traceback
    lib_cli_exit_tools.config.traceback_force_color = traceback
    bind_operation_id(uuid.uuid4().hex)


@cli.command("info", context_settings=CLICK_CONTEXT_SETTINGS)
def cli_info() -> None:
    """Print basic distribution metadata so users can confirm installation."""

    try:
        meta = metadata.metadata(_DISTRIBUTION)
    except metadata.PackageNotFoundError:
        click.echo("bufconfig (metadata unavailable)")
        return
    click.echo(f"Info for {meta.get('Name', _DISTRIBUTION)}:")
    click.echo(f"  Version         : {meta.get('Version', _resolve_version())}")
    click.echo(f"  Requires-Python : {meta.get('Requires-Python', '>=3.10')}")
    summary = meta.get("Summary")
    if summary:
        click.echo(f"  Summary         : {summary}")


@cli.command("version", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("path", type=click.Path(path_type=Path, dir_okay=False))
def cli_version(path: Path) -> None:
    """Print the schema version of the configuration file at PATH.

    The file name selects the kind, so a ``buf.lock`` without a ``version``
    prints ``v1beta1``.
    """

    click.echo(str(core.read_file_version(path)))


def _validate_entries(root: Path) -> list[dict[str, Any]]:
    bucket = DirectoryBucket(root)
    probe = _local_file_probe(root)
    readers: tuple[tuple[str, Callable[[], Any]], ...] = (
        ("buf.yaml", lambda: core.get_buf_yaml_file_for_prefix(bucket, ".", local_file_probe=probe)),
        ("buf.lock", lambda: core.get_buf_lock_file_for_prefix(bucket, ".")),
        ("buf.gen.yaml", lambda: core.get_buf_gen_yaml_file_for_prefix(bucket, ".")),
        ("buf.work.yaml", lambda: core.get_buf_work_yaml_file_for_prefix(bucket, ".")),
        ("buf.policy.yaml", lambda: core.get_buf_policy_yaml_file_for_prefix(bucket, ".", local_file_probe=probe)),
    )
    entries: list[dict[str, Any]] = []
    for kind, read in readers:
        try:
            parsed = read()
        except NotFound:
            continue
        except ConfigError as exc:
            entries.append({"kind": kind, "valid": False, "path": exc.path, "error": exc.message})
            continue
        entries.append({"kind": kind, "valid": True, "version": str(parsed.file_version)})
    return entries


@cli.command("validate", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("directory", type=_DIRECTORY)
@click.option("--indent", type=int, default=2, show_default=True, help="JSON indent size")
def cli_validate(directory: Path, indent: int) -> None:
    """Decode every configuration file in DIRECTORY and print a JSON summary.

    Exits with status 1 when any file fails to decode.
    """

    entries = _validate_entries(directory)
    click.echo(json.dumps(entries, indent=indent))
    if any(not entry["valid"] for entry in entries):
        raise SystemExit(1)


@cli.command("migrate", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("directory", type=_DIRECTORY)
@click.option(
    "--write/--no-write",
    default=False,
    show_default=True,
    help="Rewrite the files in place instead of printing them",
)
def cli_migrate(directory: Path, write: bool) -> None:
    """Re-encode the configuration files in DIRECTORY in the latest schema.

    Covers ``buf.yaml`` (or ``buf.mod``), ``buf.gen.yaml``, ``buf.lock`` and
    ``buf.policy.yaml``. Without ``--write`` the migrated documents are printed
    as one YAML stream.
    """

    bucket = DirectoryBucket(directory)
    probe = _local_file_probe(directory)
    steps: tuple[tuple[str, Callable[[], Any], Callable[[Any], None], Callable[[Any], bytes]], ...] = (
        (
            "buf.yaml",
            lambda: core.get_buf_yaml_file_for_prefix(bucket, ".", local_file_probe=probe),
            lambda parsed: core.put_buf_yaml_file_for_prefix(bucket, ".", parsed),
            core.write_buf_yaml_file,
        ),
        (
            "buf.gen.yaml",
            lambda: core.get_buf_gen_yaml_file_for_prefix(bucket, "."),
            lambda parsed: core.put_buf_gen_yaml_file_for_prefix(bucket, ".", parsed),
            core.write_buf_gen_yaml_file,
        ),
        (
            "buf.lock",
            lambda: core.get_buf_lock_file_for_prefix(bucket, "."),
            lambda parsed: core.put_buf_lock_file_for_prefix(bucket, ".", parsed),
            core.write_buf_lock_file,
        ),
        (
            "buf.policy.yaml",
            lambda: core.get_buf_policy_yaml_file_for_prefix(bucket, ".", local_file_probe=probe),
            lambda parsed: core.put_buf_policy_yaml_file_for_prefix(bucket, ".", parsed),
            core.write_buf_policy_yaml_file,
        ),
    )
    # Decode everything first so a bad file leaves the directory untouched.
    parsed_files: list[tuple[str, Any, Callable[[Any], None], Callable[[Any], bytes]]] = []
    for kind, read, put, encode in steps:
        try:
            parsed_files.append((kind, read(), put, encode))
        except NotFound:
            continue
    if not parsed_files:
        raise NotFound(f"no configuration files found in {directory}", path=str(directory))
    for kind, parsed, put, encode in parsed_files:
        if write:
            put(parsed)
            click.echo(f"migrated {kind}")
            continue
        click.echo(f"--- # {kind}")
        click.echo(encode(parsed).decode("utf-8"), nl=False)
    log_info("migration_finished", directory=str(directory), files=[kind for kind, *_ in parsed_files], write=write)


@cli.command("workspace", context_settings=CLICK_CONTEXT_SETTINGS)
@click.argument("root", type=_DIRECTORY)
@click.argument("target")
@click.option(
    "--exact/--relaxed",
    default=True,
    show_default=True,
    help="Require the workspace to list TARGET (relaxed matches any workspace above a single file)",
)
def cli_workspace(root: Path, target: str, exact: bool) -> None:
    """Find the workspace controlling TARGET, a path relative to ROOT.

    Examples
    --------
    >>> from click.testing import CliRunner
    >>> import tempfile, pathlib
    >>> with tempfile.TemporaryDirectory() as tmp:
    ...     _ = (pathlib.Path(tmp) / "buf.work.yaml").write_text("version: v1\\ndirectories:\\n  - proto\\n")
    ...     result = CliRunner().invoke(cli, ["workspace", tmp, "proto"])
    >>> json.loads(result.output)["directories"]
    ['proto']
    """

    prefix, result = climb_to_controlling_workspace(DirectoryBucket(root), target, require_exact=exact)
    kind: Optional[str] = None
    if result.found:
        kind = "buf.work.yaml" if result.is_buf_work_yaml else "buf.yaml"
    payload = {
        "found": result.found,
        "prefix": prefix if result.found else None,
        "kind": kind,
        "directories": list(result.buf_work_yaml_dir_paths),
    }
    click.echo(json.dumps(payload, indent=2))


def main(argv: Optional[Sequence[str]] = None, *, restore_traceback: bool = True) -> int:
    """Execute the CLI with shared exit handling and return the exit code."""

    previous_traceback = getattr(lib_cli_exit_tools.config, "traceback", False)
    previous_force_color = getattr(lib_cli_exit_tools.config, "traceback_force_color", False)
    try:
        try:
            return lib_cli_exit_tools.run_cli(
                cli,
                argv=list(argv) if argv is not None else None,
                prog_name=_DISTRIBUTION,
            )
        except BaseException as exc:  # noqa: BLE001 - funnel through shared printers
            lib_cli_exit_tools.print_exception_message(
                trace_back=lib_cli_exit_tools.config.traceback,
                length_limit=(
                    _TRACEBACK_VERBOSE_LIMIT if lib_cli_exit_tools.config.traceback else _TRACEBACK_SUMMARY_LIMIT
                ),
            )
            return lib_cli_exit_tools.get_system_exit_code(exc)
    finally:
        if restore_traceback:
            lib_cli_exit_tools.config.traceback = previous_traceback
            lib_cli_exit_tools.config.traceback_force_color = previous_force_color


if __name__ == "__main__":  # pragma: no cover - exercised via console entry point
    raise SystemExit(main(sys.argv[1:]))
