"""Lock file (``buf.lock``) decoding and encoding."""

from __future__ import annotations

from typing import Any, Final, Optional

from ..adapters.codec import decode_document, encode_document
from ..domain.errors import ValidationError
from ..domain.file_version import BUF_LOCK, FileVersion, unexpected_version
from ..domain.lock import BufLockFile, DigestResolver, ModuleKey
from ..domain.refs import Digest, ModuleFullName
from .external import ExternalObject, omit_empty
from .version import get_file_version_for_data

LOCK_FILE_HEADER: Final[str] = "# Generated by buf. DO NOT EDIT.\n"

_DEP_KEYS_V1: Final[frozenset[str]] = frozenset(
    {"remote", "owner", "repository", "branch", "commit", "digest", "create_time"}
)
_DEP_KEYS_V2: Final[frozenset[str]] = frozenset({"name", "commit", "digest"})


def _parse_digest(raw: str, full_name: ModuleFullName) -> Optional[Digest]:
    if not raw:
        return None
    try:
        return Digest.parse(raw)
    except ValidationError as exc:
        raise ValidationError(f"invalid digest for module {full_name}: {exc.message}") from exc


def _decode_dep_v1(entry: ExternalObject, resolver: Optional[DigestResolver]) -> ModuleKey:
    for key in ("remote", "owner", "repository"):
        if not entry.string(key):
            raise ValidationError(f"{entry.where}: {key} missing")
    full_name = ModuleFullName.parse(f"{entry.string('remote')}/{entry.string('owner')}/{entry.string('repository')}")
    commit = entry.string("commit")
    if not commit:
        raise ValidationError(f"no commit specified for module {full_name}")
    digest = _parse_digest(entry.string("digest"), full_name)
    if digest is None and resolver is None:
        raise ValidationError(f"no digest specified for module {full_name}")
    return ModuleKey(full_name, commit, digest, resolver)


def _decode_dep_v2(entry: ExternalObject) -> ModuleKey:
    name = entry.string("name")
    if not name:
        raise ValidationError(f"{entry.where}: name missing")
    full_name = ModuleFullName.parse(name)
    digest = _parse_digest(entry.string("digest"), full_name)
    if digest is None:
        raise ValidationError(f"no digest specified for module {full_name}")
    return ModuleKey(full_name, entry.string("commit"), digest)


def read_buf_lock_file(
    data: bytes,
    *,
    digest_resolver: Optional[DigestResolver] = None,
    path: str | None = None,
) -> BufLockFile:
    """Decode a lock file of any supported version.

    Why
    ----
    Pre-v2 lock files always pin a commit but may lack a digest; those digests
    are looked up lazily through *digest_resolver*. v2 lock files always carry
    a digest and may omit the commit.

    Examples
    --------
    >>> lock = read_buf_lock_file(
    ...     b"version: v2\\ndeps:\\n  - name: buf.build/acme/weather\\n    digest: b5:ab\\n")
    >>> str(lock.deps[0].digest())
    'b5:ab'
    """

    version = get_file_version_for_data(data, BUF_LOCK, path=path)
    document = decode_document(data, path=path)
    if version in (FileVersion.V1BETA1, FileVersion.V1):
        top = ExternalObject(document, allowed={"version", "deps"})
        deps = [_decode_dep_v1(entry, digest_resolver) for entry in top.objects("deps", _DEP_KEYS_V1)]
    elif version is FileVersion.V2:
        top = ExternalObject(document, allowed={"version", "deps"})
        deps = [_decode_dep_v2(entry) for entry in top.objects("deps", _DEP_KEYS_V2)]
    else:
        raise unexpected_version(version)
    return BufLockFile(version, tuple(deps))


def write_buf_lock_file(buf_lock_file: BufLockFile) -> bytes:
    """Encode *buf_lock_file* as a v2 lock file with the generated-file header.

    Digests missing from a legacy file are resolved here; a resolver failure
    propagates.

    >>> lock = read_buf_lock_file(b"version: v1\\ndeps:\\n"
    ...     b"  - remote: buf.build\\n    owner: acme\\n    repository: weather\\n"
    ...     b"    commit: abc\\n    digest: shake256:ff\\n")
    >>> print(write_buf_lock_file(lock).decode(), end="")
    # Generated by buf. DO NOT EDIT.
    version: v2
    deps:
      - name: buf.build/acme/weather
        commit: abc
        digest: shake256:ff
    """

    document: dict[str, Any] = {"version": str(FileVersion.V2)}
    if buf_lock_file.deps:
        document["deps"] = [
            omit_empty({"name": str(dep.full_name), "commit": dep.commit_id, "digest": str(dep.digest())})
            for dep in buf_lock_file.deps
        ]
    return encode_document(document, header=LOCK_FILE_HEADER)
