"""Storage adapters implementing the bucket ports.

Purpose
-------
Give the composition root somewhere to read configuration files from and write
them to, addressed by normalized relative paths.

Contents
--------
* :class:`DirectoryBucket` – a directory on disk; writes go through a temporary
  file and :func:`os.replace` so readers never see partial output.
* :class:`MemoryBucket` – a dictionary, used by tests and by callers that
  build files in memory.
"""

from __future__ import annotations

import os
import tempfile
from pathlib import Path
from typing import Iterator, Mapping, Optional

from ..domain import normalpath
from ..domain.errors import NotFound
from ..observability import log_debug


class DirectoryBucket:
    """Files below *root* on the local filesystem.

    Examples
    --------
    >>> import tempfile
    >>> with tempfile.TemporaryDirectory() as tmp:
    ...     bucket = DirectoryBucket(tmp)
    ...     bucket.put("proto/buf.yaml", b"version: v2\\n")
    ...     bucket.get("proto/buf.yaml")
    b'version: v2\\n'
    """

    def __init__(self, root: str | os.PathLike[str]) -> None:
        self._root = Path(root)

    @property
    def root(self) -> Path:
        return self._root

    def _resolve(self, path: str) -> Path:
        return self._root / normalpath.normalize_and_validate(path)

    def exists(self, path: str) -> bool:
        return self._resolve(path).is_file()

    def get(self, path: str) -> bytes:
        file_path = self._resolve(path)
        if not file_path.is_file():
            raise NotFound(f"file not found: {path}", path=path)
        payload = file_path.read_bytes()
        log_debug("bucket_read", path=path, size=len(payload))
        return payload

    def put(self, path: str, data: bytes) -> None:
        """Write *data* to a sibling temporary file, then rename it over *path*."""

        target = self._resolve(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        handle, temp_name = tempfile.mkstemp(prefix=f".{target.name}.", dir=target.parent)
        try:
            with os.fdopen(handle, "wb") as stream:
                stream.write(data)
                stream.flush()
                os.fsync(stream.fileno())
            os.replace(temp_name, target)
        except BaseException:
            Path(temp_name).unlink(missing_ok=True)
            raise
        log_debug("bucket_written", path=path, size=len(data))


class MemoryBucket:
    """In-memory bucket keyed by normalized path.

    >>> bucket = MemoryBucket({"buf.work.yaml": b"version: v1\\n"})
    >>> bucket.exists("./buf.work.yaml"), bucket.exists("buf.yaml")
    (True, False)
    """

    def __init__(self, files: Optional[Mapping[str, bytes]] = None) -> None:
        self._files: dict[str, bytes] = {}
        for path, data in (files or {}).items():
            self.put(path, data)

    def __iter__(self) -> Iterator[str]:
        return iter(sorted(self._files))

    def exists(self, path: str) -> bool:
        return normalpath.normalize_and_validate(path) in self._files

    def get(self, path: str) -> bytes:
        try:
            return self._files[normalpath.normalize_and_validate(path)]
        except KeyError:
            raise NotFound(f"file not found: {path}", path=path) from None

    def put(self, path: str, data: bytes) -> None:
        self._files[normalpath.normalize_and_validate(path)] = bytes(data)
