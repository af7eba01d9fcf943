"""Application-layer ports describing collaborator responsibilities.

Purpose
-------
Define the structural contracts the composition root and the terminator rely
on, so storage, registry lookups and filesystem probes stay swappable.

Contents
--------
* :class:`ReadBucket` – read-only access to files addressed by relative path.
* :class:`WriteBucket` – atomic, all-or-nothing file writes.
* :data:`DigestResolver` – lazy lookup of lock-file digests.
* :data:`LocalFileProbe` – existence check used to disambiguate plugin
  references.

System Role
-----------
Adapters in :mod:`bufconfig.adapters.buckets` implement the bucket protocols;
callers inject resolvers and probes as plain callables.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

from ..domain.lock import DigestResolver

__all__ = ["DigestResolver", "LocalFileProbe", "ReadBucket", "WriteBucket"]

LocalFileProbe = Callable[[str], bool]


@runtime_checkable
class ReadBucket(Protocol):
    """Read files by normalized, bucket-relative path.

    Why
    ----
    The engine never touches the filesystem directly; tests run against an
    in-memory bucket and the CLI against a directory.
    """

    def get(self, path: str) -> bytes:
        """Return the contents of *path* or raise :class:`~bufconfig.domain.errors.NotFound`."""

    def exists(self, path: str) -> bool:
        """Return ``True`` when *path* names a file."""


@runtime_checkable
class WriteBucket(Protocol):
    """Store files so readers observe either the old or the new contents."""

    def put(self, path: str, data: bytes) -> None:
        """Atomically replace *path* with *data*."""
