"""Locate and read one configuration file kind at a bucket prefix.

Several file names can hold the same kind of file (``buf.yaml`` and the older
``buf.mod``). They are tried in order and the first one present wins. Errors
raised while decoding are re-raised bound to the file's bucket path.
"""

from __future__ import annotations

from typing import Callable, Sequence, TypeVar

from ..domain import normalpath
from ..domain.errors import ConfigError, NotFound
from ..domain.file_version import FileName
from ..observability import log_debug, make_event
from .ports import ReadBucket

T = TypeVar("T")

Reader = Callable[[bytes, FileName, str], T]


def read_for_prefix(
    bucket: ReadBucket,
    prefix: str,
    file_names: Sequence[FileName],
    reader: Reader[T],
) -> tuple[FileName, T]:
    """Return the first of *file_names* found at *prefix*, decoded by *reader*.

    Raises
    ------
    NotFound
        When none of the names exist at *prefix*.
    ConfigError
        Any decoding error, with ``path`` set to the file that failed.

    Examples
    --------
    >>> from bufconfig.adapters.buckets import MemoryBucket
    >>> from bufconfig.domain.file_version import BUF_WORK_YAML_FILE_NAMES
    >>> bucket = MemoryBucket({"proto/buf.work": b"version: v1"})
    >>> file_name, data = read_for_prefix(bucket, "proto", BUF_WORK_YAML_FILE_NAMES, lambda d, f, p: d)
    >>> file_name.name, data
    ('buf.work', b'version: v1')
    """

    prefix = normalpath.normalize_and_validate(prefix)
    for file_name in file_names:
        path = normalpath.join(prefix, file_name.name)
        if not bucket.exists(path):
            continue
        data = bucket.get(path)
        log_debug("config_file_read", **make_event(file_name.name, path, {"size": len(data)}))
        try:
            return file_name, reader(data, file_name, path)
        except ConfigError as exc:
            bound = exc.with_path(path)
            if bound is exc:
                raise
            raise bound from exc
    names = ", ".join(file_name.name for file_name in file_names)
    log_debug("config_file_missing", **make_event(file_names[0].name, prefix, {"candidates": names}))
    raise NotFound(f"no {names} found in {prefix}", path=prefix)
