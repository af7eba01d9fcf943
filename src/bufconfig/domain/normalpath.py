"""Slash-separated relative path helpers.

Purpose
-------
Every path stored in a configuration value object is a normalized, relative,
``/``-separated path. This module owns that canonical form and the containment
predicates the decoders rely on.

Contents
--------
* :func:`normalize` – collapse ``.``/``..`` segments and duplicate separators.
* :func:`normalize_and_validate` – normalize and reject absolute or escaping paths.
* :func:`join`, :func:`rel`, :func:`base`, :func:`ext`, :func:`dir_name`.
* :func:`equals_or_contains_path`, :func:`contains_path`.
* :func:`components`, :func:`ancestors`.

System Role
-----------
Pure functions with no I/O, shared by decoders, the normalizer, the terminator
and the bucket adapters.
"""

from __future__ import annotations

import posixpath
from typing import Iterator

from .errors import ValidationError


def normalize(path: str) -> str:
    """Return the canonical form of *path* using ``/`` separators.

    Examples
    --------
    >>> normalize("foo//bar/../baz/")
    'foo/baz'
    >>> normalize("")
    '.'
    """

    return posixpath.normpath(path.replace("\\", "/")) if path else "."


def normalize_and_validate(path: str) -> str:
    """Normalize *path* and require it to stay inside its context directory.

    Raises
    ------
    ValidationError
        When the path is absolute or climbs outside with ``..``.

    Examples
    --------
    >>> normalize_and_validate("a/./b")
    'a/b'
    >>> normalize_and_validate("../a")
    Traceback (most recent call last):
    ...
    bufconfig.domain.errors.ValidationError: ../a is outside the context directory
    """

    normalized = normalize(path)
    if normalized.startswith("/"):
        raise ValidationError(f"{path} is an absolute path, expected a relative path")
    if normalized == ".." or normalized.startswith("../"):
        raise ValidationError(f"{path} is outside the context directory")
    return normalized


def join(*paths: str) -> str:
    """Join and normalize, ignoring empty segments."""

    parts = [p for p in paths if p]
    if not parts:
        return "."
    return normalize(posixpath.join(*parts))


def rel(base_path: str, target_path: str) -> str:
    """Return *target_path* relative to *base_path*; both must be relative."""

    return posixpath.relpath(normalize(target_path), normalize(base_path))


def base(path: str) -> str:
    return posixpath.basename(normalize(path))


def dir_name(path: str) -> str:
    return normalize(posixpath.dirname(normalize(path)))


def ext(path: str) -> str:
    return posixpath.splitext(path)[1]


def components(path: str) -> list[str]:
    normalized = normalize(path)
    if normalized == ".":
        return []
    return normalized.split("/")


def equals_or_contains_path(value: str, path: str) -> bool:
    """Return ``True`` when *path* is *value* or lies beneath it.

    ``"."`` contains every relative path.

    Examples
    --------
    >>> equals_or_contains_path("foo", "foo/bar.proto")
    True
    >>> equals_or_contains_path("foo", "foobar")
    False
    >>> equals_or_contains_path(".", "anything")
    True
    """

    value = normalize(value)
    path = normalize(path)
    if value == ".":
        return True
    return path == value or path.startswith(value + "/")


def contains_path(value: str, path: str) -> bool:
    """Return ``True`` when *path* lies strictly beneath *value*."""

    return normalize(value) != normalize(path) and equals_or_contains_path(value, path)


def ancestors(path: str) -> Iterator[str]:
    """Yield *path* and each parent up to and including ``"."``.

    >>> list(ancestors("a/b"))
    ['a/b', 'a', '.']
    """

    current = normalize(path)
    while True:
        yield current
        if current == ".":
            return
        current = dir_name(current)
