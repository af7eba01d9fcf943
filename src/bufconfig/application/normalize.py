"""Cross-version path normalization and check-config collapsing.

Purpose
-------
Schema versions disagree on how paths are anchored: v1beta1/v1 express
excludes and ignores relative to *roots*, v2 expresses everything relative to
the manifest and scopes it per module. This module turns every variant into the
canonical "relative to the owning root/module" form, and performs the inverse
decision on write: whether per-module lint/breaking blocks can be hoisted to a
single top-level block.

Contents
--------
* :func:`resolve_root_to_excludes` – v1beta1/v1 ``roots`` + ``excludes``.
* :func:`resolve_module_includes_excludes` – v2 module ``includes``/``excludes``.
* :func:`resolve_check_paths` – lint/breaking ``ignore``/``ignore_only`` with the
  disable-via-self-ignore rule and the contained/dropped policy.
* :func:`collapse_per_module` – hoist identical per-module blocks.

System Role
-----------
Called by the ``buf.yaml`` and ``buf.policy.yaml`` decoders and encoder.
Every function is pure and raises
:class:`~bufconfig.domain.errors.ValidationError` on the first violation.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Mapping, Sequence

from ..domain import normalpath
from ..domain.errors import InvariantError, ValidationError

PROTO_EXT = ".proto"


def _normalize_unique(paths: Iterable[str], label: str) -> list[str]:
    """Normalize and validate *paths*, rejecting repeats."""

    seen: list[str] = []
    for path in paths:
        try:
            normalized = normalpath.normalize_and_validate(path)
        except ValidationError as exc:
            raise ValidationError(f"invalid {label} {path!r}: {exc.message}") from exc
        if normalized in seen:
            raise ValidationError(f"{label} {normalized!r} is listed more than once")
        seen.append(normalized)
    return seen


def resolve_root_to_excludes(roots: Sequence[str], excludes: Sequence[str]) -> dict[str, tuple[str, ...]]:
    """Map each pre-v2 root to its excludes, stored relative to that root.

    Why
    ----
    v1beta1 modules may have several roots; an exclude written relative to the
    manifest has to be attributed to exactly one of them.

    What
    ----
    * No roots means the single root ``"."``.
    * Roots must not overlap.
    * Excludes are directories, never ``.proto`` files.
    * An exclude equal to a root would exclude everything and is rejected.
    * Each exclude must lie in exactly one root.

    Examples
    --------
    >>> resolve_root_to_excludes(["proto", "vendor"], ["proto/a", "vendor/b/c", "proto/z"])
    {'proto': ('a', 'z'), 'vendor': ('b/c',)}
    >>> resolve_root_to_excludes([], ["."])
    Traceback (most recent call last):
    ...
    bufconfig.domain.errors.ValidationError: . is both a root and exclude, which means the entire root is excluded, which is not valid
    """

    normalized_roots = _normalize_unique(roots or ["."], "root")
    normalized_excludes = _normalize_unique(excludes, "exclude")
    for index, root in enumerate(normalized_roots):
        for other in normalized_roots[index + 1 :]:
            if normalpath.equals_or_contains_path(root, other) or normalpath.equals_or_contains_path(other, root):
                raise ValidationError(f"roots {root} and {other} overlap, which is not valid")
    root_to_excludes: dict[str, list[str]] = {root: [] for root in normalized_roots}
    for exclude in normalized_excludes:
        if normalpath.ext(exclude) == PROTO_EXT:
            raise ValidationError(f"excludes can only be directories but file {exclude} discovered")
        if exclude in root_to_excludes:
            raise ValidationError(
                f"{exclude} is both a root and exclude, which means the entire root is excluded, which is not valid"
            )
        containing = [root for root in normalized_roots if normalpath.contains_path(root, exclude)]
        if not containing:
            raise ValidationError(f"exclude {exclude} is not contained in any root, which is not valid")
        if len(containing) > 1:
            raise InvariantError(f"exclude {exclude} is contained in multiple roots {containing}")
        root = containing[0]
        root_to_excludes[root].append(normalpath.rel(root, exclude))
    return {root: tuple(sorted(set(paths))) for root, paths in sorted(root_to_excludes.items())}


def _module_relative(dir_path: str, paths: Sequence[str], label: str) -> list[str]:
    normalized = _normalize_unique(paths, label)
    for path in normalized:
        if normalpath.ext(path) == PROTO_EXT:
            raise ValidationError(f"{label}s can only be directories but file {path} discovered")
        if path == dir_path:
            raise ValidationError(f"{label} path {path!r} is equal to module directory {dir_path!r}")
        if not normalpath.contains_path(dir_path, path):
            raise ValidationError(f"{label} path {path!r} does not reside within module directory {dir_path!r}")
    return normalized


def resolve_module_includes_excludes(
    dir_path: str, includes: Sequence[str], excludes: Sequence[str]
) -> tuple[tuple[str, ...], tuple[str, ...]]:
    """Validate v2 module includes/excludes and make them module relative.

    What
    ----
    Paths are written relative to the manifest and must lie strictly inside
    the module directory. Includes may not nest. When includes are present,
    every exclude must sit inside one of them, and an exclude that equals or
    contains an include makes that include redundant.

    Examples
    --------
    >>> resolve_module_includes_excludes("proto", ["proto/a"], ["proto/a/internal"])
    (('a',), ('a/internal',))
    >>> resolve_module_includes_excludes("proto", ["proto/a", "proto/a/b"], [])
    Traceback (most recent call last):
    ...
    bufconfig.domain.errors.ValidationError: include path 'proto/a' contains include path 'proto/a/b', 'proto/a/b' is redundant
    """

    dir_path = normalpath.normalize_and_validate(dir_path)
    normalized_includes = _module_relative(dir_path, includes, "include")
    normalized_excludes = _module_relative(dir_path, excludes, "exclude")
    for include in normalized_includes:
        for other in normalized_includes:
            if include != other and normalpath.contains_path(include, other):
                raise ValidationError(
                    f"include path {include!r} contains include path {other!r}, {other!r} is redundant"
                )
    if normalized_includes:
        for exclude in normalized_excludes:
            for include in normalized_includes:
                if exclude == include:
                    raise ValidationError(f"{exclude!r} is both an include path and an exclude path")
                if normalpath.contains_path(exclude, include):
                    raise ValidationError(
                        f"exclude path {exclude!r} contains include path {include!r}, "
                        f"include path {include!r} is redundant"
                    )
            if not any(normalpath.contains_path(include, exclude) for include in normalized_includes):
                raise ValidationError(f"exclude path {exclude!r} is not contained in any include path")
    return (
        tuple(sorted(normalpath.rel(dir_path, path) for path in normalized_includes)),
        tuple(sorted(normalpath.rel(dir_path, path) for path in normalized_excludes)),
    )


@dataclass(frozen=True, slots=True)
class ResolvedCheckPaths:
    """Outcome of :func:`resolve_check_paths`."""

    disabled: bool
    ignore: tuple[str, ...] = ()
    ignore_only: Mapping[str, tuple[str, ...]] | None = None


def _rebase(
    dir_path: str, path: str, *, require_contained: bool, label: str
) -> str | None:
    """Return *path* relative to *dir_path*, ``None`` when dropped."""

    if normalpath.equals_or_contains_path(dir_path, path):
        return normalpath.rel(dir_path, path)
    if require_contained:
        raise ValidationError(f"{label} path {path!r} is not within module directory {dir_path!r}")
    return None


def resolve_check_paths(
    dir_path: str,
    ignore: Sequence[str],
    ignore_only: Mapping[str, Sequence[str]],
    *,
    require_contained: bool,
    label: str,
) -> ResolvedCheckPaths:
    """Rebase lint/breaking ignore paths onto a module directory.

    Why
    ----
    An ignore entry equal to the module directory disables the whole check
    category for that module, whatever else the block says. Other entries are
    rebased onto the module. Paths outside the module are an error in a
    module's own block (``require_contained``) and are silently irrelevant in an
    inherited top-level block, which applies to many modules at once.

    Examples
    --------
    >>> resolve_check_paths(".", ["."], {}, require_contained=True, label="lint ignore").disabled
    True
    >>> resolved = resolve_check_paths(
    ...     "foo", ["foo/a.proto", "bar/b.proto"], {"FIELD_LOWER_SNAKE_CASE": ["foo/x"]},
    ...     require_contained=False, label="lint ignore")
    >>> resolved.ignore, dict(resolved.ignore_only)
    (('a.proto',), {'FIELD_LOWER_SNAKE_CASE': ('x',)})
    """

    dir_path = normalpath.normalize_and_validate(dir_path)
    normalized_ignore = _normalize_unique(ignore, label)
    if dir_path in normalized_ignore:
        return ResolvedCheckPaths(disabled=True)
    rebased: list[str] = []
    for path in normalized_ignore:
        relative = _rebase(dir_path, path, require_contained=require_contained, label=label)
        if relative is not None:
            rebased.append(relative)
    rebased_only: dict[str, tuple[str, ...]] = {}
    for rule in sorted(ignore_only):
        paths: list[str] = []
        for path in _normalize_unique(ignore_only[rule], f"{label}_only {rule}"):
            relative = _rebase(dir_path, path, require_contained=require_contained, label=f"{label}_only")
            if relative is not None:
                paths.append(relative)
        if paths:
            rebased_only[rule] = tuple(sorted(paths))
    return ResolvedCheckPaths(False, tuple(sorted(rebased)), rebased_only)


def collapse_per_module(blocks: Sequence[Mapping[str, Any]]) -> tuple[Mapping[str, Any] | None, list[Mapping[str, Any] | None]]:
    """Decide between one top-level block and per-module blocks.

    Why
    ----
    Files are written in the most concise form that means the same thing.
    When every module serializes to the same block, that block moves to the
    top level and modules inherit it; otherwise each module keeps its own.

    Parameters
    ----------
    blocks:
        The serialized (manifest-relative) block of each module, in module
        order. An empty mapping means "default settings".

    Returns
    -------
    tuple
        ``(top_level, per_module)``. Empty blocks are returned as ``None``.

    Examples
    --------
    >>> collapse_per_module([{"use": ["STANDARD"]}, {"use": ["STANDARD"]}])
    ({'use': ['STANDARD']}, [None, None])
    >>> collapse_per_module([{"use": ["STANDARD"]}, {}])
    (None, [{'use': ['STANDARD']}, None])
    """

    distinct: list[Mapping[str, Any]] = []
    for block in blocks:
        if block not in distinct:
            distinct.append(block)
    if len(distinct) <= 1:
        top = distinct[0] if distinct and distinct[0] else None
        return top, [None] * len(blocks)
    return None, [block or None for block in blocks]
