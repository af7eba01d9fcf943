"""Lock-file dependency keys.

Purpose
-------
Pin each dependency of a workspace to a commit and a content digest. Legacy
lock files may omit the digest; it is then fetched on demand through an
injected resolver keyed by the registry remote and the commit ID.

Contents
--------
* :data:`DigestResolver` – ``(remote, commit_id) -> digest string``.
* :class:`ModuleKey` – one pinned dependency.
* :class:`BufLockFile` – the ordered, duplicate-free dependency set.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Optional

from .errors import ValidationError
from .file_version import FileVersion
from .refs import Digest, ModuleFullName

DigestResolver = Callable[[str, str], str]


@dataclass(frozen=True, slots=True)
class ModuleKey:
    """A dependency pinned by commit and (possibly lazily resolved) digest."""

    full_name: ModuleFullName
    commit_id: str = ""
    stored_digest: Optional[Digest] = None
    resolver: Optional[DigestResolver] = field(default=None, compare=False, repr=False)

    def __post_init__(self) -> None:
        if not self.commit_id and self.stored_digest is None:
            raise ValidationError(f"module {self.full_name} must specify a commit or a digest")

    def digest(self) -> Digest:
        """Return the pinned digest, asking the resolver when the file had none.

        Raises
        ------
        ValidationError
            When no digest is stored and no resolver is available, or the
            resolver returns a malformed digest.
        """

        if self.stored_digest is not None:
            return self.stored_digest
        if self.resolver is None or not self.commit_id:
            raise ValidationError(f"no digest specified for module {self.full_name}")
        return Digest.parse(self.resolver(self.full_name.registry, self.commit_id))


@dataclass(frozen=True, slots=True)
class BufLockFile:
    """Lock file contents: dependencies sorted by module name, no duplicates."""

    file_version: FileVersion
    deps: tuple[ModuleKey, ...] = ()

    def __post_init__(self) -> None:
        deps = sorted(self.deps, key=lambda dep: str(dep.full_name))
        seen: set[str] = set()
        for dep in deps:
            name = str(dep.full_name)
            if name in seen:
                raise ValidationError(f"duplicate module {name!r} attempted to be added to lock file")
            seen.add(name)
        object.__setattr__(self, "deps", tuple(deps))
