"""Opaque identity parsers for modules, plugins and digests.

Purpose
-------
Configuration files reference registry modules (``buf.build/acme/weather``),
pinned module references (``buf.build/acme/weather:v1``), remote plugins and
content digests. The full grammar of those identities lives with the registry
client; this module provides just enough parsing to validate and order them.

Contents
--------
* :class:`ModuleFullName` – ``registry/owner/name``.
* :class:`ModuleRef` – a full name plus an optional ``:ref`` suffix.
* :class:`PluginRef` – a remote plugin ``registry/owner/name[:version]``.
* :class:`Digest` – ``<type>:<hex>`` with deprecated-prefix detection.
* :func:`is_remote_plugin_reference` – heuristic used by v1 ``plugin`` keys.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Final

from .errors import ValidationError

_COMPONENT = re.compile(r"^[A-Za-z0-9][A-Za-z0-9._-]*$")
_HEX = re.compile(r"^[0-9a-f]+$")

DIGEST_TYPES: Final[frozenset[str]] = frozenset({"shake256", "b4", "b5"})
DEPRECATED_DIGEST_PREFIXES: Final[tuple[str, ...]] = ("b1-", "b3-")


@dataclass(frozen=True, slots=True, order=True)
class ModuleFullName:
    """Fully qualified module identity ``registry/owner/name``."""

    registry: str
    owner: str
    name: str

    def __str__(self) -> str:
        return f"{self.registry}/{self.owner}/{self.name}"

    @classmethod
    def parse(cls, value: str) -> "ModuleFullName":
        """Parse ``registry/owner/name``.

        >>> str(ModuleFullName.parse("buf.build/acme/weather"))
        'buf.build/acme/weather'
        """

        parts = value.split("/")
        if len(parts) != 3 or not all(_COMPONENT.match(part) for part in parts):
            raise ValidationError(f"invalid module name {value!r}: must be in the form registry/owner/name")
        return cls(*parts)


@dataclass(frozen=True, slots=True)
class ModuleRef:
    """A module name optionally pinned to a label, tag or commit."""

    full_name: ModuleFullName
    ref: str = ""

    def __str__(self) -> str:
        if self.ref:
            return f"{self.full_name}:{self.ref}"
        return str(self.full_name)

    @classmethod
    def parse(cls, value: str) -> "ModuleRef":
        """Parse ``registry/owner/name[:ref]``.

        The reference starts at the first ``:`` after the name and may itself
        contain slashes.

        >>> ModuleRef.parse("buf.build/acme/weather:v1").ref
        'v1'
        >>> ModuleRef.parse("buf.build/acme/weather:feature/x").ref
        'feature/x'
        """

        parts = value.split("/", 2)
        if len(parts) < 3:
            return cls(ModuleFullName.parse(value))
        registry, owner, rest = parts
        name, sep, ref = rest.partition(":")
        if sep and not ref:
            raise ValidationError(f"invalid module reference {value!r}: empty reference after ':'")
        return cls(ModuleFullName.parse(f"{registry}/{owner}/{name}"), ref)


@dataclass(frozen=True, slots=True)
class PluginRef:
    """Remote plugin identity ``registry/owner/name`` with an optional version."""

    registry: str
    owner: str
    name: str
    version: str = ""

    @property
    def full_name(self) -> str:
        return f"{self.registry}/{self.owner}/{self.name}"

    def __str__(self) -> str:
        if self.version:
            return f"{self.full_name}:{self.version}"
        return self.full_name

    @classmethod
    def parse(cls, value: str) -> "PluginRef":
        parts = value.split("/")
        if len(parts) != 3:
            raise ValidationError(f"invalid remote plugin reference {value!r}: must be in the form registry/owner/name[:version]")
        registry, owner, last = parts
        version = ""
        if ":" in last:
            last, version = last.split(":", 1)
        if not all(_COMPONENT.match(part) for part in (registry, owner, last)) or "." not in registry:
            raise ValidationError(f"invalid remote plugin reference {value!r}: must be in the form registry/owner/name[:version]")
        return cls(registry, owner, last, version)


def is_remote_plugin_reference(value: str) -> bool:
    """Return ``True`` when *value* parses as a remote plugin reference.

    >>> is_remote_plugin_reference("buf.build/protocolbuffers/go:v1.31.0")
    True
    >>> is_remote_plugin_reference("protoc-gen-go")
    False
    """

    try:
        PluginRef.parse(value)
    except ValidationError:
        return False
    return True


@dataclass(frozen=True, slots=True)
class Digest:
    """Content digest ``<type>:<hex>`` as pinned in lock files."""

    type: str
    value: str

    def __str__(self) -> str:
        return f"{self.type}:{self.value}"

    @classmethod
    def parse(cls, raw: str) -> "Digest":
        """Parse a digest string, rejecting the retired ``b1-``/``b3-`` forms.

        >>> str(Digest.parse("b5:ab12"))
        'b5:ab12'
        """

        for prefix in DEPRECATED_DIGEST_PREFIXES:
            if raw.startswith(prefix):
                raise ValidationError(
                    f'{prefix.rstrip("-")} digests are no longer supported, run "buf mod update" to update your buf.lock'
                )
        digest_type, sep, value = raw.partition(":")
        if not sep or digest_type not in DIGEST_TYPES:
            raise ValidationError(f"invalid digest {raw!r}: unknown digest type {digest_type!r}")
        if not _HEX.match(value):
            raise ValidationError(f"invalid digest {raw!r}: value must be lowercase hex")
        return cls(digest_type, value)
