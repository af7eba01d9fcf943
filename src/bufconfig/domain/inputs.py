"""Generation inputs declared by v2 generation manifests."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import Final, Mapping, Optional

from .errors import ValidationError


class InputType(Enum):
    GIT_REPO = "git_repo"
    MODULE = "module"
    DIRECTORY = "directory"
    PROTO_FILE = "proto_file"
    TARBALL = "tarball"
    ZIP_ARCHIVE = "zip_archive"
    BINARY_IMAGE = "binary_image"
    JSON_IMAGE = "json_image"
    TEXT_IMAGE = "text_image"
    YAML_IMAGE = "yaml_image"


# Wire key order used when writing an input.
INPUT_TYPE_KEYS: Final[tuple[str, ...]] = (
    "module",
    "directory",
    "proto_file",
    "tarball",
    "zip_archive",
    "binary_image",
    "json_image",
    "text_image",
    "yaml_image",
    "git_repo",
)

COMPRESSIONS: Final[frozenset[str]] = frozenset({"none", "gzip", "gz", "zstd", "zst"})

ALLOWED_OPTIONS: Final[Mapping[InputType, frozenset[str]]] = MappingProxyType(
    {
        InputType.GIT_REPO: frozenset(
            {"branch", "commit", "tag", "ref", "depth", "recurse_submodules", "subdir"}
        ),
        InputType.MODULE: frozenset(),
        InputType.DIRECTORY: frozenset(),
        InputType.PROTO_FILE: frozenset({"include_package_files"}),
        InputType.TARBALL: frozenset({"compression", "strip_components", "subdir"}),
        InputType.ZIP_ARCHIVE: frozenset({"strip_components", "subdir"}),
        InputType.BINARY_IMAGE: frozenset({"compression"}),
        InputType.JSON_IMAGE: frozenset({"compression"}),
        InputType.TEXT_IMAGE: frozenset({"compression"}),
        InputType.YAML_IMAGE: frozenset({"compression"}),
    }
)


@dataclass(frozen=True, slots=True)
class GenerateInputConfig:
    """One input to generate from, with the options valid for its type.

    Options that do not apply to ``type`` must stay at their empty value; the
    constructor names the first offending option otherwise.
    """

    type: InputType
    location: str
    compression: str = ""
    strip_components: Optional[int] = None
    subdir: str = ""
    branch: str = ""
    commit: str = ""
    tag: str = ""
    ref: str = ""
    depth: Optional[int] = None
    recurse_submodules: bool = False
    include_package_files: bool = False
    types: tuple[str, ...] = ()
    exclude_types: tuple[str, ...] = ()
    paths: tuple[str, ...] = ()
    exclude_paths: tuple[str, ...] = ()

    def __post_init__(self) -> None:
        for name in ("types", "exclude_types", "paths", "exclude_paths"):
            object.__setattr__(self, name, tuple(getattr(self, name)))
        if not self.location:
            raise ValidationError(f"empty location for {self.type.value.replace('_', ' ')}")
        if self.commit and self.tag:
            raise ValidationError("commit and tag options cannot be used at the same time; use one or the other")
        if self.compression and self.compression not in COMPRESSIONS:
            raise ValidationError(f"unknown compression {self.compression!r}, expected one of {sorted(COMPRESSIONS)}")
        if self.strip_components is not None and self.strip_components < 0:
            raise ValidationError(f"strip_components must not be negative, got {self.strip_components}")
        if self.depth is not None and self.depth <= 0:
            raise ValidationError(f"depth must be positive, got {self.depth}")
        allowed = ALLOWED_OPTIONS[self.type]
        for option in self.set_options():
            if option not in allowed:
                raise ValidationError(f"option {option} is not allowed for {self.type.value} input")

    def set_options(self) -> tuple[str, ...]:
        """Names of the type-specific options that hold a non-empty value."""

        values = {
            "compression": bool(self.compression),
            "strip_components": self.strip_components is not None,
            "subdir": bool(self.subdir),
            "branch": bool(self.branch),
            "commit": bool(self.commit),
            "tag": bool(self.tag),
            "ref": bool(self.ref),
            "depth": self.depth is not None,
            "recurse_submodules": self.recurse_submodules,
            "include_package_files": self.include_package_files,
        }
        return tuple(name for name, is_set in values.items() if is_set)
