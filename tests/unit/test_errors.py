from __future__ import annotations

from bufconfig.domain.errors import (
    ConfigError,
    FileVersionError,
    InvalidFormat,
    InvariantError,
    NoFileVersion,
    NotFound,
    UnknownFileVersion,
    UnsupportedFileVersion,
    ValidationError,
    WriteError,
)


def test_error_hierarchy() -> None:
    assert issubclass(InvalidFormat, ConfigError)
    assert issubclass(ValidationError, ConfigError)
    assert issubclass(NotFound, ConfigError)
    assert issubclass(WriteError, ConfigError)
    for version_error in (NoFileVersion, UnknownFileVersion, UnsupportedFileVersion):
        assert issubclass(version_error, FileVersionError)
        assert issubclass(version_error, ValidationError)


def test_path_prefixes_message() -> None:
    assert str(ValidationError("bad root", path="proto/buf.yaml")) == "proto/buf.yaml: bad root"
    assert str(ValidationError("bad root")) == "bad root"


def test_with_path_keeps_class_and_fields() -> None:
    error = NoFileVersion("buf.yaml", "v2")
    bound = error.with_path("a/buf.yaml")
    assert isinstance(bound, NoFileVersion)
    assert bound.path == "a/buf.yaml"
    assert bound.suggested == "v2"
    assert bound.message == error.message


def test_with_path_keeps_innermost_path() -> None:
    error = InvalidFormat("oops", path="inner.yaml")
    assert error.with_path("outer.yaml") is error


def test_invariant_error_asks_for_report() -> None:
    assert "please report it" in str(InvariantError("unexpected file version v3"))
