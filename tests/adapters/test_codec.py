"""Document codec: strict YAML, optional JSON, canonical output."""

from __future__ import annotations

import pytest

from bufconfig.adapters.codec import decode_document, encode_document
from bufconfig.domain.errors import InvalidFormat


def test_duplicate_keys_are_rejected() -> None:
    with pytest.raises(InvalidFormat, match="found duplicate key 'version'"):
        decode_document(b"version: v1\nversion: v2\n")


def test_nested_duplicate_keys_are_rejected() -> None:
    with pytest.raises(InvalidFormat, match="duplicate key 'use'"):
        decode_document(b"version: v2\nlint:\n  use: []\n  use: []\n")


def test_lenient_decode_keeps_last_duplicate() -> None:
    assert decode_document(b"version: v1\nversion: v2\n", strict=False) == {"version": "v2"}


def test_invalid_yaml_carries_path() -> None:
    with pytest.raises(InvalidFormat) as excinfo:
        decode_document(b"version: [v1\n", path="proto/buf.yaml")
    assert excinfo.value.path == "proto/buf.yaml"
    assert excinfo.value.message.startswith("could not parse YAML")


def test_invalid_utf8() -> None:
    with pytest.raises(InvalidFormat, match="invalid UTF-8"):
        decode_document(b"version: \xff\n")


def test_json_only_when_allowed() -> None:
    assert decode_document(b'{"version": "v2"}', allow_json=True) == {"version": "v2"}
    with pytest.raises(InvalidFormat, match="could not parse YAML or JSON"):
        decode_document(b"{version: [", allow_json=True)


def test_json_null_is_empty() -> None:
    assert decode_document(b"null", allow_json=True) == {}


def test_encode_indents_sequences_and_keeps_order() -> None:
    document = {"version": "v2", "modules": [{"path": "proto", "excludes": ["proto/a"]}], "deps": ("b",)}
    assert encode_document(document) == (
        b"version: v2\n"
        b"modules:\n"
        b"  - path: proto\n"
        b"    excludes:\n"
        b"      - proto/a\n"
        b"deps:\n"
        b"  - b\n"
    )


def test_encode_prepends_header() -> None:
    assert encode_document({"version": "v2"}, header="# header\n") == b"# header\nversion: v2\n"


def test_encode_does_not_wrap_long_values() -> None:
    value = "x" * 200 + " " + "y" * 200
    assert encode_document({"opt": value}).count(b"\n") == 1

