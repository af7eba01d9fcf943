from __future__ import annotations

import pytest
from hypothesis import given
from hypothesis import strategies as st

from bufconfig.domain import normalpath
from bufconfig.domain.errors import ValidationError

_SEGMENT = st.text(alphabet="abc.", min_size=1, max_size=4)
_RAW_PATH = st.lists(st.one_of(_SEGMENT, st.sampled_from(["", ".", ".."])), max_size=6).map("/".join)
_RELATIVE = st.lists(st.text(alphabet="abc", min_size=1, max_size=3), max_size=4).map(
    lambda parts: "/".join(parts) or "."
)


@given(_RAW_PATH)
def test_normalize_is_idempotent(path: str) -> None:
    once = normalpath.normalize(path)
    assert normalpath.normalize(once) == once


@given(_RELATIVE, _RELATIVE)
def test_join_stays_inside_base(base: str, child: str) -> None:
    joined = normalpath.join(base, child)
    assert normalpath.equals_or_contains_path(base, joined)
    assert normalpath.rel(base, joined) == normalpath.normalize(child)


@given(_RELATIVE)
def test_ancestors_end_at_root(path: str) -> None:
    chain = list(normalpath.ancestors(path))
    assert chain[0] == normalpath.normalize(path)
    assert chain[-1] == "."
    for child, parent in zip(chain, chain[1:]):
        assert normalpath.contains_path(parent, child)


@pytest.mark.parametrize("path", ["/abs", "..", "../x", "a/../../b"])
def test_validate_rejects_escaping_paths(path: str) -> None:
    with pytest.raises(ValidationError):
        normalpath.normalize_and_validate(path)


def test_backslashes_become_slashes() -> None:
    assert normalpath.normalize("a\\b\\c.proto") == "a/b/c.proto"


def test_containment_is_component_wise() -> None:
    assert normalpath.contains_path("foo", "foo/bar")
    assert not normalpath.contains_path("foo", "foo")
    assert not normalpath.equals_or_contains_path("foo", "foobar/baz")
    assert normalpath.contains_path(".", "foo")


def test_components_and_ext() -> None:
    assert normalpath.components(".") == []
    assert normalpath.components("a/b/c.proto") == ["a", "b", "c.proto"]
    assert normalpath.ext("a/b/c.proto") == ".proto"
    assert normalpath.base("a/b/c.proto") == "c.proto"
    assert normalpath.dir_name("a/b/c.proto") == "a/b"
    assert normalpath.dir_name("c.proto") == "."
