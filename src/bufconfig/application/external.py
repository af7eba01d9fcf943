"""Strict access to decoded configuration documents.

Purpose
-------
Decoders must reject unknown fields and values of the wrong type with an error
that names the offending field. :class:`ExternalObject` wraps one decoded
mapping, checks its keys against an allow-list on construction, and exposes
typed getters that resolve scalar-or-list fields into lists at the boundary.

Contents
--------
* :class:`ExternalObject` – the strict reader.
* :func:`omit_empty` – drop empty values when building output documents.
"""

from __future__ import annotations

from typing import Any, Iterable, Mapping

from ..domain.errors import InvalidFormat


def _type_name(value: Any) -> str:
    return type(value).__name__


class ExternalObject:
    """Strict, read-only view over one mapping of a decoded document.

    Why
    ----
    Each schema version accepts a fixed set of keys; a misspelled key must fail
    loudly instead of being ignored. Values typed as "string or list of
    strings" on the wire are returned as lists so the ambiguity never leaves
    the decoder.

    Parameters
    ----------
    data:
        The decoded mapping; ``None`` is treated as empty.
    allowed:
        Keys this shape accepts.
    where:
        Dotted location used as a prefix in error messages (``plugins[0]``).

    Examples
    --------
    >>> obj = ExternalObject({"out": "gen", "opt": "a=b"}, allowed={"out", "opt"})
    >>> obj.string("out"), obj.string_or_strings("opt")
    ('gen', ['a=b'])
    >>> ExternalObject({"outt": "gen"}, allowed={"out"})
    Traceback (most recent call last):
    ...
    bufconfig.domain.errors.InvalidFormat: unknown field "outt"
    """

    __slots__ = ("_data", "_where")

    def __init__(self, data: Any, *, allowed: Iterable[str], where: str = "") -> None:
        if data is None:
            data = {}
        if not isinstance(data, Mapping):
            raise InvalidFormat(f"{where or 'document'}: expected a mapping, got {_type_name(data)}")
        allowed = set(allowed)
        for key in data:
            if not isinstance(key, str):
                raise InvalidFormat(f"{where or 'document'}: expected string keys, got {key!r}")
            if key not in allowed:
                location = f" in {where}" if where else ""
                raise InvalidFormat(f'unknown field "{key}"{location}')
        self._data: Mapping[str, Any] = data
        self._where = where

    def _field(self, key: str) -> str:
        return f"{self._where}.{key}" if self._where else key

    def _get(self, key: str) -> Any:
        return self._data.get(key)

    def _expect(self, key: str, value: Any, expected: str) -> InvalidFormat:
        return InvalidFormat(f"{self._field(key)}: expected {expected}, got {_type_name(value)}")

    @property
    def where(self) -> str:
        return self._where

    def keys(self) -> list[str]:
        return [key for key, value in self._data.items() if value is not None]

    def has(self, key: str) -> bool:
        return self._get(key) is not None

    def is_empty(self) -> bool:
        return not self.keys()

    def raw(self, key: str) -> Any:
        return self._get(key)

    def string(self, key: str, default: str = "") -> str:
        value = self._get(key)
        if value is None:
            return default
        if not isinstance(value, str):
            raise self._expect(key, value, "a string")
        return value

    def boolean(self, key: str, default: bool = False) -> bool:
        value = self._get(key)
        if value is None:
            return default
        if not isinstance(value, bool):
            raise self._expect(key, value, "a boolean")
        return value

    def integer(self, key: str) -> int | None:
        value = self._get(key)
        if value is None:
            return None
        if isinstance(value, bool) or not isinstance(value, int):
            raise self._expect(key, value, "an integer")
        return value

    def strings(self, key: str) -> list[str]:
        value = self._get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise self._expect(key, value, "a list of strings")
        for item in value:
            if not isinstance(item, str):
                raise self._expect(key, item, "a list of strings")
        return list(value)

    def string_or_strings(self, key: str) -> list[str]:
        """Return a scalar string as a one-element list, a list unchanged."""

        value = self._get(key)
        if isinstance(value, str):
            return [value]
        return self.strings(key)

    def strings_map(self, key: str) -> dict[str, list[str]]:
        value = self._get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise self._expect(key, value, "a mapping of lists of strings")
        result: dict[str, list[str]] = {}
        for name, paths in value.items():
            nested = ExternalObject({name: paths}, allowed={name}, where=self._field(key))
            result[str(name)] = nested.strings(name)
        return result

    def mapping(self, key: str) -> dict[str, Any]:
        value = self._get(key)
        if value is None:
            return {}
        if not isinstance(value, Mapping):
            raise self._expect(key, value, "a mapping")
        return {str(name): item for name, item in value.items()}

    def object(self, key: str, allowed: Iterable[str]) -> "ExternalObject":
        return ExternalObject(self._get(key), allowed=allowed, where=self._field(key))

    def objects(self, key: str, allowed: Iterable[str]) -> list["ExternalObject"]:
        value = self._get(key)
        if value is None:
            return []
        if not isinstance(value, list):
            raise self._expect(key, value, "a list")
        allowed = tuple(allowed)
        return [
            ExternalObject(item, allowed=allowed, where=f"{self._field(key)}[{index}]")
            for index, item in enumerate(value)
        ]


def omit_empty(document: Mapping[str, Any]) -> dict[str, Any]:
    """Drop keys whose values are empty, ``None`` or ``False``, keeping order.

    >>> omit_empty({"a": "", "b": [], "c": False, "d": 0, "e": "x"})
    {'e': 'x'}
    """

    return {key: value for key, value in document.items() if value not in (None, "", [], {}, (), False, 0)}
