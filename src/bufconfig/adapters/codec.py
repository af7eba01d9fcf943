"""YAML/JSON document codec.

Purpose
-------
Turn configuration bytes into plain Python data and back. The adapter wraps
``yaml`` and ``json`` so error handling, duplicate-key rejection, logging and
the canonical output style live in one place.

Contents
--------
* :func:`decode_document` – parse YAML (or JSON when allowed) into Python data.
* :func:`encode_document` – emit canonical YAML with an optional header.

System Role
-----------
Used by the version resolver and every file decoder/encoder in
:mod:`bufconfig.application`. Nothing here knows about schema versions.
"""

from __future__ import annotations

import json
from collections.abc import Hashable
from typing import Any, Mapping

import yaml
from yaml.representer import SafeRepresenter

from ..domain.errors import InvalidFormat
from ..observability import log_debug, log_error


class _StrictLoader(yaml.SafeLoader):
    """Safe loader that refuses duplicate mapping keys."""

    def construct_mapping(self, node: yaml.MappingNode, deep: bool = False) -> dict[Any, Any]:
        seen: set[Any] = set()
        for key_node, _value_node in node.value:
            key = self.construct_object(key_node, deep=deep)
            if not isinstance(key, Hashable):
                continue
            if key in seen:
                raise yaml.constructor.ConstructorError(
                    "while constructing a mapping",
                    node.start_mark,
                    f"found duplicate key {key!r}",
                    key_node.start_mark,
                )
            seen.add(key)
        return super().construct_mapping(node, deep=deep)


class _IndentedDumper(yaml.SafeDumper):
    """Safe dumper that indents block sequences under their parent key."""

    def increase_indent(self, flow: bool = False, indentless: bool = False) -> None:
        return super().increase_indent(flow, False)


_IndentedDumper.add_representer(tuple, SafeRepresenter.represent_list)


def decode_document(
    data: bytes, *, allow_json: bool = False, strict: bool = True, path: str | None = None
) -> Any:
    """Parse *data* into Python objects.

    Why
    ----
    Files in storage are YAML; configuration passed on the command line may be
    JSON. YAML parsing is strict about duplicate keys so a repeated key cannot
    silently shadow an earlier one.

    Parameters
    ----------
    data:
        Raw document bytes (UTF-8).
    allow_json:
        Try JSON before YAML.
    strict:
        Reject duplicate mapping keys. Turned off only for best-effort version
        sniffing, where the last occurrence wins.
    path:
        Originating path for error messages and log events.

    Returns
    -------
    Any
        Parsed data; an empty document yields an empty ``dict``.

    Raises
    ------
    InvalidFormat
        When the bytes are not valid UTF-8 or not valid YAML/JSON.

    Examples
    --------
    >>> decode_document(b"version: v2\\n")
    {'version': 'v2'}
    >>> decode_document(b'{"version": "v1"}', allow_json=True)
    {'version': 'v1'}
    >>> decode_document(b"")
    {}
    >>> decode_document(b"version: v1\\nversion: v2\\n", strict=False)
    {'version': 'v2'}
    """

    try:
        text = data.decode("utf-8")
    except UnicodeDecodeError as exc:
        log_error("config_file_invalid", path=path, error=str(exc))
        raise InvalidFormat(f"invalid UTF-8: {exc}", path=path) from exc
    if allow_json:
        try:
            parsed = json.loads(text)
        except json.JSONDecodeError:
            log_debug("config_document_not_json", path=path)
        else:
            return {} if parsed is None else parsed
    try:
        parsed = yaml.load(text, Loader=_StrictLoader if strict else yaml.SafeLoader)  # noqa: S506 - safe loaders
    except yaml.YAMLError as exc:
        log_error("config_file_invalid", path=path, error=str(exc))
        kind = "YAML or JSON" if allow_json else "YAML"
        raise InvalidFormat(f"could not parse {kind}: {exc}", path=path) from exc
    return {} if parsed is None else parsed


def encode_document(document: Mapping[str, Any], *, header: str = "") -> bytes:
    """Render *document* as canonical YAML, keeping key insertion order.

    ``header`` is prepended verbatim (comment lines ending in a newline).

    >>> encode_document({"version": "v2", "deps": ["b", "a"]}).decode()
    'version: v2\\ndeps:\\n  - b\\n  - a\\n'
    """

    body = yaml.dump(
        dict(document),
        Dumper=_IndentedDumper,
        sort_keys=False,
        default_flow_style=False,
        allow_unicode=True,
        width=float("inf"),
    )
    return (header + body).encode("utf-8")
