"""Domain-level exception hierarchy.

Purpose
-------
Expose the stable error taxonomy shared by decoders, the serializer, the
terminator, and consuming applications. The hierarchy lives in the domain layer
so every outer layer can raise and catch it without import cycles.

Contents
--------
* :class:`ConfigError` – umbrella base class; optionally carries the file path.
* :class:`InvalidFormat` – malformed YAML/JSON, wrong field types, unknown keys.
* :class:`ValidationError` – syntactically valid input violating a constraint.
* :class:`FileVersionError` and its subclasses – ``version`` field problems.
* :class:`NotFound` – requested configuration file absent at a prefix.
* :class:`InvariantError` – bug-class failures that user input cannot fix.
* :class:`WriteError` – failure while encoding or storing an output file.

System Role
-----------
User-facing errors (:class:`InvalidFormat`, :class:`ValidationError`) are meant
for direct display. :class:`NotFound` is a non-fatal signal for callers that
climb directory trees. :class:`InvariantError` indicates a defect in this
package and should be reported rather than fixed in configuration.
"""

from __future__ import annotations


class ConfigError(Exception):
    """Base type for all exceptions emitted by ``bufconfig``.

    Why
    ----
    Provide a single catch-all type for consumers that do not need fine-grained
    handling, while keeping the originating file path available.

    What
    ----
    Stores the message and an optional ``path``. ``str()`` renders
    ``"<path>: <message>"`` when the path is known.

    Examples
    --------
    >>> str(ConfigError("bad thing", path="proto/buf.yaml"))
    'proto/buf.yaml: bad thing'
    >>> str(ConfigError("bad thing"))
    'bad thing'
    """

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.path = path

    def __str__(self) -> str:
        if self.path:
            return f"{self.path}: {self.message}"
        return self.message

    def with_path(self, path: str) -> "ConfigError":
        """Return a copy of this error of the same class bound to *path*.

        An error that already names a path keeps it; the innermost file is the
        most precise location.
        """

        if self.path:
            return self
        clone = type(self).__new__(type(self))
        ConfigError.__init__(clone, self.message, path=path)
        clone.__dict__.update({k: v for k, v in self.__dict__.items() if k not in ("message", "path")})
        return clone


class InvalidFormat(ConfigError):
    """Raised when an input artifact cannot be parsed into the expected shape.

    Typical Sources
    ---------------
    :mod:`yaml` and :mod:`json` decoding, unknown fields rejected by the strict
    reader, and fields holding a value of the wrong type.
    """


class ValidationError(ConfigError):
    """Signifies that a syntactically valid configuration failed semantic checks.

    Examples include mutually exclusive keys, missing required values, paths
    escaping their module directory, and out-of-range revisions.
    """


class FileVersionError(ValidationError):
    """Base for problems with the ``version`` field of a configuration file."""


class NoFileVersion(FileVersionError):
    """The ``version`` field is missing from a file kind that requires it."""

    def __init__(self, file_name: str, suggested: str, *, path: str | None = None) -> None:
        super().__init__(
            f'"version" is not set in {file_name}, add "version: {suggested}" to the top of the file',
            path=path,
        )
        self.file_name = file_name
        self.suggested = suggested


class UnknownFileVersion(FileVersionError):
    """The ``version`` field holds a string that names no known schema."""


class UnsupportedFileVersion(FileVersionError):
    """The version is known but not valid for this file kind (e.g. v2 ``buf.work.yaml``)."""


class NotFound(ConfigError):
    """Represents a configuration file missing at the requested bucket prefix.

    Why
    ----
    Callers searching upward for a controlling workspace treat absence as a
    signal to keep climbing rather than as a failure.
    """


class InvariantError(ConfigError):
    """An internal precondition failed; this is a bug, not a configuration problem."""

    def __init__(self, message: str, *, path: str | None = None) -> None:
        super().__init__(f"{message} (this is a bug in bufconfig, please report it)", path=path)


class WriteError(ConfigError):
    """Encoding or storing an output file failed; the destination is left untouched."""
