"""Error taxonomy shared by the registry, resolver and rewriter layers."""

from __future__ import annotations

from typing import Optional


class ModBumpError(Exception):
    """Base class for every failure the tool reports."""


class NotFoundError(ModBumpError):
    """The registry reports that a module or package does not exist."""


class ProtocolError(ModBumpError):
    """A registry answered with a non-success status other than not-found."""


class TransportError(ModBumpError):
    """The registry could not be reached at all (DNS, connection, I/O)."""


class ParseError(ModBumpError):
    """A manifest, version list or source file is malformed."""

    def __init__(self, message: str, filename: Optional[str] = None, line: Optional[int] = None):
        self.filename = filename
        self.line = line
        if filename and line:
            message = f"{filename}:{line}: {message}"
        elif filename:
            message = f"{filename}: {message}"
        super().__init__(message)


class LimitExceededError(ModBumpError):
    """The major version chain is longer than the configured cap."""


class InvalidVersionError(ModBumpError):
    """A version string is not a valid semantic version."""


class InvalidPathError(ModBumpError):
    """A module or package path is malformed."""


class NoVersionsError(ModBumpError):
    """No published version qualifies under the active filters."""


class IncompatibleImportError(ModBumpError):
    """A package path encodes a major version its module never published.

    Raised for legacy releases that predate semantic import versioning;
    ``suggestion`` holds the correctly encoded spec.
    """

    def __init__(self, major: str, suggestion: str):
        self.major = major
        self.suggestion = suggestion
        super().__init__(f"{major} doesn't support import versioning; use {suggestion}")


class ConfigurationError(ModBumpError):
    """The environment or configuration file cannot be used."""


class SkipImport(Exception):
    """Raised by a replace function to leave one import occurrence untouched."""
