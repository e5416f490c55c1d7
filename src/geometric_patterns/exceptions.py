"""Exception classes for geometric pattern search and discovery."""

from __future__ import annotations


class GeometricPatternsError(Exception):
    """Base exception for all geometric-patterns errors."""

    pass


class InvalidArgumentError(GeometricPatternsError, ValueError):
    """Raised when an argument is malformed, e.g. an empty query or a non-positive duration."""

    pass


class PreconditionViolatedError(GeometricPatternsError, RuntimeError):
    """Raised when an input breaks an invariant an algorithm depends on."""

    pass


class ConfigError(InvalidArgumentError):
    """Raised when a configuration file or value is invalid."""

    pass
