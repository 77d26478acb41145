"""Application-level exception types for dialogturn."""

from __future__ import annotations


class DialogTurnError(Exception):
    """Base exception for dialogturn."""


class InvalidArgumentError(DialogTurnError, ValueError):
    """Raised when a required argument is missing or malformed."""


class DialogNotFoundError(DialogTurnError, LookupError):
    """Raised when no registry in scope resolves a dialog id."""


class DialogStackError(DialogTurnError):
    """Raised when a persisted dialog stack breaks the router's root-frame invariant."""


class StorageError(DialogTurnError):
    """Raised when a storage document cannot be read or written."""


class ConfigurationError(DialogTurnError):
    """Raised for invalid settings."""
