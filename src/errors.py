"""
Typed exceptions for imghash.

Callers can branch on the concrete type:
- UnreadableImageError when image bytes or files cannot be decoded.
- MalformedHashError when an encoded hash is not valid for the active mode.
- InvalidCompositeInputError when a composite hash cannot be computed.
"""

from __future__ import annotations


class ImghashError(Exception):
    """Base class for all imghash errors."""


class UnreadableImageError(ImghashError):
    """Raised when an image source cannot be read or decoded."""


class MalformedHashError(ImghashError, ValueError):
    """Raised when a value is not a valid encoded hash for the configured mode."""


class InvalidCompositeInputError(ImghashError):
    """Raised when a composite (full/left/right) hash cannot be produced."""


class ConfigLoadError(ImghashError):
    """Raised when a configuration file or value is missing, unreadable, or invalid."""


class InvalidPathError(ImghashError):
    """Raised when a provided path does not exist or is not a directory."""


class InternalError(ImghashError):
    """Raised for unexpected internal failures to be reported gracefully."""
