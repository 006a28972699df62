"""Argument validation exceptions for neo-acl.

Raised by the public API before any storage call is issued, so a failed
validation never leaves a partial state change behind.
"""

from .base import NeoAclError


class ValidationError(NeoAclError):
    """Base exception for malformed arguments."""
    pass


class InvalidArgumentError(ValidationError):
    """Raised when an argument has the wrong shape or element type."""
    pass


class ReservedKeyError(ValidationError):
    """Raised when a mutation would write the reserved key name."""
    pass
