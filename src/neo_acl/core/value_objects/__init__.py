"""Value objects for neo-acl."""

from .string_set import (
    StringSet,
    StringSetInput,
    to_string_set,
    to_optional_string_set,
    to_identifier,
    ensure_writable_keys,
)

__all__ = [
    "StringSet",
    "StringSetInput",
    "to_string_set",
    "to_optional_string_set",
    "to_identifier",
    "ensure_writable_keys",
]
