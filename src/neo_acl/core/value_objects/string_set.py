"""String set normalization for the public API.

Every role, resource, permission and user argument may be given as a single
string or as a collection of strings. They are normalized here, once, into a
``frozenset`` so the rest of the engine only ever sees sets.
"""

from collections import abc
from typing import AbstractSet, Iterable, Optional, Union

from ...config.constants import RESERVED_KEY
from ..exceptions import InvalidArgumentError, ReservedKeyError

StringSetInput = Union[str, Iterable[str]]
StringSet = AbstractSet[str]


def to_string_set(
    value: StringSetInput,
    name: str = "value",
    allow_empty: bool = False,
) -> frozenset:
    """Normalize a string or collection of strings to a frozenset.

    Args:
        value: A single string or an iterable of strings
        name: Argument name used in error messages
        allow_empty: Whether an empty collection is acceptable

    Returns:
        Frozenset of the given strings

    Raises:
        InvalidArgumentError: On a non-string element, an empty string, a
            mapping or (unless allowed) an empty collection
    """
    if isinstance(value, str):
        items = (value,)
    elif isinstance(value, (bytes, dict)) or not isinstance(value, abc.Iterable):
        raise InvalidArgumentError(
            f"{name} must be a string or a collection of strings",
            details={"argument": name, "type": type(value).__name__},
        )
    else:
        items = tuple(value)

    for item in items:
        if not isinstance(item, str):
            raise InvalidArgumentError(
                f"{name} must only contain strings",
                details={"argument": name, "element_type": type(item).__name__},
            )
        if not item:
            raise InvalidArgumentError(
                f"{name} must not contain empty strings",
                details={"argument": name},
            )

    if not items and not allow_empty:
        raise InvalidArgumentError(
            f"{name} must not be empty",
            details={"argument": name},
        )

    return frozenset(items)


def to_optional_string_set(
    value: Optional[StringSetInput],
    name: str = "value",
) -> Optional[frozenset]:
    """Like to_string_set, but None means "not given" and an empty collection is kept."""
    if value is None:
        return None
    return to_string_set(value, name, allow_empty=True)


def to_identifier(value: str, name: str = "value") -> str:
    """Validate a single non-empty string identifier."""
    if not isinstance(value, str):
        raise InvalidArgumentError(
            f"{name} must be a string",
            details={"argument": name, "type": type(value).__name__},
        )
    if not value:
        raise InvalidArgumentError(f"{name} must not be empty", details={"argument": name})
    return value


def ensure_writable_keys(keys: Iterable[str], name: str = "value") -> None:
    """Reject the reserved key name for anything a mutation writes as a key."""
    if RESERVED_KEY in keys:
        raise ReservedKeyError(
            f"{name} must not use the reserved name {RESERVED_KEY!r}",
            details={"argument": name},
        )
