"""Protocols and abstract contracts for neo-acl."""

from .storage import (
    Batch,
    StorageBackend,
    BatchedUnionsBackend,
    ValuesInput,
    as_value_set,
)

__all__ = [
    "Batch",
    "StorageBackend",
    "BatchedUnionsBackend",
    "ValuesInput",
    "as_value_set",
]
