"""Entities for neo-acl."""

from .buckets import BucketNames
from .allow_rule import AllowRule, RoleAllowRecord

__all__ = [
    "BucketNames",
    "AllowRule",
    "RoleAllowRecord",
]
