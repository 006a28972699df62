"""Database connection management for neo-acl."""

from .connection import DatabaseManager

__all__ = ["DatabaseManager"]
