"""Application layer for neo-acl."""
