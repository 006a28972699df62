"""Core domain building blocks for neo-acl."""
