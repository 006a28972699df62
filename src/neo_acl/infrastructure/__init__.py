"""Infrastructure layer for neo-acl: storage backends and their factory."""
