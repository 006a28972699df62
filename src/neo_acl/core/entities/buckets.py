"""Bucket schema for neo-acl.

All state lives in named sets addressed by ``(bucket, key)``:

- ``users``:     user id   -> role names
- ``roles``:     role name -> member user ids (mirror of ``users``)
- ``parents``:   role name -> parent role names
- ``resources``: role name -> resources the role has direct grants on
- ``meta``:      ``roles`` / ``users`` -> every known role name / user id
- ``allows_<resource>``: role name -> permissions on that resource
"""

from typing import Iterable, List

from pydantic import BaseModel, ConfigDict, Field

from ...config.constants import DefaultBuckets


class BucketNames(BaseModel):
    """Names of the logical buckets used by the engine."""

    model_config = ConfigDict(frozen=True)

    meta: str = Field(default=DefaultBuckets.META, min_length=1)
    parents: str = Field(default=DefaultBuckets.PARENTS, min_length=1)
    resources: str = Field(default=DefaultBuckets.RESOURCES, min_length=1)
    roles: str = Field(default=DefaultBuckets.ROLES, min_length=1)
    users: str = Field(default=DefaultBuckets.USERS, min_length=1)
    allows_prefix: str = Field(default=DefaultBuckets.ALLOWS_PREFIX, min_length=1)

    def allows_bucket(self, resource: str) -> str:
        """Bucket holding role -> permissions for one resource."""
        return f"{self.allows_prefix}{resource}"

    def allows_buckets(self, resources: Iterable[str]) -> List[str]:
        """Allows buckets for several resources, in the given order."""
        return [self.allows_bucket(resource) for resource in resources]

    def resource_from_bucket(self, bucket: str) -> str:
        """Inverse of allows_bucket; other bucket names are returned as is."""
        if bucket.startswith(self.allows_prefix):
            return bucket[len(self.allows_prefix):]
        return bucket
