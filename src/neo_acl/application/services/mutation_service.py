"""
Mutations of roles, hierarchy edges and grants.

Each public operation queues its writes on one batch and commits it, so the
users/roles mirror and the bookkeeping sets change together. Operations that
need a point-in-time read (role and resource removal) or a follow-up cleanup
(revocation) are not atomic across those steps; an interruption can leave
bookkeeping that lists more than is actually granted, never less.
"""
import asyncio
import logging
from typing import AbstractSet, Iterable, Optional

from ...config.constants import MetaKeys
from ...core.entities.allow_rule import RoleAllowRecord
from ...core.entities.buckets import BucketNames
from ...core.protocols.storage import StorageBackend

logger = logging.getLogger(__name__)


class MutationService:
    """Write side of the access control model."""

    def __init__(self, backend: StorageBackend, buckets: BucketNames):
        self._backend = backend
        self._buckets = buckets

    async def add_user_roles(self, user_id: str, roles: AbstractSet[str]) -> None:
        """Assign roles to a user, writing both sides of the membership."""
        batch = self._backend.begin_batch()
        self._backend.add(batch, self._buckets.meta, MetaKeys.USERS, user_id)
        self._backend.add(batch, self._buckets.meta, MetaKeys.ROLES, roles)
        self._backend.add(batch, self._buckets.users, user_id, roles)
        for role in roles:
            self._backend.add(batch, self._buckets.roles, role, user_id)
        await self._backend.commit_batch(batch)

        logger.info(
            f"Assigned roles {sorted(roles)} to user {user_id}",
            extra={"user_id": user_id, "roles": sorted(roles)}
        )

    async def remove_user_roles(self, user_id: str, roles: AbstractSet[str]) -> None:
        """Unassign roles from a user, writing both sides of the membership."""
        batch = self._backend.begin_batch()
        self._backend.remove(batch, self._buckets.users, user_id, roles)
        for role in roles:
            self._backend.remove(batch, self._buckets.roles, role, user_id)
        await self._backend.commit_batch(batch)

        logger.info(
            f"Removed roles {sorted(roles)} from user {user_id}",
            extra={"user_id": user_id, "roles": sorted(roles)}
        )

    async def add_role_parents(self, role: str, parents: AbstractSet[str]) -> None:
        """Add parent roles to a role."""
        batch = self._backend.begin_batch()
        self._backend.add(batch, self._buckets.meta, MetaKeys.ROLES, role)
        self._backend.add(batch, self._buckets.parents, role, parents)
        await self._backend.commit_batch(batch)

        logger.info(
            f"Added parents {sorted(parents)} to role {role}",
            extra={"role": role, "parents": sorted(parents)}
        )

    async def remove_role_parents(
        self,
        role: str,
        parents: Optional[AbstractSet[str]] = None,
    ) -> None:
        """Remove the given parents from a role, or all of them when None."""
        batch = self._backend.begin_batch()
        if parents is None:
            self._backend.delete(batch, self._buckets.parents, role)
        else:
            self._backend.remove(batch, self._buckets.parents, role, parents)
        await self._backend.commit_batch(batch)

        removed = "all parents" if parents is None else f"parents {sorted(parents)}"
        logger.info(f"Removed {removed} from role {role}", extra={"role": role})

    async def remove_role(self, role: str) -> None:
        """Remove a role's grants, parent edges, memberships and metadata entry.

        Resources and members are read before the batch is opened; writes
        made to the role in between are not covered.
        """
        resources, members = await asyncio.gather(
            self._backend.get(self._buckets.resources, role),
            self._backend.get(self._buckets.roles, role),
        )

        batch = self._backend.begin_batch()
        for resource in resources:
            self._backend.delete(batch, self._buckets.allows_bucket(resource), role)
        self._backend.delete(batch, self._buckets.resources, role)
        self._backend.delete(batch, self._buckets.parents, role)
        self._backend.delete(batch, self._buckets.roles, role)
        for user_id in members:
            self._backend.remove(batch, self._buckets.users, user_id, role)
        self._backend.remove(batch, self._buckets.meta, MetaKeys.ROLES, role)
        await self._backend.commit_batch(batch)

        logger.info(
            f"Removed role {role}",
            extra={"role": role, "resources": len(resources), "members": len(members)}
        )

    async def remove_resource(self, resource: str) -> None:
        """Remove every grant on a resource from every known role.

        The known roles are a snapshot taken before the batch is opened.
        """
        roles = await self._backend.get(self._buckets.meta, MetaKeys.ROLES)

        batch = self._backend.begin_batch()
        if roles:
            self._backend.delete(batch, self._buckets.allows_bucket(resource), roles)
        for role in roles:
            self._backend.remove(batch, self._buckets.resources, role, resource)
        await self._backend.commit_batch(batch)

        logger.info(
            f"Removed resource {resource}",
            extra={"resource": resource, "roles": len(roles)}
        )

    async def allow(
        self,
        roles: AbstractSet[str],
        resources: AbstractSet[str],
        permissions: AbstractSet[str],
    ) -> None:
        """Grant permissions to every role over every resource."""
        batch = self._backend.begin_batch()
        self._backend.add(batch, self._buckets.meta, MetaKeys.ROLES, roles)
        for resource in resources:
            bucket = self._buckets.allows_bucket(resource)
            for role in roles:
                self._backend.add(batch, bucket, role, permissions)
        for role in roles:
            self._backend.add(batch, self._buckets.resources, role, resources)
        await self._backend.commit_batch(batch)

        logger.info(
            f"Granted {sorted(permissions)} on {sorted(resources)} to roles {sorted(roles)}",
            extra={
                "roles": sorted(roles),
                "resources": sorted(resources),
                "permissions": sorted(permissions),
            }
        )

    async def allow_records(self, records: Iterable[RoleAllowRecord]) -> None:
        """Run one independent grant per (roles, resources, permissions) entry."""
        grants = [grant for record in records for grant in record.demux()]
        await asyncio.gather(
            *(self.allow(roles, resources, permissions) for roles, resources, permissions in grants)
        )

    async def remove_allow(
        self,
        role: str,
        resources: AbstractSet[str],
        permissions: Optional[AbstractSet[str]] = None,
    ) -> None:
        """Revoke permissions of a role over resources.

        With permissions, only those tokens are removed; without, the whole
        grant goes. A second batch then drops each resource the role no
        longer holds any permission on from the role's resource set.
        """
        batch = self._backend.begin_batch()
        for resource in resources:
            bucket = self._buckets.allows_bucket(resource)
            if permissions is not None:
                self._backend.remove(batch, bucket, role, permissions)
            else:
                self._backend.delete(batch, bucket, role)
                self._backend.remove(batch, self._buckets.resources, role, resource)
        await self._backend.commit_batch(batch)

        ordered = list(resources)
        remaining = await asyncio.gather(
            *(self._backend.get(self._buckets.allows_bucket(resource), role) for resource in ordered)
        )

        cleanup = self._backend.begin_batch()
        for resource, left in zip(ordered, remaining):
            if not left:
                self._backend.remove(cleanup, self._buckets.resources, role, resource)
        await self._backend.commit_batch(cleanup)

        revoked = "all permissions" if permissions is None else sorted(permissions)
        logger.info(
            f"Revoked {revoked} on {sorted(resources)} from role {role}",
            extra={"role": role, "resources": sorted(resources)}
        )
