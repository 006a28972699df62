"""
Role hierarchy resolution.

Computes the transitive closure of parent roles and the resources and
permissions reachable through it. Every traversal carries a visited set:
a role reached a second time contributes nothing new, so a cyclic
hierarchy terminates with the same answer an acyclic one would give.
"""
import asyncio
import logging
from typing import AbstractSet, Dict, FrozenSet, Optional, Set

from ...core.entities.buckets import BucketNames
from ...core.protocols.storage import StorageBackend

logger = logging.getLogger(__name__)


class HierarchyResolver:
    """Reads roles, parents, resources and grants from a storage backend."""

    def __init__(self, backend: StorageBackend, buckets: BucketNames):
        self._backend = backend
        self._buckets = buckets

    async def user_roles(self, user_id: str) -> Set[str]:
        """Roles directly assigned to a user."""
        return await self._backend.get(self._buckets.users, user_id)

    async def role_users(self, role: str) -> Set[str]:
        """Users directly assigned to a role."""
        return await self._backend.get(self._buckets.roles, role)

    async def role_resources(self, role: str) -> Set[str]:
        """Resources a single role has direct grants on."""
        return await self._backend.get(self._buckets.resources, role)

    async def roles_parents(self, roles: AbstractSet[str]) -> Set[str]:
        """Direct parents (one level up) of a set of roles."""
        if not roles:
            return set()
        return await self._backend.union(self._buckets.parents, roles)

    async def closure_of_parents(self, roles: AbstractSet[str]) -> Set[str]:
        """Roles plus every ancestor reachable through the parents bucket.

        Expands one level per storage call until a level yields no role
        that has not been seen yet.
        """
        closure: Set[str] = set(roles)
        frontier: Set[str] = set(roles)
        while frontier:
            parents = await self.roles_parents(frontier)
            frontier = parents - closure
            closure |= frontier
        return closure

    async def user_role_closure(self, user_id: str) -> Set[str]:
        """Closure of the roles directly assigned to a user."""
        roles = await self.user_roles(user_id)
        if not roles:
            return set()
        return await self.closure_of_parents(roles)

    async def resources_of_roles(self, roles: AbstractSet[str]) -> Set[str]:
        """Resources with direct grants for any role in the closure of roles."""
        all_roles = await self.closure_of_parents(roles)
        resource_sets = await asyncio.gather(
            *(self.role_resources(role) for role in all_roles)
        )
        resources: Set[str] = set()
        for resource_set in resource_sets:
            resources |= resource_set
        return resources

    async def permissions_on_resource(
        self,
        roles: AbstractSet[str],
        resource: str,
        _visited: Optional[FrozenSet[str]] = None,
    ) -> Set[str]:
        """Union of permissions on a resource held by roles or their ancestors.

        Unions the grants of this level, then recurses into the parents of
        this level that have not been visited.
        """
        if not roles:
            return set()

        visited = (_visited or frozenset()) | frozenset(roles)
        permissions, parents = await asyncio.gather(
            self._backend.union(self._buckets.allows_bucket(resource), roles),
            self.roles_parents(roles),
        )

        unvisited_parents = parents - visited
        if unvisited_parents:
            permissions |= await self.permissions_on_resource(
                unvisited_parents, resource, visited
            )
        return permissions

    async def permissions_on_resources(
        self,
        roles: AbstractSet[str],
        resources: AbstractSet[str],
    ) -> Dict[str, Set[str]]:
        """Run permissions_on_resource for several resources concurrently."""
        ordered = list(resources)
        results = await asyncio.gather(
            *(self.permissions_on_resource(roles, resource) for resource in ordered)
        )
        return dict(zip(ordered, results))
