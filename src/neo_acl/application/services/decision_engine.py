"""
Authorization decisions.

Answers "may this user (or these roles) do these things on this resource"
from the current committed state. Nothing is cached between calls.
"""
import logging
from typing import AbstractSet, Dict, FrozenSet, Optional, Set, Union

from ...config.constants import WILDCARD
from ...core.entities.buckets import BucketNames
from ...core.protocols.storage import BatchedUnionsBackend, StorageBackend
from .hierarchy_resolver import HierarchyResolver

logger = logging.getLogger(__name__)


class DecisionEngine:
    """Boolean and enumerating authorization queries.

    ``allowed_permissions`` uses a single batched ``unions`` call when the
    backend declares that capability, and otherwise resolves each resource
    through the hierarchy. Both paths give the same result.
    """

    def __init__(
        self,
        backend: StorageBackend,
        buckets: BucketNames,
        resolver: Optional[HierarchyResolver] = None,
    ):
        self._backend = backend
        self._buckets = buckets
        self._resolver = resolver or HierarchyResolver(backend, buckets)

    async def is_allowed(
        self,
        user_id: str,
        resource: str,
        permissions: AbstractSet[str],
    ) -> bool:
        """Whether a user holds every requested permission on a resource."""
        roles = await self._resolver.user_roles(user_id)
        if not roles:
            logger.debug(f"User {user_id} has no roles; denying {sorted(permissions)} on {resource}")
            return False
        return await self.are_any_roles_allowed(roles, resource, permissions)

    async def are_any_roles_allowed(
        self,
        roles: AbstractSet[str],
        resource: str,
        permissions: AbstractSet[str],
    ) -> bool:
        """Whether the roles and their ancestors together hold every permission.

        Permissions must all be satisfied; each may come from any role in the
        closure. A wildcard grant satisfies everything still outstanding.
        """
        if not roles:
            return False
        return await self._check_permissions(frozenset(roles), resource, frozenset(permissions), frozenset())

    async def _check_permissions(
        self,
        roles: FrozenSet[str],
        resource: str,
        permissions: FrozenSet[str],
        visited: FrozenSet[str],
    ) -> bool:
        granted = await self._backend.union(self._buckets.allows_bucket(resource), roles)
        if WILDCARD in granted:
            return True

        remaining = permissions - granted
        if not remaining:
            return True

        visited = visited | roles
        parents = await self._resolver.roles_parents(roles)
        unvisited_parents = frozenset(parents - visited)
        if unvisited_parents:
            return await self._check_permissions(unvisited_parents, resource, remaining, visited)

        logger.debug(f"Missing {sorted(remaining)} on {resource} for roles {sorted(visited)}")
        return False

    async def allowed_permissions(
        self,
        user_id: Optional[str],
        resources: AbstractSet[str],
    ) -> Dict[str, Set[str]]:
        """Map each resource to every permission the user holds on it."""
        if not user_id:
            return {}
        if isinstance(self._backend, BatchedUnionsBackend):
            return await self._optimized_allowed_permissions(user_id, resources)
        return await self._naive_allowed_permissions(user_id, resources)

    async def _naive_allowed_permissions(
        self,
        user_id: str,
        resources: AbstractSet[str],
    ) -> Dict[str, Set[str]]:
        roles = await self._resolver.user_role_closure(user_id)
        return await self._resolver.permissions_on_resources(roles, resources)

    async def _optimized_allowed_permissions(
        self,
        user_id: str,
        resources: AbstractSet[str],
    ) -> Dict[str, Set[str]]:
        roles = await self._resolver.user_role_closure(user_id)
        buckets = self._buckets.allows_buckets(resources)
        if not roles:
            return {resource: set() for resource in resources}

        response = await self._backend.unions(buckets, roles)
        return {
            self._buckets.resource_from_bucket(bucket): set(permissions)
            for bucket, permissions in response.items()
        }

    async def what_resources(
        self,
        roles: AbstractSet[str],
        permissions: Optional[AbstractSet[str]] = None,
    ) -> Union[Dict[str, Set[str]], Set[str]]:
        """Resources reachable from the roles' closure.

        Without a permission filter, maps each resource to the permissions the
        closure holds on it. With a filter, returns the resources on which at
        least one of the given permissions is held.
        """
        resources = await self._resolver.resources_of_roles(roles)
        held = await self._resolver.permissions_on_resources(roles, resources)

        if permissions is None:
            return held
        return {resource for resource, granted in held.items() if granted & permissions}
