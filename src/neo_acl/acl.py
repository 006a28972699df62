"""
Access control list facade.

``Acl`` is the public entry point: it validates and normalizes every
argument (a string or a collection of strings becomes a set) before any
storage call, then delegates to the mutation service, the hierarchy
resolver and the decision engine that share one storage backend.

Storage layout with the default bucket names::

    users@<user>            = {roles}
    roles@<role>            = {users}
    parents@<role>          = {parent roles}
    resources@<role>        = {resources}
    meta@roles / meta@users = {all known roles} / {all known users}
    allows_<resource>@<role> = {permissions}

User ids, role names, resource names and permissions are case sensitive.
``*`` as a permission means every permission on that resource.
"""
import logging
from collections import abc
from typing import Any, Dict, Iterable, List, Mapping, Optional, Set, Union

from pydantic import ValidationError as PydanticValidationError

from .application.services import DecisionEngine, HierarchyResolver, MutationService
from .core.entities.allow_rule import RoleAllowRecord
from .core.entities.buckets import BucketNames
from .core.exceptions import InvalidArgumentError
from .core.protocols.storage import StorageBackend
from .core.value_objects.string_set import (
    StringSetInput,
    ensure_writable_keys,
    to_identifier,
    to_optional_string_set,
    to_string_set,
)

logger = logging.getLogger(__name__)

AllowRecordInput = Union[RoleAllowRecord, Mapping[str, Any]]


class Acl:
    """Role-based access control over a pluggable storage backend.

    Args:
        backend: Storage backend; owned by the caller unless ``close`` is used
        buckets: Optional bucket name overrides
    """

    def __init__(self, backend: StorageBackend, buckets: Optional[BucketNames] = None):
        self.backend = backend
        self.buckets = buckets or BucketNames()
        self.resolver = HierarchyResolver(backend, self.buckets)
        self.mutations = MutationService(backend, self.buckets)
        self.decisions = DecisionEngine(backend, self.buckets, self.resolver)

    # ------------------------------------------------------------------
    # Users and roles
    # ------------------------------------------------------------------

    async def add_user_roles(self, user_id: str, roles: StringSetInput) -> None:
        """Add roles to a user."""
        user_id = to_identifier(user_id, "user_id")
        roles = to_string_set(roles, "roles")
        ensure_writable_keys({user_id}, "user_id")
        ensure_writable_keys(roles, "roles")
        await self.mutations.add_user_roles(user_id, roles)

    async def remove_user_roles(self, user_id: str, roles: StringSetInput) -> None:
        """Remove roles from a user."""
        user_id = to_identifier(user_id, "user_id")
        roles = to_string_set(roles, "roles")
        await self.mutations.remove_user_roles(user_id, roles)

    async def user_roles(self, user_id: str) -> Set[str]:
        """Roles directly assigned to a user."""
        return await self.resolver.user_roles(to_identifier(user_id, "user_id"))

    async def role_users(self, role: str) -> Set[str]:
        """Users directly assigned to a role."""
        return await self.resolver.role_users(to_identifier(role, "role"))

    async def has_role(self, user_id: str, role: str) -> bool:
        """Whether a user is directly assigned a role."""
        role = to_identifier(role, "role")
        return role in await self.user_roles(user_id)

    # ------------------------------------------------------------------
    # Hierarchy
    # ------------------------------------------------------------------

    async def add_role_parents(self, role: str, parents: StringSetInput) -> None:
        """Add a parent or parent list to a role."""
        role = to_identifier(role, "role")
        parents = to_string_set(parents, "parents")
        ensure_writable_keys({role}, "role")
        await self.mutations.add_role_parents(role, parents)

    async def remove_role_parents(
        self,
        role: str,
        parents: Optional[StringSetInput] = None,
    ) -> None:
        """Remove a parent or parent list from a role; all parents when omitted."""
        role = to_identifier(role, "role")
        await self.mutations.remove_role_parents(
            role, to_optional_string_set(parents, "parents")
        )

    async def remove_role(self, role: str) -> None:
        """Remove a role from the system."""
        await self.mutations.remove_role(to_identifier(role, "role"))

    async def remove_resource(self, resource: str) -> None:
        """Remove a resource and every grant on it."""
        await self.mutations.remove_resource(to_identifier(resource, "resource"))

    # ------------------------------------------------------------------
    # Grants
    # ------------------------------------------------------------------

    async def allow(
        self,
        roles: Union[StringSetInput, Iterable[AllowRecordInput]],
        resources: Optional[StringSetInput] = None,
        permissions: Optional[StringSetInput] = None,
    ) -> None:
        """Grant permissions to roles over resources.

        Either ``allow(roles, resources, permissions)``, or
        ``allow(records)`` with a list of records shaped like
        ``{"roles": ..., "allows": [{"resources": ..., "permissions": ...}]}``.
        Each record entry becomes an independent grant.
        """
        if resources is None and permissions is None and not isinstance(roles, str):
            records = self._parse_allow_records(roles)
            await self.mutations.allow_records(records)
            return

        if resources is None or permissions is None:
            raise InvalidArgumentError(
                "allow takes roles, resources and permissions, or a list of records"
            )

        roles = to_string_set(roles, "roles")
        resources = to_string_set(resources, "resources")
        permissions = to_string_set(permissions, "permissions")
        ensure_writable_keys(roles, "roles")
        await self.mutations.allow(roles, resources, permissions)

    async def remove_allow(
        self,
        role: str,
        resources: StringSetInput,
        permissions: Optional[StringSetInput] = None,
    ) -> None:
        """Revoke permissions of a role; the whole grant when omitted."""
        role = to_identifier(role, "role")
        resources = to_string_set(resources, "resources")
        await self.mutations.remove_allow(
            role, resources, to_optional_string_set(permissions, "permissions")
        )

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def is_allowed(
        self,
        user_id: str,
        resource: str,
        permissions: StringSetInput,
    ) -> bool:
        """Whether a user holds every given permission on a resource."""
        user_id = to_identifier(user_id, "user_id")
        resource = to_identifier(resource, "resource")
        permissions = to_string_set(permissions, "permissions", allow_empty=True)
        return await self.decisions.is_allowed(user_id, resource, permissions)

    async def are_any_roles_allowed(
        self,
        roles: StringSetInput,
        resource: str,
        permissions: StringSetInput,
    ) -> bool:
        """Whether the roles, with their ancestors, hold every given permission."""
        roles = to_string_set(roles, "roles", allow_empty=True)
        resource = to_identifier(resource, "resource")
        permissions = to_string_set(permissions, "permissions", allow_empty=True)
        return await self.decisions.are_any_roles_allowed(roles, resource, permissions)

    async def allowed_permissions(
        self,
        user_id: Optional[str],
        resources: StringSetInput,
    ) -> Dict[str, Set[str]]:
        """Map each resource to every permission the user holds on it."""
        if not user_id:
            return {}
        user_id = to_identifier(user_id, "user_id")
        resources = to_string_set(resources, "resources", allow_empty=True)
        return await self.decisions.allowed_permissions(user_id, resources)

    async def what_resources(
        self,
        roles: StringSetInput,
        permissions: Optional[StringSetInput] = None,
    ) -> Union[Dict[str, Set[str]], Set[str]]:
        """Resources the roles have permissions over.

        Without permissions: ``{resource: permissions}``. With permissions:
        the set of resources on which any of them is held.
        """
        roles = to_string_set(roles, "roles", allow_empty=True)
        return await self.decisions.what_resources(
            roles, to_optional_string_set(permissions, "permissions")
        )

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def clean(self) -> None:
        """Wipe all stored state. Meant for tests."""
        await self.backend.clean()

    async def close(self) -> None:
        """Release the backend's connections."""
        await self.backend.close()

    @staticmethod
    def _parse_allow_records(records: Any) -> List[RoleAllowRecord]:
        if isinstance(records, (RoleAllowRecord, abc.Mapping)):
            records = [records]
        if not isinstance(records, abc.Iterable):
            raise InvalidArgumentError("allow records must be a list of records")

        parsed = []
        for record in records:
            if isinstance(record, RoleAllowRecord):
                parsed.append(record)
                continue
            try:
                parsed.append(RoleAllowRecord.model_validate(record))
            except PydanticValidationError as e:
                raise InvalidArgumentError(
                    "Invalid allow record",
                    details={"errors": e.errors(include_url=False)},
                ) from e

        for record in parsed:
            ensure_writable_keys(record.roles, "roles")
        logger.debug(f"Parsed {len(parsed)} allow records")
        return parsed

    def __repr__(self) -> str:
        return f"Acl(backend={self.backend!r})"
