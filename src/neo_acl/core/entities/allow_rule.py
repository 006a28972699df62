"""Batch grant records accepted by ``Acl.allow``.

A record gives one set of roles several ``(resources, permissions)`` grants::

    [{"roles": ["guest", "member"],
      "allows": [{"resources": "blogs", "permissions": "get"},
                 {"resources": ["forums", "news"], "permissions": ["get", "put"]}]}]
"""

from typing import Any, FrozenSet, Iterator, List, Tuple

from pydantic import BaseModel, ConfigDict, ValidationInfo, field_validator

from ..value_objects.string_set import to_string_set


class AllowRule(BaseModel):
    """Permissions granted over a set of resources."""

    model_config = ConfigDict(frozen=True)

    resources: FrozenSet[str]
    permissions: FrozenSet[str]

    @field_validator("resources", "permissions", mode="before")
    @classmethod
    def normalize(cls, value: Any, info: ValidationInfo) -> FrozenSet[str]:
        return to_string_set(value, info.field_name)


class RoleAllowRecord(BaseModel):
    """A set of roles and the grants they receive."""

    model_config = ConfigDict(frozen=True)

    roles: FrozenSet[str]
    allows: List[AllowRule]

    @field_validator("roles", mode="before")
    @classmethod
    def normalize_roles(cls, value: Any) -> FrozenSet[str]:
        return to_string_set(value, "roles")

    def demux(self) -> Iterator[Tuple[FrozenSet[str], FrozenSet[str], FrozenSet[str]]]:
        """Yield one flat (roles, resources, permissions) grant per allow rule."""
        for rule in self.allows:
            yield self.roles, rule.resources, rule.permissions
