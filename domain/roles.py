"""Role hierarchy and department scoping for hosts and admins"""
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from uuid import UUID


class Role(str, Enum):
    HOST = "Host"
    ADMIN = "Admin"
    SUPER_ADMIN = "SuperAdmin"

    @property
    def rank(self) -> int:
        return _RANKS[self]

    @classmethod
    def parse(cls, value: Union["Role", str, None]) -> Optional["Role"]:
        """Return the Role for `value`, or None when it is not a known role."""
        if isinstance(value, cls):
            return value
        try:
            return cls(value)
        except ValueError:
            return None


# SuperAdmin > Admin > Host
_RANKS = {
    Role.HOST: 1,
    Role.ADMIN: 2,
    Role.SUPER_ADMIN: 3,
}


@dataclass(frozen=True)
class Actor:
    """Authenticated host/admin acting on a visit"""
    id: UUID
    role: Role
    department_id: Optional[UUID] = None


def has_role(actor_role: Union[Role, str, None], required_role: Role) -> bool:
    """True iff `actor_role` is at or above `required_role`."""
    role = Role.parse(actor_role)
    if role is None:
        return False
    return role.rank >= required_role.rank


def can_access(
    actor_role: Union[Role, str, None],
    actor_department_id: Optional[UUID],
    resource_department_id: Optional[UUID],
    required_role: Role = Role.HOST,
) -> bool:
    """Role check plus department scoping.

    SuperAdmins reach every department. Resources without a department only
    need the role check. Everyone else must share the resource's department.
    """
    if not has_role(actor_role, required_role):
        return False

    if Role.parse(actor_role) is Role.SUPER_ADMIN:
        return True

    if resource_department_id is None:
        return True

    return actor_department_id is not None and actor_department_id == resource_department_id
