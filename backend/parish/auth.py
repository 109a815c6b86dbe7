"""Caller identity handed to the engine by the authorization layer."""
import enum
from dataclasses import dataclass


class Role(str, enum.Enum):
    parishioner = "PARISHIONER"
    admin = "ADMIN"
    superadmin = "SUPERADMIN"


ADMIN_ROLES = frozenset({Role.admin, Role.superadmin})


def is_admin_role(role) -> bool:
    try:
        return Role(role) in ADMIN_ROLES
    except ValueError:
        return False


@dataclass(frozen=True)
class Actor:
    """An already-authenticated caller. The engine trusts these fields."""

    user_id: str
    role: Role = Role.parishioner
    name: str | None = None

    @property
    def is_admin(self) -> bool:
        return self.role in ADMIN_ROLES

    @property
    def display_name(self) -> str:
        return self.name or self.user_id
