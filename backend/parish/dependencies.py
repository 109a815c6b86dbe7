"""FastAPI dependencies for caller identity.

Authentication happens upstream; the gateway forwards the verified identity
as ``X-User-Id`` / ``X-User-Role`` / ``X-User-Name`` headers.

Usage in routers:
    @router.post("/")
    def create(actor: Actor = Depends(require_admin)):
        ...
"""
from fastapi import Depends, Header

from parish.auth import Actor, Role
from parish.errors import ForbiddenError, UnauthorizedError


def get_actor(
    x_user_id: str | None = Header(None),
    x_user_role: str = Header(Role.parishioner.value),
    x_user_name: str | None = Header(None),
) -> Actor:
    """Build the Actor for this request.

    Raises:
        UnauthorizedError: If no user id was forwarded.
        ForbiddenError: If the role is not a known role.
    """
    if not x_user_id:
        raise UnauthorizedError()
    try:
        role = Role(x_user_role.upper())
    except ValueError:
        raise ForbiddenError(detail=f"Unknown role: {x_user_role}")
    return Actor(user_id=x_user_id, role=role, name=x_user_name)


def require_admin(actor: Actor = Depends(get_actor)) -> Actor:
    """Allow only ADMIN and SUPERADMIN callers."""
    if not actor.is_admin:
        raise ForbiddenError(detail="Administrator role required")
    return actor
