"""
Role based authorization.

All role checks go through `has_any`. Routes declare their requirement with
the `require_roles(...)` dependency; services that mix ownership and roles
(edit/delete by author or staff) call `ensure_owner_or_roles`.
"""

from collections.abc import Awaitable, Callable, Iterable

from fastapi import Depends

import repositories.db_models as db_models
from authentication.auth import get_current_active_user
from models.exceptions import InsufficientPermissionsException, PermissionDeniedException
from repositories.db_models import Role

STAFF_ROLES = frozenset({Role.MODERATOR, Role.ADMIN})


def has_any(user_roles: Iterable[Role], required_roles: Iterable[Role]) -> bool:
    """
    Capability check: does the user hold at least one required role?

    An empty requirement is satisfied by everyone.

    Args:
        user_roles: Roles held by the user
        required_roles: Roles that grant access

    Returns:
        True if the sets intersect (or nothing is required)
    """
    required = set(required_roles)
    if not required:
        return True
    return not required.isdisjoint(user_roles)


def is_staff(user: db_models.User) -> bool:
    return has_any(user.roles, STAFF_ROLES)


def ensure_owner_or_roles(
    user: db_models.User,
    owner_id: int,
    roles: Iterable[Role],
    message: str = "You do not have permission to modify this content",
) -> None:
    """
    Allow the owner, or anyone holding one of `roles`.

    Raises:
        PermissionDeniedException: Otherwise.
    """
    if user.id == owner_id or has_any(user.roles, roles):
        return
    raise PermissionDeniedException(message)


def require_roles(
    *roles: Role,
) -> Callable[..., Awaitable[db_models.User]]:
    """
    Build a dependency that admits active users holding any of `roles`.

    Usage:
        current_user: User = Depends(require_roles(Role.MODERATOR, Role.ADMIN))
    """
    required = frozenset(roles)

    async def dependency(
        current_user: db_models.User = Depends(get_current_active_user),
    ) -> db_models.User:
        if not has_any(current_user.roles, required):
            raise InsufficientPermissionsException("Not enough permissions")
        return current_user

    return dependency


require_staff = require_roles(Role.MODERATOR, Role.ADMIN)
require_admin = require_roles(Role.ADMIN)
