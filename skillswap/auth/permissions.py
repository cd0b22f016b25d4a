"""Role-based access control (RBAC) logic.

Role hierarchy: admin > member
"""

from __future__ import annotations

from skillswap.auth.models import Actor, Role
from skillswap.errors import Unauthorized


def has_permission(actor: Actor, required_role: Role) -> bool:
    """Check if an actor's role meets or exceeds the required role level.

    Parameters
    ----------
    actor:
        The acting member as supplied by the session provider.
    required_role:
        The minimum role required.

    Returns
    -------
    bool
        True if actor's role level >= required role level.
    """
    return actor.role.level >= required_role.level


def require_role(actor: Actor, role: Role) -> None:
    """Validate that an actor has at least the given role.

    Raises ``Unauthorized`` if the actor lacks the required role.
    """
    if not has_permission(actor, role):
        raise Unauthorized(f"Requires role '{role.value}' or higher")


def require_admin(actor: Actor) -> None:
    require_role(actor, Role.admin)
