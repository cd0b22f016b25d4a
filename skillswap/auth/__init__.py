"""Actor identity and role checks."""

from skillswap.auth.models import Actor, Role
from skillswap.auth.permissions import has_permission, require_admin, require_role

__all__ = ["Actor", "Role", "has_permission", "require_admin", "require_role"]
