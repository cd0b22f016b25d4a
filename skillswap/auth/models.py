"""Identity models supplied by the session provider on every call."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Role(str, Enum):
    """Role hierarchy: admin > member."""

    admin = "admin"
    member = "member"

    @property
    def level(self) -> int:
        """Return numeric level for comparison (higher = more privileges)."""
        return {
            Role.admin: 20,
            Role.member: 10,
        }[self]


@dataclass(frozen=True)
class Actor:
    """The member performing an operation.

    The core trusts this identity as given; it never re-derives it from
    stored state.
    """

    member_id: str
    role: Role = Role.member

    def __post_init__(self) -> None:
        if isinstance(self.role, str) and not isinstance(self.role, Role):
            object.__setattr__(self, "role", Role(self.role))

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin
