"""Member profile models — skill sets, availability, and the member record."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Iterable, Iterator, Optional

from skillswap.auth.models import Role
from skillswap.errors import ValidationError


class SkillDirection(str, Enum):
    """Which of a member's skill sets a skill belongs to."""

    offered = "offered"
    wanted = "wanted"


class AvailabilitySlot(str, Enum):
    """When a member is available to swap."""

    weekdays_9_5 = "weekdays_9_5"
    weekdays_evenings = "weekdays_evenings"
    weekends = "weekends"
    weekend_mornings = "weekend_mornings"
    weekend_evenings = "weekend_evenings"
    flexible_schedule = "flexible_schedule"

    @classmethod
    def parse(cls, value: str | AvailabilitySlot) -> AvailabilitySlot:
        """Accept a slot value or its label, e.g. ``"Weekdays 9-5"``."""
        if isinstance(value, cls):
            return value
        key = str(value).strip().lower().replace("-", "_").replace(" ", "_")
        try:
            return cls(key)
        except ValueError:
            raise ValidationError(f"Unknown availability slot: '{value}'") from None


class SkillSet:
    """Ordered set of skill names with case-insensitive identity.

    Names are whitespace-trimmed; the first spelling added is kept for
    display. ``"python" in SkillSet(["Python"])`` is True, and two sets
    are equal when they hold the same skills regardless of case.
    """

    def __init__(self, skills: Iterable[str] = ()) -> None:
        self._items: dict[str, str] = {}
        for skill in skills:
            self.add(skill)

    @staticmethod
    def normalize(skill: str) -> str:
        """Return the trimmed skill name. Raises ValidationError if empty."""
        if not isinstance(skill, str):
            raise ValidationError(f"Skill must be a string, got {type(skill).__name__}")
        text = skill.strip()
        if not text:
            raise ValidationError("Skill names must not be empty")
        return text

    @staticmethod
    def key(skill: str) -> str:
        return skill.strip().casefold()

    def add(self, skill: str) -> bool:
        """Add a skill. Returns False if an equal skill is already present."""
        text = self.normalize(skill)
        k = self.key(text)
        if k in self._items:
            return False
        self._items[k] = text
        return True

    def discard(self, skill: str) -> None:
        self._items.pop(self.key(skill), None)

    def get(self, skill: str) -> Optional[str]:
        """Return the stored spelling of *skill*, or None."""
        return self._items.get(self.key(skill))

    def to_list(self) -> list[str]:
        return list(self._items.values())

    def __contains__(self, skill: object) -> bool:
        return isinstance(skill, str) and self.key(skill) in self._items

    def __iter__(self) -> Iterator[str]:
        return iter(self._items.values())

    def __len__(self) -> int:
        return len(self._items)

    def __eq__(self, other: object) -> bool:
        if isinstance(other, SkillSet):
            return self._items.keys() == other._items.keys()
        return NotImplemented

    __hash__ = None  # type: ignore[assignment]

    def __repr__(self) -> str:
        return f"SkillSet({self.to_list()!r})"


@dataclass
class Member:
    """A registered member of the marketplace."""

    id: str
    display_name: str
    email: str = ""
    location: str = ""
    skills_offered: SkillSet = field(default_factory=SkillSet)
    skills_wanted: SkillSet = field(default_factory=SkillSet)
    availability: set[AvailabilitySlot] = field(default_factory=set)
    is_public: bool = True
    role: Role = Role.member
    rating: float = 5.0  # 0.0 - 5.0 running mean
    completed_swaps: int = 0
    banned: bool = False
    created_at: str = ""
    version: int = 0

    def __post_init__(self) -> None:
        if not isinstance(self.skills_offered, SkillSet):
            self.skills_offered = SkillSet(self.skills_offered)
        if not isinstance(self.skills_wanted, SkillSet):
            self.skills_wanted = SkillSet(self.skills_wanted)
        self.availability = {AvailabilitySlot.parse(a) for a in self.availability}
        if isinstance(self.role, str) and not isinstance(self.role, Role):
            self.role = Role(self.role)
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()

    @property
    def is_admin(self) -> bool:
        return self.role == Role.admin

    def skills(self, direction: SkillDirection) -> SkillSet:
        if direction == SkillDirection.offered:
            return self.skills_offered
        return self.skills_wanted
