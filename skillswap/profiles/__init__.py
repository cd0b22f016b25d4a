"""Profile Store — member identity, skill inventories, visibility, and rating."""

from skillswap.profiles.models import AvailabilitySlot, Member, SkillDirection, SkillSet
from skillswap.profiles.store import ProfileStore

__all__ = ["AvailabilitySlot", "Member", "ProfileStore", "SkillDirection", "SkillSet"]
