"""File-based JSON storage for member profiles.

Provides the Profile Store contract backed by a versioned
:class:`~skillswap.storage.JsonTable` under ``~/.skillswap/profiles/``.
Every mutation is a full-record read-modify-write guarded by
compare-and-set on the member's version, so concurrent edits never
lose fields.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Iterable, Optional

from skillswap.auth.models import Role
from skillswap.errors import ValidationError
from skillswap.profiles.models import AvailabilitySlot, Member, SkillDirection, SkillSet
from skillswap.storage import JsonTable, new_id

logger = logging.getLogger(__name__)

MIN_RATING = 0.0
MAX_RATING = 5.0


class ProfileStore:
    """File-based storage for members.

    Storage path: ``~/.skillswap/profiles/`` with:
    - ``members.json`` -- list of member dicts
    """

    def __init__(
        self,
        base_dir: Optional[str | Path] = None,
        *,
        max_attempts: int = 5,
        default_rating: float = 5.0,
    ) -> None:
        if base_dir is None:
            self._base = Path.home() / ".skillswap" / "profiles"
        else:
            self._base = Path(base_dir)
        self._members = JsonTable(self._base, "members", kind="member")
        self._max_attempts = max_attempts
        self._default_rating = default_rating

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _member_from_dict(d: dict) -> Member:
        role_val = d.get("role", "member")
        try:
            role_val = Role(role_val)
        except ValueError:
            role_val = Role.member
        return Member(
            id=d["id"],
            display_name=d["display_name"],
            email=d.get("email", ""),
            location=d.get("location", ""),
            skills_offered=SkillSet(d.get("skills_offered", [])),
            skills_wanted=SkillSet(d.get("skills_wanted", [])),
            availability={AvailabilitySlot(a) for a in d.get("availability", [])},
            is_public=d.get("is_public", True),
            role=role_val,
            rating=float(d.get("rating", 0.0)),
            completed_swaps=int(d.get("completed_swaps", 0)),
            banned=d.get("banned", False),
            created_at=d.get("created_at", ""),
            version=d.get("version", 0),
        )

    @staticmethod
    def _member_to_dict(m: Member) -> dict:
        return {
            "id": m.id,
            "display_name": m.display_name,
            "email": m.email,
            "location": m.location,
            "skills_offered": m.skills_offered.to_list(),
            "skills_wanted": m.skills_wanted.to_list(),
            "availability": sorted(a.value for a in m.availability),
            "is_public": m.is_public,
            "role": m.role.value,
            "rating": m.rating,
            "completed_swaps": m.completed_swaps,
            "banned": m.banned,
            "created_at": m.created_at,
            "version": m.version,
        }

    def _mutate(self, member_id: str, change: Callable[[Member], None]) -> Member:
        def apply(d: dict) -> dict:
            member = self._member_from_dict(d)
            change(member)
            return self._member_to_dict(member)

        return self._member_from_dict(
            self._members.update(member_id, apply, max_attempts=self._max_attempts)
        )

    # ------------------------------------------------------------------
    # Registration and reads
    # ------------------------------------------------------------------

    def create(
        self,
        display_name: str,
        *,
        email: str = "",
        location: str = "",
        skills_offered: Iterable[str] = (),
        skills_wanted: Iterable[str] = (),
        availability: Iterable[str | AvailabilitySlot] = (),
        is_public: bool = True,
        role: Role = Role.member,
        member_id: Optional[str] = None,
    ) -> Member:
        """Register a new member. Returns the stored member."""
        if not display_name or not display_name.strip():
            raise ValidationError("Display name must not be empty")
        member = Member(
            id=member_id or new_id(),
            display_name=display_name.strip(),
            email=email.strip(),
            location=location.strip(),
            skills_offered=SkillSet(skills_offered),
            skills_wanted=SkillSet(skills_wanted),
            availability=set(availability),
            is_public=is_public,
            role=role,
            rating=self._default_rating,
        )
        stored = self._members.insert(self._member_to_dict(member))
        logger.info("Registered member %s (%s)", stored["id"], member.display_name)
        return self._member_from_dict(stored)

    def get(self, member_id: str) -> Member:
        """Look up a member by ID. Raises NotFound."""
        return self._member_from_dict(self._members.get(member_id))

    def list_all(self) -> list[Member]:
        return [self._member_from_dict(d) for d in self._members.list()]

    def list_public(self) -> list[Member]:
        """Return public, non-banned members."""
        return [
            self._member_from_dict(d)
            for d in self._members.list(lambda d: d.get("is_public", True) and not d.get("banned", False))
        ]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def upsert_skills(
        self, member_id: str, offered: Iterable[str], wanted: Iterable[str]
    ) -> Member:
        """Replace both skill sets. Empty names raise ValidationError."""
        new_offered = SkillSet(offered)
        new_wanted = SkillSet(wanted)

        def change(m: Member) -> None:
            m.skills_offered = SkillSet(new_offered)
            m.skills_wanted = SkillSet(new_wanted)

        return self._mutate(member_id, change)

    def add_skill(self, member_id: str, skill: str, direction: SkillDirection) -> Member:
        """Add one skill to the offered or wanted set (no-op if present)."""
        text = SkillSet.normalize(skill)
        return self._mutate(member_id, lambda m: m.skills(SkillDirection(direction)).add(text))

    def update_profile(
        self,
        member_id: str,
        *,
        display_name: Optional[str] = None,
        location: Optional[str] = None,
        availability: Optional[Iterable[str | AvailabilitySlot]] = None,
    ) -> Member:
        """Update basic profile fields. ``None`` leaves a field unchanged."""
        if display_name is not None and not display_name.strip():
            raise ValidationError("Display name must not be empty")
        slots = (
            {AvailabilitySlot.parse(a) for a in availability}
            if availability is not None
            else None
        )

        def change(m: Member) -> None:
            if display_name is not None:
                m.display_name = display_name.strip()
            if location is not None:
                m.location = location.strip()
            if slots is not None:
                m.availability = set(slots)

        return self._mutate(member_id, change)

    def set_visibility(self, member_id: str, is_public: bool) -> Member:
        def change(m: Member) -> None:
            m.is_public = is_public

        return self._mutate(member_id, change)

    def set_banned(self, member_id: str, banned: bool) -> Member:
        """Set the ban flag. Setting the current value is a no-op."""
        member, _ = self.change_ban(member_id, banned)
        return member

    def change_ban(self, member_id: str, banned: bool) -> tuple[Member, bool]:
        """Set the ban flag and report whether this call changed it.

        The comparison happens inside the read-modify-write, so of two
        concurrent bans exactly one sees ``changed=True``.
        """
        changed = False

        def apply(d: dict) -> Optional[dict]:
            nonlocal changed
            changed = d.get("banned", False) != banned
            if not changed:
                return None
            d["banned"] = banned
            return d

        stored = self._members.update(member_id, apply, max_attempts=self._max_attempts)
        return self._member_from_dict(stored), changed

    def apply_rating(self, member_id: str, rating: int) -> Member:
        """Fold one new rating into the member's running mean.

        ``rating = (rating * completed_swaps + new) / (completed_swaps + 1)``
        followed by ``completed_swaps += 1``, as a single atomic update.
        """

        def change(m: Member) -> None:
            total = m.rating * m.completed_swaps + rating
            m.completed_swaps += 1
            m.rating = max(MIN_RATING, min(MAX_RATING, total / m.completed_swaps))

        return self._mutate(member_id, change)
