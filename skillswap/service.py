"""SkillSwap service — one entry point wiring the core components together.

The presentation layer builds a :class:`SkillSwapService` once (usually
from :class:`~skillswap.config.Settings`) and calls its methods with an
explicit :class:`~skillswap.auth.models.Actor` per operation.

Data directory layout::

    <data_dir>/
        profiles/members.json
        swaps/requests.json
        moderation/submissions.json
        moderation/reports.json
        events/events.jsonl
        audit_logs/YYYY-MM-DD.jsonl
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Optional

from skillswap.auth.models import Actor, Role
from skillswap.config import Settings
from skillswap.errors import Unauthorized
from skillswap.events import EventBus, EventLog
from skillswap.matching import Match, MatchEngine, SearchField, search_profiles
from skillswap.moderation import AdminReporter, ModerationController, ModerationStore
from skillswap.profiles import AvailabilitySlot, Member, ProfileStore
from skillswap.ratings import RatingAggregator
from skillswap.security.audit_log import AuditLogger
from skillswap.swaps import SwapRequest, SwapStateMachine, SwapStore

logger = logging.getLogger(__name__)


class SkillSwapService:
    """Facade over the profile, matching, swap, rating and moderation components."""

    def __init__(self, settings: Optional[Settings] = None) -> None:
        self.settings = settings or Settings()
        home = Path(self.settings.data_dir)

        self.profiles = ProfileStore(
            home / "profiles",
            max_attempts=self.settings.cas_max_attempts,
            default_rating=self.settings.default_rating,
        )
        self.swaps = SwapStore(home / "swaps")
        self.moderation_store = ModerationStore(home / "moderation")
        self.audit = AuditLogger(home / "audit_logs")
        self.bus = EventBus(EventLog(home / "events") if self.settings.persist_events else None)

        self.matcher = MatchEngine(self.profiles, limit=self.settings.match_limit)
        self.machine = SwapStateMachine(self.swaps, self.profiles, bus=self.bus, audit=self.audit)
        self.ratings = RatingAggregator(self.swaps, self.profiles, bus=self.bus, audit=self.audit)
        self.moderation = ModerationController(
            self.moderation_store, self.profiles, self.swaps, self.machine,
            bus=self.bus, audit=self.audit,
        )
        self.reports = AdminReporter(self.profiles, self.swaps, self.moderation_store)

    @classmethod
    def from_settings(cls, settings: Settings) -> "SkillSwapService":
        return cls(settings)

    # ------------------------------------------------------------------
    # Identity
    # ------------------------------------------------------------------

    def actor_for(self, member_id: str) -> Actor:
        """Build an actor from the stored member's role."""
        member = self.profiles.get(member_id)
        return Actor(member_id=member.id, role=member.role)

    @staticmethod
    def _require_self_or_admin(actor: Actor, member_id: str) -> None:
        if actor.member_id != member_id and not actor.is_admin:
            raise Unauthorized(f"Member {actor.member_id} may not modify member {member_id}")

    # ------------------------------------------------------------------
    # Profiles
    # ------------------------------------------------------------------

    def register(
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
    ) -> Member:
        member = self.profiles.create(
            display_name,
            email=email,
            location=location,
            skills_offered=skills_offered,
            skills_wanted=skills_wanted,
            availability=availability,
            is_public=is_public,
            role=role,
        )
        self.audit.log_event(member.id, "member.registered", "member", member.id)
        self.bus.publish("member.registered", [member.id], {"display_name": member.display_name})
        return member

    def get_member(self, member_id: str) -> Member:
        return self.profiles.get(member_id)

    def update_profile(
        self,
        actor: Actor,
        member_id: str,
        *,
        display_name: Optional[str] = None,
        location: Optional[str] = None,
        availability: Optional[Iterable[str | AvailabilitySlot]] = None,
    ) -> Member:
        self._require_self_or_admin(actor, member_id)
        member = self.profiles.update_profile(
            member_id, display_name=display_name, location=location, availability=availability
        )
        self._member_updated(actor, member, "profile")
        return member

    def set_skills(
        self, actor: Actor, member_id: str, offered: Iterable[str], wanted: Iterable[str]
    ) -> Member:
        self._require_self_or_admin(actor, member_id)
        member = self.profiles.upsert_skills(member_id, offered, wanted)
        self._member_updated(actor, member, "skills")
        return member

    def set_visibility(self, actor: Actor, member_id: str, is_public: bool) -> Member:
        self._require_self_or_admin(actor, member_id)
        member = self.profiles.set_visibility(member_id, is_public)
        self._member_updated(actor, member, "visibility")
        return member

    def _member_updated(self, actor: Actor, member: Member, change: str) -> None:
        self.audit.log_event(actor.member_id, "member.updated", "member", member.id, details={"change": change})
        self.bus.publish("member.updated", [member.id], {"change": change, "version": member.version})

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def find_matches(self, member_id: str) -> list[Match]:
        return self.matcher.find_matches(self.profiles.get(member_id))

    def search(self, term: str = "", field: SearchField | str = SearchField.all) -> list[Member]:
        return search_profiles(self.profiles.list_all(), term, field)

    # ------------------------------------------------------------------
    # Swaps
    # ------------------------------------------------------------------

    def create_request(
        self, actor: Actor, recipient_id: str, skill_offered: str, skill_wanted: str, message: str = ""
    ) -> SwapRequest:
        return self.machine.create(actor, recipient_id, skill_offered, skill_wanted, message)

    def accept(self, actor: Actor, request_id: str) -> SwapRequest:
        return self.machine.accept(actor, request_id)

    def reject(self, actor: Actor, request_id: str) -> SwapRequest:
        return self.machine.reject(actor, request_id)

    def cancel(self, actor: Actor, request_id: str) -> SwapRequest:
        return self.machine.cancel(actor, request_id)

    def complete(self, actor: Actor, request_id: str) -> SwapRequest:
        return self.machine.complete(actor, request_id)

    def force_cancel(self, actor: Actor, request_id: str) -> SwapRequest:
        return self.machine.force_cancel(actor, request_id)

    def get_request(self, actor: Actor, request_id: str) -> SwapRequest:
        request = self.swaps.get(request_id)
        if not request.is_party(actor.member_id) and not actor.is_admin:
            raise Unauthorized(f"Member {actor.member_id} may not view swap request {request_id}")
        return request

    def incoming(self, actor: Actor) -> list[SwapRequest]:
        return self.swaps.incoming(actor.member_id)

    def outgoing(self, actor: Actor) -> list[SwapRequest]:
        return self.swaps.outgoing(actor.member_id)

    def active(self, actor: Actor) -> list[SwapRequest]:
        return self.swaps.active(actor.member_id)

    def completed(self, actor: Actor) -> list[SwapRequest]:
        return self.swaps.completed(actor.member_id)

    def submit_rating(self, actor: Actor, request_id: str, rating: int, feedback: str = "") -> Member:
        return self.ratings.submit_rating(request_id, actor.member_id, rating, feedback)
