"""Moderation controller — skill review, member reports, and bans.

Every moderator operation requires an admin actor and acts only on
entities that are still pending; anything else raises AlreadyProcessed.
Banning a member cascades into force-cancelling their open swap requests.
Each request is cancelled independently and reported individually, so a
partially failed ban can simply be run again.
"""

from __future__ import annotations

import logging
from typing import Optional

from skillswap.auth.models import Actor
from skillswap.auth.permissions import require_admin
from skillswap.errors import AlreadyProcessed, SkillSwapError, ValidationError
from skillswap.events import Event, EventBus
from skillswap.moderation.models import (
    BanResult,
    ForceCancelOutcome,
    Report,
    ReportReason,
    ReportStatus,
    SkillSubmission,
    SubmissionStatus,
)
from skillswap.moderation.screening import screen_submission
from skillswap.moderation.store import ModerationStore
from skillswap.profiles.models import Member, SkillDirection, SkillSet
from skillswap.profiles.store import ProfileStore
from skillswap.security.audit_log import AuditLogger
from skillswap.swaps.models import SwapStatus
from skillswap.swaps.state_machine import SwapStateMachine
from skillswap.swaps.store import SwapStore

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (SwapStatus.pending, SwapStatus.accepted)


def _parse_reason(value: str | ReportReason) -> ReportReason:
    try:
        return ReportReason(value)
    except ValueError:
        allowed = ", ".join(r.value for r in ReportReason)
        raise ValidationError(f"Unknown report reason '{value}' (expected one of: {allowed})") from None


def _parse_direction(value: str | SkillDirection) -> SkillDirection:
    try:
        return SkillDirection(value)
    except ValueError:
        raise ValidationError(f"Skill direction must be 'offered' or 'wanted', got '{value}'") from None


class ModerationController:
    """Admin workflows over submissions, reports and member bans.

    Usage:
        controller = ModerationController(store, profiles, swaps, machine, bus=bus, audit=audit)
        controller.approve_skill(admin, submission_id)
        result = controller.ban_member(admin, member_id)
    """

    def __init__(
        self,
        store: ModerationStore,
        profiles: ProfileStore,
        swaps: SwapStore,
        machine: SwapStateMachine,
        bus: Optional[EventBus] = None,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        self._store = store
        self._profiles = profiles
        self._swaps = swaps
        self._machine = machine
        self._bus = bus
        self._audit = audit

    # ------------------------------------------------------------------
    # Member-side entry points
    # ------------------------------------------------------------------

    def submit_skill(
        self,
        actor: Actor,
        skill: str,
        direction: str | SkillDirection = SkillDirection.offered,
        description: str = "",
        flag_reason: Optional[str] = None,
    ) -> SkillSubmission:
        """Queue a skill for review before it appears on the actor's profile.

        When *flag_reason* is not given the text is screened automatically.
        """
        member = self._profiles.get(actor.member_id)
        text = SkillSet.normalize(skill)
        direction = _parse_direction(direction)
        if flag_reason is None:
            flag_reason = screen_submission(text, description) or ""

        submission = self._store.create_submission(
            SkillSubmission(
                id="",
                member_id=member.id,
                skill=text,
                direction=direction,
                description=description.strip(),
                flag_reason=flag_reason,
            )
        )
        logger.info(
            "Skill submission %s from %s: %s (%s)%s",
            submission.id, member.id, text, direction.value,
            f" flagged: {flag_reason}" if flag_reason else "",
        )
        self._record(
            actor, "skill.submitted", "skill_submission", submission.id, [member.id],
            {"skill": text, "direction": direction.value, "flag_reason": flag_reason},
        )
        return submission

    def file_report(
        self,
        actor: Actor,
        reported_id: str,
        reason: str | ReportReason,
        description: str = "",
    ) -> Report:
        """Report another member for moderator attention."""
        reporter = self._profiles.get(actor.member_id)
        if reported_id == reporter.id:
            raise ValidationError("Cannot report yourself")
        reported = self._profiles.get(reported_id)
        reason = _parse_reason(reason)

        report = self._store.create_report(
            Report(
                id="",
                reported_id=reported.id,
                reporter_id=reporter.id,
                reason=reason,
                description=description.strip(),
            )
        )
        logger.info("Report %s filed by %s against %s (%s)", report.id, reporter.id, reported.id, reason.value)
        self._record(
            actor, "report.filed", "report", report.id, [reported.id],
            {"reported_id": reported.id, "reason": reason.value},
        )
        return report

    # ------------------------------------------------------------------
    # Skill review
    # ------------------------------------------------------------------

    def approve_skill(self, actor: Actor, submission_id: str) -> SkillSubmission:
        """Approve a pending submission and add the skill to its owner's profile.

        Approving an already approved submission whose skill never reached
        the profile adds it now; any other repeat raises AlreadyProcessed.
        """
        require_admin(actor)
        try:
            decided = self._store.decide_submission(submission_id, SubmissionStatus.approved, actor.member_id)
        except AlreadyProcessed:
            decided = self._store.get_submission(submission_id)
            owner = self._profiles.get(decided.member_id)
            if decided.status != SubmissionStatus.approved or decided.skill in owner.skills(decided.direction):
                raise
            logger.info("Skill submission %s approved earlier; adding missing skill", decided.id)
        self._profiles.add_skill(decided.member_id, decided.skill, decided.direction)
        logger.info("Skill submission %s approved by %s", decided.id, actor.member_id)
        self._record(
            actor, "skill.approved", "skill_submission", decided.id, [decided.member_id],
            {"skill": decided.skill, "direction": decided.direction.value},
        )
        return decided

    def reject_skill(self, actor: Actor, submission_id: str, reason: str = "") -> SkillSubmission:
        require_admin(actor)
        decided = self._store.decide_submission(
            submission_id, SubmissionStatus.rejected, actor.member_id, rejection_reason=reason.strip()
        )
        logger.info("Skill submission %s rejected by %s", decided.id, actor.member_id)
        self._record(
            actor, "skill.rejected", "skill_submission", decided.id, [decided.member_id],
            {"skill": decided.skill, "reason": decided.rejection_reason},
        )
        return decided

    def list_submissions(
        self, actor: Actor, status: Optional[str | SubmissionStatus] = None
    ) -> list[SkillSubmission]:
        require_admin(actor)
        return self._store.list_submissions(status)

    # ------------------------------------------------------------------
    # Reports
    # ------------------------------------------------------------------

    def resolve_report(self, actor: Actor, report_id: str) -> Report:
        return self._decide_report(actor, report_id, ReportStatus.resolved)

    def dismiss_report(self, actor: Actor, report_id: str) -> Report:
        return self._decide_report(actor, report_id, ReportStatus.dismissed)

    def list_reports(self, actor: Actor, status: Optional[str | ReportStatus] = None) -> list[Report]:
        require_admin(actor)
        return self._store.list_reports(status)

    def _decide_report(self, actor: Actor, report_id: str, status: ReportStatus) -> Report:
        require_admin(actor)
        decided = self._store.decide_report(report_id, status, actor.member_id)
        logger.info("Report %s %s by %s", decided.id, status.value, actor.member_id)
        self._record(
            actor, f"report.{status.value}", "report", decided.id, [decided.reporter_id],
            {"reported_id": decided.reported_id, "reason": decided.reason.value},
        )
        return decided

    # ------------------------------------------------------------------
    # Bans
    # ------------------------------------------------------------------

    def ban_member(self, actor: Actor, member_id: str) -> BanResult:
        """Ban a member and force-cancel their pending and accepted requests.

        Requests are processed in ascending id order. A failure on one
        request is captured in its outcome and does not stop the others.
        """
        require_admin(actor)
        member, newly_banned = self._profiles.change_ban(member_id, True)
        if newly_banned:
            logger.info("Member %s banned by %s", member_id, actor.member_id)
            self._record(actor, "member.banned", "member", member_id, [member_id], {})

        outcomes: list[ForceCancelOutcome] = []
        for request in self._swaps.list_for_member(member_id, _OPEN_STATUSES):
            try:
                cancelled = self._machine.force_cancel(actor, request.id)
            except SkillSwapError as e:
                logger.warning("Ban of %s: could not cancel swap request %s: %s", member_id, request.id, e)
                outcomes.append(
                    ForceCancelOutcome(
                        request_id=request.id,
                        previous_status=request.status,
                        status=request.status,
                        error=e.code,
                        message=str(e),
                    )
                )
                continue
            outcomes.append(
                ForceCancelOutcome(
                    request_id=request.id,
                    previous_status=request.status,
                    status=cancelled.status,
                )
            )

        result = BanResult(member=member, newly_banned=newly_banned, outcomes=outcomes)
        if not result.complete:
            logger.warning(
                "Ban of %s left %d of %d requests open; re-run to retry",
                member_id, len(result.failed), len(outcomes),
            )
        return result

    def unban_member(self, actor: Actor, member_id: str) -> Member:
        """Lift a ban. Requests cancelled by the ban stay cancelled."""
        require_admin(actor)
        member, lifted = self._profiles.change_ban(member_id, False)
        if lifted:
            logger.info("Member %s unbanned by %s", member_id, actor.member_id)
            self._record(actor, "member.unbanned", "member", member_id, [member_id], {})
        return member

    # ------------------------------------------------------------------
    # Platform messages
    # ------------------------------------------------------------------

    def broadcast(self, actor: Actor, message: str) -> Event:
        """Send a platform-wide message to every non-banned member."""
        require_admin(actor)
        text = (message or "").strip()
        if not text:
            raise ValidationError("Broadcast message must not be empty")
        recipients = [m.id for m in self._profiles.list_all() if not m.banned]
        logger.info("Platform message from %s to %d members", actor.member_id, len(recipients))
        if self._audit is not None:
            self._audit.log_event(
                actor.member_id, "platform.message", "platform", "broadcast",
                details={"message": text, "recipients": len(recipients)},
            )
        bus = self._bus or EventBus()
        return bus.publish("platform.message", recipients, {"message": text, "sender_id": actor.member_id})

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _record(
        self,
        actor: Actor,
        event_type: str,
        resource_type: str,
        resource_id: str,
        subject_ids: list[str],
        payload: dict,
    ) -> None:
        details = {"id": resource_id, **payload}
        if self._audit is not None:
            self._audit.log_event(actor.member_id, event_type, resource_type, resource_id, details=details)
        if self._bus is not None:
            self._bus.publish(event_type, subject_ids, details)
