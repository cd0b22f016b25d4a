"""Data models for the moderation layer."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from skillswap.profiles.models import Member, SkillDirection
from skillswap.swaps.models import SwapStatus


class SubmissionStatus(str, Enum):
    pending = "pending"
    approved = "approved"
    rejected = "rejected"


class ReportStatus(str, Enum):
    pending = "pending"
    resolved = "resolved"
    dismissed = "dismissed"


class ReportReason(str, Enum):
    """Why a member was reported."""

    inappropriate_behavior = "inappropriate_behavior"
    no_show = "no_show"
    spam = "spam"
    harassment = "harassment"
    fake_profile = "fake_profile"
    other = "other"


@dataclass
class SkillSubmission:
    """A skill a member asked to add to their profile, awaiting review."""

    id: str
    member_id: str
    skill: str
    direction: SkillDirection
    description: str = ""
    flag_reason: str = ""  # set when automated checks flagged the submission
    status: SubmissionStatus = SubmissionStatus.pending
    rejection_reason: str = ""
    created_at: str = ""
    decided_at: str = ""
    decided_by: str = ""
    version: int = 0

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()
        self.direction = SkillDirection(self.direction)
        self.status = SubmissionStatus(self.status)


@dataclass
class Report:
    """A member's complaint about another member."""

    id: str
    reported_id: str
    reporter_id: str
    reason: ReportReason
    description: str = ""
    status: ReportStatus = ReportStatus.pending
    created_at: str = ""
    decided_at: str = ""
    decided_by: str = ""
    version: int = 0

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()
        self.reason = ReportReason(self.reason)
        self.status = ReportStatus(self.status)


@dataclass
class ForceCancelOutcome:
    """What happened to one swap request during a ban cascade."""

    request_id: str
    previous_status: SwapStatus
    status: SwapStatus
    error: str = ""  # error code, empty on success
    message: str = ""

    @property
    def ok(self) -> bool:
        return not self.error


@dataclass
class BanResult:
    """Result of banning a member: the member plus per-request outcomes."""

    member: Member
    newly_banned: bool
    outcomes: list[ForceCancelOutcome] = field(default_factory=list)

    @property
    def failed(self) -> list[ForceCancelOutcome]:
        return [o for o in self.outcomes if not o.ok]

    @property
    def complete(self) -> bool:
        """True when every active request was cancelled."""
        return not self.failed


@dataclass
class PlatformStats:
    """Headline numbers for the admin dashboard."""

    total_members: int = 0
    banned_members: int = 0
    public_members: int = 0
    pending_skill_submissions: int = 0
    pending_swaps: int = 0
    active_swaps: int = 0
    completed_swaps: int = 0
    pending_reports: int = 0
    average_rating: Optional[float] = None
