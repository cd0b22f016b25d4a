"""Swap request models — status lifecycle, ratings, and the request record.

Request lifecycle: PENDING → ACCEPTED / REJECTED / CANCELLED,
ACCEPTED → COMPLETED / CANCELLED. Rejected, completed and cancelled are
terminal.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional


class SwapStatus(str, Enum):
    """Lifecycle state of a swap request."""

    pending = "pending"
    accepted = "accepted"
    rejected = "rejected"
    completed = "completed"
    cancelled = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in (SwapStatus.rejected, SwapStatus.completed, SwapStatus.cancelled)


class CancelReason(str, Enum):
    """Why a request ended up cancelled."""

    withdrawn = "withdrawn"
    moderation = "moderation"


@dataclass
class SwapRating:
    """One party's rating of the other after a completed swap."""

    rater_id: str
    rated_id: str
    rating: int  # 1 - 5
    feedback: str = ""
    created_at: str = ""
    applied: bool = False  # folded into the rated member's aggregate

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()


@dataclass
class SwapRequest:
    """A proposal to exchange skills between two members.

    The requester offers ``skill_offered`` and asks to receive
    ``skill_wanted`` from the recipient. Status only moves through the
    swap state machine.
    """

    id: str
    requester_id: str
    recipient_id: str
    skill_offered: str
    skill_wanted: str
    message: str = ""
    status: SwapStatus = SwapStatus.pending
    cancel_reason: Optional[CancelReason] = None
    ratings: list[SwapRating] = field(default_factory=list)
    created_at: str = ""
    updated_at: str = ""
    version: int = 0

    def __post_init__(self) -> None:
        if not self.created_at:
            self.created_at = datetime.now(timezone.utc).isoformat()
        if not self.updated_at:
            self.updated_at = self.created_at
        if isinstance(self.status, str) and not isinstance(self.status, SwapStatus):
            self.status = SwapStatus(self.status)
        if isinstance(self.cancel_reason, str) and not isinstance(self.cancel_reason, CancelReason):
            self.cancel_reason = CancelReason(self.cancel_reason)

    @property
    def parties(self) -> tuple[str, str]:
        return (self.requester_id, self.recipient_id)

    def is_party(self, member_id: str) -> bool:
        return member_id in self.parties

    def counterpart(self, member_id: str) -> str:
        """Return the other party's id."""
        if member_id == self.requester_id:
            return self.recipient_id
        if member_id == self.recipient_id:
            return self.requester_id
        raise ValueError(f"{member_id} is not a party to swap request {self.id}")

    def rating_by(self, member_id: str) -> Optional[SwapRating]:
        for r in self.ratings:
            if r.rater_id == member_id:
                return r
        return None
