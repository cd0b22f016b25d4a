"""Swap request state machine — enforces transitions and who may trigger them.

Request lifecycle:
    PENDING → ACCEPTED | REJECTED | CANCELLED
    ACCEPTED → COMPLETED | CANCELLED
    REJECTED, COMPLETED, CANCELLED are terminal.

| Action       | Actor        | From               | To        |
|--------------|--------------|--------------------|-----------|
| accept       | recipient    | pending            | accepted  |
| reject       | recipient    | pending            | rejected  |
| cancel       | requester    | pending            | cancelled |
| complete     | either party | accepted           | completed |
| force_cancel | admin        | pending, accepted  | cancelled |

Re-running an action on a request already in that action's outcome is a
no-op that returns the request. Any other source state is an
InvalidTransition. Writes are compare-and-set on the status that was read,
so when two parties act at once exactly one wins and the other gets a
Conflict.
"""

from __future__ import annotations

import dataclasses
import logging
from enum import Enum
from typing import Optional

from skillswap.auth.models import Actor
from skillswap.errors import InvalidTransition, Unauthorized, ValidationError
from skillswap.events import EventBus
from skillswap.profiles.models import SkillSet
from skillswap.profiles.store import ProfileStore
from skillswap.security.audit_log import AuditLogger
from skillswap.storage import new_id, utcnow
from skillswap.swaps.models import CancelReason, SwapRequest, SwapStatus
from skillswap.swaps.store import SwapStore

logger = logging.getLogger(__name__)


class SwapAction(str, Enum):
    """A transition that can be requested on an existing swap request."""

    accept = "accept"
    reject = "reject"
    cancel = "cancel"
    complete = "complete"
    force_cancel = "force_cancel"


# {action: (allowed source states, target state)}
_TRANSITIONS: dict[SwapAction, tuple[frozenset[SwapStatus], SwapStatus]] = {
    SwapAction.accept: (frozenset({SwapStatus.pending}), SwapStatus.accepted),
    SwapAction.reject: (frozenset({SwapStatus.pending}), SwapStatus.rejected),
    SwapAction.cancel: (frozenset({SwapStatus.pending}), SwapStatus.cancelled),
    SwapAction.complete: (frozenset({SwapStatus.accepted}), SwapStatus.completed),
    SwapAction.force_cancel: (
        frozenset({SwapStatus.pending, SwapStatus.accepted}),
        SwapStatus.cancelled,
    ),
}

_EVENTS: dict[SwapAction, str] = {
    SwapAction.accept: "request.accepted",
    SwapAction.reject: "request.rejected",
    SwapAction.cancel: "request.cancelled",
    SwapAction.complete: "request.completed",
    SwapAction.force_cancel: "request.force_cancelled",
}

_CANCEL_REASONS: dict[SwapAction, CancelReason] = {
    SwapAction.cancel: CancelReason.withdrawn,
    SwapAction.force_cancel: CancelReason.moderation,
}


def target_status(action: SwapAction) -> SwapStatus:
    return _TRANSITIONS[SwapAction(action)][1]


def valid_actions(status: SwapStatus) -> set[SwapAction]:
    """Return the actions that can move a request out of *status*."""
    return {a for a, (sources, _) in _TRANSITIONS.items() if status in sources}


class SwapStateMachine:
    """Creates swap requests and applies lifecycle transitions.

    Usage:
        machine = SwapStateMachine(swaps, profiles, bus=bus, audit=audit)
        request = machine.create(actor, recipient_id, "Python", "Design")
        machine.accept(recipient_actor, request.id)
    """

    def __init__(
        self,
        swaps: SwapStore,
        profiles: ProfileStore,
        bus: Optional[EventBus] = None,
        audit: Optional[AuditLogger] = None,
    ) -> None:
        self._swaps = swaps
        self._profiles = profiles
        self._bus = bus
        self._audit = audit

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    def create(
        self,
        actor: Actor,
        recipient_id: str,
        skill_offered: str,
        skill_wanted: str,
        message: str = "",
    ) -> SwapRequest:
        """Open a pending request from *actor* to *recipient_id*.

        The requester must offer ``skill_offered`` and the recipient must
        offer ``skill_wanted`` at the moment of creation.
        """
        requester = self._profiles.get(actor.member_id)
        if recipient_id == requester.id:
            raise ValidationError("Cannot send a swap request to yourself")
        if requester.banned:
            raise Unauthorized(f"Member {requester.id} is banned")

        recipient = self._profiles.get(recipient_id)
        if recipient.banned:
            raise ValidationError(f"Member {recipient.id} is banned")

        offered = requester.skills_offered.get(SkillSet.normalize(skill_offered))
        if offered is None:
            raise ValidationError(f"'{skill_offered}' is not among your offered skills")
        wanted = recipient.skills_offered.get(SkillSet.normalize(skill_wanted))
        if wanted is None:
            raise ValidationError(
                f"'{skill_wanted}' is not among {recipient.display_name}'s offered skills"
            )

        request = self._swaps.insert(
            SwapRequest(
                id=new_id(),
                requester_id=requester.id,
                recipient_id=recipient.id,
                skill_offered=offered,
                skill_wanted=wanted,
                message=message.strip(),
            )
        )
        logger.info(
            "Swap request %s created: %s -> %s (%s for %s)",
            request.id, requester.id, recipient.id, offered, wanted,
        )
        self._record(actor, "request.created", request)
        return request

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def accept(self, actor: Actor, request_id: str) -> SwapRequest:
        return self.transition(actor, request_id, SwapAction.accept)

    def reject(self, actor: Actor, request_id: str) -> SwapRequest:
        return self.transition(actor, request_id, SwapAction.reject)

    def cancel(self, actor: Actor, request_id: str) -> SwapRequest:
        """Withdraw a pending request (requester only)."""
        return self.transition(actor, request_id, SwapAction.cancel)

    def complete(self, actor: Actor, request_id: str) -> SwapRequest:
        return self.transition(actor, request_id, SwapAction.complete)

    def force_cancel(self, actor: Actor, request_id: str) -> SwapRequest:
        """Administrative cancellation of a pending or accepted request."""
        return self.transition(actor, request_id, SwapAction.force_cancel)

    def transition(self, actor: Actor, request_id: str, action: SwapAction) -> SwapRequest:
        """Apply *action* to a request on behalf of *actor*.

        Raises NotFound, Unauthorized, InvalidTransition, or Conflict when
        another writer changed the request after it was read.
        """
        action = SwapAction(action)
        request = self._swaps.get(request_id)
        self._authorize(actor, request, action)

        sources, target = _TRANSITIONS[action]
        if request.status == target:
            logger.debug("Swap request %s already %s; %s is a no-op", request.id, target.value, action.value)
            return request
        if request.status not in sources:
            allowed = ", ".join(sorted(a.value for a in valid_actions(request.status))) or "none"
            raise InvalidTransition(
                f"Cannot {action.value} swap request {request.id}: status is "
                f"{request.status.value} (allowed actions: {allowed})"
            )

        if action == SwapAction.accept and self._profiles.get(actor.member_id).banned:
            raise Unauthorized(f"Member {actor.member_id} is banned")

        updated = dataclasses.replace(
            request,
            status=target,
            updated_at=utcnow(),
            cancel_reason=_CANCEL_REASONS.get(action, request.cancel_reason),
        )
        stored = self._swaps.compare_and_set(updated, expected_status=request.status)

        logger.info(
            "Swap request %s: %s -> %s by %s",
            stored.id, request.status.value, stored.status.value, actor.member_id,
        )
        self._record(actor, _EVENTS[action], stored, previous=request.status)
        return stored

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _authorize(actor: Actor, request: SwapRequest, action: SwapAction) -> None:
        if action == SwapAction.force_cancel:
            allowed = actor.is_admin
        elif action in (SwapAction.accept, SwapAction.reject):
            allowed = actor.member_id == request.recipient_id
        elif action == SwapAction.cancel:
            allowed = actor.member_id == request.requester_id
        else:
            allowed = request.is_party(actor.member_id)
        if not allowed:
            raise Unauthorized(
                f"Member {actor.member_id} may not {action.value} swap request {request.id}"
            )

    def _record(
        self,
        actor: Actor,
        event_type: str,
        request: SwapRequest,
        previous: Optional[SwapStatus] = None,
    ) -> None:
        payload = {
            "request_id": request.id,
            "status": request.status.value,
            "skill_offered": request.skill_offered,
            "skill_wanted": request.skill_wanted,
        }
        if previous is not None:
            payload["previous_status"] = previous.value
        if request.cancel_reason is not None:
            payload["reason"] = request.cancel_reason.value
        if self._audit is not None:
            self._audit.log_event(actor.member_id, event_type, "swap_request", request.id, details=payload)
        if self._bus is not None:
            self._bus.publish(event_type, request.parties, payload)
