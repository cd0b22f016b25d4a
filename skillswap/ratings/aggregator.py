"""Rating aggregator — folds post-swap ratings into members' running averages.

Ratings are double-sided: each party of a completed swap may rate the
other exactly once, and each rating feeds the *other* party's aggregate:

    rating = (rating * completed_swaps + new) / (completed_swaps + 1)
    completed_swaps += 1

The rating is first attached to the swap request via compare-and-set, which
is what guarantees one rating per party per request even under concurrent
submissions. The rated member is then updated through the profile store's
optimistic read-modify-write, so two ratings landing on the same member
from different requests serialise instead of losing an update. A rating
stays unapplied until the aggregate update lands; if that update fails
the same rater can resubmit, and the stored rating is applied then.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Optional

from skillswap.errors import AlreadyRated, InvalidTransition, Unauthorized, ValidationError
from skillswap.events import EventBus
from skillswap.profiles.models import Member
from skillswap.profiles.store import ProfileStore
from skillswap.security.audit_log import AuditLogger
from skillswap.storage import utcnow
from skillswap.swaps.models import SwapRating, SwapStatus
from skillswap.swaps.store import SwapStore

logger = logging.getLogger(__name__)

MIN_SCORE = 1
MAX_SCORE = 5


def validate_score(rating: object) -> int:
    """Return *rating* if it is an integer in [1, 5]. Raises ValidationError."""
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise ValidationError(f"Rating must be an integer, got {rating!r}")
    if not (MIN_SCORE <= rating <= MAX_SCORE):
        raise ValidationError(f"Rating must be between {MIN_SCORE} and {MAX_SCORE}, got {rating}")
    return rating


class RatingAggregator:
    """Records post-swap ratings and updates the rated member's aggregate.

    Usage:
        aggregator = RatingAggregator(swaps, profiles)
        member = aggregator.submit_rating(request_id, rater_id, 5, "Great mentor")
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

    def submit_rating(
        self,
        request_id: str,
        rater_id: str,
        rating: int,
        feedback: str = "",
    ) -> Member:
        """Rate the counterpart of a completed swap. Returns the rated member.

        Raises:
            ValidationError: rating is not an integer in 1-5.
            NotFound: unknown request.
            Unauthorized: rater is not a party to the request.
            InvalidTransition: the request is not completed.
            AlreadyRated: the rater already rated this request.
            Conflict: the request or the rated member changed while the
                rating was being recorded. Retrying completes a stored
                rating using its original score and feedback.
        """
        score = validate_score(rating)
        request = self._swaps.get(request_id)

        if not request.is_party(rater_id):
            raise Unauthorized(f"Member {rater_id} is not a party to swap request {request.id}")
        if request.status != SwapStatus.completed:
            raise InvalidTransition(
                f"Swap request {request.id} is {request.status.value}; only completed swaps can be rated"
            )

        entry = request.rating_by(rater_id)
        if entry is not None and entry.applied:
            raise AlreadyRated(f"Member {rater_id} already rated swap request {request.id}")
        if entry is not None:
            # An earlier attempt stored the rating but never reached the aggregate.
            logger.info("Resuming rating by %s on swap %s", rater_id, request.id)
        else:
            entry = SwapRating(
                rater_id=rater_id,
                rated_id=request.counterpart(rater_id),
                rating=score,
                feedback=feedback.strip(),
            )
            updated = dataclasses.replace(request, ratings=[*request.ratings, entry], updated_at=utcnow())
            self._swaps.compare_and_set(updated, expected_status=SwapStatus.completed)

        rated_id = entry.rated_id
        member = self._profiles.apply_rating(rated_id, entry.rating)
        self._swaps.mark_rating_applied(request.id, rater_id)
        logger.info(
            "Member %s rated %s %d/5 on swap %s (now %.2f over %d swaps)",
            rater_id, rated_id, entry.rating, request.id, member.rating, member.completed_swaps,
        )

        payload = {
            "request_id": request.id,
            "rater_id": rater_id,
            "rated_id": rated_id,
            "rating": entry.rating,
            "feedback": entry.feedback,
            "new_average": member.rating,
        }
        if self._audit is not None:
            self._audit.log_event(rater_id, "rating.submitted", "swap_request", request.id, details=payload)
        if self._bus is not None:
            self._bus.publish("rating.submitted", [rater_id, rated_id], payload)
        return member
