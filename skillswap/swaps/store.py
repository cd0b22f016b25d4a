"""File-based JSON storage for swap requests.

Requests are only ever inserted or replaced through compare-and-set on
their status and version; they are never deleted.
"""

from __future__ import annotations

from pathlib import Path
from typing import Callable, Iterable, Optional

from skillswap.storage import JsonTable
from skillswap.swaps.models import CancelReason, SwapRating, SwapRequest, SwapStatus


class SwapStore:
    """File-based storage for swap requests.

    Storage path: ``~/.skillswap/swaps/`` with:
    - ``requests.json`` -- list of swap request dicts
    """

    def __init__(self, base_dir: Optional[str | Path] = None) -> None:
        if base_dir is None:
            self._base = Path.home() / ".skillswap" / "swaps"
        else:
            self._base = Path(base_dir)
        self._requests = JsonTable(self._base, "requests", kind="swap request")

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _request_from_dict(d: dict) -> SwapRequest:
        return SwapRequest(
            id=d["id"],
            requester_id=d["requester_id"],
            recipient_id=d["recipient_id"],
            skill_offered=d["skill_offered"],
            skill_wanted=d["skill_wanted"],
            message=d.get("message", ""),
            status=SwapStatus(d.get("status", "pending")),
            cancel_reason=CancelReason(d["cancel_reason"]) if d.get("cancel_reason") else None,
            ratings=[SwapRating(**{"applied": True, **r}) for r in d.get("ratings", [])],
            created_at=d.get("created_at", ""),
            updated_at=d.get("updated_at", ""),
            version=d.get("version", 0),
        )

    @staticmethod
    def _request_to_dict(r: SwapRequest) -> dict:
        return {
            "id": r.id,
            "requester_id": r.requester_id,
            "recipient_id": r.recipient_id,
            "skill_offered": r.skill_offered,
            "skill_wanted": r.skill_wanted,
            "message": r.message,
            "status": r.status.value,
            "cancel_reason": r.cancel_reason.value if r.cancel_reason else None,
            "ratings": [
                {
                    "rater_id": x.rater_id,
                    "rated_id": x.rated_id,
                    "rating": x.rating,
                    "feedback": x.feedback,
                    "created_at": x.created_at,
                    "applied": x.applied,
                }
                for x in r.ratings
            ],
            "created_at": r.created_at,
            "updated_at": r.updated_at,
            "version": r.version,
        }

    def _list(self, predicate: Callable[[dict], bool]) -> list[SwapRequest]:
        return [self._request_from_dict(d) for d in self._requests.list(predicate)]

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def insert(self, request: SwapRequest) -> SwapRequest:
        return self._request_from_dict(self._requests.insert(self._request_to_dict(request)))

    def get(self, request_id: str) -> SwapRequest:
        """Look up a swap request by ID. Raises NotFound."""
        return self._request_from_dict(self._requests.get(request_id))

    def compare_and_set(self, request: SwapRequest, expected_status: SwapStatus) -> SwapRequest:
        """Write *request* if the stored copy still has ``request.version``
        and *expected_status*. Raises Conflict otherwise."""
        stored = self._requests.compare_and_set(
            request.id,
            request.version,
            self._request_to_dict(request),
            expect={"status": SwapStatus(expected_status).value},
        )
        return self._request_from_dict(stored)

    def mark_rating_applied(self, request_id: str, rater_id: str) -> SwapRequest:
        """Flag *rater_id*'s rating on the request as folded into the aggregate."""

        def mutate(d: dict) -> dict:
            for r in d.get("ratings", []):
                if r["rater_id"] == rater_id:
                    r["applied"] = True
            return d

        return self._request_from_dict(self._requests.update(request_id, mutate))

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_all(self, statuses: Optional[Iterable[SwapStatus]] = None) -> list[SwapRequest]:
        wanted = {SwapStatus(s).value for s in statuses} if statuses else None
        return self._list(lambda d: wanted is None or d.get("status") in wanted)

    def list_for_member(
        self, member_id: str, statuses: Optional[Iterable[SwapStatus]] = None
    ) -> list[SwapRequest]:
        """Requests where *member_id* is a party, in ascending id order."""
        wanted = {SwapStatus(s).value for s in statuses} if statuses else None
        return self._list(
            lambda d: member_id in (d["requester_id"], d["recipient_id"])
            and (wanted is None or d.get("status") in wanted)
        )

    def incoming(self, member_id: str) -> list[SwapRequest]:
        """Pending requests awaiting *member_id*'s answer."""
        return self._list(lambda d: d["recipient_id"] == member_id and d.get("status") == "pending")

    def outgoing(self, member_id: str) -> list[SwapRequest]:
        """Every request *member_id* has sent."""
        return self._list(lambda d: d["requester_id"] == member_id)

    def active(self, member_id: str) -> list[SwapRequest]:
        return self.list_for_member(member_id, [SwapStatus.accepted])

    def completed(self, member_id: str) -> list[SwapRequest]:
        return self.list_for_member(member_id, [SwapStatus.completed])
