"""Admin dashboard numbers and downloadable reports.

Reports are built from the current contents of the stores and rendered
as JSON (list of row objects) or CSV (header row plus one row per
object).
"""

from __future__ import annotations

import csv
import io
import json
from dataclasses import asdict
from typing import Any

from skillswap.auth.models import Actor
from skillswap.auth.permissions import require_admin
from skillswap.errors import ValidationError
from skillswap.moderation.models import PlatformStats, ReportStatus, SubmissionStatus
from skillswap.moderation.store import ModerationStore
from skillswap.profiles.store import ProfileStore
from skillswap.swaps.models import SwapStatus
from skillswap.swaps.store import SwapStore

REPORT_KINDS = ["user_activity", "swap_statistics", "feedback_logs", "platform_overview"]
REPORT_FORMATS = ["json", "csv"]


class AdminReporter:
    """Computes platform statistics and renders admin reports."""

    def __init__(self, profiles: ProfileStore, swaps: SwapStore, moderation: ModerationStore) -> None:
        self._profiles = profiles
        self._swaps = swaps
        self._moderation = moderation

    def platform_stats(self, actor: Actor) -> PlatformStats:
        require_admin(actor)
        members = self._profiles.list_all()
        requests = self._swaps.list_all()
        rated = [m.rating for m in members if m.completed_swaps > 0]

        def count(status: SwapStatus) -> int:
            return sum(1 for r in requests if r.status == status)

        return PlatformStats(
            total_members=len(members),
            banned_members=sum(1 for m in members if m.banned),
            public_members=sum(1 for m in members if m.is_public and not m.banned),
            pending_skill_submissions=len(self._moderation.list_submissions(SubmissionStatus.pending)),
            pending_swaps=count(SwapStatus.pending),
            active_swaps=count(SwapStatus.accepted),
            completed_swaps=count(SwapStatus.completed),
            pending_reports=len(self._moderation.list_reports(ReportStatus.pending)),
            average_rating=round(sum(rated) / len(rated), 2) if rated else None,
        )

    def build_report(self, actor: Actor, kind: str, fmt: str = "json") -> str:
        """Render the *kind* report as ``json`` or ``csv``."""
        require_admin(actor)
        if kind not in REPORT_KINDS:
            raise ValidationError(f"Unknown report '{kind}' (expected one of: {', '.join(REPORT_KINDS)})")
        if fmt not in REPORT_FORMATS:
            raise ValidationError(f"Unknown report format '{fmt}' (expected json or csv)")

        builder = getattr(self, f"_{kind}_rows")
        rows = builder(actor)
        return _render(rows, fmt)

    # ------------------------------------------------------------------
    # Row builders
    # ------------------------------------------------------------------

    def _user_activity_rows(self, actor: Actor) -> list[dict[str, Any]]:
        requests = self._swaps.list_all()
        reports = self._moderation.list_reports()
        rows = []
        for m in self._profiles.list_all():
            rows.append(
                {
                    "member_id": m.id,
                    "display_name": m.display_name,
                    "role": m.role.value,
                    "banned": m.banned,
                    "is_public": m.is_public,
                    "rating": round(m.rating, 2),
                    "completed_swaps": m.completed_swaps,
                    "requests_sent": sum(1 for r in requests if r.requester_id == m.id),
                    "requests_received": sum(1 for r in requests if r.recipient_id == m.id),
                    "active_swaps": sum(
                        1 for r in requests if r.status == SwapStatus.accepted and r.is_party(m.id)
                    ),
                    "reports_against": sum(1 for r in reports if r.reported_id == m.id),
                }
            )
        return rows

    def _swap_statistics_rows(self, actor: Actor) -> list[dict[str, Any]]:
        requests = self._swaps.list_all()
        total = len(requests)
        rows: list[dict[str, Any]] = [{"metric": "total_requests", "value": total}]
        for status in SwapStatus:
            rows.append({"metric": status.value, "value": sum(1 for r in requests if r.status == status)})

        completed = sum(1 for r in requests if r.status == SwapStatus.completed)
        decided = sum(1 for r in requests if r.status != SwapStatus.pending)
        scores = [rating.rating for r in requests for rating in r.ratings]
        rows.append({"metric": "completion_rate", "value": round(completed / decided, 4) if decided else 0.0})
        rows.append({"metric": "ratings_submitted", "value": len(scores)})
        rows.append(
            {"metric": "average_rating_given", "value": round(sum(scores) / len(scores), 2) if scores else 0.0}
        )
        return rows

    def _feedback_logs_rows(self, actor: Actor) -> list[dict[str, Any]]:
        rows = []
        for r in self._swaps.list_all([SwapStatus.completed]):
            for rating in r.ratings:
                rows.append(
                    {
                        "request_id": r.id,
                        "rater_id": rating.rater_id,
                        "rated_id": rating.rated_id,
                        "rating": rating.rating,
                        "feedback": rating.feedback,
                        "created_at": rating.created_at,
                    }
                )
        rows.sort(key=lambda row: row["created_at"])
        return rows

    def _platform_overview_rows(self, actor: Actor) -> list[dict[str, Any]]:
        stats = self.platform_stats(actor)
        return [{"metric": k, "value": v} for k, v in asdict(stats).items()]


def _render(rows: list[dict[str, Any]], fmt: str) -> str:
    if fmt == "csv":
        buf = io.StringIO()
        if rows:
            writer = csv.DictWriter(buf, fieldnames=list(rows[0].keys()), lineterminator="\n")
            writer.writeheader()
            writer.writerows(rows)
        return buf.getvalue()
    return json.dumps(rows, indent=2)
